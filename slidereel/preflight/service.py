"""
Preflight check service for SlideReel (preflight).

Answers "is this presentation ready to deliver, and why not" from one snapshot
of the asset repository. Results are cached per presentation for a short TTL;
``force_refresh`` bypasses the cache.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from loguru import logger

from slidereel.configs.config import config
from slidereel.preflight.aggregator import aggregate
from slidereel.preflight.checks import (
    check_intro_video,
    check_slide,
    creation_key,
    latest_video,
)
from slidereel.preflight.models import (
    PreflightCheckRequest,
    PreflightCheckResponse,
    PreflightStatus,
    PreflightSummary,
)
from slidereel.repository.interfaces import (
    AssetRepository,
    NarrativeRecord,
    SpeechRecord,
    VideoRecord,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _CachedCheck:
    check_enhanced_narrative: bool
    check_intro_video: bool
    response: PreflightCheckResponse


class PreflightCheckService:
    """Runs preflight checks against the asset repository"""

    def __init__(
        self,
        repository: AssetRepository,
        clock: Callable[[], datetime] = _utcnow,
        cache_ttl: float | None = None,
    ) -> None:
        self.repository = repository
        self.clock = clock
        self.cache_ttl = timedelta(
            seconds=config.preflight_cache_ttl if cache_ttl is None else cache_ttl
        )
        self._recent_checks: dict[str, _CachedCheck] = {}

    def run_check(
        self, presentation_id: str, request: PreflightCheckRequest | None = None
    ) -> PreflightCheckResponse:
        request = request or PreflightCheckRequest()
        if not request.force_refresh:
            cached = self._get_cached(presentation_id)
            if (
                cached is not None
                and cached.check_enhanced_narrative == request.check_enhanced_narrative
                and cached.check_intro_video == request.check_intro_video
            ):
                logger.debug(f"Returning cached preflight result for {presentation_id}")
                return cached.response

        logger.info(f"Running preflight check for presentation: {presentation_id}")
        try:
            response = self._check(presentation_id, request)
        except Exception as e:
            logger.error(f"Error during preflight check for {presentation_id}: {e}")
            return self._error_response(presentation_id, str(e) or type(e).__name__)

        if response.overall_status is not PreflightStatus.ERROR:
            self._recent_checks[presentation_id] = _CachedCheck(
                request.check_enhanced_narrative, request.check_intro_video, response
            )
            self._cleanup_cache()
        logger.info(
            f"Preflight check completed for {presentation_id}. "
            f"Status: {response.overall_status.value}"
        )
        return response

    def get_latest_status(self, presentation_id: str) -> PreflightCheckResponse | None:
        cached = self._get_cached(presentation_id)
        return cached.response if cached else None

    def invalidate(self, presentation_id: str) -> None:
        self._recent_checks.pop(presentation_id, None)

    def _check(
        self, presentation_id: str, request: PreflightCheckRequest
    ) -> PreflightCheckResponse:
        slides = sorted(
            self.repository.find_slides(presentation_id), key=lambda s: s.slide_number
        )
        if not slides:
            logger.warning(f"No slides found for presentation: {presentation_id}")
        slide_ids = [slide.slide_id for slide in slides]

        narratives = self._narratives_by_slide(
            self.repository.find_narratives(slide_ids)
        )
        speeches = self._speeches_by_slide(self.repository.find_speeches(slide_ids))
        videos = self._videos_by_slide(self.repository.find_avatar_videos(slide_ids))

        slide_results = [
            check_slide(
                slide,
                narratives.get(slide.slide_id),
                speeches.get(slide.slide_id),
                videos.get(slide.slide_id),
                check_enhanced=request.check_enhanced_narrative,
            )
            for slide in slides
        ]

        presentation_result = None
        if request.check_intro_video:
            intro = self.repository.find_latest_intro_video(presentation_id)
            presentation_result = check_intro_video(intro, enabled=True)

        verdict = aggregate(
            slide_results,
            presentation_result,
            check_intro_video=request.check_intro_video,
        )
        return PreflightCheckResponse(
            presentation_id=presentation_id,
            overall_status=verdict.overall_status,
            slide_results=slide_results,
            presentation_check_result=presentation_result,
            summary=verdict.summary,
            checked_at=self.clock(),
            error_message=verdict.error_message,
        )

    def _narratives_by_slide(
        self, narratives: list[NarrativeRecord]
    ) -> dict[str, NarrativeRecord]:
        return {n.slide_id: n for n in narratives if n.is_active}

    def _speeches_by_slide(
        self, speeches: list[SpeechRecord]
    ) -> dict[str, SpeechRecord]:
        latest: dict[str, SpeechRecord] = {}
        for speech in speeches:
            current = latest.get(speech.slide_id)
            if current is None or creation_key(speech.created_at) >= creation_key(
                current.created_at
            ):
                latest[speech.slide_id] = speech
        return latest

    def _videos_by_slide(self, videos: list[VideoRecord]) -> dict[str, VideoRecord]:
        grouped: dict[str, list[VideoRecord]] = defaultdict(list)
        for video in videos:
            grouped[video.owner_id].append(video)
        result: dict[str, VideoRecord] = {}
        for owner_id, owned in grouped.items():
            newest = latest_video(owned)
            if newest is not None:
                result[owner_id] = newest
        return result

    def _get_cached(self, presentation_id: str) -> _CachedCheck | None:
        cached = self._recent_checks.get(presentation_id)
        if cached is None:
            return None
        if self.clock() - cached.response.checked_at > self.cache_ttl:
            self._recent_checks.pop(presentation_id, None)
            return None
        return cached

    def _cleanup_cache(self) -> None:
        cutoff = self.clock() - self.cache_ttl
        expired = [
            key
            for key, cached in self._recent_checks.items()
            if cached.response.checked_at < cutoff
        ]
        for key in expired:
            self._recent_checks.pop(key, None)

    def _error_response(
        self, presentation_id: str, error_message: str
    ) -> PreflightCheckResponse:
        return PreflightCheckResponse(
            presentation_id=presentation_id,
            overall_status=PreflightStatus.ERROR,
            summary=PreflightSummary(),
            checked_at=self.clock(),
            error_message=error_message,
        )
