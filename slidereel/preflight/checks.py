"""
Per-unit preflight checks for SlideReel (preflight).

Each check maps the persisted state of one aspect (narrative, audio, avatar
video, intro video) to a CheckStatus plus the human-readable issue shown to the
user.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from slidereel.preflight.models import (
    CheckStatus,
    PresentationCheckResult,
    SlideCheckResult,
)
from slidereel.repository.interfaces import (
    NarrativeRecord,
    SlideRecord,
    SpeechRecord,
    VideoRecord,
)
from slidereel.video.models import JobState


@dataclass
class AspectOutcome:
    status: CheckStatus
    issue: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


def check_narrative(narrative: NarrativeRecord | None) -> AspectOutcome:
    text = narrative.narrative_text if narrative is not None else None
    if text and text.strip():
        return AspectOutcome(
            CheckStatus.PASSED, metadata={"narrative_length": len(text)}
        )
    return AspectOutcome(CheckStatus.FAILED, "Missing narrative text")


def check_enhanced_narrative(
    narrative: NarrativeRecord | None, requested: bool
) -> AspectOutcome:
    if not requested:
        return AspectOutcome(CheckStatus.NOT_APPLICABLE)
    text = narrative.enhanced_narrative_text if narrative is not None else None
    if text and text.strip():
        return AspectOutcome(
            CheckStatus.PASSED, metadata={"enhanced_narrative_length": len(text)}
        )
    return AspectOutcome(CheckStatus.WARNING, "Missing enhanced narrative text")


def check_audio(speech: SpeechRecord | None) -> AspectOutcome:
    if speech is None or not speech.audio_path:
        return AspectOutcome(CheckStatus.NOT_FOUND, "Missing TTS audio")
    metadata = {"audio_path": speech.audio_path}
    if speech.published_url:
        metadata["audio_url"] = speech.published_url
        return AspectOutcome(CheckStatus.PASSED, metadata=metadata)
    return AspectOutcome(
        CheckStatus.WARNING, "Audio file exists but not published", metadata
    )


CREATED_FLOOR = datetime.min.replace(tzinfo=timezone.utc)


def creation_key(created_at: datetime | None) -> datetime:
    """Comparable creation time: missing sorts first, naive is read as UTC."""
    if created_at is None:
        return CREATED_FLOOR
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=timezone.utc)
    return created_at


def latest_video(videos: Iterable[VideoRecord]) -> VideoRecord | None:
    """Most recently created video; records without a timestamp sort first."""
    candidates = list(videos)
    if not candidates:
        return None
    return max(candidates, key=lambda video: creation_key(video.created_at))


def check_video(video: VideoRecord | None, label: str) -> AspectOutcome:
    """Map the latest generated video of a unit to a check status."""
    if video is None:
        return AspectOutcome(CheckStatus.NOT_FOUND, f"Missing {label.lower()}")

    metadata: dict[str, Any] = {
        "video_id": video.video_id,
        "video_status": video.status.value,
    }
    if video.status in (JobState.PENDING, JobState.PROCESSING):
        return AspectOutcome(
            CheckStatus.IN_PROGRESS, f"{label} generation in progress", metadata
        )
    if video.status in (JobState.FAILED, JobState.CANCELLED):
        reason = video.error_message or f"generation {video.status.value}"
        return AspectOutcome(CheckStatus.FAILED, f"{label} failed: {reason}", metadata)
    if video.published_url:
        metadata["published_url"] = video.published_url
        return AspectOutcome(CheckStatus.PASSED, metadata=metadata)
    return AspectOutcome(
        CheckStatus.WARNING, f"{label} generated but not published", metadata
    )


def check_slide(
    slide: SlideRecord,
    narrative: NarrativeRecord | None,
    speech: SpeechRecord | None,
    avatar_video: VideoRecord | None,
    check_enhanced: bool = False,
) -> SlideCheckResult:
    outcomes = {
        "narrative": check_narrative(narrative),
        "enhanced_narrative": check_enhanced_narrative(narrative, check_enhanced),
        "audio": check_audio(speech),
        "avatar_video": check_video(avatar_video, "Avatar video"),
    }
    issues = tuple(o.issue for o in outcomes.values() if o.issue)
    metadata: dict[str, Any] = {}
    for outcome in outcomes.values():
        metadata.update(outcome.metadata)

    return SlideCheckResult(
        slide_id=slide.slide_id,
        slide_number=slide.slide_number,
        slide_title=slide.title,
        narrative_status=outcomes["narrative"].status,
        enhanced_narrative_status=outcomes["enhanced_narrative"].status,
        audio_status=outcomes["audio"].status,
        avatar_video_status=outcomes["avatar_video"].status,
        issues=issues,
        metadata=metadata,
    )


def check_intro_video(
    video: VideoRecord | None, enabled: bool = True
) -> PresentationCheckResult:
    if not enabled:
        return PresentationCheckResult(intro_video_status=CheckStatus.NOT_APPLICABLE)

    outcome = check_video(video, "Intro video")
    if video is None:
        return PresentationCheckResult(
            intro_video_status=outcome.status,
            issues=(outcome.issue,) if outcome.issue else (),
        )
    return PresentationCheckResult(
        intro_video_status=outcome.status,
        intro_video_id=video.video_id,
        intro_video_url=video.published_url,
        generation_status=video.status.value,
        created_at=video.created_at,
        completed_at=video.completed_at,
        duration_seconds=video.duration_seconds,
        issues=(outcome.issue,) if outcome.issue else (),
        metadata=outcome.metadata,
    )
