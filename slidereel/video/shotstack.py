"""
Shotstack composition provider (video package)

Final videos are assembled by Shotstack's Edit API from a timeline JSON: the
intro clip followed by each slide image with its avatar video overlaid.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from slidereel.configs.config import config
from slidereel.errors import VideoProviderError
from slidereel.video.interface import HttpVideoProvider
from slidereel.video.models import (
    JobState,
    JobStatusReport,
    VideoProviderType,
    as_number,
    as_progress,
)

STATUS_MAP: dict[str, JobState] = {
    "queued": JobState.PENDING,
    "fetching": JobState.PROCESSING,
    "rendering": JobState.PROCESSING,
    "saving": JobState.PROCESSING,
    "done": JobState.COMPLETED,
    "failed": JobState.FAILED,
}

DEFAULT_OUTPUT: dict[str, Any] = {
    "format": "mp4",
    "resolution": "hd",
    "fps": 25,
    "quality": "medium",
}

INTRO_LENGTH_SECONDS = 8.0


@dataclass
class SlideSegment:
    """One slide in the final video timeline"""

    image_url: str
    duration: float
    avatar_url: str | None = None


def build_presentation_edit(
    segments: list[SlideSegment],
    intro_url: str | None = None,
    intro_length: float = INTRO_LENGTH_SECONDS,
    output: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build a Shotstack edit for a narrated presentation.

    Tracks are layered top first, so avatar clips sit above slide images and the
    intro plays before the first slide.
    """
    start = intro_length if intro_url else 0.0
    slide_clips: list[dict[str, Any]] = []
    avatar_clips: list[dict[str, Any]] = []

    for segment in segments:
        if segment.duration <= 0:
            logger.warning(f"Skipping slide {segment.image_url} with no duration")
            continue
        slide_clips.append(
            {
                "asset": {"type": "image", "src": segment.image_url},
                "start": start,
                "length": segment.duration,
                "fit": "contain",
            }
        )
        if segment.avatar_url:
            avatar_clips.append(
                {
                    "asset": {"type": "video", "src": segment.avatar_url},
                    "start": start,
                    "length": segment.duration,
                    "scale": 0.3,
                    "position": "bottomRight",
                }
            )
        start += segment.duration

    tracks: list[dict[str, Any]] = []
    if avatar_clips:
        tracks.append({"clips": avatar_clips})
    tracks.append({"clips": slide_clips})
    if intro_url:
        tracks.append(
            {
                "clips": [
                    {
                        "asset": {"type": "video", "src": intro_url},
                        "start": 0.0,
                        "length": intro_length,
                        "transition": {"out": "fade"},
                    }
                ]
            }
        )

    return {
        "timeline": {"background": "#000000", "tracks": tracks},
        "output": dict(output or DEFAULT_OUTPUT),
    }


class ShotstackProvider(HttpVideoProvider):
    """Timeline composition rendered by Shotstack"""

    provider_type = VideoProviderType.COMPOSER
    provider_name = "Shotstack"
    max_render_duration = 3600
    supported_formats = ("mp4", "gif", "mp3")

    def __init__(
        self,
        api_key: str | None = None,
        environment: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(client)
        self.api_key = api_key if api_key is not None else config.shotstack_api_key
        self.environment = environment or config.shotstack_env
        self.base_url = f"https://api.shotstack.io/edit/{self.environment}"

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key or "", "Content-Type": "application/json"}

    def get_supported_options(self) -> dict[str, Any]:
        options = super().get_supported_options()
        options.update(
            {
                "environment": self.environment,
                "resolutions": ["sd", "hd", "1080"],
                "output": DEFAULT_OUTPUT,
            }
        )
        return options

    async def submit(self, params: dict[str, Any]) -> str:
        timeline = params.get("timeline")
        if not timeline:
            raise VideoProviderError(
                self.provider_name, "Composition timeline cannot be empty"
            )
        edit = {"timeline": timeline, "output": params.get("output") or DEFAULT_OUTPUT}
        data = await self._request("POST", f"{self.base_url}/render", json=edit)
        response = data.get("response") or {}
        render_id = response.get("id")
        if not render_id:
            raise VideoProviderError(
                self.provider_name, data.get("message") or "no render id in response"
            )
        logger.info(f"Shotstack render submitted: {render_id}")
        return str(render_id)

    async def get_status(self, job_id: str) -> JobStatusReport:
        data = await self._request("GET", f"{self.base_url}/render/{job_id}")
        response = data.get("response") or {}
        raw_status = str(response.get("status") or "queued")
        state = STATUS_MAP.get(raw_status.lower())
        if state is None:
            logger.warning(
                f"Unknown Shotstack status: {raw_status}, treating as queued"
            )
            state = JobState.PENDING

        progress = (response.get("data") or {}).get("progressPercent")
        progress = as_progress(progress)
        if state is JobState.COMPLETED:
            progress = 100

        error_message = response.get("error")
        if state is JobState.FAILED and not error_message:
            error_message = "Shotstack render failed"

        return JobStatusReport(
            state=state,
            progress=progress,
            result_url=response.get("url"),
            error_message=error_message,
            duration=as_number(response.get("duration")),
            raw_status=raw_status,
        )

    async def cancel(self, job_id: str) -> bool:
        logger.warning(f"Shotstack does not support render cancellation ({job_id})")
        return False
