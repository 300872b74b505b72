"""
HeyGen avatar video provider (video package)
"""

from __future__ import annotations

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
)

STATUS_MAP: dict[str, JobState] = {
    "pending": JobState.PENDING,
    "queued": JobState.PENDING,
    "waiting": JobState.PENDING,
    "processing": JobState.PROCESSING,
    "in_progress": JobState.PROCESSING,
    "rendering": JobState.PROCESSING,
    "completed": JobState.COMPLETED,
    "success": JobState.COMPLETED,
    "done": JobState.COMPLETED,
    "failed": JobState.FAILED,
    "error": JobState.FAILED,
    "cancelled": JobState.CANCELLED,
    "canceled": JobState.CANCELLED,
}

# ETA-based progress assumes a render never takes longer than this
ETA_HORIZON_SECONDS = 300


def map_status(status: str | None) -> JobState:
    if status is None:
        return JobState.PENDING
    state = STATUS_MAP.get(status.lower())
    if state is None:
        logger.warning(f"Unknown HeyGen status: {status}, mapping to PROCESSING")
        return JobState.PROCESSING
    return state


def estimate_progress(state: JobState, eta: Any) -> int:
    if state is JobState.COMPLETED:
        return 100
    if state is JobState.PROCESSING:
        eta = as_number(eta)
        if eta is not None and eta > 0:
            elapsed = ETA_HORIZON_SECONDS - eta
            return max(10, min(90, int(elapsed * 100 // ETA_HORIZON_SECONDS)))
        return 50
    return 0


class HeyGenProvider(HttpVideoProvider):
    """Talking-avatar videos rendered by HeyGen"""

    provider_type = VideoProviderType.AVATAR
    provider_name = "HeyGen"
    max_render_duration = 300
    supported_formats = ("mp4",)
    base_url = "https://api.heygen.com"

    def __init__(
        self,
        api_key: str | None = None,
        avatar_id: str | None = None,
        voice_id: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(client)
        self.api_key = api_key if api_key is not None else config.heygen_api_key
        self.default_avatar_id = avatar_id or config.heygen_avatar_id
        self.default_voice_id = voice_id or config.heygen_voice_id

    def is_available(self) -> bool:
        return bool(self.api_key and self.api_key != "your_heygen_api_key_here")

    def _headers(self) -> dict[str, str]:
        return {"X-Api-Key": self.api_key or "", "Content-Type": "application/json"}

    def get_supported_options(self) -> dict[str, Any]:
        options = super().get_supported_options()
        options.update(
            {
                "avatars": ["Judy", "Anna", "Brian", "Emma"],
                "voices": [self.default_voice_id],
                "features": ["talking_avatar", "custom_background", "hd_quality"],
            }
        )
        return options

    async def submit(self, params: dict[str, Any]) -> str:
        script = params.get("script")
        audio_url = params.get("audio_url")
        if not script and not audio_url:
            raise VideoProviderError(
                self.provider_name, "either script or audio_url is required"
            )

        if audio_url:
            voice = {"type": "audio", "audio_url": audio_url}
        else:
            voice = {
                "type": "text",
                "input_text": script,
                "voice_id": params.get("voice_id", self.default_voice_id),
            }

        payload = {
            "video_inputs": [
                {
                    "character": {
                        "type": "avatar",
                        "avatar_id": params.get("avatar_id", self.default_avatar_id),
                        "avatar_style": params.get("avatar_style", "normal"),
                    },
                    "voice": voice,
                    "background": {
                        "type": "color",
                        "value": params.get("background_color", "#FFFFFF"),
                    },
                }
            ],
            "dimension": {
                "width": params.get("width", 1280),
                "height": params.get("height", 720),
            },
            "test": bool(params.get("test", False)),
        }

        data = await self._request(
            "POST", f"{self.base_url}/v2/video/generate", json=payload
        )
        body = data.get("data") or {}
        video_id = body.get("video_id") or body.get("id")
        if not video_id:
            raise VideoProviderError(
                self.provider_name, data.get("message") or "no video id in response"
            )
        logger.info(f"HeyGen video created with ID: {video_id}")
        return str(video_id)

    async def get_status(self, job_id: str) -> JobStatusReport:
        data = await self._request(
            "GET",
            f"{self.base_url}/v1/video_status.get",
            params={"video_id": job_id},
        )
        body = data.get("data") or {}
        raw_status = body.get("status")
        state = map_status(raw_status)

        error_message = None
        if state is JobState.FAILED:
            error = body.get("error") or data.get("error") or data.get("message")
            if isinstance(error, dict):
                error = error.get("message") or error.get("detail") or error.get("code")
            error_message = str(error) if error else "HeyGen reported failure"

        return JobStatusReport(
            state=state,
            progress=estimate_progress(state, body.get("eta")),
            result_url=body.get("video_url"),
            error_message=error_message,
            duration=as_number(body.get("duration")),
            raw_status=raw_status,
        )

    async def cancel(self, job_id: str) -> bool:
        try:
            await self._request(
                "DELETE",
                f"{self.base_url}/v1/video.delete",
                params={"video_id": job_id},
                allow_empty=True,
            )
        except VideoProviderError as e:
            logger.error(f"Failed to cancel HeyGen video {job_id}: {e}")
            return False
        return True
