"""
Google Veo generative video provider (video package)

Intro videos are generated from a text prompt through Gemini's
``predictLongRunning`` endpoint; the returned operation name is the job id.
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
    as_progress,
)


class VeoProvider(HttpVideoProvider):
    provider_type = VideoProviderType.GENERATIVE
    provider_name = "Veo"
    max_render_duration = 8
    supported_formats = ("mp4",)

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(client)
        self.api_key = (
            api_key if api_key is not None else config.google_gemini_api_key
        )
        self.model = model or config.veo_model
        self.base_url = (base_url or config.google_gemini_endpoint).rstrip("/")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json",
        }

    def get_supported_options(self) -> dict[str, Any]:
        options = super().get_supported_options()
        options.update(
            {"model": self.model, "aspect_ratios": ["16:9", "9:16"], "fps": 24}
        )
        return options

    async def submit(self, params: dict[str, Any]) -> str:
        prompt = params.get("prompt")
        if not prompt:
            raise VideoProviderError(self.provider_name, "prompt is required")

        parameters: dict[str, Any] = {
            "aspectRatio": params.get("aspect_ratio", "16:9"),
        }
        if params.get("negative_prompt"):
            parameters["negativePrompt"] = params["negative_prompt"]
        if params.get("resolution"):
            parameters["resolution"] = params["resolution"]

        payload = {"instances": [{"prompt": prompt}], "parameters": parameters}
        data = await self._request(
            "POST",
            f"{self.base_url}/models/{self.model}:predictLongRunning",
            json=payload,
        )
        operation = data.get("name")
        if not operation:
            raise VideoProviderError(
                self.provider_name, "no operation name in response"
            )
        logger.info(f"Veo generation started: {operation}")
        return str(operation)

    def _status_url(self, job_id: str) -> str:
        # Operation names come back as "models/<model>/operations/<id>"
        if job_id.startswith("models/"):
            return f"{self.base_url}/{job_id}"
        return f"{self.base_url}/operations/{job_id}"

    async def get_status(self, job_id: str) -> JobStatusReport:
        data = await self._request("GET", self._status_url(job_id))

        error = data.get("error")
        if data.get("done"):
            state = JobState.FAILED if error else JobState.COMPLETED
        else:
            state = JobState.PROCESSING

        error_message = None
        if error:
            if isinstance(error, dict):
                error_message = str(error.get("message") or error.get("code"))
            else:
                error_message = str(error)

        metadata = data.get("metadata") or {}
        progress = metadata.get("progressPercent")
        progress = as_progress(progress)
        if state is JobState.COMPLETED:
            progress = 100

        return JobStatusReport(
            state=state,
            progress=progress,
            result_url=self._video_uri(data),
            error_message=error_message,
            raw_status="done" if data.get("done") else "running",
        )

    def _video_uri(self, data: dict[str, Any]) -> str | None:
        samples = (
            (data.get("response") or {})
            .get("generateVideoResponse", {})
            .get("generatedSamples")
            or []
        )
        if not samples:
            return None
        video = samples[0].get("video") or {}
        return video.get("uri")
