"""
Video Provider Interface (video package)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
from loguru import logger

from slidereel.configs.config import config
from slidereel.errors import VideoProviderError
from slidereel.video.models import JobStatusReport, VideoProviderType


class VideoProvider(ABC):
    """Abstract interface for external video generation services"""

    provider_type: VideoProviderType
    provider_name: str = ""
    #: Longest video the service renders, in seconds
    max_render_duration: int = 0
    supported_formats: tuple[str, ...] = ("mp4",)

    @abstractmethod
    async def submit(self, params: dict[str, Any]) -> str:
        """Start a generation job and return the provider's job id"""
        raise NotImplementedError

    @abstractmethod
    async def get_status(self, job_id: str) -> JobStatusReport:
        """Poll the job once and map the answer to a JobStatusReport"""
        raise NotImplementedError

    async def cancel(self, job_id: str) -> bool:
        """Ask the service to stop the job; returns False when unsupported"""
        return False

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured"""
        raise NotImplementedError

    def get_supported_options(self) -> dict[str, Any]:
        return {
            "max_render_duration": self.max_render_duration,
            "formats": list(self.supported_formats),
        }

    async def aclose(self) -> None:
        """Release network resources"""
        return None


class HttpVideoProvider(VideoProvider):
    """Shared httpx plumbing for JSON-over-HTTP video services"""

    base_url: str = ""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=config.http_timeout)
        return self._client

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        raise NotImplementedError

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        allow_empty: bool = False,
    ) -> dict[str, Any]:
        if not self.is_available():
            raise VideoProviderError(self.provider_name, "provider is not configured")
        try:
            response = await self.client.request(
                method, url, json=json, params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"{self.provider_name} request failed: {e}")
            raise VideoProviderError(self.provider_name, f"request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(
                f"{self.provider_name} API error {response.status_code}: "
                f"{response.text[:500]}"
            )
            raise VideoProviderError(
                self.provider_name,
                self._error_text(response),
                status_code=response.status_code,
            )

        if allow_empty and not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise VideoProviderError(
                self.provider_name, "response was not valid JSON"
            ) from e
        if not isinstance(data, dict):
            raise VideoProviderError(self.provider_name, "unexpected response shape")
        return data

    def _error_text(self, response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        if isinstance(body, dict):
            error = body.get("error") or body.get("message")
            if isinstance(error, dict):
                error = error.get("message") or error.get("code")
            if error:
                return str(error)
        return f"HTTP {response.status_code}"

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
