"""
Video provider registry for SlideReel (video).

Registry built once from provider instances and indexed by provider type.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from slidereel.configs.config import Config, config
from slidereel.errors import DuplicateProviderError, ProviderNotAvailable
from slidereel.video.heygen import HeyGenProvider
from slidereel.video.interface import VideoProvider
from slidereel.video.models import VideoProviderType
from slidereel.video.shotstack import ShotstackProvider
from slidereel.video.veo import VeoProvider


class ProviderRegistry:
    """Typed lookup of video providers"""

    def __init__(
        self,
        providers: Iterable[VideoProvider],
        default_type: VideoProviderType = VideoProviderType.COMPOSER,
    ) -> None:
        self._providers: dict[VideoProviderType, VideoProvider] = {}
        for provider in providers:
            provider_type = provider.provider_type
            if provider_type in self._providers:
                existing = self._providers[provider_type].provider_name
                raise DuplicateProviderError(
                    f"Duplicate video provider for type {provider_type.name}: "
                    f"{existing} and {provider.provider_name}"
                )
            self._providers[provider_type] = provider
        self.default_type = default_type
        logger.info(
            f"Registered video providers: "
            f"{', '.join(t.name for t in self._providers) or 'none'}"
        )

    def get(self, provider_type: VideoProviderType | None = None) -> VideoProvider:
        """Return the provider for ``provider_type`` (the default type when None)."""
        provider_type = provider_type or self.default_type
        provider = self._providers.get(provider_type)
        if provider is None:
            raise ProviderNotAvailable(
                f"Video provider not available: {provider_type.name}"
            )
        return provider

    def find(self, provider_type: VideoProviderType) -> VideoProvider | None:
        return self._providers.get(provider_type)

    def is_available(self, provider_type: VideoProviderType) -> bool:
        return provider_type in self._providers

    def available_types(self) -> list[VideoProviderType]:
        return list(self._providers)

    def get_configured_services(self) -> dict[str, bool]:
        """Configuration status of every registered provider"""
        return {
            provider.provider_name: provider.is_available()
            for provider in self._providers.values()
        }

    async def aclose(self) -> None:
        for provider in self._providers.values():
            await provider.aclose()


def build_default_registry(settings: Config | None = None) -> ProviderRegistry:
    """Registry of the built-in providers that have credentials configured."""
    settings = settings or config
    candidates: list[VideoProvider] = [
        ShotstackProvider(
            api_key=settings.shotstack_api_key, environment=settings.shotstack_env
        ),
        HeyGenProvider(
            api_key=settings.heygen_api_key,
            avatar_id=settings.heygen_avatar_id,
            voice_id=settings.heygen_voice_id,
        ),
        VeoProvider(
            api_key=settings.google_gemini_api_key,
            model=settings.veo_model,
            base_url=settings.google_gemini_endpoint,
        ),
    ]
    configured = []
    for provider in candidates:
        if provider.is_available():
            configured.append(provider)
        else:
            logger.debug(f"{provider.provider_name} is not configured, skipping")

    try:
        default_type = VideoProviderType.parse(settings.default_video_provider)
    except ValueError:
        logger.warning(
            f"Unknown default video provider {settings.default_video_provider}, "
            f"using COMPOSER"
        )
        default_type = VideoProviderType.COMPOSER
    return ProviderRegistry(configured, default_type=default_type)
