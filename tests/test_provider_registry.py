"""
Unit tests for the video provider registry.
"""

from unittest.mock import AsyncMock

import pytest

from slidereel.errors import DuplicateProviderError, ProviderNotAvailable
from slidereel.video.interface import VideoProvider
from slidereel.video.models import JobState, JobStatusReport, VideoProviderType
from slidereel.video.registry import ProviderRegistry, build_default_registry


class StubProvider(VideoProvider):
    def __init__(self, provider_type, name="Stub", configured=True):
        self.provider_type = provider_type
        self.provider_name = name
        self.configured = configured
        self.aclose = AsyncMock()

    async def submit(self, params):
        return "job"

    async def get_status(self, job_id):
        return JobStatusReport(state=JobState.PENDING)

    def is_available(self):
        return self.configured


class TestProviderRegistry:
    def test_lookup_by_type(self):
        composer = StubProvider(VideoProviderType.COMPOSER, "Composer")
        avatar = StubProvider(VideoProviderType.AVATAR, "Avatar")
        registry = ProviderRegistry([composer, avatar])

        assert registry.get(VideoProviderType.AVATAR) is avatar
        assert registry.get() is composer
        assert registry.available_types() == [
            VideoProviderType.COMPOSER,
            VideoProviderType.AVATAR,
        ]

    def test_duplicate_types_rejected(self):
        with pytest.raises(DuplicateProviderError, match="AVATAR"):
            ProviderRegistry(
                [
                    StubProvider(VideoProviderType.AVATAR, "One"),
                    StubProvider(VideoProviderType.AVATAR, "Two"),
                ]
            )

    def test_missing_type_is_not_available(self):
        registry = ProviderRegistry([StubProvider(VideoProviderType.AVATAR)])

        with pytest.raises(ProviderNotAvailable) as exc_info:
            registry.get(VideoProviderType.GENERATIVE)

        assert exc_info.value.reason == "Video provider not available: GENERATIVE"
        assert registry.find(VideoProviderType.GENERATIVE) is None
        assert registry.is_available(VideoProviderType.AVATAR)
        assert not registry.is_available(VideoProviderType.GENERATIVE)

    def test_missing_default(self):
        registry = ProviderRegistry(
            [StubProvider(VideoProviderType.AVATAR)],
            default_type=VideoProviderType.GENERATIVE,
        )

        with pytest.raises(ProviderNotAvailable):
            registry.get()

    def test_configured_services(self):
        registry = ProviderRegistry(
            [
                StubProvider(VideoProviderType.AVATAR, "HeyGen"),
                StubProvider(VideoProviderType.COMPOSER, "Shotstack", False),
            ]
        )

        assert registry.get_configured_services() == {
            "HeyGen": True,
            "Shotstack": False,
        }

    @pytest.mark.asyncio
    async def test_aclose_closes_every_provider(self):
        providers = [
            StubProvider(VideoProviderType.AVATAR),
            StubProvider(VideoProviderType.COMPOSER),
        ]
        registry = ProviderRegistry(providers)

        await registry.aclose()

        for provider in providers:
            provider.aclose.assert_awaited_once()


class TestDefaultRegistry:
    def test_registers_only_configured_providers(self, settings):
        settings.heygen_api_key = "hg-key"

        registry = build_default_registry(settings)

        assert registry.available_types() == [VideoProviderType.AVATAR]
        assert registry.get(VideoProviderType.AVATAR).provider_name == "HeyGen"

    def test_all_providers(self, settings):
        settings.heygen_api_key = "hg-key"
        settings.shotstack_api_key = "ss-key"
        settings.google_gemini_api_key = "g-key"
        settings.default_video_provider = "Avatar"

        registry = build_default_registry(settings)

        assert set(registry.available_types()) == set(VideoProviderType)
        assert registry.default_type is VideoProviderType.AVATAR
        assert registry.get().provider_name == "HeyGen"

    def test_unknown_default_type_falls_back_to_composer(self, settings):
        settings.default_video_provider = "hologram"

        registry = build_default_registry(settings)

        assert registry.default_type is VideoProviderType.COMPOSER


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("composer", VideoProviderType.COMPOSER),
        ("AVATAR", VideoProviderType.AVATAR),
        (" Generative ", VideoProviderType.GENERATIVE),
        (VideoProviderType.AVATAR, VideoProviderType.AVATAR),
    ],
)
def test_provider_type_parse(raw, expected):
    assert VideoProviderType.parse(raw) is expected


def test_provider_type_parse_rejects_unknown():
    with pytest.raises(ValueError):
        VideoProviderType.parse("shotstack")


def test_terminal_states():
    assert {s for s in JobState if s.is_terminal} == {
        JobState.COMPLETED,
        JobState.FAILED,
        JobState.CANCELLED,
    }
