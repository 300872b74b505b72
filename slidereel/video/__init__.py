"""
Video generation package for SlideReel.
"""

from .heygen import HeyGenProvider
from .interface import HttpVideoProvider, VideoProvider
from .models import JobKind, JobState, JobStatusReport, VideoProviderType
from .registry import ProviderRegistry, build_default_registry
from .shotstack import ShotstackProvider, SlideSegment, build_presentation_edit
from .veo import VeoProvider

__all__ = [
    "HeyGenProvider",
    "HttpVideoProvider",
    "VideoProvider",
    "JobKind",
    "JobState",
    "JobStatusReport",
    "VideoProviderType",
    "ProviderRegistry",
    "build_default_registry",
    "ShotstackProvider",
    "SlideSegment",
    "build_presentation_edit",
    "VeoProvider",
]
