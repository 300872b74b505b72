"""
Collaborator contracts for SlideReel (repository).

The orchestration core never talks to a database or object store directly; it
depends on these narrow protocols and on the plain records below.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from slidereel.video.models import JobState


@dataclass(frozen=True)
class SlideRecord:
    slide_id: str
    presentation_id: str
    slide_number: int
    title: str | None = None


@dataclass(frozen=True)
class NarrativeRecord:
    slide_id: str
    narrative_text: str | None = None
    enhanced_narrative_text: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class SpeechRecord:
    slide_id: str
    audio_path: str | None = None
    published_url: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class VideoRecord:
    """Avatar video of a slide, or intro video of a presentation"""

    video_id: str
    owner_id: str
    status: JobState
    published_url: str | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    duration_seconds: float | None = None


@runtime_checkable
class DocumentStore(Protocol):
    def get_document(self, presentation_id: str) -> tuple[bytes, str]:
        """Return the deck bytes and original filename"""
        ...


@runtime_checkable
class AssetRepository(Protocol):
    def find_slides(self, presentation_id: str) -> list[SlideRecord]: ...

    def find_narratives(self, slide_ids: list[str]) -> list[NarrativeRecord]: ...

    def find_speeches(self, slide_ids: list[str]) -> list[SpeechRecord]: ...

    def find_avatar_videos(self, slide_ids: list[str]) -> list[VideoRecord]: ...

    def find_latest_intro_video(self, presentation_id: str) -> VideoRecord | None: ...


@runtime_checkable
class ObjectStore(Protocol):
    async def publish(self, source_url: str, key: str) -> str:
        """Copy a generated asset to durable storage and return its public URL"""
        ...
