"""
In-memory collaborator store for SlideReel (repository).

Implements the document, asset and object store protocols with plain dicts;
used by the command line and by tests.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from slidereel.repository.interfaces import (
    NarrativeRecord,
    SlideRecord,
    SpeechRecord,
    VideoRecord,
)
from slidereel.video.models import JobState


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _video_from_mapping(owner_id: str, data: dict[str, Any]) -> VideoRecord:
    return VideoRecord(
        video_id=str(data["video_id"]),
        owner_id=owner_id,
        status=JobState(str(data.get("status", "pending")).lower()),
        published_url=data.get("published_url"),
        error_message=data.get("error_message"),
        created_at=_parse_datetime(data.get("created_at")),
        completed_at=_parse_datetime(data.get("completed_at")),
        duration_seconds=data.get("duration_seconds"),
    )


class InMemoryRepository:
    """Dict-backed DocumentStore, AssetRepository and ObjectStore"""

    def __init__(self, public_base_url: str = "memory://published") -> None:
        self.public_base_url = public_base_url.rstrip("/")
        self.documents: dict[str, tuple[bytes, str]] = {}
        self.slides: dict[str, SlideRecord] = {}
        self.narratives: list[NarrativeRecord] = []
        self.speeches: list[SpeechRecord] = []
        self.avatar_videos: list[VideoRecord] = []
        self.intro_videos: list[VideoRecord] = []
        self.published: dict[str, str] = {}

    # DocumentStore

    def add_document(
        self, presentation_id: str, document: bytes, filename: str
    ) -> None:
        self.documents[presentation_id] = (document, filename)

    def get_document(self, presentation_id: str) -> tuple[bytes, str]:
        if presentation_id not in self.documents:
            raise KeyError(f"Presentation not found: {presentation_id}")
        return self.documents[presentation_id]

    # AssetRepository

    def add_slide(self, slide: SlideRecord) -> None:
        self.slides[slide.slide_id] = slide

    def find_slides(self, presentation_id: str) -> list[SlideRecord]:
        return sorted(
            (s for s in self.slides.values() if s.presentation_id == presentation_id),
            key=lambda s: s.slide_number,
        )

    def find_narratives(self, slide_ids: list[str]) -> list[NarrativeRecord]:
        wanted = set(slide_ids)
        return [n for n in self.narratives if n.slide_id in wanted]

    def find_speeches(self, slide_ids: list[str]) -> list[SpeechRecord]:
        wanted = set(slide_ids)
        return [s for s in self.speeches if s.slide_id in wanted]

    def find_avatar_videos(self, slide_ids: list[str]) -> list[VideoRecord]:
        wanted = set(slide_ids)
        return [v for v in self.avatar_videos if v.owner_id in wanted]

    def find_latest_intro_video(self, presentation_id: str) -> VideoRecord | None:
        from slidereel.preflight.checks import latest_video

        return latest_video(
            v for v in self.intro_videos if v.owner_id == presentation_id
        )

    # ObjectStore

    async def publish(self, source_url: str, key: str) -> str:
        url = f"{self.public_base_url}/{key}"
        self.published[key] = source_url
        return url

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> tuple[InMemoryRepository, str]:
        """
        Build a repository from a JSON snapshot of one presentation.

        Expected shape::

            {
              "presentation_id": "deck-1",
              "slides": [
                {"slide_id": "s1", "slide_number": 1, "title": "Intro",
                 "narrative": "...", "enhanced_narrative": "...",
                 "audio_path": "...", "audio_url": "...",
                 "avatar_videos": [{"video_id": "v1", "status": "completed",
                                    "published_url": "..."}]}
              ],
              "intro_video": {"video_id": "i1", "status": "completed", ...}
            }
        """
        repo = cls()
        presentation_id = str(data["presentation_id"])
        for entry in data.get("slides", []):
            slide_id = str(entry["slide_id"])
            repo.add_slide(
                SlideRecord(
                    slide_id=slide_id,
                    presentation_id=presentation_id,
                    slide_number=int(entry["slide_number"]),
                    title=entry.get("title"),
                )
            )
            if entry.get("narrative") or entry.get("enhanced_narrative"):
                repo.narratives.append(
                    NarrativeRecord(
                        slide_id=slide_id,
                        narrative_text=entry.get("narrative"),
                        enhanced_narrative_text=entry.get("enhanced_narrative"),
                    )
                )
            if entry.get("audio_path"):
                repo.speeches.append(
                    SpeechRecord(
                        slide_id=slide_id,
                        audio_path=entry["audio_path"],
                        published_url=entry.get("audio_url"),
                    )
                )
            for video in entry.get("avatar_videos", []):
                repo.avatar_videos.append(_video_from_mapping(slide_id, video))

        intro = data.get("intro_video")
        if intro:
            repo.intro_videos.append(_video_from_mapping(presentation_id, intro))
        return repo, presentation_id

    @classmethod
    def load_snapshot(cls, path: Path) -> tuple[InMemoryRepository, str]:
        with open(path, encoding="utf-8") as f:
            return cls.from_snapshot(json.load(f))
