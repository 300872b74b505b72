"""
Video generation models for SlideReel (video).
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class VideoProviderType(str, Enum):
    """Registry key for video providers"""

    COMPOSER = "composer"
    AVATAR = "avatar"
    GENERATIVE = "generative"

    @classmethod
    def parse(cls, value: str | VideoProviderType) -> VideoProviderType:
        if isinstance(value, VideoProviderType):
            return value
        normalized = value.strip().lower()
        for member in cls:
            if normalized in (member.value, member.name.lower()):
                return member
        raise ValueError(f"Unknown video provider type: {value}")


class JobKind(str, Enum):
    AVATAR = "avatar"
    INTRO = "intro"
    RENDER = "render"


class JobState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED})


def as_number(value: Any) -> float | None:
    """Read a numeric field from a provider payload; unusable values become None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def as_progress(value: Any) -> int | None:
    number = as_number(value)
    if number is None:
        return None
    return max(0, min(100, int(number)))


class JobStatusReport(BaseModel):
    """One answer from a provider's status endpoint, already mapped to JobState"""

    state: JobState
    progress: int | None = Field(default=None, ge=0, le=100)
    result_url: str | None = None
    error_message: str | None = None
    duration: float | None = None
    raw_status: str | None = None
