"""
Generation job models for SlideReel (jobs).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from slidereel.video.models import JobKind, JobState, VideoProviderType


class Transition(BaseModel):
    """One recorded state change of a generation job"""

    job_id: str
    from_state: JobState
    to_state: JobState
    at: datetime


class GenerationJob(BaseModel):
    """Externally hosted long-running generation job"""

    job_id: str
    provider_type: VideoProviderType
    kind: JobKind
    subject_id: str | None = None
    state: JobState = JobState.PENDING
    progress: int | None = None
    result_url: str | None = None
    published_url: str | None = None
    warning: str | None = None
    error_message: str | None = None
    timed_out: bool = False
    duration: float | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    transitions: list[Transition] = Field(default_factory=list)
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def elapsed_seconds(self) -> float | None:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.created_at).total_seconds()
