"""
Preflight check models for SlideReel (preflight).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CheckStatus(str, Enum):
    """Outcome of one aspect check"""

    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"
    NOT_APPLICABLE = "not_applicable"
    CHECKING = "checking"
    IN_PROGRESS = "in_progress"
    NOT_FOUND = "not_found"

    @property
    def is_failure(self) -> bool:
        return self in (CheckStatus.FAILED, CheckStatus.NOT_FOUND)

    @property
    def needs_attention(self) -> bool:
        return self in (
            CheckStatus.WARNING,
            CheckStatus.IN_PROGRESS,
            CheckStatus.CHECKING,
        )


class PreflightStatus(str, Enum):
    """Overall readiness verdict, listed from most to least severe"""

    ERROR = "error"
    INCOMPLETE = "incomplete"
    HAS_WARNINGS = "has_warnings"
    READY = "ready"
    CHECKING = "checking"


class SlideCheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    slide_id: str
    slide_number: int
    slide_title: str | None = None
    narrative_status: CheckStatus
    enhanced_narrative_status: CheckStatus = CheckStatus.NOT_APPLICABLE
    audio_status: CheckStatus
    avatar_video_status: CheckStatus
    issues: tuple[str, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)

    def aspect_statuses(self) -> tuple[CheckStatus, ...]:
        return (
            self.narrative_status,
            self.enhanced_narrative_status,
            self.audio_status,
            self.avatar_video_status,
        )

    def mandatory_statuses(self) -> tuple[CheckStatus, ...]:
        """Aspects that must pass; the enhanced narrative is optional."""
        return (self.narrative_status, self.audio_status, self.avatar_video_status)


class PresentationCheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    intro_video_status: CheckStatus
    intro_video_id: str | None = None
    intro_video_url: str | None = None
    generation_status: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    duration_seconds: float | None = None
    issues: tuple[str, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)


class PreflightSummary(BaseModel):
    total_slides: int = 0
    slides_ready: int = 0
    slides_missing_narrative: int = 0
    slides_missing_audio: int = 0
    slides_missing_video: int = 0
    slides_missing_enhanced_narrative: int = 0
    slides_with_unpublished_assets: int = 0
    slides_in_progress: int = 0
    all_mandatory_checks_passed: bool = False
    has_intro_video: bool = False
    intro_video_status: CheckStatus = CheckStatus.NOT_APPLICABLE
    intro_video_generation_status: str | None = None
    intro_video_url: str | None = None


class AggregateVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary: PreflightSummary
    overall_status: PreflightStatus
    error_message: str | None = None


class PreflightCheckRequest(BaseModel):
    check_enhanced_narrative: bool = False
    force_refresh: bool = False
    check_intro_video: bool = True


class PreflightCheckResponse(BaseModel):
    presentation_id: str
    overall_status: PreflightStatus
    slide_results: list[SlideCheckResult] = Field(default_factory=list)
    presentation_check_result: PresentationCheckResult | None = None
    summary: PreflightSummary = Field(default_factory=PreflightSummary)
    checked_at: datetime
    error_message: str | None = None
