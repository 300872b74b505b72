"""
Preflight readiness checks for SlideReel.
"""

from .aggregator import aggregate
from .models import (
    AggregateVerdict,
    CheckStatus,
    PreflightCheckRequest,
    PreflightCheckResponse,
    PreflightStatus,
    PreflightSummary,
    PresentationCheckResult,
    SlideCheckResult,
)
from .service import PreflightCheckService

__all__ = [
    "aggregate",
    "AggregateVerdict",
    "CheckStatus",
    "PreflightCheckRequest",
    "PreflightCheckResponse",
    "PreflightStatus",
    "PreflightSummary",
    "PresentationCheckResult",
    "SlideCheckResult",
    "PreflightCheckService",
]
