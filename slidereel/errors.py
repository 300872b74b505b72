"""
Error taxonomy for SlideReel.

Every error carries a human-readable ``reason`` meant for display. Underlying
library exceptions are chained with ``raise ... from`` so the traceback stays
available for logs without leaking into the user-facing message.
"""

from __future__ import annotations


class SlideReelError(Exception):
    """Base class for all SlideReel errors."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return self.reason


class PreparationFailure(SlideReelError):
    """A rendering backend could not load, upload or convert the document."""

    def __init__(self, renderer: str, reason: str) -> None:
        super().__init__(f"{renderer} preparation failed: {reason}")
        self.renderer = renderer


class RenderFailure(SlideReelError):
    """A single slide could not be rendered; the prepared state stays valid."""

    def __init__(self, renderer: str, slide_number: int, reason: str) -> None:
        super().__init__(
            f"{renderer} failed to render slide {slide_number}: {reason}"
        )
        self.renderer = renderer
        self.slide_number = slide_number


class NoRendererAvailable(SlideReelError):
    """Every renderer in the priority list (and the default) was unusable."""

    def __init__(self, tried: list[str], reason: str | None = None) -> None:
        listed = ", ".join(tried) if tried else "none"
        message = f"No renderer available (tried: {listed})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.tried = list(tried)


class IllegalStateError(SlideReelError, RuntimeError):
    """An operation was called in a lifecycle state that does not allow it."""


class ProviderNotAvailable(SlideReelError):
    """The requested video provider type is not registered."""


class DuplicateProviderError(SlideReelError, ValueError):
    """Two video providers declared the same provider type."""


class VideoProviderError(SlideReelError):
    """An external video service rejected a request or answered garbage."""

    def __init__(
        self, provider: str, reason: str, status_code: int | None = None
    ) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.status_code = status_code


class InvalidTransition(SlideReelError, RuntimeError):
    """A generation job was asked to move along an edge the state machine lacks."""


class JobFailed(SlideReelError):
    """A generation job ended FAILED; ``reason`` is the provider's error text."""

    def __init__(self, job_id: str, reason: str) -> None:
        super().__init__(reason)
        self.job_id = job_id


class JobTimeout(JobFailed):
    """A generation job exceeded the wall-clock limit for its kind."""


class AggregationError(SlideReelError):
    """Preflight inputs were internally inconsistent."""
