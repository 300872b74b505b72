"""
Preflight aggregation for SlideReel (preflight).

Folds the per-slide and presentation-level check results into a summary and a
single overall verdict. Precedence is ERROR > INCOMPLETE > HAS_WARNINGS > READY:
any failed or missing mandatory aspect makes the presentation INCOMPLETE, and
anything still in progress, unpublished or optional only downgrades READY to
HAS_WARNINGS. The enhanced narrative is optional, so even a FAILED result for it
only yields HAS_WARNINGS.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from slidereel.errors import AggregationError
from slidereel.preflight.models import (
    AggregateVerdict,
    CheckStatus,
    PreflightStatus,
    PreflightSummary,
    PresentationCheckResult,
    SlideCheckResult,
)

SATISFIED = (CheckStatus.PASSED, CheckStatus.NOT_APPLICABLE)


def _validate(slide_results: Sequence[SlideCheckResult]) -> None:
    seen_numbers: set[int] = set()
    seen_ids: set[str] = set()
    for result in slide_results:
        if result.slide_number in seen_numbers:
            raise AggregationError(f"Duplicate slide number {result.slide_number}")
        if result.slide_id in seen_ids:
            raise AggregationError(f"Duplicate slide id {result.slide_id}")
        seen_numbers.add(result.slide_number)
        seen_ids.add(result.slide_id)


def _intro_status(
    presentation_result: PresentationCheckResult | None, check_intro_video: bool
) -> CheckStatus:
    if not check_intro_video:
        return CheckStatus.NOT_APPLICABLE
    if presentation_result is None:
        return CheckStatus.NOT_FOUND
    status = presentation_result.intro_video_status
    if status is CheckStatus.NOT_APPLICABLE:
        raise AggregationError("Intro video check enabled but result is not applicable")
    return status


def summarize(
    slide_results: Sequence[SlideCheckResult],
    presentation_result: PresentationCheckResult | None,
    check_intro_video: bool,
) -> tuple[PreflightSummary, CheckStatus]:
    """Build the summary counters; raises AggregationError on inconsistent input."""
    _validate(slide_results)
    intro_status = _intro_status(presentation_result, check_intro_video)

    summary = PreflightSummary(total_slides=len(slide_results))
    for result in slide_results:
        if result.narrative_status.is_failure:
            summary.slides_missing_narrative += 1
        if result.audio_status.is_failure:
            summary.slides_missing_audio += 1
        if result.avatar_video_status.is_failure:
            summary.slides_missing_video += 1
        if result.enhanced_narrative_status not in SATISFIED:
            summary.slides_missing_enhanced_narrative += 1
        if CheckStatus.WARNING in (result.audio_status, result.avatar_video_status):
            summary.slides_with_unpublished_assets += 1
        if any(
            status in (CheckStatus.IN_PROGRESS, CheckStatus.CHECKING)
            for status in result.aspect_statuses()
        ):
            summary.slides_in_progress += 1
        if all(status in SATISFIED for status in result.aspect_statuses()):
            summary.slides_ready += 1

    summary.all_mandatory_checks_passed = (
        summary.total_slides > 0
        and not any(
            status.is_failure
            for result in slide_results
            for status in result.mandatory_statuses()
        )
        and not intro_status.is_failure
    )
    summary.intro_video_status = intro_status
    if check_intro_video and presentation_result is not None:
        summary.has_intro_video = intro_status in (
            CheckStatus.PASSED,
            CheckStatus.WARNING,
        )
        summary.intro_video_generation_status = presentation_result.generation_status
        summary.intro_video_url = presentation_result.intro_video_url
    return summary, intro_status


def aggregate(
    slide_results: Sequence[SlideCheckResult],
    presentation_result: PresentationCheckResult | None,
    *,
    check_intro_video: bool,
) -> AggregateVerdict:
    try:
        summary, intro_status = summarize(
            slide_results, presentation_result, check_intro_video
        )
    except AggregationError as e:
        logger.error(f"Preflight aggregation failed: {e.reason}")
        return AggregateVerdict(
            summary=PreflightSummary(total_slides=len(slide_results)),
            overall_status=PreflightStatus.ERROR,
            error_message=e.reason,
        )

    mandatory = [
        status for result in slide_results for status in result.mandatory_statuses()
    ]
    mandatory.append(intro_status)
    optional = [result.enhanced_narrative_status for result in slide_results]

    if summary.total_slides == 0 or any(status.is_failure for status in mandatory):
        overall = PreflightStatus.INCOMPLETE
    elif any(status.needs_attention for status in mandatory) or any(
        status not in SATISFIED for status in optional
    ):
        overall = PreflightStatus.HAS_WARNINGS
    else:
        overall = PreflightStatus.READY
    return AggregateVerdict(summary=summary, overall_status=overall)
