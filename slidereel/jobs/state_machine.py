"""
Generation job lifecycle for SlideReel (jobs).

The transition table is the only definition of legal state changes; every change
to a job's state goes through ``apply_transition``.
"""

from __future__ import annotations

from datetime import datetime

from slidereel.errors import InvalidTransition
from slidereel.jobs.models import GenerationJob, Transition
from slidereel.video.models import JobState

TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.PENDING: frozenset(
        {JobState.PROCESSING, JobState.FAILED, JobState.CANCELLED}
    ),
    JobState.PROCESSING: frozenset(
        {JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED}
    ),
    JobState.COMPLETED: frozenset(),
    JobState.FAILED: frozenset(),
    JobState.CANCELLED: frozenset(),
}


def can_transition(from_state: JobState, to_state: JobState) -> bool:
    return to_state in TRANSITIONS[from_state]


def apply_transition(
    job: GenerationJob, to_state: JobState, at: datetime
) -> Transition:
    """Move ``job`` to ``to_state`` in place and record the change."""
    if not can_transition(job.state, to_state):
        raise InvalidTransition(
            f"Job {job.job_id} cannot move from {job.state.value} to {to_state.value}"
        )
    transition = Transition(
        job_id=job.job_id, from_state=job.state, to_state=to_state, at=at
    )
    job.state = to_state
    job.transitions.append(transition)
    if to_state is JobState.PROCESSING and job.started_at is None:
        job.started_at = at
    if to_state.is_terminal:
        job.completed_at = at
    return transition


def path_to(from_state: JobState, to_state: JobState) -> list[JobState]:
    """
    Shortest sequence of states leading from ``from_state`` to ``to_state``.

    A provider may report COMPLETED for a job we still consider PENDING; the
    job then passes through PROCESSING so its history stays a valid walk of
    the table. Returns an empty list when no path exists.
    """
    if from_state == to_state:
        return []
    if can_transition(from_state, to_state):
        return [to_state]
    for intermediate in sorted(TRANSITIONS[from_state], key=lambda s: s.value):
        if can_transition(intermediate, to_state):
            return [intermediate, to_state]
    return []
