"""
Generation job tracking package for SlideReel.
"""

from .models import GenerationJob, Transition
from .state_machine import TRANSITIONS, apply_transition, can_transition
from .store import InMemoryJobStore, JobStore, RedisJobStore, create_job_store
from .tracker import GenerationJobTracker

__all__ = [
    "GenerationJob",
    "Transition",
    "TRANSITIONS",
    "apply_transition",
    "can_transition",
    "InMemoryJobStore",
    "JobStore",
    "RedisJobStore",
    "create_job_store",
    "GenerationJobTracker",
]
