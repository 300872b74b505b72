"""
Collaborator contracts and in-memory store for SlideReel.
"""

from .interfaces import (
    AssetRepository,
    DocumentStore,
    NarrativeRecord,
    ObjectStore,
    SlideRecord,
    SpeechRecord,
    VideoRecord,
)
from .memory import InMemoryRepository

__all__ = [
    "AssetRepository",
    "DocumentStore",
    "NarrativeRecord",
    "ObjectStore",
    "SlideRecord",
    "SpeechRecord",
    "VideoRecord",
    "InMemoryRepository",
]
