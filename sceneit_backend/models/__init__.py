"""
Domain models shared across the progress engine, the API and scripts.
"""

from sceneit_backend.models.metadata import (
    EpisodeMetadata,
    EpisodeType,
    LifecycleStatus,
    SeasonMetadata,
    ShowMetadata,
)
from sceneit_backend.models.progress import (
    EpisodeProgress,
    EpisodeRef,
    HistoryItem,
    JournalEntry,
    WatchStatus,
)

__all__ = [
    "EpisodeMetadata",
    "EpisodeProgress",
    "EpisodeRef",
    "EpisodeType",
    "HistoryItem",
    "JournalEntry",
    "LifecycleStatus",
    "SeasonMetadata",
    "ShowMetadata",
    "WatchStatus",
]
