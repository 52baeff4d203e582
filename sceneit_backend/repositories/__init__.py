"""
Repository layer for DB access patterns.
"""

from sceneit_backend.repositories.watch_progress import (
    WatchProgressRepositoryError,
    apply_plan_to_db,
    clear_progress_rows,
    fetch_progress_store,
    save_episode_progress,
)

__all__ = [
    "WatchProgressRepositoryError",
    "apply_plan_to_db",
    "clear_progress_rows",
    "fetch_progress_store",
    "save_episode_progress",
]
