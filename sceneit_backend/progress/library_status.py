from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from enum import Enum

from sceneit_backend.models.metadata import EpisodeMetadata, ShowMetadata
from sceneit_backend.progress.aggregation import compute_overall_show_progress
from sceneit_backend.progress.store import ProgressStore


class LibraryStatus(str, Enum):
    WATCHING = "watching"
    PLAN_TO_WATCH = "planToWatch"
    COMPLETED = "completed"
    ALL_CAUGHT_UP = "allCaughtUp"
    ON_HOLD = "onHold"
    DROPPED = "dropped"


_MANUAL_STATUSES = frozenset({LibraryStatus.PLAN_TO_WATCH, LibraryStatus.ON_HOLD, LibraryStatus.DROPPED})


def is_manual_status(status: LibraryStatus | str | None) -> bool:
    """True for the statuses a user picks by hand (never derived from progress)."""
    if status is None:
        return False
    try:
        return LibraryStatus(status) in _MANUAL_STATUSES
    except ValueError:
        return False


def _count_watched(store: ProgressStore, show_id: int) -> int:
    return sum(
        1
        for season_number, episodes in store.show_entries(show_id).items()
        if season_number > 0
        for entry in episodes.values()
        if entry.is_watched
    )


def calculate_auto_status(
    store: ProgressStore,
    show: ShowMetadata,
    today: date,
    season_episodes: Mapping[int, Sequence[EpisodeMetadata]] | None = None,
) -> LibraryStatus | None:
    """
    Derive the library shelf for a show from its watch progress.

    - nothing watched: None (leave the shelf alone)
    - ended/canceled and every known episode watched: completed
    - still airing and every aired episode watched: all caught up
    - otherwise: watching
    """

    total_watched = _count_watched(store, show.show_id)
    if total_watched == 0:
        return None

    if show.lifecycle_status.is_finished:
        if total_watched >= show.total_episode_count:
            return LibraryStatus.COMPLETED
        return LibraryStatus.WATCHING

    aired = compute_overall_show_progress(store, show, today, season_episodes).total_aired_count
    if total_watched >= aired:
        return LibraryStatus.ALL_CAUGHT_UP
    return LibraryStatus.WATCHING
