from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date

from sceneit_backend.models.metadata import EpisodeMetadata, ShowMetadata
from sceneit_backend.models.progress import EpisodeRef, HistoryItem
from sceneit_backend.progress.aggregation import is_aired
from sceneit_backend.progress.store import ProgressStore

logger = logging.getLogger(__name__)

EMPTY_SELECTION_MESSAGE = "No episodes selected to log."


@dataclass(frozen=True)
class BulkPlan:
    """
    Proposed writes for a bulk intent. Planners never touch the store; the caller applies
    the plan (after any confirmation) in a single write.
    """

    upserts: frozenset[EpisodeRef] = field(default_factory=frozenset)
    deletes: frozenset[EpisodeRef] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.upserts and not self.deletes

    def ordered_upserts(self) -> list[EpisodeRef]:
        return sorted(self.upserts)

    def ordered_deletes(self) -> list[EpisodeRef]:
        return sorted(self.deletes)

    def merge(self, other: BulkPlan) -> BulkPlan:
        return BulkPlan(upserts=self.upserts | other.upserts, deletes=self.deletes | other.deletes)


@dataclass(frozen=True)
class LogEntry:
    season_number: int
    episode_number: int
    name: str | None = None


@dataclass(frozen=True)
class BulkLogResult:
    entries: tuple[LogEntry, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def plan_mark_season_watched(
    store: ProgressStore,
    show_id: int,
    season_number: int,
    season_episodes: Sequence[EpisodeMetadata] | None,
    today: date,
) -> BulkPlan:
    """
    Every aired episode of the season. Unaired (or undated) episodes are never included.
    """

    if not season_episodes:
        logger.debug("No episode list for show=%s season=%s; nothing to mark.", show_id, season_number)
        return BulkPlan()
    upserts = frozenset(
        EpisodeRef(season_number, ep.episode_number)
        for ep in season_episodes
        if ep.season_number == season_number and is_aired(ep, today)
    )
    return BulkPlan(upserts=upserts)


def plan_mark_previous_episodes(
    store: ProgressStore,
    show_id: int,
    season_number: int,
    last_episode_number: int,
) -> BulkPlan:
    """
    Gap-filling set for "catch up the rest of the season": episodes 1..last-1 not yet watched.
    """

    upserts = frozenset(
        EpisodeRef(season_number, number)
        for number in range(1, last_episode_number)
        if not store.is_watched(show_id, season_number, number)
    )
    return BulkPlan(upserts=upserts)


def plan_mark_show_watched(
    store: ProgressStore,
    show: ShowMetadata,
    today: date,
    season_episodes: Mapping[int, Sequence[EpisodeMetadata]] | None = None,
) -> BulkPlan:
    season_episodes = season_episodes or {}
    plan = BulkPlan()
    for season in show.regular_seasons:
        plan = plan.merge(
            plan_mark_season_watched(
                store,
                show.show_id,
                season.season_number,
                season_episodes.get(season.season_number),
                today,
            )
        )
    return plan


def plan_unmark_season(store: ProgressStore, show_id: int, season_number: int) -> BulkPlan:
    return BulkPlan(deletes=frozenset(store.recorded_episodes(show_id, season_number)))


def plan_unmark_show(store: ProgressStore, show_id: int) -> BulkPlan:
    return BulkPlan(deletes=frozenset(store.recorded_episodes(show_id)))


def plan_bulk_log_from_selection(
    selected_episode_ids: Collection[int],
    episodes_by_season: Mapping[int, Sequence[EpisodeMetadata]],
    *,
    today: date | None = None,
    expect_non_empty: bool = True,
) -> BulkLogResult:
    """
    Turn a set of selected provider episode ids into ordered history-log rows.

    An empty selection is reported through `BulkLogResult.error` rather than raised.
    When `today` is given, unaired episodes are skipped.
    """

    if not selected_episode_ids:
        if expect_non_empty:
            logger.debug("Bulk log requested with an empty selection.")
            return BulkLogResult(error=EMPTY_SELECTION_MESSAGE)
        return BulkLogResult()

    selected = set(selected_episode_ids)
    entries: list[LogEntry] = []
    for season_number in sorted(episodes_by_season):
        for ep in sorted(episodes_by_season[season_number], key=lambda e: e.episode_number):
            if ep.provider_id is None or ep.provider_id not in selected:
                continue
            if today is not None and not is_aired(ep, today):
                continue
            entries.append(LogEntry(ep.season_number, ep.episode_number, ep.name))
    return BulkLogResult(entries=tuple(entries))


def history_items_for_log(
    show_id: int,
    title: str,
    entries: Iterable[LogEntry],
    *,
    watched_at: str,
    note: str | None = None,
) -> list[HistoryItem]:
    """
    History rows for a bulk log. `watched_at` is the user-chosen watch date/time (ISO string).
    """

    items: list[HistoryItem] = []
    for idx, entry in enumerate(entries):
        items.append(
            HistoryItem(
                log_id=f"tv-{show_id}-{entry.season_number}-{entry.episode_number}-{watched_at}-{idx}",
                show_id=show_id,
                title=title,
                timestamp=watched_at,
                season_number=entry.season_number,
                episode_number=entry.episode_number,
                episode_title=entry.name,
                note=note or None,
            )
        )
    return items
