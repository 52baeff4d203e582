from __future__ import annotations

from datetime import date

from sceneit_backend.models.metadata import EpisodeMetadata, LifecycleStatus, SeasonMetadata, ShowMetadata
from sceneit_backend.models.progress import EpisodeRef, WatchStatus
from sceneit_backend.progress.planner import (
    EMPTY_SELECTION_MESSAGE,
    LogEntry,
    history_items_for_log,
    plan_bulk_log_from_selection,
    plan_mark_previous_episodes,
    plan_mark_season_watched,
    plan_mark_show_watched,
    plan_unmark_season,
    plan_unmark_show,
)
from sceneit_backend.progress.store import ProgressStore

SHOW = 1396
TODAY = date(2024, 6, 1)


def _ep(season: int, number: int, air_date: date | None, *, provider_id: int | None = None) -> EpisodeMetadata:
    return EpisodeMetadata(
        season_number=season,
        episode_number=number,
        air_date=air_date,
        name=f"Episode {number}",
        provider_id=provider_id,
    )


def test_mark_season_only_includes_aired_episodes() -> None:
    episodes = [
        _ep(2, 1, date(2024, 5, 1)),
        _ep(2, 2, TODAY),
        _ep(2, 3, date(2024, 6, 2)),
        _ep(2, 4, None),
    ]
    store = ProgressStore()

    plan = plan_mark_season_watched(store, SHOW, 2, episodes, TODAY)

    assert plan.upserts == {EpisodeRef(2, 1), EpisodeRef(2, 2)}
    assert plan.deletes == frozenset()
    assert store.progress == {}


def test_mark_season_before_any_air_date_is_empty() -> None:
    episodes = [_ep(1, n, date(2025, 1, n)) for n in range(1, 4)]

    plan = plan_mark_season_watched(ProgressStore(), SHOW, 1, episodes, date(2024, 12, 31))

    assert plan.is_empty


def test_mark_season_without_episode_list_is_empty() -> None:
    assert plan_mark_season_watched(ProgressStore(), SHOW, 1, None, TODAY).is_empty


def test_mark_previous_episodes_fills_gaps_only() -> None:
    store = ProgressStore()
    store.set_episode_status(SHOW, 1, 1, WatchStatus.WATCHED)
    store.set_episode_status(SHOW, 1, 3, WatchStatus.WATCHED)

    plan = plan_mark_previous_episodes(store, SHOW, 1, 5)

    assert plan.upserts == {EpisodeRef(1, 2), EpisodeRef(1, 4)}
    assert plan.ordered_upserts() == [EpisodeRef(1, 2), EpisodeRef(1, 4)]


def test_mark_previous_for_first_episode_is_empty() -> None:
    assert plan_mark_previous_episodes(ProgressStore(), SHOW, 3, 1).is_empty


def test_mark_show_skips_specials_and_unaired() -> None:
    show = ShowMetadata(
        show_id=SHOW,
        number_of_seasons=2,
        lifecycle_status=LifecycleStatus.RETURNING,
        seasons=(SeasonMetadata(0, 1), SeasonMetadata(1, 2), SeasonMetadata(2, 2)),
    )
    season_episodes = {
        0: [_ep(0, 1, date(2020, 1, 1))],
        1: [_ep(1, 1, date(2020, 1, 1)), _ep(1, 2, date(2020, 1, 8))],
        2: [_ep(2, 1, date(2024, 5, 1)), _ep(2, 2, date(2024, 7, 1))],
    }

    plan = plan_mark_show_watched(ProgressStore(), show, TODAY, season_episodes)

    assert plan.ordered_upserts() == [EpisodeRef(1, 1), EpisodeRef(1, 2), EpisodeRef(2, 1)]


def test_unmark_plans_cover_recorded_entries() -> None:
    store = ProgressStore()
    store.set_episode_status(SHOW, 1, 1, WatchStatus.WATCHED)
    store.set_episode_status(SHOW, 1, 2, WatchStatus.IN_PROGRESS)
    store.set_episode_status(SHOW, 2, 1, WatchStatus.WATCHED)
    store.set_episode_status(99, 1, 1, WatchStatus.WATCHED)

    season_plan = plan_unmark_season(store, SHOW, 1)
    show_plan = plan_unmark_show(store, SHOW)

    assert season_plan.deletes == {EpisodeRef(1, 1), EpisodeRef(1, 2)}
    assert show_plan.deletes == {EpisodeRef(1, 1), EpisodeRef(1, 2), EpisodeRef(2, 1)}
    assert not show_plan.upserts

    store.apply_plan(SHOW, show_plan)
    assert store.show_entries(SHOW) == {}
    assert store.is_watched(99, 1, 1)


def test_bulk_log_orders_and_filters_selection() -> None:
    episodes_by_season = {
        2: [_ep(2, 2, date(2021, 1, 8), provider_id=202), _ep(2, 1, date(2021, 1, 1), provider_id=201)],
        1: [_ep(1, 1, date(2020, 1, 1), provider_id=101), _ep(1, 2, date(2030, 1, 1), provider_id=102)],
    }

    result = plan_bulk_log_from_selection({202, 101, 102, 999}, episodes_by_season, today=TODAY)

    assert result.ok
    assert result.entries == (
        LogEntry(1, 1, "Episode 1"),
        LogEntry(2, 2, "Episode 2"),
    )


def test_bulk_log_empty_selection_is_reported_not_raised() -> None:
    result = plan_bulk_log_from_selection(set(), {1: [_ep(1, 1, TODAY, provider_id=1)]})

    assert not result.ok
    assert result.error == EMPTY_SELECTION_MESSAGE
    assert result.entries == ()

    assert plan_bulk_log_from_selection([], {}, expect_non_empty=False).ok


def test_history_items_for_log() -> None:
    items = history_items_for_log(
        SHOW,
        "Breaking Bad",
        [LogEntry(1, 1, "Pilot"), LogEntry(1, 2, None)],
        watched_at="2024-05-01T21:00:00Z",
        note="with friends",
    )

    assert [(i.season_number, i.episode_number) for i in items] == [(1, 1), (1, 2)]
    assert items[0].episode_title == "Pilot"
    assert items[1].note == "with friends"
    assert len({i.log_id for i in items}) == 2
