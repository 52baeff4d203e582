from __future__ import annotations

from datetime import date

from sceneit_backend.models.metadata import (
    EpisodeMetadata,
    EpisodeType,
    LifecycleStatus,
    SeasonMetadata,
    ShowMetadata,
)
from sceneit_backend.progress.classifier import EpisodeTag, classify_episode


def _show(status: LifecycleStatus, *, seasons: dict[int, int]) -> ShowMetadata:
    return ShowMetadata(
        show_id=42,
        number_of_seasons=len([n for n in seasons if n > 0]),
        lifecycle_status=status,
        seasons=tuple(SeasonMetadata(season_number=n, episode_count=c) for n, c in seasons.items()),
    )


def _episodes(season_number: int, count: int) -> list[EpisodeMetadata]:
    return [
        EpisodeMetadata(season_number=season_number, episode_number=n, air_date=date(2020, 1, n))
        for n in range(1, count + 1)
    ]


def test_specials_and_unknown_season_are_never_tagged() -> None:
    show = _show(LifecycleStatus.ENDED, seasons={0: 3, 1: 10})
    special = EpisodeMetadata(season_number=0, episode_number=1, episode_type=EpisodeType.SEASON_FINALE)

    assert classify_episode(special, show.season(0), show, _episodes(0, 3)) is None
    assert classify_episode(_episodes(1, 10)[0], None, show, None) is None


def test_explicit_episode_type_beats_premiere_position() -> None:
    show = _show(LifecycleStatus.RETURNING, seasons={1: 8, 2: 8, 3: 1})
    episode = EpisodeMetadata(season_number=3, episode_number=1, episode_type=EpisodeType.SEASON_FINALE)

    assert classify_episode(episode, show.season(3), show, [episode]) == EpisodeTag.SEASON_FINALE


def test_explicit_midseason_and_series_finale_flags() -> None:
    show = _show(LifecycleStatus.RETURNING, seasons={1: 16})
    mid = EpisodeMetadata(season_number=1, episode_number=8, episode_type=EpisodeType.MIDSEASON_FINALE)
    series = EpisodeMetadata(season_number=1, episode_number=16, episode_type=EpisodeType.SERIES_FINALE)

    assert classify_episode(mid, show.season(1), show, None) == EpisodeTag.MIDSEASON_FINALE
    assert classify_episode(series, show.season(1), show, None) == EpisodeTag.SERIES_FINALE


def test_premieres() -> None:
    show = _show(LifecycleStatus.RETURNING, seasons={1: 10, 2: 8})

    assert classify_episode(_episodes(1, 10)[0], show.season(1), show, None) == EpisodeTag.SERIES_PREMIERE
    assert classify_episode(_episodes(2, 8)[0], show.season(2), show, None) == EpisodeTag.SEASON_PREMIERE


def test_last_episode_of_ended_show_is_series_finale() -> None:
    show = _show(LifecycleStatus.ENDED, seasons={1: 10, 2: 8})
    episodes = _episodes(2, 8)

    assert classify_episode(episodes[-1], show.season(2), show, episodes) == EpisodeTag.SERIES_FINALE


def test_last_episode_of_canceled_show_is_series_finale() -> None:
    show = _show(LifecycleStatus.CANCELED, seasons={1: 6})
    episodes = _episodes(1, 6)

    assert classify_episode(episodes[-1], show.season(1), show, episodes) == EpisodeTag.SERIES_FINALE


def test_last_episode_of_earlier_season_is_season_finale() -> None:
    show = _show(LifecycleStatus.RETURNING, seasons={1: 10, 2: 8})
    episodes = _episodes(1, 10)

    assert classify_episode(episodes[-1], show.season(1), show, episodes) == EpisodeTag.SEASON_FINALE


def test_latest_season_of_airing_show_is_not_guessed() -> None:
    show = _show(LifecycleStatus.RETURNING, seasons={1: 10, 2: 8})
    episodes = _episodes(2, 8)

    assert classify_episode(episodes[-1], show.season(2), show, episodes) is None


def test_finale_heuristic_needs_episode_list() -> None:
    show = _show(LifecycleStatus.ENDED, seasons={1: 10, 2: 8})
    last = _episodes(2, 8)[-1]

    assert classify_episode(last, show.season(2), show, None) is None
    assert classify_episode(_episodes(2, 8)[3], show.season(2), show, _episodes(2, 8)) is None


def test_latest_season_ignores_specials_and_falls_back_to_number_of_seasons() -> None:
    show = ShowMetadata(show_id=1, number_of_seasons=2, lifecycle_status=LifecycleStatus.ENDED)
    season = SeasonMetadata(season_number=2, episode_count=4)
    episodes = _episodes(2, 4)

    assert show.latest_season_number == 2
    assert classify_episode(episodes[-1], season, show, episodes) == EpisodeTag.SERIES_FINALE
