from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from sceneit_backend.integrations.tmdb import mapping
from sceneit_backend.integrations.tmdb.client import TmdbClientError
from sceneit_backend.integrations.tmdb.mapping import episodes_from_tmdb_season, fetch_show_metadata, show_from_tmdb
from sceneit_backend.models.metadata import EpisodeType, LifecycleStatus


def _tv_payload(status: str = "Ended") -> dict[str, Any]:
    return {
        "id": 1396,
        "name": "Breaking Bad",
        "status": status,
        "number_of_seasons": 2,
        "number_of_episodes": 20,
        "seasons": [
            {"season_number": 0, "episode_count": 3, "air_date": "2009-02-17", "name": "Specials"},
            {"season_number": 1, "episode_count": 7, "air_date": "2008-01-20", "name": "Season 1"},
            {"season_number": 2, "episode_count": 13, "air_date": "", "name": "Season 2"},
            "garbage",
        ],
    }


def _season_payload(season_number: int, episode_types: list[str | None]) -> dict[str, Any]:
    return {
        "season_number": season_number,
        "episodes": [
            {
                "id": 1000 + n,
                "episode_number": n,
                "name": f"Episode {n}",
                "air_date": f"2009-03-{n:02d}" if n < 5 else None,
                "episode_type": kind,
            }
            for n, kind in enumerate(episode_types, start=1)
        ],
    }


def test_show_from_tmdb_maps_seasons_and_status() -> None:
    show = show_from_tmdb(_tv_payload())

    assert show.show_id == 1396
    assert show.lifecycle_status == LifecycleStatus.ENDED
    assert [s.season_number for s in show.seasons] == [0, 1, 2]
    assert show.season(1).air_date == date(2008, 1, 20)
    assert show.season(2).air_date is None
    assert show.latest_season_number == 2
    assert show.total_episode_count == 20


def test_show_from_tmdb_requires_id() -> None:
    with pytest.raises(TmdbClientError):
        show_from_tmdb({"name": "nameless"})


def test_unknown_status_maps_to_unknown() -> None:
    assert show_from_tmdb(_tv_payload("Something New")).lifecycle_status == LifecycleStatus.UNKNOWN
    assert show_from_tmdb(_tv_payload("Canceled")).lifecycle_status.is_finished


def test_episode_types_are_mapped_with_show_context() -> None:
    ended = show_from_tmdb(_tv_payload("Ended"))
    airing = show_from_tmdb(_tv_payload("Returning Series"))
    payload = _season_payload(2, ["standard", "mid_season", None, "finale"])

    ended_eps = episodes_from_tmdb_season(payload, show=ended)
    airing_eps = episodes_from_tmdb_season(payload, show=airing)

    assert [ep.episode_type for ep in ended_eps] == [
        None,
        EpisodeType.MIDSEASON_FINALE,
        None,
        EpisodeType.SERIES_FINALE,
    ]
    assert airing_eps[-1].episode_type == EpisodeType.SEASON_FINALE
    assert ended_eps[0].provider_id == 1001
    assert ended_eps[0].air_date == date(2009, 3, 1)


def test_finale_in_earlier_season_is_season_finale() -> None:
    ended = show_from_tmdb(_tv_payload("Ended"))

    episodes = episodes_from_tmdb_season(_season_payload(1, [None, "finale"]), show=ended)

    assert episodes[-1].episode_type == EpisodeType.SEASON_FINALE


def test_episodes_missing_numbers_or_list_are_skipped() -> None:
    assert episodes_from_tmdb_season({"season_number": 1}) == []
    payload = {"season_number": 1, "episodes": [{"episode_number": 2}, {"name": "no number"}, {"episode_number": 1}]}

    assert [ep.episode_number for ep in episodes_from_tmdb_season(payload)] == [1, 2]


def test_fetch_show_metadata_skips_failing_seasons(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(mapping, "fetch_tv_details", lambda tv_id, **_kwargs: _tv_payload())

    def _season(tv_id: int, season_number: int, **_kwargs: Any) -> dict[str, Any]:
        if season_number == 2:
            raise TmdbClientError("boom", status_code=500)
        return _season_payload(season_number, [None, None])

    monkeypatch.setattr(mapping, "fetch_tv_season_details", _season)

    show, season_episodes = fetch_show_metadata(1396, session=object())

    assert show.show_id == 1396
    assert sorted(season_episodes) == [0, 1]
    assert [ep.episode_number for ep in season_episodes[1]] == [1, 2]
