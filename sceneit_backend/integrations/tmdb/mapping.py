from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Mapping

import requests

from sceneit_backend.integrations.tmdb.client import TmdbClientError, fetch_tv_details, fetch_tv_season_details
from sceneit_backend.models.metadata import (
    EpisodeMetadata,
    EpisodeType,
    LifecycleStatus,
    SeasonMetadata,
    ShowMetadata,
)
from sceneit_backend.utils.dates import parse_air_date

logger = logging.getLogger(__name__)


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _clean_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def season_from_tmdb(payload: Mapping[str, Any]) -> SeasonMetadata | None:
    season_number = _coerce_int(payload.get("season_number"))
    if season_number is None or season_number < 0:
        return None
    return SeasonMetadata(
        season_number=season_number,
        episode_count=max(0, _coerce_int(payload.get("episode_count")) or 0),
        air_date=parse_air_date(payload.get("air_date")),
        name=_clean_str(payload.get("name")),
    )


def show_from_tmdb(payload: Mapping[str, Any]) -> ShowMetadata:
    """
    Map a TMDb `/tv/{id}` payload to `ShowMetadata`. Missing fields degrade to empty values.
    """

    show_id = _coerce_int(payload.get("id"))
    if show_id is None:
        raise TmdbClientError("TMDb tv payload is missing `id`.")

    seasons: list[SeasonMetadata] = []
    raw_seasons = payload.get("seasons")
    if isinstance(raw_seasons, list):
        for raw in raw_seasons:
            if not isinstance(raw, Mapping):
                continue
            season = season_from_tmdb(raw)
            if season is not None:
                seasons.append(season)

    number_of_episodes = _coerce_int(payload.get("number_of_episodes"))
    return ShowMetadata(
        show_id=show_id,
        number_of_seasons=_coerce_int(payload.get("number_of_seasons")) or 0,
        lifecycle_status=LifecycleStatus.from_value(payload.get("status")),
        seasons=tuple(seasons),
        name=_clean_str(payload.get("name")),
        number_of_episodes=number_of_episodes,
    )


def _episode_type(raw: Any, *, season_number: int, show: ShowMetadata | None) -> EpisodeType | None:
    value = _clean_str(raw)
    if value is None:
        return None
    if value.casefold() == "finale":
        # TMDb does not distinguish season and series finales.
        if (
            show is not None
            and show.lifecycle_status.is_finished
            and season_number >= show.latest_season_number
        ):
            return EpisodeType.SERIES_FINALE
        return EpisodeType.SEASON_FINALE
    return EpisodeType.from_value(value)


def episode_from_tmdb(
    payload: Mapping[str, Any],
    *,
    season_number: int | None = None,
    show: ShowMetadata | None = None,
) -> EpisodeMetadata | None:
    episode_number = _coerce_int(payload.get("episode_number"))
    season = _coerce_int(payload.get("season_number"))
    if season is None:
        season = season_number
    if episode_number is None or season is None:
        return None
    return EpisodeMetadata(
        season_number=season,
        episode_number=episode_number,
        name=_clean_str(payload.get("name")),
        air_date=parse_air_date(payload.get("air_date")),
        episode_type=_episode_type(payload.get("episode_type"), season_number=season, show=show),
        provider_id=_coerce_int(payload.get("id")),
    )


def episodes_from_tmdb_season(
    payload: Mapping[str, Any],
    *,
    show: ShowMetadata | None = None,
) -> list[EpisodeMetadata]:
    """
    Map a TMDb `/tv/{id}/season/{n}` payload to an episode list ordered by episode number.
    """

    season_number = _coerce_int(payload.get("season_number"))
    raw_episodes = payload.get("episodes")
    if not isinstance(raw_episodes, list):
        return []
    episodes = [
        ep
        for ep in (
            episode_from_tmdb(raw, season_number=season_number, show=show)
            for raw in raw_episodes
            if isinstance(raw, Mapping)
        )
        if ep is not None
    ]
    return sorted(episodes, key=lambda ep: ep.episode_number)


def fetch_show_metadata(
    tv_id: int,
    *,
    season_numbers: Iterable[int] | None = None,
    api_key: str | None = None,
    session: requests.Session | None = None,
    cache: dict[tuple[Any, ...], dict[str, Any]] | None = None,
) -> tuple[ShowMetadata, dict[int, list[EpisodeMetadata]]]:
    """
    Fetch a show plus the episode lists of its seasons.

    A season whose details cannot be fetched is left out of the episode map, so aggregates for
    it fall back to the season's episode count instead of failing the whole request.
    """

    session = session or requests.Session()
    show = show_from_tmdb(fetch_tv_details(tv_id, api_key=api_key, session=session, cache=cache))

    wanted = list(season_numbers) if season_numbers is not None else [s.season_number for s in show.seasons]
    season_episodes: dict[int, list[EpisodeMetadata]] = {}
    for season_number in wanted:
        try:
            payload = fetch_tv_season_details(tv_id, season_number, api_key=api_key, session=session, cache=cache)
        except TmdbClientError as exc:
            logger.warning("Skipping season details for tv_id=%s season=%s: %s", tv_id, season_number, exc)
            continue
        season_episodes[season_number] = episodes_from_tmdb_season(payload, show=show)
    return show, season_episodes
