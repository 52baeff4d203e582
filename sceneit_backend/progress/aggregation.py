from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from sceneit_backend.models.metadata import EpisodeMetadata, SeasonMetadata, ShowMetadata
from sceneit_backend.models.progress import EpisodeRef
from sceneit_backend.progress.store import ProgressStore

logger = logging.getLogger(__name__)

SeasonEpisodes = Mapping[int, Sequence[EpisodeMetadata]]


@dataclass(frozen=True)
class SeasonProgress:
    season_number: int
    percent: float
    watched_count: int
    unwatched_count: int
    total_aired_in_season: int
    precise: bool = True

    @property
    def is_fully_watched(self) -> bool:
        return self.unwatched_count == 0 and self.total_aired_in_season > 0

    def to_dict(self) -> dict[str, object]:
        return {
            "season_number": self.season_number,
            "percent": self.percent,
            "watched_count": self.watched_count,
            "unwatched_count": self.unwatched_count,
            "total_aired_in_season": self.total_aired_in_season,
            "precise": self.precise,
            "is_fully_watched": self.is_fully_watched,
        }


@dataclass(frozen=True)
class ShowProgress:
    """
    Show-wide totals. Specials (season 0) are reported on their own and never enter `percent`.
    """

    watched_count: int
    total_aired_count: int
    specials_watched: int = 0
    specials_total: int = 0

    @property
    def unwatched_count(self) -> int:
        return max(0, self.total_aired_count - self.watched_count)

    @property
    def percent(self) -> float:
        return _percent(self.watched_count, self.total_aired_count)

    @property
    def is_fully_watched(self) -> bool:
        return self.unwatched_count == 0 and self.total_aired_count > 0

    def to_dict(self) -> dict[str, object]:
        return {
            "watched_count": self.watched_count,
            "total_aired_count": self.total_aired_count,
            "unwatched_count": self.unwatched_count,
            "percent": self.percent,
            "specials_watched": self.specials_watched,
            "specials_total": self.specials_total,
            "is_fully_watched": self.is_fully_watched,
        }


def _percent(watched: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return min(100.0, watched / total * 100)


def is_aired(episode: EpisodeMetadata, today: date) -> bool:
    """An episode with an unknown air date has not aired."""
    return episode.air_date is not None and episode.air_date <= today


def compute_season_progress(
    store: ProgressStore,
    show_id: int,
    season: SeasonMetadata,
    today: date,
    episodes: Sequence[EpisodeMetadata] | None = None,
) -> SeasonProgress:
    """
    Watched share of the aired episodes in one season.

    Without the per-episode list (not fetched yet) the season's `episode_count` becomes the
    denominator and the result is flagged `precise=False`.
    """

    if not episodes:
        total = max(0, int(season.episode_count or 0))
        if total == 0:
            return SeasonProgress(season.season_number, 0.0, 0, 0, 0, precise=False)
        logger.debug(
            "Season progress for show=%s season=%s using episode_count fallback (%s).",
            show_id,
            season.season_number,
            total,
        )
        watched = sum(
            1 for number in range(1, total + 1) if store.is_watched(show_id, season.season_number, number)
        )
        return SeasonProgress(
            season_number=season.season_number,
            percent=_percent(watched, total),
            watched_count=watched,
            unwatched_count=max(0, total - watched),
            total_aired_in_season=total,
            precise=False,
        )

    aired = [ep for ep in episodes if is_aired(ep, today)]
    watched = sum(1 for ep in aired if store.is_watched(show_id, season.season_number, ep.episode_number))
    return SeasonProgress(
        season_number=season.season_number,
        percent=_percent(watched, len(aired)),
        watched_count=watched,
        unwatched_count=len(aired) - watched,
        total_aired_in_season=len(aired),
    )


def compute_all_season_progress(
    store: ProgressStore,
    show: ShowMetadata,
    today: date,
    season_episodes: SeasonEpisodes | None = None,
) -> list[SeasonProgress]:
    season_episodes = season_episodes or {}
    seasons = sorted(show.seasons, key=lambda s: s.season_number)
    return [
        compute_season_progress(store, show.show_id, season, today, season_episodes.get(season.season_number))
        for season in seasons
    ]


def compute_overall_show_progress(
    store: ProgressStore,
    show: ShowMetadata,
    today: date,
    season_episodes: SeasonEpisodes | None = None,
) -> ShowProgress:
    watched = total = specials_watched = specials_total = 0
    for season_progress in compute_all_season_progress(store, show, today, season_episodes):
        if season_progress.season_number == 0:
            specials_watched += season_progress.watched_count
            specials_total += season_progress.total_aired_in_season
            continue
        if season_progress.season_number < 0:
            continue
        watched += season_progress.watched_count
        total += season_progress.total_aired_in_season
    return ShowProgress(
        watched_count=watched,
        total_aired_count=total,
        specials_watched=specials_watched,
        specials_total=specials_total,
    )


def find_next_unwatched_episode(store: ProgressStore, show: ShowMetadata) -> EpisodeRef | None:
    """
    First episode, in (season, episode) order and skipping specials, that is not watched.

    Air dates are ignored on purpose: an unaired episode is still "next up". None means every
    known episode is watched.
    """

    for season in show.regular_seasons:
        for number in range(1, max(0, season.episode_count) + 1):
            if not store.is_watched(show.show_id, season.season_number, number):
                return EpisodeRef(season.season_number, number)
    return None


def is_season_fully_watched(
    store: ProgressStore,
    show_id: int,
    season: SeasonMetadata,
    today: date,
    episodes: Sequence[EpisodeMetadata] | None = None,
) -> bool:
    return compute_season_progress(store, show_id, season, today, episodes).is_fully_watched


def is_show_fully_watched(
    store: ProgressStore,
    show: ShowMetadata,
    today: date,
    season_episodes: SeasonEpisodes | None = None,
) -> bool:
    return compute_overall_show_progress(store, show, today, season_episodes).is_fully_watched


def count_completed_seasons(store: ProgressStore, shows: Mapping[int, ShowMetadata]) -> int:
    """
    Non-special seasons whose episodes 1..episode_count are all watched, across shows.
    """

    completed = 0
    for show_id, show in shows.items():
        if not store.show_entries(show_id):
            continue
        for season in show.regular_seasons:
            if season.episode_count <= 0:
                continue
            if all(store.is_watched(show_id, season.season_number, n) for n in range(1, season.episode_count + 1)):
                completed += 1
    return completed
