from __future__ import annotations

from enum import Enum
from typing import Sequence

from sceneit_backend.models.metadata import EpisodeMetadata, EpisodeType, SeasonMetadata, ShowMetadata


class EpisodeTag(str, Enum):
    SERIES_PREMIERE = "Series Premiere"
    SEASON_PREMIERE = "Season Premiere"
    SERIES_FINALE = "Series Finale"
    SEASON_FINALE = "Season Finale"
    MIDSEASON_FINALE = "Mid-Season Finale"


_EXPLICIT_TAGS: dict[EpisodeType, EpisodeTag] = {
    EpisodeType.SERIES_FINALE: EpisodeTag.SERIES_FINALE,
    EpisodeType.SEASON_FINALE: EpisodeTag.SEASON_FINALE,
    EpisodeType.MIDSEASON_FINALE: EpisodeTag.MIDSEASON_FINALE,
}


def classify_episode(
    episode: EpisodeMetadata,
    season: SeasonMetadata | None,
    show: ShowMetadata,
    episodes_in_season: Sequence[EpisodeMetadata] | None = None,
) -> EpisodeTag | None:
    """
    Label an episode as a premiere/finale, or return None.

    Rules are checked in order and the first match wins:
    1. specials (or an unknown season) are never tagged;
    2. an explicit provider `episode_type` maps straight to its tag;
    3. episode 1 is a series premiere in season 1, otherwise a season premiere;
    4. positionally last episode (only when the season's episode list is known):
       series finale if the show's highest season is over and the show ended/was canceled,
       season finale if a later season exists, otherwise no tag. The provider may not have
       flagged the finale of a still-airing season yet, so we do not guess.
    """

    if season is None or season.season_number == 0:
        return None

    if episode.episode_type is not None:
        return _EXPLICIT_TAGS[episode.episode_type]

    if episode.episode_number == 1:
        if season.season_number == 1:
            return EpisodeTag.SERIES_PREMIERE
        return EpisodeTag.SEASON_PREMIERE

    if not episodes_in_season or episode.episode_number != len(episodes_in_season):
        return None

    is_latest_season = season.season_number >= show.latest_season_number
    if is_latest_season and show.lifecycle_status.is_finished:
        return EpisodeTag.SERIES_FINALE
    if not is_latest_season:
        return EpisodeTag.SEASON_FINALE
    return None
