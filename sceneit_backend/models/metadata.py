from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class EpisodeType(str, Enum):
    """
    Explicit provider flag on an episode. Absent means "standard / not flagged".
    """

    SERIES_FINALE = "series_finale"
    SEASON_FINALE = "season_finale"
    MIDSEASON_FINALE = "midseason_finale"

    @classmethod
    def from_value(cls, value: Any) -> EpisodeType | None:
        if isinstance(value, EpisodeType):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().casefold().replace("-", "_").replace(" ", "_")
        if normalized in {"mid_season", "midseason", "mid_season_finale"}:
            return cls.MIDSEASON_FINALE
        try:
            return cls(normalized)
        except ValueError:
            return None


class LifecycleStatus(str, Enum):
    RETURNING = "Returning Series"
    IN_PRODUCTION = "In Production"
    PILOT = "Pilot"
    PLANNED = "Planned"
    ENDED = "Ended"
    CANCELED = "Canceled"
    UNKNOWN = "Unknown"

    @classmethod
    def from_value(cls, value: Any) -> LifecycleStatus:
        if isinstance(value, LifecycleStatus):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        key = value.strip().casefold()
        for member in cls:
            if member.value.casefold() == key:
                return member
        if key in {"returning", "continuing"}:
            return cls.RETURNING
        if key == "cancelled":
            return cls.CANCELED
        return cls.UNKNOWN

    @property
    def is_finished(self) -> bool:
        return self in (LifecycleStatus.ENDED, LifecycleStatus.CANCELED)


@dataclass(frozen=True)
class EpisodeMetadata:
    season_number: int
    episode_number: int
    name: str | None = None
    air_date: date | None = None
    episode_type: EpisodeType | None = None
    provider_id: int | None = None

    @property
    def code(self) -> str:
        return f"S{self.season_number:02d}E{self.episode_number:02d}"


@dataclass(frozen=True)
class SeasonMetadata:
    season_number: int
    episode_count: int = 0
    air_date: date | None = None
    name: str | None = None

    @property
    def is_specials(self) -> bool:
        return self.season_number == 0


@dataclass(frozen=True)
class ShowMetadata:
    """
    Read-only snapshot of a show as reported by the metadata provider.

    `seasons` keeps the provider order; consumers that need ascending order sort it.
    """

    show_id: int
    number_of_seasons: int = 0
    lifecycle_status: LifecycleStatus = LifecycleStatus.UNKNOWN
    seasons: tuple[SeasonMetadata, ...] = field(default_factory=tuple)
    name: str | None = None
    number_of_episodes: int | None = None

    def season(self, season_number: int) -> SeasonMetadata | None:
        for season in self.seasons:
            if season.season_number == season_number:
                return season
        return None

    @property
    def regular_seasons(self) -> list[SeasonMetadata]:
        """Non-special seasons in ascending order."""
        return sorted((s for s in self.seasons if s.season_number > 0), key=lambda s: s.season_number)

    @property
    def latest_season_number(self) -> int:
        numbers = [s.season_number for s in self.seasons if s.season_number > 0]
        if numbers:
            return max(numbers)
        return int(self.number_of_seasons or 0)

    @property
    def total_episode_count(self) -> int:
        """Known non-special episodes; prefers the provider's show-level total."""
        if isinstance(self.number_of_episodes, int) and self.number_of_episodes > 0:
            return self.number_of_episodes
        return sum(max(0, s.episode_count) for s in self.regular_seasons)
