from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, NamedTuple


class WatchStatus(IntEnum):
    NOT_WATCHED = 0
    IN_PROGRESS = 1  # legacy
    WATCHED = 2

    @classmethod
    def coerce(cls, value: Any) -> WatchStatus:
        """
        Best-effort conversion of stored/user-supplied values; anything unknown is NOT_WATCHED.
        """

        if isinstance(value, WatchStatus):
            return value
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.NOT_WATCHED


@dataclass(frozen=True)
class JournalEntry:
    text: str
    timestamp: str
    mood: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "mood": self.mood, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> JournalEntry | None:
        if not isinstance(payload, Mapping):
            return None
        text = payload.get("text")
        if not isinstance(text, str):
            return None
        mood = payload.get("mood")
        return cls(
            text=text,
            timestamp=str(payload.get("timestamp") or ""),
            mood=mood if isinstance(mood, str) and mood else None,
        )


@dataclass(frozen=True)
class EpisodeProgress:
    """
    Watch state for one (show, season, episode).

    `status` is only ever changed by the caller; a journal never implies a status.
    """

    status: WatchStatus = WatchStatus.NOT_WATCHED
    journal: JournalEntry | None = None

    @property
    def is_watched(self) -> bool:
        return self.status == WatchStatus.WATCHED

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": int(self.status)}
        if self.journal is not None:
            payload["journal"] = self.journal.to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> EpisodeProgress:
        return cls(
            status=WatchStatus.coerce(payload.get("status")),
            journal=JournalEntry.from_dict(payload.get("journal")),
        )


class EpisodeRef(NamedTuple):
    season_number: int
    episode_number: int

    @property
    def code(self) -> str:
        return f"S{self.season_number:02d}E{self.episode_number:02d}"


@dataclass(frozen=True)
class HistoryItem:
    """
    A watch-log row produced when an episode is marked watched.
    """

    log_id: str
    show_id: int
    title: str
    timestamp: str
    season_number: int
    episode_number: int
    episode_title: str | None = None
    note: str | None = None
    media_type: str = "tv"

    def to_dict(self) -> dict[str, Any]:
        return {
            "log_id": self.log_id,
            "show_id": self.show_id,
            "media_type": self.media_type,
            "title": self.title,
            "timestamp": self.timestamp,
            "season_number": self.season_number,
            "episode_number": self.episode_number,
            "episode_title": self.episode_title,
            "note": self.note,
        }
