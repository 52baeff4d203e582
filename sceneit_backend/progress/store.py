from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TypeVar

from sceneit_backend.models.progress import EpisodeProgress, EpisodeRef, HistoryItem, JournalEntry, WatchStatus

if TYPE_CHECKING:
    from sceneit_backend.progress.planner import BulkPlan

T = TypeVar("T")

EpisodeMap = dict[int, dict[int, dict[int, T]]]

MAX_RATING = 10


def _get_nested(tree: Mapping[int, Any], *keys: int) -> Any:
    node: Any = tree
    for key in keys:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
        if node is None:
            return None
    return node


def _set_nested(tree: dict[int, Any], keys: tuple[int, ...], value: Any) -> None:
    node = tree
    for key in keys[:-1]:
        node = node.setdefault(key, {})
    node[keys[-1]] = value


def _delete_nested(tree: dict[int, Any], keys: tuple[int, ...]) -> bool:
    """
    Remove a leaf and prune parents left empty. Returns True if something was removed.
    """

    parents: list[tuple[dict[int, Any], int]] = []
    node: Any = tree
    for key in keys[:-1]:
        child = node.get(key) if isinstance(node, dict) else None
        if not isinstance(child, dict):
            return False
        parents.append((node, key))
        node = child
    if keys[-1] not in node:
        return False
    del node[keys[-1]]
    for parent, key in reversed(parents):
        if parent[key]:
            break
        del parent[key]
    return True


def _coerce_key(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    return None


def _load_tree(payload: Any, depth: int, leaf) -> dict[int, Any]:  # noqa: ANN001
    out: dict[int, Any] = {}
    if not isinstance(payload, Mapping):
        return out
    for raw_key, value in payload.items():
        key = _coerce_key(raw_key)
        if key is None:
            continue
        if depth == 1:
            converted = leaf(value)
            if converted is not None:
                out[key] = converted
            continue
        child = _load_tree(value, depth - 1, leaf)
        if child:
            out[key] = child
    return out


def _dump_tree(tree: Mapping[int, Any], leaf) -> dict[str, Any]:  # noqa: ANN001
    out: dict[str, Any] = {}
    for key, value in tree.items():
        out[str(key)] = _dump_tree(value, leaf) if isinstance(value, Mapping) else leaf(value)
    return out


def _load_progress(value: Any) -> EpisodeProgress | None:
    if isinstance(value, EpisodeProgress):
        return value
    if isinstance(value, Mapping):
        return EpisodeProgress.from_dict(value)
    return None


def _load_rating(value: Any) -> int | None:
    try:
        rating = int(value)
    except (TypeError, ValueError):
        return None
    return min(rating, MAX_RATING) if rating > 0 else None


def _load_favorite(value: Any) -> bool | None:
    return True if value is True else None


def _load_note(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


@dataclass
class ProgressStore:
    """
    Per-user watch state keyed by show id, season number and episode number.

    Entries are created lazily on first mutation. Identifiers are not range-checked here;
    readers iterate over provider metadata, so out-of-range keys are simply never visited.
    Every mutator works in place and returns the store so calls can be chained.
    """

    progress: EpisodeMap[EpisodeProgress] = field(default_factory=dict)
    favorite_episodes: EpisodeMap[bool] = field(default_factory=dict)
    episode_ratings: EpisodeMap[int] = field(default_factory=dict)
    season_ratings: dict[int, dict[int, int]] = field(default_factory=dict)
    episode_notes: EpisodeMap[str] = field(default_factory=dict)

    # --- reads ---

    def get_episode(self, show_id: int, season_number: int, episode_number: int) -> EpisodeProgress | None:
        return _get_nested(self.progress, show_id, season_number, episode_number)

    def get_status(self, show_id: int, season_number: int, episode_number: int) -> WatchStatus:
        entry = self.get_episode(show_id, season_number, episode_number)
        return entry.status if entry is not None else WatchStatus.NOT_WATCHED

    def is_watched(self, show_id: int, season_number: int, episode_number: int) -> bool:
        return self.get_status(show_id, season_number, episode_number) == WatchStatus.WATCHED

    def season_entries(self, show_id: int, season_number: int) -> Mapping[int, EpisodeProgress]:
        return _get_nested(self.progress, show_id, season_number) or {}

    def show_entries(self, show_id: int) -> Mapping[int, Mapping[int, EpisodeProgress]]:
        return self.progress.get(show_id) or {}

    def recorded_episodes(self, show_id: int, season_number: int | None = None) -> list[EpisodeRef]:
        """All episodes with an entry (any status), ascending."""
        seasons = self.show_entries(show_id)
        refs = [
            EpisodeRef(season, episode)
            for season, episodes in seasons.items()
            if season_number is None or season == season_number
            for episode in episodes
        ]
        return sorted(refs)

    def is_favorite_episode(self, show_id: int, season_number: int, episode_number: int) -> bool:
        return _get_nested(self.favorite_episodes, show_id, season_number, episode_number) is True

    def get_episode_rating(self, show_id: int, season_number: int, episode_number: int) -> int:
        return _get_nested(self.episode_ratings, show_id, season_number, episode_number) or 0

    def get_season_rating(self, show_id: int, season_number: int) -> int:
        return _get_nested(self.season_ratings, show_id, season_number) or 0

    def get_episode_note(self, show_id: int, season_number: int, episode_number: int) -> str | None:
        return _get_nested(self.episode_notes, show_id, season_number, episode_number)

    # --- watch status ---

    def set_episode_status(
        self,
        show_id: int,
        season_number: int,
        episode_number: int,
        status: WatchStatus | int,
    ) -> ProgressStore:
        """
        Idempotent upsert. NOT_WATCHED removes the entry unless it still holds a journal.
        """

        status = WatchStatus.coerce(status)
        keys = (show_id, season_number, episode_number)
        current = self.get_episode(*keys)
        if status == WatchStatus.NOT_WATCHED and (current is None or current.journal is None):
            _delete_nested(self.progress, keys)
            return self
        journal = current.journal if current is not None else None
        _set_nested(self.progress, keys, EpisodeProgress(status=status, journal=journal))
        return self

    def remove_episode(self, show_id: int, season_number: int, episode_number: int) -> bool:
        return _delete_nested(self.progress, (show_id, season_number, episode_number))

    def toggle_episode(
        self,
        show_id: int,
        season_number: int,
        episode_number: int,
        *,
        title: str,
        episode_title: str | None = None,
        now: datetime | None = None,
    ) -> HistoryItem | None:
        """
        Flip an episode between watched and not watched.

        Returns the history row to log when the episode became watched, otherwise None.
        """

        was_watched = self.is_watched(show_id, season_number, episode_number)
        new_status = WatchStatus.NOT_WATCHED if was_watched else WatchStatus.WATCHED
        self.set_episode_status(show_id, season_number, episode_number, new_status)
        if was_watched:
            return None

        moment = now or datetime.now(UTC)
        epoch_ms = int(moment.timestamp() * 1000)
        return HistoryItem(
            log_id=f"tv-{show_id}-{season_number}-{episode_number}-{epoch_ms}",
            show_id=show_id,
            title=title,
            timestamp=moment.isoformat().replace("+00:00", "Z"),
            season_number=season_number,
            episode_number=episode_number,
            episode_title=episode_title,
        )

    def attach_journal(
        self,
        show_id: int,
        season_number: int,
        episode_number: int,
        entry: JournalEntry | None,
    ) -> ProgressStore:
        """
        Set or clear the journal on an episode without touching its status.
        """

        keys = (show_id, season_number, episode_number)
        current = self.get_episode(*keys)
        if entry is None:
            if current is None:
                return self
            if current.status == WatchStatus.NOT_WATCHED:
                _delete_nested(self.progress, keys)
            else:
                _set_nested(self.progress, keys, EpisodeProgress(status=current.status))
            return self

        status = current.status if current is not None else WatchStatus.NOT_WATCHED
        _set_nested(self.progress, keys, EpisodeProgress(status=status, journal=entry))
        return self

    def apply_plan(self, show_id: int, plan: BulkPlan) -> ProgressStore:
        for ref in plan.deletes:
            self.remove_episode(show_id, ref.season_number, ref.episode_number)
        for ref in plan.upserts:
            self.set_episode_status(show_id, ref.season_number, ref.episode_number, WatchStatus.WATCHED)
        return self

    # --- annotations ---

    def toggle_favorite_episode(self, show_id: int, season_number: int, episode_number: int) -> bool:
        keys = (show_id, season_number, episode_number)
        if self.is_favorite_episode(*keys):
            _delete_nested(self.favorite_episodes, keys)
            return False
        _set_nested(self.favorite_episodes, keys, True)
        return True

    def set_episode_rating(self, show_id: int, season_number: int, episode_number: int, rating: int) -> ProgressStore:
        """Scores are 1..10; 0 (or less) removes the rating, anything above 10 is capped."""
        keys = (show_id, season_number, episode_number)
        value = _load_rating(rating)
        if value is None:
            _delete_nested(self.episode_ratings, keys)
        else:
            _set_nested(self.episode_ratings, keys, value)
        return self

    def set_season_rating(self, show_id: int, season_number: int, rating: int) -> ProgressStore:
        keys = (show_id, season_number)
        value = _load_rating(rating)
        if value is None:
            _delete_nested(self.season_ratings, keys)
        else:
            _set_nested(self.season_ratings, keys, value)
        return self

    def set_episode_note(self, show_id: int, season_number: int, episode_number: int, note: str | None) -> ProgressStore:
        keys = (show_id, season_number, episode_number)
        value = _load_note(note)
        if value is None:
            _delete_nested(self.episode_notes, keys)
        else:
            _set_nested(self.episode_notes, keys, value)
        return self

    # --- snapshots ---

    def copy(self) -> ProgressStore:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "watch_progress": _dump_tree(self.progress, lambda p: p.to_dict()),
            "favorite_episodes": _dump_tree(self.favorite_episodes, bool),
            "episode_ratings": _dump_tree(self.episode_ratings, int),
            "season_ratings": _dump_tree(self.season_ratings, int),
            "episode_notes": _dump_tree(self.episode_notes, str),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> ProgressStore:
        """
        Build a store from a JSON-style snapshot (string keys accepted). Unparseable keys are dropped.
        """

        payload = payload or {}
        return cls(
            progress=_load_tree(payload.get("watch_progress"), 3, _load_progress),
            favorite_episodes=_load_tree(payload.get("favorite_episodes"), 3, _load_favorite),
            episode_ratings=_load_tree(payload.get("episode_ratings"), 3, _load_rating),
            season_ratings=_load_tree(payload.get("season_ratings"), 2, _load_rating),
            episode_notes=_load_tree(payload.get("episode_notes"), 3, _load_note),
        )
