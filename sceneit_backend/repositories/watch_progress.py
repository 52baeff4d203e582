from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from supabase import Client

from sceneit_backend.db.supabase import PROGRESS_SCHEMA
from sceneit_backend.models.progress import EpisodeProgress, EpisodeRef, JournalEntry, WatchStatus
from sceneit_backend.progress.planner import BulkPlan
from sceneit_backend.progress.store import ProgressStore

logger = logging.getLogger(__name__)

TABLE = "watch_progress"
ON_CONFLICT = "user_id,show_id,season_number,episode_number"
SELECT_COLUMNS = "show_id,season_number,episode_number,status,journal"
DELETE_CHUNK_SIZE = 200


class WatchProgressRepositoryError(RuntimeError):
    pass


def _now_utc_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _error_text(error: Any) -> str:
    parts = [
        str(getattr(error, "code", "") or ""),
        str(getattr(error, "message", "") or ""),
        str(getattr(error, "details", "") or ""),
        str(getattr(error, "hint", "") or ""),
        str(error),
    ]
    return " ".join([p for p in parts if p]).strip()


def _raise_for_error(response: Any, context: str) -> None:
    error = getattr(response, "error", None)
    if error:
        raise WatchProgressRepositoryError(f"Supabase error {context}: {error}")


def assert_core_watch_progress_table_exists(db: Client) -> None:
    """
    Fail fast with a clear error if `core.watch_progress` is missing in Supabase.
    """

    def is_missing_relation(message: str) -> bool:
        msg = (message or "").casefold()
        return (
            "42p01" in msg  # undefined_table
            or "pgrst205" in msg  # postgrest: relation not found in schema cache
            or ("relation" in msg and "does not exist" in msg)
            or ("schema cache" in msg and TABLE in msg)
        )

    def is_schema_not_exposed(message: str) -> bool:
        msg = (message or "").casefold()
        return "pgrst106" in msg or ("invalid schema" in msg and PROGRESS_SCHEMA in msg)

    help_message = (
        f"Database table `{PROGRESS_SCHEMA}.{TABLE}` is missing. "
        "Run `supabase db push` to apply migrations, then retry."
    )
    schema_help_message = (
        f"Supabase API does not expose schema `{PROGRESS_SCHEMA}`. "
        f"Add `{PROGRESS_SCHEMA}` to `[api].schemas` in `supabase/config.toml` and run `supabase config push`."
    )

    try:
        response = db.schema(PROGRESS_SCHEMA).table(TABLE).select("user_id").limit(1).execute()
    except Exception as exc:
        if is_schema_not_exposed(str(exc)):
            raise WatchProgressRepositoryError(schema_help_message) from exc
        if is_missing_relation(str(exc)):
            raise WatchProgressRepositoryError(help_message) from exc
        raise WatchProgressRepositoryError(f"Supabase error during {TABLE} preflight: {exc}") from exc

    error = getattr(response, "error", None)
    if not error:
        return
    combined = _error_text(error)
    if is_schema_not_exposed(combined):
        raise WatchProgressRepositoryError(schema_help_message)
    if is_missing_relation(combined):
        raise WatchProgressRepositoryError(help_message)
    raise WatchProgressRepositoryError(f"Supabase error during {TABLE} preflight: {combined}")


def progress_row(
    *,
    user_id: str,
    show_id: int,
    season_number: int,
    episode_number: int,
    entry: EpisodeProgress,
    updated_at: str | None = None,
) -> dict[str, Any]:
    return {
        "user_id": str(user_id),
        "show_id": int(show_id),
        "season_number": int(season_number),
        "episode_number": int(episode_number),
        "status": int(entry.status),
        "journal": entry.journal.to_dict() if entry.journal is not None else None,
        "updated_at": updated_at or _now_utc_iso(),
    }


def store_from_rows(rows: Iterable[Mapping[str, Any]], store: ProgressStore | None = None) -> ProgressStore:
    """
    Fold `core.watch_progress` rows into a store. Rows missing identifiers are skipped.
    """

    store = store or ProgressStore()
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        try:
            show_id = int(row["show_id"])
            season_number = int(row["season_number"])
            episode_number = int(row["episode_number"])
        except (KeyError, TypeError, ValueError):
            continue
        store.set_episode_status(show_id, season_number, episode_number, WatchStatus.coerce(row.get("status")))
        journal = JournalEntry.from_dict(row.get("journal"))
        if journal is not None:
            store.attach_journal(show_id, season_number, episode_number, journal)
    return store


def fetch_progress_rows(db: Client, *, user_id: str, show_id: int | None = None) -> list[dict[str, Any]]:
    query = db.schema(PROGRESS_SCHEMA).table(TABLE).select(SELECT_COLUMNS).eq("user_id", str(user_id))
    if show_id is not None:
        query = query.eq("show_id", int(show_id))
    response = query.execute()
    _raise_for_error(response, "listing watch progress")
    data = response.data or []
    return data if isinstance(data, list) else []


def fetch_progress_store(db: Client, *, user_id: str, show_id: int | None = None) -> ProgressStore:
    return store_from_rows(fetch_progress_rows(db, user_id=user_id, show_id=show_id))


def upsert_progress_rows(
    db: Client,
    rows: Iterable[Mapping[str, Any]],
    *,
    on_conflict: str = ON_CONFLICT,
) -> list[dict[str, Any]]:
    payload = [dict(r) for r in rows]
    if not payload:
        return []
    response = db.schema(PROGRESS_SCHEMA).table(TABLE).upsert(payload, on_conflict=on_conflict).execute()
    _raise_for_error(response, "upserting watch progress")
    data = response.data or []
    return data if isinstance(data, list) else []


def delete_progress_rows(
    db: Client,
    *,
    user_id: str,
    show_id: int,
    refs: Iterable[EpisodeRef],
    chunk_size: int = DELETE_CHUNK_SIZE,
) -> None:
    """
    Delete the given episodes for one user/show: one request per season and per chunk of
    episode numbers.
    """

    by_season: dict[int, list[int]] = {}
    for ref in sorted(set(refs)):
        by_season.setdefault(int(ref.season_number), []).append(int(ref.episode_number))

    size = max(1, int(chunk_size))
    for season_number, episode_numbers in by_season.items():
        for i in range(0, len(episode_numbers), size):
            chunk = episode_numbers[i : i + size]
            response = (
                db.schema(PROGRESS_SCHEMA)
                .table(TABLE)
                .delete()
                .eq("user_id", str(user_id))
                .eq("show_id", int(show_id))
                .eq("season_number", season_number)
                .in_("episode_number", chunk)
                .execute()
            )
            _raise_for_error(response, f"deleting watch progress for show_id={show_id} season={season_number}")


def clear_progress_rows(db: Client, *, user_id: str, show_id: int, season_number: int | None = None) -> None:
    """
    Delete everything recorded for one user/show, or for one season of it, in a single request.
    """

    query = db.schema(PROGRESS_SCHEMA).table(TABLE).delete().eq("user_id", str(user_id)).eq("show_id", int(show_id))
    if season_number is not None:
        query = query.eq("season_number", int(season_number))
    response = query.execute()
    _raise_for_error(response, f"clearing watch progress for show_id={show_id}")


def save_episode_progress(
    db: Client,
    *,
    user_id: str,
    show_id: int,
    season_number: int,
    episode_number: int,
    entry: EpisodeProgress | None,
) -> None:
    """
    Persist one episode as it now stands in the store; a missing entry becomes a delete.
    """

    if entry is None:
        delete_progress_rows(db, user_id=user_id, show_id=show_id, refs=[EpisodeRef(season_number, episode_number)])
        return
    upsert_progress_rows(
        db,
        [
            progress_row(
                user_id=user_id,
                show_id=show_id,
                season_number=season_number,
                episode_number=episode_number,
                entry=entry,
            )
        ],
    )


def apply_plan_to_db(
    db: Client,
    *,
    user_id: str,
    show_id: int,
    plan: BulkPlan,
    store: ProgressStore | None = None,
) -> dict[str, int]:
    """
    Write a bulk plan: the upsert goes first so a failed write leaves the earlier rows untouched,
    then the deletes. Journals already in `store` are carried onto the upserted rows, except for
    episodes the plan also deletes (those come back as a fresh watched row).
    """

    updated_at = _now_utc_iso()
    rows = []
    for ref in plan.ordered_upserts():
        existing = store.get_episode(show_id, *ref) if store is not None else None
        journal = existing.journal if existing is not None and ref not in plan.deletes else None
        rows.append(
            progress_row(
                user_id=user_id,
                show_id=show_id,
                season_number=ref.season_number,
                episode_number=ref.episode_number,
                entry=EpisodeProgress(status=WatchStatus.WATCHED, journal=journal),
                updated_at=updated_at,
            )
        )
    deletes = [ref for ref in plan.ordered_deletes() if ref not in plan.upserts]

    upsert_progress_rows(db, rows)
    delete_progress_rows(db, user_id=user_id, show_id=show_id, refs=deletes)
    logger.info(
        "Applied progress plan user_id=%s show_id=%s upserts=%s deletes=%s",
        user_id,
        show_id,
        len(rows),
        len(deletes),
    )
    return {"upserted": len(rows), "deleted": len(deletes)}
