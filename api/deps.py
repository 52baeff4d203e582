"""
Dependency injection for Supabase, the metadata provider and the reference date.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Annotated

from fastapi import Depends, HTTPException
from supabase import Client

from sceneit_backend.db.supabase import create_supabase_admin_client
from sceneit_backend.integrations.tmdb.client import TmdbClientError
from sceneit_backend.integrations.tmdb.mapping import fetch_show_metadata
from sceneit_backend.models.metadata import EpisodeMetadata, ShowMetadata
from sceneit_backend.progress.store import ProgressStore
from sceneit_backend.repositories.watch_progress import WatchProgressRepositoryError, fetch_progress_store
from sceneit_backend.utils.dates import today_utc
from sceneit_backend.utils.env import load_env

load_env()

logger = logging.getLogger(__name__)

ShowMetadataLoader = Callable[[int], tuple[ShowMetadata, dict[int, list[EpisodeMetadata]]]]


def get_supabase_admin_client() -> Client:
    """
    Returns a Supabase client using the service role key (bypasses RLS).
    """
    return create_supabase_admin_client()


def get_show_metadata_loader() -> ShowMetadataLoader:
    """
    Returns a callable that fetches a show and its per-season episode lists from TMDb.
    """
    cache: dict = {}
    return lambda tv_id: fetch_show_metadata(tv_id, cache=cache)


def get_today() -> date:
    return today_utc()


# Type aliases for dependency injection
SupabaseAdminClient = Annotated[Client, Depends(get_supabase_admin_client)]
MetadataLoader = Annotated[ShowMetadataLoader, Depends(get_show_metadata_loader)]
Today = Annotated[date, Depends(get_today)]


def load_progress_store(db: Client, *, user_id: str, show_id: int) -> ProgressStore:
    """
    Fetch a user's progress snapshot for one show, mapping storage failures to HTTP 502.
    """
    try:
        return fetch_progress_store(db, user_id=user_id, show_id=show_id)
    except WatchProgressRepositoryError as exc:
        logger.error(f"Supabase error loading progress user_id={user_id} show_id={show_id}: {exc}")
        # Don't leak internal error details to client
        raise HTTPException(status_code=502, detail="Database error while loading watch progress") from exc


def load_show_metadata(
    loader: ShowMetadataLoader,
    show_id: int,
) -> tuple[ShowMetadata, dict[int, list[EpisodeMetadata]]]:
    """
    Fetch show metadata, mapping provider failures to HTTP 404/502.
    """
    try:
        return loader(show_id)
    except TmdbClientError as exc:
        if exc.status_code == 404:
            raise HTTPException(status_code=404, detail="Show not found") from exc
        logger.error(f"TMDb error fetching show_id={show_id}: {exc}")
        raise HTTPException(status_code=502, detail="Metadata provider error") from exc


def run_write(action: Callable[[], object], context: str) -> object:
    """
    Run a repository write, mapping storage failures to HTTP 502.
    """
    try:
        return action()
    except WatchProgressRepositoryError as exc:
        logger.error(f"Supabase error during {context}: {exc}")
        raise HTTPException(status_code=502, detail=f"Database error during {context}") from exc
