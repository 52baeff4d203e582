"""
TMDb integration clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sceneit_backend.integrations.tmdb.client import (
        TmdbClientError,
        fetch_tv_details,
        fetch_tv_season_details,
    )
    from sceneit_backend.integrations.tmdb.mapping import (
        episodes_from_tmdb_season,
        fetch_show_metadata,
        show_from_tmdb,
    )

__all__ = [
    "TmdbClientError",
    "episodes_from_tmdb_season",
    "fetch_show_metadata",
    "fetch_tv_details",
    "fetch_tv_season_details",
    "show_from_tmdb",
]

_CLIENT_NAMES = {"TmdbClientError", "fetch_tv_details", "fetch_tv_season_details"}


def __getattr__(name: str):
    if name in _CLIENT_NAMES:
        from sceneit_backend.integrations.tmdb import client

        return getattr(client, name)
    if name in __all__:
        from sceneit_backend.integrations.tmdb import mapping

        return getattr(mapping, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
