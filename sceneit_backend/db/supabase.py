from __future__ import annotations

import os
from functools import lru_cache

from supabase import Client, create_client

PROGRESS_SCHEMA = "core"
REQUIRED_ENV_VARS = ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY")


def _require_env(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        raise RuntimeError(f"{name} environment variable is not set")
    return value


def missing_supabase_env() -> list[str]:
    """Names of the Supabase variables that are unset (empty list when configured)."""
    return [name for name in REQUIRED_ENV_VARS if not (os.getenv(name) or "").strip()]


@lru_cache
def get_supabase_url() -> str:
    return _require_env("SUPABASE_URL")


@lru_cache
def get_supabase_service_key() -> str:
    return _require_env("SUPABASE_SERVICE_ROLE_KEY")


def create_supabase_admin_client(*, url: str | None = None, service_role_key: str | None = None) -> Client:
    """
    Create a Supabase client using the service role key (bypasses RLS).

    Progress rows are scoped by `user_id` in every query, so the API and operator scripts
    share this client.
    """

    return create_client(url or get_supabase_url(), service_role_key or get_supabase_service_key())
