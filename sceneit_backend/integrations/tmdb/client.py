from __future__ import annotations

import logging
import os
import random
import time
from typing import Any, Mapping

import requests

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"

logger = logging.getLogger(__name__)


class TmdbClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


def _require_api_key(api_key: str | None) -> str:
    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    if not resolved:
        raise RuntimeError("TMDB_API_KEY is not set.")
    return resolved


def resolve_api_key(api_key: str | None = None) -> str | None:
    """
    Best-effort API key resolution for callers that want to continue when the key is missing.
    """

    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    return resolved or None


def _backoff_seconds(attempt: int, retry_after: str | None = None) -> float:
    delay = 1.0 * (2**attempt)
    retry_after = (retry_after or "").strip()
    if retry_after.isdigit():
        delay = max(delay, float(retry_after))
    return delay + random.uniform(0.0, delay * 0.25)


def _request_json(
    session: requests.Session,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    timeout_seconds: float = 20.0,
    max_attempts: int = 3,
) -> dict[str, Any]:
    headers = {
        "accept": "application/json",
        "user-agent": "sceneit-backend/0.1",
    }

    last_response: requests.Response | None = None
    for attempt in range(max_attempts):
        try:
            resp = session.get(url, params=params, headers=headers, timeout=timeout_seconds)
        except requests.RequestException as exc:
            if attempt < max_attempts - 1:
                logger.warning("TMDb request to %s failed (%s); retrying.", url, exc)
                time.sleep(_backoff_seconds(attempt))
                continue
            raise TmdbClientError(f"TMDb request failed: {exc}") from exc

        last_response = resp
        if resp.status_code == 200:
            break

        retryable = resp.status_code == 429 or 500 <= resp.status_code < 600
        if retryable and attempt < max_attempts - 1:
            logger.warning("TMDb returned HTTP %s for %s; retrying.", resp.status_code, url)
            time.sleep(_backoff_seconds(attempt, resp.headers.get("Retry-After")))
            continue

        raise TmdbClientError(
            f"TMDb request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        )

    if last_response is None:
        raise TmdbClientError("TMDb request failed (no response).")
    resp = last_response

    try:
        payload = resp.json()
    except ValueError as exc:
        raise TmdbClientError(
            "TMDb returned non-JSON response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc

    if not isinstance(payload, dict):
        raise TmdbClientError("TMDb returned unexpected JSON shape (not an object).")
    return payload


def fetch_tv_details(
    tv_id: int,
    *,
    language: str = "en-US",
    api_key: str | None = None,
    session: requests.Session | None = None,
    cache: dict[tuple[Any, ...], dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """
    Fetch a TV series details payload from TMDb (`/3/tv/{id}`).

    The payload carries `status`, `number_of_seasons`, `number_of_episodes` and the `seasons`
    summary list (episode counts and air dates). Callers may pass a per-run `cache` dict.
    """

    tv_id_int = int(tv_id)
    cache_key = ("tv", tv_id_int, str(language or "en-US"))
    if cache is not None and cache_key in cache:
        return cache[cache_key]

    api_key = _require_api_key(api_key)
    session = session or requests.Session()
    url = f"{TMDB_API_BASE_URL}/tv/{tv_id_int}"
    payload = _request_json(session, url, params={"api_key": api_key, "language": language})
    if cache is not None:
        cache[cache_key] = payload
    return payload


def fetch_tv_season_details(
    tv_id: int,
    season_number: int,
    *,
    language: str = "en-US",
    api_key: str | None = None,
    session: requests.Session | None = None,
    cache: dict[tuple[Any, ...], dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """
    Fetch a TV season payload from TMDb (`/3/tv/{id}/season/{n}`), including its `episodes`.
    """

    tv_id_int = int(tv_id)
    season_int = int(season_number)
    cache_key = ("season", tv_id_int, season_int, str(language or "en-US"))
    if cache is not None and cache_key in cache:
        return cache[cache_key]

    api_key = _require_api_key(api_key)
    session = session or requests.Session()
    url = f"{TMDB_API_BASE_URL}/tv/{tv_id_int}/season/{season_int}"
    payload = _request_json(session, url, params={"api_key": api_key, "language": language})
    if cache is not None:
        cache[cache_key] = payload
    return payload
