from __future__ import annotations

from typing import Any

import pytest
import requests

from sceneit_backend.integrations.tmdb import client as tmdb_client
from sceneit_backend.integrations.tmdb.client import (
    TmdbClientError,
    fetch_tv_details,
    fetch_tv_season_details,
    resolve_api_key,
)


class _FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, *, headers: dict[str, str] | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = "" if payload is None else str(payload)

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _FakeSession:
    def __init__(self, responses: list[Any]) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def get(self, url: str, *, params=None, headers=None, timeout=None):  # noqa: ANN001
        self.calls.append((url, dict(params or {})))
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tmdb_client.time, "sleep", lambda _seconds: None)


def test_fetch_tv_details_uses_cache() -> None:
    session = _FakeSession([_FakeResponse(200, {"id": 1399, "status": "Ended"})])
    cache: dict = {}

    first = fetch_tv_details(1399, api_key="k", session=session, cache=cache)
    second = fetch_tv_details(1399, api_key="k", session=session, cache=cache)

    assert first == second == {"id": 1399, "status": "Ended"}
    assert len(session.calls) == 1
    url, params = session.calls[0]
    assert url.endswith("/tv/1399")
    assert params["api_key"] == "k"


def test_fetch_season_details_hits_season_endpoint() -> None:
    session = _FakeSession([_FakeResponse(200, {"season_number": 2, "episodes": []})])

    payload = fetch_tv_season_details(1399, 2, api_key="k", session=session)

    assert payload["season_number"] == 2
    assert session.calls[0][0].endswith("/tv/1399/season/2")


def test_retries_on_429_then_succeeds() -> None:
    session = _FakeSession(
        [
            _FakeResponse(429, {"status_message": "slow down"}, headers={"Retry-After": "1"}),
            requests.ConnectionError("reset"),
            _FakeResponse(200, {"id": 1}),
        ]
    )

    assert fetch_tv_details(1, api_key="k", session=session) == {"id": 1}
    assert len(session.calls) == 3


def test_non_retryable_status_raises_with_status_code() -> None:
    session = _FakeSession([_FakeResponse(404, {"status_message": "not found"})])

    with pytest.raises(TmdbClientError) as excinfo:
        fetch_tv_details(5, api_key="k", session=session)

    assert excinfo.value.status_code == 404
    assert len(session.calls) == 1


def test_non_json_response_raises() -> None:
    session = _FakeSession([_FakeResponse(200, None)])

    with pytest.raises(TmdbClientError, match="non-JSON"):
        fetch_tv_details(5, api_key="k", session=session)


def test_missing_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TMDB_API_KEY", raising=False)

    assert resolve_api_key() is None
    with pytest.raises(RuntimeError, match="TMDB_API_KEY"):
        fetch_tv_details(5, session=_FakeSession([]))
