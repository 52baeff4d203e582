from __future__ import annotations

from datetime import date, datetime

import pytest

from sceneit_backend.utils.dates import parse_air_date, today_utc


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-02-29", date(2024, 2, 29)),
        ("2024-02-29T10:00:00Z", date(2024, 2, 29)),
        (datetime(2023, 1, 2, 3, 4), date(2023, 1, 2)),
        (date(2022, 5, 6), date(2022, 5, 6)),
        ("", None),
        ("   ", None),
        ("not a date", None),
        (None, None),
        (20240101, None),
    ],
)
def test_parse_air_date(value, expected) -> None:  # noqa: ANN001
    assert parse_air_date(value) == expected


def test_today_can_be_pinned(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCENEIT_TODAY", "2021-07-04")

    assert today_utc() == date(2021, 7, 4)


def test_today_ignores_bad_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCENEIT_TODAY", "soon")

    assert isinstance(today_utc(), date)
