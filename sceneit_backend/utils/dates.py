from __future__ import annotations

import os
from datetime import UTC, date, datetime
from typing import Any


def parse_air_date(value: Any) -> date | None:
    """
    Parse a provider air date (`YYYY-MM-DD`, optionally with a time part).

    Empty or malformed values are treated as unknown.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def today_utc() -> date:
    """
    Reference "today" for aired-episode math.

    `SCENEIT_TODAY=YYYY-MM-DD` pins the date (reports, reproducible runs).
    """

    override = parse_air_date(os.getenv("SCENEIT_TODAY"))
    if override is not None:
        return override
    return datetime.now(UTC).date()


def now_utc_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")
