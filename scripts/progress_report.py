#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sceneit_backend.db.supabase import create_supabase_admin_client, missing_supabase_env  # noqa: E402
from sceneit_backend.integrations.tmdb.client import TmdbClientError, resolve_api_key  # noqa: E402
from sceneit_backend.integrations.tmdb.mapping import fetch_show_metadata  # noqa: E402
from sceneit_backend.progress import (  # noqa: E402
    calculate_auto_status,
    compute_all_season_progress,
    compute_overall_show_progress,
    find_next_unwatched_episode,
)
from sceneit_backend.repositories.watch_progress import (  # noqa: E402
    WatchProgressRepositoryError,
    assert_core_watch_progress_table_exists,
    fetch_progress_store,
)
from sceneit_backend.utils.dates import parse_air_date, today_utc  # noqa: E402
from sceneit_backend.utils.env import load_env  # noqa: E402

logger = logging.getLogger("progress_report")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="progress_report.py",
        description="Print watch progress for one user and one TMDb show.",
    )
    parser.add_argument("--user-id", required=True, help="User id as stored in core.watch_progress.")
    parser.add_argument("--show-id", type=int, required=True, help="TMDb tv id.")
    parser.add_argument("--today", type=str, default=None, help="Reference date YYYY-MM-DD (default: today, UTC).")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    load_env()
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    missing = missing_supabase_env()
    if not resolve_api_key():
        missing.append("TMDB_API_KEY")
    if missing:
        print("Missing required environment variables:", ", ".join(missing), file=sys.stderr)
        return 2

    today = parse_air_date(args.today) if args.today else today_utc()
    if today is None:
        print(f"Invalid --today value: {args.today!r}", file=sys.stderr)
        return 2

    db = create_supabase_admin_client()
    try:
        assert_core_watch_progress_table_exists(db)
        store = fetch_progress_store(db, user_id=args.user_id, show_id=args.show_id)
        show, season_episodes = fetch_show_metadata(args.show_id)
    except (WatchProgressRepositoryError, TmdbClientError) as exc:
        logger.error("%s", exc)
        return 1

    print(f"{show.name or show.show_id} ({show.lifecycle_status.value}) as of {today.isoformat()}")
    for season in compute_all_season_progress(store, show, today, season_episodes):
        label = "Specials" if season.season_number == 0 else f"Season {season.season_number}"
        precision = "" if season.precise else " (by episode count)"
        print(
            f"  {label}: {season.percent:.0f}% "
            f"({season.watched_count}/{season.total_aired_in_season} aired){precision}"
        )

    overall = compute_overall_show_progress(store, show, today, season_episodes)
    print(f"Overall: {overall.percent:.0f}% ({overall.watched_count}/{overall.total_aired_count} aired episodes)")
    if overall.specials_total:
        print(f"Specials: {overall.specials_watched}/{overall.specials_total}")

    next_ref = find_next_unwatched_episode(store, show)
    print(f"Next up: {next_ref.code if next_ref else 'all caught up'}")

    status = calculate_auto_status(store, show, today, season_episodes)
    print(f"Library status: {status.value if status else '-'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
