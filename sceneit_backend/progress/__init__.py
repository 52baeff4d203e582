"""
Watch-progress engine: episode classification, the per-user progress store, derived
aggregates and bulk-operation planning. Everything here is synchronous and works on
in-memory snapshots; persistence and metadata fetching live at the edges.
"""

from sceneit_backend.progress.aggregation import (
    SeasonProgress,
    ShowProgress,
    compute_all_season_progress,
    compute_overall_show_progress,
    compute_season_progress,
    count_completed_seasons,
    find_next_unwatched_episode,
    is_aired,
    is_season_fully_watched,
    is_show_fully_watched,
)
from sceneit_backend.progress.classifier import EpisodeTag, classify_episode
from sceneit_backend.progress.library_status import LibraryStatus, calculate_auto_status, is_manual_status
from sceneit_backend.progress.planner import (
    BulkLogResult,
    BulkPlan,
    LogEntry,
    history_items_for_log,
    plan_bulk_log_from_selection,
    plan_mark_previous_episodes,
    plan_mark_season_watched,
    plan_mark_show_watched,
    plan_unmark_season,
    plan_unmark_show,
)
from sceneit_backend.progress.store import ProgressStore

__all__ = [
    "BulkLogResult",
    "BulkPlan",
    "EpisodeTag",
    "LibraryStatus",
    "LogEntry",
    "ProgressStore",
    "SeasonProgress",
    "ShowProgress",
    "calculate_auto_status",
    "classify_episode",
    "compute_all_season_progress",
    "compute_overall_show_progress",
    "compute_season_progress",
    "count_completed_seasons",
    "find_next_unwatched_episode",
    "history_items_for_log",
    "is_aired",
    "is_manual_status",
    "is_season_fully_watched",
    "is_show_fully_watched",
    "plan_bulk_log_from_selection",
    "plan_mark_previous_episodes",
    "plan_mark_season_watched",
    "plan_mark_show_watched",
    "plan_unmark_season",
    "plan_unmark_show",
]
