"""
Watch-progress endpoints: read derived progress and apply user intents (toggle, journal,
bulk mark/unmark) for one user and one show.
"""
from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Path
from pydantic import BaseModel, Field

from api.deps import (
    MetadataLoader,
    SupabaseAdminClient,
    Today,
    load_progress_store,
    load_show_metadata,
    run_write,
)
from sceneit_backend.models.metadata import EpisodeMetadata
from sceneit_backend.models.progress import EpisodeRef, JournalEntry
from sceneit_backend.progress import (
    BulkPlan,
    calculate_auto_status,
    classify_episode,
    compute_all_season_progress,
    compute_overall_show_progress,
    find_next_unwatched_episode,
    history_items_for_log,
    plan_bulk_log_from_selection,
    plan_mark_previous_episodes,
    plan_mark_season_watched,
    plan_mark_show_watched,
    plan_unmark_season,
    plan_unmark_show,
)
from sceneit_backend.repositories.watch_progress import apply_plan_to_db, clear_progress_rows, save_episode_progress
from sceneit_backend.utils.dates import now_utc_iso

router = APIRouter(prefix="/users/{user_id}/shows/{show_id}", tags=["progress"])

SeasonNumber = Annotated[int, Path(ge=0)]
EpisodeNumber = Annotated[int, Path(ge=1)]


# --- Pydantic models ---

class EpisodeRefModel(BaseModel):
    season_number: int = Field(ge=0)
    episode_number: int = Field(ge=1)


class SeasonProgressModel(BaseModel):
    season_number: int
    percent: float
    watched_count: int
    unwatched_count: int
    total_aired_in_season: int
    precise: bool
    is_fully_watched: bool


class ShowProgressModel(BaseModel):
    watched_count: int
    total_aired_count: int
    unwatched_count: int
    percent: float
    specials_watched: int
    specials_total: int
    is_fully_watched: bool


class ProgressSummary(BaseModel):
    show_id: int
    overall: ShowProgressModel
    seasons: list[SeasonProgressModel]
    next_episode: EpisodeRefModel | None
    auto_status: str | None


class ToggleRequest(BaseModel):
    title: str = ""
    episode_title: str | None = None


class ToggleResponse(BaseModel):
    status: int
    history_item: dict[str, Any] | None


class JournalRequest(BaseModel):
    text: str
    mood: str | None = None


class MarkPreviousRequest(BaseModel):
    last_episode_number: int = Field(ge=1)


class PlanModel(BaseModel):
    upserts: list[EpisodeRefModel] = Field(default_factory=list)
    deletes: list[EpisodeRefModel] = Field(default_factory=list)


class PlanResult(BaseModel):
    upserted: list[EpisodeRefModel]
    deleted: list[EpisodeRefModel]


class TagResponse(BaseModel):
    tag: str | None


class BulkLogRequest(BaseModel):
    selected_episode_ids: list[int] = Field(default_factory=list)
    title: str = ""
    watched_at: str | None = None
    note: str | None = None


class BulkLogResponse(BaseModel):
    history_items: list[dict[str, Any]]
    error: str | None = None


def _ref_model(ref: EpisodeRef) -> EpisodeRefModel:
    return EpisodeRefModel(season_number=ref.season_number, episode_number=ref.episode_number)


def _plan_model(plan: BulkPlan) -> PlanModel:
    return PlanModel(
        upserts=[_ref_model(r) for r in plan.ordered_upserts()],
        deletes=[_ref_model(r) for r in plan.ordered_deletes()],
    )


def _apply(db, user_id: str, show_id: int, plan: BulkPlan, store) -> PlanResult:  # noqa: ANN001
    run_write(
        lambda: apply_plan_to_db(db, user_id=user_id, show_id=show_id, plan=plan, store=store),
        "applying progress plan",
    )
    return PlanResult(
        upserted=[_ref_model(r) for r in plan.ordered_upserts()],
        deleted=[_ref_model(r) for r in plan.ordered_deletes()],
    )


def _clear(db, user_id: str, show_id: int, plan: BulkPlan, season_number: int | None = None) -> PlanResult:  # noqa: ANN001
    if not plan.is_empty:
        run_write(
            lambda: clear_progress_rows(db, user_id=user_id, show_id=show_id, season_number=season_number),
            "clearing watch progress",
        )
    return PlanResult(upserted=[], deleted=[_ref_model(r) for r in plan.ordered_deletes()])


# --- Endpoints ---

@router.get("/progress", response_model=ProgressSummary)
def get_progress(
    db: SupabaseAdminClient,
    loader: MetadataLoader,
    today: Today,
    user_id: str,
    show_id: int,
) -> ProgressSummary:
    """Season and overall progress, next episode to watch, and derived library status."""
    show, season_episodes = load_show_metadata(loader, show_id)
    store = load_progress_store(db, user_id=user_id, show_id=show_id)

    overall = compute_overall_show_progress(store, show, today, season_episodes)
    seasons = compute_all_season_progress(store, show, today, season_episodes)
    next_ref = find_next_unwatched_episode(store, show)
    auto_status = calculate_auto_status(store, show, today, season_episodes)
    return ProgressSummary(
        show_id=show_id,
        overall=ShowProgressModel(**overall.to_dict()),
        seasons=[SeasonProgressModel(**s.to_dict()) for s in seasons],
        next_episode=_ref_model(next_ref) if next_ref is not None else None,
        auto_status=auto_status.value if auto_status is not None else None,
    )


@router.post("/seasons/{season_number}/episodes/{episode_number}/toggle", response_model=ToggleResponse)
def toggle_episode(
    db: SupabaseAdminClient,
    user_id: str,
    show_id: int,
    season_number: SeasonNumber,
    episode_number: EpisodeNumber,
    body: ToggleRequest | None = None,
) -> ToggleResponse:
    """Flip an episode between watched and not watched."""
    body = body or ToggleRequest()
    store = load_progress_store(db, user_id=user_id, show_id=show_id)
    history_item = store.toggle_episode(
        show_id,
        season_number,
        episode_number,
        title=body.title,
        episode_title=body.episode_title,
    )
    entry = store.get_episode(show_id, season_number, episode_number)
    run_write(
        lambda: save_episode_progress(
            db,
            user_id=user_id,
            show_id=show_id,
            season_number=season_number,
            episode_number=episode_number,
            entry=entry,
        ),
        "saving episode progress",
    )
    return ToggleResponse(
        status=int(store.get_status(show_id, season_number, episode_number)),
        history_item=history_item.to_dict() if history_item is not None else None,
    )


@router.put("/seasons/{season_number}/episodes/{episode_number}/journal", response_model=ToggleResponse)
def put_journal(
    db: SupabaseAdminClient,
    user_id: str,
    show_id: int,
    body: JournalRequest,
    season_number: SeasonNumber,
    episode_number: EpisodeNumber,
) -> ToggleResponse:
    """Attach a journal entry; the episode's watch status is left as is."""
    store = load_progress_store(db, user_id=user_id, show_id=show_id)
    entry = JournalEntry(text=body.text, mood=body.mood or None, timestamp=now_utc_iso())
    store.attach_journal(show_id, season_number, episode_number, entry)
    saved = store.get_episode(show_id, season_number, episode_number)
    run_write(
        lambda: save_episode_progress(
            db,
            user_id=user_id,
            show_id=show_id,
            season_number=season_number,
            episode_number=episode_number,
            entry=saved,
        ),
        "saving journal",
    )
    return ToggleResponse(status=int(store.get_status(show_id, season_number, episode_number)), history_item=None)


@router.delete("/seasons/{season_number}/episodes/{episode_number}/journal", response_model=ToggleResponse)
def delete_journal(
    db: SupabaseAdminClient,
    user_id: str,
    show_id: int,
    season_number: SeasonNumber,
    episode_number: EpisodeNumber,
) -> ToggleResponse:
    store = load_progress_store(db, user_id=user_id, show_id=show_id)
    store.attach_journal(show_id, season_number, episode_number, None)
    saved = store.get_episode(show_id, season_number, episode_number)
    run_write(
        lambda: save_episode_progress(
            db,
            user_id=user_id,
            show_id=show_id,
            season_number=season_number,
            episode_number=episode_number,
            entry=saved,
        ),
        "clearing journal",
    )
    return ToggleResponse(status=int(store.get_status(show_id, season_number, episode_number)), history_item=None)


@router.post("/seasons/{season_number}/mark-watched", response_model=PlanResult)
def mark_season_watched(
    db: SupabaseAdminClient,
    loader: MetadataLoader,
    today: Today,
    user_id: str,
    show_id: int,
    season_number: SeasonNumber,
) -> PlanResult:
    """Mark every aired episode of a season watched."""
    _show, season_episodes = load_show_metadata(loader, show_id)
    store = load_progress_store(db, user_id=user_id, show_id=show_id)
    plan = plan_mark_season_watched(store, show_id, season_number, season_episodes.get(season_number), today)
    return _apply(db, user_id, show_id, plan, store)


@router.post("/mark-watched", response_model=PlanResult)
def mark_show_watched(
    db: SupabaseAdminClient,
    loader: MetadataLoader,
    today: Today,
    user_id: str,
    show_id: int,
) -> PlanResult:
    """Mark every aired, non-special episode of the show watched."""
    show, season_episodes = load_show_metadata(loader, show_id)
    store = load_progress_store(db, user_id=user_id, show_id=show_id)
    plan = plan_mark_show_watched(store, show, today, season_episodes)
    return _apply(db, user_id, show_id, plan, store)


@router.post("/seasons/{season_number}/mark-previous", response_model=PlanModel)
def propose_mark_previous(
    db: SupabaseAdminClient,
    user_id: str,
    show_id: int,
    body: MarkPreviousRequest,
    season_number: SeasonNumber,
) -> PlanModel:
    """
    Propose the unwatched episodes before `last_episode_number`. Nothing is written; the client
    confirms by posting the plan to `/apply`.
    """
    store = load_progress_store(db, user_id=user_id, show_id=show_id)
    return _plan_model(plan_mark_previous_episodes(store, show_id, season_number, body.last_episode_number))


@router.post("/apply", response_model=PlanResult)
def apply_plan(
    db: SupabaseAdminClient,
    user_id: str,
    show_id: int,
    body: PlanModel,
) -> PlanResult:
    plan = BulkPlan(
        upserts=frozenset(EpisodeRef(r.season_number, r.episode_number) for r in body.upserts),
        deletes=frozenset(EpisodeRef(r.season_number, r.episode_number) for r in body.deletes),
    )
    if plan.is_empty:
        return PlanResult(upserted=[], deleted=[])
    store = load_progress_store(db, user_id=user_id, show_id=show_id)
    return _apply(db, user_id, show_id, plan, store)


@router.delete("/seasons/{season_number}/progress", response_model=PlanResult)
def unmark_season(
    db: SupabaseAdminClient,
    user_id: str,
    show_id: int,
    season_number: SeasonNumber,
) -> PlanResult:
    store = load_progress_store(db, user_id=user_id, show_id=show_id)
    return _clear(db, user_id, show_id, plan_unmark_season(store, show_id, season_number), season_number)


@router.delete("/progress", response_model=PlanResult)
def unmark_show(
    db: SupabaseAdminClient,
    user_id: str,
    show_id: int,
) -> PlanResult:
    store = load_progress_store(db, user_id=user_id, show_id=show_id)
    return _clear(db, user_id, show_id, plan_unmark_show(store, show_id))


@router.post("/log", response_model=BulkLogResponse)
def log_selected_episodes(
    db: SupabaseAdminClient,
    loader: MetadataLoader,
    today: Today,
    user_id: str,
    show_id: int,
    body: BulkLogRequest,
) -> BulkLogResponse:
    """
    Log a selection of provider episode ids as watched. Unaired episodes are skipped; an empty
    selection comes back as `error` with nothing written.
    """
    _show, season_episodes = load_show_metadata(loader, show_id)
    result = plan_bulk_log_from_selection(body.selected_episode_ids, season_episodes, today=today)
    if not result.ok:
        return BulkLogResponse(history_items=[], error=result.error)

    plan = BulkPlan(upserts=frozenset(EpisodeRef(e.season_number, e.episode_number) for e in result.entries))
    if not plan.is_empty:
        store = load_progress_store(db, user_id=user_id, show_id=show_id)
        _apply(db, user_id, show_id, plan, store)
    items = history_items_for_log(
        show_id,
        body.title,
        result.entries,
        watched_at=body.watched_at or now_utc_iso(),
        note=body.note,
    )
    return BulkLogResponse(history_items=[item.to_dict() for item in items])


@router.get("/seasons/{season_number}/episodes/{episode_number}/tag", response_model=TagResponse)
def get_episode_tag(
    loader: MetadataLoader,
    show_id: int,
    season_number: SeasonNumber,
    episode_number: EpisodeNumber,
) -> TagResponse:
    """
    Premiere/finale label for one episode, or null. Without the season's episode list only the
    number-based rules apply.
    """
    show, season_episodes = load_show_metadata(loader, show_id)
    episodes = season_episodes.get(season_number)
    if episodes is None:
        episode = EpisodeMetadata(season_number=season_number, episode_number=episode_number)
    else:
        episode = next((ep for ep in episodes if ep.episode_number == episode_number), None)
        if episode is None:
            raise HTTPException(status_code=404, detail="Episode not found")
    tag = classify_episode(episode, show.season(season_number), show, episodes)
    return TagResponse(tag=tag.value if tag is not None else None)
