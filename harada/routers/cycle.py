from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from harada.database import get_db
from harada.core.auth import get_current_user
from harada.models.cycle import WeeklyCycle, WeeklyAction
from harada.services.chart import get_or_create_chart
from harada.services.cycle import (
    ensure_current_cycle, start_cycle, complete_cycle, list_weekly_actions,
    get_owned_cycle, get_owned_action,
    record_action_status, record_action_score, record_action_note,
)
from harada.services.events import ChangeNotifier, get_notifier
from harada.schemas.cycle import (
    CycleStart, CycleComplete, CycleResponse, CurrentCycleResponse, WeeklyActionResponse,
    ActionStatusUpdate, ActionScoreUpdate, ActionNoteUpdate,
)

router = APIRouter(tags=["cycles"])


def _with_actions(cycle: WeeklyCycle, actions: List[WeeklyAction]) -> CurrentCycleResponse:
    return CurrentCycleResponse(
        **CycleResponse.model_validate(cycle).model_dump(),
        actions=[WeeklyActionResponse.model_validate(a) for a in actions]
    )


@router.get("/cycles/current", response_model=CurrentCycleResponse)
async def get_current_cycle(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    chart = await get_or_create_chart(db, current_user)
    cycle = await ensure_current_cycle(db, chart, notifier=notifier)
    actions = await list_weekly_actions(db, cycle)
    return _with_actions(cycle, actions)


@router.post("/cycles/{cycle_id}/start", response_model=CurrentCycleResponse)
async def start_week(
    cycle_id: int,
    cycle_in: CycleStart,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    cycle = await get_owned_cycle(db, current_user, cycle_id)
    cycle = await start_cycle(db, cycle, cycle_in.start_journal, notifier=notifier)
    actions = await list_weekly_actions(db, cycle)
    return _with_actions(cycle, actions)


@router.post("/cycles/{cycle_id}/complete", response_model=CycleResponse)
async def complete_week(
    cycle_id: int,
    cycle_in: CycleComplete,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    cycle = await get_owned_cycle(db, current_user, cycle_id)
    return await complete_cycle(db, cycle, cycle_in.end_review, notifier=notifier)


@router.get("/cycles/{cycle_id}/actions", response_model=List[WeeklyActionResponse])
async def get_cycle_actions(
    cycle_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    cycle = await get_owned_cycle(db, current_user, cycle_id)
    return await list_weekly_actions(db, cycle)


@router.patch("/actions/{action_id}/status", response_model=WeeklyActionResponse)
async def update_action_status(
    action_id: int,
    status_in: ActionStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    action = await get_owned_action(db, current_user, action_id)
    return await record_action_status(db, action, status_in.status, notifier=notifier)


@router.patch("/actions/{action_id}/score", response_model=WeeklyActionResponse)
async def update_action_score(
    action_id: int,
    score_in: ActionScoreUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    action = await get_owned_action(db, current_user, action_id)
    return await record_action_score(db, action, score_in.score, notifier=notifier)


@router.patch("/actions/{action_id}/note", response_model=WeeklyActionResponse)
async def update_action_note(
    action_id: int,
    note_in: ActionNoteUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    action = await get_owned_action(db, current_user, action_id)
    return await record_action_note(db, action, note_in.note, notifier=notifier)
