"""Weekly review cycle: planned -> in_progress -> completed.

A cycle is opened for the current ISO week on first request and five actions
are sampled from the chart for it. Completing a cycle archives it; the next
request in the same week opens a fresh one.
"""
import logging
import random
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from harada.config import settings
from harada.core.errors import InvalidTransition, NotFound, StoreFault, ValidationError
from harada.models.chart import Chart, ChartCell
from harada.models.cycle import WeeklyAction, WeeklyCycle
from harada.models.user import User
from harada.services import grid
from harada.services.events import ChangeNotifier

logger = logging.getLogger(__name__)

PLANNED = "planned"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
CYCLE_STATUSES = (PLANNED, IN_PROGRESS, COMPLETED)

NOT_STARTED = "not_started"
SKIPPED = "skipped"
PARTIAL = "partial"
ACTION_STATUSES = (NOT_STARTED, IN_PROGRESS, COMPLETED, SKIPPED, PARTIAL)

MIN_SCORE = 0
MAX_SCORE = 5


@dataclass
class CycleSummary:
    total: int = 0
    completed: int = 0
    average_score: Optional[float] = None
    by_status: Dict[str, int] = field(default_factory=dict)


def week_bounds(today: date) -> Tuple[date, date]:
    """Monday and Sunday of the ISO week containing today."""
    monday = today - timedelta(days=today.weekday())
    return monday, monday + timedelta(days=6)


async def _recover(db: AsyncSession, *instances) -> None:
    # A rollback expires everything loaded in the session; reload what the
    # caller still holds so attribute access stays synchronous.
    await db.rollback()
    for instance in instances:
        await db.refresh(instance)


async def _find_open_cycle(db: AsyncSession, chart_id: int, week_start: date) -> Optional[WeeklyCycle]:
    result = await db.execute(
        select(WeeklyCycle)
        .where(WeeklyCycle.chart_id == chart_id)
        .where(WeeklyCycle.week_start_date == week_start)
        .where(WeeklyCycle.status != COMPLETED)
    )
    return result.scalar_one_or_none()


async def _count_actions(db: AsyncSession, cycle_id: int) -> int:
    result = await db.execute(
        select(func.count(WeeklyAction.id)).where(WeeklyAction.cycle_id == cycle_id)
    )
    return result.scalar_one()


async def sample_actions(
    db: AsyncSession,
    cycle: WeeklyCycle,
    rng: Optional[random.Random] = None,
    count: Optional[int] = None,
) -> List[WeeklyAction]:
    """Pick up to `count` filled action cells at random and attach them to the cycle.

    Returns the new rows, or an empty list when the chart has no filled
    actions. The rows are committed together or not at all.
    """
    if count is None:
        count = settings.WEEKLY_ACTION_COUNT
    rng = rng or random

    try:
        result = await db.execute(
            select(ChartCell.id)
            .where(ChartCell.chart_id == cycle.chart_id)
            .where(ChartCell.cell_type == grid.ACTION)
            .where(ChartCell.content.isnot(None))
            .where(ChartCell.content != "")
        )
    except SQLAlchemyError as e:
        raise StoreFault(f"Failed to fetch action cells: {e}") from e

    cell_ids = list(result.scalars().all())
    if not cell_ids:
        return []

    picked = rng.sample(cell_ids, min(count, len(cell_ids)))
    actions = [
        WeeklyAction(
            cycle_id=cycle.id,
            cell_id=cell_id,
            is_selected=True,
            completion_status=NOT_STARTED,
        )
        for cell_id in picked
    ]
    db.add_all(actions)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreFault(f"Failed to create weekly actions: {e}") from e

    logger.info("Selected %d of %d actions for cycle %s", len(actions), len(cell_ids), cycle.id)
    return actions


async def ensure_current_cycle(
    db: AsyncSession,
    chart: Chart,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
    notifier: Optional[ChangeNotifier] = None,
) -> WeeklyCycle:
    monday, sunday = week_bounds(today or date.today())
    chart_id = chart.id

    try:
        cycle = await _find_open_cycle(db, chart_id, monday)
    except SQLAlchemyError as e:
        raise StoreFault(f"Failed to fetch cycle: {e}") from e
    if cycle:
        return cycle

    cycle = WeeklyCycle(
        chart_id=chart_id,
        week_start_date=monday,
        week_end_date=sunday,
        status=PLANNED,
        start_journal="",
        end_review="",
    )
    db.add(cycle)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent request for the same week
        await _recover(db, chart)
        cycle = await _find_open_cycle(db, chart_id, monday)
        if cycle is None:
            raise StoreFault("Failed to create cycle: conflicting cycle disappeared")
        return cycle
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreFault(f"Failed to create cycle: {e}") from e

    cycle_id = cycle.id
    logger.info("Opened cycle %s for chart %s, week of %s", cycle_id, chart_id, monday)

    # Pre-selection is best-effort; start_cycle samples again if this left nothing.
    try:
        actions = await sample_actions(db, cycle, rng)
    except StoreFault as e:
        # sample_actions rolled back, so cycle and chart are expired here
        await _recover(db, chart, cycle)
        logger.warning("Failed to pre-select actions for cycle %s: %s", cycle_id, e)
    else:
        if not actions:
            logger.warning("Chart %s has no filled action cells; cycle %s starts empty", chart_id, cycle_id)

    if notifier:
        notifier.changed("cycle", cycle_id)
    return cycle


async def start_cycle(
    db: AsyncSession,
    cycle: WeeklyCycle,
    journal: Optional[str],
    rng: Optional[random.Random] = None,
    notifier: Optional[ChangeNotifier] = None,
) -> WeeklyCycle:
    if cycle.status != PLANNED:
        raise InvalidTransition(f"Cannot start a cycle that is {cycle.status}")
    if journal is None:
        raise ValidationError("A start journal is required to start the week")

    try:
        existing = await _count_actions(db, cycle.id)
    except SQLAlchemyError as e:
        raise StoreFault(f"Failed to fetch weekly actions: {e}") from e

    if existing == 0:
        actions = await sample_actions(db, cycle, rng)
        if not actions:
            raise ValidationError("No actions found in your chart. Please add some actions first.")

    cycle.start_journal = journal
    cycle.status = IN_PROGRESS
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreFault(f"Failed to start cycle: {e}") from e

    logger.info("Started cycle %s", cycle.id)
    if notifier:
        notifier.changed("cycle", cycle.id)
    return cycle


async def complete_cycle(
    db: AsyncSession,
    cycle: WeeklyCycle,
    review: Optional[str],
    notifier: Optional[ChangeNotifier] = None,
) -> WeeklyCycle:
    if cycle.status != IN_PROGRESS:
        raise InvalidTransition(f"Cannot complete a cycle that is {cycle.status}")
    if review is None:
        raise ValidationError("An end review is required to complete the week")

    cycle.end_review = review
    cycle.status = COMPLETED
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreFault(f"Failed to complete cycle: {e}") from e

    logger.info("Completed cycle %s", cycle.id)
    if notifier:
        notifier.changed("cycle", cycle.id)
    return cycle


async def _save_action(db: AsyncSession, action: WeeklyAction, what: str, notifier: Optional[ChangeNotifier]) -> WeeklyAction:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreFault(f"Failed to update action {what}: {e}") from e

    if notifier:
        notifier.changed("weekly_action", action.id)
    return action


async def record_action_status(
    db: AsyncSession,
    action: WeeklyAction,
    status: str,
    today: Optional[date] = None,
    notifier: Optional[ChangeNotifier] = None,
) -> WeeklyAction:
    if status not in ACTION_STATUSES:
        raise ValidationError(f"Unknown action status: {status}")

    action.completion_status = status
    # Moving away from completed keeps the date it was first completed
    if status == COMPLETED:
        action.completed_date = today or date.today()
    return await _save_action(db, action, "status", notifier)


async def record_action_score(
    db: AsyncSession,
    action: WeeklyAction,
    score: Optional[int],
    notifier: Optional[ChangeNotifier] = None,
) -> WeeklyAction:
    if score is not None and not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationError(f"Score must be between {MIN_SCORE} and {MAX_SCORE}")

    action.score = score
    return await _save_action(db, action, "score", notifier)


async def record_action_note(
    db: AsyncSession,
    action: WeeklyAction,
    note: str,
    notifier: Optional[ChangeNotifier] = None,
) -> WeeklyAction:
    action.reflection_notes = note or ""
    return await _save_action(db, action, "note", notifier)


async def get_owned_cycle(db: AsyncSession, user: User, cycle_id: int) -> WeeklyCycle:
    result = await db.execute(
        select(WeeklyCycle)
        .join(Chart, Chart.id == WeeklyCycle.chart_id)
        .where(WeeklyCycle.id == cycle_id)
        .where(Chart.user_id == user.id)
    )
    cycle = result.scalar_one_or_none()
    if cycle is None:
        raise NotFound("Cycle not found")
    return cycle


async def get_owned_action(db: AsyncSession, user: User, action_id: int) -> WeeklyAction:
    result = await db.execute(
        select(WeeklyAction)
        .join(WeeklyCycle, WeeklyCycle.id == WeeklyAction.cycle_id)
        .join(Chart, Chart.id == WeeklyCycle.chart_id)
        .where(WeeklyAction.id == action_id)
        .where(Chart.user_id == user.id)
    )
    action = result.scalar_one_or_none()
    if action is None:
        raise NotFound("Weekly action not found")
    return action


async def list_weekly_actions(db: AsyncSession, cycle: WeeklyCycle) -> List[WeeklyAction]:
    try:
        result = await db.execute(
            select(WeeklyAction)
            .where(WeeklyAction.cycle_id == cycle.id)
            .order_by(WeeklyAction.created_at, WeeklyAction.id)
            .execution_options(populate_existing=True)
        )
    except SQLAlchemyError as e:
        raise StoreFault(f"Failed to fetch weekly actions: {e}") from e
    return list(result.scalars().all())


async def list_completed_cycles(db: AsyncSession, chart: Chart) -> List[WeeklyCycle]:
    try:
        result = await db.execute(
            select(WeeklyCycle)
            .where(WeeklyCycle.chart_id == chart.id)
            .where(WeeklyCycle.status == COMPLETED)
            .order_by(WeeklyCycle.week_start_date.desc(), WeeklyCycle.id.desc())
        )
    except SQLAlchemyError as e:
        raise StoreFault(f"Failed to fetch completed cycles: {e}") from e
    return list(result.scalars().all())


async def actions_by_cycle(db: AsyncSession, cycles: List[WeeklyCycle]) -> Dict[int, List[WeeklyAction]]:
    grouped: Dict[int, List[WeeklyAction]] = defaultdict(list)
    if not cycles:
        return grouped

    try:
        result = await db.execute(
            select(WeeklyAction)
            .where(WeeklyAction.cycle_id.in_([c.id for c in cycles]))
            .order_by(WeeklyAction.created_at, WeeklyAction.id)
            .execution_options(populate_existing=True)
        )
    except SQLAlchemyError as e:
        raise StoreFault(f"Failed to fetch weekly actions: {e}") from e

    for action in result.scalars().all():
        grouped[action.cycle_id].append(action)
    return grouped


def summarize_cycle(actions: List[WeeklyAction]) -> CycleSummary:
    counts = Counter(a.completion_status for a in actions)
    scores = [a.score for a in actions if a.score is not None]
    return CycleSummary(
        total=len(actions),
        completed=counts.get(COMPLETED, 0),
        average_score=round(sum(scores) / len(scores), 2) if scores else None,
        by_status={status: counts.get(status, 0) for status in ACTION_STATUSES},
    )
