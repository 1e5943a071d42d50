import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from harada.config import settings
from harada.core.errors import NotFound, StoreFault, ValidationError
from harada.database import utcnow
from harada.models.chart import Chart, ChartCell
from harada.models.user import User
from harada.services import grid
from harada.services.events import ChangeNotifier

logger = logging.getLogger(__name__)


@dataclass
class GridCell:
    row: int
    col: int
    role: str
    section: Optional[int]
    content: str
    editable: bool
    cell_id: Optional[int] = None


def _insert_for(db: AsyncSession):
    dialect = db.bind.dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise StoreFault(f"Upsert is not supported on {dialect}")


async def _find_chart(db: AsyncSession, user_id: int) -> Optional[Chart]:
    result = await db.execute(select(Chart).where(Chart.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_chart(db: AsyncSession, user: User) -> Chart:
    try:
        chart = await _find_chart(db, user.id)
        if chart:
            return chart

        chart = Chart(user_id=user.id, title=settings.DEFAULT_CHART_TITLE)
        db.add(chart)
        try:
            await db.commit()
        except IntegrityError:
            # Another request created it first; the rollback expired the user too
            await db.rollback()
            await db.refresh(user)
            chart = await _find_chart(db, user.id)
            if chart is None:
                raise
            return chart
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreFault(f"Failed to create chart: {e}") from e

    logger.info("Created chart %s for user %s", chart.id, user.id)
    return chart


async def rename_chart(
    db: AsyncSession, chart: Chart, title: str, notifier: Optional[ChangeNotifier] = None
) -> Chart:
    if not title or not title.strip():
        raise ValidationError("Chart title is required")

    chart.title = title.strip()
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreFault(f"Failed to rename chart: {e}") from e

    if notifier:
        notifier.changed("chart", chart.id)
    return chart


async def list_cells(db: AsyncSession, chart: Chart) -> List[ChartCell]:
    try:
        result = await db.execute(
            select(ChartCell)
            .where(ChartCell.chart_id == chart.id)
            .order_by(ChartCell.row_index, ChartCell.col_index)
        )
    except SQLAlchemyError as e:
        raise StoreFault(f"Failed to fetch cells: {e}") from e
    return list(result.scalars().all())


async def get_cell(db: AsyncSession, chart: Chart, row: int, col: int) -> Optional[ChartCell]:
    result = await db.execute(
        select(ChartCell)
        .where(ChartCell.chart_id == chart.id)
        .where(ChartCell.row_index == row)
        .where(ChartCell.col_index == col)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def upsert_cell(
    db: AsyncSession,
    chart: Chart,
    row: int,
    col: int,
    content: str,
    notifier: Optional[ChangeNotifier] = None,
) -> ChartCell:
    try:
        metadata = grid.classify(row, col)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if not metadata.editable:
        behavior_row, behavior_col = metadata.mirrors
        raise ValidationError(
            f"Cell ({row}, {col}) mirrors the behavior at ({behavior_row}, {behavior_col}); edit that cell instead"
        )

    now = utcnow()
    insert = _insert_for(db)
    stmt = insert(ChartCell).values(
        chart_id=chart.id,
        row_index=row,
        col_index=col,
        cell_type=metadata.role,
        content=content,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["chart_id", "row_index", "col_index"],
        set_={
            "content": stmt.excluded.content,
            "cell_type": stmt.excluded.cell_type,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    try:
        await db.execute(stmt)
        await db.commit()
        cell = await get_cell(db, chart, row, col)
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreFault(f"Failed to save cell: {e}") from e

    if notifier:
        notifier.changed("chart", chart.id)
    return cell


async def delete_cell(
    db: AsyncSession,
    chart: Chart,
    row: int,
    col: int,
    notifier: Optional[ChangeNotifier] = None,
) -> None:
    cell = await get_cell(db, chart, row, col)
    if cell is None:
        raise NotFound(f"No cell at ({row}, {col})")

    try:
        await db.delete(cell)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreFault(f"Failed to delete cell: {e}") from e

    if notifier:
        notifier.changed("chart", chart.id)


def build_grid(cells: List[ChartCell]) -> List[List[GridCell]]:
    """Lay stored cells out on the full 9x9 grid.

    Positions without a stored cell come back empty; mirror positions show
    the content of the behavior they mirror.
    """
    by_position: Dict[Tuple[int, int], ChartCell] = {
        (cell.row_index, cell.col_index): cell for cell in cells
    }

    rows = []
    for row in range(grid.GRID_SIZE):
        line = []
        for col in range(grid.GRID_SIZE):
            metadata = grid.classify(row, col)
            if metadata.role == grid.BEHAVIOR_MIRROR:
                source = by_position.get(metadata.mirrors)
                cell_id = None
            else:
                source = by_position.get((row, col))
                cell_id = source.id if source else None
            line.append(
                GridCell(
                    row=row,
                    col=col,
                    role=metadata.role,
                    section=metadata.section,
                    content=source.content if source else "",
                    editable=metadata.editable,
                    cell_id=cell_id,
                )
            )
        rows.append(line)
    return rows
