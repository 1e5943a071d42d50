from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from harada.database import get_db
from harada.core.auth import get_current_user
from harada.services.chart import (
    get_or_create_chart, list_cells, build_grid, upsert_cell, delete_cell, rename_chart
)
from harada.services.events import ChangeNotifier, get_notifier
from harada.schemas.chart import (
    ChartRename, CellUpdate, CellResponse, ChartResponse, ChartDetailResponse, GridCellResponse
)

router = APIRouter(prefix="/chart", tags=["chart"])


async def _chart_detail(db: AsyncSession, chart) -> ChartDetailResponse:
    cells = await list_cells(db, chart)
    grid = [
        [GridCellResponse.model_validate(cell) for cell in line]
        for line in build_grid(cells)
    ]
    return ChartDetailResponse(
        id=chart.id,
        title=chart.title,
        created_at=chart.created_at,
        updated_at=chart.updated_at,
        grid=grid
    )


@router.get("", response_model=ChartDetailResponse)
async def get_chart(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    chart = await get_or_create_chart(db, current_user)
    return await _chart_detail(db, chart)


@router.patch("", response_model=ChartResponse)
async def update_chart(
    chart_in: ChartRename,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    chart = await get_or_create_chart(db, current_user)
    return await rename_chart(db, chart, chart_in.title, notifier=notifier)


@router.put("/cells/{row}/{col}", response_model=CellResponse)
async def save_cell(
    cell_in: CellUpdate,
    row: int = Path(..., ge=0, le=8),
    col: int = Path(..., ge=0, le=8),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    chart = await get_or_create_chart(db, current_user)
    return await upsert_cell(db, chart, row, col, cell_in.content, notifier=notifier)


@router.delete("/cells/{row}/{col}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_cell(
    row: int = Path(..., ge=0, le=8),
    col: int = Path(..., ge=0, le=8),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    chart = await get_or_create_chart(db, current_user)
    await delete_cell(db, chart, row, col, notifier=notifier)
