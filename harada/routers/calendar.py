from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from harada.database import get_db
from harada.core.auth import get_current_user
from harada.services.chart import get_or_create_chart
from harada.services.cycle import list_completed_cycles, actions_by_cycle, summarize_cycle
from harada.schemas.cycle import (
    CalendarEntry, CalendarResponse, CycleResponse, CycleSummaryResponse, WeeklyActionResponse
)

router = APIRouter(prefix="/calendar", tags=["calendar"])

@router.get("", response_model=CalendarResponse)
async def get_calendar(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    chart = await get_or_create_chart(db, current_user)
    cycles = await list_completed_cycles(db, chart)
    grouped = await actions_by_cycle(db, cycles)

    entries = []
    for cycle in cycles:
        actions = grouped.get(cycle.id, [])
        entries.append(
            CalendarEntry(
                **CycleResponse.model_validate(cycle).model_dump(),
                actions=[WeeklyActionResponse.model_validate(a) for a in actions],
                summary=CycleSummaryResponse.model_validate(summarize_cycle(actions))
            )
        )

    return CalendarResponse(cycles=entries)
