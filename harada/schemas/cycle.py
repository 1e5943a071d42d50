from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Dict, List, Optional
from harada.schemas.chart import CellResponse

class CycleStart(BaseModel):
    start_journal: str

class CycleComplete(BaseModel):
    end_review: str

class ActionStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(not_started|in_progress|completed|skipped|partial)$")

class ActionScoreUpdate(BaseModel):
    score: Optional[int] = Field(..., ge=0, le=5)

class ActionNoteUpdate(BaseModel):
    note: str = ""

class WeeklyActionResponse(BaseModel):
    id: int
    cycle_id: int
    cell_id: Optional[int]
    is_selected: bool
    completion_status: str
    reflection_notes: str
    score: Optional[int]
    completed_date: Optional[date]
    cell: Optional[CellResponse]

    model_config = {"from_attributes": True}

class CycleResponse(BaseModel):
    id: int
    chart_id: int
    week_start_date: date
    week_end_date: date
    status: str  # planned, in_progress, completed
    start_journal: str
    end_review: str
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

class CurrentCycleResponse(CycleResponse):
    actions: List[WeeklyActionResponse]

class CycleSummaryResponse(BaseModel):
    total: int
    completed: int
    average_score: Optional[float]
    by_status: Dict[str, int]

    model_config = {"from_attributes": True}

class CalendarEntry(CycleResponse):
    actions: List[WeeklyActionResponse]
    summary: CycleSummaryResponse

class CalendarResponse(BaseModel):
    cycles: List[CalendarEntry]
