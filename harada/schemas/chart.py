from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

class ChartRename(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)

class CellUpdate(BaseModel):
    content: str = Field("", max_length=2000)

class CellResponse(BaseModel):
    id: int
    chart_id: int
    row_index: int
    col_index: int
    cell_type: str
    content: str
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

class GridCellResponse(BaseModel):
    row: int
    col: int
    role: str  # goal, behavior, behavior_mirror, action
    section: Optional[int]
    content: str
    editable: bool
    cell_id: Optional[int]

    model_config = {"from_attributes": True}

class ChartResponse(BaseModel):
    id: int
    title: str
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

class ChartDetailResponse(ChartResponse):
    grid: List[List[GridCellResponse]]
