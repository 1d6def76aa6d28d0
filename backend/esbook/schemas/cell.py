from pydantic import BaseModel
from typing import Optional, List
from esbook.models import CellStatus


class CreateCellRequest(BaseModel):
    input: str = ""
    after_cell_id: Optional[str] = None


class UpdateCellRequest(BaseModel):
    input: str
    expected_revision: Optional[int] = None


class CreateCellResponse(BaseModel):
    cell_id: str


class CellResponse(BaseModel):
    id: str
    input: str
    status: CellStatus
    output: List[dict]
    html: str


class NotebookResponse(BaseModel):
    id: str
    name: Optional[str] = None
    revision: int
    cells: List[CellResponse]


class RunCellResponse(BaseModel):
    cell_id: str
    state: Optional[str] = None
    status: CellStatus
