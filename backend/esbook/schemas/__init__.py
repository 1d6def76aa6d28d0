from .notebook import (
    CreateNotebookRequest, CreateNotebookResponse,
    NotebookMetadataResponse, ListNotebooksResponse, RunNotebookResponse
)
from .cell import (
    CreateCellRequest, UpdateCellRequest, CreateCellResponse,
    CellResponse, NotebookResponse, RunCellResponse
)

__all__ = [
    "CreateNotebookRequest", "CreateNotebookResponse",
    "NotebookMetadataResponse", "ListNotebooksResponse", "RunNotebookResponse",
    "CreateCellRequest", "UpdateCellRequest", "CreateCellResponse",
    "CellResponse", "NotebookResponse", "RunCellResponse"
]
