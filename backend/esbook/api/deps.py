from fastapi import HTTPException
from esbook.models import Cell, Notebook
from esbook.api.v1.state import NOTEBOOKS


# Dependency resolving the {notebook_id} path parameter
async def get_notebook_dependency(notebook_id: str) -> Notebook:
    if notebook_id not in NOTEBOOKS:
        raise HTTPException(
            status_code=404,
            detail=f"Notebook '{notebook_id}' not found. It may have been deleted."
        )
    return NOTEBOOKS[notebook_id]


def get_cell_or_404(notebook: Notebook, cell_id: str) -> Cell:
    cell = notebook.get_cell(cell_id)
    if cell is None:
        raise HTTPException(status_code=404, detail=f"Cell '{cell_id}' not found")
    return cell


__all__ = ["get_notebook_dependency", "get_cell_or_404"]
