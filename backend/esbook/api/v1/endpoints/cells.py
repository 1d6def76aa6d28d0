from fastapi import APIRouter, HTTPException, Depends
from esbook.models import Notebook
from esbook.schemas import CreateCellRequest, UpdateCellRequest, CreateCellResponse, RunCellResponse
from esbook.services import locked_create_cell, locked_update_cell, locked_delete_cell, evaluate_cell, stop_cell
from esbook.websocket import broadcaster
from esbook.api.deps import get_notebook_dependency, get_cell_or_404

router = APIRouter()


@router.post("/notebooks/{notebook_id}/cells", response_model=CreateCellResponse)
async def create_cell(
    request_body: CreateCellRequest,
    notebook: Notebook = Depends(get_notebook_dependency)
):
    """Create a new cell"""
    # Determine insertion index
    index = None
    if request_body.after_cell_id:
        for i, cell in enumerate(notebook.cells):
            if cell.id == request_body.after_cell_id:
                index = i + 1  # Insert after this cell
                break
        if index is None:
            raise HTTPException(status_code=404, detail=f"Cell '{request_body.after_cell_id}' not found")

    try:
        new_cell = await locked_create_cell(notebook, request_body.input, index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CreateCellResponse(cell_id=new_cell.id)


@router.put("/notebooks/{notebook_id}/cells/{cell_id}")
async def update_cell(
    cell_id: str,
    request_body: UpdateCellRequest,
    notebook: Notebook = Depends(get_notebook_dependency)
):
    """Update cell input"""
    get_cell_or_404(notebook, cell_id)
    try:
        await locked_update_cell(
            notebook,
            cell_id,
            request_body.input,
            expected_revision=request_body.expected_revision
        )
    except ValueError as e:
        if "Revision conflict" in str(e):
            raise HTTPException(status_code=409, detail=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok", "revision": notebook.revision}


@router.delete("/notebooks/{notebook_id}/cells/{cell_id}")
async def delete_cell(
    cell_id: str,
    notebook: Notebook = Depends(get_notebook_dependency)
):
    """Delete a cell"""
    get_cell_or_404(notebook, cell_id)
    try:
        await locked_delete_cell(notebook, cell_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok", "revision": notebook.revision}


@router.post("/notebooks/{notebook_id}/cells/{cell_id}/run", response_model=RunCellResponse)
async def run_cell(
    cell_id: str,
    notebook: Notebook = Depends(get_notebook_dependency)
):
    """Evaluate a cell and wait for it to finish"""
    cell = get_cell_or_404(notebook, cell_id)
    state = await evaluate_cell(notebook, cell_id, listener=broadcaster.listener(notebook.id))
    return RunCellResponse(cell_id=cell_id, state=state.value if state else None, status=cell.status)


@router.post("/notebooks/{notebook_id}/cells/{cell_id}/stop")
async def stop_cell_endpoint(
    cell_id: str,
    notebook: Notebook = Depends(get_notebook_dependency)
):
    """Stop a running cell"""
    get_cell_or_404(notebook, cell_id)
    stopped = await stop_cell(notebook, cell_id, listener=broadcaster.listener(notebook.id))
    return {"status": "ok", "stopped": stopped}
