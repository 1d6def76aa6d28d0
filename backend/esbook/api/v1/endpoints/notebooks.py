from typing import Optional
from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import HTMLResponse
from esbook.kernel import InvalidNotebookError
from esbook.models import Notebook
from esbook.schemas import (
    CreateNotebookRequest, CreateNotebookResponse,
    NotebookMetadataResponse, ListNotebooksResponse, RunNotebookResponse,
    NotebookResponse, CellResponse
)
from esbook.services import (
    create_notebook as new_notebook,
    clear_notebook as clear_notebook_cells,
    evaluate_notebook,
    notebook_to_contents,
    reload_notebook,
    render_notebook_html,
    stop_notebook
)
from esbook.storage import save_notebook, delete_notebook as delete_stored_notebook
from esbook.websocket import broadcaster
from esbook.api.deps import get_notebook_dependency
from esbook.api.v1.state import NOTEBOOKS

router = APIRouter()


def notebook_response(notebook: Notebook) -> NotebookResponse:
    return NotebookResponse(
        id=notebook.id,
        name=notebook.name,
        revision=notebook.revision,
        cells=[
            CellResponse(
                id=cell.id,
                input=cell.input,
                status=cell.status,
                output=cell.output,
                html=cell.output_region.to_html() if cell.output_region is not None else ""
            )
            for cell in notebook.cells
        ]
    )


@router.post("/", response_model=CreateNotebookResponse)
async def create_notebook(request_body: Optional[CreateNotebookRequest] = None):
    """Create a new notebook with one empty cell"""
    notebook = new_notebook(name=request_body.name if request_body else None)
    NOTEBOOKS[notebook.id] = notebook
    await save_notebook(notebook)
    return CreateNotebookResponse(notebook_id=notebook.id)


@router.get("/", response_model=ListNotebooksResponse)
async def list_notebooks_endpoint():
    """List all notebooks"""
    return ListNotebooksResponse(notebooks=[
        NotebookMetadataResponse(id=nb.id, name=nb.name or nb.id)
        for nb in NOTEBOOKS.values()
    ])


@router.get("/{notebook_id}", response_model=NotebookResponse)
async def get_notebook(notebook: Notebook = Depends(get_notebook_dependency)):
    """Get a specific notebook"""
    return notebook_response(notebook)


@router.delete("/{notebook_id}")
async def delete_notebook_endpoint(notebook: Notebook = Depends(get_notebook_dependency)):
    """Stop all runs and delete the notebook"""
    await stop_notebook(notebook)
    NOTEBOOKS.pop(notebook.id, None)
    await delete_stored_notebook(notebook.id)
    return {"status": "ok"}


@router.get("/{notebook_id}/contents")
async def get_contents(notebook: Notebook = Depends(get_notebook_dependency)):
    """Persisted contents: {nb_type, nb_version, id, name, elements}"""
    return notebook_to_contents(notebook)


@router.put("/{notebook_id}/contents", response_model=NotebookResponse)
async def put_contents(
    contents: dict = Body(...),
    notebook: Notebook = Depends(get_notebook_dependency)
):
    """Replace the notebook's cells with the given contents"""
    try:
        await reload_notebook(notebook, contents, listener=broadcaster.listener(notebook.id))
    except InvalidNotebookError as e:
        raise HTTPException(status_code=400, detail=f"Invalid notebook contents: {e}")
    return notebook_response(notebook)


@router.post("/{notebook_id}/save")
async def save_notebook_endpoint(notebook: Notebook = Depends(get_notebook_dependency)):
    await save_notebook(notebook)
    return {"status": "ok", "revision": notebook.revision}


@router.post("/{notebook_id}/clear", response_model=NotebookResponse)
async def clear_notebook_endpoint(notebook: Notebook = Depends(get_notebook_dependency)):
    await clear_notebook_cells(notebook)
    return notebook_response(notebook)


@router.post("/{notebook_id}/run", response_model=RunNotebookResponse)
async def run_notebook(notebook: Notebook = Depends(get_notebook_dependency)):
    """Evaluate every non-blank cell in order on fresh eval state"""
    states = await evaluate_notebook(notebook, listener=broadcaster.listener(notebook.id))
    return RunNotebookResponse(states=[state.value for state in states])


@router.get("/{notebook_id}/render", response_class=HTMLResponse)
async def render_notebook(notebook: Notebook = Depends(get_notebook_dependency)):
    """Static HTML of every cell's output"""
    return HTMLResponse(render_notebook_html(notebook))
