"""
Notebook operations with asyncio lock protection.
All structural mutations to notebook state MUST go through the locked_* functions.
"""
import html
import logging
import re
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from esbook.core import settings
from esbook.kernel import EvalWorker, HandlerError, InvalidNotebookError, OutputValue, RunState
from esbook.models import Cell, CellStatus, KernelState, Notebook, NB_TYPE, NB_VERSION
from esbook.output import CellOutputContext, create_output_region, output_handlers
from esbook.storage import save_notebook

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], Awaitable[None]]

MARKDOWN_HEADER = "%"
AUTOEVAL_RE = re.compile(r"#\s*autoeval(\W.*)?$", re.IGNORECASE)

_STATUS_FOR_RUN_STATE = {
    RunState.RUNNING: CellStatus.RUNNING,
    RunState.COMPLETED: CellStatus.SUCCESS,
    RunState.ERRORED: CellStatus.ERROR,
    RunState.STOPPED: CellStatus.STOPPED,
}


def _new_cell(input: str = "", cell_id: Optional[str] = None) -> Cell:
    return Cell(id=cell_id or str(uuid4()), input=input, output_region=create_output_region())


def create_notebook(notebook_id: Optional[str] = None, name: Optional[str] = None) -> Notebook:
    """A new notebook holding one empty cell."""
    return Notebook(id=notebook_id or str(uuid4()), name=name, cells=[_new_cell()])


def _get_cell(notebook: Notebook, cell_id: str) -> Cell:
    cell = notebook.get_cell(cell_id)
    if not cell:
        raise ValueError(f"Cell {cell_id} not found")
    return cell


async def _send_status(listener: Optional[Listener], cell: Cell) -> None:
    if listener is not None:
        await listener({"type": "cell_status", "cellId": cell.id, "status": cell.status.value})


async def _stop_worker(cell: Cell) -> None:
    """Caller holds cell._run_lock."""
    worker = cell.eval_worker
    if worker is None:
        return
    worker.stop()
    # the old drain loop must let go before the output is swapped
    await worker.wait_stopped()
    if cell.eval_worker is worker:
        cell.eval_worker = None


async def _stop_all_workers(notebook: Notebook) -> None:
    for cell in notebook.cells:
        async with cell._run_lock:
            await _stop_worker(cell)


async def stop_notebook(notebook: Notebook) -> None:
    """Stop every running cell of the notebook."""
    await _stop_all_workers(notebook)


# === STRUCTURAL EDITS ===

async def locked_create_cell(
    notebook: Notebook,
    input: str = "",
    index: Optional[int] = None
) -> Cell:
    """Create new cell with concurrency protection."""
    async with notebook._lock:
        new_cell = _new_cell(input)

        # Insert at index or append
        if index is not None and 0 <= index <= len(notebook.cells):
            notebook.cells.insert(index, new_cell)
        else:
            notebook.cells.append(new_cell)

        notebook.revision += 1
        await save_notebook(notebook)
        return new_cell


async def locked_update_cell(
    notebook: Notebook,
    cell_id: str,
    input: str,
    expected_revision: Optional[int] = None
) -> Cell:
    """
    Update cell input with concurrency protection and optimistic locking.

    Raises:
        ValueError: If cell not found or revision conflict
    """
    async with notebook._lock:
        if expected_revision is not None and notebook.revision != expected_revision:
            raise ValueError(
                f"Revision conflict: expected {expected_revision}, got {notebook.revision}"
            )

        cell = _get_cell(notebook, cell_id)
        cell.input = input

        notebook.revision += 1
        await save_notebook(notebook)
        return cell


async def locked_delete_cell(notebook: Notebook, cell_id: str) -> None:
    """Delete cell with concurrency protection. A notebook always keeps at least one cell."""
    async with notebook._lock:
        cell = _get_cell(notebook, cell_id)
        async with cell._run_lock:
            await _stop_worker(cell)

        notebook.cells = [c for c in notebook.cells if c.id != cell_id]
        if not notebook.cells:
            notebook.cells.append(_new_cell())

        notebook.revision += 1
        await save_notebook(notebook)


async def clear_notebook(notebook: Notebook) -> None:
    """Stop every run and start over with one empty cell and fresh eval state."""
    async with notebook._lock:
        await _stop_all_workers(notebook)
        notebook.cells = [_new_cell()]
        notebook.kernel = KernelState()
        notebook.revision += 1
        await save_notebook(notebook)


# === EVALUATION ===

def split_input(input_text: str) -> Tuple[bool, str]:
    """
    Returns (is_markdown, text). An input whose first line starts with '%'
    (after optional whitespace) is markdown; its text is everything after
    that first line.
    """
    first_line, _, rest = input_text.partition("\n")
    if first_line.lstrip().startswith(MARKDOWN_HEADER):
        return True, rest
    return False, input_text


async def evaluate_cell(
    notebook: Notebook,
    cell_id: str,
    listener: Optional[Listener] = None
) -> Optional[RunState]:
    """
    Evaluate one cell into a fresh output list and output region.

    Returns the worker's final state, or None when no worker ran (markdown
    or blank input). ``listener`` receives output context messages and
    cell_status updates.
    """
    cell = _get_cell(notebook, cell_id)
    # overlapping runs of one cell take turns here; each stops the worker
    # the previous one installed
    async with cell._run_lock:
        if notebook.get_cell(cell_id) is not cell:
            raise ValueError(f"Cell {cell_id} not found")
        await _stop_worker(cell)

        cell.output = []
        cell.output_region = create_output_region()
        ctx = CellOutputContext(cell.id, cell.output, cell.output_region, listener)

        is_markdown, text = split_input(cell.input)
        if not text.strip():
            cell.status = CellStatus.IDLE
            await _send_status(listener, cell)
            return None

        if is_markdown:
            await ctx.output_handler_update_notebook("text", OutputValue.text_value(text))
            cell.status = CellStatus.SUCCESS
            await _send_status(listener, cell)
            return None

        worker = EvalWorker(
            ctx,
            text,
            notebook.kernel,
            cell_id=cell.id,
            max_pending_outputs=settings.MAX_PENDING_OUTPUTS,
        )
        cell.eval_worker = worker
        cell.status = CellStatus.RUNNING
        await _send_status(listener, cell)

    await worker.run()
    await ctx.flush_messages()

    # a newer run (or a stop) may have taken over the cell meanwhile
    if cell.eval_worker is worker:
        cell.status = _STATUS_FOR_RUN_STATE[worker.state]
        await _send_status(listener, cell)
    logger.info("cell %s finished: %s", cell.id, worker.state.value)
    return worker.state


async def stop_cell(notebook: Notebook, cell_id: str, listener: Optional[Listener] = None) -> bool:
    """Stop the cell's running worker. Returns False when nothing was running."""
    cell = _get_cell(notebook, cell_id)
    worker = cell.eval_worker
    if worker is None or worker.state is not RunState.RUNNING:
        return False
    worker.stop()
    await worker.wait_stopped()
    cell.status = CellStatus.STOPPED
    await _send_status(listener, cell)
    return True


async def evaluate_notebook(notebook: Notebook, listener: Optional[Listener] = None) -> List[RunState]:
    """
    Evaluate every non-blank cell in order on fresh eval state, stopping at
    the first cell that errors.
    """
    await _stop_all_workers(notebook)
    notebook.kernel = KernelState()

    states: List[RunState] = []
    for cell in list(notebook.cells):
        if cell.is_blank:
            continue
        state = await evaluate_cell(notebook, cell.id, listener)
        if state is None:
            continue
        states.append(state)
        if state is RunState.ERRORED:
            break
    return states


# === CONTENTS ===

def notebook_to_contents(notebook: Notebook) -> dict:
    return {
        "nb_type": NB_TYPE,
        "nb_version": NB_VERSION,
        "id": notebook.id,
        "name": notebook.name,
        "elements": [
            {
                "id": cell.id,
                "input": cell.input,
                "output": [dict(datum) for datum in cell.output],
            }
            for cell in notebook.cells
        ],
    }


def validate_notebook_contents(contents: Any) -> List[dict]:
    """
    Check persisted contents and return the normalized elements.

    Raises:
        InvalidNotebookError: for a wrong type/version, empty or malformed
            elements, duplicate ids, or an unknown or invalid output datum
    """
    if not isinstance(contents, Mapping):
        raise InvalidNotebookError("contents must be an object")
    if contents.get("nb_type") != NB_TYPE or contents.get("nb_version") != NB_VERSION:
        raise InvalidNotebookError(
            f"unexpected nb_type/nb_version: {contents.get('nb_type')!r}/{contents.get('nb_version')!r}"
        )

    elements = contents.get("elements")
    if not isinstance(elements, list) or not elements:
        raise InvalidNotebookError("elements must be a non-empty list")

    seen = set()
    validated = []
    for element in elements:
        if not isinstance(element, Mapping):
            raise InvalidNotebookError("each element must be an object")
        element_id = element.get("id")
        if not isinstance(element_id, str) or not element_id:
            raise InvalidNotebookError("element id must be a non-empty string")
        if element_id in seen:
            raise InvalidNotebookError(f"duplicate element id: {element_id}")
        seen.add(element_id)

        input_text = element.get("input", "")
        if not isinstance(input_text, str):
            raise InvalidNotebookError(f"element {element_id}: input must be a string")
        output = element.get("output", [])
        if not isinstance(output, list):
            raise InvalidNotebookError(f"element {element_id}: output must be a list")

        data = []
        for datum in output:
            handler = output_handlers.get(datum.get("type")) if isinstance(datum, Mapping) else None
            if handler is None:
                raise InvalidNotebookError(f"element {element_id}: unknown output data")
            try:
                data.append(handler.validate_output_data(datum))
            except HandlerError as e:
                raise InvalidNotebookError(f"element {element_id}: {e}") from e
        validated.append({"id": element_id, "input": input_text, "output": data})
    return validated


def _reconstruct_cells(elements: List[dict]) -> List[Cell]:
    cells = []
    for element in elements:
        cell = _new_cell(element["input"], cell_id=element["id"])
        ctx = CellOutputContext(cell.id, cell.output, cell.output_region)
        with ctx.suppress_scroll():
            for datum in element["output"]:
                static_element = output_handlers[datum["type"]].generate_static_element(datum)
                ctx.append_output(static_element, datum)
        cells.append(cell)
    return cells


def should_autoeval(notebook: Notebook) -> bool:
    """True when the first cell's first line is an ``# autoeval`` comment (and not markdown)."""
    if not notebook.cells:
        return False
    first_line = notebook.cells[0].input.split("\n", 1)[0].strip()
    if first_line.startswith(MARKDOWN_HEADER):
        return False
    return bool(AUTOEVAL_RE.match(first_line))


async def autoeval_notebook(notebook: Notebook, listener: Optional[Listener] = None) -> Optional[RunState]:
    if not should_autoeval(notebook):
        return None
    logger.info("autoeval: evaluating first cell of notebook %s", notebook.id)
    return await evaluate_cell(notebook, notebook.cells[0].id, listener)


async def load_notebook_contents(
    notebook_id: str,
    contents: Any,
    listener: Optional[Listener] = None,
    autoeval: Optional[bool] = None
) -> Notebook:
    """Build a notebook from persisted contents. Raises InvalidNotebookError."""
    elements = validate_notebook_contents(contents)
    notebook = Notebook(id=notebook_id, name=contents.get("name"), cells=_reconstruct_cells(elements))
    if settings.AUTOEVAL if autoeval is None else autoeval:
        await autoeval_notebook(notebook, listener)
    return notebook


async def reload_notebook(
    notebook: Notebook,
    contents: Any,
    listener: Optional[Listener] = None,
    autoeval: Optional[bool] = None
) -> Notebook:
    """
    Replace a notebook's cells with persisted contents. Validation and
    reconstruction finish before anything on ``notebook`` changes.
    """
    cells = _reconstruct_cells(validate_notebook_contents(contents))

    async with notebook._lock:
        await _stop_all_workers(notebook)
        notebook.cells = cells
        notebook.kernel = KernelState()
        notebook.name = contents.get("name", notebook.name)
        notebook.revision += 1
        await save_notebook(notebook)

    if settings.AUTOEVAL if autoeval is None else autoeval:
        await autoeval_notebook(notebook, listener)
    return notebook


def render_notebook_html(notebook: Notebook) -> str:
    """Static HTML for every cell, rebuilt from the persisted data alone."""
    parts = []
    for cell in notebook.cells:
        region = create_output_region()
        for datum in cell.output:
            region.append_child(output_handlers[datum["type"]].generate_static_element(datum))
        parts.append(f'<div class="cell" id="{html.escape(cell.id, quote=True)}">{region.to_html()}</div>')
    return "\n".join(parts)
