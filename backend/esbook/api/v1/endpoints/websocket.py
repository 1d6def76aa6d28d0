import asyncio
import logging
from typing import Set
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from esbook.services import evaluate_cell, evaluate_notebook, stop_cell
from esbook.websocket import broadcaster
from esbook.api.v1.state import NOTEBOOKS

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/notebooks/{notebook_id}")
async def websocket_endpoint(websocket: WebSocket, notebook_id: str):
    await websocket.accept()

    if notebook_id not in NOTEBOOKS:
        await websocket.send_json({
            "type": "error",
            "message": "Notebook not found"
        })
        await websocket.close(code=1008, reason="Notebook not found")
        return

    await broadcaster.connect(notebook_id, websocket)
    listener = broadcaster.listener(notebook_id)
    # runs continue in the background so stop_cell can be received meanwhile
    running: Set[asyncio.Task] = set()

    def start(coro) -> None:
        task = asyncio.create_task(coro)
        running.add(task)
        task.add_done_callback(running.discard)

    try:
        while True:
            message = await websocket.receive_json()
            msg_type = message.get("type")

            # Re-fetch: the notebook may have been deleted meanwhile
            notebook = NOTEBOOKS.get(notebook_id)
            if notebook is None:
                await websocket.send_json({
                    "type": "error",
                    "message": "Notebook not found"
                })
                continue

            if msg_type in ("run_cell", "stop_cell"):
                cell_id = message.get("cellId")
                if not cell_id or notebook.get_cell(cell_id) is None:
                    await websocket.send_json({
                        "type": "error",
                        "message": f"Cell '{cell_id}' not found"
                    })
                    continue
                if msg_type == "run_cell":
                    start(evaluate_cell(notebook, cell_id, listener))
                else:
                    await stop_cell(notebook, cell_id, listener)

            elif msg_type == "run_notebook":
                start(evaluate_notebook(notebook, listener))

            else:
                logger.warning("Unknown websocket message type: %s", msg_type)
                await websocket.send_json({
                    "type": "error",
                    "message": f"Unknown message type: {msg_type}"
                })

    except WebSocketDisconnect:
        await broadcaster.disconnect(notebook_id, websocket)
