from fastapi import WebSocket
from typing import Any, Awaitable, Callable, Dict, Set


class WebSocketBroadcaster:
    def __init__(self):
        self.connections: Dict[str, Set[WebSocket]] = {}  # notebook_id -> websockets

    async def connect(self, notebook_id: str, websocket: WebSocket):
        """Add a WebSocket connection"""
        if notebook_id not in self.connections:
            self.connections[notebook_id] = set()
        self.connections[notebook_id].add(websocket)

    async def disconnect(self, notebook_id: str, websocket: WebSocket):
        """Remove a WebSocket connection"""
        if notebook_id in self.connections:
            self.connections[notebook_id].discard(websocket)

    async def broadcast(self, notebook_id: str, message: dict):
        """Send message to all connected clients for this notebook"""
        if notebook_id not in self.connections:
            return

        dead_connections = set()
        for websocket in list(self.connections[notebook_id]):
            try:
                await websocket.send_json(message)
            except Exception:
                dead_connections.add(websocket)

        # Clean up dead connections
        for ws in dead_connections:
            self.connections[notebook_id].discard(ws)

    def listener(self, notebook_id: str) -> Callable[[Dict[str, Any]], Awaitable[None]]:
        """Output listener that forwards cell messages to everyone watching the notebook"""
        async def forward(message: Dict[str, Any]) -> None:
            await self.broadcast(notebook_id, message)
        return forward


# Global broadcaster instance
broadcaster = WebSocketBroadcaster()
