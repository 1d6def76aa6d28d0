from .notebooks import router as notebooks_router
from .cells import router as cells_router
from .websocket import router as websocket_router

__all__ = [
    "notebooks_router",
    "cells_router",
    "websocket_router"
]
