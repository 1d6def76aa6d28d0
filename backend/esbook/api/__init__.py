from .v1 import api_router, NOTEBOOKS

__all__ = ["api_router", "NOTEBOOKS"]
