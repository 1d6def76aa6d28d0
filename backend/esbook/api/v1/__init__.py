from .api import api_router
from .state import NOTEBOOKS

__all__ = ["api_router", "NOTEBOOKS"]
