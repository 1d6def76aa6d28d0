from .cell import Cell, CellStatus
from .notebook import Notebook, KernelState, NB_TYPE, NB_VERSION
from .output import TextOutputData, ErrorOutputData, GraphicsOutputData

__all__ = [
    "Cell", "CellStatus",
    "Notebook", "KernelState", "NB_TYPE", "NB_VERSION",
    "TextOutputData", "ErrorOutputData", "GraphicsOutputData"
]
