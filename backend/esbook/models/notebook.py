from dataclasses import dataclass, field
from asyncio import Lock
from typing import Dict, List, Optional
from .cell import Cell

NB_TYPE = "esbook"
NB_VERSION = "1.0.0"


@dataclass
class KernelState:
    globals_dict: Dict[str, object] = field(default_factory=lambda: {"__builtins__": __builtins__})


@dataclass
class Notebook:
    id: str
    name: Optional[str] = None
    cells: List[Cell] = field(default_factory=list)
    kernel: KernelState = field(default_factory=KernelState)
    revision: int = 0
    _lock: Lock = field(default_factory=Lock, init=False, repr=False, compare=False)

    def get_cell(self, cell_id: str) -> Optional[Cell]:
        return next((c for c in self.cells if c.id == cell_id), None)
