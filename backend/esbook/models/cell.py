from asyncio import Lock
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:
    from esbook.kernel import EvalWorker
    from esbook.output import Element


class CellStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    STOPPED = "stopped"


@dataclass
class Cell:
    id: str
    input: str = ""
    status: CellStatus = CellStatus.IDLE
    # persisted datums, in emission order
    output: List[dict] = field(default_factory=list)
    output_region: Optional["Element"] = field(default=None, repr=False, compare=False)
    eval_worker: Optional["EvalWorker"] = field(default=None, repr=False, compare=False)
    # guards swapping eval_worker, output and output_region
    _run_lock: Lock = field(default_factory=Lock, init=False, repr=False, compare=False)

    @property
    def is_blank(self) -> bool:
        return not self.input.strip()
