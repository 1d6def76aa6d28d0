"""Type definitions for values flowing from evaluation to output handlers."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, Tuple, runtime_checkable

GRAPHICS_TYPES = ("chart", "dagre", "image_data", "canvas2d", "plotly")


class OutputKind(str, Enum):
    TEXT = "text"
    ERROR = "error"
    GRAPHICS = "graphics"


class RunState(str, Enum):
    """Lifecycle of one EvalWorker run."""
    RUNNING = "running"
    COMPLETED = "completed"
    ERRORED = "errored"
    STOPPED = "stopped"


@runtime_checkable
class TexRenderable(Protocol):
    """Anything that can render itself as TeX source."""

    def to_tex(self) -> str:
        ...


@dataclass(frozen=True)
class Tex:
    """A literal TeX fragment; ``print(tex(r"\\frac{1}{2}"))`` typesets it."""
    source: str
    inline_tex: bool = False

    def to_tex(self) -> str:
        return self.source

    def __str__(self) -> str:
        return self.source


@dataclass(frozen=True)
class OutputValue:
    """
    One emission from a running expression, queued on the output channel.

    ``type`` names the handler that will materialize it: "text", "error",
    or one of the graphics sub-kinds.
    """
    type: str
    text: str = ""
    is_tex: bool = False
    inline_tex: bool = False
    args: Tuple[Any, ...] = ()
    error: Optional[BaseException] = None

    @property
    def kind(self) -> OutputKind:
        if self.type == "text":
            return OutputKind.TEXT
        if self.type == "error":
            return OutputKind.ERROR
        return OutputKind.GRAPHICS

    @classmethod
    def text_value(cls, text: str, is_tex: bool = False, inline_tex: bool = False) -> "OutputValue":
        return cls(type="text", text=text, is_tex=is_tex, inline_tex=inline_tex)

    @classmethod
    def error_value(cls, error: BaseException) -> "OutputValue":
        return cls(type="error", error=error)

    @classmethod
    def graphics_value(cls, type: str, args) -> "OutputValue":
        return cls(type=type, args=tuple(args))
