from .types import GRAPHICS_TYPES, OutputKind, OutputValue, RunState, Tex, TexRenderable
from .errors import (
    EvaluationError, HandlerError, Canvas2dInstructionError, SerializationError,
    UnknownOutputTypeError, MaxPendingOutputsExceededError, InvalidNotebookError
)
from .text import transform_text_result
from .channel import OutputChannel
from .canvas2d import Canvas2dContext, CANVAS2D_METHODS, CANVAS2D_SETTERS, replay
from .worker import EvalWorker, HELPER_NAMES

__all__ = [
    "GRAPHICS_TYPES", "OutputKind", "OutputValue", "RunState", "Tex", "TexRenderable",
    "EvaluationError", "HandlerError", "Canvas2dInstructionError", "SerializationError",
    "UnknownOutputTypeError", "MaxPendingOutputsExceededError", "InvalidNotebookError",
    "transform_text_result",
    "OutputChannel",
    "Canvas2dContext", "CANVAS2D_METHODS", "CANVAS2D_SETTERS", "replay",
    "EvalWorker", "HELPER_NAMES",
]
