"""Exception taxonomy for evaluation and output handling."""
import traceback
from types import TracebackType
from typing import Optional, Tuple


class EvaluationError(Exception):
    """
    The evaluated expression raised (or failed to compile).

    Attributes:
        line_col: 1-based (line, column) in the cell source, when known.
            Used to move the editor cursor to the failure.
        formatted: traceback text starting at the cell's own frames.
    """

    def __init__(self, message: str, line_col: Optional[Tuple[int, int]] = None, formatted: Optional[str] = None):
        super().__init__(message)
        self.line_col = line_col
        self.formatted = formatted if formatted is not None else message

    @classmethod
    def from_exception(cls, exc: BaseException, filename: str) -> "EvaluationError":
        if isinstance(exc, EvaluationError):
            return exc

        message = "".join(traceback.format_exception_only(type(exc), exc)).strip()

        if isinstance(exc, SyntaxError) and exc.filename == filename:
            line_col = (exc.lineno, exc.offset or 0) if exc.lineno else None
            formatted = "".join(traceback.format_exception_only(type(exc), exc))
        else:
            line_col = None
            for frame in traceback.extract_tb(exc.__traceback__):
                if frame.filename == filename:
                    line_col = (frame.lineno, (getattr(frame, "colno", None) or 0) + 1)
            tb = _trim_traceback(exc.__traceback__, filename)
            formatted = "".join(traceback.format_exception(type(exc), exc, tb))

        error = cls(message, line_col=line_col, formatted=formatted)
        error.__cause__ = exc
        return error


def _trim_traceback(tb: Optional[TracebackType], filename: str) -> Optional[TracebackType]:
    """Drop leading frames that belong to the evaluator rather than the cell."""
    current = tb
    while current is not None:
        if current.tb_frame.f_code.co_filename == filename:
            return current
        current = current.tb_next
    return tb


class HandlerError(Exception):
    """An output handler failed while materializing an event."""

    def __init__(self, message: str, output_type: Optional[str] = None):
        super().__init__(message)
        self.output_type = output_type


class Canvas2dInstructionError(HandlerError):
    """A recorded Canvas2d instruction could not be replayed."""

    def __init__(self, instruction: dict):
        if isinstance(instruction, dict) and instruction.get("setter"):
            message = f"illegal Canvas2d setter instruction: field: {instruction.get('field')}"
        elif isinstance(instruction, dict):
            message = f"illegal Canvas2d method instruction: method: {instruction.get('method')}"
        else:
            message = f"illegal Canvas2d instruction: {instruction!r}"
        super().__init__(message, output_type="canvas2d")
        self.instruction = instruction


class SerializationError(Exception):
    """A value could not be converted to text."""


class UnknownOutputTypeError(Exception):
    """An emitted value names an output type with no registered handler."""

    def __init__(self, output_type: str):
        super().__init__(f"unknown output type: {output_type}")
        self.output_type = output_type


class MaxPendingOutputsExceededError(Exception):
    """A bounded output channel is full."""

    def __init__(self, max_pending: int):
        super().__init__(f"max_pending_outputs exceeded ({max_pending})")
        self.max_pending = max_pending


class InvalidNotebookError(ValueError):
    """Persisted notebook contents failed validation."""
