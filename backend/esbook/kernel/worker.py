"""Evaluation of one cell expression with ordered output capture."""
import ast
import asyncio
import json
import linecache
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional, Sequence

from .canvas2d import Canvas2dContext
from .channel import OutputChannel
from .errors import EvaluationError
from .text import transform_text_result
from .types import OutputValue, RunState, Tex

logger = logging.getLogger(__name__)

CELL_FUNCTION_NAME = "__esbook_cell__"

# Parameter order of the compiled cell function after ``self``.
HELPER_NAMES = (
    "print", "println", "printf", "pp",
    "graphics", "chart", "dagre", "image_data", "draw_image_data", "plotly",
    "create_canvas2d", "tex", "flush", "is_stopped", "output_context",
)

_WRAPPER_SOURCE = f"async def {CELL_FUNCTION_NAME}(self, {', '.join(HELPER_NAMES)}):\n    pass\n"


class EvalWorker:
    """
    Runs one expression and streams what it emits to an output context.

    The expression is compiled as the body of an ``async def`` whose
    parameters are ``self`` (the notebook's eval state) followed by the
    emission helpers, so nothing is installed on shared globals and
    concurrent runs cannot see each other's helpers. Every emission goes
    through an OutputChannel whose single drain task calls
    ``output_context.output_handler_update_notebook``.

    Use ``await EvalWorker.eval(...)`` or construct and ``await run()``.
    """

    def __init__(
        self,
        output_context,
        expression: str,
        eval_state,
        cell_id: Optional[str] = None,
        max_pending_outputs: int = 0,
    ):
        self.id = str(uuid.uuid4())
        self.output_context = output_context
        self.expression = expression
        self.eval_state = eval_state
        # no angle brackets: error text is sanitized as HTML
        self.filename = f"cell-{cell_id or self.id}"
        self.state = RunState.RUNNING
        self._stopped = False
        self._channel = OutputChannel(
            self._deliver,
            maxsize=max_pending_outputs,
            name=f"EvalWorker {self.filename}",
        )

    @classmethod
    async def eval(cls, output_context, expression: str, eval_state, **kwargs) -> "EvalWorker":
        return await cls(output_context, expression, eval_state, **kwargs).run()

    @property
    def channel(self) -> OutputChannel:
        return self._channel

    def is_stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        """
        Cancel the run. Queued values are discarded and later emissions are
        dropped; a handler already in progress is allowed to finish.
        """
        if self._stopped:
            return
        self._stopped = True
        self._channel.stop()
        if self.state is RunState.RUNNING:
            self.state = RunState.STOPPED

    async def wait_stopped(self) -> None:
        """Wait until the drain loop has let go of the output context."""
        await self._channel.join()

    async def run(self) -> "EvalWorker":
        self._channel.start()
        errored = False
        try:
            result = await self._evaluate()
            if self._emits_result() and result is not None:
                self._emit(transform_text_result(result))
        except asyncio.CancelledError:
            self.stop()
            raise
        except (Exception, SystemExit) as e:
            errored = self._process_error(e)

        self._channel.close()
        await self._channel.join()

        if self.state is RunState.RUNNING:
            self.state = RunState.ERRORED if errored else RunState.COMPLETED
        return self

    # --- evaluation ---

    def _emits_result(self) -> bool:
        return not self.expression.strip().endswith(";")

    def _compile(self) -> Callable[..., Any]:
        source = self.expression
        tree = compile(
            source, self.filename, "exec",
            flags=ast.PyCF_ONLY_AST | ast.PyCF_ALLOW_TOP_LEVEL_AWAIT,
            dont_inherit=True,
        )
        body = tree.body

        if body and self._emits_result() and isinstance(body[-1], ast.Expr):
            last = body[-1]
            body[-1] = ast.copy_location(ast.Return(value=last.value), last)

        wrapper = ast.parse(_WRAPPER_SOURCE, filename=self.filename, mode="exec")
        wrapper.body[0].body = body or [ast.Pass()]
        ast.fix_missing_locations(wrapper)

        code = compile(wrapper, self.filename, "exec")
        # lets tracebacks show the offending source line
        linecache.cache[self.filename] = (len(source), None, source.splitlines(True), self.filename)

        namespace: Dict[str, Any] = {}
        exec(code, self.eval_state.globals_dict, namespace)
        return namespace[CELL_FUNCTION_NAME]

    async def _evaluate(self) -> Any:
        fn = self._compile()
        helpers = self._create_helpers()
        return await fn(self.eval_state, *(helpers[name] for name in HELPER_NAMES))

    def _process_error(self, error: BaseException) -> bool:
        try:
            evaluation_error = EvaluationError.from_exception(error, self.filename)
            return self._emit(OutputValue.error_value(evaluation_error), force=True)
        except Exception:
            logger.exception("%s: unexpected: second-level error occurred", self.filename)
            return False

    # --- output ---

    def _emit(self, value: OutputValue, force: bool = False) -> bool:
        if self._stopped:
            logger.warning("%s: %s output received after EvalWorker already stopped; dropped", self.filename, value.type)
            return False
        return self._channel.push(value, force=force)

    async def _deliver(self, value: OutputValue) -> None:
        await self.output_context.output_handler_update_notebook(value.type, value)

    def _create_helpers(self) -> Dict[str, Any]:
        emit = self._emit

        def _coerce(values: Sequence[Any], sep: str) -> OutputValue:
            if not values:
                return OutputValue.text_value("")
            if len(values) == 1:
                return transform_text_result(values[0])
            return OutputValue.text_value(sep.join(transform_text_result(v).text for v in values))

        def print(*values, sep=" "):
            emit(_coerce(values, sep))

        def println(*values, sep=" "):
            emit(OutputValue.text_value(_coerce(values, sep).text + "\n"))

        def printf(fmt="", *args):
            fmt = str(fmt)
            if len(args) == 1 and isinstance(args[0], Mapping):
                emit(transform_text_result(fmt % args[0]))
            else:
                emit(transform_text_result(fmt % args if args else fmt))

        def pp(thing, indent=4):
            if indent is not None and (isinstance(indent, bool) or not isinstance(indent, int)):
                raise TypeError("indent must be an integer")
            return json.dumps(thing, indent=indent, default=str)

        def graphics(type, args):
            emit(OutputValue.graphics_value(type, args))

        def chart(*args):
            graphics("chart", args)

        def dagre(*args):
            graphics("dagre", args)

        def image_data(*args):
            graphics("image_data", args)

        def plotly(*args):
            graphics("plotly", args)

        def create_canvas2d(size_config=None):
            return Canvas2dContext(graphics, size_config)

        def tex(source, inline=False):
            return Tex(str(source), inline_tex=inline)

        async def flush():
            await self._channel.drained()

        return {
            "print": print,
            "println": println,
            "printf": printf,
            "pp": pp,
            "graphics": graphics,
            "chart": chart,
            "dagre": dagre,
            "image_data": image_data,
            "draw_image_data": image_data,
            "plotly": plotly,
            "create_canvas2d": create_canvas2d,
            "tex": tex,
            "flush": flush,
            "is_stopped": self.is_stopped,
            "output_context": self.output_context,
        }
