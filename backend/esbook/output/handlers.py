"""
Output handlers.

A handler turns one emitted value into two things: a live element under the
cell's output region, and a persisted datum from which an equivalent static
element can be rebuilt later without re-running anything.

Adding a handler: subclass OutputHandler (or GraphicsOutputHandler), give it
a ``type``, implement ``update_notebook``, add it to ``_HANDLER_CLASSES``,
and add a helper for it in ``esbook.kernel.worker``.
"""
import asyncio
import base64
import numbers
import re
import traceback
import uuid
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Optional, Sequence, Tuple

import plotly.graph_objects as go
import plotly.io as pio
from pydantic import BaseModel, ValidationError

from esbook.core import clean_for_html, escape_unescaped_dollar, settings
from esbook.kernel import EvaluationError, HandlerError, OutputValue, replay
from esbook.models.output import ErrorOutputData, GraphicsOutputData, TextOutputData

from .charts import render_chart
from .elements import Element
from .graphs import render_graph

TEXT_ELEMENT_CLASS = "text-content"
ERROR_ELEMENT_CLASS = "error"
GRAPHICS_ELEMENT_CLASS = "output-graphics"

DEFAULT_CHART_SIZE = (640, 320)

_SVG_ROOT_RE = re.compile(r"<svg\b([^>]*)>(.*)</svg>\s*$", re.DOTALL)
_VIEWBOX_RE = re.compile(r'viewBox="([^"]*)"')


def validate_size_config(size_config: Any) -> None:
    if (
        not isinstance(size_config, (list, tuple))
        or len(size_config) != 2
        or not all(isinstance(v, numbers.Real) and not isinstance(v, bool) for v in size_config)
    ):
        raise HandlerError("size_config must be an array containing two numbers")


def parse_graphics_args(args: Sequence[Any], usage: str) -> Tuple[Optional[list], Any]:
    """
    Split ``(config)`` or ``(size_config, config)``.

    Raises HandlerError(usage) for any other arity, and HandlerError when
    size_config is not two numbers or config is None or a scalar.
    """
    if len(args) < 1 or len(args) > 2:
        raise HandlerError(usage)
    if len(args) == 1:
        size_config, config = None, args[0]
    else:
        size_config, config = args
    if size_config is not None:
        validate_size_config(size_config)
        size_config = list(size_config)
    if config is None or isinstance(config, (str, bytes, numbers.Number)):
        raise HandlerError("config must be a non-null object")
    return size_config, config


def _px(value: float) -> str:
    return f"{int(value)}px" if float(value).is_integer() else f"{value}px"


class OutputHandler:
    """Base class; subclasses set ``type`` and ``data_model``."""

    type: str = ""
    data_model: type = BaseModel

    def __init__(self):
        self.id = str(uuid.uuid4())

    async def update_notebook(self, ctx, value: Any) -> None:
        raise NotImplementedError

    def generate_static_element(self, datum: Mapping) -> Element:
        raise NotImplementedError

    def check_type(self, datum: Any) -> None:
        if not isinstance(datum, Mapping) or datum.get("type") != self.type:
            raise HandlerError(f"output_data type does not match ({self.type})", output_type=self.type)

    def validate_output_data(self, datum: Any) -> dict:
        """Return ``datum`` normalized by the handler's model, or raise HandlerError."""
        self.check_type(datum)
        try:
            model = self.data_model.model_validate(datum)
        except ValidationError as e:
            raise HandlerError(f"invalid {self.type} output_data: {e}", output_type=self.type) from e
        return model.model_dump(exclude_none=True)


class TextOutputHandler(OutputHandler):
    """
    Text is coalesced: when the run's previous datum is also text, the new
    text is appended to it and the last element is replaced in place (same
    id, no scroll) instead of adding another element.
    """

    type = "text"
    data_model = TextOutputData

    async def update_notebook(self, ctx, value: Any) -> None:
        if isinstance(value, str):
            value = OutputValue.text_value(value)
        text = value.text
        if value.is_tex:
            delimiter = "$" if value.inline_tex else "$$"
            text = f"{delimiter}{escape_unescaped_dollar(text)}{delimiter}"

        previous = ctx.output_data[-1] if ctx.output_data else None
        if previous is not None and previous.get("type") == self.type:
            previous["text"] += text
            last = ctx.output_region.last_child
            if last is not None:
                ctx.replace_output_element(last, self.generate_static_element(previous))
            return

        datum = {"type": self.type, "text": text}
        ctx.append_output(self.generate_static_element(datum), datum)

    def generate_static_element(self, datum: Mapping) -> Element:
        self.check_type(datum)
        return Element(
            tag="span",
            classes=[TEXT_ELEMENT_CLASS],
            inner_html=clean_for_html(datum.get("text") or ""),
        )


class ErrorOutputHandler(OutputHandler):
    type = "error"
    data_model = ErrorOutputData

    @staticmethod
    def _error_text(error: Any) -> str:
        if isinstance(error, EvaluationError):
            return error.formatted
        if isinstance(error, BaseException):
            return "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return "" if error is None else str(error)

    async def update_notebook(self, ctx, value: Any) -> None:
        error = value.error if isinstance(value, OutputValue) else value
        datum = {"type": self.type, "message": clean_for_html(self._error_text(error) or "error")}
        ctx.append_output(self.generate_static_element(datum), datum, leave_scroll_position_alone=True)

        line_col = getattr(error, "line_col", None)
        if line_col:
            ctx.set_input_selection(line_col)
        # errors are always brought into view
        ctx.scroll_output_into_view(force=True)

    def generate_static_element(self, datum: Mapping) -> Element:
        self.check_type(datum)
        return Element(tag="pre", classes=[ERROR_ELEMENT_CLASS], text=datum.get("message") or "")


class GraphicsOutputHandler(OutputHandler):
    """Graphics datums carry a rendered image; the static element is an ``img`` of it."""

    data_model = GraphicsOutputData
    usage = ""

    def parse_args(self, value: Any) -> Tuple[Optional[list], Any]:
        args = value.args if isinstance(value, OutputValue) else value
        return parse_graphics_args(args, self.usage)

    @contextmanager
    def discard_on_error(self, ctx, element: Element):
        """Take the region child holding ``element`` back out if drawing into it raises."""
        try:
            yield element
        except Exception:
            container = element
            while container.parent is not None and container.parent is not ctx.output_region:
                container = container.parent
            ctx.remove_output_element(container)
            raise

    def generate_static_element(self, datum: Mapping) -> Element:
        self.check_type(datum)
        element = Element(tag="img", classes=[GRAPHICS_ELEMENT_CLASS])
        if datum.get("width") is not None:
            element.style["width"] = _px(datum["width"])
        if datum.get("height") is not None:
            element.style["height"] = _px(datum["height"])
        element.attrs["src"] = datum["image_uri"]
        element.attrs["alt"] = f"{datum['type']} graphics"
        return element


class ChartOutputHandler(GraphicsOutputHandler):
    """Chart.js-style config: ``{type, data: {labels, datasets}, options}``."""

    type = "chart"
    usage = "usage: chart([size_config], config)"

    async def update_notebook(self, ctx, value: Any) -> None:
        size_config, config = self.parse_args(value)
        if not isinstance(config, Mapping):
            raise HandlerError("config must be a non-null object", output_type=self.type)
        width, height = (int(v) for v in (size_config or DEFAULT_CHART_SIZE))
        try:
            image = render_chart(config, width, height)
        except ValueError as e:
            raise HandlerError(str(e), output_type=self.type) from e
        canvas = ctx.create_canvas_output_element(width, height)
        with self.discard_on_error(ctx, canvas):
            canvas.get_context("2d").drawImage(image, 0, 0)
            ctx.create_canvas_output_data(self.type, canvas)


class DagreOutputHandler(GraphicsOutputHandler):
    """
    Directed graph config:

        {nodes?, edges?, node_options?, node_svg_attr?, edge_options?,
         render_options?: {initial_scale?, left_margin?, height_margin?}}
    """

    type = "dagre"
    usage = "usage: dagre([size_config], config)"

    async def update_notebook(self, ctx, value: Any) -> None:
        size_config, config = self.parse_args(value)
        if not isinstance(config, Mapping):
            raise HandlerError("config must be a non-null object", output_type=self.type)
        try:
            svg, width, height = render_graph(config, size_config)
        except (TypeError, ValueError, IndexError) as e:
            raise HandlerError(f"invalid dagre config: {e}", output_type=self.type) from e

        element = ctx.create_output_element(size_config, child_tag="svg")
        element.classes.append("dagre")
        element.attrs["xmlns"] = "http://www.w3.org/2000/svg"
        element.attrs["width"] = str(width)
        element.attrs["height"] = str(height)
        match = _SVG_ROOT_RE.search(svg)
        if match:
            viewbox = _VIEWBOX_RE.search(match.group(1))
            if viewbox:
                element.attrs["viewBox"] = viewbox.group(1)
            element.inner_html = match.group(2)
        with self.discard_on_error(ctx, element):
            ctx.create_svg_output_data(self.type, svg, width, height)


class ImageDataOutputHandler(GraphicsOutputHandler):
    """Config: ``{x=0, y=0, image_data}`` or a list of them."""

    type = "image_data"
    usage = "usage: image_data([size_config], config)"

    async def update_notebook(self, ctx, value: Any) -> None:
        size_config, config = self.parse_args(value)
        items = list(config) if isinstance(config, (list, tuple)) else [config]
        for item in items:
            if not isinstance(item, Mapping) or item.get("image_data") is None:
                raise HandlerError("each image_data config must have an image_data property", output_type=self.type)

        canvas = ctx.create_output_element(size_config, child_tag="canvas")
        context = canvas.get_context("2d")
        with self.discard_on_error(ctx, canvas):
            for item in items:
                try:
                    context.putImageData(item["image_data"], item.get("x", 0), item.get("y", 0))
                except (TypeError, ValueError) as e:
                    raise HandlerError(f"invalid image_data: {e}", output_type=self.type) from e
            ctx.create_canvas_output_data(self.type, canvas)


class Canvas2dOutputHandler(GraphicsOutputHandler):
    """Config: the instruction list recorded by ``Canvas2dContext``."""

    type = "canvas2d"
    usage = "usage: canvas2d([size_config], config)"

    async def update_notebook(self, ctx, value: Any) -> None:
        size_config, config = self.parse_args(value)
        canvas = ctx.create_output_element(size_config, child_tag="canvas")
        with self.discard_on_error(ctx, canvas):
            replay(config, canvas.get_context("2d"))
            ctx.create_canvas_output_data(self.type, canvas)


class PlotlyOutputHandler(GraphicsOutputHandler):
    """Config: ``{data, layout?, config?, frames?}`` or a ``plotly.graph_objects.Figure``."""

    type = "plotly"
    usage = "usage: plotly([size_config], { data, layout?, config?, frames? })"
    image_format = "image/png"
    image_format_quality = 1.0

    def _figure(self, config: Any) -> go.Figure:
        if isinstance(config, go.Figure):
            return config
        if not isinstance(config, Mapping):
            raise HandlerError("config must be a non-null object", output_type=self.type)
        try:
            return go.Figure(
                data=config.get("data"),
                layout=config.get("layout"),
                frames=config.get("frames"),
            )
        except ValueError as e:
            raise HandlerError(f"invalid plotly config: {e}", output_type=self.type) from e

    async def update_notebook(self, ctx, value: Any) -> None:
        size_config, config = self.parse_args(value)
        width, height = (int(v) for v in (size_config or settings.plotly_default_size))
        figure = self._figure(config)

        element = ctx.create_output_element([width, height], child_tag="div")
        with self.discard_on_error(ctx, element):
            # export runs a headless browser; keep it off the event loop
            png = await asyncio.to_thread(pio.to_image, figure, format="png", width=width, height=height)
            image_uri = f"data:{self.image_format};base64,{base64.b64encode(png).decode('ascii')}"
            element.append_child(Element(tag="img", attrs={"src": image_uri, "alt": f"{self.type} graphics"}))

            ctx.create_generic_graphics_output_data(
                self.type,
                image_uri,
                image_format=self.image_format,
                image_format_quality=self.image_format_quality,
            )


_HANDLER_CLASSES = (
    TextOutputHandler,
    ErrorOutputHandler,
    ChartOutputHandler,
    DagreOutputHandler,
    ImageDataOutputHandler,
    Canvas2dOutputHandler,
    PlotlyOutputHandler,
)

# handler id -> handler
output_handler_id_to_handler = {
    handler.id: handler for handler in (cls() for cls in _HANDLER_CLASSES)
}

# handler type -> handler
output_handlers = {
    handler.type: handler for handler in output_handler_id_to_handler.values()
}
