"""
The output context handed to handlers (and to cell code as ``output_context``).

A CellOutputContext is bound to one run of one cell: the output data list and
output region it writes to are the ones current when it was created, so a
context left over from an earlier run cannot touch a newer run's output.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Sequence, Tuple
from urllib.parse import quote

from esbook.kernel import HandlerError, OutputValue, UnknownOutputTypeError

from .elements import CanvasElement, Element, create_output_region
from .handlers import output_handlers

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], Awaitable[None]]

CANVAS_IMAGE_FORMAT = "image/png"
CANVAS_IMAGE_FORMAT_QUALITY = 1.0
SVG_IMAGE_FORMAT = "image/svg+xml"

# characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def svg_data_uri(svg: str) -> str:
    return f"data:{SVG_IMAGE_FORMAT};utf8," + quote(svg, safe=_URI_COMPONENT_SAFE)


class OutputContext(ABC):
    """What an output handler may do to a cell's output."""

    @abstractmethod
    def create_output_element(self, size_config: Optional[Sequence[float]] = None, child_tag: Optional[str] = None) -> Element:
        ...

    @abstractmethod
    def create_canvas_output_element(self, width: int, height: int) -> CanvasElement:
        ...

    @abstractmethod
    def scroll_output_into_view(self, force: bool = False) -> None:
        ...

    @abstractmethod
    def set_input_selection(self, line_col: Tuple[int, int]) -> None:
        ...

    @abstractmethod
    def replace_output_element(self, old: Element, new: Element) -> bool:
        ...

    @abstractmethod
    def remove_output_element(self, element: Element) -> bool:
        ...

    @abstractmethod
    def append_output(self, element: Element, datum: dict, leave_scroll_position_alone: bool = False) -> dict:
        ...

    @abstractmethod
    def create_generic_graphics_output_data(self, type: str, image_uri: Any, leave_scroll_position_alone: bool = False, **props) -> dict:
        ...

    @abstractmethod
    async def output_handler_update_notebook(self, type: str, value: Any) -> None:
        ...

    def create_canvas_output_data(self, type: str, canvas: CanvasElement, leave_scroll_position_alone: bool = False) -> dict:
        """Persist a PNG snapshot of ``canvas`` as a graphics datum."""
        return self.create_generic_graphics_output_data(
            type,
            canvas.to_data_url(CANVAS_IMAGE_FORMAT, CANVAS_IMAGE_FORMAT_QUALITY),
            leave_scroll_position_alone,
            image_format=CANVAS_IMAGE_FORMAT,
            image_format_quality=CANVAS_IMAGE_FORMAT_QUALITY,
        )

    def create_svg_output_data(self, type: str, svg: str, width: float, height: float, leave_scroll_position_alone: bool = False) -> dict:
        """
        Persist ``svg`` as a utf8 data URI. The size is stored alongside since
        an SVG data URI, unlike a PNG, does not reliably carry its own.
        """
        return self.create_generic_graphics_output_data(
            type,
            svg_data_uri(svg),
            leave_scroll_position_alone,
            width=width,
            height=height,
            image_format=SVG_IMAGE_FORMAT,
        )


class CellOutputContext(OutputContext):
    """
    Output context for one cell run.

    Element changes are queued as messages and sent to ``listener`` by
    ``flush_messages()``, which runs after every handler. Markup is rendered
    at send time, so a canvas drawn after it was added is sent drawn.
    """

    def __init__(
        self,
        cell_id: str,
        output_data: Optional[List[dict]] = None,
        output_region: Optional[Element] = None,
        listener: Optional[Listener] = None,
    ):
        self.cell_id = cell_id
        self.output_data = output_data if output_data is not None else []
        self.output_region = output_region if output_region is not None else create_output_region()
        self.listener = listener
        self._suppress_depth = 0
        self._pending: List[Tuple[str, Any]] = []

    # --- scrolling and selection ---

    @property
    def scroll_suppressed(self) -> bool:
        return self._suppress_depth > 0

    @contextmanager
    def suppress_scroll(self) -> Iterator["CellOutputContext"]:
        self._suppress_depth += 1
        try:
            yield self
        finally:
            self._suppress_depth -= 1

    def scroll_output_into_view(self, force: bool = False) -> None:
        if self.scroll_suppressed and not force:
            return
        self._pending.append(("output_scroll", None))

    def set_input_selection(self, line_col: Tuple[int, int]) -> None:
        self._pending.append(("input_selection", tuple(line_col)))

    # --- elements ---

    def _add_to_region(self, element: Element) -> Element:
        self.output_region.append_child(element)
        self._pending.append(("output_element_added", element))
        return element

    def create_output_element(self, size_config: Optional[Sequence[float]] = None, child_tag: Optional[str] = None) -> Element:
        """
        Append a ``div`` to the output region and return it, or return its new
        ``child_tag`` child when one is requested. ``size_config`` sizes both.
        """
        width, height = size_config if size_config else (None, None)
        element = Element(tag="div")
        if width is not None:
            element.attrs["width"] = str(width)
            element.style["width"] = f"{width}px"
        if height is not None:
            element.attrs["height"] = str(height)
            element.style["height"] = f"{height}px"

        child = None
        if child_tag == "canvas":
            child = CanvasElement(width, height)
        elif child_tag:
            child = Element(tag=child_tag)
            if width is not None:
                child.attrs["width"] = str(width)
            if height is not None:
                child.attrs["height"] = str(height)

        self._add_to_region(element)
        if child is not None:
            element.append_child(child)
        return child if child is not None else element

    def create_canvas_output_element(self, width: int, height: int) -> CanvasElement:
        return self.create_output_element([width, height], child_tag="canvas")

    def replace_output_element(self, old: Element, new: Element) -> bool:
        if old is new or old.parent is not self.output_region:
            return False
        new.id = old.id
        self.output_region.replace_child(old, new)
        self._pending.append(("output_element_replaced", new))
        return True

    def remove_output_element(self, element: Element) -> bool:
        if not self.output_region.remove_child(element):
            return False
        self._pending.append(("output_element_removed", element))
        return True

    # --- data ---

    def append_output(self, element: Element, datum: dict, leave_scroll_position_alone: bool = False) -> dict:
        self._add_to_region(element)
        self.output_data.append(datum)
        if not leave_scroll_position_alone:
            self.scroll_output_into_view()
        return datum

    def create_generic_graphics_output_data(self, type: str, image_uri: Any, leave_scroll_position_alone: bool = False, **props) -> dict:
        if not isinstance(image_uri, str):
            raise HandlerError("output_data must have an image_uri property which is a string", output_type=type)
        datum = {"type": type, **props, "image_uri": image_uri}
        self.output_data.append(datum)
        if not leave_scroll_position_alone:
            self.scroll_output_into_view()
        return datum

    # --- dispatch ---

    async def output_handler_update_notebook(self, type: str, value: Any) -> None:
        """
        Hand ``value`` to the handler registered for ``type``. An unknown type
        is reported through the error handler instead of raising.
        """
        try:
            handler = output_handlers.get(type)
            if handler is None:
                logger.warning("cell %s: unknown output type %r", self.cell_id, type)
                await output_handlers["error"].update_notebook(
                    self, OutputValue.error_value(UnknownOutputTypeError(type))
                )
            else:
                await handler.update_notebook(self, value)
        finally:
            await self.flush_messages()

    def render_message(self, kind: str, payload: Any) -> Dict[str, Any]:
        message: Dict[str, Any] = {"type": kind, "cellId": self.cell_id}
        if kind == "output_element_added":
            message["elementId"] = payload.id
            message["html"] = payload.to_html()
        elif kind == "output_element_replaced":
            message["elementId"] = payload.id
            message["html"] = payload.to_html()
        elif kind == "output_element_removed":
            message["elementId"] = payload.id
        elif kind == "input_selection":
            message["line"], message["column"] = payload
        return message

    async def flush_messages(self) -> None:
        pending, self._pending = self._pending, []
        if self.listener is None:
            return
        for kind, payload in pending:
            await self.listener(self.render_message(kind, payload))
