"""Minimal element tree for live and reconstructed cell output."""
import html
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .raster import RasterCanvas

VOID_TAGS = frozenset({"img", "br", "hr", "input", "meta", "link"})

OUTPUT_REGION_CLASS = "output"


def generate_element_id() -> str:
    return f"e-{uuid.uuid4().hex}"


@dataclass(eq=False)
class Element:
    """
    One node of a cell's output markup.

    ``text`` is text content (escaped when rendered); ``inner_html`` is
    markup that has already been sanitized or was generated here, and is
    emitted verbatim. At most one of them is used, ahead of children.
    """
    tag: str
    id: str = field(default_factory=generate_element_id)
    attrs: Dict[str, str] = field(default_factory=dict)
    classes: List[str] = field(default_factory=list)
    style: Dict[str, str] = field(default_factory=dict)
    children: List["Element"] = field(default_factory=list)
    text: Optional[str] = None
    inner_html: Optional[str] = None
    parent: Optional["Element"] = field(default=None, repr=False)

    @property
    def last_child(self) -> Optional["Element"]:
        return self.children[-1] if self.children else None

    def append_child(self, child: "Element") -> "Element":
        child.parent = self
        self.children.append(child)
        return child

    def replace_child(self, old: "Element", new: "Element") -> bool:
        for i, child in enumerate(self.children):
            if child is old:
                new.parent = self
                old.parent = None
                self.children[i] = new
                return True
        return False

    def remove_child(self, child: "Element") -> bool:
        for i, existing in enumerate(self.children):
            if existing is child:
                del self.children[i]
                child.parent = None
                return True
        return False

    def style_string(self) -> str:
        return "; ".join(f"{name}: {value}" for name, value in self.style.items())

    def render_attrs(self) -> str:
        attrs = {"id": self.id}
        if self.classes:
            attrs["class"] = " ".join(self.classes)
        attrs.update(self.attrs)
        if self.style:
            attrs["style"] = self.style_string()
        return "".join(f' {name}="{html.escape(str(value), quote=True)}"' for name, value in attrs.items())

    def to_html(self) -> str:
        open_tag = f"<{self.tag}{self.render_attrs()}>"
        if self.tag in VOID_TAGS:
            return open_tag
        if self.inner_html is not None:
            content = self.inner_html
        elif self.text is not None:
            content = html.escape(self.text, quote=False)
        else:
            content = "".join(child.to_html() for child in self.children)
        return f"{open_tag}{content}</{self.tag}>"


class CanvasElement(Element):
    """A ``canvas`` element backed by a Pillow raster surface."""

    DEFAULT_WIDTH = 300
    DEFAULT_HEIGHT = 150

    def __init__(self, width: Optional[int] = None, height: Optional[int] = None, **kwargs):
        super().__init__(tag="canvas", **kwargs)
        self.surface = RasterCanvas(
            int(width) if width is not None else self.DEFAULT_WIDTH,
            int(height) if height is not None else self.DEFAULT_HEIGHT,
        )
        self.attrs["width"] = str(self.surface.width)
        self.attrs["height"] = str(self.surface.height)

    @property
    def width(self) -> int:
        return self.surface.width

    @property
    def height(self) -> int:
        return self.surface.height

    def get_context(self, context_type: str = "2d"):
        return self.surface.get_context(context_type)

    def to_data_url(self, image_format: str = "image/png", quality: float = 1.0) -> str:
        return self.surface.to_data_url(image_format, quality)

    def to_html(self) -> str:
        # browsers cannot see the server-side surface; ship its pixels
        return f'<img{self.render_attrs()} src="{self.to_data_url()}" alt="canvas">'


def create_output_region() -> Element:
    return Element(tag="div", classes=[OUTPUT_REGION_CLASS])
