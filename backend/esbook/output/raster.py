"""Pillow-backed canvas: the concrete surface graphics handlers draw on."""
import base64
import io
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFont

Color = Tuple[int, int, int, int]
Point = Tuple[float, float]
Matrix = Tuple[float, float, float, float, float, float]

IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
TAU = 2 * math.pi

_RGB_FUNCTION_RE = re.compile(r'^rgba?\(\s*([^)]*)\)$', re.IGNORECASE)
_FONT_SIZE_RE = re.compile(r'(\d+(?:\.\d+)?)px')


# === colors ===

def _color_channel(token: str) -> int:
    if token.endswith('%'):
        return _clamp_byte(float(token[:-1]) * 255 / 100)
    return _clamp_byte(float(token))


def _alpha_channel(token: str) -> int:
    if token.endswith('%'):
        return _clamp_byte(float(token[:-1]) * 255 / 100)
    return _clamp_byte(float(token) * 255)


def _clamp_byte(value: float) -> int:
    return max(0, min(255, int(round(value))))


def parse_color(value: Any) -> Color:
    """
    Parse a CSS color (or an RGB/RGBA tuple) to an RGBA byte tuple.

    Accepts '#rgb', '#rgba', '#rrggbb', '#rrggbbaa', 'rgb(...)',
    'rgba(...)' (alpha 0-1 or percent), 'transparent' and named colors.
    Raises ValueError for anything else.
    """
    if isinstance(value, (tuple, list)):
        if len(value) not in (3, 4):
            raise ValueError(f"invalid color: {value!r}")
        r, g, b = (_clamp_byte(float(c)) for c in value[:3])
        if len(value) == 3:
            return r, g, b, 255
        alpha = value[3]
        return r, g, b, _clamp_byte(alpha * 255 if isinstance(alpha, float) else alpha)

    if not isinstance(value, str):
        raise ValueError(f"invalid color: {value!r}")

    text = value.strip()
    if text.lower() == 'transparent':
        return 0, 0, 0, 0

    match = _RGB_FUNCTION_RE.match(text)
    if match:
        parts = [p for p in re.split(r'[\s,/]+', match.group(1)) if p]
        if len(parts) not in (3, 4):
            raise ValueError(f"invalid color: {value!r}")
        r, g, b = (_color_channel(p) for p in parts[:3])
        a = _alpha_channel(parts[3]) if len(parts) == 4 else 255
        return r, g, b, a

    try:
        rgb = ImageColor.getrgb(text)
    except ValueError as e:
        raise ValueError(f"invalid color: {value!r}") from e
    return rgb if len(rgb) == 4 else (*rgb, 255)


def color_to_mpl(value: Any) -> Tuple[float, float, float, float]:
    """CSS color to the 0-1 RGBA tuple matplotlib expects."""
    return tuple(c / 255 for c in parse_color(value))


# === image data ===

@dataclass
class ImageData:
    """RGBA pixel block, laid out like the browser's ImageData."""
    width: int
    height: int
    data: Optional[bytearray] = None

    def __post_init__(self):
        expected = self.width * self.height * 4
        if self.data is None:
            self.data = bytearray(expected)
        elif len(self.data) != expected:
            raise ValueError(f"image data length {len(self.data)} does not match {self.width}x{self.height}")

    def to_image(self) -> Image.Image:
        return Image.frombytes('RGBA', (self.width, self.height), bytes(self.data))


@dataclass
class TextMetrics:
    width: float


def to_pil_image(source: Any) -> Image.Image:
    """Coerce Pillow images, ImageData, canvases and numpy-like arrays to RGBA."""
    if isinstance(source, Image.Image):
        return source.convert('RGBA')
    if isinstance(source, ImageData):
        return source.to_image()
    if isinstance(source, RasterCanvas):
        return source.image.copy()
    surface = getattr(source, 'surface', None)
    if isinstance(surface, RasterCanvas):
        return surface.image.copy()

    array = np.asarray(source)
    if array.ndim not in (2, 3) or (array.ndim == 3 and array.shape[2] not in (3, 4)):
        raise ValueError(f"unsupported image data shape: {array.shape}")
    if np.issubdtype(array.dtype, np.floating):
        array = np.clip(array, 0.0, 1.0) * 255
    return Image.fromarray(np.ascontiguousarray(array, dtype=np.uint8)).convert('RGBA')


# === canvas ===

class RasterCanvas:
    """A fixed-size RGBA bitmap with a lazily created 2D context."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas size must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.image = Image.new('RGBA', (self.width, self.height), (0, 0, 0, 0))
        self._context: Optional[CanvasRenderingContext2D] = None

    def get_context(self, context_type: str = '2d') -> "CanvasRenderingContext2D":
        if context_type != '2d':
            raise ValueError(f"unsupported context type: {context_type}")
        if self._context is None:
            self._context = CanvasRenderingContext2D(self)
        return self._context

    def to_bytes(self, image_format: str = 'image/png', quality: float = 1.0) -> bytes:
        buf = io.BytesIO()
        if image_format == 'image/jpeg':
            self.image.convert('RGB').save(buf, format='JPEG', quality=max(1, min(100, int(round(quality * 100)))))
        else:
            self.image.save(buf, format='PNG')
        return buf.getvalue()

    def to_data_url(self, image_format: str = 'image/png', quality: float = 1.0) -> str:
        # like the browser, anything but jpeg falls back to png
        if image_format != 'image/jpeg':
            image_format = 'image/png'
        encoded = base64.b64encode(self.to_bytes(image_format, quality)).decode('ascii')
        return f"data:{image_format};base64,{encoded}"


_STYLE_DEFAULTS = {
    'globalAlpha': 1.0,
    'globalCompositeOperation': 'source-over',
    'lineWidth': 1.0,
    'lineCap': 'butt',
    'lineJoin': 'miter',
    'miterLimit': 10.0,
    'lineDashOffset': 0.0,
    'font': '10px sans-serif',
    'textAlign': 'start',
    'textBaseline': 'alphabetic',
    'direction': 'inherit',
    'fillStyle': '#000000',
    'strokeStyle': '#000000',
    'shadowBlur': 0.0,
    'shadowColor': 'rgba(0, 0, 0, 0)',
    'shadowOffsetX': 0.0,
    'shadowOffsetY': 0.0,
    'imageSmoothingEnabled': True,
    'imageSmoothingQuality': 'low',
}
_COLOR_FIELDS = frozenset({'fillStyle', 'strokeStyle', 'shadowColor'})
_NUMBER_FIELDS = frozenset({
    'globalAlpha', 'lineWidth', 'miterLimit', 'lineDashOffset',
    'shadowBlur', 'shadowOffsetX', 'shadowOffsetY',
})

_H_ANCHORS = {'left': 'l', 'center': 'm', 'right': 'r'}
_V_ANCHORS = {'top': 't', 'hanging': 't', 'middle': 'm', 'alphabetic': 's', 'ideographic': 'd', 'bottom': 'd'}


@dataclass
class _DrawingState:
    styles: dict = field(default_factory=lambda: dict(_STYLE_DEFAULTS))
    transform: Matrix = IDENTITY
    line_dash: List[float] = field(default_factory=list)
    clip: Optional[Image.Image] = None

    def copy(self) -> "_DrawingState":
        return _DrawingState(dict(self.styles), self.transform, list(self.line_dash), self.clip)


@dataclass
class _Subpath:
    points: List[Point]
    start: Point
    closed: bool = False


def _multiply(m: Matrix, n: Matrix) -> Matrix:
    a, b, c, d, e, f = m
    na, nb, nc, nd, ne, nf = n
    return (
        a * na + c * nb,
        b * na + d * nb,
        a * nc + c * nd,
        b * nc + d * nd,
        a * ne + c * nf + e,
        b * ne + d * nf + f,
    )


def _sweep(start: float, end: float, counterclockwise: bool) -> float:
    if not counterclockwise:
        if end - start >= TAU:
            return TAU
        return (end - start) % TAU
    if start - end >= TAU:
        return -TAU
    return -((start - end) % TAU)


class CanvasRenderingContext2D:
    """
    Subset of the web canvas 2D context rendered with Pillow.

    Paths are flattened to polylines in device space as they are built;
    fills and strokes are drawn onto a transparent layer that is then
    source-over composited with ``globalAlpha`` and the clip mask applied.
    Shadows and composite operations other than source-over are kept as
    state but not rendered.
    """

    def __init__(self, canvas: RasterCanvas):
        object.__setattr__(self, 'canvas', canvas)
        object.__setattr__(self, '_state', _DrawingState())
        object.__setattr__(self, '_stack', [])
        object.__setattr__(self, '_subpaths', [])
        object.__setattr__(self, '_last_point', None)

    # --- state ---

    def __getattr__(self, name: str) -> Any:
        if name in _STYLE_DEFAULTS:
            return self.__dict__['_state'].styles[name]
        raise AttributeError(f"{type(self).__name__} has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in _STYLE_DEFAULTS:
            object.__setattr__(self, name, value)
            return
        if name in _COLOR_FIELDS:
            parse_color(value)
        elif name in _NUMBER_FIELDS:
            value = float(value)
            if not math.isfinite(value):
                return
            if name == 'globalAlpha' and not 0.0 <= value <= 1.0:
                return
            if name in ('lineWidth', 'miterLimit') and value <= 0:
                return
        self._state.styles[name] = value

    def save(self) -> None:
        self._stack.append(self._state.copy())

    def restore(self) -> None:
        if self._stack:
            self._state = self._stack.pop()

    # --- transforms ---

    def _apply(self, x: float, y: float) -> Point:
        a, b, c, d, e, f = self._state.transform
        return a * x + c * y + e, b * x + d * y + f

    def _scale(self) -> float:
        a, b, c, d, _, _ = self._state.transform
        return math.sqrt(abs(a * d - b * c)) or 1.0

    def translate(self, x, y) -> None:
        self._state.transform = _multiply(self._state.transform, (1, 0, 0, 1, float(x), float(y)))

    def scale(self, x, y) -> None:
        self._state.transform = _multiply(self._state.transform, (float(x), 0, 0, float(y), 0, 0))

    def rotate(self, angle) -> None:
        cos_a, sin_a = math.cos(angle), math.sin(angle)
        self._state.transform = _multiply(self._state.transform, (cos_a, sin_a, -sin_a, cos_a, 0, 0))

    def transform(self, a, b, c, d, e, f) -> None:
        self._state.transform = _multiply(self._state.transform, tuple(float(v) for v in (a, b, c, d, e, f)))

    def setTransform(self, *args) -> None:
        if len(args) == 1 and isinstance(args[0], dict):
            m = args[0]
            args = tuple(m.get(k, default) for k, default in zip('abcdef', IDENTITY))
        if len(args) != 6:
            raise TypeError("setTransform expects six numbers or a matrix mapping")
        self._state.transform = tuple(float(v) for v in args)

    def resetTransform(self) -> None:
        self._state.transform = IDENTITY

    # --- paths ---

    def beginPath(self) -> None:
        self._subpaths = []
        self._last_point = None

    def moveTo(self, x, y) -> None:
        self._subpaths.append(_Subpath([self._apply(x, y)], (x, y)))
        self._last_point = (x, y)

    def lineTo(self, x, y) -> None:
        if not self._subpaths or self._last_point is None:
            self.moveTo(x, y)
            return
        self._subpaths[-1].points.append(self._apply(x, y))
        self._last_point = (x, y)

    def closePath(self) -> None:
        if not self._subpaths:
            return
        current = self._subpaths[-1]
        current.closed = True
        self._subpaths.append(_Subpath([current.points[0]], current.start))
        self._last_point = current.start

    def rect(self, x, y, w, h) -> None:
        self.moveTo(x, y)
        self.lineTo(x + w, y)
        self.lineTo(x + w, y + h)
        self.lineTo(x, y + h)
        self.closePath()

    def _add_arc(self, cx, cy, rx, ry, rotation, start, end, counterclockwise) -> None:
        sweep = _sweep(start, end, counterclockwise)
        steps = max(8, min(720, int(abs(sweep) * max(rx, ry) * self._scale() / 2) + 1))
        cos_r, sin_r = math.cos(rotation), math.sin(rotation)
        for i in range(steps + 1):
            t = start + sweep * i / steps
            ex, ey = rx * math.cos(t), ry * math.sin(t)
            self.lineTo(cx + ex * cos_r - ey * sin_r, cy + ex * sin_r + ey * cos_r)

    def arc(self, x, y, radius, startAngle, endAngle, counterclockwise=False) -> None:
        if radius < 0:
            raise ValueError("arc radius must be non-negative")
        self._add_arc(x, y, radius, radius, 0.0, startAngle, endAngle, counterclockwise)

    def ellipse(self, x, y, radiusX, radiusY, rotation, startAngle, endAngle, counterclockwise=False) -> None:
        if radiusX < 0 or radiusY < 0:
            raise ValueError("ellipse radii must be non-negative")
        self._add_arc(x, y, radiusX, radiusY, rotation, startAngle, endAngle, counterclockwise)

    def arcTo(self, x1, y1, x2, y2, radius) -> None:
        if radius < 0:
            raise ValueError("arcTo radius must be non-negative")
        if self._last_point is None:
            self.moveTo(x1, y1)
            return
        x0, y0 = self._last_point
        v1x, v1y = x0 - x1, y0 - y1
        v2x, v2y = x2 - x1, y2 - y1
        len1, len2 = math.hypot(v1x, v1y), math.hypot(v2x, v2y)
        cross = v1x * v2y - v1y * v2x
        if radius == 0 or len1 == 0 or len2 == 0 or abs(cross) < 1e-9:
            self.lineTo(x1, y1)
            return

        u1x, u1y = v1x / len1, v1y / len1
        u2x, u2y = v2x / len2, v2y / len2
        theta = math.acos(max(-1.0, min(1.0, u1x * u2x + u1y * u2y)))
        tangent = radius / math.tan(theta / 2)
        t1 = (x1 + u1x * tangent, y1 + u1y * tangent)
        t2 = (x1 + u2x * tangent, y1 + u2y * tangent)
        bx, by = u1x + u2x, u1y + u2y
        blen = math.hypot(bx, by)
        center_distance = radius / math.sin(theta / 2)
        cx, cy = x1 + bx / blen * center_distance, y1 + by / blen * center_distance

        a1 = math.atan2(t1[1] - cy, t1[0] - cx)
        a2 = math.atan2(t2[1] - cy, t2[0] - cx)
        delta = (a2 - a1 + math.pi) % TAU - math.pi
        self.lineTo(*t1)
        self._add_arc(cx, cy, radius, radius, 0.0, a1, a1 + delta, delta < 0)

    def bezierCurveTo(self, cp1x, cp1y, cp2x, cp2y, x, y) -> None:
        if self._last_point is None:
            self.moveTo(cp1x, cp1y)
        x0, y0 = self._last_point
        for i in range(1, 25):
            t = i / 24
            mt = 1 - t
            self.lineTo(
                mt ** 3 * x0 + 3 * mt ** 2 * t * cp1x + 3 * mt * t ** 2 * cp2x + t ** 3 * x,
                mt ** 3 * y0 + 3 * mt ** 2 * t * cp1y + 3 * mt * t ** 2 * cp2y + t ** 3 * y,
            )

    def quadraticCurveTo(self, cpx, cpy, x, y) -> None:
        if self._last_point is None:
            self.moveTo(cpx, cpy)
        x0, y0 = self._last_point
        for i in range(1, 17):
            t = i / 16
            mt = 1 - t
            self.lineTo(
                mt ** 2 * x0 + 2 * mt * t * cpx + t ** 2 * x,
                mt ** 2 * y0 + 2 * mt * t * cpy + t ** 2 * y,
            )

    # --- drawing ---

    def _size(self) -> Tuple[int, int]:
        return self.canvas.image.size

    def _polygon_mask(self, polygons: Iterable[Sequence[Point]], fill_rule: str = 'nonzero') -> Image.Image:
        mask = Image.new('L', self._size(), 0)
        for polygon in polygons:
            if len(polygon) < 3:
                continue
            shape = Image.new('L', self._size(), 0)
            ImageDraw.Draw(shape).polygon(list(polygon), fill=255)
            if fill_rule == 'evenodd':
                mask = ImageChops.difference(mask, shape)
            else:
                mask = ImageChops.lighter(mask, shape)
        return mask

    def _composite(self, layer: Image.Image) -> None:
        alpha = layer.getchannel('A')
        global_alpha = self._state.styles['globalAlpha']
        if global_alpha < 1.0:
            alpha = alpha.point(lambda v: int(round(v * global_alpha)))
        if self._state.clip is not None:
            alpha = ImageChops.multiply(alpha, self._state.clip)
        layer.putalpha(alpha)
        self.canvas.image.alpha_composite(layer)

    def _fill_mask(self, mask: Image.Image, style: Any) -> None:
        color = parse_color(style)
        layer = Image.new('RGBA', self._size(), color[:3] + (255,))
        layer.putalpha(ImageChops.multiply(mask, Image.new('L', self._size(), color[3])))
        self._composite(layer)

    def _dash(self, polyline: List[Point]) -> List[List[Point]]:
        pattern = [v * self._scale() for v in self._state.line_dash]
        if not pattern or sum(pattern) <= 0:
            return [polyline]
        segments: List[List[Point]] = []
        index, remaining = 0, pattern[0]
        offset = self._state.styles['lineDashOffset'] * self._scale() % sum(pattern)
        while offset > 0:
            step = min(offset, remaining)
            offset -= step
            remaining -= step
            if remaining <= 0:
                index = (index + 1) % len(pattern)
                remaining = pattern[index]
        current: List[Point] = [polyline[0]] if index % 2 == 0 else []
        for (ax, ay), (bx, by) in zip(polyline, polyline[1:]):
            length = math.hypot(bx - ax, by - ay)
            travelled = 0.0
            while length - travelled > remaining:
                travelled += remaining
                point = (ax + (bx - ax) * travelled / length, ay + (by - ay) * travelled / length)
                if index % 2 == 0:
                    current.append(point)
                    segments.append(current)
                    current = []
                else:
                    current = [point]
                index = (index + 1) % len(pattern)
                remaining = pattern[index]
            remaining -= length - travelled
            if index % 2 == 0:
                current.append((bx, by))
        if len(current) >= 2:
            segments.append(current)
        return segments

    def _stroke_polylines(self, polylines: Iterable[List[Point]]) -> None:
        color = parse_color(self.strokeStyle)
        width = max(1, int(round(self.lineWidth * self._scale())))
        joint = 'curve' if self.lineJoin == 'round' else None
        layer = Image.new('RGBA', self._size(), (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        for polyline in polylines:
            if len(polyline) < 2:
                continue
            for piece in self._dash(polyline):
                draw.line(piece, fill=color, width=width, joint=joint)
                if self.lineCap == 'round' and width > 2:
                    r = width / 2
                    for x, y in (piece[0], piece[-1]):
                        draw.ellipse((x - r, y - r, x + r, y + r), fill=color)
        self._composite(layer)

    def _rect_points(self, x, y, w, h) -> List[Point]:
        return [self._apply(x, y), self._apply(x + w, y), self._apply(x + w, y + h), self._apply(x, y + h)]

    def fill(self, fillRule: str = 'nonzero') -> None:
        self._fill_mask(self._polygon_mask((sp.points for sp in self._subpaths), fillRule), self.fillStyle)

    def stroke(self) -> None:
        self._stroke_polylines(
            sp.points + [sp.points[0]] if sp.closed else sp.points
            for sp in self._subpaths
        )

    def clip(self, fillRule: str = 'nonzero') -> None:
        mask = self._polygon_mask((sp.points for sp in self._subpaths), fillRule)
        if self._state.clip is not None:
            mask = ImageChops.multiply(mask, self._state.clip)
        self._state.clip = mask

    def fillRect(self, x, y, w, h) -> None:
        self._fill_mask(self._polygon_mask([self._rect_points(x, y, w, h)]), self.fillStyle)

    def strokeRect(self, x, y, w, h) -> None:
        points = self._rect_points(x, y, w, h)
        self._stroke_polylines([points + [points[0]]])

    def clearRect(self, x, y, w, h) -> None:
        mask = self._polygon_mask([self._rect_points(x, y, w, h)])
        if self._state.clip is not None:
            mask = ImageChops.multiply(mask, self._state.clip)
        self.canvas.image.paste((0, 0, 0, 0), (0, 0, *self._size()), mask)

    def setLineDash(self, segments) -> None:
        values = [float(v) for v in segments]
        if any(v < 0 or not math.isfinite(v) for v in values):
            return
        if len(values) % 2:
            values = values * 2
        self._state.line_dash = values

    # --- text ---

    def _font(self) -> ImageFont.FreeTypeFont:
        match = _FONT_SIZE_RE.search(str(self.font))
        size = float(match.group(1)) if match else 10.0
        return ImageFont.load_default(size=max(1.0, size * self._scale()))

    def _anchor(self) -> str:
        align = self.textAlign
        rtl = self.direction == 'rtl'
        if align == 'start':
            align = 'right' if rtl else 'left'
        elif align == 'end':
            align = 'left' if rtl else 'right'
        return _H_ANCHORS.get(align, 'l') + _V_ANCHORS.get(self.textBaseline, 's')

    def _draw_text(self, text, x, y, stroke: bool) -> None:
        layer = Image.new('RGBA', self._size(), (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        if stroke:
            color = parse_color(self.strokeStyle)
            draw.text(self._apply(x, y), str(text), font=self._font(), anchor=self._anchor(),
                      fill=(0, 0, 0, 0), stroke_width=max(1, int(round(self.lineWidth))), stroke_fill=color)
        else:
            draw.text(self._apply(x, y), str(text), font=self._font(), anchor=self._anchor(),
                      fill=parse_color(self.fillStyle))
        self._composite(layer)

    def fillText(self, text, x, y, maxWidth=None) -> None:
        self._draw_text(text, x, y, stroke=False)

    def strokeText(self, text, x, y, maxWidth=None) -> None:
        self._draw_text(text, x, y, stroke=True)

    def measureText(self, text) -> TextMetrics:
        return TextMetrics(width=self._font().getlength(str(text)) / self._scale())

    # --- images ---

    def drawImage(self, image, *args) -> None:
        source = to_pil_image(image)
        if len(args) == 2:
            dx, dy = args
            sx, sy, sw, sh = 0, 0, source.width, source.height
            dw, dh = sw, sh
        elif len(args) == 4:
            dx, dy, dw, dh = args
            sx, sy, sw, sh = 0, 0, source.width, source.height
        elif len(args) == 8:
            sx, sy, sw, sh, dx, dy, dw, dh = args
        else:
            raise TypeError("drawImage expects 3, 5 or 9 arguments")

        if sw <= 0 or sh <= 0 or dw <= 0 or dh <= 0:
            return
        region = source.crop((int(sx), int(sy), int(sx + sw), int(sy + sh)))
        resample = Image.Resampling.BILINEAR if self.imageSmoothingEnabled else Image.Resampling.NEAREST
        if (region.width, region.height) != (int(round(dw)), int(round(dh))):
            region = region.resize((max(1, int(round(dw))), max(1, int(round(dh)))), resample=resample)

        # inverse of the current transform, then shift into the region's frame
        a, b, c, d, e, f = self._state.transform
        det = a * d - b * c
        if det == 0:
            return
        data = (
            d / det, -c / det, (c * f - d * e) / det - dx,
            -b / det, a / det, (b * e - a * f) / det - dy,
        )
        layer = region.transform(self._size(), Image.Transform.AFFINE, data, resample=resample)
        self._composite(layer)

    def createImageData(self, width, height=None) -> ImageData:
        if isinstance(width, ImageData):
            return ImageData(width.width, width.height)
        if height is None:
            raise TypeError("createImageData expects (width, height) or an ImageData")
        return ImageData(abs(int(width)), abs(int(height)))

    def putImageData(self, image_data, dx, dy, dirtyX=None, dirtyY=None, dirtyWidth=None, dirtyHeight=None) -> None:
        # ignores transform, alpha and clip, like the browser
        image = to_pil_image(image_data)
        if dirtyX is not None:
            box = (int(dirtyX), int(dirtyY), int(dirtyX + dirtyWidth), int(dirtyY + dirtyHeight))
            self.canvas.image.paste(image.crop(box), (int(dx) + box[0], int(dy) + box[1]))
        else:
            self.canvas.image.paste(image, (int(dx), int(dy)))
