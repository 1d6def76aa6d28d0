"""Recording facade over the 2D drawing-context API."""
from collections.abc import Mapping
from typing import Any, Callable, Iterable, List, Optional, Sequence

from .errors import Canvas2dInstructionError

CANVAS2D_METHODS = (
    'clearRect', 'fillRect', 'strokeRect',
    'fillText', 'strokeText', 'measureText',
    'setLineDash',
    'beginPath', 'closePath', 'moveTo', 'lineTo', 'bezierCurveTo', 'quadraticCurveTo',
    'arc', 'arcTo', 'ellipse', 'rect',
    'fill', 'stroke', 'clip',
    'rotate', 'scale', 'translate', 'transform', 'setTransform', 'resetTransform',
    'drawImage', 'createImageData', 'putImageData',
    'save', 'restore',
)

CANVAS2D_SETTERS = (
    'globalAlpha', 'globalCompositeOperation',
    'lineWidth', 'lineCap', 'lineJoin', 'miterLimit', 'lineDashOffset',
    'font', 'textAlign', 'textBaseline', 'direction',
    'fillStyle', 'strokeStyle',
    'shadowBlur', 'shadowColor', 'shadowOffsetX', 'shadowOffsetY',
    'imageSmoothingEnabled', 'imageSmoothingQuality',
)

_METHOD_SET = frozenset(CANVAS2D_METHODS)
_SETTER_SET = frozenset(CANVAS2D_SETTERS)


class Canvas2dContext:
    """
    Stand-in for a canvas 2D context that records instead of drawing.

    Method calls are kept as ``{"method": name, "args": [...]}`` and property
    assignments as ``{"setter": True, "field": name, "value": v}``, in call
    order. ``render()`` hands a snapshot of the list to the ``canvas2d``
    output handler, which replays it onto a real raster surface.

    Method names follow the web canvas API so drawing code reads the same as
    its JavaScript counterpart.
    """

    def __init__(self, graphics: Callable[[str, Sequence[Any]], None], size_config: Optional[Sequence[float]] = None):
        object.__setattr__(self, '_graphics', graphics)
        object.__setattr__(self, 'size_config', list(size_config) if size_config is not None else None)
        object.__setattr__(self, '_commands', [])
        object.__setattr__(self, '_fields', {})

    @property
    def commands(self) -> List[dict]:
        return [dict(command) for command in self._commands]

    def render(self) -> None:
        commands = self.commands
        if self.size_config is not None:
            self._graphics('canvas2d', [list(self.size_config), commands])
        else:
            self._graphics('canvas2d', [commands])

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _SETTER_SET:
            self._fields[name] = value
            self._commands.append({'setter': True, 'field': name, 'value': value})
        else:
            object.__setattr__(self, name, value)

    def __getattr__(self, name: str) -> Any:
        # only reached for names not found normally
        if name in _SETTER_SET:
            return self.__dict__['_fields'].get(name)
        raise AttributeError(f"{type(self).__name__!s} has no attribute {name!r}")


def _recorder(method: str):
    def record(self, *args):
        self._commands.append({'method': method, 'args': list(args)})
    record.__name__ = method
    record.__qualname__ = f"Canvas2dContext.{method}"
    return record


for _method in CANVAS2D_METHODS:
    setattr(Canvas2dContext, _method, _recorder(_method))
del _method


def replay(commands: Iterable[Any], ctx: Any) -> None:
    """
    Apply recorded instructions to ``ctx`` in recorded order.

    Raises Canvas2dInstructionError naming the first instruction that is
    unknown, malformed or rejected by ``ctx``.
    """
    for command in commands:
        try:
            if not isinstance(command, Mapping):
                raise TypeError("instruction must be a mapping")
            if command.get('setter'):
                field = command['field']
                if field not in _SETTER_SET:
                    raise AttributeError(field)
                setattr(ctx, field, command.get('value'))
            else:
                method = command['method']
                if method not in _METHOD_SET:
                    raise AttributeError(method)
                getattr(ctx, method)(*(command.get('args') or ()))
        except Exception as e:
            raise Canvas2dInstructionError(dict(command) if isinstance(command, Mapping) else command) from e
