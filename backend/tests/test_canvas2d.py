"""Tests for the Canvas2d recorder and instruction replay."""
import pytest
from esbook.kernel import Canvas2dContext, Canvas2dInstructionError, CANVAS2D_METHODS, replay


class Recorder:
    """Target that logs what replay applies to it."""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        def call(*args):
            self.calls.append((name, list(args)))
        return call


def create_context(size_config=None):
    emitted = []
    ctx = Canvas2dContext(lambda type, args: emitted.append((type, args)), size_config)
    return ctx, emitted


def test_methods_and_setters_are_recorded_in_order():
    ctx, _ = create_context()
    ctx.fillStyle = "red"
    ctx.beginPath()
    ctx.arc(10, 10, 5, 0, 6.28)
    ctx.fill()

    assert ctx.commands == [
        {"setter": True, "field": "fillStyle", "value": "red"},
        {"method": "beginPath", "args": []},
        {"method": "arc", "args": [10, 10, 5, 0, 6.28]},
        {"method": "fill", "args": []},
    ]
    assert ctx.fillStyle == "red"
    assert ctx.lineWidth is None


def test_every_method_is_recordable():
    ctx, _ = create_context()
    for method in CANVAS2D_METHODS:
        getattr(ctx, method)()
    assert [c["method"] for c in ctx.commands] == list(CANVAS2D_METHODS)


def test_unknown_attribute_raises():
    ctx, _ = create_context()
    with pytest.raises(AttributeError):
        ctx.notAMethod()


def test_render_emits_a_snapshot():
    ctx, emitted = create_context([100, 50])
    ctx.fillRect(0, 0, 10, 10)
    ctx.render()
    ctx.strokeRect(0, 0, 5, 5)

    assert emitted == [("canvas2d", [[100, 50], [{"method": "fillRect", "args": [0, 0, 10, 10]}]])]


def test_render_without_size_config():
    ctx, emitted = create_context()
    ctx.render()
    assert emitted == [("canvas2d", [[]])]


def test_replay_applies_instructions_in_order():
    ctx, _ = create_context()
    ctx.lineWidth = 3
    ctx.moveTo(0, 0)
    ctx.lineTo(5, 5)
    target = Recorder()
    replay(ctx.commands, target)

    assert target.calls == [("moveTo", [0, 0]), ("lineTo", [5, 5])]
    assert target.lineWidth == 3


@pytest.mark.parametrize("instruction, fragment", [
    ({"method": "launchRockets", "args": []}, "method: launchRockets"),
    ({"setter": True, "field": "innerHTML", "value": "x"}, "field: innerHTML"),
    ("fillRect", "illegal Canvas2d instruction"),
])
def test_replay_rejects_unknown_instructions(instruction, fragment):
    with pytest.raises(Canvas2dInstructionError) as excinfo:
        replay([instruction], Recorder())
    assert fragment in str(excinfo.value)
    assert excinfo.value.output_type == "canvas2d"


def test_replay_never_reorders_setters_and_methods():
    from esbook.output import RasterCanvas

    ctx, _ = create_context()
    ctx.fillRect(0, 0, 10, 10)
    ctx.fillStyle = "red"
    canvas = RasterCanvas(10, 10)
    replay(ctx.commands, canvas.get_context("2d"))

    # the rect was filled before the style changed
    assert canvas.image.getpixel((5, 5)) == (0, 0, 0, 255)
    assert canvas.get_context("2d").fillStyle == "red"
