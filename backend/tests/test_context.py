"""Tests for CellOutputContext: element messages, scrolling and dispatch."""
import pytest
from esbook.kernel import HandlerError, OutputValue
from esbook.output import CellOutputContext, Element, create_output_region, svg_data_uri
from tests.test_utils import MockBroadcaster, create_test_context


@pytest.mark.asyncio
async def test_added_elements_are_announced_on_flush():
    listener = MockBroadcaster()
    ctx = create_test_context("c1", listener)
    element = ctx.create_output_element([30, 20])

    assert listener.messages == []
    await ctx.flush_messages()

    [added] = listener.get_messages_by_type("output_element_added")
    assert added["cellId"] == "c1"
    assert added["elementId"] == element.id
    assert 'width="30"' in added["html"]
    assert "width: 30px" in added["html"]


def test_create_output_element_returns_requested_child():
    ctx = create_test_context()
    canvas = ctx.create_canvas_output_element(40, 30)

    assert canvas.tag == "canvas"
    assert (canvas.width, canvas.height) == (40, 30)
    assert canvas.parent.parent is ctx.output_region


def test_replace_output_element_keeps_id():
    ctx = create_test_context()
    old = Element(tag="span", text="old")
    ctx.append_output(old, {"type": "text", "text": "old"})
    new = Element(tag="span", text="new")

    assert ctx.replace_output_element(old, new) is True
    assert new.id == old.id
    assert ctx.output_region.children == [new]
    # old is no longer in the region
    assert ctx.replace_output_element(old, Element(tag="span")) is False
    assert ctx.replace_output_element(new, new) is False


@pytest.mark.asyncio
async def test_remove_output_element():
    listener = MockBroadcaster()
    ctx = create_test_context("c1", listener)
    element = ctx.create_output_element()

    assert ctx.remove_output_element(element) is True
    assert ctx.remove_output_element(element) is False
    await ctx.flush_messages()
    assert listener.get_messages_by_type("output_element_removed") == [
        {"type": "output_element_removed", "cellId": "c1", "elementId": element.id}
    ]


@pytest.mark.asyncio
async def test_scroll_can_be_suppressed_but_forced():
    listener = MockBroadcaster()
    ctx = create_test_context("c1", listener)
    with ctx.suppress_scroll():
        with ctx.suppress_scroll():
            ctx.scroll_output_into_view()
        assert ctx.scroll_suppressed
        ctx.scroll_output_into_view()
        ctx.scroll_output_into_view(force=True)
    assert not ctx.scroll_suppressed
    ctx.scroll_output_into_view()
    await ctx.flush_messages()

    assert len(listener.get_messages_by_type("output_scroll")) == 2


@pytest.mark.asyncio
async def test_input_selection_message():
    listener = MockBroadcaster()
    ctx = create_test_context("c1", listener)
    ctx.set_input_selection((3, 7))
    await ctx.flush_messages()

    assert listener.messages == [{"type": "input_selection", "cellId": "c1", "line": 3, "column": 7}]


def test_generic_graphics_data_requires_string_uri():
    ctx = create_test_context()
    with pytest.raises(HandlerError, match="image_uri"):
        ctx.create_generic_graphics_output_data("chart", None)

    datum = ctx.create_generic_graphics_output_data("chart", "data:x", image_format="image/png")
    assert datum == {"type": "chart", "image_format": "image/png", "image_uri": "data:x"}
    assert ctx.output_data == [datum]


def test_svg_data_uri_encodes_like_uri_components():
    assert svg_data_uri('<svg a="1"/>') == "data:image/svg+xml;utf8,%3Csvg%20a%3D%221%22%2F%3E"


@pytest.mark.asyncio
async def test_unknown_type_is_reported_through_error_handler():
    listener = MockBroadcaster()
    ctx = create_test_context("c1", listener)
    await ctx.output_handler_update_notebook("hologram", OutputValue.graphics_value("hologram", []))

    assert ctx.output_data[0]["type"] == "error"
    assert "unknown output type: hologram" in ctx.output_data[0]["message"]
    assert listener.get_messages_by_type("output_element_added")


@pytest.mark.asyncio
async def test_messages_are_flushed_even_when_a_handler_fails():
    listener = MockBroadcaster()
    ctx = create_test_context("c1", listener)
    with pytest.raises(HandlerError):
        # the canvas element is added before the chart type is rejected
        await ctx.output_handler_update_notebook("chart", OutputValue.graphics_value("chart", [[10, 10], {"type": "nope"}]))

    assert listener.get_messages_by_type("output_element_added")


def test_context_defaults():
    ctx = CellOutputContext("c1")
    assert ctx.output_data == []
    assert ctx.output_region.tag == create_output_region().tag
