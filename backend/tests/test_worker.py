"""Tests for EvalWorker: evaluation, ordered emission, errors and stopping."""
import asyncio
import pytest
from esbook.kernel import EvalWorker, RunState
from esbook.models import KernelState
from tests.test_utils import MockBroadcaster, create_test_context


async def run(expression: str, state: KernelState = None, **kwargs):
    ctx = create_test_context("c1", kwargs.pop("listener", None))
    worker = await EvalWorker.eval(ctx, expression, state or KernelState(), cell_id="c1", **kwargs)
    return worker, ctx


@pytest.mark.asyncio
async def test_result_of_last_expression_is_emitted():
    worker, ctx = await run("x = 20\nx + 22")

    assert worker.state is RunState.COMPLETED
    assert ctx.output_data == [{"type": "text", "text": "42"}]


@pytest.mark.asyncio
async def test_trailing_semicolon_suppresses_result():
    worker, ctx = await run("40 + 2;")

    assert worker.state is RunState.COMPLETED
    assert ctx.output_data == []


@pytest.mark.asyncio
async def test_none_result_is_not_emitted():
    worker, ctx = await run("x = None\nx")
    assert ctx.output_data == []


@pytest.mark.asyncio
async def test_printed_text_is_coalesced_in_order():
    worker, ctx = await run("print('a')\nprintln('b', 'c')\nprint(1, 2, sep='-')\n'end'")

    assert worker.state is RunState.COMPLETED
    assert ctx.output_data == [{"type": "text", "text": "ab c\n1-2end"}]
    # one element, replaced in place as text was added
    assert len(ctx.output_region.children) == 1


@pytest.mark.asyncio
async def test_printf_and_pp():
    worker, ctx = await run("printf('%s-%d', 'a', 1)\nprintf('%(n)s!', {'n': 'x'})\npp({'k': [1]}, None)")

    assert ctx.output_data == [{"type": "text", "text": 'a-1x!{"k": [1]}'}]


@pytest.mark.asyncio
async def test_eval_state_is_self_and_persists_across_runs():
    state = KernelState()
    await run("self.total = 40", state)
    worker, ctx = await run("self.total + 2", state)

    assert ctx.output_data == [{"type": "text", "text": "42"}]


@pytest.mark.asyncio
async def test_helpers_do_not_leak_into_globals():
    state = KernelState()
    await run("print('x')", state)

    for name in ("print", "chart", "flush", "output_context"):
        assert name not in state.globals_dict


@pytest.mark.asyncio
async def test_top_level_await_and_flush():
    worker, ctx = await run(
        "import asyncio\n"
        "print('before')\n"
        "await flush()\n"
        "len(output_context.output_data)"
    )

    assert worker.state is RunState.COMPLETED
    # 'before' was delivered by the time flush() returned
    assert ctx.output_data == [{"type": "text", "text": "before1"}]


@pytest.mark.asyncio
async def test_tex_helper():
    worker, ctx = await run("tex('x^2', inline=True)")

    assert ctx.output_data == [{"type": "text", "text": "$x^2$"}]


@pytest.mark.asyncio
async def test_runtime_error_is_reported_with_position():
    listener = MockBroadcaster()
    worker, ctx = await run("x = 1\ny = x / 0", listener=listener)

    assert worker.state is RunState.ERRORED
    assert len(ctx.output_data) == 1
    datum = ctx.output_data[0]
    assert datum["type"] == "error"
    assert "ZeroDivisionError" in datum["message"]
    assert "cell-c1" in datum["message"]

    selections = listener.get_messages_by_type("input_selection")
    assert selections and selections[0]["line"] == 2
    # errors scroll into view
    assert listener.get_messages_by_type("output_scroll")


@pytest.mark.asyncio
async def test_syntax_error_is_reported():
    worker, ctx = await run("x = (1 +")

    assert worker.state is RunState.ERRORED
    assert "SyntaxError" in ctx.output_data[0]["message"]


@pytest.mark.asyncio
async def test_output_before_error_is_kept_in_order():
    worker, ctx = await run("print('partial')\nraise ValueError('bad <b>value</b>')")

    assert worker.state is RunState.ERRORED
    assert [d["type"] for d in ctx.output_data] == ["text", "error"]
    assert "ValueError" in ctx.output_data[1]["message"]
    assert "<b>" not in ctx.output_data[1]["message"]


@pytest.mark.asyncio
async def test_unknown_graphics_type_is_reported_as_error():
    worker, ctx = await run("graphics('bogus', [1])")

    assert worker.state is RunState.COMPLETED
    assert ctx.output_data[0]["type"] == "error"
    assert "unknown output type: bogus" in ctx.output_data[0]["message"]


@pytest.mark.asyncio
async def test_max_pending_outputs_errors_the_run():
    worker, ctx = await run("for i in range(5):\n    print(i)", max_pending_outputs=2)

    assert worker.state is RunState.ERRORED
    assert ctx.output_data[0] == {"type": "text", "text": "01"}
    assert "max_pending_outputs exceeded" in ctx.output_data[1]["message"]


@pytest.mark.asyncio
async def test_stop_drops_later_output():
    ctx = create_test_context("c1")
    worker = EvalWorker(
        ctx,
        "import asyncio\n"
        "print('before')\n"
        "await flush()\n"
        "await asyncio.sleep(0.05)\n"
        "print('after')\n"
        "is_stopped()",
        KernelState(),
        cell_id="c1",
    )
    task = asyncio.create_task(worker.run())
    while not ctx.output_data:
        await asyncio.sleep(0.001)

    worker.stop()
    assert worker.is_stopped()
    await task

    assert worker.state is RunState.STOPPED
    assert ctx.output_data == [{"type": "text", "text": "before"}]


@pytest.mark.asyncio
async def test_concurrent_workers_keep_separate_output():
    state = KernelState()
    ctx_a = create_test_context("a")
    ctx_b = create_test_context("b")
    code = "import asyncio\nfor i in range(3):\n    print('{0}')\n    await asyncio.sleep(0)"

    await asyncio.gather(
        EvalWorker.eval(ctx_a, code.format("a"), state, cell_id="a"),
        EvalWorker.eval(ctx_b, code.format("b"), state, cell_id="b"),
    )

    assert ctx_a.output_data == [{"type": "text", "text": "aaa"}]
    assert ctx_b.output_data == [{"type": "text", "text": "bbb"}]


@pytest.mark.asyncio
async def test_order_is_kept_across_many_emissions_and_awaits():
    code = (
        "import asyncio\n"
        "for i in range(1000):\n"
        "    println(i)\n"
        "    if i % 7 == 0:\n"
        "        await asyncio.sleep(0)\n"
        "    if i % 250 == 0:\n"
        "        graphics('canvas2d', [[1, 1], []])"
    )
    worker, ctx = await run(code)

    assert worker.state is RunState.COMPLETED
    texts = "".join(d["text"] for d in ctx.output_data if d["type"] == "text")
    assert texts == "".join(f"{i}\n" for i in range(1000))
    # graphics split the text exactly where they were emitted
    assert [d["type"] for d in ctx.output_data][:3] == ["text", "canvas2d", "text"]
    assert ctx.output_data[0]["text"] == "0\n"
