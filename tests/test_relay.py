"""Tests for wren.relay — first/subsequent fragment policy and sink locking."""

import anyio
import pytest

from wren.relay import FragmentRelay, SinkLocks
from wren.sinks import BufferSink


class AsyncSink:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    async def begin_insertion(self, text: str) -> None:
        await anyio.sleep(0)
        self.calls.append(("begin", text))

    async def continue_insertion(self, text: str) -> None:
        await anyio.sleep(0)
        self.calls.append(("continue", text))


async def _feed(relay: FragmentRelay, fragments: list[str]) -> None:
    for fragment in fragments:
        await relay.on_fragment(fragment)
    await relay.on_complete()


class TestFragmentRelay:
    @pytest.mark.anyio
    async def test_separator_and_merge_policy(self) -> None:
        sink = BufferSink()
        await _feed(FragmentRelay(sink), ["He", "llo"])
        assert sink.calls == [
            ("begin", "\nHe"),
            ("continue", "llo"),
            ("continue", "\n"),
        ]

    @pytest.mark.anyio
    async def test_empty_fragments_dropped(self) -> None:
        sink = BufferSink()
        await _feed(FragmentRelay(sink), ["", "He", "", "llo", ""])
        assert [text for _, text in sink.calls] == ["\nHe", "llo", "\n"]

    @pytest.mark.anyio
    async def test_leading_empty_fragments_do_not_count_as_first(self) -> None:
        sink = BufferSink()
        relay = FragmentRelay(sink)
        await relay.on_fragment("")
        assert relay.delivered is False
        await relay.on_fragment("x")
        assert sink.calls == [("begin", "\nx")]

    @pytest.mark.anyio
    async def test_nothing_delivered_writes_nothing(self) -> None:
        sink = BufferSink()
        await _feed(FragmentRelay(sink), ["", ""])
        assert sink.calls == []

    @pytest.mark.anyio
    async def test_text_accumulates_without_separators(self) -> None:
        relay = FragmentRelay(BufferSink())
        await _feed(relay, ["a", "b", "c"])
        assert relay.text == "abc"

    @pytest.mark.anyio
    async def test_custom_separator(self) -> None:
        sink = BufferSink()
        await _feed(FragmentRelay(sink, separator=""), ["a", "b"])
        assert sink.calls == [("begin", "a"), ("continue", "b")]

    @pytest.mark.anyio
    async def test_async_sink_methods_awaited(self) -> None:
        sink = AsyncSink()
        await _feed(FragmentRelay(sink), ["x", "y"])
        assert sink.calls == [("begin", "\nx"), ("continue", "y"), ("continue", "\n")]

    @pytest.mark.anyio
    async def test_on_error_reraises_and_keeps_output(self) -> None:
        sink = BufferSink("Q")
        relay = FragmentRelay(sink)
        await relay.on_fragment("partial")
        cause = RuntimeError("stream broke")
        with pytest.raises(RuntimeError, match="stream broke"):
            await relay.on_error(cause)
        assert sink.text == "Q\npartial"

    @pytest.mark.anyio
    async def test_whole_answer_is_one_undo_unit(self) -> None:
        sink = BufferSink("Question")
        await _feed(FragmentRelay(sink), ["An", "sw", "er"])
        assert sink.text == "Question\nAnswer\n"
        assert sink.undo_depth == 1
        assert sink.undo() is True
        assert sink.text == "Question"


class TestSinkLocks:
    @pytest.mark.anyio
    async def test_serializes_same_sink(self) -> None:
        locks = SinkLocks()
        sink = BufferSink()
        order: list[str] = []

        async def session(name: str) -> None:
            async with locks.hold(sink):
                order.append(f"{name}-start")
                await anyio.sleep(0.01)
                order.append(f"{name}-end")

        async with anyio.create_task_group() as tg:
            tg.start_soon(session, "a")
            tg.start_soon(session, "b")

        assert order in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )
        assert len(locks) == 0

    @pytest.mark.anyio
    async def test_disjoint_sinks_run_concurrently(self) -> None:
        locks = SinkLocks()
        first, second = BufferSink(), BufferSink()
        inside = anyio.Event()

        async def hold_first() -> None:
            async with locks.hold(first):
                await inside.wait()

        async with anyio.create_task_group() as tg:
            tg.start_soon(hold_first)
            await anyio.sleep(0)
            with anyio.fail_after(1):
                async with locks.hold(second):
                    inside.set()

        assert len(locks) == 0

    @pytest.mark.anyio
    async def test_released_on_error(self) -> None:
        locks = SinkLocks()
        sink = BufferSink()
        with pytest.raises(ValueError):
            async with locks.hold(sink):
                raise ValueError("boom")
        assert len(locks) == 0
        with anyio.fail_after(1):
            async with locks.hold(sink):
                pass
