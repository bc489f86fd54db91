"""Tests for wren.sinks — buffer insertion, undo groups, stream output."""

import io

from wren.sinks import BufferSink, StreamSink


class TestBufferSink:
    def test_inserts_at_cursor(self) -> None:
        sink = BufferSink("ab", cursor=1)
        sink.begin_insertion("X")
        sink.continue_insertion("Y")
        assert sink.text == "aXYb"
        assert sink.cursor == 3

    def test_cursor_defaults_to_end(self) -> None:
        sink = BufferSink("abc")
        assert sink.cursor == 3

    def test_each_begin_opens_undo_group(self) -> None:
        sink = BufferSink()
        sink.begin_insertion("one")
        sink.continue_insertion(" more")
        sink.begin_insertion("|two")
        assert sink.undo_depth == 2
        sink.undo()
        assert sink.text == "one more"
        sink.undo()
        assert sink.text == ""
        assert sink.undo() is False

    def test_continue_without_begin_still_undoable(self) -> None:
        sink = BufferSink("x")
        sink.continue_insertion("y")
        assert sink.undo() is True
        assert sink.text == "x"

    def test_records_calls(self) -> None:
        sink = BufferSink()
        sink.begin_insertion("a")
        sink.continue_insertion("b")
        assert sink.calls == [("begin", "a"), ("continue", "b")]


class TestStreamSink:
    def test_writes_through(self) -> None:
        out = io.StringIO()
        sink = StreamSink(out)
        sink.begin_insertion("\nHe")
        sink.continue_insertion("llo")
        assert out.getvalue() == "\nHello"
