"""Ready-made sinks.

``BufferSink``
    An in-memory text buffer with a cursor and undo groups. Each
    ``begin_insertion`` opens a new undo group; ``continue_insertion`` joins
    the current one, so ``undo()`` removes a whole streamed answer at once.

``StreamSink``
    Writes straight to a text stream (``sys.stdout`` by default) and flushes
    after every write, which is what the CLI uses.
"""

import sys
from typing import TextIO


class BufferSink:
    """Editable text with insertion-at-cursor and grouped undo."""

    __slots__ = ("_groups", "calls", "cursor", "text")

    def __init__(self, text: str = "", *, cursor: int | None = None) -> None:
        self.text = text
        self.cursor = len(text) if cursor is None else cursor
        self.calls: list[tuple[str, str]] = []
        self._groups: list[list[tuple[int, str]]] = []

    def _insert(self, text: str) -> None:
        self.text = self.text[: self.cursor] + text + self.text[self.cursor :]
        self._groups[-1].append((self.cursor, text))
        self.cursor += len(text)

    def begin_insertion(self, text: str) -> None:
        self.calls.append(("begin", text))
        self._groups.append([])
        self._insert(text)

    def continue_insertion(self, text: str) -> None:
        self.calls.append(("continue", text))
        if not self._groups:
            self._groups.append([])
        self._insert(text)

    @property
    def undo_depth(self) -> int:
        return len(self._groups)

    def undo(self) -> bool:
        """Revert the most recent undo group. Returns ``False`` if none."""
        if not self._groups:
            return False
        for position, inserted in reversed(self._groups.pop()):
            self.text = self.text[:position] + self.text[position + len(inserted) :]
            self.cursor = position
        return True


class StreamSink:
    """Append fragments to a text stream as they arrive."""

    __slots__ = ("stream",)

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def begin_insertion(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def continue_insertion(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()
