"""Fragment relay: deliver decoded fragments to a sink.

The relay turns a sequence of fragments into at most one logical insertion
on the sink, so undoing a streamed answer is a single action:

    first non-empty fragment  ->  sink.begin_insertion(separator + fragment)
    every later fragment      ->  sink.continue_insertion(fragment)
    completion (if any text)  ->  sink.continue_insertion(separator)

Empty fragments are dropped. Errors are forwarded untouched; text already
written stays visible.

A relay belongs to exactly one session and is driven sequentially. When
several sessions target the same sink, ``SinkLocks`` hands out one lock per
sink so their insertions never interleave.
"""

import inspect
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, NoReturn, Protocol

import anyio

logger = logging.getLogger("wren.relay")


class Sink(Protocol):
    """Where fragments are written. Methods may be sync or async."""

    def begin_insertion(self, text: str) -> Any: ...

    def continue_insertion(self, text: str) -> Any: ...


async def _call(method: Any, text: str) -> None:
    result = method(text)
    if inspect.isawaitable(result):
        await result


class FragmentRelay:
    """Per-session fragment delivery policy."""

    __slots__ = ("_chunks", "_delivered", "separator", "sink")

    def __init__(self, sink: Sink, *, separator: str = "\n") -> None:
        self.sink = sink
        self.separator = separator
        self._delivered = False
        self._chunks: list[str] = []

    @property
    def delivered(self) -> bool:
        """Whether at least one non-empty fragment reached the sink."""
        return self._delivered

    @property
    def text(self) -> str:
        """Everything forwarded so far, without separators."""
        return "".join(self._chunks)

    async def on_fragment(self, fragment: str) -> None:
        if not fragment:
            return
        if not self._delivered:
            self._delivered = True
            await _call(self.sink.begin_insertion, self.separator + fragment)
        else:
            await _call(self.sink.continue_insertion, fragment)
        self._chunks.append(fragment)

    async def on_complete(self) -> None:
        if self._delivered and self.separator:
            await _call(self.sink.continue_insertion, self.separator)

    async def on_error(self, cause: BaseException) -> NoReturn:
        logger.debug("Relay aborted after %d fragments: %s", len(self._chunks), cause)
        raise cause


class SinkLocks:
    """One ``anyio.Lock`` per sink, held for a whole session.

    Entries are dropped once no session holds or waits for them.
    """

    __slots__ = ("_locks",)

    def __init__(self) -> None:
        self._locks: dict[int, tuple[anyio.Lock, int]] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, sink: object) -> AsyncIterator[None]:
        key = id(sink)
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = anyio.Lock()
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)
