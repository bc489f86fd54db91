"""Stream transports: turn a ``PreparedRequest`` into an ordered line stream.

Two implementations share the ``StreamSession`` contract:

``ProcessTransport``
    Spawns ``curl -sN`` per request with ``anyio.open_process``. The command
    is an argv list (no shell) and the JSON body travels on stdin, so prompt
    text never appears on a command line.

``HttpTransport``
    Streams in-process through ``httpx.AsyncClient``. Useful where spawning
    processes is undesirable or ``curl`` is unavailable.

Both surface each line as soon as it is read; nothing is batched.

Failure model:
    - Anything that prevents the stream from starting raises ``SpawnError``
      (or ``ProviderError`` for an HTTP error status) from ``start()``,
      before any line is produced.
    - curl only learns the HTTP status once the response arrives. When it
      exits non-zero before any ``data:`` line, ``lines()`` raises
      ``ProviderError`` (HTTP status >= 400, with the response body) or
      ``SpawnError`` (no response at all).
    - A non-zero exit after streaming has begun is logged, never raised.
    - ``aclose()`` releases the process or connection on every path.
"""

import contextlib
import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import replace
from typing import Any, NoReturn, Protocol

import anyio
import httpx
from anyio.abc import Process
from anyio.streams.text import TextReceiveStream

from wren.errors import ProviderError, SpawnError
from wren.providers import DATA_PREFIX
from wren.registry import ModelEntry
from wren.request import PreparedRequest

logger = logging.getLogger("wren.transport")

_SECRET_HEADERS = frozenset({"authorization", "x-api-key"})
_MAX_ERROR_LINES = 50


class LineBuffer:
    """Split an incrementally received text stream into lines.

    Holds back the trailing partial line until its newline arrives. A
    ``\\r`` before the newline is dropped.
    """

    __slots__ = ("_pending",)

    def __init__(self) -> None:
        self._pending = ""

    def feed(self, text: str) -> list[str]:
        self._pending += text
        *lines, self._pending = self._pending.split("\n")
        return [line.removesuffix("\r") for line in lines]

    def flush(self) -> list[str]:
        """Return the unterminated remainder, if any."""
        rest, self._pending = self._pending, ""
        return [rest.removesuffix("\r")] if rest else []


class StreamSession(ABC):
    """Raw line stream from one in-flight request.

    Use as an async context manager so the underlying handle is always
    released::

        async with await transport.start(request) as session:
            async for line in session.lines():
                ...
    """

    def __init__(self, request: PreparedRequest) -> None:
        self.request = request
        self._closed = False

    @property
    def model(self) -> ModelEntry:
        return self.request.model

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    @abstractmethod
    def returncode(self) -> int | None:
        """Exit status once the stream has ended, ``None`` while running."""

    @abstractmethod
    def lines(self) -> AsyncIterator[str]:
        """Raw lines in arrival order, without line terminators."""

    @abstractmethod
    async def terminate(self) -> None:
        """Stop the stream early. Pending reads end as if the stream finished."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release the process or connection. Safe to call more than once."""

    async def __aenter__(self) -> "StreamSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class Transport(Protocol):
    """Anything that can start a streaming request."""

    async def start(self, request: PreparedRequest) -> StreamSession: ...


# =============================================================================
# External process (curl)
# =============================================================================


class ProcessSession(StreamSession):
    """A running transport process and its stdout.

    curl reports the HTTP status on stderr (``--write-out``), so an error
    response that arrives before any ``data:`` line can be raised as a
    ``ProviderError`` carrying the provider's own message.
    """

    def __init__(
        self,
        request: PreparedRequest,
        process: Process,
        *,
        kill_timeout: float = 2.0,
    ) -> None:
        super().__init__(request)
        self._process = process
        self._kill_timeout = kill_timeout
        self._streaming = False
        self._terminated = False
        self._preamble: list[str] = []

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    async def lines(self) -> AsyncIterator[str]:
        stdout = self._process.stdout
        if stdout is None:
            return
        buffer = LineBuffer()
        try:
            async for text in TextReceiveStream(stdout, errors="replace"):
                for line in buffer.feed(text):
                    self._observe(line)
                    yield line
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            # Closed underneath us by terminate()/aclose()
            pass
        for line in buffer.flush():
            self._observe(line)
            yield line

        returncode = await self._process.wait()
        if not returncode:
            logger.debug("Transport for %s finished", self.model.id)
        elif self._streaming or self._terminated:
            logger.warning(
                "Transport for %s exited with status %d",
                self.model.id,
                returncode,
            )
        else:
            await self._raise_early_exit(returncode)

    def _observe(self, line: str) -> None:
        if self._streaming:
            return
        if line.startswith(DATA_PREFIX):
            self._streaming = True
        elif len(self._preamble) < _MAX_ERROR_LINES:
            self._preamble.append(line)

    async def _read_status(self) -> int | None:
        stderr = self._process.stderr
        if stderr is None:
            return None
        chunks: list[bytes] = []
        with contextlib.suppress(anyio.ClosedResourceError, anyio.BrokenResourceError):
            async for chunk in stderr:
                chunks.append(chunk)
        raw = b"".join(chunks).decode("ascii", errors="replace").strip()
        return int(raw) if raw.isdigit() else None

    async def _raise_early_exit(self, returncode: int) -> NoReturn:
        status = await self._read_status()
        detail = "\n".join(self._preamble).strip()
        if status is not None and status >= 400:
            raise ProviderError(self.model.provider.name, status, detail)
        msg = f"Transport for {self.model.id} exited with status {returncode} before streaming"
        if detail:
            msg = f"{msg}: {detail}"
        raise SpawnError(msg)

    async def terminate(self) -> None:
        self._terminated = True
        if self._process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                self._process.terminate()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        process = self._process
        with anyio.CancelScope(shield=True):
            if process.returncode is None:
                await self.terminate()
                with anyio.move_on_after(self._kill_timeout):
                    await process.wait()
                if process.returncode is None:
                    logger.warning(
                        "Killing transport pid %d after %.1fs", process.pid, self._kill_timeout
                    )
                    with contextlib.suppress(ProcessLookupError):
                        process.kill()
            await process.aclose()


class ProcessTransport:
    """Run each request through an external ``curl`` process.

    ``curl -sN`` keeps the transfer silent and unbuffered, so every SSE
    line reaches stdout as soon as the network layer delivers it.
    ``--fail-with-body`` makes an HTTP error exit non-zero while keeping the
    error body on stdout, and the status code is written to stderr.
    Requires curl 7.76 or newer.
    """

    __slots__ = ("extra_args", "kill_timeout", "program")

    def __init__(
        self,
        program: str = "curl",
        *,
        extra_args: Sequence[str] = (),
        kill_timeout: float = 2.0,
    ) -> None:
        self.program = program
        self.extra_args = tuple(extra_args)
        self.kill_timeout = kill_timeout

    def build_command(self, request: PreparedRequest) -> list[str]:
        """The argv for one request. The body is read from stdin (``@-``)."""
        command = [self.program, "-sN", "-X", "POST", request.url]
        for name, value in request.headers.items():
            command += ["-H", _header_arg(name, value)]
        command += ["--fail-with-body", "--write-out", "%{stderr}%{http_code}"]
        command += [*self.extra_args, "--data-binary", "@-"]
        return command

    def describe(self, request: PreparedRequest) -> str:
        """Shell rendering of the command with credentials redacted."""
        headers = {
            name: "<redacted>" if name.lower() in _SECRET_HEADERS else value
            for name, value in request.headers.items()
        }
        command = self.build_command(replace(request, headers=headers))
        return f"{shlex.join(command)} <<< {shlex.quote(request.body)}"

    async def start(self, request: PreparedRequest) -> ProcessSession:
        command = self.build_command(request)
        try:
            process = await anyio.open_process(command, stderr=subprocess.PIPE)
        except OSError as exc:
            msg = f"Could not start {self.program!r}: {exc}"
            raise SpawnError(msg) from exc

        session = ProcessSession(request, process, kill_timeout=self.kill_timeout)
        logger.debug("Spawned %s (pid %d) for %s", self.program, process.pid, request.model.id)

        try:
            if process.stdin is not None:
                await process.stdin.send(request.body.encode("utf-8"))
                await process.stdin.aclose()
        except (anyio.BrokenResourceError, anyio.ClosedResourceError, OSError) as exc:
            await session.aclose()
            msg = f"{self.program!r} exited before the request body was sent"
            raise SpawnError(msg) from exc

        return session


def _header_arg(name: str, value: str) -> str:
    if any(c in name or c in value for c in "\r\n") or ":" in name:
        msg = f"Refusing to send malformed header {name!r}"
        raise SpawnError(msg)
    return f"{name}: {value}"


# =============================================================================
# In-process HTTP (httpx)
# =============================================================================


class HttpSession(StreamSession):
    """An open streaming HTTP response."""

    def __init__(
        self,
        request: PreparedRequest,
        client: httpx.AsyncClient,
        response: httpx.Response,
    ) -> None:
        super().__init__(request)
        self._client = client
        self._response = response
        self._returncode: int | None = None

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def returncode(self) -> int | None:
        return self._returncode

    async def lines(self) -> AsyncIterator[str]:
        try:
            async for line in self._response.aiter_lines():
                yield line
        except (httpx.HTTPError, httpx.StreamError) as exc:
            if not self._closed and self._returncode is None:
                logger.warning("Stream for %s ended early: %s", self.model.id, exc)
                self._returncode = 1
            return
        if self._returncode is None:
            self._returncode = 0

    async def terminate(self) -> None:
        if self._returncode is None:
            self._returncode = -1
        await self._response.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        with anyio.CancelScope(shield=True):
            await self._response.aclose()
            await self._client.aclose()


class HttpTransport:
    """Stream requests in-process with ``httpx``."""

    __slots__ = ("_timeout", "_transport")

    def __init__(
        self,
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def start(self, request: PreparedRequest) -> HttpSession:
        client_kwargs: dict[str, Any] = {"timeout": self._timeout}
        if self._transport is not None:
            client_kwargs["transport"] = self._transport
        client = httpx.AsyncClient(**client_kwargs)

        http_request = client.build_request(
            "POST",
            request.url,
            headers=request.headers,
            content=request.body.encode("utf-8"),
        )
        try:
            response = await client.send(http_request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            msg = f"Could not reach {request.url}: {exc}"
            raise SpawnError(msg) from exc

        if response.status_code >= 400:
            detail = (await response.aread()).decode("utf-8", errors="replace")
            await response.aclose()
            await client.aclose()
            raise ProviderError(request.model.provider.name, response.status_code, detail)

        return HttpSession(request, client, response)
