"""Test doubles for transports and sessions, plus SSE line builders."""

import json
import sys
import textwrap

import anyio

from wren.request import PreparedRequest
from wren.transport import ProcessTransport, StreamSession

# Behaves like `curl --fail-with-body` answering 401: error body on stdout,
# status on stderr, exit code 22.
REJECTED_KEY_SCRIPT = textwrap.dedent(
    """
    import sys
    sys.stdin.read()
    print('{"error": {"message": "Incorrect API key"}}', flush=True)
    sys.stderr.write("401")
    sys.exit(22)
    """
)


def openai_line(content: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]})


def anthropic_line(text: str) -> str:
    return "data: " + json.dumps({"type": "content_block_delta", "delta": {"text": text}})


class FakeSession(StreamSession):
    """Replays canned lines, yielding to the event loop between them."""

    def __init__(
        self,
        request: PreparedRequest,
        lines: list[str],
        *,
        exit_code: int = 0,
        error: BaseException | None = None,
    ) -> None:
        super().__init__(request)
        self._lines = lines
        self._exit_code = exit_code
        self._error = error
        self._returncode: int | None = None
        self.terminated = False

    @property
    def returncode(self) -> int | None:
        return self._returncode

    async def lines(self):
        for line in self._lines:
            if self.terminated:
                break
            yield line
            await anyio.sleep(0)
        if self._error is not None:
            raise self._error
        self._returncode = -15 if self.terminated else self._exit_code

    async def terminate(self) -> None:
        self.terminated = True

    async def aclose(self) -> None:
        self._closed = True


class FakeTransport:
    """Records requests and hands out ``FakeSession`` objects."""

    def __init__(self, lines: list[str] | None = None, **session_kwargs) -> None:
        self.lines = list(lines or [])
        self.session_kwargs = session_kwargs
        self.requests: list[PreparedRequest] = []
        self.sessions: list[FakeSession] = []

    async def start(self, request: PreparedRequest) -> FakeSession:
        self.requests.append(request)
        session = FakeSession(request, self.lines, **self.session_kwargs)
        self.sessions.append(session)
        return session


class ScriptTransport(ProcessTransport):
    """Runs a Python snippet in place of curl. The body still arrives on stdin."""

    def __init__(self, script: str, **kwargs) -> None:
        super().__init__(sys.executable, **kwargs)
        self.script = script

    def build_command(self, request: PreparedRequest) -> list[str]:
        return [sys.executable, "-c", self.script]
