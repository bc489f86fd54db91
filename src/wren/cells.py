"""Code cells — run the first fenced code block of a response.

Models answer with fenced blocks (```` ```python ````). ``extract_code_block``
finds the first one; ``run_code_block`` executes it with the matching
interpreter, feeding the code on stdin so nothing touches disk.
"""

import logging
import re
import subprocess
import sys
from dataclasses import dataclass

import anyio

from wren.errors import UnsupportedLanguageError

logger = logging.getLogger("wren.cells")

_FENCE = re.compile(r"^```(.*)$")

INTERPRETERS: dict[str, tuple[str, ...]] = {
    "python": (sys.executable, "-"),
    "lua": ("lua", "-"),
}


@dataclass(frozen=True, slots=True)
class CodeBlock:
    language: str
    code: str


@dataclass(frozen=True, slots=True)
class CellResult:
    language: str
    output: str
    returncode: int


def extract_code_block(text: str) -> CodeBlock | None:
    """Return the first fenced code block in ``text``, or ``None``.

    An unterminated block runs to the end of the text. Empty blocks are
    ignored.
    """
    language = ""
    body: list[str] | None = None
    for line in text.splitlines():
        match = _FENCE.match(line)
        if match:
            if body is not None:
                break
            language = match.group(1).strip()
            body = []
        elif body is not None:
            body.append(line)
    if not body:
        return None
    return CodeBlock(language=language, code="\n".join(body))


async def run_code_block(block: CodeBlock, *, timeout: float = 30.0) -> CellResult:
    """Execute ``block`` and capture its combined stdout and stderr.

    Raises ``UnsupportedLanguageError`` when no interpreter is known and
    ``TimeoutError`` when the run exceeds ``timeout`` seconds.
    """
    command = INTERPRETERS.get(block.language.lower())
    if command is None:
        raise UnsupportedLanguageError(block.language)

    logger.debug("Running %s cell (%d bytes)", block.language, len(block.code))
    with anyio.fail_after(timeout):
        completed = await anyio.run_process(
            list(command),
            input=block.code.encode("utf-8"),
            stderr=subprocess.STDOUT,
            check=False,
        )
    return CellResult(
        language=block.language,
        output=completed.stdout.decode("utf-8", errors="replace"),
        returncode=completed.returncode,
    )
