"""``wren ask`` and ``wren modify`` — stream an answer to stdout."""

import argparse
import sys

import anyio

from wren.cli._gateway import build_gateway, fail, read_input
from wren.commands import build_modify_prompt, extract_selection
from wren.errors import WrenError
from wren.gateway import Gateway
from wren.sinks import StreamSink
from wren.transport import ProcessTransport


def _describe(gateway: Gateway, prompt: str) -> str:
    request = gateway.prepare(prompt)
    if isinstance(gateway.transport, ProcessTransport):
        return gateway.transport.describe(request)
    return f"POST {request.url}\n{request.body}"


def _stream(gateway: Gateway, prompt: str, *, dry_run: bool) -> None:
    try:
        if dry_run:
            print(_describe(gateway, prompt))
            return
        anyio.run(gateway.ask, prompt, StreamSink(sys.stdout))
    except WrenError as exc:
        fail(str(exc))


def run_ask(args: argparse.Namespace) -> None:
    """Stream the answer to ``args.prompt`` (or stdin) to stdout."""
    gateway = build_gateway(args)
    prompt = " ".join(args.prompt) if args.prompt else sys.stdin.read()
    if not prompt.strip():
        fail("No prompt given")
    _stream(gateway, prompt, dry_run=args.dry_run)


def _parse_position(raw: str, *, end: bool) -> tuple[int, int]:
    line, _, col = raw.partition(":")
    if not col:
        return int(line), sys.maxsize if end else 1
    return int(line), int(col)


def parse_range(raw: str) -> tuple[tuple[int, int], tuple[int, int]]:
    """Parse ``LINE[:COL]-LINE[:COL]``; a bare ``LINE`` selects that line."""
    start, _, finish = raw.partition("-")
    try:
        return (
            _parse_position(start, end=False),
            _parse_position(finish or start, end=True),
        )
    except ValueError:
        msg = f"Invalid range {raw!r}. Expected LINE[:COL]-LINE[:COL]"
        raise ValueError(msg) from None


def run_modify(args: argparse.Namespace) -> None:
    """Ask the model to rewrite a selection following an instruction."""
    gateway = build_gateway(args)
    text = read_input(args.file)

    if args.selection:
        try:
            start, end = parse_range(args.selection)
            text = extract_selection(text.splitlines(), start, end)
        except ValueError as exc:
            fail(str(exc))

    prompt = build_modify_prompt(text, " ".join(args.instruction))
    _stream(gateway, prompt, dry_run=args.dry_run)
