"""``wren run-cell`` — execute the first fenced code block of a document."""

import argparse
import sys

import anyio

from wren.cells import extract_code_block, run_code_block
from wren.cli._gateway import fail, read_input
from wren.errors import WrenError


def run_cell(args: argparse.Namespace) -> None:
    """Run the block and mirror its output and exit status."""
    text = read_input(args.path)
    block = extract_code_block(text)
    if block is None:
        fail("No code block found")

    try:
        result = anyio.run(lambda: run_code_block(block, timeout=args.timeout))
    except WrenError as exc:
        fail(str(exc))
    except TimeoutError:
        fail(f"Code block did not finish within {args.timeout:g}s")

    sys.stdout.write(result.output)
    if result.returncode:
        raise SystemExit(result.returncode)
