"""Wren CLI — ask, modify, list models, and run code cells.

Entry point registered as ``wren`` in ``pyproject.toml``::

    [project.scripts]
    wren = "wren.cli:main"
"""

import argparse
import sys


def _add_gateway_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--model", default=None, help="Model id (see `wren models`)")
    parser.add_argument(
        "--http",
        action="store_true",
        help="Stream in-process with httpx instead of spawning curl",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the request that would be sent (credentials redacted) and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``wren`` command."""
    parser = argparse.ArgumentParser(
        prog="wren",
        description="Wren — stream LLM completions from OpenAI, Mistral, and Anthropic.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- wren ask ---------------------------------------------------------
    ask_parser = subparsers.add_parser("ask", help="Ask a question and stream the answer")
    ask_parser.add_argument("prompt", nargs="*", help="Prompt text (read from stdin if omitted)")
    _add_gateway_options(ask_parser)

    # -- wren modify ------------------------------------------------------
    modify_parser = subparsers.add_parser("modify", help="Rewrite text following an instruction")
    modify_parser.add_argument("instruction", nargs="+", help="What to change")
    modify_parser.add_argument(
        "--file",
        default=None,
        help="File holding the text to modify (stdin if omitted)",
    )
    modify_parser.add_argument(
        "--range",
        dest="selection",
        default=None,
        help="Selection inside the text, LINE[:COL]-LINE[:COL] (1-based, inclusive)",
    )
    _add_gateway_options(modify_parser)

    # -- wren models ------------------------------------------------------
    models_parser = subparsers.add_parser("models", help="List available models")
    models_parser.add_argument("--model", default=None, help="Mark this model as current")

    # -- wren run-cell ----------------------------------------------------
    cell_parser = subparsers.add_parser("run-cell", help="Run the first fenced code block")
    cell_parser.add_argument(
        "path", nargs="?", default=None, help="Markdown file (stdin if omitted)"
    )
    cell_parser.add_argument("--timeout", type=float, default=30.0, help="Seconds before giving up")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "ask":
        from wren.cli._ask import run_ask

        run_ask(args)
    elif args.command == "modify":
        from wren.cli._ask import run_modify

        run_modify(args)
    elif args.command == "models":
        from wren.cli._models import run_models

        run_models(args)
    elif args.command == "run-cell":
        from wren.cli._cells import run_cell

        run_cell(args)
