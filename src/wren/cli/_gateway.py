"""Shared CLI plumbing: config, logging, gateway construction, errors."""

import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn

from wren.commands import switch_model
from wren.config import GatewayConfig
from wren.errors import WrenError
from wren.gateway import Gateway


def fail(message: str, code: int = 1) -> NoReturn:
    print(f"Error: {message}", file=sys.stderr)
    raise SystemExit(code)


def read_input(path: str | None) -> str:
    """Read ``path``, or stdin when no path is given."""
    if path is None:
        return sys.stdin.read()
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        fail(str(exc))


def build_gateway(args: argparse.Namespace) -> Gateway:
    """Config from ``WREN_*`` variables plus CLI flags, then a gateway.

    ``--model`` is applied as a switch so an unknown id is reported the same
    way an editor's model command reports it.
    """
    try:
        config = GatewayConfig.from_env(
            transport="http" if getattr(args, "http", False) else None,
            log_level="debug" if getattr(args, "verbose", False) else None,
        )
        logging.basicConfig(
            level=config.log_level.upper(),
            format="%(levelname)s %(name)s: %(message)s",
        )
        gateway = Gateway(config)
    except WrenError as exc:
        fail(str(exc))

    model = getattr(args, "model", None)
    if model is not None:
        switched, message = switch_model(gateway, model)
        if not switched:
            fail(message)
    return gateway
