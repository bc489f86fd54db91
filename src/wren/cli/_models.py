"""``wren models`` — print the model catalog."""

import argparse

from wren.cli._gateway import build_gateway
from wren.commands import format_model_list


def run_models(args: argparse.Namespace) -> None:
    gateway = build_gateway(args)
    print(format_model_list(gateway.list_models(), gateway.model.id))
