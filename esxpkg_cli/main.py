"""Argument parsing and command dispatch."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

import esxpkg_core.builtins  # noqa: F401 - registers the built-in commands
from esxpkg_core.api import registered_commands


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="esxpkg",
        description="Install and update VIBs and image profiles on ESXi hosts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    for name, command_cls in registered_commands().items():
        help_text = (command_cls.__doc__ or "").strip().splitlines()[0] if command_cls.__doc__ else None
        sub = subparsers.add_parser(name, help=help_text, description=help_text)
        command_cls.configure(sub)
        sub.set_defaults(_command_cls=command_cls)
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Sequence[str] | None = None, *, start_dir: Path | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:
        return int(exc.code or 0)
    command_cls = getattr(args, "_command_cls", None)
    if command_cls is None:
        parser.print_help()
        return 1
    _configure_logging(bool(args.verbose))
    return command_cls(start_dir=start_dir).run(args)
