from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from ..utils.logging_utils import configure_logging

if TYPE_CHECKING:
    from .dispatcher import CI


def _list_commands(ci: "CI") -> None:
    print("Available commands:")
    for command in ci.commands:
        print(f"  {command.name}")


def main(ci: "CI", argv: Iterable[str] | None = None) -> int:
    from .dispatcher import EXIT_OK, EXIT_UNKNOWN_COMMAND

    parser = argparse.ArgumentParser(add_help=True)
    parser.add_argument("command", nargs="?", help="Name of the command to run")
    parser.add_argument("--list-commands", action="store_true", help="List registered commands and exit")
    parser.add_argument("--log-dir", help="Directory for full logs (default: $MOBILECI_LOG_DIR or the temp dir)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args(list(argv) if argv is not None else None)

    configure_logging(debug=args.debug)

    if args.list_commands:
        _list_commands(ci)
        return EXIT_OK

    if args.log_dir:
        ci.log_root = Path(args.log_dir)

    exit_code = ci.dispatch(args.command)
    if exit_code is None:
        print(f"Unknown command: {args.command}")
        _list_commands(ci)
        return EXIT_UNKNOWN_COMMAND

    return exit_code
