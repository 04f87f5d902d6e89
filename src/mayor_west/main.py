"""
Command-line entry point for ``mayor-west``.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from mayor_west import __version__
from mayor_west.cli.configure import handle_configure_command, register_configure_parser
from mayor_west.cli.policy import handle_policy_command, register_policy_parser
from mayor_west.cli.setup import handle_setup_command, register_setup_parser
from mayor_west.cli.status import handle_status_command, register_status_parser
from mayor_west.cli.toggle import handle_toggle_command, register_toggle_parsers
from mayor_west.cli.verify import handle_verify_command, register_verify_parser
from mayor_west.config import get_settings
from mayor_west.core.errors import ExitCode
from mayor_west.logging import configure_logging

HANDLERS = {
    "setup": handle_setup_command,
    "verify": handle_verify_command,
    "status": handle_status_command,
    "policy": handle_policy_command,
    "pause": handle_toggle_command,
    "resume": handle_toggle_command,
    "configure": handle_configure_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mayor-west",
        description="Mayor West Mode: scaffolding and policy gates for autonomous agent workflows",
    )
    parser.add_argument(
        "--log-level",
        help="Structured log level (default: WARNING, or MAYOR_WEST_LOG_LEVEL)",
    )
    subparsers = parser.add_subparsers(dest="command")

    register_setup_parser(subparsers)
    register_verify_parser(subparsers)
    register_status_parser(subparsers)
    register_policy_parser(subparsers)
    register_toggle_parsers(subparsers)
    register_configure_parser(subparsers)
    subparsers.add_parser("version", help="Print the package version")

    return parser


def run(argv: Sequence[str] | None = None) -> int:
    """Parse arguments and dispatch to a command. Returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level or get_settings().log_level)

    if args.command == "version":
        print(f"mayor-west {__version__}")
        return ExitCode.SUCCESS

    handler = HANDLERS.get(args.command)
    if handler is None:
        parser.print_help()
        return ExitCode.WARNING

    return handler(args)


def main(argv: Sequence[str] | None = None) -> None:
    sys.exit(run(argv))


if __name__ == "__main__":
    main()
