"""
Pause and resume autonomous mode.

Flips the top-level ``enabled:`` flag in the policy file in place, so
comments and formatting are preserved. Committing the change is left to
the user.
"""

from __future__ import annotations

import argparse
import re

import structlog

from mayor_west.cli.common import read_policy_text, resolve_policy_path
from mayor_west.cli.ux import console, info, success
from mayor_west.core.errors import ConfigurationError, ExitCode, main_with_error_handling

logger = structlog.get_logger()

_ENABLED_LINE = re.compile(r"^(enabled:[ \t]*)(true|false)\b", re.MULTILINE)


def set_enabled_flag(policy_text: str, enabled: bool) -> tuple[str, bool]:
    """
    Rewrite the top-level enabled flag.

    Returns:
        (new text, whether the flag changed)

    Raises:
        ConfigurationError: If the document has no top-level enabled flag
    """
    match = _ENABLED_LINE.search(policy_text)
    if match is None:
        raise ConfigurationError('Policy file has no top-level "enabled: true/false" flag')

    value = "true" if enabled else "false"
    if match.group(2) == value:
        return policy_text, False

    updated = policy_text[: match.start(2)] + value + policy_text[match.end(2) :]
    return updated, True


def _toggle(enabled: bool, root: str | None, policy_path: str | None) -> int:
    path = resolve_policy_path(policy_path, root)
    text = read_policy_text(path)
    updated, changed = set_enabled_flag(text, enabled)
    state = "active" if enabled else "paused"

    if not changed:
        info(f"Autonomous mode is already {state}")
        return ExitCode.SUCCESS

    path.write_text(updated, encoding="utf-8")
    logger.info("autonomous_mode_toggled", enabled=enabled, policy=str(path))
    success(f"Autonomous mode {state} ({path})")
    console.print("[muted]Commit and push the policy file for the change to take effect[/muted]")
    return ExitCode.SUCCESS


@main_with_error_handling()
def pause_command(root: str | None = None, policy_path: str | None = None) -> int:
    """Set enabled: false in the policy file."""
    return _toggle(False, root, policy_path)


@main_with_error_handling()
def resume_command(root: str | None = None, policy_path: str | None = None) -> int:
    """Set enabled: true in the policy file."""
    return _toggle(True, root, policy_path)


def register_toggle_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register pause and resume subcommand parsers."""
    for name, help_text in (
        ("pause", "Pause autonomous mode (enabled: false)"),
        ("resume", "Resume autonomous mode (enabled: true)"),
    ):
        parser = subparsers.add_parser(name, help=help_text)
        parser.add_argument("--root", help="Repository root (default: current directory)")
        parser.add_argument("--policy", dest="policy_path", help="Policy file path")


def handle_toggle_command(args: argparse.Namespace) -> int:
    """Handle pause/resume commands from CLI args."""
    command = pause_command if args.command == "pause" else resume_command
    return command(
        root=getattr(args, "root", None),
        policy_path=getattr(args, "policy_path", None),
    )
