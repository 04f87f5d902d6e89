"""
CLI command for repository verification.

Checks that every catalog file is present and that the git remote, policy
file and agent settings are in a working state.

Exit codes:
    0 = All checks passed (warnings allowed)
    2 = At least one check failed
"""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path

from mayor_west.cli.common import resolve_root
from mayor_west.cli.formatters import OUTPUT_FORMATS, OutputFormat, format_scorecard
from mayor_west.cli.ux import console, error, success, warning
from mayor_west.config import get_settings
from mayor_west.core.errors import ExitCode, main_with_error_handling
from mayor_west.scaffold import FileState, SetupMode, catalog_paths, plan_setup
from mayor_west.verification import Scorecard, build_scorecard, repository_checks


def build_verify_scorecard(root: Path, policy_path: str | None = None) -> Scorecard:
    """Full-mode plan plus repository checks, folded into one scorecard."""
    state = FileState.scan(root, catalog_paths())
    plan = plan_setup(SetupMode.FULL, state)
    # An explicit --policy is relative to the working directory, the configured one to root
    policy_location = Path(policy_path).resolve() if policy_path is not None else get_settings().policy_path
    return build_scorecard(
        setup_plan=plan,
        checks=repository_checks(root, policy_location),
        command="verify",
        metadata={
            "root": str(root),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@main_with_error_handling()
def verify_command(
    root: str | None = None,
    output_format: str = "table",
    output_file: str | None = None,
    policy_path: str | None = None,
) -> int:
    """
    Verify Mayor West setup for a repository.

    Args:
        root: Repository root
        output_format: table, json, junit or markdown
        output_file: Optional path to also write the report to
        policy_path: Policy file (default from MAYOR_WEST_POLICY_PATH, relative to root)

    Returns:
        Exit code (0 or 2)
    """
    repo_root = resolve_root(root)
    scorecard = build_verify_scorecard(repo_root, policy_path)
    output = format_scorecard(scorecard, output_format, output_file)

    if OutputFormat(output_format) is not OutputFormat.TABLE:
        print(output)
        return ExitCode.SUCCESS if scorecard.passed else ExitCode.BLOCKED

    console.print(output, markup=False)
    if scorecard.passed:
        if scorecard.warnings:
            warning(f"Verification passed with {scorecard.warnings} warning(s)")
        else:
            success("Mayor West Mode is fully configured")
        return ExitCode.SUCCESS

    error(f"{len(scorecard.failed_checks)} check(s) failed")
    return ExitCode.BLOCKED


def register_verify_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register verify subcommand parser."""
    parser = subparsers.add_parser(
        "verify",
        help="Verify Mayor West setup in a repository",
    )
    parser.add_argument(
        "--root",
        help="Repository root (default: current directory)",
    )
    parser.add_argument(
        "--format",
        "-f",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="table",
        help="Output format (default: table)",
    )
    parser.add_argument(
        "--output",
        "-o",
        dest="output_file",
        help="Also write the report to this file",
    )
    parser.add_argument("--policy", dest="policy_path", help="Policy file path")


def handle_verify_command(args: argparse.Namespace) -> int:
    """Handle verify command from CLI args."""
    return verify_command(
        root=getattr(args, "root", None),
        output_format=getattr(args, "output_format", "table"),
        output_file=getattr(args, "output_file", None),
        policy_path=getattr(args, "policy_path", None),
    )
