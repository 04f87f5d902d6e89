"""
CLI command showing Mayor West status for a repository.
"""

from __future__ import annotations

import argparse

from mayor_west.cli.common import resolve_policy_path, resolve_root
from mayor_west.cli.ux import console, header, print_key_value, print_table, warning
from mayor_west.core.errors import ExitCode, ProviderError, main_with_error_handling
from mayor_west.policies.schema import parse_policy
from mayor_west.scaffold import FILE_CATALOG
from mayor_west.verification import get_remote_url, parse_github_url

ACTIVE = "ACTIVE"
PAUSED = "PAUSED"
NOT_CONFIGURED = "NOT CONFIGURED"
INVALID = "INVALID POLICY"


def autonomous_mode(policy_text: str | None) -> str:
    """ACTIVE, PAUSED, NOT CONFIGURED or INVALID POLICY."""
    if policy_text is None:
        return NOT_CONFIGURED
    result = parse_policy(policy_text)
    if not result.valid:
        return INVALID
    return ACTIVE if result.policy.enabled else PAUSED


def protected_pattern_count(policy_text: str | None) -> int:
    """Number of blocked file patterns in a valid policy, else 0."""
    if policy_text is None:
        return 0
    result = parse_policy(policy_text)
    if not result.valid or result.policy.files is None:
        return 0
    return len(result.policy.files.blocked)


@main_with_error_handling()
def status_command(root: str | None = None, policy_path: str | None = None) -> int:
    """
    Show repository, catalog and autonomous mode status.

    Returns:
        Exit code (always 0; use verify for a gate)
    """
    repo_root = resolve_root(root)
    policy_file = resolve_policy_path(policy_path, repo_root)
    policy_text = policy_file.read_text(encoding="utf-8") if policy_file.is_file() else None

    github = None
    if (repo_root / ".git").exists():
        try:
            github = parse_github_url(get_remote_url(repo_root))
        except ProviderError as e:
            warning(f"Could not read git remote: {e.message}")

    header("Mayor West Status")
    print_key_value(
        {
            "Repository": f"{github[0]}/{github[1]}" if github else "no GitHub remote",
            "Root": str(repo_root.resolve()),
            "Policy file": str(policy_file),
        },
        title="Repository",
    )

    rows = []
    for spec in FILE_CATALOG:
        present = (repo_root / spec.path).is_file()
        rows.append(
            [
                "✓" if present else "✗",
                spec.display_name,
                spec.path,
                "critical" if spec.critical else "optional",
            ]
        )
    console.print()
    print_table("Configuration files", ["", "File", "Path", "Required"], rows)

    mode = autonomous_mode(policy_text)
    print_key_value(
        {
            "Autonomous mode": mode,
            "Protected patterns": str(protected_pattern_count(policy_text)),
        },
        title="Policy",
    )
    if mode == PAUSED:
        console.print("\n[muted]Run 'mayor-west resume' to re-enable autonomous merges[/muted]")
    elif mode == NOT_CONFIGURED:
        console.print("\n[muted]Run 'mayor-west setup' to get started[/muted]")
    console.print()

    return ExitCode.SUCCESS


def register_status_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register status subcommand parser."""
    parser = subparsers.add_parser(
        "status",
        help="Show Mayor West status for a repository",
    )
    parser.add_argument(
        "--root",
        help="Repository root (default: current directory)",
    )
    parser.add_argument("--policy", dest="policy_path", help="Policy file path")


def handle_status_command(args: argparse.Namespace) -> int:
    """Handle status command from CLI args."""
    return status_command(
        root=getattr(args, "root", None),
        policy_path=getattr(args, "policy_path", None),
    )
