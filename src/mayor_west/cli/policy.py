"""
Policy commands: validate, test, dry-run and init.

Commands:
    mayor-west policy validate [--policy FILE] [--strict]
    mayor-west policy test --changes FILE [--quality FILE] [--github-pr]
    mayor-west policy dry-run --files P... [--label L...]
    mayor-west policy init [--strict] [--category C...] [--force]

Exit codes:
    0 = Valid / no violations
    1 = dry-run found violations (advisory)
    2 = test found violations
    10 = Missing input or policy file exists
    12 = Policy document failed schema validation
"""

from __future__ import annotations

import argparse
from typing import Any, Mapping, Sequence

from mayor_west.cli.common import load_data_file, read_policy_text, resolve_policy_path
from mayor_west.cli.formatters import OUTPUT_FORMATS, OutputFormat, format_scorecard
from mayor_west.cli.ux import console, error, header, info, print_table, success, warning
from mayor_west.core.errors import ConfigurationError, ExitCode, main_with_error_handling
from mayor_west.policies import (
    CATEGORY_NAMES,
    ChangeSet,
    PolicyDocument,
    Severity,
    Verdict,
    evaluate,
    generate_default_policy,
    load_policy,
    parse_policy,
    parse_quality_results,
)
from mayor_west.verification import build_scorecard


def _load_policy(policy_path: str | None) -> PolicyDocument:
    return load_policy(read_policy_text(resolve_policy_path(policy_path)))


# === validate ===


@main_with_error_handling()
def policy_validate_command(policy_path: str | None = None, strict: bool = False) -> int:
    """
    Validate a policy file against the schema.

    Args:
        policy_path: Policy file (default .github/mayor-west.yml)
        strict: Treat warnings as errors

    Returns:
        Exit code (0 valid, 12 invalid)
    """
    path = resolve_policy_path(policy_path)
    result = parse_policy(read_policy_text(path))

    header(f"Policy Validation: {path}")

    for issue in result.errors:
        error(str(issue))
    for issue in result.warnings:
        warning(str(issue))

    if not result.valid:
        console.print()
        error(f"Policy invalid: {len(result.errors)} error(s)")
        return ExitCode.VALIDATION_ERROR

    if strict and result.warnings:
        console.print()
        error(f"Policy has {len(result.warnings)} warning(s) (strict mode)")
        return ExitCode.VALIDATION_ERROR

    policy = result.policy
    configured = ", ".join(policy.categories) or "none"
    success(f"Policy valid (version {policy.version})")
    info(f"Enabled: {'yes' if policy.enabled else 'no (paused)'}")
    info(f"Categories: {configured}")
    return ExitCode.SUCCESS


# === test / dry-run ===


def _print_verdict(verdict: Verdict) -> None:
    """Print a verdict as a readable report."""
    if not verdict.policy_enabled:
        info("Policy is disabled, no rules applied")
    elif verdict.full_bypass:
        warning("All checks bypassed by override label")
    elif verdict.bypassed:
        warning(f"Bypassed: {', '.join(verdict.bypassed)}")

    for text in verdict.warnings:
        warning(text)

    if verdict.violations:
        console.print()
        print_table(
            "Violations",
            ["Category", "Rule", "Severity", "Message"],
            [[v.category, v.rule, v.severity.label, v.message] for v in verdict.violations],
        )

    if verdict.labels_to_add:
        info(f"Labels to add: {', '.join(verdict.labels_to_add)}")
    if verdict.required_reviewers:
        info(f"Required reviewers: {', '.join(verdict.required_reviewers)}")

    console.print()
    if verdict.passed:
        success("Change set complies with policy")
    else:
        advisory = sum(1 for v in verdict.violations if v.severity is Severity.APPROVAL_REQUIRED)
        error(
            f"{len(verdict.violations)} policy violation(s)"
            + (f", {advisory} need human approval" if advisory else "")
        )


def _report(verdict: Verdict, command: str, output_format: str, output_file: str | None) -> None:
    scorecard = build_scorecard(verdicts={"Policy": verdict}, command=command)
    if OutputFormat(output_format) is OutputFormat.TABLE:
        _print_verdict(verdict)
        if output_file:
            format_scorecard(scorecard, OutputFormat.TABLE, output_file)
        return
    print(format_scorecard(scorecard, output_format, output_file))


def _inline_quality(data: Any) -> Any:
    if isinstance(data, Mapping):
        return data.get("quality")
    return None


@main_with_error_handling()
def policy_test_command(
    changes: str,
    quality: str | None = None,
    github_pr: bool = False,
    output_format: str = "table",
    output_file: str | None = None,
    policy_path: str | None = None,
) -> int:
    """
    Evaluate a change-set file against the policy.

    Args:
        changes: Change-set YAML/JSON, or ``gh pr view --json`` output with github_pr
        quality: Optional quality results file
        github_pr: Parse changes as GitHub PR JSON
        output_format: table, json, junit or markdown
        output_file: Optional path to also write the report to
        policy_path: Policy file

    Returns:
        Exit code (0 pass, 2 violations, 12 schema error)
    """
    policy = _load_policy(policy_path)
    data = load_data_file(changes)
    change_set = ChangeSet.from_github_pr(data) if github_pr else ChangeSet.from_dict(data)

    if quality is not None:
        quality_results = parse_quality_results(load_data_file(quality))
    elif not github_pr and _inline_quality(data) is not None:
        quality_results = parse_quality_results(_inline_quality(data))
    else:
        quality_results = None

    verdict = evaluate(change_set, policy, quality_results)
    _report(verdict, "policy test", output_format, output_file)
    return ExitCode.SUCCESS if verdict.passed else ExitCode.BLOCKED


@main_with_error_handling()
def policy_dry_run_command(
    files: Sequence[str],
    labels: Sequence[str] = (),
    commands: Sequence[str] = (),
    commit_message: str = "",
    title: str = "",
    description: str = "",
    policy_path: str | None = None,
) -> int:
    """
    Evaluate a hypothetical change set built from flags.

    Returns:
        Exit code (0 pass, 1 violations, 12 schema error)
    """
    policy = _load_policy(policy_path)
    change_set = ChangeSet.from_dict(
        {
            "files": list(files),
            "commands": list(commands),
            "commit_message": commit_message,
            "pr": {"title": title, "description": description, "labels": list(labels)},
        }
    )

    header("Policy Dry Run")
    console.print(f"[muted]{len(change_set.files)} file(s), {len(change_set.commands)} command(s)[/muted]")
    verdict = evaluate(change_set, policy)
    _print_verdict(verdict)
    return ExitCode.SUCCESS if verdict.passed else ExitCode.WARNING


# === init ===


@main_with_error_handling()
def policy_init_command(
    strict: bool = False,
    categories: Sequence[str] | None = None,
    force: bool = False,
    policy_path: str | None = None,
) -> int:
    """
    Write the default policy file.

    Returns:
        Exit code (0 written, 10 if the file exists without force)
    """
    path = resolve_policy_path(policy_path)
    if path.exists() and not force:
        raise ConfigurationError(
            f"Policy file already exists: {path}",
            details={"hint": "use --force to overwrite"},
        )

    content = generate_default_policy(strict=strict, categories=list(categories) if categories else None)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")

    success(f"Created {path}")
    info("Edit the policy, then run: mayor-west policy validate")
    return ExitCode.SUCCESS


# === parser ===


def register_policy_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register policy subcommand parsers."""
    policy_parser = subparsers.add_parser("policy", help="Validate and test policies")
    policy_sub = policy_parser.add_subparsers(dest="policy_command")

    validate_parser = policy_sub.add_parser("validate", help="Validate the policy file")
    validate_parser.add_argument("--policy", dest="policy_path", help="Policy file path")
    validate_parser.add_argument(
        "--strict", action="store_true", help="Treat warnings as errors"
    )

    test_parser = policy_sub.add_parser("test", help="Evaluate a change-set file")
    test_parser.add_argument(
        "--changes", required=True, help="Change-set YAML/JSON file"
    )
    test_parser.add_argument("--quality", help="Quality results YAML/JSON file")
    test_parser.add_argument(
        "--github-pr",
        action="store_true",
        help="Parse --changes as 'gh pr view --json files,title,body,labels,commits' output",
    )
    test_parser.add_argument(
        "--format",
        "-f",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="table",
        help="Output format (default: table)",
    )
    test_parser.add_argument("--output", "-o", dest="output_file", help="Also write the report to this file")
    test_parser.add_argument("--policy", dest="policy_path", help="Policy file path")

    dry_run_parser = policy_sub.add_parser("dry-run", help="Evaluate a hypothetical change")
    dry_run_parser.add_argument("--files", nargs="+", required=True, metavar="PATH", help="Changed files")
    dry_run_parser.add_argument(
        "--label", dest="labels", action="append", default=[], help="PR label (repeatable)"
    )
    dry_run_parser.add_argument(
        "--command", dest="commands", action="append", default=[], help="Command run (repeatable)"
    )
    dry_run_parser.add_argument("--commit-message", default="", help="Commit message")
    dry_run_parser.add_argument("--title", default="", help="PR title")
    dry_run_parser.add_argument("--description", default="", help="PR description")
    dry_run_parser.add_argument("--policy", dest="policy_path", help="Policy file path")

    init_parser = policy_sub.add_parser("init", help="Write the default policy file")
    init_parser.add_argument("--strict", action="store_true", help="Strict limits and blocked paths")
    init_parser.add_argument(
        "--category",
        dest="categories",
        action="append",
        choices=list(CATEGORY_NAMES),
        help="Category to include (repeatable, default: files and commits)",
    )
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing policy file")
    init_parser.add_argument("--policy", dest="policy_path", help="Policy file path")


def handle_policy_command(args: argparse.Namespace) -> int:
    """Handle policy subcommands."""
    command = getattr(args, "policy_command", None)

    if command == "validate":
        return policy_validate_command(
            policy_path=getattr(args, "policy_path", None),
            strict=getattr(args, "strict", False),
        )
    if command == "test":
        return policy_test_command(
            changes=args.changes,
            quality=getattr(args, "quality", None),
            github_pr=getattr(args, "github_pr", False),
            output_format=getattr(args, "output_format", "table"),
            output_file=getattr(args, "output_file", None),
            policy_path=getattr(args, "policy_path", None),
        )
    if command == "dry-run":
        return policy_dry_run_command(
            files=args.files,
            labels=getattr(args, "labels", []),
            commands=getattr(args, "commands", []),
            commit_message=getattr(args, "commit_message", ""),
            title=getattr(args, "title", ""),
            description=getattr(args, "description", ""),
            policy_path=getattr(args, "policy_path", None),
        )
    if command == "init":
        return policy_init_command(
            strict=getattr(args, "strict", False),
            categories=getattr(args, "categories", None),
            force=getattr(args, "force", False),
            policy_path=getattr(args, "policy_path", None),
        )

    error("Usage: mayor-west policy {validate,test,dry-run,init}")
    return ExitCode.CONFIG_ERROR
