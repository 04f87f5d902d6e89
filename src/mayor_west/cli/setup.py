"""
Setup command for Mayor West Mode.

Plans the scaffolding files for a repository and writes them. Interactive
terminals get a short questionary wizard; CI runs pass flags and --yes.

Commands:
    mayor-west setup                      # Interactive wizard
    mayor-west setup --mode minimal --yes # Critical files only, no prompts
    mayor-west setup --dry-run            # Show the plan without writing
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field

from mayor_west.cli.common import resolve_root
from mayor_west.cli.ux import (
    confirm,
    console,
    error,
    header,
    info,
    is_interactive,
    multi_select,
    print_table,
    select,
    spinner,
    success,
    text_input,
    warning,
    wizard_intro,
)
from mayor_west.config import get_settings
from mayor_west.core.errors import ConfigurationError, ExitCode, main_with_error_handling
from mayor_west.logging import bind_context
from mayor_west.policies import CATEGORY_NAMES, POLICY_FILE_PATH, PatternError, compile_pattern
from mayor_west.policies.defaults import (
    DEFAULT_CATEGORIES,
    DEFAULT_PROTECTED_PATHS,
    OPTIONAL_PROTECTED_PATHS,
)
from mayor_west.scaffold import (
    FILE_CATALOG,
    FileState,
    SetupMode,
    SetupOptions,
    SetupPlan,
    apply_plan,
    catalog_paths,
    plan_setup,
)
from mayor_west.scaffold.models import ITERATION_LIMIT_MAX, ITERATION_LIMIT_MIN, MERGE_STRATEGIES

MODE_CHOICES = [m.value for m in SetupMode]

ACTION_STYLES = {
    "create": "+",
    "overwrite": "~",
    "skip": "=",
}


@dataclass
class SetupAnswers:
    """Setup choices, from flags or the wizard."""

    mode: str
    files: list[str] = field(default_factory=list)
    iteration_limit: int = 15
    merge_strategy: str = "SQUASH"
    enable_auto_merge: bool = True
    categories: list[str] | None = None
    protected_paths: list[str] = field(default_factory=list)


@main_with_error_handling()
def setup_command(
    mode: str | None = None,
    files: list[str] | None = None,
    overwrite: bool = False,
    yes: bool = False,
    dry_run: bool = False,
    iteration_limit: int | None = None,
    merge_strategy: str | None = None,
    enable_auto_merge: bool = True,
    strict: bool = False,
    categories: list[str] | None = None,
    protected_paths: list[str] | None = None,
    root: str | None = None,
) -> int:
    """
    Plan and apply Mayor West scaffolding.

    Args:
        mode: full, minimal or custom (default from settings)
        files: Catalog paths for custom mode
        overwrite: Replace existing files whose content differs
        yes: Skip prompts and confirmation
        dry_run: Print the plan without writing
        iteration_limit: Agent iteration limit (1-50)
        merge_strategy: SQUASH, MERGE or REBASE
        enable_auto_merge: Trigger the auto-merge workflow on PR events
        strict: Generate the strict default policy
        categories: Policy categories to generate (default: files and commits)
        protected_paths: Glob patterns to block in addition to the defaults
        root: Repository root

    Returns:
        Exit code (0 ok, 1 if any write failed, 10 on bad options)
    """
    settings = get_settings()
    repo_root = resolve_root(root)
    log = bind_context(command="setup", root=str(repo_root))

    answers = SetupAnswers(
        mode=mode or settings.default_mode,
        files=list(files or []),
        iteration_limit=iteration_limit if iteration_limit is not None else settings.iteration_limit,
        merge_strategy=(merge_strategy or settings.merge_strategy).upper(),
        enable_auto_merge=enable_auto_merge,
        categories=list(categories) if categories else None,
        protected_paths=list(protected_paths or []),
    )

    interactive = not yes and is_interactive()
    if interactive:
        _print_welcome_banner()
        answers = _run_wizard(answers, mode_given=mode is not None)

    if answers.mode not in MODE_CHOICES:
        raise ConfigurationError(
            f"Invalid setup mode: '{answers.mode}'. Must be one of: {', '.join(MODE_CHOICES)}"
        )
    if answers.mode == SetupMode.CUSTOM.value and not answers.files:
        raise ConfigurationError("Custom mode requires at least one file (use --files)")

    if answers.protected_paths and answers.categories is not None and "files" not in answers.categories:
        raise ConfigurationError("Protected paths need the files policy category (add --category files)")
    for pattern in answers.protected_paths:
        try:
            compile_pattern(pattern)
        except PatternError as e:
            raise ConfigurationError(f"Invalid protected path '{pattern}': {e}") from e

    options = SetupOptions(
        iteration_limit=answers.iteration_limit,
        merge_strategy=answers.merge_strategy,
        enable_auto_merge=answers.enable_auto_merge,
        strict_policy=strict,
        policy_categories=tuple(answers.categories) if answers.categories is not None else None,
        protected_paths=DEFAULT_PROTECTED_PATHS + tuple(answers.protected_paths),
    )

    state = FileState.scan(repo_root, catalog_paths())
    plan = plan_setup(answers.mode, state, options, selected=answers.files, overwrite=overwrite)
    _print_plan(plan)

    if dry_run:
        info("Dry run: no files written")
        return ExitCode.SUCCESS

    if plan.is_noop:
        success("Nothing to do, every selected file is in place")
        return ExitCode.SUCCESS

    if interactive and not confirm(f"Write {len(plan.writes)} file(s)?", default=True):
        info("Setup cancelled. No files were written.")
        return ExitCode.SUCCESS

    with spinner("Writing files..."):
        result = apply_plan(plan, repo_root)

    for path in result.written:
        success(f"Wrote {path}")
    for path, reason in result.errors.items():
        error(f"Failed to write {path}: {reason}")

    log.info(
        "setup_completed",
        mode=answers.mode,
        written=len(result.written),
        skipped=len(result.skipped),
        failed=len(result.errors),
    )

    if not result.success:
        warning(f"{len(result.errors)} file(s) could not be written")
        return ExitCode.WARNING

    _print_next_steps()
    return ExitCode.SUCCESS


def _print_welcome_banner() -> None:
    """Print welcome banner."""
    wizard_intro(
        "Mayor West Mode Setup",
        "Scaffolds agent settings, workflows and a policy file so an autonomous\n"
        "coding agent can work through mayor-task issues under policy control.",
    )


def _validate_iteration_limit(value: str) -> bool | str:
    if not value.isdigit():
        return "Enter a whole number"
    if not ITERATION_LIMIT_MIN <= int(value) <= ITERATION_LIMIT_MAX:
        return f"Must be between {ITERATION_LIMIT_MIN} and {ITERATION_LIMIT_MAX}"
    return True


def _writes_policy(answers: SetupAnswers) -> bool:
    if answers.mode == SetupMode.CUSTOM.value:
        return POLICY_FILE_PATH in answers.files
    return True


def _run_wizard(answers: SetupAnswers, mode_given: bool) -> SetupAnswers:
    """Collect setup choices interactively."""
    if not mode_given:
        answers.mode = select("Setup mode:", MODE_CHOICES, default=answers.mode)

    if answers.mode == SetupMode.CUSTOM.value and not answers.files:
        answers.files = multi_select(
            "Files to generate:",
            choices=list(catalog_paths()),
            defaults=[spec.path for spec in FILE_CATALOG if spec.critical],
        )

    if _writes_policy(answers):
        if answers.categories is None:
            answers.categories = multi_select(
                "Policy categories:",
                choices=list(CATEGORY_NAMES),
                defaults=list(DEFAULT_CATEGORIES),
            )
        if not answers.protected_paths and "files" in answers.categories:
            answers.protected_paths = multi_select(
                "Additional paths to protect (require human review):",
                choices=list(OPTIONAL_PROTECTED_PATHS),
            )

    answers.enable_auto_merge = confirm("Enable auto-merge for agent PRs?", default=True)
    if answers.enable_auto_merge:
        answers.merge_strategy = select(
            "Merge strategy:", list(MERGE_STRATEGIES), default=answers.merge_strategy
        )
    answers.iteration_limit = int(
        text_input(
            "Agent iteration limit:",
            default=str(answers.iteration_limit),
            validate=_validate_iteration_limit,
        )
    )
    return answers


def _print_plan(plan: SetupPlan) -> None:
    """Print the setup plan as a table."""
    header(f"Setup plan ({plan.mode.value})")
    rows = [
        [ACTION_STYLES[a.action.value], a.display_name, a.path, a.reason]
        for a in plan.actions
    ]
    print_table(None, ["", "File", "Path", "Reason"], rows)
    summary = plan.summary()
    console.print(
        f"[muted]{summary['create']} to create, {summary['overwrite']} to overwrite, "
        f"{summary['skip']} skipped[/muted]"
    )


def _print_next_steps() -> None:
    """Print next steps after setup."""
    console.print()
    header("Setup Complete!")
    console.print()
    console.print("[bold]Next steps:[/bold]")
    console.print("  [info]1.[/info] git add .github .vscode && git commit && git push")
    console.print("  [info]2.[/info] Create an issue from the Mayor Task template")
    console.print("  [info]3.[/info] mayor-west verify")
    console.print()
    console.print("[bold]Useful commands:[/bold]")
    console.print("  mayor-west status          [muted]# Check autonomous mode[/muted]")
    console.print("  mayor-west pause           [muted]# Stop agent merges[/muted]")
    console.print("  mayor-west policy validate [muted]# Check the policy file[/muted]")
    console.print()


def register_setup_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register setup subcommand parser."""
    parser = subparsers.add_parser(
        "setup",
        help="Generate Mayor West configuration files",
    )
    parser.add_argument(
        "--mode",
        choices=MODE_CHOICES,
        help="Setup mode (default: full, or MAYOR_WEST_DEFAULT_MODE)",
    )
    parser.add_argument(
        "--files",
        nargs="+",
        metavar="PATH",
        help="Catalog paths to generate in custom mode",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing files whose content differs",
    )
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip prompts and confirmation",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the plan without writing files",
    )
    parser.add_argument(
        "--iteration-limit",
        type=int,
        help="Agent iteration limit (1-50)",
    )
    parser.add_argument(
        "--merge-strategy",
        type=str.upper,
        choices=list(MERGE_STRATEGIES),
        help="Merge strategy for agent PRs",
    )
    parser.add_argument(
        "--no-auto-merge",
        action="store_true",
        help="Only run the auto-merge workflow on manual dispatch",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Generate a strict default policy",
    )
    parser.add_argument(
        "--category",
        dest="categories",
        action="append",
        choices=list(CATEGORY_NAMES),
        help="Policy category to generate (repeatable, default: files and commits)",
    )
    parser.add_argument(
        "--protect",
        dest="protected_paths",
        action="append",
        metavar="PATTERN",
        help="Extra glob pattern to block in the generated policy (repeatable)",
    )
    parser.add_argument(
        "--root",
        help="Repository root (default: current directory)",
    )


def handle_setup_command(args: argparse.Namespace) -> int:
    """Handle setup subcommand."""
    return setup_command(
        mode=getattr(args, "mode", None),
        files=getattr(args, "files", None),
        overwrite=getattr(args, "overwrite", False),
        yes=getattr(args, "yes", False),
        dry_run=getattr(args, "dry_run", False),
        iteration_limit=getattr(args, "iteration_limit", None),
        merge_strategy=getattr(args, "merge_strategy", None),
        enable_auto_merge=not getattr(args, "no_auto_merge", False),
        strict=getattr(args, "strict", False),
        categories=getattr(args, "categories", None),
        protected_paths=getattr(args, "protected_paths", None),
        root=getattr(args, "root", None),
    )
