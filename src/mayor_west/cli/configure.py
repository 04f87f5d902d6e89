"""
Configure merge settings and protected paths in the policy file.

Edits the local policy file in place, like pause/resume, so comments and
layout survive. Repository settings on GitHub are not touched.

Commands:
    mayor-west configure                                 # Interactive
    mayor-west configure --merge-method rebase --yes
    mayor-west configure --protect Dockerfile --protect "k8s/**"

Exit codes:
    0 = Updated, or already up to date
    10 = Missing policy file or nothing to configure
    12 = Policy document failed schema validation
"""

from __future__ import annotations

import argparse
import re
from dataclasses import dataclass, field
from typing import Sequence

import structlog
import yaml

from mayor_west.cli.common import read_policy_text, resolve_policy_path
from mayor_west.cli.ux import confirm, console, info, is_interactive, multi_select, select, success
from mayor_west.core.errors import ConfigurationError, ExitCode, main_with_error_handling
from mayor_west.policies import PatternError, PolicyDocument, compile_pattern, load_policy, parse_policy
from mayor_west.policies.defaults import OPTIONAL_PROTECTED_PATHS
from mayor_west.policies.models import PolicySettings
from mayor_west.policies.schema import MERGE_METHODS

logger = structlog.get_logger()

_TOP_LEVEL_LINE = re.compile(r"^[^\s#]", re.MULTILINE)
_SETTINGS_HEADER = re.compile(r"^settings:[ \t]*(?:#[^\n]*)?$", re.MULTILINE)
_FILES_HEADER = re.compile(r"^(?P<indent>[ \t]+)files:[ \t]*(?:#[^\n]*)?$", re.MULTILINE)
_BLOCKED_KEY = re.compile(
    r"^(?P<indent>[ \t]*)blocked_patterns:(?P<rest>[^\n#]*)(?:#[^\n]*)?$", re.MULTILINE
)
_LIST_ITEM = re.compile(r"^(?P<indent>[ \t]*)- ")


@dataclass
class ConfigureAnswers:
    """Requested changes. None leaves a setting as it is."""

    merge_method: str | None = None
    delete_branch: bool | None = None
    audit_comments: bool | None = None
    protect: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            self.merge_method is None
            and self.delete_branch is None
            and self.audit_comments is None
            and not self.protect
        )


def _yaml_scalar(value: str) -> str:
    """A pattern rendered as a YAML scalar, quoted when it needs to be."""
    return yaml.safe_dump([value], default_flow_style=True, width=10**6).strip()[1:-1]


def _flow_list(values: Sequence[str]) -> str:
    return yaml.safe_dump(list(values), default_flow_style=True, width=10**6).strip()


def set_setting(policy_text: str, key: str, value: str) -> tuple[str, bool]:
    """
    Set one key in the top-level settings block.

    A missing key is added to the block, and a missing block is appended to
    the document.

    Returns:
        (new text, whether the text changed)

    Raises:
        ConfigurationError: If settings is written in flow style
    """
    header = _SETTINGS_HEADER.search(policy_text)
    if header is None:
        if re.search(r"^settings:", policy_text, re.MULTILINE):
            raise ConfigurationError("The settings section must be a block mapping to be edited")
        separator = "\n" if policy_text and not policy_text.endswith("\n") else ""
        return f"{policy_text}{separator}settings:\n  {key}: {value}\n", True

    next_section = _TOP_LEVEL_LINE.search(policy_text, header.end())
    end = next_section.start() if next_section else len(policy_text)
    body = policy_text[header.end() : end]

    line = re.search(rf"^[ \t]+{re.escape(key)}:[ \t]*([^\s#]+)", body, re.MULTILINE)
    if line is not None:
        if line.group(1) == value:
            return policy_text, False
        start = header.end() + line.start(1)
        stop = header.end() + line.end(1)
        return policy_text[:start] + value + policy_text[stop:], True

    indent = re.search(r"^([ \t]+)\S", body, re.MULTILINE)
    prefix = indent.group(1) if indent else "  "
    insert_at = header.end()
    return policy_text[:insert_at] + f"\n{prefix}{key}: {value}" + policy_text[insert_at:], True


def _insert_into_block_list(policy_text: str, key: re.Match[str], patterns: Sequence[str]) -> str | None:
    """Append items after the last entry of a block-style list. None if the list is empty."""
    position = key.end() + 1
    last_end = None
    item_indent = None
    for line in policy_text[position:].splitlines(keepends=True):
        item = _LIST_ITEM.match(line)
        if item is None or len(item.group("indent")) < len(key.group("indent")):
            break
        item_indent = item_indent if item_indent is not None else item.group("indent")
        position += len(line)
        last_end = position

    if last_end is None:
        return None

    before = policy_text[:last_end]
    if not before.endswith("\n"):
        before += "\n"
    added = "".join(f"{item_indent}- {_yaml_scalar(p)}\n" for p in patterns)
    return before + added + policy_text[last_end:]


def _replace_value(policy_text: str, key: re.Match[str], values: Sequence[str]) -> str:
    """Replace the inline value of a blocked_patterns line with a flow list."""
    suffix = policy_text[key.end("rest") :]
    value = " " + _flow_list(values) + (" " if suffix.startswith("#") else "")
    return policy_text[: key.start("rest")] + value + suffix


def add_blocked_patterns(policy_text: str, patterns: Sequence[str]) -> tuple[str, list[str]]:
    """
    Add glob patterns to policies.files.blocked_patterns.

    Returns:
        (new text, patterns actually added)

    Raises:
        ConfigurationError: If a pattern is invalid, the policy has no files
            category, or the list cannot be located in the text
    """
    for pattern in patterns:
        try:
            compile_pattern(pattern)
        except PatternError as e:
            raise ConfigurationError(f"Invalid protected path '{pattern}': {e}") from e

    policy = load_policy(policy_text)
    if policy.files is None:
        raise ConfigurationError(
            "Policy has no files category to protect paths in",
            details={"hint": "add policies.files to the policy file"},
        )

    current = list(policy.files.blocked.sources)
    new = [p for p in dict.fromkeys(patterns) if p not in current]
    if not new:
        return policy_text, []

    key = _BLOCKED_KEY.search(policy_text)
    if key is None:
        files = _FILES_HEADER.search(policy_text)
        if files is None:
            raise ConfigurationError("Could not locate policies.files in the policy file")
        child = files.group("indent") * 2
        updated = (
            policy_text[: files.end()]
            + f"\n{child}blocked_patterns: {_flow_list(new)}"
            + policy_text[files.end() :]
        )
    elif key.group("rest").strip():
        # Flow style, e.g. "blocked_patterns: []"
        updated = _replace_value(policy_text, key, current + new)
    else:
        updated = _insert_into_block_list(policy_text, key, new)
        if updated is None:
            updated = _replace_value(policy_text, key, new)

    result = parse_policy(updated)
    blocked = result.policy.files.blocked.sources if result.valid and result.policy.files else None
    if blocked is None or list(blocked) != current + new:
        raise ConfigurationError(
            "Could not update blocked_patterns automatically",
            details={"hint": "edit policies.files.blocked_patterns by hand"},
        )
    return updated, new


def _bool(value: bool) -> str:
    return "true" if value else "false"


def apply_configuration(policy_text: str, answers: ConfigureAnswers) -> tuple[str, list[str]]:
    """
    Apply requested changes to policy text.

    Returns:
        (new text, descriptions of what changed)
    """
    changes: list[str] = []
    text = policy_text

    scalar_settings = (
        ("merge_method", answers.merge_method),
        ("delete_branch", None if answers.delete_branch is None else _bool(answers.delete_branch)),
        ("audit_comments", None if answers.audit_comments is None else _bool(answers.audit_comments)),
    )
    for key, value in scalar_settings:
        if value is None:
            continue
        text, changed = set_setting(text, key, value)
        if changed:
            changes.append(f"settings.{key} = {value}")

    if answers.protect:
        text, added = add_blocked_patterns(text, answers.protect)
        changes.extend(f"protected {pattern}" for pattern in added)

    # Every edit must leave a valid document behind
    load_policy(text)
    return text, changes


def _run_wizard(policy: PolicyDocument) -> ConfigureAnswers:
    """Collect settings interactively, defaulting to the current values."""
    current = policy.settings or PolicySettings()
    answers = ConfigureAnswers(
        merge_method=select("Auto-merge method:", list(MERGE_METHODS), default=current.merge_method),
        audit_comments=confirm("Add audit comments to merged PRs?", default=current.audit_comments),
        delete_branch=confirm("Delete branch after merge?", default=current.delete_branch),
    )
    if policy.files is not None:
        blocked = set(policy.files.blocked.sources)
        choices = [p for p in OPTIONAL_PROTECTED_PATHS if p not in blocked]
        if choices:
            answers.protect = multi_select(
                "Additional paths to protect (require human review):", choices=choices
            )
    return answers


@main_with_error_handling()
def configure_command(
    merge_method: str | None = None,
    delete_branch: bool | None = None,
    audit_comments: bool | None = None,
    protect: Sequence[str] | None = None,
    yes: bool = False,
    root: str | None = None,
    policy_path: str | None = None,
) -> int:
    """
    Update merge settings and protected paths in the policy file.

    Args:
        merge_method: squash, merge or rebase
        delete_branch: Delete the agent branch after merge
        audit_comments: Comment on merged PRs
        protect: Glob patterns to add to the blocked file patterns
        yes: Never prompt
        root: Repository root
        policy_path: Policy file

    Returns:
        Exit code (0 ok, 10 nothing to configure or missing file, 12 invalid policy)
    """
    path = resolve_policy_path(policy_path, root)
    text = read_policy_text(path)
    policy = load_policy(text)

    answers = ConfigureAnswers(
        merge_method=merge_method.lower() if merge_method else None,
        delete_branch=delete_branch,
        audit_comments=audit_comments,
        protect=list(protect or []),
    )
    if answers.merge_method is not None and answers.merge_method not in MERGE_METHODS:
        raise ConfigurationError(
            f"Invalid merge method: '{merge_method}'. Must be one of: {', '.join(MERGE_METHODS)}"
        )

    if answers.is_empty:
        if yes or not is_interactive():
            raise ConfigurationError(
                "Nothing to configure",
                details={"hint": "pass --merge-method, --delete-branch, --audit-comments or --protect"},
            )
        answers = _run_wizard(policy)

    updated, changes = apply_configuration(text, answers)
    if not changes:
        info("Policy already matches the requested settings")
        return ExitCode.SUCCESS

    path.write_text(updated, encoding="utf-8")
    logger.info("policy_configured", policy=str(path), changes=len(changes))
    for change in changes:
        success(change)
    console.print(f"[muted]Updated {path}. Commit and push it for the change to take effect[/muted]")
    return ExitCode.SUCCESS


def register_configure_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register configure subcommand parser."""
    parser = subparsers.add_parser(
        "configure",
        help="Change merge settings and protected paths in the policy file",
    )
    parser.add_argument(
        "--merge-method",
        type=str.lower,
        choices=list(MERGE_METHODS),
        help="Merge method recorded in settings",
    )
    parser.add_argument(
        "--delete-branch",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Delete the agent branch after merge",
    )
    parser.add_argument(
        "--audit-comments",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Comment on merged PRs",
    )
    parser.add_argument(
        "--protect",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Glob pattern to block (repeatable)",
    )
    parser.add_argument("--yes", "-y", action="store_true", help="Never prompt")
    parser.add_argument("--root", help="Repository root (default: current directory)")
    parser.add_argument("--policy", dest="policy_path", help="Policy file path")


def handle_configure_command(args: argparse.Namespace) -> int:
    """Handle configure command from CLI args."""
    return configure_command(
        merge_method=getattr(args, "merge_method", None),
        delete_branch=getattr(args, "delete_branch", None),
        audit_comments=getattr(args, "audit_comments", None),
        protect=getattr(args, "protect", []),
        yes=getattr(args, "yes", False),
        root=getattr(args, "root", None),
        policy_path=getattr(args, "policy_path", None),
    )
