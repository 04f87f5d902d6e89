"""
Default policy generation.

Builds the policy document written by ``policy init`` and by setup. Output
is deterministic for identical arguments and always passes schema
validation.
"""

from __future__ import annotations

import copy
from typing import Any, Iterable, Sequence

import yaml

from mayor_west.core.errors import ConfigurationError
from mayor_west.policies.models import CATEGORY_NAMES, POLICY_SCHEMA_VERSION

POLICY_FILE_PATH = ".github/mayor-west.yml"

COMMIT_FORMAT_PATTERN = r"^\[MAYOR\]\s+.{10,100}$"

DEFAULT_CATEGORIES: tuple[str, ...] = ("files", "commits")

DEFAULT_BYPASS_LABELS: tuple[str, ...] = ("emergency", "hotfix")

STRICT_MAX_FILES = 10

STRICT_BLOCKED_PATTERNS: tuple[str, ...] = (
    ".github/workflows/**",
    "package.json",
    "**/*.sql",
    "**/migrations/**",
)

# Paths the agent must never modify, blocked by setup-generated policies
DEFAULT_PROTECTED_PATHS: tuple[str, ...] = (
    ".github/workflows/**",
    POLICY_FILE_PATH,
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "requirements.txt",
    "pyproject.toml",
    "**/.env*",
    "**/secrets/**",
    "**/*.pem",
    "**/*.key",
)

# Extra paths offered by the setup and configure wizards
OPTIONAL_PROTECTED_PATHS: tuple[str, ...] = (
    "Dockerfile",
    "docker-compose*.yml",
    ".circleci/**",
    "k8s/**",
    "**/*.tf",
    "**/migrations/**",
    "SECURITY.md",
)

_SECTIONS: dict[str, dict[str, Any]] = {
    "files": {
        "allowed_patterns": ["**"],
        "blocked_patterns": [],
        "max_files_per_pr": 100,
        "max_lines_per_file": 1000,
    },
    "commands": {
        "mode": "blacklist",
        "allowed": [],
        "blocked": [
            {"pattern": r"^rm\s+-rf\s+/", "reason": "Destructive filesystem command"},
            {"pattern": r"^git\s+push\b.*--force", "reason": "Force push rewrites shared history"},
            {"pattern": r"^git\s+reset\s+--hard", "reason": "Discards uncommitted work"},
        ],
    },
    "quality": {
        "must_pass": ["tests", "lint"],
    },
    "dependencies": {
        "mode": "approval_required",
    },
    "commits": {
        "format": {
            "pattern": COMMIT_FORMAT_PATTERN,
            "example": "[MAYOR] Add feature description",
        },
    },
    "pull_requests": {
        "title": {
            "pattern": r"^\[MAYOR\]",
            "example": "[MAYOR] Add feature description",
        },
        "required_sections": ["## Summary"],
    },
}

_HEADER = """\
# Mayor West Mode policy
#
# Controls what the autonomous agent may change. Validate with:
#   mayor-west policy validate
# Pause or resume autonomous mode with:
#   mayor-west pause / mayor-west resume
"""


def _dedupe(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def build_default_policy(
    strict: bool = False,
    categories: Sequence[str] | None = None,
    protected_paths: Sequence[str] = (),
    iteration_limit: int = 15,
    merge_method: str = "squash",
) -> dict[str, Any]:
    """
    Build the default policy as a plain mapping.

    Args:
        strict: Tighten file limits and block sensitive paths
        categories: Categories to include (default: files and commits)
        protected_paths: Extra glob patterns to block in the files category
        iteration_limit: Agent iteration limit recorded in settings
        merge_method: squash, merge or rebase

    Raises:
        ConfigurationError: If a category name is unknown
    """
    requested = tuple(categories) if categories is not None else DEFAULT_CATEGORIES
    unknown = [c for c in requested if c not in CATEGORY_NAMES]
    if unknown:
        raise ConfigurationError(
            f"Unknown policy categories: {', '.join(unknown)}",
            details={"valid": ", ".join(CATEGORY_NAMES)},
        )

    policies: dict[str, Any] = {}
    for name in CATEGORY_NAMES:
        if name in requested:
            policies[name] = copy.deepcopy(_SECTIONS[name])

    if "files" in policies:
        files = policies["files"]
        blocked = list(protected_paths)
        if strict:
            files["max_files_per_pr"] = STRICT_MAX_FILES
            blocked = list(STRICT_BLOCKED_PATTERNS) + blocked
        files["blocked_patterns"] = _dedupe(p for p in blocked if p not in files["allowed_patterns"])

    return {
        "version": POLICY_SCHEMA_VERSION,
        "enabled": True,
        "policies": policies,
        "overrides": {
            "bypass_labels": list(DEFAULT_BYPASS_LABELS),
            "partial_bypass": [],
        },
        "settings": {
            "merge_method": merge_method,
            "iteration_limit": iteration_limit,
            "delete_branch": True,
            "require_status_checks": True,
            "audit_comments": True,
        },
    }


def generate_default_policy(
    strict: bool = False,
    categories: Sequence[str] | None = None,
    **options: Any,
) -> str:
    """Render the default policy as YAML text. See build_default_policy."""
    document = build_default_policy(strict=strict, categories=categories, **options)
    body = yaml.safe_dump(document, sort_keys=False, default_flow_style=False, width=100)
    return _HEADER + "\n" + body
