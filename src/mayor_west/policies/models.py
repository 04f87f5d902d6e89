"""
Typed policy model and evaluation results.

Everything here is produced by the schema validator and consumed read-only
by the evaluator and override resolver. Instances are frozen after
validation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from mayor_west.policies.patterns import PatternSet

POLICY_SCHEMA_VERSION = "1.0"


class Category(str, Enum):
    """Fixed policy categories."""

    FILES = "files"
    COMMANDS = "commands"
    QUALITY = "quality"
    DEPENDENCIES = "dependencies"
    COMMITS = "commits"
    PULL_REQUESTS = "pull_requests"


CATEGORY_NAMES: tuple[str, ...] = tuple(c.value for c in Category)

# Rule paths the evaluator emits, keyed by category
RULE_PATHS: dict[str, tuple[str, ...]] = {
    "files": ("allowed_patterns", "blocked_patterns", "max_files_per_pr", "max_lines_per_file"),
    "commands": ("blocked", "allowed"),
    "quality": ("must_pass", "coverage"),
    "dependencies": ("whitelist", "blacklist", "approval_required"),
    "commits": ("format", "max_size", "max_files", "required_trailer"),
    "pull_requests": ("title", "required_sections", "required_labels", "required_reviewers"),
}

RECOGNIZED_BYPASS_PATHS: frozenset[str] = frozenset(
    list(CATEGORY_NAMES)
    + [f"{category}.{rule}" for category, rules in RULE_PATHS.items() for rule in rules]
)


class Severity(str, Enum):
    """Violation severity. All severities fail a verdict."""

    ERROR = "error"
    WARNING = "warning"
    APPROVAL_REQUIRED = "approval_required"

    @property
    def label(self) -> str:
        if self is Severity.APPROVAL_REQUIRED:
            return "requires human approval"
        return self.value


@dataclass(frozen=True)
class RegexCheck:
    """A compiled regex with an optional human example."""

    regex: re.Pattern[str]
    example: str | None = None

    @property
    def pattern(self) -> str:
        return self.regex.pattern

    def describe(self) -> str:
        return self.example or self.regex.pattern


@dataclass(frozen=True)
class CommandRule:
    """A command regex with its description (allowed) or reason (blocked)."""

    regex: re.Pattern[str]
    note: str = ""

    @property
    def pattern(self) -> str:
        return self.regex.pattern


@dataclass(frozen=True)
class FilePolicy:
    allowed: PatternSet = field(default_factory=PatternSet)
    blocked: PatternSet = field(default_factory=PatternSet)
    max_files_per_pr: int | None = None
    max_lines_per_file: int | None = None


@dataclass(frozen=True)
class CommandPolicy:
    mode: str = "blacklist"
    allowed: tuple[CommandRule, ...] = ()
    blocked: tuple[CommandRule, ...] = ()


@dataclass(frozen=True)
class QualityPolicy:
    must_pass: tuple[str, ...] = ()
    min_coverage: float | None = None


@dataclass(frozen=True)
class DependencyPolicy:
    """
    Dependency rules.

    Whitelist/blacklist entries map an ecosystem (npm, pip, ...) to package
    names. A trailing "*" on a name matches any name with that prefix.
    """

    mode: str = "approval_required"
    whitelist: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    blacklist: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class CommitPolicy:
    format: RegexCheck | None = None
    max_size: int | None = None
    max_files: int | None = None
    required_trailer: RegexCheck | None = None


@dataclass(frozen=True)
class ConditionalLabel:
    label: str
    when: str = ""


@dataclass(frozen=True)
class ConditionalReviewers:
    reviewers: tuple[str, ...]
    when: str = ""


@dataclass(frozen=True)
class PullRequestPolicy:
    title: RegexCheck | None = None
    required_sections: tuple[str, ...] = ()
    required_labels: tuple[str, ...] = ()
    auto_add_labels: tuple[ConditionalLabel, ...] = ()
    required_reviewers: tuple[ConditionalReviewers, ...] = ()


@dataclass(frozen=True)
class PartialBypass:
    label: str
    bypasses: tuple[str, ...] = ()


@dataclass(frozen=True)
class Overrides:
    bypass_labels: tuple[str, ...] = ()
    partial_bypass: tuple[PartialBypass, ...] = ()


@dataclass(frozen=True)
class PolicySettings:
    merge_method: str = "squash"
    iteration_limit: int = 15
    delete_branch: bool = True
    require_status_checks: bool = True
    audit_comments: bool = True


@dataclass(frozen=True)
class PolicyDocument:
    """Validated policy document. Absent categories are None."""

    version: str
    enabled: bool
    files: FilePolicy | None = None
    commands: CommandPolicy | None = None
    quality: QualityPolicy | None = None
    dependencies: DependencyPolicy | None = None
    commits: CommitPolicy | None = None
    pull_requests: PullRequestPolicy | None = None
    overrides: Overrides = field(default_factory=Overrides)
    settings: PolicySettings | None = None

    @property
    def categories(self) -> dict[str, Any]:
        """Configured categories in canonical order."""
        return {
            name: getattr(self, name)
            for name in CATEGORY_NAMES
            if getattr(self, name) is not None
        }


@dataclass(frozen=True)
class Violation:
    """A single policy violation."""

    category: str
    rule: str
    message: str
    severity: Severity = Severity.ERROR

    @property
    def path(self) -> str:
        return f"{self.category}.{self.rule}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "rule": self.rule,
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class Verdict:
    """
    Evaluator output.

    passed is true iff no violations remain after bypass filtering.
    """

    passed: bool
    violations: tuple[Violation, ...] = ()
    bypassed: tuple[str, ...] = ()
    full_bypass: bool = False
    policy_enabled: bool = True
    labels_to_add: tuple[str, ...] = ()
    required_reviewers: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def blocking(self) -> tuple[Violation, ...]:
        return tuple(v for v in self.violations if v.severity is Severity.ERROR)

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "policy_enabled": self.policy_enabled,
            "full_bypass": self.full_bypass,
            "bypassed": list(self.bypassed),
            "violations": [v.to_dict() for v in self.violations],
            "labels_to_add": list(self.labels_to_add),
            "required_reviewers": list(self.required_reviewers),
            "warnings": list(self.warnings),
        }
