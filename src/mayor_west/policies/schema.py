"""
Policy document schema validation.

Turns a raw policy document (parsed YAML) into a typed PolicyDocument, or
a complete list of schema issues. A document is never partially applied:
if any error is found, no model is returned.

Checks:
1. Required top-level keys (version, enabled) are present
2. version is supported (unsupported versions stop validation)
3. Every key at every level is recognized
4. Every regex-bearing field compiles, every glob compiles
5. Numeric limits are integers within sane bounds
6. Override labels are non-empty; duplicate/unknown bypass entries warn
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

import structlog
import yaml

from mayor_west.core.errors import SchemaError, SchemaIssue
from mayor_west.policies.models import (
    CATEGORY_NAMES,
    POLICY_SCHEMA_VERSION,
    RECOGNIZED_BYPASS_PATHS,
    CommandPolicy,
    CommandRule,
    CommitPolicy,
    ConditionalLabel,
    ConditionalReviewers,
    DependencyPolicy,
    FilePolicy,
    Overrides,
    PartialBypass,
    PolicyDocument,
    PolicySettings,
    PullRequestPolicy,
    QualityPolicy,
    RegexCheck,
)
from mayor_west.policies.patterns import PatternError, PatternSet, compile_pattern

logger = structlog.get_logger()

DOCUMENT_PATH = "<document>"

TOP_LEVEL_KEYS = ("version", "enabled", "policies", "overrides", "settings")

COMMAND_MODES = ("blacklist", "whitelist")
DEPENDENCY_MODES = ("whitelist", "blacklist", "approval_required")
MERGE_METHODS = ("squash", "merge", "rebase")

# Inclusive bounds for numeric limits
MAX_FILES_BOUNDS = (1, 10_000)
MAX_LINES_BOUNDS = (1, 1_000_000)
COVERAGE_BOUNDS = (0, 100)
ITERATION_LIMIT_BOUNDS = (1, 50)


@dataclass
class SchemaResult:
    """Result of policy document validation."""

    policy: PolicyDocument | None = None
    errors: list[SchemaIssue] = field(default_factory=list)
    warnings: list[SchemaIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors and self.policy is not None

    def unwrap(self) -> PolicyDocument:
        """Return the validated policy or raise SchemaError with every issue."""
        if self.errors or self.policy is None:
            raise SchemaError(self.errors or [SchemaIssue(DOCUMENT_PATH, "no policy")])
        return self.policy

    def __str__(self) -> str:
        lines = []

        if self.valid:
            lines.append("✅ Valid policy document")
        else:
            lines.append("❌ Invalid policy document")

        if self.errors:
            lines.append("\nErrors:")
            for issue in self.errors:
                lines.append(f"  • {issue}")

        if self.warnings:
            lines.append("\nWarnings:")
            for issue in self.warnings:
                lines.append(f"  ⚠️  {issue}")

        return "\n".join(lines)


class _Collector:
    """Accumulates issues while walking a raw document."""

    def __init__(self) -> None:
        self.errors: list[SchemaIssue] = []
        self.warnings: list[SchemaIssue] = []

    def error(self, path: str, message: str) -> None:
        self.errors.append(SchemaIssue(path, message))

    def warn(self, path: str, message: str) -> None:
        self.warnings.append(SchemaIssue(path, message))

    def mapping(self, value: Any, path: str, allowed: Iterable[str]) -> dict[str, Any] | None:
        """Check a mapping and flag any key outside ``allowed``."""
        if value is None:
            return {}
        if not isinstance(value, dict):
            self.error(path, "must be a mapping")
            return None
        allowed = tuple(allowed)
        for key in value:
            if key not in allowed:
                self.error(f"{path}.{key}", f"unknown field (expected one of: {', '.join(allowed)})")
        return value

    def string_list(self, value: Any, path: str) -> tuple[str, ...]:
        if value is None:
            return ()
        if not isinstance(value, list):
            self.error(path, "must be a list of strings")
            return ()
        items = []
        for index, item in enumerate(value):
            if not isinstance(item, str) or not item.strip():
                self.error(f"{path}[{index}]", "must be a non-empty string")
                continue
            items.append(item)
        return tuple(items)

    def regex(self, value: Any, path: str) -> re.Pattern[str] | None:
        if not isinstance(value, str) or not value:
            self.error(path, "must be a non-empty regex string")
            return None
        try:
            return re.compile(value)
        except re.error as e:
            self.error(path, f"invalid regex: {e}")
            return None

    def regex_check(self, value: Any, path: str) -> RegexCheck | None:
        data = self.mapping(value, path, ("pattern", "example"))
        if not data:
            if data is not None:
                self.error(f"{path}.pattern", "is required")
            return None
        if "pattern" not in data:
            self.error(f"{path}.pattern", "is required")
            return None
        regex = self.regex(data["pattern"], f"{path}.pattern")
        example = data.get("example")
        if example is not None and not isinstance(example, str):
            self.error(f"{path}.example", "must be a string")
            example = None
        return RegexCheck(regex=regex, example=example) if regex is not None else None

    def glob_set(self, value: Any, path: str) -> PatternSet:
        patterns = []
        if value is None:
            return PatternSet()
        if not isinstance(value, list):
            self.error(path, "must be a list of glob patterns")
            return PatternSet()
        for index, item in enumerate(value):
            try:
                patterns.append(compile_pattern(item))
            except PatternError as e:
                self.error(f"{path}[{index}]", str(e))
        return PatternSet(patterns)

    def integer(self, value: Any, path: str, bounds: tuple[int, int]) -> int | None:
        if value is None:
            return None
        low, high = bounds
        if isinstance(value, bool) or not isinstance(value, int):
            self.error(path, "must be an integer")
            return None
        if not low <= value <= high:
            self.error(path, f"must be between {low} and {high}, got {value}")
            return None
        return value

    def number(self, value: Any, path: str, bounds: tuple[int, int]) -> float | None:
        if value is None:
            return None
        low, high = bounds
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            self.error(path, "must be a number")
            return None
        if not low <= value <= high:
            self.error(path, f"must be between {low} and {high}, got {value}")
            return None
        return float(value)

    def boolean(self, value: Any, path: str, default: bool) -> bool:
        if value is None:
            return default
        if not isinstance(value, bool):
            self.error(path, "must be a boolean")
            return default
        return value

    def choice(self, value: Any, path: str, choices: tuple[str, ...], default: str) -> str:
        if value is None:
            return default
        if value not in choices:
            self.error(path, f"must be one of: {', '.join(choices)}")
            return default
        return value

    def entries(
        self,
        value: Any,
        path: str,
        build: Callable[[dict[str, Any], str], Any],
        allowed: Iterable[str],
    ) -> tuple[Any, ...]:
        """Validate a list of mapping entries, building each with ``build``."""
        if value is None:
            return ()
        if not isinstance(value, list):
            self.error(path, "must be a list")
            return ()
        built = []
        for index, item in enumerate(value):
            item_path = f"{path}[{index}]"
            data = self.mapping(item, item_path, allowed)
            if data is None:
                continue
            result = build(data, item_path)
            if result is not None:
                built.append(result)
        return tuple(built)


# =============================================================================
# Category validators
# =============================================================================


def _files(c: _Collector, raw: Any, path: str) -> FilePolicy | None:
    data = c.mapping(
        raw,
        path,
        ("allowed_patterns", "blocked_patterns", "max_files_per_pr", "max_lines_per_file"),
    )
    if data is None:
        return None

    allowed = c.glob_set(data.get("allowed_patterns"), f"{path}.allowed_patterns")
    blocked = c.glob_set(data.get("blocked_patterns"), f"{path}.blocked_patterns")

    for source in sorted(set(allowed.sources) & set(blocked.sources)):
        c.error(
            f"{path}.blocked_patterns",
            f"pattern '{source}' is listed as both allowed and blocked",
        )

    return FilePolicy(
        allowed=allowed,
        blocked=blocked,
        max_files_per_pr=c.integer(data.get("max_files_per_pr"), f"{path}.max_files_per_pr", MAX_FILES_BOUNDS),
        max_lines_per_file=c.integer(
            data.get("max_lines_per_file"), f"{path}.max_lines_per_file", MAX_LINES_BOUNDS
        ),
    )


def _command_rule(c: _Collector, data: dict[str, Any], path: str) -> CommandRule | None:
    if "pattern" not in data:
        c.error(f"{path}.pattern", "is required")
        return None
    regex = c.regex(data["pattern"], f"{path}.pattern")
    note = data.get("reason") or data.get("description") or ""
    if not isinstance(note, str):
        c.error(path, "description/reason must be a string")
        note = ""
    return CommandRule(regex=regex, note=note) if regex is not None else None


def _commands(c: _Collector, raw: Any, path: str) -> CommandPolicy | None:
    data = c.mapping(raw, path, ("mode", "allowed", "blocked"))
    if data is None:
        return None

    rule_keys = ("pattern", "description", "reason")
    mode = c.choice(data.get("mode"), f"{path}.mode", COMMAND_MODES, "blacklist")
    allowed = c.entries(
        data.get("allowed"), f"{path}.allowed", lambda d, p: _command_rule(c, d, p), rule_keys
    )
    blocked = c.entries(
        data.get("blocked"), f"{path}.blocked", lambda d, p: _command_rule(c, d, p), rule_keys
    )

    if mode == "whitelist" and not data.get("allowed"):
        c.error(f"{path}.allowed", "whitelist mode requires at least one allowed command")

    return CommandPolicy(mode=mode, allowed=allowed, blocked=blocked)


def _quality(c: _Collector, raw: Any, path: str) -> QualityPolicy | None:
    data = c.mapping(raw, path, ("must_pass", "min_coverage"))
    if data is None:
        return None
    return QualityPolicy(
        must_pass=c.string_list(data.get("must_pass"), f"{path}.must_pass"),
        min_coverage=c.number(data.get("min_coverage"), f"{path}.min_coverage", COVERAGE_BOUNDS),
    )


def _package_map(c: _Collector, raw: Any, path: str) -> dict[str, tuple[str, ...]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        c.error(path, "must map ecosystem names to package lists")
        return {}
    return {
        str(ecosystem): c.string_list(names, f"{path}.{ecosystem}")
        for ecosystem, names in raw.items()
    }


def _dependencies(c: _Collector, raw: Any, path: str) -> DependencyPolicy | None:
    data = c.mapping(raw, path, ("mode", "whitelist", "blacklist"))
    if data is None:
        return None

    mode = c.choice(data.get("mode"), f"{path}.mode", DEPENDENCY_MODES, "approval_required")
    whitelist = _package_map(c, data.get("whitelist"), f"{path}.whitelist")
    blacklist = _package_map(c, data.get("blacklist"), f"{path}.blacklist")

    if mode == "whitelist" and not whitelist:
        c.warn(f"{path}.whitelist", "whitelist mode with no entries rejects every dependency")

    return DependencyPolicy(mode=mode, whitelist=whitelist, blacklist=blacklist)


def _commits(c: _Collector, raw: Any, path: str) -> CommitPolicy | None:
    data = c.mapping(raw, path, ("format", "max_size", "max_files", "required_trailer"))
    if data is None:
        return None

    return CommitPolicy(
        format=c.regex_check(data["format"], f"{path}.format") if "format" in data else None,
        max_size=c.integer(data.get("max_size"), f"{path}.max_size", MAX_LINES_BOUNDS),
        max_files=c.integer(data.get("max_files"), f"{path}.max_files", MAX_FILES_BOUNDS),
        required_trailer=(
            c.regex_check(data["required_trailer"], f"{path}.required_trailer")
            if "required_trailer" in data
            else None
        ),
    )


def _conditional_label(c: _Collector, data: dict[str, Any], path: str) -> ConditionalLabel | None:
    label = data.get("label")
    if not isinstance(label, str) or not label.strip():
        c.error(f"{path}.label", "must be a non-empty string")
        return None
    when = data.get("when") or ""
    if not isinstance(when, str):
        c.error(f"{path}.when", "must be a condition string")
        return None
    return ConditionalLabel(label=label, when=when)


def _conditional_reviewers(
    c: _Collector, data: dict[str, Any], path: str
) -> ConditionalReviewers | None:
    reviewers = c.string_list(data.get("reviewers"), f"{path}.reviewers")
    if not reviewers:
        c.error(f"{path}.reviewers", "must list at least one reviewer")
        return None
    when = data.get("when") or ""
    if not isinstance(when, str):
        c.error(f"{path}.when", "must be a condition string")
        return None
    return ConditionalReviewers(reviewers=reviewers, when=when)


def _pull_requests(c: _Collector, raw: Any, path: str) -> PullRequestPolicy | None:
    data = c.mapping(
        raw,
        path,
        ("title", "required_sections", "required_labels", "auto_add_labels", "required_reviewers"),
    )
    if data is None:
        return None

    return PullRequestPolicy(
        title=c.regex_check(data["title"], f"{path}.title") if "title" in data else None,
        required_sections=c.string_list(data.get("required_sections"), f"{path}.required_sections"),
        required_labels=c.string_list(data.get("required_labels"), f"{path}.required_labels"),
        auto_add_labels=c.entries(
            data.get("auto_add_labels"),
            f"{path}.auto_add_labels",
            lambda d, p: _conditional_label(c, d, p),
            ("label", "when"),
        ),
        required_reviewers=c.entries(
            data.get("required_reviewers"),
            f"{path}.required_reviewers",
            lambda d, p: _conditional_reviewers(c, d, p),
            ("reviewers", "when"),
        ),
    )


CATEGORY_VALIDATORS: dict[str, Callable[[_Collector, Any, str], Any]] = {
    "files": _files,
    "commands": _commands,
    "quality": _quality,
    "dependencies": _dependencies,
    "commits": _commits,
    "pull_requests": _pull_requests,
}


# =============================================================================
# Overrides and settings
# =============================================================================


def _partial_bypass(c: _Collector, data: dict[str, Any], path: str) -> PartialBypass | None:
    label = data.get("label")
    if not isinstance(label, str) or not label.strip():
        c.error(f"{path}.label", "must be a non-empty string")
        return None
    bypasses = c.string_list(data.get("bypasses"), f"{path}.bypasses")
    for index, bypass_path in enumerate(bypasses):
        if bypass_path not in RECOGNIZED_BYPASS_PATHS:
            c.warn(
                f"{path}.bypasses[{index}]",
                f"unrecognized bypass path '{bypass_path}' has no effect",
            )
    return PartialBypass(label=label, bypasses=bypasses)


def _overrides(c: _Collector, raw: Any, path: str) -> Overrides:
    data = c.mapping(raw, path, ("bypass_labels", "partial_bypass"))
    if data is None:
        return Overrides()

    bypass_labels = c.string_list(data.get("bypass_labels"), f"{path}.bypass_labels")
    partial = c.entries(
        data.get("partial_bypass"),
        f"{path}.partial_bypass",
        lambda d, p: _partial_bypass(c, d, p),
        ("label", "bypasses"),
    )

    seen: set[str] = set()
    for label in list(bypass_labels) + [p.label for p in partial]:
        if label in seen:
            c.warn(
                f"{path}",
                f"label '{label}' is listed more than once; full bypass takes precedence",
            )
        seen.add(label)

    return Overrides(bypass_labels=bypass_labels, partial_bypass=partial)


def _settings(c: _Collector, raw: Any, path: str) -> PolicySettings | None:
    data = c.mapping(
        raw,
        path,
        ("merge_method", "iteration_limit", "delete_branch", "require_status_checks", "audit_comments"),
    )
    if data is None:
        return None

    defaults = PolicySettings()
    iteration_limit = c.integer(data.get("iteration_limit"), f"{path}.iteration_limit", ITERATION_LIMIT_BOUNDS)
    return PolicySettings(
        merge_method=c.choice(data.get("merge_method"), f"{path}.merge_method", MERGE_METHODS, defaults.merge_method),
        iteration_limit=iteration_limit if iteration_limit is not None else defaults.iteration_limit,
        delete_branch=c.boolean(data.get("delete_branch"), f"{path}.delete_branch", defaults.delete_branch),
        require_status_checks=c.boolean(
            data.get("require_status_checks"), f"{path}.require_status_checks", defaults.require_status_checks
        ),
        audit_comments=c.boolean(data.get("audit_comments"), f"{path}.audit_comments", defaults.audit_comments),
    )


# =============================================================================
# Public API
# =============================================================================


def validate_policy(raw: Any) -> SchemaResult:
    """
    Validate a raw policy document.

    Args:
        raw: Parsed YAML (normally a dict)

    Returns:
        SchemaResult with the typed policy (only when there are no errors),
        plus every error and warning found
    """
    c = _Collector()

    if not isinstance(raw, dict):
        c.error(DOCUMENT_PATH, "policy document must be a mapping")
        return SchemaResult(errors=c.errors)

    for key in raw:
        if key not in TOP_LEVEL_KEYS:
            c.error(str(key), f"unknown field (expected one of: {', '.join(TOP_LEVEL_KEYS)})")

    if "version" not in raw:
        c.error("version", "is required")
    elif str(raw["version"]) != POLICY_SCHEMA_VERSION:
        c.error(
            "version",
            f"unsupported policy version '{raw['version']}' (expected {POLICY_SCHEMA_VERSION})",
        )
        # Fail closed: no best-effort parse of an unknown schema
        return SchemaResult(errors=c.errors)

    if "enabled" not in raw:
        c.error("enabled", "is required")
    elif not isinstance(raw["enabled"], bool):
        c.error("enabled", "must be a boolean")

    categories: dict[str, Any] = {}
    policies = c.mapping(raw.get("policies"), "policies", CATEGORY_NAMES)
    if policies:
        for name, section in policies.items():
            validator = CATEGORY_VALIDATORS.get(name)
            if validator is None:
                continue  # already reported as unknown
            categories[name] = validator(c, section, f"policies.{name}")

    overrides = _overrides(c, raw.get("overrides"), "overrides")
    settings = _settings(c, raw["settings"], "settings") if "settings" in raw else None

    if c.errors:
        logger.debug("policy_rejected", errors=len(c.errors), warnings=len(c.warnings))
        return SchemaResult(errors=c.errors, warnings=c.warnings)

    policy = PolicyDocument(
        version=POLICY_SCHEMA_VERSION,
        enabled=raw["enabled"],
        overrides=overrides,
        settings=settings,
        **categories,
    )
    logger.debug(
        "policy_validated",
        enabled=policy.enabled,
        categories=list(policy.categories),
        warnings=len(c.warnings),
    )
    return SchemaResult(policy=policy, warnings=c.warnings)


def parse_policy(text: str) -> SchemaResult:
    """Parse YAML text and validate it. Syntax errors become document-level issues."""
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return SchemaResult(errors=[SchemaIssue(DOCUMENT_PATH, f"invalid YAML syntax: {e}")])
    return validate_policy(raw)


def load_policy(text: str) -> PolicyDocument:
    """
    Parse and validate policy YAML text.

    Raises:
        SchemaError: With every issue found, if the document is invalid
    """
    return parse_policy(text).unwrap()
