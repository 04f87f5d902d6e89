"""
Policy evaluator.

Checks a ChangeSet against a validated PolicyDocument and produces a
Verdict. Evaluation is pure: the same inputs always produce an equal
Verdict, with violations in a stable order (category order, then change-set
order within a category).
"""

from __future__ import annotations

from typing import Callable, Sequence

import structlog

from mayor_west.policies.changeset import ChangeSet, QualityResult, is_dependency_manifest
from mayor_west.policies.conditions import ConditionEvaluator
from mayor_west.policies.models import (
    CATEGORY_NAMES,
    CommandPolicy,
    CommitPolicy,
    DependencyPolicy,
    FilePolicy,
    PolicyDocument,
    PullRequestPolicy,
    QualityPolicy,
    Severity,
    Verdict,
    Violation,
)
from mayor_west.policies.overrides import resolve_bypass

logger = structlog.get_logger()

COVERAGE_CHECK = "coverage"


def check_files(change_set: ChangeSet, rule: FilePolicy) -> list[Violation]:
    """Blocked/allowed paths, file count and per-file line limits."""
    violations = []

    if rule.max_files_per_pr is not None and len(change_set.files) > rule.max_files_per_pr:
        violations.append(
            Violation(
                "files",
                "max_files_per_pr",
                f"Too many files changed: {len(change_set.files)} > {rule.max_files_per_pr}",
            )
        )

    for change in change_set.files:
        blocked_by = rule.blocked.first_match(change.path)
        if blocked_by is not None:
            violations.append(
                Violation(
                    "files",
                    "blocked_patterns",
                    f"File {change.path} matches blocked pattern: {blocked_by.source}",
                )
            )
        elif rule.allowed and not rule.allowed.matches(change.path):
            violations.append(
                Violation("files", "allowed_patterns", f"File {change.path} not in allowed patterns")
            )

        if rule.max_lines_per_file is not None and change.lines_changed > rule.max_lines_per_file:
            violations.append(
                Violation(
                    "files",
                    "max_lines_per_file",
                    f"File {change.path} has too many changes: "
                    f"{change.lines_changed} > {rule.max_lines_per_file}",
                )
            )

    return violations


def check_commands(change_set: ChangeSet, rule: CommandPolicy) -> list[Violation]:
    """Blocked commands always fail; whitelist mode also requires an allowed match."""
    violations = []

    for command in change_set.commands:
        blocked_by = next((r for r in rule.blocked if r.regex.search(command)), None)
        if blocked_by is not None:
            violations.append(
                Violation(
                    "commands",
                    "blocked",
                    f"Command '{command}' is blocked: {blocked_by.note or blocked_by.pattern}",
                )
            )
            continue

        if rule.mode == "whitelist" and not any(r.regex.search(command) for r in rule.allowed):
            violations.append(
                Violation("commands", "allowed", f"Command '{command}' is not in the allowed list")
            )

    return violations


def check_quality(results: Sequence[QualityResult], rule: QualityPolicy) -> list[Violation]:
    """Map pre-computed CI results onto must_pass and min_coverage."""
    violations = []
    by_name = {r.name: r for r in results}

    for name in rule.must_pass:
        result = by_name.get(name)
        if result is None:
            violations.append(
                Violation("quality", "must_pass", f"Required check '{name}' has no result")
            )
        elif not result.passed:
            violations.append(Violation("quality", "must_pass", f"Required check '{name}' failed"))

    if rule.min_coverage is not None:
        coverage = by_name.get(COVERAGE_CHECK)
        if coverage is None or coverage.value is None:
            violations.append(
                Violation(
                    "quality",
                    "coverage",
                    f"No coverage result reported (minimum {rule.min_coverage:g}%)",
                )
            )
        elif coverage.value < rule.min_coverage:
            violations.append(
                Violation(
                    "quality",
                    "coverage",
                    f"Coverage {coverage.value:g}% is below minimum {rule.min_coverage:g}%",
                )
            )

    return violations


def _name_matches(name: str, entry: str) -> bool:
    if entry.endswith("*"):
        return name.startswith(entry[:-1])
    return name == entry


def _listed(ecosystem: str, name: str, entries: dict[str, tuple[str, ...]]) -> bool:
    return any(_name_matches(name, entry) for entry in entries.get(ecosystem, ()))


def check_dependencies(change_set: ChangeSet, rule: DependencyPolicy) -> list[Violation]:
    """Whitelist/blacklist added packages; flag manifest changes for approval."""
    violations = []

    for dep in change_set.dependencies:
        label = f"{dep.ecosystem}:{dep.name}" if dep.ecosystem else dep.name
        if rule.blacklist and _listed(dep.ecosystem, dep.name, rule.blacklist):
            violations.append(
                Violation("dependencies", "blacklist", f"Dependency {label} is blacklisted")
            )
        elif rule.mode == "whitelist" and not _listed(dep.ecosystem, dep.name, rule.whitelist):
            violations.append(
                Violation("dependencies", "whitelist", f"Dependency {label} is not whitelisted")
            )

    if rule.mode == "approval_required":
        manifests = [f.path for f in change_set.files if is_dependency_manifest(f.path)]
        if manifests or change_set.dependencies:
            touched = manifests or [d.name for d in change_set.dependencies]
            violations.append(
                Violation(
                    "dependencies",
                    "approval_required",
                    f"Dependency change requires human approval: {', '.join(touched)}",
                    Severity.APPROVAL_REQUIRED,
                )
            )

    return violations


def check_commits(change_set: ChangeSet, rule: CommitPolicy) -> list[Violation]:
    """Subject format, trailer on the last line, and change size."""
    violations = []
    message = change_set.commit_message

    if message.strip():
        if rule.format is not None:
            subject = message.splitlines()[0] if message.splitlines() else ""
            if not rule.format.regex.search(subject):
                violations.append(
                    Violation(
                        "commits",
                        "format",
                        f"Commit message doesn't match required format: {rule.format.describe()}",
                    )
                )

        if rule.required_trailer is not None:
            lines = [line.strip() for line in message.splitlines() if line.strip()]
            if not rule.required_trailer.regex.search(lines[-1]):
                violations.append(
                    Violation(
                        "commits",
                        "required_trailer",
                        "Commit message missing required trailer: "
                        f"{rule.required_trailer.describe()}",
                    )
                )

    total = change_set.total_lines_changed
    if rule.max_size is not None and total > rule.max_size:
        violations.append(
            Violation("commits", "max_size", f"Change too large: {total} lines > {rule.max_size}")
        )

    if rule.max_files is not None and len(change_set.files) > rule.max_files:
        violations.append(
            Violation(
                "commits",
                "max_files",
                f"Change touches too many files: {len(change_set.files)} > {rule.max_files}",
            )
        )

    return violations


def _handle(name: str) -> str:
    return name.lstrip("@").lower()


def check_pull_request(
    change_set: ChangeSet, rule: PullRequestPolicy
) -> tuple[list[Violation], list[str], list[str]]:
    """
    Title, description sections, labels and conditional rules.

    Returns:
        (violations, labels_to_add, required_reviewers)
    """
    violations: list[Violation] = []
    pr = change_set.pr

    if rule.title is not None and not rule.title.regex.search(pr.title):
        violations.append(
            Violation(
                "pull_requests",
                "title",
                f"PR title doesn't match required format: {rule.title.describe()}",
            )
        )

    for section in rule.required_sections:
        if section not in pr.description:
            violations.append(
                Violation(
                    "pull_requests",
                    "required_sections",
                    f"PR description missing required section: {section}",
                )
            )

    for label in rule.required_labels:
        if label not in pr.labels:
            violations.append(
                Violation("pull_requests", "required_labels", f"PR missing required label: {label}")
            )

    conditions = ConditionEvaluator(change_set)

    labels_to_add: list[str] = []
    for auto in rule.auto_add_labels:
        if auto.label not in pr.labels and auto.label not in labels_to_add:
            if conditions.evaluate(auto.when):
                labels_to_add.append(auto.label)

    required: list[str] = []
    assigned = {_handle(r) for r in pr.reviewers}
    for entry in rule.required_reviewers:
        if not conditions.evaluate(entry.when):
            continue
        for reviewer in entry.reviewers:
            if reviewer in required:
                continue
            required.append(reviewer)
            if _handle(reviewer) not in assigned:
                violations.append(
                    Violation(
                        "pull_requests",
                        "required_reviewers",
                        f"Review required from {reviewer}",
                        Severity.APPROVAL_REQUIRED,
                    )
                )

    return violations, labels_to_add, required


def _has_pr_metadata(change_set: ChangeSet) -> bool:
    pr = change_set.pr
    return bool(pr.title or pr.description or pr.labels or pr.reviewers)


def evaluate(
    change_set: ChangeSet,
    policy: PolicyDocument,
    quality_results: Sequence[QualityResult] | None = None,
) -> Verdict:
    """
    Evaluate a change set against a policy.

    Args:
        change_set: Proposed change
        policy: Validated policy document
        quality_results: Pre-computed CI check results. When None, the
            quality category is not evaluated.

    Returns:
        Verdict with every violation left after bypass filtering
    """
    if not policy.enabled:
        logger.info("policy_evaluated", passed=True, policy_enabled=False)
        return Verdict(passed=True, policy_enabled=False)

    resolution = resolve_bypass(change_set.pr.labels, policy.overrides)
    if resolution.full_bypass:
        logger.info("policy_evaluated", passed=True, full_bypass=True)
        return Verdict(
            passed=True,
            bypassed=resolution.sorted_paths(),
            full_bypass=True,
            warnings=resolution.warnings,
        )

    if change_set.is_empty:
        logger.info("policy_evaluated", passed=True, empty=True)
        return Verdict(passed=True, warnings=resolution.warnings)

    checks: dict[str, Callable[[], list[Violation]]] = {}
    labels_to_add: list[str] = []
    required_reviewers: list[str] = []

    if policy.files is not None:
        checks["files"] = lambda: check_files(change_set, policy.files)
    if policy.commands is not None:
        checks["commands"] = lambda: check_commands(change_set, policy.commands)
    if policy.quality is not None and quality_results is not None:
        checks["quality"] = lambda: check_quality(quality_results, policy.quality)
    if policy.dependencies is not None:
        checks["dependencies"] = lambda: check_dependencies(change_set, policy.dependencies)
    if policy.commits is not None:
        checks["commits"] = lambda: check_commits(change_set, policy.commits)
    if policy.pull_requests is not None and _has_pr_metadata(change_set):

        def _pr_check() -> list[Violation]:
            violations, labels, reviewers = check_pull_request(change_set, policy.pull_requests)
            labels_to_add.extend(labels)
            required_reviewers.extend(reviewers)
            return violations

        checks["pull_requests"] = _pr_check

    violations: list[Violation] = []
    for category in CATEGORY_NAMES:
        check = checks.get(category)
        if check is None or resolution.skips_category(category):
            continue
        violations.extend(v for v in check() if not resolution.suppresses(v))

    verdict = Verdict(
        passed=not violations,
        violations=tuple(violations),
        bypassed=resolution.sorted_paths(),
        labels_to_add=tuple(labels_to_add),
        required_reviewers=tuple(required_reviewers),
        warnings=resolution.warnings,
    )
    logger.info(
        "policy_evaluated",
        passed=verdict.passed,
        violations=len(verdict.violations),
        bypassed=list(verdict.bypassed),
        files=len(change_set.files),
    )
    return verdict
