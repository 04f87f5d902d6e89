"""
Verification reporter.

Folds setup plans, policy verdicts and ad hoc checks into a Scorecard. The
reporter has no decision logic of its own and does not know who called it.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from mayor_west.policies.models import Verdict
from mayor_west.scaffold.models import FileAction
from mayor_west.scaffold.reconciler import PlannedAction, SetupPlan
from mayor_west.verification.models import CheckResult, CheckStatus, Scorecard

SETUP_COMMAND_HINT = "mayor-west setup"


def plan_action_check(action: PlannedAction) -> CheckResult:
    """One check per planned file: present passes, missing fails."""
    name = action.display_name or action.path

    if action.action is FileAction.CREATE:
        return CheckResult(
            name=name,
            status=CheckStatus.FAIL,
            message=f"File missing: {action.path}. Run: {SETUP_COMMAND_HINT}",
            rule_id="setup.file_missing",
            location=action.path,
        )
    if action.action is FileAction.OVERWRITE:
        return CheckResult(
            name=name,
            status=CheckStatus.WARN,
            message=f"File differs from generated content: {action.path}",
            rule_id="setup.file_outdated",
            location=action.path,
        )
    return CheckResult(
        name=name,
        status=CheckStatus.PASS,
        message=f"{action.path} present",
        location=action.path,
    )


def verdict_check(name: str, verdict: Verdict) -> CheckResult:
    """One check per verdict; the detail lists every violation."""
    details = {
        "violations": [v.to_dict() for v in verdict.violations],
        "bypassed": list(verdict.bypassed),
    }
    if verdict.labels_to_add:
        details["labels_to_add"] = list(verdict.labels_to_add)
    if verdict.required_reviewers:
        details["required_reviewers"] = list(verdict.required_reviewers)
    if verdict.warnings:
        details["warnings"] = list(verdict.warnings)

    if not verdict.passed:
        return CheckResult(
            name=name,
            status=CheckStatus.FAIL,
            message="; ".join(v.message for v in verdict.violations),
            details=details,
            rule_id=verdict.violations[0].path,
        )

    if not verdict.policy_enabled:
        message = "Policy disabled, no rules applied"
    elif verdict.full_bypass:
        message = "All checks bypassed by override label"
    elif verdict.bypassed:
        message = f"No violations (bypassed: {', '.join(verdict.bypassed)})"
    else:
        message = "No violations"

    status = CheckStatus.WARN if verdict.warnings else CheckStatus.PASS
    return CheckResult(name=name, status=status, message=message, details=details)


def build_scorecard(
    setup_plan: SetupPlan | None = None,
    verdicts: Mapping[str, Verdict] | Sequence[Verdict] = (),
    checks: Iterable[CheckResult] = (),
    command: str = "verify",
    metadata: Mapping[str, object] | None = None,
) -> Scorecard:
    """
    Aggregate results into a scorecard.

    Args:
        setup_plan: Plan computed against the current repository state
        verdicts: Policy verdicts, optionally keyed by check name
        checks: Additional precomputed checks, appended last
        command: Name of the calling command, recorded on the scorecard
        metadata: Extra context for output formats

    Returns:
        Scorecard with checks in input order (plan, verdicts, extra checks)
    """
    scorecard = Scorecard(command=command, metadata=dict(metadata or {}))

    if setup_plan is not None:
        scorecard.checks.extend(plan_action_check(a) for a in setup_plan.actions)

    if isinstance(verdicts, Mapping):
        named = list(verdicts.items())
    else:
        named = [
            ("Policy" if len(verdicts) == 1 else f"Policy #{i + 1}", v)
            for i, v in enumerate(verdicts)
        ]
    scorecard.checks.extend(verdict_check(name, verdict) for name, verdict in named)

    scorecard.checks.extend(checks)
    return scorecard
