"""
Verification scorecards.

Aggregates setup plans, policy verdicts and repository checks into a
pass/fail Scorecard for the CLI or a CI gate.
"""

from mayor_west.verification.models import CheckResult, CheckStatus, Scorecard
from mayor_west.verification.reporter import build_scorecard, plan_action_check, verdict_check
from mayor_west.verification.repository import (
    get_remote_url,
    git_checks,
    parse_github_url,
    policy_checks,
    repository_checks,
    vscode_checks,
)

__all__ = [
    "CheckResult",
    "CheckStatus",
    "Scorecard",
    "build_scorecard",
    "get_remote_url",
    "git_checks",
    "parse_github_url",
    "plan_action_check",
    "policy_checks",
    "repository_checks",
    "verdict_check",
    "vscode_checks",
]
