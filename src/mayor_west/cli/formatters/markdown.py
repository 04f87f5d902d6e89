"""
Markdown output formatter for Mayor West scorecards.

Used for PR comments posted by the orchestrator workflow.
"""

from __future__ import annotations

from mayor_west.verification.models import CheckResult, CheckStatus, Scorecard

STATUS_EMOJI = {
    CheckStatus.PASS: "✅",
    CheckStatus.WARN: "⚠️",
    CheckStatus.FAIL: "❌",
    CheckStatus.SKIP: "⏭️",
}

OVERALL_HEADLINE = {
    CheckStatus.PASS: "All checks passed",
    CheckStatus.WARN: "Passed with warnings",
    CheckStatus.FAIL: "Checks failed",
}


def format_markdown(scorecard: Scorecard) -> str:
    """Format a scorecard as a Markdown report."""
    status = scorecard.status
    lines = [
        f"## {STATUS_EMOJI[status]} Mayor West {scorecard.command}: {OVERALL_HEADLINE[status]}",
        "",
        f"**{scorecard.passed_checks}/{scorecard.expected_checks}** checks passed"
        + (f", {scorecard.warnings} warning(s)" if scorecard.warnings else ""),
        "",
        "| Check | Status | Details |",
        "|-------|--------|---------|",
    ]

    for check in scorecard.checks:
        lines.append(
            f"| {_cell(check.name)} | {STATUS_EMOJI[check.status]} {check.status.value} "
            f"| {_cell(check.message)} |"
        )

    violations = [c for c in scorecard.checks if c.details.get("violations")]
    if violations:
        lines.extend(["", "### Violations", ""])
        for check in violations:
            lines.extend(_violation_lines(check))

    lines.append("")
    return "\n".join(lines)


def _violation_lines(check: CheckResult) -> list[str]:
    lines = [f"**{check.name}**", ""]
    for violation in check.details["violations"]:
        lines.append(
            f"- `{violation['category']}.{violation['rule']}` "
            f"({violation['severity']}): {violation['message']}"
        )
    lines.append("")
    return lines


def _cell(text: str) -> str:
    """Escape text for a table cell."""
    return text.replace("|", "\\|").replace("\n", " ")
