"""
Output formatters for Mayor West scorecards.

Supports multiple output formats for CI/CD integration:
- table: Human-readable table format (default)
- json: Machine-readable JSON
- junit: JUnit XML for CI test results
- markdown: PR comment format
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from mayor_west.verification.models import CheckStatus, Scorecard

from .json_fmt import format_json
from .junit import format_junit
from .markdown import format_markdown


class OutputFormat(str, Enum):
    """Supported output formats."""

    TABLE = "table"
    JSON = "json"
    JUNIT = "junit"
    MARKDOWN = "markdown"


OUTPUT_FORMATS = [f.value for f in OutputFormat]

STATUS_ICONS = {
    CheckStatus.PASS: "✓",
    CheckStatus.WARN: "⚠",
    CheckStatus.FAIL: "✗",
    CheckStatus.SKIP: "○",
}


def format_scorecard(
    scorecard: Scorecard,
    output_format: OutputFormat | str = OutputFormat.TABLE,
    output_file: Path | str | None = None,
) -> str:
    """
    Format a scorecard in the specified format.

    Args:
        scorecard: The scorecard to format
        output_format: Output format (table, json, junit, markdown)
        output_file: Optional file path to write output to

    Returns:
        Formatted string output
    """
    if isinstance(output_format, str):
        output_format = OutputFormat(output_format)

    formatters = {
        OutputFormat.TABLE: _format_table,
        OutputFormat.JSON: format_json,
        OutputFormat.JUNIT: format_junit,
        OutputFormat.MARKDOWN: format_markdown,
    }

    formatter = formatters.get(output_format, _format_table)
    output = formatter(scorecard)

    if output_file:
        Path(output_file).write_text(output, encoding="utf-8")

    return output


def _format_table(scorecard: Scorecard) -> str:
    """Format scorecard as human-readable table (default)."""
    lines = []
    lines.append(f"\n{'=' * 60}")
    lines.append(f"Mayor West {scorecard.command}")
    lines.append(f"{'=' * 60}\n")

    for check in scorecard.checks:
        icon = STATUS_ICONS.get(check.status, "?")
        lines.append(f"  {icon} {check.name}: {check.status.value.upper()}")
        if check.message:
            lines.append(f"      {check.message}")

    lines.append(f"\n{'─' * 60}")
    lines.append(
        f"Summary: {scorecard.passed_checks}/{scorecard.expected_checks} passed, "
        f"{scorecard.warnings} warnings, {len(scorecard.failed_checks)} failed"
    )
    lines.append(f"Overall: {scorecard.status.value.upper()}")
    lines.append("")

    return "\n".join(lines)


__all__ = [
    "OutputFormat",
    "OUTPUT_FORMATS",
    "STATUS_ICONS",
    "format_scorecard",
    "format_json",
    "format_junit",
    "format_markdown",
]
