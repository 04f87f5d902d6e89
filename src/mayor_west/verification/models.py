"""
Data models for verification scorecards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CheckStatus(str, Enum):
    """Status of a single check."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    SKIP = "skip"


@dataclass
class CheckResult:
    """Result of a single check."""

    name: str
    status: CheckStatus
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    rule_id: str | None = None
    location: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == CheckStatus.FAIL


@dataclass
class Scorecard:
    """
    Aggregated pass/fail view over setup and policy results.

    This is the canonical structure every output format consumes.
    """

    command: str
    checks: list[CheckResult] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def expected_checks(self) -> int:
        """Checks that were actually run (skipped checks excluded)."""
        return sum(1 for c in self.checks if c.status != CheckStatus.SKIP)

    @property
    def passed_checks(self) -> int:
        return sum(1 for c in self.checks if c.status == CheckStatus.PASS)

    @property
    def warnings(self) -> int:
        return sum(1 for c in self.checks if c.status == CheckStatus.WARN)

    @property
    def failed_checks(self) -> list[dict[str, str]]:
        return [{"name": c.name, "detail": c.message} for c in self.checks if c.failed]

    @property
    def status(self) -> CheckStatus:
        """Overall status based on check results."""
        if any(c.status == CheckStatus.FAIL for c in self.checks):
            return CheckStatus.FAIL
        if any(c.status == CheckStatus.WARN for c in self.checks):
            return CheckStatus.WARN
        return CheckStatus.PASS

    @property
    def passed(self) -> bool:
        return not self.failed_checks

    def summary(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "expected_checks": self.expected_checks,
            "passed_checks": self.passed_checks,
            "warnings": self.warnings,
            "failed_checks": self.failed_checks,
        }
