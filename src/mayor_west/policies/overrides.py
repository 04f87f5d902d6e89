"""
Override (bypass label) resolution.

A PR label listed in ``bypass_labels`` skips every category. Otherwise each
``partial_bypass`` entry whose label is present contributes its dotted
paths to the bypass set. A label present in both lists is a full bypass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import structlog

from mayor_west.policies.models import (
    CATEGORY_NAMES,
    RECOGNIZED_BYPASS_PATHS,
    Overrides,
    Violation,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class BypassResolution:
    """Which checks a change set's labels switch off."""

    full_bypass: bool = False
    bypassed_paths: frozenset[str] = frozenset()
    triggered_by: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def bypassed_categories(self) -> frozenset[str]:
        if self.full_bypass:
            return frozenset(CATEGORY_NAMES)
        return frozenset(p for p in self.bypassed_paths if p in CATEGORY_NAMES)

    def skips_category(self, category: str) -> bool:
        return self.full_bypass or category in self.bypassed_paths

    def suppresses(self, violation: Violation) -> bool:
        """True if the violation's category or exact rule path is bypassed."""
        return self.skips_category(violation.category) or violation.path in self.bypassed_paths

    def sorted_paths(self) -> tuple[str, ...]:
        if self.full_bypass:
            return CATEGORY_NAMES
        return tuple(sorted(self.bypassed_paths))


def resolve_bypass(labels: Iterable[str], overrides: Overrides) -> BypassResolution:
    """
    Resolve which policy checks are bypassed for a set of PR labels.

    Args:
        labels: Labels on the pull request
        overrides: Validated override configuration

    Returns:
        BypassResolution. Unrecognized partial-bypass paths are carried as
        warnings rather than silently ignored.
    """
    present = set(labels)

    full = tuple(label for label in overrides.bypass_labels if label in present)
    if full:
        logger.info("bypass_resolved", full_bypass=True, labels=list(full))
        return BypassResolution(full_bypass=True, triggered_by=full)

    paths: set[str] = set()
    triggered: list[str] = []
    warnings: list[str] = []
    for entry in overrides.partial_bypass:
        if entry.label not in present:
            continue
        triggered.append(entry.label)
        for path in entry.bypasses:
            if path not in RECOGNIZED_BYPASS_PATHS:
                warnings.append(
                    f"Label '{entry.label}' bypasses unrecognized path '{path}'; no check was skipped for it"
                )
                continue
            paths.add(path)

    if triggered:
        logger.info(
            "bypass_resolved",
            full_bypass=False,
            labels=triggered,
            paths=sorted(paths),
            warnings=len(warnings),
        )

    return BypassResolution(
        full_bypass=False,
        bypassed_paths=frozenset(paths),
        triggered_by=tuple(triggered),
        warnings=tuple(warnings),
    )
