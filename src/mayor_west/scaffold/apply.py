"""
Apply a setup plan to disk.

Writes are independent: a failure on one file is recorded and the remaining
files are still written. There is no rollback across files.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from mayor_west.scaffold.reconciler import PlannedAction, SetupPlan

logger = structlog.get_logger()


@dataclass
class ApplyResult:
    """Result of applying a setup plan."""

    root: Path
    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        """Whether apply succeeded without errors."""
        return not self.errors


def _write(root: Path, action: PlannedAction) -> None:
    target = root / action.path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(action.content, encoding="utf-8")


def apply_plan(plan: SetupPlan, root: Path | str) -> ApplyResult:
    """
    Write every create/overwrite action in a plan.

    Args:
        plan: Plan from plan_setup
        root: Repository root the plan's paths are relative to

    Returns:
        ApplyResult listing written, skipped and failed paths
    """
    start = time.time()
    result = ApplyResult(root=Path(root))

    for action in plan.actions:
        if not action.is_write:
            result.skipped.append(action.path)
            continue
        try:
            _write(result.root, action)
        except OSError as e:
            logger.error("file_write_failed", path=action.path, error=str(e))
            result.errors[action.path] = str(e)
            continue
        logger.info("file_written", path=action.path, action=action.action.value)
        result.written.append(action.path)

    result.duration_seconds = time.time() - start
    return result
