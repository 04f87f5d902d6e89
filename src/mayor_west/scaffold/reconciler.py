"""
Setup reconciliation.

Computes the file-write plan for a setup run from a snapshot of the
repository's current files. Planning never touches disk; ``FileState.scan``
takes the snapshot and ``apply_plan`` performs the writes.

Re-planning against the state a plan produces always yields all-skip
actions, with or without overwrite.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import structlog

from mayor_west.core.errors import UnknownFileError
from mayor_west.scaffold.catalog import FILE_CATALOG
from mayor_west.scaffold.models import FileAction, FileSpec, SetupMode, SetupOptions

logger = structlog.get_logger()

REASON_MISSING = "file does not exist"
REASON_EXISTS = "already exists, use overwrite to replace"
REASON_UP_TO_DATE = "up to date"
REASON_OVERWRITE = "overwrite requested, content differs"


@dataclass(frozen=True)
class FileState:
    """Snapshot of repository files relevant to setup: path to text content."""

    files: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "FileState":
        return cls({})

    @classmethod
    def scan(cls, root: Path, paths: Iterable[str]) -> "FileState":
        """Read the given repository-relative paths that exist under root."""
        files = {}
        for path in paths:
            target = root / path
            if target.is_file():
                files[path] = target.read_text(encoding="utf-8", errors="replace")
        return cls(files)

    def exists(self, path: str) -> bool:
        return path in self.files

    def content(self, path: str) -> str | None:
        return self.files.get(path)

    def with_plan_applied(self, plan: "SetupPlan") -> "FileState":
        """The state that results from applying every write in a plan."""
        files = dict(self.files)
        for action in plan.writes:
            files[action.path] = action.content
        return FileState(files)


@dataclass(frozen=True)
class PlannedAction:
    """One file decision in a setup plan."""

    path: str
    action: FileAction
    reason: str
    display_name: str = ""
    content: str = field(default="", repr=False)

    @property
    def is_write(self) -> bool:
        return self.action in (FileAction.CREATE, FileAction.OVERWRITE)


@dataclass(frozen=True)
class SetupPlan:
    """Reconciler output: ordered actions, in catalog order."""

    mode: SetupMode
    actions: tuple[PlannedAction, ...] = ()

    @property
    def writes(self) -> tuple[PlannedAction, ...]:
        return tuple(a for a in self.actions if a.is_write)

    @property
    def is_noop(self) -> bool:
        return not self.writes

    def count(self, action: FileAction) -> int:
        return sum(1 for a in self.actions if a.action is action)

    def summary(self) -> dict[str, int]:
        return {action.value: self.count(action) for action in FileAction}


def select_files(
    mode: SetupMode,
    selected: Sequence[str] | None = None,
    catalog: Sequence[FileSpec] = FILE_CATALOG,
) -> list[FileSpec]:
    """
    Choose catalog entries for a setup mode.

    Raises:
        UnknownFileError: If a custom selection names paths outside the catalog
    """
    mode = SetupMode(mode)

    if mode is SetupMode.FULL:
        return list(catalog)

    if mode is SetupMode.MINIMAL:
        return [spec for spec in catalog if spec.critical]

    chosen = list(selected or [])
    known = {spec.path for spec in catalog}
    unknown = [path for path in chosen if path not in known]
    if unknown:
        raise UnknownFileError(unknown)
    # Catalog order, regardless of selection order
    return [spec for spec in catalog if spec.path in chosen]


def plan_setup(
    mode: SetupMode | str,
    state: FileState,
    options: SetupOptions | None = None,
    selected: Sequence[str] | None = None,
    overwrite: bool = False,
    catalog: Sequence[FileSpec] = FILE_CATALOG,
) -> SetupPlan:
    """
    Compute the file-write plan for a setup run.

    Args:
        mode: full, minimal or custom
        state: Snapshot of current file contents
        options: Generator inputs (defaults if None)
        selected: Paths for custom mode
        overwrite: Replace existing files whose content differs
        catalog: File catalog to plan against

    Returns:
        SetupPlan with one action per selected file

    Raises:
        UnknownFileError: If a custom selection names unknown paths
    """
    mode = SetupMode(mode)
    options = options or SetupOptions()
    actions = []

    for spec in select_files(mode, selected, catalog):
        content = spec.render(options)

        if not state.exists(spec.path):
            action, reason = FileAction.CREATE, REASON_MISSING
        elif not overwrite:
            action, reason = FileAction.SKIP, REASON_EXISTS
        elif state.content(spec.path) == content:
            action, reason = FileAction.SKIP, REASON_UP_TO_DATE
        else:
            action, reason = FileAction.OVERWRITE, REASON_OVERWRITE

        actions.append(
            PlannedAction(
                path=spec.path,
                action=action,
                reason=reason,
                display_name=spec.display_name,
                content=content,
            )
        )

    plan = SetupPlan(mode=mode, actions=tuple(actions))
    logger.info("setup_planned", mode=mode.value, overwrite_requested=overwrite, actions=plan.summary())
    return plan
