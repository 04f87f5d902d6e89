"""
Repository scaffolding.

The file catalog, pure content generators, the setup reconciler and the
apply step that writes a plan to disk.
"""

from mayor_west.scaffold.apply import ApplyResult, apply_plan
from mayor_west.scaffold.catalog import FILE_CATALOG, VSCODE_SETTINGS_PATH, catalog_paths, get_file_spec
from mayor_west.scaffold.models import FileAction, FileCategory, FileSpec, SetupMode, SetupOptions
from mayor_west.scaffold.reconciler import (
    FileState,
    PlannedAction,
    SetupPlan,
    plan_setup,
    select_files,
)

__all__ = [
    "ApplyResult",
    "FILE_CATALOG",
    "FileAction",
    "FileCategory",
    "FileSpec",
    "FileState",
    "PlannedAction",
    "SetupMode",
    "SetupOptions",
    "SetupPlan",
    "VSCODE_SETTINGS_PATH",
    "apply_plan",
    "catalog_paths",
    "get_file_spec",
    "plan_setup",
    "select_files",
]
