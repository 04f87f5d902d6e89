"""
The fixed catalog of files a setup run can write.

Minimal mode writes only critical entries; full mode writes all of them.
"""

from __future__ import annotations

from mayor_west.policies.defaults import POLICY_FILE_PATH
from mayor_west.scaffold.models import FileCategory, FileSpec
from mayor_west.scaffold.templates import (
    render_agent_instructions,
    render_auto_merge_workflow,
    render_orchestrator_workflow,
    render_policy_file,
    render_task_template,
    render_vscode_settings,
)

VSCODE_SETTINGS_PATH = ".vscode/settings.json"

FILE_CATALOG: tuple[FileSpec, ...] = (
    FileSpec(
        path=VSCODE_SETTINGS_PATH,
        display_name="VS Code Agent Settings",
        category=FileCategory.CONFIGURATION,
        critical=True,
        generator=render_vscode_settings,
    ),
    FileSpec(
        path=".github/agents/mayor-west-mode.md",
        display_name="Agent Instructions",
        category=FileCategory.AGENT,
        critical=True,
        generator=render_agent_instructions,
    ),
    FileSpec(
        path=".github/workflows/mayor-west-auto-merge.yml",
        display_name="Auto-Merge Workflow",
        category=FileCategory.WORKFLOW,
        critical=True,
        generator=render_auto_merge_workflow,
    ),
    FileSpec(
        path=".github/workflows/mayor-west-orchestrator.yml",
        display_name="Orchestrator Workflow",
        category=FileCategory.WORKFLOW,
        critical=True,
        generator=render_orchestrator_workflow,
    ),
    FileSpec(
        path=".github/ISSUE_TEMPLATE/mayor-task.md",
        display_name="Task Template",
        category=FileCategory.TEMPLATE,
        critical=False,
        generator=render_task_template,
    ),
    FileSpec(
        path=POLICY_FILE_PATH,
        display_name="Policy File",
        category=FileCategory.CONFIGURATION,
        critical=True,
        generator=render_policy_file,
    ),
)


def catalog_paths(catalog: tuple[FileSpec, ...] = FILE_CATALOG) -> tuple[str, ...]:
    return tuple(spec.path for spec in catalog)


def get_file_spec(path: str, catalog: tuple[FileSpec, ...] = FILE_CATALOG) -> FileSpec | None:
    """Look up a catalog entry by path."""
    for spec in catalog:
        if spec.path == path:
            return spec
    return None
