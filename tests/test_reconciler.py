"""Tests for setup reconciliation."""

import pytest

from mayor_west.core.errors import UnknownFileError
from mayor_west.scaffold import (
    FILE_CATALOG,
    FileAction,
    FileState,
    SetupMode,
    SetupOptions,
    catalog_paths,
    plan_setup,
    select_files,
)
from mayor_west.scaffold.reconciler import (
    REASON_EXISTS,
    REASON_MISSING,
    REASON_OVERWRITE,
    REASON_UP_TO_DATE,
)

AUTO_MERGE = ".github/workflows/mayor-west-auto-merge.yml"
TASK_TEMPLATE = ".github/ISSUE_TEMPLATE/mayor-task.md"
POLICY_FILE = ".github/mayor-west.yml"


class TestSelectFiles:
    """Tests for select_files."""

    def test_full(self):
        assert select_files(SetupMode.FULL) == list(FILE_CATALOG)

    def test_minimal_is_critical_only(self):
        selected = select_files("minimal")
        assert len(selected) == 5
        assert all(spec.critical for spec in selected)

    def test_custom_keeps_catalog_order(self):
        selected = select_files(SetupMode.CUSTOM, [POLICY_FILE, AUTO_MERGE])
        assert [spec.path for spec in selected] == [AUTO_MERGE, POLICY_FILE]

    def test_custom_unknown_path(self):
        with pytest.raises(UnknownFileError) as exc_info:
            select_files(SetupMode.CUSTOM, [AUTO_MERGE, "Makefile", "docs/x.md"])
        assert exc_info.value.paths == ["Makefile", "docs/x.md"]

    def test_custom_empty(self):
        assert select_files(SetupMode.CUSTOM, []) == []

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            select_files("everything")


class TestPlanSetup:
    """Tests for plan_setup."""

    def test_empty_repository_creates_everything(self):
        plan = plan_setup(SetupMode.FULL, FileState.empty())
        assert [a.path for a in plan.actions] == list(catalog_paths())
        assert all(a.action is FileAction.CREATE for a in plan.actions)
        assert all(a.reason == REASON_MISSING for a in plan.actions)
        assert plan.summary() == {"create": 6, "overwrite": 0, "skip": 0}

    def test_existing_file_without_overwrite_is_skipped(self):
        # Partially configured repository: only the auto-merge workflow exists
        state = FileState({AUTO_MERGE: "name: custom\n"})
        plan = plan_setup(SetupMode.MINIMAL, state)

        assert len(plan.actions) == 5
        skipped = [a for a in plan.actions if a.action is FileAction.SKIP]
        assert [a.path for a in skipped] == [AUTO_MERGE]
        assert skipped[0].reason == REASON_EXISTS
        assert plan.count(FileAction.CREATE) == 4
        assert TASK_TEMPLATE not in [a.path for a in plan.actions]

    def test_overwrite_on_empty_repository_creates_everything(self):
        plan = plan_setup(SetupMode.MINIMAL, FileState.empty(), overwrite=True)
        assert all(a.action is FileAction.CREATE for a in plan.actions)
        assert plan.summary() == {"create": 5, "overwrite": 0, "skip": 0}

    def test_overwrite_differing_content(self):
        state = FileState({AUTO_MERGE: "name: custom\n"})
        plan = plan_setup(SetupMode.CUSTOM, state, selected=[AUTO_MERGE], overwrite=True)
        (action,) = plan.actions
        assert action.action is FileAction.OVERWRITE
        assert action.reason == REASON_OVERWRITE
        assert action.content.startswith("name: Mayor West Auto-Merge")

    def test_overwrite_identical_content_is_up_to_date(self):
        options = SetupOptions()
        content = FILE_CATALOG[2].render(options)
        state = FileState({AUTO_MERGE: content})
        plan = plan_setup(SetupMode.CUSTOM, state, options, selected=[AUTO_MERGE], overwrite=True)
        assert plan.actions[0].action is FileAction.SKIP
        assert plan.actions[0].reason == REASON_UP_TO_DATE
        assert plan.is_noop

    def test_options_change_content(self):
        plan = plan_setup(
            SetupMode.CUSTOM,
            FileState.empty(),
            SetupOptions(iteration_limit=42),
            selected=[".vscode/settings.json"],
        )
        assert '"chat.agent.iterationLimit": 42' in plan.actions[0].content

    def test_unknown_custom_selection_aborts(self):
        with pytest.raises(UnknownFileError):
            plan_setup(SetupMode.CUSTOM, FileState.empty(), selected=["nope.yml"])

    @pytest.mark.parametrize("overwrite", [False, True])
    @pytest.mark.parametrize(
        "mode,selected",
        [
            (SetupMode.FULL, None),
            (SetupMode.MINIMAL, None),
            (SetupMode.CUSTOM, [TASK_TEMPLATE, POLICY_FILE]),
        ],
    )
    def test_replanning_applied_state_is_noop(self, mode, selected, overwrite):
        options = SetupOptions(iteration_limit=10, merge_strategy="MERGE")
        initial = FileState({AUTO_MERGE: "stale\n"})

        plan = plan_setup(mode, initial, options, selected=selected, overwrite=overwrite)
        after = initial.with_plan_applied(plan)
        replan = plan_setup(mode, after, options, selected=selected, overwrite=overwrite)

        assert replan.is_noop
        assert all(a.action is FileAction.SKIP for a in replan.actions)


class TestFileState:
    """Tests for FileState."""

    def test_scan_reads_existing_files(self, tmp_path):
        (tmp_path / ".github").mkdir()
        (tmp_path / ".github" / "mayor-west.yml").write_text("enabled: true\n")

        state = FileState.scan(tmp_path, [POLICY_FILE, AUTO_MERGE])

        assert state.exists(POLICY_FILE)
        assert not state.exists(AUTO_MERGE)
        assert state.content(POLICY_FILE) == "enabled: true\n"
        assert state.content(AUTO_MERGE) is None

    def test_scan_ignores_directories(self, tmp_path):
        (tmp_path / ".github" / "mayor-west.yml").mkdir(parents=True)
        assert not FileState.scan(tmp_path, [POLICY_FILE]).exists(POLICY_FILE)
