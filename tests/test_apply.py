"""Tests for applying setup plans to disk."""

from pathlib import Path
from unittest.mock import patch

from mayor_west.scaffold import FileState, SetupMode, apply_plan, plan_setup

AUTO_MERGE = ".github/workflows/mayor-west-auto-merge.yml"


class TestApplyPlan:
    """Tests for apply_plan."""

    def test_writes_files_and_creates_directories(self, tmp_path):
        plan = plan_setup(SetupMode.FULL, FileState.empty())

        result = apply_plan(plan, tmp_path)

        assert result.success
        assert len(result.written) == 6
        assert result.skipped == []
        for action in plan.actions:
            assert (tmp_path / action.path).read_text(encoding="utf-8") == action.content

    def test_skips_are_not_written(self, tmp_path):
        target = tmp_path / AUTO_MERGE
        target.parent.mkdir(parents=True)
        target.write_text("name: custom\n")

        plan = plan_setup(SetupMode.MINIMAL, FileState.scan(tmp_path, [AUTO_MERGE]))
        result = apply_plan(plan, str(tmp_path))

        assert result.skipped == [AUTO_MERGE]
        assert target.read_text() == "name: custom\n"
        assert result.root == Path(tmp_path)

    def test_apply_then_rescan_is_noop(self, tmp_path):
        plan = plan_setup(SetupMode.FULL, FileState.empty())
        apply_plan(plan, tmp_path)

        paths = [a.path for a in plan.actions]
        replan = plan_setup(SetupMode.FULL, FileState.scan(tmp_path, paths), overwrite=True)
        assert replan.is_noop

    def test_write_failure_is_recorded_and_others_continue(self, tmp_path):
        plan = plan_setup(SetupMode.FULL, FileState.empty())
        original_write_text = Path.write_text

        def failing_write_text(self, *args, **kwargs):
            if self.name == "mayor-west-auto-merge.yml":
                raise PermissionError("permission denied")
            return original_write_text(self, *args, **kwargs)

        with patch.object(Path, "write_text", failing_write_text):
            result = apply_plan(plan, tmp_path)

        assert not result.success
        assert list(result.errors) == [AUTO_MERGE]
        assert "permission denied" in result.errors[AUTO_MERGE]
        assert len(result.written) == 5
        assert not (tmp_path / AUTO_MERGE).exists()
