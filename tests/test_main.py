"""Tests for the command-line entry point."""

import pytest

from mayor_west import __version__
from mayor_west.core.errors import ExitCode
from mayor_west.main import build_parser, main, run


@pytest.fixture
def repo(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestParser:
    """Argument parsing."""

    def test_setup_flags(self):
        args = build_parser().parse_args(
            ["setup", "--mode", "custom", "--files", "a", "b", "--merge-strategy", "rebase", "-y", "--no-auto-merge"]
        )
        assert args.command == "setup"
        assert args.files == ["a", "b"]
        assert args.merge_strategy == "REBASE"
        assert args.yes is True
        assert args.no_auto_merge is True

    def test_policy_dry_run_repeatable_flags(self):
        args = build_parser().parse_args(
            ["policy", "dry-run", "--files", "src/a.py", "--label", "x", "--label", "y"]
        )
        assert args.policy_command == "dry-run"
        assert args.labels == ["x", "y"]
        assert args.commands == []

    def test_invalid_format_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["verify", "--format", "yaml"])


class TestRun:
    """End-to-end dispatch through run()."""

    def test_version(self, capsys):
        assert run(["version"]) == ExitCode.SUCCESS
        assert capsys.readouterr().out.strip() == f"mayor-west {__version__}"

    def test_no_command_prints_help(self, capsys):
        assert run([]) == ExitCode.WARNING
        assert "usage: mayor-west" in capsys.readouterr().out

    def test_policy_without_subcommand(self, repo):
        assert run(["policy"]) == ExitCode.CONFIG_ERROR

    def test_setup_then_verify_policy(self, repo):
        assert run(["setup", "--yes", "--mode", "minimal"]) == ExitCode.SUCCESS
        assert (repo / ".github" / "mayor-west.yml").is_file()
        assert run(["policy", "validate"]) == ExitCode.SUCCESS
        assert run(["policy", "dry-run", "--files", ".github/workflows/ci.yml"]) == ExitCode.WARNING
        assert run(["pause"]) == ExitCode.SUCCESS
        assert run(["policy", "dry-run", "--files", ".github/workflows/ci.yml"]) == ExitCode.SUCCESS
        assert run(["resume", "--root", str(repo)]) == ExitCode.SUCCESS

    def test_status(self, repo):
        assert run(["--log-level", "ERROR", "status"]) == ExitCode.SUCCESS

    def test_main_exits_with_code(self, repo):
        with pytest.raises(SystemExit) as exc_info:
            main(["verify", "--format", "json"])
        assert exc_info.value.code == ExitCode.BLOCKED
