"""Tests for the verify command."""

import json
from unittest.mock import patch

import pytest

from mayor_west.cli.setup import setup_command
from mayor_west.cli.verify import build_verify_scorecard, verify_command
from mayor_west.config import get_settings
from mayor_west.core.errors import ExitCode
from mayor_west.verification import CheckStatus

REMOTE = "mayor_west.verification.repository.get_remote_url"


@pytest.fixture
def repo(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def configured_repo(repo):
    (repo / ".git").mkdir()
    setup_command(yes=True)
    return repo


class TestBuildVerifyScorecard:
    """Tests for build_verify_scorecard."""

    def test_empty_directory_fails(self, repo):
        scorecard = build_verify_scorecard(repo)
        assert scorecard.command == "verify"
        assert scorecard.status is CheckStatus.FAIL
        # Six catalog files, two git checks, five policy checks, two editor checks
        assert len(scorecard.checks) == 15
        assert scorecard.metadata["root"] == str(repo)

    def test_configured_repository_passes(self, configured_repo):
        with patch(REMOTE, return_value="https://github.com/acme/widgets.git"):
            scorecard = build_verify_scorecard(configured_repo)
        assert scorecard.passed, scorecard.failed_checks
        assert scorecard.status is CheckStatus.PASS

    def test_missing_remote_fails(self, configured_repo):
        with patch(REMOTE, return_value=None):
            scorecard = build_verify_scorecard(configured_repo)
        assert [c["name"] for c in scorecard.failed_checks] == ["GitHub Remote"]

    def test_configured_policy_path_is_honored(self, configured_repo, monkeypatch):
        (configured_repo / "config").mkdir()
        (configured_repo / ".github" / "mayor-west.yml").rename(configured_repo / "config" / "agent-policy.yml")
        monkeypatch.setenv("MAYOR_WEST_POLICY_PATH", "config/agent-policy.yml")
        get_settings.cache_clear()

        with patch(REMOTE, return_value="https://github.com/acme/widgets.git"):
            scorecard = build_verify_scorecard(configured_repo)

        policy = [c for c in scorecard.checks if c.name.startswith("Policy:")]
        assert all(c.status is CheckStatus.PASS for c in policy), [c.message for c in policy]
        assert policy[0].location == "config/agent-policy.yml"

    def test_explicit_policy_path(self, configured_repo):
        with patch(REMOTE, return_value="https://github.com/acme/widgets.git"):
            scorecard = build_verify_scorecard(configured_repo, policy_path="missing.yml")
        policy = [c for c in scorecard.checks if c.name.startswith("Policy:")]
        assert all(c.status is CheckStatus.SKIP for c in policy)


class TestVerifyCommand:
    """Tests for verify_command exit codes and output."""

    def test_table_output_blocked(self, repo, capsys):
        assert verify_command() == ExitCode.BLOCKED
        out = capsys.readouterr().out
        assert "Mayor West verify" in out
        assert "Overall: FAIL" in out

    def test_passing_repository(self, configured_repo, capsys):
        with patch(REMOTE, return_value="git@github.com:acme/widgets.git"):
            assert verify_command() == ExitCode.SUCCESS
        assert "fully configured" in capsys.readouterr().out

    def test_json_output(self, repo, capsys):
        assert verify_command(root=str(repo), output_format="json") == ExitCode.BLOCKED
        data = json.loads(capsys.readouterr().out)
        assert data["command"] == "verify"
        assert data["checks"]["git_repository"]["status"] == "fail"
        assert data["summary"]["status"] == "fail"

    def test_output_file(self, repo):
        target = repo / "verify.xml"
        verify_command(output_format="junit", output_file=str(target))
        assert target.read_text().startswith("<?xml")
