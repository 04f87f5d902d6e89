"""Tests for repository health checks."""

import json
import subprocess
from unittest.mock import patch

import pytest

from mayor_west.core.errors import ExitCode, ProviderError
from mayor_west.policies.defaults import DEFAULT_PROTECTED_PATHS, generate_default_policy
from mayor_west.scaffold import SetupOptions
from mayor_west.scaffold.templates import render_vscode_settings
from mayor_west.verification import (
    CheckStatus,
    get_remote_url,
    git_checks,
    parse_github_url,
    policy_checks,
    repository_checks,
    vscode_checks,
)


def _statuses(checks):
    return {c.name: c.status for c in checks}


class TestParseGithubUrl:
    """Tests for parse_github_url."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://github.com/acme/widgets.git", ("acme", "widgets")),
            ("https://github.com/acme/widgets", ("acme", "widgets")),
            ("https://token@github.com/acme/widgets/", ("acme", "widgets")),
            ("git@github.com:acme/widgets.git", ("acme", "widgets")),
            ("ssh://git@github.com/acme/widgets.git", ("acme", "widgets")),
            ("https://gitlab.com/acme/widgets.git", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, url, expected):
        assert parse_github_url(url) == expected


class TestGitChecks:
    """Tests for git_checks."""

    def test_not_a_repository(self, tmp_path):
        statuses = _statuses(git_checks(tmp_path))
        assert statuses == {"Git Repository": CheckStatus.FAIL, "GitHub Remote": CheckStatus.FAIL}

    def test_github_remote(self, tmp_path):
        (tmp_path / ".git").mkdir()
        with patch(
            "mayor_west.verification.repository.get_remote_url",
            return_value="git@github.com:acme/widgets.git",
        ):
            checks = git_checks(tmp_path)

        assert _statuses(checks) == {"Git Repository": CheckStatus.PASS, "GitHub Remote": CheckStatus.PASS}
        assert checks[1].details == {"owner": "acme", "repo": "widgets"}

    def test_non_github_remote(self, tmp_path):
        (tmp_path / ".git").mkdir()
        with patch(
            "mayor_west.verification.repository.get_remote_url",
            return_value="https://gitlab.com/acme/widgets.git",
        ):
            checks = git_checks(tmp_path)
        assert checks[1].status is CheckStatus.FAIL
        assert checks[1].details["remote_url"] == "https://gitlab.com/acme/widgets.git"

    def test_unreadable_remote_fails_check(self, tmp_path):
        (tmp_path / ".git").mkdir()
        with patch(
            "mayor_west.verification.repository.get_remote_url",
            side_effect=ProviderError("git config timed out"),
        ):
            checks = git_checks(tmp_path)
        assert checks[1].status is CheckStatus.FAIL
        assert checks[1].message == "Could not read git remote: git config timed out"


class TestGetRemoteUrl:
    """Tests for get_remote_url."""

    @pytest.fixture
    def git(self):
        with patch("mayor_west.verification.repository.shutil.which", return_value="/usr/bin/git"):
            yield

    def _run(self, returncode, stdout="", stderr=""):
        return patch(
            "mayor_west.verification.repository.subprocess.run",
            return_value=subprocess.CompletedProcess([], returncode, stdout=stdout, stderr=stderr),
        )

    def test_configured_remote(self, tmp_path, git):
        with self._run(0, stdout="git@github.com:acme/widgets.git\n"):
            assert get_remote_url(tmp_path) == "git@github.com:acme/widgets.git"

    def test_unset_remote_is_none(self, tmp_path, git):
        with self._run(1):
            assert get_remote_url(tmp_path) is None

    def test_git_not_installed_is_none(self, tmp_path):
        with patch("mayor_west.verification.repository.shutil.which", return_value=None):
            assert get_remote_url(tmp_path) is None

    def test_git_failure_raises(self, tmp_path, git):
        with self._run(128, stderr="fatal: bad config line 3\n"):
            with pytest.raises(ProviderError, match="bad config line 3") as exc_info:
                get_remote_url(tmp_path)
        assert exc_info.value.exit_code == ExitCode.PROVIDER_ERROR

    @pytest.mark.parametrize(
        "exc",
        [subprocess.TimeoutExpired(["git"], 10), OSError("permission denied")],
    )
    def test_git_not_runnable_raises(self, tmp_path, git, exc):
        with patch("mayor_west.verification.repository.subprocess.run", side_effect=exc):
            with pytest.raises(ProviderError):
                get_remote_url(tmp_path)


class TestPolicyChecks:
    """Tests for policy_checks."""

    def test_missing_policy_skips_all(self):
        checks = policy_checks(None)
        assert len(checks) == 5
        assert all(c.status is CheckStatus.SKIP for c in checks)

    def test_generated_policy_passes(self):
        text = generate_default_policy(protected_paths=DEFAULT_PROTECTED_PATHS)
        checks = policy_checks(text)
        assert all(c.status is CheckStatus.PASS for c in checks), [c.message for c in checks]

    def test_unprotected_policy(self):
        text = 'version: "1.0"\nenabled: true\npolicies:\n  files:\n    blocked_patterns: ["**/*.sql"]\n'
        statuses = _statuses(policy_checks(text))
        assert statuses["Policy: valid"] is CheckStatus.PASS
        assert statuses["Policy: workflows protected"] is CheckStatus.FAIL
        assert statuses["Policy: package manifest protected"] is CheckStatus.FAIL
        assert statuses["Policy: settings section present"] is CheckStatus.FAIL

    def test_invalid_policy_skips_dependent_checks(self):
        text = 'version: "1.0"\nenabled: true\npolicies:\n  styleguide: {}\n'
        checks = policy_checks(text)
        statuses = _statuses(checks)
        assert statuses["Policy: valid"] is CheckStatus.FAIL
        assert "policies.styleguide" in checks[0].message
        assert statuses["Policy: enabled flag present"] is CheckStatus.PASS
        assert statuses["Policy: workflows protected"] is CheckStatus.SKIP


class TestVscodeChecks:
    """Tests for vscode_checks."""

    def test_missing_settings(self):
        assert all(c.status is CheckStatus.SKIP for c in vscode_checks(None))

    def test_generated_settings_pass(self):
        checks = vscode_checks(render_vscode_settings(SetupOptions()))
        assert all(c.status is CheckStatus.PASS for c in checks)

    def test_permissive_settings_fail(self):
        text = json.dumps({"chat.tools.terminal.autoApprove": {"rm": True}})
        assert all(c.status is CheckStatus.FAIL for c in vscode_checks(text))


class TestRepositoryChecks:
    def test_empty_directory(self, tmp_path):
        checks = repository_checks(tmp_path)
        assert len(checks) == 9
        assert [c.status for c in checks].count(CheckStatus.SKIP) == 7

    def test_policy_at_custom_path(self, tmp_path):
        policy_file = tmp_path / "config" / "agent-policy.yml"
        policy_file.parent.mkdir()
        policy_file.write_text(generate_default_policy(protected_paths=DEFAULT_PROTECTED_PATHS))

        checks = repository_checks(tmp_path, "config/agent-policy.yml")
        policy = [c for c in checks if c.name.startswith("Policy:")]
        assert all(c.status is CheckStatus.PASS for c in policy)
        assert {c.location for c in policy} == {"config/agent-policy.yml"}
