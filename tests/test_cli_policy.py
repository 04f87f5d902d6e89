"""Tests for the policy commands."""

import json

import pytest
import yaml

from mayor_west.cli.policy import (
    policy_dry_run_command,
    policy_init_command,
    policy_test_command,
    policy_validate_command,
)
from mayor_west.core.errors import ExitCode
from mayor_west.policies.schema import parse_policy

POLICY = """\
version: "1.0"
enabled: true
policies:
  files:
    allowed_patterns: ["src/**", "tests/**", "docs/**"]
    blocked_patterns: [".github/workflows/**", "**/*.sql"]
    max_files_per_pr: 5
  quality:
    must_pass: [tests]
    min_coverage: 80
  commits:
    format:
      pattern: '^\\[MAYOR\\]\\s+.{10,100}$'
overrides:
  bypass_labels: [emergency]
  partial_bypass:
    - label: skip-coverage
      bypasses: [quality.coverage]
settings:
  merge_method: squash
"""


@pytest.fixture
def repo(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    policy = tmp_path / ".github" / "mayor-west.yml"
    policy.parent.mkdir()
    policy.write_text(POLICY)
    return tmp_path


def _write(path, data):
    path.write_text(json.dumps(data))
    return str(path)


class TestPolicyValidate:
    """Tests for policy validate."""

    def test_valid(self, repo, capsys):
        assert policy_validate_command() == ExitCode.SUCCESS
        assert "Policy valid" in capsys.readouterr().out

    def test_invalid(self, repo, capsys):
        (repo / ".github" / "mayor-west.yml").write_text('version: "1.0"\npolicies:\n  styleguide: {}\n')
        assert policy_validate_command() == ExitCode.VALIDATION_ERROR
        out = capsys.readouterr().out
        assert "policies.styleguide" in out
        assert "enabled" in out

    def test_strict_fails_on_warnings(self, repo):
        path = repo / "warn.yml"
        path.write_text('version: "1.0"\nenabled: true\npolicies:\n  dependencies:\n    mode: whitelist\n')
        assert policy_validate_command(policy_path=str(path)) == ExitCode.SUCCESS
        assert policy_validate_command(policy_path=str(path), strict=True) == ExitCode.VALIDATION_ERROR

    def test_missing_policy_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert policy_validate_command() == ExitCode.CONFIG_ERROR

    def test_policy_path_from_settings(self, repo, monkeypatch):
        (repo / "custom.yml").write_text(POLICY)
        (repo / ".github" / "mayor-west.yml").unlink()
        monkeypatch.setenv("MAYOR_WEST_POLICY_PATH", "custom.yml")
        assert policy_validate_command() == ExitCode.SUCCESS


class TestPolicyTest:
    """Tests for policy test."""

    def test_compliant_change(self, repo):
        changes = _write(
            repo / "changes.json",
            {
                "files": [{"path": "src/app.py", "lines_changed": 20}],
                "commit_message": "[MAYOR] Add request validation",
                "quality": [{"name": "tests", "passed": True}, {"name": "coverage", "passed": True, "value": 91}],
            },
        )
        assert policy_test_command(changes) == ExitCode.SUCCESS

    def test_blocked_change(self, repo, capsys):
        changes = _write(repo / "changes.json", {"files": ["src/app.py", "db/schema.sql"]})
        assert policy_test_command(changes, output_format="json") == ExitCode.BLOCKED

        data = json.loads(capsys.readouterr().out)
        assert data["command"] == "policy test"
        violations = data["checks"]["policy"]["violations"]
        assert [v["rule"] for v in violations] == ["blocked_patterns"]

    def test_separate_quality_file_and_partial_bypass(self, repo):
        changes = _write(
            repo / "changes.json",
            {"files": ["src/app.py"], "pr": {"labels": ["skip-coverage"]}},
        )
        quality = _write(
            repo / "quality.json",
            [{"name": "tests", "passed": True}, {"name": "coverage", "passed": True, "value": 50}],
        )
        assert policy_test_command(changes, quality=quality) == ExitCode.SUCCESS

        without_label = _write(repo / "plain.json", {"files": ["src/app.py"]})
        assert policy_test_command(without_label, quality=quality) == ExitCode.BLOCKED

    def test_github_pr_input(self, repo, capsys):
        changes = _write(
            repo / "pr.json",
            {
                "title": "[MAYOR] Tidy docs",
                "body": "## Summary",
                "files": [{"path": ".github/workflows/ci.yml", "additions": 2, "deletions": 0}],
                "labels": [{"name": "mayor-task"}],
                "commits": [{"messageHeadline": "[MAYOR] Tidy the docs folder", "messageBody": ""}],
            },
        )
        assert policy_test_command(changes, github_pr=True, output_format="markdown") == ExitCode.BLOCKED
        out = capsys.readouterr().out
        assert "### Violations" in out
        assert "`files.blocked_patterns`" in out

    def test_emergency_label_bypasses_everything(self, repo):
        changes = _write(
            repo / "changes.json",
            {"files": ["db/schema.sql"], "pr": {"labels": ["emergency"]}},
        )
        assert policy_test_command(changes) == ExitCode.SUCCESS

    def test_missing_changes_file(self, repo):
        assert policy_test_command(str(repo / "nope.json")) == ExitCode.CONFIG_ERROR

    def test_malformed_changes(self, repo):
        changes = _write(repo / "changes.json", {"commands": ["ls"]})
        assert policy_test_command(changes) == ExitCode.VALIDATION_ERROR

    def test_invalid_policy_is_schema_error(self, repo):
        (repo / ".github" / "mayor-west.yml").write_text('version: "9"\nenabled: true\n')
        changes = _write(repo / "changes.json", {"files": ["src/app.py"]})
        assert policy_test_command(changes) == ExitCode.VALIDATION_ERROR

    def test_output_file(self, repo):
        changes = _write(repo / "changes.json", {"files": ["src/app.py"]})
        report = repo / "report.xml"
        policy_test_command(changes, output_format="junit", output_file=str(report))
        assert report.read_text().startswith("<?xml")


class TestPolicyDryRun:
    """Tests for policy dry-run."""

    def test_clean_change(self, repo):
        assert policy_dry_run_command(["src/app.py", "tests/test_app.py"]) == ExitCode.SUCCESS

    def test_violations_are_advisory(self, repo, capsys):
        assert policy_dry_run_command(["scripts/deploy.sh"]) == ExitCode.WARNING
        assert "violation" in capsys.readouterr().out

    def test_commit_message_checked(self, repo):
        assert policy_dry_run_command(["src/app.py"], commit_message="wip") == ExitCode.WARNING
        assert (
            policy_dry_run_command(["src/app.py"], commit_message="[MAYOR] Add request validation")
            == ExitCode.SUCCESS
        )

    def test_bypass_label(self, repo):
        assert policy_dry_run_command(["db/schema.sql"], labels=["emergency"]) == ExitCode.SUCCESS


class TestPolicyInit:
    """Tests for policy init."""

    def test_creates_valid_policy(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert policy_init_command() == ExitCode.SUCCESS
        text = (tmp_path / ".github" / "mayor-west.yml").read_text()
        assert parse_policy(text).valid

    def test_refuses_to_overwrite(self, repo):
        assert policy_init_command() == ExitCode.CONFIG_ERROR
        assert (repo / ".github" / "mayor-west.yml").read_text() == POLICY

    def test_force_with_categories(self, repo):
        assert policy_init_command(strict=True, categories=["quality"], force=True) == ExitCode.SUCCESS
        document = yaml.safe_load((repo / ".github" / "mayor-west.yml").read_text())
        assert list(document["policies"]) == ["quality"]

    def test_explicit_path(self, tmp_path):
        target = tmp_path / "policies" / "agent.yml"
        assert policy_init_command(policy_path=str(target)) == ExitCode.SUCCESS
        assert target.is_file()
