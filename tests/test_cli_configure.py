"""Tests for the configure command."""

from unittest.mock import patch

import pytest

from mayor_west.cli.configure import (
    ConfigureAnswers,
    add_blocked_patterns,
    apply_configuration,
    configure_command,
    set_setting,
)
from mayor_west.core.errors import ConfigurationError, ExitCode
from mayor_west.main import run
from mayor_west.policies.defaults import DEFAULT_PROTECTED_PATHS, generate_default_policy
from mayor_west.policies.schema import load_policy

POLICY_FILE = ".github/mayor-west.yml"


@pytest.fixture
def protected_policy():
    return generate_default_policy(protected_paths=DEFAULT_PROTECTED_PATHS)


@pytest.fixture
def repo(tmp_path, protected_policy):
    path = tmp_path / POLICY_FILE
    path.parent.mkdir(parents=True)
    path.write_text(protected_policy)
    return tmp_path


class TestSetSetting:
    """Tests for set_setting."""

    def test_replaces_existing_value(self, protected_policy):
        text, changed = set_setting(protected_policy, "merge_method", "rebase")
        assert changed
        assert load_policy(text).settings.merge_method == "rebase"
        assert text.startswith("# Mayor West Mode policy")

    def test_same_value_is_unchanged(self, protected_policy):
        text, changed = set_setting(protected_policy, "delete_branch", "true")
        assert not changed
        assert text == protected_policy

    def test_missing_key_is_added(self):
        text = 'version: "1.0"\nenabled: true\nsettings:\n  merge_method: squash\n'
        updated, changed = set_setting(text, "audit_comments", "false")
        assert changed
        settings = load_policy(updated).settings
        assert settings.audit_comments is False
        assert settings.merge_method == "squash"

    def test_missing_section_is_appended(self):
        text = 'version: "1.0"\nenabled: true'
        updated, changed = set_setting(text, "merge_method", "merge")
        assert changed
        assert load_policy(updated).settings.merge_method == "merge"

    def test_flow_style_settings_rejected(self):
        text = 'version: "1.0"\nenabled: true\nsettings: {merge_method: squash}\n'
        with pytest.raises(ConfigurationError):
            set_setting(text, "merge_method", "merge")


class TestAddBlockedPatterns:
    """Tests for add_blocked_patterns."""

    def test_appends_to_block_list(self, protected_policy):
        text, added = add_blocked_patterns(protected_policy, ["Dockerfile", "**/*.tf"])
        assert added == ["Dockerfile", "**/*.tf"]
        blocked = load_policy(text).files.blocked
        assert list(blocked.sources) == list(DEFAULT_PROTECTED_PATHS) + ["Dockerfile", "**/*.tf"]
        assert blocked.matches("infra/main.tf")
        assert text.startswith("# Mayor West Mode policy")

    def test_replaces_empty_flow_list(self):
        text, added = add_blocked_patterns(generate_default_policy(), ["k8s/**"])
        assert added == ["k8s/**"]
        assert load_policy(text).files.blocked.sources == ("k8s/**",)

    def test_flow_list_with_trailing_comment(self):
        text = (
            'version: "1.0"\nenabled: true\npolicies:\n  files:\n'
            "    blocked_patterns: [package.json]  # keep lockfiles too\n"
        )
        updated, added = add_blocked_patterns(text, ["yarn.lock"])
        assert added == ["yarn.lock"]
        assert load_policy(updated).files.blocked.sources == ("package.json", "yarn.lock")
        assert "# keep lockfiles too" in updated

    def test_adds_missing_key(self):
        text = 'version: "1.0"\nenabled: true\npolicies:\n  files:\n    max_files_per_pr: 5\n'
        updated, _ = add_blocked_patterns(text, ["Dockerfile"])
        files = load_policy(updated).files
        assert files.blocked.sources == ("Dockerfile",)
        assert files.max_files_per_pr == 5

    def test_existing_patterns_are_ignored(self, protected_policy):
        text, added = add_blocked_patterns(protected_policy, [".github/workflows/**"])
        assert added == []
        assert text == protected_policy

    def test_requires_files_category(self):
        with pytest.raises(ConfigurationError, match="no files category"):
            add_blocked_patterns(generate_default_policy(categories=["commits"]), ["Dockerfile"])

    def test_invalid_pattern(self, protected_policy):
        with pytest.raises(ConfigurationError, match="Invalid protected path"):
            add_blocked_patterns(protected_policy, ["bad\tpath"])


class TestApplyConfiguration:
    def test_reports_each_change(self, protected_policy):
        answers = ConfigureAnswers(merge_method="merge", delete_branch=False, audit_comments=True, protect=["SECURITY.md"])
        text, changes = apply_configuration(protected_policy, answers)

        assert changes == ["settings.merge_method = merge", "settings.delete_branch = false", "protected SECURITY.md"]
        policy = load_policy(text)
        assert policy.settings.merge_method == "merge"
        assert policy.settings.delete_branch is False
        assert policy.files.blocked.matches("SECURITY.md")

    def test_empty_answers_change_nothing(self, protected_policy):
        assert apply_configuration(protected_policy, ConfigureAnswers()) == (protected_policy, [])


class TestConfigureCommand:
    """Tests for configure_command."""

    def test_updates_policy_file(self, repo):
        result = configure_command(merge_method="REBASE", delete_branch=False, protect=["Dockerfile"], root=str(repo))
        assert result == ExitCode.SUCCESS

        policy = load_policy((repo / POLICY_FILE).read_text())
        assert policy.settings.merge_method == "rebase"
        assert policy.settings.delete_branch is False
        assert policy.files.blocked.matches("Dockerfile")

    def test_already_up_to_date(self, repo, capsys):
        before = (repo / POLICY_FILE).read_text()
        assert configure_command(merge_method="squash", root=str(repo)) == ExitCode.SUCCESS
        assert (repo / POLICY_FILE).read_text() == before
        assert "already matches" in capsys.readouterr().out

    def test_nothing_to_configure(self, repo):
        with patch("mayor_west.cli.configure.is_interactive", return_value=False):
            assert configure_command(root=str(repo)) == ExitCode.CONFIG_ERROR

    def test_missing_policy_file(self, tmp_path):
        assert configure_command(merge_method="merge", root=str(tmp_path)) == ExitCode.CONFIG_ERROR

    def test_invalid_policy_file(self, tmp_path):
        path = tmp_path / POLICY_FILE
        path.parent.mkdir(parents=True)
        path.write_text('version: "1.0"\nenabled: true\npolicies:\n  styleguide: {}\n')
        assert configure_command(merge_method="merge", root=str(tmp_path)) == ExitCode.VALIDATION_ERROR

    def test_invalid_merge_method(self, repo):
        assert configure_command(merge_method="octopus", root=str(repo)) == ExitCode.CONFIG_ERROR

    def test_wizard(self, repo):
        with (
            patch("mayor_west.cli.configure.is_interactive", return_value=True),
            patch("mayor_west.cli.configure.select", return_value="merge"),
            patch("mayor_west.cli.configure.confirm", side_effect=[False, True]),
            patch("mayor_west.cli.configure.multi_select", return_value=["k8s/**"]) as multi_select,
        ):
            assert configure_command(root=str(repo)) == ExitCode.SUCCESS

        policy = load_policy((repo / POLICY_FILE).read_text())
        assert policy.settings.merge_method == "merge"
        assert policy.settings.audit_comments is False
        assert policy.settings.delete_branch is True
        assert policy.files.blocked.matches("k8s/deploy.yaml")
        assert "Dockerfile" in multi_select.call_args.kwargs["choices"]

    def test_cli(self, repo):
        argv = ["configure", "--merge-method", "REBASE", "--no-audit-comments", "--protect", "k8s/**", "--root", str(repo)]
        assert run(argv) == ExitCode.SUCCESS

        policy = load_policy((repo / POLICY_FILE).read_text())
        assert policy.settings.merge_method == "rebase"
        assert policy.settings.audit_comments is False
        assert policy.files.blocked.matches("k8s/deploy.yaml")
