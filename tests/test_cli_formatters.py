"""Tests for scorecard output formatters."""

import json
from xml.etree import ElementTree as ET

import pytest

from mayor_west import __version__
from mayor_west.cli.formatters import OUTPUT_FORMATS, OutputFormat, format_scorecard
from mayor_west.policies.models import Verdict, Violation
from mayor_west.verification import CheckResult, CheckStatus, Scorecard, build_scorecard


@pytest.fixture
def scorecard():
    verdict = Verdict(
        passed=False,
        violations=(Violation("files", "blocked_patterns", "File 'db/a.sql' matches blocked pattern '**/*.sql'"),),
    )
    return build_scorecard(
        verdicts={"Policy": verdict},
        checks=[
            CheckResult("Git Repository", CheckStatus.PASS, "Git repository detected", rule_id="repo.git"),
            CheckResult("Policy: settings section present", CheckStatus.WARN, "odd | value"),
            CheckResult("VS Code Settings", CheckStatus.SKIP, "VS Code settings missing"),
        ],
        command="verify",
        metadata={"timestamp": "2026-01-17T14:30:00+00:00"},
    )


class TestFormatScorecard:
    """Tests for format dispatch."""

    def test_output_formats(self):
        assert OUTPUT_FORMATS == ["table", "json", "junit", "markdown"]

    def test_invalid_format(self, scorecard):
        with pytest.raises(ValueError):
            format_scorecard(scorecard, "yaml")

    def test_writes_output_file(self, scorecard, tmp_path):
        target = tmp_path / "report.json"
        output = format_scorecard(scorecard, OutputFormat.JSON, output_file=target)
        assert target.read_text(encoding="utf-8") == output


class TestTableFormat:
    def test_table(self, scorecard):
        output = format_scorecard(scorecard)
        assert "Mayor West verify" in output
        assert "  ✗ Policy: FAIL" in output
        assert "  ✓ Git Repository: PASS" in output
        assert "  ○ VS Code Settings: SKIP" in output
        assert "Summary: 1/3 passed, 1 warnings, 1 failed" in output
        assert "Overall: FAIL" in output


class TestJsonFormat:
    """Tests for JSON output."""

    def test_structure(self, scorecard):
        data = json.loads(format_scorecard(scorecard, "json"))
        assert data["version"] == __version__
        assert data["command"] == "verify"
        assert set(data["checks"]) == {
            "policy",
            "git_repository",
            "policy_settings_section_present",
            "vs_code_settings",
        }
        policy = data["checks"]["policy"]
        assert policy["status"] == "fail"
        assert policy["rule_id"] == "files.blocked_patterns"
        assert policy["violations"][0]["severity"] == "error"
        assert data["summary"]["status"] == "fail"
        assert data["metadata"]["timestamp"] == "2026-01-17T14:30:00+00:00"

    def test_duplicate_names_get_suffix(self):
        scorecard = Scorecard(
            command="verify",
            checks=[CheckResult("Policy", CheckStatus.PASS), CheckResult("Policy", CheckStatus.FAIL)],
        )
        data = json.loads(format_scorecard(scorecard, "json"))
        assert set(data["checks"]) == {"policy", "policy_2"}


class TestJunitFormat:
    """Tests for JUnit XML output."""

    def test_structure(self, scorecard):
        output = format_scorecard(scorecard, "junit")
        assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>')

        root = ET.fromstring(output.split("\n", 1)[1])
        assert root.tag == "testsuites"
        assert root.get("failures") == "1"
        suite = root.find("testsuite")
        assert suite.get("name") == "verify"
        assert suite.get("skipped") == "1"
        assert suite.get("timestamp") == "2026-01-17T14:30:00+00:00"

        cases = {case.get("name"): case for case in suite.findall("testcase")}
        assert cases["Git Repository"].get("classname") == "MayorWest.verify"
        failure = cases["Policy"].find("failure")
        assert failure.get("type") == "files.blocked_patterns"
        assert "db/a.sql" in failure.get("message")
        assert cases["Policy: settings section present"].find("system-out").text.startswith("WARNING:")
        assert cases["VS Code Settings"].find("skipped") is not None

    def test_special_characters_escaped_once(self):
        scorecard = Scorecard(
            command="verify",
            checks=[CheckResult("A & B", CheckStatus.FAIL, "<script>")],
        )
        output = format_scorecard(scorecard, "junit")
        assert "&amp;amp;" not in output
        case = ET.fromstring(output.split("\n", 1)[1]).find("testsuite/testcase")
        assert case.get("name") == "A & B"
        assert case.find("failure").get("message") == "<script>"


class TestMarkdownFormat:
    """Tests for Markdown output."""

    def test_report(self, scorecard):
        output = format_scorecard(scorecard, "markdown")
        assert output.startswith("## ❌ Mayor West verify: Checks failed")
        assert "**1/3** checks passed, 1 warning(s)" in output
        assert "| Check | Status | Details |" in output
        assert "odd \\| value" in output
        assert "### Violations" in output
        assert "- `files.blocked_patterns` (error): File 'db/a.sql'" in output

    def test_passing_report(self):
        scorecard = Scorecard(command="policy test", checks=[CheckResult("Policy", CheckStatus.PASS, "No violations")])
        output = format_scorecard(scorecard, "markdown")
        assert output.startswith("## ✅ Mayor West policy test: All checks passed")
        assert "### Violations" not in output
