"""
JUnit XML output formatter for Mayor West scorecards.

Produces JUnit XML so CI systems (GitHub Actions, GitLab CI, Jenkins) can
render each check as a test case.
"""

from __future__ import annotations

from xml.etree import ElementTree as ET

from mayor_west.verification.models import CheckResult, CheckStatus, Scorecard

SUITE_NAME = "MayorWest"


def format_junit(scorecard: Scorecard) -> str:
    """
    Format a scorecard as JUnit XML.

    Output structure:
    <testsuites>
      <testsuite name="verify" tests="5" failures="1" errors="0" skipped="0">
        <testcase name="Git Repository" classname="MayorWest.verify">
          <failure message="...">...</failure>
        </testcase>
      </testsuite>
    </testsuites>
    """
    failures = str(len(scorecard.failed_checks))
    skipped = str(sum(1 for c in scorecard.checks if c.status == CheckStatus.SKIP))

    testsuites = ET.Element("testsuites")
    testsuites.set("name", SUITE_NAME)
    testsuites.set("tests", str(len(scorecard.checks)))
    testsuites.set("failures", failures)
    testsuites.set("errors", "0")

    testsuite = ET.SubElement(testsuites, "testsuite")
    testsuite.set("name", scorecard.command)
    testsuite.set("tests", str(len(scorecard.checks)))
    testsuite.set("failures", failures)
    testsuite.set("errors", "0")
    testsuite.set("skipped", skipped)

    if "timestamp" in scorecard.metadata:
        testsuite.set("timestamp", str(scorecard.metadata["timestamp"]))

    for check in scorecard.checks:
        _add_testcase(testsuite, check, scorecard.command)

    return _element_to_string(testsuites)


def _add_testcase(testsuite: ET.Element, check: CheckResult, command: str) -> None:
    """Add a testcase element for a check result."""
    testcase = ET.SubElement(testsuite, "testcase")
    testcase.set("name", check.name)
    testcase.set("classname", f"{SUITE_NAME}.{command}")

    if check.status == CheckStatus.FAIL:
        failure = ET.SubElement(testcase, "failure")
        failure.set("message", check.message)
        failure.set("type", check.rule_id or "AssertionError")
        failure.text = _format_failure_details(check)

    elif check.status == CheckStatus.WARN:
        # JUnit has no warning state
        system_out = ET.SubElement(testcase, "system-out")
        system_out.text = f"WARNING: {_format_failure_details(check)}"

    elif check.status == CheckStatus.SKIP:
        skipped = ET.SubElement(testcase, "skipped")
        skipped.set("message", check.message or "Skipped")


def _format_failure_details(check: CheckResult) -> str:
    """Format check details for failure message body."""
    lines = [check.message, ""]

    for key, value in check.details.items():
        if isinstance(value, dict):
            lines.append(f"{key}:")
            lines.extend(f"  {k}: {v}" for k, v in value.items())
        elif isinstance(value, list):
            lines.append(f"{key}:")
            lines.extend(f"  - {item}" for item in value)
        else:
            lines.append(f"{key}: {value}")

    if check.location:
        lines.append(f"\nLocation: {check.location}")

    return "\n".join(lines)


def _element_to_string(element: ET.Element) -> str:
    """Convert an element to an XML string with declaration."""
    xml_str = ET.tostring(element, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{xml_str}'
