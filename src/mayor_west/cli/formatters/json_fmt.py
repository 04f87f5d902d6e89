"""
JSON output formatter for Mayor West scorecards.

Produces structured JSON output for machine consumption and downstream automation.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from mayor_west import __version__
from mayor_west.verification.models import Scorecard


def format_json(scorecard: Scorecard) -> str:
    """
    Format a scorecard as JSON.

    Output structure:
    {
        "version": "1.0.0",
        "timestamp": "2026-01-17T14:30:00+00:00",
        "command": "verify",
        "checks": {"git_repository": {...}, ...},
        "summary": {...}
    }
    """
    checks: dict[str, Any] = {}
    for check in scorecard.checks:
        entry: dict[str, Any] = {
            "name": check.name,
            "status": check.status.value,
            "message": check.message,
            **check.details,
        }
        if check.rule_id:
            entry["rule_id"] = check.rule_id
        if check.location:
            entry["location"] = check.location
        checks[_unique_key(checks, _normalize_check_name(check.name))] = entry

    output: dict[str, Any] = {
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "command": scorecard.command,
        "checks": checks,
        "summary": scorecard.summary(),
    }

    if scorecard.metadata:
        output["metadata"] = scorecard.metadata

    return json.dumps(output, indent=2, sort_keys=True, default=str)


def _normalize_check_name(name: str) -> str:
    """Convert check name to snake_case key."""
    key = name.lower()
    for char in " -:#/.":
        key = key.replace(char, "_")
    while "__" in key:
        key = key.replace("__", "_")
    return key.strip("_")


def _unique_key(existing: dict[str, Any], key: str) -> str:
    candidate, n = key, 2
    while candidate in existing:
        candidate = f"{key}_{n}"
        n += 1
    return candidate
