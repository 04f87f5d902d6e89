"""
Repository health checks for ``verify``.

Git state is read with non-mutating git commands. Policy and editor
settings checks operate on already-read file text.
"""

from __future__ import annotations

import json
import re
import shutil
import subprocess
from pathlib import Path

import structlog

from mayor_west.core.errors import ProviderError
from mayor_west.policies.defaults import POLICY_FILE_PATH
from mayor_west.policies.schema import parse_policy
from mayor_west.scaffold.catalog import VSCODE_SETTINGS_PATH
from mayor_west.verification.models import CheckResult, CheckStatus

logger = structlog.get_logger()

_HTTPS_URL = re.compile(r"^https?://(?:[^@/]+@)?github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$")
_SSH_URL = re.compile(r"^(?:ssh://)?git@github\.com[:/]([^/]+)/([^/]+?)(?:\.git)?/?$")

_ENABLED_FLAG = re.compile(r"^enabled:\s*(true|false)\b", re.MULTILINE)
_ITERATION_LIMIT = re.compile(r"iterationLimit\"?\s*:\s*\d+", re.IGNORECASE)

# Sample paths checked against the blocked patterns
SAMPLE_WORKFLOW_PATH = ".github/workflows/ci.yml"
SAMPLE_MANIFEST_PATH = "package.json"


def parse_github_url(url: str | None) -> tuple[str, str] | None:
    """
    Extract (owner, repo) from a GitHub remote URL.

    Accepts https://github.com/owner/repo(.git) and git@github.com:owner/repo(.git).
    """
    if not url:
        return None
    url = url.strip()
    match = _HTTPS_URL.match(url) or _SSH_URL.match(url)
    if not match:
        return None
    return match.group(1), match.group(2)


def get_remote_url(root: Path, remote: str = "origin") -> str | None:
    """
    Read a remote URL with ``git config --get``.

    Returns None if git is not installed or the remote is not configured.

    Raises:
        ProviderError: If git cannot be run or fails for another reason
    """
    git = shutil.which("git")
    if git is None:
        return None
    try:
        result = subprocess.run(
            [git, "config", "--get", f"remote.{remote}.url"],
            cwd=root,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except subprocess.TimeoutExpired as e:
        raise ProviderError("git config timed out", details={"remote": remote}) from e
    except (subprocess.SubprocessError, OSError) as e:
        raise ProviderError(f"Failed to run git: {e}", details={"remote": remote}) from e

    # git config exits 1 when the key is unset
    if result.returncode == 1:
        return None
    if result.returncode != 0:
        raise ProviderError(
            f"git config failed: {result.stderr.strip() or f'exit {result.returncode}'}",
            details={"remote": remote},
        )
    return result.stdout.strip() or None


def git_checks(root: Path) -> list[CheckResult]:
    """Git repository and GitHub remote checks."""
    checks = []

    is_repo = (root / ".git").exists()
    checks.append(
        CheckResult(
            name="Git Repository",
            status=CheckStatus.PASS if is_repo else CheckStatus.FAIL,
            message="Git repository detected" if is_repo else "Not a git repository. Run: git init",
            rule_id="repo.git",
        )
    )

    try:
        remote_url = get_remote_url(root) if is_repo else None
    except ProviderError as e:
        logger.warning("remote_read_failed", error=e.message)
        checks.append(
            CheckResult(
                name="GitHub Remote",
                status=CheckStatus.FAIL,
                message=f"Could not read git remote: {e.message}",
                rule_id="repo.remote",
            )
        )
        return checks

    github = parse_github_url(remote_url)
    if github:
        checks.append(
            CheckResult(
                name="GitHub Remote",
                status=CheckStatus.PASS,
                message=f"{github[0]}/{github[1]}",
                details={"owner": github[0], "repo": github[1]},
                rule_id="repo.remote",
            )
        )
    else:
        checks.append(
            CheckResult(
                name="GitHub Remote",
                status=CheckStatus.FAIL,
                message="No GitHub remote found. Run: git remote add origin <url>",
                details={"remote_url": remote_url} if remote_url else {},
                rule_id="repo.remote",
            )
        )

    return checks


def _check(name: str, ok: bool, success: str, failure: str, rule_id: str, location: str) -> CheckResult:
    return CheckResult(
        name=name,
        status=CheckStatus.PASS if ok else CheckStatus.FAIL,
        message=success if ok else failure,
        rule_id=rule_id,
        location=location,
    )


def policy_checks(policy_text: str | None, location: str = POLICY_FILE_PATH) -> list[CheckResult]:
    """Validate the policy file and check that sensitive paths are protected."""
    names = (
        "Policy: valid",
        "Policy: enabled flag present",
        "Policy: workflows protected",
        "Policy: package manifest protected",
        "Policy: settings section present",
    )
    if policy_text is None:
        return [
            CheckResult(name=n, status=CheckStatus.SKIP, message="Policy file missing")
            for n in names
        ]

    result = parse_policy(policy_text)
    checks = [
        CheckResult(
            name=names[0],
            status=CheckStatus.PASS if result.valid else CheckStatus.FAIL,
            message=(
                "Policy document is valid"
                if result.valid
                else "; ".join(str(issue) for issue in result.errors)
            ),
            details={"warnings": [str(w) for w in result.warnings]} if result.warnings else {},
            rule_id="policy.schema",
            location=location,
        ),
        _check(
            names[1],
            _ENABLED_FLAG.search(policy_text) is not None,
            "enabled flag present",
            'Policy missing "enabled: true/false" flag',
            "policy.enabled",
            location,
        ),
    ]

    if not result.valid:
        checks.extend(
            CheckResult(name=n, status=CheckStatus.SKIP, message="Policy document is invalid")
            for n in names[2:]
        )
        return checks

    policy = result.policy
    blocked = policy.files.blocked if policy.files is not None else None
    checks.append(
        _check(
            names[2],
            blocked is not None and blocked.matches(SAMPLE_WORKFLOW_PATH),
            "Workflow files are blocked",
            'Workflows not protected! Add ".github/workflows/**" to policies.files.blocked_patterns',
            "policy.protect_workflows",
            location,
        )
    )
    checks.append(
        _check(
            names[3],
            blocked is not None and blocked.matches(SAMPLE_MANIFEST_PATH),
            "package.json is blocked",
            'package.json not protected! Add "package.json" to policies.files.blocked_patterns',
            "policy.protect_manifest",
            location,
        )
    )
    checks.append(
        _check(
            names[4],
            policy.settings is not None,
            "settings section present",
            "No settings section in policy file",
            "policy.settings",
            location,
        )
    )
    return checks


def _denied_commands(settings_text: str) -> set[str]:
    try:
        settings = json.loads(settings_text)
    except ValueError:
        # Settings may contain comments; fall back to a textual scan
        return {cmd for cmd in ("rm", "kill") if f'"{cmd}"' in settings_text}
    approvals = settings.get("chat.tools.terminal.autoApprove", {}) if isinstance(settings, dict) else {}
    if not isinstance(approvals, dict):
        return set()
    return {cmd for cmd, allowed in approvals.items() if allowed is False}


def vscode_checks(settings_text: str | None) -> list[CheckResult]:
    """Editor agent settings: destructive commands denied and an iteration limit set."""
    names = ("Agent settings: blocks destructive commands", "Agent settings: iteration limit set")
    if settings_text is None:
        return [
            CheckResult(name=n, status=CheckStatus.SKIP, message="VS Code settings missing")
            for n in names
        ]

    denied = _denied_commands(settings_text)
    return [
        _check(
            names[0],
            {"rm", "kill"} <= denied,
            "rm and kill require approval",
            'VS Code settings should block "rm" and "kill" commands',
            "vscode.destructive_commands",
            VSCODE_SETTINGS_PATH,
        ),
        _check(
            names[1],
            _ITERATION_LIMIT.search(settings_text) is not None,
            "iteration limit set",
            "No iteration limit found in VS Code settings",
            "vscode.iteration_limit",
            VSCODE_SETTINGS_PATH,
        ),
    ]


def _read(root: Path, path: str | Path) -> str | None:
    target = root / path
    if not target.is_file():
        return None
    return target.read_text(encoding="utf-8", errors="replace")


def repository_checks(root: Path, policy_path: str | Path = POLICY_FILE_PATH) -> list[CheckResult]:
    """
    Run every repository check against a checkout.

    policy_path is relative to root unless absolute.
    """
    return (
        git_checks(root)
        + policy_checks(_read(root, policy_path), location=str(policy_path))
        + vscode_checks(_read(root, VSCODE_SETTINGS_PATH))
    )
