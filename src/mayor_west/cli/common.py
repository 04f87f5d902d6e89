"""
Shared helpers for CLI commands: path resolution and input file loading.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from mayor_west.config import get_settings
from mayor_west.core.errors import ConfigurationError, ValidationError


def resolve_root(root: str | Path | None = None) -> Path:
    """Repository root from the flag, falling back to settings."""
    return Path(root if root is not None else get_settings().repo_root)


def resolve_policy_path(policy_path: str | Path | None = None, root: str | Path | None = None) -> Path:
    """
    Policy file location.

    An explicit path is used as given. Otherwise the configured policy path
    is resolved relative to the repository root.
    """
    if policy_path is not None:
        return Path(policy_path)
    return resolve_root(root) / get_settings().policy_path


def read_policy_text(path: Path) -> str:
    """
    Read a policy file.

    Raises:
        ConfigurationError: If the file does not exist
    """
    if not path.is_file():
        raise ConfigurationError(
            f"Policy file not found: {path}",
            details={"hint": "mayor-west policy init"},
        )
    return path.read_text(encoding="utf-8")


def load_data_file(path: str | Path) -> Any:
    """
    Load a YAML or JSON input file (JSON is valid YAML).

    Raises:
        ConfigurationError: If the file does not exist
        ValidationError: If the file cannot be parsed
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"File not found: {path}")
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValidationError(f"Could not parse {path}: {e}") from e
