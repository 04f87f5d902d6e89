"""
Data models for repository scaffolding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from mayor_west.core.errors import ConfigurationError
from mayor_west.policies.defaults import DEFAULT_PROTECTED_PATHS
from mayor_west.policies.models import CATEGORY_NAMES


class SetupMode(str, Enum):
    """Which catalog entries a setup run selects."""

    FULL = "full"
    MINIMAL = "minimal"
    CUSTOM = "custom"


class FileCategory(str, Enum):
    CONFIGURATION = "configuration"
    AGENT = "agent"
    WORKFLOW = "workflow"
    TEMPLATE = "template"


class FileAction(str, Enum):
    CREATE = "create"
    OVERWRITE = "overwrite"
    SKIP = "skip"


MERGE_STRATEGIES = ("SQUASH", "MERGE", "REBASE")

ITERATION_LIMIT_MIN = 1
ITERATION_LIMIT_MAX = 50


@dataclass(frozen=True)
class SetupOptions:
    """
    Inputs to the file generators.

    Every generator is a pure function of these options, so two equal
    SetupOptions always render byte-identical files.
    """

    iteration_limit: int = 15
    merge_strategy: str = "SQUASH"
    enable_auto_merge: bool = True
    strict_policy: bool = False
    policy_categories: tuple[str, ...] | None = None
    protected_paths: tuple[str, ...] = DEFAULT_PROTECTED_PATHS

    def __post_init__(self) -> None:
        """Validate option ranges."""
        if isinstance(self.iteration_limit, bool) or not isinstance(self.iteration_limit, int):
            raise ConfigurationError("Iteration limit must be an integer")
        if not ITERATION_LIMIT_MIN <= self.iteration_limit <= ITERATION_LIMIT_MAX:
            raise ConfigurationError(
                f"Iteration limit must be between {ITERATION_LIMIT_MIN} and "
                f"{ITERATION_LIMIT_MAX}, got {self.iteration_limit}"
            )
        if self.merge_strategy not in MERGE_STRATEGIES:
            raise ConfigurationError(
                f"Invalid merge strategy: '{self.merge_strategy}'. "
                f"Must be one of: {', '.join(MERGE_STRATEGIES)}"
            )
        if self.policy_categories is not None:
            unknown = [c for c in self.policy_categories if c not in CATEGORY_NAMES]
            if unknown:
                raise ConfigurationError(f"Unknown policy categories: {', '.join(unknown)}")

    @property
    def merge_method(self) -> str:
        """Merge strategy in the lowercase form used by the policy file."""
        return self.merge_strategy.lower()


@dataclass(frozen=True)
class FileSpec:
    """A generatable file in the catalog."""

    path: str
    display_name: str
    category: FileCategory
    critical: bool
    generator: Callable[[SetupOptions], str] = field(compare=False, repr=False)

    def render(self, options: SetupOptions) -> str:
        return self.generator(options)
