"""
Policy validation and enforcement.

Provides glob matching, policy document schema validation, change-set
evaluation, bypass-label resolution and default policy generation.
"""

from mayor_west.policies.changeset import (
    ChangeSet,
    DependencyChange,
    FileChange,
    PullRequest,
    QualityResult,
    parse_quality_results,
)
from mayor_west.policies.conditions import ConditionEvaluator
from mayor_west.policies.defaults import (
    POLICY_FILE_PATH,
    build_default_policy,
    generate_default_policy,
)
from mayor_west.policies.evaluator import evaluate
from mayor_west.policies.models import (
    CATEGORY_NAMES,
    POLICY_SCHEMA_VERSION,
    PolicyDocument,
    Severity,
    Verdict,
    Violation,
)
from mayor_west.policies.overrides import BypassResolution, resolve_bypass
from mayor_west.policies.patterns import (
    GlobPattern,
    PatternError,
    PatternSet,
    compile_pattern,
    is_allowed,
    matches,
)
from mayor_west.policies.schema import SchemaResult, load_policy, parse_policy, validate_policy

__all__ = [
    "BypassResolution",
    "CATEGORY_NAMES",
    "ChangeSet",
    "ConditionEvaluator",
    "DependencyChange",
    "FileChange",
    "GlobPattern",
    "POLICY_FILE_PATH",
    "POLICY_SCHEMA_VERSION",
    "PatternError",
    "PatternSet",
    "PolicyDocument",
    "PullRequest",
    "QualityResult",
    "SchemaResult",
    "Severity",
    "Verdict",
    "Violation",
    "build_default_policy",
    "compile_pattern",
    "evaluate",
    "generate_default_policy",
    "is_allowed",
    "load_policy",
    "matches",
    "parse_policy",
    "parse_quality_results",
    "resolve_bypass",
    "validate_policy",
]
