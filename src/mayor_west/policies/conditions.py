"""
Condition evaluator for pull request rules.

Parses and evaluates ``when`` conditions of ``auto_add_labels`` and
``required_reviewers`` against a change-set context.

Condition Language:
    # Comparisons
    files_changed > 10
    lines_changed >= 500
    label_count == 0

    # Boolean operators
    files_changed > 10 AND NOT has_dependency_change
    has_dependency_change OR dependencies_added > 0

    # Parentheses
    (files_changed > 10 OR lines_changed > 500) AND label_count == 0

    # Built-in functions
    touches('src/auth/**')
    has_label('security')
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

import structlog

from mayor_west.policies.changeset import ChangeSet
from mayor_west.policies.patterns import PatternError, PatternSet, compile_pattern

logger = structlog.get_logger()


@dataclass
class ConditionContext:
    """Evaluation context derived from a change set."""

    change_set: ChangeSet

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for evaluation."""
        cs = self.change_set
        return {
            "files_changed": len(cs.files),
            "lines_changed": cs.total_lines_changed,
            "commands_run": len(cs.commands),
            "dependencies_added": len(cs.dependencies),
            "has_dependency_change": cs.has_dependency_change or bool(cs.dependencies),
            "label_count": len(cs.pr.labels),
        }


def _touches(change_set: ChangeSet, pattern: str) -> bool:
    patterns = PatternSet([compile_pattern(pattern)])
    return any(patterns.matches(path) for path in change_set.paths)


def _has_label(change_set: ChangeSet, label: str) -> bool:
    return label in change_set.pr.labels


class ConditionError(ValueError):
    """Raised internally when a condition cannot be parsed."""


class ConditionEvaluator:
    """
    Evaluates conditions against a change set.

    Supports a simple DSL with comparisons, boolean operators, and functions.
    """

    # Supported comparison operators, longest first
    OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
        "==": lambda a, b: a == b,
        "!=": lambda a, b: a != b,
        ">=": lambda a, b: a >= b,
        "<=": lambda a, b: a <= b,
        ">": lambda a, b: a > b,
        "<": lambda a, b: a < b,
    }

    # Built-in functions
    FUNCTIONS: dict[str, Callable[[ChangeSet, str], bool]] = {
        "touches": _touches,
        "has_label": _has_label,
    }

    def __init__(self, change_set: ChangeSet):
        self.change_set = change_set
        self.context = ConditionContext(change_set).to_dict()

    def evaluate(self, condition: str) -> bool:
        """
        Evaluate a condition string.

        An empty condition is always true. A condition that cannot be parsed
        evaluates to false and logs a warning.

        Examples:
            >>> ConditionEvaluator(change_set).evaluate("files_changed > 10")
            False  # If the change set touches 3 files
        """
        if not condition or not condition.strip():
            return True

        condition = " ".join(condition.split())

        try:
            return self._evaluate_expression(condition)
        except (ConditionError, PatternError, TypeError) as e:
            logger.warning("condition_unparseable", condition=condition, error=str(e))
            return False

    def _evaluate_expression(self, expr: str) -> bool:
        """Evaluate a boolean expression with AND/OR/NOT."""
        expr = expr.strip()

        # Resolve innermost parentheses that are not function calls
        while True:
            match = re.search(r"(?<!\w)\(([^()]+)\)", expr)
            if not match:
                break
            result = self._evaluate_expression(match.group(1))
            expr = expr[: match.start()] + str(result) + expr[match.end() :]

        # OR has the lowest precedence
        if re.search(r"\s+OR\s+", expr, flags=re.IGNORECASE):
            parts = re.split(r"\s+OR\s+", expr, flags=re.IGNORECASE)
            return any(self._evaluate_expression(p) for p in parts)

        if re.search(r"\s+AND\s+", expr, flags=re.IGNORECASE):
            parts = re.split(r"\s+AND\s+", expr, flags=re.IGNORECASE)
            return all(self._evaluate_expression(p) for p in parts)

        if expr.upper().startswith("NOT "):
            return not self._evaluate_expression(expr[4:])

        # Boolean literals from parentheses resolution
        if expr.lower() == "true":
            return True
        if expr.lower() == "false":
            return False

        func_match = re.fullmatch(r"(\w+)\((.*)\)", expr)
        if func_match:
            return self._evaluate_function(func_match.group(1), func_match.group(2))

        return self._evaluate_comparison(expr)

    def _evaluate_comparison(self, expr: str) -> bool:
        """Evaluate a comparison like 'files_changed > 10'."""
        for op, func in self.OPERATORS.items():
            if op in expr:
                left, right = expr.split(op, 1)
                if not left.strip() or not right.strip():
                    raise ConditionError(f"Incomplete comparison: {expr!r}")
                return func(self._resolve_value(left), self._resolve_value(right))

        # Single variable (boolean check)
        return bool(self._resolve_value(expr))

    def _resolve_value(self, token: str) -> Any:
        """Resolve a token to its value."""
        token = token.strip()

        # String literal
        if len(token) >= 2 and token[0] == token[-1] and token[0] in ("'", '"'):
            return token[1:-1]

        # Numeric literal
        try:
            if "." in token:
                return float(token)
            return int(token)
        except ValueError:
            pass

        if token.lower() == "true":
            return True
        if token.lower() == "false":
            return False

        if token not in self.context:
            raise ConditionError(f"Unknown variable: {token!r}")
        return self.context[token]

    def _evaluate_function(self, name: str, args_str: str) -> bool:
        """Evaluate a single-argument function call."""
        func = self.FUNCTIONS.get(name.lower())
        if func is None:
            raise ConditionError(f"Unknown function: {name}()")

        arg = self._resolve_value(args_str)
        if not isinstance(arg, str):
            raise ConditionError(f"{name}() expects a quoted string argument")
        return func(self.change_set, arg)
