"""
Glob-style path pattern matching.

Patterns are compiled once into anchored regular expressions and reused
for every path checked against a policy.

Syntax:
    **      any number of path segments (including none)
    *       any characters except "/"
    ?       a single character except "/"
    other   literal, case-sensitive

Paths and patterns always use "/" as the separator, whatever the host OS.
A trailing "/" on a pattern is dropped before compilation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


class PatternError(ValueError):
    """Raised for an unusable pattern or path."""


@dataclass(frozen=True)
class GlobPattern:
    """A compiled glob pattern."""

    source: str
    regex: re.Pattern[str]

    def matches(self, path: str) -> bool:
        return self.regex.fullmatch(normalize_path(path)) is not None

    def __str__(self) -> str:
        return self.source


def normalize_path(path: str) -> str:
    """Normalize a file path to forward slashes with no leading "./"."""
    if path is None or not str(path).strip():
        raise PatternError("Path must be a non-empty string")
    path = str(path).replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    if not path:
        raise PatternError("Path must be a non-empty string")
    return path


def _translate(pattern: str) -> str:
    """Translate a normalized glob into a regex body (without anchors)."""
    parts: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        if pattern.startswith("**", i):
            at_segment_start = i == 0 or pattern[i - 1] == "/"
            if at_segment_start and pattern.startswith("**/", i):
                # "**/" spans zero or more whole directories
                parts.append("(?:.*/)?")
                i += 3
                continue
            if at_segment_start and i + 2 == n and i > 0 and parts[-1] == "/":
                # trailing "/**": the directory itself or anything beneath it
                parts.pop()
                parts.append("(?:/.*)?")
                i += 2
                continue
            parts.append(".*")
            i += 2
            continue

        char = pattern[i]
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        i += 1
    return "".join(parts)


def compile_pattern(pattern: str) -> GlobPattern:
    """
    Compile a glob pattern into an anchored matcher.

    Raises:
        PatternError: If the pattern is empty or contains control characters
    """
    if not isinstance(pattern, str):
        raise PatternError(f"Pattern must be a string, got {type(pattern).__name__}")
    if _CONTROL_CHARS.search(pattern):
        raise PatternError(f"Pattern {pattern!r} contains control characters")

    normalized = pattern.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.rstrip("/") if normalized != "/" else normalized
    if not normalized or normalized == "/":
        raise PatternError("Pattern must be a non-empty string")

    return GlobPattern(source=pattern, regex=re.compile(_translate(normalized)))


class PatternSet:
    """An ordered collection of compiled patterns."""

    def __init__(self, patterns: Iterable[str | GlobPattern] = ()):
        self.patterns: tuple[GlobPattern, ...] = tuple(
            p if isinstance(p, GlobPattern) else compile_pattern(p) for p in patterns
        )

    def __len__(self) -> int:
        return len(self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __iter__(self):
        return iter(self.patterns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternSet):
            return NotImplemented
        return self.sources == other.sources

    def __hash__(self) -> int:
        return hash(self.sources)

    def __repr__(self) -> str:
        return f"PatternSet({list(self.sources)!r})"

    @property
    def sources(self) -> tuple[str, ...]:
        return tuple(p.source for p in self.patterns)

    def first_match(self, path: str) -> GlobPattern | None:
        """Return the first pattern that matches the path, if any."""
        normalized = normalize_path(path)
        for pattern in self.patterns:
            if pattern.regex.fullmatch(normalized):
                return pattern
        return None

    def matches(self, path: str) -> bool:
        return self.first_match(path) is not None


def matches(path: str, patterns: Sequence[str | GlobPattern] | PatternSet) -> bool:
    """Check whether a path matches any pattern in the set."""
    pattern_set = patterns if isinstance(patterns, PatternSet) else PatternSet(patterns)
    return pattern_set.matches(path)


def is_allowed(path: str, allowed: PatternSet, blocked: PatternSet) -> bool:
    """
    Apply blocked-over-allowed precedence to a single path.

    A path matching any blocked pattern is never allowed. An empty
    allowed set permits everything that is not blocked.
    """
    if blocked.matches(path):
        return False
    return not allowed or allowed.matches(path)
