"""
Unified error handling for Mayor West CLI commands.

This module provides standardized error handling, exit codes, and
error reporting for all CLI commands.

Exit Codes:
- 0: Success
- 1: Warning (advisory, e.g. dry-run found violations)
- 2: Blocked (policy violations or failed verification)
- 10: Configuration error (missing policy file, unknown catalog path)
- 11: Provider error (external collaborator failure)
- 12: Validation error (malformed policy document)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Sequence, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    WARNING = 1
    BLOCKED = 2
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127


class MayorWestError(Exception):
    """Base exception for Mayor West errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(MayorWestError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ProviderError(MayorWestError):
    """Raised when an external collaborator (git, CI input) fails."""

    exit_code = ExitCode.PROVIDER_ERROR


class ValidationError(MayorWestError):
    """Raised for validation failures."""

    exit_code = ExitCode.VALIDATION_ERROR


@dataclass(frozen=True)
class SchemaIssue:
    """A single problem found in a policy document, keyed by dotted field path."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class SchemaError(ValidationError):
    """Malformed policy document. Carries every issue found, never a partial model."""

    def __init__(self, issues: Sequence[SchemaIssue]):
        self.issues = list(issues)
        count = len(self.issues)
        summary = f"Policy document has {count} schema error{'s' if count != 1 else ''}"
        super().__init__(summary, details={"paths": [i.path for i in self.issues]})


class UnknownFileError(ConfigurationError):
    """Custom setup selection references paths that are not in the file catalog."""

    def __init__(self, paths: Sequence[str]):
        self.paths = list(paths)
        super().__init__(
            f"Unknown file(s) in custom selection: {', '.join(self.paths)}",
            details={"unknown_count": len(self.paths)},
        )


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI command functions that provides unified error handling.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Usage:
        @main_with_error_handling()
        def my_command() -> int:
            # command implementation
            return 0

    Exit codes:
        - MayorWestError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except MayorWestError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                _print_error(e)
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: MayorWestError) -> str:
    """Format an error message for display to users."""
    if isinstance(error, SchemaError):
        lines = [error.message + ":"]
        lines.extend(f"  • {issue}" for issue in error.issues)
        return "\n".join(lines)
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg


def _print_error(error: MayorWestError) -> None:
    from mayor_west.cli.ux import error as print_error

    print_error(format_error_message(error))
