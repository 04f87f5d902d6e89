"""Core modules for Mayor West - centralized error definitions."""

from mayor_west.core.errors import (
    ConfigurationError,
    ExitCode,
    MayorWestError,
    ProviderError,
    SchemaError,
    SchemaIssue,
    UnknownFileError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "MayorWestError",
    "ConfigurationError",
    "ProviderError",
    "ValidationError",
    "SchemaError",
    "SchemaIssue",
    "UnknownFileError",
    "main_with_error_handling",
    "format_error_message",
]
