"""Jtab exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type, and each type maps onto
a distinct process exit status for scripted callers.
"""

from __future__ import annotations

from core.constants import (
    EXIT_CONFIG_ERROR,
    EXIT_DEPENDENCY_ERROR,
    EXIT_ENCODING_ERROR,
    EXIT_IO_ERROR,
    EXIT_LOOKUP_ERROR,
    EXIT_PARSE_ERROR,
    EXIT_RECONCILE_ERROR,
    EXIT_STORE_ERROR,
)


class JtabError(Exception):
    """Base exception for all Jtab failures.

    Attributes:
        operation: Name of the failing operation, when known.
        code: Underlying diagnostic code, when known.
    """

    exit_code = EXIT_CONFIG_ERROR

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.code = code


class JtabConfigError(JtabError):
    """Raised for invalid runtime configuration or missing table identity."""

    exit_code = EXIT_CONFIG_ERROR


class JtabIOError(JtabError):
    """Raised when the input document bytes cannot be read."""

    exit_code = EXIT_IO_ERROR


class JtabParseError(JtabError):
    """Raised for malformed or wrongly-encoded input documents."""

    exit_code = EXIT_PARSE_ERROR


class JtabLookupError(JtabError):
    """Raised when a required document field is absent or mistyped."""

    exit_code = EXIT_LOOKUP_ERROR


class JtabEncodingError(JtabError):
    """Raised when a value cannot be transcoded."""

    exit_code = EXIT_ENCODING_ERROR


class JtabReconcileError(JtabError):
    """Raised when an existing table's shape differs from the import."""

    exit_code = EXIT_RECONCILE_ERROR


class JtabStoreError(JtabError):
    """Raised for table store create/open/query/append/close failures."""

    exit_code = EXIT_STORE_ERROR


class JtabTableExistsError(JtabStoreError):
    """Raised when a new-only create targets an existing table."""


class JtabTableNotFoundError(JtabStoreError):
    """Raised when opening or querying a table that does not exist."""


class JtabDependencyError(JtabError):
    """Raised when an optional runtime dependency is missing."""

    exit_code = EXIT_DEPENDENCY_ERROR
