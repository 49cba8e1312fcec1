"""Custom exception hierarchy for sqlsugar.

All public errors inherit from SqlSugarError so callers can catch the base
class for any sqlsugar-specific failure.
"""
from __future__ import annotations

from typing import Any


class SqlSugarError(Exception):
    """Base exception for all sqlsugar errors."""


class QueryError(SqlSugarError):
    """Raised when a query expression is malformed.

    This is a programmer error (e.g. a fragment/value count mismatch) and is
    never raised for user-supplied values.
    """


class ValidationError(SqlSugarError):
    """Raised when caller input fails validation during compilation.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. ``MIXED_CRITERIA``).
        details: Extra context about the offending input.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response for API callers."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class CriteriaError(ValidationError):
    """Raised when a criteria object cannot be compiled.

    Args:
        message: Human-readable description.
        key: The offending key in the criteria object.
        code: ``MIXED_CRITERIA``, ``UNKNOWN_OPERATOR`` or ``INVALID_CRITERIA``.
    """

    def __init__(self, message: str, key: str, code: str = "INVALID_CRITERIA") -> None:
        super().__init__(f"{message} (key: '{key}')", code=code, details={"key": key})
        self.key = key


class DefinitionError(SqlSugarError):
    """Raised when a table definition is invalid.

    Detected at schema-setup time, before any statement is executed.

    Args:
        message: Human-readable description.
        field: The property or field name at fault.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ConfigError(SqlSugarError):
    """Raised when session configuration is missing or invalid."""


class QueryExecutionError(SqlSugarError):
    """Raised when the database driver rejects a statement.

    The driver exception is always chained as ``__cause__``.

    Args:
        message: Human-readable description.
        sql: Fully-inlined debug rendering of the failed statement.
        query: The query expression that was executed.
    """

    def __init__(self, message: str, sql: str | None = None, query: Any = None) -> None:
        super().__init__(message)
        self.sql = sql
        self.query = query


class TransactionError(SqlSugarError):
    """Raised when a transaction callback fails.

    Args:
        message: Human-readable description.
        user_error: The exception raised by the transaction callback.
        rollback_error: The exception raised by the rollback, if it failed.
    """

    def __init__(
        self,
        message: str,
        user_error: BaseException | None = None,
        rollback_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.user_error = user_error
        self.rollback_error = rollback_error
