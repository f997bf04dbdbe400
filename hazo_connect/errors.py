"""Custom exception hierarchy for hazo_connect.

All public errors inherit from HazoConnectError so callers can catch the base
class for any hazo_connect failure.  Every error carries a machine-readable
``code`` (an :class:`ErrorCode` value) and a human-readable message.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes attached to every HazoConnectError."""

    CONFIG_ERROR = "HAZO_CONNECT_CONFIG_ERROR"
    QUERY_ERROR = "HAZO_CONNECT_QUERY_ERROR"
    TRANSLATION_ERROR = "HAZO_CONNECT_TRANSLATION_ERROR"
    PERSISTENCE_ERROR = "HAZO_CONNECT_PERSISTENCE_ERROR"
    ADMIN_ERROR = "HAZO_CONNECT_ADMIN_ERROR"
    VALIDATION_ERROR = "HAZO_CONNECT_VALIDATION_ERROR"


class HazoConnectError(Exception):
    """Base exception for all hazo_connect errors.

    Args:
        message: Human-readable description.
        code: Machine-readable error code.
        details: Extra structured context for the caller.
    """

    default_code: ErrorCode = ErrorCode.QUERY_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code: ErrorCode = code or self.default_code
        self.details: dict[str, Any] = details or {}

    @property
    def message(self) -> str:
        return str(self)

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured, serialisable error response."""
        return {
            "error": self.code.value,
            "message": str(self),
            "details": self.details,
        }


class TranslationError(HazoConnectError):
    """Raised when a QueryBuilder cannot be compiled to SQL.

    Covers missing tables, unsupported operators, malformed joins, invalid
    identifiers, bad LIMIT/OFFSET values and unsupported nested selects.
    Always raised before the engine is touched.

    Args:
        message: Human-readable description.
        clause: The SQL clause being compiled when the error occurred.
    """

    default_code = ErrorCode.TRANSLATION_ERROR

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message, details={"clause": clause} if clause else None)
        self.clause = clause


class ConfigurationError(HazoConnectError):
    """Raised for read-only violations, missing paths and bad payload shapes."""

    default_code = ErrorCode.CONFIG_ERROR


class QueryExecutionError(HazoConnectError):
    """Raised when the embedded engine rejects a compiled statement.

    Args:
        message: Human-readable description.
        sql: The statement that failed, when known.
        engine_message: The message reported by the engine.
    """

    default_code = ErrorCode.QUERY_ERROR

    def __init__(
        self,
        message: str,
        sql: str | None = None,
        engine_message: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if sql is not None:
            details["sql"] = sql
        if engine_message is not None:
            details["engine_message"] = engine_message
        super().__init__(message, details=details)
        self.sql = sql
        self.engine_message = engine_message


class PersistenceError(HazoConnectError):
    """Raised when the database snapshot cannot be written to disk.

    Args:
        message: Human-readable description.
        path: The snapshot path that could not be written.
    """

    default_code = ErrorCode.PERSISTENCE_ERROR

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message, details={"path": path} if path else None)
        self.path = path


class AdminServiceError(HazoConnectError):
    """Raised by the SQLite admin service (disabled UI or wrapped failures)."""

    default_code = ErrorCode.ADMIN_ERROR
