"""
Structured error types for resilient-db.

Every error raised by the library carries a category, a retryable flag,
structured context and the chained underlying exception, so callers and
log pipelines can decide what to do without parsing messages.

Manifesto:
    - **Typed Error Hierarchy:** Connection problems, statement problems and
      configuration problems are different types
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry metadata for logging and alerting
    - **Error Chaining:** The original driver exception is never lost

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                     ResilientDbError                          │
        │        (category, retryable, context, cause)                 │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  TransientError          DatabaseError          ConfigError   │
        │  (retryable=True)        (DATABASE)             (CONFIG)      │
        │       │                      │                      │         │
        │  DatabaseConnectionError ConnectionFailure    InvalidConfig   │
        │                          NotificationError    MissingDriver   │
        │                          TransactionError                     │
        │                          UnsupportedOperation                 │
        └──────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Wrap statement errors (syntax, missing table) in ConnectionFailure
    ✅ DO: Let them propagate unchanged

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

Parameters = Sequence[Any] | Mapping[str, Any]


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    NETWORK = "NETWORK"  # Socket, DNS, timeout
    DATABASE = "DATABASE"  # Connection, statement, transaction
    CONFIG = "CONFIG"  # Missing driver, bad URL, invalid settings
    INTERNAL = "INTERNAL"  # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-empty fields end up in ``to_dict()`` so log lines stay short.

    Examples:
        >>> ctx = ErrorContext(backend="sqlite", operation="run_query")
        >>> ctx.to_dict()
        {'backend': 'sqlite', 'operation': 'run_query'}
    """

    backend: str | None = None
    operation: str | None = None
    statement: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("backend", "operation", "statement"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ResilientDbError(Exception):
    """
    Base exception for all resilient-db errors.

    Subclasses set ``default_category`` and ``default_retryable`` so the
    common case needs nothing but a message.

    Examples:
        >>> err = ResilientDbError("boom")
        >>> err.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> err.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ResilientDbError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DatabaseError("Failed").with_context(backend="mysql")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(ResilientDbError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """The driver could not open (or lost) its connection."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(ResilientDbError):
    """Database statement, transaction or connection-wrapper error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class TransactionError(DatabaseError):
    """Transaction control called in the wrong state."""


class UnsupportedOperationError(DatabaseError, NotImplementedError):
    """The operation exists for interface compatibility only."""

    default_category = ErrorCategory.INTERNAL


class ConnectionFailure(DatabaseError):
    """
    Terminal report of a failed retry sequence.

    Raised by ``RetryingConnection.run_query`` once retries are exhausted
    or a retry is refused because a transaction is active. The message is
    the message of the underlying failure; ``attempts``, ``statement_text``
    and ``parameters`` describe the call that failed.

    All report fields are read-only.

    Examples:
        >>> failure = ConnectionFailure(OSError("server has gone away"), 3, "select 1")
        >>> failure.attempts
        3
        >>> str(failure)
        'server has gone away'
    """

    def __init__(
        self,
        cause: BaseException,
        attempts: int,
        statement_text: str,
        parameters: Parameters | None = None,
        *,
        context: ErrorContext | None = None,
    ):
        super().__init__(str(cause), cause=cause, context=context)
        self._attempts = attempts
        self._statement_text = statement_text
        self._parameters = parameters

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def statement_text(self) -> str:
        return self._statement_text

    @property
    def parameters(self) -> Parameters | None:
        return self._parameters

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["attempts"] = self._attempts
        result["statement"] = self._statement_text
        # Values may hold credentials or PII, only their count is logged
        result["parameter_count"] = len(self._parameters) if self._parameters is not None else 0
        return result


class NotificationError(DatabaseError):
    """The failure callback raised while a ConnectionFailure was being reported."""

    def __init__(self, failure: ConnectionFailure, callback_error: BaseException):
        super().__init__(
            f"notification failed while handling: {failure.message}",
            cause=callback_error,
        )
        self.failure = failure


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ResilientDbError):
    """Configuration error (never retryable)."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        msg = message or f"Invalid value for {key}: {value!r}"
        super().__init__(msg)
        self.key = key
        self.value = value


class MissingDriverError(ConfigError):
    """The DB-API driver for a backend is not installed."""

    def __init__(self, backend: str, package: str):
        super().__init__(
            f"{package} is required for {backend}. Install with: pip install {package}"
        )
        self.backend = backend
        self.package = package


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "Parameters",
    "ResilientDbError",
    "TransientError",
    "DatabaseConnectionError",
    "DatabaseError",
    "TransactionError",
    "UnsupportedOperationError",
    "ConnectionFailure",
    "NotificationError",
    "ConfigError",
    "InvalidConfigError",
    "MissingDriverError",
]
