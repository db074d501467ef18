"""
Retrying connection: transparent reconnect-and-retry for SQL statements.

``RetryingConnection`` sits in front of a live driver connection. When a
statement fails because the connection died (server restart, idle-timeout
kill, network drop) it obtains a fresh connection from the connector and
runs the statement again. It refuses to retry inside a transaction, and it
never retries failures that belong to the statement itself.

Manifesto:
    - **Transparent when safe:** Reconnects are invisible to callers
      unless the attempt budget runs out
    - **Never replay a transaction:** Earlier statements of a transaction
      died with the old connection, so a mid-transaction loss is reported
      after one attempt
    - **Statement errors are not connection errors:** A syntax error or a
      missing table propagates unchanged, first time
    - **Failures always clear transaction state:** After any exception the
      caller must not assume a transaction is still open

Architecture:
    ::

        run_query(sql, params, options)
          │  attempt = 1, force_reconnect = False
          ▼
        ┌──────────────────────────────────────────────────────────┐
        │ acquire live connection                                   │
        │   force_reconnect ─▶ connector() + ERRMODE=EXCEPTION      │
        │   else            ─▶ reuse, connector() only if missing   │
        │ prepare(sql, options).execute(params)                     │
        └──────────────────────────────────────────────────────────┘
          │ ok ─▶ return statement
          │ error
          ▼
        detector(error)
          OTHER ────────────────▶ clear txn flag, re-raise unchanged
          CONNECTION_LOST
            ├─ txn active ──────▶ terminal
            ├─ attempts left ───▶ force_reconnect, attempt += 1, loop
            └─ budget spent ────▶ terminal

        terminal: ConnectionFailure(cause, attempt, sql, params)
                  ─▶ log ─▶ on_failure(failure) ─▶ clear txn flag ─▶ raise

Examples:
    >>> from resilient_db import RetryingConnection, SQLiteConnection
    >>> live = SQLiteConnection(":memory:").connect()
    >>> db = RetryingConnection(lambda: live)
    >>> db.run_query("SELECT 1 AS one").fetch()
    {'one': 1}

    Reporting terminal failures:

    >>> db = RetryingConnection(connector, on_failure=alerts.send, max_attempts=5)

Guardrails:
    ❌ DON'T: Share one RetryingConnection between threads
    ✅ DO: One instance per worker or per pool slot

    ❌ DON'T: Call ``query()``; it exists only for interface compatibility
    ✅ DO: Use ``run_query()``

Tags:
    retry-logic, reconnect, transactions, resilience, connection

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, NoReturn

from resilient_db.detection import Classifier, FailureKind, default_detector
from resilient_db.errors import (
    ConnectionFailure,
    ErrorContext,
    InvalidConfigError,
    NotificationError,
    Parameters,
    UnsupportedOperationError,
)
from resilient_db.logging import get_logger
from resilient_db.protocols import DriverConnection, DriverStatement
from resilient_db.types import Attribute, ErrorMode, ParamType

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

Connector = Callable[[], DriverConnection]
FailureCallback = Callable[[ConnectionFailure], Any]


class RetryingConnection:
    """
    A ``DriverConnection`` that reconnects and retries on connection loss.

    Args:
        connector: Zero-argument factory returning a new live connection.
            Called on first use and on every forced reconnect.
        on_failure: Optional callback invoked once with each terminal
            :class:`ConnectionFailure`, before it is raised.
        max_attempts: Attempts per ``run_query`` call (default 3).
        detector: Classifier deciding whether a failure is a lost
            connection (default :data:`default_detector`).
    """

    def __init__(
        self,
        connector: Connector,
        on_failure: FailureCallback | None = None,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        detector: Classifier | None = None,
    ):
        self._connector = connector
        self._on_failure = on_failure
        self._detector: Classifier = detector or default_detector
        self._live: DriverConnection | None = None
        self._max_attempts = DEFAULT_MAX_ATTEMPTS
        self._current_attempt = 1
        self._transaction_active = False
        self.set_max_attempts(max_attempts)

    # ── Retry policy ─────────────────────────────────────────────

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def current_attempt(self) -> int:
        """Attempt number reached by the most recent ``run_query`` call."""
        return self._current_attempt

    def set_max_attempts(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidConfigError(
                "max_attempts", value, f"max_attempts must be a positive integer, got {value!r}"
            )
        self._max_attempts = value

    # ── Live connection management ───────────────────────────────

    def _reconnect(self) -> DriverConnection:
        self._live = None
        logger.debug("reconnecting", attempt=self._current_attempt)
        live = self._connector()
        live.set_attribute(Attribute.ERRMODE, ErrorMode.EXCEPTION)
        self._live = live
        return live

    def _live_connection(self) -> DriverConnection:
        if self._live is None:
            return self._reconnect()
        return self._live

    def _connect_and_perform(
        self,
        sql: str,
        parameters: Parameters | None,
        options: Mapping[str, Any] | None,
        force_reconnect: bool,
    ) -> DriverStatement:
        live = self._reconnect() if force_reconnect else self._live_connection()
        statement = live.prepare(sql, options)
        statement.execute(parameters)
        return statement

    # ── Queries ──────────────────────────────────────────────────

    def run_query(
        self,
        sql: str,
        parameters: Parameters | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> DriverStatement:
        """
        Prepare and execute ``sql``, reconnecting and retrying on connection loss.

        Returns the executed statement. Raises the original exception for
        failures that are not connection-related, and
        :class:`ConnectionFailure` when retries are exhausted or refused
        because a transaction is active.
        """
        self._current_attempt = 1
        force_reconnect = False

        while True:
            try:
                return self._connect_and_perform(sql, parameters, options, force_reconnect)
            except Exception as exc:
                if self._detector(exc) is not FailureKind.CONNECTION_LOST:
                    self._transaction_active = False
                    raise

                last_error = exc
                if self._transaction_active:
                    logger.warning(
                        "retry_blocked_by_transaction",
                        attempt=self._current_attempt,
                        error=str(exc),
                    )
                    break
                if self._current_attempt >= self._max_attempts:
                    break

                logger.warning(
                    "connection_lost_retrying",
                    attempt=self._current_attempt,
                    max_attempts=self._max_attempts,
                    error=str(exc),
                )
                force_reconnect = True
                self._current_attempt += 1

        self._raise_failure(last_error, sql, parameters)

    def _raise_failure(
        self,
        cause: BaseException,
        sql: str,
        parameters: Parameters | None,
    ) -> NoReturn:
        failure = ConnectionFailure(
            cause,
            self._current_attempt,
            sql,
            parameters,
            context=ErrorContext(operation="run_query"),
        )
        logger.error("connection_failure", **failure.to_dict())

        try:
            if self._on_failure is not None:
                try:
                    self._on_failure(failure)
                except Exception as callback_error:
                    logger.error(
                        "failure_callback_failed",
                        error=str(callback_error),
                        original=failure.message,
                    )
                    raise NotificationError(failure, callback_error) from callback_error
        finally:
            self._transaction_active = False

        raise failure

    def query(self, *args: Any, **kwargs: Any) -> DriverStatement:
        """Not supported; use :meth:`run_query`."""
        self._transaction_active = False
        raise UnsupportedOperationError("query() is not supported, use run_query() instead")

    # ── Transactions ─────────────────────────────────────────────

    def begin_transaction(self) -> bool:
        try:
            value = self._live_connection().begin_transaction()
        except Exception:
            self._transaction_active = False
            raise
        self._transaction_active = True
        return value

    def commit(self) -> bool:
        try:
            return self._live_connection().commit()
        finally:
            self._transaction_active = False

    def rollback(self) -> bool:
        try:
            return self._live_connection().rollback()
        finally:
            self._transaction_active = False

    def in_transaction(self) -> bool:
        return self._transaction_active

    @contextmanager
    def transaction(self) -> Iterator[RetryingConnection]:
        """
        Run a block inside a transaction.

        Usage:
            with db.transaction():
                db.run_query("UPDATE accounts SET balance = balance - ? WHERE id = ?", (10, 1))
                db.run_query("UPDATE accounts SET balance = balance + ? WHERE id = ?", (10, 2))
        """
        self.begin_transaction()
        try:
            yield self
        except (ConnectionFailure, NotificationError):
            # The session, and the transaction with it, is already gone
            raise
        except BaseException as exc:
            self._rollback_quietly(exc)
            raise
        self.commit()

    def _rollback_quietly(self, original: BaseException) -> None:
        """Roll back after ``original`` was raised, never replacing it."""
        try:
            if self._live is not None and self._live.in_transaction():
                self.rollback()
        except Exception as rollback_error:
            logger.error(
                "rollback_failed",
                error=str(rollback_error),
                original=str(original),
            )
        finally:
            self._transaction_active = False

    # ── Pass-through ─────────────────────────────────────────────

    def prepare(self, sql: str, options: Mapping[str, Any] | None = None) -> DriverStatement:
        return self._live_connection().prepare(sql, options)

    def exec(self, sql: str) -> int | bool:
        return self._live_connection().exec(sql)

    def get_attribute(self, attribute: Attribute) -> Any:
        return self._live_connection().get_attribute(attribute)

    def set_attribute(self, attribute: Attribute, value: Any) -> bool:
        return self._live_connection().set_attribute(attribute, value)

    def quote(self, value: Any, param_type: ParamType = ParamType.STR) -> str:
        return self._live_connection().quote(value, param_type)

    def last_insert_id(self, name: str | None = None) -> str:
        return self._live_connection().last_insert_id(name)

    def error_code(self) -> str | None:
        return self._live_connection().error_code()

    def error_info(self) -> tuple[str | None, int | None, str | None]:
        return self._live_connection().error_info()

    # ── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        """Close and drop the live connection; the next call reconnects."""
        live, self._live = self._live, None
        self._transaction_active = False
        if live is not None:
            live.close()

    def __enter__(self) -> RetryingConnection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "connected" if self._live is not None else "disconnected"
        return (
            f"{self.__class__.__name__}({state}, max_attempts={self._max_attempts}, "
            f"in_transaction={self._transaction_active})"
        )


__all__ = [
    "RetryingConnection",
    "Connector",
    "FailureCallback",
    "DEFAULT_MAX_ATTEMPTS",
]
