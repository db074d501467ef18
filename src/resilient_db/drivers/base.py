"""Live-connection base class over DB-API 2 drivers.

Manifesto:
    The retry wrapper needs one shape of live connection no matter which
    driver sits underneath. ``DBAPIConnection`` puts the raw driver
    connection in autocommit mode and drives transactions explicitly, so
    "is a transaction open" is always a known fact rather than a driver
    implementation detail.

Features:
    - Abstract ``_open()``, version and timeout hooks per backend
    - Error modes: raise, log-and-return-False, or record silently
    - Last error readable through ``error_code()`` / ``error_info()``
    - Explicit ``BEGIN`` / ``COMMIT`` / ``ROLLBACK`` via the dialect
    - Cursor-backed statements with dict or tuple rows

Tags:
    database, abstract-base, adapter-pattern, dbapi

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from resilient_db.dialect import Dialect, get_dialect
from resilient_db.errors import TransactionError
from resilient_db.logging import get_logger
from resilient_db.types import (
    SQLSTATE_GENERAL_ERROR,
    SQLSTATE_OK,
    Attribute,
    ErrorMode,
    FetchMode,
    ParamType,
)

from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)

ErrorInfo = tuple[str | None, int | None, str | None]
_NO_ERROR: ErrorInfo = (SQLSTATE_OK, None, None)


def error_info_for(exc: BaseException) -> ErrorInfo:
    """Build ``(sqlstate, driver_code, message)`` from a driver exception."""
    sqlstate = getattr(exc, "pgcode", None) or getattr(exc, "sqlstate", None)
    code = getattr(exc, "errno", None)
    if not isinstance(code, int):
        code = getattr(exc, "sqlite_errorcode", None)
    return (sqlstate or SQLSTATE_GENERAL_ERROR, code, str(exc))


class DBAPIStatement:
    """A statement prepared on a :class:`DBAPIConnection`."""

    def __init__(
        self,
        connection: DBAPIConnection,
        sql: str,
        options: Mapping[str, Any] | None = None,
    ):
        options = options or {}
        self._connection = connection
        self.sql = sql
        self.fetch_mode = FetchMode(options.get("fetch_mode", FetchMode.DICT))
        self._cursor: Any = None
        self._columns: list[str] = []

    def execute(self, params: Sequence[Any] | Mapping[str, Any] | None = None) -> bool:
        """Bind ``params`` and execute; ``False`` on failure outside EXCEPTION mode."""
        conn = self._connection
        try:
            self._cursor = conn._cursor_execute(self.sql, params)
        except conn.driver_errors as exc:
            return conn._fail(exc)
        conn._clear_error()
        self._columns = [desc[0] for desc in self._cursor.description or ()]
        return True

    @property
    def column_names(self) -> list[str]:
        return list(self._columns)

    @property
    def row_count(self) -> int:
        if self._cursor is None:
            return 0
        return max(self._cursor.rowcount, 0)

    def _shape(self, row: Sequence[Any]) -> Any:
        if self.fetch_mode is FetchMode.TUPLE:
            return tuple(row)
        return dict(zip(self._columns, row, strict=False))

    def fetch(self) -> Any:
        """Next row, or ``None`` when exhausted (or nothing was executed)."""
        if self._cursor is None or self._cursor.description is None:
            return None
        row = self._cursor.fetchone()
        return None if row is None else self._shape(row)

    def fetch_all(self) -> list[Any]:
        if self._cursor is None or self._cursor.description is None:
            return []
        return [self._shape(row) for row in self._cursor.fetchall()]

    def fetch_column(self, index: int = 0) -> Any:
        if self._cursor is None or self._cursor.description is None:
            return None
        row = self._cursor.fetchone()
        return None if row is None else row[index]

    def close(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None

    def __iter__(self) -> Iterator[Any]:
        while (row := self.fetch()) is not None:
            yield row

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.sql!r})"


class DBAPIConnection(ABC):
    """
    Abstract base class for live driver connections.

    Subclasses open the raw DB-API connection in autocommit mode and expose
    the driver's exception base class; everything else is shared.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._dialect: Dialect = get_dialect(config.db_type.value)
        self._raw: Any = None
        self._error_mode = ErrorMode.EXCEPTION
        self._timeout = config.connect_timeout
        self._in_transaction = False
        self._last_error: ErrorInfo = _NO_ERROR

    # ── Backend hooks ────────────────────────────────────────────

    @abstractmethod
    def _open(self) -> Any:
        """Open and return the raw DB-API connection (autocommit on)."""
        ...

    @property
    @abstractmethod
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        """Driver exception classes handled according to the error mode."""
        ...

    @abstractmethod
    def _server_version(self) -> str: ...

    @abstractmethod
    def _client_version(self) -> str: ...

    @abstractmethod
    def _apply_timeout(self, seconds: float) -> None: ...

    def _new_cursor(self) -> Any:
        return self.raw.cursor()

    # ── Lifecycle ────────────────────────────────────────────────

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        return self._config.db_type

    @property
    def is_connected(self) -> bool:
        return self._raw is not None

    @property
    def raw(self) -> Any:
        """The underlying DB-API connection, connecting on first use."""
        if self._raw is None:
            self.connect()
        return self._raw

    def connect(self) -> DBAPIConnection:
        """Open the connection; returns ``self`` so it can end a connector."""
        self._raw = self._open()
        self._in_transaction = False
        self._last_error = _NO_ERROR
        return self

    def close(self) -> None:
        if self._raw is not None:
            self._raw.close()
            self._raw = None
            self._in_transaction = False

    def __enter__(self) -> DBAPIConnection:
        if self._raw is None:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── Error bookkeeping ────────────────────────────────────────

    def _clear_error(self) -> None:
        self._last_error = _NO_ERROR

    def _fail(self, exc: BaseException) -> bool:
        """Record ``exc`` and apply the error mode; must be called from ``except``."""
        self._last_error = error_info_for(exc)
        if self._error_mode is ErrorMode.EXCEPTION:
            raise exc
        if self._error_mode is ErrorMode.WARNING:
            logger.warning(
                "statement_failed",
                backend=self.db_type.value,
                sqlstate=self._last_error[0],
                error=self._last_error[2],
            )
        return False

    def error_code(self) -> str | None:
        return self._last_error[0]

    def error_info(self) -> ErrorInfo:
        return self._last_error

    # ── Statements ───────────────────────────────────────────────

    def _cursor_execute(self, sql: str, params: Sequence[Any] | Mapping[str, Any] | None) -> Any:
        cursor = self._new_cursor()
        if params is None:
            cursor.execute(sql)
        else:
            cursor.execute(sql, params)
        return cursor

    def prepare(self, sql: str, options: Mapping[str, Any] | None = None) -> DBAPIStatement:
        if self._raw is None:
            self.connect()
        return DBAPIStatement(self, sql, options)

    def exec(self, sql: str) -> int | bool:
        """Execute ``sql`` and return the number of affected rows."""
        try:
            cursor = self._cursor_execute(sql, None)
        except self.driver_errors as exc:
            return self._fail(exc)
        self._clear_error()
        count = max(cursor.rowcount, 0)
        cursor.close()
        return count

    # ── Transactions ─────────────────────────────────────────────

    def _control(self, sql: str) -> bool:
        try:
            self._cursor_execute(sql, None).close()
        except self.driver_errors as exc:
            return self._fail(exc)
        self._clear_error()
        return True

    def begin_transaction(self) -> bool:
        if self.in_transaction():
            raise TransactionError("There is already an active transaction")
        ok = self._control(self._dialect.begin_sql())
        self._in_transaction = ok
        return ok

    def commit(self) -> bool:
        if not self.in_transaction():
            raise TransactionError("There is no active transaction")
        try:
            return self._control(self._dialect.commit_sql())
        finally:
            self._in_transaction = False

    def rollback(self) -> bool:
        if not self.in_transaction():
            raise TransactionError("There is no active transaction")
        try:
            return self._control(self._dialect.rollback_sql())
        finally:
            self._in_transaction = False

    def in_transaction(self) -> bool:
        return self._in_transaction

    # ── Attributes ───────────────────────────────────────────────

    def get_attribute(self, attribute: Attribute | str) -> Any:
        attribute = Attribute(attribute)
        match attribute:
            case Attribute.DRIVER_NAME:
                return self._dialect.name
            case Attribute.ERRMODE:
                return self._error_mode
            case Attribute.TIMEOUT:
                return self._timeout
            case Attribute.AUTOCOMMIT:
                return not self.in_transaction()
            case Attribute.SERVER_VERSION:
                return self._server_version()
            case Attribute.CLIENT_VERSION:
                return self._client_version()

    def set_attribute(self, attribute: Attribute | str, value: Any) -> bool:
        """Set a writable attribute; read-only attributes return ``False``."""
        attribute = Attribute(attribute)
        if attribute is Attribute.ERRMODE:
            self._error_mode = ErrorMode(value)
            return True
        if attribute is Attribute.TIMEOUT:
            seconds = float(value)
            self._apply_timeout(seconds)
            self._timeout = seconds
            return True
        return False

    # ── Helpers ──────────────────────────────────────────────────

    def quote(self, value: Any, param_type: ParamType = ParamType.STR) -> str:
        if value is None or param_type is ParamType.NULL:
            return "NULL"
        if param_type is ParamType.INT:
            return str(int(value))
        if param_type is ParamType.BOOL:
            return self._dialect.boolean_literal(bool(value))
        return self._dialect.quote_string(str(value))

    def last_insert_id(self, name: str | None = None) -> str:
        sql, params = self._dialect.last_insert_id_sql(name)
        try:
            cursor = self._cursor_execute(sql, params or None)
        except self.driver_errors as exc:
            self._fail(exc)
            return ""
        self._clear_error()
        row = cursor.fetchone()
        cursor.close()
        if row is None or row[0] is None:
            return "0"
        return str(row[0])

    def __repr__(self) -> str:
        state = "connected" if self.is_connected else "disconnected"
        return f"{self.__class__.__name__}({self.db_type.value}, {state})"


__all__ = [
    "DBAPIConnection",
    "DBAPIStatement",
    "ErrorInfo",
    "error_info_for",
]
