"""
Canonical protocol definitions for resilient-db.

Manifesto:
    The retry wrapper never depends on a concrete driver class. It needs a
    small, explicit set of operations from a live connection, and it offers
    the same set back so callers can substitute it for the raw connection.
    Protocols give that contract without inheritance.

Architecture:
    ::

        DriverConnection (YOU ARE HERE)
        ├── implemented by drivers.DBAPIConnection  (sqlite3, psycopg2, mysql)
        └── implemented by connection.RetryingConnection  (drop-in wrapper)

        DriverStatement
        └── implemented by drivers.DBAPIStatement

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts, implementations go in drivers

Tags:
    protocol, connection, database, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from resilient_db.types import Attribute, ParamType


@runtime_checkable
class DriverStatement(Protocol):
    """A prepared statement bound to a live connection."""

    def execute(self, params: Sequence[Any] | Mapping[str, Any] | None = None) -> bool:
        """Bind ``params`` and execute. SYNC."""
        ...

    def fetch(self) -> Any:
        """Fetch the next row or ``None``."""
        ...

    def fetch_all(self) -> list[Any]:
        """Fetch all remaining rows."""
        ...

    @property
    def row_count(self) -> int:
        """Rows affected by the last execution."""
        ...

    def __iter__(self) -> Iterator[Any]: ...


@runtime_checkable
class DriverConnection(Protocol):
    """
    The live-connection interface the retry wrapper consumes and provides.

    Examples:
        >>> def count_users(conn: DriverConnection) -> int:
        ...     stmt = conn.prepare("SELECT count(*) AS n FROM users")
        ...     stmt.execute()
        ...     return stmt.fetch()["n"]
    """

    def prepare(self, sql: str, options: Mapping[str, Any] | None = None) -> DriverStatement: ...

    def exec(self, sql: str) -> int: ...

    def begin_transaction(self) -> bool: ...

    def commit(self) -> bool: ...

    def rollback(self) -> bool: ...

    def in_transaction(self) -> bool: ...

    def get_attribute(self, attribute: Attribute) -> Any: ...

    def set_attribute(self, attribute: Attribute, value: Any) -> bool: ...

    def quote(self, value: Any, param_type: ParamType = ParamType.STR) -> str: ...

    def last_insert_id(self, name: str | None = None) -> str: ...

    def error_code(self) -> str | None: ...

    def error_info(self) -> tuple[str | None, int | None, str | None]: ...

    def close(self) -> None: ...


__all__ = [
    "DriverConnection",
    "DriverStatement",
]
