"""SQL dialect fragments needed by the live-connection drivers.

Each driver delegates the backend-specific bits (string quoting,
transaction statements, last-insert-id lookup) to a ``Dialect`` so the
shared DB-API plumbing in ``drivers.base`` stays backend-neutral.

Architecture::

    ┌──────────┐ ┌──────────────┐ ┌─────────────────────┐
    │ SQLite   │ │ PostgreSQL   │ │ MySQL               │
    │ ?        │ │ %s           │ │ %s                  │
    │ BEGIN    │ │ BEGIN        │ │ START TRANSACTION   │
    │ rowid()  │ │ lastval()    │ │ LAST_INSERT_ID()    │
    └──────────┘ └──────────────┘ └─────────────────────┘

Examples:
    >>> from resilient_db.dialect import SQLiteDialect
    >>> SQLiteDialect().quote_string("Some O'Thing")
    "'Some O''Thing'"

Tags:
    dialect, sql, portability, database
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment valid for the target database.
    """

    @property
    def name(self) -> str: ...

    def placeholder(self, index: int) -> str: ...

    def quote_string(self, value: str) -> str: ...

    def boolean_literal(self, value: bool) -> str: ...

    def begin_sql(self) -> str: ...

    def commit_sql(self) -> str: ...

    def rollback_sql(self) -> str: ...

    def last_insert_id_sql(self, name: str | None = None) -> tuple[str, tuple]: ...


class _StandardDialect:
    """ANSI behaviour shared by the concrete dialects."""

    def quote_string(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def boolean_literal(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"

    def begin_sql(self) -> str:
        return "BEGIN"

    def commit_sql(self) -> str:
        return "COMMIT"

    def rollback_sql(self) -> str:
        return "ROLLBACK"


class SQLiteDialect(_StandardDialect):
    """SQLite dialect."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def boolean_literal(self, value: bool) -> str:
        return "1" if value else "0"

    def last_insert_id_sql(self, name: str | None = None) -> tuple[str, tuple]:  # noqa: ARG002
        return "SELECT last_insert_rowid()", ()


class PostgreSQLDialect(_StandardDialect):
    """PostgreSQL dialect (psycopg2 ``format`` paramstyle)."""

    @property
    def name(self) -> str:
        return "pgsql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def last_insert_id_sql(self, name: str | None = None) -> tuple[str, tuple]:
        if name:
            return "SELECT currval(%s)", (name,)
        return "SELECT lastval()", ()


class MySQLDialect(_StandardDialect):
    """MySQL / MariaDB dialect."""

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def quote_string(self, value: str) -> str:
        # Backslash is an escape character unless NO_BACKSLASH_ESCAPES is set
        escaped = value.replace("\\", "\\\\").replace("'", "''")
        return f"'{escaped}'"

    def begin_sql(self) -> str:
        return "START TRANSACTION"

    def last_insert_id_sql(self, name: str | None = None) -> tuple[str, tuple]:  # noqa: ARG002
        return "SELECT LAST_INSERT_ID()", ()


_DIALECTS: dict[str, type] = {
    "sqlite": SQLiteDialect,
    "postgresql": PostgreSQLDialect,
    "postgres": PostgreSQLDialect,
    "pgsql": PostgreSQLDialect,
    "mysql": MySQLDialect,
    "mariadb": MySQLDialect,
}


def get_dialect(name: str) -> Dialect:
    """Return the dialect for a backend name (case-insensitive)."""
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown dialect: {name!r}") from None


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "get_dialect",
]
