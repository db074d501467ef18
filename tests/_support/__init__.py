"""
Test support utilities for resilient-db tests.

Helpers that don't fit as pytest fixtures but are shared across test files:
a migrated users database and a fault-injecting SQLite driver.
"""

from __future__ import annotations

from collections.abc import Callable

from resilient_db.drivers import SQLiteConnection

USERS = ("one@example.com", "two@example.com")


def migrate(conn: SQLiteConnection) -> SQLiteConnection:
    """Create the ``users`` table on ``conn`` and seed the two default users."""
    conn.exec(
        "CREATE TABLE IF NOT EXISTS users ("
        " id INTEGER PRIMARY KEY AUTOINCREMENT,"
        " email TEXT NOT NULL UNIQUE)"
    )
    # exec() bypasses prepare(), which fault-injecting subclasses override
    for email in USERS:
        conn.exec(f"INSERT INTO users (email) VALUES ({conn.quote(email)})")
    return conn


def migrated_connector(path: str = ":memory:") -> Callable[[], SQLiteConnection]:
    """
    Connector whose every call opens a new migrated SQLite connection.

    Returns:
        Zero-argument callable with a ``calls`` counter attribute.
    """

    def connector() -> SQLiteConnection:
        connector.calls += 1
        conn = SQLiteConnection(path).connect()
        if path == ":memory:" or connector.calls == 1:
            migrate(conn)
        return conn

    connector.calls = 0
    return connector


__all__ = ["USERS", "migrate", "migrated_connector"]
