"""SQLite live connection."""

from __future__ import annotations

import sqlite3
from typing import Any

from resilient_db.errors import DatabaseConnectionError

from .base import DBAPIConnection
from .types import DatabaseConfig, DatabaseType


class SQLiteConnection(DBAPIConnection):
    """
    SQLite live connection.

    Uses the built-in sqlite3 module with ``isolation_level=None`` so the
    module never opens transactions behind our back. Suitable for:
    - Development and testing
    - Single-process applications
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            connect_timeout=timeout,
            options=kwargs,
        )
        super().__init__(config)

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    def _open(self) -> Any:
        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            conn = sqlite3.connect(
                path,
                timeout=self._config.connect_timeout,
                isolation_level=None,
                check_same_thread=False,
                uri=uri,
            )
            conn.execute("PRAGMA foreign_keys = ON")
            if self._config.readonly:
                conn.execute("PRAGMA query_only = ON")
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e
        return conn

    def in_transaction(self) -> bool:
        # sqlite3 tracks BEGIN issued through exec() as well
        return self._raw is not None and self._raw.in_transaction

    def _server_version(self) -> str:
        return sqlite3.sqlite_version

    def _client_version(self) -> str:
        return sqlite3.sqlite_version

    def _apply_timeout(self, seconds: float) -> None:
        self.raw.execute(f"PRAGMA busy_timeout = {int(seconds * 1000)}")


__all__ = [
    "SQLiteConnection",
]
