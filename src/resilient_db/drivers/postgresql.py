"""PostgreSQL live connection.

Uses ``psycopg2``. Install the driver::

    pip install psycopg2-binary
    # or:  pip install resilient-db[postgresql]

The driver is import-guarded: a missing ``psycopg2`` raises
:class:`~resilient_db.errors.MissingDriverError` at ``connect()`` time.
"""

from __future__ import annotations

from typing import Any

from resilient_db.errors import DatabaseConnectionError, MissingDriverError

from .base import DBAPIConnection
from .types import DatabaseConfig, DatabaseType


def _psycopg2() -> Any:
    try:
        import psycopg2
    except ImportError:
        raise MissingDriverError("PostgreSQL", "psycopg2-binary") from None
    return psycopg2


class PostgreSQLConnection(DBAPIConnection):
    """PostgreSQL live connection (psycopg2, autocommit session)."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        connect_timeout: float = 10.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            connect_timeout=connect_timeout,
            options=kwargs,
        )
        super().__init__(config)

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (_psycopg2().Error,)

    def _open(self) -> Any:
        psycopg2 = _psycopg2()
        try:
            conn = psycopg2.connect(
                host=self._config.host,
                port=self._config.port,
                dbname=self._config.database,
                user=self._config.username,
                password=self._config.password,
                connect_timeout=int(self._config.connect_timeout),
                **self._config.options,
            )
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ) from e
        conn.autocommit = True
        return conn

    def _server_version(self) -> str:
        return str(self.raw.server_version)

    def _client_version(self) -> str:
        return _psycopg2().__version__

    def _apply_timeout(self, seconds: float) -> None:
        cursor = self.raw.cursor()
        cursor.execute("SET statement_timeout = %s", (int(seconds * 1000),))
        cursor.close()


__all__ = [
    "PostgreSQLConnection",
]
