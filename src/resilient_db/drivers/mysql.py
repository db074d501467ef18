"""MySQL live connection.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **format** (``%s``) placeholder style.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install resilient-db[mysql]

The driver is import-guarded: a missing ``mysql.connector`` raises
:class:`~resilient_db.errors.MissingDriverError` at ``connect()`` time.
"""

from __future__ import annotations

from typing import Any

from resilient_db.errors import DatabaseConnectionError, MissingDriverError

from .base import DBAPIConnection
from .types import DatabaseConfig, DatabaseType


def _connector() -> Any:
    try:
        import mysql.connector
    except ImportError:
        raise MissingDriverError("MySQL", "mysql-connector-python") from None
    return mysql.connector


class MySQLConnection(DBAPIConnection):
    """MySQL / MariaDB live connection (autocommit session, buffered cursors)."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        charset: str = "utf8mb4",
        connect_timeout: float = 10.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.MYSQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            connect_timeout=connect_timeout,
            options={**kwargs, "charset": charset},
        )
        super().__init__(config)

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (_connector().Error,)

    def _open(self) -> Any:
        connector = _connector()
        try:
            conn = connector.connect(
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                connection_timeout=int(self._config.connect_timeout),
                autocommit=True,
                **self._config.options,
            )
        except connector.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ) from e
        return conn

    def _new_cursor(self) -> Any:
        # Unbuffered cursors block the next statement until fully read
        return self.raw.cursor(buffered=True)

    def _server_version(self) -> str:
        return self.raw.get_server_info()

    def _client_version(self) -> str:
        return _connector().__version__

    def _apply_timeout(self, seconds: float) -> None:
        cursor = self._new_cursor()
        cursor.execute("SET SESSION max_execution_time = %s", (int(seconds * 1000),))
        cursor.close()


__all__ = [
    "MySQLConnection",
]
