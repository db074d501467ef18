"""Tests for the PostgreSQL and MySQL live connections (drivers mocked)."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from resilient_db.detection import default_detector
from resilient_db.drivers import MySQLConnection, PostgreSQLConnection
from resilient_db.errors import DatabaseConnectionError, MissingDriverError
from resilient_db.types import Attribute, ErrorMode


class _DriverError(Exception):
    pass


@pytest.fixture
def psycopg2():
    fake = MagicMock()
    fake.Error = _DriverError
    fake.__version__ = "2.9.9 (dt dec pq3 ext lo64)"
    fake.connect.return_value.cursor.return_value.rowcount = 0
    with patch("resilient_db.drivers.postgresql._psycopg2", return_value=fake):
        yield fake


@pytest.fixture
def mysql_connector():
    fake = MagicMock()
    fake.Error = _DriverError
    fake.__version__ = "9.0.0"
    fake.connect.return_value.cursor.return_value.rowcount = 0
    with patch("resilient_db.drivers.mysql._connector", return_value=fake):
        yield fake


class TestPostgreSQLConnection:
    def test_connect_arguments(self, psycopg2):
        PostgreSQLConnection(
            host="db", port=5433, database="app", username="u", password="p", connect_timeout=5
        ).connect()
        psycopg2.connect.assert_called_once_with(
            host="db",
            port=5433,
            dbname="app",
            user="u",
            password="p",
            connect_timeout=5,
        )

    def test_autocommit_enabled(self, psycopg2):
        PostgreSQLConnection().connect()
        assert psycopg2.connect.return_value.autocommit is True

    def test_connect_failure(self, psycopg2):
        psycopg2.connect.side_effect = _DriverError("could not connect to server: Connection refused")
        with pytest.raises(DatabaseConnectionError) as exc_info:
            PostgreSQLConnection().connect()
        assert default_detector.is_lost_connection(exc_info.value)

    def test_statement_uses_dict_rows(self, psycopg2):
        cursor = psycopg2.connect.return_value.cursor.return_value
        cursor.description = [("id",), ("email",)]
        cursor.fetchall.return_value = [(1, "one@example.com")]

        conn = PostgreSQLConnection().connect()
        stmt = conn.prepare("SELECT id, email FROM users WHERE id = %s")
        assert stmt.execute((1,)) is True
        cursor.execute.assert_called_with("SELECT id, email FROM users WHERE id = %s", (1,))
        assert stmt.fetch_all() == [{"id": 1, "email": "one@example.com"}]

    def test_statement_error_in_exception_mode(self, psycopg2):
        cursor = psycopg2.connect.return_value.cursor.return_value
        cursor.execute.side_effect = _DriverError("server closed the connection unexpectedly")
        conn = PostgreSQLConnection().connect()
        with pytest.raises(_DriverError):
            conn.prepare("SELECT 1").execute()

    def test_statement_error_in_silent_mode(self, psycopg2):
        cursor = psycopg2.connect.return_value.cursor.return_value
        error = _DriverError("relation does not exist")
        error.pgcode = "42P01"
        cursor.execute.side_effect = error
        conn = PostgreSQLConnection().connect()
        conn.set_attribute(Attribute.ERRMODE, ErrorMode.SILENT)
        assert conn.prepare("SELECT * FROM nope").execute() is False
        assert conn.error_code() == "42P01"

    def test_begin_issues_sql(self, psycopg2):
        cursor = psycopg2.connect.return_value.cursor.return_value
        conn = PostgreSQLConnection().connect()
        assert conn.begin_transaction() is True
        cursor.execute.assert_called_with("BEGIN")
        assert conn.in_transaction() is True
        conn.rollback()
        cursor.execute.assert_called_with("ROLLBACK")

    def test_attributes(self, psycopg2):
        psycopg2.connect.return_value.server_version = 160002
        conn = PostgreSQLConnection().connect()
        assert conn.get_attribute(Attribute.DRIVER_NAME) == "pgsql"
        assert conn.get_attribute(Attribute.SERVER_VERSION) == "160002"
        assert conn.get_attribute(Attribute.CLIENT_VERSION).startswith("2.9.9")

    def test_timeout_sets_statement_timeout(self, psycopg2):
        cursor = psycopg2.connect.return_value.cursor.return_value
        conn = PostgreSQLConnection().connect()
        conn.set_attribute(Attribute.TIMEOUT, 2)
        cursor.execute.assert_called_with("SET statement_timeout = %s", (2000,))

    def test_last_insert_id_with_sequence(self, psycopg2):
        cursor = psycopg2.connect.return_value.cursor.return_value
        cursor.fetchone.return_value = (42,)
        conn = PostgreSQLConnection().connect()
        assert conn.last_insert_id("users_id_seq") == "42"
        cursor.execute.assert_called_with("SELECT currval(%s)", ("users_id_seq",))

    def test_missing_driver(self):
        with patch.dict(sys.modules, {"psycopg2": None}):
            with pytest.raises(MissingDriverError, match="psycopg2-binary"):
                PostgreSQLConnection().connect()


class TestMySQLConnection:
    def test_connect_arguments(self, mysql_connector):
        MySQLConnection(host="db", database="app", username="u", password="p").connect()
        mysql_connector.connect.assert_called_once_with(
            host="db",
            port=3306,
            database="app",
            user="u",
            password="p",
            connection_timeout=10,
            autocommit=True,
            charset="utf8mb4",
        )

    def test_buffered_cursor(self, mysql_connector):
        conn = MySQLConnection().connect()
        conn.exec("DELETE FROM users")
        mysql_connector.connect.return_value.cursor.assert_called_with(buffered=True)

    def test_begin_uses_start_transaction(self, mysql_connector):
        cursor = mysql_connector.connect.return_value.cursor.return_value
        conn = MySQLConnection().connect()
        conn.begin_transaction()
        cursor.execute.assert_called_with("START TRANSACTION")
        conn.commit()
        cursor.execute.assert_called_with("COMMIT")
        assert conn.in_transaction() is False

    def test_gone_away_is_lost_connection(self, mysql_connector):
        error = _DriverError("MySQL server has gone away")
        error.errno = 2006
        cursor = mysql_connector.connect.return_value.cursor.return_value
        cursor.execute.side_effect = error
        conn = MySQLConnection().connect()
        with pytest.raises(_DriverError) as exc_info:
            conn.prepare("SELECT 1").execute()
        assert default_detector.is_lost_connection(exc_info.value)
        assert conn.error_info()[1] == 2006

    def test_connect_failure(self, mysql_connector):
        mysql_connector.connect.side_effect = _DriverError("Can't connect to MySQL server")
        with pytest.raises(DatabaseConnectionError):
            MySQLConnection().connect()

    def test_server_version(self, mysql_connector):
        mysql_connector.connect.return_value.get_server_info.return_value = "8.0.36"
        conn = MySQLConnection().connect()
        assert conn.get_attribute(Attribute.SERVER_VERSION) == "8.0.36"
        assert conn.get_attribute(Attribute.DRIVER_NAME) == "mysql"

    def test_missing_driver(self):
        with patch.dict(sys.modules, {"mysql": None, "mysql.connector": None}):
            with pytest.raises(MissingDriverError, match="mysql-connector-python"):
                MySQLConnection().connect()
