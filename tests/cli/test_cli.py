"""Tests for the resilient-db CLI — query, ping and config commands."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from resilient_db import RetryingConnection, __version__
from resilient_db.cli import app
from resilient_db.drivers import SQLiteConnection
from tests._support import migrate

runner = CliRunner()


@pytest.fixture
def database(tmp_path) -> str:
    path = str(tmp_path / "cli.db")
    migrate(SQLiteConnection(path).connect()).close()
    return path


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"resilient-db {__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "query" in result.output
        assert "ping" in result.output


class TestQuery:
    def test_rows_as_json(self, database):
        result = runner.invoke(app, ["query", "select email from users order by id", "-d", database, "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [
            {"email": "one@example.com"},
            {"email": "two@example.com"},
        ]

    def test_rows_as_table(self, database):
        result = runner.invoke(app, ["query", "select id, email from users", "-d", database])
        assert result.exit_code == 0, result.output
        assert "two@example.com" in result.output

    def test_parameters(self, database):
        result = runner.invoke(
            app, ["query", "select email from users where id = ?", "-p", "2", "-d", database, "--json"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [{"email": "two@example.com"}]

    def test_rows_affected(self, database):
        result = runner.invoke(
            app,
            ["query", "insert into users (email) values ('three@example.com')", "-d", database, "--json"],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"rows_affected": 1}

    def test_statement_error(self, database):
        result = runner.invoke(app, ["query", "select * from notatable", "-d", database])
        assert result.exit_code == 1
        assert "OperationalError" in result.output
        assert "no such table" in result.output

    def test_connection_failure(self, faulty):
        faulty.throw_on_query("server has gone away")
        db = RetryingConnection(faulty.connect, max_attempts=2)
        with patch("resilient_db.factory.create_connection", return_value=db) as factory:
            result = runner.invoke(app, ["query", "select 1", "-n", "2"])
        factory.assert_called_once_with(None, max_attempts=2)
        assert result.exit_code == 1
        assert "Connection failure" in result.output
        assert "after 2 attempt(s)" in result.output

    def test_invalid_max_attempts(self, database):
        result = runner.invoke(app, ["query", "select 1", "-d", database, "-n", "0"])
        assert result.exit_code != 0


class TestPing:
    def test_ping_json(self, database):
        result = runner.invoke(app, ["ping", "-d", database, "--json"])
        assert result.exit_code == 0, result.output
        info = json.loads(result.output)
        assert info["status"] == "ok"
        assert info["driver"] == "sqlite"
        assert info["attempts"] == 1

    def test_ping_memory(self):
        result = runner.invoke(app, ["ping"])
        assert result.exit_code == 0, result.output
        assert "ok" in result.output


class TestConfig:
    def test_config_json(self, monkeypatch):
        monkeypatch.setenv("RESILIENT_DB_MAX_ATTEMPTS", "4")
        result = runner.invoke(app, ["config", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["max_attempts"] == 4
        assert data["database_url"] == "memory"

    def test_config_table(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "max_attempts" in result.output

    def test_log_level_override(self):
        result = runner.invoke(app, ["--log-level", "DEBUG", "config", "--json"])
        assert result.exit_code == 0
