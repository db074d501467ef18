"""
Shared pytest fixtures and configuration for resilient-db tests.

This module provides:
- Settings cache and environment isolation
- Migrated SQLite connectors and retrying connections
- Fault-injecting connections for connection-loss scenarios
"""

from __future__ import annotations

import os
from collections.abc import Generator

import pytest

from resilient_db import RetryingConnection
from resilient_db.settings import clear_settings_cache
from tests._support import migrated_connector
from tests._support.fault_injection import FaultInjectingConnection


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Generator[None, None, None]:
    """Drop RESILIENT_DB_* variables and cached settings around every test."""
    for key in list(os.environ):
        if key.startswith("RESILIENT_DB_"):
            monkeypatch.delenv(key)
    # Keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def connector():
    """Connector that opens a freshly migrated in-memory database per call."""
    return migrated_connector()


@pytest.fixture
def db(connector) -> Generator[RetryingConnection, None, None]:
    """RetryingConnection over a migrated in-memory database."""
    conn = RetryingConnection(connector)
    yield conn
    conn.close()


@pytest.fixture
def faulty() -> Generator[FaultInjectingConnection, None, None]:
    """Fault-injecting SQLite connection, no faults installed."""
    conn = FaultInjectingConnection()
    yield conn
    conn.close()
