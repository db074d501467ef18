"""Tests for resilient_db.drivers.registry — driver registry and factory."""

import pytest

from resilient_db.drivers import (
    DatabaseType,
    DriverRegistry,
    MySQLConnection,
    PostgreSQLConnection,
    SQLiteConnection,
    driver_registry,
    get_driver,
)
from resilient_db.errors import ConfigError


class TestDriverRegistry:
    def test_defaults_registered(self):
        assert DriverRegistry().list_drivers() == ["mariadb", "mysql", "postgres", "postgresql", "sqlite"]

    def test_create_sqlite(self):
        driver = DriverRegistry().create("sqlite", path=":memory:")
        assert isinstance(driver, SQLiteConnection)
        assert driver.is_connected is False

    def test_aliases(self):
        registry = DriverRegistry()
        assert isinstance(registry.create("postgres"), PostgreSQLConnection)
        assert isinstance(registry.create("MariaDB"), MySQLConnection)

    def test_unknown_driver(self):
        with pytest.raises(ConfigError, match="Unknown database driver: oracle"):
            DriverRegistry().create("oracle")

    def test_register_custom(self):
        class CustomConnection(SQLiteConnection):
            pass

        registry = DriverRegistry()
        registry.register("Custom", CustomConnection)
        assert isinstance(registry.create("custom"), CustomConnection)
        assert "custom" not in driver_registry.list_drivers()


class TestGetDriver:
    def test_by_enum(self):
        assert isinstance(get_driver(DatabaseType.SQLITE), SQLiteConnection)

    def test_by_name_with_kwargs(self):
        driver = get_driver("postgresql", host="db.internal", database="app")
        assert isinstance(driver, PostgreSQLConnection)
        assert repr(driver) == "PostgreSQLConnection(postgresql, disconnected)"
