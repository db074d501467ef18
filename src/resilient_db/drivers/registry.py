"""Driver registry and factory.

Manifesto:
    Consumers should never hard-code driver class names. The registry maps
    backend names to live-connection classes and ``get_driver()`` creates a
    configured, not yet connected, instance.

Features:
    - ``DriverRegistry`` with pre-registered defaults
    - ``register()`` for custom / third-party drivers
    - ``get_driver()`` factory: name + kwargs → driver instance

Tags:
    database, registry, factory
"""

from __future__ import annotations

from typing import Any

from resilient_db.errors import ConfigError

from .base import DBAPIConnection
from .mysql import MySQLConnection
from .postgresql import PostgreSQLConnection
from .sqlite import SQLiteConnection
from .types import DatabaseType


class DriverRegistry:
    """
    Registry for live-connection classes.

    Pre-registered drivers:
    - ``sqlite`` — :class:`SQLiteConnection`
    - ``postgresql`` / ``postgres`` — :class:`PostgreSQLConnection`
    - ``mysql`` / ``mariadb`` — :class:`MySQLConnection`
    """

    def __init__(self):
        self._factories: dict[str, type[DBAPIConnection]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories["sqlite"] = SQLiteConnection
        self._factories["postgresql"] = PostgreSQLConnection
        self._factories["postgres"] = PostgreSQLConnection  # Alias
        self._factories["mysql"] = MySQLConnection
        self._factories["mariadb"] = MySQLConnection  # Alias

    def register(self, name: str, driver_class: type[DBAPIConnection]) -> None:
        """Register a driver class."""
        self._factories[name.lower()] = driver_class

    def create(self, name: str, **kwargs: Any) -> DBAPIConnection:
        """Create a driver by name."""
        name = name.lower()
        if name not in self._factories:
            raise ConfigError(f"Unknown database driver: {name}")
        return self._factories[name](**kwargs)

    def list_drivers(self) -> list[str]:
        """List registered driver names."""
        return sorted(self._factories.keys())


# Global registry
driver_registry = DriverRegistry()


def get_driver(db_type: DatabaseType | str, **kwargs: Any) -> DBAPIConnection:
    """
    Get a live-connection driver by type.

    Usage:
        driver = get_driver(DatabaseType.SQLITE, path="data.db")
        driver = get_driver("postgresql", host="localhost", database="app")
    """
    name = db_type.value if isinstance(db_type, DatabaseType) else db_type
    return driver_registry.create(name, **kwargs)


__all__ = [
    "DriverRegistry",
    "driver_registry",
    "get_driver",
]
