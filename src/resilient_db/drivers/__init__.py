"""Live-connection drivers over Python DB-API 2 modules.

Each driver is **import-guarded**: the database module is only required at
``connect()`` time, not at import time. Install the corresponding extra::

    pip install resilient-db[postgresql]   # psycopg2-binary
    pip install resilient-db[mysql]        # mysql-connector-python

Architecture::

    DBAPIConnection (base.py)        Abstract base: statements, transactions,
        |                            error modes, attributes, quoting
        |-- SQLiteConnection         stdlib sqlite3 (always available)
        |-- PostgreSQLConnection     psycopg2 (optional)
        |-- MySQLConnection          mysql.connector (optional)

    DriverRegistry (registry.py)     name -> driver class
    DatabaseConfig (types.py)        connection parameters
    DatabaseType (types.py)          enum of supported backends
"""

from .base import DBAPIConnection, DBAPIStatement, ErrorInfo, error_info_for
from .mysql import MySQLConnection
from .postgresql import PostgreSQLConnection
from .registry import DriverRegistry, driver_registry, get_driver
from .sqlite import SQLiteConnection
from .types import DatabaseConfig, DatabaseType

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    "ErrorInfo",
    # Base classes
    "DBAPIConnection",
    "DBAPIStatement",
    "error_info_for",
    # Implementations
    "SQLiteConnection",
    "PostgreSQLConnection",
    "MySQLConnection",
    # Registry
    "DriverRegistry",
    "driver_registry",
    "get_driver",
]
