"""Enumerations shared by the connection wrapper and the drivers."""

from __future__ import annotations

from enum import Enum


class Attribute(str, Enum):
    """Connection attributes readable through ``get_attribute``."""

    DRIVER_NAME = "driver_name"
    ERRMODE = "errmode"
    TIMEOUT = "timeout"
    AUTOCOMMIT = "autocommit"
    SERVER_VERSION = "server_version"
    CLIENT_VERSION = "client_version"


class ErrorMode(str, Enum):
    """How a live connection reports statement errors."""

    SILENT = "silent"  # record only, read back via error_code()/error_info()
    WARNING = "warning"  # record and log a warning
    EXCEPTION = "exception"  # record and raise


class ParamType(str, Enum):
    """Value type hint for ``quote``."""

    STR = "str"
    INT = "int"
    BOOL = "bool"
    NULL = "null"


class FetchMode(str, Enum):
    """Row shape returned by a statement."""

    DICT = "dict"
    TUPLE = "tuple"


# SQLSTATE reported when the last operation succeeded
SQLSTATE_OK = "00000"
# Generic SQLSTATE for drivers that do not expose one
SQLSTATE_GENERAL_ERROR = "HY000"


__all__ = [
    "Attribute",
    "ErrorMode",
    "ParamType",
    "FetchMode",
    "SQLSTATE_OK",
    "SQLSTATE_GENERAL_ERROR",
]
