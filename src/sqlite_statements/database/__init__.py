"""Database access layer - public API."""

from .config import MEMORY_DATABASE, ConnectionConfig, get_config, reset_config
from .connection import SQLiteConnection
from .decoders import RowDecoder, single_integer, single_real, single_string, to_boolean
from .registry import StatementHandle, StatementRegistry
from .schema import StatementBlueprint, TableBlueprint
from .values import SQLValue, ValueType, bind_parameters

__all__ = [
    "SQLiteConnection",
    "ConnectionConfig",
    "MEMORY_DATABASE",
    "get_config",
    "reset_config",
    "SQLValue",
    "ValueType",
    "bind_parameters",
    "RowDecoder",
    "single_integer",
    "single_real",
    "single_string",
    "to_boolean",
    "StatementHandle",
    "StatementRegistry",
    "StatementBlueprint",
    "TableBlueprint",
]
