"""Named prepared statements and typed parameters over a single SQLite session."""

from sqlite_statements.database import (
    MEMORY_DATABASE,
    ConnectionConfig,
    RowDecoder,
    SQLiteConnection,
    SQLValue,
    StatementBlueprint,
    StatementHandle,
    TableBlueprint,
    ValueType,
    single_integer,
    single_real,
    single_string,
    to_boolean,
)
from sqlite_statements.utils.errors import (
    ConnectionClosedError,
    DatabaseConnectionError,
    DatabaseError,
    DatabaseSetupError,
    DatabaseTransactionError,
    ExistsCheckError,
    RowDecodeError,
    SchemaCreationError,
    StatementExecutionError,
    StatementNotRegisteredError,
    StatementRegistrationError,
)

__version__ = "0.1.0"

__all__ = [
    "SQLiteConnection",
    "ConnectionConfig",
    "MEMORY_DATABASE",
    "SQLValue",
    "ValueType",
    "RowDecoder",
    "single_integer",
    "single_real",
    "single_string",
    "to_boolean",
    "StatementBlueprint",
    "StatementHandle",
    "TableBlueprint",
    "DatabaseError",
    "DatabaseSetupError",
    "DatabaseConnectionError",
    "SchemaCreationError",
    "StatementRegistrationError",
    "StatementExecutionError",
    "ConnectionClosedError",
    "DatabaseTransactionError",
    "RowDecodeError",
    "ExistsCheckError",
    "StatementNotRegisteredError",
]
