"""Centralized error types for the statement layer."""

from enum import Enum
from typing import Any, Dict

from sqlite_statements.utils.logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Categories of errors for better handling."""

    SETUP = "setup"
    EXECUTION = "execution"
    DECODING = "decoding"
    PROGRAMMING = "programming"
    CONFIGURATION = "configuration"
    FILE_SYSTEM = "file_system"
    UNKNOWN = "unknown"


## Base Exception


class DatabaseError(Exception):
    """Base exception for all statement layer errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "A database error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise DatabaseError with optional message and details."""
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error details to a dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Setup Errors


class DatabaseSetupError(DatabaseError):
    """Base exception for failures while a connection is being set up."""

    category = ErrorCategory.SETUP
    user_message = "Failed to set up the database connection"


class DatabaseConnectionError(DatabaseSetupError):
    """Exception for session open failures."""

    user_message = "Failed to connect to the database"


class SchemaCreationError(DatabaseSetupError):
    """Exception for invalid table declarations."""

    user_message = "Failed to create a database table"


class StatementRegistrationError(DatabaseSetupError):
    """Exception for statements that cannot be compiled or registered."""

    user_message = "Failed to register a prepared statement"


## Execution Errors


class StatementExecutionError(DatabaseError):
    """Exception for failures while executing a registered statement."""

    category = ErrorCategory.EXECUTION
    user_message = "Failed to execute a database statement"


class ConnectionClosedError(StatementExecutionError):
    """Exception when a closed connection is used."""

    user_message = "The database connection is closed"


class DatabaseTransactionError(StatementExecutionError):
    """Exception for transaction control failures."""

    user_message = "A database transaction error occurred"


## Decoding Errors


class RowDecodeError(DatabaseError):
    """Exception raised when a row decoder fails."""

    category = ErrorCategory.DECODING
    user_message = "Failed to decode a result row"


class ExistsCheckError(RowDecodeError):
    """Exception when an existence query returns something other than 0 or 1."""

    user_message = "Existence query must return 0 or 1"


## Programming Errors


class StatementNotRegisteredError(DatabaseError):
    """Exception for lookups of statement names that were never registered."""

    category = ErrorCategory.PROGRAMMING
    user_message = "Statement is not registered"


## Configuration Errors


class ConfigurationError(DatabaseError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


## File System Errors


class FileSystemError(DatabaseError):
    """Base exception for file system-related errors."""

    category = ErrorCategory.FILE_SYSTEM
    user_message = "A file system error occurred"


## Error Handler


class ErrorHandler:
    """Centralized error handling and logging."""

    @staticmethod
    def handle(error: Exception, context: str = "") -> Dict[str, Any]:
        """Log an error and return its dictionary form."""
        if isinstance(error, DatabaseError):
            _get_logger().error(f"{context}: {error.message}", extra={"context": error.details})
            return error.to_dict()
        else:
            _get_logger().error(f"{context}: {str(error)}")
            return {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }
