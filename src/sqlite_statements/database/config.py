"""Connection configuration with environment variable support."""

import os
from dataclasses import dataclass, field
from typing import Optional

from sqlite_statements.utils.errors import InvalidConfigError

MEMORY_DATABASE = ":memory:"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError as e:
        raise InvalidConfigError(
            f"{name} must be a number", details={"value": raw}
        ) from e


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidConfigError(
            f"{name} must be an integer", details={"value": raw}
        ) from e


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ConnectionConfig:
    """Configuration for a single SQLite session."""

    # Session target
    database_file: str = field(
        default_factory=lambda: os.getenv("SQLITE_DB_PATH", MEMORY_DATABASE)
    )

    # Driver settings
    timeout: float = field(default_factory=lambda: _env_float("SQLITE_TIMEOUT", "5.0"))
    cached_statements: int = field(
        default_factory=lambda: _env_int("SQLITE_CACHED_STATEMENTS", "128")
    )
    foreign_keys: bool = field(
        default_factory=lambda: _env_bool("SQLITE_FOREIGN_KEYS", "false")
    )

    # Logging
    log_slow_queries: bool = field(
        default_factory=lambda: _env_bool("SQLITE_LOG_SLOW_QUERIES", "true")
    )
    slow_query_threshold: float = field(
        default_factory=lambda: _env_float("SQLITE_SLOW_QUERY_THRESHOLD", "1.0")
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("SQLITE_LOG_LEVEL", "WARNING")
    )
    log_dir: Optional[str] = field(
        default_factory=lambda: os.getenv("SQLITE_LOG_DIR") or None
    )

    def __post_init__(self):
        """Validate configuration values."""
        if not self.database_file:
            raise InvalidConfigError("database_file must not be empty")
        if self.timeout < 0:
            raise InvalidConfigError("timeout must be >= 0")
        if self.cached_statements < 0:
            raise InvalidConfigError("cached_statements must be >= 0")
        if self.slow_query_threshold < 0:
            raise InvalidConfigError("slow_query_threshold must be >= 0")

        self.log_level = self.log_level.upper()
        if self.log_level not in _VALID_LOG_LEVELS:
            raise InvalidConfigError(
                "log_level is not a valid logging level",
                details={"log_level": self.log_level},
            )

    @property
    def in_memory(self) -> bool:
        return self.database_file == MEMORY_DATABASE


# Singleton instance
_config: Optional[ConnectionConfig] = None


def get_config() -> ConnectionConfig:
    """Get or create connection configuration singleton.

    Returns:
        ConnectionConfig: The configuration read from the environment.
    """
    global _config
    if _config is None:
        _config = ConnectionConfig()

    return _config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global _config
    _config = None
