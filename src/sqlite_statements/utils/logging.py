"""Logging utility for the statement layer."""

import json
import logging
import re
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler

ROOT_LOGGER_NAME = "sqlite_statements"
LOG_FILE_NAME = "sqlite_statements.log"


## Custom JSON Formatter


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for log records."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "context"):
            log_entry["context"] = record.context

        return json.dumps(log_entry, default=str)


## Log Masking


class SensitiveDataMasker:
    """Masks credentials that end up in SQL text or bound parameters."""

    PATTERNS = {
        "password": re.compile(
            r'(password["\']?\s*[:=]\s*["\']?)([^"\'}\s,)]+)', re.IGNORECASE
        ),
        "token": re.compile(
            r'(token["\']?\s*[:=]\s*["\']?)([^"\'}\s,)]+)', re.IGNORECASE
        ),
        "api_key": re.compile(
            r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([^"\'}\s,)]+)', re.IGNORECASE
        ),
        "secret": re.compile(
            r'(secret["\']?\s*[:=]\s*["\']?)([^"\'}\s,)]+)', re.IGNORECASE
        ),
    }

    SENSITIVE_FIELDS = {
        "password",
        "passwd",
        "secret",
        "token",
        "api_key",
        "authorization",
    }

    REDACTED = "[REDACTED]"

    def mask_string(self, text: str) -> str:
        """Mask sensitive data in a string message."""

        if not text or not isinstance(text, str):
            return text

        masked = text
        for pattern in self.PATTERNS.values():
            masked = pattern.sub(
                lambda m: m.group(1) + self.REDACTED, masked
            )

        return masked

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive data in a dictionary."""

        masked = {}
        for key, value in data.items():
            if str(key).lower() in self.SENSITIVE_FIELDS:
                masked[key] = self.REDACTED
            elif isinstance(value, dict):
                masked[key] = self.mask_dict(value)
            elif isinstance(value, str):
                masked[key] = self.mask_string(value)
            else:
                masked[key] = value

        return masked


class SensitiveDataFilter(logging.Filter):
    """Logging filter to mask sensitive data in log records."""

    def __init__(self):
        super().__init__()
        self.masker = SensitiveDataMasker()

    def filter(self, record) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.masker.mask_string(record.msg)

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            record.context = self.masker.mask_dict(context)

        return True


## Main Log Manager


class LogManager:
    """Manages logging configuration and provides logger instances."""

    def __init__(self, log_level: str = "WARNING", log_dir: Optional[Path] = None):
        self.log_level = _parse_level(log_level)
        self.log_dir: Optional[Path] = None
        self.root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.root_logger.setLevel(logging.DEBUG)
        self._filter = SensitiveDataFilter()
        self._file_handler: Optional[RotatingFileHandler] = None
        self._setup_handlers()

        if log_dir:
            self.set_log_dir(log_dir)

    def _setup_handlers(self) -> None:
        """Setup the rich console handler with sensitive data filtering."""

        self.root_logger.handlers.clear()

        console_handler = RichHandler(
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        console_handler.addFilter(self._filter)
        self.root_logger.addHandler(console_handler)

    def set_log_dir(self, log_dir: Path) -> None:
        """Write JSON records to a rotating file inside log_dir."""

        from .errors import FileSystemError

        log_dir = Path(log_dir)
        if self.log_dir == log_dir:
            return

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_dir / LOG_FILE_NAME,
                maxBytes=5_242_880,
                backupCount=5,
                encoding="utf-8",
            )

        except OSError as e:
            raise FileSystemError(
                f"Failed to create log file handler: {str(e)}",
                details={"log_dir": str(log_dir)},
            ) from e

        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        file_handler.addFilter(self._filter)

        if self._file_handler is not None:
            self.root_logger.removeHandler(self._file_handler)
            self._file_handler.close()

        self.root_logger.addHandler(file_handler)
        self._file_handler = file_handler
        self.log_dir = log_dir

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Get a logger under the package root."""

        if name and not name.startswith(ROOT_LOGGER_NAME):
            name = f"{ROOT_LOGGER_NAME}.{name}"

        return logging.getLogger(name or ROOT_LOGGER_NAME)

    def set_level(self, level: str) -> None:
        """Set console logging level at runtime."""

        self.log_level = _parse_level(level)

        for handler in self.root_logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(self.log_level)

    def close(self) -> None:
        """Detach and close every handler owned by the manager."""

        self._file_handler = None
        self.log_dir = None

        for handler in list(self.root_logger.handlers):
            self.root_logger.removeHandler(handler)
            handler.close()


def _parse_level(level: str) -> int:
    """Convert a level name to its logging constant."""

    value = getattr(logging, str(level).upper(), None)
    if not isinstance(value, int):
        raise ValueError(f"Invalid logging level: {level}")
    return value


## Decorators for Logging


def log_call(func):
    """Decorator to log function calls with their duration."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        func_name = f"{func.__module__}.{func.__qualname__}"
        logger.debug(f"-> Entering {func_name}")
        start_time = datetime.now()

        try:
            result = func(*args, **kwargs)
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Exiting {func_name} (Duration: {duration:.3f}s)")
            return result

        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Error in {func_name} after {duration:.3f}s: {e}")
            raise

    return wrapper


## Module-level LogManager Instance and Helper Functions

_log_manager: Optional[LogManager] = None


def init_logging(
    log_level: Optional[str] = None, log_dir: Optional[Path] = None
) -> LogManager:
    """Initialize logging system and return LogManager instance.

    Calling it again with a level or directory reconfigures the existing
    manager in place, so loggers created at import time keep working.
    """

    global _log_manager

    if _log_manager is None:
        _log_manager = LogManager(log_level or "WARNING", log_dir)
        return _log_manager

    if log_level:
        _log_manager.set_level(log_level)
    if log_dir:
        _log_manager.set_log_dir(log_dir)

    return _log_manager


def reset_logging() -> None:
    """Drop the current LogManager (mainly for testing)."""

    global _log_manager

    if _log_manager is not None:
        _log_manager.close()
    _log_manager = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance."""

    manager = init_logging()
    return manager.get_logger(name)
