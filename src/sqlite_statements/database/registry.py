"""Named prepared statements owned by a connection."""

import sqlite3
from dataclasses import dataclass
from typing import Dict, List

from sqlite_statements.utils.errors import (
    StatementNotRegisteredError,
    StatementRegistrationError,
)
from sqlite_statements.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StatementHandle:
    """A registered statement; immutable once created."""

    name: str
    query: str
    returns_generated_keys: bool = False


class StatementRegistry:
    """Maps logical query names to statements compiled against one session.

    sqlite3 keeps compiled statements in a per-connection cache keyed by SQL
    text, so a handle only has to remember the exact text it was checked with.
    Registration is closed with ``seal()`` once connection setup is done.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._handles: Dict[str, StatementHandle] = {}
        self._sealed = False

    def register(
        self, name: str, query: str, returns_generated_keys: bool = False
    ) -> StatementHandle:
        """Compile ``query`` and store it under ``name``."""
        if self._sealed:
            raise StatementRegistrationError(
                "Statements can only be registered during setup",
                details={"statement": name},
            )
        if name in self._handles:
            raise StatementRegistrationError(
                f"Statement {name!r} is already registered",
                details={"statement": name},
            )

        self._compile(name, query)

        handle = StatementHandle(name, query, returns_generated_keys)
        self._handles[name] = handle
        logger.debug(f"Registered statement {name!r}")
        return handle

    def _compile(self, name: str, query: str) -> None:
        """Have the engine parse and plan the query without running it."""
        try:
            cursor = self._connection.execute(f"explain {query}")

        except sqlite3.ProgrammingError as e:
            # The statement compiled and only lacks its bound parameters.
            if "bindings" in str(e):
                return
            raise StatementRegistrationError(
                f"Invalid statement {name!r}: {e}",
                details={"statement": name, "query": query},
            ) from e

        except sqlite3.Error as e:
            raise StatementRegistrationError(
                f"Invalid statement {name!r}: {e}",
                details={"statement": name, "query": query},
            ) from e

        cursor.close()

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def lookup(self, name: str) -> StatementHandle:
        """Return the handle for a registered name."""
        try:
            return self._handles[name]
        except KeyError:
            raise StatementNotRegisteredError(
                f"Statement {name!r} is not registered",
                details={"statement": name, "registered": self.names()},
            ) from None

    def names(self) -> List[str]:
        """Registered names in registration order."""
        return list(self._handles)

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    def __len__(self) -> int:
        return len(self._handles)
