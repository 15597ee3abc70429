"""SQLite connection with named prepared statements and typed execution."""

import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, TypeVar, Union

from sqlite_statements.database.config import (
    MEMORY_DATABASE,
    ConnectionConfig,
    get_config,
)
from sqlite_statements.database.decoders import RowDecoder
from sqlite_statements.database.registry import StatementHandle, StatementRegistry
from sqlite_statements.database.schema import StatementBlueprint, TableBlueprint
from sqlite_statements.database.values import SQLValue, bind_parameters
from sqlite_statements.utils.errors import (
    ConnectionClosedError,
    DatabaseConnectionError,
    DatabaseError,
    DatabaseSetupError,
    DatabaseTransactionError,
    ErrorHandler,
    ExistsCheckError,
    RowDecodeError,
    SchemaCreationError,
    StatementExecutionError,
)
from sqlite_statements.utils.logging import get_logger, init_logging, log_call

logger = get_logger(__name__)

T = TypeVar("T")

InitHook = Callable[["SQLiteConnection"], None]


class SQLiteConnection:
    """One SQLite session with a fixed set of named statements.

    Setup runs in the constructor: open the session, run the initialization
    hook, create declared tables, then register declared statements. Any
    failure closes the session and raises a ``DatabaseSetupError``.

    Tables and statements come from the ``tables``/``statements`` arguments
    and from ``create_table``/``prepare_statement`` calls made inside the
    hook, in that order. Subclasses may override ``init_connection`` instead
    of passing ``init_hook``.

    Not thread-safe: use one connection per caller context.
    """

    def __init__(
        self,
        database_file: Union[str, Path, None] = None,
        *,
        tables: Iterable[TableBlueprint] = (),
        statements: Iterable[StatementBlueprint] = (),
        init_hook: Optional[InitHook] = None,
        config: Optional[ConnectionConfig] = None,
    ) -> None:
        self.config = config or get_config()
        init_logging(self.config.log_level, self.config.log_dir)

        self.database_file = str(database_file or self.config.database_file)
        self._connection: Optional[sqlite3.Connection] = None
        self._registry: Optional[StatementRegistry] = None
        self._table_blueprints: List[TableBlueprint] = list(tables)
        self._statement_blueprints: List[StatementBlueprint] = list(statements)
        self._init_hook = init_hook
        self._setting_up = True
        self._in_transaction_block = False

        try:
            self._setup()

        except DatabaseSetupError as e:
            ErrorHandler.handle(e, "Database setup failed")
            self.close()
            raise

        finally:
            self._setting_up = False

    ## Setup

    @log_call
    def _setup(self) -> None:
        self._connection = self._create_connection()
        self._registry = StatementRegistry(self._connection)
        self._run_init_hook()
        self._create_tables()
        self._create_prepared_statements()
        logger.info(
            f"Database ready: {self.database_file} "
            f"({len(self._table_blueprints)} tables, {len(self._registry)} statements)"
        )

    def _create_connection(self) -> sqlite3.Connection:
        """Open the underlying session."""
        try:
            if self.database_file != MEMORY_DATABASE:
                Path(self.database_file).parent.mkdir(parents=True, exist_ok=True)

            connection = sqlite3.connect(
                self.database_file,
                timeout=self.config.timeout,
                isolation_level=None,
                cached_statements=self.config.cached_statements,
            )
            connection.row_factory = sqlite3.Row

            if self.config.foreign_keys:
                connection.execute("PRAGMA foreign_keys = ON;")

        except (sqlite3.Error, OSError) as e:
            raise DatabaseConnectionError(
                "Failed to connect to database",
                details={"database_file": self.database_file, "error": str(e)},
            ) from e

        logger.debug(f"Database connected: {self.database_file}")
        return connection

    def init_connection(self) -> None:
        """Initialization hook run before tables and statements are created.

        The default calls the ``init_hook`` given to the constructor.
        Driver pragmas go through ``execute_script``; declarations through
        ``create_table`` and ``prepare_statement``.
        """
        if self._init_hook is not None:
            self._init_hook(self)

    def _run_init_hook(self) -> None:
        try:
            self.init_connection()

        except DatabaseSetupError:
            raise

        except Exception as e:
            raise DatabaseSetupError(
                f"Initialization hook failed: {e}",
                details={"database_file": self.database_file},
            ) from e

    def _create_tables(self) -> None:
        for blueprint in self._table_blueprints:
            sql = blueprint.create_table_sql()
            try:
                self._connection.execute(sql)

            except sqlite3.Error as e:
                raise SchemaCreationError(
                    f"Failed to create table {blueprint.name!r}: {e}",
                    details={"table": blueprint.name, "sql": sql},
                ) from e

            logger.debug(f"Created table {blueprint.name!r}")

    def _create_prepared_statements(self) -> None:
        for blueprint in self._statement_blueprints:
            self._registry.register(
                blueprint.name, blueprint.query, blueprint.returns_generated_keys
            )
        self._registry.seal()

    def _require_setup(self, what: str) -> None:
        if not self._setting_up:
            raise DatabaseSetupError(
                f"{what} is only allowed while the connection is being set up"
            )

    def create_table(self, table_name: str, *columns: str, if_not_exists: bool = True) -> None:
        """Declare a table to create once the initialization hook returns."""
        self._require_setup("create_table")
        try:
            blueprint = TableBlueprint(table_name, columns, if_not_exists)
        except ValueError as e:
            raise SchemaCreationError(str(e), details={"table": table_name}) from e
        self._table_blueprints.append(blueprint)

    def prepare_statement(
        self, query_name: str, query: str, returns_generated_keys: bool = False
    ) -> None:
        """Declare a named statement to register after table creation."""
        self._require_setup("prepare_statement")
        try:
            blueprint = StatementBlueprint(query_name, query, returns_generated_keys)
        except ValueError as e:
            raise DatabaseSetupError(str(e), details={"statement": query_name}) from e
        self._statement_blueprints.append(blueprint)

    def execute_script(self, sql: str) -> None:
        """Run raw SQL, such as pragmas, directly on the session.

        The driver commits any open transaction before a script, so scripts
        are refused while a transaction is open or a transaction() block runs.
        """
        connection = self._require_connection()
        if connection.in_transaction or self._in_transaction_block:
            raise DatabaseTransactionError(
                "Scripts cannot run inside an open transaction",
                details={"sql": sql},
            )

        try:
            connection.executescript(sql)

        except sqlite3.Error as e:
            raise StatementExecutionError(
                f"Failed to execute script: {e}", details={"sql": sql}
            ) from e

    ## Statement execution

    def execute_update(
        self, query_name: str, *values: SQLValue, return_keys: bool = False
    ) -> Optional[str]:
        """Execute an insert, update or delete.

        Returns the generated key as a string when ``return_keys`` is set, the
        statement was registered with ``returns_generated_keys`` and the
        statement changed a row. Otherwise returns None. Does not commit.
        """
        with self._tracked("execute_update", query_name):
            handle = self._lookup(query_name)
            cursor = self._run(handle, values)
            try:
                if not (return_keys and handle.returns_generated_keys):
                    return None
                if cursor.rowcount < 1 or cursor.lastrowid is None:
                    return None
                return str(cursor.lastrowid)
            finally:
                cursor.close()

    def execute_exists(self, query_name: str, *values: SQLValue) -> bool:
        """Run a ``select exists(...)`` style query.

        True when a row comes back with 1 in its first column, False for 0
        or no rows. Any other first-column value raises ExistsCheckError.
        """
        with self._tracked("execute_exists", query_name):
            handle = self._lookup(query_name)
            cursor = self._run(handle, values)
            try:
                row = next(self._rows(handle, cursor), None)
            finally:
                cursor.close()

            if row is None:
                return False

            result = row[0]
            if result == 1:
                return True
            if result == 0:
                return False

            raise ExistsCheckError(
                f"Statement {query_name!r} returned {result!r} instead of 0 or 1",
                details={"statement": query_name, "value": repr(result)},
            )

    def execute_single_value(
        self, query_name: str, decoder: RowDecoder[T], *values: SQLValue
    ) -> Optional[T]:
        """Decode the first row of a query, or return None when there is none."""
        with self._tracked("execute_single_value", query_name):
            handle = self._lookup(query_name)
            cursor = self._run(handle, values)
            try:
                row = next(self._rows(handle, cursor), None)
                if row is None:
                    return None
                return self._decode(handle, decoder, row)
            finally:
                cursor.close()

    def execute_multi_value(
        self, query_name: str, decoder: RowDecoder[T], *values: SQLValue
    ) -> List[T]:
        """Decode every row of a query in the order the engine returns them."""
        with self._tracked("execute_multi_value", query_name):
            handle = self._lookup(query_name)
            cursor = self._run(handle, values)
            try:
                return [self._decode(handle, decoder, row) for row in self._rows(handle, cursor)]
            finally:
                cursor.close()

    @contextmanager
    def _tracked(self, operation: str, query_name: str) -> Iterator[None]:
        """Log failures once and warn about slow statements."""
        start = time.perf_counter()
        try:
            yield

        except DatabaseError as e:
            ErrorHandler.handle(e, f"{operation} {query_name!r} failed")
            raise

        duration = time.perf_counter() - start
        if self.config.log_slow_queries and duration > self.config.slow_query_threshold:
            logger.warning(
                f"Slow statement {query_name!r}: {duration:.3f}s "
                f"(threshold={self.config.slow_query_threshold}s)"
            )

    def _lookup(self, query_name: str) -> StatementHandle:
        self._require_connection()
        return self._registry.lookup(query_name)

    def _bind(self, handle: StatementHandle, values: Tuple[SQLValue, ...]) -> Tuple:
        try:
            return bind_parameters(values)

        except AttributeError as e:
            raise StatementExecutionError(
                "Statement parameters must be SQLValue instances",
                details={"statement": handle.name},
            ) from e

    def _run(self, handle: StatementHandle, values: Tuple[SQLValue, ...]) -> sqlite3.Cursor:
        """Bind values positionally and execute; the caller closes the cursor."""
        params = self._bind(handle, values)
        logger.debug(f"Executing {handle.name!r} with {list(values)!r}")

        cursor = self._connection.cursor()
        try:
            cursor.execute(handle.query, params)

        except (sqlite3.Error, OverflowError) as e:
            cursor.close()
            raise StatementExecutionError(
                f"Failed to execute {handle.name!r}: {e}",
                details={"statement": handle.name, "parameters": len(params)},
            ) from e

        return cursor

    def _rows(self, handle: StatementHandle, cursor: sqlite3.Cursor) -> Iterator[sqlite3.Row]:
        while True:
            try:
                row = cursor.fetchone()

            except sqlite3.Error as e:
                raise StatementExecutionError(
                    f"Failed to read results of {handle.name!r}: {e}",
                    details={"statement": handle.name},
                ) from e

            if row is None:
                return
            yield row

    def _decode(self, handle: StatementHandle, decoder: RowDecoder[T], row: sqlite3.Row) -> T:
        try:
            return decoder(row)

        except DatabaseError:
            raise

        except Exception as e:
            raise RowDecodeError(
                f"Decoder failed for {handle.name!r}: {e}",
                details={"statement": handle.name},
            ) from e

    ## Transactions

    @property
    def auto_commit(self) -> bool:
        return self._require_connection().isolation_level is None

    def set_auto_commit(self, auto_commit: bool) -> None:
        """Turn auto-commit on or off; turning it on commits an open transaction."""
        connection = self._require_connection()
        try:
            connection.isolation_level = None if auto_commit else "DEFERRED"

        except sqlite3.Error as e:
            raise DatabaseTransactionError(
                f"Failed to set auto-commit: {e}", details={"auto_commit": auto_commit}
            ) from e

    @property
    def in_transaction(self) -> bool:
        return self._require_connection().in_transaction

    def commit(self) -> None:
        connection = self._require_connection()
        try:
            connection.commit()

        except sqlite3.Error as e:
            raise DatabaseTransactionError(f"Commit failed: {e}") from e

    def rollback(self) -> None:
        connection = self._require_connection()
        try:
            connection.rollback()

        except sqlite3.Error as e:
            raise DatabaseTransactionError(f"Rollback failed: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator["SQLiteConnection"]:
        """Commit the block on success, roll it back on any exception."""
        if self._in_transaction_block:
            raise DatabaseTransactionError("Nested transactions are not supported")

        previous = self.auto_commit
        self.set_auto_commit(False)
        self._in_transaction_block = True
        start = time.perf_counter()

        try:
            yield self

        except BaseException as e:
            self.rollback()
            logger.warning(
                f"Transaction rolled back due to {type(e).__name__}: {e} "
                f"(duration={time.perf_counter() - start:.2f}s)"
            )
            raise

        else:
            self.commit()
            logger.debug(f"Transaction committed (duration={time.perf_counter() - start:.2f}s)")

        finally:
            self._in_transaction_block = False
            self.set_auto_commit(previous)

    ## Lifecycle

    def _require_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise ConnectionClosedError(details={"database_file": self.database_file})
        return self._connection

    @property
    def closed(self) -> bool:
        return self._connection is None

    @property
    def statements(self) -> StatementRegistry:
        return self._registry

    @log_call
    def close(self) -> None:
        """Close the session; calling it again does nothing."""
        if self._connection is None:
            return

        try:
            self._connection.close()
            logger.debug(f"Database connection closed: {self.database_file}")

        except sqlite3.Error as e:
            logger.warning(f"Error closing connection: {e}")

        finally:
            self._connection = None

    def __enter__(self) -> "SQLiteConnection":
        return self

    def __exit__(self, exc_type, exc_value, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<SQLiteConnection {self.database_file!r} ({state})>"
