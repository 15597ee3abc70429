"""
Tests for connection setup and lifecycle

Tests cover:
- In-memory and file-backed sessions
- Initialization hook ordering and subclass overrides
- Setup failures (open, schema, statements, hook)
- Idempotent close and context manager usage
"""
import sqlite3
from unittest.mock import patch

import pytest

from sqlite_statements import (
    ConnectionClosedError,
    DatabaseConnectionError,
    DatabaseSetupError,
    SchemaCreationError,
    SQLiteConnection,
    SQLValue,
    StatementBlueprint,
    StatementExecutionError,
    StatementRegistrationError,
    TableBlueprint,
    single_integer,
    single_string,
)
from sqlite_statements.database.config import ConnectionConfig

from .test_helpers import ConnectionTestHelper


class TestConnectionOpen:
    """Tests for opening sessions"""

    def test_defaults_to_memory(self, config):
        """Test no path gives an in-memory database"""
        with SQLiteConnection(config=config) as db:
            assert db.database_file == ':memory:'
            assert not db.closed

    def test_uses_configured_path(self, temp_db):
        """Test the config database_file is used when no path is given"""
        config = ConnectionConfig(database_file=str(temp_db))
        with SQLiteConnection(config=config) as db:
            assert db.database_file == str(temp_db)
        assert temp_db.exists()

    def test_file_database_creates_parent_directories(self, temp_db, config):
        """Test missing parent directories are created"""
        assert not temp_db.parent.exists()
        with SQLiteConnection(temp_db, config=config):
            pass
        assert temp_db.exists()

    def test_file_database_persists(self, temp_db, config):
        """Test rows survive reopening a file database"""
        with ConnectionTestHelper.create_user_connection(temp_db, config=config) as db:
            ConnectionTestHelper.insert_users(db, 'alice')

        with ConnectionTestHelper.create_user_connection(temp_db, config=config) as db:
            assert db.execute_single_value('get_name', single_string(), SQLValue.integer(1)) == 'alice'

    def test_open_failure_raises_connection_error(self, config):
        """Test driver open failures surface as DatabaseConnectionError"""
        with patch('sqlite_statements.database.connection.sqlite3.connect') as mock_connect:
            mock_connect.side_effect = sqlite3.OperationalError('unable to open database file')

            with pytest.raises(DatabaseConnectionError) as exc_info:
                SQLiteConnection(':memory:', config=config)

        assert isinstance(exc_info.value, DatabaseSetupError)
        assert 'unable to open' in exc_info.value.details['error']

    def test_foreign_keys_pragma(self):
        """Test foreign_keys config turns the pragma on"""
        config = ConnectionConfig(database_file=':memory:', foreign_keys=True)
        db = SQLiteConnection(
            config=config,
            statements=[StatementBlueprint('fk', 'pragma foreign_keys')],
        )
        assert db.execute_single_value('fk', single_integer()) == 1
        db.close()


class TestSetupOrder:
    """Tests for the initialization hook and declaration order"""

    def test_hook_runs_before_tables_and_statements(self, config):
        """Test the hook can declare tables that statements then use"""
        calls = []

        def hook(db):
            calls.append(db.statements.names())
            db.create_table('note', 'id integer primary key', 'body text')
            db.prepare_statement('add_note', 'insert into note(body) values(?)', True)

        with SQLiteConnection(init_hook=hook, config=config) as db:
            assert calls == [[]]
            assert db.execute_update('add_note', SQLValue.text('hi'), return_keys=True) == '1'

    def test_hook_can_run_pragmas(self, config):
        """Test execute_script works inside the hook"""
        def hook(db):
            db.execute_script('PRAGMA user_version = 7;')

        statements = [StatementBlueprint('version', 'pragma user_version')]
        with SQLiteConnection(init_hook=hook, statements=statements, config=config) as db:
            assert db.execute_single_value('version', single_integer()) == 7

    def test_subclass_overrides_init_connection(self, config):
        """Test subclasses can declare their schema in init_connection"""

        class UserStore(SQLiteConnection):
            def init_connection(self):
                self.create_table('user', 'id integer primary key', 'name text')
                self.prepare_statement('insert_user', 'insert into user(name) values(?)', True)
                self.prepare_statement('get_name', 'select name from user where id=?')

            def add(self, name):
                return self.execute_update('insert_user', SQLValue.text(name), return_keys=True)

            def name_of(self, user_id):
                return self.execute_single_value('get_name', single_string(), SQLValue.integer(user_id))

        with UserStore(config=config) as store:
            key = store.add('alice')
            assert store.name_of(int(key)) == 'alice'

    def test_statements_registered_in_declaration_order(self, user_db):
        """Test statements are registered in the order declared"""
        expected = [s.name for s in ConnectionTestHelper.USER_STATEMENTS]
        assert user_db.statements.names() == expected
        assert user_db.statements.sealed

    def test_declarations_rejected_after_setup(self, user_db):
        """Test create_table and prepare_statement only work during setup"""
        with pytest.raises(DatabaseSetupError):
            user_db.create_table('late', 'id integer')
        with pytest.raises(DatabaseSetupError):
            user_db.prepare_statement('late', 'select 1')


class TestSetupFailures:
    """Tests for fail-fast setup"""

    def test_invalid_table_definition(self, config):
        """Test bad column SQL raises SchemaCreationError"""
        tables = [TableBlueprint('broken', ('id integer primary key primary key',))]
        with pytest.raises(SchemaCreationError) as exc_info:
            SQLiteConnection(tables=tables, config=config)
        assert exc_info.value.details['table'] == 'broken'

    def test_existing_table_without_if_not_exists(self, temp_db, config):
        """Test creating an existing table fails when if_not_exists is off"""
        tables = [TableBlueprint('t', ('id integer',), if_not_exists=False)]
        with SQLiteConnection(temp_db, tables=tables, config=config):
            pass
        with pytest.raises(SchemaCreationError):
            SQLiteConnection(temp_db, tables=tables, config=config)

    def test_invalid_statement(self, config):
        """Test invalid statement text raises StatementRegistrationError"""
        statements = [StatementBlueprint('bad', 'select from where')]
        with pytest.raises(StatementRegistrationError):
            SQLiteConnection(statements=statements, config=config)

    def test_statement_against_undeclared_table(self, config):
        """Test statements may only reference tables that exist"""
        statements = [StatementBlueprint('get', 'select * from ghost')]
        with pytest.raises(StatementRegistrationError):
            SQLiteConnection(statements=statements, config=config)

    def test_hook_failure_wrapped(self, config):
        """Test arbitrary hook exceptions become DatabaseSetupError"""
        def hook(db):
            raise RuntimeError('boom')

        with pytest.raises(DatabaseSetupError) as exc_info:
            SQLiteConnection(init_hook=hook, config=config)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_failed_pragma_in_hook_is_setup_error(self, config):
        """Test execute_script failures in the hook abort setup"""
        def hook(db):
            db.execute_script('this is not sql;')

        with pytest.raises(DatabaseSetupError) as exc_info:
            SQLiteConnection(init_hook=hook, config=config)
        assert isinstance(exc_info.value.__cause__, StatementExecutionError)

    def test_session_closed_after_setup_failure(self, config):
        """Test a failed setup leaves no open session behind"""
        created = []

        def hook(db):
            created.append(db)
            db.prepare_statement('bad', 'not sql')

        with pytest.raises(StatementRegistrationError):
            SQLiteConnection(init_hook=hook, config=config)

        assert created[0].closed
        created[0].close()


class TestClose:
    """Tests for closing connections"""

    def test_close_is_idempotent(self, config):
        """Test closing twice does not raise"""
        db = SQLiteConnection(config=config)
        db.close()
        db.close()
        assert db.closed

    def test_context_manager_closes(self, config):
        """Test leaving the with block closes the session"""
        with SQLiteConnection(config=config) as db:
            pass
        assert db.closed

    def test_context_manager_closes_on_error(self, config):
        """Test the session closes when the block raises"""
        with pytest.raises(ValueError):
            with SQLiteConnection(config=config) as db:
                raise ValueError('fail')
        assert db.closed

    def test_execution_after_close(self, user_db):
        """Test using a closed connection raises ConnectionClosedError"""
        user_db.close()
        with pytest.raises(ConnectionClosedError):
            user_db.execute_update('insert_user', SQLValue.text('x'))
        with pytest.raises(ConnectionClosedError):
            user_db.execute_multi_value('all_ids', single_integer())
        with pytest.raises(ConnectionClosedError):
            user_db.commit()

    def test_repr_shows_state(self, config):
        """Test repr reflects open and closed state"""
        db = SQLiteConnection(config=config)
        assert 'open' in repr(db)
        db.close()
        assert 'closed' in repr(db)
