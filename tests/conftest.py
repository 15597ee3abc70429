"""
Shared test fixtures and configuration for pytest
"""
import pytest

from sqlite_statements.database.config import ConnectionConfig, reset_config
from sqlite_statements.utils.logging import reset_logging

from .test_helpers import ConnectionTestHelper

ENV_VARS = [
    'SQLITE_DB_PATH', 'SQLITE_TIMEOUT', 'SQLITE_CACHED_STATEMENTS',
    'SQLITE_FOREIGN_KEYS', 'SQLITE_LOG_SLOW_QUERIES',
    'SQLITE_SLOW_QUERY_THRESHOLD', 'SQLITE_LOG_LEVEL', 'SQLITE_LOG_DIR',
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Clear configuration env vars and reset singletons around each test"""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()
    reset_logging()


@pytest.fixture
def config():
    """In-memory configuration with slow query logging disabled"""
    return ConnectionConfig(database_file=':memory:', log_slow_queries=False)


@pytest.fixture
def temp_db(tmp_path):
    """Path of a database file inside a not-yet-existing directory"""
    return tmp_path / 'data' / 'test.db'


@pytest.fixture
def user_db(config):
    """Open connection with the user table and its statements"""
    db = ConnectionTestHelper.create_user_connection(config=config)
    yield db
    db.close()
