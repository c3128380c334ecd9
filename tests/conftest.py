from unittest.mock import AsyncMock, MagicMock

import pytest

from txtest import SQLitePool, TransactionalTestContext
from txtest.registry import StrategyRegistry
from txtest.sql.mysql import interface as mysql_interface
from txtest.sql.postgres import interface as postgres_interface

CREATE_PERSON = """
CREATE TABLE person (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
)
"""


@pytest.fixture(autouse=True)
def reset_registry():
    StrategyRegistry().reset()


@pytest.fixture
async def pool():
    pool = SQLitePool(":memory:")
    await pool.open()
    await pool.manager.execute(CREATE_PERSON)
    yield pool
    await pool.close()


@pytest.fixture
def context(pool):
    return TransactionalTestContext(pool)


@pytest.fixture
def save():
    async def save(manager, name):
        await manager.execute(
            "INSERT INTO person (name) VALUES ($name)", params={"name": name}
        )

    return save


@pytest.fixture
def count(pool):
    async def count():
        return await pool.manager.fetch_value("SELECT COUNT(*) FROM person")

    return count


@pytest.fixture
def postgres_cursor():
    cursor = MagicMock()
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.fetchone = AsyncMock(return_value=None)
    return cursor


@pytest.fixture
def postgres_connection(postgres_cursor):
    connection = MagicMock()
    connection.execute = AsyncMock(return_value=postgres_cursor)
    return connection


@pytest.fixture
def postgres_pool(monkeypatch, postgres_connection):
    pool = MagicMock()
    pool.open = AsyncMock()
    pool.close = AsyncMock()
    pool.getconn = AsyncMock(return_value=postgres_connection)
    pool.putconn = AsyncMock()
    monkeypatch.setattr(postgres_interface, "POSTGRES_ENABLED", True)
    return pool


@pytest.fixture(autouse=True)
def mock_postgres_pool(monkeypatch, postgres_pool):
    mock = MagicMock(return_value=postgres_pool)
    monkeypatch.setattr(postgres_interface, "AsyncConnectionPool", mock)
    return mock


@pytest.fixture
def mysql_enabled(monkeypatch):
    monkeypatch.setattr(mysql_interface, "MYSQL_ENABLED", True)
