"""Driver test fixtures — one fresh driver per backend.

Invariants:
    - `driver` is parametrized over memory and sql; contract tests run on both
    - Every SQL driver gets its own in-memory SQLite engine, disposed afterwards
"""

import pytest
from sqlalchemy import MetaData

from geck.drivers.memory import MemoryDriver
from geck.drivers.sql import SqlDriver
from geck.infrastructure.database import DatabaseSessionManager
from tests.helpers import SQLITE_MEMORY_URL


@pytest.fixture
async def sql_manager():
    manager = DatabaseSessionManager(SQLITE_MEMORY_URL)
    yield manager
    await manager.dispose()


@pytest.fixture(params=["memory", "sql"])
async def driver(request, sql_manager):
    if request.param == "memory":
        return MemoryDriver("widgets")
    driver = SqlDriver("widgets", sql_manager, MetaData())
    await driver.connect()
    return driver
