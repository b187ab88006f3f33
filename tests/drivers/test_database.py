"""Database Session Manager — session turns and connectivity checks.

Tests:
    - in-memory SQLite runs sessions one at a time, file databases do not
    - health_check is True on a live database, False when it cannot be opened
    - the SQL driver's ping reflects health_check
"""

import asyncio

from sqlalchemy import MetaData

from geck.drivers.sql import SqlDriver
from geck.infrastructure.database import DatabaseSessionManager


async def test_memory_sqlite_sessions_take_turns(sql_manager):
    assert sql_manager.serialized
    order = []

    async def hold(name):
        async with sql_manager.session():
            order.append(f"{name} in")
            await asyncio.sleep(0.01)
            order.append(f"{name} out")

    await asyncio.gather(hold("a"), hold("b"))

    assert order == ["a in", "a out", "b in", "b out"]


async def test_file_sqlite_sessions_are_not_serialized(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'db.sqlite'}")
    try:
        assert not manager.serialized
    finally:
        await manager.dispose()


async def test_health_check_on_live_database(sql_manager):
    assert await sql_manager.health_check() is True


async def test_health_check_on_unreachable_database(tmp_path):
    missing = tmp_path / "missing" / "db.sqlite"
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{missing}")
    try:
        assert await manager.health_check() is False
    finally:
        await manager.dispose()


async def test_sql_driver_ping(sql_manager):
    driver = SqlDriver("widgets", sql_manager, MetaData())
    await driver.connect()
    assert await driver.ping() is True
