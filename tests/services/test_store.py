"""Store — timestamp policy over one driver.

Tests:
    - create stamps created_at == updated_at, overwriting caller values
    - update strips caller timestamps, bumps updated_at, keeps created_at
    - destructive update carries created_at forward
    - timestamps never go backwards when the clock does
    - list criteria are optional
    - wait_ready resolves once the driver is connected
"""

from datetime import timedelta

from sqlalchemy import MetaData

from geck.drivers.memory import MemoryDriver
from geck.drivers.sql import SqlDriver
from geck.infrastructure.database import DatabaseSessionManager
from geck.services.store import Store
from tests.helpers import SQLITE_MEMORY_URL, StepClock

T0 = "2024-01-01T00:00:00.000000+00:00"
T1 = "2024-01-01T00:00:01.000000+00:00"


async def test_create_overwrites_timestamps(clock):
    store = Store(MemoryDriver("users"), clock=clock)
    record = await store.create({"name": "ada", "created_at": "forged", "updated_at": "x"})
    assert record["created_at"] == T0
    assert record["updated_at"] == T0


async def test_update_sets_updated_at_only(clock):
    store = Store(MemoryDriver("users"), clock=clock)
    created = await store.create({"name": "ada"})
    updated = await store.update(created["_id"], {"name": "grace", "created_at": "forged"})
    assert updated["created_at"] == T0
    assert updated["updated_at"] == T1
    assert updated["name"] == "grace"


async def test_destructive_update_keeps_created_at(clock):
    store = Store(MemoryDriver("users"), clock=clock)
    created = await store.create({"name": "ada", "age": 36})
    updated = await store.update(created["_id"], {"name": "grace"}, destructive=True)
    assert "age" not in updated
    assert updated["created_at"] == T0
    assert updated["updated_at"] == T1


async def test_timestamps_never_go_backwards():
    clock = StepClock(step=timedelta(seconds=-1))
    store = Store(MemoryDriver("users"), clock=clock)
    first = await store.create({})
    second = await store.create({})
    assert second["created_at"] >= first["created_at"]


async def test_list_criteria_are_optional(clock):
    store = Store(MemoryDriver("users"), clock=clock)
    await store.create({"name": "ada"})
    assert len(await store.list()) == 1
    assert len(await store.list({})) == 1
    assert len(await store.list(None)) == 1
    assert await store.list({"name": "bob"}) == []


async def test_wait_ready_connects_sql_driver():
    manager = DatabaseSessionManager(SQLITE_MEMORY_URL)
    store = Store(SqlDriver("users", manager, MetaData()))
    assert not store.is_ready
    await store.wait_ready()
    assert store.is_ready
    await store.close()
