"""Health & Readiness — liveness always 200, readiness waits for every store.

Tests:
    - GET /api/v1/health/ → 200 healthy
    - memory stores are ready immediately
    - sql stores report 503 until connected, then 200
    - a ready store that fails its ping reports 503 database_unavailable
"""

from httpx import ASGITransport, AsyncClient

from geck.drivers.memory import MemoryDriver
from geck.drivers.registry import DriverRegistry
from geck.main import create_app
from geck.services.builder import RouteTableBuilder
from tests.helpers import sql_db


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_memory_stores_are_ready(settings):
    builder = RouteTableBuilder()
    builder.resource("user")
    app = create_app(builder.build(), settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        res = await c.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json() == {"status": "ready", "checks": {"users": "ready"}}


async def test_sql_stores_ready_after_connect(settings):
    builder = RouteTableBuilder({"db": sql_db()})
    builder.resource("user")
    table = builder.build()
    app = create_app(table, settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        before = await c.get("/api/v1/health/ready")
        await table.connect()
        after = await c.get("/api/v1/health/ready")
    await table.close()

    assert before.status_code == 503
    assert before.json() == {"status": "not_ready", "pending": ["users"]}
    assert after.status_code == 200


class UnreachableDriver(MemoryDriver):
    async def ping(self) -> bool:
        return False


async def test_unreachable_store_is_not_ready(settings):
    registry = DriverRegistry().register(
        "flaky", lambda db, collection, context: UnreachableDriver(collection),
    )
    builder = RouteTableBuilder({"db": {"type": "flaky"}}, registry=registry)
    builder.resource("user")
    app = create_app(builder.build(), settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        res = await c.get("/api/v1/health/ready")

    assert res.status_code == 503
    assert res.json() == {
        "status": "not_ready",
        "reason": "database_unavailable",
        "unreachable": ["users"],
    }
