"""Root conftest — shared fixtures for every test package.

Invariants:
    - Every test gets fresh stores: memory drivers live in the builder, SQL drivers
      get a private in-memory SQLite database
    - `builder` is parametrized over both built-in drivers, so service tests run
      against memory and sql alike

Design Decisions:
    - SQLite in-memory (aiosqlite): fast, no external dependency, same SQL driver
      code path as PostgreSQL
"""

import os

import pytest

from geck.services.builder import RouteTableBuilder
from tests.helpers import RecordingResponder, StepClock, sql_db

# Never pick up a developer's .env database
os.environ.setdefault("GECK_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GECK_LOG_FORMAT", "text")


@pytest.fixture
def responder():
    return RecordingResponder()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture(params=["memory", "sql"])
async def builder(request, clock):
    """RouteTableBuilder whose default db is the parametrized driver."""
    db = {"type": "memory"} if request.param == "memory" else sql_db()
    builder = RouteTableBuilder({"db": db}, clock=clock)
    yield builder
    for store in builder.stores:
        await store.close()


@pytest.fixture
async def memory_builder(clock):
    return RouteTableBuilder(clock=clock)
