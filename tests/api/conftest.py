"""API test fixtures — FastAPI app over a fresh route table + httpx client.

Invariants:
    - Every test gets its own app, route table and stores
    - Lifespan is not run by ASGITransport: drivers connect lazily on first use

Design Decisions:
    - httpx AsyncClient + ASGITransport: exercises the real adapter, error
      handlers and middleware without a network listener
"""

import pytest
from httpx import ASGITransport, AsyncClient

from geck.config import Settings
from geck.main import create_app


def has_name(record):
    return "name" in record


@pytest.fixture
def settings():
    return Settings(log_format="text", request_timeout_seconds=5)


@pytest.fixture
def blog_table(builder):
    builder.resource("user", {"validate": has_name, "relations": {"many": ["article"]}})
    builder.resource("article")
    return builder.build()


@pytest.fixture
async def client(blog_table, settings):
    app = create_app(blog_table, settings)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
