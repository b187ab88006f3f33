"""Test helpers — recording responder, stepping clock and a route caller."""

from datetime import datetime, timedelta, timezone
from typing import Any

from geck.core.completion import Outcome
from geck.core.routing import RouteRequest, RouteTable

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


class RecordingResponder:
    """Responder that records every render call."""

    def __init__(self):
        self.calls: list[tuple[str, Any, int]] = []

    def json(self, payload: Any, status_code: int = 200) -> None:
        self.calls.append(("json", payload, status_code))

    def html(self, markup: str, status_code: int = 200) -> None:
        self.calls.append(("html", markup, status_code))

    @property
    def last(self) -> tuple[str, Any, int]:
        return self.calls[-1]


class StepClock:
    """Clock advancing by `step` on every call (or going back with a negative step)."""

    def __init__(
        self,
        start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


def make_request(
    params: dict | None = None,
    query: dict | None = None,
    body: dict | None = None,
    responder: RecordingResponder | None = None,
) -> RouteRequest:
    return RouteRequest(
        params=params or {},
        responder=responder or RecordingResponder(),
        query=query or {},
        body=body,
    )


async def call(
    table: RouteTable,
    method: str,
    path: str,
    params: dict | None = None,
    query: dict | None = None,
    body: dict | None = None,
) -> Outcome:
    """Invoke one route of table and await its outcome."""
    route = table.find(method, path)
    assert route is not None, f"no route {method} {path}"
    completion = route.handler(make_request(params, query, body))
    return await completion.wait(5)


def sql_db() -> dict:
    return {"type": "sql", "url": SQLITE_MEMORY_URL}
