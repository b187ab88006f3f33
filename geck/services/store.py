"""Store — backend-agnostic facade over one Driver with timestamp bookkeeping.

Invariants:
    - create() overwrites created_at and updated_at with one timestamp (caller values lost)
    - update() drops caller-supplied timestamps and sets updated_at; destructive updates
      carry the stored created_at forward
    - Timestamps issued by one Store never go backwards, even if the clock does
    - list() criteria are optional; {} and None both match everything
    - Every other call passes straight through to the driver
    - `lock` serializes check-then-write sequences of every caller sharing this Store

Design Decisions:
    - Single enforcement point for timestamp policy: drivers never see timestamp logic
    - Fixed-width ISO-8601 strings (microseconds, UTC): JSON-safe in every backend
      and ordered the same way lexicographically and chronologically
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone

from geck.core.domain_types import (
    CREATED_AT, TIMESTAMP_FIELDS, UPDATED_AT, Criteria, Record, RecordId,
)
from geck.core.driver_protocol import Driver, ReadyCallback

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Store:
    """Facade wrapping exactly one Driver."""

    def __init__(self, driver: Driver, clock: Clock = utc_now):
        self.driver = driver
        self._clock = clock
        self._last_issued: datetime | None = None
        self.lock = asyncio.Lock()

    @property
    def collection(self) -> str:
        return self.driver.collection

    @property
    def is_ready(self) -> bool:
        return self.driver.is_ready

    def ready(self, callback: ReadyCallback) -> None:
        self.driver.ready(callback)

    async def wait_ready(self) -> None:
        """Await the driver's ready callback."""
        if self.is_ready:
            return
        waiter = asyncio.get_running_loop().create_future()
        self.ready(lambda: waiter.done() or waiter.set_result(None))
        await waiter

    async def connect(self) -> None:
        await self.driver.connect()

    async def close(self) -> None:
        await self.driver.close()

    async def ping(self) -> bool:
        return await self.driver.ping()

    async def create(self, record: Record) -> Record:
        now = self._timestamp()
        return await self.driver.create(
            {**record, CREATED_AT: now, UPDATED_AT: now},
        )

    async def read(self, record_id: RecordId | str) -> Record:
        return await self.driver.read(record_id)

    async def update(
        self, record_id: RecordId | str, patch: Record, *, destructive: bool = False,
    ) -> Record:
        body = {k: v for k, v in patch.items() if k not in TIMESTAMP_FIELDS}
        if destructive:
            current = await self.driver.read(record_id)
            if CREATED_AT in current:
                body[CREATED_AT] = current[CREATED_AT]
        body[UPDATED_AT] = self._timestamp()
        return await self.driver.update(record_id, body, destructive=destructive)

    async def destroy(self, record_id: RecordId | str) -> None:
        await self.driver.destroy(record_id)

    async def list(self, criteria: Criteria | None = None) -> list[Record]:
        return await self.driver.list(criteria or None)

    def _timestamp(self) -> str:
        now = self._clock()
        if self._last_issued is not None and now < self._last_issued:
            now = self._last_issued
        self._last_issued = now
        return now.astimezone(timezone.utc).isoformat(timespec="microseconds")
