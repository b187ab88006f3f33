"""Driver Protocol — the uniform CRUD contract every storage backend satisfies.

Invariants:
    - All data operations are async and raise typed errors instead of returning them:
      RecordNotFoundError, IdentityConflictError, StorageFailureError
    - Records cross the boundary with the public ID_FIELD only; native ids never leak
    - destroy() on a missing id raises RecordNotFoundError in every backend
    - ready(callback) fires the callback exactly once per registration, immediately
      when the backend is already connected
    - ping() reports live backend reachability and never raises
    - Drivers never read or write timestamp fields (the Store owns them)

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Update mode passed per call: destructiveness is resource policy, not driver state
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from geck.core.domain_types import Criteria, Record, RecordId

ReadyCallback = Callable[[], None]


class Driver(Protocol):
    """Contract for one physical collection in one backend."""

    collection: str

    @property
    def is_ready(self) -> bool: ...

    def ready(self, callback: ReadyCallback) -> None: ...
    async def connect(self) -> None: ...
    async def close(self) -> None: ...
    async def ping(self) -> bool: ...

    async def create(self, record: Record) -> Record: ...
    async def read(self, record_id: RecordId | str) -> Record: ...
    async def update(
        self, record_id: RecordId | str, patch: Record, *, destructive: bool = False,
    ) -> Record: ...
    async def destroy(self, record_id: RecordId | str) -> None: ...
    async def list(self, criteria: Criteria | None = None) -> list[Record]: ...
