"""Memory Driver — reference in-process implementation of the Driver contract.

Invariants:
    - Records keyed by their public _id (str); the key always equals record["_id"]
    - Callers only ever receive deep copies; stored records cannot be mutated from outside
    - Every mutation completes without awaiting, so it is atomic with respect to
      other coroutines on the loop (last writer wins)
    - With a snapshot file, the file is rewritten before a mutating call returns;
      a failed write leaves the in-memory records untouched
    - Ready from construction: there is no connection to establish

Design Decisions:
    - No cross-process durability and no multi-record transactions
    - Snapshot loaded once on construction; external edits to the file are not seen
"""

from __future__ import annotations

import copy
import logging
import uuid

from geck.core.criteria import matches, prepare
from geck.core.domain_types import ID_FIELD, Criteria, Record, RecordId, normalize_id
from geck.core.driver_protocol import ReadyCallback
from geck.core.errors import IdentityConflictError, RecordNotFoundError
from geck.drivers.readiness import Readiness
from geck.infrastructure.snapshot import SnapshotFile

logger = logging.getLogger(__name__)


class MemoryDriver:
    """Dict-backed driver bound to one collection."""

    def __init__(
        self, collection: str, database: str = "geck",
        snapshot: SnapshotFile | None = None,
    ):
        self.collection = collection
        self.database = database
        self._snapshot = snapshot
        self._records: dict[str, Record] = (
            snapshot.load(database, collection) if snapshot else {}
        )
        self._readiness = Readiness(collection)
        self._readiness.mark_ready()

    @property
    def is_ready(self) -> bool:
        return self._readiness.is_ready

    def ready(self, callback: ReadyCallback) -> None:
        self._readiness.when_ready(callback)

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def create(self, record: Record) -> Record:
        doc = copy.deepcopy(record)
        if doc.get(ID_FIELD) is None:
            doc[ID_FIELD] = uuid.uuid4()
        record_id = normalize_id(doc[ID_FIELD])
        if record_id in self._records:
            raise IdentityConflictError(self.collection, record_id)
        doc[ID_FIELD] = record_id
        self._commit({**self._records, record_id: doc})
        return copy.deepcopy(doc)

    async def read(self, record_id: RecordId | str) -> Record:
        return copy.deepcopy(self._get(normalize_id(record_id)))

    async def update(
        self, record_id: RecordId | str, patch: Record, *, destructive: bool = False,
    ) -> Record:
        record_id = normalize_id(record_id)
        current = self._get(record_id)
        body = copy.deepcopy(patch)
        new_id = normalize_id(body.pop(ID_FIELD, record_id))
        if new_id != record_id and new_id in self._records:
            raise IdentityConflictError(self.collection, new_id)
        doc = body if destructive else {**current, **body}
        doc[ID_FIELD] = new_id
        staged = dict(self._records)
        if new_id != record_id:
            del staged[record_id]
        staged[new_id] = doc
        self._commit(staged)
        if new_id != record_id:
            logger.info(
                f"Re-keyed {self.collection} '{record_id}' -> '{new_id}'",
                extra={"collection": self.collection, "record_id": new_id},
            )
        return copy.deepcopy(doc)

    async def destroy(self, record_id: RecordId | str) -> None:
        record_id = normalize_id(record_id)
        self._get(record_id)
        staged = dict(self._records)
        del staged[record_id]
        self._commit(staged)

    async def list(self, criteria: Criteria | None = None) -> list[Record]:
        criteria = prepare(criteria)
        return [
            copy.deepcopy(record) for record in self._records.values()
            if matches(record, criteria)
        ]

    def _get(self, record_id: str) -> Record:
        try:
            return self._records[record_id]
        except KeyError:
            raise RecordNotFoundError(self.collection, record_id) from None

    def _commit(self, records: dict[str, Record]) -> None:
        """Persist the staged records, then make them current."""
        if self._snapshot is not None:
            self._snapshot.save(self.database, self.collection, records)
        self._records = records
