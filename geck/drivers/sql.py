"""SQL Driver — SQLAlchemy async implementation of the Driver contract.

Invariants:
    - Native identity (pk) stays inside this module; records carry record_id as _id
    - Re-keying is one UPDATE statement, so it is atomic; the unique record_id
      constraint turns collisions into IdentityConflictError with both rows untouched
    - destroy() on a missing id raises RecordNotFoundError (rowcount == 0)
    - Operations connect lazily if connect() was not awaited first
    - _id criteria run in SQL; every other criterion runs on the decoded documents

Design Decisions:
    - Documents as a JSON column: collections are schemaless like the memory driver
    - Table created with checkfirst on connect: no migrations (out of scope)
    - Unknown SQLAlchemy failures surface through DatabaseSessionManager as
      StorageFailureError with the backend message
"""

from __future__ import annotations

import asyncio
import logging
import uuid

from sqlalchemy import MetaData, delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from geck.core.criteria import in_values, matches, prepare, split_field
from geck.core.domain_types import ID_FIELD, Criteria, Record, RecordId, normalize_id
from geck.core.driver_protocol import ReadyCallback
from geck.core.errors import (
    IdentityConflictError, RecordNotFoundError, StorageFailureError,
)
from geck.db.tables import collection_table
from geck.drivers.readiness import Readiness
from geck.infrastructure.database import DatabaseSessionManager

logger = logging.getLogger(__name__)


class SqlDriver:
    """Table-backed driver bound to one collection."""

    def __init__(
        self, collection: str, manager: DatabaseSessionManager, metadata: MetaData,
    ):
        self.collection = collection
        self.table = collection_table(metadata, collection)
        self._manager = manager
        self._readiness = Readiness(collection)
        self._connect_lock = asyncio.Lock()
        self._connect_task: asyncio.Task | None = None

    @property
    def is_ready(self) -> bool:
        return self._readiness.is_ready

    def ready(self, callback: ReadyCallback) -> None:
        """Run callback once connected, starting the connection if needed.

        Must be called from a running event loop while not yet connected.
        """
        self._readiness.when_ready(callback)
        if not self.is_ready and self._connect_task is None:
            self._connect_task = asyncio.get_running_loop().create_task(self.connect())
            self._connect_task.add_done_callback(self._on_background_connect)

    async def connect(self) -> None:
        if self.is_ready:
            return
        async with self._connect_lock:
            if self.is_ready:
                return
            try:
                async with self._manager.begin() as conn:
                    await conn.run_sync(self.table.create, checkfirst=True)
            except SQLAlchemyError as e:
                logger.error(
                    f"Failed to connect collection {self.collection}: {e}",
                    extra={"collection": self.collection},
                )
                raise StorageFailureError.from_exception(e, "connect") from e
            self._readiness.mark_ready()

    async def close(self) -> None:
        await self._manager.dispose()

    async def ping(self) -> bool:
        """Round-trip to the database; False while unreachable."""
        return await self._manager.health_check()

    async def create(self, record: Record) -> Record:
        await self.connect()
        doc = dict(record)
        raw_id = doc.pop(ID_FIELD, None)
        record_id = normalize_id(uuid.uuid4() if raw_id is None else raw_id)
        async with self._manager.session() as db:
            try:
                await db.execute(
                    insert(self.table).values(record_id=record_id, document=doc),
                )
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise IdentityConflictError(self.collection, record_id) from None
        return _to_record(record_id, doc)

    async def read(self, record_id: RecordId | str) -> Record:
        await self.connect()
        async with self._manager.session() as db:
            row = await self._fetch(db, normalize_id(record_id))
        return _to_record(row.record_id, row.document)

    async def update(
        self, record_id: RecordId | str, patch: Record, *, destructive: bool = False,
    ) -> Record:
        await self.connect()
        record_id = normalize_id(record_id)
        body = dict(patch)
        new_id = normalize_id(body.pop(ID_FIELD, record_id))
        async with self._manager.session() as db:
            row = await self._fetch(db, record_id)
            doc = body if destructive else {**row.document, **body}
            try:
                await db.execute(
                    update(self.table)
                    .where(self.table.c.record_id == record_id)
                    .values(record_id=new_id, document=doc),
                )
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise IdentityConflictError(self.collection, new_id) from None
        if new_id != record_id:
            logger.info(
                f"Re-keyed {self.collection} '{record_id}' -> '{new_id}'",
                extra={"collection": self.collection, "record_id": new_id},
            )
        return _to_record(new_id, doc)

    async def destroy(self, record_id: RecordId | str) -> None:
        await self.connect()
        record_id = normalize_id(record_id)
        async with self._manager.session() as db:
            result = await db.execute(
                delete(self.table).where(self.table.c.record_id == record_id),
            )
            if result.rowcount == 0:
                raise RecordNotFoundError(self.collection, record_id)
            await db.commit()

    async def list(self, criteria: Criteria | None = None) -> list[Record]:
        await self.connect()
        id_expected, rest = split_field(prepare(criteria), ID_FIELD)
        columns = self.table.c
        stmt = select(columns.record_id, columns.document).order_by(columns.pk)
        if id_expected is not None:
            ids = in_values(id_expected)
            stmt = stmt.where(
                columns.record_id == id_expected if ids is None
                else columns.record_id.in_(ids),
            )
        async with self._manager.session() as db:
            rows = (await db.execute(stmt)).all()
        records = [_to_record(row.record_id, row.document) for row in rows]
        return [record for record in records if matches(record, rest)]

    async def _fetch(self, db, record_id: str):
        columns = self.table.c
        result = await db.execute(
            select(columns.record_id, columns.document)
            .where(columns.record_id == record_id),
        )
        row = result.first()
        if row is None:
            raise RecordNotFoundError(self.collection, record_id)
        return row

    def _on_background_connect(self, task: asyncio.Task) -> None:
        self._connect_task = None
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Background connect failed for {self.collection}: {task.exception()}",
                extra={"collection": self.collection},
            )


def _to_record(record_id: str, document: dict) -> Record:
    """Translate a stored row into the public record shape."""
    return {**document, ID_FIELD: record_id}
