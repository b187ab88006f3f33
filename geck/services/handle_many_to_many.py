"""Many-to-Many Handlers — associations held as pivot records.

Invariants:
    - A pivot record is {`{owner}_id`, `{relation}_id`}; at most one per pair
    - associate takes the relation id from the path, else from the body's
      `{relation}_id`; neither present is a ValidationFailureError
    - An existing pair fails with DuplicateAssociationError and creates nothing
    - Check-then-create is serialized per pivot Store within the process, so
      relations declared from both sides over one pivot share the guard
    - list is two-stage: pivot rows for the owner, then ONE list on the related
      collection with an "in set" on _id (no per-id reads)

Design Decisions:
    - Pivot Store lock instead of a backend unique index: works the same
      on every driver, at the cost of being process-local
    - Duplicate check uses only the pair, never other pivot fields
"""

from __future__ import annotations

import logging

from geck.core.completion import Completion
from geck.core.criteria import in_set
from geck.core.definition import ResourceDefinition
from geck.core.domain_types import ID_FIELD, Record, foreign_key, normalize_id
from geck.core.errors import (
    DuplicateAssociationError, RecordNotFoundError, ValidationFailureError,
)
from geck.core.routing import RouteRequest
from geck.services.request_runner import dispatch, open_completion
from geck.services.store import Store

logger = logging.getLogger(__name__)


class ManyToManyHandlers:
    """Route handlers for one `many_to_many` relation mediated by a pivot collection."""

    def __init__(
        self,
        owner: str,
        relation: str,
        definition: ResourceDefinition,
        pivot_store: Store,
        store: Store,
    ):
        self._owner = owner
        self._relation = relation
        self._definition = definition
        self._pivot = pivot_store
        self._store = store
        self._owner_fk = foreign_key(owner)
        self._relation_fk = foreign_key(relation)

    def _label(self, action: str) -> str:
        return f"{self._owner}.{self._relation}.{action}"

    def associate(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.create, self._label("associate"))
        return dispatch(completion, self._associate, request)

    def dissociate(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.destroy, self._label("dissociate"))
        return dispatch(completion, self._dissociate, request)

    def list(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.list, self._label("list"))
        return dispatch(completion, self._list, request)

    def _pair(self, owner_id: object, relation_id: object) -> Record:
        return {
            self._owner_fk: normalize_id(owner_id),
            self._relation_fk: normalize_id(relation_id),
        }

    async def _associate(self, request: RouteRequest) -> Record:
        relation_id = request.params.get("relation_id")
        if relation_id is None:
            relation_id = (request.body or {}).get(self._relation_fk)
        if relation_id is None:
            raise ValidationFailureError(f"'{self._relation_fk}' is required")
        pair = self._pair(request.params["id"], relation_id)
        async with self._pivot.lock:
            if await self._pivot.list(pair):
                raise DuplicateAssociationError(
                    self._pivot.collection, pair[self._owner_fk], pair[self._relation_fk],
                )
            record = await self._pivot.create(pair)
        logger.info(
            f"Associated {self._owner} {pair[self._owner_fk]} with "
            f"{self._relation} {pair[self._relation_fk]}",
            extra={"collection": self._pivot.collection, "record_id": record[ID_FIELD]},
        )
        return record

    async def _dissociate(self, request: RouteRequest) -> None:
        relation_id = request.params["relation_id"]
        pair = self._pair(request.params["id"], relation_id)
        async with self._pivot.lock:
            rows = await self._pivot.list(pair)
            if not rows:
                raise RecordNotFoundError(self._pivot.collection, relation_id)
            for row in rows:
                await self._pivot.destroy(row[ID_FIELD])

    async def _list(self, request: RouteRequest) -> list[Record]:
        rows = await self._pivot.list({self._owner_fk: normalize_id(request.params["id"])})
        ids = [row[self._relation_fk] for row in rows if self._relation_fk in row]
        if not ids:
            return []
        return await self._store.list({**request.query, ID_FIELD: in_set(ids)})
