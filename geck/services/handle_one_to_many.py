"""One-to-Many Handlers — child records owned through a `{owner}_id` foreign key.

Invariants:
    - create injects `{owner}_id = :id`, overriding any value in the body
    - read/update/destroy verify ownership: a child whose `{owner}_id` differs from
      :id is reported as RecordNotFoundError, never leaked or mutated
    - update keeps `{owner}_id = :id` (children cannot be moved between owners)
    - list filters by `{owner}_id == :id` plus any query criteria

Design Decisions:
    - Ownership is checked with a read before every mutation: no multi-record
      transaction is assumed from any backend
"""

import logging

from geck.core.completion import Completion
from geck.core.definition import ResourceDefinition
from geck.core.domain_types import ID_FIELD, Record, foreign_key, normalize_id
from geck.core.errors import RecordNotFoundError
from geck.core.routing import RouteRequest
from geck.services.request_runner import dispatch, open_completion
from geck.services.store import Store

logger = logging.getLogger(__name__)


class OneToManyHandlers:
    """Route handlers for one `many` relation of a resource."""

    def __init__(
        self, owner: str, relation: str, definition: ResourceDefinition, store: Store,
    ):
        self._owner = owner
        self._relation = relation
        self._definition = definition
        self._store = store
        self._fk = foreign_key(owner)

    def _label(self, action: str) -> str:
        return f"{self._owner}.{self._relation}.{action}"

    def create(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.create, self._label("create"))
        return dispatch(completion, self._create, request)

    def read(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.read, self._label("read"))
        return dispatch(
            completion, self._owned, request.params["id"], request.params["relation_id"],
        )

    def update(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.update, self._label("update"))
        return dispatch(completion, self._update, request)

    def destroy(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.destroy, self._label("destroy"))
        return dispatch(completion, self._destroy, request)

    def list(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.list, self._label("list"))
        criteria = {**request.query, self._fk: normalize_id(request.params["id"])}
        return dispatch(completion, self._store.list, criteria)

    async def _create(self, request: RouteRequest) -> Record:
        body = self._writable(request.body)
        body[self._fk] = normalize_id(request.params["id"])
        return await self._store.create(body)

    async def _update(self, request: RouteRequest) -> Record:
        owner_id = request.params["id"]
        relation_id = request.params["relation_id"]
        await self._owned(owner_id, relation_id)
        body = self._writable(request.body)
        body[self._fk] = normalize_id(owner_id)
        return await self._store.update(
            relation_id, body, destructive=self._definition.destructive,
        )

    async def _destroy(self, request: RouteRequest) -> None:
        relation_id = request.params["relation_id"]
        await self._owned(request.params["id"], relation_id)
        await self._store.destroy(relation_id)

    async def _owned(self, owner_id: str, relation_id: str) -> Record:
        """Read the child and confirm it belongs to owner_id."""
        record = await self._store.read(relation_id)
        if normalize_id(record.get(self._fk)) != normalize_id(owner_id):
            logger.info(
                f"{self._relation} {relation_id} is not owned by {self._owner} {owner_id}",
                extra={"collection": self._store.collection, "record_id": relation_id},
            )
            raise RecordNotFoundError(self._store.collection, relation_id)
        return record

    def _writable(self, body: Record | None) -> Record:
        body = dict(body or {})
        if not self._definition.allow_forced_ids:
            body.pop(ID_FIELD, None)
        return body
