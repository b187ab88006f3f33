"""One-to-One Handler — resolve `{relation}_id` on the owner to the related record."""

from geck.core.completion import Completion
from geck.core.definition import ResourceDefinition
from geck.core.domain_types import Record, foreign_key
from geck.core.errors import RecordNotFoundError
from geck.core.routing import RouteRequest
from geck.services.request_runner import dispatch, open_completion
from geck.services.store import Store


class OneToOneHandlers:
    """GET /R/:id/r: owner first, then the relation by the owner's foreign key."""

    def __init__(
        self,
        owner: str,
        relation: str,
        definition: ResourceDefinition,
        owner_store: Store,
        store: Store,
    ):
        self._owner = owner
        self._relation = relation
        self._definition = definition
        self._owner_store = owner_store
        self._store = store
        self._fk = foreign_key(relation)

    def read(self, request: RouteRequest) -> Completion:
        completion = open_completion(
            request, self._definition.read, f"{self._owner}.{self._relation}.read",
        )
        return dispatch(completion, self._read, request.params["id"])

    async def _read(self, owner_id: str) -> Record:
        owner = await self._owner_store.read(owner_id)
        relation_id = owner.get(self._fk)
        if relation_id is None:
            raise RecordNotFoundError(self._store.collection, f"{self._fk} of {owner_id}")
        return await self._store.read(relation_id)
