"""Primary Handlers — create/read/update/destroy/list on the resource's own collection.

Invariants:
    - validate(record) gates create and update; False means ValidationFailureError and
      no storage call at all
    - A forced id is honoured only with allow_forced_ids; an id already in use fails
      with IdentityConflictError before any create is attempted
    - Without allow_forced_ids, _id is stripped from create and update payloads
    - after_create/after_update receive the stored record, once, after success

Design Decisions:
    - Sync handler + async operation: the handler opens the completion, lets the
      response hook register interest, then schedules storage
    - A validator that raises is treated as a rejection, not a storage failure
"""

import logging

from geck.core.completion import Completion
from geck.core.definition import ResourceDefinition
from geck.core.domain_types import ID_FIELD, Record
from geck.core.errors import (
    IdentityConflictError, RecordNotFoundError, ValidationFailureError,
)
from geck.core.routing import RouteRequest
from geck.services.request_runner import dispatch, open_completion
from geck.services.store import Store

logger = logging.getLogger(__name__)


def check_valid(definition: ResourceDefinition, body: Record, label: str) -> None:
    """Run the definition's validator; raise ValidationFailureError on rejection."""
    try:
        valid = definition.validate_record(body)
    except Exception as e:
        logger.warning(f"Validator raised on {label}: {e}", extra={"route": label})
        raise ValidationFailureError(f"Validation failure: {e}") from e
    if not valid:
        raise ValidationFailureError()


class PrimaryHandlers:
    """Route handlers bound to the resource's primary Store."""

    def __init__(self, name: str, definition: ResourceDefinition, store: Store):
        self._name = name
        self._definition = definition
        self._store = store

    def create(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.create, f"{self._name}.create")
        return dispatch(
            completion, self._create, request, completion.label,
            after=self._definition.after_create,
        )

    def read(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.read, f"{self._name}.read")
        return dispatch(completion, self._store.read, request.params["id"])

    def update(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.update, f"{self._name}.update")
        return dispatch(
            completion, self._update, request, completion.label,
            after=self._definition.after_update,
        )

    def destroy(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.destroy, f"{self._name}.destroy")
        return dispatch(completion, self._store.destroy, request.params["id"])

    def list(self, request: RouteRequest) -> Completion:
        completion = open_completion(request, self._definition.list, f"{self._name}.list")
        return dispatch(completion, self._store.list, dict(request.query))

    async def _create(self, request: RouteRequest, label: str) -> Record:
        body = dict(request.body or {})
        forced_id = request.params.get("id")
        if not self._definition.allow_forced_ids:
            if forced_id is not None:
                raise ValidationFailureError(f"Forced ids are disabled for {self._name}")
            body.pop(ID_FIELD, None)
        check_valid(self._definition, body, label)
        if forced_id is not None:
            await self._ensure_unused(forced_id)
            body[ID_FIELD] = forced_id
        return await self._store.create(body)

    async def _update(self, request: RouteRequest, label: str) -> Record:
        body = dict(request.body or {})
        if not self._definition.allow_forced_ids:
            body.pop(ID_FIELD, None)
        check_valid(self._definition, body, label)
        return await self._store.update(
            request.params["id"], body, destructive=self._definition.destructive,
        )

    async def _ensure_unused(self, record_id: str) -> None:
        try:
            await self._store.read(record_id)
        except RecordNotFoundError:
            return
        raise IdentityConflictError(self._store.collection, record_id)
