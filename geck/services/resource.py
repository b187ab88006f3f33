"""Resource — derives the full route set of one resource and its declared relations.

Invariants:
    - Route derivation is a pure function of (name, definition): same input,
      same routes, same order
    - Resource and relation names are singular in paths (/user/:id); list routes
      and collections are plural (/users, collection "users")
    - Every route closes over shared Stores obtained from the StoreProvider;
      a Resource never builds drivers itself
    - Relation routes come only from the declared relation map (no discovery)

Design Decisions:
    - Explicit route list per relation kind (ADR: no auto-discovery), mirroring the
      handler modules one-to-one
    - Relations use the owner's db config: one definition, one backend
"""

import logging
from collections.abc import Callable

from geck.core.definition import DbConfig, ResourceDefinition
from geck.core.domain_types import HttpMethod, RelationKind
from geck.core.inflection import pluralize, singularize
from geck.core.routing import Route, RouteHandler
from geck.services.handle_many_to_many import ManyToManyHandlers
from geck.services.handle_one_to_many import OneToManyHandlers
from geck.services.handle_one_to_one import OneToOneHandlers
from geck.services.handle_primary import PrimaryHandlers
from geck.services.store import Store

logger = logging.getLogger(__name__)

StoreProvider = Callable[[DbConfig, str], Store]


def collection_name(name: str) -> str:
    """Plural collection backing a resource or relation (user -> users)."""
    return pluralize(singularize(name))


class Resource:
    """One declared resource: owns its handlers, produces its routes."""

    def __init__(
        self, name: str, definition: ResourceDefinition, store_provider: StoreProvider,
    ):
        self.name = singularize(name)
        self.definition = definition
        self._stores = store_provider
        self.store = store_provider(definition.db, collection_name(self.name))

    def routes(self) -> list[Route]:
        """Derive every route for this resource, primary routes first."""
        routes = self._primary_routes()
        relations = self.definition.relations
        for relation in relations.many:
            routes.extend(self._one_to_many_routes(singularize(relation)))
        for relation in relations.one:
            routes.extend(self._one_to_one_routes(singularize(relation)))
        for relation, pivot in relations.many_to_many.items():
            routes.extend(self._many_to_many_routes(singularize(relation), pivot))
        logger.info(
            f"Derived {len(routes)} routes for {self.name}",
            extra={"resource": self.name, "collection": self.store.collection},
        )
        return routes

    # ─── Path Helpers ─────────────────────────────────────────────

    @property
    def _item(self) -> str:
        return f"{self.definition.base}/{self.name}"

    def _route(
        self, method: HttpMethod, path: str, handler: RouteHandler, action: str,
    ) -> Route:
        return Route(method, path, handler, f"{self.name}.{action}")

    # ─── Route Sets ───────────────────────────────────────────────

    def _primary_routes(self) -> list[Route]:
        handlers = PrimaryHandlers(self.name, self.definition, self.store)
        item = self._item
        return [
            self._route(HttpMethod.POST, item, handlers.create, "create"),
            self._route(HttpMethod.POST, f"{item}/:id", handlers.create, "create_with_id"),
            self._route(HttpMethod.GET, f"{item}/:id", handlers.read, "read"),
            self._route(HttpMethod.PUT, f"{item}/:id", handlers.update, "update"),
            self._route(HttpMethod.DELETE, f"{item}/:id", handlers.destroy, "destroy"),
            self._route(
                HttpMethod.GET, f"{self.definition.base}/{pluralize(self.name)}",
                handlers.list, "list",
            ),
        ]

    def _one_to_many_routes(self, relation: str) -> list[Route]:
        handlers = OneToManyHandlers(
            self.name, relation, self.definition, self._relation_store(relation),
        )
        owner = f"{self._item}/:id"
        child = f"{owner}/{relation}/:relation_id"
        kind = RelationKind.MANY.value
        return [
            self._route(HttpMethod.POST, f"{owner}/{relation}", handlers.create,
                        f"{kind}.{relation}.create"),
            self._route(HttpMethod.GET, child, handlers.read, f"{kind}.{relation}.read"),
            self._route(HttpMethod.PUT, child, handlers.update, f"{kind}.{relation}.update"),
            self._route(HttpMethod.DELETE, child, handlers.destroy,
                        f"{kind}.{relation}.destroy"),
            self._route(HttpMethod.GET, f"{owner}/{pluralize(relation)}", handlers.list,
                        f"{kind}.{relation}.list"),
        ]

    def _one_to_one_routes(self, relation: str) -> list[Route]:
        handlers = OneToOneHandlers(
            self.name, relation, self.definition, self.store,
            self._relation_store(relation),
        )
        return [
            self._route(HttpMethod.GET, f"{self._item}/:id/{relation}", handlers.read,
                        f"{RelationKind.ONE.value}.{relation}.read"),
        ]

    def _many_to_many_routes(self, relation: str, pivot: str) -> list[Route]:
        handlers = ManyToManyHandlers(
            self.name, relation, self.definition,
            self._relation_store(pivot), self._relation_store(relation),
        )
        owner = f"{self._item}/:id"
        kind = RelationKind.MANY_TO_MANY.value
        return [
            self._route(HttpMethod.POST, f"{owner}/{relation}", handlers.associate,
                        f"{kind}.{relation}.associate"),
            self._route(HttpMethod.POST, f"{owner}/{relation}/:relation_id",
                        handlers.associate, f"{kind}.{relation}.associate_with_id"),
            self._route(HttpMethod.DELETE, f"{owner}/{relation}/:relation_id",
                        handlers.dissociate, f"{kind}.{relation}.dissociate"),
            self._route(HttpMethod.GET, f"{owner}/{pluralize(relation)}", handlers.list,
                        f"{kind}.{relation}.list"),
        ]

    def _relation_store(self, name: str) -> Store:
        return self._stores(self.definition.db, collection_name(name))
