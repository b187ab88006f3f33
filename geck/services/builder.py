"""Route Table Builder — merges definitions, shares Stores, freezes the route table.

Invariants:
    - One Store per (driver type, database, params, collection): every resource and
      relation touching a collection shares the same Store and driver
    - build() returns an immutable RouteTable; later builder calls never mutate it
    - Duplicate (method, path) pairs raise DefinitionError at build time
    - Manual routes and resource routes share one namespace and one ordering

Design Decisions:
    - Builder + frozen table instead of a mutable app object (ADR: immutable routing)
    - Registry and context are injected: tests build isolated tables per case
"""

import logging
from collections.abc import Mapping

from geck.core.definition import (
    DbConfig, DefinitionInput, ResourceDefinition, build_definition, merge_definition,
)
from geck.core.domain_types import HttpMethod
from geck.core.errors import DefinitionError
from geck.core.routing import Route, RouteHandler, RouteTable
from geck.drivers.registry import DriverContext, DriverRegistry, default_registry
from geck.services.resource import Resource, collection_name
from geck.services.store import Clock, Store, utc_now

logger = logging.getLogger(__name__)


def _as_definition(defaults: DefinitionInput) -> ResourceDefinition:
    if defaults is None:
        return ResourceDefinition()
    if isinstance(defaults, ResourceDefinition):
        return defaults
    return build_definition(defaults)


class RouteTableBuilder:
    """Collects resources and manual routes, then builds one RouteTable."""

    def __init__(
        self,
        defaults: DefinitionInput = None,
        registry: DriverRegistry | None = None,
        context: DriverContext | None = None,
        clock: Clock = utc_now,
    ):
        self.defaults = _as_definition(defaults)
        self.registry = registry or default_registry()
        self.context = context or DriverContext()
        self._clock = clock
        self._routes: list[Route] = []
        self._stores: dict[tuple, Store] = {}

    @property
    def stores(self) -> tuple[Store, ...]:
        """Every Store built so far, in creation order."""
        return tuple(self._stores.values())

    # ─── Resources ────────────────────────────────────────────────

    def resource(self, name: str, definition: DefinitionInput = None) -> Resource:
        """Register a resource; its derived routes join the table."""
        merged = merge_definition(self.defaults, definition)
        resource = Resource(name, merged, self.store)
        self._routes.extend(resource.routes())
        return resource

    def database(self, name: str) -> Store:
        """Standalone Store for collection `name` using the default db config."""
        return self.store(self.defaults.db, collection_name(name))

    def store(self, db: DbConfig, collection: str) -> Store:
        """Shared Store for (db, collection); builds the driver on first use."""
        key = (db.type, db.name, repr(sorted(db.params.items())), collection)
        if key not in self._stores:
            driver = self.registry.create(db, collection, self.context)
            self._stores[key] = Store(driver, clock=self._clock)
        return self._stores[key]

    # ─── Manual Routes ────────────────────────────────────────────

    def route(
        self, method: HttpMethod | str, path: str, handler: RouteHandler, name: str = "",
    ) -> "RouteTableBuilder":
        method = HttpMethod(method.upper()) if isinstance(method, str) else method
        self._routes.append(Route(method, path, handler, name or f"{method.value} {path}"))
        return self

    def get(self, path: str, handler: RouteHandler, name: str = "") -> "RouteTableBuilder":
        return self.route(HttpMethod.GET, path, handler, name)

    def post(self, path: str, handler: RouteHandler, name: str = "") -> "RouteTableBuilder":
        return self.route(HttpMethod.POST, path, handler, name)

    def put(self, path: str, handler: RouteHandler, name: str = "") -> "RouteTableBuilder":
        return self.route(HttpMethod.PUT, path, handler, name)

    def delete(self, path: str, handler: RouteHandler, name: str = "") -> "RouteTableBuilder":
        return self.route(HttpMethod.DELETE, path, handler, name)

    # ─── Build ────────────────────────────────────────────────────

    def build(self) -> RouteTable:
        """Freeze the collected routes; reject duplicate (method, path) pairs."""
        seen: dict[tuple[HttpMethod, str], Route] = {}
        for route in self._routes:
            if route.key in seen:
                raise DefinitionError(
                    f"Duplicate route {route.method.value} {route.path} "
                    f"({seen[route.key].name} and {route.name})",
                )
            seen[route.key] = route
        logger.info(
            f"Built route table: {len(self._routes)} routes, {len(self._stores)} stores",
        )
        return RouteTable(tuple(self._routes), self.stores)


def build_route_table(
    resources: Mapping[str, DefinitionInput],
    defaults: DefinitionInput = None,
    registry: DriverRegistry | None = None,
    context: DriverContext | None = None,
) -> RouteTable:
    """Derive the route table for every named resource definition."""
    builder = RouteTableBuilder(defaults, registry=registry, context=context)
    for name, definition in resources.items():
        builder.resource(name, definition)
    return builder.build()
