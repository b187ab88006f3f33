"""Routing Types — routes, the immutable route table and the per-request view.

Invariants:
    - RouteTable is immutable once built (tuple of frozen Routes)
    - (method, path) pairs are unique within a table
    - Handlers are synchronous: they return a pending Completion and never block
    - Paths use ":name" placeholders; the HTTP adapter translates them

Design Decisions:
    - Responder as Protocol: the core never renders, it only hands the adapter a
      place to render into (ADR: rendering belongs to the HTTP shell)
    - basic_response is the default response hook for every CRUD action
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from geck.core.completion import Completion, Outcome
from geck.core.domain_types import HttpMethod


class Responder(Protocol):
    """Rendering surface supplied by the HTTP adapter."""
    def json(self, payload: Any, status_code: int = 200) -> None: ...
    def html(self, markup: str, status_code: int = 200) -> None: ...


@dataclass
class RouteRequest:
    """What a handler sees of an inbound request."""
    params: dict[str, str]
    responder: Responder
    query: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] | None = None


RouteHandler = Callable[[RouteRequest], Completion]
ResponseHook = Callable[[RouteRequest, Completion], None]


def basic_response(request: RouteRequest, completion: Completion) -> None:
    """Default response hook: render the outcome as the JSON envelope."""
    def render(outcome: Outcome) -> None:
        request.responder.json(outcome.to_envelope(), outcome.status_code)
    completion.add_listener(render)


@dataclass(frozen=True)
class Route:
    """One derived (method, path) -> handler binding."""
    method: HttpMethod
    path: str
    handler: RouteHandler = field(compare=False)
    name: str = ""

    @property
    def key(self) -> tuple[HttpMethod, str]:
        return self.method, self.path


@dataclass(frozen=True)
class RouteTable:
    """Immutable result of building every resource and manual route."""
    routes: tuple[Route, ...] = ()
    stores: tuple[Any, ...] = ()

    def __iter__(self) -> Iterator[Route]:
        return iter(self.routes)

    def __len__(self) -> int:
        return len(self.routes)

    def keys(self) -> list[tuple[HttpMethod, str]]:
        """(method, path) pairs in registration order."""
        return [route.key for route in self.routes]

    def find(self, method: HttpMethod | str, path: str) -> Route | None:
        method = HttpMethod(method.upper()) if isinstance(method, str) else method
        for route in self.routes:
            if route.key == (method, path):
                return route
        return None

    async def connect(self) -> None:
        """Establish every store's backend connection."""
        for store in self.stores:
            await store.connect()

    async def close(self) -> None:
        for store in self.stores:
            await store.close()
