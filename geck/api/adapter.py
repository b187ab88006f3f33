"""Route Adapter — binds a RouteTable onto a FastAPI router.

Invariants:
    - One FastAPI route per table route; ":name" placeholders become "{name}"
    - Handlers receive path params, query params and the parsed JSON body as a
      RouteRequest; a body that is not a JSON object is a ValidationFailureError
    - Every request awaits its Completion with the configured timeout
    - The response is whatever the response hook rendered; if no hook rendered,
      the outcome's envelope is returned

Design Decisions:
    - Raw Request over pydantic body models: resources are schemaless, the
      definition's validate() is the only payload gate
    - CapturedResponse as the Responder: the core renders into it, the adapter
      returns it (ADR: rendering belongs to the HTTP shell)
"""

import json
import logging
import re
from typing import Any

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse, Response

from geck.core.errors import ValidationFailureError
from geck.core.routing import Route, RouteRequest, RouteTable

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r":(\w+)")
_BODY_METHODS = {"POST", "PUT"}


class CapturedResponse:
    """Responder that keeps the last rendered response."""

    def __init__(self):
        self.response: Response | None = None

    def json(self, payload: Any, status_code: int = 200) -> None:
        self.response = JSONResponse(
            content=jsonable_encoder(payload), status_code=status_code,
        )

    def html(self, markup: str, status_code: int = 200) -> None:
        self.response = HTMLResponse(content=markup, status_code=status_code)


def fastapi_path(path: str) -> str:
    """Translate ":name" placeholders to FastAPI's "{name}" syntax."""
    return _PLACEHOLDER.sub(r"{\1}", path) or "/"


def build_router(table: RouteTable, timeout: float | None = None) -> APIRouter:
    """One APIRouter carrying every route of the table."""
    router = APIRouter()
    for route in table:
        router.add_api_route(
            fastapi_path(route.path),
            _endpoint(route, timeout),
            methods=[route.method.value],
            name=route.name,
        )
    logger.info(f"Bound {len(table)} routes")
    return router


def _endpoint(route: Route, timeout: float | None):
    async def endpoint(request: Request) -> Response:
        body = await _read_body(request) if route.method.value in _BODY_METHODS else None
        responder = CapturedResponse()
        completion = route.handler(RouteRequest(
            params=dict(request.path_params),
            responder=responder,
            query=dict(request.query_params),
            body=body,
        ))
        outcome = await completion.wait(timeout)
        if responder.response is None:
            return JSONResponse(
                content=jsonable_encoder(outcome.to_envelope()),
                status_code=outcome.status_code,
            )
        return responder.response

    endpoint.__name__ = route.name.replace(".", "_") or "endpoint"
    return endpoint


async def _read_body(request: Request) -> dict | None:
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise ValidationFailureError("Request body is not valid JSON") from e
    if not isinstance(body, dict):
        raise ValidationFailureError("Request body must be a JSON object")
    return body
