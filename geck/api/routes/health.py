"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 until every Store's driver reports ready
    - Once every Store is ready, each is pinged; an unreachable backend is 503
      with reason database_unavailable

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      load balancer (ADR: production readiness)
    - Readiness reads the route table from app.state: no module-level globals
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from geck.config import get_settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {"status": "healthy", "service": get_settings().app_name}


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — every collection's driver must be connected."""
    table = getattr(request.app.state, "route_table", None)
    stores = table.stores if table is not None else ()
    pending = sorted(store.collection for store in stores if not store.is_ready)
    if table is None or pending:
        logger.warning(f"Not ready, pending collections: {pending}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "pending": pending},
        )
    unreachable = sorted(
        [store.collection for store in stores if not await store.ping()],
    )
    if unreachable:
        logger.warning(f"Not ready, unreachable collections: {unreachable}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
                "unreachable": unreachable,
            },
        )
    return {
        "status": "ready",
        "checks": {store.collection: "ready" for store in stores},
    }
