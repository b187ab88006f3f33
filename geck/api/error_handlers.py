"""Error Handlers — global exception handlers for the GECK API.

Invariants:
    - GeckError → REST envelope {success: false, error, code} with the error's status
    - Exception (catch-all) → 500 envelope, never leaks internal details

Design Decisions:
    - Two-layer handler: domain (GeckError), catch-all (Exception); derived routes
      take no pydantic request models, so there is no validation layer to map
    - Extracted from main.py (ADR: import fan-out < 10)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from geck.core.errors import ErrorSeverity, GeckError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_RESPONSE = {
    "success": False,
    "error": "An unexpected error occurred",
    "code": "INTERNAL_ERROR",
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_geck_error_handler(app)
    _register_generic_error_handler(app)


def _register_geck_error_handler(app: FastAPI) -> None:
    """Register GECK domain/infrastructure error handler."""

    @app.exception_handler(GeckError)
    async def geck_error_handler(request: Request, exc: GeckError):
        """Handle all GECK domain/infrastructure errors."""
        log = logger.error if exc.severity is ErrorSeverity.CRITICAL else logger.warning
        log(
            f"GeckError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True, extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=INTERNAL_ERROR_RESPONSE,
        )
