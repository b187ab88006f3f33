"""GECK API — FastAPI application factory.

Invariants:
    - Routes registered explicitly: health router, then the derived route table
    - Global error handlers map GeckError → REST envelope responses
    - CORS configured from settings (not hardcoded)
    - Every Store connects on startup and closes on shutdown via the lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
      (ADR: FastAPI 0.128)
    - Factory over module-level app: the route table is user input, so each
      application (and each test) builds its own
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geck.api.adapter import build_router
from geck.api.error_handlers import register_error_handlers
from geck.api.routes import health
from geck.config import Settings, get_settings
from geck.core.routing import RouteTable
from geck.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


def create_app(table: RouteTable, settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application serving table."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        await table.connect()
        logger.info(f"{settings.app_name} started with {len(table)} routes")
        yield
        logger.info(f"{settings.app_name} shutting down")
        await table.close()

    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.state.route_table = table

    # CORS: configured from settings, not hardcoded
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes: explicit registration
    app.include_router(health.router)
    app.include_router(build_router(table, settings.request_timeout_seconds))

    register_error_handlers(app)
    return app
