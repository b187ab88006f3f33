"""Database Session Manager — async engine, sessions with automatic rollback, health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - SQLAlchemy exceptions escaping a session map to StorageFailureError (core/errors.py),
      keeping the backend message
    - Domain errors raised inside a session (GeckError) roll back and propagate unchanged
    - One manager per database URL, shared by every SQL driver on that URL
    - In-memory SQLite runs one session (or DDL block) at a time: all of them share a
      single connection, so one session's rollback would discard another's insert

Design Decisions:
    - expire_on_commit=False: prevents lazy-load issues in async context
    - In-memory SQLite uses StaticPool: every session must see the same database
    - Pool sizing only applies to server databases (SQLite has no pool to size)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncConnection, AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from geck.core.errors import GeckError, StorageFailureError

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.database_url = database_url
        options = _engine_options(database_url, pool_size, max_overflow)
        self.engine = create_async_engine(database_url, **options)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        # StaticPool hands every caller the same connection
        self._exclusive = (
            asyncio.Lock() if options.get("poolclass") is StaticPool else None
        )

    @property
    def serialized(self) -> bool:
        return self._exclusive is not None

    @asynccontextmanager
    async def _turn(self) -> AsyncGenerator[None, None]:
        if self._exclusive is None:
            yield
            return
        async with self._exclusive:
            yield

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        async with self._turn():
            session = self._session_factory()
            try:
                yield session
            except GeckError:
                await session.rollback()
                raise
            except IntegrityError as e:
                await session.rollback()
                logger.error(f"DB integrity error: {e}")
                raise StorageFailureError.from_exception(e, "commit") from e
            except OperationalError as e:
                await session.rollback()
                logger.error(f"DB operational error: {e}")
                raise StorageFailureError.from_exception(e, "execute") from e
            except DBAPIError as e:
                await session.rollback()
                logger.error(f"DB driver error: {e}")
                raise StorageFailureError.from_exception(e, "query") from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"SQLAlchemy error: {e}")
                raise StorageFailureError.from_exception(e, "unknown") from e
            finally:
                await session.close()

    @asynccontextmanager
    async def begin(self) -> AsyncGenerator[AsyncConnection, None]:
        """Connection in a transaction (DDL), taking its turn like a session."""
        async with self._turn():
            async with self.engine.begin() as conn:
                yield conn

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except StorageFailureError as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict:
    if not database_url.startswith("sqlite"):
        return {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
        }
    if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
        return {"poolclass": StaticPool}
    return {}
