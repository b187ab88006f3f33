"""Driver Registry — explicit mapping from driver name to constructor.

Invariants:
    - Every name -> factory mapping is registered explicitly; nothing is discovered
      by scanning the filesystem
    - default_registry() builds a fresh registry on each call (no process-wide state)
    - Unknown driver names raise UnknownDriverError at build time, never per request
    - DriverContext shares one SQL engine per URL and one snapshot file per path

Design Decisions:
    - Factories receive (DbConfig, collection, DriverContext): backends that need
      shared handles get them from the context instead of module globals
"""

import logging
from collections.abc import Callable

from sqlalchemy import MetaData

from geck.core.definition import DbConfig
from geck.core.driver_protocol import Driver
from geck.core.errors import DefinitionError, UnknownDriverError
from geck.drivers.memory import MemoryDriver
from geck.drivers.sql import SqlDriver
from geck.infrastructure.database import DatabaseSessionManager
from geck.infrastructure.snapshot import SnapshotFile

logger = logging.getLogger(__name__)


class DriverContext:
    """Shared backend handles owned by one route-table builder."""

    def __init__(
        self,
        database_url: str = "sqlite+aiosqlite:///:memory:",
        pool_size: int = 20,
        max_overflow: int = 10,
    ):
        self.database_url = database_url
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._managers: dict[str, DatabaseSessionManager] = {}
        self._metadata: dict[str, MetaData] = {}
        self._snapshots: dict[str, SnapshotFile] = {}

    def sql_manager(self, url: str | None = None) -> DatabaseSessionManager:
        url = url or self.database_url
        if url not in self._managers:
            self._managers[url] = DatabaseSessionManager(
                url, pool_size=self._pool_size, max_overflow=self._max_overflow,
            )
        return self._managers[url]

    def metadata(self, url: str | None = None) -> MetaData:
        return self._metadata.setdefault(url or self.database_url, MetaData())

    def snapshot(self, path: str) -> SnapshotFile:
        if path not in self._snapshots:
            self._snapshots[path] = SnapshotFile(path)
        return self._snapshots[path]


DriverFactory = Callable[[DbConfig, str, DriverContext], Driver]


class DriverRegistry:
    """Routes driver name -> factory. Explicit registration only."""

    def __init__(self):
        self._factories: dict[str, DriverFactory] = {}

    def register(self, name: str, factory: DriverFactory) -> "DriverRegistry":
        if name in self._factories:
            raise DefinitionError(f"Driver '{name}' is already registered")
        self._factories[name] = factory
        return self

    def names(self) -> list[str]:
        return sorted(self._factories)

    def create(self, db: DbConfig, collection: str, context: DriverContext) -> Driver:
        factory = self._factories.get(db.type)
        if factory is None:
            raise UnknownDriverError(db.type, self.names())
        logger.info(
            f"Building {db.type} driver for {db.name}.{collection}",
            extra={"collection": collection},
        )
        return factory(db, collection, context)


def build_memory_driver(db: DbConfig, collection: str, context: DriverContext) -> Driver:
    path = db.params.get("file")
    snapshot = context.snapshot(str(path)) if path else None
    return MemoryDriver(collection, database=db.name, snapshot=snapshot)


def build_sql_driver(db: DbConfig, collection: str, context: DriverContext) -> Driver:
    url = db.params.get("url")
    return SqlDriver(collection, context.sql_manager(url), context.metadata(url))


def default_registry() -> DriverRegistry:
    """Registry with the built-in memory and sql drivers."""
    registry = DriverRegistry()
    registry.register("memory", build_memory_driver)
    registry.register("sql", build_sql_driver)
    return registry
