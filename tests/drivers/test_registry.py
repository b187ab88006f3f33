"""Driver Registry — explicit name -> factory mapping.

Tests:
    - default_registry() knows memory and sql, fresh per call
    - Unknown names raise UnknownDriverError; duplicate registration fails
    - Memory factory wires the snapshot file; sql factory shares one manager per URL
    - Custom drivers can be registered and are used by the builder
"""

import pytest

from geck.core.definition import DbConfig
from geck.core.errors import DefinitionError, UnknownDriverError
from geck.drivers.memory import MemoryDriver
from geck.drivers.registry import DriverContext, DriverRegistry, default_registry
from geck.drivers.sql import SqlDriver
from geck.services.builder import RouteTableBuilder
from tests.helpers import SQLITE_MEMORY_URL


def test_default_registry_has_builtin_drivers():
    assert default_registry().names() == ["memory", "sql"]
    assert default_registry() is not default_registry()


def test_unknown_driver_is_rejected():
    with pytest.raises(UnknownDriverError):
        default_registry().create(DbConfig(type="mongo"), "users", DriverContext())


def test_duplicate_registration_is_rejected():
    registry = default_registry()
    with pytest.raises(DefinitionError):
        registry.register("memory", lambda db, collection, context: None)


def test_memory_factory_uses_snapshot_file(tmp_path):
    path = str(tmp_path / "db.json")
    context = DriverContext()
    driver = default_registry().create(
        DbConfig(type="memory", file=path), "users", context,
    )
    assert isinstance(driver, MemoryDriver)
    assert driver._snapshot is context.snapshot(path)


async def test_sql_factory_shares_manager_per_url():
    context = DriverContext()
    registry = default_registry()
    db = DbConfig(type="sql", url=SQLITE_MEMORY_URL)
    users = registry.create(db, "users", context)
    tags = registry.create(db, "tags", context)
    assert isinstance(users, SqlDriver)
    assert users._manager is tags._manager
    await users.close()


async def test_custom_driver_is_used_by_builder():
    built = []

    def build_tracking_driver(db, collection, context):
        built.append(collection)
        return MemoryDriver(collection, database=db.name)

    registry = DriverRegistry().register("tracking", build_tracking_driver)
    builder = RouteTableBuilder({"db": {"type": "tracking"}}, registry=registry)
    builder.resource("user", {"relations": {"many": ["post"]}})
    assert built == ["users", "posts"]


def test_builder_fails_fast_on_unknown_driver():
    with pytest.raises(UnknownDriverError):
        RouteTableBuilder({"db": {"type": "mongo"}}).resource("user")
