"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Connection strings and paths come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache), single instance per process
    - default_definition() is the only place settings become resource defaults

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for every setting: `memory` driver works with no environment at all
    - GECK_ env prefix: settings never collide with unrelated process variables
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from geck.core.definition import DbConfig, ResourceDefinition, build_definition
from geck.drivers.registry import DriverContext


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="GECK_", case_sensitive=False,
    )

    app_name: str = "GECK"
    base_path: str = ""

    # Storage
    default_driver: str = "memory"
    database_name: str = "geck"
    database_url: str = "sqlite+aiosqlite:///:memory:"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    memory_snapshot_file: str | None = None

    # Requests
    request_timeout_seconds: float = 30.0

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def default_definition(settings: Settings) -> ResourceDefinition:
    """Builder defaults derived from settings (base path and db config)."""
    db: dict = {"type": settings.default_driver, "name": settings.database_name}
    if settings.default_driver == "sql":
        db["url"] = settings.database_url
    elif settings.memory_snapshot_file:
        db["file"] = settings.memory_snapshot_file
    return build_definition({"base": settings.base_path, "db": DbConfig(**db)})


def driver_context(settings: Settings) -> DriverContext:
    """Shared backend handles sized from settings."""
    return DriverContext(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
