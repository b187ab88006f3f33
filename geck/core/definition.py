"""Resource Definition — the one structured configuration type for a resource.

Invariants:
    - Definitions are frozen pydantic models, validated once at construction
    - Unknown top-level keys are rejected (typos fail at startup, not per request)
    - merge_definition merges user input over defaults; `db` merges key-by-key,
      every other field is replaced wholesale
    - Relation names are stored as declared; Resource singularizes them

Design Decisions:
    - Pydantic over hand-rolled checks: type coercion and error reporting for free
    - `validate` is exposed through an alias: the attribute name is taken on BaseModel
    - DbConfig allows extra keys: backend params (url, file, ...) vary per driver
"""

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from geck.core.domain_types import Record
from geck.core.errors import DefinitionError
from geck.core.routing import ResponseHook, basic_response


def accept_all(record: Record) -> bool:
    """Default validator: every payload passes."""
    return True


def no_hook(record: Record) -> None:
    """Default lifecycle hook."""
    return None


class DbConfig(BaseModel):
    """Backend selection plus driver-specific connection params."""
    model_config = ConfigDict(extra="allow", frozen=True)

    type: str = "memory"
    name: str = "geck"

    @property
    def params(self) -> dict[str, Any]:
        """Driver-specific extras (url, file, ...)."""
        return dict(self.model_extra or {})


class RelationMap(BaseModel):
    """Declared relations. Route sets are a pure function of this map."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    many: tuple[str, ...] = ()
    one: tuple[str, ...] = ()
    many_to_many: dict[str, str] = Field(default_factory=dict)

    @field_validator("many", "one")
    @classmethod
    def reject_duplicates(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if len(set(v)) != len(v):
            raise ValueError("relation names must be unique")
        return v


class ResourceDefinition(BaseModel):
    """Complete declarative definition of one resource."""
    model_config = ConfigDict(
        extra="forbid", frozen=True, populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    base: str = ""
    db: DbConfig = Field(default_factory=DbConfig)
    relations: RelationMap = Field(default_factory=RelationMap)
    validate_record: Callable[[Record], bool] = Field(
        default=accept_all, alias="validate",
    )
    after_create: Callable[[Record], Any] = no_hook
    after_update: Callable[[Record], Any] = no_hook
    allow_forced_ids: bool = False
    destructive: bool = False

    # Response hooks: attach rendering to the request's completion
    list: ResponseHook = basic_response
    read: ResponseHook = basic_response
    create: ResponseHook = basic_response
    update: ResponseHook = basic_response
    destroy: ResponseHook = basic_response

    @field_validator("base")
    @classmethod
    def normalize_base(cls, v: str) -> str:
        """Store the prefix as '' or '/prefix' (no trailing slash)."""
        v = v.strip().strip("/")
        return f"/{v}" if v else ""


DefinitionInput = ResourceDefinition | Mapping[str, Any] | None


def merge_definition(
    defaults: ResourceDefinition, overrides: DefinitionInput,
) -> ResourceDefinition:
    """Merge user input over defaults and validate the result once."""
    if overrides is None:
        return defaults
    if isinstance(overrides, ResourceDefinition):
        overrides = {
            name: getattr(overrides, name) for name in overrides.model_fields_set
        }
    merged: dict[str, Any] = {
        name: getattr(defaults, name) for name in ResourceDefinition.model_fields
    }
    for key, value in overrides.items():
        name = "validate_record" if key == "validate" else key
        if name == "db":
            value = _merge_db(defaults.db, value)
        merged[name] = value
    return build_definition(merged)


def build_definition(raw: Mapping[str, Any]) -> ResourceDefinition:
    """Validate raw input into a ResourceDefinition or raise DefinitionError."""
    try:
        return ResourceDefinition.model_validate(dict(raw))
    except ValidationError as e:
        raise DefinitionError(f"Invalid resource definition: {e}") from e


def _merge_db(defaults: DbConfig, override: DbConfig | Mapping[str, Any] | None) -> DbConfig:
    if override is None:
        return defaults
    if isinstance(override, DbConfig):
        override = override.model_dump(include=override.model_fields_set | set(override.params))
    try:
        return DbConfig.model_validate({**defaults.model_dump(), **dict(override)})
    except ValidationError as e:
        raise DefinitionError(f"Invalid db config: {e}") from e
