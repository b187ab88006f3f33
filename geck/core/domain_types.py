"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ID_FIELD is the only public identity field; backends never leak their native ids
    - RecordId is always a str at the Driver boundary (normalize_id)
    - Timestamp fields are owned by the Store layer, never by callers or drivers
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
    - Path params arrive as strings, so identities are normalized to str everywhere
"""

from enum import Enum
from typing import Any, NewType


# ─── Identity Types ──────────────────────────────────────────────

RecordId = NewType("RecordId", str)

Record = dict[str, Any]
Criteria = dict[str, Any]

ID_FIELD = "_id"
CREATED_AT = "created_at"
UPDATED_AT = "updated_at"
TIMESTAMP_FIELDS = (CREATED_AT, UPDATED_AT)


def normalize_id(value: object) -> RecordId:
    """Coerce any identity value to its public string form."""
    return RecordId(str(value))


def foreign_key(name: str) -> str:
    """Foreign-key field referencing resource `name` (user -> user_id)."""
    return f"{name}_id"


# ─── Enums ───────────────────────────────────────────────────────

class HttpMethod(str, Enum):
    """HTTP verbs a derived route can bind to."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class RelationKind(str, Enum):
    """Declared relation flavours — each maps to its own route set."""
    MANY = "many"
    ONE = "one"
    MANY_TO_MANY = "many_to_many"


class OutcomeState(str, Enum):
    """Request lifecycle states. RESOLVED_* are terminal."""
    PENDING = "pending"
    RESOLVED_SUCCESS = "resolved_success"
    RESOLVED_ERROR = "resolved_error"
