"""Domain Types — identity helpers and enum values.

Tests:
    - normalize_id always yields the string form
    - foreign_key names follow `{name}_id`
    - Enums serialize to their string values
"""

from uuid import UUID

from geck.core.domain_types import (
    ID_FIELD, HttpMethod, OutcomeState, RelationKind, foreign_key, normalize_id,
)


def test_normalize_id_stringifies():
    assert normalize_id(7) == "7"
    assert normalize_id("abc") == "abc"
    uid = UUID("12345678-1234-5678-1234-567812345678")
    assert normalize_id(uid) == "12345678-1234-5678-1234-567812345678"


def test_foreign_key_suffix():
    assert foreign_key("user") == "user_id"
    assert ID_FIELD == "_id"


def test_http_methods():
    assert {m.value for m in HttpMethod} == {"GET", "POST", "PUT", "DELETE"}


def test_relation_kinds_serialize_to_strings():
    assert RelationKind.MANY_TO_MANY.value == "many_to_many"
    assert OutcomeState.PENDING == "pending"
