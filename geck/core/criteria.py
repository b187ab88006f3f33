"""List Criteria — exact-match and "value in set" matching over records.

Invariants:
    - None or {} criteria match every record
    - A plain value matches by equality; {"$in": [...]} matches by membership
    - Any other operator mapping is rejected (ValidationFailureError), never ignored
    - Identity expectations are compared as strings once prepared (prepare)

Design Decisions:
    - Mongo-style "$in" operator: the relation engine only needs one set operator
    - Pure functions, shared by every driver that filters in process
"""

from collections.abc import Iterable, Mapping

from geck.core.domain_types import ID_FIELD, Criteria, Record, normalize_id
from geck.core.errors import ValidationFailureError

IN_OPERATOR = "$in"


def in_set(values: Iterable[object]) -> dict:
    """Build an "in set" expectation: {"$in": [...]}."""
    return {IN_OPERATOR: list(values)}


def matches(record: Record, criteria: Criteria | None) -> bool:
    """True if every criterion holds for record."""
    if not criteria:
        return True
    return all(
        field in record and _matches_value(record[field], expected)
        for field, expected in criteria.items()
    )


def prepare(criteria: Criteria | None) -> Criteria | None:
    """Validate operators and coerce the ID_FIELD expectation to strings.

    Returns None for empty criteria so callers can skip filtering.
    """
    if not criteria:
        return None
    prepared = {}
    for field, expected in criteria.items():
        if isinstance(expected, Mapping):
            values = _in_values(expected)
            if field == ID_FIELD:
                values = [normalize_id(v) for v in values]
            expected = in_set(values)
        elif field == ID_FIELD:
            expected = normalize_id(expected)
        prepared[field] = expected
    return prepared


def split_field(
    criteria: Criteria | None, field: str,
) -> tuple[object | None, Criteria]:
    """Separate one field's expectation from the rest of the criteria."""
    rest = dict(criteria or {})
    return rest.pop(field, None), rest


def in_values(expected: object) -> list | None:
    """Values of an "in set" expectation, or None for a plain value."""
    if isinstance(expected, Mapping):
        return _in_values(expected)
    return None


def _matches_value(actual: object, expected: object) -> bool:
    if isinstance(expected, Mapping):
        return actual in _in_values(expected)
    return actual == expected


def _in_values(expected: Mapping) -> list:
    if set(expected) != {IN_OPERATOR}:
        raise ValidationFailureError(
            f"Unsupported criteria operator(s): {', '.join(sorted(map(str, expected)))}",
        )
    values = expected[IN_OPERATOR]
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise ValidationFailureError(f"'{IN_OPERATOR}' expects a list of values")
    return list(values)
