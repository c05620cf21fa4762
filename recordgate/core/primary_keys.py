"""Primary-Key Resolver — canonical key lists and key/value maps for row targeting.

Invariants:
    - normalize_keys() preserves configured order; never empty, never duplicated
    - A bare scalar key is only accepted when the table has exactly one key column
    - resolve_primary_key() never returns a map with a None value (NullPrimaryKeyError instead)
    - resolve_match_fields() returns None for "no key to match": a valid no-op, not an error

Design Decisions:
    - Pure functions over the record's field map: testable without a database
    - Tuples are positional composite keys: publish([(1, 2), (1, 3)]) reads naturally
"""

from typing import Any, Iterable, Mapping

from recordgate.core.domain_types import is_empty
from recordgate.core.errors import (
    KeySpecError,
    MultiKeyScalarError,
    NullPrimaryKeyError,
)


def normalize_keys(table_name: str, keys: str | Iterable[str]) -> tuple[str, ...]:
    """Turn a single key name or an ordered collection into the canonical tuple."""
    if isinstance(keys, str):
        normalized = (keys,)
    else:
        normalized = tuple(keys)
    if not normalized or len(set(normalized)) != len(normalized):
        raise KeySpecError(table_name, list(normalized))
    if not all(isinstance(k, str) and k for k in normalized):
        raise KeySpecError(table_name, list(normalized))
    return normalized


def key_value_map(table_name: str, keys: tuple[str, ...], pk: Any) -> dict:
    """Map a scalar, tuple or mapping key value onto the key columns."""
    if isinstance(pk, Mapping):
        return dict(pk)
    if isinstance(pk, tuple):
        if len(pk) != len(keys):
            raise KeySpecError(table_name, list(pk))
        return dict(zip(keys, pk))
    if len(keys) > 1:
        raise MultiKeyScalarError(table_name, len(keys))
    return {keys[0]: pk}


def resolve_primary_key(
    table_name: str,
    keys: tuple[str, ...],
    current: Mapping[str, Any],
    pk: Any = None,
) -> dict:
    """Key map for a row-targeting write.

    Missing or None components fall back to the record's current values.
    """
    supplied = {} if pk is None else key_value_map(table_name, keys, pk)
    resolved = {}
    for key in keys:
        value = supplied.get(key)
        if value is None:
            value = current.get(key)
        if value is None:
            raise NullPrimaryKeyError(table_name, key)
        resolved[key] = value
    return resolved


def resolve_match_fields(
    table_name: str,
    keys: tuple[str, ...],
    current: Mapping[str, Any],
    supplied: Any = None,
) -> dict | None:
    """Field map for load(). None means there is nothing to match."""
    if supplied is None or (isinstance(supplied, Mapping) and not supplied):
        values = {key: current.get(key) for key in keys}
        if all(is_empty(v) for v in values.values()):
            return None
        for key, value in values.items():
            if value is None:
                raise NullPrimaryKeyError(table_name, key)
        return values

    fields = key_value_map(table_name, keys, supplied)
    for key in keys:
        if key in fields and fields[key] is None:
            raise NullPrimaryKeyError(table_name, key)
    return fields


def complete_primary_key(
    keys: tuple[str, ...],
    current: Mapping[str, Any],
    supplied: Mapping[str, Any] | None = None,
) -> dict:
    """Supplied key values, completed with non-empty current values."""
    result = dict(supplied or {})
    for key in keys:
        if result.get(key) is None and not is_empty(current.get(key)):
            result[key] = current[key]
    return result


def _same_key_value(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is b
    return a == b or str(a) == str(b)


def key_matches(keys: tuple[str, ...], current: Mapping[str, Any], pk: Mapping[str, Any]) -> bool:
    """True if pk identifies the row currently held in memory.

    Values compare by their text form too: "1" from a request matches a loaded 1.
    """
    return all(_same_key_value(current.get(key), pk.get(key)) for key in keys)
