"""Record Binder — copy values from an external mapping or object onto declared fields.

Invariants:
    - Only declared, non-ignored fields present in the source are assigned
    - Fields absent from the source keep their current value (partial bind)
    - Private attributes (leading underscore) of object sources are never read
    - Strings, bytes and scalars are rejected, never read as empty records

Design Decisions:
    - Returns the subset to assign instead of mutating: the record applies it
    - ignore accepts an iterable or a space-separated string
    - Objects exposing properties() (another record) bind through it; plain objects
      through their public attributes, __dict__ and __slots__ alike
"""

from typing import Any, Iterable, Mapping

from recordgate.core.errors import InvalidSourceTypeError


def _slot_names(source: Any) -> list[str]:
    names = []
    for klass in type(source).__mro__:
        slots = klass.__dict__.get("__slots__", ())
        names.extend((slots,) if isinstance(slots, str) else slots)
    return names


def source_fields(source: Any, record_type: str = "Record") -> Mapping[str, Any]:
    """Extract a field map from a mapping, a record or a plain object."""
    if isinstance(source, Mapping):
        return source
    if isinstance(source, (str, bytes)):
        raise InvalidSourceTypeError(record_type, type(source).__name__)

    properties = getattr(source, "properties", None)
    if callable(properties):
        return properties()

    slots = _slot_names(source)
    if not hasattr(source, "__dict__") and not slots:
        raise InvalidSourceTypeError(record_type, type(source).__name__)

    fields = {
        name: value for name, value in getattr(source, "__dict__", {}).items()
        if not name.startswith("_")
    }
    for name in slots:
        if not name.startswith("_") and hasattr(source, name):
            fields[name] = getattr(source, name)
    return fields


def normalize_ignore(ignore: str | Iterable[str] | None) -> set[str]:
    if not ignore:
        return set()
    if isinstance(ignore, str):
        return {name for name in ignore.split(" ") if name}
    return set(ignore)


def bindable_values(
    declared: Iterable[str],
    source: Any,
    ignore: str | Iterable[str] | None = None,
    record_type: str = "Record",
) -> dict:
    """Values from source that may be assigned to the declared fields."""
    fields = source_fields(source, record_type)
    ignored = normalize_ignore(ignore)
    return {
        name: fields[name] for name in declared
        if not name.startswith("_") and name not in ignored and name in fields
    }
