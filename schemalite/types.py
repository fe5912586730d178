"""Type registry mapping symbolic type names to validation predicates."""

import datetime
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Callable, Collection, Dict, NamedTuple, Optional

DEFAULT_TYPE = "string"

Predicate = Callable[[Any], bool]


class TypeInfo(NamedTuple):
    tag: str
    predicate: Optional[Predicate]


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_number(value: Any) -> bool:
    # bool is an int subclass but never counts as a number here
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def is_int(value: Any) -> bool:
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, int) and not isinstance(value, bool)


def is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_date(value: Any) -> bool:
    return isinstance(value, datetime.date)


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def is_empty(value: Any) -> bool:
    """Return True for None and the empty string."""
    return value is None or (isinstance(value, str) and value == "")


_predicates: Dict[str, Optional[Predicate]] = {
    "string": is_string,
    "object": is_object,
    "number": is_number,
    "int": is_int,
    "float": is_number,
    "date": is_date,
    "array": is_array,
    "bool": is_bool,
}

_aliases: Dict[str, str] = {
    "boolean": "bool",
    "integer": "int",
    "datetime": "date",
    "str": "string",
    "dict": "object",
    "list": "array",
}


def canonical_tag(type_name: Any) -> str:
    """Resolve aliases and fall back to DEFAULT_TYPE for unknown names."""
    if not isinstance(type_name, str):
        return DEFAULT_TYPE
    tag = _aliases.get(type_name, type_name)
    if tag not in _predicates:
        return DEFAULT_TYPE
    return tag


def resolve(type_name: Any) -> TypeInfo:
    tag = canonical_tag(type_name)
    return TypeInfo(tag, _predicates[tag])


def register_type(
    tag: str, predicate: Optional[Predicate], aliases: Collection[str] = ()
) -> None:
    """Register a custom type tag, optionally with aliases.

    Registering an existing tag replaces its predicate. A ``None`` predicate
    accepts every value.
    """
    if not isinstance(tag, str) or not tag:
        raise TypeError("type tag must be a non-empty string.")
    if predicate is not None and not callable(predicate):
        raise TypeError(f"predicate for type '{tag}' must be callable")
    _predicates[tag] = predicate
    for alias in aliases:
        _aliases[alias] = tag


def registered_types() -> Dict[str, Optional[Predicate]]:
    return dict(_predicates)
