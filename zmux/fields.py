"""Tri-state request fields: omitted, explicit null, or a concrete value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterable, Mapping, TypeVar

T = TypeVar("T")

_INT_MIN, _INT_MAX = -(1 << 63), (1 << 63) - 1
_UINT_MAX = (1 << 64) - 1


class RequestError(ValueError):
    """Raised when a request body does not have the expected shape."""


class _Unsigned:
    def __repr__(self) -> str:
        return "UINT"


UINT: Any = _Unsigned()
"""Field kind for non-negative integers."""


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return f"number {value}"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _decode(value: Any, key: str, kind: Any) -> Any:
    if kind is str:
        if isinstance(value, str):
            return value
        expected = "string"
    elif kind is bool:
        if isinstance(value, bool):
            return value
        expected = "bool"
    elif kind is int or kind is UINT:
        low, high, expected = (0, _UINT_MAX, "uint") if kind is UINT else (_INT_MIN, _INT_MAX, "int")
        if isinstance(value, int) and not isinstance(value, bool) and low <= value <= high:
            return value
    else:
        if isinstance(value, Mapping):
            return kind.from_json(value)
        expected = "object"
    raise RequestError(f"cannot unmarshal {_json_type(value)} into field {key} of type {expected}")


@dataclass(frozen=True)
class Field(Generic[T]):
    """A request property that may be omitted, explicitly null, or carry a value.

    ``kind`` is ``str``, ``bool``, ``int``, ``UINT`` or a class with a
    ``from_json`` classmethod that accepts a mapping.
    """

    value: T | None = None
    is_set: bool = False
    is_null: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], key: str, kind: Any) -> Field[Any]:
        folded = key.casefold()
        matches = [name for name in data if name == key or name.casefold() == folded]
        if not matches:
            return cls()
        raw = data[matches[-1]]
        if raw is None:
            return cls(is_set=True, is_null=True)
        return cls(value=_decode(raw, key, kind), is_set=True)


def reject_unknown(data: Any, allowed: Iterable[str]) -> Mapping[str, Any]:
    """Return ``data`` if it is an object holding only ``allowed`` keys; raise otherwise."""
    if not isinstance(data, Mapping):
        raise RequestError(f"cannot unmarshal {_json_type(data)} into object")
    known = {name.casefold() for name in allowed}
    for name in data:
        if name.casefold() not in known:
            raise RequestError(f'unknown field "{name}"')
    return data