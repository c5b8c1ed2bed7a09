"""Zero-footprint classification of types."""

from __future__ import annotations

from enum import Enum

from ptrequality.ir.types import Array, Named, Struct, Tuple, Type, TypeParam


class SizeClass(str, Enum):
    ZERO = "zero"
    NON_ZERO = "non_zero"
    UNKNOWN = "unknown"      # depends on an unresolved type parameter


def size_class(t: Type | None) -> SizeClass:
    """Zero for empty structs, zero-length arrays and aggregates of those."""
    return _size(t, frozenset())


def _size(t: Type | None, seen: frozenset[int]) -> SizeClass:
    if isinstance(t, Named):
        if id(t) in seen:
            return SizeClass.UNKNOWN
        seen = seen | {id(t)}
        return _size(t.underlying, seen)

    match t:
        case None | TypeParam():
            return SizeClass.UNKNOWN
        case Array(length=0):
            return SizeClass.ZERO
        case Array(elem=elem):
            return _size(elem, seen)
        case Struct(fields=fields):
            return _aggregate((f.type for f in fields), seen)
        case Tuple(elems=elems):
            return _aggregate(elems, seen)
        case _:
            return SizeClass.NON_ZERO


def _aggregate(types, seen: frozenset[int]) -> SizeClass:
    result = SizeClass.ZERO
    for t in types:
        s = _size(t, seen)
        if s is SizeClass.NON_ZERO:
            return s
        if s is SizeClass.UNKNOWN:
            result = s
    return result
