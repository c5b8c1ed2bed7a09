"""Field and method lookup with promotion through embedded fields.

Follows the checker's selector rules: the shallowest embedding depth wins,
a field and a method are found the same way (so a field shadows a method
of the same name), two hits at the same depth are ambiguous and resolve to
nothing. Methods with a pointer receiver are only selectable when the path
from the operand went through a pointer, either the operand itself or an
embedded ``*T``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ptrequality.ir.types import (
    Interface,
    Method,
    Named,
    Pointer,
    Signature,
    Struct,
    Type,
    TypeParam,
    type_key,
    underlying,
)

# Embedding chains deeper than this are not followed.
MAX_EMBED_DEPTH = 16


class MemberKind(str, Enum):
    FIELD = "field"
    METHOD = "method"


@dataclass(frozen=True)
class Selection:
    kind: MemberKind
    name: str
    type: Type | None            # field type, or the method's signature
    depth: int                   # embedding depth; 0 means declared directly
    indirect: bool               # path went through a pointer
    method: Method | None = None

    @property
    def signature(self) -> Signature | None:
        return self.method.signature if self.method is not None else None


def _method_selection(m: Method, depth: int, indirect: bool) -> Selection:
    return Selection(MemberKind.METHOD, m.name, m.signature, depth, indirect, m)


def _interface_method(t: Type | None, name: str) -> Method | None:
    u = underlying(t)
    if isinstance(u, Interface):
        return u.method_set().get(name)
    return None


def lookup_member(t: Type | None, name: str) -> Selection | None:
    """Find field or method ``name`` on a value of type ``t``."""
    if t is None:
        return None
    indirect = False
    if isinstance(t, Pointer):
        t = t.elem
        indirect = True
        if isinstance(underlying(t), Pointer):
            return None

    current: list[tuple[Type, bool]] = [(t, indirect)]
    seen: set[str] = set()

    for depth in range(MAX_EMBED_DEPTH):
        found: list[Selection] = []
        embedded: list[tuple[Type, bool]] = []

        for typ, ind in current:
            if isinstance(typ, TypeParam):
                m = _interface_method(typ.constraint, name)
                if m is not None:
                    found.append(_method_selection(m, depth, ind))
                continue

            if isinstance(typ, Named):
                key = type_key(typ)
                if key in seen:
                    continue
                seen.add(key)
                m = typ.method(name)
                if m is not None:
                    found.append(_method_selection(m, depth, ind))
                    continue

            u = underlying(typ)
            if isinstance(u, Struct):
                for f in u.fields:
                    if f.name == name:
                        found.append(Selection(MemberKind.FIELD, name, f.type, depth, ind))
                    if f.embedded:
                        ft, fi = f.type, ind
                        if isinstance(ft, Pointer):
                            ft, fi = ft.elem, True
                        embedded.append((ft, fi))
            elif isinstance(u, Interface):
                m = u.method_set().get(name)
                if m is not None:
                    found.append(_method_selection(m, depth, ind))

        if len(found) > 1:
            return None
        if found:
            sel = found[0]
            if sel.method is not None and sel.method.pointer_receiver and not sel.indirect:
                return None
            return sel
        if not embedded:
            return None
        current = embedded

    return None


def lookup_method(t: Type | None, name: str) -> Method | None:
    """Like :func:`lookup_member`, restricted to methods."""
    sel = lookup_member(t, name)
    if sel is None or sel.kind is not MemberKind.METHOD:
        return None
    return sel.method
