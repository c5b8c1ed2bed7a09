"""Type descriptors: the read-only view of the host's type checker.

Shapes mirror what a Go type checker hands out: basic and named types,
pointers, arrays, slices, maps, channels, structs (with embedded fields),
tuples, signatures, interfaces and type parameters. Named types carry
their declared methods; generic named types are instantiated lazily so
recursive generics never loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Basic:
    name: str          # "int", "bool", "string", "untyped nil", ...


@dataclass(frozen=True)
class Pointer:
    elem: Type


@dataclass(frozen=True)
class Array:
    length: int
    elem: Type


@dataclass(frozen=True)
class Slice:
    elem: Type


@dataclass(frozen=True)
class Map:
    key: Type
    value: Type


@dataclass(frozen=True)
class Chan:
    elem: Type
    direction: str = ""   # "", "send", "recv"


@dataclass(frozen=True)
class Field:
    name: str
    type: Type
    embedded: bool = False


@dataclass(frozen=True)
class Struct:
    fields: tuple[Field, ...] = ()


@dataclass(frozen=True)
class Tuple:
    elems: tuple[Type, ...] = ()


@dataclass(frozen=True)
class Signature:
    params: tuple[Type, ...] = ()
    results: tuple[Type, ...] = ()
    variadic: bool = False


@dataclass(frozen=True)
class Method:
    name: str
    signature: Signature
    pointer_receiver: bool = False


@dataclass(frozen=True)
class Interface:
    methods: tuple[Method, ...] = ()
    embeds: tuple[Type, ...] = ()

    def method_set(self) -> dict[str, Method]:
        """Explicit methods plus those of embedded interfaces."""
        result: dict[str, Method] = {}
        for embedded in self.embeds:
            inner = underlying(embedded)
            if isinstance(inner, Interface):
                result.update(inner.method_set())
        for m in self.methods:
            result[m.name] = m
        return result


@dataclass(eq=False)
class TypeParam:
    """A type parameter; identity matters, two ``T``s are different types."""
    name: str
    constraint: Type | None = None


class Named:
    """A declared type. Identity-compared, like the checker's objects.

    Generic instances keep a reference to their origin and substitute the
    type arguments into the underlying type and methods on first access.
    The substituted results are memoized on the instance, and the origin
    keeps its instances; nothing else about a type changes after loading.
    """

    def __init__(
        self,
        name: str,
        package: str = "",
        underlying: Type | None = None,
        methods: list[Method] | None = None,
        type_params: tuple[TypeParam, ...] = (),
    ) -> None:
        self.name = name
        self.package = package
        self.type_params = type_params
        self.type_args: tuple[Type, ...] = ()
        self.origin: Named | None = None
        self._underlying = underlying
        self._methods: list[Method] = list(methods or [])
        self._mapping: dict[TypeParam, Type] | None = None
        self._instances: dict[str, Named] = {}

    @property
    def underlying(self) -> Type | None:
        if self._mapping is not None and self._underlying is None and self.origin is not None:
            base = self.origin.underlying
            self._underlying = substitute(base, self._mapping) if base is not None else None
        return self._underlying

    @underlying.setter
    def underlying(self, value: Type | None) -> None:
        self._underlying = value

    @property
    def methods(self) -> list[Method]:
        if self.origin is not None and self._mapping is not None:
            base = self.origin.methods
            # origins only ever gain methods, so a length change means new ones
            if len(self._methods) != len(base):
                self._methods = [
                    Method(m.name, substitute(m.signature, self._mapping), m.pointer_receiver)
                    for m in base
                ]
        return self._methods

    def add_method(self, method: Method) -> None:
        if self.origin is not None:
            self.origin.add_method(method)
            return
        if self.method(method.name) is None:
            self._methods.append(method)

    def method(self, name: str) -> Method | None:
        for m in self.methods:
            if m.name == name:
                return m
        return None

    @property
    def package_name(self) -> str:
        return package_name(self.package)

    def __repr__(self) -> str:
        return f"Named({type_string(self)})"


Type = Union[
    Basic, Named, Pointer, Array, Slice, Map, Chan, Struct, Tuple,
    Signature, Interface, TypeParam,
]


# ── Universe ────────────────────────────────────────────────────────────────

BOOL = Basic("bool")
INT = Basic("int")
INT8 = Basic("int8")
INT16 = Basic("int16")
INT32 = Basic("int32")
INT64 = Basic("int64")
UINT = Basic("uint")
UINT8 = Basic("uint8")
BYTE = Basic("byte")           # alias of uint8, kept apart for printing
RUNE = Basic("rune")           # alias of int32
UINT16 = Basic("uint16")
UINT32 = Basic("uint32")
UINT64 = Basic("uint64")
UINTPTR = Basic("uintptr")
FLOAT32 = Basic("float32")
FLOAT64 = Basic("float64")
COMPLEX64 = Basic("complex64")
COMPLEX128 = Basic("complex128")
STRING = Basic("string")
UNTYPED_NIL = Basic("untyped nil")

ERROR = Named(
    "error",
    underlying=Interface(methods=(Method("Error", Signature(results=(STRING,))),)),
)
ANY = Interface()

PREDECLARED_TYPES: dict[str, Type] = {
    "bool": BOOL,
    "int": INT,
    "int8": INT8,
    "int16": INT16,
    "int32": INT32,
    "rune": RUNE,
    "int64": INT64,
    "uint": UINT,
    "uint8": UINT8,
    "byte": BYTE,
    "uint16": UINT16,
    "uint32": UINT32,
    "uint64": UINT64,
    "uintptr": UINTPTR,
    "float32": FLOAT32,
    "float64": FLOAT64,
    "complex64": COMPLEX64,
    "complex128": COMPLEX128,
    "string": STRING,
    "error": ERROR,
    "any": ANY,
}


# ── Helpers ─────────────────────────────────────────────────────────────────

def package_name(path: str) -> str:
    """Default package name for an import path: its last element."""
    return path.rsplit("/", 1)[-1] if path else ""


def underlying(t: Type | None) -> Type | None:
    """Follow named types to their underlying shape."""
    seen: set[int] = set()
    while isinstance(t, Named):
        if id(t) in seen:
            return None
        seen.add(id(t))
        t = t.underlying
    return t


def is_interface(t: Type | None) -> bool:
    return isinstance(underlying(t), Interface)


def instantiate(origin: Named, args: tuple[Type, ...]) -> Named:
    """Return the instance ``origin[args...]``, cached per origin.

    Instantiating with the origin's own type parameters yields the origin.
    """
    if not origin.type_params or not args:
        return origin
    if len(args) == len(origin.type_params) and all(
        a is p for a, p in zip(args, origin.type_params)
    ):
        return origin
    key = ",".join(type_key(a) for a in args)
    inst = origin._instances.get(key)
    if inst is not None:
        return inst
    inst = Named(origin.name, origin.package)
    inst.origin = origin
    inst.type_args = tuple(args)
    inst._mapping = dict(zip(origin.type_params, args))
    origin._instances[key] = inst
    return inst


def substitute(t, mapping: dict[TypeParam, Type]):
    """Replace type parameters in ``t`` according to ``mapping``."""
    if not mapping:
        return t
    if isinstance(t, TypeParam):
        return mapping.get(t, t)
    if isinstance(t, Named):
        if t.type_args:
            origin = t.origin or t
            return instantiate(origin, tuple(substitute(a, mapping) for a in t.type_args))
        # A generic type naming itself inside its own declaration.
        if t.type_params and any(p in mapping for p in t.type_params):
            return instantiate(t, tuple(mapping.get(p, p) for p in t.type_params))
        return t
    if isinstance(t, Pointer):
        return Pointer(substitute(t.elem, mapping))
    if isinstance(t, Array):
        return Array(t.length, substitute(t.elem, mapping))
    if isinstance(t, Slice):
        return Slice(substitute(t.elem, mapping))
    if isinstance(t, Map):
        return Map(substitute(t.key, mapping), substitute(t.value, mapping))
    if isinstance(t, Chan):
        return Chan(substitute(t.elem, mapping), t.direction)
    if isinstance(t, Struct):
        return Struct(tuple(
            Field(f.name, substitute(f.type, mapping), f.embedded) for f in t.fields
        ))
    if isinstance(t, Tuple):
        return Tuple(tuple(substitute(e, mapping) for e in t.elems))
    if isinstance(t, Signature):
        return Signature(
            tuple(substitute(p, mapping) for p in t.params),
            tuple(substitute(r, mapping) for r in t.results),
            t.variadic,
        )
    if isinstance(t, Interface):
        return Interface(
            tuple(Method(m.name, substitute(m.signature, mapping), m.pointer_receiver)
                  for m in t.methods),
            tuple(substitute(e, mapping) for e in t.embeds),
        )
    return t


# ── Printing ────────────────────────────────────────────────────────────────

def type_string(t: Type | None, relative_to: str = "") -> str:
    """Render a type the way the checker prints it.

    Named types declared in ``relative_to`` (a package path) are printed
    unqualified; all others carry their package name.
    """
    if t is None:
        return "invalid type"
    return _type_string(t, relative_to, qualify_all=False)


def type_key(t: Type | None) -> str:
    """A fully qualified, stable key for ``t``; used for cycle detection."""
    if t is None:
        return "?"
    return _type_string(t, "", qualify_all=True)


def _type_string(t: Type, rel: str, qualify_all: bool) -> str:
    def s(x: Type) -> str:
        return _type_string(x, rel, qualify_all)

    if isinstance(t, Basic):
        return t.name
    if isinstance(t, Named):
        if qualify_all:
            prefix = f"{t.package}." if t.package else ""
        else:
            prefix = f"{t.package_name}." if t.package and t.package != rel else ""
        args = f"[{', '.join(s(a) for a in t.type_args)}]" if t.type_args else ""
        return f"{prefix}{t.name}{args}"
    if isinstance(t, TypeParam):
        return t.name if not qualify_all else f"{t.name}#{id(t):x}"
    if isinstance(t, Pointer):
        return f"*{s(t.elem)}"
    if isinstance(t, Array):
        return f"[{t.length}]{s(t.elem)}"
    if isinstance(t, Slice):
        return f"[]{s(t.elem)}"
    if isinstance(t, Map):
        return f"map[{s(t.key)}]{s(t.value)}"
    if isinstance(t, Chan):
        if t.direction == "send":
            return f"chan<- {s(t.elem)}"
        if t.direction == "recv":
            return f"<-chan {s(t.elem)}"
        return f"chan {s(t.elem)}"
    if isinstance(t, Struct):
        parts = []
        for f in t.fields:
            parts.append(s(f.type) if f.embedded else f"{f.name} {s(f.type)}")
        return "struct{" + "; ".join(parts) + "}"
    if isinstance(t, Tuple):
        return "(" + ", ".join(s(e) for e in t.elems) + ")"
    if isinstance(t, Signature):
        return "func" + _signature_string(t, s)
    if isinstance(t, Interface):
        if not t.methods and not t.embeds:
            return "interface{}"
        parts = [s(e) for e in t.embeds]
        parts += [m.name + _signature_string(m.signature, s) for m in t.methods]
        return "interface{" + "; ".join(parts) + "}"
    return repr(t)


def _signature_string(sig: Signature, s) -> str:
    params = [s(p) for p in sig.params]
    if sig.variadic and params:
        last = sig.params[-1]
        params[-1] = "..." + (s(last.elem) if isinstance(last, Slice) else params[-1])
    out = "(" + ", ".join(params) + ")"
    if len(sig.results) == 1:
        out += " " + s(sig.results[0])
    elif sig.results:
        out += " (" + ", ".join(s(r) for r in sig.results) + ")"
    return out
