"""Static types of expressions.

The host records most types on the nodes themselves; this fills the gaps
from the literal shapes and from the bindings in scope. Unknown stays None.
"""

from __future__ import annotations

from ptrequality.analyzer.methods import MemberKind, lookup_member
from ptrequality.analyzer.registry import ChainKind
from ptrequality.analyzer.scope import (
    BindingKind,
    Scope,
    is_builtin_new,
    resolve_chain_func,
    unparen,
)
from ptrequality.ir.nodes import (
    BasicLit,
    BinaryExpr,
    CallExpr,
    CompositeLit,
    Expr,
    FuncLit,
    Ident,
    IndexExpr,
    KeyValueExpr,
    SelectorExpr,
    StarExpr,
    TypeExpr,
    UnaryExpr,
)
from ptrequality.ir.types import (
    BOOL,
    BYTE,
    ERROR,
    FLOAT64,
    INT,
    INT32,
    STRING,
    Array,
    Map,
    Pointer,
    Signature,
    Slice,
    Tuple,
    Type,
    underlying,
)

_COMPARISONS = frozenset({"==", "!=", "<", "<=", ">", ">=", "&&", "||"})
_LITERAL_TYPES = {"INT": INT, "FLOAT": FLOAT64, "STRING": STRING, "CHAR": INT32}


def type_arg(e: Expr, scope: Scope) -> Type | None:
    """The type denoted by ``e`` in type position, or None if it is a value."""
    e = unparen(e)
    if isinstance(e, TypeExpr):
        return e.type
    if isinstance(e, Ident):
        b = scope.lookup(e.name)
        if b is not None and b.kind is BindingKind.TYPE:
            return b.type
    return None


def type_of(e: Expr, scope: Scope) -> Type | None:
    recorded = getattr(e, "type", None)
    if recorded is not None and not isinstance(e, TypeExpr):
        return recorded
    e = unparen(e)

    match e:
        case CompositeLit(type=t):
            return t
        case FuncLit():
            return e.type
        case UnaryExpr(op="&", x=x):
            inner = type_of(x, scope)
            return Pointer(inner) if inner is not None else None
        case UnaryExpr(op="!"):
            return BOOL
        case UnaryExpr(x=x):
            return type_of(x, scope)
        case StarExpr(x=x):
            inner = underlying(type_of(x, scope))
            return inner.elem if isinstance(inner, Pointer) else None
        case BinaryExpr(op=op, x=x):
            return BOOL if op in _COMPARISONS else type_of(x, scope)
        case BasicLit(kind=kind):
            return _LITERAL_TYPES.get(kind)
        case Ident(name=name):
            b = scope.lookup(name)
            if b is None or b.kind in (BindingKind.TYPE, BindingKind.PACKAGE, BindingKind.BUILTIN):
                return None
            return b.type
        case SelectorExpr(x=x, sel=name):
            return _selector_type(x, name, scope)
        case IndexExpr(x=x):
            return _index_type(type_of(x, scope))
        case KeyValueExpr(value=value):
            return type_of(value, scope)
        case CallExpr():
            return _call_type(e, scope)
    return None


def _selector_type(x: Expr, name: str, scope: Scope) -> Type | None:
    base = unparen(x)
    if isinstance(base, Ident):
        b = scope.lookup(base.name)
        if b is not None and b.kind is BindingKind.PACKAGE:
            return None
    sel = lookup_member(type_of(x, scope), name)
    if sel is None:
        return None
    if sel.kind is MemberKind.METHOD:
        return sel.signature
    return sel.type


def _index_type(t: Type | None) -> Type | None:
    u = underlying(t)
    if isinstance(u, Pointer):
        u = underlying(u.elem)
    match u:
        case Slice(elem=elem) | Array(elem=elem):
            return elem
        case Map(value=value):
            return value
    if u == STRING:
        return BYTE
    return None


def _call_type(call: CallExpr, scope: Scope) -> Type | None:
    if is_builtin_new(scope, call.fun) and len(call.args) == 1:
        t = type_arg(call.args[0], scope)
        return Pointer(t) if t is not None else None

    chain = resolve_chain_func(scope, call.fun)
    if chain is not None:
        return BOOL if chain.kind in (ChainKind.IS, ChainKind.AS) else ERROR

    conversion = type_arg(call.fun, scope)
    if conversion is not None:
        return conversion

    fun = underlying(type_of(call.fun, scope))
    if not isinstance(fun, Signature):
        return None
    if len(fun.results) == 1:
        return fun.results[0]
    if fun.results:
        return Tuple(fun.results)
    return None
