"""Error-chain resolution: can a custom Is or Unwrap method intercept the test?

``errors.Is`` compares with ``==`` only after asking every error on the
chain for an ``Is(error) bool`` method and following ``Unwrap() error`` /
``Unwrap() []error``. When any type on either operand's path provides one,
the raw pointer identity is no longer what decides the outcome.
"""

from __future__ import annotations

import logging

from ptrequality.analyzer.methods import lookup_method
from ptrequality.analyzer.registry import ChainKind
from ptrequality.analyzer.scope import Scope, resolve_chain_func, unparen
from ptrequality.analyzer.typeinfo import type_of
from ptrequality.ir.nodes import CallExpr, Expr
from ptrequality.ir.types import (
    BOOL,
    ERROR,
    Method,
    Slice,
    Type,
    is_interface,
    type_key,
    type_string,
    underlying,
)

log = logging.getLogger(__name__)

MAX_UNWRAP_DEPTH = 8


def is_equivalence_method(m: Method | None) -> bool:
    """``Is(x) bool``: exactly one parameter and a single boolean result."""
    if m is None:
        return False
    sig = m.signature
    return len(sig.params) == 1 and len(sig.results) == 1 and underlying(sig.results[0]) == BOOL


def unwrap_targets(t: Type | None) -> list[Type | None] | None:
    """Types an ``Unwrap()`` method on ``t`` hands out, or None without one."""
    m = lookup_method(t, "Unwrap")
    if m is None or m.signature.params or len(m.signature.results) != 1:
        return None
    result = m.signature.results[0]
    if isinstance(result, Slice):
        return [result.elem]
    return [result]


def single_unwrap_result(t: Type | None) -> Type | None:
    """The concrete type of ``Unwrap() T`` on ``t``, if it has exactly that."""
    m = lookup_method(t, "Unwrap")
    if m is None or m.signature.params or len(m.signature.results) != 1:
        return None
    result = m.signature.results[0]
    if isinstance(result, Slice) or is_interface(result):
        return None
    return result


def find_interception(t: Type | None, depth: int = MAX_UNWRAP_DEPTH,
                      seen: frozenset[str] = frozenset()) -> bool:
    """Whether ``t`` or anything it unwraps to may decide the test itself.

    A repeated type or an exhausted depth budget counts as intercepting.
    """
    if t is None:
        return False
    key = type_key(t)
    if key in seen or depth <= 0:
        return True
    seen = seen | {key}

    if is_equivalence_method(lookup_method(t, "Is")):
        log.debug("%s has an Is method", type_string(t))
        return True

    targets = unwrap_targets(t)
    if targets is None:
        return False
    for target in targets:
        if target is None or is_interface(target):
            log.debug("%s unwraps to a dynamic error", type_string(t))
            return True
        if find_interception(target, depth - 1, seen):
            return True
    return False


def operand_types(expr: Expr, scope: Scope) -> list[Type | None]:
    """Effective types an operand contributes to the chain walk.

    A join contributes its arguments, an ``Unwrap`` call on a type with a
    concrete ``Unwrap`` result contributes that result type.
    """
    e = unparen(expr)
    if isinstance(e, CallExpr):
        chain = resolve_chain_func(scope, e.fun)
        if chain is not None and chain.kind is ChainKind.JOIN:
            return [t for a in e.args for t in operand_types(a, scope)]
        if chain is not None and chain.kind is ChainKind.UNWRAP and len(e.args) == 1:
            inner = unparen(e.args[0])
            if isinstance(inner, CallExpr):
                inner_chain = resolve_chain_func(scope, inner.fun)
                if inner_chain is not None and inner_chain.kind is ChainKind.JOIN:
                    return []
            result = single_unwrap_result(type_of(e.args[0], scope))
            return [result if result is not None else ERROR]
    return [type_of(e, scope)]


def call_interception(args: list[Expr], scope: Scope) -> bool:
    return any(
        find_interception(t)
        for a in args
        for t in operand_types(a, scope)
    )
