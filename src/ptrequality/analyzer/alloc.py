"""Classify comparison operands as freshly allocated pointers or not."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ptrequality.analyzer.registry import JOIN_ERROR, ChainKind
from ptrequality.analyzer.scope import Scope, is_builtin_new, resolve_chain_func, unparen
from ptrequality.analyzer.typeinfo import type_arg
from ptrequality.ir.nodes import CallExpr, CompositeLit, Expr, UnaryExpr
from ptrequality.ir.types import Type


class Freshness(str, Enum):
    NOT_FRESH = "not_fresh"
    COMPOSITE_LITERAL = "fresh_composite_literal"     # &T{...}
    ZERO_ALLOCATION = "fresh_zero_allocation"         # new(T)
    VIA_CHAIN = "fresh_via_chain"                     # errors.Join(..., fresh, ...)


@dataclass(frozen=True)
class Operand:
    kind: Freshness
    elem: Type | None = None     # the allocated type, when fresh

    @property
    def fresh(self) -> bool:
        return self.kind is not Freshness.NOT_FRESH


NOT_FRESH = Operand(Freshness.NOT_FRESH)


def classify(expr: Expr, scope: Scope) -> Operand:
    match unparen(expr):
        case UnaryExpr(op="&", x=x) if isinstance(unparen(x), CompositeLit):
            return Operand(Freshness.COMPOSITE_LITERAL, unparen(x).type)
        case CallExpr(fun=fun, args=[arg]) if is_builtin_new(scope, fun):
            t = type_arg(arg, scope)
            if t is not None:
                return Operand(Freshness.ZERO_ALLOCATION, t)
        case CallExpr(fun=fun, args=args) if args:
            chain = resolve_chain_func(scope, fun)
            if chain is not None and chain.kind is ChainKind.JOIN:
                if any(classify(a, scope).fresh for a in args):
                    return Operand(Freshness.VIA_CHAIN, JOIN_ERROR)
    return NOT_FRESH
