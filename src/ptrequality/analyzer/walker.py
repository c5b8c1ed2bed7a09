"""Traverse a unit in source order and yield candidate comparison sites.

Each site comes with the scope in effect at that point, so operand
classification sees the same bindings the checker saw. Sites are yielded
in pre-order: an outer comparison before the comparisons nested in its
operands.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from ptrequality.analyzer.registry import ChainFunc, ChainKind
from ptrequality.analyzer.scope import (
    Binding,
    BindingKind,
    Scope,
    file_scope,
    package_scope,
    resolve_chain_func,
    universe_scope,
)
from ptrequality.analyzer.typeinfo import type_of
from ptrequality.ir.nodes import (
    AssignStmt,
    BasicLit,
    BinaryExpr,
    BlockStmt,
    CallExpr,
    CaseClause,
    CompositeLit,
    DeferStmt,
    Expr,
    ExprStmt,
    File,
    ForStmt,
    FuncDecl,
    FuncLit,
    GoStmt,
    Ident,
    IfStmt,
    IndexExpr,
    KeyValueExpr,
    Param,
    ParenExpr,
    Pos,
    RangeStmt,
    ReturnStmt,
    SelectorExpr,
    StarExpr,
    Stmt,
    SwitchStmt,
    TypeDecl,
    TypeExpr,
    UnaryExpr,
    Unit,
    VarDecl,
)
from ptrequality.ir.types import (
    INT,
    RUNE,
    STRING,
    Array,
    Chan,
    Map,
    Pointer,
    Slice,
    Tuple,
    Type,
    underlying,
)

log = logging.getLogger(__name__)

EQUALITY_OPS = frozenset({"==", "!="})


class SiteKind(str, Enum):
    COMPARISON = "comparison"      # x == y, x != y
    CHAIN_CALL = "chain_call"      # errors.Is(err, target) and friends


@dataclass(frozen=True)
class Site:
    kind: SiteKind
    node: Expr
    operands: tuple[Expr, ...]
    pos: Pos | None = None
    op: str = ""
    func: ChainFunc | None = None


def iter_sites(unit: Unit) -> Iterator[tuple[Site, Scope]]:
    """Yield ``(site, scope)`` for every candidate site in ``unit``."""
    yield from _Walker().unit(unit)


class _Walker:
    def __init__(self) -> None:
        self.file = ""
        self.stmt_pos: Pos | None = None

    def unit(self, unit: Unit) -> Iterator[tuple[Site, Scope]]:
        pkg = package_scope(unit, universe_scope())
        for f in unit.files:
            yield from self.file_(f, pkg)

    def file_(self, f: File, pkg: Scope) -> Iterator[tuple[Site, Scope]]:
        self.file = f.name
        scope = file_scope(f, pkg)
        for decl in f.decls:
            match decl:
                case FuncDecl():
                    yield from self.func_decl(decl, scope)
                case VarDecl(values=values):
                    self.stmt_pos = decl.pos
                    for v in values:
                        yield from self.expr(v, scope)
                case TypeDecl():
                    pass

    def func_decl(self, fn: FuncDecl, outer: Scope) -> Iterator[tuple[Site, Scope]]:
        scope = outer.child()
        for tp in fn.type_params:
            scope.declare(Binding(BindingKind.TYPE, tp.name, tp))
        if fn.recv is not None:
            _declare_params(scope, [fn.recv])
        _declare_params(scope, fn.params)
        _declare_params(scope, fn.results)
        if fn.body is not None:
            for s in fn.body.stmts:
                yield from self.stmt(s, scope)

    # ── Statements ──────────────────────────────────────────────────────

    def stmt(self, s: Stmt | None, scope: Scope) -> Iterator[tuple[Site, Scope]]:
        if s is None:
            return
        if getattr(s, "pos", None) is not None:
            self.stmt_pos = s.pos

        match s:
            case ExprStmt(x=x):
                yield from self.expr(x, scope)
            case AssignStmt(lhs=lhs, tok=":=", rhs=rhs):
                for e in rhs:
                    yield from self.expr(e, scope)
                types = _assigned_types(rhs, len(lhs), scope)
                for target, t in zip(lhs, types):
                    if isinstance(target, Ident):
                        scope.declare(Binding(BindingKind.VAR, target.name, t))
            case AssignStmt(lhs=lhs, rhs=rhs):
                for e in rhs:
                    yield from self.expr(e, scope)
                for e in lhs:
                    yield from self.expr(e, scope)
            case VarDecl(names=names, type=t, values=values, const=const):
                for v in values:
                    yield from self.expr(v, scope)
                kind = BindingKind.CONST if const else BindingKind.VAR
                types = [t] * len(names) if t is not None else _assigned_types(values, len(names), scope)
                for name, vt in zip(names, types):
                    scope.declare(Binding(kind, name, vt))
            case TypeDecl(name=name, type=t):
                scope.declare(Binding(BindingKind.TYPE, name, t))
            case BlockStmt(stmts=stmts):
                inner = scope.child()
                for st in stmts:
                    yield from self.stmt(st, inner)
            case IfStmt(cond=cond, body=body, init=init, else_=else_):
                inner = scope.child()
                yield from self.stmt(init, inner)
                yield from self.expr(cond, inner)
                yield from self.stmt(body, inner)
                yield from self.stmt(else_, inner)
            case ForStmt(body=body, init=init, cond=cond, post=post):
                inner = scope.child()
                yield from self.stmt(init, inner)
                if cond is not None:
                    yield from self.expr(cond, inner)
                yield from self.stmt(post, inner)
                yield from self.stmt(body, inner)
            case RangeStmt(x=x, body=body, key=key, value=value, define=define):
                yield from self.expr(x, scope)
                inner = scope.child()
                if define:
                    key_t, value_t = _range_types(type_of(x, scope))
                    for target, t in ((key, key_t), (value, value_t)):
                        if isinstance(target, Ident):
                            inner.declare(Binding(BindingKind.VAR, target.name, t))
                else:
                    for target in (key, value):
                        if target is not None:
                            yield from self.expr(target, scope)
                yield from self.stmt(body, inner)
            case SwitchStmt(clauses=clauses, init=init, tag=tag):
                inner = scope.child()
                yield from self.stmt(init, inner)
                if tag is not None:
                    yield from self.expr(tag, inner)
                for clause in clauses:
                    yield from self.stmt(clause, inner)
            case CaseClause(exprs=exprs, body=body):
                inner = scope.child()
                for e in exprs:
                    yield from self.expr(e, inner)
                for st in body:
                    yield from self.stmt(st, inner)
            case ReturnStmt(results=results):
                for e in results:
                    yield from self.expr(e, scope)
            case DeferStmt(call=call) | GoStmt(call=call):
                yield from self.expr(call, scope)
            case _:
                log.debug("Skipping unknown statement %s", type(s).__name__)

    # ── Expressions ─────────────────────────────────────────────────────

    def expr(self, e: Expr | None, scope: Scope) -> Iterator[tuple[Site, Scope]]:
        if e is None:
            return

        match e:
            case BinaryExpr(op=op, x=x, y=y):
                if op in EQUALITY_OPS:
                    yield Site(SiteKind.COMPARISON, e, (x, y), self._pos(e), op=op), scope
                yield from self.expr(x, scope)
                yield from self.expr(y, scope)
            case CallExpr(fun=fun, args=args):
                if len(args) == 2:
                    chain = resolve_chain_func(scope, fun)
                    if chain is not None and chain.kind is ChainKind.IS:
                        yield Site(SiteKind.CHAIN_CALL, e, tuple(args), self._pos(e), func=chain), scope
                yield from self.expr(fun, scope)
                for a in args:
                    yield from self.expr(a, scope)
            case FuncLit(params=params, results=results, body=body):
                inner = scope.child()
                _declare_params(inner, params)
                _declare_params(inner, results)
                saved = self.stmt_pos
                for st in body.stmts:
                    yield from self.stmt(st, inner)
                self.stmt_pos = saved
            case ParenExpr(x=x) | UnaryExpr(x=x) | StarExpr(x=x) | SelectorExpr(x=x):
                yield from self.expr(x, scope)
            case CompositeLit(elts=elts):
                for el in elts:
                    yield from self.expr(el, scope)
            case KeyValueExpr(key=key, value=value):
                yield from self.expr(key, scope)
                yield from self.expr(value, scope)
            case IndexExpr(x=x, indices=indices):
                yield from self.expr(x, scope)
                for i in indices:
                    yield from self.expr(i, scope)
            case Ident() | BasicLit() | TypeExpr():
                pass

    def _pos(self, e: Expr) -> Pos | None:
        pos = getattr(e, "pos", None) or self.stmt_pos
        if pos is not None and not pos.file:
            pos = dataclasses.replace(pos, file=self.file)
        return pos


def _declare_params(scope: Scope, params: list[Param]) -> None:
    for p in params:
        scope.declare(Binding(BindingKind.VAR, p.name, p.type))


def _assigned_types(rhs: list[Expr], n: int, scope: Scope) -> list[Type | None]:
    if len(rhs) == n:
        return [type_of(e, scope) for e in rhs]
    if len(rhs) == 1:
        t = type_of(rhs[0], scope)
        if isinstance(t, Tuple) and len(t.elems) == n:
            return list(t.elems)
    return [None] * n


def _range_types(t: Type | None) -> tuple[Type | None, Type | None]:
    u = underlying(t)
    if isinstance(u, Pointer):
        u = underlying(u.elem)
    match u:
        case Slice(elem=elem) | Array(elem=elem):
            return INT, elem
        case Map(key=key, value=value):
            return key, value
        case Chan(elem=elem):
            return elem, None
    if u == STRING:
        return INT, RUNE
    return None, None
