"""Lexical scopes and identifier resolution.

Scopes chain universe -> package -> file -> function -> blocks, the way the
checker nests them. Lookups never raise; an unknown name resolves to None
and callers treat it as "not the well-known symbol".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ptrequality.analyzer.registry import (
    BUILTIN_FUNCS,
    ChainFunc,
    lookup_chain_func,
    package_chain_funcs,
)
from ptrequality.ir.nodes import (
    Expr,
    File,
    FuncDecl,
    Ident,
    ParenExpr,
    SelectorExpr,
    TypeDecl,
    Unit,
    VarDecl,
)
from ptrequality.ir.types import BOOL, PREDECLARED_TYPES, UNTYPED_NIL, Type, package_name


class BindingKind(str, Enum):
    BUILTIN = "builtin"
    NIL = "nil"
    CONST = "const"
    TYPE = "type"
    VAR = "var"
    FUNC = "func"
    PACKAGE = "package"
    CHAIN_FUNC = "chain_func"     # a chain function brought in by a dot import


@dataclass(frozen=True)
class Binding:
    kind: BindingKind
    name: str
    type: Type | None = None      # value type, or the type itself for TYPE
    package: str = ""             # import path for PACKAGE bindings
    chain: ChainFunc | None = None


class Scope:
    def __init__(self, parent: Scope | None = None) -> None:
        self.parent = parent
        self.names: dict[str, Binding] = {}

    def declare(self, binding: Binding) -> None:
        if binding.name in ("", "_"):
            return
        self.names[binding.name] = binding

    def lookup(self, name: str) -> Binding | None:
        scope: Scope | None = self
        while scope is not None:
            b = scope.names.get(name)
            if b is not None:
                return b
            scope = scope.parent
        return None

    def child(self) -> Scope:
        return Scope(self)


def universe_scope() -> Scope:
    scope = Scope()
    for name in sorted(BUILTIN_FUNCS):
        scope.declare(Binding(BindingKind.BUILTIN, name))
    for name, t in PREDECLARED_TYPES.items():
        scope.declare(Binding(BindingKind.TYPE, name, t))
    scope.declare(Binding(BindingKind.NIL, "nil", UNTYPED_NIL))
    scope.declare(Binding(BindingKind.CONST, "true", BOOL))
    scope.declare(Binding(BindingKind.CONST, "false", BOOL))
    scope.declare(Binding(BindingKind.CONST, "iota"))
    return scope


def package_scope(unit: Unit, universe: Scope) -> Scope:
    """Top-level declarations of every file in the unit."""
    scope = universe.child()
    for f in unit.files:
        for decl in f.decls:
            if isinstance(decl, FuncDecl):
                if decl.recv is None:
                    scope.declare(Binding(BindingKind.FUNC, decl.name, decl.signature))
            elif isinstance(decl, TypeDecl):
                scope.declare(Binding(BindingKind.TYPE, decl.name, decl.type))
            elif isinstance(decl, VarDecl):
                kind = BindingKind.CONST if decl.const else BindingKind.VAR
                for name in decl.names:
                    scope.declare(Binding(kind, name, decl.type))
    return scope


def file_scope(f: File, pkg: Scope) -> Scope:
    """Import bindings of one file, nested in the package scope."""
    scope = pkg.child()
    for imp in f.imports:
        if imp.name == "_":
            continue
        if imp.name == ".":
            for fn in package_chain_funcs(imp.path):
                scope.declare(Binding(BindingKind.CHAIN_FUNC, fn.name, chain=fn))
            continue
        name = imp.name or imp.package_name or package_name(imp.path)
        scope.declare(Binding(BindingKind.PACKAGE, name, package=imp.path))
    return scope


def unparen(e: Expr) -> Expr:
    while isinstance(e, ParenExpr):
        e = e.x
    return e


def resolve_chain_func(scope: Scope, fun: Expr) -> ChainFunc | None:
    """The chain function ``fun`` denotes, or None if it is ordinary code."""
    fun = unparen(fun)
    if isinstance(fun, SelectorExpr) and isinstance(fun.x, Ident):
        b = scope.lookup(fun.x.name)
        if b is not None and b.kind is BindingKind.PACKAGE:
            return lookup_chain_func(b.package, fun.sel)
        return None
    if isinstance(fun, Ident):
        b = scope.lookup(fun.name)
        if b is not None and b.kind is BindingKind.CHAIN_FUNC:
            return b.chain
    return None


def is_builtin(scope: Scope, fun: Expr, name: str) -> bool:
    fun = unparen(fun)
    if not isinstance(fun, Ident) or fun.name != name:
        return False
    b = scope.lookup(name)
    return b is not None and b.kind is BindingKind.BUILTIN


def is_builtin_new(scope: Scope, fun: Expr) -> bool:
    return is_builtin(scope, fun, "new")
