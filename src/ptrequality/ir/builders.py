"""Terse constructors for syntax and type shapes.

Used by the unit loader and by tests that assemble small units by hand::

    b.eq(b.addr(b.composite(b.struct())), b.new(b.struct()), line=20)
"""

from __future__ import annotations

from ptrequality.ir.nodes import (
    BinaryExpr,
    BlockStmt,
    CallExpr,
    CompositeLit,
    Expr,
    ExprStmt,
    File,
    FuncDecl,
    FuncLit,
    Ident,
    Import,
    Param,
    ParenExpr,
    Pos,
    SelectorExpr,
    Stmt,
    TypeExpr,
    UnaryExpr,
    Unit,
)
from ptrequality.ir.types import (
    Array,
    Field,
    Interface,
    Method,
    Named,
    Pointer,
    Signature,
    Slice,
    Struct,
    Type,
    TypeParam,
)


def at(line: int = 0, column: int = 0) -> Pos | None:
    return Pos(line, column) if line else None


def _expr(x: Expr | str) -> Expr:
    return Ident(x) if isinstance(x, str) else x


# ── Types ───────────────────────────────────────────────────────────────────

def field(name: str, t: Type) -> Field:
    return Field(name, t)


def embed(t: Type) -> Field:
    """An embedded field; its name is the type's name."""
    base = t.elem if isinstance(t, Pointer) else t
    name = base.name if isinstance(base, (Named, TypeParam)) else "?"
    return Field(name, t, embedded=True)


def struct(*fields: Field) -> Struct:
    return Struct(tuple(fields))


def array(length: int, elem: Type) -> Array:
    return Array(length, elem)


def ptr(t: Type) -> Pointer:
    return Pointer(t)


def slice_of(t: Type) -> Slice:
    return Slice(t)


def sig(params: tuple[Type, ...] | list[Type] = (), results: tuple[Type, ...] | list[Type] = ()) -> Signature:
    return Signature(tuple(params), tuple(results))


def method(name: str, params=(), results=(), pointer: bool = False) -> Method:
    return Method(name, sig(params, results), pointer_receiver=pointer)


def iface(*methods: Method) -> Interface:
    return Interface(tuple(methods))


def named(name: str, under: Type | None, package: str = "", methods=(), type_params=()) -> Named:
    return Named(name, package, under, list(methods), tuple(type_params))


def tparam(name: str, constraint: Type | None = None) -> TypeParam:
    return TypeParam(name, constraint)


# ── Expressions ─────────────────────────────────────────────────────────────

def ident(name: str, type: Type | None = None, line: int = 0) -> Ident:
    return Ident(name, at(line), type)


def nil(line: int = 0) -> Ident:
    return Ident("nil", at(line))


def paren(x: Expr | str, line: int = 0) -> ParenExpr:
    return ParenExpr(_expr(x), at(line))


def addr(x: Expr | str, line: int = 0) -> UnaryExpr:
    return UnaryExpr("&", _expr(x), at(line))


def composite(t: Type, *elts: Expr, line: int = 0) -> CompositeLit:
    return CompositeLit(t, list(elts), at(line))


def texpr(t: Type) -> TypeExpr:
    return TypeExpr(t)


def new(t: Type, line: int = 0, fun: Expr | str = "new") -> CallExpr:
    """``new(T)``; pass ``fun`` to call through another spelling, e.g. ``(new)``."""
    return CallExpr(_expr(fun), [TypeExpr(t)], at(line))


def sel(x: Expr | str, name: str, type: Type | None = None, line: int = 0) -> SelectorExpr:
    return SelectorExpr(_expr(x), name, at(line), type)


def call(fun: Expr | str, *args: Expr | str, type: Type | None = None, line: int = 0) -> CallExpr:
    return CallExpr(_expr(fun), [_expr(a) for a in args], at(line), type)


def binary(op: str, x: Expr | str, y: Expr | str, line: int = 0) -> BinaryExpr:
    return BinaryExpr(op, _expr(x), _expr(y), at(line))


def eq(x: Expr | str, y: Expr | str, line: int = 0) -> BinaryExpr:
    return binary("==", x, y, line)


def ne(x: Expr | str, y: Expr | str, line: int = 0) -> BinaryExpr:
    return binary("!=", x, y, line)


def func_lit(params=(), results=(), body=(), line: int = 0) -> FuncLit:
    return FuncLit(list(params), list(results), BlockStmt(list(body)), at(line))


# ── Statements, declarations, units ─────────────────────────────────────────

def stmt(x: Expr) -> ExprStmt:
    return ExprStmt(x, getattr(x, "pos", None))


def func(name: str, *body: Stmt | Expr, params=(), results=(), recv: Param | None = None,
         type_params=(), line: int = 0) -> FuncDecl:
    stmts = [stmt(s) if isinstance(s, Expr) else s for s in body]
    return FuncDecl(
        name=name,
        params=list(params),
        results=list(results),
        body=BlockStmt(stmts),
        recv=recv,
        type_params=list(type_params),
        pos=at(line),
    )


def imp(path: str, name: str | None = None) -> Import:
    return Import(path, name)


def unit(*decls, path: str = "example.test/a", name: str = "a", imports=(), file: str = "a.go") -> Unit:
    return Unit(path, name, [File(file, list(imports), list(decls))])
