"""Syntax tree dataclasses for one type-checked compilation unit. Pure data, no logic."""

from __future__ import annotations

from dataclasses import dataclass, field

from ptrequality.ir.types import Signature, Type, TypeParam


@dataclass(frozen=True)
class Pos:
    """Source position, 1-indexed. ``file`` may be empty; the walker fills it in."""
    line: int = 0
    column: int = 0
    file: str = ""

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


# ── Expressions ─────────────────────────────────────────────────────────────
# ``type`` is the static type recorded by the host's checker, when it has one.


class Expr:
    """Base for all expression nodes."""


@dataclass(eq=False)
class Ident(Expr):
    name: str
    pos: Pos | None = None
    type: Type | None = None


@dataclass(eq=False)
class BasicLit(Expr):
    kind: str            # "INT", "FLOAT", "STRING", "CHAR", "IMAG"
    value: str
    pos: Pos | None = None
    type: Type | None = None


@dataclass(eq=False)
class ParenExpr(Expr):
    x: Expr
    pos: Pos | None = None
    type: Type | None = None


@dataclass(eq=False)
class UnaryExpr(Expr):
    op: str              # "&", "!", "-", "^", "<-"
    x: Expr
    pos: Pos | None = None
    type: Type | None = None


@dataclass(eq=False)
class BinaryExpr(Expr):
    op: str
    x: Expr
    y: Expr
    pos: Pos | None = None
    type: Type | None = None


@dataclass(eq=False)
class StarExpr(Expr):
    x: Expr
    pos: Pos | None = None
    type: Type | None = None


@dataclass(eq=False)
class SelectorExpr(Expr):
    x: Expr
    sel: str
    pos: Pos | None = None
    type: Type | None = None


@dataclass(eq=False)
class CallExpr(Expr):
    fun: Expr
    args: list[Expr] = field(default_factory=list)
    pos: Pos | None = None
    type: Type | None = None
    ellipsis: bool = False


@dataclass(eq=False)
class CompositeLit(Expr):
    type: Type           # the literal's type, always known
    elts: list[Expr] = field(default_factory=list)
    pos: Pos | None = None


@dataclass(eq=False)
class KeyValueExpr(Expr):
    key: Expr
    value: Expr
    pos: Pos | None = None
    type: Type | None = None


@dataclass(eq=False)
class IndexExpr(Expr):
    x: Expr
    indices: list[Expr] = field(default_factory=list)
    pos: Pos | None = None
    type: Type | None = None


@dataclass(eq=False)
class TypeExpr(Expr):
    """A type used in expression position, e.g. the argument of ``new``."""
    type: Type
    pos: Pos | None = None


@dataclass(frozen=True)
class Param:
    name: str            # "" or "_" for unnamed
    type: Type | None = None


@dataclass(eq=False)
class FuncLit(Expr):
    params: list[Param]
    results: list[Param]
    body: BlockStmt
    pos: Pos | None = None
    variadic: bool = False

    @property
    def type(self) -> Signature:
        return Signature(
            tuple(p.type for p in self.params),
            tuple(r.type for r in self.results),
            self.variadic,
        )


# ── Statements ──────────────────────────────────────────────────────────────


class Stmt:
    """Base for all statement nodes."""


@dataclass(eq=False)
class BlockStmt(Stmt):
    stmts: list[Stmt] = field(default_factory=list)
    pos: Pos | None = None


@dataclass(eq=False)
class ExprStmt(Stmt):
    x: Expr
    pos: Pos | None = None


@dataclass(eq=False)
class AssignStmt(Stmt):
    lhs: list[Expr]
    tok: str             # "=", ":=", "+=", ...
    rhs: list[Expr]
    pos: Pos | None = None


@dataclass(eq=False)
class VarDecl(Stmt):
    """``var``/``const`` declaration, at package level or inside a body."""
    names: list[str]
    type: Type | None = None
    values: list[Expr] = field(default_factory=list)
    pos: Pos | None = None
    const: bool = False


@dataclass(eq=False)
class TypeDecl(Stmt):
    name: str
    type: Type
    pos: Pos | None = None


@dataclass(eq=False)
class IfStmt(Stmt):
    cond: Expr
    body: BlockStmt
    init: Stmt | None = None
    else_: Stmt | None = None
    pos: Pos | None = None


@dataclass(eq=False)
class ForStmt(Stmt):
    body: BlockStmt
    init: Stmt | None = None
    cond: Expr | None = None
    post: Stmt | None = None
    pos: Pos | None = None


@dataclass(eq=False)
class RangeStmt(Stmt):
    x: Expr
    body: BlockStmt
    key: Expr | None = None
    value: Expr | None = None
    define: bool = False
    pos: Pos | None = None


@dataclass(eq=False)
class CaseClause(Stmt):
    exprs: list[Expr] = field(default_factory=list)   # empty for ``default``
    body: list[Stmt] = field(default_factory=list)
    pos: Pos | None = None


@dataclass(eq=False)
class SwitchStmt(Stmt):
    clauses: list[CaseClause] = field(default_factory=list)
    init: Stmt | None = None
    tag: Expr | None = None
    pos: Pos | None = None


@dataclass(eq=False)
class ReturnStmt(Stmt):
    results: list[Expr] = field(default_factory=list)
    pos: Pos | None = None


@dataclass(eq=False)
class DeferStmt(Stmt):
    call: Expr
    pos: Pos | None = None


@dataclass(eq=False)
class GoStmt(Stmt):
    call: Expr
    pos: Pos | None = None


# ── Declarations and units ──────────────────────────────────────────────────


@dataclass(eq=False)
class FuncDecl:
    name: str
    params: list[Param] = field(default_factory=list)
    results: list[Param] = field(default_factory=list)
    body: BlockStmt | None = None
    recv: Param | None = None
    type_params: list[TypeParam] = field(default_factory=list)
    pos: Pos | None = None
    variadic: bool = False

    @property
    def signature(self) -> Signature:
        return Signature(
            tuple(p.type for p in self.params),
            tuple(r.type for r in self.results),
            self.variadic,
        )


Decl = FuncDecl | VarDecl | TypeDecl


@dataclass(frozen=True)
class Import:
    path: str
    name: str | None = None      # None: package's own name; "." dot import; "_" blank
    package_name: str | None = None   # declared name when it differs from the path


@dataclass(eq=False)
class File:
    name: str
    imports: list[Import] = field(default_factory=list)
    decls: list[Decl] = field(default_factory=list)
    source: str | None = None


@dataclass(eq=False)
class Unit:
    """One compilation unit (a package) as handed over by the host."""
    path: str
    name: str
    files: list[File] = field(default_factory=list)
