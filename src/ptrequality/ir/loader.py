"""Load a host-exported unit document (YAML or JSON) into the syntax tree.

Document layout::

    package: a                 # package name (defaults to last path element)
    path: go.test/a            # package path
    types:                     # named types; qualified keys declare external ones
      myError1: {struct: []}
      genericError:
        type_params: [{name: T, constraint: fmt.Stringer}]
        underlying: {struct: [{name: e, type: T}]}
      fmt.Stringer: {interface: [{name: String, results: [string]}]}
    files:
      - name: errors.go
        imports: [errors, {path: golang.org/x/xerrors}, {path: errors, name: "."}]
        source: "..."          # optional, for context display
        decls:
          - func: Errors
            body:
              - expr: {call: {sel: [errors, Is]}, args: [...]}
                pos: 42

Type specs are strings (``int``, ``*myError1``, ``[0]byte``, ``[]error``,
``struct{}``, ``genericError[T]``, ``fmt.Stringer``) or single-kind
mappings (``struct``, ``pointer``, ``slice``, ``array``, ``map``, ``chan``,
``interface``, ``func``, ``named``, ``tuple``). Expressions are strings
(identifiers), numbers (literals) or single-kind mappings (``ident``,
``lit``, ``paren``, ``addr``, ``unary``, ``binary``, ``star``, ``sel``,
``call``, ``new``, ``composite``, ``kv``, ``index``, ``typexpr``,
``func_lit``), each optionally carrying ``pos`` and a static ``type``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import yaml

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
    Import,
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
    ANY,
    PREDECLARED_TYPES,
    Array,
    Chan,
    Field,
    Interface,
    Map,
    Method,
    Named,
    Pointer,
    Signature,
    Slice,
    Struct,
    Tuple,
    Type,
    TypeParam,
    instantiate,
    package_name,
)

log = logging.getLogger(__name__)

_ARRAY_PREFIX = re.compile(r"^\[(\d+)\]")

_EXPR_KINDS = (
    "ident", "lit", "paren", "addr", "unary", "binary", "star", "sel",
    "call", "new", "composite", "kv", "index", "typexpr", "func_lit",
)
_TYPE_KINDS = (
    "struct", "pointer", "slice", "array", "map", "chan", "interface",
    "func", "named", "tuple",
)


class UnitFormatError(ValueError):
    """The document does not describe a compilation unit."""


def load_unit(path: Path) -> Unit:
    """Read a unit document from disk (``.yaml``, ``.yml`` or ``.json``)."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise UnitFormatError(f"{path}: {exc.strerror or exc}") from exc
    return load_unit_text(text, source_name=str(path))


def load_unit_text(text: str, source_name: str = "<unit>") -> Unit:
    """Parse a unit document; JSON is accepted since it is a YAML subset."""
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise UnitFormatError(f"{source_name}: invalid document: {exc}") from exc
    if not isinstance(doc, dict):
        raise UnitFormatError(f"{source_name}: expected a mapping at top level")
    return unit_from_dict(doc)


def unit_from_dict(doc: dict) -> Unit:
    """Build a :class:`Unit` from an already-parsed document."""
    unit = _Loader(doc).load()
    log.debug("Loaded unit %s: %d files", unit.path, len(unit.files))
    return unit


class _Loader:
    def __init__(self, doc: dict) -> None:
        path = doc.get("path")
        if not isinstance(path, str) or not path:
            raise UnitFormatError("unit document needs a non-empty 'path'")
        self.doc = doc
        self.path = path
        self.name = doc.get("package") or package_name(path)
        self.unit_types: dict[str, Named] = {}
        self.externals: dict[str, Named] = {}
        self.scopes: list[dict[str, Type]] = []
        self.pending: list[tuple[Named, object]] = []
        self.file = ""

    # ── Phases ──────────────────────────────────────────────────────────

    def load(self) -> Unit:
        files = self.doc.get("files") or []
        if not isinstance(files, list):
            raise UnitFormatError("'files' must be a list")

        types = _mapping(self.doc.get("types"), "'types'")
        for name, spec in types.items():
            self._declare(str(name), spec)
        for f in files:
            for d in _decls(f):
                if "typedecl" in d:
                    self._declare(str(d["typedecl"]), d)

        for named, spec in self.pending:
            self._fill(named, spec)
        self.pending.clear()

        for f in files:
            for d in _decls(f):
                if "func" in d and d.get("recv") is not None:
                    self._attach_method(d)

        unit = Unit(self.path, self.name)
        for f in files:
            unit.files.append(self._file(f))
        return unit

    def _declare(self, name: str, spec: object) -> Named:
        if "." in name:
            pkg, _, short = name.rpartition(".")
            named = Named(short, pkg)
            self.externals[name] = named
        else:
            if name in self.unit_types:
                raise UnitFormatError(f"type {name} declared twice")
            named = Named(name, self.path)
            self.unit_types[name] = named
        self.pending.append((named, spec))
        return named

    def _fill(self, named: Named, spec: object) -> None:
        if isinstance(spec, dict) and ("underlying" in spec or "typedecl" in spec):
            tparams = self._type_params(spec.get("type_params"))
            named.type_params = tparams
            self.scopes.append({tp.name: tp for tp in tparams})
            self._constrain(tparams, spec.get("type_params"))
            try:
                named.underlying = self._type(spec.get("underlying"))
                for m in spec.get("methods") or []:
                    named.add_method(self._method(m))
            finally:
                self.scopes.pop()
        else:
            named.underlying = self._type(spec)

    def _attach_method(self, d: dict) -> None:
        base, pointer = self._receiver_base(d["recv"])
        self.scopes.append({tp.name: tp for tp in base.type_params})
        try:
            params = [self._param(p) for p in d.get("params") or []]
            results = [self._param(r) for r in d.get("results") or []]
        finally:
            self.scopes.pop()
        sig = Signature(
            tuple(p.type for p in params),
            tuple(r.type for r in results),
            bool(d.get("variadic")),
        )
        base.add_method(Method(str(d["func"]), sig, pointer_receiver=pointer))

    def _receiver_base(self, recv: object) -> tuple[Named, bool]:
        spec = recv.get("type") if isinstance(recv, dict) else recv
        if not isinstance(spec, str):
            raise UnitFormatError(f"receiver type must be a type name, got {spec!r}")
        pointer = spec.startswith("*")
        name = spec.lstrip("*").split("[", 1)[0].strip()
        base = self.unit_types.get(name)
        if base is None:
            raise UnitFormatError(f"receiver type {name} is not declared in this unit")
        return base, pointer

    # ── Files and declarations ──────────────────────────────────────────

    def _file(self, f: dict) -> File:
        name = str(f.get("name") or "unit.go")
        self.file = name
        imports = [self._import(i) for i in f.get("imports") or []]
        decls = []
        for d in _decls(f):
            if "func" in d:
                decls.append(self._func_decl(d))
            elif "var" in d or "const" in d:
                decls.append(self._var_decl(d))
            elif "typedecl" in d:
                decls.append(TypeDecl(str(d["typedecl"]), self.unit_types[str(d["typedecl"])],
                                      self._pos(d)))
            else:
                raise UnitFormatError(f"{name}: unknown declaration {sorted(d)}")
        return File(name, imports, decls, f.get("source"))

    def _import(self, spec: object) -> Import:
        if isinstance(spec, str):
            return Import(spec)
        if isinstance(spec, dict) and isinstance(spec.get("path"), str):
            return Import(spec["path"], spec.get("name"), spec.get("package"))
        raise UnitFormatError(f"{self.file}: bad import {spec!r}")

    def _func_decl(self, d: dict) -> FuncDecl:
        scope: dict[str, Type] = {}
        recv = None
        if d.get("recv") is not None:
            base, pointer = self._receiver_base(d["recv"])
            scope.update({tp.name: tp for tp in base.type_params})
            recv_name = d["recv"].get("name", "") if isinstance(d["recv"], dict) else ""
            recv = Param(recv_name, Pointer(base) if pointer else base)
        self.scopes.append(scope)
        try:
            tparams = self._type_params(d.get("type_params"))
            scope.update({tp.name: tp for tp in tparams})
            self._constrain(tparams, d.get("type_params"))
            params = [self._param(p) for p in d.get("params") or []]
            results = [self._param(r) for r in d.get("results") or []]
            body = self._block(d.get("body") or [])
        finally:
            self.scopes.pop()
        return FuncDecl(
            name=str(d["func"]),
            params=params,
            results=results,
            body=body,
            recv=recv,
            type_params=tparams,
            pos=self._pos(d),
            variadic=bool(d.get("variadic")),
        )

    def _var_decl(self, d: dict) -> VarDecl:
        const = "const" in d
        names = d["const"] if const else d["var"]
        if isinstance(names, str):
            names = [names]
        values = d.get("values")
        if values is None and "value" in d:
            values = [d["value"]]
        return VarDecl(
            names=[str(n) for n in names],
            type=self._type(d.get("type")),
            values=[self._expr(v) for v in values or []],
            pos=self._pos(d),
            const=const,
        )

    def _param(self, spec: object) -> Param:
        if isinstance(spec, dict) and "type" in spec:
            return Param(str(spec.get("name") or ""), self._type(spec["type"]))
        return Param("", self._type(spec))

    def _type_params(self, specs: object) -> tuple[TypeParam, ...]:
        out = []
        for s in specs or []:
            name = s.get("name") if isinstance(s, dict) else s
            if not isinstance(name, str):
                raise UnitFormatError(f"bad type parameter {s!r}")
            out.append(TypeParam(name))
        return tuple(out)

    def _constrain(self, tparams: tuple[TypeParam, ...], specs: object) -> None:
        for tp, s in zip(tparams, specs or []):
            constraint = s.get("constraint") if isinstance(s, dict) else None
            tp.constraint = self._type(constraint) if constraint is not None else ANY

    def _method(self, m: dict) -> Method:
        if not isinstance(m, dict) or "name" not in m:
            raise UnitFormatError(f"bad method {m!r}")
        sig = Signature(
            tuple(self._type(p) for p in m.get("params") or []),
            tuple(self._type(r) for r in m.get("results") or []),
            bool(m.get("variadic")),
        )
        return Method(str(m["name"]), sig, bool(m.get("pointer")))

    # ── Statements ──────────────────────────────────────────────────────

    def _block(self, stmts: object) -> BlockStmt:
        if not isinstance(stmts, list):
            raise UnitFormatError(f"{self.file}: expected a statement list, got {stmts!r}")
        self.scopes.append({})
        try:
            return BlockStmt([self._stmt(s) for s in stmts])
        finally:
            self.scopes.pop()

    def _stmt(self, d: object) -> Stmt:
        if not isinstance(d, dict):
            raise UnitFormatError(f"{self.file}: statement must be a mapping, got {d!r}")
        pos = self._pos(d)
        if "expr" in d:
            return ExprStmt(self._expr(d["expr"]), pos)
        if "define" in d:
            names = d["define"] if isinstance(d["define"], list) else [d["define"]]
            return AssignStmt([Ident(str(n), pos) for n in names], ":=",
                              self._exprs(d.get("rhs")), pos)
        if "assign" in d:
            lhs = d["assign"] if isinstance(d["assign"], list) else [d["assign"]]
            return AssignStmt([self._expr(x) for x in lhs], str(d.get("tok", "=")),
                              self._exprs(d.get("rhs")), pos)
        if "var" in d or "const" in d:
            return self._var_decl(d)
        if "typedecl" in d:
            name = str(d["typedecl"])
            named = Named(name, self.path)
            self.scopes[-1][name] = named
            self._fill(named, d)
            return TypeDecl(name, named, pos)
        if "if" in d:
            return self._if(d)
        if "for" in d:
            cond = d["for"]
            return ForStmt(
                body=self._block(d.get("body") or []),
                init=self._stmt(d["init"]) if d.get("init") else None,
                cond=self._expr(cond) if cond is not None else None,
                post=self._stmt(d["post"]) if d.get("post") else None,
                pos=pos,
            )
        if "range" in d:
            return RangeStmt(
                x=self._expr(d["range"]),
                body=self._block(d.get("body") or []),
                key=self._expr(d["key"]) if d.get("key") is not None else None,
                value=self._expr(d["value"]) if d.get("value") is not None else None,
                define=bool(d.get("define")),
                pos=pos,
            )
        if "switch" in d:
            clauses = []
            for c in d.get("cases") or []:
                c = _mapping(c, f"{self.file}: switch case")
                self.scopes.append({})
                try:
                    clauses.append(CaseClause(
                        self._exprs(c.get("exprs")),
                        [self._stmt(s) for s in c.get("body") or []],
                        self._pos(c),
                    ))
                finally:
                    self.scopes.pop()
            tag = d["switch"]
            return SwitchStmt(
                clauses=clauses,
                init=self._stmt(d["init"]) if d.get("init") else None,
                tag=self._expr(tag) if tag is not None else None,
                pos=pos,
            )
        if "return" in d:
            results = d["return"]
            if results is None:
                results = []
            elif not isinstance(results, list):
                results = [results]
            return ReturnStmt([self._expr(r) for r in results], pos)
        if "block" in d:
            block = self._block(d["block"] or [])
            block.pos = pos
            return block
        if "defer" in d:
            return DeferStmt(self._expr(d["defer"]), pos)
        if "go" in d:
            return GoStmt(self._expr(d["go"]), pos)
        raise UnitFormatError(f"{self.file}: unknown statement {sorted(d)}")

    def _if(self, d: dict) -> IfStmt:
        els = d.get("else")
        if isinstance(els, dict):
            else_: Stmt | None = self._stmt(els)
        elif isinstance(els, list):
            else_ = self._block(els)
        else:
            else_ = None
        return IfStmt(
            cond=self._expr(d["if"]),
            body=self._block(d.get("then") or []),
            init=self._stmt(d["init"]) if d.get("init") else None,
            else_=else_,
            pos=self._pos(d),
        )

    # ── Expressions ─────────────────────────────────────────────────────

    def _exprs(self, items: object) -> list[Expr]:
        if items is None:
            return []
        if not isinstance(items, list):
            items = [items]
        return [self._expr(i) for i in items]

    def _expr(self, d: object) -> Expr:
        if isinstance(d, bool):
            return Ident("true" if d else "false")
        if isinstance(d, str):
            return Ident(d)
        if isinstance(d, (int, float)):
            return BasicLit("INT" if isinstance(d, int) else "FLOAT", str(d))
        if not isinstance(d, dict):
            raise UnitFormatError(f"{self.file}: bad expression {d!r}")

        kind = next((k for k in _EXPR_KINDS if k in d), None)
        if kind is None:
            raise UnitFormatError(f"{self.file}: unknown expression {sorted(d)}")
        pos = self._pos(d)
        typ = self._type(d["type"]) if "type" in d and kind != "composite" else None
        v = d[kind]

        if kind == "ident":
            return Ident(str(v), pos, typ)
        if kind == "lit":
            return BasicLit(str(d.get("kind", "INT")), str(v), pos, typ)
        if kind == "paren":
            return ParenExpr(self._expr(v), pos, typ)
        if kind == "addr":
            return UnaryExpr("&", self._expr(v), pos, typ)
        if kind == "unary":
            return UnaryExpr(str(v), self._expr(d.get("x")), pos, typ)
        if kind == "binary":
            return BinaryExpr(str(v), self._expr(d.get("x")), self._expr(d.get("y")), pos, typ)
        if kind == "star":
            return StarExpr(self._expr(v), pos, typ)
        if kind == "sel":
            if not isinstance(v, list) or len(v) != 2:
                raise UnitFormatError(f"{self.file}: 'sel' needs [x, name], got {v!r}")
            return SelectorExpr(self._expr(v[0]), str(v[1]), pos, typ)
        if kind == "call":
            return CallExpr(self._expr(v), self._exprs(d.get("args")), pos, typ,
                            bool(d.get("ellipsis")))
        if kind == "new":
            fun = self._expr(d.get("fun", "new"))
            return CallExpr(fun, [TypeExpr(self._type(v), pos)], pos, typ)
        if kind == "composite":
            return CompositeLit(self._type(v), self._exprs(d.get("elts")), pos)
        if kind == "kv":
            if not isinstance(v, list) or len(v) != 2:
                raise UnitFormatError(f"{self.file}: 'kv' needs [key, value], got {v!r}")
            return KeyValueExpr(self._expr(v[0]), self._expr(v[1]), pos, typ)
        if kind == "index":
            return IndexExpr(self._expr(v), self._exprs(d.get("indices")), pos, typ)
        if kind == "typexpr":
            return TypeExpr(self._type(v), pos)
        # func_lit
        sig = _mapping(v, f"{self.file}: 'func_lit' signature")
        self.scopes.append({})
        try:
            params = [self._param(p) for p in sig.get("params") or []]
            results = [self._param(r) for r in sig.get("results") or []]
            body = self._block(d.get("body") or [])
        finally:
            self.scopes.pop()
        return FuncLit(params, results, body, pos, bool(sig.get("variadic")))

    def _pos(self, d: dict) -> Pos | None:
        p = d.get("pos")
        if p is None:
            return None
        if isinstance(p, int):
            return Pos(p, 0, self.file)
        if isinstance(p, list) and p and all(isinstance(x, int) for x in p):
            return Pos(p[0], p[1] if len(p) > 1 else 0, self.file)
        raise UnitFormatError(f"{self.file}: bad position {p!r}")

    # ── Types ───────────────────────────────────────────────────────────

    def _type(self, spec: object) -> Type | None:
        if spec is None:
            return None
        if isinstance(spec, str):
            return self._type_string(spec.strip())
        if not isinstance(spec, dict):
            raise UnitFormatError(f"bad type {spec!r}")
        kind = next((k for k in _TYPE_KINDS if k in spec), None)
        if kind is None:
            raise UnitFormatError(f"unknown type spec {sorted(spec)}")
        v = spec[kind]
        if kind == "struct":
            return Struct(tuple(self._field(f) for f in v or []))
        if kind == "pointer":
            return Pointer(self._type(v))
        if kind == "slice":
            return Slice(self._type(v))
        if kind == "array":
            try:
                length = int(spec.get("len", 0))
            except (TypeError, ValueError):
                raise UnitFormatError(f"array length must be an integer, got {spec.get('len')!r}") from None
            return Array(length, self._type(v))
        if kind == "map":
            if not isinstance(v, list) or len(v) != 2:
                raise UnitFormatError(f"'map' needs [key, value], got {v!r}")
            return Map(self._type(v[0]), self._type(v[1]))
        if kind == "chan":
            return Chan(self._type(v), str(spec.get("dir", "")))
        if kind == "interface":
            return Interface(
                tuple(self._method(m) for m in v or []),
                tuple(self._type(e) for e in spec.get("embeds") or []),
            )
        if kind == "func":
            sig = _mapping(v, "'func' type")
            return Signature(
                tuple(self._type(p) for p in sig.get("params") or []),
                tuple(self._type(r) for r in sig.get("results") or []),
                bool(sig.get("variadic")),
            )
        if kind == "named":
            base = self._lookup(str(v))
            args = tuple(self._type(a) for a in spec.get("args") or [])
            return self._instance(base, args, str(v))
        return Tuple(tuple(self._type(e) for e in v or []))

    def _field(self, f: object) -> Field:
        if isinstance(f, dict) and "embed" in f:
            t = self._type(f["embed"])
            base = t.elem if isinstance(t, Pointer) else t
            name = getattr(base, "name", None)
            if not isinstance(name, str):
                raise UnitFormatError(f"embedded field must be a named type, got {f['embed']!r}")
            return Field(name, t, embedded=True)
        if isinstance(f, dict) and "type" in f:
            return Field(str(f.get("name") or "_"), self._type(f["type"]))
        raise UnitFormatError(f"bad struct field {f!r}")

    def _type_string(self, s: str) -> Type:
        if s.startswith("*"):
            return Pointer(self._type_string(s[1:].strip()))
        if s.startswith("[]"):
            return Slice(self._type_string(s[2:].strip()))
        m = _ARRAY_PREFIX.match(s)
        if m:
            return Array(int(m.group(1)), self._type_string(s[m.end():].strip()))
        if s.replace(" ", "") == "struct{}":
            return Struct()
        if s.replace(" ", "") == "interface{}":
            return Interface()
        if s.startswith("map["):
            close = _matching_bracket(s, 3)
            return Map(self._type_string(s[4:close]), self._type_string(s[close + 1:].strip()))
        if s.endswith("]") and "[" in s:
            open_ = s.index("[")
            base = self._lookup(s[:open_].strip())
            args = tuple(self._type_string(a) for a in _split_top(s[open_ + 1:-1]))
            return self._instance(base, args, s)
        return self._lookup(s)

    def _instance(self, base: Type, args: tuple, spelled: str) -> Type:
        if not args:
            return base
        if not isinstance(base, Named) or len(base.type_params) != len(args):
            raise UnitFormatError(f"cannot instantiate {spelled}")
        return instantiate(base, args)

    def _lookup(self, name: str) -> Type:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        if name in self.unit_types:
            return self.unit_types[name]
        if name in self.externals:
            return self.externals[name]
        if name in PREDECLARED_TYPES:
            return PREDECLARED_TYPES[name]
        if "." in name:
            # Undeclared external type: opaque, its shape is unknown.
            pkg, _, short = name.rpartition(".")
            named = Named(short, pkg)
            self.externals[name] = named
            return named
        raise UnitFormatError(f"undeclared type {name}")


def _mapping(value: object, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise UnitFormatError(f"{what} must be a mapping, got {value!r}")
    return value


def _decls(f: object) -> list[dict]:
    if not isinstance(f, dict):
        raise UnitFormatError(f"file entry must be a mapping, got {f!r}")
    decls = f.get("decls") or []
    if not isinstance(decls, list) or not all(isinstance(d, dict) for d in decls):
        raise UnitFormatError(f"{f.get('name')}: 'decls' must be a list of mappings")
    return decls


def _matching_bracket(s: str, start: int) -> int:
    depth = 0
    for i in range(start, len(s)):
        if s[i] == "[":
            depth += 1
        elif s[i] == "]":
            depth -= 1
            if depth == 0:
                return i
    raise UnitFormatError(f"unbalanced brackets in {s!r}")


def _split_top(s: str) -> list[str]:
    parts, depth, cur = [], 0, []
    for ch in s:
        if ch in "[{(":
            depth += 1
        elif ch in "]})":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(cur).strip())
            cur = []
        else:
            cur.append(ch)
    if cur:
        parts.append("".join(cur).strip())
    return [p for p in parts if p]
