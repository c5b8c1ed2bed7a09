"""Tests for lexical scopes and identifier resolution."""

from __future__ import annotations

from ptrequality.analyzer.registry import (
    CHAIN_FUNCS,
    ERRORS,
    EXP_ERRORS,
    XERRORS,
    ChainKind,
    lookup_chain_func,
    package_chain_funcs,
)
from ptrequality.analyzer.scope import (
    Binding,
    BindingKind,
    Scope,
    file_scope,
    is_builtin_new,
    package_scope,
    resolve_chain_func,
    universe_scope,
)
from ptrequality.ir import builders as b
from ptrequality.ir.nodes import Import, Param


def scope_for(*imports: Import, decls=()) -> Scope:
    unit = b.unit(*decls, imports=imports)
    return file_scope(unit.files[0], package_scope(unit, universe_scope()))


class TestRegistry:
    def test_every_error_package_has_is_as_unwrap(self):
        for pkg in (ERRORS, XERRORS, EXP_ERRORS):
            kinds = {f.kind for f in package_chain_funcs(pkg)}
            assert {ChainKind.IS, ChainKind.AS, ChainKind.UNWRAP} <= kinds

    def test_join_only_in_errors(self):
        assert lookup_chain_func(ERRORS, "Join") is not None
        assert lookup_chain_func(XERRORS, "Join") is None
        assert lookup_chain_func(EXP_ERRORS, "Join") is None

    def test_display_uses_package_name(self):
        assert CHAIN_FUNCS[(XERRORS, "Is")].display == "xerrors.Is"
        assert CHAIN_FUNCS[(EXP_ERRORS, "Is")].display == "errors.Is"

    def test_unknown(self):
        assert lookup_chain_func("fmt", "Errorf") is None


class TestResolveChainFunc:
    def test_qualified(self):
        scope = scope_for(Import("errors"))
        fn = resolve_chain_func(scope, b.sel("errors", "Is"))
        assert fn is not None
        assert fn.package == ERRORS
        assert fn.kind is ChainKind.IS

    def test_default_name_is_last_path_element(self):
        scope = scope_for(Import(XERRORS))
        fn = resolve_chain_func(scope, b.sel("xerrors", "Is"))
        assert fn is not None and fn.package == XERRORS

    def test_declared_package_name(self):
        scope = scope_for(Import("example.test/errors/v2", package_name="errors"))
        assert scope.lookup("errors").package == "example.test/errors/v2"
        assert resolve_chain_func(scope, b.sel("errors", "Is")) is None

    def test_renamed_import(self):
        scope = scope_for(Import(EXP_ERRORS, "errorsx"))
        fn = resolve_chain_func(scope, b.sel("errorsx", "Is"))
        assert fn is not None and fn.package == EXP_ERRORS
        assert scope.lookup("errors") is None

    def test_dot_import(self):
        scope = scope_for(Import("errors", "."))
        fn = resolve_chain_func(scope, b.ident("Is"))
        assert fn is not None and fn.package == ERRORS
        assert resolve_chain_func(scope, b.ident("Join")).kind is ChainKind.JOIN

    def test_blank_import_binds_nothing(self):
        scope = scope_for(Import("errors", "_"))
        assert scope.lookup("errors") is None
        assert resolve_chain_func(scope, b.sel("errors", "Is")) is None

    def test_parenthesized_function(self):
        scope = scope_for(Import("errors"))
        assert resolve_chain_func(scope, b.paren(b.sel("errors", "Is"))) is not None

    def test_local_variable_shadows_package(self):
        scope = scope_for(Import("errors")).child()
        scope.declare(Binding(BindingKind.VAR, "errors"))
        assert resolve_chain_func(scope, b.sel("errors", "Is")) is None

    def test_unknown_function(self):
        scope = scope_for(Import("errors"))
        assert resolve_chain_func(scope, b.sel("errors", "New")) is None
        assert resolve_chain_func(scope, b.ident("Is")) is None
        assert resolve_chain_func(scope, b.sel("fmt", "Is")) is None


class TestBuiltins:
    def test_new_is_builtin_in_universe(self):
        assert is_builtin_new(scope_for(), b.ident("new"))

    def test_parenthesized_new(self):
        assert is_builtin_new(scope_for(), b.paren(b.paren("new")))

    def test_local_new_shadows_builtin(self):
        scope = scope_for().child()
        scope.declare(Binding(BindingKind.VAR, "new"))
        assert not is_builtin_new(scope, b.ident("new"))

    def test_package_func_named_new_shadows_builtin(self):
        scope = scope_for(decls=[b.func("new", params=[Param("x", None)])])
        assert scope.lookup("new").kind is BindingKind.FUNC
        assert not is_builtin_new(scope, b.ident("new"))

    def test_other_names_are_not_new(self):
        assert not is_builtin_new(scope_for(), b.ident("make"))
        assert not is_builtin_new(scope_for(), b.sel("pkg", "new"))


class TestScope:
    def test_inner_declarations_do_not_leak(self):
        outer = Scope()
        inner = outer.child()
        inner.declare(Binding(BindingKind.VAR, "x"))
        assert inner.lookup("x") is not None
        assert outer.lookup("x") is None

    def test_blank_names_are_not_declared(self):
        scope = Scope()
        scope.declare(Binding(BindingKind.VAR, "_"))
        assert scope.lookup("_") is None

    def test_lookup_fails_softly(self):
        assert universe_scope().lookup("undefined") is None
