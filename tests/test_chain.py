"""Tests for Is / Unwrap interception along error chains."""

from __future__ import annotations

from ptrequality.analyzer.chain import (
    MAX_UNWRAP_DEPTH,
    call_interception,
    find_interception,
    is_equivalence_method,
    operand_types,
)
from ptrequality.analyzer.scope import Scope, file_scope, package_scope, universe_scope
from ptrequality.ir import builders as b
from ptrequality.ir.nodes import Import
from ptrequality.ir.types import BOOL, ERROR, STRING, Named, Pointer

PKG = "example.test/a"


def make_scope() -> Scope:
    unit = b.unit(imports=[Import("errors")])
    return file_scope(unit.files[0], package_scope(unit, universe_scope())).child()


def error_type(name: str, *methods) -> Named:
    return b.named(name, b.struct(), package=PKG, methods=list(methods))


def unwraps_to(name: str, target, many: bool = False) -> Named:
    result = b.slice_of(target) if many else target
    return error_type(name, b.method("Unwrap", results=[result]))


WITH_IS = error_type("myErrorWithIs", b.method("Is", [ERROR], [BOOL]))
WITH_IS2 = error_type("myError1", b.method("Is", [ERROR, ERROR], [BOOL]))
PLAIN = error_type("plain", b.method("Error", results=[STRING]))


class TestEquivalenceMethod:
    def test_single_argument(self):
        assert is_equivalence_method(WITH_IS.method("Is"))

    def test_two_arguments_do_not_qualify(self):
        assert not is_equivalence_method(WITH_IS2.method("Is"))

    def test_result_must_be_single_bool(self):
        m = b.method("Is", [ERROR], [BOOL, ERROR])
        assert not is_equivalence_method(m)
        assert not is_equivalence_method(b.method("Is", [ERROR], [ERROR]))

    def test_missing(self):
        assert not is_equivalence_method(None)


class TestFindInterception:
    def test_is_method(self):
        assert find_interception(WITH_IS)
        assert find_interception(b.ptr(WITH_IS))

    def test_two_argument_is(self):
        assert not find_interception(b.ptr(WITH_IS2))

    def test_plain(self):
        assert not find_interception(b.ptr(PLAIN))
        assert not find_interception(ERROR)
        assert not find_interception(None)

    def test_promoted_through_embedded_pointer(self):
        assert find_interception(b.ptr(b.struct(b.embed(b.ptr(WITH_IS)))))

    def test_unwrap_to_interface(self):
        assert find_interception(b.ptr(unwraps_to("myErrorWithUnwrap", ERROR)))
        assert find_interception(b.ptr(unwraps_to("myErrorWithUnwrapArray", ERROR, many=True)))

    def test_unwrap_to_concrete_plain_type(self):
        assert not find_interception(unwraps_to("wrapper", b.ptr(PLAIN)))
        assert not find_interception(unwraps_to("multi", b.ptr(PLAIN), many=True))

    def test_two_step_unwrap_chain(self):
        inner = unwraps_to("inner", b.ptr(WITH_IS))
        outer = unwraps_to("outer", b.ptr(inner))
        assert find_interception(b.ptr(outer))

    def test_self_cycle_counts_as_intercepting(self):
        loop = Named("loop", PKG, b.struct())
        loop.add_method(b.method("Unwrap", results=[Pointer(loop)]))
        assert find_interception(loop)

    def test_depth_is_bounded(self):
        t = b.ptr(PLAIN)
        for i in range(MAX_UNWRAP_DEPTH + 1):
            t = b.ptr(unwraps_to(f"w{i}", t))
        assert find_interception(t)

    def test_short_chain_without_is(self):
        t = b.ptr(PLAIN)
        for i in range(3):
            t = b.ptr(unwraps_to(f"w{i}", t))
        assert not find_interception(t)

    def test_type_param_uses_constraint(self):
        stringer = b.iface(b.method("String", results=[STRING]))
        assert not find_interception(b.tparam("T", stringer))
        assert not find_interception(b.tparam("T"))
        assert find_interception(b.tparam("T", b.iface(b.method("Is", [ERROR], [BOOL]))))


class TestOperandTypes:
    def test_plain_operand(self):
        scope = make_scope()
        assert operand_types(b.addr(b.composite(WITH_IS)), scope) == [Pointer(WITH_IS)]

    def test_join_flattens(self):
        scope = make_scope()
        join = b.call(b.sel("errors", "Join"), b.addr(b.composite(PLAIN)), b.addr(b.composite(WITH_IS)))
        assert operand_types(join, scope) == [Pointer(PLAIN), Pointer(WITH_IS)]

    def test_unwrap_of_join_is_nil(self):
        scope = make_scope()
        join = b.call(b.sel("errors", "Join"), b.addr(b.composite(PLAIN)))
        assert operand_types(b.call(b.sel("errors", "Unwrap"), join), scope) == []

    def test_unwrap_with_concrete_result(self):
        scope = make_scope()
        wrapper = unwraps_to("wrapper", b.ptr(WITH_IS))
        unwrap = b.call(b.sel("errors", "Unwrap"), b.addr(b.composite(wrapper)))
        assert operand_types(unwrap, scope) == [Pointer(WITH_IS)]

    def test_unwrap_otherwise_yields_error(self):
        scope = make_scope()
        unwrap = b.call(b.sel("errors", "Unwrap"), b.addr(b.composite(PLAIN)))
        assert operand_types(unwrap, scope) == [ERROR]

    def test_call_interception(self):
        scope = make_scope()
        fresh_plain = b.addr(b.composite(PLAIN))
        assert not call_interception([fresh_plain, fresh_plain], scope)
        assert call_interception([fresh_plain, b.addr(b.composite(WITH_IS))], scope)
        assert call_interception([b.nil(), b.call(b.sel("errors", "Join"), b.addr(b.composite(WITH_IS)))], scope)
