"""Tests for type descriptors, instantiation and printing."""

from __future__ import annotations

from ptrequality.ir import builders as b
from ptrequality.ir.types import (
    BOOL,
    BYTE,
    ERROR,
    INT,
    STRING,
    Field,
    Interface,
    Named,
    Pointer,
    Struct,
    TypeParam,
    instantiate,
    type_key,
    type_string,
    underlying,
)


class TestTypeString:
    def test_local_named_is_unqualified(self):
        t = b.named("myError1", b.struct(), package="go.test/a")
        assert type_string(t, relative_to="go.test/a") == "myError1"
        assert type_string(b.ptr(t), relative_to="go.test/a") == "*myError1"

    def test_foreign_named_uses_package_name(self):
        t = b.named("UnmarshalTypeError", b.struct(), package="encoding/json")
        assert type_string(t, relative_to="go.test/a") == "json.UnmarshalTypeError"

    def test_universe_types(self):
        assert type_string(ERROR) == "error"
        assert type_string(b.array(0, BYTE)) == "[0]byte"
        assert type_string(b.slice_of(ERROR)) == "[]error"

    def test_struct_literal_types(self):
        assert type_string(b.struct()) == "struct{}"
        assert type_string(b.struct(b.field("_", INT))) == "struct{_ int}"
        inner = b.named("myErrorWithIs", b.struct(), package="p")
        assert type_string(b.struct(b.embed(b.ptr(inner))), "p") == "struct{*myErrorWithIs}"

    def test_interface_and_signature(self):
        assert type_string(Interface()) == "interface{}"
        iface = b.iface(b.method("Is", [ERROR], [BOOL]))
        assert type_string(iface) == "interface{Is(error) bool}"
        assert type_string(b.sig([INT, STRING], [ERROR])) == "func(int, string) error"

    def test_missing_type(self):
        assert type_string(None) == "invalid type"


class TestTypeKey:
    def test_distinguishes_packages(self):
        a = b.named("T", b.struct(), package="x/a")
        c = b.named("T", b.struct(), package="y/a")
        assert type_string(a) == type_string(c)
        assert type_key(a) != type_key(c)

    def test_distinguishes_type_params_with_same_name(self):
        assert type_key(TypeParam("T")) != type_key(TypeParam("T"))


class TestUnderlying:
    def test_follows_named_chain(self):
        base = b.named("base", b.struct(), package="p")
        alias = b.named("alias", base, package="p")
        assert underlying(alias) == Struct()

    def test_cycle_yields_none(self):
        a = Named("a", "p")
        c = Named("c", "p", underlying=a)
        a.underlying = c
        assert underlying(a) is None


class TestInstantiate:
    def _box(self):
        tp = b.tparam("T")
        box = b.named(
            "box",
            b.struct(b.field("v", tp)),
            package="p",
            methods=[b.method("Get", results=[tp])],
            type_params=[tp],
        )
        return box, tp

    def test_substitutes_underlying(self):
        box, _ = self._box()
        inst = instantiate(box, (INT,))
        assert inst.origin is box
        assert underlying(inst) == Struct((Field("v", INT),))
        assert type_string(inst, "p") == "box[int]"

    def test_substitutes_methods(self):
        box, _ = self._box()
        inst = instantiate(box, (STRING,))
        assert inst.method("Get").signature.results == (STRING,)

    def test_instances_are_cached(self):
        box, _ = self._box()
        assert instantiate(box, (INT,)) is instantiate(box, (INT,))
        assert instantiate(box, (INT,)) is not instantiate(box, (STRING,))

    def test_own_params_yield_origin(self):
        box, tp = self._box()
        assert instantiate(box, (tp,)) is box

    def test_methods_added_later_reach_instances(self):
        box, _ = self._box()
        inst = instantiate(box, (INT,))
        box.add_method(b.method("Error", results=[STRING]))
        assert inst.method("Error") is not None

    def test_instance_methods_are_memoized(self):
        box, _ = self._box()
        inst = instantiate(box, (INT,))
        first = inst.methods
        assert inst.methods is first
        box.add_method(b.method("Error", results=[STRING]))
        assert [m.name for m in inst.methods] == ["Get", "Error"]
        assert [m.name for m in box.methods] == ["Get", "Error"]
        assert box.method("Get").signature.results[0] is not INT

    def test_recursive_generic_does_not_loop(self):
        tp = b.tparam("T")
        node = Named("node", "p", type_params=(tp,))
        node.underlying = b.struct(b.field("v", tp), b.field("next", Pointer(node)))
        inst = instantiate(node, (INT,))
        fields = underlying(inst).fields
        assert fields[0].type == INT
        assert fields[1].type == Pointer(inst)
