# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import pytest

from autoshim.diagnostics import ReasonKind, Rename
from autoshim.errors import NameCollisionError


def _foo(entities, type_):
    return entities.function("ns::foo", [entities.param("x", type_)])


def test_overloads_get_signature_suffixes(analyse, entities):
    ctx = analyse(
        [_foo(entities, "int"), _foo(entities, "double")], {"generate": ["ns::foo"]}
    )
    assert ctx.items["ns::foo(int)"].bridge_name == "ns_foo_int"
    assert ctx.items["ns::foo(double)"].bridge_name == "ns_foo_double"
    assert ctx.diagnostics.renames == {
        "ns_foo_double": Rename("ns::foo", "(double)"),
        "ns_foo_int": Rename("ns::foo", "(int)"),
    }
    # Renamed overloads are called through a shim under their new name.
    assert ctx.items["ns::foo(int)"].shim_plan.shim_name == "ns_foo_int_autoshim"


def test_suffixes_do_not_depend_on_declaration_order(analyse, entities):
    forward = analyse(
        [_foo(entities, "int"), _foo(entities, "double")], {"generate": ["ns::foo"]}
    )
    backward = analyse(
        [_foo(entities, "double"), _foo(entities, "int")], {"generate": ["ns::foo"]}
    )
    assert forward.bridge_names == backward.bridge_names


def test_single_callable_keeps_its_name(analyse, entities):
    ctx = analyse(
        [_foo(entities, "int"), _foo(entities, "long double")],
        {"generate": ["ns::foo"]},
    )
    # The excluded overload no longer competes for the name.
    assert ctx.items["ns::foo(long double)"].is_excluded
    assert ctx.items["ns::foo(int)"].bridge_name == "ns_foo"
    assert ctx.diagnostics.renames == {}
    assert not ctx.items["ns::foo(int)"].shim_plan.needs_shim


def test_const_overloads(analyse, entities):
    widget = entities.struct(
        "ns::W",
        [entities.field("x", "int")],
        [
            entities.method("get", [], "int"),
            entities.method("get", [], "int", const=True),
        ],
    )
    ctx = analyse([widget], {"generate": ["ns::W"]})
    assert ctx.items["ns::W::get()"].bridge_name == "ns_W_get_void"
    assert ctx.items["ns::W::get() const"].bridge_name == "ns_W_get_void_const"
    assert ctx.diagnostics.renames["ns_W_get_void_const"] == Rename(
        "ns::W::get", "() const"
    )


def test_indistinguishable_overloads_are_excluded(analyse, entities):
    a = entities.struct("A", [entities.field("x", "int")])
    a_ptr = entities.struct("A_ptr", [entities.field("x", "int")])
    by_pointer = entities.function("f", [entities.param("a", "A*")])
    by_value = entities.function("f", [entities.param("a", "A_ptr")])

    ctx = analyse([a, a_ptr, by_pointer, by_value], {"generate": ["f"]})
    for key in ("f(A*)", "f(A_ptr)"):
        assert ctx.items[key].exclusion.reason_kind == ReasonKind.name_collision
    assert ctx.diagnostics.reason_of("f") == ReasonKind.name_collision
    assert "f_A_ptr" not in ctx.diagnostics.renames


def test_type_names_must_be_unique(analyse, entities):
    first = entities.struct("ns::a_b", [entities.field("x", "int")])
    second = entities.struct("ns_a::b", [entities.field("x", "int")])
    with pytest.raises(NameCollisionError) as e:
        analyse([first, second], {"generate": ["ns::a_b", "ns_a::b"]})
    assert e.value.bridge_name == "ns_a_b"
    assert e.value.owners == ["ns::a_b", "ns_a::b"]


def test_operators_and_constructors(analyse, entities):
    vec = entities.struct(
        "ns::V",
        [entities.field("x", "int")],
        [
            entities.ctor("V", [entities.param("x", "int")]),
            entities.method("operator+", [entities.param("o", "const ns::V&")], "ns::V", const=True),
            entities.method("operator-", [], "ns::V", const=True),
            entities.method("operator bool", [], "bool", const=True),
        ],
    )
    ctx = analyse([vec], {"generate": ["ns::V"]})
    names = {k: item.bridge_name for k, item in ctx.items.items()}
    assert names["ns::V::V(int)"] == "ns_V_new"
    assert names["ns::V::operator+(const ns::V&) const"] == "ns_V_op_add"
    assert names["ns::V::operator-() const"] == "ns_V_op_neg"
    assert names["ns::V::operator bool() const"] == "ns_V_as_bool"
