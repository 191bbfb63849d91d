# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from collections import Counter

import pytest

from autoshim import Directives, FrontendInput, generate_bindings
from autoshim.diagnostics import ReasonKind
from autoshim.errors import NothingToGenerateError


@pytest.fixture
def widget_entities(entities):
    e = entities
    return [
        e.struct("ns::Point", [e.field("x", "int"), e.field("y", "int")]),
        e.struct(
            "ns::Widget",
            [e.field("name_", "std::string", access="private")],
            [
                e.ctor("Widget", [e.param("name", "const std::string&")]),
                e.method("name", [], "const std::string&", const=True),
                e.method("rename", [e.param("name", "std::string")]),
            ],
            traits=e.NON_TRIVIAL,
        ),
        e.struct("ns::Secret", [e.field("key", "int")]),
        e.struct("ns::Holder", [e.field("secret", "ns::Secret")]),
        e.struct(
            "ns::Pool",
            [e.field("used", "int")],
            [e.method("operator new", [e.param("n", "size_t")], "void*", static=True)],
        ),
        e.enum("ns::Color", [("red", None), ("green", 5), ("blue", None)]),
        e.function("ns::foo", [e.param("x", "int")]),
        e.function("ns::foo", [e.param("x", "double")]),
        e.function("ns::bar", [], "ns::Secret"),
        e.function("ns::make_widget", [], "ns::Widget"),
        e.function("ns::distance", [e.param("a", "ns::Point"), e.param("b", "ns::Point")], "double"),
    ]


DIRECTIVES = {
    "generate": [
        "ns::Point",
        "ns::Widget",
        "ns::Holder",
        "ns::Pool",
        "ns::Color",
        "ns::foo",
        "ns::bar",
        "ns::make_widget",
        "ns::distance",
    ],
    "block": ["ns::Secret"],
}


@pytest.fixture
def result(generate, widget_entities):
    return generate(widget_entities, DIRECTIVES)


def test_preamble_and_includes(result):
    lines = result.bridge.splitlines()
    assert lines[0] == "# Automatically generated by autoshim bridge generator"
    assert 'include "widget.h"' in lines
    assert "builtin std::string : non_trivial_by_value" in lines
    assert '#include "widget.h"' in result.shim_header
    assert result.shim_source.splitlines()[2] == '#include "bindings_shim.h"'
    assert result.header_name == "bindings_shim.h"


def test_trivial_struct(result):
    assert (
        "type ns_Point = ns::Point : trivial_value {\n"
        "    field x: value int\n"
        "    field y: value int\n"
        "}"
    ) in result.bridge
    # Carried by value, the free function binds directly.
    assert (
        "fn ns_distance(a: value ns_Point, b: value ns_Point) -> value double "
        "[cxx ns::distance]\n"
    ) in result.bridge + "\n"
    assert "ns_Point" not in result.shim_source


def test_non_trivial_class(result, shim_names):
    assert "type ns_Widget = ns::Widget : non_trivial_by_value" in result.bridge
    assert (
        "fn ns_Widget_drop(self: boxed ns_Widget) -> void "
        "[cxx ns::Widget::~Widget] [shim ns_Widget_drop_autoshim]"
    ) in result.bridge
    assert (
        "fn ns_Widget_new(name: const_ref std::string) -> boxed ns_Widget "
        "[cxx ns::Widget::Widget] [shim ns_Widget_new_autoshim]"
    ) in result.bridge

    _, defined = shim_names(result)
    for name in ("new", "drop", "move_new", "copy_new", "rename"):
        assert f"ns_Widget_{name}_autoshim" in defined
    # The private field is not part of the bridge declaration.
    assert "field name_" not in result.bridge


def test_overload_set(result):
    renames = result.diagnostics.renames
    assert sorted(renames) == ["ns_foo_double", "ns_foo_int"]
    assert {r.qualified_name for r in renames.values()} == {"ns::foo"}
    assert "fn ns_foo_int(x: value int) -> void [cxx ns::foo] [shim ns_foo_int_autoshim]" in (
        result.bridge
    )
    assert "ns_foo_int" in result.symbols["functions"]


def test_blocked_dependency(result):
    d = result.diagnostics
    assert d.reason_of("ns::bar") == ReasonKind.blocked_dependency
    assert d.reason_of("ns::Holder") == ReasonKind.blocked_dependency
    for artifact in (result.bridge, result.shim_header, result.shim_source):
        assert "Secret" not in artifact
        assert "Holder" not in artifact
        assert "ns_bar" not in artifact


def test_allocation_operator_cannot_be_shimmed(result):
    assert result.diagnostics.reason_of("ns::Pool::operator new") == (
        ReasonKind.shim_generation_failed
    )
    assert "ns_Pool_op_new" not in result.bridge
    assert "ns_Pool_op_new" not in result.shim_source
    # The class itself survives.
    assert "type ns_Pool = ns::Pool : trivial_value {" in result.bridge


def test_enum(result):
    assert (
        "enum ns_Color = ns::Color : int {\n"
        "    red = 0\n"
        "    green = 5\n"
        "    blue = 6\n"
        "}"
    ) in result.bridge
    assert result.symbols["enums"] == ["ns_Color"]


def test_no_dangling_shim_names(result, shim_names):
    referenced, defined = shim_names(result)
    assert referenced
    assert sorted(referenced) == sorted(defined)
    assert all(n == 1 for n in Counter(referenced).values())
    # Every shim has a prototype in the header.
    for name in defined:
        assert f" {name}(" in result.shim_header


def test_runs_are_deterministic(generate, widget_entities):
    first = generate(widget_entities, DIRECTIVES)
    second = generate(list(reversed(widget_entities)), DIRECTIVES)
    assert first.bridge == second.bridge
    assert first.shim_header == second.shim_header
    assert first.shim_source == second.shim_source
    assert first.diagnostics.to_yaml() == second.diagnostics.to_yaml()


def test_instantiations_are_emitted_with_their_users(generate, entities):
    e = entities
    vec = {
        "name": "ns::Vec",
        "kind": "class_template",
        "template_parameters": ["T"],
        "fields": [e.field("data", "T*"), e.field("size", "int")],
        "traits": e.TRIVIAL,
    }
    total = e.function("ns::total", [e.param("v", "ns::Vec<ns::Vec<int>>")], "int")
    result = generate([vec, total], {"generate": ["ns::total"]})

    assert (
        "type ns_Vec_ns_Vec_int = ns::Vec<ns::Vec<int>> : trivial_value "
        "[instantiation ns::Vec] {\n"
        "    field data: ptr ns_Vec_int\n"
        "    field size: value int\n"
        "}"
    ) in result.bridge
    assert "type ns_Vec_int = ns::Vec<int> : trivial_value [instantiation ns::Vec] {" in (
        result.bridge
    )
    # Declarations come before their users.
    assert result.bridge.index("type ns_Vec_int =") < result.bridge.index(
        "type ns_Vec_ns_Vec_int ="
    )
    assert result.bridge.index("type ns_Vec_ns_Vec_int =") < result.bridge.index("fn ns_total(")


def test_custom_output_name_and_suffix(make_input, entities):
    w = entities.struct(
        "ns::W", [entities.field("s", "std::string")], traits=entities.NON_TRIVIAL
    )
    make = entities.function("ns::make", [], "ns::W")
    result = generate_bindings(
        make_input(w, make),
        Directives.from_config({"generate": ["ns::make"]}),
        output_name="widgets",
        shim_suffix="_shim",
    )
    assert result.header_name == "widgets_shim.h"
    assert '#include "widgets_shim.h"' in result.shim_source
    assert "[shim ns_make_shim]" in result.bridge


def test_nothing_to_generate():
    with pytest.raises(NothingToGenerateError):
        generate_bindings(
            FrontendInput(["widget.h"], []),
            Directives.from_config({"generate_ns": ["ns"]}),
        )
