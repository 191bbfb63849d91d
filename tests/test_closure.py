# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from autoshim.decl import ItemKind
from autoshim.diagnostics import ReasonKind
from autoshim.typedb import Classification


def _vec(entities):
    return {
        "name": "ns::Vec",
        "kind": "class_template",
        "template_parameters": ["T"],
        "fields": [entities.field("data", "T*"), entities.field("size", "int")],
        "methods": [entities.method("at", [entities.param("i", "int")], "const T&", const=True)],
        "traits": entities.TRIVIAL,
    }


def _pair(entities):
    return {
        "name": "ns::Pair",
        "kind": "class_template",
        "template_parameters": ["A", {"name": "B"}],
        "fields": [entities.field("first", "A"), entities.field("second", "B")],
        "traits": entities.TRIVIAL,
    }


def test_instantiation_from_a_signature(analyse, entities):
    total = entities.function("ns::sum", [entities.param("v", "ns::Vec<int>")], "int")
    ctx = analyse([_vec(entities), total], {"generate": ["ns::sum"]})

    inst = ctx.items["ns::Vec<int>"]
    assert inst.kind == ItemKind.template_instantiation
    assert inst.is_root
    assert [str(f) for f in inst.fields] == ["int* data", "int size"]
    assert ctx.typedb["ns::Vec<int>"].classification == Classification.trivial_value
    assert ctx.typedb["ns::Vec<int>"].template_instantiation
    assert "ns::Vec<int>" in ctx.graph.dependencies("ns::sum(ns::Vec<int>)")
    # Methods of an instantiation are generated with it.
    assert "ns::Vec<int>::at(int) const" in ctx.items


def test_nested_instantiations_are_closed(analyse, entities):
    ctx = analyse(
        [_vec(entities), _pair(entities)],
        {"generate": ["ns::Pair<int, ns::Vec<double>>"]},
    )
    pair = ctx.items["ns::Pair<int, ns::Vec<double>>"]
    assert [f.type_.spelling for f in pair.fields] == ["int", "ns::Vec<double>"]
    assert "ns::Vec<double>" in ctx.items
    assert not ctx.items["ns::Vec<double>"].is_excluded


def test_instantiation_keys_are_shared(analyse, entities):
    f = entities.function("ns::f", [entities.param("v", "ns::Vec< int >")])
    g = entities.function("ns::g", [entities.param("v", "const ns::Vec<int>&")])
    ctx = analyse([_vec(entities), f, g], {"generate": ["ns::f", "ns::g"]})
    instantiations = [
        k for k, item in ctx.items.items() if item.kind == ItemKind.template_instantiation
    ]
    assert instantiations == ["ns::Vec<int>"]


def test_self_referencing_template_terminates(analyse, entities):
    node = {
        "name": "ns::List",
        "kind": "class_template",
        "template_parameters": ["T"],
        "fields": [entities.field("value", "T"), entities.field("next", "ns::List<T>*")],
        "traits": entities.TRIVIAL,
    }
    ctx = analyse([node], {"generate": ["ns::List<int>"]})
    assert not ctx.items["ns::List<int>"].is_excluded


def test_depth_limit(analyse, entities):
    nest = {
        "name": "ns::Nest",
        "kind": "class_template",
        "template_parameters": ["T"],
        "fields": [entities.field("deeper", "ns::Nest<ns::Nest<T>>*")],
        "traits": entities.TRIVIAL,
    }
    ctx = analyse([nest], {"generate": ["ns::Nest<int>"]}, max_instantiation_depth=3)

    too_deep = "ns::Nest<ns::Nest<ns::Nest<ns::Nest<int>>>>"
    assert too_deep in ctx.items
    assert ctx.items[too_deep].exclusion.reason_kind == ReasonKind.unsupported_type
    # The exclusion reaches every enclosing instantiation.
    assert ctx.items["ns::Nest<int>"].exclusion.reason_kind == ReasonKind.unsupported_type


def test_unknown_templates_and_bad_arguments(analyse, entities):
    f = entities.function("ns::f", [entities.param("x", "ns::Unknown<int>*")])
    g = entities.function("ns::g", [entities.param("v", "ns::Vec<int, int>")])
    ctx = analyse([_vec(entities), f, g], {"generate": ["ns::f", "ns::g"]})

    unknown = ctx.items["ns::Unknown<int>"]
    assert not unknown.complete
    assert not ctx.items["ns::f(ns::Unknown<int>*)"].is_excluded

    bad = ctx.items["ns::Vec<int, int>"]
    assert bad.exclusion.reason_kind == ReasonKind.unsupported_type
    assert (
        ctx.items["ns::g(ns::Vec<int, int>)"].exclusion.reason_kind
        == ReasonKind.unsupported_type
    )


def test_builtin_templates_are_not_expanded(analyse, entities):
    f = entities.function("ns::f", [entities.param("v", "const std::vector<ns::Vec<int>>&")])
    ctx = analyse([_vec(entities), f], {"generate": ["ns::f"]})
    assert "std::vector<ns::Vec<int>>" not in ctx.items
    assert ctx.typedb["std::vector<ns::Vec<int>>"].builtin
    assert "ns::Vec<int>" in ctx.items
