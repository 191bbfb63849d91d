# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import warnings

import pytest

from autoshim.diagnostics import ReasonKind
from autoshim.directives import Directives
from autoshim.frontend import build_api_graph
from autoshim.passes import propagate_exclusions, run_analysis_passes


def _reason(ctx, key):
    exclusion = ctx.items[key].exclusion
    return exclusion.reason_kind if exclusion is not None else None


@pytest.mark.parametrize(
    "type_",
    ["long double", "int[4]", "void (*)(int)", "__int128", "std::nullptr_t"],
)
def test_unrepresentable_parameters(analyse, entities, type_):
    f = entities.function("ns::f", [entities.param("x", type_)])
    ctx = analyse([f], {"generate": ["ns::f"]})
    [key] = ctx.items
    assert _reason(ctx, key) == ReasonKind.unsupported_type


def test_unsupported_members_propagate(analyse, entities):
    e = entities
    buf = e.struct(
        "ns::Buf",
        [e.field("data", "char[16]")],
        [e.method("size", [], "int", const=True)],
    )
    holder = e.struct("ns::Holder", [e.field("buf", "ns::Buf")])
    fill = e.function("ns::fill", [e.param("b", "ns::Buf*")])
    ok = e.function("ns::ok", [e.param("x", "int")])

    ctx = analyse(
        [buf, holder, fill, ok], {"generate": ["ns::Buf", "ns::Holder", "ns::fill", "ns::ok"]}
    )
    for key in ("ns::Buf", "ns::Holder", "ns::fill(ns::Buf*)", "ns::Buf::size() const"):
        assert _reason(ctx, key) == ReasonKind.unsupported_type, key
    assert _reason(ctx, "ns::ok(int)") is None


def test_blocked_dependencies(analyse, entities):
    e = entities
    secret = e.struct("ns::Secret", [e.field("x", "int")])
    impl = e.struct("ns::detail::Impl", [e.field("x", "int")])
    holder = e.struct("ns::Holder", [e.field("s", "ns::Secret")])
    functions = [
        e.function("ns::peek", [e.param("s", "const ns::Secret*")]),
        e.function("ns::show", [e.param("h", "const ns::Holder&")]),
        e.function("ns::wrap", [e.param("i", "ns::detail::Impl*")]),
    ]
    ctx = analyse(
        [secret, impl, holder] + functions,
        {
            "generate": ["ns::Holder", "ns::peek", "ns::show", "ns::wrap"],
            "block": ["ns::Secret", "ns::detail"],
        },
    )
    assert "ns::Secret" not in ctx.items
    for key in (
        "ns::Holder",
        "ns::peek(const ns::Secret*)",
        "ns::show(const ns::Holder&)",
        "ns::wrap(ns::detail::Impl*)",
    ):
        assert _reason(ctx, key) == ReasonKind.blocked_dependency, key


def test_incomplete_types(analyse, entities):
    e = entities
    functions = [
        e.function("ns::open", [], "ns::Handle*"),
        e.function("ns::close", [e.param("h", "ns::Handle*")]),
        e.function("ns::copy", [e.param("h", "ns::Handle")]),
    ]
    ctx = analyse(functions, {"generate": ["ns::open", "ns::close", "ns::copy"]})
    assert _reason(ctx, "ns::open()") is None
    assert _reason(ctx, "ns::close(ns::Handle*)") is None
    assert _reason(ctx, "ns::copy(ns::Handle)") == ReasonKind.incomplete_definition
    assert not ctx.items["ns::Handle"].is_excluded


def test_propagation_inherits_the_reason(analyse, entities):
    e = entities
    point = e.struct("ns::Point", [e.field("x", "int")])
    line = e.struct("ns::Line", [e.field("a", "ns::Point"), e.field("b", "ns::Point")])
    length = e.function("ns::length", [e.param("l", "const ns::Line&")], "double")
    ctx = analyse([point, line, length], {"generate": ["ns::length"]})

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        ctx.exclude(ctx.items["ns::Point"], ReasonKind.shim_generation_failed, "test")
        newly = propagate_exclusions(ctx)

    assert newly == ["ns::Line", "ns::length(const ns::Line&)"]
    assert _reason(ctx, "ns::length(const ns::Line&)") == ReasonKind.shim_generation_failed
    assert [d.qualified_name for d in ctx.diagnostics] == [
        "ns::Line",
        "ns::Point",
        "ns::length",
    ]
    # A second run has nothing left to do.
    assert propagate_exclusions(ctx) == []


def test_exclusion_warns_once(make_input, entities):
    f = entities.function("ns::f", [entities.param("x", "long double")])
    ctx = build_api_graph(make_input(f), Directives.from_config({"generate": ["ns::f"]}))
    with pytest.warns(UserWarning, match=r"Skipping ns::f\(long double\)"):
        run_analysis_passes(ctx)
    assert len(ctx.diagnostics) == 1


def test_blocked_method_is_not_generated(generate, entities):
    e = entities
    widget = e.struct(
        "ns::Widget",
        [e.field("x", "int")],
        [
            e.method("size", [], "int", const=True),
            e.method("debug", [e.param("out", "ns::Logger&")], "int", const=True),
        ],
    )
    result = generate(
        [widget], {"generate": ["ns::Widget"], "block": ["ns::Widget::debug"]}
    )

    d = result.diagnostics
    assert d.reason_of("ns::Widget::debug") == ReasonKind.blocked_dependency
    assert d.reason_of("ns::Widget::size") is None
    assert "[cxx ns::Widget::debug]" not in result.bridge
    assert "[cxx ns::Widget::size]" in result.bridge
    # Types only the blocked method uses are never reached.
    assert "ns::Logger" not in result.bridge
    assert "ns_Logger" not in result.bridge


@pytest.mark.parametrize(
    "underlying, reason",
    [
        ("ns::Secret*", ReasonKind.blocked_dependency),
        ("long double*", ReasonKind.unsupported_type),
    ],
)
def test_typedef_to_an_indirect_type(analyse, entities, underlying, reason):
    e = entities
    secret = e.struct("ns::Secret", [e.field("x", "int")])
    alias = e.typedef("ns::Handle", underlying)
    peek = e.function("ns::peek", [e.param("h", "ns::Handle")])
    ctx = analyse(
        [secret, alias, peek],
        {"generate": ["ns::peek"], "block": ["ns::Secret"]},
    )
    assert ctx.diagnostics.reason_of("ns::Handle") == reason
    assert ctx.diagnostics.reason_of("ns::peek") == reason
