# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import pytest

from autoshim.types import (
    TypeKind,
    canonical_name,
    parse_type,
    split_qualified_name,
    split_top_level,
)


@pytest.mark.parametrize(
    "spelling, canonical",
    [
        ("int", "int"),
        ("unsigned long int", "unsigned long"),
        ("long long int", "long long"),
        ("signed char", "signed char"),
        ("std::size_t", "size_t"),
        ("char const*", "const char*"),
        ("int* const", "int* const"),
        ("const ns::Widget&", "const ns::Widget&"),
        ("ns::Widget&&", "ns::Widget&&"),
        ("struct ns::Point", "ns::Point"),
        ("ns::Vec< int >", "ns::Vec<int>"),
        ("ns::Arr<int, 4>", "ns::Arr<int, 4>"),
    ],
)
def test_canonical_spelling(spelling, canonical):
    assert parse_type(spelling).spelling == canonical


def test_reference_and_pointer_structure():
    t = parse_type("const ns::Widget&")
    assert t.kind == TypeKind.reference
    assert not t.rvalue
    assert t.pointee.kind == TypeKind.value
    assert t.pointee.is_const
    assert t.unqualified_non_ref_type_name == "ns::Widget"
    assert not t.is_by_value

    p = parse_type("int* const")
    assert p.kind == TypeKind.pointer
    assert p.is_const
    assert p.key == "int*"


def test_template_arguments_and_depth():
    t = parse_type("ns::Vec<ns::Vec<int>>")
    assert t.kind == TypeKind.template_instantiation
    assert t.name == "ns::Vec"
    assert t.key == "ns::Vec<ns::Vec<int>>"
    assert t.instantiation_depth() == 2

    arr = parse_type("ns::Arr<int, 4>")
    assert arr.template_args[1] == "4"
    assert [nt.key for nt in arr.named_types()] == ["ns::Arr<int, 4>"]


def test_named_types_walks_through_indirection():
    t = parse_type("const ns::Map<ns::Key, ns::Value*>&")
    assert [nt.key for nt in t.named_types()] == [
        "ns::Map<ns::Key, ns::Value*>",
        "ns::Key",
        "ns::Value",
    ]


@pytest.mark.parametrize(
    "spelling",
    ["int[4]", "void (*)(int)", "ns::Vec<int", "unsigned signed int", "int& &"],
)
def test_unrepresentable_spellings_are_opaque(spelling):
    t = parse_type(spelling)
    assert t.kind == TypeKind.opaque
    assert t.is_unsupported
    assert not t.is_named


def test_substitute_keeps_qualifiers():
    mapping = {"T": parse_type("int")}
    assert parse_type("const T&").substitute(mapping).spelling == "const int&"
    assert parse_type("T*").substitute(mapping).spelling == "int*"
    assert (
        parse_type("ns::Vec<T>").substitute(mapping).spelling == "ns::Vec<int>"
    )


def test_canonical_name():
    assert canonical_name(" ::ns :: Foo ") == "ns::Foo"
    assert canonical_name("ns::Vec< int >") == "ns::Vec<int>"


def test_split_helpers():
    assert split_qualified_name("ns::Vec<a::b>::c") == ["ns", "Vec<a::b>", "c"]
    assert split_top_level("int, ns::Map<a, b>, f(x, y)") == [
        "int",
        "ns::Map<a, b>",
        "f(x, y)",
    ]
