# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import pytest

from autoshim.diagnostics import ReasonKind
from autoshim.typedb import Classification, TypeDatabase, UnresolvedTypeError, join
from autoshim.types import parse_type


def test_seeded_entries():
    db = TypeDatabase()
    assert db["int"].classification == Classification.trivial_value
    assert db["void"].builtin
    assert db["long double"].classification == Classification.unsupported
    assert db["long double"].reason == ReasonKind.unsupported_type
    assert db["std::string"].classification == Classification.non_trivial_by_value


def test_join():
    assert (
        join(Classification.trivial_value, Classification.non_trivial_by_value)
        == Classification.non_trivial_by_value
    )
    assert (
        join(Classification.reference_only, Classification.trivial_value)
        == Classification.reference_only
    )
    assert (
        join(Classification.unresolved, Classification.pointer)
        == Classification.pointer
    )
    # Every pair joins the same way in either order.
    for a in Classification:
        for b in Classification:
            assert join(a, b) == join(b, a), (a, b)
    assert (
        join(Classification.pointer, Classification.trivial_value)
        == Classification.trivial_value
    )


def test_classification_never_moves_down():
    db = TypeDatabase()
    db.declare("ns::Widget")
    assert db.classify("ns::Widget", Classification.non_trivial_by_value) == (
        Classification.non_trivial_by_value
    )
    assert db.classify("ns::Widget", Classification.trivial_value) == (
        Classification.non_trivial_by_value
    )
    assert db.classify(
        "ns::Widget", Classification.unsupported, ReasonKind.blocked_dependency, "m"
    ) == Classification.unsupported
    assert db["ns::Widget"].reason == ReasonKind.blocked_dependency
    assert db.classify("ns::Widget", Classification.reference_only) == (
        Classification.unsupported
    )


def test_unresolved_reads_raise():
    db = TypeDatabase()
    db.declare("ns::Widget")
    with pytest.raises(UnresolvedTypeError):
        db.entry_of(parse_type("ns::Widget"))
    with pytest.raises(UnresolvedTypeError):
        db.classification_of(parse_type("ns::Missing"))


def test_classification_of_a_use():
    db = TypeDatabase()
    assert db.classification_of(parse_type("ns::Missing*")) == Classification.pointer
    assert db.classification_of(parse_type("const ns::Missing&")) == Classification.pointer
    assert db.classification_of(parse_type("int[2]")) == Classification.unsupported
    assert db.classification_of(parse_type("const int")) == Classification.trivial_value


def test_builtin_instantiation():
    db = TypeDatabase()
    t = parse_type("std::vector<int>")
    assert db.is_builtin_template(t.name)
    entry = db.declare_builtin_instantiation(t)
    assert entry.template_instantiation
    assert db.classification_of(t) == Classification.non_trivial_by_value
