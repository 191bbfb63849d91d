# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import pytest


@pytest.fixture
def typedef_binding(make_binding):
    return make_binding(
        "typedef.yml",
        {"generate": ["ns::Id", "ns::IdPtr", "ns::Name", "ns::Handle", "ns::Wide"]},
    )


def test_primitive_alias(typedef_binding):
    bridge = typedef_binding["bridge"]
    assert "alias ns_Id = ns::Id : value int" in bridge
    assert "alias ns_IdPtr = ns::IdPtr : const_ptr int" in bridge


def test_builtin_alias(typedef_binding):
    bridge = typedef_binding["bridge"]
    assert "alias ns_Name = ns::Name : boxed std::string" in bridge
    assert "builtin std::string : non_trivial_by_value" in bridge


def test_alias_of_non_trivial_class(typedef_binding):
    bridge = typedef_binding["bridge"]
    assert "alias ns_Handle = ns::Handle : boxed ns_Widget" in bridge
    # The target is declared before the alias naming it.
    assert bridge.index("type ns_Widget = ns::Widget") < bridge.index(
        "alias ns_Handle"
    )


def test_unrepresentable_alias(typedef_binding):
    assert "ns_Wide" not in typedef_binding["bridge"]
    reasons = {
        d["qualified_name"]: d["reason_kind"]
        for d in typedef_binding["report"]["diagnostics"]
    }
    assert reasons == {"ns::Wide": "unsupported_type"}
