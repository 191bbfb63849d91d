# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import pytest

from autoshim.directives import DirectiveKind, Directives
from autoshim.errors import ConfigurationError, DirectiveError


def test_mapping_form():
    d = Directives.from_config(
        {
            "generate": ["ns::Widget", "ns::make"],
            "block": "ns::Secret",
            "extra_native": "static int counter = 0;",
        }
    )
    assert d.generate == ("ns::Widget", "ns::make")
    assert d.block == ("ns::Secret",)
    assert d.extra_native == ("static int counter = 0;",)


def test_list_form_keeps_order_and_normalizes():
    d = Directives.from_config(
        [
            {" Generate ": "ns :: B"},
            {"generate": "ns::A"},
            {"generate": "ns::B"},
            {"subclass": "ns::A"},
            {"generate": "ns::Vec< int >"},
        ]
    )
    assert d.generate == ("ns::B", "ns::A", "ns::Vec<int>")
    assert d.allowlist == ("ns::B", "ns::A", "ns::Vec<int>")


def test_empty_config():
    assert Directives.from_config(None) == Directives()


@pytest.mark.parametrize(
    "raw",
    [
        {"expose": ["ns::A"]},
        {"generate": 3},
        {"generate": [""]},
        [{"generate": "ns::A", "block": "ns::B"}],
        "generate ns::A",
    ],
)
def test_malformed_directives(raw):
    with pytest.raises(DirectiveError):
        Directives.from_config(raw)


def test_generate_and_block_conflict():
    with pytest.raises(ConfigurationError, match="both generated and blocked"):
        Directives.from_config({"generate": ["ns::A"], "block": ["ns::A"]})

    with pytest.raises(DirectiveError):
        Directives.from_config({"generate": ["ns::Vec<int>"], "block": ["ns::Vec"]})


def test_block_covers_scopes_and_templates():
    d = Directives.from_config({"block": ["ns::detail", "ns::Vec"]})
    assert d.is_blocked("ns::detail")
    assert d.is_blocked("ns::detail::Impl")
    assert d.is_blocked("ns::Vec<int>")
    assert not d.is_blocked("ns::Vector")
    assert not d.is_blocked("ns::Widget")


def test_directive_kind_parse():
    assert DirectiveKind.parse("GENERATE_NS") == DirectiveKind.generate_ns
    with pytest.raises(DirectiveError):
        DirectiveKind.parse(None)
