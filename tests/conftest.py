# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import re
import warnings

import pytest

from autoshim.context import BindingContext
from autoshim.directives import Directives
from autoshim.frontend import FrontendInput, build_api_graph
from autoshim.passes import run_analysis_passes
from autoshim.pipeline import generate_bindings
from autoshim.synth import reset_renderer

TRIVIAL = {
    "copy_constructible": True,
    "move_constructible": True,
    "trivially_relocatable": True,
    "has_user_destructor": False,
    "is_abstract": False,
    "default_constructible": True,
}

NON_TRIVIAL = dict(TRIVIAL, trivially_relocatable=False, has_user_destructor=True)


class Entities:
    """Builders for entities as the header-parsing frontend writes them."""

    TRIVIAL = TRIVIAL
    NON_TRIVIAL = NON_TRIVIAL

    @staticmethod
    def field(name, type_, access="public"):
        return {"name": name, "type": type_, "access": access}

    @staticmethod
    def param(name, type_):
        return {"name": name, "type": type_}

    @staticmethod
    def method(name, params=(), return_type="void", **flags):
        entry = {
            "name": name,
            "params": list(params),
            "return_type": return_type,
        }
        entry.update(flags)
        return entry

    @staticmethod
    def ctor(name, params=(), **flags):
        return Entities.method(name, params, "void", kind="constructor", **flags)

    @staticmethod
    def struct(name, fields=(), methods=(), bases=(), traits=TRIVIAL, **extra):
        entry = {
            "name": name,
            "kind": "struct",
            "fields": list(fields),
            "methods": list(methods),
            "bases": list(bases),
            "traits": traits,
        }
        entry.update(extra)
        return entry

    @staticmethod
    def function(name, params=(), return_type="void"):
        return {
            "name": name,
            "kind": "function",
            "params": list(params),
            "return_type": return_type,
        }

    @staticmethod
    def enum(name, enumerators, underlying_type="int"):
        return {
            "name": name,
            "kind": "enum",
            "underlying_type": underlying_type,
            "enumerators": [
                {"name": n, "value": v} if v is not None else {"name": n}
                for n, v in enumerators
            ],
        }

    @staticmethod
    def typedef(name, underlying_type):
        return {"name": name, "kind": "typedef", "underlying_type": underlying_type}


@pytest.fixture
def entities():
    return Entities


@pytest.fixture
def make_input():
    def _make(*entity_list, headers=("widget.h",)):
        return FrontendInput(list(headers), list(entity_list))

    return _make


@pytest.fixture(autouse=True)
def clean_renderer():
    reset_renderer()
    yield
    reset_renderer()


@pytest.fixture
def analyse(make_input):
    """Build the API graph and run every analysis pass, without synthesis."""

    def _analyse(entity_list, directives, **kwargs) -> BindingContext:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            ctx = build_api_graph(
                make_input(*entity_list), Directives.from_config(directives), **kwargs
            )
            run_analysis_passes(ctx)
        return ctx

    return _analyse


@pytest.fixture
def generate(make_input):
    """Run the whole pipeline and return the synthesis result."""

    def _generate(entity_list, directives, **kwargs):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            return generate_bindings(
                make_input(*entity_list), Directives.from_config(directives), **kwargs
            )

    return _generate


_SHIM_REF = re.compile(r"\[shim (\w+)\]")
_SHIM_DEF = re.compile(r'^extern "C" [^(]*?(\w+)\(.*\{$', re.M)


@pytest.fixture
def shim_names():
    """Shim names referenced by a bridge module and defined by a shim source."""

    def _names(result):
        referenced = _SHIM_REF.findall(result.bridge)
        defined = _SHIM_DEF.findall(result.shim_source)
        return referenced, defined

    return _names
