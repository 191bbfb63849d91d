# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass, field

from autoshim import __version__ as autoshim_ver
from autoshim.plan_defs import ShimPlan
from autoshim.shim_writer import include_line
from autoshim.types import BUILTIN_TEMPLATES, BUILTIN_TYPES, parse_type
from autoshim.utils import make_shim

BRIDGE_SCHEMA_VERSION = 1


@dataclass
class Fragment:
    """Everything one item contributes to the output artifacts."""

    key: str
    bridge: str = ""
    header: str = ""
    shims: list[tuple[str, str, str]] = field(default_factory=list)
    """(shim name, prototype, definition) per shim."""
    builtins: list[str] = field(default_factory=list)
    symbols: dict[str, list[str]] = field(default_factory=dict)


class BaseRenderer:
    fn_template = "fn {signature} [cxx {cxx_name}]"
    shim_suffix_template = " [shim {shim_name}]"

    Includes: list[str] = []
    """Headers the bridge module and the shim header include, in order."""

    Builtins: set[str] = set()
    """Builtin library types some emitted declaration mentions."""

    _type_symbols: list[str] = []
    """List of new bridge types to expose."""

    _function_symbols: list[str] = []
    """List of new function handles to expose."""

    _enum_symbols: list[str] = []
    """List of new enum handles to expose."""

    _subclass_symbols: list[str] = []
    """List of trampoline classes to expose."""

    def __init__(self, ctx, decl):
        self._ctx = ctx
        self._decl = decl

    def render(self) -> Fragment:
        raise NotImplementedError()

    def _fn_line(self, plan: ShimPlan, cxx_name: str) -> str:
        line = self.fn_template.format(
            signature=plan.generated_bridge_signature, cxx_name=cxx_name
        )
        if plan.needs_shim:
            line += self.shim_suffix_template.format(shim_name=plan.shim_name)
        return line

    def _shim(self, plan: ShimPlan) -> tuple[str, str, str]:
        prototype, definition = make_shim(plan)
        return plan.shim_name, prototype, definition


def clear_base_renderer_cache():
    """Clear all class-level caches and exposed-symbol lists on BaseRenderer."""
    BaseRenderer.Includes.clear()
    BaseRenderer.Builtins.clear()
    BaseRenderer._type_symbols.clear()
    BaseRenderer._function_symbols.clear()
    BaseRenderer._enum_symbols.clear()
    BaseRenderer._subclass_symbols.clear()


def register_fragment(fragment: Fragment):
    """Record the symbols and builtins of a fragment that made it into the output."""
    BaseRenderer.Builtins.update(fragment.builtins)
    for kind, names in fragment.symbols.items():
        getattr(BaseRenderer, f"_{kind}_symbols").extend(names)


def get_bridge_preamble() -> str:
    """
    The fixed lines every bridge declaration module starts with.

    No timestamp or path appears here, so identical input yields identical
    output.
    """
    info = [
        "# Automatically generated by autoshim bridge generator",
        f"# autoshim version: {autoshim_ver}",
        f"bridge_schema {BRIDGE_SCHEMA_VERSION}",
    ]
    return "\n".join(info)


def get_rendered_includes() -> str:
    lines = []
    for header in BaseRenderer.Includes:
        line = include_line(header).removeprefix("#")
        if line not in lines:
            lines.append(line)
    return "\n".join(lines)


def get_rendered_builtins() -> str:
    lines = []
    for name in sorted(BaseRenderer.Builtins):
        t = parse_type(name)
        table = BUILTIN_TEMPLATES if t.template_args else BUILTIN_TYPES
        lines.append(f"builtin {name} : {table[t.name]}")
    return "\n".join(lines)


def get_all_exposed_symbols() -> dict[str, list[str]]:
    """Bridge names declared by the output, grouped by what they name."""
    return {
        "types": list(BaseRenderer._type_symbols),
        "functions": list(BaseRenderer._function_symbols),
        "enums": list(BaseRenderer._enum_symbols),
        "subclasses": list(BaseRenderer._subclass_symbols),
    }
