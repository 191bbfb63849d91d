# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import os
import tempfile
from logging import FileHandler, getLogger
from textwrap import indent

from autoshim.decl import Access, Field, ItemKind, Struct
from autoshim.passes.shim_plan import crossing_types
from autoshim.plan_defs import Crossing, ShimKind, ShimPlan
from autoshim.synth.renderer import BaseRenderer, Fragment
from autoshim.synth.types import builtin_types_used
from autoshim.typedb import Classification
from autoshim.types import Type, TypeKind, split_qualified_name

file_logger = getLogger(f"{__name__}")
logger_path = os.path.join(tempfile.gettempdir(), "autoshim_struct.log")
file_logger.debug(f"Struct debug outputs are written to {logger_path}")
file_logger.addHandler(FileHandler(logger_path))


def field_crossing(t: Type) -> Crossing:
    if t.kind == TypeKind.reference:
        return Crossing.const_ref if t.pointee.is_const else Crossing.ref
    if t.kind == TypeKind.pointer:
        return Crossing.const_ptr if t.pointee.is_const else Crossing.ptr
    return Crossing.value


def _short_name(cls: Struct) -> str:
    """The class name as its constructors and destructor spell it."""
    last = split_qualified_name(cls.name)[-1]
    return last.split("<", 1)[0]


class StructRenderer(BaseRenderer):
    """Render a single C++ record and the special members planned for it.

    Trivial records list their layout field by field. Non-trivial records
    are opaque boxes on the bridge side and reference-only records are
    named but never held.

    Parameters
    ----------
    ctx: autoshim.context.BindingContext
        The analysed API graph.
    decl: autoshim.decl.Struct
        The record to render, possibly a template instantiation.
    """

    type_template = "type {bridge_name} = {cxx_name} : {classification}{tags}"
    opaque_template = "opaque {bridge_name} = {cxx_name} : reference_only{tags}"
    field_template = "field {name}: {crossing} {bridge_type}"

    def __init__(self, ctx, decl: Struct):
        super().__init__(ctx, decl)
        self._classification = ctx.classification(decl)
        self._entry = ctx.typedb[decl.name]
        self._special = ctx.special_members.get(decl.key)

    def _tags(self) -> str:
        tags = ""
        if self._decl.kind == ItemKind.template_instantiation:
            tags += f" [instantiation {self._decl.template.name}]"
        return tags

    def _render_field(self, f: Field) -> str:
        crossing = field_crossing(f.type_)
        _, bridge_type = crossing_types(self._ctx, f.type_, crossing)
        line = self.field_template.format(
            name=f.name, crossing=crossing.value, bridge_type=bridge_type
        )
        if f.access != Access.public:
            line += f" [{f.access.value}]"
        return line

    def _render_declaration(self) -> str:
        decl = self._decl
        if self._classification == Classification.reference_only:
            tags = " incomplete" if self._entry.incomplete else ""
            return self.opaque_template.format(
                bridge_name=decl.bridge_name,
                cxx_name=decl.name,
                tags=tags + self._tags(),
            )

        head = self.type_template.format(
            bridge_name=decl.bridge_name,
            cxx_name=decl.name,
            classification=self._classification.value,
            tags=self._tags(),
        )
        if self._classification != Classification.trivial_value or not decl.fields:
            return head

        fields = "\n".join(self._render_field(f) for f in decl.fields)
        return f"{head} {{\n{indent(fields, ' ' * 4)}\n}}"

    def _special_cxx_name(self, plan: ShimPlan) -> str:
        decl = self._decl
        if plan.shim_kind == ShimKind.drop:
            return f"{decl.name}::~{_short_name(decl)}"
        if plan.shim_kind == ShimKind.upcast:
            return f"static_cast<{plan.return_cxx_type}>"
        return f"{decl.name}::{_short_name(decl)}"

    def render(self) -> Fragment:
        fragment = Fragment(self._decl.key)
        lines = [self._render_declaration()]

        if self._special is not None:
            for plan in self._special.plans():
                lines.append(self._fn_line(plan, self._special_cxx_name(plan)))
                fragment.shims.append(self._shim(plan))
            fragment.symbols["function"] = [p.bridge_name for p in self._special.plans()]

        for t in self._decl.referenced_types():
            fragment.builtins.extend(builtin_types_used(t))
        fragment.symbols["type"] = [self._decl.bridge_name]
        fragment.bridge = "\n".join(lines)

        file_logger.debug(fragment.bridge)
        return fragment
