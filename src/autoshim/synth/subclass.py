# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import os
import tempfile
from logging import FileHandler, getLogger
from textwrap import indent

from autoshim.errors import ShimGenerationError
from autoshim.plan_defs import Crossing, PlannedParam, SubclassPlan, VirtualOverride
from autoshim.synth.renderer import BaseRenderer, Fragment
from autoshim.utils import formal_argument, make_bridge_signature, native_return_type

file_logger = getLogger(f"{__name__}")
logger_path = os.path.join(tempfile.gettempdir(), "autoshim_subclass.log")
file_logger.debug(f"Subclass debug outputs are written to {logger_path}")
file_logger.addHandler(FileHandler(logger_path))


def _forward(p: PlannedParam) -> str:
    if p.crossing in (Crossing.ref, Crossing.const_ref):
        return f"&{p.name}"
    return p.name


class SubclassRenderer(BaseRenderer):
    """Render the trampoline class of a class opted into subclassing.

    The trampoline derives from the C++ class and overrides each virtual
    method with a call through a table of callbacks. The safe side registers
    the table and an opaque ``peer`` pointer when it constructs the object.
    """

    vtable_template = """struct {vtable_name} {{
{callbacks}
}};"""

    callback_ptr_template = "{return_type} (*{callback_name})({args});"

    trampoline_template = """class {class_name} : public {base_cxx_name} {{
public:
    template <typename... Args>
    {class_name}(void* peer, const {vtable_name}* vtable, Args&&... args)
        : {base_cxx_name}(std::forward<Args>(args)...),
          autoshim_peer_(peer),
          autoshim_vtable_(vtable) {{}}

{overrides}

private:
    void* autoshim_peer_;
    const {vtable_name}* autoshim_vtable_;
}};"""

    override_template = """{return_type} {method_name}({params}){const} override {{
    {body}
}}"""

    bridge_template = """subclass {bridge_name} : {base_bridge_name} {{
    vtable {vtable_name}
{callbacks}
}}"""

    def __init__(self, ctx, plan: SubclassPlan):
        super().__init__(ctx, ctx.items[plan.struct_key])
        self._plan = plan

    def _check_dependencies(self):
        for key in self._plan.depends_on:
            item = self._ctx.items[key]
            if item.is_excluded:
                raise ShimGenerationError(
                    f"trampoline depends on excluded `{item.name}`"
                )

    def _self_param(self, o: VirtualOverride) -> PlannedParam:
        crossing = Crossing.const_ref if o.is_const else Crossing.ref
        return PlannedParam(
            "self", crossing, self._plan.base_cxx_name, self._plan.base_bridge_name
        )

    def _render_callback_ptr(self, o: VirtualOverride) -> str:
        const = "const " if o.is_const else ""
        args = [
            "void* peer",
            f"{const}{self._plan.base_cxx_name}* self",
        ] + [formal_argument(p) for p in o.params]
        return self.callback_ptr_template.format(
            return_type=native_return_type(o.return_crossing, o.return_cxx_type),
            callback_name=o.callback_name,
            args=", ".join(args),
        )

    def _render_override(self, o: VirtualOverride) -> str:
        args = ", ".join(
            ["autoshim_peer_", "this"] + [_forward(p) for p in o.params]
        )
        call = f"autoshim_vtable_->{o.callback_name}({args})"
        if o.return_crossing == Crossing.void:
            body = f"{call};"
        elif o.return_crossing in (Crossing.ref, Crossing.const_ref):
            body = f"return *{call};"
        else:
            body = f"return {call};"
        return self.override_template.format(
            return_type=o.cxx_return_type,
            method_name=o.method_name,
            params=", ".join(o.cxx_params),
            const=" const" if o.is_const else "",
            body=body,
        )

    def _render_callback_line(self, o: VirtualOverride) -> str:
        params = (self._self_param(o),) + o.params
        signature = make_bridge_signature(
            o.callback_name, params, o.return_crossing, o.return_bridge_type
        )
        return f"callback {signature}"

    def render(self) -> Fragment:
        self._check_dependencies()
        plan = self._plan

        vtable = self.vtable_template.format(
            vtable_name=plan.vtable_name,
            callbacks=indent(
                "\n".join(self._render_callback_ptr(o) for o in plan.overrides),
                " " * 4,
            ),
        )
        trampoline = self.trampoline_template.format(
            class_name=plan.class_name,
            base_cxx_name=plan.base_cxx_name,
            vtable_name=plan.vtable_name,
            overrides=indent(
                "\n\n".join(self._render_override(o) for o in plan.overrides),
                " " * 4,
            ),
        )

        lines = [
            self.bridge_template.format(
                bridge_name=plan.bridge_name,
                base_bridge_name=plan.base_bridge_name,
                vtable_name=plan.vtable_name,
                callbacks=indent(
                    "\n".join(self._render_callback_line(o) for o in plan.overrides),
                    " " * 4,
                ),
            )
        ]

        fragment = Fragment(f"{plan.struct_key}::<subclass>")
        fragment.header = f"{vtable}\n\n{trampoline}"
        for shim_plan in plan.plans():
            cxx_name = (
                f"{plan.class_name}::~{plan.class_name}"
                if shim_plan is plan.drop
                else f"{plan.class_name}::{plan.class_name}"
            )
            lines.append(self._fn_line(shim_plan, cxx_name))
            fragment.shims.append(self._shim(shim_plan))
        fragment.bridge = "\n".join(lines)
        fragment.symbols["subclass"] = [plan.bridge_name]
        fragment.symbols["function"] = [p.bridge_name for p in plan.plans()]

        file_logger.debug(fragment.bridge)
        file_logger.debug(fragment.header)
        return fragment
