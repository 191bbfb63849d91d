# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import re

from autoshim.errors import ShimGenerationError
from autoshim.plan_defs import Crossing, PlannedParam, ShimKind, ShimPlan


def sanitize_identifier(name: str) -> str:
    """Turn a C++ name or type spelling into an identifier.

    ``ns::Vec<int>`` becomes ``ns_Vec_int`` and ``const ns::W&`` becomes
    ``const_ns_W_ref``.
    """
    s = name.replace("::", "_")
    s = s.replace("&&", "_rref").replace("&", "_ref").replace("*", "_ptr")
    s = re.sub(r"[^0-9A-Za-z_]+", "_", s)
    s = re.sub(r"_+", "_", s)
    return s.strip("_")


def mangle_signature(param_spellings: list[str], is_const: bool = False) -> str:
    """Overload suffix derived from canonical parameter spellings."""
    suffix = "_".join(sanitize_identifier(s) for s in param_spellings) or "void"
    if is_const:
        suffix += "_const"
    return suffix


def unique_param_names(names: list[str], reserved=("self",)) -> list[str]:
    """Give every parameter a distinct, non-empty name.

    Unnamed parameters become ``arg<i>``; repeated names get a numeric
    suffix.
    """
    result = []
    seen = set(reserved)
    for i, name in enumerate(names):
        candidate = name or f"arg{i}"
        if candidate in seen:
            n = 1
            while f"{candidate}_{n}" in seen:
                n += 1
            candidate = f"{candidate}_{n}"
        seen.add(candidate)
        result.append(candidate)
    return result


def formal_argument(p: PlannedParam) -> str:
    """Convert a planned parameter into a C++ formal-argument declaration."""
    if p.crossing in (Crossing.value, Crossing.ptr, Crossing.const_ptr):
        return f"{p.cxx_type} {p.name}"
    if p.crossing in (Crossing.const_ref, Crossing.boxed_copy):
        return f"const {p.cxx_type}* {p.name}"
    if p.crossing in (
        Crossing.ref,
        Crossing.rvalue_ref,
        Crossing.boxed_move,
        Crossing.boxed,
        Crossing.out,
    ):
        return f"{p.cxx_type}* {p.name}"
    raise ShimGenerationError(f"parameter {p.name} cannot use {p.crossing.value}")


def actual_argument(p: PlannedParam) -> str:
    """The expression passing a planned parameter on to the C++ callee."""
    if p.crossing in (Crossing.value, Crossing.ptr, Crossing.const_ptr):
        return p.name
    if p.crossing in (Crossing.ref, Crossing.const_ref, Crossing.boxed_copy):
        return f"*{p.name}"
    if p.crossing in (Crossing.rvalue_ref, Crossing.boxed_move):
        return f"std::move(*{p.name})"
    raise ShimGenerationError(f"parameter {p.name} cannot use {p.crossing.value}")


def native_return_type(crossing: Crossing, cxx_type: str) -> str:
    if crossing == Crossing.void:
        return "void"
    if crossing in (Crossing.value, Crossing.ptr, Crossing.const_ptr):
        return cxx_type
    if crossing == Crossing.const_ref:
        return f"const {cxx_type}*"
    if crossing in (Crossing.ref, Crossing.boxed):
        return f"{cxx_type}*"
    raise ShimGenerationError(f"return value cannot use {crossing.value}")


def return_statement(crossing: Crossing, cxx_type: str, call: str) -> str:
    if crossing == Crossing.void:
        return f"{call};"
    if crossing in (Crossing.value, Crossing.ptr, Crossing.const_ptr):
        return f"return {call};"
    if crossing in (Crossing.ref, Crossing.const_ref):
        return f"return &{call};"
    if crossing == Crossing.boxed:
        return f"return new {cxx_type}({call});"
    raise ShimGenerationError(f"return value cannot use {crossing.value}")


def assemble_arglist_string(params: tuple[PlannedParam, ...]) -> str:
    """Assemble comma separated formal argument string."""
    return ", ".join(formal_argument(p) for p in params)


def assemble_actual_args_string(params: tuple[PlannedParam, ...]) -> str:
    """Assemble comma separated actual argument string."""
    return ", ".join(actual_argument(p) for p in params)


def make_native_signature(
    shim_name: str,
    params: tuple[PlannedParam, ...],
    return_crossing: Crossing,
    return_cxx_type: str,
) -> str:
    return_type = native_return_type(return_crossing, return_cxx_type)
    return f"{return_type} {shim_name}({assemble_arglist_string(params)})"


def make_bridge_signature(
    bridge_name: str,
    params: tuple[PlannedParam, ...],
    return_crossing: Crossing,
    return_bridge_type: str,
) -> str:
    args = ", ".join(f"{p.name}: {p.crossing.value} {p.bridge_type}" for p in params)
    if return_crossing == Crossing.void:
        ret = "void"
    else:
        ret = f"{return_crossing.value} {return_bridge_type}"
    return f"{bridge_name}({args}) -> {ret}"


shim_template = """extern "C" {signature} {{
    {body}
}}
"""


def _call_args(plan: ShimPlan, skip_self: bool) -> str:
    params = plan.params[1:] if skip_self else plan.params
    return assemble_actual_args_string(params)


def make_function_shim(plan: ShimPlan) -> str:
    """Create a shim function for a C++ standalone function."""
    call = f"{plan.cxx_name}({_call_args(plan, False)})"
    return return_statement(plan.return_crossing, plan.return_cxx_type, call)


def make_struct_regular_method_shim(plan: ShimPlan) -> str:
    """Create a shim for a member function called through ``self``."""
    call = f"self->{plan.cxx_name}({_call_args(plan, True)})"
    return return_statement(plan.return_crossing, plan.return_cxx_type, call)


def make_struct_static_method_shim(plan: ShimPlan) -> str:
    call = f"{plan.receiver}::{plan.cxx_name}({_call_args(plan, False)})"
    return return_statement(plan.return_crossing, plan.return_cxx_type, call)


def make_struct_ctor_shim(plan: ShimPlan) -> str:
    """Create a shim that heap-allocates a new object and hands it out."""
    return f"return new {plan.cxx_name}({_call_args(plan, False)});"


def make_struct_placement_ctor_shim(plan: ShimPlan) -> str:
    """Create a shim that constructs into caller-provided storage."""
    return f"new (self) {plan.cxx_name}({_call_args(plan, True)});"


def make_struct_drop_shim(plan: ShimPlan) -> str:
    if plan.cxx_name != plan.receiver:
        return f"delete static_cast<{plan.cxx_name}*>(self);"
    return "delete self;"


def make_struct_upcast_shim(plan: ShimPlan) -> str:
    return f"return static_cast<{plan.return_cxx_type}>(self);"


_SHIM_BODY_BUILDERS = {
    ShimKind.function: make_function_shim,
    ShimKind.method: make_struct_regular_method_shim,
    ShimKind.static_method: make_struct_static_method_shim,
    ShimKind.constructor: make_struct_ctor_shim,
    ShimKind.move_new: make_struct_ctor_shim,
    ShimKind.copy_new: make_struct_ctor_shim,
    ShimKind.default_new: make_struct_ctor_shim,
    ShimKind.trampoline_new: make_struct_ctor_shim,
    ShimKind.placement_constructor: make_struct_placement_ctor_shim,
    ShimKind.drop: make_struct_drop_shim,
    ShimKind.upcast: make_struct_upcast_shim,
}


def make_shim(plan: ShimPlan) -> tuple[str, str]:
    """Render the prototype and definition of the shim ``plan`` needs.

    Returns
    -------
    prototype, definition : tuple[str, str]
    """
    if not plan.needs_shim:
        raise ValueError(f"{plan.bridge_name} binds its C++ symbol directly")
    builder = _SHIM_BODY_BUILDERS.get(plan.shim_kind)
    if builder is None:
        raise ShimGenerationError(
            f"no shim can be built for {plan.bridge_name} ({plan.shim_kind.value})"
        )
    body = builder(plan)
    prototype = f'extern "C" {plan.generated_native_signature};'
    definition = shim_template.format(
        signature=plan.generated_native_signature, body=body
    )
    return prototype, definition
