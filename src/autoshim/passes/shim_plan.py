# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

from autoshim.context import BindingContext
from autoshim.decl import Function, ItemKind, MethodKind
from autoshim.errors import ExclusionError, UnsupportedTypeError
from autoshim.instantiations import FunctionInstantiation
from autoshim.plan_defs import (
    BOXED_OR_RVALUE,
    Crossing,
    PlannedParam,
    ShimKind,
    ShimPlan,
)
from autoshim.synth.types import to_bridge_type_str
from autoshim.typedb import Classification
from autoshim.types import Type, TypeKind
from autoshim.utils import (
    make_bridge_signature,
    make_native_signature,
    unique_param_names,
)

logger = logging.getLogger(__name__)


def param_crossing(ctx: BindingContext, t: Type) -> Crossing:
    """How an argument of type ``t`` crosses into C++."""
    if t.kind == TypeKind.reference:
        if t.rvalue:
            return Crossing.rvalue_ref
        return Crossing.const_ref if t.pointee.is_const else Crossing.ref
    if t.kind == TypeKind.pointer:
        return Crossing.const_ptr if t.pointee.is_const else Crossing.ptr

    c = ctx.typedb.classification_of(t)
    if c in (Classification.trivial_value, Classification.pointer):
        return Crossing.value
    if c == Classification.non_trivial_by_value:
        traits = ctx.typedb.entry_of(t).traits
        movable = traits.move_constructible if traits is not None else True
        copyable = traits.copy_constructible if traits is not None else True
        # Undetermined movability is assumed; a copy constructor still binds
        # to std::move(*p).
        if movable is None or movable:
            return Crossing.boxed_move
        if copyable:
            return Crossing.boxed_copy
        raise UnsupportedTypeError(
            f"`{t.key}` can be neither moved nor copied and cannot be passed by value"
        )
    raise UnsupportedTypeError(f"`{t.key}` ({c.value}) cannot be passed by value")


def return_crossing(ctx: BindingContext, t: Type) -> Crossing:
    """How a value of type ``t`` returned from C++ crosses back."""
    if t.is_void():
        return Crossing.void
    if t.kind == TypeKind.reference:
        if t.rvalue:
            c = ctx.typedb.classification_of(t.pointee)
            if c in (Classification.trivial_value, Classification.pointer):
                return Crossing.value
            return Crossing.boxed
        return Crossing.const_ref if t.pointee.is_const else Crossing.ref
    if t.kind == TypeKind.pointer:
        return Crossing.const_ptr if t.pointee.is_const else Crossing.ptr

    c = ctx.typedb.classification_of(t)
    if c in (Classification.trivial_value, Classification.pointer):
        return Crossing.value
    if c == Classification.non_trivial_by_value:
        return Crossing.boxed
    raise UnsupportedTypeError(f"`{t.key}` ({c.value}) cannot be returned by value")


def crossing_types(ctx: BindingContext, t: Type, crossing: Crossing) -> tuple[str, str]:
    """Native and bridge spellings of ``t`` under ``crossing``."""
    if crossing == Crossing.void:
        return "void", "void"
    if crossing in (Crossing.ptr, Crossing.const_ptr):
        t = t.unqualified()
        return t.spelling, to_bridge_type_str(ctx, t.pointee)
    if t.kind == TypeKind.reference:
        t = t.pointee
    t = t.unqualified()
    return t.spelling, to_bridge_type_str(ctx, t)


def plan_param(ctx: BindingContext, name: str, t: Type) -> PlannedParam:
    crossing = param_crossing(ctx, t)
    cxx_type, bridge_type = crossing_types(ctx, t, crossing)
    return PlannedParam(name, crossing, cxx_type, bridge_type)


def make_plan(
    ctx: BindingContext,
    bridge_name: str,
    shim_kind: ShimKind,
    cxx_name: str,
    params: list[PlannedParam],
    ret: tuple[Crossing, str, str] = (Crossing.void, "void", "void"),
    receiver: str | None = None,
    receiver_const: bool = False,
    needs_shim: bool = True,
) -> ShimPlan:
    """Assemble a ShimPlan and the signatures derived from it."""
    params = tuple(params)
    ret_crossing, ret_cxx, ret_bridge = ret
    shim_name = f"{bridge_name}{ctx.shim_suffix}" if needs_shim else None
    native_signature = (
        make_native_signature(shim_name, params, ret_crossing, ret_cxx)
        if needs_shim
        else ""
    )
    return ShimPlan(
        bridge_name=bridge_name,
        shim_kind=shim_kind if needs_shim else ShimKind.none,
        needs_shim=needs_shim,
        shim_name=shim_name,
        cxx_name=cxx_name,
        params=params,
        return_crossing=ret_crossing,
        return_cxx_type=ret_cxx,
        return_bridge_type=ret_bridge,
        receiver=receiver,
        receiver_const=receiver_const,
        generated_native_signature=native_signature,
        generated_bridge_signature=make_bridge_signature(
            bridge_name, params, ret_crossing, ret_bridge
        ),
    )


def _plan_callable(ctx: BindingContext, item: Function) -> ShimPlan:
    names = unique_param_names([p.name for p in item.params])
    params = [plan_param(ctx, n, p.type_) for n, p in zip(names, item.params)]

    receiver = None
    receiver_const = False
    is_member = item.kind == ItemKind.method

    if is_member:
        cls = item.receiver
        receiver = cls.name
        receiver_const = item.is_const
        classification = ctx.classification(cls)

        if item.is_constructor:
            if classification == Classification.trivial_value:
                self_param = PlannedParam("self", Crossing.out, cls.name, cls.bridge_name)
                return make_plan(
                    ctx,
                    item.bridge_name,
                    ShimKind.placement_constructor,
                    cls.name,
                    [self_param] + params,
                    receiver=receiver,
                )
            if classification == Classification.non_trivial_by_value:
                return make_plan(
                    ctx,
                    item.bridge_name,
                    ShimKind.constructor,
                    cls.name,
                    params,
                    ret=(Crossing.boxed, cls.name, cls.bridge_name),
                    receiver=receiver,
                )
            raise UnsupportedTypeError(
                f"{cls.name} is {classification.value} and cannot be constructed"
            )

        if not item.is_static:
            crossing = Crossing.const_ref if item.is_const else Crossing.ref
            params = [PlannedParam("self", crossing, cls.name, cls.bridge_name)] + params

    ret_crossing = return_crossing(ctx, item.return_type)
    ret_cxx, ret_bridge = crossing_types(ctx, item.return_type, ret_crossing)

    crossings = [p.crossing for p in params] + [ret_crossing]
    renamed = item.bridge_name in ctx.diagnostics.renames
    is_operator = item.is_operator or (
        is_member and item.method_kind in (MethodKind.operator, MethodKind.conversion)
    )
    needs_shim = (
        any(c in BOXED_OR_RVALUE for c in crossings)
        or renamed
        or is_operator
        or (is_member and item.is_static)
        or (is_member and item.receiver.kind == ItemKind.template_instantiation)
        or isinstance(item, FunctionInstantiation)
    )

    if not is_member:
        kind = ShimKind.function
        cxx_name = item.name
    elif item.is_static:
        kind = ShimKind.static_method
        cxx_name = item.method_name
    else:
        kind = ShimKind.method
        cxx_name = item.method_name

    return make_plan(
        ctx,
        item.bridge_name,
        kind,
        cxx_name,
        params,
        ret=(ret_crossing, ret_cxx, ret_bridge),
        receiver=receiver,
        receiver_const=receiver_const,
        needs_shim=needs_shim,
    )


def run_shim_planning(ctx: BindingContext):
    """Decide crossing strategies and shim necessity for every callable."""
    for item in ctx.accepted_callables():
        try:
            item.shim_plan = _plan_callable(ctx, item)
        except ExclusionError as e:
            ctx.exclude(item, e.reason_kind, str(e))
            continue
        if item.shim_plan.needs_shim:
            logger.debug("%s needs shim %s", item.key, item.shim_plan.shim_name)

