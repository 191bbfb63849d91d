# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import warnings

from autoshim.context import BindingContext
from autoshim.decl import ItemKind, Method, MethodKind, Struct
from autoshim.diagnostics import ReasonKind
from autoshim.errors import ExclusionError, ShimGenerationError, UnsupportedTypeError
from autoshim.passes.exclusion import check_type_use
from autoshim.passes.overloads import callable_label
from autoshim.passes.shim_plan import (
    crossing_types,
    make_plan,
    param_crossing,
    plan_param,
    return_crossing,
)
from autoshim.plan_defs import (
    Crossing,
    PlannedParam,
    ShimKind,
    ShimPlan,
    SubclassPlan,
    VirtualOverride,
)
from autoshim.types import Type
from autoshim.utils import mangle_signature, unique_param_names

logger = logging.getLogger(__name__)

# Strategies a callback can receive or return without owning a box.
FORWARDABLE = {
    Crossing.value,
    Crossing.ref,
    Crossing.const_ref,
    Crossing.ptr,
    Crossing.const_ptr,
}


def subclass_key(cls: Struct) -> str:
    return f"{cls.key}::<subclass>"


def _override_key(m: Method) -> str:
    return m.method_name + m.signature + (" const" if m.is_const else "")


def collect_virtual_methods(ctx: BindingContext, cls: Struct) -> list[Method]:
    """Virtual methods of ``cls`` and its bases, most-derived first.

    A base declaration overridden in a derived class is skipped.
    """
    found: dict[str, Method] = {}
    seen = set()
    stack = [cls]
    while stack:
        record = stack.pop(0)
        if record.key in seen:
            continue
        seen.add(record.key)
        for m in record.virtual_methods():
            found.setdefault(_override_key(m), m)
        for b in record.bases:
            base = ctx.items.get(b.key) or ctx.catalog.get(b.key)
            if isinstance(base, Struct):
                stack.append(base)
    return list(found.values())


def _forwardable(crossing: Crossing, what: str):
    if crossing not in FORWARDABLE and crossing != Crossing.void:
        raise UnsupportedTypeError(
            f"{what} would cross as {crossing.value}, which a callback cannot take"
        )


def _check_types(ctx: BindingContext, m: Method):
    for t in m.referenced_types():
        if not t.is_void():
            check_type_use(ctx, t)


def _plan_override(ctx: BindingContext, m: Method, callback_name: str) -> VirtualOverride:
    _check_types(ctx, m)
    names = unique_param_names([p.name for p in m.params])
    params = []
    for name, p in zip(names, m.params):
        _forwardable(param_crossing(ctx, p.type_), f"parameter {name}")
        params.append(plan_param(ctx, name, p.type_))

    ret_crossing = return_crossing(ctx, m.return_type)
    _forwardable(ret_crossing, "return value")
    ret_cxx, ret_bridge = crossing_types(ctx, m.return_type, ret_crossing)

    return VirtualOverride(
        method_key=m.key,
        callback_name=callback_name,
        method_name=m.method_name,
        is_const=m.is_const,
        params=tuple(params),
        return_crossing=ret_crossing,
        return_cxx_type=ret_cxx,
        return_bridge_type=ret_bridge,
        cxx_return_type=m.return_type.spelling,
        cxx_params=tuple(
            f"{p.type_.spelling} {name}" for name, p in zip(names, m.params)
        ),
    )


def _callback_names(methods: list[Method]) -> list[str]:
    labels = [callable_label(m) for m in methods]
    names = []
    for m, label in zip(methods, labels):
        if labels.count(label) > 1:
            label += "_" + mangle_signature(
                [t.spelling for t in m.param_types], m.is_const
            )
        names.append(label)
    return names


def _trampoline_ctor(
    ctx: BindingContext,
    plan: SubclassPlan,
    cls: Struct,
    ctor: Method | None,
    bridge_name: str,
) -> ShimPlan:
    fixed = [
        PlannedParam("peer", Crossing.ptr, "void*", "void"),
        PlannedParam(
            "vtable", Crossing.const_ptr, f"const {plan.vtable_name}*", plan.vtable_name
        ),
    ]
    params = []
    if ctor is not None:
        _check_types(ctx, ctor)
        names = unique_param_names(
            [p.name for p in ctor.params], reserved=("self", "peer", "vtable")
        )
        params = [plan_param(ctx, n, p.type_) for n, p in zip(names, ctor.params)]
    return make_plan(
        ctx,
        bridge_name,
        ShimKind.trampoline_new,
        plan.class_name,
        fixed + params,
        ret=(Crossing.ptr, f"{cls.name}*", cls.bridge_name),
        receiver=cls.name,
    )


def _plan_constructors(ctx: BindingContext, plan: SubclassPlan, cls: Struct):
    ctors = [
        m
        for m in cls.constructors()
        if m.method_kind == MethodKind.constructor and m.is_exposed
    ]
    if not ctors:
        if any(True for _ in cls.constructors()) or cls.traits.default_constructible is False:
            raise ShimGenerationError(
                f"{cls.name} has no public constructor a subclass can call"
            )
        plan.constructors.append(
            _trampoline_ctor(ctx, plan, cls, None, f"{plan.bridge_name}_new")
        )
        return

    for ctor in ctors:
        bridge_name = f"{plan.bridge_name}_new"
        if len(ctors) > 1:
            bridge_name += "_" + mangle_signature([t.spelling for t in ctor.param_types])
        try:
            plan.constructors.append(
                _trampoline_ctor(ctx, plan, cls, ctor, bridge_name)
            )
        except ExclusionError as e:
            logger.info("subclass of %s cannot use %s: %s", cls.name, ctor.key, e)
    if not plan.constructors:
        raise ShimGenerationError(
            f"no constructor of {cls.name} can be forwarded by a subclass"
        )


def _dependencies(types: list[Type]) -> set[str]:
    return {nt.key for t in types for nt in t.named_types()}


def plan_subclass(ctx: BindingContext, cls: Struct) -> SubclassPlan | None:
    """Plan the trampoline class for ``cls``.

    Returns None when there is nothing to override. Raises
    ``ShimGenerationError`` when a pure virtual method cannot be forwarded,
    since the trampoline would stay abstract.
    """
    virtuals = collect_virtual_methods(ctx, cls)
    if not virtuals:
        warnings.warn(
            f"{cls.name} has no virtual methods, no subclass trampoline is generated."
        )
        return None

    class_name = f"{cls.bridge_name}_Subclass"
    plan = SubclassPlan(
        struct_key=cls.key,
        class_name=class_name,
        bridge_name=class_name,
        base_cxx_name=cls.name,
        base_bridge_name=cls.bridge_name,
        vtable_name=f"{class_name}_vtable",
    )

    depends = {cls.key}
    for m, callback_name in zip(virtuals, _callback_names(virtuals)):
        try:
            plan.overrides.append(_plan_override(ctx, m, callback_name))
        except ExclusionError as e:
            if m.is_pure_virtual:
                raise ShimGenerationError(
                    f"pure virtual {m.key} cannot be overridden: {e}"
                )
            logger.info("not overriding %s: %s", m.key, e)
            continue
        depends |= _dependencies(m.referenced_types())

    _plan_constructors(ctx, plan, cls)

    plan.drop = make_plan(
        ctx,
        f"{plan.bridge_name}_drop",
        ShimKind.drop,
        plan.class_name,
        [PlannedParam("self", Crossing.boxed, cls.name, cls.bridge_name)],
        receiver=cls.name,
    )
    plan.depends_on = sorted(k for k in depends if k in ctx.items)
    return plan


def run_subclass_planning(ctx: BindingContext):
    """Plan trampolines for every class named by a ``subclass`` directive."""
    for name in ctx.directives.subclass:
        cls = ctx.items.get(name)
        if cls is None or cls.is_excluded:
            continue
        if cls.kind not in (ItemKind.struct, ItemKind.template_instantiation):
            warnings.warn(f"{name} is not a class, no subclass trampoline is generated.")
            continue

        try:
            plan = plan_subclass(ctx, cls)
        except ExclusionError as e:
            message = f"subclass trampoline not generated: {e}"
            ctx.diagnostics.record(
                subclass_key(cls), cls.name, ReasonKind.shim_generation_failed, message
            )
            warnings.warn(f"Skipping {subclass_key(cls)}: {message}")
            continue
        if plan is None:
            continue

        owner = subclass_key(cls)
        for bridge_name in [plan.bridge_name, plan.vtable_name] + [
            p.bridge_name for p in plan.plans()
        ]:
            ctx.claim_generated_name(bridge_name, owner)
        ctx.subclass_plans[cls.key] = plan
        logger.debug(
            "%s trampoline overrides %s",
            cls.key,
            ", ".join(o.callback_name for o in plan.overrides),
        )
