# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

from autoshim.context import BindingContext
from autoshim.decl import Struct
from autoshim.errors import ExclusionError
from autoshim.passes.shim_plan import make_plan
from autoshim.plan_defs import (
    Crossing,
    PlannedParam,
    ShimKind,
    ShimPlan,
    SpecialMemberPlan,
)
from autoshim.typedb import Classification

logger = logging.getLogger(__name__)


def _self_param(cls: Struct, crossing: Crossing, name: str = "self") -> PlannedParam:
    return PlannedParam(name, crossing, cls.name, cls.bridge_name)


def _boxed_return(cls: Struct) -> tuple[Crossing, str, str]:
    return (Crossing.boxed, cls.name, cls.bridge_name)


def _drop(ctx: BindingContext, cls: Struct) -> ShimPlan:
    return make_plan(
        ctx,
        f"{cls.bridge_name}_drop",
        ShimKind.drop,
        cls.name,
        [_self_param(cls, Crossing.boxed)],
        receiver=cls.name,
    )


def _move_new(ctx: BindingContext, cls: Struct) -> ShimPlan:
    return make_plan(
        ctx,
        f"{cls.bridge_name}_move_new",
        ShimKind.move_new,
        cls.name,
        [_self_param(cls, Crossing.rvalue_ref, "src")],
        ret=_boxed_return(cls),
        receiver=cls.name,
    )


def _copy_new(ctx: BindingContext, cls: Struct) -> ShimPlan:
    return make_plan(
        ctx,
        f"{cls.bridge_name}_copy_new",
        ShimKind.copy_new,
        cls.name,
        [_self_param(cls, Crossing.const_ref, "src")],
        ret=_boxed_return(cls),
        receiver=cls.name,
    )


def _default_new(ctx: BindingContext, cls: Struct) -> ShimPlan:
    return make_plan(
        ctx,
        f"{cls.bridge_name}_new",
        ShimKind.default_new,
        cls.name,
        [],
        ret=_boxed_return(cls),
        receiver=cls.name,
    )


def _upcasts(ctx: BindingContext, cls: Struct) -> list[ShimPlan]:
    plans = []
    for base_type in cls.bases:
        base = ctx.items.get(base_type.key)
        if base is None or base.is_excluded or base.bridge_name is None:
            continue
        plans.append(
            make_plan(
                ctx,
                f"{cls.bridge_name}_as_{base.bridge_name}",
                ShimKind.upcast,
                base.name,
                [
                    PlannedParam(
                        "self", Crossing.const_ptr, f"const {cls.name}*", cls.bridge_name
                    )
                ],
                ret=(Crossing.const_ptr, f"const {base.name}*", base.bridge_name),
                receiver=cls.name,
            )
        )
    return plans


def plan_special_members(ctx: BindingContext, cls: Struct) -> SpecialMemberPlan:
    """Shims a class needs beyond the methods it declares."""
    plan = SpecialMemberPlan(cls.key)
    classification = ctx.classification(cls)

    if classification == Classification.non_trivial_by_value:
        traits = cls.traits
        plan.drop = _drop(ctx, cls)
        if traits.move_constructible:
            plan.move_new = _move_new(ctx, cls)
        if traits.copy_constructible:
            plan.copy_new = _copy_new(ctx, cls)
        if (
            cls.is_root
            and traits.default_constructible
            and not any(True for _ in cls.constructors())
        ):
            plan.default_new = _default_new(ctx, cls)

    if cls.is_root:
        plan.upcasts = _upcasts(ctx, cls)
    return plan


def run_special_member_planning(ctx: BindingContext):
    """Plan drop, move, copy, default construction and upcast shims.

    Trivial classes are carried by value and get none of the lifetime
    shims; reference-only classes are never constructed on this side.
    """
    for cls in ctx.accepted_structs():
        try:
            plan = plan_special_members(ctx, cls)
        except ExclusionError as e:
            ctx.exclude(cls, e.reason_kind, str(e))
            continue

        for p in plan.plans():
            ctx.claim_generated_name(
                p.bridge_name, f"{cls.key}::<{p.shim_kind.value}>"
            )
        if plan.plans():
            ctx.special_members[cls.key] = plan
            logger.debug(
                "%s special members: %s",
                cls.key,
                ", ".join(p.bridge_name for p in plan.plans()),
            )
