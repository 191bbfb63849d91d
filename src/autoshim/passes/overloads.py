# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections import defaultdict

from autoshim.context import BindingContext
from autoshim.decl import Function, ItemKind, Method, MethodKind
from autoshim.diagnostics import ReasonKind
from autoshim.utils import mangle_signature, sanitize_identifier

logger = logging.getLogger(__name__)


def _operator_label(item: Function) -> str:
    if item.is_overloaded_operator():
        return "op_" + item.overloaded_operator_to_bridge_op
    return "op_" + (sanitize_identifier(item._op_str or "") or "unnamed")


def callable_label(item: Function) -> str:
    """The unsuffixed name of a callable within its scope."""
    if item.kind == ItemKind.method:
        if item.is_constructor:
            return "new"
        if item.method_kind == MethodKind.conversion:
            return "as_" + sanitize_identifier(item.return_type.spelling)
        if item.method_kind == MethodKind.operator:
            return _operator_label(item)
        return sanitize_identifier(item.method_name)
    elif item.kind == ItemKind.function:
        if item.is_operator:
            return _operator_label(item)
        return sanitize_identifier(item.base_name)
    else:
        raise NotImplementedError(item.kind)


def _prefix(item: Function) -> str:
    if item.kind == ItemKind.method:
        return item.receiver.bridge_name
    return sanitize_identifier(item.scope)


def _join(prefix: str, label: str) -> str:
    return f"{prefix}_{label}" if prefix else label


def _suffix(item: Function) -> str:
    is_const = isinstance(item, Method) and item.is_const
    return mangle_signature([t.spelling for t in item.param_types], is_const)


def _signature(item: Function) -> str:
    if isinstance(item, Method) and item.is_const:
        return item.signature + " const"
    return item.signature


def run_overload_disambiguation(ctx: BindingContext):
    """Give every accepted item a unique bridge name.

    Overloads within a scope are told apart by a suffix derived from their
    parameter types, so the result does not depend on declaration order.
    """
    for item in ctx.accepted_items(
        ItemKind.struct, ItemKind.template_instantiation, ItemKind.enum, ItemKind.typedef
    ):
        item.bridge_name = sanitize_identifier(item.name)
        ctx.claim_bridge_name(item.bridge_name, item.key)

    groups: dict[str, list[Function]] = defaultdict(list)
    for item in ctx.accepted_callables():
        groups[_join(_prefix(item), callable_label(item))].append(item)

    for base, members in sorted(groups.items()):
        if len(members) == 1:
            members[0].bridge_name = base
            continue

        by_name: dict[str, list[Function]] = defaultdict(list)
        for item in members:
            by_name[f"{base}_{_suffix(item)}"].append(item)

        for name, owners in sorted(by_name.items()):
            if len(owners) > 1:
                keys = ", ".join(o.key for o in owners)
                for o in owners:
                    ctx.exclude(
                        o,
                        ReasonKind.name_collision,
                        f"overloads cannot be told apart as {name}: {keys}",
                    )
                continue
            owner = owners[0]
            owner.bridge_name = name
            ctx.diagnostics.record_rename(name, owner.name, _signature(owner))
            logger.debug("renamed %s to %s", owner.key, name)

    for item in ctx.accepted_callables():
        ctx.claim_bridge_name(item.bridge_name, item.key)
