# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from autoshim.context import BindingContext
from autoshim.decl import ApiItem, ItemKind, Struct, Typedef
from autoshim.diagnostics import ReasonKind
from autoshim.errors import ValueTypeCycleError
from autoshim.graph import CycleError, DependencyGraph
from autoshim.typedb import Classification, join
from autoshim.types import Type, TypeKind

logger = logging.getLogger(__name__)

_TYPE_KINDS = (
    ItemKind.struct,
    ItemKind.template_instantiation,
    ItemKind.enum,
    ItemKind.typedef,
)


class Verdict(NamedTuple):
    classification: Classification
    reason: Optional[ReasonKind] = None
    message: str = ""


def _value_edge(ctx: BindingContext, t: Type) -> str | None:
    """The item a by-value use of ``t`` contains, if any."""
    if not t.is_by_value or not t.is_named:
        return None
    return t.key if t.key in ctx.items else None


def _value_membership_graph(ctx: BindingContext, items: list[ApiItem]):
    g = DependencyGraph()
    for item in items:
        g.add_node(item.key)
        if item.kind in (ItemKind.struct, ItemKind.template_instantiation):
            members = item.layout_types(all_fields=False)
        elif item.kind == ItemKind.typedef:
            members = [item.underlying_type]
        else:
            members = []
        for t in members:
            dst = _value_edge(ctx, t)
            if dst is not None:
                if dst == item.key:
                    raise ValueTypeCycleError([item.key])
                g.add_edge(item.key, dst)
    return g


def _use_verdict(ctx: BindingContext, t: Type) -> Verdict:
    """Classification of a type as it appears at one point of use."""
    if t.is_unsupported:
        return Verdict(
            Classification.unsupported,
            ReasonKind.unsupported_type,
            f"`{t.spelling}` is not representable: {t.unsupported_reason}",
        )
    for nt in t.named_types():
        if ctx.is_blocked(nt.key):
            return Verdict(
                Classification.unsupported,
                ReasonKind.blocked_dependency,
                f"depends on blocked entity `{nt.key}`",
            )
    if t.kind in (TypeKind.pointer, TypeKind.reference):
        return Verdict(Classification.pointer)

    entry = ctx.typedb.get(t.key)
    if entry is None:
        return Verdict(
            Classification.unsupported,
            ReasonKind.unsupported_type,
            f"{t.key} is not found in type database.",
        )
    return Verdict(ctx.typedb.entry_of(t).classification, entry.reason, entry.message)


def _member_verdict(ctx: BindingContext, t: Type, is_base: bool) -> Verdict:
    v = _use_verdict(ctx, t)
    if v.classification == Classification.pointer:
        return Verdict(Classification.trivial_value)
    if v.classification != Classification.reference_only:
        return v

    entry = ctx.typedb[t.key]
    if entry.incomplete:
        return Verdict(
            Classification.unsupported,
            ReasonKind.incomplete_definition,
            f"`{t.key}` has no definition and its size is unknown",
        )
    if is_base:
        # A concrete class may derive from an abstract one.
        return Verdict(Classification.non_trivial_by_value)
    return Verdict(
        Classification.unsupported,
        ReasonKind.unsupported_type,
        f"abstract `{t.key}` cannot be held by value",
    )


def _classify_struct(ctx: BindingContext, item: Struct) -> Verdict:
    if not item.complete:
        return Verdict(Classification.reference_only)
    if item.is_abstract:
        return Verdict(Classification.reference_only)

    result = Classification.trivial_value
    members = [(b, True) for b in item.bases] + [
        (f.type_, False) for f in item.value_fields()
    ]
    for t, is_base in members:
        v = _member_verdict(ctx, t, is_base)
        if v.classification == Classification.unsupported:
            return v
        result = join(result, v.classification)

    traits = item.traits
    if traits.is_ambiguous:
        logger.info("%s has undetermined traits, treating as non-trivial", item.name)
        return Verdict(join(result, Classification.non_trivial_by_value))
    if (
        traits.has_user_destructor
        or not traits.trivially_relocatable
        or not (traits.move_constructible or traits.copy_constructible)
        or item.has_virtual_methods
    ):
        return Verdict(join(result, Classification.non_trivial_by_value))
    return Verdict(result)


def _classify_typedef(ctx: BindingContext, item: Typedef) -> Verdict:
    v = _use_verdict(ctx, item.underlying_type)
    if v.classification == Classification.unsupported and v.reason is None:
        return Verdict(v.classification, ReasonKind.unsupported_type, v.message)
    return v


def classify_item(ctx: BindingContext, item: ApiItem) -> Verdict:
    if item.kind in (ItemKind.struct, ItemKind.template_instantiation):
        return _classify_struct(ctx, item)
    elif item.kind == ItemKind.enum:
        return Verdict(Classification.trivial_value)
    elif item.kind == ItemKind.typedef:
        return _classify_typedef(ctx, item)
    else:
        raise NotImplementedError(item.kind)


def run_type_classification(ctx: BindingContext):
    """Classify every reachable type, members before the types holding them."""
    db = ctx.typedb
    items = [ctx.items[k] for k in sorted(ctx.items) if ctx.items[k].kind in _TYPE_KINDS]

    for item in items:
        if item.kind in (ItemKind.struct, ItemKind.template_instantiation):
            db.declare(
                item.name,
                traits=item.traits,
                incomplete=not item.complete,
                template_instantiation=item.kind == ItemKind.template_instantiation,
            )
        else:
            db.declare(item.name)

    try:
        order = _value_membership_graph(ctx, items).topological_order(strict=True)
    except CycleError as e:
        raise ValueTypeCycleError(e.cycle)

    for key in order:
        item = ctx.items[key]
        v = classify_item(ctx, item)
        db.classify(item.name, v.classification, v.reason, v.message)
        if item.kind == ItemKind.typedef:
            target = db.get(item.underlying_type.key)
            if target is not None and item.underlying_type.is_by_value:
                db[item.name].incomplete = target.incomplete
        logger.debug("%s is %s", key, db[item.name].classification.value)

    # Every field of a trivial record is emitted, pointers included.
    for item in items:
        if (
            item.kind in (ItemKind.struct, ItemKind.template_instantiation)
            and db[item.name].classification == Classification.trivial_value
        ):
            ctx.add_type_edges(item, item.layout_types(all_fields=True))

    for name in ctx.directives.generate_pod:
        item = ctx.items.get(name)
        if item is None or item.kind not in (
            ItemKind.struct,
            ItemKind.template_instantiation,
        ):
            continue
        classification = db[item.name].classification
        if classification != Classification.trivial_value:
            ctx.exclude(
                item,
                ReasonKind.unsupported_type,
                f"{name} is requested as plain data but is {classification.value}",
            )
