# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections import deque

from autoshim.context import BindingContext
from autoshim.decl import ApiItem, ItemKind
from autoshim.diagnostics import ReasonKind
from autoshim.errors import (
    BlockedDependencyError,
    ExclusionError,
    IncompleteDefinitionError,
    TypeNotFoundError,
    UnsupportedTypeError,
)
from autoshim.typedb import Classification, TypeEntry
from autoshim.types import Type

logger = logging.getLogger(__name__)


def check_type_use(ctx: BindingContext, t: Type):
    """Raise if ``t`` cannot appear in a declaration.

    By-value uses need a complete, concrete type; indirect uses need only a
    type that has a declaration at all.
    """
    if t.is_unsupported:
        raise UnsupportedTypeError(
            f"`{t.spelling}` is not representable: {t.unsupported_reason}"
        )
    for nt in t.named_types():
        if ctx.is_blocked(nt.key):
            raise BlockedDependencyError(nt.key)
        item = ctx.items.get(nt.key)
        if item is not None and item.is_excluded:
            error = ExclusionError(f"depends on excluded `{item.name}`")
            error.reason_kind = item.exclusion.reason_kind
            raise error

    target = t.strip()
    if target.is_unsupported:
        raise UnsupportedTypeError(
            f"`{target.spelling}` is not representable: {target.unsupported_reason}"
        )
    entry = ctx.typedb.get(target.key)
    if entry is None:
        raise TypeNotFoundError(target.key)

    if entry.classification == Classification.unsupported:
        if entry.reason == ReasonKind.blocked_dependency:
            raise BlockedDependencyError(target.key)
        if entry.reason == ReasonKind.incomplete_definition:
            raise IncompleteDefinitionError(target.key)
        raise UnsupportedTypeError(f"uses unsupported type `{target.key}`")

    if not t.is_by_value:
        return
    if entry.classification == Classification.reference_only:
        if entry.incomplete:
            raise IncompleteDefinitionError(target.key)
        raise UnsupportedTypeError(f"abstract `{target.key}` cannot cross by value")


def _entry_error(entry: TypeEntry) -> ExclusionError:
    error = ExclusionError(entry.message)
    error.reason_kind = entry.reason or ReasonKind.unsupported_type
    return error


def _check_item(ctx: BindingContext, item: ApiItem):
    if item.kind in (ItemKind.struct, ItemKind.template_instantiation):
        entry = ctx.typedb[item.name]
        if entry.classification == Classification.unsupported:
            raise _entry_error(entry)
        if entry.classification == Classification.trivial_value:
            for f in item.fields:
                check_type_use(ctx, f.type_)
    elif item.kind in (ItemKind.function, ItemKind.method):
        if ctx.is_blocked(item.name):
            raise BlockedDependencyError(item.name)
        for t in item.referenced_types():
            if t.is_void():
                continue
            check_type_use(ctx, t)
    elif item.kind == ItemKind.typedef:
        entry = ctx.typedb[item.name]
        if entry.classification == Classification.unsupported:
            raise _entry_error(entry)
        if not item.underlying_type.is_by_value:
            check_type_use(ctx, item.underlying_type)
    elif item.kind == ItemKind.enum:
        pass
    else:
        raise NotImplementedError(item.kind)


def check_direct_exclusions(ctx: BindingContext):
    """Exclude every item that uses a blocked, unsupported or incomplete type."""
    for item in ctx.accepted_items():
        try:
            _check_item(ctx, item)
        except ExclusionError as e:
            ctx.exclude(item, e.reason_kind, str(e))


def propagate_exclusions(ctx: BindingContext) -> list[str]:
    """Exclude every dependent of an excluded item, to a fixed point.

    Dependents inherit the reason of the item they depend on. Returns the
    keys newly excluded.
    """
    newly = []
    worklist = deque(k for k in sorted(ctx.items) if ctx.items[k].is_excluded)
    while worklist:
        key = worklist.popleft()
        root = ctx.items[key]
        for dep_key in ctx.graph.dependents(key):
            dep = ctx.items.get(dep_key)
            if dep is None or dep.is_excluded:
                continue
            if ctx.exclude(
                dep,
                root.exclusion.reason_kind,
                f"depends on excluded `{root.name}`",
            ):
                logger.debug("%s excluded through %s", dep_key, key)
                newly.append(dep_key)
                worklist.append(dep_key)
    return newly


def run_exclusion_propagation(ctx: BindingContext):
    check_direct_exclusions(ctx)
    propagate_exclusions(ctx)
