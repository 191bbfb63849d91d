# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

from autoshim.context import BindingContext
from autoshim.decl import Struct
from autoshim.diagnostics import ReasonKind
from autoshim.errors import ExclusionError
from autoshim.types import Type

logger = logging.getLogger(__name__)


def _stub(ctx: BindingContext, key: str) -> Struct:
    stub = Struct.stub(key)
    return ctx.add_item(stub)


def _expand(ctx: BindingContext, key: str, t: Type):
    if t.instantiation_depth() > ctx.max_instantiation_depth:
        stub = _stub(ctx, key)
        ctx.exclude(
            stub,
            ReasonKind.unsupported_type,
            f"instantiation nests deeper than {ctx.max_instantiation_depth} levels",
        )
        return

    template = ctx.class_template(t.name)
    if template is None:
        logger.debug("%s instantiates an unknown template", key)
        _stub(ctx, key)
        return

    try:
        instance = template.instantiate(t.template_args)
    except ExclusionError as e:
        ctx.exclude(_stub(ctx, key), e.reason_kind, str(e))
        return

    # Instantiations are always generated with their members.
    ctx.add_item(instance, root=True)


def run_instantiation_closure(ctx: BindingContext):
    """Expand every required class template instantiation to a fixed point.

    Each expansion may name further instantiations in its fields, methods or
    bases; they are discovered by the reachability worklist and queued. The
    loop stops when no unseen ``(template, args)`` key remains.
    """
    seen: set[str] = set()
    while ctx.instantiation_worklist:
        key = ctx.instantiation_worklist.popleft()
        if key in seen or key in ctx.items:
            continue
        seen.add(key)
        _expand(ctx, key, ctx.pending_instantiations[key])
        ctx.process_worklist()

    ctx.bind_types()
    ctx.build_dependency_edges()
    logger.info(
        "closure complete: %d items, %d instantiations",
        len(ctx.items),
        len(seen),
    )
