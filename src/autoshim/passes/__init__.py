# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging

from autoshim.context import BindingContext
from autoshim.passes.classify import run_type_classification
from autoshim.passes.closure import run_instantiation_closure
from autoshim.passes.exclusion import propagate_exclusions, run_exclusion_propagation
from autoshim.passes.overloads import run_overload_disambiguation
from autoshim.passes.shim_plan import run_shim_planning
from autoshim.passes.special_members import run_special_member_planning
from autoshim.passes.subclass import run_subclass_planning

logger = logging.getLogger(__name__)


def run_analysis_passes(ctx: BindingContext):
    """Run every analysis pass over ``ctx`` in their fixed order.

    Exclusions found by a pass are propagated before the next pass reads
    the accepted set, and once more at the end since planning can exclude
    items as well.
    """
    run_instantiation_closure(ctx)
    run_type_classification(ctx)
    run_exclusion_propagation(ctx)
    run_overload_disambiguation(ctx)
    run_special_member_planning(ctx)
    run_subclass_planning(ctx)
    run_shim_planning(ctx)
    newly = propagate_exclusions(ctx)
    logger.info(
        "analysis done: %d accepted, %d excluded (%d after planning)",
        len(ctx.accepted_items()),
        len(ctx.diagnostics),
        len(newly),
    )


__all__ = [
    "run_analysis_passes",
    "run_instantiation_closure",
    "run_type_classification",
    "run_exclusion_propagation",
    "run_overload_disambiguation",
    "run_special_member_planning",
    "run_subclass_planning",
    "run_shim_planning",
    "propagate_exclusions",
]
