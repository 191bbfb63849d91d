# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from autoshim.decl import Typedef
from autoshim.passes.shim_plan import crossing_types
from autoshim.plan_defs import Crossing
from autoshim.synth.renderer import BaseRenderer, Fragment
from autoshim.synth.struct import field_crossing
from autoshim.synth.types import builtin_types_used
from autoshim.typedb import Classification


class TypedefRenderer(BaseRenderer):
    """Render a C++ type alias as a bridge alias of its target.

    The alias crosses the way its target does, so by-value aliases of
    non-trivial types are boxed.
    """

    alias_template = "alias {bridge_name} = {cxx_name} : {crossing} {bridge_type}"

    def __init__(self, ctx, decl: Typedef):
        super().__init__(ctx, decl)
        self._target = decl.underlying_type

    def _crossing(self) -> str:
        crossing = field_crossing(self._target)
        if crossing != Crossing.value:
            return crossing.value
        classification = self._ctx.typedb.classification_of(self._target)
        if classification == Classification.non_trivial_by_value:
            return Crossing.boxed.value
        if classification == Classification.reference_only:
            return "opaque"
        return Crossing.value.value

    def render(self) -> Fragment:
        crossing = field_crossing(self._target)
        _, bridge_type = crossing_types(self._ctx, self._target, crossing)

        fragment = Fragment(self._decl.key)
        fragment.bridge = self.alias_template.format(
            bridge_name=self._decl.bridge_name,
            cxx_name=self._decl.name,
            crossing=self._crossing(),
            bridge_type=bridge_type,
        )
        fragment.builtins.extend(builtin_types_used(self._target))
        fragment.symbols["type"] = [self._decl.bridge_name]
        return fragment
