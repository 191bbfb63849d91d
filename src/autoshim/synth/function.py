# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import os
import tempfile
from logging import FileHandler, getLogger

from autoshim.decl import Function
from autoshim.errors import ShimGenerationError
from autoshim.synth.renderer import BaseRenderer, Fragment
from autoshim.synth.types import builtin_types_used

file_logger = getLogger(f"{__name__}")
logger_path = os.path.join(tempfile.gettempdir(), "autoshim_function.log")
file_logger.debug(f"Function debug outputs are written to {logger_path}")
file_logger.addHandler(FileHandler(logger_path))


class FunctionRenderer(BaseRenderer):
    """Render the bridge declaration and shim of a function or method.

    Parameters
    ----------
    ctx: autoshim.context.BindingContext
        The analysed API graph.
    decl: autoshim.decl.Function
        A free function, a method or a function template instantiation,
        carrying the ``ShimPlan`` computed by analysis.
    """

    def __init__(self, ctx, decl: Function):
        super().__init__(ctx, decl)
        self._plan = decl.shim_plan

    def _check_operator(self):
        decl = self._decl
        if (
            decl.is_allocation_operator()
            or decl.is_deallocation_operator()
            or decl.is_user_defined_literal()
            or decl.is_cowait_operator()
        ):
            raise ShimGenerationError(
                f"{decl.callable_name} cannot be called through a shim"
            )

    def render(self) -> Fragment:
        if self._plan is None:
            raise ShimGenerationError(f"{self._decl.key} has no crossing plan")
        self._check_operator()

        fragment = Fragment(self._decl.key)
        fragment.bridge = self._fn_line(self._plan, self._decl.name)
        if self._plan.needs_shim:
            fragment.shims.append(self._shim(self._plan))

        for t in self._decl.referenced_types():
            fragment.builtins.extend(builtin_types_used(t))

        fragment.symbols["function"] = [self._plan.bridge_name]

        file_logger.debug(fragment.bridge)
        for _, _, definition in fragment.shims:
            file_logger.debug(definition)
        return fragment
