# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

from autoshim.directives import Directives
from autoshim.frontend import FrontendInput, build_api_graph
from autoshim.passes import run_analysis_passes
from autoshim.synth import reset_renderer
from autoshim.synth.synthesizer import BridgeSynthesizer, SynthesisResult

logger = logging.getLogger(__name__)


def generate_bindings(
    frontend_input: FrontendInput,
    directives: Directives,
    output_name: str = "bindings",
    shim_suffix: str = "_autoshim",
    max_instantiation_depth: int = 8,
) -> SynthesisResult:
    """Run the whole pipeline on already loaded input.

    Parameters
    ----------
    frontend_input: FrontendInput
        The entity list produced by the header-parsing frontend.
    directives: Directives
        The user's selection of entities to expose and to block.
    output_name: str
        Base name of the generated files. The shim header is named
        ``<output_name>_shim.h`` and the shim source includes it by that name.
    shim_suffix: str
        Appended to a bridge name to form the name of its shim.
    max_instantiation_depth: int
        Template instantiations nested deeper than this are excluded.

    Returns
    -------
    result: SynthesisResult
        The bridge module text, the shim header and source, and the
        diagnostics report. Nothing is written to disk.

    Raises
    ------
    ConfigurationError
        On malformed directives or input, cyclic by-value membership, an
        unresolvable name collision or nothing to generate. No partial result
        is produced.
    """
    reset_renderer()

    ctx = build_api_graph(
        frontend_input,
        directives,
        max_instantiation_depth=max_instantiation_depth,
        shim_suffix=shim_suffix,
    )
    run_analysis_passes(ctx)
    result = BridgeSynthesizer(ctx, output_name).synthesize()

    logger.info(
        "generated %s: %d diagnostic(s), %d rename(s)",
        output_name,
        len(result.diagnostics),
        len(result.diagnostics.renames),
    )
    return result
