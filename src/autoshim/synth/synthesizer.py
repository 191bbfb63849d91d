# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field

from autoshim.context import BindingContext
from autoshim.decl import ApiItem, ItemKind
from autoshim.diagnostics import Diagnostics, ReasonKind
from autoshim.errors import ExclusionError
from autoshim.passes.exclusion import propagate_exclusions
from autoshim.shim_writer import MemoryShimWriter
from autoshim.synth.enum import EnumRenderer
from autoshim.synth.function import FunctionRenderer
from autoshim.synth.renderer import (
    BaseRenderer,
    Fragment,
    get_all_exposed_symbols,
    get_bridge_preamble,
    get_rendered_builtins,
    get_rendered_includes,
    register_fragment,
)
from autoshim.synth.struct import StructRenderer
from autoshim.synth.subclass import SubclassRenderer
from autoshim.synth.typedef import TypedefRenderer

logger = logging.getLogger(__name__)


@dataclass
class SynthesisResult:
    """The artifacts of one run, held in memory until the caller writes them."""

    bridge: str
    shim_header: str
    shim_source: str
    diagnostics: Diagnostics
    header_name: str
    symbols: dict[str, list[str]] = field(default_factory=dict)


def renderer_for(ctx: BindingContext, item: ApiItem) -> BaseRenderer:
    if item.kind in (ItemKind.struct, ItemKind.template_instantiation):
        return StructRenderer(ctx, item)
    elif item.kind in (ItemKind.function, ItemKind.method):
        return FunctionRenderer(ctx, item)
    elif item.kind == ItemKind.enum:
        return EnumRenderer(ctx, item)
    elif item.kind == ItemKind.typedef:
        return TypedefRenderer(ctx, item)
    else:
        raise NotImplementedError(item.kind)


class BridgeSynthesizer:
    """Emit the bridge module and the shim pair from an analysed graph.

    Items are rendered in dependency order. An item whose renderer fails is
    excluded alone, the exclusion is propagated to its dependents, their
    fragments are dropped and rendering repeats until nothing new fails.
    """

    def __init__(self, ctx: BindingContext, output_name: str):
        self._ctx = ctx
        self._output_name = output_name
        self.header_name = f"{output_name}_shim.h"

    def _render_pass(self, fragments: dict[str, Fragment]) -> list[str]:
        failed = []
        keys = [item.key for item in self._ctx.accepted_items()]
        for key in self._ctx.graph.topological_order(keys):
            item = self._ctx.items[key]
            if key in fragments or item.is_excluded:
                continue
            if item.kind in (ItemKind.class_template, ItemKind.function_template):
                continue
            try:
                fragments[key] = renderer_for(self._ctx, item).render()
            except ExclusionError as e:
                self._ctx.exclude(item, ReasonKind.shim_generation_failed, str(e))
                failed.append(key)
        return failed

    def render_items(self) -> dict[str, Fragment]:
        fragments: dict[str, Fragment] = {}
        while True:
            failed = self._render_pass(fragments)
            newly = propagate_exclusions(self._ctx)
            for key in list(fragments):
                if self._ctx.items[key].is_excluded:
                    del fragments[key]
            if not failed and not newly:
                break
            logger.info(
                "synthesis excluded %d item(s), %d dependent(s); rendering again",
                len(failed),
                len(newly),
            )
        return fragments

    def render_subclasses(self) -> list[Fragment]:
        fragments = []
        for key in sorted(self._ctx.subclass_plans):
            plan = self._ctx.subclass_plans[key]
            cls = self._ctx.items[key]
            if cls.is_excluded:
                continue
            try:
                fragments.append(SubclassRenderer(self._ctx, plan).render())
            except ExclusionError as e:
                message = f"subclass trampoline not generated: {e}"
                subclass_key = f"{key}::<subclass>"
                self._ctx.diagnostics.record(
                    subclass_key, cls.name, ReasonKind.shim_generation_failed, message
                )
                warnings.warn(f"Skipping {subclass_key}: {message}")
        return fragments

    def synthesize(self) -> SynthesisResult:
        ctx = self._ctx
        item_fragments = self.render_items()
        keys = ctx.graph.topological_order(list(item_fragments))
        fragments = [item_fragments[k] for k in keys] + self.render_subclasses()

        includes = list(ctx.headers)
        includes += [h for h in ctx.directives.include if h not in includes]
        BaseRenderer.Includes.extend(includes)
        for fragment in fragments:
            register_fragment(fragment)

        sections = [get_bridge_preamble()]
        for block in (get_rendered_includes(), get_rendered_builtins()):
            if block:
                sections.append(block)
        sections.extend(f.bridge for f in fragments if f.bridge)
        bridge = "\n\n".join(sections) + "\n"

        writer = MemoryShimWriter(
            self.header_name,
            includes=includes,
            preceding_text="\n\n".join(ctx.directives.extra_native),
        )
        for fragment in fragments:
            if fragment.header:
                writer.write_to_header(fragment.header, fragment.key)
            for shim_name, prototype, definition in fragment.shims:
                writer.write_to_shim(definition, shim_name, prototype)

        logger.info(
            "synthesized %d declaration(s) and %d shim(s)",
            len(fragments),
            len(writer.shim_written),
        )
        return SynthesisResult(
            bridge=bridge,
            shim_header=writer.header_text,
            shim_source=writer.source_text,
            diagnostics=ctx.diagnostics,
            header_name=self.header_name,
            symbols=get_all_exposed_symbols(),
        )
