# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import os
import warnings
from dataclasses import dataclass, field
from typing import Any

import yaml

from autoshim.context import BindingContext
from autoshim.decl import (
    ApiItem,
    ClassTemplate,
    EnumDecl,
    Function,
    FunctionTemplate,
    ItemKind,
    Struct,
    Typedef,
    item_from_dict,
)
from autoshim.directives import Directives
from autoshim.errors import (
    DirectiveError,
    ExclusionError,
    FrontendInputError,
    NothingToGenerateError,
)
from autoshim.types import TypeKind, parse_type

logger = logging.getLogger(__name__)


@dataclass
class FrontendInput:
    """The raw entity list produced by the header-parsing frontend."""

    headers: list[str] = field(default_factory=list)
    entities: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> FrontendInput:
        if not isinstance(data, dict):
            raise FrontendInputError(
                f"Frontend input must be a mapping, got {type(data).__name__}"
            )
        headers = data.get("headers") or []
        entities = data.get("entities") or []
        if not isinstance(headers, list) or not all(
            isinstance(h, str) for h in headers
        ):
            raise FrontendInputError(f"`headers` must be a list of paths: {headers!r}")
        if not isinstance(entities, list):
            raise FrontendInputError(f"`entities` must be a list: {entities!r}")
        return cls(list(headers), list(entities))


def load_frontend_input(path: str) -> FrontendInput:
    """Read a frontend dump. JSON documents are read as YAML."""
    if not os.path.exists(path):
        raise FrontendInputError(f"Frontend input {path} does not exist.")
    with open(path) as f:
        try:
            data = yaml.load(f, yaml.SafeLoader)
        except yaml.YAMLError as e:
            raise FrontendInputError(f"Cannot read frontend input {path}: {e}")
    return FrontendInput.from_dict(data)


@dataclass
class Declarations:
    """Parsed declarations, grouped by kind."""

    structs: list[Struct] = field(default_factory=list)
    functions: list[Function] = field(default_factory=list)
    function_templates: list[FunctionTemplate] = field(default_factory=list)
    class_templates: list[ClassTemplate] = field(default_factory=list)
    typedefs: list[Typedef] = field(default_factory=list)
    enums: list[EnumDecl] = field(default_factory=list)

    def all_named(self) -> list[ApiItem]:
        return [
            *self.structs,
            *self.class_templates,
            *self.function_templates,
            *self.typedefs,
            *self.enums,
        ]


def parse_entities(frontend_input: FrontendInput) -> Declarations:
    decls = Declarations()
    for entry in frontend_input.entities:
        item = item_from_dict(entry)
        if item.kind == ItemKind.struct:
            decls.structs.append(item)
        elif item.kind == ItemKind.function:
            decls.functions.append(item)
        elif item.kind == ItemKind.function_template:
            decls.function_templates.append(item)
        elif item.kind == ItemKind.class_template:
            decls.class_templates.append(item)
        elif item.kind == ItemKind.typedef:
            decls.typedefs.append(item)
        elif item.kind == ItemKind.enum:
            decls.enums.append(item)
        else:
            raise NotImplementedError(item.kind)
    return decls


def _catalog(ctx: BindingContext, decls: Declarations):
    for item in decls.all_named():
        existing = ctx.catalog.get(item.name)
        if existing is not None:
            # A forward declaration followed by the definition is one entity.
            if existing.kind == ItemKind.struct and not existing.complete:
                if item.kind == ItemKind.struct:
                    ctx.catalog[item.name] = item
                continue
            if item.kind == ItemKind.struct and not item.complete:
                continue
            raise FrontendInputError(f"Duplicate definition of {item.name}")
        ctx.catalog[item.name] = item

    for fn in decls.functions:
        overloads = ctx.function_catalog.setdefault(fn.name, [])
        if any(o.key == fn.key for o in overloads):
            raise FrontendInputError(f"Duplicate definition of {fn.key}")
        overloads.append(fn)


def _add_explicit_instantiation(ctx: BindingContext, name: str):
    t = parse_type(name)
    if t.kind != TypeKind.template_instantiation:
        raise DirectiveError(f"Cannot parse template instantiation {name!r}")

    if ctx.class_template(t.name) is not None:
        ctx.require_type(t)
        return

    template = ctx.function_template(t.name)
    if template is None:
        raise DirectiveError(
            f"`{name}` names an instantiation of unknown template {t.name}"
        )
    try:
        instance = template.instantiate(t.template_args)
    except ExclusionError as e:
        raise DirectiveError(f"Cannot instantiate `{name}`: {e}")
    ctx.add_item(instance, root=True)


def _add_root(ctx: BindingContext, name: str):
    if "<" in name:
        _add_explicit_instantiation(ctx, name)
        return

    item = ctx.catalog.get(name)
    if item is not None and item.kind in (
        ItemKind.struct,
        ItemKind.enum,
        ItemKind.typedef,
    ):
        ctx.add_item(item, root=True)
        return
    if name in ctx.function_catalog:
        for fn in ctx.function_catalog[name]:
            ctx.add_item(fn, root=True)
        return
    if item is not None:
        raise DirectiveError(
            f"`{name}` is a template, name an instantiation such as {name}<int>"
        )
    raise DirectiveError(f"`{name}` is not found in the frontend input")


def _namespace_members(ctx: BindingContext, namespace: str) -> list[str]:
    prefix = namespace + "::"
    names = [
        name
        for name, item in ctx.catalog.items()
        if name.startswith(prefix)
        and item.kind in (ItemKind.struct, ItemKind.enum, ItemKind.typedef)
        and (item.kind != ItemKind.struct or item.complete)
    ]
    names.extend(n for n in ctx.function_catalog if n.startswith(prefix))
    return sorted(set(names))


def build_api_graph(
    frontend_input: FrontendInput,
    directives: Directives,
    max_instantiation_depth: int = 8,
    shim_suffix: str = "_autoshim",
) -> BindingContext:
    """Build the API graph rooted at the allowlisted entities.

    Everything reachable from the roots through fields, public methods of
    allowlisted classes, function signatures and bases is added. Names the
    input never declares become opaque stubs.
    """
    ctx = BindingContext(
        directives, frontend_input.headers, max_instantiation_depth, shim_suffix
    )
    _catalog(ctx, parse_entities(frontend_input))

    roots = list(directives.allowlist)
    for namespace in directives.generate_ns:
        members = _namespace_members(ctx, namespace)
        if not members:
            warnings.warn(f"Namespace {namespace} declares nothing to generate.")
        roots.extend(m for m in members if m not in roots)

    for name in roots:
        if ctx.is_blocked(name):
            logger.info("%s is blocked, not generating it", name)
            continue
        _add_root(ctx, name)

    if not ctx.items and not ctx.instantiation_worklist:
        raise NothingToGenerateError(
            "No allowlisted entity remains after applying the blocklist."
        )

    ctx.process_worklist()
    return ctx
