# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import warnings
from collections import deque

from autoshim.decl import (
    ApiItem,
    ClassTemplate,
    Function,
    FunctionTemplate,
    ItemKind,
    Struct,
)
from autoshim.diagnostics import Diagnostics, ReasonKind
from autoshim.directives import Directives
from autoshim.errors import NameCollisionError
from autoshim.graph import DependencyGraph
from autoshim.plan_defs import SpecialMemberPlan, SubclassPlan
from autoshim.typedb import Classification, TypeDatabase
from autoshim.types import BUILTIN_TYPES, Type, TypeKind

logger = logging.getLogger(__name__)


class BindingContext:
    """The API graph of one run and every fact the passes derive from it.

    ``catalog`` holds what the frontend declared, ``items`` holds what is
    reachable from the allowlisted roots. Callables are catalogued by name
    since overloads share one.
    """

    def __init__(
        self,
        directives: Directives,
        headers: list[str] | None = None,
        max_instantiation_depth: int = 8,
        shim_suffix: str = "_autoshim",
    ):
        self.directives = directives
        self.headers = list(headers or [])
        self.max_instantiation_depth = max_instantiation_depth
        self.shim_suffix = shim_suffix

        self.catalog: dict[str, ApiItem] = {}
        self.function_catalog: dict[str, list[Function]] = {}

        self.items: dict[str, ApiItem] = {}
        self.typedb = TypeDatabase()
        self.graph = DependencyGraph()
        self.diagnostics = Diagnostics()

        self.pending_instantiations: dict[str, Type] = {}
        self.instantiation_worklist: deque[str] = deque()
        self.special_members: dict[str, SpecialMemberPlan] = {}
        self.subclass_plans: dict[str, SubclassPlan] = {}
        self.bridge_names: dict[str, str] = {}

        self._visit: deque[ApiItem] = deque()

    # Catalog

    def lookup(self, name: str) -> ApiItem | None:
        return self.catalog.get(name)

    def class_template(self, name: str) -> ClassTemplate | None:
        found = self.catalog.get(name)
        return found if isinstance(found, ClassTemplate) else None

    def function_template(self, name: str) -> FunctionTemplate | None:
        found = self.catalog.get(name)
        return found if isinstance(found, FunctionTemplate) else None

    def is_blocked(self, name: str) -> bool:
        return self.directives.is_blocked(name)

    # Reachability

    def add_item(self, item: ApiItem, root: bool = False) -> ApiItem:
        """Make ``item`` part of the API graph and schedule its visit."""
        existing = self.items.get(item.key)
        if existing is not None:
            if root and not existing.is_root:
                existing.is_root = True
                self._visit.append(existing)
            return existing

        item.is_root = root
        self.items[item.key] = item
        self.graph.add_node(item.key)
        self._visit.append(item)
        logger.debug("reached %s (%s)", item.key, item.kind.value)
        return item

    def process_worklist(self):
        while self._visit:
            item = self._visit.popleft()
            self._visit_item(item)

    def _visit_item(self, item: ApiItem):
        if item.kind in (ItemKind.struct, ItemKind.template_instantiation):
            for t in item.referenced_types():
                self.require_type(t)
            if item.is_root:
                for m in item.exposed_methods():
                    self.add_item(m, root=True)
                if item.key in self.directives.subclass:
                    self._require_override_types(item)
        elif item.kind in (ItemKind.function, ItemKind.method):
            # A blocked callable is only reported, its types stay unreached.
            if self.is_blocked(item.name):
                return
            for t in item.referenced_types():
                self.require_type(t)
        elif item.kind in (ItemKind.enum, ItemKind.typedef):
            for t in item.referenced_types():
                self.require_type(t)
        elif item.kind in (ItemKind.class_template, ItemKind.function_template):
            pass
        else:
            raise NotImplementedError(item.kind)

    def _require_override_types(self, cls: Struct):
        """Reach the signatures of every virtual a subclass may override.

        Bases are not roots, so their virtual methods are never visited.
        """
        seen = set()
        stack = [cls]
        while stack:
            record = stack.pop()
            if record.key in seen:
                continue
            seen.add(record.key)
            for m in record.virtual_methods():
                if self.is_blocked(m.name):
                    continue
                for t in m.referenced_types():
                    self.require_type(t)
            for b in record.bases:
                base = self.items.get(b.key) or self.catalog.get(b.key)
                if isinstance(base, Struct):
                    stack.append(base)

    def require_type(self, t: Type):
        """Pull the declarations a type names into the API graph."""
        for nt in t.named_types():
            key = nt.key
            if self.is_blocked(key):
                continue

            if nt.kind == TypeKind.template_instantiation:
                if self.typedb.is_builtin_template(nt.name):
                    self.typedb.declare_builtin_instantiation(nt)
                elif key not in self.items and key not in self.pending_instantiations:
                    self.pending_instantiations[key] = nt
                    self.instantiation_worklist.append(key)
                continue

            if nt.name in BUILTIN_TYPES:
                continue

            target = self.catalog.get(nt.name)
            if target is None:
                logger.debug("%s is not declared, using an opaque stub", nt.name)
                target = Struct.stub(nt.name)
                self.catalog[nt.name] = target
            elif target.kind in (ItemKind.class_template, ItemKind.function_template):
                # A template named without arguments cannot be a complete type.
                target = Struct.stub(nt.name)
            self.add_item(target)

    def bind_types(self):
        """Point every named type of every reachable item at its declaration."""
        for item in self.items.values():
            for t in self._all_types(item):
                for nt in t.named_types():
                    target = self.items.get(nt.key)
                    if target is None:
                        continue
                    nt.decl = target
                    if (
                        nt.kind == TypeKind.value
                        and target.kind == ItemKind.struct
                        and not target.complete
                    ):
                        nt.kind = TypeKind.opaque

    def _all_types(self, item: ApiItem) -> list[Type]:
        if item.kind in (ItemKind.struct, ItemKind.template_instantiation):
            types = item.referenced_types()
            for m in item.methods:
                types.extend(m.referenced_types())
            return types
        return item.referenced_types()

    def build_dependency_edges(self):
        """Add the edges every item has regardless of its classification."""
        for key in sorted(self.items):
            item = self.items[key]
            if item.kind in (ItemKind.struct, ItemKind.template_instantiation):
                types = item.layout_types(all_fields=False)
            else:
                types = item.referenced_types()
            self.add_type_edges(item, types)
            if item.kind == ItemKind.method:
                self.graph.add_edge(item.key, item.receiver.key)

    def add_type_edges(self, item: ApiItem, types: list[Type]):
        for t in types:
            for nt in t.named_types():
                if nt.key in self.items:
                    self.graph.add_edge(item.key, nt.key)

    # Results

    def accepted_items(self, *kinds: ItemKind) -> list[ApiItem]:
        """Reachable items that are not excluded, sorted by key."""
        return [
            self.items[k]
            for k in sorted(self.items)
            if not self.items[k].is_excluded
            and (not kinds or self.items[k].kind in kinds)
        ]

    def accepted_structs(self) -> list[Struct]:
        return self.accepted_items(ItemKind.struct, ItemKind.template_instantiation)

    def accepted_callables(self) -> list[Function]:
        return self.accepted_items(ItemKind.function, ItemKind.method)

    def classification(self, item: ApiItem) -> Classification:
        return self.typedb[item.name].classification

    def exclude(self, item: ApiItem, reason_kind: ReasonKind, message: str) -> bool:
        """Exclude an item, record a diagnostic and warn once."""
        if not item.exclude(reason_kind, message):
            return False
        self.diagnostics.record(item.key, item.name, reason_kind, message)
        if item.bridge_name is not None:
            self.release_bridge_name(item.bridge_name, item.key)
        warnings.warn(f"Skipping {item.key}: {message}")
        return True

    def claim_bridge_name(self, bridge_name: str, owner: str):
        """Reserve a bridge name; distinct owners of one name are fatal."""
        current = self.bridge_names.get(bridge_name)
        if current is not None and current != owner:
            raise NameCollisionError(bridge_name, [current, owner])
        self.bridge_names[bridge_name] = owner

    def claim_generated_name(self, bridge_name: str, owner: str):
        """Reserve a bridge name for a generated shim.

        Generated names are fixed by their class, so a declared item
        already holding the name is excluded instead.
        """
        current = self.bridge_names.get(bridge_name)
        holder = self.items.get(current) if current is not None else None
        if holder is not None and current != owner:
            self.exclude(
                holder,
                ReasonKind.name_collision,
                f"bridge name `{bridge_name}` is reserved for {owner}",
            )
        self.claim_bridge_name(bridge_name, owner)

    def release_bridge_name(self, bridge_name: str, owner: str):
        if self.bridge_names.get(bridge_name) == owner:
            del self.bridge_names[bridge_name]
        self.diagnostics.discard_rename(bridge_name)
