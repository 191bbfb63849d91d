# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from autoshim.decl import TypeTraits
from autoshim.diagnostics import ReasonKind
from autoshim.types import (
    BUILTIN_TEMPLATES,
    BUILTIN_TYPES,
    PRIMITIVE_TYPES,
    UNSUPPORTED_PRIMITIVES,
    Type,
    TypeKind,
)

logger = logging.getLogger(__name__)


class Classification(str, Enum):
    unresolved = "unresolved"
    trivial_value = "trivial_value"
    non_trivial_by_value = "non_trivial_by_value"
    reference_only = "reference_only"
    pointer = "pointer"
    unsupported = "unsupported"


_RANK = {
    Classification.unresolved: 0,
    Classification.pointer: 1,
    Classification.trivial_value: 2,
    Classification.non_trivial_by_value: 3,
    Classification.reference_only: 4,
    Classification.unsupported: 5,
}


def join(a: Classification, b: Classification) -> Classification:
    """Least upper bound of two classifications."""
    return a if _RANK[a] >= _RANK[b] else b


class UnresolvedTypeError(RuntimeError):
    """A classification was read before it was decided.

    Passes run in a fixed order, so this signals a bug in the pass order,
    never a problem with the user's input.
    """


@dataclass
class TypeEntry:
    name: str
    classification: Classification = Classification.unresolved
    traits: Optional[TypeTraits] = None
    builtin: bool = False
    incomplete: bool = False
    template_instantiation: bool = False
    reason: Optional[ReasonKind] = None
    message: str = ""

    @property
    def is_resolved(self) -> bool:
        return self.classification != Classification.unresolved


class TypeDatabase:
    """Classification of every type name seen in a run.

    Updates only move up the lattice
    ``unresolved < trivial_value < non_trivial_by_value < reference_only < unsupported``.
    """

    def __init__(self):
        self._entries: dict[str, TypeEntry] = {}
        self._seed()

    def _seed(self):
        for name in sorted(PRIMITIVE_TYPES):
            self._entries[name] = TypeEntry(
                name, Classification.trivial_value, builtin=True
            )
        for name, message in sorted(UNSUPPORTED_PRIMITIVES.items()):
            self._entries[name] = TypeEntry(
                name,
                Classification.unsupported,
                builtin=True,
                reason=ReasonKind.unsupported_type,
                message=message,
            )
        for name, classification in sorted(BUILTIN_TYPES.items()):
            self._entries[name] = TypeEntry(
                name, Classification(classification), builtin=True
            )

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __getitem__(self, name: str) -> TypeEntry:
        return self._entries[name]

    def __len__(self):
        return len(self._entries)

    def get(self, name: str) -> TypeEntry | None:
        return self._entries.get(name)

    def entries(self) -> list[TypeEntry]:
        return [self._entries[k] for k in sorted(self._entries)]

    def declare(self, name: str, **attrs) -> TypeEntry:
        """Create the entry for ``name`` if missing and update its facts."""
        entry = self._entries.get(name)
        if entry is None:
            entry = TypeEntry(name)
            self._entries[name] = entry
        for k, v in attrs.items():
            setattr(entry, k, v)
        return entry

    def declare_builtin_instantiation(self, t: Type) -> TypeEntry:
        entry = self.declare(t.key, builtin=True, template_instantiation=True)
        self.classify(t.key, Classification(BUILTIN_TEMPLATES[t.name]))
        return entry

    def classify(
        self,
        name: str,
        classification: Classification,
        reason: ReasonKind | None = None,
        message: str = "",
    ) -> Classification:
        """Join ``classification`` into the entry of ``name``.

        Returns the classification in effect afterwards, which may be higher
        than the one requested.
        """
        entry = self.declare(name)
        before = entry.classification
        after = join(before, classification)
        if after != before:
            entry.classification = after
            if after == Classification.unsupported:
                entry.reason = reason or ReasonKind.unsupported_type
                entry.message = message
            logger.debug("classified %s: %s -> %s", name, before.value, after.value)
        elif _RANK[classification] < _RANK[before]:
            logger.debug(
                "kept %s as %s, not lowering to %s",
                name,
                before.value,
                classification.value,
            )
        return entry.classification

    def is_builtin_template(self, name: str) -> bool:
        return name in BUILTIN_TEMPLATES

    def entry_of(self, t: Type) -> TypeEntry:
        """The entry of the type named by ``t``; raises if unresolved."""
        entry = self._entries.get(t.key)
        if entry is None or not entry.is_resolved:
            raise UnresolvedTypeError(f"{t.key} is read before it is classified")
        return entry

    def classification_of(self, t: Type) -> Classification:
        """Classification of one use of a type.

        Pointers and references are ``pointer`` regardless of their target.
        """
        if t.kind in (TypeKind.pointer, TypeKind.reference):
            return Classification.pointer
        if t.is_unsupported:
            return Classification.unsupported
        return self.entry_of(t).classification
