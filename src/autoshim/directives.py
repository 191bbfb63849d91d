# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from autoshim.errors import DirectiveError
from autoshim.types import canonical_name, split_qualified_name, TypeSpellingError


class DirectiveKind(str, Enum):
    generate = "generate"
    generate_pod = "generate_pod"
    generate_ns = "generate_ns"
    block = "block"
    subclass = "subclass"
    extra_native = "extra_native"
    include = "include"


_NAME_DIRECTIVES = {
    DirectiveKind.generate,
    DirectiveKind.generate_pod,
    DirectiveKind.generate_ns,
    DirectiveKind.block,
    DirectiveKind.subclass,
}


def _parse_directive_kind(cls, v: Any) -> DirectiveKind:
    """
    Parse a directive key, case-insensitive and whitespace ignored.

    Raises:
        DirectiveError: If `v` is not a recognized directive key.
    """
    if isinstance(v, DirectiveKind):
        return v
    if isinstance(v, str):
        try:
            return DirectiveKind(v.strip().lower())
        except ValueError:
            pass
    raise DirectiveError(f"Unknown directive: {v!r}")


setattr(DirectiveKind, "parse", classmethod(_parse_directive_kind))


def _as_list(kind: DirectiveKind, value: Any) -> list[str]:
    if isinstance(value, str):
        values = [value]
    elif isinstance(value, (list, tuple)):
        values = list(value)
    else:
        raise DirectiveError(
            f"Directive `{kind.value}` expects a string or a list of strings, got {value!r}"
        )
    for v in values:
        if not isinstance(v, str) or not v.strip():
            raise DirectiveError(
                f"Directive `{kind.value}` expects non-empty strings, got {v!r}"
            )
    return values


def _normalize(kind: DirectiveKind, value: str) -> str:
    if kind not in _NAME_DIRECTIVES:
        return value
    try:
        return canonical_name(value)
    except TypeSpellingError as e:
        raise DirectiveError(f"Invalid name in `{kind.value}`: {value!r} ({e})")


@dataclass(frozen=True)
class Directives:
    """The user's selection of what to generate.

    Names are canonical qualified names; a template-id in ``generate``
    requests that instantiation.
    """

    generate: tuple[str, ...] = ()
    generate_pod: tuple[str, ...] = ()
    generate_ns: tuple[str, ...] = ()
    block: tuple[str, ...] = ()
    subclass: tuple[str, ...] = ()
    extra_native: tuple[str, ...] = ()
    include: tuple[str, ...] = ()

    def __post_init__(self):
        for kind in DirectiveKind:
            values = getattr(self, kind.value)
            if isinstance(values, str):
                raise DirectiveError(
                    f"Directive `{kind.value}` must be a sequence, got {values!r}"
                )
        conflicts = [n for n in self.allowlist if self.is_blocked(n)]
        if conflicts:
            raise DirectiveError(
                "Names are both generated and blocked: " + ", ".join(sorted(conflicts))
            )

    @property
    def allowlist(self) -> tuple[str, ...]:
        """Every name that is explicitly requested, in directive order."""
        seen = []
        for name in self.generate + self.generate_pod + self.subclass:
            if name not in seen:
                seen.append(name)
        return tuple(seen)

    def is_blocked(self, name: str) -> bool:
        """Whether ``name``, its template or an enclosing scope is blocked."""
        if not self.block:
            return False
        candidates = set()
        parts = split_qualified_name(name)
        for i in range(1, len(parts) + 1):
            prefix = "::".join(parts[:i])
            candidates.add(prefix)
            if "<" in prefix:
                candidates.add(prefix[: prefix.index("<")])
        return any(c in self.block for c in candidates)

    @classmethod
    def from_config(cls, raw: Any) -> Directives:
        """Build directives from a mapping or a list of single-key mappings.

        The list form keeps the order the directives were written in:

        .. code-block:: yaml

            - generate: ns::Widget
            - block: ns::Secret
        """
        if raw is None:
            return cls()

        if isinstance(raw, dict):
            pairs = list(raw.items())
        elif isinstance(raw, list):
            pairs = []
            for entry in raw:
                if not isinstance(entry, dict) or len(entry) != 1:
                    raise DirectiveError(
                        f"Each directive must be a single-key mapping, got {entry!r}"
                    )
                pairs.extend(entry.items())
        else:
            raise DirectiveError(
                f"Directives must be a mapping or a list, got {type(raw).__name__}"
            )

        collected: dict[DirectiveKind, list[str]] = {k: [] for k in DirectiveKind}
        for key, value in pairs:
            kind = DirectiveKind.parse(key)
            for v in _as_list(kind, value):
                v = _normalize(kind, v)
                if v not in collected[kind]:
                    collected[kind].append(v)

        return cls(**{k.value: tuple(v) for k, v in collected.items()})
