# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum

import yaml


class ReasonKind(str, Enum):
    """Why an item was excluded from the generated bindings."""

    unsupported_type = "unsupported_type"
    blocked_dependency = "blocked_dependency"
    name_collision = "name_collision"
    incomplete_definition = "incomplete_definition"
    shim_generation_failed = "shim_generation_failed"


@dataclass(frozen=True)
class Diagnostic:
    qualified_name: str
    reason_kind: ReasonKind
    human_message: str

    def to_dict(self) -> dict[str, str]:
        record = asdict(self)
        record["reason_kind"] = self.reason_kind.value
        return record


@dataclass(frozen=True)
class Rename:
    qualified_name: str
    signature: str


class Diagnostics:
    """Exclusion records and overload renames of a single run.

    Records are keyed by the identity of the excluded item; overloads share a
    qualified name, so one name may carry several records.
    """

    def __init__(self):
        self._records: dict[str, Diagnostic] = {}
        self._renames: dict[str, Rename] = {}

    def record(
        self,
        key: str,
        qualified_name: str,
        reason_kind: ReasonKind,
        human_message: str,
    ) -> None:
        if key in self._records:
            return
        self._records[key] = Diagnostic(
            qualified_name, ReasonKind(reason_kind), human_message
        )

    def record_rename(
        self, generated_name: str, qualified_name: str, signature: str
    ) -> None:
        self._renames[generated_name] = Rename(qualified_name, signature)

    def discard_rename(self, generated_name: str) -> None:
        self._renames.pop(generated_name, None)

    @property
    def records(self) -> list[Diagnostic]:
        return [self._records[k] for k in sorted(self._records)]

    @property
    def renames(self) -> dict[str, Rename]:
        return {k: self._renames[k] for k in sorted(self._renames)}

    def for_name(self, qualified_name: str) -> list[Diagnostic]:
        return [d for d in self.records if d.qualified_name == qualified_name]

    def reason_of(self, qualified_name: str) -> ReasonKind | None:
        found = self.for_name(qualified_name)
        return found[0].reason_kind if found else None

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(self.records)

    def to_dict(self) -> dict:
        return {
            "diagnostics": [d.to_dict() for d in self.records],
            "renames": {
                name: {
                    "qualified_name": r.qualified_name,
                    "signature": r.signature,
                }
                for name, r in self.renames.items()
            },
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False)
