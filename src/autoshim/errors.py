# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from autoshim.diagnostics import ReasonKind


class AutoshimError(Exception):
    pass


class ConfigurationError(AutoshimError):
    """A fatal error in the user's configuration or the frontend input.

    Configuration errors abort a run before any artifact is written.
    """


class DirectiveError(ConfigurationError):
    """Indicate that the directive list is malformed or contradicts itself."""


class FrontendInputError(ConfigurationError):
    """Indicate that an entity in the frontend input cannot be understood."""


class ValueTypeCycleError(ConfigurationError):
    """Indicate that a set of types contain each other by value.

    A cycle of by-value membership has no finite layout; the frontend input is
    inconsistent or a typedef refers to itself.
    """

    def __init__(self, cycle: list[str]):
        self._cycle = list(cycle)
        path = " -> ".join(self._cycle + self._cycle[:1])
        super().__init__(f"Cyclic by-value membership: {path}")

    @property
    def cycle(self):
        return self._cycle


class NameCollisionError(ConfigurationError):
    """Indicate that two distinct items produced the same bridge name.

    This error is raised when a generated name is not unique after overload
    disambiguation, which no per-item exclusion can repair.
    """

    def __init__(self, bridge_name: str, owners: list[str]):
        self._bridge_name = bridge_name
        self._owners = sorted(owners)
        super().__init__(
            f"Bridge name {bridge_name} is not unique, it is produced by: "
            + ", ".join(self._owners)
        )

    @property
    def bridge_name(self):
        return self._bridge_name

    @property
    def owners(self):
        return self._owners


class NothingToGenerateError(ConfigurationError):
    """Indicate that no allowlisted root survived directive filtering."""


class ExclusionError(AutoshimError):
    """A soft error that removes a single item from the output.

    Subclasses set ``reason_kind``, which becomes the reason recorded in the
    diagnostics report for the excluded item.
    """

    reason_kind: ReasonKind = ReasonKind.unsupported_type


class UnsupportedTypeError(ExclusionError):
    reason_kind = ReasonKind.unsupported_type


class TypeNotFoundError(UnsupportedTypeError):
    """Indicate that a type string was not found in the type database.

    Types that are neither declared in the frontend input nor provided by
    the builtin tables have no classification. Items that need such a type
    by value cannot cross the boundary.
    """

    def __init__(self, type_name):
        self._type_name = type_name
        super().__init__(f"{type_name} is not found in type database.")

    @property
    def type_name(self):
        return self._type_name


class BlockedDependencyError(ExclusionError):
    reason_kind = ReasonKind.blocked_dependency

    def __init__(self, blocked_name: str):
        self._blocked_name = blocked_name
        super().__init__(f"depends on blocked entity `{blocked_name}`")

    @property
    def blocked_name(self):
        return self._blocked_name


class IncompleteDefinitionError(ExclusionError):
    reason_kind = ReasonKind.incomplete_definition

    def __init__(self, type_name: str):
        self._type_name = type_name
        super().__init__(
            f"`{type_name}` has no definition and cannot be used by value"
        )

    @property
    def type_name(self):
        return self._type_name


class ShimGenerationError(ExclusionError):
    """Indicate that no native shim can be written for an item."""

    reason_kind = ReasonKind.shim_generation_failed


class ShimNameConflictError(AutoshimError):
    """Indicate that two different shim bodies were written under one name.

    Shim names derive from unique bridge names, so a conflict means two
    renderers disagree about the same shim.
    """

    def __init__(self, shim_name: str):
        self._shim_name = shim_name
        super().__init__(f"Shim {shim_name} is written twice with different bodies.")

    @property
    def shim_name(self):
        return self._shim_name
