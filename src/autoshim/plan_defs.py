# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Crossing(str, Enum):
    """
    How a single value crosses the language boundary.

    Notes
    -----
    - `value`: passed in registers/memory as-is; trivial types and primitives.
    - `ref` / `const_ref`: a C++ reference, passed as a pointer through the
      shim and dereferenced on the native side.
    - `rvalue_ref`: a C++ rvalue reference; the shim moves out of the pointee.
    - `ptr` / `const_ptr`: a C++ pointer passed through untouched.
    - `boxed_move` / `boxed_copy`: a non-trivial value parameter; the caller
      owns a heap box and the shim moves (or copies) out of it.
    - `boxed`: a non-trivial return value; the shim heap-allocates and the
      caller owns the box.
    - `out`: caller-provided storage a constructor is placed into.
    - `void`: no value.
    """

    value = "value"
    ref = "ref"
    const_ref = "const_ref"
    rvalue_ref = "rvalue_ref"
    ptr = "ptr"
    const_ptr = "const_ptr"
    boxed_move = "boxed_move"
    boxed_copy = "boxed_copy"
    boxed = "boxed"
    out = "out"
    void = "void"


BOXED_OR_RVALUE = {
    Crossing.rvalue_ref,
    Crossing.boxed_move,
    Crossing.boxed_copy,
    Crossing.boxed,
}

INDIRECT = {
    Crossing.ref,
    Crossing.const_ref,
    Crossing.rvalue_ref,
    Crossing.boxed_move,
    Crossing.boxed_copy,
    Crossing.out,
}
"""Strategies that pass a pointer to the named type through the shim."""


class ShimKind(str, Enum):
    none = "none"
    function = "function"
    method = "method"
    static_method = "static_method"
    constructor = "constructor"
    placement_constructor = "placement_constructor"
    drop = "drop"
    move_new = "move_new"
    copy_new = "copy_new"
    default_new = "default_new"
    upcast = "upcast"
    trampoline_new = "trampoline_new"


@dataclass(frozen=True)
class PlannedParam:
    """
    One parameter as it crosses the boundary.

    `cxx_type` is the native spelling with references and top-level const
    removed for indirect strategies; `bridge_type` is the bridge-side name.
    """

    name: str
    crossing: Crossing
    cxx_type: str
    bridge_type: str


@dataclass(frozen=True)
class ShimPlan:
    """
    Normalized crossing plan for a single callable.
    """

    bridge_name: str
    shim_kind: ShimKind
    needs_shim: bool
    shim_name: Optional[str]
    cxx_name: str
    params: tuple[PlannedParam, ...]
    return_crossing: Crossing
    return_cxx_type: str
    return_bridge_type: str
    receiver: Optional[str] = None  # native class spelling for member shims
    receiver_const: bool = False
    generated_native_signature: str = ""
    generated_bridge_signature: str = ""


@dataclass
class SpecialMemberPlan:
    """
    Shims planned for a class beyond its declared methods.
    """

    struct_key: str
    drop: Optional[ShimPlan] = None
    move_new: Optional[ShimPlan] = None
    copy_new: Optional[ShimPlan] = None
    default_new: Optional[ShimPlan] = None
    upcasts: list[ShimPlan] = field(default_factory=list)

    def plans(self) -> list[ShimPlan]:
        found = [self.drop, self.move_new, self.copy_new, self.default_new]
        return [p for p in found if p is not None] + list(self.upcasts)


@dataclass(frozen=True)
class VirtualOverride:
    """
    One virtual method a trampoline forwards to a callback.
    """

    method_key: str
    callback_name: str
    method_name: str
    is_const: bool
    params: tuple[PlannedParam, ...]
    return_crossing: Crossing
    return_cxx_type: str
    return_bridge_type: str
    cxx_return_type: str  # as declared, for the override
    cxx_params: tuple[str, ...]  # as declared, with parameter names


@dataclass
class SubclassPlan:
    """
    A trampoline class deriving from an allowlisted C++ class.
    """

    struct_key: str
    class_name: str
    bridge_name: str
    base_cxx_name: str
    base_bridge_name: str
    vtable_name: str
    overrides: list[VirtualOverride] = field(default_factory=list)
    constructors: list[ShimPlan] = field(default_factory=list)
    drop: Optional[ShimPlan] = None
    depends_on: list[str] = field(default_factory=list)

    def plans(self) -> list[ShimPlan]:
        return list(self.constructors) + ([self.drop] if self.drop else [])
