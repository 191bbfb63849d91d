# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from autoshim.errors import TypeNotFoundError, UnsupportedTypeError
from autoshim.types import (
    BUILTIN_TEMPLATES,
    BUILTIN_TYPES,
    UNSUPPORTED_PRIMITIVES,
    Type,
    TypeKind,
)


def to_bridge_type_str(ctx, t: Type) -> str:
    """Spell ``t`` the way the bridge declaration module names it.

    Named types use the bridge name of their declaration, builtins keep their
    C++ name. Raises ``TypeNotFoundError`` for a type that has no
    declaration in the output and ``UnsupportedTypeError`` for a primitive
    with no portable ABI.
    """
    if t.is_unsupported:
        raise TypeNotFoundError(t.spelling)

    if t.kind == TypeKind.primitive:
        reason = UNSUPPORTED_PRIMITIVES.get(t.name)
        if reason is not None:
            raise UnsupportedTypeError(f"`{t.spelling}` is not representable: {reason}")
        return t.name

    if t.kind == TypeKind.pointer:
        const = "const " if t.pointee.is_const else ""
        return f"*{const}{to_bridge_type_str(ctx, t.pointee)}"

    if t.kind == TypeKind.reference:
        const = "const " if t.pointee.is_const else ""
        return f"&{const}{to_bridge_type_str(ctx, t.pointee)}"

    if t.kind == TypeKind.template_instantiation and t.name in BUILTIN_TEMPLATES:
        args = ", ".join(
            to_bridge_type_str(ctx, a) if isinstance(a, Type) else a
            for a in t.template_args
        )
        return f"{t.name}<{args}>"

    if t.name in BUILTIN_TYPES:
        return t.name

    decl = ctx.items.get(t.key)
    if decl is None or decl.is_excluded or decl.bridge_name is None:
        raise TypeNotFoundError(t.key)
    return decl.bridge_name


def builtin_types_used(t: Type) -> list[str]:
    """Builtin library types that ``t`` mentions, outermost first."""
    found = []
    for nt in t.named_types():
        if nt.kind == TypeKind.template_instantiation and nt.name in BUILTIN_TEMPLATES:
            found.append(nt.key)
        elif nt.name in BUILTIN_TYPES:
            found.append(nt.name)
    return found
