# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Iterator, Union

logger = logging.getLogger(__name__)


class TypeKind(str, Enum):
    primitive = "primitive"
    pointer = "pointer"
    reference = "reference"
    value = "value"
    template_instantiation = "template_instantiation"
    opaque = "opaque"


INTEGER_TYPES = {
    "char",
    "signed char",
    "unsigned char",
    "short",
    "unsigned short",
    "int",
    "unsigned int",
    "long",
    "unsigned long",
    "long long",
    "unsigned long long",
    "wchar_t",
    "char8_t",
    "char16_t",
    "char32_t",
    "int8_t",
    "int16_t",
    "int32_t",
    "int64_t",
    "uint8_t",
    "uint16_t",
    "uint32_t",
    "uint64_t",
    "size_t",
    "ptrdiff_t",
    "intptr_t",
    "uintptr_t",
}

FLOATING_TYPES = {"float", "double"}

PRIMITIVE_TYPES = INTEGER_TYPES | FLOATING_TYPES | {"bool", "void"}

UNSUPPORTED_PRIMITIVES = {
    "long double": "extended precision floating point has no portable ABI",
    "__int128": "128-bit integers have no portable ABI",
    "unsigned __int128": "128-bit integers have no portable ABI",
    "__float128": "quad precision floating point has no portable ABI",
    "nullptr_t": "nullptr_t cannot cross the boundary",
}

# Spellings that name a primitive through the standard library.
PRIMITIVE_ALIASES = {f"std::{name}": name for name in INTEGER_TYPES if "_t" in name}
PRIMITIVE_ALIASES["std::nullptr_t"] = "nullptr_t"

BUILTIN_TYPES = {"std::string": "non_trivial_by_value"}
"""Library types the bridge backend provides itself."""

BUILTIN_TEMPLATES = {
    "std::unique_ptr": "non_trivial_by_value",
    "std::shared_ptr": "non_trivial_by_value",
    "std::weak_ptr": "non_trivial_by_value",
    "std::vector": "non_trivial_by_value",
}
"""Library templates the bridge backend provides; never expanded."""

_PRIMITIVE_WORDS = {
    "void",
    "bool",
    "char",
    "short",
    "int",
    "long",
    "signed",
    "unsigned",
    "float",
    "double",
    "__int128",
    "__float128",
    "wchar_t",
    "char8_t",
    "char16_t",
    "char32_t",
}

_LEADING_SPECIFIERS = {
    "const",
    "volatile",
    "struct",
    "class",
    "enum",
    "union",
    "typename",
}

_QUALIFIED_NAME = re.compile(r"^[A-Za-z_]\w*(::[A-Za-z_]\w*)*$")
_LITERAL_ARG = re.compile(r"^(-?\d+[uUlL]*|true|false)$")
_TRAILING_CV = re.compile(r"^(?P<rest>.*[\s\*&>])(?P<cv>const|volatile)$")


class TypeSpellingError(ValueError):
    """Raised by the parser for spellings the type model cannot represent."""


TemplateArg = Union["Type", str]


class Type:
    """A C++ type as seen at one point of use.

    ``name`` is the qualified name for primitive, value and opaque types and
    the template name for template instantiations. Pointer and reference
    types carry their target in ``pointee``. ``decl`` refers to the item that
    defines the named type once the adapter has resolved it.
    """

    def __init__(
        self,
        kind: TypeKind,
        name: str = "",
        *,
        is_const: bool = False,
        pointee: Type | None = None,
        rvalue: bool = False,
        template_args: list[TemplateArg] | None = None,
        unsupported_reason: str | None = None,
    ):
        self.kind = kind
        self.name = name
        self.is_const = is_const
        self.pointee = pointee
        self.rvalue = rvalue
        self.template_args = list(template_args or [])
        self.unsupported_reason = unsupported_reason
        self.decl = None

    def __repr__(self):
        return f"Type({self.kind.value}, {self.spelling!r})"

    def __str__(self):
        return self.spelling

    def __eq__(self, other):
        if not isinstance(other, Type):
            return NotImplemented
        return self.kind == other.kind and self.spelling == other.spelling

    def __hash__(self):
        return hash(self.spelling)

    @property
    def spelling(self) -> str:
        """Canonical C++ spelling of the type."""
        if self.kind == TypeKind.pointer:
            s = f"{self.pointee.spelling}*"
            return s + " const" if self.is_const else s
        if self.kind == TypeKind.reference:
            return self.pointee.spelling + ("&&" if self.rvalue else "&")

        const = "const " if self.is_const else ""
        return const + self.key

    @property
    def key(self) -> str:
        """Spelling of the type without top-level cv-qualifiers.

        For named types this is the identity of the defining item.
        """
        if self.kind == TypeKind.template_instantiation:
            args = ", ".join(_arg_spelling(a) for a in self.template_args)
            return f"{self.name}<{args}>"
        if self.kind in (TypeKind.pointer, TypeKind.reference):
            return self.unqualified().spelling
        return self.name

    @property
    def unqualified_non_ref_type_name(self) -> str:
        """The spelling with references and top-level const removed."""
        t = self.pointee if self.kind == TypeKind.reference else self
        return t.unqualified().spelling

    @property
    def is_by_value(self) -> bool:
        return self.kind not in (TypeKind.pointer, TypeKind.reference)

    @property
    def is_named(self) -> bool:
        return self.kind in (
            TypeKind.value,
            TypeKind.template_instantiation,
        ) or (self.kind == TypeKind.opaque and self.unsupported_reason is None)

    @property
    def is_unsupported(self) -> bool:
        return self.unsupported_reason is not None

    def is_left_reference(self) -> bool:
        return self.kind == TypeKind.reference and not self.rvalue

    def is_right_reference(self) -> bool:
        return self.kind == TypeKind.reference and self.rvalue

    def is_pointer(self) -> bool:
        return self.kind == TypeKind.pointer

    def is_void(self) -> bool:
        return self.kind == TypeKind.primitive and self.name == "void"

    def copy(self, **changes) -> Type:
        attrs = dict(
            is_const=self.is_const,
            pointee=self.pointee,
            rvalue=self.rvalue,
            template_args=self.template_args,
            unsupported_reason=self.unsupported_reason,
        )
        attrs.update(changes)
        kind = attrs.pop("kind", self.kind)
        name = attrs.pop("name", self.name)
        t = Type(kind, name, **attrs)
        t.decl = self.decl
        return t

    def unqualified(self) -> Type:
        if not self.is_const:
            return self
        return self.copy(is_const=False)

    def strip(self) -> Type:
        """The innermost type after removing every pointer and reference."""
        t = self
        while t.kind in (TypeKind.pointer, TypeKind.reference):
            t = t.pointee
        return t

    def named_types(self) -> Iterator[Type]:
        """Yield every named type this type mentions, outermost first."""
        if self.kind in (TypeKind.pointer, TypeKind.reference):
            yield from self.pointee.named_types()
            return
        if self.is_named:
            yield self
        for arg in self.template_args:
            if isinstance(arg, Type):
                yield from arg.named_types()

    def instantiation_depth(self) -> int:
        if self.kind in (TypeKind.pointer, TypeKind.reference):
            return self.pointee.instantiation_depth()
        if self.kind != TypeKind.template_instantiation:
            return 0
        nested = [
            a.instantiation_depth()
            for a in self.template_args
            if isinstance(a, Type)
        ]
        return 1 + max(nested, default=0)

    def substitute(self, mapping: dict[str, TemplateArg]) -> Type:
        """Replace template parameter names with concrete arguments."""
        if self.kind in (TypeKind.pointer, TypeKind.reference):
            return self.copy(pointee=self.pointee.substitute(mapping))

        if self.kind == TypeKind.template_instantiation:
            args = []
            for arg in self.template_args:
                if isinstance(arg, Type):
                    args.append(arg.substitute(mapping))
                else:
                    args.append(mapping.get(arg, arg))
            return self.copy(template_args=args)

        if self.kind == TypeKind.value and self.name in mapping:
            replacement = mapping[self.name]
            if not isinstance(replacement, Type):
                raise TypeSpellingError(
                    f"non-type argument `{replacement}` used as a type"
                )
            return replacement.copy(
                is_const=replacement.is_const or self.is_const
            )

        return self.copy()


def _arg_spelling(arg: TemplateArg) -> str:
    return arg.spelling if isinstance(arg, Type) else arg


def split_top_level(text: str, sep: str = ",") -> list[str]:
    """Split ``text`` at ``sep`` outside of any angle or round brackets."""
    parts = []
    depth = 0
    current = []
    for ch in text:
        if ch in "<(":
            depth += 1
        elif ch in ">)":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts]


def split_qualified_name(name: str) -> list[str]:
    """Split a qualified name at ``::`` outside template argument lists."""
    parts = []
    depth = 0
    start = 0
    i = 0
    while i < len(name):
        ch = name[i]
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif depth == 0 and name.startswith("::", i):
            parts.append(name[start:i])
            start = i + 2
            i += 2
            continue
        i += 1
    parts.append(name[start:])
    return [p for p in parts if p]


def _normalize_primitive(words: list[str]) -> str:
    unsigned = "unsigned" in words
    signed = "signed" in words
    rest = [w for w in words if w not in ("unsigned", "signed")]
    longs = rest.count("long")
    others = [w for w in rest if w not in ("long", "int")]

    if unsigned and signed:
        raise TypeSpellingError(f"conflicting signedness in `{' '.join(words)}`")

    if others == ["double"] and longs == 1:
        return "long double"
    if others == ["char"] and longs == 0:
        if unsigned:
            return "unsigned char"
        return "signed char" if signed else "char"
    if others == ["__int128"] and longs == 0:
        return "unsigned __int128" if unsigned else "__int128"

    if others == ["short"] and longs == 0:
        base = "short"
    elif not others:
        if longs > 2:
            raise TypeSpellingError(f"`{' '.join(words)}` is too long")
        base = {0: "int", 1: "long", 2: "long long"}[longs]
    elif (
        len(others) == 1
        and len(rest) == 1
        and not unsigned
        and not signed
    ):
        return others[0]
    else:
        raise TypeSpellingError(f"invalid primitive type `{' '.join(words)}`")

    return f"unsigned {base}" if unsigned else base


def canonical_name(name: str) -> str:
    """Normalize a qualified name or template-id as written by a user."""
    name = name.strip()
    if name.startswith("::"):
        name = name[2:]
    if "<" not in name:
        return re.sub(r"\s*::\s*", "::", name)
    return _parse(name).key


def _parse_base(s: str) -> Type:
    words = s.split()
    is_const = False
    while words and words[0] in _LEADING_SPECIFIERS:
        if words[0] == "const":
            is_const = True
        words = words[1:]
    s = " ".join(words)
    if not s:
        raise TypeSpellingError("missing type name")

    if "<" in s:
        open_at = s.index("<")
        if not s.endswith(">"):
            raise TypeSpellingError(f"unsupported nested name in `{s}`")
        name = canonical_name(s[:open_at])
        inner = s[open_at + 1 : -1]
        # Balanced brackets are required for the argument list to close at
        # the final character.
        if inner.count("<") != inner.count(">"):
            raise TypeSpellingError(f"unbalanced template arguments in `{s}`")
        if not _QUALIFIED_NAME.match(name):
            raise TypeSpellingError(f"invalid template name `{name}`")
        args: list[TemplateArg] = []
        for arg in split_top_level(inner) if inner.strip() else []:
            if _LITERAL_ARG.match(arg):
                args.append(arg)
            else:
                args.append(_parse(arg))
        return Type(
            TypeKind.template_instantiation,
            name,
            is_const=is_const,
            template_args=args,
        )

    if all(w in _PRIMITIVE_WORDS for w in words):
        return Type(TypeKind.primitive, _normalize_primitive(words), is_const=is_const)

    if len(words) != 1:
        raise TypeSpellingError(f"cannot parse type `{s}`")

    name = canonical_name(words[0])
    name = PRIMITIVE_ALIASES.get(name, name)
    if name in PRIMITIVE_TYPES or name in UNSUPPORTED_PRIMITIVES:
        return Type(TypeKind.primitive, name, is_const=is_const)
    if not _QUALIFIED_NAME.match(name):
        raise TypeSpellingError(f"invalid type name `{name}`")
    return Type(TypeKind.value, name, is_const=is_const)


def _parse(s: str) -> Type:
    s = s.strip()
    if not s:
        raise TypeSpellingError("empty type spelling")
    if "(" in s or "[" in s:
        raise TypeSpellingError(f"unsupported declarator in `{s}`")

    if s.endswith("&&"):
        pointee = _parse(s[:-2])
        if pointee.kind == TypeKind.reference:
            raise TypeSpellingError(f"reference to reference in `{s}`")
        return Type(TypeKind.reference, pointee=pointee, rvalue=True)
    if s.endswith("&"):
        pointee = _parse(s[:-1])
        if pointee.kind == TypeKind.reference:
            raise TypeSpellingError(f"reference to reference in `{s}`")
        return Type(TypeKind.reference, pointee=pointee)
    if s.endswith("*"):
        pointee = _parse(s[:-1])
        if pointee.kind == TypeKind.reference:
            raise TypeSpellingError(f"pointer to reference in `{s}`")
        return Type(TypeKind.pointer, pointee=pointee)

    m = _TRAILING_CV.match(s)
    if m and m.group("rest").strip():
        t = _parse(m.group("rest"))
        if t.kind == TypeKind.reference:
            raise TypeSpellingError(f"cv-qualified reference in `{s}`")
        if m.group("cv") == "const":
            t.is_const = True
        return t

    return _parse_base(s)


def parse_type(spelling: str) -> Type:
    """Parse a C++ type spelling.

    Spellings outside the model (arrays, function types, malformed text)
    produce an opaque type that carries the reason it is unsupported.
    """
    try:
        return _parse(spelling)
    except TypeSpellingError as e:
        logger.debug("unsupported type spelling %r: %s", spelling, e)
        return Type(
            TypeKind.opaque,
            spelling.strip(),
            unsupported_reason=str(e),
        )
