# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import typing
from dataclasses import dataclass, fields as dataclass_fields
from enum import Enum
from typing import Any, Iterator, Optional

from autoshim.diagnostics import ReasonKind
from autoshim.errors import FrontendInputError
from autoshim.types import Type, parse_type, split_qualified_name, canonical_name

CXX_OP_TO_BRIDGE_OP = {
    "+": ["pos", "add"],
    "-": ["neg", "sub"],
    "*": ["deref", "mul"],
    "&": ["addressof", "bitand"],
    "/": "div",
    "%": "rem",
    "|": "bitor",
    "^": "bitxor",
    "!": "not",
    "~": "bitnot",
    "<<": "shl",
    ">>": "shr",
    "==": "eq",
    "!=": "ne",
    "<": "lt",
    "<=": "le",
    ">": "gt",
    ">=": "ge",
    "<=>": "cmp",
    "&&": "and",
    "||": "or",
    "+=": "add_assign",
    "-=": "sub_assign",
    "*=": "mul_assign",
    "/=": "div_assign",
    "%=": "rem_assign",
    "&=": "bitand_assign",
    "|=": "bitor_assign",
    "^=": "bitxor_assign",
    "<<=": "shl_assign",
    ">>=": "shr_assign",
    "++": "inc",
    "--": "dec",
    "[]": "index",
    "()": "call",
    "->": "arrow",
    ",": "comma",
    "=": "assign",
}


class ItemKind(str, Enum):
    function = "function"
    method = "method"
    struct = "struct"
    enum = "enum"
    typedef = "typedef"
    function_template = "function_template"
    class_template = "class_template"
    template_instantiation = "template_instantiation"


class MethodKind(str, Enum):
    regular = "regular"
    constructor = "constructor"
    copy_constructor = "copy_constructor"
    move_constructor = "move_constructor"
    destructor = "destructor"
    copy_assignment = "copy_assignment"
    move_assignment = "move_assignment"
    conversion = "conversion"
    operator = "operator"


class Access(str, Enum):
    public = "public"
    protected = "protected"
    private = "private"


@dataclass(frozen=True)
class Exclusion:
    reason_kind: ReasonKind
    message: str


@dataclass(frozen=True)
class TypeTraits:
    """Facts about a class the frontend derived from its definition.

    ``None`` means the frontend could not decide the trait.
    """

    copy_constructible: Optional[bool] = None
    move_constructible: Optional[bool] = None
    trivially_relocatable: Optional[bool] = None
    has_user_destructor: Optional[bool] = None
    is_abstract: Optional[bool] = None
    default_constructible: Optional[bool] = None

    @property
    def is_ambiguous(self) -> bool:
        return any(getattr(self, f.name) is None for f in dataclass_fields(self))

    @classmethod
    def from_dict(cls, entry: dict[str, Any] | None) -> TypeTraits:
        if entry is None:
            return cls()
        if not isinstance(entry, dict):
            raise FrontendInputError(f"traits must be a mapping, got {entry!r}")
        known = {f.name for f in dataclass_fields(cls)}
        unknown = set(entry) - known
        if unknown:
            raise FrontendInputError(f"Unknown trait(s): {sorted(unknown)}")
        for k, v in entry.items():
            if v is not None and not isinstance(v, bool):
                raise FrontendInputError(f"Trait {k} must be a boolean, got {v!r}")
        return cls(**entry)


def _require(entry: dict[str, Any], key: str, what: str):
    if key not in entry:
        raise FrontendInputError(f"{what} is missing required key `{key}`: {entry!r}")
    return entry[key]


def _parse_entry_type(spelling: Any, what: str) -> Type:
    if not isinstance(spelling, str):
        raise FrontendInputError(f"{what} must be a type spelling, got {spelling!r}")
    return parse_type(spelling)


class ParamVar:
    """A parameter of a function or method."""

    def __init__(self, name: str, type_: Type):
        self.name = name
        self.type_ = type_

    def __str__(self):
        return f"{self.type_.spelling} {self.name}".strip()

    @property
    def unqualified_non_ref_type_name(self) -> str:
        return self.type_.unqualified_non_ref_type_name

    def substitute(self, mapping) -> ParamVar:
        return ParamVar(self.name, self.type_.substitute(mapping))

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> ParamVar:
        if not isinstance(entry, dict):
            raise FrontendInputError(f"parameter must be a mapping, got {entry!r}")
        return cls(
            entry.get("name") or "",
            _parse_entry_type(_require(entry, "type", "parameter"), "parameter type"),
        )


class Field:
    def __init__(self, name: str, type_: Type, access: Access = Access.public):
        self.name = name
        self.type_ = type_
        self.access = access

    def __str__(self):
        return f"{self.type_.spelling} {self.name}"

    def substitute(self, mapping) -> Field:
        return Field(self.name, self.type_.substitute(mapping), self.access)

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> Field:
        if not isinstance(entry, dict):
            raise FrontendInputError(f"field must be a mapping, got {entry!r}")
        return cls(
            _require(entry, "name", "field"),
            _parse_entry_type(_require(entry, "type", "field"), "field type"),
            _parse_access(entry.get("access", "public")),
        )


def _parse_access(access: str) -> Access:
    try:
        return Access(access)
    except ValueError:
        raise FrontendInputError(f"Unknown access specifier: {access!r}")


class ApiItem:
    """Base class of every declaration the bindings are built from.

    An item is never removed once created. Passes attach derived facts to it
    and exclude it through ``exclude``; the first exclusion wins.
    """

    kind: ItemKind

    def __init__(self, name: str):
        self._name = name
        self.exclusion: Exclusion | None = None
        self.bridge_name: str | None = None
        self.shim_plan = None
        self.is_root = False

    def __repr__(self):
        old = super().__repr__()
        return f"{old[:-1]} {self.key}>"

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> str:
        return self.name

    @property
    def base_name(self) -> str:
        return split_qualified_name(self.name)[-1]

    @property
    def scope(self) -> str:
        return "::".join(split_qualified_name(self.name)[:-1])

    @property
    def is_excluded(self) -> bool:
        return self.exclusion is not None

    def exclude(self, reason_kind: ReasonKind, message: str) -> bool:
        """Mark the item excluded; returns False if it already was."""
        if self.exclusion is not None:
            return False
        self.exclusion = Exclusion(ReasonKind(reason_kind), message)
        return True

    def referenced_types(self) -> list[Type]:
        return []


class Function(ApiItem):
    """Represents a C++ function.

    For C++ operator types, see
    https://en.cppreference.com/w/cpp/language/operators.
    """

    kind = ItemKind.function

    def __init__(
        self,
        name: str,
        return_type: Type,
        params: list[ParamVar],
        is_noexcept: bool = False,
    ):
        super().__init__(name)
        self.return_type = return_type
        self.params = params
        self.is_noexcept = is_noexcept

    def __str__(self):
        return f"{self.name}({', '.join(str(p) for p in self.params)}) -> {self.return_type}"

    @property
    def callable_name(self) -> str:
        """The unqualified name as written in the declaration."""
        return self.base_name

    @property
    def is_operator(self) -> bool:
        name = self.callable_name
        return name.startswith("operator") and (
            len(name) == 8 or not (name[8].isalnum() or name[8] == "_")
        )

    @property
    def _op_str(self) -> str | None:
        if not self.is_operator:
            return None
        return self.callable_name[8:].strip()

    @property
    def param_types(self) -> list[Type]:
        return [a.type_ for a in self.params]

    @property
    def signature(self) -> str:
        return f"({', '.join(t.spelling for t in self.param_types)})"

    @property
    def key(self) -> str:
        return f"{self.name}{self.signature}"

    @property
    def cxx_name(self) -> str:
        return self.name

    @property
    def operator_arity(self) -> int:
        return len(self.params)

    def referenced_types(self) -> list[Type]:
        return [self.return_type] + self.param_types

    def is_allocation_operator(self) -> bool:
        if self._op_str is None:
            return False
        return self._op_str.startswith("new")

    def is_deallocation_operator(self) -> bool:
        if self._op_str is None:
            return False
        return self._op_str.startswith("delete")

    def is_user_defined_literal(self) -> bool:
        if self._op_str is None:
            return False
        return self._op_str.startswith('""')

    def is_cowait_operator(self) -> bool:
        if self._op_str is None:
            return False
        return self._op_str.startswith("co_await")

    def is_overloaded_operator(self) -> bool:
        if self._op_str is None:
            return False
        return self._op_str in CXX_OP_TO_BRIDGE_OP

    def is_conversion_operator(self) -> bool:
        # Conversion operators are found by eliminating every other operator
        # form, their spelled target type varies.
        return (
            self.is_operator
            and not self.is_overloaded_operator()
            and not self.is_allocation_operator()
            and not self.is_deallocation_operator()
            and not self.is_user_defined_literal()
            and not self.is_cowait_operator()
        )

    @property
    def overloaded_operator_to_bridge_op(self) -> str:
        if not self.is_overloaded_operator():
            raise ValueError(f"{self.name} is not an overloaded operator")
        op_str = typing.cast(str, self._op_str)

        op = CXX_OP_TO_BRIDGE_OP[op_str]
        if isinstance(op, list):
            # Unary and binary forms share the token, e.g.
            # T operator-(const T &x);
            # T operator-(const T &lh, const T &rh);
            return op[0] if self.operator_arity == 1 else op[1]
        return op

    def substitute(self, mapping) -> Function:
        return Function(
            self.name,
            self.return_type.substitute(mapping),
            [p.substitute(mapping) for p in self.params],
            self.is_noexcept,
        )

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> Function:
        # Operator names such as ``operator<`` are not type names.
        return cls(
            entry["name"].strip().removeprefix("::"),
            _parse_entry_type(entry.get("return_type", "void"), "return type"),
            [ParamVar.from_dict(p) for p in entry.get("params") or []],
            bool(entry.get("noexcept", False)),
        )


class Method(Function):
    """Represents a method of a C++ struct/class.

    Includes constructors, conversion operators, and overloaded operators.
    The qualified name follows the receiver, so methods of an instantiation
    are named after the instantiation.
    """

    kind = ItemKind.method

    def __init__(
        self,
        method_name: str,
        return_type: Type,
        params: list[ParamVar],
        method_kind: MethodKind = MethodKind.regular,
        is_const: bool = False,
        is_static: bool = False,
        is_virtual: bool = False,
        is_pure_virtual: bool = False,
        is_deleted: bool = False,
        access: Access = Access.public,
        is_noexcept: bool = False,
    ):
        super().__init__(method_name, return_type, params, is_noexcept)
        self.method_name = method_name
        self.method_kind = method_kind
        self.is_const = is_const
        self.is_static = is_static
        self.is_virtual = is_virtual or is_pure_virtual
        self.is_pure_virtual = is_pure_virtual
        self.is_deleted = is_deleted
        self.access = access
        self.receiver: Struct | None = None

        if self.method_kind == MethodKind.regular and self.is_operator:
            self.method_kind = (
                MethodKind.conversion
                if self.is_conversion_operator()
                else MethodKind.operator
            )

    @property
    def name(self) -> str:
        if self.receiver is None:
            return self.method_name
        return f"{self.receiver.name}::{self.method_name}"

    @property
    def callable_name(self) -> str:
        return self.method_name

    @property
    def key(self) -> str:
        return f"{self.name}{self.signature}" + (" const" if self.is_const else "")

    @property
    def operator_arity(self) -> int:
        # The receiver is the implicit first operand.
        return len(self.params) + (0 if self.is_static else 1)

    @property
    def is_constructor(self) -> bool:
        return self.method_kind in (
            MethodKind.constructor,
            MethodKind.copy_constructor,
            MethodKind.move_constructor,
        )

    @property
    def is_special_member(self) -> bool:
        """Members planned by special-member analysis rather than exposed."""
        return self.method_kind in (
            MethodKind.copy_constructor,
            MethodKind.move_constructor,
            MethodKind.destructor,
            MethodKind.copy_assignment,
            MethodKind.move_assignment,
        )

    @property
    def is_exposed(self) -> bool:
        return (
            self.access == Access.public
            and not self.is_deleted
            and not self.is_special_member
        )

    def referenced_types(self) -> list[Type]:
        if self.is_constructor:
            return self.param_types
        return [self.return_type] + self.param_types

    def substitute(self, mapping) -> Method:
        m = Method(
            self.method_name,
            self.return_type.substitute(mapping),
            [p.substitute(mapping) for p in self.params],
            self.method_kind,
            self.is_const,
            self.is_static,
            self.is_virtual,
            self.is_pure_virtual,
            self.is_deleted,
            self.access,
            self.is_noexcept,
        )
        return m

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> Method:
        if not isinstance(entry, dict):
            raise FrontendInputError(f"method must be a mapping, got {entry!r}")
        name = _require(entry, "name", "method")
        try:
            method_kind = MethodKind(entry.get("kind", "regular"))
        except ValueError:
            raise FrontendInputError(
                f"Unknown method kind {entry.get('kind')!r} for method {name}"
            )
        return cls(
            name,
            _parse_entry_type(entry.get("return_type", "void"), "return type"),
            [ParamVar.from_dict(p) for p in entry.get("params") or []],
            method_kind,
            bool(entry.get("const", False)),
            bool(entry.get("static", False)),
            bool(entry.get("virtual", False)),
            bool(entry.get("pure_virtual", False)),
            bool(entry.get("deleted", False)),
            _parse_access(entry.get("access", "public")),
            bool(entry.get("noexcept", False)),
        )


class Struct(ApiItem):
    """Represents a C++ record (struct/class) and its metadata.

    A Struct with ``complete=False`` is an opaque stub: the frontend saw only
    a forward declaration or the name was never declared at all.
    """

    kind = ItemKind.struct

    def __init__(
        self,
        name: str,
        fields: list[Field],
        methods: list[Method],
        bases: list[Type],
        traits: TypeTraits | None = None,
        complete: bool = True,
    ):
        super().__init__(name)
        self.fields = fields
        self.methods = methods
        self.bases = bases
        self.traits = traits if traits is not None else TypeTraits()
        self.complete = complete
        for m in self.methods:
            m.receiver = self

    @classmethod
    def stub(cls, name: str) -> Struct:
        return cls(name, [], [], [], TypeTraits(), complete=False)

    def public_fields(self) -> list[Field]:
        return [f for f in self.fields if f.access == Access.public]

    def value_fields(self) -> list[Field]:
        return [f for f in self.fields if f.type_.is_by_value]

    def constructors(self) -> Iterator[Method]:
        for m in self.methods:
            if m.is_constructor:
                yield m

    def overloaded_operators(self) -> Iterator[Method]:
        for m in self.methods:
            if m.method_kind == MethodKind.operator:
                yield m

    def conversion_operators(self) -> Iterator[Method]:
        for m in self.methods:
            if m.method_kind == MethodKind.conversion:
                yield m

    def regular_member_functions(self) -> Iterator[Method]:
        """Generator for methods that are not constructors, overload operators and conversion operators."""
        for m in self.methods:
            if m.method_kind == MethodKind.regular:
                yield m

    def exposed_methods(self) -> list[Method]:
        return [m for m in self.methods if m.is_exposed]

    def virtual_methods(self) -> list[Method]:
        return [
            m
            for m in self.methods
            if m.is_virtual and m.method_kind != MethodKind.destructor
        ]

    @property
    def has_virtual_methods(self) -> bool:
        return any(m.is_virtual for m in self.methods)

    @property
    def is_abstract(self) -> bool:
        return bool(self.traits.is_abstract) or any(
            m.is_pure_virtual for m in self.methods
        )

    def referenced_types(self) -> list[Type]:
        return list(self.bases) + [f.type_ for f in self.fields]

    def layout_types(self, all_fields: bool) -> list[Type]:
        """Types the layout of this record depends on.

        Bases and by-value fields always count; indirect fields only count
        when every field of the record is emitted.
        """
        fields = self.fields if all_fields else self.value_fields()
        return list(self.bases) + [f.type_ for f in fields]

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> Struct:
        return cls(
            canonical_name(entry["name"]),
            [Field.from_dict(f) for f in entry.get("fields") or []],
            [Method.from_dict(m) for m in entry.get("methods") or []],
            [_parse_entry_type(b, "base") for b in entry.get("bases") or []],
            TypeTraits.from_dict(entry.get("traits")),
            bool(entry.get("complete", True)),
        )


class EnumDecl(ApiItem):
    kind = ItemKind.enum

    def __init__(
        self,
        name: str,
        enumerators: list[tuple[str, int]],
        underlying_type: Type,
    ):
        super().__init__(name)
        self.enumerators = enumerators
        self.underlying_type = underlying_type

    def referenced_types(self) -> list[Type]:
        return [self.underlying_type]

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> EnumDecl:
        enumerators = []
        for e in entry.get("enumerators") or []:
            if not isinstance(e, dict) or "name" not in e:
                raise FrontendInputError(
                    f"enumerator of {entry['name']} must be a mapping with a name: {e!r}"
                )
            enumerators.append((e["name"], e.get("value")))
        return cls(
            canonical_name(entry["name"]),
            enumerators,
            _parse_entry_type(entry.get("underlying_type", "int"), "underlying type"),
        )


class Typedef(ApiItem):
    kind = ItemKind.typedef

    def __init__(self, name: str, underlying_type: Type):
        super().__init__(name)
        self.underlying_type = underlying_type

    def referenced_types(self) -> list[Type]:
        return [self.underlying_type]

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> Typedef:
        return cls(
            canonical_name(entry["name"]),
            _parse_entry_type(
                _require(entry, "underlying_type", "typedef"), "underlying type"
            ),
        )


def _parse_template_parameters(entry: dict[str, Any]) -> list[str]:
    names = []
    for tparam in _require(entry, "template_parameters", entry["kind"]):
        if isinstance(tparam, dict):
            tparam = tparam.get("name")
        if not isinstance(tparam, str) or not tparam:
            raise FrontendInputError(
                f"Invalid template parameter in {entry['name']}: {tparam!r}"
            )
        names.append(tparam)
    return names


class Template(ApiItem):
    """Base class for C++ template declarations."""

    def __init__(self, name: str, template_parameters: list[str]):
        super().__init__(name)
        self.template_parameters = template_parameters

    @property
    def num_min_required_args(self) -> int:
        return len(self.template_parameters)


class FunctionTemplate(Template):
    kind = ItemKind.function_template

    def __init__(
        self, name: str, template_parameters: list[str], function: Function
    ):
        super().__init__(name, template_parameters)
        self.function = function

    def instantiate(self, args):
        from autoshim.instantiations import instantiate_function_template

        return instantiate_function_template(self, args)

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> FunctionTemplate:
        function = Function.from_dict(entry)
        return cls(function.name, _parse_template_parameters(entry), function)


class ClassTemplate(Template):
    kind = ItemKind.class_template

    def __init__(self, name: str, template_parameters: list[str], record: Struct):
        super().__init__(name, template_parameters)
        self.record = record

    def instantiate(self, args):
        from autoshim.instantiations import instantiate_class_template

        return instantiate_class_template(self, args)

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> ClassTemplate:
        record = Struct.from_dict(entry)
        return cls(record.name, _parse_template_parameters(entry), record)


_ENTITY_CLASSES = {
    "struct": Struct,
    "class": Struct,
    "function": Function,
    "enum": EnumDecl,
    "typedef": Typedef,
    "class_template": ClassTemplate,
    "function_template": FunctionTemplate,
}


def item_from_dict(entry: dict[str, Any]) -> ApiItem:
    """Build an item from one entity of the frontend output."""
    if not isinstance(entry, dict):
        raise FrontendInputError(f"entity must be a mapping, got {entry!r}")
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        raise FrontendInputError(f"entity has no name: {entry!r}")
    kind = entry.get("kind")
    if kind not in _ENTITY_CLASSES:
        raise FrontendInputError(f"entity {name} has unknown kind {kind!r}")
    return _ENTITY_CLASSES[kind].from_dict(entry)
