# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from autoshim import decl
from autoshim.errors import UnsupportedTypeError
from autoshim.types import Type, TemplateArg, TypeSpellingError


class BaseInstantiation:
    """Represent an instantiation of a template.

    Instantiations are identified by ``(template name, argument spellings)``.
    """

    def _bind(self, template: decl.Template, args: list[TemplateArg]):
        self.template = template
        self.template_args = list(args)
        self.validate()
        self.mapping = dict(zip(template.template_parameters, self.template_args))

    def validate(self):
        expected = len(self.template.template_parameters)
        if len(self.template_args) != expected:
            raise UnsupportedTypeError(
                f"{self.template.name} expects {expected} template argument(s), "
                f"got {len(self.template_args)}"
            )

    @property
    def param_list(self) -> list[str]:
        return [a.spelling if isinstance(a, Type) else a for a in self.template_args]

    @property
    def template_key(self) -> tuple[str, tuple[str, ...]]:
        return (self.template.name, tuple(self.param_list))

    def get_instantiated_c_stmt(self) -> str:
        return f"{self.template.name}<{', '.join(self.param_list)}>"


class TemplateInstantiation(BaseInstantiation, decl.Struct):
    """A class template expanded with concrete arguments."""

    kind = decl.ItemKind.template_instantiation

    def __init__(self, template: decl.ClassTemplate, args: list[TemplateArg]):
        self._bind(template, args)
        record = template.record
        try:
            fields = [f.substitute(self.mapping) for f in record.fields]
            methods = [m.substitute(self.mapping) for m in record.methods]
            bases = [b.substitute(self.mapping) for b in record.bases]
        except TypeSpellingError as e:
            raise UnsupportedTypeError(
                f"cannot instantiate {self.get_instantiated_c_stmt()}: {e}"
            )
        decl.Struct.__init__(
            self,
            self.get_instantiated_c_stmt(),
            fields,
            methods,
            bases,
            record.traits,
            record.complete,
        )


class FunctionInstantiation(BaseInstantiation, decl.Function):
    """A function template expanded with concrete arguments.

    Arguments are always explicit, the call in the shim names them.
    """

    def __init__(self, template: decl.FunctionTemplate, args: list[TemplateArg]):
        self._bind(template, args)
        function = template.function
        try:
            return_type = function.return_type.substitute(self.mapping)
            params = [p.substitute(self.mapping) for p in function.params]
        except TypeSpellingError as e:
            raise UnsupportedTypeError(
                f"cannot instantiate {self.get_instantiated_c_stmt()}: {e}"
            )
        decl.Function.__init__(
            self,
            self.get_instantiated_c_stmt(),
            return_type,
            params,
            function.is_noexcept,
        )

    @property
    def callable_name(self) -> str:
        return self.template.base_name


def instantiate_class_template(
    template: decl.ClassTemplate, args: list[TemplateArg]
) -> TemplateInstantiation:
    return TemplateInstantiation(template, args)


def instantiate_function_template(
    template: decl.FunctionTemplate, args: list[TemplateArg]
) -> FunctionInstantiation:
    return FunctionInstantiation(template, args)
