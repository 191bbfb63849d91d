# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import os
import tempfile
from logging import FileHandler, getLogger

from autoshim.decl import EnumDecl
from autoshim.errors import UnsupportedTypeError
from autoshim.synth.renderer import BaseRenderer, Fragment
from autoshim.types import INTEGER_TYPES, TypeKind

file_logger = getLogger(f"{__name__}")
logger_path = os.path.join(tempfile.gettempdir(), "autoshim_enum.log")
file_logger.debug(f"Enum debug outputs are written to {logger_path}")
file_logger.addHandler(FileHandler(logger_path))


class EnumRenderer(BaseRenderer):
    """Render a single C++ enum type.

    A C++ enum is trivially mapped into a bridge enum over its underlying
    integer type. Enumerators keep their C++ names and values.
    """

    enum_template = """enum {bridge_name} = {cxx_name} : {underlying} {{
{enumerators}
}}"""
    enumerator_template = "    {enumerator} = {value}"

    def __init__(self, ctx, decl: EnumDecl):
        super().__init__(ctx, decl)
        self._underlying = decl.underlying_type

    def render(self) -> Fragment:
        if (
            self._underlying.kind != TypeKind.primitive
            or self._underlying.name not in INTEGER_TYPES
        ):
            raise UnsupportedTypeError(
                f"enum {self._decl.name} has non-integer underlying type "
                f"{self._underlying.spelling}"
            )

        enumerators = []
        next_value = 0
        for enumerator, value in self._decl.enumerators:
            # Omitted values continue from the previous enumerator.
            if value is None:
                value = next_value
            enumerators.append(
                self.enumerator_template.format(enumerator=enumerator, value=value)
            )
            next_value = value + 1 if isinstance(value, int) else next_value

        fragment = Fragment(self._decl.key)
        if enumerators:
            fragment.bridge = self.enum_template.format(
                bridge_name=self._decl.bridge_name,
                cxx_name=self._decl.name,
                underlying=self._underlying.name,
                enumerators="\n".join(enumerators),
            )
        else:
            fragment.bridge = (
                f"enum {self._decl.bridge_name} = {self._decl.name} "
                f": {self._underlying.name}"
            )
        fragment.symbols["enum"] = [self._decl.bridge_name]

        file_logger.debug(fragment.bridge)
        return fragment
