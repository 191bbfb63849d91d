# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from abc import ABC, abstractmethod

from autoshim.errors import ShimNameConflictError


def include_line(header: str) -> str:
    """``#include`` directive for a header given as a path or ``<name>``."""
    if header.startswith("<") or header.startswith('"'):
        return f"#include {header}"
    return f'#include "{header}"'


class ShimWriterBase(ABC):
    """Base class for shim function management.

    During synthesis, each shim function is generated per crossing point and
    handed to the writer. This class manages the registered shim functions
    and ensures each name is written once.

    Each shim writer has a ``preceding_text`` section that precedes the shim
    definitions in the source. This is where ``extra_native`` text goes.

    A shim writer should define the following methods:

    - `write_to_shim`: Add a shim definition and its prototype.
    - `write_to_header`: Add a declaration that only the header carries, such
      as a trampoline class.
    """

    def __init__(self, preceding_text=""):
        self.shim_written = {}
        self.header_written = {}
        self.preceding_text = preceding_text

    @abstractmethod
    def write_to_shim(self, content: str, id: str, prototype: str):
        pass

    @abstractmethod
    def write_to_header(self, content: str, id: str):
        pass

    def _check_conflict(self, written: dict, content: str, id: str) -> bool:
        """Return True if ``id`` is already written with ``content``."""
        if id not in written:
            return False
        if written[id] != content:
            raise ShimNameConflictError(id)
        return True


class MemoryShimWriter(ShimWriterBase):
    """Collect shim functions in memory and assemble the header/source pair.

    Nothing touches the file system; the caller writes ``header_text`` and
    ``source_text`` once synthesis succeeded.
    """

    def __init__(self, header_name: str, includes=(), preceding_text=""):
        super().__init__(preceding_text)
        self.header_name = header_name
        self.includes = list(includes)

        self.prototypes = []
        self.shim_funcs = []
        self.header_decls = []

    def write_to_shim(self, content: str, id: str, prototype: str):
        """Write a shim definition keyed by ``id``.

        Writing the same body twice is a no-op; a different body under a
        name already written raises ``ShimNameConflictError``.
        """
        if self._check_conflict(self.shim_written, content, id):
            return
        self.shim_written[id] = content
        self.prototypes.append(prototype)
        self.shim_funcs.append(content)

    def write_to_header(self, content: str, id: str):
        if self._check_conflict(self.header_written, content, id):
            return
        self.header_written[id] = content
        self.header_decls.append(content)

    @property
    def header_text(self) -> str:
        includes = [include_line(h) for h in self.includes]
        includes += ["#include <new>", "#include <utility>"]
        sections = [
            "// Automatically generated by autoshim bridge generator\n#pragma once",
            "\n".join(includes),
        ]
        sections.extend(d.strip("\n") for d in self.header_decls)
        if self.prototypes:
            sections.append("\n".join(self.prototypes))
        return "\n\n".join(sections) + "\n"

    @property
    def source_text(self) -> str:
        sections = [
            "// Automatically generated by autoshim bridge generator",
            include_line(self.header_name),
        ]
        if self.preceding_text:
            sections.append(self.preceding_text.strip("\n"))
        sections.extend(f.strip("\n") for f in self.shim_funcs)
        return "\n\n".join(sections) + "\n"


__all__ = ["ShimWriterBase", "MemoryShimWriter", "include_line"]
