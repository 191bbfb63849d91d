# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import importlib.metadata

__version__ = importlib.metadata.version("autoshim")

from autoshim.directives import Directives  # noqa: E402
from autoshim.frontend import FrontendInput, load_frontend_input  # noqa: E402
from autoshim.pipeline import generate_bindings  # noqa: E402
from autoshim.shim_writer import MemoryShimWriter  # noqa: E402

__all__ = [
    "__version__",
    "Directives",
    "FrontendInput",
    "load_frontend_input",
    "generate_bindings",
    "MemoryShimWriter",
]
