# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from autoshim.synth.renderer import clear_base_renderer_cache


def reset_renderer():
    """Clear all renderer caches and exposed-symbol lists.

    Sometimes the synthesizer needs to run multiple times in the same python
    session (pytest). This function resets the renderer so that it runs in
    a clean state.
    """
    clear_base_renderer_cache()
