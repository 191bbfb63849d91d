# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import pytest

import os

import yaml

from autoshim.synth import reset_renderer
from autoshim.tools.bridge_generator import _bridge_generator, Config


@pytest.fixture(scope="session")
def data_folder():
    current_directory = os.path.dirname(os.path.abspath(__file__))

    return lambda *file: os.path.join(current_directory, "data/", *file)


@pytest.fixture(scope="function")
def make_binding(tmpdir, data_folder):
    def _make_binding(data_name: str, directives: dict | list, **kwargs):
        reset_renderer()

        cfg = Config.from_params(
            frontend_input=data_folder(data_name),
            directives=directives,
            output_name=data_name.split(".")[0],
            **kwargs,
        )
        paths = _bridge_generator(cfg, str(tmpdir))

        outputs = {}
        for artifact, path in paths.items():
            with open(path) as f:
                outputs[artifact] = f.read()

        if "diagnostics" in outputs:
            outputs["report"] = yaml.safe_load(outputs["diagnostics"])
        outputs["paths"] = paths
        return outputs

    return _make_binding
