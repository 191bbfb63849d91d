# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import os
import shutil
import warnings

import pytest

from jinja2 import Environment, FileSystemLoader

from click.testing import CliRunner

from autoshim.tools.bridge_generator import bridge_generator


@pytest.fixture
def run_in_isolated_folder(tmpdir):
    # Helper to simulate a production environment where configurations are used
    # Tmp Folder structure:
    # - /
    # - config/
    #   - <config_name>.yml
    # - output/
    #   - <data_name>.yml
    #   - <output_name>.bridge
    #   - <output_name>_shim.h
    #   - <output_name>_shim.cc
    #
    # Test folder structure:
    # - .
    # - config
    #   - <template_a>.yml.j2
    # - data
    #   - <data_a>.yml
    # - test_a.py
    def _run(
        cfg_template,
        data,
        params=None,
        output_name=None,
        clang_format=False,
        log_generates=False,
        expected_exit_code=0,
    ):
        params = dict(params or {})
        root = tmpdir
        config_folder = root.mkdir("config")
        output_folder = root.mkdir("output")
        here = os.path.dirname(os.path.abspath(__file__))

        src_data = os.path.join(here, "data", data)
        target_data = os.path.join(output_folder, data)
        config_name = cfg_template.replace(".j2", "")
        config_path = os.path.join(config_folder, config_name)
        shutil.copy(src_data, target_data)

        params["data"] = target_data
        if output_name is not None:
            params["output_name"] = output_name

        env = Environment(loader=FileSystemLoader(here))
        template = env.get_template(os.path.join("config/", cfg_template))
        config = template.render(params)

        with open(config_path, "w") as f:
            f.write(config)

        runner = CliRunner(catch_exceptions=False)

        args = [
            "--cfg-path",
            config_path,
            "--output-dir",
            str(output_folder),
            "-fmt",
            "true" if clang_format else "false",
        ]
        if log_generates:
            args.append("-v")

        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            result = runner.invoke(bridge_generator, args)

        assert result.exit_code == expected_exit_code, result.output

        base = output_name or "bindings"
        paths = {
            "bridge": os.path.join(output_folder, f"{base}.bridge"),
            "shim_header": os.path.join(output_folder, f"{base}_shim.h"),
            "shim_source": os.path.join(output_folder, f"{base}_shim.cc"),
            "diagnostics": os.path.join(output_folder, f"{base}_diagnostics.yml"),
        }
        outputs = {}
        for artifact, path in paths.items():
            if os.path.exists(path):
                with open(path) as f:
                    outputs[artifact] = f.read()

        return {
            "result": result,
            "output_folder": str(output_folder),
            "paths": paths,
            "outputs": outputs,
            "warnings": w,
        }

    return _run
