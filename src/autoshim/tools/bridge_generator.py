# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import click
import os
import shutil
import subprocess
import warnings

import yaml

from autoshim.directives import Directives
from autoshim.errors import ConfigurationError
from autoshim.frontend import load_frontend_input
from autoshim.pipeline import generate_bindings
from autoshim.synth import reset_renderer
from autoshim.synth.synthesizer import SynthesisResult


class Config:
    """Configuration File for Bridge Generation.

    Attributes
    ----------
    frontend_input : str
        Path to the entity dump written by the header-parsing frontend.
        Relative paths are resolved against the directory of the config
        file. Required.
    directives : Directives
        What to generate and what to block, either a mapping of directive
        to names or a list of single-key mappings. Required.
    output_name : str
        Base name of the generated files. Defaults to ``bindings``, which
        writes ``bindings.bridge``, ``bindings_shim.h`` and
        ``bindings_shim.cc``.
    shim_suffix : str
        Suffix appended to a bridge name to name its shim. Defaults to
        ``_autoshim``.
    max_instantiation_depth : int
        Template instantiations nested deeper than this are excluded.
        Defaults to 8.
    write_diagnostics : bool
        Also write ``<output_name>_diagnostics.yml``. Defaults to True.
    """

    frontend_input: str
    directives: Directives
    output_name: str
    shim_suffix: str
    max_instantiation_depth: int
    write_diagnostics: bool

    def __init__(self, config_dict: dict, base_dir: str | None = None):
        """Initialize Config from a dictionary.

        Parameters
        ----------
        config_dict : dict
            Dictionary containing configuration values.
        base_dir : str, optional
            Directory relative paths are resolved against.
        """
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a mapping.")

        try:
            frontend_input = config_dict["Frontend Input"]
        except KeyError:
            raise ConfigurationError("Configuration is missing `Frontend Input`.")
        if not isinstance(frontend_input, (str, os.PathLike)):
            raise ConfigurationError(
                f"`Frontend Input` must be a path, got {type(frontend_input).__name__}."
            )
        if base_dir is not None and not os.path.isabs(frontend_input):
            frontend_input = os.path.join(base_dir, frontend_input)
        self.frontend_input = frontend_input

        if "Directives" not in config_dict:
            raise ConfigurationError("Configuration is missing `Directives`.")
        self.directives = Directives.from_config(config_dict["Directives"])

        self.output_name = config_dict.get("Output Name", None) or "bindings"
        self.shim_suffix = config_dict.get("Shim Suffix", None) or "_autoshim"
        self.max_instantiation_depth = config_dict.get("Max Instantiation Depth", 8)
        self.write_diagnostics = config_dict.get("Write Diagnostics", True)

        if (
            not isinstance(self.max_instantiation_depth, int)
            or self.max_instantiation_depth < 1
        ):
            raise ConfigurationError(
                "Max Instantiation Depth must be a positive integer, "
                f"got {self.max_instantiation_depth!r}"
            )
        if os.sep in self.output_name or "/" in self.output_name:
            raise ConfigurationError(
                f"Output Name must be a file base name, got {self.output_name!r}"
            )

        self._verify_exists()

    @classmethod
    def from_yaml_path(cls, cfg_path: str) -> "Config":
        """Create a Config instance from a YAML file path.

        Parameters
        ----------
        cfg_path : str
            Path to the YAML configuration file.

        Returns
        -------
        Config
            A new Config instance.
        """
        with open(cfg_path) as f:
            try:
                config_dict = yaml.load(f, yaml.Loader)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Cannot read config {cfg_path}: {e}")
        return cls(config_dict, os.path.dirname(os.path.abspath(cfg_path)))

    @classmethod
    def from_params(
        cls,
        frontend_input: str,
        directives: dict | list,
        output_name: str | None = None,
        shim_suffix: str | None = None,
        max_instantiation_depth: int = 8,
        write_diagnostics: bool = True,
    ) -> "Config":
        """Create a Config instance from individual parameters instead of a config file."""
        config_dict = {
            "Frontend Input": frontend_input,
            "Directives": directives,
            "Output Name": output_name,
            "Shim Suffix": shim_suffix,
            "Max Instantiation Depth": max_instantiation_depth,
            "Write Diagnostics": write_diagnostics,
        }
        return cls(config_dict)

    def _verify_exists(self):
        if not os.path.exists(self.frontend_input):
            raise ConfigurationError(
                f"Frontend input does not exist: {self.frontend_input}"
            )


def log_files_to_generate(config: Config):
    """Console log what the bindings are requested for."""
    directives = config.directives

    click.echo("-" * 80)
    click.echo(
        f"Generating bindings for {len(directives.allowlist)} entities, "
        f"{len(directives.generate_ns)} namespaces, blocking {len(directives.block)}."
    )

    click.echo("Generate: ")
    click.echo("\n".join(f"  - {name}" for name in directives.allowlist))
    click.echo("Namespaces: ")
    click.echo("\n".join(f"  - {name}" for name in directives.generate_ns))
    click.echo("Block: ")
    click.echo("\n".join(f"  - {name}" for name in directives.block))
    click.echo("Subclass: ")
    click.echo("\n".join(f"  - {name}" for name in directives.subclass))


def log_diagnostics(result: SynthesisResult):
    """Console log every exclusion of the run."""
    if not len(result.diagnostics):
        return
    click.echo(f"{len(result.diagnostics)} item(s) excluded:")
    for d in result.diagnostics:
        click.echo(f"  - {d.qualified_name} [{d.reason_kind.value}]: {d.human_message}")


def output_paths(config: Config, output_dir: str) -> dict[str, str]:
    name = config.output_name
    paths = {
        "bridge": os.path.join(output_dir, f"{name}.bridge"),
        "shim_header": os.path.join(output_dir, f"{name}_shim.h"),
        "shim_source": os.path.join(output_dir, f"{name}_shim.cc"),
    }
    if config.write_diagnostics:
        paths["diagnostics"] = os.path.join(output_dir, f"{name}_diagnostics.yml")
    return paths


def _bridge_generator(
    config: Config,
    output_dir: str,
    log_generates: bool = False,
) -> dict[str, str]:
    """
    Generate the bridge declaration module and the shim pair for a frontend dump.

    Parameters:
        config (Config): Frontend input, directives and naming options.
        output_dir (str): Directory the generated files are written to.
        log_generates (bool): If True, print the requested entities before generating.

    Returns:
        dict[str, str]: Path of every written file, keyed by artifact.

    Nothing is written when a configuration error aborts the run.
    """
    if log_generates:
        log_files_to_generate(config)

    frontend_input = load_frontend_input(config.frontend_input)
    result = generate_bindings(
        frontend_input,
        config.directives,
        output_name=config.output_name,
        shim_suffix=config.shim_suffix,
        max_instantiation_depth=config.max_instantiation_depth,
    )

    if log_generates:
        log_diagnostics(result)

    paths = output_paths(config, output_dir)
    contents = {
        "bridge": result.bridge,
        "shim_header": result.shim_header,
        "shim_source": result.shim_source,
        "diagnostics": result.diagnostics.to_yaml(),
    }
    for artifact, path in paths.items():
        with open(path, "w") as file:
            file.write(contents[artifact])

    click.echo(
        f"Bindings for {config.frontend_input} generated in {paths['bridge']}"
    )
    return paths


def clang_format_files(paths: list[str]):
    for path in paths:
        if not os.path.exists(path):
            return

    subprocess.run(["clang-format", "-i", *paths], check=True)

    click.echo("Formatted.")


@click.command()
@click.option(
    "--cfg-path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    required=True,
)
@click.option(
    "--output-dir",
    type=click.Path(
        exists=True,
        file_okay=False,
        writable=True,
    ),
    required=True,
)
@click.option(
    "-fmt",
    "--run-clang-format",
    type=bool,
    default=False,
)
@click.option(
    "-v",
    "--log-generates",
    is_flag=True,
    default=False,
)
def bridge_generator(
    cfg_path,
    output_dir,
    run_clang_format,
    log_generates,
):
    """
    A CLI tool to generate FFI bridge declarations and C++ shims.

    CFG_PATH: Path to the configuration file in YAML format.
    OUTPUT_DIR: Path to the output directory where the generated files will be saved.
    RUN_CLANG_FORMAT: Run clang-format on the generated shim files.
    LOG_GENERATES: Print the requested entities and the exclusions of the run.
    """
    reset_renderer()

    try:
        cfg = Config.from_yaml_path(cfg_path)
        paths = _bridge_generator(cfg, output_dir, log_generates=log_generates)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    if run_clang_format:
        if shutil.which("clang-format") is None:
            warnings.warn("clang-format is not on the system. Formatting skipped.")
        else:
            clang_format_files([paths["shim_header"], paths["shim_source"]])
