# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader: YAML file plus optional overrides in, frozen GenModelsConfig out.

Experiments are usually sweeps over one base file (more epochs, another
latent size, beta annealed to 0). Instead of copying the file per run, a
run passes dotted overrides:

    load_config("base.yaml", overrides={"train.n_epochs": 50})
    load_config("base.yaml", overrides=parse_overrides(["model.zdim=4"]))

Overrides are merged into the parsed YAML before validation, so an
overridden value is checked by the schema exactly like a value from the
file. Every failure is raised as a ConfigError subclass.
"""

import copy
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import yaml
from pydantic import ValidationError

from genmodels.config.exceptions import ConfigLoadError, ConfigValidationError
from genmodels.config.schema import GenModelsConfig


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """Parse a YAML mapping from `config_path`, raising ConfigLoadError on any failure."""
    if not config_path.is_file():
        reason = "not a file" if config_path.exists() else "not found"
        raise ConfigLoadError(f"Config file {reason}: {config_path}")

    try:
        parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )
    return parsed


def parse_overrides(items: Sequence[str]) -> dict[str, Any]:
    """
    Turn ``key=value`` strings into an override mapping.

    Values are parsed as YAML scalars, so ``train.n_epochs=5`` gives the int
    5, ``train.verbose=false`` the bool False and ``model.hdim=null`` None.

    Raises:
        ConfigLoadError: If an item has no ``=`` or an empty key.
    """
    overrides: dict[str, Any] = {}
    for item in items:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigLoadError(f"Override must look like 'section.field=value', got {item!r}")
        try:
            overrides[key] = yaml.safe_load(value)
        except yaml.YAMLError as err:
            raise ConfigLoadError(f"Invalid override value in {item!r}: {err}") from err
    return overrides


def apply_overrides(raw: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """
    Return a deep copy of `raw` with each dotted key set to its value.

    Missing intermediate sections are created, so an override can add a
    `train` section to a file that has none.

    Raises:
        ConfigValidationError: If a dotted key runs through a non-mapping value.
    """
    merged = copy.deepcopy(raw)
    for dotted_key, value in overrides.items():
        *parents, leaf = dotted_key.split(".")
        node = merged
        for part in parents:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                raise ConfigValidationError(
                    f"Cannot override '{dotted_key}': '{part}' is not a section"
                )
        node[leaf] = value
    return merged


def load_config(
    config_path: Path | str,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GenModelsConfig:
    """
    Load a YAML config, apply overrides and validate.

    Args:
        config_path: Path to a YAML config file.
        overrides: Optional dotted-key mapping, e.g. {"train.n_epochs": 5}.

    Returns:
        The frozen, validated GenModelsConfig.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations, including ones introduced
            by an override.
    """
    raw_data = _read_yaml_file(Path(config_path))
    if overrides:
        raw_data = apply_overrides(raw_data, overrides)

    try:
        return GenModelsConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Config validation failed for {config_path}:\n{err}"
        ) from err
