"""Configuration loading and validation for evaluation runs.

Configurations are YAML or JSON mappings. Relative paths are resolved against
the directory of the configuration file so runs behave consistently across
machines, and a small set of command line overrides can be applied on top.
"""

from __future__ import annotations

import json
import os
from typing import Any

import yaml

from .errors import ConfigurationError

REQUIRED_KEYS = [
    "output_dir",
    "data.dir",
    "data.initial_edges_csv",
    "data.validation_edges_csv",
    "evaluation.algorithms",
    "evaluation.metric",
]

DEFAULTS: dict[str, Any] = {
    "log_level": "INFO",
    "data": {"nodes_csv": None, "undirected": True},
    "evaluation": {"copy_edges": False},
    "plots": {"dpi": 120},
}


def load_configuration(config_path: str) -> tuple[dict[str, Any], str]:
    """Load a configuration mapping from a YAML or JSON file.

    The raw configuration text is returned as well so it can be stored as a
    run artefact without losing comments or formatting from the input file.

    Raises:
        ConfigurationError: If the file type is unknown or the file does not
            parse to a mapping.
    """

    with open(config_path, "r", encoding="utf-8") as config_file:
        configuration_text = config_file.read()

    try:
        if config_path.endswith((".yaml", ".yml")):
            configuration = yaml.safe_load(configuration_text)
        elif config_path.endswith(".json"):
            configuration = json.loads(configuration_text)
        else:
            raise ConfigurationError(
                "Config file must end with .yaml, .yml, or .json."
            )
    except (yaml.YAMLError, json.JSONDecodeError) as exception:
        raise ConfigurationError(f"Cannot parse {config_path}: {exception}") from None

    if not isinstance(configuration, dict):
        raise ConfigurationError("Config file must contain a mapping at the top level.")

    return configuration, configuration_text


def get_required_value(configuration: dict[str, Any], dotted_key: str) -> Any:
    """Retrieve a nested configuration value using dotted key notation.

    A dotted key such as ``data.dir`` is interpreted as nested dictionaries.

    Raises:
        ConfigurationError: If any part of the path is missing.
    """

    value: Any = configuration
    for key_part in dotted_key.split("."):
        if not isinstance(value, dict) or key_part not in value:
            raise ConfigurationError(f"Config is missing required field: {dotted_key}")
        value = value[key_part]
    return value


def validate_configuration(configuration: dict[str, Any]) -> None:
    """Check required fields and the shape of the algorithm list."""

    for required_key in REQUIRED_KEYS:
        get_required_value(configuration, required_key)
    algorithms = configuration["evaluation"]["algorithms"]
    if isinstance(algorithms, str):
        configuration["evaluation"]["algorithms"] = [algorithms]
    elif not isinstance(algorithms, list) or not algorithms:
        raise ConfigurationError("evaluation.algorithms must be a non-empty list")


def apply_defaults(configuration: dict[str, Any]) -> dict[str, Any]:
    """Fill in optional fields that are absent from the configuration."""

    for key, default in DEFAULTS.items():
        if isinstance(default, dict):
            section = configuration.setdefault(key, {})
            for sub_key, sub_default in default.items():
                section.setdefault(sub_key, sub_default)
        else:
            configuration.setdefault(key, default)
    return configuration


def resolve_path_relative_to_directory(base_directory: str, path_value: str) -> str:
    """Resolve a path value relative to a base directory."""

    if os.path.isabs(path_value):
        return path_value
    return os.path.normpath(os.path.join(base_directory, path_value))


def prepare_configuration(
    configuration: dict[str, Any],
    configuration_text: str,
    config_path: str,
    output_directory_override: str | None = None,
    algorithm_overrides: list[str] | None = None,
    metric_override: str | None = None,
    log_level_override: str | None = None,
) -> dict[str, Any]:
    """Validate, apply defaults and overrides, and resolve relative paths."""

    validate_configuration(configuration)
    apply_defaults(configuration)
    # Store the original config text so it can be persisted as-is.
    configuration["_config_text"] = configuration_text

    if output_directory_override is not None:
        configuration["output_dir"] = os.path.abspath(output_directory_override)
    if algorithm_overrides:
        configuration["evaluation"]["algorithms"] = list(algorithm_overrides)
    if metric_override is not None:
        configuration["evaluation"]["metric"] = str(metric_override)
    if log_level_override is not None:
        configuration["log_level"] = str(log_level_override)

    configuration_directory = os.path.dirname(os.path.abspath(config_path))
    configuration["output_dir"] = resolve_path_relative_to_directory(
        configuration_directory, str(configuration["output_dir"])
    )
    configuration["data"]["dir"] = resolve_path_relative_to_directory(
        configuration_directory, str(configuration["data"]["dir"])
    )
    return configuration
