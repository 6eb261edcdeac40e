"""Loading of kernel configuration files.

TOML is the native format of both files; YAML and JSON are accepted as
well. The format is chosen by file extension.
"""

import json
import tomllib
from pathlib import Path
from typing import Any

import yaml

from kernel_imagegen.kernels.schema import ArtifactConfig, KernelConfig

ARTIFACT_CONFIG_FILENAME = ".out-of-tree.toml"
KERNEL_CONFIG_FILENAME = "kernels.toml"


def load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping, got {type(data).__name__}")
    return data


def load_json(path: Path) -> dict[str, Any]:
    """Load a JSON file and return its contents as a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the document is not an object.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def load_data(path: Path) -> dict[str, Any]:
    """Load a config file as a dict, choosing the parser by extension.

    Raises:
        ValueError: If the extension is not supported.
    """
    suffix = path.suffix.lower()
    if suffix == ".toml":
        return load_toml(path)
    if suffix in (".yaml", ".yml"):
        return load_yaml(path)
    if suffix == ".json":
        return load_json(path)
    raise ValueError(
        f"Unsupported file extension: {suffix}. Use .toml, .yaml, .yml or .json"
    )


def load_artifact_config(path: Path) -> ArtifactConfig:
    """Load and validate a project artifact config.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If data does not match the schema.
        ValueError: If the extension is not supported.
    """
    return ArtifactConfig.model_validate(load_data(path))


def load_kernel_config(path: Path) -> KernelConfig:
    """Load and validate a kernel inventory.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If data does not match the schema.
        ValueError: If the extension is not supported.
    """
    return KernelConfig.model_validate(load_data(path))


__all__ = [
    "ARTIFACT_CONFIG_FILENAME",
    "KERNEL_CONFIG_FILENAME",
    "load_artifact_config",
    "load_data",
    "load_json",
    "load_kernel_config",
    "load_toml",
    "load_yaml",
]
