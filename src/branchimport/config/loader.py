"""
Configuration loading utilities.

Config files are YAML with ``${VAR}`` / ``${VAR:default}`` environment
interpolation. A sibling ``base.yaml`` (or an explicit base file) is
merged underneath the main file. Missing sections and keys that
interpolate to nothing fall back to the model defaults, so a config file
may be as small as::

    ingestion:
      default_country_code: GB
"""

import os
import re
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel

from branchimport.config.settings import AppConfig, IngestionConfig, LoggingConfig

_ENV_VAR_RE = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")

BASE_CONFIG_NAME = "base.yaml"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _expand_env(text: str) -> str:
    """Substitute ``${VAR}`` and ``${VAR:default}`` from the environment."""

    def lookup(match: re.Match[str]) -> str:
        fallback = match.group(2)
        return os.environ.get(match.group(1), "" if fallback is None else fallback)

    return _ENV_VAR_RE.sub(lookup, text)


def _expand_tree(node: Any) -> Any:
    if isinstance(node, str):
        return _expand_env(node)
    if isinstance(node, dict):
        return {key: _expand_tree(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_expand_tree(item) for item in node]
    return node


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay ``override`` on ``base``; mappings merge, the rest replaces."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _section(data: dict[str, Any], name: str, model: type[ModelT]) -> ModelT:
    """Build one config section, ignoring keys whose value came out empty."""
    raw = data.get(name) or {}
    if not isinstance(raw, dict):
        msg = f"Config section '{name}' must be a mapping"
        raise ValueError(msg)
    return model(**{key: value for key, value in raw.items() if value not in ("", None)})


def load_yaml(path: Path) -> dict[str, Any]:
    """
    Read a YAML config file with environment interpolation applied.

    Raises:
        ValueError: If the document root is not a mapping.
    """
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config root must be a mapping: {path}"
        raise ValueError(msg)
    return _expand_tree(data)


def load_config(
    config_path: Path | None = None,
    base_path: Path | None = None,
) -> AppConfig:
    """
    Load application configuration from YAML file(s).

    Args:
        config_path: Main configuration file. ``None`` yields the defaults.
        base_path: Base configuration to inherit from. When omitted, a
            ``base.yaml`` next to ``config_path`` is used if present.

    Returns:
        Fully validated AppConfig instance.
    """
    if config_path is None:
        return AppConfig()

    if base_path is None:
        sibling = config_path.parent / BASE_CONFIG_NAME
        if sibling.exists() and sibling.resolve() != config_path.resolve():
            base_path = sibling

    data = load_yaml(config_path)
    if base_path is not None:
        data = _merge(load_yaml(base_path), data)

    return AppConfig(
        ingestion=_section(data, "ingestion", IngestionConfig),
        logging=_section(data, "logging", LoggingConfig),
    )
