"""YAML configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

__all__ = ["ConfigError", "load_config", "section"]


class ConfigError(ValueError):
    """A configuration file is missing, unreadable, or has the wrong shape."""


def load_config(path: str | Path) -> dict[str, Any]:
    """Parse the YAML mapping stored at ``path``.

    An empty document yields ``{}``; any other non-mapping root is rejected.
    """

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"configuration file not found: {config_path}")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"failed to parse {config_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"configuration root of {config_path} must be a mapping")
    return data


def section(data: Mapping[str, Any], name: str, default: Optional[Mapping[str, Any]] = None) -> Mapping[str, Any]:
    """Return ``data[name]`` when present, ``default`` (or ``data`` itself) otherwise."""

    value = data.get(name)
    if value is None:
        return data if default is None else default
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{name}' section must be a mapping")
    return value
