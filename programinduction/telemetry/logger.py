"""Logging setup for the ``programinduction`` package."""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from threading import RLock
from typing import Any, Mapping

import yaml

_CONFIG_LOCK = RLock()
_CONFIGURED = False

# Overrides the bundled ``configs/logging.yaml`` when set.
CONFIG_ENV_VAR = "PROGRAMINDUCTION_LOGGING_CONFIG"

_DICT_CONFIG_KEYS = (
    "version",
    "disable_existing_loggers",
    "formatters",
    "filters",
    "handlers",
    "root",
    "loggers",
)

_DEFAULT_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "standard",
        }
    },
    "root": {
        "level": "WARNING",
        "handlers": ["console"],
    },
    "loggers": {
        "programinduction": {
            "level": "INFO",
            "propagate": True,
        }
    },
}


def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return Path(__file__).resolve().parents[2] / "configs" / "logging.yaml"


def _load_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return dict(_DEFAULT_CONFIG)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:  # pragma: no cover - guard rails for broken configs
        logging.basicConfig(level=logging.INFO)
        logging.getLogger("programinduction.telemetry").warning(
            "failed to parse %s: %s", path.name, exc
        )
        return dict(_DEFAULT_CONFIG)
    if not isinstance(data, Mapping):
        return dict(_DEFAULT_CONFIG)
    merged = dict(_DEFAULT_CONFIG)
    merged.update({key: value for key, value in data.items() if key in _DICT_CONFIG_KEYS})
    return merged


def configure(*, force: bool = False) -> None:
    """Apply the logging configuration once per process (or again with ``force``)."""

    global _CONFIGURED
    with _CONFIG_LOCK:
        if _CONFIGURED and not force:
            return
        logging.config.dictConfig(_load_config(config_path()))
        _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return the named logger after making sure logging is configured."""

    if not isinstance(name, str) or not name:
        raise ValueError("logger name must be a non-empty string")
    configure()
    return logging.getLogger(name)


__all__ = ["CONFIG_ENV_VAR", "config_path", "configure", "get_logger"]
