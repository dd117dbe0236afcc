"""Logging, metrics and hook helpers shared by the program-induction engine."""

from . import exporters, hooks, logger, metrics

__all__ = [
    "exporters",
    "hooks",
    "logger",
    "metrics",
]
