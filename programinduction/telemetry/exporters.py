"""Sinks that receive every emitted metric sample.

No exporter is active by default; :func:`configure` installs one (for example
from ``scripts/enumerate_programs.py --metrics-out``).
"""

from __future__ import annotations

import json
from pathlib import Path
from threading import RLock
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from .metrics import MetricSample


class Exporter(Protocol):
    def export(self, sample: "MetricSample") -> None:  # pragma: no cover - interface definition
        ...


class JsonlExporter:
    """Append one JSON object per sample to ``path``."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = RLock()

    @property
    def path(self) -> Path:
        return self._path

    def export(self, sample: "MetricSample") -> None:
        record = sample.to_dict()
        with self._lock, self._path.open("a", encoding="utf-8") as handle:
            json.dump(record, handle, ensure_ascii=False, sort_keys=True)
            handle.write("\n")


class PrometheusExporter:
    """Keeps the latest sample per (name, labels) and renders the text format."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._latest: dict[tuple[str, str], "MetricSample"] = {}

    def export(self, sample: "MetricSample") -> None:
        with self._lock:
            self._latest[(sample.name, _render_labels(sample))] = sample

    def render(self) -> str:
        with self._lock:
            lines: list[str] = []
            described: set[str] = set()
            for name, labels in sorted(self._latest):
                sample = self._latest[(name, labels)]
                metric = name.replace(".", "_")
                if metric not in described:
                    described.add(metric)
                    if sample.extra.get("description"):
                        lines.append(f"# HELP {metric} {sample.extra['description']}")
                    lines.append(f"# TYPE {metric} {sample.kind}")
                lines.append(f"{metric}{labels} {sample.value} {int(sample.timestamp * 1000)}")
            return "\n".join(lines) + ("\n" if lines else "")


_EXPORTER: Optional[Exporter] = None


def configure(exporter: Optional[Exporter]) -> Optional[Exporter]:
    """Install ``exporter`` (``None`` disables exporting); returns the previous one."""

    global _EXPORTER
    previous = _EXPORTER
    _EXPORTER = exporter
    return previous


def export(sample: "MetricSample") -> None:
    if _EXPORTER is None:
        return
    _EXPORTER.export(sample)


def _render_labels(sample: "MetricSample") -> str:
    if not sample.tags:
        return ""
    pairs = ",".join(f"{key}={_quote_label(value)}" for key, value in sorted(sample.tags.items()))
    return f"{{{pairs}}}"


def _quote_label(value: object) -> str:
    text = str(value)
    escaped = text.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')
    return f'"{escaped}"'


__all__ = ["Exporter", "JsonlExporter", "PrometheusExporter", "configure", "export"]
