"""In-memory metrics registry for search and registry statistics."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from . import exporters


@dataclass(frozen=True)
class MetricSample:
    name: str
    value: float
    timestamp: float
    kind: str
    tags: Mapping[str, str]
    extra: Mapping[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "timestamp": self.timestamp,
            "kind": self.kind,
        }
        if self.tags:
            payload["tags"] = dict(self.tags)
        if self.extra:
            payload["extra"] = dict(self.extra)
        return payload


@dataclass
class MetricSeries:
    """All samples recorded under one metric name."""

    name: str
    kind: str
    description: str | None = None
    unit: str | None = None
    samples: list[MetricSample] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(sample.value for sample in self.samples)

    def summary(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {"name": self.name, "kind": self.kind, "count": len(self.samples)}
        if self.samples:
            values = [sample.value for sample in self.samples]
            summary.update(
                total=sum(values),
                min=min(values),
                max=max(values),
                last=self.samples[-1].value,
            )
        if self.description:
            summary["description"] = self.description
        if self.unit:
            summary["unit"] = self.unit
        return summary


class MetricsRegistry:
    """Thread-safe store of metric series, forwarding each sample to the exporter."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._series: Dict[str, MetricSeries] = {}

    def emit(
        self,
        name: str,
        value: Any,
        *,
        kind: str | None = None,
        tags: Mapping[str, str] | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> MetricSample:
        if not isinstance(name, str) or not name:
            raise ValueError("metric name must be a non-empty string")
        catalog = _METRIC_CATALOG.get(name, {})
        metadata = dict(extra or {})
        for key in ("description", "unit"):
            if catalog.get(key) and key not in metadata:
                metadata[key] = catalog[key]
        sample = MetricSample(
            name=name,
            value=_coerce_value(value),
            timestamp=time.time(),
            kind=kind or catalog.get("kind", "gauge"),
            tags={str(key): str(val) for key, val in (tags or {}).items()},
            extra=metadata,
        )
        with self._lock:
            series = self._series.get(name)
            if series is None:
                series = MetricSeries(
                    name=name,
                    kind=sample.kind,
                    description=catalog.get("description"),
                    unit=catalog.get("unit"),
                )
                self._series[name] = series
            series.samples.append(sample)
        exporters.export(sample)
        return sample

    def get_series(self, name: str) -> MetricSeries | None:
        """A detached copy of the series for ``name``."""

        with self._lock:
            series = self._series.get(name)
            if series is None:
                return None
            return MetricSeries(
                name=series.name,
                kind=series.kind,
                description=series.description,
                unit=series.unit,
                samples=list(series.samples),
            )

    def summaries(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {name: series.summary() for name, series in self._series.items()}

    def reset(self) -> None:
        with self._lock:
            self._series.clear()


_METRIC_CATALOG: Dict[str, Dict[str, Any]] = {
    "programinduction.enum.window_yield": {
        "kind": "gauge",
        "description": "Expressions produced by one completed enumeration window",
        "unit": "count",
    },
    "programinduction.language.inventions": {
        "kind": "counter",
        "description": "Inventions appended to a language registry",
        "unit": "count",
    },
    "programinduction.task.evaluation_errors": {
        "kind": "counter",
        "description": "Examples whose evaluation raised instead of producing a value",
        "unit": "count",
    },
}


_REGISTRY = MetricsRegistry()


def emit(
    metric: str,
    value: Any,
    *,
    kind: str | None = None,
    tags: Mapping[str, str] | None = None,
    extra: Mapping[str, Any] | None = None,
) -> MetricSample:
    """Record ``value`` for ``metric`` in the process-wide registry."""

    return _REGISTRY.emit(metric, value, kind=kind, tags=tags, extra=extra)


def get_registry() -> MetricsRegistry:
    return _REGISTRY


def _coerce_value(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    raise TypeError(f"metric value {value!r} must be numeric")


__all__ = [
    "MetricSample",
    "MetricSeries",
    "MetricsRegistry",
    "emit",
    "get_registry",
]
