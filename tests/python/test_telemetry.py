"""Logging, metrics, hooks, and exporters."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from programinduction.telemetry import exporters, hooks, logger, metrics


@pytest.fixture
def registry():
    registry = metrics.MetricsRegistry()
    yield registry
    registry.reset()


@pytest.fixture
def exporter_slot():
    previous = exporters.configure(None)
    yield
    exporters.configure(previous)


def test_get_logger_names_and_validation() -> None:
    log = logger.get_logger("programinduction.tests")
    assert isinstance(log, logging.Logger)
    assert log.name == "programinduction.tests"
    with pytest.raises(ValueError):
        logger.get_logger("")


def test_logging_config_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config = tmp_path / "logging.yaml"
    config.write_text(
        "version: 1\nloggers:\n  programinduction.custom:\n    level: ERROR\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(logger.CONFIG_ENV_VAR, str(config))
    assert logger.config_path() == config
    logger.configure(force=True)
    try:
        assert logging.getLogger("programinduction.custom").level == logging.ERROR
    finally:
        monkeypatch.delenv(logger.CONFIG_ENV_VAR)
        logger.configure(force=True)


def test_metrics_use_catalog_metadata(registry: metrics.MetricsRegistry, exporter_slot) -> None:
    sample = registry.emit("programinduction.language.inventions", 1, tags={"language": "strings"})
    assert sample.kind == "counter"
    assert sample.extra["unit"] == "count"
    registry.emit("programinduction.language.inventions", True)
    summary = registry.summaries()["programinduction.language.inventions"]
    assert summary["count"] == 2
    assert summary["total"] == 2.0


def test_metrics_reject_bad_values(registry: metrics.MetricsRegistry, exporter_slot) -> None:
    with pytest.raises(TypeError):
        registry.emit("custom.metric", "many")
    with pytest.raises(ValueError):
        registry.emit("", 1)
    assert registry.get_series("custom.metric") is None


def test_jsonl_exporter(tmp_path: Path, registry: metrics.MetricsRegistry, exporter_slot) -> None:
    path = tmp_path / "nested" / "metrics.jsonl"
    exporters.configure(exporters.JsonlExporter(path))
    registry.emit("programinduction.enum.window_yield", 3, tags={"window": "1"})
    registry.emit("programinduction.enum.window_yield", 0, tags={"window": "2"})
    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [record["value"] for record in records] == [3.0, 0.0]
    assert records[0]["tags"] == {"window": "1"}


def test_prometheus_exporter_renders_latest_per_label(
    registry: metrics.MetricsRegistry, exporter_slot
) -> None:
    prometheus = exporters.PrometheusExporter()
    exporters.configure(prometheus)
    registry.emit("programinduction.enum.window_yield", 1, tags={"window": "0"})
    registry.emit("programinduction.enum.window_yield", 5, tags={"window": "0"})
    registry.emit("programinduction.enum.window_yield", 2, tags={"window": "1"})
    lines = prometheus.render().splitlines()
    assert lines[0].startswith("# HELP programinduction_enum_window_yield ")
    assert lines[1] == "# TYPE programinduction_enum_window_yield gauge"
    assert lines[2].startswith('programinduction_enum_window_yield{window="0"} 5.0 ')
    assert lines[3].startswith('programinduction_enum_window_yield{window="1"} 2.0 ')


def test_hooks_dispatch_and_unregister() -> None:
    seen = []
    handle = hooks.register_hook("test.event", lambda event: seen.append(dict(event.payload)))
    hooks.dispatch("test.event", {"value": 1})
    handle.close()
    hooks.dispatch("test.event", {"value": 2})
    assert seen == [{"value": 1}]
    assert "test.event" not in hooks.registered_hooks()


def test_hook_payload_is_read_only() -> None:
    events = []
    with hooks.register_hook("test.readonly", events.append):
        hooks.dispatch("test.readonly", {"value": 1})
    with pytest.raises(TypeError):
        events[0].payload["value"] = 2  # type: ignore[index]


def test_register_hook_validation() -> None:
    with pytest.raises(ValueError):
        hooks.register_hook("", lambda event: None)
    with pytest.raises(TypeError):
        hooks.register_hook("test.invalid", "not callable")  # type: ignore[arg-type]
