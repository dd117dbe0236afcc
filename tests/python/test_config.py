"""YAML configuration loading and the enumeration script."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from programinduction.synthesizer.enumerator import EnumerationConfig
from programinduction.utils import config
from scripts import enumerate_programs

_ROOT = Path(__file__).resolve().parents[2]


def test_load_config(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("enumeration:\n  window_width: 0.25\n", encoding="utf-8")
    assert config.load_config(path) == {"enumeration": {"window_width": 0.25}}


def test_empty_document_is_an_empty_mapping(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert config.load_config(path) == {}


def test_load_config_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        config.load_config(tmp_path / "missing.yaml")
    listing = tmp_path / "list.yaml"
    listing.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(config.ConfigError):
        config.load_config(listing)
    broken = tmp_path / "broken.yaml"
    broken.write_text("a: [1, 2\n", encoding="utf-8")
    with pytest.raises(config.ConfigError):
        config.load_config(broken)


def test_section() -> None:
    data = {"enumeration": {"max_depth": 3}, "other": 1}
    assert config.section(data, "enumeration") == {"max_depth": 3}
    assert config.section({"max_depth": 3}, "enumeration") == {"max_depth": 3}
    with pytest.raises(config.ConfigError):
        config.section({"enumeration": 5}, "enumeration")


def test_bundled_enumeration_defaults() -> None:
    loaded = EnumerationConfig.from_yaml(_ROOT / "configs" / "enumeration.yaml")
    assert loaded == EnumerationConfig()


def test_script_prints_cheapest_expressions(capsys: pytest.CaptureFixture[str]) -> None:
    language = _ROOT / "configs" / "languages" / "arithmetic.yaml"
    assert enumerate_programs.main(["int", "--language", str(language), "--limit", "3", "--json"]) == 0
    records = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [record["expression"] for record in records] == ["0", "1", "(#(λ (+ $0 1)) 0)"]
    assert all(record["type"] == "int" for record in records)


def test_script_rejects_bad_request(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit):
        enumerate_programs.main(["int ->", "--domain", "circuits"])
    assert "invalid request type" in capsys.readouterr().err
