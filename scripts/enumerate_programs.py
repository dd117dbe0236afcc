#!/usr/bin/env python3
"""Print the cheapest expressions a language offers for a requested type."""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from itertools import islice
from pathlib import Path
from typing import Callable

from programinduction.domains import circuits, strings
from programinduction.dsl.language import Language
from programinduction.dsl.type_system import TypeSyntaxError, format_type, parse_type
from programinduction.synthesizer.enumerator import EnumerationConfig, enumerate_with_cost
from programinduction.telemetry import exporters

_DOMAINS: dict[str, Callable[[], Language]] = {
    "circuits": circuits.dsl,
    "strings": strings.dsl,
}
_DEFAULT_CONFIG = Path(__file__).resolve().parents[1] / "configs" / "enumeration.yaml"


def _load_language(args: argparse.Namespace) -> Language:
    if args.language:
        return Language.from_yaml(args.language)
    return _DOMAINS[args.domain]()


def _load_config(args: argparse.Namespace) -> EnumerationConfig:
    path = args.config or (_DEFAULT_CONFIG if _DEFAULT_CONFIG.exists() else None)
    config = EnumerationConfig.from_yaml(path) if path else EnumerationConfig()
    overrides = {
        key: value
        for key, value in (
            ("window_width", args.window_width),
            ("max_depth", args.max_depth),
            ("max_cost", args.max_cost),
        )
        if value is not None
    }
    return dataclasses.replace(config, **overrides)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Enumerate well-typed expressions by cost")
    parser.add_argument("request", help="Requested type, e.g. 'int' or 'str -> str'")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--domain", choices=sorted(_DOMAINS), default="strings")
    source.add_argument("--language", type=Path, help="YAML file describing a language")
    parser.add_argument("--config", type=Path, help="Enumeration configuration file")
    parser.add_argument("--limit", type=int, default=20, help="Number of expressions to print")
    parser.add_argument("--window-width", type=float)
    parser.add_argument("--max-depth", type=int)
    parser.add_argument("--max-cost", type=float)
    parser.add_argument("--metrics-out", type=Path, help="Append metric samples to this JSONL file")
    parser.add_argument("--json", action="store_true", help="Emit one JSON object per line")

    args = parser.parse_args(argv)
    if args.limit < 1:
        parser.error("--limit must be positive")
    try:
        request = parse_type(args.request)
    except TypeSyntaxError as exc:
        parser.error(f"invalid request type: {exc}")

    language = _load_language(args)
    config = _load_config(args)
    if args.metrics_out:
        exporters.configure(exporters.JsonlExporter(args.metrics_out))

    for cost, expr in islice(enumerate_with_cost(language, request, config), args.limit):
        text = language.display(expr)
        if args.json:
            record = {"cost": cost, "expression": text, "type": format_type(language.infer(expr))}
            sys.stdout.write(json.dumps(record, ensure_ascii=False) + "\n")
        else:
            sys.stdout.write(f"{cost:8.4f}  {text}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
