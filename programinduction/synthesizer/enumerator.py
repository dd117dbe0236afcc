"""Budgeted, lazy enumeration of well-typed expressions by increasing cost.

Cost is the negative log-probability of the production choices that build an
expression.  The search visits half-open cost windows ``[k*W, (k+1)*W)`` in
order and, inside each window, runs a depth-first generator search:

* arrow requests are curried first, one abstraction per leading argument,
  with the environment extended before any candidate is considered;
* at a base request, each admissible candidate (see :mod:`.candidates`) that
  fits under the upper bound becomes the head of an application whose
  arguments are filled left to right, each from its own window
  ``[0, remaining)``, the chosen argument's cost narrowing the bound for the
  next one;
* a complete application is yielded only if its total cost lands inside the
  caller's window.

Everything is a chain of nested generators, so memory per produced item is
proportional to the depth of that item rather than to the breadth of the
search.  Type contexts are cloned per candidate, so backtracking needs no
undo step.

A window pass that never had to cut a branch for exceeding its budget has seen
the whole (finite) space; iteration stops after it.  Branches deeper than
``max_depth`` are dropped silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Optional, Sequence

from programinduction.dsl import ast
from programinduction.dsl.type_system import Context, Type, TypeOperator, arguments, is_arrow
from programinduction.telemetry import hooks as telemetry_hooks
from programinduction.telemetry import logger
from programinduction.telemetry import metrics as telemetry_metrics
from programinduction.utils.config import load_config, section

from .candidates import build_candidates

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from programinduction.dsl.language import Language

__all__ = [
    "EnumerationConfig",
    "enumerate_expressions",
    "enumerate_with_cost",
]

_LOGGER = logger.get_logger("programinduction.synthesizer.enumerator")

# (cost, context, expression) triples flowing between search frames.
_Result = tuple[float, Context, ast.Expression]


@dataclass(slots=True)
class EnumerationConfig:
    window_width: float = 1.0
    max_depth: int = 256
    max_cost: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.window_width > 0:
            raise ValueError("window_width must be positive")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if self.max_cost is not None and self.max_cost < 0:
            raise ValueError("max_cost must be non-negative")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EnumerationConfig":
        values = section(data, "enumeration")
        max_cost = values.get("max_cost")
        return cls(
            window_width=float(values.get("window_width", 1.0)),
            max_depth=int(values.get("max_depth", 256)),
            max_cost=None if max_cost is None else float(max_cost),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "EnumerationConfig":
        return cls.from_mapping(load_config(path))


def enumerate_expressions(
    language: "Language",
    request: Type,
    config: Optional[EnumerationConfig] = None,
) -> Iterator[ast.Expression]:
    """Yield expressions of type ``request`` in non-decreasing window order."""

    for _, expr in enumerate_with_cost(language, request, config):
        yield expr


def enumerate_with_cost(
    language: "Language",
    request: Type,
    config: Optional[EnumerationConfig] = None,
) -> Iterator[tuple[float, ast.Expression]]:
    """Like :func:`enumerate_expressions` but yields ``(cost, expression)`` pairs."""

    config = config or EnumerationConfig()
    root = Context.avoiding([request])
    window = 0
    while True:
        lower = window * config.window_width
        if config.max_cost is not None and lower >= config.max_cost:
            return
        upper = (window + 1) * config.window_width
        search = _WindowSearch(language, config)
        produced = 0
        for cost, _, expr in search.expressions(request, root, (), lower, upper, 0):
            produced += 1
            yield cost, expr
        _record_window(window, lower, upper, produced, search.truncated)
        if not search.truncated:
            return
        window += 1


class _WindowSearch:
    """One pass over a single cost window."""

    def __init__(self, language: "Language", config: EnumerationConfig) -> None:
        self.language = language
        self.max_depth = config.max_depth
        # Set when a branch is cut for reaching the upper bound.
        self.truncated = False

    def expressions(
        self,
        request: Type,
        ctx: Context,
        env: tuple[Type, ...],
        lower: float,
        upper: float,
        depth: int,
    ) -> Iterator[_Result]:
        if upper <= 0:
            self.truncated = True
            return
        if depth > self.max_depth:
            return
        request = ctx.apply(request)
        binders = 0
        while is_arrow(request):
            assert isinstance(request, TypeOperator)
            env = (request.types[0],) + env
            request = request.types[1]
            binders += 1

        for candidate in build_candidates(self.language, request, ctx, env):
            cost = candidate.cost
            if not cost < upper:
                self.truncated = True
                continue
            for rest, result_ctx, expr in self.applications(
                candidate.expression,
                arguments(candidate.type),
                candidate.context,
                env,
                lower - cost,
                upper - cost,
                depth + 1,
            ):
                yield cost + rest, result_ctx, ast.lambdas(expr, binders)

    def applications(
        self,
        function: ast.Expression,
        argument_types: Sequence[Type],
        ctx: Context,
        env: tuple[Type, ...],
        lower: float,
        upper: float,
        depth: int,
    ) -> Iterator[_Result]:
        if not argument_types:
            if lower <= 0 < upper:
                yield 0.0, ctx, function
            return
        if depth > self.max_depth:
            return
        request = ctx.apply(argument_types[0])
        for arg_cost, arg_ctx, arg in self.expressions(request, ctx, env, 0.0, upper, depth + 1):
            for rest, result_ctx, expr in self.applications(
                ast.Application(function, arg),
                argument_types[1:],
                arg_ctx,
                env,
                lower - arg_cost,
                upper - arg_cost,
                depth + 1,
            ):
                yield arg_cost + rest, result_ctx, expr


def _record_window(
    window: int, lower: float, upper: float, produced: int, truncated: bool
) -> None:
    _LOGGER.debug(
        "window %d [%.3f, %.3f) produced %d expressions%s",
        window,
        lower,
        upper,
        produced,
        "" if truncated else " (search space exhausted)",
    )
    telemetry_metrics.emit(
        "programinduction.enum.window_yield",
        produced,
        tags={"window": str(window), "exhausted": "no" if truncated else "yes"},
        extra={"lower": lower, "upper": upper},
    )
    telemetry_hooks.dispatch(
        telemetry_hooks.ENUMERATION_WINDOW_COMPLETED,
        {
            "window": window,
            "lower": lower,
            "upper": upper,
            "produced": produced,
            "exhausted": not truncated,
        },
    )
