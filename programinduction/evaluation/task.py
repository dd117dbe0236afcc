"""Tasks: a request type plus an oracle scoring candidate expressions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, Optional, Sequence, TypeVar

from programinduction.dsl import ast
from programinduction.dsl.type_system import Type
from programinduction.synthesizer.enumerator import EnumerationConfig, enumerate_with_cost
from programinduction.telemetry import hooks as telemetry_hooks
from programinduction.telemetry import logger
from programinduction.telemetry import metrics as telemetry_metrics

from .evaluator import EvaluationError, Evaluator, evaluate

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from programinduction.dsl.language import Language

__all__ = ["Oracle", "Task", "solve", "task_by_evaluation"]

V = TypeVar("V")
Obs = TypeVar("Obs")

Oracle = Callable[["Language", ast.Expression], float]

_LOGGER = logger.get_logger("programinduction.evaluation.task")


@dataclass
class Task(Generic[Obs]):
    """``oracle`` returns a log-likelihood; ``-inf`` means the expression fails."""

    oracle: Oracle
    observation: Obs
    request: Type

    def score(self, language: "Language", expr: ast.Expression) -> float:
        return self.oracle(language, expr)


def task_by_evaluation(
    evaluator: Evaluator[V],
    request: Type,
    examples: Sequence[tuple[Sequence[V], V]],
) -> Task[Sequence[tuple[Sequence[V], V]]]:
    """An all-or-nothing task over input/output examples.

    The oracle returns ``0.0`` when the expression reproduces every example
    and ``-inf`` otherwise.  Examples whose evaluation raises
    :class:`EvaluationError` are misses.
    """

    examples = [(tuple(inputs), output) for inputs, output in examples]

    def oracle(language: "Language", expr: ast.Expression) -> float:
        expr = language.strip_invented(expr)
        for inputs, output in examples:
            try:
                hit = evaluate(language, expr, inputs, evaluator) == output
            except EvaluationError as exc:
                _LOGGER.debug("evaluation of %s failed: %s", language.display(expr), exc)
                telemetry_metrics.emit("programinduction.task.evaluation_errors", 1)
                hit = False
            if not hit:
                return -math.inf
        return 0.0

    return Task(oracle=oracle, observation=examples, request=request)


def solve(
    language: "Language",
    task: Task[Any],
    config: Optional[EnumerationConfig] = None,
    *,
    limit: int = 1,
) -> list[tuple[float, ast.Expression]]:
    """Enumerate for ``task.request`` and collect up to ``limit`` ``(cost, expr)`` hits.

    Without ``config.max_cost`` this runs until ``limit`` solutions are found
    or the search space is exhausted.
    """

    if limit < 1:
        raise ValueError("limit must be positive")
    solutions: list[tuple[float, ast.Expression]] = []
    tried = 0
    for cost, expr in enumerate_with_cost(language, task.request, config):
        tried += 1
        if task.score(language, expr) == -math.inf:
            continue
        solutions.append((cost, expr))
        if len(solutions) >= limit:
            break
    telemetry_hooks.dispatch(
        telemetry_hooks.TASK_EVALUATED,
        {"tried": tried, "solved": len(solutions)},
    )
    _LOGGER.info("tried %d expressions, found %d solutions", tried, len(solutions))
    return solutions
