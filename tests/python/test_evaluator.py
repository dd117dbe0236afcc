"""Call-by-value evaluation and example-based tasks."""

from __future__ import annotations

import math
from typing import Sequence

import pytest

from programinduction.dsl.ast import Abstraction, Index, Invented, Primitive
from programinduction.dsl.language import Language
from programinduction.dsl.type_system import parse_type
from programinduction.evaluation import evaluator
from programinduction.evaluation.evaluator import EvaluationError, FunctionEvaluator, LiftedFunction
from programinduction.evaluation.task import Task, solve, task_by_evaluation
from programinduction.synthesizer.enumerator import EnumerationConfig
from programinduction.telemetry import hooks, metrics


def _arithmetic() -> Language:
    return Language.uniform(
        [
            ("0", "int"),
            ("1", "int"),
            ("+", "int -> int -> int"),
            ("apply", "(int -> int) -> int -> int"),
        ]
    )


class _Arithmetic:
    """Integers, with lifted functions wrapped as plain Python callables."""

    def evaluate(self, name: str, args: Sequence):
        if name == "0":
            return 0
        if name == "1":
            return 1
        if name == "+":
            return args[0] + args[1]
        if name == "apply":
            return args[0](args[1])
        raise EvaluationError(name)

    def lift(self, function: LiftedFunction):
        return function


def _run(language: Language, text: str, *inputs):
    return evaluator.evaluate(language, language.parse(text), list(inputs), _Arithmetic())


def test_constants_and_applications() -> None:
    language = _arithmetic()
    assert _run(language, "0") == 0
    assert _run(language, "(+ 1 (+ 1 1))") == 3


def test_inputs_are_applied_in_order() -> None:
    language = _arithmetic()
    assert _run(language, "(λ (+ $0 1))", 41) == 42
    assert _run(language, "(λ (λ (+ $1 (+ $1 $0))))", 5, 1) == 11


def test_partial_primitive_result_is_lifted() -> None:
    language = _arithmetic()
    result = _run(language, "(+ 1)")
    assert isinstance(result, LiftedFunction)
    assert result(2) == 3


def test_functions_passed_to_primitives_are_lifted() -> None:
    language = _arithmetic()
    assert _run(language, "(apply (+ 1) 1)") == 2
    assert _run(language, "(λ (apply (λ (+ $0 $0)) $0))", 4) == 8
    assert _run(language, "((λ ($0 1)) (+ 1))") == 2


def test_inventions_are_inlined() -> None:
    language = _arithmetic()
    inc = language.invent(language.parse("(λ (+ $0 1))"))
    assert evaluator.evaluate(language, Invented(inc), [1], _Arithmetic()) == 2


@pytest.mark.parametrize(
    "text, inputs",
    [
        ("$0", []),
        ("(λ (+ $0 1))", [1, 2]),
    ],
)
def test_evaluation_errors(text: str, inputs: list) -> None:
    language = _arithmetic()
    with pytest.raises(EvaluationError):
        evaluator.evaluate(language, language.parse(text), inputs, _Arithmetic())


def test_unknown_primitive_is_an_evaluation_error() -> None:
    with pytest.raises(EvaluationError):
        evaluator.evaluate(_arithmetic(), Primitive(9), [], _Arithmetic())


def test_negative_index_is_an_evaluation_error() -> None:
    with pytest.raises(EvaluationError, match="negative index"):
        evaluator.evaluate(_arithmetic(), Abstraction(Index(-1)), [1], _Arithmetic())


def test_function_evaluator_cannot_lift() -> None:
    language = _arithmetic()
    plain = FunctionEvaluator(lambda name, args: {"0": 0, "1": 1}.get(name, sum(args)))
    assert evaluator.evaluate(language, language.parse("(+ 1 1)"), [], plain) == 2
    assert isinstance(plain, evaluator.Evaluator)
    with pytest.raises(EvaluationError):
        evaluator.evaluate(language, language.parse("(apply (+ 1) 0)"), [], plain)


def test_check() -> None:
    language = _arithmetic()
    expr = language.parse("(λ (+ $0 $0))")
    assert language.check(expr, _Arithmetic(), [3], 6)
    assert not language.check(expr, _Arithmetic(), [3], 7)
    assert not language.check(expr, _Arithmetic(), [3, 4], 6)


def test_task_by_evaluation_is_all_or_nothing() -> None:
    language = _arithmetic()
    task = task_by_evaluation(_Arithmetic(), parse_type("int -> int"), [([1], 2), ([5], 6)])
    assert isinstance(task, Task)
    assert task.observation == [((1,), 2), ((5,), 6)]
    assert task.score(language, language.parse("(λ (+ $0 1))")) == 0.0
    assert task.score(language, language.parse("(λ (+ 1 1))")) == -math.inf


def test_task_counts_evaluation_errors() -> None:
    language = _arithmetic()
    registry = metrics.get_registry()
    registry.reset()
    task = task_by_evaluation(_Arithmetic(), parse_type("int"), [([1], 2)])
    assert task.score(language, language.parse("0")) == -math.inf
    series = registry.get_series("programinduction.task.evaluation_errors")
    assert series is not None and series.total == 1.0


def test_solve_finds_cheapest_solution() -> None:
    language = _arithmetic()
    task = task_by_evaluation(_Arithmetic(), parse_type("int -> int"), [([1], 2), ([5], 6)])
    events = []
    with hooks.register_hook(hooks.TASK_EVALUATED, events.append):
        solutions = solve(language, task, EnumerationConfig(max_cost=8.0))
    # (+ 1 $0) precedes (+ $0 1) in the same window: primitives come before variables.
    assert [language.display(expr) for _, expr in solutions] == ["(λ (+ 1 $0))"]
    assert solutions[0][0] == pytest.approx(3 * math.log(5))
    assert events[0].payload["solved"] == 1


def test_solve_reports_nothing_when_space_is_exhausted() -> None:
    language = _arithmetic()
    task = task_by_evaluation(_Arithmetic(), parse_type("int"), [([], 7)])
    assert solve(language, task, EnumerationConfig(max_cost=4.0)) == []
    with pytest.raises(ValueError):
        solve(language, task, limit=0)
