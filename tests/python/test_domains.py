"""Reference domains: boolean circuits and string editing."""

from __future__ import annotations

import math

import pytest

from programinduction.domains import circuits, strings
from programinduction.domains.strings import Char, Func, Num, NumList, Str, StrList
from programinduction.dsl.type_system import format_type, parse_type
from programinduction.evaluation import evaluator
from programinduction.evaluation.evaluator import EvaluationError
from programinduction.evaluation.task import solve, task_by_evaluation
from programinduction.synthesizer.enumerator import EnumerationConfig

# ---------------------------------------------------------------------------
# Circuits


def test_circuit_language_has_only_nand() -> None:
    language = circuits.dsl()
    assert [name for name, _ in language.primitives] == ["nand"]
    assert format_type(language.primitives[0][1]) == "bool -> bool -> bool"


@pytest.mark.parametrize("a, b", [(False, False), (False, True), (True, False), (True, True)])
def test_nand_truth_table(a: bool, b: bool) -> None:
    language = circuits.dsl()
    expr = language.parse("(λ (λ (nand $1 $0)))")
    assert evaluator.evaluate(language, expr, [a, b], circuits.Evaluator()) is (not (a and b))


def test_circuit_evaluator_rejects_non_booleans() -> None:
    with pytest.raises(EvaluationError):
        circuits.Evaluator().evaluate("nand", [1, 0])
    with pytest.raises(EvaluationError):
        circuits.Evaluator().evaluate("and", [True, True])


def test_search_finds_negation() -> None:
    language = circuits.dsl()
    task = task_by_evaluation(
        circuits.Evaluator(),
        parse_type("bool -> bool"),
        [([True], False), ([False], True)],
    )
    [(cost, expr)] = solve(language, task, EnumerationConfig(max_cost=6.0))
    assert language.display(expr) == "(λ (nand $0 $0))"
    assert cost == pytest.approx(3 * math.log(2))


# ---------------------------------------------------------------------------
# Strings


def _run(text: str, *inputs):
    language = strings.dsl()
    return evaluator.evaluate(language, language.parse(text), list(inputs), strings.Evaluator())


def test_strings_language_types() -> None:
    language = strings.dsl()
    assert len(language.primitives) == 25
    expr = language.parse("(λ (join (char->str /) (split > $0)))")
    assert format_type(language.infer(expr)) == "str -> str"
    mapping = language.parse("(map-to-nums len)")
    assert format_type(language.infer(mapping)) == "list(str) -> list(int)"


def test_replace_delimiter() -> None:
    result = _run("(λ (join (char->str /) (split > $0)))", Str("OFJQc>BLVP>eMS"))
    assert result == Str("OFJQc/BLVP/eMS")


@pytest.mark.parametrize(
    "text, inputs, expected",
    [
        ("(+1 (+1 0))", [], Num(2)),
        ("(-1 0)", [], Num(-1)),
        ("(λ (len $0))", [Str("abc")], Num(3)),
        ("(λ (upper (strip $0)))", [Str("  hi ")], Str("HI")),
        ("(λ (lower $0))", [Str("MiXeD")], Str("mixed")),
        ("(λ (concat $0 (char->str space)))", [Str("a")], Str("a ")),
        ("(λ (slice (+1 0) (+1 (+1 (+1 0))) $0))", [Str("abcdef")], Str("bc")),
        ("(λ (slice (-1 0) (+1 0) $0))", [Str("abc")], Str("")),
        ("(λ (slice (+1 (+1 0)) 0 $0))", [Str("abcd")], Str("cd")),
        ("(λ (nth (+1 0) (split , $0)))", [Str("a,b,c")], Str("b")),
        ("(λ (nth (-1 0) (split , $0)))", [Str("a,b")], Str("")),
        ("(λ (nth (+1 (+1 0)) (split , $0)))", [Str("a,b")], Str("")),
        ("(λ (split . $0))", [Str("x.y.")], StrList(("x", "y", ""))),
        ("(λ (map-to-strs upper (split , $0)))", [Str("ab,c")], StrList(("AB", "C"))),
        ("(λ (map-to-nums (λ (len $0)) (split - $0)))", [Str("a-bc-")], NumList((1, 2, 0))),
        ("(λ (map-to-nums +1 $0))", [NumList((1, 2))], NumList((2, 3))),
        ("empty_str", [], Str("")),
        ("|", [], Char("|")),
    ],
)
def test_string_operations(text: str, inputs: list, expected) -> None:
    assert _run(text, *inputs) == expected


def test_map_with_wrong_result_type_fails() -> None:
    with pytest.raises(EvaluationError):
        _run("(λ (map-to-nums upper (split , $0)))", Str("a,b"))


def test_lifted_functions_never_compare_equal() -> None:
    function = _run("upper")
    assert isinstance(function, Func)
    assert function != function
    assert function.value(Str("a")) == Str("A")


def test_string_task_rejects_wrong_program() -> None:
    language = strings.dsl()
    task = task_by_evaluation(
        strings.Evaluator(),
        parse_type("str -> str"),
        [([Str("a>b")], Str("a/b"))],
    )
    assert task.score(language, language.parse("(λ (join (char->str /) (split > $0)))")) == 0.0
    assert task.score(language, language.parse("(λ (upper $0))")) == -math.inf
