"""Expression tree helpers."""

from __future__ import annotations

from programinduction.dsl import ast
from programinduction.dsl.ast import Abstraction, Application, Index, Invented, Primitive


def test_structural_equality_distinguishes_variants() -> None:
    assert Primitive(1) == Primitive(1)
    assert Primitive(1) != Index(1)
    assert Index(1) != Invented(1)
    assert {Abstraction(Index(0)): "id"}[Abstraction(Index(0))] == "id"


def test_walk_is_pre_order() -> None:
    expr = Application(Abstraction(Index(0)), Primitive(3))
    assert list(ast.walk(expr)) == [expr, Abstraction(Index(0)), Index(0), Primitive(3)]
    assert ast.size(expr) == 4


def test_apply_all_and_lambdas() -> None:
    f, x, y = Primitive(0), Primitive(1), Primitive(2)
    assert ast.apply_all(f) == f
    assert ast.apply_all(f, x, y) == Application(Application(f, x), y)
    assert ast.lambdas(Index(1), 2) == Abstraction(Abstraction(Index(1)))
    assert ast.lambdas(f, 0) == f


def test_free_indices_are_depth_adjusted() -> None:
    assert ast.free_indices(Index(2)) == {2}
    assert ast.free_indices(Abstraction(Index(2))) == {1}
    assert ast.free_indices(Abstraction(Abstraction(Index(1)))) == set()
    assert ast.free_indices(Application(Abstraction(Index(0)), Index(0))) == {0}


def test_substitute_invented_rebuilds_tree() -> None:
    expr = Abstraction(Application(Invented(0), Invented(1)))
    replaced = ast.substitute_invented(expr, lambda num: Primitive(num + 10))
    assert replaced == Abstraction(Application(Primitive(10), Primitive(11)))
