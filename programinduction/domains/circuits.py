"""Boolean circuits built from a single ``nand`` gate.

>>> from programinduction.domains import circuits
>>> language = circuits.dsl()
>>> expr = language.parse("(λ (nand $0 $0))")
>>> language.check(expr, circuits.Evaluator(), [True], False)
True
"""

from __future__ import annotations

from typing import Sequence

from programinduction.dsl.language import Language
from programinduction.evaluation.evaluator import EvaluationError, LiftedFunction

__all__ = ["Evaluator", "dsl"]


def dsl() -> Language:
    return Language.uniform([("nand", "bool -> bool -> bool")])


class Evaluator:
    """Evaluates ``nand`` over Python booleans; circuits have no function values."""

    def evaluate(self, name: str, args: Sequence[bool]) -> bool:
        if name != "nand":
            raise EvaluationError(f"unknown circuit primitive {name!r}")
        if len(args) != 2 or not all(isinstance(arg, bool) for arg in args):
            raise EvaluationError(f"nand expects two booleans, got {list(args)!r}")
        return not (args[0] and args[1])

    def lift(self, function: LiftedFunction[bool]) -> bool:
        raise EvaluationError("circuits have no function values")
