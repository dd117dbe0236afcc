"""Call-by-value evaluation of lambda-calculus expressions.

Domains plug in through the :class:`Evaluator` protocol: ``evaluate(name,
args)`` computes a primitive once it has received as many arguments as its
type's arity, and ``lift(function)`` turns a function-valued argument into a
value of the domain's universe so higher-order primitives (``map`` and
friends) can call it back.

Evaluation works on the invention-free form of an expression, with an
environment of already-evaluated values indexed by De Bruijn position.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Generic,
    Protocol,
    Sequence,
    TypeVar,
    runtime_checkable,
)

from programinduction.dsl import ast
from programinduction.dsl.type_system import arguments

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from programinduction.dsl.language import Language

__all__ = [
    "EvaluationError",
    "Evaluator",
    "FunctionEvaluator",
    "LiftedFunction",
    "check",
    "evaluate",
]

V = TypeVar("V")


class EvaluationError(RuntimeError):
    """An expression could not be reduced to a domain value."""


@runtime_checkable
class Evaluator(Protocol[V]):
    def evaluate(self, name: str, args: Sequence[V]) -> V:  # pragma: no cover - interface definition
        ...

    def lift(self, function: "LiftedFunction[V]") -> V:  # pragma: no cover - interface definition
        ...


class FunctionEvaluator(Generic[V]):
    """Adapts a plain ``(name, args) -> value`` callable for first-order domains.

    Lifting is unsupported, so a function passed to a primitive is an
    :class:`EvaluationError`.
    """

    def __init__(self, fn: Callable[[str, Sequence[V]], V]) -> None:
        self._fn = fn

    def evaluate(self, name: str, args: Sequence[V]) -> V:
        return self._fn(name, args)

    def lift(self, function: "LiftedFunction[V]") -> V:
        raise EvaluationError("this domain has no function values")


# ---------------------------------------------------------------------------
# Runtime values


@dataclass(frozen=True)
class _Closure:
    body: ast.Expression
    env: tuple[Any, ...]


@dataclass(frozen=True)
class _PartialPrimitive:
    name: str
    arity: int
    args: tuple[Any, ...] = ()


_FUNCTIONS = (_Closure, _PartialPrimitive)


class LiftedFunction(Generic[V]):
    """A function value handed to a domain through :meth:`Evaluator.lift`.

    Calling it applies the wrapped function to domain values one at a time and
    returns the domain value that results.
    """

    __slots__ = ("_machine", "_function")

    def __init__(self, machine: "_Machine[V]", function: Any) -> None:
        self._machine = machine
        self._function = function

    def __call__(self, *args: V) -> V:
        return self.eval(args)

    def eval(self, args: Sequence[V]) -> V:
        result = self._function
        for arg in args:
            result = self._machine.apply(result, arg)
        return self._machine.to_domain(result)

    def __repr__(self) -> str:
        return f"LiftedFunction({self._function!r})"


class _Machine(Generic[V]):
    def __init__(self, language: "Language", evaluator: Evaluator[V]) -> None:
        self.language = language
        self.evaluator = evaluator

    def eval(self, expr: ast.Expression, env: tuple[Any, ...]) -> Any:
        if isinstance(expr, ast.Application):
            function = self.eval(expr.function, env)
            argument = self.eval(expr.argument, env)
            return self.apply(function, argument)
        if isinstance(expr, ast.Abstraction):
            return _Closure(expr.body, env)
        if isinstance(expr, ast.Index):
            if expr.index < 0:
                raise EvaluationError(f"negative index ${expr.index}")
            if expr.index >= len(env):
                raise EvaluationError(f"free variable ${expr.index} during evaluation")
            return env[expr.index]
        if isinstance(expr, ast.Primitive):
            entry = self.language.primitive(expr.index)
            if entry is None:
                raise EvaluationError(f"primitive does not exist: {expr.index}")
            name, scheme, _ = entry
            arity = len(arguments(scheme.type))
            if arity == 0:
                return self.evaluator.evaluate(name, ())
            return _PartialPrimitive(name, arity)
        raise EvaluationError(f"cannot evaluate {expr!r}")

    def apply(self, function: Any, argument: Any) -> Any:
        if isinstance(function, _Closure):
            return self.eval(function.body, (argument,) + function.env)
        if isinstance(function, _PartialPrimitive):
            args = function.args + (self.to_domain(argument),)
            if len(args) < function.arity:
                return _PartialPrimitive(function.name, function.arity, args)
            return self.evaluator.evaluate(function.name, args)
        if isinstance(function, LiftedFunction):
            return function.eval((self.to_domain(argument),))
        raise EvaluationError(f"cannot apply non-function value {function!r}")

    def to_domain(self, value: Any) -> V:
        if isinstance(value, _FUNCTIONS):
            return self.evaluator.lift(LiftedFunction(self, value))
        return value


def evaluate(
    language: "Language",
    expr: ast.Expression,
    inputs: Sequence[V],
    evaluator: Evaluator[V],
) -> V:
    """Apply ``expr`` to ``inputs`` in order and return the resulting domain value.

    Inventions are inlined first.  A function-valued result is lifted.
    """

    machine = _Machine(language, evaluator)
    result = machine.eval(language.strip_invented(expr), ())
    for value in inputs:
        result = machine.apply(result, value)
    return machine.to_domain(result)


def check(
    language: "Language",
    expr: ast.Expression,
    evaluator: Evaluator[V],
    inputs: Sequence[V],
    output: V,
) -> bool:
    """True when ``expr`` maps ``inputs`` to ``output``; evaluation errors count as misses."""

    try:
        return evaluate(language, expr, inputs, evaluator) == output
    except EvaluationError:
        return False
