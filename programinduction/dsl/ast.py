"""Expression trees of the polymorphically-typed lambda calculus.

Expressions only make sense relative to a :class:`~programinduction.dsl.language.Language`:
``Primitive`` and ``Invented`` carry positional indices into the language's
registries, and ``Index`` is a De Bruijn reference to the n-th nearest
enclosing ``Abstraction`` (0-indexed).  The identity function is therefore
``Abstraction(Index(0))``, written ``(λ $0)``.

All nodes are frozen dataclasses: values are immutable once built, compare
structurally, and can be used as dictionary keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Union

__all__ = [
    "Abstraction",
    "Application",
    "Expression",
    "Index",
    "Invented",
    "Primitive",
    "apply_all",
    "free_indices",
    "lambdas",
    "size",
    "substitute_invented",
    "walk",
]


@dataclass(frozen=True, slots=True)
class Primitive:
    """Reference to the primitive registered at ``index``."""

    index: int

    def children(self) -> tuple["Expression", ...]:
        return ()


@dataclass(frozen=True, slots=True)
class Application:
    """Apply ``function`` to a single ``argument`` (curried)."""

    function: "Expression"
    argument: "Expression"

    def children(self) -> tuple["Expression", ...]:
        return (self.function, self.argument)


@dataclass(frozen=True, slots=True)
class Abstraction:
    """Lambda abstraction binding one variable in ``body``."""

    body: "Expression"

    def children(self) -> tuple["Expression", ...]:
        return (self.body,)


@dataclass(frozen=True, slots=True)
class Index:
    """De Bruijn index referring to the n-th nearest enclosing abstraction."""

    index: int

    def children(self) -> tuple["Expression", ...]:
        return ()


@dataclass(frozen=True, slots=True)
class Invented:
    """Reference to the invented expression registered at ``index``."""

    index: int

    def children(self) -> tuple["Expression", ...]:
        return ()


Expression = Union[Primitive, Application, Abstraction, Index, Invented]


# ---------------------------------------------------------------------------
# Helper functions


def walk(expr: Expression) -> Iterator[Expression]:
    """Depth-first, pre-order traversal starting at ``expr``."""

    stack = [expr]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children()))


def size(expr: Expression) -> int:
    """Number of nodes in ``expr``."""

    return sum(1 for _ in walk(expr))


def apply_all(function: Expression, *args: Expression) -> Expression:
    """Left-fold ``args`` onto ``function``: ``apply_all(f, x, y) == ((f x) y)``."""

    result = function
    for arg in args:
        result = Application(result, arg)
    return result


def lambdas(body: Expression, count: int) -> Expression:
    """Wrap ``body`` in ``count`` nested abstractions."""

    for _ in range(count):
        body = Abstraction(body)
    return body


def free_indices(expr: Expression, depth: int = 0) -> set[int]:
    """Return the indices in ``expr`` that escape every enclosing abstraction.

    The result is adjusted to ``depth`` so ``free_indices(Index(2))`` is
    ``{2}`` and ``free_indices(Abstraction(Index(2)))`` is ``{1}``.
    """

    if isinstance(expr, Index):
        return {expr.index - depth} if expr.index >= depth else set()
    if isinstance(expr, Abstraction):
        return free_indices(expr.body, depth + 1)
    if isinstance(expr, Application):
        return free_indices(expr.function, depth) | free_indices(expr.argument, depth)
    return set()


def substitute_invented(
    expr: Expression, definition: Callable[[int], Expression]
) -> Expression:
    """Replace every ``Invented(i)`` with ``definition(i)``, rebuilding the tree."""

    if isinstance(expr, Invented):
        return definition(expr.index)
    if isinstance(expr, Application):
        return Application(
            substitute_invented(expr.function, definition),
            substitute_invented(expr.argument, definition),
        )
    if isinstance(expr, Abstraction):
        return Abstraction(substitute_invented(expr.body, definition))
    return expr
