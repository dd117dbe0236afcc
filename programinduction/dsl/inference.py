"""Type inference for lambda-calculus expressions.

Inference is a single pass over the expression tree with one fresh
:class:`~programinduction.dsl.type_system.Context` and an empty environment.
Primitive and invented references instantiate their registered scheme
independently at every occurrence, abstractions bind a fresh argument
variable, and applications unify the function type against
``argument -> fresh``.  The first failure aborts the whole call.

Indices that escape every enclosing abstraction are typed through a per-call
table keyed by their depth-adjusted index, so two occurrences of the same free
variable agree on a type within one call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional, Sequence

from . import ast
from .type_system import Context, Type, TypeScheme, UnificationError, arrow

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from .language import Language

__all__ = [
    "BadExpression",
    "InferenceError",
    "TypeMismatch",
    "infer",
    "infer_in_context",
]


# ---------------------------------------------------------------------------
# Error types


class InferenceError(RuntimeError):
    """Raised when an expression cannot be typed."""


class BadExpression(InferenceError):
    """The expression references a primitive or invention that does not exist."""


class TypeMismatch(InferenceError):
    """A unification failure encountered while typing an expression."""

    def __init__(self, cause: UnificationError, *, expression: ast.Expression) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.expression = expression


# ---------------------------------------------------------------------------
# Entry points


def infer(language: "Language", expr: ast.Expression) -> Type:
    """Infer the type of ``expr`` under ``language``; the result is fully applied."""

    ctx = Context()
    result = infer_in_context(language, expr, ctx)
    return ctx.apply(result)


def infer_in_context(
    language: "Language",
    expr: ast.Expression,
    ctx: Context,
    environment: Sequence[Type] = (),
) -> Type:
    """Infer ``expr`` inside an existing context and environment (most-recent first).

    ``ctx`` is mutated; callers that need to backtrack pass a clone.
    """

    checker = _Inferencer(language, ctx)
    return checker.infer(expr, tuple(environment))


class _Inferencer:
    """Implements one inference call; holds the per-call free-index table."""

    def __init__(self, language: "Language", ctx: Context) -> None:
        self.language = language
        self.ctx = ctx
        self.free_indices: Dict[int, Type] = {}

    def infer(self, expr: ast.Expression, env: tuple[Type, ...]) -> Type:
        if isinstance(expr, ast.Primitive):
            return self._instantiate(self._primitive_scheme(expr.index))
        if isinstance(expr, ast.Invented):
            return self._instantiate(self._invented_scheme(expr.index))
        if isinstance(expr, ast.Application):
            function_type = self.infer(expr.function, env)
            argument_type = self.infer(expr.argument, env)
            result = self.ctx.new_variable()
            try:
                self.ctx.unify(function_type, arrow(argument_type, result))
            except UnificationError as exc:
                raise TypeMismatch(exc, expression=expr) from exc
            return self.ctx.apply(result)
        if isinstance(expr, ast.Abstraction):
            argument = self.ctx.new_variable()
            body = self.infer(expr.body, (argument,) + env)
            return self.ctx.apply(arrow(argument, body))
        if isinstance(expr, ast.Index):
            if expr.index < 0:
                raise BadExpression(f"negative index: {expr.index}")
            if expr.index < len(env):
                return self.ctx.apply(env[expr.index])
            key = expr.index - len(env)
            if key not in self.free_indices:
                self.free_indices[key] = self.ctx.new_variable()
            return self.ctx.apply(self.free_indices[key])
        raise BadExpression(f"not an expression: {expr!r}")

    def _instantiate(self, scheme: TypeScheme) -> Type:
        return scheme.instantiate(self.ctx)

    def _primitive_scheme(self, index: int) -> TypeScheme:
        entry = self._lookup(self.language.primitives, index)
        if entry is None:
            raise BadExpression(f"primitive does not exist: {index}")
        return entry[1]

    def _invented_scheme(self, index: int) -> TypeScheme:
        entry = self._lookup(self.language.inventions, index)
        if entry is None:
            raise BadExpression(f"invention does not exist: {index}")
        return entry[1]

    @staticmethod
    def _lookup(table: Sequence[tuple[object, TypeScheme]], index: int) -> Optional[tuple]:
        if 0 <= index < len(table):
            return table[index]
        return None
