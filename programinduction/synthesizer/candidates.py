"""Admissible productions at a single enumeration node.

For a (non-arrow) request type, every primitive, invention, and bound variable
whose return type unifies with the request is a candidate.  Each candidate gets
its own cloned :class:`~programinduction.dsl.type_system.Context`, so the
alternatives never observe each other's bindings.  Variables share
``variable_logprob`` evenly, and the surviving set is renormalised so the
candidate log-probabilities at a node sum to one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Sequence

import numpy as np

from programinduction.dsl import ast
from programinduction.dsl.type_system import (
    Context,
    Type,
    TypeScheme,
    UnificationError,
    returns,
)

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from programinduction.dsl.language import Language

__all__ = ["Candidate", "build_candidates"]


@dataclass(slots=True)
class Candidate:
    """One admissible production together with its private type context."""

    logprob: float
    expression: ast.Expression
    type: Type
    context: Context

    @property
    def cost(self) -> float:
        return -self.logprob


def build_candidates(
    language: "Language",
    request: Type,
    ctx: Context,
    environment: Sequence[Type],
) -> list[Candidate]:
    """Return the normalised candidates for ``request`` in registry order.

    Primitives come first, then inventions, then variables from the nearest
    binder outwards.  An empty list means nothing can produce ``request``.
    """

    candidates: list[Candidate] = []
    productions = _productions(language)
    for logprob, scheme, expr in productions:
        if logprob == -math.inf:
            continue
        branch = ctx.clone()
        tp = scheme.instantiate(branch)
        candidate = _admit(logprob, expr, tp, branch, request)
        if candidate is not None:
            candidates.append(candidate)

    variables: list[Candidate] = []
    if language.variable_logprob != -math.inf:
        for num, bound in enumerate(environment):
            branch = ctx.clone()
            candidate = _admit(
                language.variable_logprob, ast.Index(num), branch.apply(bound), branch, request
            )
            if candidate is not None:
                variables.append(candidate)
    if variables:
        share = math.log(len(variables))
        for candidate in variables:
            candidate.logprob -= share
        candidates.extend(variables)

    if not candidates:
        return candidates
    logprobs = np.array([candidate.logprob for candidate in candidates], dtype=float)
    normaliser = float(np.logaddexp.reduce(logprobs))
    for candidate in candidates:
        candidate.logprob -= normaliser
    return candidates


def _productions(
    language: "Language",
) -> Iterable[tuple[float, TypeScheme, ast.Expression]]:
    for num, ((_, scheme), logprob) in enumerate(
        zip(language.primitives, language.primitives_logprob)
    ):
        yield logprob, scheme, ast.Primitive(num)
    for num, ((_, scheme), logprob) in enumerate(zip(language.inventions, language.invented_logprob)):
        yield logprob, scheme, ast.Invented(num)


def _admit(
    logprob: float, expr: ast.Expression, tp: Type, branch: Context, request: Type
) -> Candidate | None:
    try:
        branch.unify(returns(tp), request)
    except UnificationError:
        return None
    return Candidate(logprob=logprob, expression=expr, type=branch.apply(tp), context=branch)
