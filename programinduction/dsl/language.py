"""Registry of primitives and invented expressions with production weights.

A :class:`Language` owns two ordered tables, primitives ``(name, scheme)``
and inventions ``(expression, scheme)``, each with a parallel table of log
probabilities, plus one ``variable_logprob`` shared by every bound-variable
reference.  Positions are identities: ``Primitive(i)`` and ``Invented(i)``
point into the tables, so the registry only ever grows by appending.

An invention may only reference strictly earlier inventions.  Every
registration path, initial inventions included, type-checks the expression
against the table as it stands before the append, which keeps
:meth:`Language.strip_invented` terminating without a cycle check.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Optional, Sequence

from programinduction.evaluation import evaluator as evaluator_module
from programinduction.synthesizer import enumerator
from programinduction.telemetry import hooks as telemetry_hooks
from programinduction.telemetry import logger
from programinduction.telemetry import metrics as telemetry_metrics
from programinduction.utils.config import load_config

from . import ast, grammar, inference
from .type_system import (
    Context,
    Type,
    TypeScheme,
    UnificationError,
    format_type,
    generalise,
    scheme_of,
)

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from programinduction.evaluation.evaluator import Evaluator

__all__ = ["Language"]

_LOGGER = logger.get_logger("programinduction.dsl.language")

TypeLike = str | Type | TypeScheme


class Language:
    """A polymorphically-typed lambda-calculus DSL with production probabilities."""

    def __init__(
        self,
        primitives: Sequence[tuple[str, TypeLike]],
        invented: Sequence[tuple[ast.Expression, TypeLike]] = (),
        *,
        variable_logprob: float = 0.0,
        primitives_logprob: Optional[Sequence[float]] = None,
        invented_logprob: Optional[Sequence[float]] = None,
    ) -> None:
        self.primitives: list[tuple[str, TypeScheme]] = [
            (str(name), scheme_of(tp)) for name, tp in primitives
        ]
        self.variable_logprob = float(variable_logprob)
        self.primitives_logprob: list[float] = _weights(
            primitives_logprob, len(self.primitives), "primitives_logprob"
        )
        self._names: dict[str, int] = {}
        for num, (name, _) in enumerate(self.primitives):
            self._names.setdefault(name, num)

        # Initial inventions are checked in order, each against the ones before it.
        weights = _weights(invented_logprob, len(invented), "invented_logprob")
        self.inventions: list[tuple[ast.Expression, TypeScheme]] = []
        self.invented_logprob: list[float] = []
        for (expr, tp), logprob in zip(invented, weights):
            self._register(expr, logprob, declared=scheme_of(tp))

    # ------------------------------------------------------------------
    # Construction

    @classmethod
    def uniform(
        cls,
        primitives: Sequence[tuple[str, TypeLike]],
        invented: Sequence[tuple[ast.Expression, TypeLike]] = (),
    ) -> "Language":
        """Every production (and the variable weight) at log-probability 0."""

        return cls(primitives, invented)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Language":
        """Build a language from a mapping of primitives and invention texts.

        ``primitives`` is a list of ``{name, type, logprob?}`` entries with
        types in :func:`~programinduction.dsl.type_system.format_type` syntax;
        ``invented`` is a list of ``{expression, logprob?}`` entries parsed and
        registered in order, so each may use the ones before it.
        """

        raw_primitives = config.get("primitives") or []
        if not isinstance(raw_primitives, Sequence):
            raise ValueError("'primitives' must be a list")
        primitives: list[tuple[str, TypeLike]] = []
        weights: list[float] = []
        for entry in raw_primitives:
            if not isinstance(entry, Mapping) or "name" not in entry or "type" not in entry:
                raise ValueError(f"malformed primitive entry: {entry!r}")
            primitives.append((str(entry["name"]), str(entry["type"])))
            weights.append(float(entry.get("logprob", 0.0)))
        language = cls(
            primitives,
            variable_logprob=float(config.get("variable_logprob", 0.0)),
            primitives_logprob=weights,
        )
        for entry in config.get("invented") or []:
            if not isinstance(entry, Mapping) or "expression" not in entry:
                raise ValueError(f"malformed invention entry: {entry!r}")
            expr = language.parse(str(entry["expression"]))
            language.invent(expr, logprob=float(entry.get("logprob", 0.0)))
        return language

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Language":
        return cls.from_config(load_config(path))

    # ------------------------------------------------------------------
    # Lookups

    def primitive(self, num: int) -> Optional[tuple[str, TypeScheme, float]]:
        """``(name, scheme, logprob)`` of primitive ``num``, or ``None``."""

        if 0 <= num < len(self.primitives):
            name, scheme = self.primitives[num]
            return name, scheme, self.primitives_logprob[num]
        return None

    def invented(self, num: int) -> Optional[tuple[ast.Expression, TypeScheme, float]]:
        """``(expression, scheme, logprob)`` of invention ``num``, or ``None``."""

        if 0 <= num < len(self.inventions):
            expr, scheme = self.inventions[num]
            return expr, scheme, self.invented_logprob[num]
        return None

    def primitive_index(self, name: str) -> Optional[int]:
        return self._names.get(name)

    # ------------------------------------------------------------------
    # Typing and registration

    def infer(self, expr: ast.Expression) -> Type:
        """Infer the type of ``expr``; raises :class:`inference.InferenceError`."""

        return inference.infer(self, expr)

    def invent(self, expr: ast.Expression, *, logprob: float = 0.0) -> int:
        """Register ``expr`` as a new invention and return its index.

        The expression must be closed and type-check against the inventions
        already registered.  On failure nothing is appended.
        """

        num = self._register(expr, logprob)
        tp = self.inventions[num][1].type
        _LOGGER.info("registered invention #%d %s : %s", num, self.display(expr), format_type(tp))
        telemetry_metrics.emit("programinduction.language.inventions", 1)
        telemetry_hooks.dispatch(
            telemetry_hooks.LANGUAGE_INVENTED,
            {"index": num, "expression": self.display(expr), "type": format_type(tp)},
        )
        return num

    def _register(
        self,
        expr: ast.Expression,
        logprob: float,
        *,
        declared: Optional[TypeScheme] = None,
    ) -> int:
        escaping = ast.free_indices(expr)
        if escaping:
            raise inference.BadExpression(
                f"invention has free variables: {sorted(escaping)}"
            )
        tp = inference.infer(self, expr)
        if declared is not None:
            ctx = Context.avoiding([tp])
            try:
                ctx.unify(tp, declared.instantiate(ctx))
            except UnificationError as exc:
                raise inference.TypeMismatch(exc, expression=expr) from exc
        self.inventions.append((expr, generalise(tp)))
        self.invented_logprob.append(float(logprob))
        return len(self.inventions) - 1

    def strip_invented(self, expr: ast.Expression) -> ast.Expression:
        """Inline every invention (recursively) so no ``Invented`` node remains."""

        def definition(num: int) -> ast.Expression:
            entry = self.invented(num)
            if entry is None:
                raise inference.BadExpression(f"invention does not exist: {num}")
            return self.strip_invented(entry[0])

        return ast.substitute_invented(expr, definition)

    # ------------------------------------------------------------------
    # Text

    def parse(self, text: str) -> ast.Expression:
        """The inverse of :meth:`display`; raises :class:`grammar.ParseError`."""

        return grammar.parse(self, text)

    def display(self, expr: ast.Expression) -> str:
        return grammar.show(expr, self)

    stringify = display

    # ------------------------------------------------------------------
    # Search and evaluation

    def enumerate(
        self, request: Type, config: Optional[enumerator.EnumerationConfig] = None
    ) -> Iterator[ast.Expression]:
        """Lazily yield well-typed expressions for ``request`` by increasing cost."""

        return enumerator.enumerate_expressions(self, request, config)

    def check(
        self,
        expr: ast.Expression,
        evaluator: "Evaluator",
        inputs: Sequence[Any],
        output: Any,
    ) -> bool:
        """True when ``expr`` applied to ``inputs`` evaluates to ``output``."""

        return evaluator_module.check(self, expr, evaluator, inputs, output)

    def __str__(self) -> str:
        lines = [f"{self.variable_logprob:f}\tt0\t$_"]
        for (name, scheme), logprob in zip(self.primitives, self.primitives_logprob):
            lines.append(f"{logprob:f}\t{format_type(scheme)}\t{name}")
        for (expr, scheme), logprob in zip(self.inventions, self.invented_logprob):
            lines.append(f"{logprob:f}\t{format_type(scheme)}\t{self.display(expr)}")
        return "\n".join(lines)


def _weights(values: Optional[Sequence[float]], count: int, label: str) -> list[float]:
    if values is None:
        return [0.0] * count
    weights = [float(value) for value in values]
    if len(weights) != count:
        raise ValueError(f"{label} has {len(weights)} entries for {count} productions")
    if any(math.isnan(value) for value in weights):
        raise ValueError(f"{label} contains NaN")
    return weights
