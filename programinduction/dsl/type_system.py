"""Hindley–Milner type engine for the polymorphically-typed lambda calculus.

Types are immutable values: a :class:`TypeVariable` is identified by an integer
id, and every other type is a :class:`TypeOperator` (a named constructor over
sub-types).  Function types are the binary ``->`` operator, curried to the
right, so ``int -> int -> int`` is ``->(int, ->(int, int))``.

Mutable unification state lives in a :class:`Context`: a substitution from
variable ids to types plus the next free id.  Search procedures branch by
calling :meth:`Context.clone` before trying a unification, so alternatives
never observe each other's bindings and failed attempts are simply dropped.

Generalisation happens only at registration points.  A :class:`TypeScheme`
quantifies variables explicitly and is instantiated with fresh, independent
variables at every use site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator

__all__ = [
    "ARROW",
    "BOOL",
    "CHAR",
    "INT",
    "STR",
    "Context",
    "Type",
    "TypeOperator",
    "TypeScheme",
    "TypeSyntaxError",
    "TypeVariable",
    "UnificationError",
    "arguments",
    "arrow",
    "base_type",
    "format_type",
    "free_variables",
    "generalise",
    "is_arrow",
    "list_type",
    "parse_type",
    "returns",
    "scheme_of",
]


# ---------------------------------------------------------------------------
# Error types


class UnificationError(RuntimeError):
    """Raised when two types cannot be made equal."""

    def __init__(self, left: "Type", right: "Type", reason: str = "type mismatch") -> None:
        super().__init__(f"{reason}: cannot unify {format_type(left)} with {format_type(right)}")
        self.left = left
        self.right = right
        self.reason = reason


class TypeSyntaxError(ValueError):
    """Raised by :func:`parse_type` for malformed type text."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} at position {position}")
        self.message = message
        self.position = position


# ---------------------------------------------------------------------------
# Type representation


class Type:
    """Structural base class for types."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class TypeVariable(Type):
    """Unification variable, identified by ``id`` within a :class:`Context`."""

    id: int

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"TypeVariable({self.id})"


@dataclass(frozen=True, slots=True)
class TypeOperator(Type):
    """Type constructor applied to sub-types (``int``, ``list(t0)``, ``->``)."""

    name: str
    types: tuple[Type, ...] = ()

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        if not self.types:
            return f"TypeOperator({self.name!r})"
        joined = ", ".join(repr(t) for t in self.types)
        return f"TypeOperator({self.name!r}, ({joined},))"


ARROW = "->"

BOOL = TypeOperator("bool")
INT = TypeOperator("int")
STR = TypeOperator("str")
CHAR = TypeOperator("char")


def base_type(name: str) -> TypeOperator:
    return TypeOperator(name)


def list_type(element: Type) -> TypeOperator:
    return TypeOperator("list", (element,))


def arrow(*types: Type) -> Type:
    """Build the curried function type ``t1 -> t2 -> ... -> tn``."""

    if not types:
        raise ValueError("arrow requires at least one type")
    result = types[-1]
    for argument in reversed(types[:-1]):
        result = TypeOperator(ARROW, (argument, result))
    return result


def is_arrow(typ: Type) -> bool:
    return isinstance(typ, TypeOperator) and typ.name == ARROW and len(typ.types) == 2


def arguments(typ: Type) -> list[Type]:
    """Return the curried argument types of ``typ`` (empty for non-arrows)."""

    args: list[Type] = []
    while is_arrow(typ):
        assert isinstance(typ, TypeOperator)
        args.append(typ.types[0])
        typ = typ.types[1]
    return args


def returns(typ: Type) -> Type:
    """Return the final return type once every curried argument is supplied."""

    while is_arrow(typ):
        assert isinstance(typ, TypeOperator)
        typ = typ.types[1]
    return typ


def free_variables(typ: Type) -> Iterator[TypeVariable]:
    """Yield the variables of ``typ`` in left-to-right order (with repeats)."""

    if isinstance(typ, TypeVariable):
        yield typ
    elif isinstance(typ, TypeOperator):
        for sub in typ.types:
            yield from free_variables(sub)


# ---------------------------------------------------------------------------
# Schemes


@dataclass(frozen=True, slots=True)
class TypeScheme:
    """Polymorphic type with explicitly quantified variables."""

    variables: tuple[int, ...]
    type: Type

    def instantiate(self, ctx: "Context") -> Type:
        """Replace each quantified variable with a fresh variable of ``ctx``."""

        if not self.variables:
            return self.type
        mapping = {var: ctx.new_variable() for var in self.variables}
        return _substitute(self.type, mapping)

    def __str__(self) -> str:
        return format_type(self.type)


def generalise(typ: Type | TypeScheme) -> TypeScheme:
    """Quantify every variable of ``typ``.  Schemes are returned unchanged."""

    if isinstance(typ, TypeScheme):
        return typ
    quantified = tuple(dict.fromkeys(var.id for var in free_variables(typ)))
    return TypeScheme(quantified, typ)


def _substitute(typ: Type, mapping: Dict[int, Type]) -> Type:
    if isinstance(typ, TypeVariable):
        return mapping.get(typ.id, typ)
    if isinstance(typ, TypeOperator) and typ.types:
        return TypeOperator(typ.name, tuple(_substitute(sub, mapping) for sub in typ.types))
    return typ


# ---------------------------------------------------------------------------
# Unification context


@dataclass(slots=True)
class Context:
    """Substitution plus variable allocator threaded through inference."""

    substitution: Dict[int, Type] = field(default_factory=dict)
    next_variable: int = 0

    @classmethod
    def avoiding(cls, types: Iterable[Type]) -> "Context":
        """Return an empty context whose fresh ids never clash with ``types``."""

        highest = -1
        for typ in types:
            for var in free_variables(typ):
                highest = max(highest, var.id)
        return cls(next_variable=highest + 1)

    def clone(self) -> "Context":
        return Context(substitution=dict(self.substitution), next_variable=self.next_variable)

    def new_variable(self) -> TypeVariable:
        var = TypeVariable(self.next_variable)
        self.next_variable += 1
        return var

    def prune(self, typ: Type) -> Type:
        """Chase variable bindings until reaching an unbound variable or operator."""

        while isinstance(typ, TypeVariable) and typ.id in self.substitution:
            typ = self.substitution[typ.id]
        return typ

    def apply(self, typ: Type) -> Type:
        """Return ``typ`` with the current substitution applied everywhere."""

        typ = self.prune(typ)
        if isinstance(typ, TypeOperator) and typ.types:
            return TypeOperator(typ.name, tuple(self.apply(sub) for sub in typ.types))
        return typ

    def occurs(self, variable: TypeVariable, typ: Type) -> bool:
        typ = self.prune(typ)
        if typ == variable:
            return True
        if isinstance(typ, TypeOperator):
            return any(self.occurs(variable, sub) for sub in typ.types)
        return False

    def unify(self, left: Type, right: Type) -> None:
        """Extend the substitution so ``left`` and ``right`` become equal.

        On failure the context may hold partial bindings; callers that need
        to keep going clone first and discard the clone.
        """

        a = self.prune(left)
        b = self.prune(right)
        if isinstance(a, TypeVariable):
            if a == b:
                return
            if self.occurs(a, b):
                raise UnificationError(self.apply(a), self.apply(b), "occurs check failed")
            self.substitution[a.id] = b
            return
        if isinstance(b, TypeVariable):
            self.unify(b, a)
            return
        assert isinstance(a, TypeOperator) and isinstance(b, TypeOperator)
        if a.name != b.name or len(a.types) != len(b.types):
            raise UnificationError(self.apply(a), self.apply(b))
        for sub_a, sub_b in zip(a.types, b.types):
            self.unify(sub_a, sub_b)


# ---------------------------------------------------------------------------
# Pretty-printing


def format_type(typ: Type | TypeScheme) -> str:
    """Return the canonical text form used in errors, configs, and tests."""

    if isinstance(typ, TypeScheme):
        typ = typ.type
    if isinstance(typ, TypeVariable):
        return f"t{typ.id}"
    if is_arrow(typ):
        assert isinstance(typ, TypeOperator)
        argument, result = typ.types
        left = format_type(argument)
        if is_arrow(argument):
            left = f"({left})"
        return f"{left} -> {format_type(result)}"
    assert isinstance(typ, TypeOperator)
    if not typ.types:
        return typ.name
    inside = ", ".join(format_type(sub) for sub in typ.types)
    return f"{typ.name}({inside})"


# ---------------------------------------------------------------------------
# Simple recursive-descent parser for type text


def parse_type(text: str) -> Type:
    """Parse the output of :func:`format_type` back into a :class:`Type`.

    Variables are written ``t<digits>``; ``->`` (or ``→``) is right
    associative; constructors take parenthesised, comma-separated arguments.
    """

    parser = _TypeParser(text)
    result = parser.parse_arrow()
    parser.skip_whitespace()
    if not parser.at_end():
        raise TypeSyntaxError("unexpected trailing text", parser.index)
    return result


class _TypeParser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.index = 0

    def at_end(self) -> bool:
        return self.index >= len(self.source)

    def skip_whitespace(self) -> None:
        while not self.at_end() and self.source[self.index].isspace():
            self.index += 1

    def _match(self, token: str) -> bool:
        self.skip_whitespace()
        if self.source.startswith(token, self.index):
            self.index += len(token)
            return True
        return False

    def _expect(self, token: str) -> None:
        if not self._match(token):
            raise TypeSyntaxError(f"expected {token!r}", self.index)

    def parse_arrow(self) -> Type:
        parts = [self._parse_atom()]
        while self._match("->") or self._match("→"):
            parts.append(self._parse_atom())
        return arrow(*parts)

    def _parse_atom(self) -> Type:
        self.skip_whitespace()
        if self._match("("):
            inner = self.parse_arrow()
            self._expect(")")
            return inner
        name = self._parse_name()
        if name.startswith("t") and name[1:].isdigit():
            return TypeVariable(int(name[1:]))
        args: list[Type] = []
        if self._match("("):
            args.append(self.parse_arrow())
            while self._match(","):
                args.append(self.parse_arrow())
            self._expect(")")
        return TypeOperator(name, tuple(args))

    def _parse_name(self) -> str:
        start = self.index
        while not self.at_end():
            ch = self.source[self.index]
            if ch.isspace() or ch in "(),→" or self.source.startswith("->", self.index):
                break
            self.index += 1
        if start == self.index:
            raise TypeSyntaxError("expected a type name", start)
        return self.source[start : self.index]


def scheme_of(text_or_type: str | Type | TypeScheme) -> TypeScheme:
    """Coerce registration input (type text, type, or scheme) to a scheme."""

    if isinstance(text_or_type, str):
        return generalise(parse_type(text_or_type))
    return generalise(text_or_type)
