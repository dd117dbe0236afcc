"""Flashfill-style string editing.

Values live in a closed universe: :class:`Num`, :class:`Char`, :class:`Str`,
:class:`StrList`, :class:`NumList`, and :class:`Func` for function arguments
handed to ``map-to-nums``/``map-to-strs``.  :func:`dsl` registers the
primitives below, all with log-probability 0::

    0            int
    +1, -1       int -> int
    len          str -> int
    empty_str    str
    lower, upper str -> str
    concat       str -> str -> str
    slice        int -> int -> str -> str
    nth          int -> list(str) -> str
    map-to-nums  (t0 -> int) -> list(t0) -> list(int)
    map-to-strs  (t0 -> str) -> list(t0) -> list(str)
    strip        str -> str
    split        char -> str -> list(str)
    join         str -> list(str) -> str
    char->str    char -> str
    space . , < > / @ - |   char

Example: replacing ``>`` with ``/`` is
``(λ (join (char->str /) (split > $0)))``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Union

from programinduction.dsl.language import Language
from programinduction.evaluation.evaluator import EvaluationError, LiftedFunction

__all__ = [
    "Char",
    "Evaluator",
    "Func",
    "Num",
    "NumList",
    "PRIMITIVES",
    "Space",
    "Str",
    "StrList",
    "dsl",
]


# ---------------------------------------------------------------------------
# Value universe


@dataclass(frozen=True, slots=True)
class Num:
    value: int


@dataclass(frozen=True, slots=True)
class Char:
    value: str


@dataclass(frozen=True, slots=True)
class Str:
    value: str


@dataclass(frozen=True, slots=True)
class StrList:
    value: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class NumList:
    value: tuple[int, ...]


@dataclass(frozen=True, slots=True, eq=False)
class Func:
    """A lifted function; never equal to anything, itself included."""

    value: LiftedFunction["Space"]

    def __eq__(self, other: object) -> bool:
        return False

    __hash__ = object.__hash__


Space = Union[Num, Char, Str, StrList, NumList, Func]


# ---------------------------------------------------------------------------
# Language

_CHARS = {
    "space": " ",
    ".": ".",
    ",": ",",
    "<": "<",
    ">": ">",
    "/": "/",
    "@": "@",
    "-": "-",
    "|": "|",
}

PRIMITIVES: tuple[tuple[str, str], ...] = (
    ("0", "int"),
    ("+1", "int -> int"),
    ("-1", "int -> int"),
    ("len", "str -> int"),
    ("empty_str", "str"),
    ("lower", "str -> str"),
    ("upper", "str -> str"),
    ("concat", "str -> str -> str"),
    ("slice", "int -> int -> str -> str"),
    ("nth", "int -> list(str) -> str"),
    ("map-to-nums", "(t0 -> int) -> list(t0) -> list(int)"),
    ("map-to-strs", "(t0 -> str) -> list(t0) -> list(str)"),
    ("strip", "str -> str"),
    ("split", "char -> str -> list(str)"),
    ("join", "str -> list(str) -> str"),
    ("char->str", "char -> str"),
) + tuple((name, "char") for name in _CHARS)


def dsl() -> Language:
    return Language.uniform(PRIMITIVES)


# ---------------------------------------------------------------------------
# Evaluation


def _expect(value: Space, kind: type, name: str):
    if not isinstance(value, kind):
        raise EvaluationError(f"{name} expected {kind.__name__}, got {value!r}")
    return value.value


def _slice(args: Sequence[Space]) -> Space:
    start = _expect(args[0], Num, "slice")
    stop = _expect(args[1], Num, "slice")
    text = _expect(args[2], Str, "slice")
    if start < 0:
        return Str("")
    if stop < start:
        return Str(text[start:])
    return Str(text[start:stop])


def _nth(args: Sequence[Space]) -> Space:
    num = _expect(args[0], Num, "nth")
    items = _expect(args[1], StrList, "nth")
    if 0 <= num < len(items):
        return Str(items[num])
    return Str("")


def _map(target: type, name: str) -> Callable[[Sequence[Space]], Space]:
    result_list = NumList if target is Num else StrList

    def operation(args: Sequence[Space]) -> Space:
        function = _expect(args[0], Func, name)
        items = args[1]
        if isinstance(items, NumList):
            elements: list[Space] = [Num(item) for item in items.value]
        elif isinstance(items, StrList):
            elements = [Str(item) for item in items.value]
        else:
            raise EvaluationError(f"{name} expected a list, got {items!r}")
        mapped = []
        for element in elements:
            result = function(element)
            mapped.append(_expect(result, target, name))
        return result_list(tuple(mapped))

    return operation


_OPERATIONS: dict[str, Callable[[Sequence[Space]], Space]] = {
    "0": lambda args: Num(0),
    "+1": lambda args: Num(_expect(args[0], Num, "+1") + 1),
    "-1": lambda args: Num(_expect(args[0], Num, "-1") - 1),
    "len": lambda args: Num(len(_expect(args[0], Str, "len"))),
    "empty_str": lambda args: Str(""),
    "lower": lambda args: Str(_expect(args[0], Str, "lower").lower()),
    "upper": lambda args: Str(_expect(args[0], Str, "upper").upper()),
    "concat": lambda args: Str(_expect(args[0], Str, "concat") + _expect(args[1], Str, "concat")),
    "slice": _slice,
    "nth": _nth,
    "map-to-nums": _map(Num, "map-to-nums"),
    "map-to-strs": _map(Str, "map-to-strs"),
    "strip": lambda args: Str(_expect(args[0], Str, "strip").strip()),
    "split": lambda args: StrList(
        tuple(_expect(args[1], Str, "split").split(_expect(args[0], Char, "split")))
    ),
    "join": lambda args: Str(
        _expect(args[0], Str, "join").join(_expect(args[1], StrList, "join"))
    ),
    "char->str": lambda args: Str(_expect(args[0], Char, "char->str")),
}
for _name, _char in _CHARS.items():
    _OPERATIONS[_name] = lambda args, _char=_char: Char(_char)


class Evaluator:
    """Evaluator for the string-editing primitives over :data:`Space`."""

    def evaluate(self, name: str, args: Sequence[Space]) -> Space:
        operation = _OPERATIONS.get(name)
        if operation is None:
            raise EvaluationError(f"unknown string primitive {name!r}")
        return operation(args)

    def lift(self, function: LiftedFunction[Space]) -> Space:
        return Func(function)
