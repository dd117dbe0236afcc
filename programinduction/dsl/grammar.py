"""Textual syntax for lambda-calculus expressions.

The grammar is a small s-expression language, always read relative to a
:class:`~programinduction.dsl.language.Language`:

* ``(λ BODY)`` or ``(lambda BODY)``: abstraction;
* ``(F X Y ...)``: application, left-folded so ``(F X Y)`` is ``((F X) Y)``;
* ``$N``: De Bruijn index;
* ``#(EXPR)``: reference to an already-registered invention that is
  structurally equal to ``EXPR``;
* anything else: a primitive, looked up by exact name.

:func:`show` is the inverse of :func:`parse`: ``parse(show(e)) == e`` for every
well-formed expression.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional

from . import ast
from .inference import BadExpression

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from .language import Language

__all__ = ["LAMBDA_KEYWORDS", "ParseError", "parse", "show"]

LAMBDA_KEYWORDS = ("λ", "lambda")

# De Bruijn indices are ASCII only.
_DIGITS = re.compile(r"[0-9]+")


class ParseError(ValueError):
    """Malformed expression text, with the UTF-8 byte offset of the problem."""

    def __init__(self, offset: int, reason: str) -> None:
        super().__init__(f"{reason} at index {offset}")
        self.offset = offset
        self.reason = reason


# ---------------------------------------------------------------------------
# Parser


class Parser:
    """Recursive-descent parser over the raw character stream."""

    def __init__(self, language: "Language", source: str) -> None:
        self.language = language
        self.source = source
        self.length = len(source)
        self.index = 0

    # ------------------------------------------------------------------
    # Cursor helpers

    @property
    def _eof(self) -> bool:
        return self.index >= self.length

    def _peek(self) -> str:
        if self._eof:
            return "\0"
        return self.source[self.index]

    def _skip_whitespace(self) -> None:
        while not self._eof and self.source[self.index].isspace():
            self.index += 1

    def _error(self, reason: str, index: Optional[int] = None) -> ParseError:
        position = self.index if index is None else index
        offset = len(self.source[:position].encode("utf-8"))
        return ParseError(offset, reason)

    def _expect(self, ch: str, reason: str) -> None:
        if self._peek() != ch:
            raise self._error(reason)
        self.index += 1

    def _word_end(self, start: int) -> int:
        end = start
        while end < self.length:
            ch = self.source[end]
            if ch.isspace() or ch == ")":
                break
            end += 1
        return end

    # ------------------------------------------------------------------
    # Entry point

    def parse(self) -> ast.Expression:
        self._skip_whitespace()
        expr = self._parse_expression()
        self._skip_whitespace()
        if not self._eof:
            raise self._error("expected end of expression, found more tokens")
        return expr

    # ------------------------------------------------------------------
    # Expressions

    def _parse_expression(self) -> ast.Expression:
        if self._eof:
            raise self._error("unexpected end of expression")
        ch = self._peek()
        if ch == "(":
            return self._parse_parenthesised()
        if ch == ")":
            raise self._error("unexpected ')'")
        if self.source.startswith("#(", self.index):
            return self._parse_invented()
        return self._parse_atom()

    def _parse_parenthesised(self) -> ast.Expression:
        self._expect("(", "expected '('")
        self._skip_whitespace()
        keyword_end = self._word_end(self.index)
        keyword = self.source[self.index : keyword_end]
        if (
            keyword in LAMBDA_KEYWORDS
            and keyword_end < self.length
            and self.source[keyword_end].isspace()
        ):
            self.index = keyword_end
            self._skip_whitespace()
            body = self._parse_expression()
            self._skip_whitespace()
            self._expect(")", "incomplete abstraction")
            return ast.Abstraction(body)

        items: list[ast.Expression] = []
        while True:
            self._skip_whitespace()
            if self._eof:
                raise self._error("incomplete application")
            if self._peek() == ")":
                self.index += 1
                break
            items.append(self._parse_expression())
        if not items:
            raise self._error("empty application")
        return ast.apply_all(items[0], *items[1:])

    def _parse_invented(self) -> ast.Expression:
        self.index += 1  # '#'
        expr = self._parse_parenthesised()
        for num, (fragment, _) in enumerate(self.language.inventions):
            if fragment == expr:
                return ast.Invented(num)
        raise self._error("invented expression is unfamiliar to the language")

    def _parse_atom(self) -> ast.Expression:
        start = self.index
        end = self._word_end(start)
        word = self.source[start:end]
        if len(word) > 1 and word[0] == "$" and _DIGITS.fullmatch(word[1:]):
            self.index = end
            return ast.Index(int(word[1:]))
        num = self.language.primitive_index(word)
        if num is None:
            raise self._error(f"unknown primitive {word!r}", start)
        self.index = end
        return ast.Primitive(num)


def parse(language: "Language", text: str) -> ast.Expression:
    """Parse ``text`` into an :class:`ast.Expression` relative to ``language``."""

    return Parser(language, text).parse()


# ---------------------------------------------------------------------------
# Printer


def show(expr: ast.Expression, language: "Language") -> str:
    """Render ``expr`` in the syntax accepted by :func:`parse`."""

    return _show(expr, language, is_function=False)


def _show(expr: ast.Expression, language: "Language", *, is_function: bool) -> str:
    if isinstance(expr, ast.Primitive):
        entry = language.primitive(expr.index)
        if entry is None:
            raise BadExpression(f"primitive does not exist: {expr.index}")
        return entry[0]
    if isinstance(expr, ast.Application):
        inner = (
            f"{_show(expr.function, language, is_function=True)} "
            f"{_show(expr.argument, language, is_function=False)}"
        )
        return inner if is_function else f"({inner})"
    if isinstance(expr, ast.Abstraction):
        return f"(λ {_show(expr.body, language, is_function=False)})"
    if isinstance(expr, ast.Index):
        return f"${expr.index}"
    if isinstance(expr, ast.Invented):
        entry = language.invented(expr.index)
        if entry is None:
            raise BadExpression(f"invention does not exist: {expr.index}")
        body = entry[0]
        rendered = _show(body, language, is_function=False)
        if isinstance(body, (ast.Application, ast.Abstraction)):
            return f"#{rendered}"
        return f"#({rendered})"
    raise BadExpression(f"not an expression: {expr!r}")
