"""Cell expressions: variable discovery and evaluation."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping

_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<number>[0-9]+(?:\.[0-9]+)?)
    |(?P<string>"(?:[^"\\]|\\.)*")
    |(?P<name>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<op>[-+*/%(),])
    """,
    re.VERBOSE,
)

_VARIABLE_RE = re.compile(r"[A-Z]+[1-9][0-9]*(?:_[A-Z]+[1-9][0-9]*)?")
_ESCAPE_RE = re.compile(r"\\(.)")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


class CellExprError(Exception):
    """Raised when an expression cannot be parsed or evaluated."""


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str


def _scan(source: str) -> Iterator[_Token]:
    position = 0
    while position < len(source):
        match = _TOKEN_RE.match(source, position)
        if match is None:
            yield _Token("invalid", source[position])
            position += 1
            continue
        position = match.end()
        if match.lastgroup != "space":
            yield _Token(match.lastgroup, match.group())


def _unescape(body: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_numbers(operator: str, *values: Any) -> None:
    if not all(_is_number(value) for value in values):
        shown = ", ".join(repr(value) for value in values)
        raise CellExprError(f"operator {operator!r} needs numbers, got {shown}")


def _add(left: Any, right: Any) -> Any:
    if isinstance(left, str) and isinstance(right, str):
        return left + right
    _require_numbers("+", left, right)
    return left + right


def _truncating_divide(left: Any, right: Any) -> Any:
    if right == 0:
        raise CellExprError("division by zero")
    if isinstance(left, int) and isinstance(right, int):
        quotient = abs(left) // abs(right)
        return quotient if (left >= 0) == (right >= 0) else -quotient
    return left / right


def _remainder(left: Any, right: Any) -> Any:
    if right == 0:
        raise CellExprError("division by zero")
    if isinstance(left, int) and isinstance(right, int):
        return left - right * _truncating_divide(left, right)
    quotient = int(left / right)
    return left - right * quotient


def _binary(operator: str, left: Any, right: Any) -> Any:
    if operator == "+":
        return _add(left, right)
    _require_numbers(operator, left, right)
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if operator == "/":
        return _truncating_divide(left, right)
    return _remainder(left, right)


def _flatten(value: Any) -> Iterator[Any]:
    if isinstance(value, list):
        for item in value:
            yield from _flatten(item)
    else:
        yield value


def _sum(values: Any) -> Any:
    total: Any = 0
    for value in _flatten(values):
        if value is None:
            continue
        _require_numbers("sum", value)
        total += value
    return total


def _sleep_then(milliseconds: Any, value: Any) -> Any:
    if not isinstance(milliseconds, int) or isinstance(milliseconds, bool) or milliseconds < 0:
        raise CellExprError("sleep_then needs a non-negative integer delay")
    time.sleep(milliseconds / 1000)
    return value


_FUNCTIONS: dict[str, tuple[int, Callable[..., Any]]] = {
    "sum": (1, _sum),
    "sleep_then": (2, _sleep_then),
}


class _Evaluator:
    """Recursive-descent parser that evaluates while it parses."""

    def __init__(self, tokens: list[_Token], variables: Mapping[str, Any]) -> None:
        self._tokens = tokens
        self._position = 0
        self._variables = variables

    def run(self) -> Any:
        if not self._tokens:
            raise CellExprError("empty expression")
        value = self._additive()
        leftover = self._peek()
        if leftover is not None:
            raise CellExprError(f"unexpected {leftover.text!r}")
        if not (value is None or isinstance(value, str) or _is_number(value)):
            raise CellExprError("expression does not produce a single value")
        return value

    def _peek(self) -> _Token | None:
        if self._position < len(self._tokens):
            return self._tokens[self._position]
        return None

    def _next(self) -> _Token:
        token = self._peek()
        if token is None:
            raise CellExprError("unexpected end of expression")
        self._position += 1
        return token

    def _accept(self, *operators: str) -> str | None:
        token = self._peek()
        if token is not None and token.kind == "op" and token.text in operators:
            self._position += 1
            return token.text
        return None

    def _expect(self, operator: str) -> None:
        if self._accept(operator) is None:
            raise CellExprError(f"expected {operator!r}")

    def _additive(self) -> Any:
        value = self._term()
        while (operator := self._accept("+", "-")) is not None:
            value = _binary(operator, value, self._term())
        return value

    def _term(self) -> Any:
        value = self._unary()
        while (operator := self._accept("*", "/", "%")) is not None:
            value = _binary(operator, value, self._unary())
        return value

    def _unary(self) -> Any:
        operator = self._accept("-", "+")
        if operator is None:
            return self._primary()
        value = self._unary()
        _require_numbers(operator, value)
        return -value if operator == "-" else value

    def _primary(self) -> Any:
        token = self._next()
        if token.kind == "number":
            return float(token.text) if "." in token.text else int(token.text)
        if token.kind == "string":
            return _unescape(token.text[1:-1])
        if token.kind == "name":
            if self._accept("(") is not None:
                return self._call(token.text)
            return self._variable(token.text)
        if token.kind == "op" and token.text == "(":
            value = self._additive()
            self._expect(")")
            return value
        raise CellExprError(f"unexpected {token.text!r}")

    def _call(self, name: str) -> Any:
        arguments = []
        if self._accept(")") is None:
            arguments.append(self._additive())
            while self._accept(",") is not None:
                arguments.append(self._additive())
            self._expect(")")
        if name not in _FUNCTIONS:
            raise CellExprError(f"unknown function {name!r}")
        arity, function = _FUNCTIONS[name]
        if len(arguments) != arity:
            raise CellExprError(f"{name} takes {arity} argument(s), got {len(arguments)}")
        return function(*arguments)

    def _variable(self, name: str) -> Any:
        try:
            return self._variables[name]
        except KeyError:
            raise CellExprError(f"unknown variable {name!r}") from None


class CellExpr:
    """An expression stored in a cell, such as ``sum(A1_A3) * 2``."""

    def __init__(self, source: str) -> None:
        self.source = source
        self._tokens = list(_scan(source))

    def __repr__(self) -> str:
        return f"CellExpr({self.source!r})"

    def find_variable_names(self) -> set[str]:
        """Return the cell and range names the expression refers to."""
        following = self._tokens[1:] + [None]
        return {
            token.text
            for token, after in zip(self._tokens, following)
            if token.kind == "name"
            and _VARIABLE_RE.fullmatch(token.text)
            and not (after is not None and after.kind == "op" and after.text == "(")
        }

    def evaluate(self, variables: Mapping[str, Any]) -> Any:
        """Evaluate with the given variable values.

        A variable's value is a scalar (int, float, str or None), a list for a
        row or column range, or a list of lists for a rectangular range.
        """
        return _Evaluator(self._tokens, variables).run()