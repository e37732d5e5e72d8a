"""Cell identifiers and spreadsheet column naming."""

from __future__ import annotations

import re
from dataclasses import dataclass

_CELL_RE = re.compile(r"([A-Z]+)([1-9][0-9]*)")
_COLUMN_RE = re.compile(r"[A-Z]+")


@dataclass(frozen=True, order=True)
class CellIdentifier:
    """A zero-based column and row position in the sheet."""

    col: int
    row: int

    def __str__(self) -> str:
        return f"{column_number_to_name(self.col)}{self.row + 1}"


def column_number_to_name(number: int) -> str:
    """Turn a zero-based column number into its letter name (0 -> "A")."""
    if number < 0:
        raise ValueError(f"column number must not be negative: {number}")
    letters = []
    remaining = number + 1
    while remaining:
        remaining, offset = divmod(remaining - 1, 26)
        letters.append(chr(ord("A") + offset))
    return "".join(reversed(letters))


def column_name_to_number(name: str) -> int:
    """Turn a column letter name into its zero-based number ("A" -> 0)."""
    if not _COLUMN_RE.fullmatch(name):
        raise ValueError(f"invalid column name: {name!r}")
    total = 0
    for letter in name:
        total = total * 26 + (ord(letter) - ord("A") + 1)
    return total - 1


def parse_cell_identifier(text: str) -> CellIdentifier:
    """Parse a cell name such as "B12" into a CellIdentifier."""
    match = _CELL_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid cell identifier: {text!r}")
    column, row = match.groups()
    return CellIdentifier(col=column_name_to_number(column), row=int(row) - 1)