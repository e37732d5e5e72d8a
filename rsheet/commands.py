"""Parsing of the ``get`` and ``set`` commands users send."""

from __future__ import annotations

from dataclasses import dataclass

from rsheet.cells import CellIdentifier, parse_cell_identifier


class CommandError(ValueError):
    """Raised when a command line cannot be understood."""


@dataclass(frozen=True)
class GetCommand:
    """Request for the current value of a cell."""

    identifier: CellIdentifier


@dataclass(frozen=True)
class SetCommand:
    """Request to store an expression in a cell."""

    identifier: CellIdentifier
    expression: str


def _identifier(text: str) -> CellIdentifier:
    try:
        return parse_cell_identifier(text)
    except ValueError as error:
        raise CommandError(str(error)) from None


def parse_command(text: str) -> GetCommand | SetCommand:
    """Parse a line such as ``get A1`` or ``set B2 sum(A1_A3)``."""
    parts = text.strip().split(maxsplit=2)
    if not parts:
        raise CommandError("empty command")
    verb, *rest = parts
    if verb == "get":
        if len(rest) != 1:
            raise CommandError("get takes exactly one cell")
        return GetCommand(_identifier(rest[0]))
    if verb == "set":
        if len(rest) != 2:
            raise CommandError("set takes a cell and an expression")
        return SetCommand(_identifier(rest[0]), rest[1].strip())
    raise CommandError(f"unknown command {verb!r}")