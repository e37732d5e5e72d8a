"""The shared spreadsheet: storing, evaluating and recomputing cells."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from time import monotonic_ns
from typing import Any, Iterable, Mapping, Union

from rsheet.cells import CellIdentifier, parse_cell_identifier
from rsheet.commands import CommandError, GetCommand, parse_command
from rsheet.expr import CellExpr, CellExprError

logger = logging.getLogger(__name__)

DEPENDENCY_ERROR = "Error: Variable depends on value Error"
INVALID_COMMAND = "Invalid key provided"


def _format_value(value: Any) -> str:
    if value is None:
        return "None"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


@dataclass(frozen=True)
class ValueReply:
    """The value held by a named cell."""

    name: str
    value: Any

    def __str__(self) -> str:
        return f"{self.name} = {_format_value(self.value)}"


@dataclass(frozen=True)
class ErrorReply:
    """An error reported back to a user."""

    message: str

    def __str__(self) -> str:
        return self.message


Reply = Union[ValueReply, ErrorReply]


@dataclass(frozen=True)
class Cell:
    """A stored cell: its value (or error), what it depends on and when it was set."""

    value: Any
    dependencies: frozenset
    expression: str
    time: int

    @property
    def result(self) -> Any:
        """The value as seen by other expressions; errors read as None."""
        return None if isinstance(self.value, ErrorReply) else self.value


def get_variables_set(expression: str) -> tuple[CellExpr, set[str]]:
    """Parse an expression and return it with the variable names it uses."""
    cell_expr = CellExpr(expression)
    return cell_expr, set(cell_expr.find_variable_names())


def _range_bounds(name: str) -> tuple[CellIdentifier, CellIdentifier] | None:
    parts = name.split("_")
    if len(parts) != 2:
        return None
    start, end = parts
    return parse_cell_identifier(start), parse_cell_identifier(end)


def _cell_value(cells: Mapping[CellIdentifier, Cell], identifier: CellIdentifier) -> Any:
    cell = cells.get(identifier)
    return None if cell is None else cell.result


def _single_value(name: str, cells: Mapping[CellIdentifier, Cell]) -> Any:
    try:
        identifier = parse_cell_identifier(name)
    except ValueError:
        return None
    return _cell_value(cells, identifier)


def get_vars(variables: Iterable[str], cells: Mapping[CellIdentifier, Cell]) -> dict[str, Any]:
    """Map each variable name to its value: a scalar, a row or column list, or a matrix.

    A matrix is a list of columns, each a list of that column's values by row.
    """
    values: dict[str, Any] = {}
    for name in variables:
        if "_" not in name:
            values[name] = _single_value(name, cells)
            continue
        bounds = _range_bounds(name)
        if bounds is None:
            continue
        start, end = bounds
        rows = range(start.row, end.row + 1)
        cols = range(start.col, end.col + 1)
        if start.col == end.col and start.row != end.row:
            values[name] = [_cell_value(cells, CellIdentifier(start.col, row)) for row in rows]
        elif start.col != end.col and start.row == end.row:
            values[name] = [_cell_value(cells, CellIdentifier(col, start.row)) for col in cols]
        else:
            values[name] = [
                [_cell_value(cells, CellIdentifier(col, row)) for row in rows] for col in cols
            ]
    return values


def get_dependencies(variables: Iterable[str]) -> set[CellIdentifier]:
    """Return every cell that the given variable names refer to."""
    dependencies: set[CellIdentifier] = set()
    for name in variables:
        if "_" not in name:
            dependencies.add(parse_cell_identifier(name))
            continue
        bounds = _range_bounds(name)
        if bounds is None:
            continue
        start, end = bounds
        dependencies.update(
            CellIdentifier(col, row)
            for row in range(start.row, end.row + 1)
            for col in range(start.col, end.col + 1)
        )
    return dependencies


class Spreadsheet:
    """Cells shared between connections.

    Changing a cell queues its dependents for recomputation on a background
    worker, so dependent values settle shortly after a ``set``.
    """

    def __init__(self) -> None:
        self._cells: dict[CellIdentifier, Cell] = {}
        self._lock = threading.Lock()
        self._pending: queue.Queue[tuple[CellIdentifier, str]] = queue.Queue()
        self._worker = threading.Thread(
            target=self._recompute_dependents, name="rsheet-recompute", daemon=True
        )
        self._worker.start()

    def _recompute_dependents(self) -> None:
        while True:
            identifier, expression = self._pending.get()
            try:
                self.set(identifier, expression, monotonic_ns())
            except Exception:
                logger.exception("recomputing %s failed", identifier)

    def get(self, identifier: CellIdentifier) -> Reply:
        """Return the reply for the cell's current value."""
        with self._lock:
            cell = self._cells.get(identifier)
        if cell is None:
            return ValueReply(str(identifier), None)
        if isinstance(cell.value, ErrorReply):
            return cell.value
        return ValueReply(str(identifier), cell.value)

    def set(self, identifier: CellIdentifier, expression: str, time: int | None = None) -> None:
        """Evaluate and store an expression; older updates never overwrite newer ones."""
        if time is None:
            time = monotonic_ns()
        cell_expr, variables = get_variables_set(expression)
        with self._lock:
            arguments = get_vars(variables, self._cells)
        dependencies = frozenset(get_dependencies(variables))

        try:
            value = cell_expr.evaluate(arguments)
        except CellExprError as error:
            logger.debug("evaluating %s failed: %s", identifier, error)
            with self._lock:
                self._cells[identifier] = Cell(
                    ErrorReply(DEPENDENCY_ERROR), dependencies, expression, monotonic_ns()
                )
            return

        with self._lock:
            current = self._cells.get(identifier)
            if current is not None and current.time > time:
                return
            self._cells[identifier] = Cell(value, dependencies, expression, time)
            affected = [
                (other, cell.expression)
                for other, cell in self._cells.items()
                if identifier in cell.dependencies
            ]
        for item in affected:
            self._pending.put(item)

    def handle(self, message: str) -> Reply | None:
        """Run one command line; return the reply to send, or None for ``set``."""
        try:
            command = parse_command(message)
        except CommandError:
            return ErrorReply(INVALID_COMMAND)
        if isinstance(command, GetCommand):
            return self.get(command.identifier)
        self.set(command.identifier, command.expression, monotonic_ns())
        return None