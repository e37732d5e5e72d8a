# rsheet

A small spreadsheet server. Clients set cells to expressions and read back
their values. When a cell changes, every cell that refers to it is worked out
again in the background, so dependent values settle shortly after a `set`.

## Installation

```
pip install .
```

## Running

Serve a single session on the terminal, reading commands from standard input
and writing replies to standard output:

```
rsheet
```

Pass `-m` / `--mark-mode` to print every error reply as just `Error`.

Serve over TCP by giving an address to listen on as `HOST:PORT`:

```
rsheet 127.0.0.1:6991
```

Each client that connects gets its own session on one shared sheet, with one
command per line. An empty host (`:6991`) listens on `localhost`.

## Commands

- `set <cell> <expression>` stores an expression in a cell. Nothing is sent
  back.
- `get <cell>` replies with the cell's value, as `A1 = 5`. Strings are shown in
  double quotes and an empty cell as `A1 = None`.

A line that is not a valid command gets the reply `Invalid key provided`.

Cells are named by column letters and a row number, such as `A1` or `AB12`.
Expressions may use:

- integers and decimals, and double-quoted strings;
- `+`, `-`, `*`, `/`, `%` and parentheses (`+` also joins two strings;
  integer `/` and `%` truncate towards zero);
- single cells (`A1`), a column or row range (`A1_A3`, `A1_C1`), or a
  rectangle of cells (`A1_B2`);
- `sum(range)`, which adds up the numbers in a range and skips empty cells;
- `sleep_then(milliseconds, value)`, which waits and then gives `value`.

```
set A1 5
set A2 7
set B1 sum(A1_A2)
get B1
```

If an expression cannot be evaluated, the cell holds the error
`Error: Variable depends on value Error`, and `get` replies with that error.
Other expressions see a cell holding an error as empty.

## Using it from Python

```python
from rsheet.sheet import Spreadsheet

sheet = Spreadsheet()
sheet.handle("set A1 3")
sheet.handle("set A2 A1 * 2")
print(sheet.handle("get A2"))   # A2 = 6
```

The package is made of:

- `rsheet.cells`: `CellIdentifier`, `parse_cell_identifier`,
  `column_number_to_name`, `column_name_to_number`.
- `rsheet.expr`: `CellExpr` with `find_variable_names()` and
  `evaluate(variables)`, raising `CellExprError`.
- `rsheet.commands`: `parse_command`, giving a `GetCommand` or `SetCommand`, or
  raising `CommandError`.
- `rsheet.sheet`: `Spreadsheet` with `get`, `set` and `handle`, and the replies
  `ValueReply` and `ErrorReply`.
- `rsheet.server`: `TerminalManager`, `ConnectionManager`,
  `handle_connection`, `start_server` and the `main` entry point.

`start_server` takes a `TerminalManager` or a `ConnectionManager` and serves
every connection it accepts on one shared `Spreadsheet`.

## What it does not do

The sheet lives only in memory: nothing is saved to disk, and its contents are
gone when the server stops.

## Tests

```
pip install .[test]
pytest
```