import time

import pytest

from rsheet.cells import CellIdentifier, parse_cell_identifier
from rsheet.expr import CellExpr
from rsheet.sheet import (
    Cell,
    ErrorReply,
    Spreadsheet,
    ValueReply,
    get_dependencies,
    get_variables_set,
    get_vars,
)


def _id(name):
    return parse_cell_identifier(name)


def _wait_for(sheet, identifier, expected, timeout=5.0):
    deadline = time.monotonic() + timeout
    reply = sheet.get(identifier)
    while reply != expected and time.monotonic() < deadline:
        time.sleep(0.01)
        reply = sheet.get(identifier)
    return reply


def _cell(value):
    return Cell(value, frozenset(), "", 0)


def test_missing_cell_reads_as_none():
    sheet = Spreadsheet()
    assert sheet.get(_id("A1")) == ValueReply("A1", None)


def test_set_then_get():
    sheet = Spreadsheet()
    sheet.set(_id("B3"), "5")
    assert sheet.get(_id("B3")) == ValueReply("B3", 5)


def test_handle_set_returns_nothing_and_get_replies():
    sheet = Spreadsheet()
    assert sheet.handle("set A1 5") is None
    assert sheet.handle("get A1") == ValueReply("A1", 5)


def test_handle_invalid_command():
    sheet = Spreadsheet()
    assert sheet.handle("fetch A1") == ErrorReply("Invalid key provided")
    assert sheet.handle("get 1A") == ErrorReply("Invalid key provided")


def test_sum_of_column():
    sheet = Spreadsheet()
    for name, value in (("A1", "1"), ("A2", "2"), ("A3", "3")):
        sheet.set(_id(name), value)
    sheet.set(_id("B1"), "sum(A1_A3)")
    assert sheet.get(_id("B1")) == ValueReply("B1", 6)


def test_failed_evaluation_stores_error():
    sheet = Spreadsheet()
    sheet.set(_id("A1"), '"x" + 1')
    assert sheet.get(_id("A1")) == ErrorReply("Error: Variable depends on value Error")


def test_error_cell_reads_as_none_for_dependents():
    sheet = Spreadsheet()
    sheet.set(_id("A1"), "1 +")
    sheet.set(_id("B1"), "A1")
    assert sheet.get(_id("B1")) == ValueReply("B1", None)


def test_older_update_is_ignored():
    sheet = Spreadsheet()
    sheet.set(_id("A1"), "1", 10)
    sheet.set(_id("A1"), "2", 5)
    assert sheet.get(_id("A1")) == ValueReply("A1", 1)


def test_newer_update_replaces():
    sheet = Spreadsheet()
    sheet.set(_id("A1"), "1", 5)
    sheet.set(_id("A1"), "2", 10)
    assert sheet.get(_id("A1")) == ValueReply("A1", 2)


def test_dependents_are_recomputed():
    sheet = Spreadsheet()
    sheet.set(_id("A1"), "1")
    sheet.set(_id("B1"), "A1")
    sheet.set(_id("C1"), "B1")
    sheet.set(_id("A1"), "7")
    assert _wait_for(sheet, _id("C1"), ValueReply("C1", 7)) == ValueReply("C1", 7)
    assert sheet.get(_id("B1")) == ValueReply("B1", 7)


def test_range_dependents_are_recomputed():
    sheet = Spreadsheet()
    sheet.set(_id("A1"), "4")
    sheet.set(_id("B1"), "sum(A1_A2)")
    sheet.set(_id("A2"), "3")
    expected = ValueReply("B1", 7)
    assert _wait_for(sheet, _id("B1"), expected) == expected


def test_get_variables_set():
    expression, names = get_variables_set("sum(A1_B2) + C3")
    assert isinstance(expression, CellExpr)
    assert names == {"A1_B2", "C3"}


def test_dependencies_of_single_cell():
    assert get_dependencies({"B2"}) == {_id("B2")}


def test_dependencies_of_column_range():
    assert get_dependencies({"A1_A3"}) == {_id("A1"), _id("A2"), _id("A3")}


def test_dependencies_of_row_range():
    assert get_dependencies({"A1_C1"}) == {_id("A1"), _id("B1"), _id("C1")}


def test_dependencies_of_matrix_range():
    assert get_dependencies({"A1_B2"}) == {_id("A1"), _id("A2"), _id("B1"), _id("B2")}


def test_vars_single_values():
    cells = {_id("A1"): _cell(4)}
    assert get_vars({"A1", "Z9"}, cells) == {"A1": 4, "Z9": None}


def test_vars_column_vector_in_row_order():
    cells = {_id("A1"): _cell(1), _id("A3"): _cell(3)}
    assert get_vars({"A1_A3"}, cells) == {"A1_A3": [1, None, 3]}


def test_vars_row_vector_in_column_order():
    cells = {_id("A1"): _cell(1), _id("B1"): _cell("b")}
    assert get_vars({"A1_B1"}, cells) == {"A1_B1": [1, "b"]}


def test_vars_matrix_is_list_of_columns():
    cells = {
        _id("A1"): _cell(1),
        _id("A2"): _cell(2),
        _id("B1"): _cell(3),
        _id("B2"): _cell(4),
    }
    assert get_vars({"A1_B2"}, cells) == {"A1_B2": [[1, 2], [3, 4]]}


def test_vars_error_cell_reads_as_none():
    cells = {_id("A1"): _cell(ErrorReply("broken"))}
    assert get_vars({"A1"}, cells) == {"A1": None}


def test_cell_result_property():
    assert _cell(ErrorReply("broken")).result is None
    assert _cell(8).result == 8


@pytest.mark.parametrize("name", ["A1", "C7"])
def test_get_reply_name_matches_identifier(name):
    sheet = Spreadsheet()
    identifier = _id(name)
    assert sheet.get(identifier).name == str(identifier)
    assert CellIdentifier(identifier.col, identifier.row) == identifier