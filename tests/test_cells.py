import pytest

from rsheet.cells import (
    CellIdentifier,
    column_name_to_number,
    column_number_to_name,
    parse_cell_identifier,
)


def test_first_columns_are_letters():
    assert column_number_to_name(0) == "A"
    assert column_number_to_name(25) == "Z"
    assert column_number_to_name(26) == "AA"


def test_column_round_trip():
    for number in range(2000):
        assert column_name_to_number(column_number_to_name(number)) == number


def test_column_names_increase_in_length_then_alphabetically():
    names = [column_number_to_name(number) for number in range(1000)]
    keys = [(len(name), name) for name in names]
    assert keys == sorted(keys)
    assert len(set(names)) == len(names)


@pytest.mark.parametrize("text", ["A1", "Z99", "AB12", "ZZZ1000"])
def test_parse_then_format_round_trip(text):
    assert str(parse_cell_identifier(text)) == text


@pytest.mark.parametrize("col,row", [(0, 0), (3, 7), (26, 0), (701, 41), (702, 9999)])
def test_format_then_parse_round_trip(col, row):
    identifier = CellIdentifier(col=col, row=row)
    assert parse_cell_identifier(str(identifier)) == identifier


def test_parse_gives_zero_based_row_and_column():
    identifier = parse_cell_identifier("A1")
    assert identifier == CellIdentifier(col=0, row=0)


@pytest.mark.parametrize("text", ["a1", "A0", "1A", "", "A", "A1B", "A 1", "A-1"])
def test_parse_rejects_invalid_text(text):
    with pytest.raises(ValueError):
        parse_cell_identifier(text)


@pytest.mark.parametrize("name", ["", "a", "A1", "Ä"])
def test_column_name_rejects_invalid(name):
    with pytest.raises(ValueError):
        column_name_to_number(name)


def test_negative_column_number_rejected():
    with pytest.raises(ValueError):
        column_number_to_name(-1)


def test_identifiers_are_hashable_and_equal_by_value():
    cells = {CellIdentifier(1, 2), CellIdentifier(1, 2), CellIdentifier(2, 1)}
    assert len(cells) == 2