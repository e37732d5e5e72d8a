import pytest

from rsheet.cells import parse_cell_identifier
from rsheet.commands import CommandError, GetCommand, SetCommand, parse_command


def test_parse_get():
    assert parse_command("get A1") == GetCommand(parse_cell_identifier("A1"))


def test_parse_get_with_surrounding_whitespace():
    assert parse_command("  get   C3  \n") == GetCommand(parse_cell_identifier("C3"))


def test_parse_set_keeps_whole_expression():
    command = parse_command("set B2 sum(A1_A3) + 1")
    assert command == SetCommand(parse_cell_identifier("B2"), "sum(A1_A3) + 1")


@pytest.mark.parametrize("cell", ["A1", "Z10", "AA100"])
@pytest.mark.parametrize("expression", ["1", '"text with spaces"', "A1 * (B2 - 3)"])
def test_set_round_trip(cell, expression):
    command = parse_command(f"set {cell} {expression}")
    assert isinstance(command, SetCommand)
    assert str(command.identifier) == cell
    assert command.expression == expression


@pytest.mark.parametrize(
    "text",
    ["", "   ", "get", "get A1 B2", "set A1", "set", "put A1 1", "get a1", "set 1A 2", "GET A1"],
)
def test_invalid_commands(text):
    with pytest.raises(CommandError):
        parse_command(text)


def test_command_error_is_value_error():
    with pytest.raises(ValueError):
        parse_command("get")