"""A multi-user spreadsheet server with cell expressions and dependency propagation."""

__version__ = "0.1.0"
__all__ = ["cells", "expr", "commands", "sheet", "server"]