"""Connection handling and the command-line entry point."""

from __future__ import annotations

import argparse
import logging
import socket
import sys
import threading
from typing import Any, Protocol, TextIO

from rsheet.sheet import ErrorReply, Reply, Spreadsheet

logger = logging.getLogger(__name__)


class ConnectionClosed(Exception):
    """Raised when the other side of a connection has gone away."""


class _Reader(Protocol):
    def read_message(self) -> str: ...


class _Writer(Protocol):
    def write_message(self, reply: Reply) -> None: ...


class _StreamReader:
    """Reads one message per line from a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def read_message(self) -> str:
        try:
            line = self._stream.readline()
        except (ConnectionResetError, ValueError) as error:
            raise ConnectionClosed from error
        if not line:
            raise ConnectionClosed
        return line.rstrip("\r\n")


class _StreamWriter:
    """Writes one reply per line to a text stream."""

    def __init__(self, stream: TextIO, mark_mode: bool = False) -> None:
        self._stream = stream
        self._mark_mode = mark_mode

    def write_message(self, reply: Reply) -> None:
        if self._mark_mode and isinstance(reply, ErrorReply):
            text = "Error"
        else:
            text = str(reply)
        try:
            self._stream.write(text + "\n")
            self._stream.flush()
        except (BrokenPipeError, ConnectionResetError, ValueError) as error:
            raise ConnectionClosed from error


class TerminalManager:
    """Hands out a single connection over the terminal's input and output."""

    def __init__(
        self, stdin: TextIO | None = None, stdout: TextIO | None = None, mark_mode: bool = False
    ) -> None:
        self._stdin = sys.stdin if stdin is None else stdin
        self._stdout = sys.stdout if stdout is None else stdout
        self._mark_mode = mark_mode
        self._handed_out = False

    def accept_new_connection(self) -> tuple[_StreamReader, _StreamWriter] | None:
        """Return the terminal connection the first time, then None."""
        if self._handed_out:
            return None
        self._handed_out = True
        return _StreamReader(self._stdin), _StreamWriter(self._stdout, self._mark_mode)


class ConnectionManager:
    """Accepts TCP connections, one line per message."""

    def __init__(self, host: str, port: int) -> None:
        self._listener = socket.create_server((host, port))
        self.address = self._listener.getsockname()[:2]

    def __enter__(self) -> ConnectionManager:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._listener.close()

    def accept_new_connection(self) -> tuple[_StreamReader, _StreamWriter] | None:
        """Wait for the next client; None once the listener is closed."""
        try:
            connection, peer = self._listener.accept()
        except OSError:
            return None
        logger.info("new connection from %s", peer)
        reader = connection.makefile("r", encoding="utf-8", newline="")
        writer = connection.makefile("w", encoding="utf-8", newline="")
        connection.close()
        return _StreamReader(reader), _StreamWriter(writer)


def handle_connection(reader: _Reader, writer: _Writer, sheet: Spreadsheet) -> None:
    """Serve one connection until either side closes it."""
    while True:
        try:
            message = reader.read_message()
        except ConnectionClosed:
            return
        reply = sheet.handle(message)
        if reply is None:
            continue
        try:
            writer.write_message(reply)
        except ConnectionClosed:
            return


def start_server(manager: Any) -> None:
    """Serve every connection the manager accepts on one shared sheet.

    The first error raised by a connection is raised again once all
    connections have finished.
    """
    sheet = Spreadsheet()
    failures: list[BaseException] = []
    threads: list[threading.Thread] = []

    def serve(reader: _Reader, writer: _Writer) -> None:
        try:
            handle_connection(reader, writer, sheet)
        except Exception as error:
            failures.append(error)

    while (connection := manager.accept_new_connection()) is not None:
        reader, writer = connection
        thread = threading.Thread(target=serve, args=(reader, writer), daemon=True)
        thread.start()
        threads.append(thread)

    for thread in threads:
        thread.join()
    if failures:
        raise failures[0]


def _resolve_address(text: str) -> tuple[str, int]:
    host, separator, port = text.rpartition(":")
    if not separator or not port.isdigit():
        raise ValueError(f"invalid address {text!r}, expected HOST:PORT")
    number = int(port)
    if number > 65535:
        raise ValueError(f"invalid port {number}")
    return host.strip("[]") or "localhost", number


def main(argv: list[str] | None = None) -> int:
    """Run the spreadsheet server on the terminal or on a network address."""
    parser = argparse.ArgumentParser(prog="rsheet", description="A shared spreadsheet server.")
    parser.add_argument("addr", nargs="?", help="address to listen on, as HOST:PORT")
    parser.add_argument(
        "-m", "--mark-mode", action="store_true", help="hide the contents of error messages"
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    if args.addr is not None:
        try:
            host, port = _resolve_address(args.addr)
        except ValueError as error:
            parser.error(str(error))
        with ConnectionManager(host, port) as manager:
            start_server(manager)
    else:
        start_server(TerminalManager(sys.stdin, sys.stdout, args.mark_mode))
    return 0