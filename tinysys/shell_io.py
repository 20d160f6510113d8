"""Console input and output helpers for the shell."""

from __future__ import annotations

import os
import sys
from typing import TextIO

SHELL_NAME = "tsh"
MAX_LINE = 120

_reading = False


def print_message(msg: str) -> None:
    """Write ``msg`` to standard output and flush it."""
    if msg is None:
        raise TypeError("message must not be None")
    sys.stdout.write(msg)
    sys.stdout.flush()


def print_newline() -> None:
    """Write a newline to standard output."""
    sys.stdout.write("\n")


def print_error(msg: str | None) -> None:
    """Report an error on standard error, prefixed with the shell's name.

    The description of the operating-system error currently being handled
    is appended, as a C ``perror`` would append that of ``errno``.
    """
    exc = sys.exc_info()[1]
    if isinstance(exc, OSError) and exc.strerror:
        reason = exc.strerror
    else:
        reason = os.strerror(0)
    prefix = SHELL_NAME if msg is None else f"{SHELL_NAME}: {msg}"[: MAX_LINE - 2]
    sys.stderr.write(f"{prefix}: {reason}\n")
    sys.stderr.flush()


def is_reading() -> bool:
    """Tell whether a command line is being read right now."""
    return _reading


def read_command_line(stream: TextIO | None = None) -> str | None:
    """Read one line, without its newline, from ``stream`` (standard input).

    Returns ``None`` when the stream is at end of file and nothing was read.
    """
    global _reading
    source = stream if stream is not None else sys.stdin
    _reading = True
    try:
        line = source.readline()
    finally:
        _reading = False
    if line == "":
        return None
    return line[:-1] if line.endswith("\n") else line