"""Small helper programs for exercising job control in the shell."""

from __future__ import annotations

import os
import re
import signal
import sys
import time

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _seconds(program: str, argv: list[str] | None) -> int | None:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        sys.stderr.write(f"Usage: {program} <n>\n")
        return None
    return _atoi(args[0])


def _spin(secs: int) -> None:
    for _ in range(secs):
        time.sleep(1)


def myspin_main(argv: list[str] | None = None) -> int:
    """Sleep for the given number of seconds in one-second steps."""
    secs = _seconds("myspin", argv)
    if secs is not None:
        _spin(secs)
    return 0


def mysplit_main(argv: list[str] | None = None) -> int:
    """Fork a child that sleeps for the given number of seconds and wait for it."""
    secs = _seconds("mysplit", argv)
    if secs is None:
        return 0
    pid = os.fork()
    if pid == 0:
        try:
            _spin(secs)
        finally:
            os._exit(0)
    os.waitpid(pid, 0)
    return 0


def mystop_main(argv: list[str] | None = None) -> int:
    """Sleep for the given number of seconds, then stop the own process group."""
    secs = _seconds("mystop", argv)
    if secs is None:
        return 0
    _spin(secs)
    try:
        os.kill(-os.getpid(), signal.SIGTSTP)
    except OSError:
        sys.stderr.write("kill (tstp) error")
    return 0