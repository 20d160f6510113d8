"""The shell's main loop, start-up file and prompt."""

from __future__ import annotations

import os
import re
import signal
import socket
import sys
from collections.abc import MutableMapping
from datetime import datetime
from pathlib import Path
from typing import TextIO

from .interpreter import interpret
from .runtime import Runtime
from .shell_io import print_error, read_command_line

SHELL_NAME = "tsh"
RC_FILE = ".tshrc"

_PROMPT_ESCAPE = re.compile(r"\\([uhwt])")


def translate_prompt(prompt: str, user: str, host: str, cwd: str, now: datetime) -> str:
    """Expand ``\\u``, ``\\h``, ``\\w`` and ``\\t`` in a prompt.

    The host name is cut at its first dot; the time is shown as HH:MM:SS.
    Any other backslash is kept as it is.
    """
    short_host = next((part for part in host.split(".") if part), "")
    values = {"u": user, "h": short_host, "w": cwd, "t": now.strftime("%H:%M:%S")}
    return _PROMPT_ESCAPE.sub(lambda match: values[match.group(1)], prompt)


class Shell:
    """Reads command lines and runs them until told to exit."""

    def __init__(
        self,
        environ: MutableMapping[str, str] | None = None,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.stdin = stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.runtime = Runtime(self.environ, self.stdout)
        self.force_exit = False

    def initialize(self) -> None:
        """Run every line of the start-up file in the home directory, if any."""
        home = self.environ.get("HOME")
        if not home:
            return
        try:
            handle = open(Path(home) / RC_FILE, encoding="utf-8", errors="replace")
        except OSError:
            return
        with handle:
            for line in handle:
                interpret(line[:-1] if line.endswith("\n") else line, self.runtime, self.environ)

    def prompt(self) -> str | None:
        """Return the expanded ``PS1`` prompt, or ``None`` when it is not set."""
        ps1 = self.environ.get("PS1")
        if ps1 is None:
            return None
        return translate_prompt(
            ps1,
            self.environ.get("USER", ""),
            socket.gethostname(),
            os.getcwd(),
            datetime.now(),
        )

    def step(self, line: str) -> bool:
        """Handle one command line; return whether the shell keeps going."""
        if line == "exit":
            self.force_exit = True
        if not self.force_exit and not line.startswith("sleep") and self.runtime.fg_pid == 0:
            self.runtime.check_jobs()
        interpret(line, self.runtime, self.environ)
        return not self.force_exit

    def run(self) -> int:
        """Prompt, read and run lines until ``exit`` or end of input."""
        while not self.force_exit:
            text = self.prompt()
            if text is not None:
                self.stdout.write(text)
                self.stdout.flush()
            line = read_command_line(self.stdin)
            if line is None:
                break
            self.step(line)
        return 0


def main(argv: list[str] | None = None) -> int:
    """Start an interactive shell on standard input and output."""
    shell = Shell()

    def on_signal(signo: int, frame: object) -> None:
        shell.runtime.handle_signal(signo)

    previous = {}
    for signo in (signal.SIGCHLD, signal.SIGINT, signal.SIGTSTP):
        try:
            previous[signo] = signal.signal(signo, on_signal)
        except (OSError, ValueError):
            print_error(signal.Signals(signo).name)
    try:
        shell.initialize()
        return shell.run()
    finally:
        for signo, handler in previous.items():
            signal.signal(signo, handler)


if __name__ == "__main__":
    sys.exit(main())