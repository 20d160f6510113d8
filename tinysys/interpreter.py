"""Command-line parsing and dispatch for the shell."""

from __future__ import annotations

import os
import string
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Protocol

_QUOTES = ("'", '"')
_ESCAPE = "\\"
_NAME_CHARS = frozenset(string.ascii_uppercase + string.digits)
_ENV_FIELD = 64


class _Runner(Protocol):
    def run(self, command: Command) -> None: ...

    def run_pipeline(self, commands: list[Command]) -> None: ...


@dataclass
class Command:
    """One parsed command: its words, the first being the program name."""

    args: list[str] = field(default_factory=list)

    @property
    def name(self) -> str | None:
        return self.args[0] if self.args else None

    @property
    def argc(self) -> int:
        return len(self.args)


def _finish_word(word: str, environ: MutableMapping[str, str]) -> str:
    """Replace a word that starts with ``$`` by the variable's value."""
    if word.startswith("$"):
        name = word[1:]
        value = environ.get(name) if name else None
        return value if value is not None else ""
    return word


def parse_command(line: str, environ: MutableMapping[str, str] | None = None) -> Command:
    """Split ``line`` into words, honouring quotes and backslash escapes.

    Words are separated by spaces. A word that begins with ``$`` is replaced
    by the value of that environment variable, or by an empty string.
    """
    env = os.environ if environ is None else environ
    args: list[str] = []
    word: list[str] = []
    in_word = False
    quote = ""
    escape = False

    for char in line:
        if char == " ":
            if not in_word:
                continue
            if not quote:
                args.append(_finish_word("".join(word), env))
                word.clear()
                in_word = False
                continue

        in_word = True

        if char in _QUOTES:
            if escape and quote and char == quote:
                word.append(char)
                escape = False
                continue
            if not quote:
                quote = char
                continue
            if char == quote:
                quote = ""
                continue

        if char == _ESCAPE and escape:
            escape = False
            word.append(_ESCAPE)
            continue

        if escape:
            if quote:
                word.append(_ESCAPE)
            escape = False

        if char == _ESCAPE:
            escape = True
            continue

        word.append(char)

    if word:
        args.append(_finish_word("".join(word), env))

    return Command(args)


def split_pipeline(line: str, environ: MutableMapping[str, str] | None = None) -> list[Command]:
    """Split ``line`` at every ``|`` and parse each part as a command."""
    return [parse_command(part, environ) for part in line.split("|")]


def is_comment(command: Command) -> bool:
    """Tell whether the command's first word starts with ``#``."""
    return bool(command.args) and command.args[0].startswith("#")


def handle_environment(command: Command, environ: MutableMapping[str, str] | None = None) -> bool:
    """Apply a ``NAME=value`` assignment; return whether the command was one.

    The name may hold only upper-case letters and digits. ``NAME=`` removes
    the variable.
    """
    env = os.environ if environ is None else environ
    if command.argc != 1:
        return False

    text = command.args[0]
    tokens = [token for token in text.split("=") if token]
    if not tokens:
        return False

    valid = len(tokens) == 2
    unset = False
    if text.endswith("=") and len(tokens) == 1:
        valid = True
        unset = True

    name = tokens[0][:_ENV_FIELD]
    if not all(char in _NAME_CHARS for char in name):
        valid = False

    if valid and not unset:
        env[name] = tokens[1][:_ENV_FIELD]
    elif valid:
        env.pop(name, None)
    return valid


def interpret(
    line: str,
    runtime: _Runner,
    environ: MutableMapping[str, str] | None = None,
) -> None:
    """Parse one command line and hand it to ``runtime`` to run.

    Comments are ignored and variable assignments are applied to the
    environment instead of being run.
    """
    if "|" in line:
        runtime.run_pipeline(split_pipeline(line, environ))
        return
    command = parse_command(line, environ)
    if is_comment(command):
        return
    if handle_environment(command, environ):
        return
    runtime.run(command)