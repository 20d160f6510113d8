"""Running commands for the shell: built-ins, programs, pipelines and jobs."""

from __future__ import annotations

import os
import re
import signal
import subprocess
import sys
from collections.abc import MutableMapping, Sequence
from typing import TextIO

from .interpreter import Command
from .jobs import AliasTable, Job, JobState, JobTable, format_job, job_status
from .shell_io import print_error

BUILTINS = frozenset({"cd", "jobs", "fg", "bg", "alias", "unalias"})

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _send(pid: int, signo: int) -> None:
    try:
        os.kill(pid, signo)
    except ProcessLookupError:
        pass


def file_exists(path: str) -> bool:
    """Tell whether ``path`` names something that can be opened for reading."""
    return bool(path) and os.access(path, os.R_OK)


def is_builtin(name: str) -> bool:
    """Tell whether ``name`` is one of the shell's built-in commands."""
    return name in BUILTINS


def strip_background(command: Command) -> tuple[Command, bool]:
    """Remove a trailing ``&`` from the command; tell whether there was one.

    The ``&`` may be a word of its own or the last character of the last word.
    """
    if not command.args:
        return command, False
    *head, last = command.args
    if last == "&":
        return Command(head), True
    if last.endswith("&"):
        return Command(head + [last[:-1]]), True
    return command, False


def expand_tilde(args: Sequence[str], home: str) -> list[str]:
    """Replace the first ``~`` of every word by ``home``."""
    return [arg.replace("~", home, 1) for arg in args]


def resolve_external(name: str, search_path: str | None) -> str | None:
    """Find the program ``name`` as given or in a ``:``-separated search path."""
    if not name:
        return None
    if file_exists(name):
        return name
    for directory in (search_path or "").split(":"):
        if not directory:
            continue
        candidate = f"{directory}/{name}"
        if file_exists(candidate):
            return candidate
    return None


class Runtime:
    """Runs parsed commands and keeps track of aliases and jobs."""

    def __init__(
        self,
        environ: MutableMapping[str, str] | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.out = out if out is not None else sys.stdout
        self.jobs = JobTable()
        self.aliases = AliasTable()
        self.fg_pid = 0
        self.fg_command: Command | None = None
        self._waiting = 0

    def _write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def _home(self) -> str:
        return self.environ.get("HOME", "")

    def _job_for(self, pid: int) -> Job | None:
        return next((job for job in self.jobs if job.pid == pid), None)

    # ------------------------------------------------------------------

    def run(self, command: Command) -> None:
        """Run one command, built-in or external, after alias substitution."""
        if command.name != "unalias":
            command = self.aliases.resolve(command)
        if not command.args:
            return
        if is_builtin(command.args[0]):
            self.run_builtin(command)
            return
        if resolve_external(command.args[0], self.environ.get("PATH", "")) is None:
            if command.name != "exit":
                self._write(f"/bin/bash: line 6: {command.name}: command not found\n")
            return
        self._execute([command])

    def run_pipeline(self, commands: Sequence[Command]) -> None:
        """Run commands with each one's output fed to the next one's input."""
        self._execute(list(commands))

    def _program_path(self, name: str) -> str:
        return resolve_external(name, self.environ.get("PATH", "")) or name

    def _execute(self, commands: list[Command]) -> None:
        previous = None
        foreground: list[tuple[int, Command]] = []
        last = len(commands) - 1
        for position, original in enumerate(commands):
            command, in_background = strip_background(original)
            if not command.args:
                continue
            program = self._program_path(command.args[0])
            args = expand_tilde(command.args, self._home())
            piped_out = position < last
            process = None
            try:
                process = subprocess.Popen(
                    args,
                    executable=program,
                    stdin=previous,
                    stdout=subprocess.PIPE if piped_out else None,
                    env=dict(self.environ),
                    process_group=0,
                )
            except OSError:
                print_error(args[0])
            finally:
                if previous is not None:
                    previous.close()
            previous = process.stdout if process is not None and piped_out else None
            if process is None:
                continue
            if in_background:
                self.jobs.push(process.pid, Command(args))
            else:
                foreground.append((process.pid, Command(args)))
        if previous is not None:
            previous.close()
        for pid, command in foreground:
            self.fg_pid = pid
            self.fg_command = command
            self.wait_foreground()

    # ------------------------------------------------------------------

    def run_builtin(self, command: Command) -> None:
        """Run one of the built-in commands."""
        name = command.name
        if name == "cd":
            self._change_directory(command)
        elif name == "jobs":
            self._reap()
            for job in self.jobs:
                state = job_status(job.pid)
                self._write(format_job(job, state) + "\n")
                if state == JobState.DONE:
                    self.jobs.pop(job.pid)
        elif name == "fg":
            self.foreground(command)
        elif name == "bg":
            self.background(command)
        elif name == "alias":
            if command.argc == 1:
                for line in self.aliases.listing():
                    self._write(line + "\n")
            else:
                self.aliases.define(command.args[1])
        elif name == "unalias":
            if command.argc == 2:
                try:
                    self.aliases.remove(command.args[1])
                except KeyError:
                    self._write(f"/bin/bash: line 3: unalias: {command.args[1]}: not found\n")
            else:
                self._write("unalias requires exactly one arg.\n")

    def _change_directory(self, command: Command) -> None:
        home = self._home()
        if command.argc == 1:
            path = home
        elif command.args[1].startswith("~"):
            path = home + command.args[1][1:]
        else:
            path = command.args[1]
        try:
            os.chdir(path)
        except OSError:
            self._write("Directory could not be found.\n")

    def _pick_job(self, command: Command, builtin: str, remove: bool) -> Job | None:
        select = self.jobs.take if remove else self.jobs.find
        if command.argc == 1:
            job = select(0)
        elif command.argc == 2:
            job = select(_atoi(command.args[1]))
        else:
            self._write(f"Error: {builtin} takes max one argument\n")
            job = None
        if job is None:
            which = command.args[1] if command.argc == 2 else "current"
            self._write(f"{builtin}: {which}: no such job\n")
        return job

    def foreground(self, command: Command) -> None:
        """Continue a job in the foreground and wait for it."""
        job = self._pick_job(command, "fg", remove=True)
        if job is None:
            return
        self.fg_pid = job.pid
        self.fg_command = job.command
        _send(job.pid, signal.SIGCONT)
        self.wait_foreground()

    def background(self, command: Command) -> None:
        """Continue a stopped job in the background."""
        job = self._pick_job(command, "bg", remove=False)
        if job is not None:
            _send(job.pid, signal.SIGCONT)

    # ------------------------------------------------------------------

    def check_jobs(self) -> None:
        """Report and forget the background jobs that have finished."""
        self._reap()
        for job in self.jobs:
            if job_status(job.pid) == JobState.DONE:
                self._write(format_job(job, JobState.DONE) + "\n")
                self.jobs.pop(job.pid)

    def wait_foreground(self) -> None:
        """Wait until the foreground process exits or stops.

        A process that stops becomes a job and is reported.
        """
        while self.fg_pid:
            pid = self.fg_pid
            command = self.fg_command
            self._waiting = pid
            try:
                _, status = os.waitpid(pid, os.WUNTRACED)
            except ChildProcessError:
                status = None
            finally:
                self._waiting = 0
            if status is not None and os.WIFSTOPPED(status):
                job = self._job_for(pid) or self.jobs.push(pid, command or Command())
                self._write(format_job(job, JobState.STOPPED) + "\n")
            if self.fg_pid == pid:
                self.fg_pid = 0
                self.fg_command = None

    def _reap(self) -> None:
        for job in self.jobs:
            if job.pid == self._waiting:
                continue
            try:
                pid, status = os.waitpid(job.pid, os.WNOHANG | os.WUNTRACED)
            except ChildProcessError:
                continue
            if pid and os.WIFSTOPPED(status):
                self._write(format_job(job, job_status(job.pid)) + "\n")

    def handle_signal(self, signo: int) -> None:
        """React to a signal sent to the shell.

        Children that change state are collected; an interrupt or a stop is
        passed on to the foreground process.
        """
        if signo == signal.SIGCHLD:
            self._reap()
        if not self.fg_pid:
            return
        if signo == signal.SIGTSTP:
            _send(self.fg_pid, signal.SIGTSTP)
            self.jobs.push(self.fg_pid, self.fg_command or Command())
            self.fg_pid = 0
        elif signo == signal.SIGINT:
            _send(-self.fg_pid, signal.SIGINT)
            self.fg_pid = 0
            self.fg_command = None