"""Background job bookkeeping and command aliases for the shell."""

from __future__ import annotations

import enum
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from .interpreter import Command

PROC_ROOT = Path("/proc")


class JobState(enum.IntEnum):
    """What a background job is doing, as seen in the process table."""

    ZOMBIE = -1
    RUNNING = 0
    STOPPED = 1
    DONE = 2


_STATE_LABELS = {
    JobState.RUNNING: "Running",
    JobState.STOPPED: "Stopped",
    JobState.DONE: "Done",
    JobState.ZOMBIE: "Zombie",
}


@dataclass
class Job:
    """A job the shell keeps track of: its process, command and job number."""

    pid: int
    command: Command
    number: int


class JobTable:
    """The shell's background jobs, numbered in the order they were started."""

    def __init__(self) -> None:
        self._jobs: list[Job] = []

    def push(self, pid: int, command: Command) -> Job:
        """Record a new job; its number is one more than the newest job's."""
        number = self._jobs[-1].number + 1 if self._jobs else 1
        job = Job(pid, command, number)
        self._jobs.append(job)
        return job

    def pop(self, pid: int) -> Job | None:
        """Remove and return the job running ``pid``, or ``None``."""
        for position, job in enumerate(self._jobs):
            if job.pid == pid:
                return self._jobs.pop(position)
        return None

    def find(self, number: int) -> Job | None:
        """Return the job with ``number``; 0 means the newest job."""
        if number == 0:
            return self._jobs[-1] if self._jobs else None
        return next((job for job in reversed(self._jobs) if job.number == number), None)

    def take(self, number: int) -> Job | None:
        """Remove and return the job with ``number``; 0 means the newest job."""
        job = self.find(number)
        if job is None:
            return None
        return self.pop(job.pid)

    @property
    def newest(self) -> Job | None:
        return self._jobs[-1] if self._jobs else None

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        """Iterate from the oldest job to the newest."""
        return iter(list(self._jobs))


def job_status(pid: int) -> JobState:
    """Look up the state of process ``pid`` in the process table.

    A process that is no longer listed is done. A zombie is reported on
    standard output as it is found.
    """
    status_file = PROC_ROOT / str(pid) / "status"
    try:
        lines = status_file.read_text(errors="replace").splitlines()
    except OSError:
        return JobState.DONE
    state = ""
    for line in lines:
        if line.startswith("State"):
            state = line[7:8]
            break
    if state == "T":
        return JobState.STOPPED
    if state == "Z":
        sys.stdout.write("ZOMBIE\n")
        sys.stdout.flush()
        return JobState.ZOMBIE
    return JobState.RUNNING


def format_job(job: Job, state: JobState) -> str:
    """Describe a job in one line, as the ``jobs`` command shows it."""
    parts = [f"[{job.number}] {_STATE_LABELS[JobState(state)]} "]
    for arg in job.command.args:
        parts.append(f'"{arg}"' if " " in arg else f"{arg} ")
    if state == JobState.RUNNING:
        parts.append(" &")
    return "".join(parts)


@dataclass
class _Alias:
    name: str
    value: str


class AliasTable:
    """Command aliases, kept sorted by name."""

    def __init__(self) -> None:
        self._aliases: list[_Alias] = []

    def define(self, spec: str) -> None:
        """Add an alias from ``name=value``; single quotes in the value are dropped."""
        name, _, value = spec.partition("=")
        value = value.replace("'", "")
        position = next(
            (i for i, alias in enumerate(self._aliases) if not name > alias.name),
            len(self._aliases),
        )
        self._aliases.insert(position, _Alias(name, value))

    def remove(self, name: str) -> None:
        """Remove the alias ``name``; raise ``KeyError`` if there is none."""
        for position, alias in enumerate(self._aliases):
            if alias.name == name:
                del self._aliases[position]
                return
        raise KeyError(name)

    def lookup(self, word: str) -> str:
        """Return what ``word`` stands for, or ``word`` itself."""
        return next((alias.value for alias in self._aliases if alias.name == word), word)

    def resolve(self, command: Command) -> Command:
        """Replace every aliased word of ``command`` by its value, split at spaces.

        A word that itself contains a space stays one word.
        """
        args: list[str] = []
        for arg in command.args:
            replacement = self.lookup(arg)
            if " " in arg:
                args.append(replacement)
            else:
                args.extend(replacement.split(" "))
        return Command(args)

    def listing(self) -> list[str]:
        """Return one ``alias name='value'`` line per alias, in name order."""
        return [f"alias {alias.name}='{alias.value}'" for alias in self._aliases]