import io
import os
import signal
import subprocess
import sys
import time

import pytest

from tinysys.interpreter import Command
from tinysys.runtime import (
    Runtime,
    expand_tilde,
    file_exists,
    is_builtin,
    resolve_external,
    strip_background,
)

EXE = sys.executable


def make_runtime(tmp_path, **extra):
    environ = {"PATH": "", "HOME": str(tmp_path)}
    environ.update(extra)
    out = io.StringIO()
    return Runtime(environ, out), out


def test_file_exists(tmp_path):
    target = tmp_path / "here"
    target.write_text("x")
    assert file_exists(str(target)) is True
    assert file_exists(str(tmp_path / "missing")) is False


@pytest.mark.parametrize("name", ["cd", "jobs", "fg", "bg", "alias", "unalias"])
def test_builtins(name):
    assert is_builtin(name) is True


@pytest.mark.parametrize("name", ["ls", "exit", "echo"])
def test_not_builtins(name):
    assert is_builtin(name) is False


def test_strip_background_separate_word():
    command, bg = strip_background(Command(["sleep", "1", "&"]))
    assert bg is True
    assert command.args == ["sleep", "1"]


def test_strip_background_attached():
    command, bg = strip_background(Command(["sleep", "1&"]))
    assert bg is True
    assert command.args == ["sleep", "1"]


def test_strip_background_absent():
    command, bg = strip_background(Command(["ls", "-l"]))
    assert bg is False
    assert command.args == ["ls", "-l"]


def test_expand_tilde_first_only():
    home = "/h"
    assert expand_tilde(["ls", "~/x", "a~b~"], home) == ["ls", home + "/x", "a" + home + "b~"]


def test_resolve_external(tmp_path, monkeypatch):
    empty = tmp_path / "empty"
    empty.mkdir()
    bindir = tmp_path / "bin"
    bindir.mkdir()
    (bindir / "tinysys_prog").write_text("")
    monkeypatch.chdir(empty)
    search = f"{tmp_path / 'nowhere'}::{bindir}"
    assert resolve_external("tinysys_prog", search) == f"{bindir}/tinysys_prog"
    assert resolve_external("tinysys_absent", search) is None
    assert resolve_external("", search) is None
    assert resolve_external(EXE, "") == EXE


def test_unknown_command_reported(tmp_path):
    runtime, out = make_runtime(tmp_path)
    runtime.run(Command(["nosuchcmd"]))
    assert out.getvalue() == "/bin/bash: line 6: nosuchcmd: command not found\n"


def test_exit_is_silent(tmp_path):
    runtime, out = make_runtime(tmp_path)
    runtime.run(Command(["exit"]))
    assert out.getvalue() == ""


def test_alias_define_and_list(tmp_path):
    runtime, out = make_runtime(tmp_path)
    runtime.run(Command(["alias", "ll=ls -l"]))
    runtime.run(Command(["alias"]))
    assert out.getvalue() == "alias ll='ls -l'\n"


def test_unalias_messages(tmp_path):
    runtime, out = make_runtime(tmp_path)
    runtime.run(Command(["unalias", "foo"]))
    runtime.run(Command(["unalias"]))
    assert out.getvalue() == (
        "/bin/bash: line 3: unalias: foo: not found\n"
        "unalias requires exactly one arg.\n"
    )


def test_unalias_removes(tmp_path):
    runtime, out = make_runtime(tmp_path)
    runtime.run(Command(["alias", "k=x"]))
    runtime.run(Command(["unalias", "k"]))
    runtime.run(Command(["alias"]))
    assert out.getvalue() == ""


def test_cd_variants(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    sub = tmp_path / "sub"
    sub.mkdir()
    runtime, out = make_runtime(tmp_path)
    runtime.run(Command(["cd", str(sub)]))
    assert os.getcwd() == str(sub)
    runtime.run(Command(["cd"]))
    assert os.getcwd() == str(tmp_path)
    runtime.run(Command(["cd", "~/sub"]))
    assert os.getcwd() == str(sub)
    runtime.run(Command(["cd", str(tmp_path / "nope")]))
    assert out.getvalue() == "Directory could not be found.\n"


def test_fg_bg_without_jobs(tmp_path):
    runtime, out = make_runtime(tmp_path)
    runtime.run(Command(["fg"]))
    runtime.run(Command(["fg", "3"]))
    runtime.run(Command(["bg", "2"]))
    runtime.run(Command(["fg", "1", "2"]))
    assert out.getvalue() == (
        "fg: current: no such job\n"
        "fg: 3: no such job\n"
        "bg: 2: no such job\n"
        "Error: fg takes max one argument\n"
        "fg: current: no such job\n"
    )


def test_foreground_program_with_tilde_and_env(tmp_path):
    runtime, _ = make_runtime(tmp_path, FOO="bar")
    code = "import os, sys; open(sys.argv[1], 'w').write(os.environ['FOO'])"
    runtime.run(Command([EXE, "-c", code, "~/out.txt"]))
    assert (tmp_path / "out.txt").read_text() == "bar"
    assert runtime.fg_pid == 0


def test_pipeline(tmp_path):
    runtime, _ = make_runtime(tmp_path)
    target = tmp_path / "piped"
    runtime.run_pipeline([
        Command([EXE, "-c", "print('hello')"]),
        Command([EXE, "-c", "import sys; open(sys.argv[1], 'w').write(sys.stdin.read())", str(target)]),
    ])
    assert target.read_text() == "hello\n"


def test_background_job_reported_done(tmp_path):
    runtime, out = make_runtime(tmp_path)
    runtime.run(Command([EXE, "-c", "pass", "&"]))
    assert len(runtime.jobs) == 1
    deadline = time.monotonic() + 15
    while len(runtime.jobs) and time.monotonic() < deadline:
        runtime.check_jobs()
        time.sleep(0.05)
    assert len(runtime.jobs) == 0
    assert out.getvalue().startswith("[1] Done ")


def test_jobs_lists_running_job(tmp_path):
    runtime, out = make_runtime(tmp_path)
    runtime.run(Command([EXE, "-c", "import time; time.sleep(30)", "&"]))
    pid = runtime.jobs.newest.pid
    try:
        runtime.run(Command(["jobs"]))
        text = out.getvalue()
        assert text.startswith("[1] Running ")
        assert text.endswith(" &\n")
        runtime.run(Command(["bg", "1"]))
        assert len(runtime.jobs) == 1
    finally:
        os.kill(pid, signal.SIGKILL)
        os.waitpid(pid, 0)


def test_stopped_program_becomes_job_and_fg_resumes(tmp_path):
    runtime, out = make_runtime(tmp_path)
    code = "import os, signal; os.kill(os.getpid(), signal.SIGSTOP)"
    runtime.run(Command([EXE, "-c", code]))
    assert len(runtime.jobs) == 1
    assert out.getvalue().startswith("[1] Stopped ")
    pid = runtime.jobs.newest.pid
    runtime.run(Command(["fg"]))
    assert len(runtime.jobs) == 0
    assert runtime.fg_pid == 0
    with pytest.raises(ChildProcessError):
        os.waitpid(pid, 0)


def test_sigint_goes_to_foreground(tmp_path):
    runtime, _ = make_runtime(tmp_path)
    proc = subprocess.Popen([EXE, "-c", "import time; time.sleep(30)"], process_group=0)
    runtime.fg_pid = proc.pid
    runtime.fg_command = Command(["sleeper"])
    runtime.handle_signal(signal.SIGINT)
    assert runtime.fg_pid == 0
    assert proc.wait(timeout=15) == -signal.SIGINT


def test_sigtstp_makes_job(tmp_path):
    runtime, _ = make_runtime(tmp_path)
    proc = subprocess.Popen([EXE, "-c", "import time; time.sleep(30)"], process_group=0)
    try:
        runtime.fg_pid = proc.pid
        runtime.fg_command = Command(["sleeper"])
        runtime.handle_signal(signal.SIGTSTP)
        assert runtime.fg_pid == 0
        assert [job.pid for job in runtime.jobs] == [proc.pid]
        assert runtime.jobs.newest.command.args == ["sleeper"]
    finally:
        proc.kill()
        os.kill(proc.pid, signal.SIGCONT)
        proc.wait(timeout=15)