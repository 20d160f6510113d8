# tinysys

tinysys is a tiny interactive shell with job control. It also has three
small helper programs for trying out that job control.

It needs Python 3.11 or newer on a POSIX system. Job states are read from
`/proc`, so `jobs` reports them properly only on Linux. There are no
third-party dependencies.

## Installing

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## The shell

Start it with:

```
tsh
```

On startup the shell runs each line of `~/.tshrc`, if that file exists. It then
reads commands one line at a time. It stops when it reads `exit` or reaches the
end of its input.

What it understands:

* **Words and quoting.** Words are split on spaces. Single and double quotes
  group words. A backslash escapes a quote or another backslash. A word that
  starts with `$` is replaced by the value of that environment variable, or by
  an empty word if the variable is not set.
* **Comments.** A line whose first word starts with `#` is ignored.
* **Environment assignments.** A line made of a single `NAME=value` word sets
  the variable. The name may use only upper-case letters and digits.
  `NAME=` removes the variable.
* **Pipelines.** `cmd1 | cmd2 | cmd3` connects each command's output to the
  next command's input.
* **Programs.** A command is looked up as given, then in each directory of
  `PATH`. A `~` in an argument is replaced by `$HOME`. If the program cannot be
  found, a "command not found" message is printed.
* **Background jobs.** A trailing `&`, either as a word of its own or at the
  end of the last word, starts the command in the background. Finished
  background jobs are reported before the next command runs.
* **Suspending and interrupting.** Ctrl-Z stops the foreground job and adds it
  to the job list. Ctrl-C interrupts the foreground job.
* **Built-in commands:**
  * `cd [dir]`: with no argument, or with a leading `~`, it uses `$HOME`.
  * `jobs` lists the background jobs with their number and state.
  * `fg [n]` continues job `n`, or the newest job, in the foreground.
  * `bg [n]` continues job `n`, or the newest job, in the background.
  * `alias` lists the aliases in name order. `alias name='text'` defines one.
  * `unalias name` removes an alias.
* **Prompt.** If `PS1` is set, it is shown before each command. These escapes
  are expanded in it:
  * `\u`: the user (`$USER`)
  * `\h`: the host name, cut at the first dot
  * `\w`: the working directory
  * `\t`: the time as HH:MM:SS

Example session:

```
PS1='\u@\h:\w$ '
alias ll='ls -l'
ll | wc -l
myspin 5 &
jobs
fg 1
```

### Helper programs for testing job control

* `myspin N` sleeps for N seconds, one second at a time.
* `mysplit N` forks a child that sleeps for N seconds, then waits for the child.
* `mystop N` sleeps for N seconds, then sends SIGTSTP to its own process group.

Each prints a usage line and exits if it is not given exactly one argument.

## Using the pieces from Python

The shell is built from modules that can be used on their own:

* `tinysys.interpreter`: `parse_command`, `split_pipeline`, `is_comment`,
  `handle_environment` and `interpret`, plus the `Command` class.
* `tinysys.jobs`: `JobTable`, `AliasTable`, `job_status` and `format_job`.
* `tinysys.runtime`: the `Runtime` class, which runs commands, and helpers
  such as `resolve_external`, `strip_background` and `expand_tilde`.
* `tinysys.tsh`: the `Shell` class and `translate_prompt`.
* `tinysys.shell_io`: `read_command_line` and small output helpers.

```python
import io

from tinysys.interpreter import parse_command
from tinysys.tsh import Shell

print(parse_command('echo "hello world" \\"x\\"').args)
# ['echo', 'hello world', '"x"']

env = {"HOME": "/tmp", "PATH": "/bin:/usr/bin"}
out = io.StringIO()
shell = Shell(environ=env, stdin=io.StringIO("GREETING=hi\nalias\nexit\n"), stdout=out)
shell.run()
print(env["GREETING"])  # hi
```

## What it does not do

* There is no input or output redirection to files: `<` and `>` are passed to
  programs as ordinary words.
* There is no `&&`, `||`, `;`, globbing or scripting language. Each line is
  one command or one pipeline.
* The package has no disk or file system simulator. It is only the shell and
  its helper programs.