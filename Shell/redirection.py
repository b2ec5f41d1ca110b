"""Decides how each stage's standard streams are wired.

Only the first stage may read from the line's input file, and only the last
stage may write to the line's output/error files. Interior stages always talk
through pipes.
"""
from __future__ import annotations

import subprocess
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Optional

INHERIT = "inherit"
FILE = "file"
PIPE = "pipe"


@dataclass(frozen=True)
class StreamPlan:
    stdin: str
    stdout: str
    stderr: str
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    append: bool = False
    error_path: Optional[str] = None


def plan_stage(line, index: int) -> StreamPlan:
    first = index == 0
    last = index == len(line.commands) - 1

    if first and line.redirect_input:
        stdin = FILE
    elif first:
        stdin = INHERIT
    else:
        stdin = PIPE

    if not last:
        stdout = PIPE
    elif line.redirect_output:
        stdout = FILE
    else:
        stdout = INHERIT

    stderr = FILE if last and line.redirect_error else INHERIT

    return StreamPlan(
        stdin=stdin,
        stdout=stdout,
        stderr=stderr,
        input_path=line.redirect_input if stdin == FILE else None,
        output_path=line.redirect_output if stdout == FILE else None,
        append=line.append_output if stdout == FILE else False,
        error_path=line.redirect_error if stderr == FILE else None,
    )


def plan_line(line) -> list[StreamPlan]:
    return [plan_stage(line, i) for i in range(len(line.commands))]


def blocks(line) -> bool:
    """Whether the caller waits for the line to finish."""
    return not line.background


class RedirectionError(OSError):
    """A redirection target could not be opened."""

    def __init__(self, path, cause):
        super().__init__(f"cannot open {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


def open_input(session, path):
    target = session.resolve(path)
    try:
        return open(target, "rb")
    except OSError as e:
        raise RedirectionError(path, e) from e


def open_output(session, path, append=False):
    target = session.resolve(path)
    try:
        return open(target, "ab" if append else "wb")
    except OSError as e:
        raise RedirectionError(path, e) from e


class StageFiles:
    """Opened redirection files for one stage; closes them on exit."""

    def __init__(self, session, plan: StreamPlan):
        self.session = session
        self.plan = plan
        self.stdin = None
        self.stdout = None
        self.stderr = None
        self._stack = ExitStack()

    def __enter__(self):
        try:
            if self.plan.input_path:
                self.stdin = self._stack.enter_context(open_input(self.session, self.plan.input_path))
            if self.plan.output_path:
                self.stdout = self._stack.enter_context(
                    open_output(self.session, self.plan.output_path, self.plan.append))
            if self.plan.error_path:
                self.stderr = self._stack.enter_context(open_output(self.session, self.plan.error_path))
        except RedirectionError:
            self._stack.close()
            raise
        return self

    def __exit__(self, *exc):
        self._stack.close()
        return False

    def popen_streams(self, pipe_stdin=False, pipe_stdout=False):
        """Arguments for subprocess.Popen: a file, PIPE, or None (inherit)."""
        stdin = self.stdin
        if self.plan.stdin == PIPE or pipe_stdin:
            stdin = subprocess.PIPE
        stdout = self.stdout
        if self.plan.stdout == PIPE or pipe_stdout:
            stdout = subprocess.PIPE
        return {"stdin": stdin, "stdout": stdout, "stderr": self.stderr}
