import os
import subprocess
import time

import pytest

from Shell.executor import build_popen_args, execute, run_single, spawn
from Shell.model import Command, CommandLine, ErrorKind

pytestmark = pytest.mark.skipif(os.name == "nt", reason="uses POSIX utilities")


def test_windows_wraps_argv_for_cmd():
    assert build_popen_args(["dir", "/b"], os_name="nt") == ["cmd.exe", "/c", "dir /b"]
    assert build_popen_args(("ls", "-l"), os_name="posix") == ["ls", "-l"]


def test_foreground_reports_child_status(session, capfd):
    result = run_single(session, CommandLine.of(["sh", "-c", "exit 3"]))
    assert result.exit_code == 3
    assert len(result.pids) == 1
    assert "process exited with code 3" in capfd.readouterr().err


def test_output_is_inherited(session, capfd):
    result = execute(session, CommandLine.of(["echo", "hi"]))
    assert result.exit_code == 0
    assert result.success
    assert capfd.readouterr().out == "hi\n"


def test_child_runs_in_session_directory(session, capfd):
    (session.cwd / "sub").mkdir()
    execute(session, CommandLine.of(["cd", "sub"]))
    execute(session, CommandLine.of(["pwd", "-P"]))
    assert capfd.readouterr().out.strip() == str(session.cwd)


def test_missing_executable(session, capfd):
    result = execute(session, CommandLine.of(["no-such-program-xyz", "arg"]))
    assert result.error == ErrorKind.SPAWN
    assert result.exit_code == 127
    assert "failed to execute: no-such-program-xyz" in capfd.readouterr().err


def test_spawn_returns_none_on_failure(session):
    assert spawn(session, Command(("no-such-program-xyz",))) is None


def test_truncate_discards_previous_contents(session):
    target = session.cwd / "out.txt"
    line = CommandLine.of(["echo", "one"], redirect_output="out.txt")
    execute(session, line)
    execute(session, line)
    assert target.read_text() == "one\n"


def test_append_keeps_previous_contents(session):
    target = session.cwd / "out.txt"
    line = CommandLine.of(["echo", "one"], redirect_output="out.txt", append_output=True)
    execute(session, line)
    size = target.stat().st_size
    execute(session, line)
    assert target.stat().st_size == 2 * size
    assert target.read_text() == "one\none\n"


def test_input_redirection(session):
    (session.cwd / "in.txt").write_text("b\na\n")
    execute(session, CommandLine.of(["sort"], redirect_input="in.txt", redirect_output="out.txt"))
    assert (session.cwd / "out.txt").read_text() == "a\nb\n"


def test_missing_input_file_is_reported(session, capfd):
    result = execute(session, CommandLine.of(["cat"], redirect_input="missing.txt"))
    assert result.error == ErrorKind.IO
    assert result.pids == []
    assert "cannot open missing.txt" in capfd.readouterr().err


def test_error_redirection(session, capfd):
    execute(session, CommandLine.of(["sh", "-c", "echo oops >&2"], redirect_error="err.txt"))
    assert (session.cwd / "err.txt").read_text() == "oops\n"
    assert "oops" not in capfd.readouterr().err


def test_background_returns_immediately(session, capfd):
    start = time.monotonic()
    result = execute(session, CommandLine.of(["sleep", "5"], background=True))
    assert time.monotonic() - start < 2
    assert result.background
    assert result.exit_code is None
    pid = result.pids[0]
    assert pid in session.jobs
    assert f"[{pid}] started in background" in capfd.readouterr().out


def test_interrupted_wait_is_not_fatal(session, monkeypatch, capfd):
    original = subprocess.Popen.wait
    calls = []

    def interrupted_wait(self, timeout=None):
        if not calls:
            calls.append(self.pid)
            raise KeyboardInterrupt
        return original(self, timeout)

    monkeypatch.setattr(subprocess.Popen, "wait", interrupted_wait)
    result = execute(session, CommandLine.of(["sleep", "5"]))
    assert result.error == ErrorKind.INTERRUPTED
    assert session.interrupted
    assert calls[0] in session.jobs
    assert "execution interrupted" in capfd.readouterr().err
