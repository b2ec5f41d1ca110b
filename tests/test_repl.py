import os

import pytest

from Shell.config import Config
from Shell.repl import handle_line, prompt, run_repl
from main import parse_args

pytestmark = pytest.mark.skipif(os.name == "nt", reason="uses POSIX utilities")


def feed(*lines):
    pending = list(lines)

    def read_line(_prompt):
        if not pending:
            raise EOFError
        item = pending.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    return read_line


def test_prompt_shows_working_directory(session):
    assert prompt(session).endswith(f"@:{session.cwd}$ > ")


def test_blank_line_runs_nothing(session):
    assert handle_line(session, "   ") is None


def test_missing_redirection_file_is_reported(session, capfd):
    assert handle_line(session, "echo hi >") is None
    assert "redirection error: missing file after '>'" in capfd.readouterr().err


def test_parse_error_is_reported(session, capfd):
    assert handle_line(session, "echo 'unterminated") is None
    assert "parse error: no closing quotation" in capfd.readouterr().err


def test_loop_runs_commands_until_exit(session, capfd):
    (session.cwd / "proj").mkdir()
    status = run_repl(session, read_line=feed("echo hi | cat", "cd proj", "pwd -P", "exit", "echo never"))
    assert status == 0
    out = capfd.readouterr().out
    assert "hi\n" in out
    assert str(session.cwd) + "\n" in out
    assert session.cwd.name == "proj"
    assert "never" not in out
    assert "Goodbye!" in out


def test_loop_survives_errors_and_interrupts(session, capfd):
    status = run_repl(session, read_line=feed(
        "no-such-program-xyz",
        KeyboardInterrupt(),
        "cd nowhere",
        "cat < missing.txt",
        "| cat",
        "echo still alive",
    ))
    assert status == 0
    captured = capfd.readouterr()
    assert "still alive" in captured.out
    assert "failed to execute" in captured.err
    assert "cd: directory not found: nowhere" in captured.err


def test_background_job_reported_when_done(session, capfd):
    run_repl(session, read_line=feed("sh -c 'exit 0' &", "sleep 0.5"))
    assert "done: sh -c exit 0 (exit 0)" in capfd.readouterr().out


def test_exit_terminates_background_jobs(session):
    run_repl(session, read_line=feed("sleep 30 &", "exit"))
    assert len(session.jobs) == 0


def test_history_is_saved(session, tmp_path):
    pytest.importorskip("readline")
    session.config = Config(history_file=str(tmp_path / "hist"), use_history=True)
    run_repl(session, read_line=feed("exit"))
    assert (tmp_path / "hist").exists()


def test_cli_flags():
    opts = parse_args(["--debug", "--no-history"])
    assert opts.debug and opts.no_history
    assert not parse_args([]).debug


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("MINISHELL_HISTORY_SIZE", "50")
    monkeypatch.setenv("MINISHELL_RELAY_CHUNK", "not-a-number")
    monkeypatch.setenv("MINISHELL_TERMINATE_BG", "no")
    monkeypatch.setenv("MINISHELL_LOG_LEVEL", "debug")
    config = Config.from_env()
    assert config.history_size == 50
    assert config.relay_chunk == 1024
    assert config.terminate_background_on_exit is False
    assert config.log_level == "DEBUG"
