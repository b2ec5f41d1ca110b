import getpass
import logging

from Shell.executor import execute
from Shell.history import History
from Shell.model import ParseErrorKind
from Shell.tokenizer import tokenize

logger = logging.getLogger(__name__)


def get_user():
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "user"


def prompt(session):
    return f"{get_user()}@:{session.cwd}$ > "


def handle_line(session, line):
    """
    Tokenize and execute one input line.
    Returns: ExecutionResult, or None when nothing ran
    """
    parsed = tokenize(line)
    if not parsed.ok:
        if parsed.error.kind == ParseErrorKind.MISSING_FILE:
            session.report(f"redirection error: {parsed.error.message}")
        else:
            session.report(f"parse error: {parsed.error.message}")
        return None
    if parsed.line is None:
        return None
    logger.debug("executing: %s", parsed.line)
    return execute(session, parsed.line)


def run_repl(session, read_line=input):
    """Main shell loop. Returns the interpreter's exit status."""
    config = session.config
    history = History(config.history_file, config.history_size)
    if config.use_history:
        history.init_readline()
        history.load()

    try:
        while True:
            session.jobs.reap(out=session.stdout)
            try:
                line = read_line(prompt(session)).strip()
            except EOFError:
                print(file=session.stdout)
                break
            except KeyboardInterrupt:
                print(file=session.stdout)
                continue

            if not line:
                continue
            if line == "exit":
                print("Goodbye!", file=session.stdout)
                break

            session.interrupted = False
            handle_line(session, line)
    finally:
        if config.use_history:
            history.save()
        if config.terminate_background_on_exit:
            session.jobs.terminate_all(out=session.stdout)
    return 0
