import logging

from Shell.model import ErrorKind, ExecutionResult

logger = logging.getLogger(__name__)


def builtin_cd(session, command):
    """Change the session's working directory. No process is spawned."""
    argv = command.argv
    target = argv[1] if len(argv) > 1 else session.home
    target = session.expand_home(target)

    new_dir = session.resolve(target)
    try:
        new_dir = new_dir.resolve(strict=False)
    except (OSError, RuntimeError) as e:
        session.report(f"cd: cannot access directory: {e}")
        return ExecutionResult(exit_code=1, error=ErrorKind.IO)

    if new_dir.is_dir():
        logger.debug("cd %s -> %s", session.cwd, new_dir)
        session.cwd = new_dir
        return ExecutionResult(exit_code=0)

    session.report(f"cd: directory not found: {target}")
    return ExecutionResult(exit_code=1, error=ErrorKind.NOT_FOUND)


BUILTINS = {
    "cd": builtin_cd,
}


def is_builtin(line):
    return len(line.commands) == 1 and line.commands[0].name in BUILTINS


def execute_builtin(session, line):
    command = line.commands[0]
    return BUILTINS[command.name](session, command)
