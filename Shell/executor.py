import logging
import os
import subprocess
import threading
from contextlib import ExitStack

from Shell.builtin import execute_builtin, is_builtin
from Shell.model import ErrorKind, ExecutionResult
from Shell.redirection import RedirectionError, StageFiles, blocks, plan_line, plan_stage

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127


def build_popen_args(argv, os_name=None):
    """
    cmd.exe cannot exec arbitrary programs by name, so on Windows the argv is
    handed to the command interpreter as one string.
    """
    if (os_name or os.name) == "nt":
        return ["cmd.exe", "/c", " ".join(argv)]
    return list(argv)


def spawn(session, command, stdin=None, stdout=None, stderr=None):
    """
    Start one process in the session's working directory.
    Returns: Popen object or None
    """
    args = build_popen_args(command.argv)
    logger.debug("spawn %s in %s", args, session.cwd)
    try:
        proc = subprocess.Popen(
            args,
            cwd=str(session.cwd),
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
        )
    except OSError as e:
        session.report(f"failed to execute: {command.name} - {e.strerror or e}")
        return None
    logger.debug("spawned pid %d: %s", proc.pid, command)
    return proc


def _detach(session, procs):
    """Hand processes still running after an interrupt to the job registry for reaping."""
    for proc in procs:
        if proc is not None and proc.poll() is None:
            session.jobs.add(proc, " ".join(proc.args))


# ---------- Single command ----------
def run_single(session, line):
    command = line.commands[0]
    try:
        with StageFiles(session, plan_stage(line, 0)) as files:
            proc = spawn(session, command, **files.popen_streams())
    except RedirectionError as e:
        session.report(str(e))
        return ExecutionResult(exit_code=1, error=ErrorKind.IO)

    if proc is None:
        return ExecutionResult(exit_code=COMMAND_NOT_FOUND, error=ErrorKind.SPAWN)

    if not blocks(line):
        session.jobs.add(proc, str(line), out=session.stdout)
        return ExecutionResult(pids=[proc.pid], background=True)

    try:
        code = proc.wait()
    except KeyboardInterrupt:
        session.interrupted = True
        session.report("execution interrupted")
        _detach(session, [proc])
        return ExecutionResult(pids=[proc.pid], error=ErrorKind.INTERRUPTED)

    if code != 0:
        session.report(f"process exited with code {code}")
    return ExecutionResult(exit_code=code, pids=[proc.pid])


# ---------- Pipeline ----------
class Relay(threading.Thread):
    """Copies one stage's stdout into the next stage's stdin until EOF.

    A sink of None means the downstream stage never started; the source is
    closed at once so the upstream process gets SIGPIPE on its next write.
    """

    def __init__(self, source, sink, chunk_size=1024):
        super().__init__(daemon=True)
        self.source = source
        self.sink = sink
        self.chunk_size = chunk_size
        self.error = None
        self.copied = 0

    def run(self):
        try:
            while self.sink is not None:
                data = self.source.read1(self.chunk_size)
                if not data:
                    break
                self.sink.write(data)
                self.sink.flush()
                self.copied += len(data)
        except BrokenPipeError:
            # downstream exited early; upstream gets EPIPE once we close our end
            pass
        except (OSError, ValueError) as e:
            self.error = e
        finally:
            self._close(self.sink)
            self._close(self.source)
        logger.debug("relay finished after %d bytes", self.copied)

    @staticmethod
    def _close(stream):
        if stream is None:
            return
        try:
            stream.close()
        except OSError:
            pass


def _drain(source, sink, console):
    """Copy the last stage's output line by line to a file or the console."""
    if sink is None:
        sink = getattr(console, "buffer", None)
        if sink is not None:
            console.flush()
    for data in iter(source.readline, b""):
        if sink is not None:
            sink.write(data)
        else:
            console.write(data.decode(errors="replace"))
    if sink is not None:
        sink.flush()
    else:
        console.flush()


def run_pipeline(session, line):
    plans = plan_line(line)
    procs = []
    relays = []
    result = ExecutionResult(background=line.background)

    with ExitStack() as stack:
        try:
            stage_files = [stack.enter_context(StageFiles(session, plan)) for plan in plans]
        except RedirectionError as e:
            session.report(str(e))
            return ExecutionResult(exit_code=1, error=ErrorKind.IO)

        last_index = len(plans) - 1
        for i, (command, files) in enumerate(zip(line.commands, stage_files)):
            streams = files.popen_streams(pipe_stdout=(i == last_index and blocks(line)))
            upstream = procs[-1] if procs else None
            if i > 0 and upstream is None:
                # previous stage never started: this one sees end-of-stream
                streams["stdin"] = subprocess.DEVNULL
            proc = spawn(session, command, **streams)
            if upstream is not None:
                relay = Relay(upstream.stdout, proc.stdin if proc else None,
                              session.config.relay_chunk)
                relay.start()
                relays.append(relay)
            procs.append(proc)

        result.pids = [p.pid for p in procs if p is not None]
        if any(p is None for p in procs):
            result.error = ErrorKind.SPAWN

        if not blocks(line):
            for proc in procs[:-1]:
                if proc is not None:
                    session.jobs.add(proc, str(line), quiet=True)
            if procs[-1] is not None:
                session.jobs.add(procs[-1], str(line), out=session.stdout)
            return result

        last = procs[-1]
        try:
            if last is not None:
                _drain(last.stdout, stage_files[-1].stdout, session.stdout)
                last.stdout.close()
                result.exit_code = last.wait()
            else:
                result.exit_code = COMMAND_NOT_FOUND
            for relay in relays:
                relay.join()
            for proc in procs[:-1]:
                if proc is not None:
                    proc.wait()
        except KeyboardInterrupt:
            session.interrupted = True
            session.report("error running pipeline: interrupted")
            _detach(session, procs)
            result.error = ErrorKind.INTERRUPTED
            return result
        except OSError as e:
            session.report(f"error running pipeline: {e}")
            for proc in procs:
                if proc is not None:
                    proc.wait()
            result.error = ErrorKind.IO
            return result

    for relay in relays:
        if relay.error is not None:
            session.report(f"error running pipeline: {relay.error}")
            result.error = result.error or ErrorKind.IO
    if result.exit_code not in (0, None) and last is not None:
        session.report(f"process exited with code {result.exit_code}")
    return result


def execute(session, line):
    """Route a parsed command line to the builtin, single or pipeline executor."""
    if is_builtin(line):
        return execute_builtin(session, line)
    if line.is_pipeline:
        return run_pipeline(session, line)
    return run_single(session, line)
