import os
import sys
from pathlib import Path

from Shell.config import Config
from Shell.job_control import BackgroundJobs


class ShellSession:
    """Interpreter state shared by the builtins and the executors.

    The working directory lives here rather than in the OS process so that a
    `cd` never touches os.getcwd() and several sessions can coexist.
    """

    def __init__(self, cwd=None, home=None, config=None, stdout=None, stderr=None):
        self.cwd = Path(cwd).resolve() if cwd else Path(os.getcwd())
        self.home = str(home) if home else os.path.expanduser("~")
        self.config = config or Config()
        self.jobs = BackgroundJobs()
        self.interrupted = False
        self._stdout = stdout
        self._stderr = stderr

    # Console streams are looked up lazily so redirected sys.stdout/sys.stderr
    # (e.g. under test capture) are honoured.
    @property
    def stdout(self):
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def stderr(self):
        return self._stderr if self._stderr is not None else sys.stderr

    def resolve(self, path):
        """Resolve a user supplied path against the tracked working directory."""
        p = Path(self.expand_home(path))
        return p if p.is_absolute() else self.cwd / p

    def expand_home(self, path):
        if path.startswith("~"):
            return self.home + path[1:]
        return path

    def report(self, message):
        print(message, file=self.stderr)
        self.stderr.flush()
