import logging
import subprocess

import psutil

logger = logging.getLogger(__name__)


class BackgroundJobs:
    """Processes started with a trailing &, keyed by pid."""

    def __init__(self):
        self._jobs = {}  # pid -> (Popen, command string, quiet)

    def __len__(self):
        return len(self._jobs)

    def __contains__(self, pid):
        return pid in self._jobs

    def add(self, proc, cmdline, out=None, quiet=False):
        """quiet jobs (interior pipeline stages) are reaped without a done line."""
        self._jobs[proc.pid] = (proc, cmdline, quiet)
        logger.debug("background job %d registered: %s", proc.pid, cmdline)
        if out is not None:
            print(f"[{proc.pid}] started in background: {cmdline}", file=out)

    def reap(self, out=None):
        """Collect finished jobs without blocking. Returns [(pid, cmdline, code)]."""
        finished = []
        for pid, (proc, cmdline, quiet) in list(self._jobs.items()):
            code = proc.poll()
            if code is None:
                continue
            del self._jobs[pid]
            finished.append((pid, cmdline, code))
            logger.debug("background job %d reaped with status %d", pid, code)
            if out is not None and not quiet:
                print(f"[{pid}] done: {cmdline} (exit {code})", file=out)
        return finished

    def terminate_all(self, timeout=3.0, out=None):
        """Terminate every job still running, escalating to kill after timeout."""
        self.reap()
        procs = []
        for pid, (proc, _, _) in list(self._jobs.items()):
            if proc.poll() is not None:
                continue
            try:
                p = psutil.Process(pid)
                p.terminate()
                procs.append(p)
                if out is not None:
                    print(f"Terminated background job [{pid}]", file=out)
            except psutil.NoSuchProcess:
                pass
            except psutil.AccessDenied as e:
                logger.warning("could not terminate job %d: %s", pid, e)

        _, alive = psutil.wait_procs(procs, timeout=timeout)
        for p in alive:
            try:
                p.kill()
            except psutil.NoSuchProcess:
                pass

        # collect exit statuses so no zombies remain
        for proc, _, _ in self._jobs.values():
            try:
                proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired as e:
                logger.warning("job %d did not exit: %s", proc.pid, e)
        self._jobs.clear()
