import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from Shell.config import Config  # noqa: E402
from Shell.session import ShellSession  # noqa: E402


@pytest.fixture()
def sandbox(tmp_path):
    work = tmp_path / "work"
    home = tmp_path / "home"
    work.mkdir()
    home.mkdir()
    return work, home


@pytest.fixture()
def session(sandbox):
    work, home = sandbox
    config = Config(use_history=False)
    sess = ShellSession(cwd=work, home=home, config=config)
    yield sess
    sess.jobs.terminate_all(timeout=1.0)
