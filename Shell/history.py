import logging
import os
import sys

try:
    import readline
except ImportError:  # platforms without GNU readline
    readline = None

logger = logging.getLogger(__name__)


class History:
    """Line history persisted through readline."""

    def __init__(self, path, size):
        self.path = path
        self.size = size

    @property
    def available(self):
        return readline is not None

    def init_readline(self):
        """Emacs-style editing with arrow-key history, only on a real terminal."""
        if not self.available or not sys.stdin.isatty():
            return
        try:
            readline.parse_and_bind("\\e[A: previous-history")
            readline.parse_and_bind("\\e[B: next-history")
            readline.parse_and_bind("\\e[1;5D: backward-word")
            readline.parse_and_bind("\\e[1;5C: forward-word")
            readline.parse_and_bind("set editing-mode emacs")
        except Exception as e:  # noqa: BLE001
            print(f"Warning: Could not configure readline: {e}", file=sys.stderr)

    def load(self):
        if not self.available:
            return
        try:
            if os.path.exists(self.path):
                readline.read_history_file(self.path)
            readline.set_history_length(self.size)
            logger.debug("loaded %d history entries from %s",
                         readline.get_current_history_length(), self.path)
        except OSError as e:
            print(f"Warning: Could not load history: {e}", file=sys.stderr)

    def save(self):
        if not self.available:
            return
        try:
            readline.set_history_length(self.size)
            readline.write_history_file(self.path)
        except OSError as e:
            print(f"Warning: Could not save history: {e}", file=sys.stderr)
