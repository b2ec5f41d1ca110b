import os
from dataclasses import dataclass

HISTORY_FILE = os.path.expanduser("~/.minishell_history")
MAX_HISTORY = 1000  # number of lines kept in the history file
RELAY_CHUNK = 1024  # bytes copied per read between pipeline stages


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name, default):
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class Config:
    """Runtime settings for the interpreter."""
    history_file: str = HISTORY_FILE
    history_size: int = MAX_HISTORY
    use_history: bool = True
    relay_chunk: int = RELAY_CHUNK
    terminate_background_on_exit: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls):
        return cls(
            history_file=os.path.expanduser(os.environ.get("MINISHELL_HISTORY_FILE", HISTORY_FILE)),
            history_size=_env_int("MINISHELL_HISTORY_SIZE", MAX_HISTORY),
            relay_chunk=max(1, _env_int("MINISHELL_RELAY_CHUNK", RELAY_CHUNK)),
            terminate_background_on_exit=_env_bool("MINISHELL_TERMINATE_BG", True),
            log_level=os.environ.get("MINISHELL_LOG_LEVEL", "WARNING").upper(),
        )
