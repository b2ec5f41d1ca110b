"""Structured command line consumed by the executors.

The tokenizer builds one CommandLine per input line; the executors read it
and report back with an ExecutionResult.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Command:
    """One pipeline stage. argv[0] is the program name or path."""
    argv: tuple[str, ...]

    def __post_init__(self):
        if not self.argv:
            raise ValueError("Command requires a non-empty argv")

    @property
    def name(self) -> str:
        return self.argv[0]

    def __str__(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True)
class CommandLine:
    """A pipeline plus the redirections and background flag of the whole line."""
    commands: tuple[Command, ...]
    redirect_input: Optional[str] = None
    redirect_output: Optional[str] = None
    append_output: bool = False
    redirect_error: Optional[str] = None
    background: bool = False

    def __post_init__(self):
        if not self.commands:
            raise ValueError("CommandLine requires at least one command")

    @classmethod
    def of(cls, *argvs, **kwargs) -> "CommandLine":
        """Shortcut: CommandLine.of(["echo", "hi"], ["cat"], background=True)."""
        return cls(tuple(Command(tuple(a)) for a in argvs), **kwargs)

    @property
    def is_pipeline(self) -> bool:
        return len(self.commands) > 1

    @property
    def has_redirection(self) -> bool:
        return any((self.redirect_input, self.redirect_output, self.redirect_error))

    def __str__(self) -> str:
        return " | ".join(str(c) for c in self.commands)


class ParseErrorKind(str, Enum):
    MISSING_FILE = "missing file"
    SYNTAX = "syntax"


@dataclass(frozen=True)
class ParseFailure:
    kind: ParseErrorKind
    message: str


@dataclass(frozen=True)
class ParseResult:
    """Either a command line, nothing (blank input), or a parse failure."""
    line: Optional[CommandLine] = None
    error: Optional[ParseFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ErrorKind(str, Enum):
    NOT_FOUND = "not found"
    SPAWN = "spawn"
    IO = "io"
    INTERRUPTED = "interrupted"


@dataclass
class ExecutionResult:
    exit_code: Optional[int] = None
    pids: list[int] = field(default_factory=list)
    background: bool = False
    error: Optional[ErrorKind] = None

    @property
    def success(self) -> bool:
        return self.error is None and (self.background or self.exit_code == 0)
