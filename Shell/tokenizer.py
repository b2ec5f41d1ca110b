"""Turns a raw input line into a CommandLine.

Supported syntax:  a b | c d < in > out   (or >> out)   2> err   &
Redirections and & belong to the whole line. Failures come back as a
ParseResult with an error instead of being raised.
"""
from __future__ import annotations

import io
import shlex
from typing import List, NamedTuple

from Shell.model import Command, CommandLine, ParseErrorKind, ParseFailure, ParseResult

PIPE = "|"
BACKGROUND = "&"
REDIRECTIONS = {"<", ">", ">>", "2>"}


class Token(NamedTuple):
    kind: str  # "WORD" or "OP"
    value: str


OPERATOR_CHARS = "|&<>"
OPERATORS = {"|", "&", "<", ">", ">>"}


class _SyntaxError(Exception):
    pass


class _LineSource(io.StringIO):
    """shlex input that remembers whether the lexer has read past the end."""
    exhausted = False

    def read(self, size=-1):
        data = super().read(size)
        if not data:
            self.exhausted = True
        return data


def _scan(line: str) -> List[Token]:
    source = _LineSource(line)
    lex = shlex.shlex(source, posix=True, punctuation_chars=OPERATOR_CHARS)
    lex.whitespace_split = True
    lex.commenters = ""

    tokens: List[Token] = []
    prev_end = -1
    while True:
        try:
            value = lex.get_token()
        except ValueError as e:
            raise _SyntaxError(str(e).lower()) from e
        if value is None:
            break
        # shlex reads one character past each token unless the line ran out
        end = source.tell() if source.exhausted else source.tell() - 1
        start = end - len(value)
        # false when quoting or escapes were involved
        bare = line[start:end] == value and line[start - 1:start] != "\\"

        if bare and value and all(ch in OPERATOR_CHARS for ch in value):
            if value not in OPERATORS:
                raise _SyntaxError(f"unsupported operator '{value}'")
            if value.startswith(">") and tokens and tokens[-1] == Token("WORD", "2") \
                    and prev_end == start and line[start - 1:start] == "2":
                if value == ">>":
                    raise _SyntaxError(f"unsupported operator '2{value}'")
                tokens[-1] = Token("OP", "2>")
            else:
                tokens.append(Token("OP", value))
        else:
            tokens.append(Token("WORD", value))
        prev_end = end
    return tokens


def tokenize(line: str) -> ParseResult:
    try:
        tokens = _scan(line.strip())
    except _SyntaxError as e:
        return ParseResult(error=ParseFailure(ParseErrorKind.SYNTAX, str(e)))

    if not tokens:
        return ParseResult()

    background = False
    if tokens[-1] == Token("OP", BACKGROUND):
        background = True
        tokens = tokens[:-1]

    stages: List[List[str]] = [[]]
    redirect = {}
    i = 0
    while i < len(tokens):
        kind, value = tokens[i]
        if kind == "WORD":
            stages[-1].append(value)
        elif value == PIPE:
            if not stages[-1]:
                return _syntax("empty command in pipeline")
            stages.append([])
        elif value == BACKGROUND:
            return _syntax("'&' is only allowed at the end of the line")
        elif value in REDIRECTIONS:
            if i + 1 >= len(tokens) or tokens[i + 1].kind != "WORD":
                return ParseResult(error=ParseFailure(
                    ParseErrorKind.MISSING_FILE, f"missing file after '{value}'"))
            redirect[">" if value == ">>" else value] = (value, tokens[i + 1].value)
            i += 1
        i += 1

    if not stages[-1]:
        if len(stages) == 1 and not redirect:
            if background:
                return _syntax("'&' without a command")
            return ParseResult()
        return _syntax("empty command in pipeline")

    output = redirect.get(">")
    cmdline = CommandLine(
        commands=tuple(Command(tuple(argv)) for argv in stages),
        redirect_input=redirect["<"][1] if "<" in redirect else None,
        redirect_output=output[1] if output else None,
        append_output=bool(output and output[0] == ">>"),
        redirect_error=redirect["2>"][1] if "2>" in redirect else None,
        background=background,
    )
    return ParseResult(line=cmdline)


def _syntax(message: str) -> ParseResult:
    return ParseResult(error=ParseFailure(ParseErrorKind.SYNTAX, message))
