"""Lox diagnostics: the error taxonomy and the reporting sink shared by all stages."""

from __future__ import annotations

from typing import Iterable, TextIO

from .tokens import TK_EOF, Token


class LoxError(Exception):
    """Base error for every diagnostic the interpreter can produce."""

    def __init__(self, msg: str, line: int):
        self.msg: str = msg
        self.line: int = line
        super().__init__(self.render())

    def render(self) -> str:
        return "[line " + str(self.line) + "] Error: " + self.msg


class _TokenError(LoxError):
    def __init__(self, msg: str, token: Token):
        self.token: Token = token
        super().__init__(msg, token.line)

    def render(self) -> str:
        return "[line " + str(self.line) + "] Error" + _where(self.token) + ": " + self.msg


class ScanError(LoxError):
    """Unexpected character, unterminated string, or unclosed block comment."""


class ParseError(_TokenError):
    """Syntax error at a token."""


class ResolveError(_TokenError):
    """Static semantic error found during resolution."""


class LoxRuntimeError(_TokenError):
    """Error raised while evaluating a program."""

    def render(self) -> str:
        return self.msg + "\n[line " + str(self.line) + "]"


def _where(token: Token) -> str:
    if token.type == TK_EOF:
        return " at end"
    return " at '" + token.lexeme + "'"


# ============================================================
# Reporter
# ============================================================


class Reporter:
    """Collects diagnostics from every stage and tracks the driver's error flags.

    When `stream` is given, each diagnostic is also written to it as soon as it
    is reported.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream: TextIO | None = stream
        self.errors: list[LoxError] = []
        self.runtime_errors: list[LoxRuntimeError] = []

    @property
    def had_error(self) -> bool:
        return len(self.errors) > 0

    @property
    def had_runtime_error(self) -> bool:
        return len(self.runtime_errors) > 0

    def report(self, err: LoxError) -> None:
        if isinstance(err, LoxRuntimeError):
            self.runtime_errors.append(err)
        else:
            self.errors.append(err)
        if self.stream is not None:
            self.stream.write(err.render() + "\n")

    def extend(self, errs: Iterable[LoxError]) -> None:
        for err in errs:
            self.report(err)

    def reset(self) -> None:
        self.errors = []
        self.runtime_errors = []
