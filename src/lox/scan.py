"""Lox scanner: lexes source text into a flat token list."""

from __future__ import annotations

from .errors import ScanError
from .tokens import (
    KEYWORDS,
    SINGLE_CHARS,
    TK_EOF,
    TK_IDENTIFIER,
    TK_NUMBER,
    TK_SLASH,
    TK_STRING,
    WITH_EQUAL,
    Token,
)


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


class Scanner:
    """Single left-to-right pass over the source. Errors are collected, not raised."""

    def __init__(self, source: str):
        self.source: str = source
        self.tokens: list[Token] = []
        self.errors: list[ScanError] = []
        self.start: int = 0
        self.current: int = 0
        self.line: int = 1

    # ── Helpers ──────────────────────────────────────────────

    def at_end(self) -> bool:
        return self.current >= len(self.source)

    def advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def match(self, expected: str) -> bool:
        if self.at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self) -> str:
        if self.at_end():
            return "\0"
        return self.source[self.current]

    def peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return "\0"
        return self.source[self.current + 1]

    def add_token(self, type_: str, literal: float | str | None = None) -> None:
        text = self.source[self.start : self.current]
        self.tokens.append(Token(type_, text, literal, self.line))

    def error(self, msg: str) -> None:
        self.errors.append(ScanError(msg, self.line))

    # ── Scanning ─────────────────────────────────────────────

    def scan_tokens(self) -> list[Token]:
        while not self.at_end():
            self.start = self.current
            self.scan_token()
        self.tokens.append(Token(TK_EOF, "", None, self.line))
        return self.tokens

    def scan_token(self) -> None:
        c = self.advance()
        if c in SINGLE_CHARS:
            self.add_token(SINGLE_CHARS[c])
        elif c in WITH_EQUAL:
            bare, with_eq = WITH_EQUAL[c]
            self.add_token(with_eq if self.match("=") else bare)
        elif c == "/":
            if self.match("/"):
                while self.peek() != "\n" and not self.at_end():
                    self.advance()
            elif self.match("*"):
                self.scan_block_comment()
            else:
                self.add_token(TK_SLASH)
        elif c == " " or c == "\r" or c == "\t":
            pass
        elif c == "\n":
            self.line += 1
        elif c == '"':
            self.scan_string()
        elif _is_digit(c):
            self.scan_number()
        elif _is_alpha(c):
            self.scan_identifier()
        else:
            self.error("Unexpected character.")

    def scan_block_comment(self) -> None:
        """Consume a /* ... */ comment; nested pairs must balance."""
        depth = 0
        while not self.at_end():
            c = self.advance()
            if c == "/" and self.match("*"):
                depth += 1
            elif c == "*" and self.match("/"):
                if depth == 0:
                    return
                depth -= 1
            elif c == "\n":
                self.line += 1
        self.error("Unclosed block comment.")

    def scan_string(self) -> None:
        while self.peek() != '"' and not self.at_end():
            if self.peek() == "\n":
                self.line += 1
            self.advance()
        if self.at_end():
            self.error("Unterminated string.")
            return
        self.advance()
        self.add_token(TK_STRING, self.source[self.start + 1 : self.current - 1])

    def scan_number(self) -> None:
        while _is_digit(self.peek()):
            self.advance()
        if self.peek() == "." and _is_digit(self.peek_next()):
            self.advance()
            while _is_digit(self.peek()):
                self.advance()
        self.add_token(TK_NUMBER, float(self.source[self.start : self.current]))

    def scan_identifier(self) -> None:
        while _is_alnum(self.peek()):
            self.advance()
        text = self.source[self.start : self.current]
        self.add_token(KEYWORDS.get(text, TK_IDENTIFIER))


def scan(source: str) -> tuple[list[Token], list[ScanError]]:
    """Scan Lox source. Returns the tokens (always EOF-terminated) and any errors."""
    scanner = Scanner(source)
    tokens = scanner.scan_tokens()
    return tokens, scanner.errors
