"""Minimal Tact tokenizer: enough to find imports and check lexical structure."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(r"[0-9][0-9A-Za-z_]*")
_WHITESPACE = " \t\r\n\f\v"


class TokenKind(StrEnum):
    IDENT = "ident"
    NUMBER = "number"
    STRING = "string"
    PUNCT = "punct"


@dataclass(frozen=True)
class Token:
    """A lexical token.  ``line``/``column`` are 1-based; ``text`` is the raw source."""

    kind: TokenKind
    value: str
    text: str
    line: int
    column: int


class ScanError(ValueError):
    """Lexical error at a 1-based source position."""

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


class _Cursor:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1

    def advance(self, count: int) -> str:
        chunk = self.text[self.pos : self.pos + count]
        self.pos += len(chunk)
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(chunk) - chunk.rfind("\n")
        else:
            self.column += len(chunk)
        return chunk


def tokenize(text: str) -> Iterator[Token]:
    """Yield tokens from *text*, skipping whitespace and comments.

    Raises :class:`ScanError` on an unterminated string or block comment.
    Tokens produced before the error have already been yielded.
    """
    cur = _Cursor(text)
    length = len(text)
    while cur.pos < length:
        ch = text[cur.pos]
        if ch in _WHITESPACE:
            cur.advance(1)
            continue

        if text.startswith("//", cur.pos):
            end = text.find("\n", cur.pos)
            cur.advance((end if end != -1 else length) - cur.pos)
            continue

        if text.startswith("/*", cur.pos):
            line, column = cur.line, cur.column
            end = text.find("*/", cur.pos + 2)
            if end == -1:
                raise ScanError("Unterminated block comment", line, column)
            cur.advance(end + 2 - cur.pos)
            continue

        line, column = cur.line, cur.column
        if ch == '"':
            yield _scan_string(cur, line, column)
            continue

        match = _IDENT_RE.match(text, cur.pos)
        if match:
            word = cur.advance(match.end() - match.start())
            yield Token(TokenKind.IDENT, word, word, line, column)
            continue

        match = _NUMBER_RE.match(text, cur.pos)
        if match:
            digits = cur.advance(match.end() - match.start())
            yield Token(TokenKind.NUMBER, digits, digits, line, column)
            continue

        char = cur.advance(1)
        yield Token(TokenKind.PUNCT, char, char, line, column)


def _scan_string(cur: _Cursor, line: int, column: int) -> Token:
    text = cur.text
    start = cur.pos
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "\n":
            break
        if ch == '"':
            raw = cur.advance(i + 1 - start)
            return Token(TokenKind.STRING, raw[1:-1], raw, line, column)
        i += 1
    raise ScanError("Unterminated string literal", line, column)
