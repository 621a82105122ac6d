"""Lexer: split one line of text into tokens with character spans."""

from __future__ import annotations

import re
from enum import Enum, auto
from typing import NamedTuple

from mathnotes.calc._errors import LexError


class TokenKind(Enum):
    NUMBER = auto()
    IDENTIFIER = auto()
    OPERATOR = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()


class Token(NamedTuple):
    kind: TokenKind
    lexeme: str
    start: int
    end: int

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)


# Order matters: "**" must win over "*".
_PATTERNS: list[tuple[TokenKind | None, re.Pattern[str]]] = [
    (None, re.compile(r"\s+")),
    (TokenKind.NUMBER, re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")),
    (TokenKind.IDENTIFIER, re.compile(r"[A-Za-z_][A-Za-z0-9_]*")),
    (TokenKind.OPERATOR, re.compile(r"\*\*|[+\-*/^%]")),
    (TokenKind.LPAREN, re.compile(r"\(")),
    (TokenKind.RPAREN, re.compile(r"\)")),
    (TokenKind.COMMA, re.compile(r",")),
]


def tokenize(text: str) -> list[Token]:
    """Tokenize *text*, skipping whitespace.

    A leading sign is emitted as an operator; the parser folds it into a
    unary expression.  Raises :class:`LexError` at the first character no
    pattern accepts.
    """
    tokens: list[Token] = []
    pos = 0
    length = len(text)

    while pos < length:
        for kind, pattern in _PATTERNS:
            m = pattern.match(text, pos)
            if m:
                if kind is not None:
                    tokens.append(Token(kind, m.group(0), pos, m.end()))
                pos = m.end()
                break
        else:
            raise LexError(pos, text[pos])

    return tokens
