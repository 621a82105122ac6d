"""Error taxonomy for the expression engine.

Every failure carries an :class:`ErrorKind` and the source span it refers
to, so a front end can underline the offending text.  Errors are raised
inside the engine and converted to values at the line boundary by
:class:`~mathnotes.calc._evaluator.LineEvaluator`.
"""

from __future__ import annotations

from enum import Enum

Span = tuple[int, int]


class ErrorKind(Enum):
    """Error codes, grouped by the stage that produces them."""

    # Lexer
    UNRECOGNIZED_CHARACTER = "unrecognized character"
    # Parser
    EMPTY = "empty expression"
    UNEXPECTED_TOKEN = "unexpected token"
    UNEXPECTED_END = "unexpected end of expression"
    UNMATCHED_PAREN = "unmatched parenthesis"
    TRAILING_TOKENS = "unexpected trailing input"
    TOO_DEEP = "expression nested too deeply"
    # Evaluator
    DIVISION_BY_ZERO = "division by zero"
    DOMAIN_ERROR = "domain error"
    UNKNOWN_IDENTIFIER = "unknown identifier"
    UNKNOWN_FUNCTION = "unknown function"
    ARITY_MISMATCH = "wrong number of arguments"
    OVERFLOW = "numeric overflow"

    def __str__(self) -> str:
        return self.value


class CalcError(Exception):
    """Base class for all engine errors."""

    def __init__(self, kind: ErrorKind, span: Span, detail: str | None = None) -> None:
        self.kind = kind
        self.span = span
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.detail:
            return f"{self.kind}: {self.detail}"
        return str(self.kind)

    def shift(self, offset: int) -> None:
        """Move the span right by *offset* characters (sub-expression -> line)."""
        start, end = self.span
        self.span = (start + offset, end + offset)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.name}, span={self.span})"


class LexError(CalcError):
    """Unrecognized character in the input."""

    def __init__(self, position: int, char: str = "") -> None:
        self.position = position
        detail = repr(char) if char else None
        super().__init__(ErrorKind.UNRECOGNIZED_CHARACTER, (position, position + 1), detail)

    def shift(self, offset: int) -> None:
        super().shift(offset)
        self.position += offset


class ParseError(CalcError):
    """Malformed expression; ``expected`` names what the parser wanted."""

    def __init__(
        self,
        kind: ErrorKind,
        span: Span,
        expected: str | None = None,
    ) -> None:
        self.expected = expected
        detail = f"expected {expected}" if expected else None
        super().__init__(kind, span, detail)


class EvalError(CalcError):
    """Numeric or name-resolution failure while walking the tree."""
