"""Expression parser: tokens -> owned expression tree.

Precedence climbing over binding powers (lowest to highest)::

    1. additive        (+, -)            left-assoc
    2. multiplicative  (*, /, %)         left-assoc
    3. implicit mult   (2pi, 3(1+2))     left-assoc
    4. power           (^, **)           right-assoc
    5. unary prefix    (+, -)

A line of note text is first split into a :class:`Statement` by
:func:`split_statement` (assignment target, label, inline result), then
the expression part is tokenized and parsed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from mathnotes.calc._errors import CalcError, ErrorKind, ParseError, Span
from mathnotes.calc._lexer import Token, TokenKind, tokenize

DEFAULT_MAX_DEPTH = 200

# ---------------------------------------------------------------------------
# Expression nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Literal:
    value: float
    span: Span


@dataclass(frozen=True)
class Variable:
    name: str
    span: Span


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: Node
    span: Span


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Node
    right: Node
    span: Span


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple[Node, ...]
    span: Span


Node = Union[Literal, Variable, UnaryOp, BinaryOp, Call]

# (left binding power, right binding power)
_BINARY_BP: dict[str, tuple[int, int]] = {
    "+": (10, 11),
    "-": (10, 11),
    "*": (20, 21),
    "/": (20, 21),
    "%": (20, 21),
    "^": (41, 40),
    "**": (41, 40),
}
_IMPLICIT_BP = (30, 31)
_PREFIX_BP = 50


def free_names(node: Node) -> set[str]:
    """Names of all variables read by *node*."""
    names: set[str] = set()
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Variable):
            names.add(current.name)
        elif isinstance(current, UnaryOp):
            stack.append(current.operand)
        elif isinstance(current, BinaryOp):
            stack.append(current.left)
            stack.append(current.right)
        elif isinstance(current, Call):
            stack.extend(current.args)
    return names


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class ExpressionParser:
    """Single-use parser over a token list."""

    def __init__(self, tokens: list[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.tokens = tokens
        self.max_depth = max_depth
        self.pos = 0
        self._depth = 0
        self._open = 0  # parentheses opened and not yet closed

    def parse(self) -> Node:
        if not self.tokens:
            raise ParseError(ErrorKind.EMPTY, (0, 0), "an expression")
        node = self._parse_bp(0)
        token = self._peek()
        if token is not None:
            if token.kind is TokenKind.RPAREN:
                raise ParseError(ErrorKind.UNMATCHED_PAREN, token.span)
            raise ParseError(ErrorKind.TRAILING_TOKENS, token.span, "an operator")
        return node

    def _peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _end_span(self) -> Span:
        end = self.tokens[-1].end if self.tokens else 0
        return (end, end)

    def _enter(self, token: Token | None) -> None:
        self._depth += 1
        if self._depth > self.max_depth:
            span = token.span if token is not None else self._end_span()
            raise ParseError(ErrorKind.TOO_DEEP, span)

    def _parse_bp(self, min_bp: int) -> Node:
        # Only nesting counts toward max_depth; a flat left-assoc chain grows
        # the left spine, which the evaluator walks without recursion.
        self._enter(self._peek())
        try:
            lhs = self._parse_prefix()
            while True:
                token = self._peek()
                if token is None:
                    break
                if token.kind is TokenKind.OPERATOR:
                    l_bp, r_bp = _BINARY_BP[token.lexeme]
                    implicit = False
                elif token.kind in (TokenKind.IDENTIFIER, TokenKind.LPAREN):
                    # Juxtaposition: 2pi, 3(1 + 2), (a)(b)
                    l_bp, r_bp = _IMPLICIT_BP
                    implicit = True
                else:
                    break
                if l_bp < min_bp:
                    break
                if not implicit:
                    self._advance()
                rhs = self._parse_bp(r_bp)
                op = "*" if implicit else token.lexeme
                if op == "**":
                    op = "^"
                lhs = BinaryOp(op, lhs, rhs, (lhs.span[0], rhs.span[1]))
            return lhs
        finally:
            self._depth -= 1

    def _parse_prefix(self) -> Node:
        token = self._peek()
        if token is None:
            raise ParseError(ErrorKind.UNEXPECTED_END, self._end_span(), "an operand")
        self._advance()

        if token.kind is TokenKind.NUMBER:
            return Literal(float(token.lexeme), token.span)

        if token.kind is TokenKind.IDENTIFIER:
            nxt = self._peek()
            if nxt is not None and nxt.kind is TokenKind.LPAREN:
                return self._parse_call(token)
            return Variable(token.lexeme, token.span)

        if token.kind is TokenKind.LPAREN:
            self._open += 1
            inner = self._parse_bp(0)
            self._expect_close(token)
            self._open -= 1
            return inner

        if token.kind is TokenKind.OPERATOR and token.lexeme in ("+", "-"):
            operand = self._parse_bp(_PREFIX_BP)
            return UnaryOp(token.lexeme, operand, (token.start, operand.span[1]))

        if token.kind is TokenKind.RPAREN and not self._open:
            raise ParseError(ErrorKind.UNMATCHED_PAREN, token.span)
        # Includes an empty group "()" and a dangling comma "f(1,)".
        raise ParseError(ErrorKind.UNEXPECTED_TOKEN, token.span, "an operand")

    def _parse_call(self, name: Token) -> Node:
        lparen = self._advance()
        args: list[Node] = []
        token = self._peek()
        if token is not None and token.kind is TokenKind.RPAREN:
            rparen = self._advance()
            return Call(name.lexeme, (), (name.start, rparen.end))

        self._open += 1
        while True:
            args.append(self._parse_bp(0))
            token = self._peek()
            if token is None:
                raise ParseError(ErrorKind.UNMATCHED_PAREN, lparen.span)
            if token.kind is TokenKind.COMMA:
                self._advance()
                continue
            if token.kind is TokenKind.RPAREN:
                rparen = self._advance()
                self._open -= 1
                return Call(name.lexeme, tuple(args), (name.start, rparen.end))
            raise ParseError(ErrorKind.UNEXPECTED_TOKEN, token.span, "',' or ')'")

    def _expect_close(self, lparen: Token) -> None:
        token = self._peek()
        if token is None:
            raise ParseError(ErrorKind.UNMATCHED_PAREN, lparen.span)
        if token.kind is not TokenKind.RPAREN:
            raise ParseError(ErrorKind.UNEXPECTED_TOKEN, token.span, "')'")
        self._advance()


def parse(tokens: list[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> Node:
    """Parse a complete token list into one expression tree."""
    return ExpressionParser(tokens, max_depth).parse()


def parse_expression(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Node:
    """Tokenize and parse *text* in one step."""
    return parse(tokenize(text), max_depth)


# ---------------------------------------------------------------------------
# Statements: how a line of notes maps onto an expression
# ---------------------------------------------------------------------------

# Matched at the start of the text after any label.
_ASSIGN_RE = re.compile(r"\s*([A-Za-z_][A-Za-z0-9_]*)\s*=(?!=)")

DEFAULT_COMMENT_PREFIXES: tuple[str, ...] = ("#", "//")

_NUMERIC_HINT_RE = re.compile(r"[\d+\-*/^%()]")

# Two multi-letter words separated only by whitespace: "Meeting at 3pm".
_PROSE_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]+\s+[A-Za-z_][A-Za-z0-9_]+")


def _looks_numeric(source: str) -> bool:
    return bool(_NUMERIC_HINT_RE.search(source)) and not _PROSE_RE.search(source)


@dataclass(frozen=True)
class Statement:
    """The evaluable part of one line.

    ``source`` is the expression text, found at ``offset`` within the line.
    ``target`` is the assigned name for ``name = expr`` lines.
    """

    source: str
    offset: int
    target: str | None = None

    @property
    def span(self) -> Span:
        return (self.offset, self.offset + len(self.source))

    def parse(self, max_depth: int = DEFAULT_MAX_DEPTH) -> Node:
        """Parse ``source`` with every span relative to the whole line."""
        try:
            tokens = [
                t._replace(start=t.start + self.offset, end=t.end + self.offset)
                for t in tokenize(self.source)
            ]
        except CalcError as exc:
            exc.shift(self.offset)
            raise
        if not tokens:
            raise ParseError(ErrorKind.EMPTY, self.span, "an expression")
        return parse(tokens, max_depth)


def split_statement(
    text: str,
    comment_prefixes: tuple[str, ...] = DEFAULT_COMMENT_PREFIXES,
) -> Statement | None:
    """Find the expression in a line of notes, or None for plain text.

    - blank lines and lines starting with a comment prefix are plain text
    - anything up to the last ``:`` before the first ``=`` is a label
    - ``name = expr`` after the label assigns ``name``
    - otherwise prose is plain text: no digit, operator or parenthesis
      (``Buy milk``), or two words in a row (``Meeting at 3pm``)
    - a later ``=`` starts a previously inserted result and ends the expression
    """
    stripped = text.strip()
    if not stripped or (comment_prefixes and stripped.startswith(comment_prefixes)):
        return None

    # Labels end before any inserted result, which may itself contain ":".
    first_eq = text.find("=")
    head = text if first_eq == -1 else text[:first_eq]
    start = head.rfind(":") + 1

    target: str | None = None
    m = _ASSIGN_RE.match(text, start)
    if m:
        target = m.group(1)
        start = m.end()

    end = text.find("=", start)
    if end == -1:
        end = len(text)
    source = text[start:end]
    if target is None and not _looks_numeric(source):
        return None

    # Trim surrounding whitespace but keep offsets exact.
    lead = len(source) - len(source.lstrip())
    return Statement(source=source.strip(), offset=start + lead, target=target)
