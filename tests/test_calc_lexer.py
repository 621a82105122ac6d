"""Tests for mathnotes.calc lexer."""

from __future__ import annotations

import pytest

from mathnotes.calc._errors import ErrorKind, LexError
from mathnotes.calc._lexer import Token, TokenKind, tokenize


def _kinds(text: str) -> list[TokenKind]:
    return [t.kind for t in tokenize(text)]


def _lexemes(text: str) -> list[str]:
    return [t.lexeme for t in tokenize(text)]


class TestNumbers:
    def test_integer(self) -> None:
        assert tokenize("42") == [Token(TokenKind.NUMBER, "42", 0, 2)]

    def test_fraction(self) -> None:
        assert _lexemes("2.5 .5 3.") == ["2.5", ".5", "3."]

    def test_exponent(self) -> None:
        assert _lexemes("1e3 2.5E-4 6e+2") == ["1e3", "2.5E-4", "6e+2"]

    def test_leading_sign_is_operator(self) -> None:
        assert _kinds("-3") == [TokenKind.OPERATOR, TokenKind.NUMBER]

    def test_exponent_without_digits_is_identifier(self) -> None:
        # "2e" is the number 2 followed by the constant e
        assert _kinds("2e") == [TokenKind.NUMBER, TokenKind.IDENTIFIER]


class TestIdentifiersAndSymbols:
    def test_identifiers(self) -> None:
        assert _lexemes("x _tmp rate2") == ["x", "_tmp", "rate2"]
        assert _kinds("x _tmp rate2") == [TokenKind.IDENTIFIER] * 3

    def test_operators(self) -> None:
        assert _lexemes("+ - * / ^ %") == ["+", "-", "*", "/", "^", "%"]
        assert set(_kinds("+ - * / ^ %")) == {TokenKind.OPERATOR}

    def test_double_star(self) -> None:
        assert _lexemes("2**3") == ["2", "**", "3"]

    def test_parens_and_comma(self) -> None:
        assert _kinds("max(1, 2)") == [
            TokenKind.IDENTIFIER,
            TokenKind.LPAREN,
            TokenKind.NUMBER,
            TokenKind.COMMA,
            TokenKind.NUMBER,
            TokenKind.RPAREN,
        ]

    def test_implicit_product_splits(self) -> None:
        assert _lexemes("2pi") == ["2", "pi"]


class TestSpans:
    def test_whitespace_skipped_spans_kept(self) -> None:
        tokens = tokenize("  12 +  x")
        assert [t.span for t in tokens] == [(2, 4), (5, 6), (8, 9)]

    def test_empty(self) -> None:
        assert tokenize("") == []
        assert tokenize("   ") == []


class TestErrors:
    def test_unrecognized_character(self) -> None:
        with pytest.raises(LexError) as exc_info:
            tokenize("1 + $")
        err = exc_info.value
        assert err.kind is ErrorKind.UNRECOGNIZED_CHARACTER
        assert err.position == 4
        assert err.span == (4, 5)

    def test_equals_not_an_operator(self) -> None:
        with pytest.raises(LexError):
            tokenize("1 == 1")
