"""mathnotes.calc - Expression evaluation engine for lines of notes."""

from mathnotes.calc._errors import CalcError, ErrorKind, EvalError, LexError, ParseError
from mathnotes.calc._evaluator import Environment, LineEvaluator, evaluate, format_value
from mathnotes.calc._functions import CONSTANTS, FunctionRegistry
from mathnotes.calc._graph import DependencyGraph
from mathnotes.calc._lexer import Token, TokenKind, tokenize
from mathnotes.calc._parser import (
    BinaryOp,
    Call,
    Literal,
    Node,
    Statement,
    UnaryOp,
    Variable,
    parse,
    parse_expression,
    split_statement,
)
from mathnotes.calc._protocol import EvaluationReport, EvaluationResult, LineDelta

__all__ = [
    "BinaryOp",
    "CONSTANTS",
    "CalcError",
    "Call",
    "DependencyGraph",
    "Environment",
    "ErrorKind",
    "EvalError",
    "EvaluationReport",
    "EvaluationResult",
    "FunctionRegistry",
    "LexError",
    "LineDelta",
    "LineEvaluator",
    "Literal",
    "Node",
    "ParseError",
    "Statement",
    "Token",
    "TokenKind",
    "UnaryOp",
    "Variable",
    "evaluate",
    "format_value",
    "parse",
    "parse_expression",
    "split_statement",
    "tokenize",
]
