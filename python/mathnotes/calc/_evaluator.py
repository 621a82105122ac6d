"""Tree-walking evaluator and per-line evaluation.

:func:`evaluate` walks one expression tree against an explicit
:class:`Environment`.  :class:`LineEvaluator` is the line boundary: it
splits a line of notes into a statement, runs lexer, parser and evaluator,
and turns every :class:`~mathnotes.calc._errors.CalcError` into an
:class:`~mathnotes.calc._protocol.EvaluationResult` so that one bad line
never stops the rest of the document.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING

from mathnotes.calc._errors import CalcError, ErrorKind, EvalError, Span
from mathnotes.calc._functions import CONSTANTS, FunctionRegistry
from mathnotes.calc._parser import (
    BinaryOp,
    Call,
    Literal,
    Node,
    Statement,
    UnaryOp,
    Variable,
    split_statement,
)
from mathnotes.calc._protocol import EvaluationResult

if TYPE_CHECKING:
    from mathnotes._options import EngineOptions

logger = logging.getLogger(__name__)

_DEFAULT_FUNCTIONS = FunctionRegistry()


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


class Environment:
    """Variable bindings for one evaluation pass over a document.

    User bindings shadow the constants (``pi``, ``e``, ``tau``).  Bindings
    keep insertion order, which is document order during a pass.
    """

    __slots__ = ("_bindings", "_constants")

    def __init__(
        self,
        bindings: Mapping[str, float] | None = None,
        constants: Mapping[str, float] = CONSTANTS,
    ) -> None:
        self._bindings: dict[str, float] = dict(bindings or {})
        self._constants = constants

    def lookup(self, name: str) -> float | None:
        if name in self._bindings:
            return self._bindings[name]
        return self._constants.get(name)

    def bind(self, name: str, value: float) -> None:
        # Rebinding moves the name to the end so order reflects the latest assignment.
        self._bindings.pop(name, None)
        self._bindings[name] = value

    def copy(self) -> Environment:
        return Environment(self._bindings, self._constants)

    @property
    def bindings(self) -> dict[str, float]:
        """User bindings only, without constants."""
        return dict(self._bindings)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings or name in self._constants

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __repr__(self) -> str:
        return f"<Environment {self._bindings!r}>"


# ---------------------------------------------------------------------------
# Arithmetic helpers
# ---------------------------------------------------------------------------


def _checked(value: float, span: Span) -> float:
    """Reject NaN and infinities produced by otherwise valid operations."""
    if math.isnan(value):
        raise EvalError(ErrorKind.DOMAIN_ERROR, span)
    if math.isinf(value):
        raise EvalError(ErrorKind.OVERFLOW, span)
    return value


def _power(base: float, exponent: float, span: Span) -> float:
    if base == 0 and exponent < 0:
        raise EvalError(ErrorKind.DIVISION_BY_ZERO, span, "zero to a negative power")
    try:
        return math.pow(base, exponent)
    except ValueError:
        raise EvalError(
            ErrorKind.DOMAIN_ERROR, span, "negative base with fractional exponent"
        ) from None
    except OverflowError:
        raise EvalError(ErrorKind.OVERFLOW, span) from None


def _binary_op(op: str, left: float, right: float, span: Span) -> float:
    """Evaluate one arithmetic operation on two finite floats."""
    if op == "+":
        result = left + right
    elif op == "-":
        result = left - right
    elif op == "*":
        result = left * right
    elif op == "/":
        if right == 0:
            raise EvalError(ErrorKind.DIVISION_BY_ZERO, span)
        result = left / right
    elif op == "%":
        if right == 0:
            raise EvalError(ErrorKind.DIVISION_BY_ZERO, span)
        # Truncated remainder: sign follows the dividend.
        result = math.fmod(left, right)
    elif op == "^":
        result = _power(left, right, span)
    else:
        raise ValueError(f"Unknown operator: {op!r}")
    return _checked(result, span)


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


def evaluate(
    node: Node,
    env: Environment,
    functions: FunctionRegistry | None = None,
) -> float:
    """Evaluate an expression tree to a finite float.

    Raises :class:`EvalError` for division by zero, domain violations,
    overflow, unknown names and arity mismatches.
    """
    registry = functions if functions is not None else _DEFAULT_FUNCTIONS

    if isinstance(node, Literal):
        return _checked(node.value, node.span)

    if isinstance(node, Variable):
        value = env.lookup(node.name)
        if value is None:
            raise EvalError(ErrorKind.UNKNOWN_IDENTIFIER, node.span, repr(node.name))
        return value

    if isinstance(node, UnaryOp):
        operand = evaluate(node.operand, env, registry)
        return -operand if node.op == "-" else operand

    if isinstance(node, BinaryOp):
        # Walk the left spine iteratively: flat chains like 1 + 2 + ... + n
        # are as long as the line, not as deep as its nesting.
        spine: list[BinaryOp] = []
        current: Node = node
        while isinstance(current, BinaryOp):
            spine.append(current)
            current = current.left
        value = evaluate(current, env, registry)
        for link in reversed(spine):
            right = evaluate(link.right, env, registry)
            value = _binary_op(link.op, value, right, link.span)
        return value

    if isinstance(node, Call):
        return _eval_call(node, env, registry)

    raise TypeError(f"Not an expression node: {node!r}")


def _eval_call(node: Call, env: Environment, registry: FunctionRegistry) -> float:
    spec = registry.get(node.name)
    if spec is None:
        raise EvalError(ErrorKind.UNKNOWN_FUNCTION, node.span, repr(node.name))
    if not spec.accepts(len(node.args)):
        raise EvalError(
            ErrorKind.ARITY_MISMATCH,
            node.span,
            f"{node.name} takes {spec.describe_arity()}, got {len(node.args)}",
        )
    args = [evaluate(arg, env, registry) for arg in node.args]
    try:
        result = spec.func(args)
    except ZeroDivisionError:
        raise EvalError(ErrorKind.DIVISION_BY_ZERO, node.span, node.name) from None
    except OverflowError:
        raise EvalError(ErrorKind.OVERFLOW, node.span, node.name) from None
    except ValueError as e:
        raise EvalError(ErrorKind.DOMAIN_ERROR, node.span, str(e)) from None
    return _checked(float(result), node.span)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

_MAX_EXACT_INT = 2**53


def format_value(value: float, precision: int | None = None) -> str:
    """Format a result for display.

    Integral values print without a fractional part; everything else uses
    the shortest repr, or *precision* significant digits.
    """
    if value == 0:
        return "0"  # also folds -0.0
    if value.is_integer() and abs(value) < _MAX_EXACT_INT:
        return str(int(value))
    if precision is not None:
        return f"{value:.{precision}g}"
    return repr(value)


# ---------------------------------------------------------------------------
# Line boundary
# ---------------------------------------------------------------------------


class LineEvaluator:
    """Evaluates lines of notes against an environment.

    Usage::

        evaluator = LineEvaluator()
        env = Environment()
        evaluator.evaluate_line("x = 10", env)   # display "x = 10"
        evaluator.evaluate_line("x * 2", env)    # display "20"
    """

    def __init__(
        self,
        functions: FunctionRegistry | None = None,
        options: EngineOptions | None = None,
    ) -> None:
        if options is None:
            from mathnotes._options import EngineOptions

            options = EngineOptions()
        self.functions = functions if functions is not None else FunctionRegistry()
        self.options = options

    def statement(self, text: str) -> Statement | None:
        """The evaluable part of *text*, or None when the line is plain text."""
        return split_statement(text, self.options.comment_prefixes)

    def evaluate_line(self, text: str, env: Environment) -> EvaluationResult | None:
        """Evaluate one line; returns None for plain text lines.

        Assignments bind their target in *env* on success.  Never raises
        :class:`CalcError`.
        """
        stmt = self.statement(text)
        if stmt is None:
            return None
        return self.evaluate_statement(stmt, env)

    def evaluate_statement(self, stmt: Statement, env: Environment) -> EvaluationResult:
        try:
            node = stmt.parse(self.options.max_depth)
            value = evaluate(node, env, self.functions)
        except CalcError as e:
            logger.debug("Cannot evaluate %r: %s at %s", stmt.source, e.message, e.span)
            return EvaluationResult.failure(e, target=stmt.target)

        display = self.format(value)
        if stmt.target is not None:
            env.bind(stmt.target, value)
            display = f"{stmt.target} = {display}"
        return EvaluationResult.success(value, display, target=stmt.target)

    def format(self, value: float) -> str:
        return format_value(value, self.options.precision)
