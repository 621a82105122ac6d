"""Builtin functions and constants for expression evaluation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

# ---------------------------------------------------------------------------
# Constants: visible to every line unless shadowed by an assignment.
# ---------------------------------------------------------------------------

CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
}


# ---------------------------------------------------------------------------
# Builtin implementations - pure Python, stdlib math only.
# Each takes a list of float arguments whose count has already been checked
# against the registered arity.  Domain violations raise ValueError,
# poles raise ZeroDivisionError, and the evaluator maps both to error kinds.
# ---------------------------------------------------------------------------


def _builtin_sqrt(args: list[float]) -> float:
    if args[0] < 0:
        raise ValueError("sqrt: negative argument")
    return math.sqrt(args[0])


def _builtin_cbrt(args: list[float]) -> float:
    return math.cbrt(args[0])


def _builtin_abs(args: list[float]) -> float:
    return abs(args[0])


def _builtin_exp(args: list[float]) -> float:
    return math.exp(args[0])


def _builtin_ln(args: list[float]) -> float:
    if args[0] <= 0:
        raise ValueError("ln: argument must be positive")
    return math.log(args[0])


def _builtin_log(args: list[float]) -> float:
    """log(x) is base 10; log(x, base) takes an explicit base."""
    x = args[0]
    if x <= 0:
        raise ValueError("log: argument must be positive")
    if len(args) == 1:
        return math.log10(x)
    base = args[1]
    if base <= 0 or base == 1:
        raise ValueError("log: base must be positive and not 1")
    return math.log(x, base)


def _builtin_log2(args: list[float]) -> float:
    if args[0] <= 0:
        raise ValueError("log2: argument must be positive")
    return math.log2(args[0])


def _builtin_log10(args: list[float]) -> float:
    if args[0] <= 0:
        raise ValueError("log10: argument must be positive")
    return math.log10(args[0])


def _builtin_sin(args: list[float]) -> float:
    return math.sin(args[0])


def _builtin_cos(args: list[float]) -> float:
    return math.cos(args[0])


def _builtin_tan(args: list[float]) -> float:
    return math.tan(args[0])


def _builtin_sec(args: list[float]) -> float:
    return 1.0 / math.cos(args[0])


def _builtin_csc(args: list[float]) -> float:
    return 1.0 / math.sin(args[0])


def _builtin_cot(args: list[float]) -> float:
    return 1.0 / math.tan(args[0])


def _builtin_asin(args: list[float]) -> float:
    if not -1.0 <= args[0] <= 1.0:
        raise ValueError("asin: argument outside [-1, 1]")
    return math.asin(args[0])


def _builtin_acos(args: list[float]) -> float:
    if not -1.0 <= args[0] <= 1.0:
        raise ValueError("acos: argument outside [-1, 1]")
    return math.acos(args[0])


def _builtin_atan(args: list[float]) -> float:
    return math.atan(args[0])


def _builtin_asec(args: list[float]) -> float:
    if -1.0 < args[0] < 1.0:
        raise ValueError("asec: argument inside (-1, 1)")
    return math.acos(1.0 / args[0])


def _builtin_acsc(args: list[float]) -> float:
    if -1.0 < args[0] < 1.0:
        raise ValueError("acsc: argument inside (-1, 1)")
    return math.asin(1.0 / args[0])


def _builtin_acot(args: list[float]) -> float:
    if args[0] == 0:
        return math.pi / 2
    return math.atan(1.0 / args[0])


def _builtin_min(args: list[float]) -> float:
    return min(args)


def _builtin_max(args: list[float]) -> float:
    return max(args)


def _builtin_floor(args: list[float]) -> float:
    return float(math.floor(args[0]))


def _builtin_ceil(args: list[float]) -> float:
    return float(math.ceil(args[0]))


def _builtin_round(args: list[float]) -> float:
    """round(x[, digits]) rounding halves away from zero."""
    digits = int(args[1]) if len(args) > 1 else 0
    factor = 10.0 ** digits
    scaled = abs(args[0]) * factor
    return math.copysign(math.floor(scaled + 0.5) / factor, args[0])


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FunctionSpec:
    """A callable plus the argument counts it accepts (``max_args`` None = variadic)."""

    func: Callable[[list[float]], float]
    min_args: int
    max_args: int | None

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def describe_arity(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args} to {self.max_args}"


def _one(func: Callable[[list[float]], float]) -> FunctionSpec:
    return FunctionSpec(func, 1, 1)


_BUILTINS: dict[str, FunctionSpec] = {
    "sin": _one(_builtin_sin),
    "cos": _one(_builtin_cos),
    "tan": _one(_builtin_tan),
    "sec": _one(_builtin_sec),
    "csc": _one(_builtin_csc),
    "cot": _one(_builtin_cot),
    "asin": _one(_builtin_asin),
    "acos": _one(_builtin_acos),
    "atan": _one(_builtin_atan),
    "asec": _one(_builtin_asec),
    "acsc": _one(_builtin_acsc),
    "acot": _one(_builtin_acot),
    "sqrt": _one(_builtin_sqrt),
    "cbrt": _one(_builtin_cbrt),
    "abs": _one(_builtin_abs),
    "exp": _one(_builtin_exp),
    "ln": _one(_builtin_ln),
    "log": FunctionSpec(_builtin_log, 1, 2),
    "log2": _one(_builtin_log2),
    "log10": _one(_builtin_log10),
    "min": FunctionSpec(_builtin_min, 1, None),
    "max": FunctionSpec(_builtin_max, 1, None),
    "floor": _one(_builtin_floor),
    "ceil": _one(_builtin_ceil),
    "round": FunctionSpec(_builtin_round, 1, 2),
}

_ALIASES: dict[str, str] = {
    "arcsin": "asin",
    "arccos": "acos",
    "arctan": "atan",
    "arcsec": "asec",
    "arccsc": "acsc",
    "arccot": "acot",
    "loge": "ln",
    "lb": "log2",
}


class FunctionRegistry:
    """Registry of callable function implementations.

    Starts with builtins and can be extended with custom functions.
    Names are case-sensitive, like variables.
    """

    def __init__(self) -> None:
        self._functions: dict[str, FunctionSpec] = dict(_BUILTINS)
        for alias, target in _ALIASES.items():
            self._functions[alias] = _BUILTINS[target]

    def register(
        self,
        name: str,
        func: Callable[[list[float]], float],
        min_args: int = 1,
        max_args: int | None = 1,
    ) -> None:
        self._functions[name] = FunctionSpec(func, min_args, max_args)

    def get(self, name: str) -> FunctionSpec | None:
        return self._functions.get(name)

    def has(self, name: str) -> bool:
        return name in self._functions

    @property
    def supported_functions(self) -> frozenset[str]:
        return frozenset(self._functions.keys())
