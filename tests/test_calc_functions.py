"""Tests for mathnotes.calc function registry and builtins."""

from __future__ import annotations

import math

import pytest

from mathnotes.calc._functions import (
    CONSTANTS,
    _BUILTINS,
    FunctionRegistry,
    FunctionSpec,
)


def _call(name: str, *args: float) -> float:
    spec = FunctionRegistry().get(name)
    assert spec is not None, name
    return spec.func(list(args))


class TestFunctionRegistry:
    def test_builtins_registered(self) -> None:
        reg = FunctionRegistry()
        for name in ("sqrt", "sin", "log", "min", "round"):
            assert reg.has(name)

    def test_aliases_share_entry(self) -> None:
        reg = FunctionRegistry()
        assert reg.get("arcsin") is reg.get("asin")
        assert reg.get("loge") is reg.get("ln")
        assert reg.get("lb") is reg.get("log2")

    def test_case_sensitive(self) -> None:
        reg = FunctionRegistry()
        assert reg.has("sqrt")
        assert not reg.has("SQRT")

    def test_custom_registration(self) -> None:
        reg = FunctionRegistry()
        reg.register("answer", lambda args: 42.0, min_args=0, max_args=0)
        spec = reg.get("answer")
        assert spec is not None
        assert spec.func([]) == 42.0
        assert spec.accepts(0)
        assert not spec.accepts(1)

    def test_registration_is_per_instance(self) -> None:
        reg = FunctionRegistry()
        reg.register("sqrt", lambda args: -1.0)
        assert FunctionRegistry().get("sqrt") is _BUILTINS["sqrt"]

    def test_supported_functions(self) -> None:
        names = FunctionRegistry().supported_functions
        assert set(_BUILTINS) <= names
        assert "arctan" in names

    def test_missing(self) -> None:
        assert FunctionRegistry().get("nope") is None


class TestArity:
    def test_fixed(self) -> None:
        spec = FunctionSpec(abs, 1, 1)
        assert spec.accepts(1)
        assert not spec.accepts(0)
        assert spec.describe_arity() == "1"

    def test_range(self) -> None:
        spec = _BUILTINS["log"]
        assert spec.accepts(1) and spec.accepts(2)
        assert not spec.accepts(3)
        assert spec.describe_arity() == "1 to 2"

    def test_variadic(self) -> None:
        spec = _BUILTINS["max"]
        assert spec.accepts(1) and spec.accepts(20)
        assert not spec.accepts(0)
        assert spec.describe_arity() == "at least 1"


class TestBuiltins:
    def test_roots(self) -> None:
        assert _call("sqrt", 16) == 4.0
        assert _call("cbrt", -27) == pytest.approx(-3.0)

    def test_sqrt_negative(self) -> None:
        with pytest.raises(ValueError):
            _call("sqrt", -1)

    def test_logs(self) -> None:
        assert _call("log", 1000) == pytest.approx(3.0)
        assert _call("log", 8, 2) == pytest.approx(3.0)
        assert _call("ln", math.e) == pytest.approx(1.0)
        assert _call("log2", 8) == 3.0
        assert _call("log10", 100) == 2.0

    @pytest.mark.parametrize("name", ["ln", "log", "log2", "log10"])
    def test_log_non_positive(self, name: str) -> None:
        with pytest.raises(ValueError):
            _call(name, 0)

    def test_log_bad_base(self) -> None:
        with pytest.raises(ValueError):
            _call("log", 8, 1)

    def test_trig(self) -> None:
        assert _call("sin", math.pi / 2) == pytest.approx(1.0)
        assert _call("cos", 0) == 1.0
        assert _call("sec", 0) == 1.0
        assert _call("cot", math.pi / 4) == pytest.approx(1.0)

    def test_reciprocal_trig_pole(self) -> None:
        with pytest.raises(ZeroDivisionError):
            _call("csc", 0)

    def test_inverse_trig(self) -> None:
        assert _call("asin", 1) == pytest.approx(math.pi / 2)
        assert _call("acos", 1) == 0.0
        assert _call("asec", 2) == pytest.approx(math.pi / 3)
        assert _call("acot", 0) == pytest.approx(math.pi / 2)

    @pytest.mark.parametrize("name,arg", [("asin", 2), ("acos", -1.5), ("asec", 0.5), ("acsc", 0)])
    def test_inverse_trig_domain(self, name: str, arg: float) -> None:
        with pytest.raises(ValueError):
            _call(name, arg)

    def test_min_max(self) -> None:
        assert _call("min", 3, 1, 2) == 1.0
        assert _call("max", 3, 1, 2) == 3.0

    def test_floor_ceil(self) -> None:
        assert _call("floor", -1.5) == -2.0
        assert _call("ceil", -1.5) == -1.0

    def test_round_half_away_from_zero(self) -> None:
        assert _call("round", 2.5) == 3.0
        assert _call("round", -2.5) == -3.0
        assert _call("round", 3.14159, 2) == pytest.approx(3.14)

    def test_constants(self) -> None:
        assert CONSTANTS == {"pi": math.pi, "e": math.e, "tau": math.tau}
