"""Result dataclasses shared by the evaluator, the document and the editor."""

from __future__ import annotations

from dataclasses import dataclass

from mathnotes.calc._errors import CalcError, ErrorKind, Span


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating one line: a value or a line-local error.

    ``display`` is what a front end shows next to the line: the formatted
    value (``x = 10`` for assignments) or the error message.
    """

    display: str
    value: float | None = None
    target: str | None = None  # assigned name, for ``name = expr`` lines
    kind: ErrorKind | None = None
    span: Span | None = None

    @property
    def ok(self) -> bool:
        return self.kind is None

    @classmethod
    def success(cls, value: float, display: str, target: str | None = None) -> EvaluationResult:
        return cls(display=display, value=value, target=target)

    @classmethod
    def failure(cls, error: CalcError, target: str | None = None) -> EvaluationResult:
        return cls(display=error.message, target=target, kind=error.kind, span=error.span)


@dataclass(frozen=True)
class LineDelta:
    """A single line's result change from one evaluation pass."""

    line_id: int
    index: int  # position in the document at evaluation time
    old: EvaluationResult | None
    new: EvaluationResult | None


@dataclass(frozen=True)
class EvaluationReport:
    """Summary of an evaluate command."""

    deltas: tuple[LineDelta, ...]
    evaluated_lines: int = 0
    failed_lines: int = 0
    bindings: tuple[tuple[str, float], ...] = ()  # final user environment, in binding order

    @property
    def changed(self) -> bool:
        return bool(self.deltas)
