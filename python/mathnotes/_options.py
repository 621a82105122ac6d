"""Engine configuration."""

from __future__ import annotations

from dataclasses import dataclass

from mathnotes.calc._parser import DEFAULT_COMMENT_PREFIXES, DEFAULT_MAX_DEPTH


@dataclass(frozen=True)
class EngineOptions:
    """Tunable behavior of the evaluator and the editor.

    Passed explicitly to :class:`~mathnotes.Editor` and
    :class:`~mathnotes.calc.LineEvaluator`; there is no global configuration.
    """

    max_depth: int = DEFAULT_MAX_DEPTH  # parse nesting limit, beyond it TOO_DEEP
    precision: int | None = None  # significant digits for display; None = shortest repr
    comment_prefixes: tuple[str, ...] = DEFAULT_COMMENT_PREFIXES
    coalesce_typing: bool = True  # merge contiguous keystrokes into one undo unit
    history_limit: int | None = None  # max undo units kept; None = unbounded

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.precision is not None and self.precision < 1:
            raise ValueError(f"precision must be positive, got {self.precision}")
        if self.history_limit is not None and self.history_limit < 1:
            raise ValueError(f"history_limit must be positive, got {self.history_limit}")
