"""Document - ordered lines of notes with cached evaluation results.

The document only offers raw primitives (insert/delete text, split/merge
lines, restore a line's status).  Undoable editing goes through the ops in
:mod:`mathnotes._history`, driven by :class:`~mathnotes.Editor`.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from mathnotes.calc._protocol import EvaluationResult


class LineState(Enum):
    CLEAN = "clean"  # result matches the current text (or plain text line)
    DIRTY = "dirty"  # text changed since the last evaluation; result is stale
    EVALUATING = "evaluating"  # transient, only inside an evaluate pass
    ERROR = "error"  # evaluated, result is an error


class LineStatus(NamedTuple):
    """Everything about a line except its text."""

    result: EvaluationResult | None
    state: LineState


CLEAN_EMPTY = LineStatus(None, LineState.CLEAN)


@dataclass(frozen=True, order=True)
class Position:
    """A cursor position: 0-based line index and column."""

    line: int
    column: int


class Line:
    """One line of the document."""

    __slots__ = ("id", "result", "state", "text")

    def __init__(self, line_id: int, text: str = "", status: LineStatus = CLEAN_EMPTY) -> None:
        self.id = line_id
        self.text = text
        self.result: EvaluationResult | None = status.result
        self.state: LineState = status.state

    @property
    def status(self) -> LineStatus:
        return LineStatus(self.result, self.state)

    def restore(self, status: LineStatus) -> None:
        self.result = status.result
        self.state = status.state

    def __repr__(self) -> str:
        return f"<Line #{self.id} {self.state.value} {self.text!r}>"


@dataclass(frozen=True)
class LineView:
    """Immutable per-line snapshot handed to a front end."""

    text: str
    state: LineState
    result: EvaluationResult | None

    @property
    def annotation(self) -> str | None:
        """Formatted value or error message, None when nothing is shown."""
        return self.result.display if self.result is not None else None

    @property
    def is_error(self) -> bool:
        return self.result is not None and not self.result.ok


class Document:
    """Ordered sequence of lines plus a cursor that always stays in bounds."""

    __slots__ = ("_cursor", "_lines", "_next_id")

    def __init__(self, text: str = "") -> None:
        self._next_id = 0
        # Non-blank lines start dirty so the first evaluate pass picks them up.
        self._lines: list[Line] = [
            Line(self.allocate_id(), t, LineStatus(None, LineState.DIRTY) if t.strip() else CLEAN_EMPTY)
            for t in text.split("\n")
        ]
        self._cursor = Position(0, 0)

    def allocate_id(self) -> int:
        """A fresh line id, never reused within this document."""
        line_id = self._next_id
        self._next_id += 1
        return line_id

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def lines(self) -> tuple[Line, ...]:
        return tuple(self._lines)

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index: int) -> Line:
        return self._lines[index]

    def __iter__(self) -> Iterator[Line]:
        return iter(self._lines)

    def index_of(self, line_id: int) -> int:
        for i, line in enumerate(self._lines):
            if line.id == line_id:
                return i
        raise KeyError(f"No line with id {line_id}")

    def line_by_id(self, line_id: int) -> Line:
        return self._lines[self.index_of(line_id)]

    def snapshot(self) -> tuple[LineView, ...]:
        return tuple(LineView(line.text, line.state, line.result) for line in self._lines)

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> Position:
        return self._cursor

    @cursor.setter
    def cursor(self, pos: Position) -> None:
        self._cursor = self.clamp(pos)

    def clamp(self, pos: Position) -> Position:
        """Nearest valid position to *pos*."""
        line = min(max(pos.line, 0), len(self._lines) - 1)
        column = min(max(pos.column, 0), len(self._lines[line].text))
        return Position(line, column)

    def end_of(self, index: int) -> Position:
        return Position(index, len(self._lines[index].text))

    # ------------------------------------------------------------------
    # Raw mutation primitives
    # ------------------------------------------------------------------

    def _check_position(self, index: int, column: int) -> Line:
        if not 0 <= index < len(self._lines):
            raise IndexError(f"Line index {index} out of range")
        line = self._lines[index]
        if not 0 <= column <= len(line.text):
            raise IndexError(f"Column {column} out of range for line {index}")
        return line

    def insert_text(self, index: int, column: int, text: str) -> None:
        if "\n" in text:
            raise ValueError("insert_text cannot insert line breaks; split the line instead")
        line = self._check_position(index, column)
        line.text = line.text[:column] + text + line.text[column:]

    def delete_text(self, index: int, column: int, length: int) -> str:
        """Delete *length* characters at (index, column) and return them."""
        line = self._check_position(index, column)
        if column + length > len(line.text):
            raise IndexError(f"Cannot delete {length} characters at column {column}")
        removed = line.text[column:column + length]
        line.text = line.text[:column] + line.text[column + length:]
        self._cursor = self.clamp(self._cursor)
        return removed

    def split_line(self, index: int, column: int, new_line: Line) -> None:
        """Move the text after *column* into *new_line*, inserted below."""
        line = self._check_position(index, column)
        new_line.text = line.text[column:]
        line.text = line.text[:column]
        self._lines.insert(index + 1, new_line)
        self._cursor = self.clamp(self._cursor)

    def merge_lines(self, index: int) -> Line:
        """Append line ``index + 1`` to line *index*; return the removed line."""
        if not 0 <= index < len(self._lines) - 1:
            raise IndexError(f"No line after index {index} to merge")
        removed = self._lines.pop(index + 1)
        self._lines[index].text += removed.text
        self._cursor = self.clamp(self._cursor)
        return removed

    def __repr__(self) -> str:
        return f"<Document lines={len(self._lines)} cursor=({self._cursor.line}, {self._cursor.column})>"
