"""Invertible edit operations and the undo/redo history.

Every change to a :class:`~mathnotes._document.Document` - keystrokes,
line splits and merges, dirty marking and evaluation results - is an
:data:`EditOp`.  Ops are grouped into a :class:`HistoryEntry`, the unit of
undo.  :class:`History` keeps two stacks:

- ``apply(entry)`` performs the entry, pushes its inverse onto the undo
  stack and clears the redo stack
- ``undo()`` pops an inverse, applies it, and pushes its inverse (the
  original entry) onto the redo stack
- ``redo()`` is symmetric

Coalescing: a typing entry merges into the previous undo unit when that
unit is also a typing entry that ended exactly where the new one starts
(same line, no cursor jump) and nothing sealed the history in between.
Backspace runs coalesce the same way.  Cursor moves, undo/redo, line
breaks and evaluations seal the history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Union

from mathnotes._document import CLEAN_EMPTY, Line, LineStatus, Position

if TYPE_CHECKING:
    from mathnotes._document import Document

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Edit operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InsertText:
    """Insert single-line *text* at (index, column)."""

    index: int
    column: int
    text: str

    def apply(self, document: Document) -> Position | None:
        document.insert_text(self.index, self.column, self.text)
        return Position(self.index, self.column + len(self.text))

    def inverse(self) -> DeleteText:
        return DeleteText(self.index, self.column, self.text)


@dataclass(frozen=True)
class DeleteText:
    """Delete *text*, which must be present at (index, column)."""

    index: int
    column: int
    text: str

    def apply(self, document: Document) -> Position | None:
        current = document[self.index].text[self.column:self.column + len(self.text)]
        if current != self.text:
            raise ValueError(
                f"DeleteText expected {self.text!r} at {self.index}:{self.column}, found {current!r}"
            )
        document.delete_text(self.index, self.column, len(self.text))
        return Position(self.index, self.column)

    def inverse(self) -> InsertText:
        return InsertText(self.index, self.column, self.text)


@dataclass(frozen=True)
class SplitLine:
    """Break line *index* at *column*; the tail becomes line ``new_id``."""

    index: int
    column: int
    new_id: int
    status: LineStatus = CLEAN_EMPTY  # status given to the new line

    def apply(self, document: Document) -> Position | None:
        document.split_line(self.index, self.column, Line(self.new_id, "", self.status))
        return Position(self.index + 1, 0)

    def inverse(self) -> MergeLines:
        return MergeLines(self.index, self.column, self.new_id, self.status)


@dataclass(frozen=True)
class MergeLines:
    """Join line ``index + 1`` (id ``removed_id``) onto line *index*.

    *column* is the length of line *index* before the merge and
    *removed_status* the removed line's status, so the merge can be undone.
    """

    index: int
    column: int
    removed_id: int
    removed_status: LineStatus = CLEAN_EMPTY

    def apply(self, document: Document) -> Position | None:
        if len(document[self.index].text) != self.column:
            raise ValueError(f"MergeLines expected line {self.index} to have length {self.column}")
        if document[self.index + 1].id != self.removed_id:
            raise ValueError(f"MergeLines expected line #{self.removed_id} after line {self.index}")
        document.merge_lines(self.index)
        return Position(self.index, self.column)

    def inverse(self) -> SplitLine:
        return SplitLine(self.index, self.column, self.removed_id, self.removed_status)


@dataclass(frozen=True)
class SetResult:
    """Change a line's cached result and state (evaluation or invalidation)."""

    line_id: int
    before: LineStatus
    after: LineStatus

    def apply(self, document: Document) -> Position | None:
        document.line_by_id(self.line_id).restore(self.after)
        return None

    def inverse(self) -> SetResult:
        return SetResult(self.line_id, self.after, self.before)


EditOp = Union[InsertText, DeleteText, SplitLine, MergeLines, SetResult]


# ---------------------------------------------------------------------------
# Undo units
# ---------------------------------------------------------------------------


class EntryKind(Enum):
    TYPING = "typing"
    DELETING = "deleting"
    EDIT = "edit"
    EVALUATION = "evaluation"


_COALESCING_KINDS = frozenset({EntryKind.TYPING, EntryKind.DELETING})


@dataclass(frozen=True)
class HistoryEntry:
    """An ordered group of ops undone and redone as one unit."""

    ops: tuple[EditOp, ...]
    kind: EntryKind = EntryKind.EDIT
    cursor_before: Position | None = None
    cursor_after: Position | None = None

    def apply(self, document: Document) -> None:
        for op in self.ops:
            op.apply(document)
        if self.cursor_after is not None:
            document.cursor = self.cursor_after

    def inverse(self) -> HistoryEntry:
        return HistoryEntry(
            ops=tuple(op.inverse() for op in reversed(self.ops)),
            kind=self.kind,
            cursor_before=self.cursor_after,
            cursor_after=self.cursor_before,
        )

    def followed_by(self, other: HistoryEntry) -> HistoryEntry:
        """This entry and then *other*, as one unit."""
        return replace(self, ops=self.ops + other.ops, cursor_after=other.cursor_after)

    def __bool__(self) -> bool:
        return bool(self.ops)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@dataclass
class History:
    """Undo and redo stacks bound to one document."""

    document: Document
    limit: int | None = None
    coalesce: bool = True
    undo_stack: list[HistoryEntry] = field(default_factory=list)
    redo_stack: list[HistoryEntry] = field(default_factory=list)
    _sealed: bool = field(default=True, init=False, repr=False)

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def seal(self) -> None:
        """Stop the next entry from coalescing with the current top."""
        self._sealed = True

    def apply(self, entry: HistoryEntry) -> None:
        """Perform *entry* and record it as undoable."""
        if not entry:
            return
        entry.apply(self.document)
        self.record(entry)

    def record(self, entry: HistoryEntry) -> None:
        """Record an entry whose ops have already been applied to the document."""
        if not entry:
            return
        self.redo_stack.clear()

        if self._coalesces(entry):
            previous = self.undo_stack.pop().inverse()
            entry = previous.followed_by(entry)
        self.undo_stack.append(entry.inverse())
        self._sealed = entry.kind not in _COALESCING_KINDS

        if self.limit is not None and len(self.undo_stack) > self.limit:
            del self.undo_stack[: len(self.undo_stack) - self.limit]

    def undo(self) -> bool:
        """Revert the last undo unit; False when there is nothing to undo."""
        if not self.undo_stack:
            logger.debug("Nothing to undo")
            return False
        inverse = self.undo_stack.pop()
        inverse.apply(self.document)
        self.redo_stack.append(inverse.inverse())
        self._sealed = True
        return True

    def redo(self) -> bool:
        """Re-apply the last undone unit; False when there is nothing to redo."""
        if not self.redo_stack:
            logger.debug("Nothing to redo")
            return False
        entry = self.redo_stack.pop()
        entry.apply(self.document)
        self.undo_stack.append(entry.inverse())
        self._sealed = True
        return True

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()
        self._sealed = True

    def _coalesces(self, entry: HistoryEntry) -> bool:
        if not self.coalesce or self._sealed or not self.undo_stack:
            return False
        if entry.kind not in _COALESCING_KINDS:
            return False
        previous = self.undo_stack[-1]  # stored inverted: cursor fields are swapped
        return (
            previous.kind is entry.kind
            and previous.cursor_before is not None
            and previous.cursor_before == entry.cursor_before
        )
