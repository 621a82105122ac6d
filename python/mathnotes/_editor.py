"""Editor - the command surface a front end drives.

Usage::

    editor = Editor("x = 10\\nx * 2")
    editor.evaluate()
    [view.annotation for view in editor.snapshot()]   # ["x = 10", "20"]

    editor.move_cursor(0, 6)
    editor.backspace()
    editor.backspace()
    editor.type_text("5")
    editor.evaluate()                                  # second line -> "10"
    editor.undo()                                      # back to the stale results

    editor.select(Position(1, 0), Position(1, 5))
    editor.insert_result()                             # "x * 2 = 10" on line 1
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from mathnotes._document import Document, LineState, LineStatus, LineView, Position
from mathnotes._history import (
    DeleteText,
    EditOp,
    EntryKind,
    History,
    HistoryEntry,
    InsertText,
    MergeLines,
    SetResult,
    SplitLine,
)
from mathnotes._options import EngineOptions
from mathnotes.calc._evaluator import Environment, LineEvaluator
from mathnotes.calc._functions import FunctionRegistry
from mathnotes.calc._graph import DependencyGraph
from mathnotes.calc._parser import Statement
from mathnotes.calc._protocol import EvaluationReport, EvaluationResult, LineDelta

logger = logging.getLogger(__name__)


class Command(Enum):
    """Discrete commands bound to keys by the front end."""

    EVALUATE = "evaluate"
    EVALUATE_AND_ADVANCE = "evaluate_and_advance"
    INSERT_RESULT = "insert_result"
    UNDO = "undo"
    REDO = "redo"


class _Transaction:
    """Applies ops one by one, rolling them back if a later op fails."""

    def __init__(self, document: Document) -> None:
        self.document = document
        self.ops: list[EditOp] = []

    def do(self, op: EditOp) -> None:
        op.apply(self.document)
        self.ops.append(op)

    def rollback(self) -> None:
        for op in reversed(self.ops):
            op.inverse().apply(self.document)
        self.ops.clear()


class Editor:
    """One open document with its undo history and evaluator."""

    def __init__(
        self,
        text: str = "",
        options: EngineOptions | None = None,
        functions: FunctionRegistry | None = None,
    ) -> None:
        self.options = options if options is not None else EngineOptions()
        self.document = Document(text)
        self.history = History(
            self.document,
            limit=self.options.history_limit,
            coalesce=self.options.coalesce_typing,
        )
        self.evaluator = LineEvaluator(functions, self.options)
        self.selection: tuple[Position, Position] | None = None

    # ------------------------------------------------------------------
    # Output for the front end
    # ------------------------------------------------------------------

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def cursor(self) -> Position:
        return self.document.cursor

    def snapshot(self) -> tuple[LineView, ...]:
        return self.document.snapshot()

    # ------------------------------------------------------------------
    # Text edits
    # ------------------------------------------------------------------

    def move_cursor(self, line: int, column: int) -> Position:
        """Move the cursor (clamped into the document); ends a typing run."""
        self.document.cursor = Position(line, column)
        self.selection = None
        self.history.seal()
        return self.document.cursor

    def select(self, start: Position, end: Position) -> tuple[Position, Position] | None:
        """Select ``[start, end)``; the cursor moves to *end*.

        Any edit, cursor move, undo or redo drops the selection.
        """
        start = self.document.clamp(start)
        end = self.document.clamp(end)
        self.document.cursor = end
        if end < start:
            start, end = end, start
        self.selection = (start, end) if start != end else None
        self.history.seal()
        return self.selection

    def type_text(self, text: str) -> None:
        """Insert *text* at the cursor; ``\\n`` breaks lines."""
        if not text:
            return
        kind = EntryKind.EDIT if "\n" in text else EntryKind.TYPING
        self._edit(kind, lambda tx: self._insert(tx, self.document.cursor, text))

    def backspace(self) -> bool:
        """Delete the character before the cursor, joining lines at column 0."""
        pos = self.document.cursor
        if pos.column > 0:
            char = self.document[pos.line].text[pos.column - 1]
            op: EditOp = DeleteText(pos.line, pos.column - 1, char)
            kind = EntryKind.DELETING
        elif pos.line > 0:
            op = self._merge_op(pos.line - 1)
            kind = EntryKind.EDIT
        else:
            return False
        self._edit(kind, lambda tx: tx.do(op))
        return True

    def delete_forward(self) -> bool:
        """Delete the character after the cursor, joining lines at line end."""
        pos = self.document.cursor
        line = self.document[pos.line]
        if pos.column < len(line.text):
            op: EditOp = DeleteText(pos.line, pos.column, line.text[pos.column])
            kind = EntryKind.DELETING
        elif pos.line < len(self.document) - 1:
            op = self._merge_op(pos.line)
            kind = EntryKind.EDIT
        else:
            return False
        self._edit(kind, lambda tx: tx.do(op))
        return True

    def replace(self, start: Position, end: Position, text: str = "") -> None:
        """Replace the range ``[start, end)`` with *text* (a generic edit event)."""
        start = self.document.clamp(start)
        end = self.document.clamp(end)
        if end < start:
            start, end = end, start
        if start == end and not text:
            return

        def build(tx: _Transaction) -> None:
            self._delete_range(tx, start, end)
            self._insert(tx, start, text)

        self._edit(EntryKind.EDIT, build, cursor_before=start)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def evaluate(self) -> EvaluationReport:
        """Evaluate every dirty line in document order as one undo unit."""
        document = self.document
        tx = _Transaction(document)
        env = Environment()
        deltas: list[LineDelta] = []
        evaluated = failed = 0

        for index, line in enumerate(document):
            if line.state is not LineState.DIRTY:
                result = line.result
                if result is not None and result.ok and result.target is not None:
                    env.bind(result.target, result.value)
                continue

            before = line.status
            line.state = LineState.EVALUATING
            try:
                result = self.evaluator.evaluate_line(line.text, env)
            except Exception:
                line.restore(before)
                tx.rollback()
                raise
            if result is None:
                after = LineStatus(None, LineState.CLEAN)
            else:
                evaluated += 1
                if result.ok:
                    after = LineStatus(result, LineState.CLEAN)
                else:
                    failed += 1
                    after = LineStatus(result, LineState.ERROR)
            # SetResult.apply replaces the transient EVALUATING state.
            tx.do(SetResult(line.id, before, after))
            if before.result != after.result:
                deltas.append(LineDelta(line.id, index, before.result, after.result))

        if tx.ops:
            self.history.record(HistoryEntry(tuple(tx.ops), EntryKind.EVALUATION))
        self.history.seal()
        logger.debug("Evaluated %d lines, %d failed", evaluated, failed)
        return EvaluationReport(
            deltas=tuple(deltas),
            evaluated_lines=evaluated,
            failed_lines=failed,
            bindings=tuple(env.bindings.items()),
        )

    def evaluate_and_advance(self) -> EvaluationReport:
        """Evaluate, then move to the start of the next line (creating it at the end)."""
        report = self.evaluate()
        index = self.document.cursor.line
        if index == len(self.document) - 1:
            end = self.document.end_of(index)
            self._edit(
                EntryKind.EDIT,
                lambda tx: tx.do(SplitLine(index, end.column, self.document.allocate_id())),
                cursor_before=end,
            )
        else:
            self.move_cursor(index + 1, 0)
        return report

    def insert_result(self, selection: tuple[Position, Position] | None = None) -> bool:
        """Evaluate, then write `` = <result>`` into the text.

        With a selection (the argument, else the editor's current one) the
        selected text is evaluated against the variables of the lines above
        and the result goes right after it.  Otherwise the cursor line's
        expression is used and an inline result inserted earlier is replaced.
        Returns False when there is nothing to evaluate.
        """
        if selection is None:
            selection = self.selection
        if selection is not None:
            return self._insert_selection_result(*selection)

        self.evaluate()
        index = self.document.cursor.line
        line = self.document[index]
        stmt = self.evaluator.statement(line.text)
        if stmt is None or line.result is None:
            return False

        shown = self._shown(line.result)
        expr_end = stmt.span[1]
        tail = line.text[expr_end:]

        def build(tx: _Transaction) -> None:
            if tail.strip():
                tx.do(DeleteText(index, expr_end, tail))
            tx.do(InsertText(index, expr_end, f" = {shown}"))

        # The line's expression is unchanged, so its fresh result stays clean.
        self._edit(
            EntryKind.EDIT, build, cursor_before=Position(index, expr_end), settled={line.id}
        )
        return True

    def _insert_selection_result(self, start: Position, end: Position) -> bool:
        start = self.document.clamp(start)
        end = self.document.clamp(end)
        if end < start:
            start, end = end, start
        if start.line != end.line:
            raise ValueError("Selection spans more than one line")

        self.evaluate()
        index = start.line
        selected = self.document[index].text[start.column:end.column]
        source = selected.strip()
        if not source:
            return False
        offset = start.column + len(selected) - len(selected.lstrip())
        result = self.evaluator.evaluate_statement(
            Statement(source, offset), self._environment_before(index)
        )
        shown = self._shown(result)
        self._edit(
            EntryKind.EDIT,
            lambda tx: tx.do(InsertText(index, end.column, f" = {shown}")),
            cursor_before=end,
        )
        return True

    def _environment_before(self, index: int) -> Environment:
        """Bindings made by the (evaluated) lines above *index*."""
        env = Environment()
        for line in self.document.lines[:index]:
            result = line.result
            if result is not None and result.ok and result.target is not None:
                env.bind(result.target, result.value)
        return env

    def _shown(self, result: EvaluationResult) -> str:
        return self.evaluator.format(result.value) if result.ok else result.display

    def undo(self) -> bool:
        self.selection = None
        return self.history.undo()

    def redo(self) -> bool:
        self.selection = None
        return self.history.redo()

    def handle(self, command: Command) -> Any:
        """Dispatch a :class:`Command` to its handler."""
        handlers: dict[Command, Callable[[], Any]] = {
            Command.EVALUATE: self.evaluate,
            Command.EVALUATE_AND_ADVANCE: self.evaluate_and_advance,
            Command.INSERT_RESULT: self.insert_result,
            Command.UNDO: self.undo,
            Command.REDO: self.redo,
        }
        return handlers[command]()

    # ------------------------------------------------------------------
    # Edit plumbing
    # ------------------------------------------------------------------

    def _edit(
        self,
        kind: EntryKind,
        build: Callable[[_Transaction], None],
        cursor_before: Position | None = None,
        settled: frozenset[int] | set[int] = frozenset(),
    ) -> None:
        """Run *build* as one undo unit, then mark affected lines dirty.

        Lines in *settled* stay clean when only text outside their
        expression changed.
        """
        document = self.document
        self.selection = None
        before_cursor = cursor_before if cursor_before is not None else document.cursor
        before_lines = self._statements()
        tx = _Transaction(document)
        try:
            build(tx)
            for op in self._invalidations(before_lines, settled):
                tx.do(op)
        except Exception:
            tx.rollback()
            raise
        after_cursor = self._cursor_after(tx.ops, before_cursor)
        document.cursor = after_cursor
        self.history.record(HistoryEntry(tuple(tx.ops), kind, before_cursor, after_cursor))

    @staticmethod
    def _cursor_after(ops: Iterable[EditOp], default: Position) -> Position:
        pos = default
        for op in ops:
            if isinstance(op, InsertText):
                pos = Position(op.index, op.column + len(op.text))
            elif isinstance(op, DeleteText):
                pos = Position(op.index, op.column)
            elif isinstance(op, SplitLine):
                pos = Position(op.index + 1, 0)
            elif isinstance(op, MergeLines):
                pos = Position(op.index, op.column)
        return pos

    def _insert(self, tx: _Transaction, pos: Position, text: str) -> None:
        index, column = pos.line, pos.column
        for i, piece in enumerate(text.split("\n")):
            if i > 0:
                tx.do(SplitLine(index, column, self.document.allocate_id()))
                index, column = index + 1, 0
            if piece:
                tx.do(InsertText(index, column, piece))
                column += len(piece)

    def _delete_range(self, tx: _Transaction, start: Position, end: Position) -> None:
        document = self.document
        if start.line == end.line:
            if end.column > start.column:
                text = document[start.line].text[start.column:end.column]
                tx.do(DeleteText(start.line, start.column, text))
            return
        tail = document[start.line].text[start.column:]
        if tail:
            tx.do(DeleteText(start.line, start.column, tail))
        # Pull each following line up into the start line until the end line is consumed.
        for offset in range(end.line - start.line):
            nxt = document[start.line + 1]
            cut = len(nxt.text) if offset < end.line - start.line - 1 else end.column
            if cut:
                tx.do(DeleteText(start.line + 1, 0, nxt.text[:cut]))
            tx.do(self._merge_op(start.line))

    def _merge_op(self, index: int) -> MergeLines:
        nxt = self.document[index + 1]
        return MergeLines(index, len(self.document[index].text), nxt.id, nxt.status)

    # ------------------------------------------------------------------
    # Dirty tracking
    # ------------------------------------------------------------------

    def _statements(self) -> dict[int, tuple[str, Statement | None]]:
        return {
            line.id: (line.text, self.evaluator.statement(line.text)) for line in self.document
        }

    def _invalidations(
        self,
        before: dict[int, tuple[str, Statement | None]],
        settled: frozenset[int] | set[int] = frozenset(),
    ) -> list[SetResult]:
        """SetResult ops marking edited lines and their dependents dirty.

        Every line whose text changed is dirty.  Dependents are dirtied only
        when an assignment was added, removed or changed, so editing a label
        leaves the lines reading that line's variable alone.
        """
        after = self._statements()
        old_targets: set[str] = set()
        new_targets: set[str] = set()
        dirty: set[int] = set()

        for line_id, (text, stmt) in after.items():
            old_text, old_stmt = before.get(line_id, (None, None))
            if line_id in before and old_stmt == stmt:
                if old_text != text and line_id not in settled:
                    dirty.add(line_id)
                continue
            dirty.add(line_id)
            if old_stmt is not None and old_stmt.target is not None:
                old_targets.add(old_stmt.target)
            if stmt is not None and stmt.target is not None:
                new_targets.add(stmt.target)

        for line_id in before.keys() - after.keys():
            _, removed = before[line_id]
            if removed is not None and removed.target is not None:
                old_targets.add(removed.target)

        graph = DependencyGraph.from_document(self.document, self.options.comment_prefixes)
        dirty.update(graph.affected_lines(old_targets | new_targets))

        ops: list[SetResult] = []
        for line in self.document:
            if line.id not in dirty or line.state is LineState.DIRTY:
                continue
            if not line.text.strip() and line.result is None:
                continue
            ops.append(SetResult(line.id, line.status, LineStatus(line.result, LineState.DIRTY)))
        return ops
