"""Tests for mathnotes Document primitives and cursor bounds."""

from __future__ import annotations

import pytest

from mathnotes import Document, Line, LineState, Position
from mathnotes.calc._protocol import EvaluationResult


class TestConstruction:
    def test_lines_from_text(self) -> None:
        doc = Document("a\nb\n\nc")
        assert [line.text for line in doc] == ["a", "b", "", "c"]
        assert doc.text == "a\nb\n\nc"
        assert len(doc) == 4

    def test_empty_document_has_one_line(self) -> None:
        doc = Document()
        assert len(doc) == 1
        assert doc.text == ""

    def test_initial_states(self) -> None:
        doc = Document("2 + 2\n\nNotes")
        assert [line.state for line in doc] == [LineState.DIRTY, LineState.CLEAN, LineState.DIRTY]
        assert all(line.result is None for line in doc)

    def test_ids_unique_and_stable(self) -> None:
        doc = Document("a\nb")
        ids = [line.id for line in doc]
        assert len(set(ids)) == 2
        fresh = doc.allocate_id()
        assert fresh not in ids
        assert doc.allocate_id() != fresh

    def test_lookup_by_id(self) -> None:
        doc = Document("a\nb")
        second = doc[1]
        assert doc.index_of(second.id) == 1
        assert doc.line_by_id(second.id) is second
        with pytest.raises(KeyError):
            doc.index_of(999)


class TestCursor:
    def test_starts_at_origin(self) -> None:
        assert Document("abc").cursor == Position(0, 0)

    def test_clamped_on_assignment(self) -> None:
        doc = Document("abc\nde")
        doc.cursor = Position(5, 10)
        assert doc.cursor == Position(1, 2)
        doc.cursor = Position(-1, -1)
        assert doc.cursor == Position(0, 0)

    def test_end_of(self) -> None:
        assert Document("abc\nde").end_of(0) == Position(0, 3)

    def test_positions_order(self) -> None:
        assert Position(0, 5) < Position(1, 0)
        assert Position(1, 1) > Position(1, 0)

    def test_cursor_clamped_after_delete(self) -> None:
        doc = Document("abcdef")
        doc.cursor = Position(0, 6)
        doc.delete_text(0, 2, 4)
        assert doc.cursor == Position(0, 2)

    def test_cursor_clamped_after_merge(self) -> None:
        doc = Document("ab\ncd")
        doc.cursor = Position(1, 2)
        doc.merge_lines(0)
        assert doc.cursor == Position(0, 2)


class TestMutation:
    def test_insert_text(self) -> None:
        doc = Document("ac")
        doc.insert_text(0, 1, "b")
        assert doc.text == "abc"

    def test_insert_rejects_newline(self) -> None:
        with pytest.raises(ValueError):
            Document("a").insert_text(0, 0, "x\ny")

    def test_insert_out_of_range(self) -> None:
        doc = Document("abc")
        with pytest.raises(IndexError):
            doc.insert_text(0, 4, "x")
        with pytest.raises(IndexError):
            doc.insert_text(1, 0, "x")

    def test_delete_returns_removed(self) -> None:
        doc = Document("hello")
        assert doc.delete_text(0, 1, 3) == "ell"
        assert doc.text == "ho"

    def test_delete_past_end(self) -> None:
        with pytest.raises(IndexError):
            Document("abc").delete_text(0, 2, 5)

    def test_split_line(self) -> None:
        doc = Document("hello world")
        doc.split_line(0, 5, Line(doc.allocate_id()))
        assert [line.text for line in doc] == ["hello", " world"]

    def test_merge_lines(self) -> None:
        doc = Document("ab\ncd\nef")
        removed_id = doc[1].id
        removed = doc.merge_lines(0)
        assert removed.id == removed_id
        assert doc.text == "abcd\nef"

    def test_merge_last_line(self) -> None:
        with pytest.raises(IndexError):
            Document("a\nb").merge_lines(1)


class TestSnapshot:
    def test_views(self) -> None:
        doc = Document("2 + 2\nnote")
        doc[0].result = EvaluationResult.success(4.0, "4")
        doc[0].state = LineState.CLEAN
        views = doc.snapshot()
        assert views[0].text == "2 + 2"
        assert views[0].annotation == "4"
        assert not views[0].is_error
        assert views[1].annotation is None

    def test_snapshot_is_immutable_copy(self) -> None:
        doc = Document("a")
        views = doc.snapshot()
        doc.insert_text(0, 1, "b")
        assert views[0].text == "a"
        assert doc.snapshot() != views
