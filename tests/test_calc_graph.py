"""Tests for mathnotes.calc dependency graph between lines."""

from __future__ import annotations

from mathnotes import Document
from mathnotes.calc._graph import DependencyGraph, statement_names
from mathnotes.calc._parser import split_statement


class TestStatementNames:
    def test_assignment(self) -> None:
        assert statement_names(split_statement("total = a + b")) == ("total", frozenset({"a", "b"}))

    def test_calls_are_not_reads(self) -> None:
        assert statement_names(split_statement("sqrt(x) + max(y, 2)")) == (
            None,
            frozenset({"x", "y"}),
        )

    def test_unparseable_line_still_reports_reads(self) -> None:
        assert statement_names(split_statement("(rate * 2")) == (None, frozenset({"rate"}))

    def test_plain_text(self) -> None:
        assert statement_names(None) == (None, frozenset())

    def test_lex_error(self) -> None:
        assert statement_names(split_statement("x = a $ b")) == ("x", frozenset())


class TestAffectedLines:
    def test_direct_readers(self) -> None:
        g = DependencyGraph()
        g.add_line(1, "x", [])
        g.add_line(2, None, ["x"])
        g.add_line(3, None, ["y"])
        assert g.affected_lines(["x"]) == [2]

    def test_transitive_chain(self) -> None:
        """x -> y -> z"""
        g = DependencyGraph()
        g.add_line(1, "x", [])
        g.add_line(2, "y", ["x"])
        g.add_line(3, "z", ["y"])
        g.add_line(4, None, ["z"])
        assert g.affected_lines(["x"]) == [2, 3, 4]

    def test_document_order(self) -> None:
        g = DependencyGraph()
        g.add_line(9, None, ["x"])
        g.add_line(2, "x", [])
        g.add_line(5, None, ["x"])
        assert g.affected_lines(["x"]) == [9, 5]

    def test_self_reference_terminates(self) -> None:
        g = DependencyGraph()
        g.add_line(1, "x", ["x"])
        g.add_line(2, None, ["x"])
        assert g.affected_lines(["x"]) == [1, 2]

    def test_cycle_terminates(self) -> None:
        g = DependencyGraph()
        g.add_line(1, "a", ["b"])
        g.add_line(2, "b", ["a"])
        assert g.affected_lines(["a"]) == [1, 2]

    def test_empty(self) -> None:
        assert DependencyGraph().affected_lines(["x"]) == []


class TestFromDocument:
    def test_scans_lines(self) -> None:
        doc = Document("x = 10\nNotes\ny = x * 2\ny + 1")
        ids = [line.id for line in doc.lines]
        g = DependencyGraph.from_document(doc)
        assert g.order == ids
        assert g.assigns == {ids[0]: "x", ids[2]: "y"}
        assert g.affected_lines(["x"]) == [ids[2], ids[3]]

    def test_comment_prefixes(self) -> None:
        doc = Document("// x\nx + 1")
        first, second = doc.lines[0].id, doc.lines[1].id
        assert DependencyGraph.from_document(doc).affected_lines(["x"]) == [second]
        g = DependencyGraph.from_document(doc, comment_prefixes=())
        assert g.affected_lines(["x"]) == [first, second]
