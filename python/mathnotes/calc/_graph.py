"""Dependency graph between lines through the variables they assign and read."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import TYPE_CHECKING

from mathnotes.calc._errors import LexError
from mathnotes.calc._lexer import TokenKind, tokenize
from mathnotes.calc._parser import DEFAULT_COMMENT_PREFIXES, Statement, split_statement

if TYPE_CHECKING:
    from mathnotes._document import Document


def statement_names(stmt: Statement | None) -> tuple[str | None, frozenset[str]]:
    """Return ``(assigned name, names read)`` for a statement.

    Names come from the token stream so that lines which fail to parse
    still report the variables they mention.  Identifiers directly followed
    by ``(`` are function calls and not reads.
    """
    if stmt is None:
        return None, frozenset()
    try:
        tokens = tokenize(stmt.source)
    except LexError:
        return stmt.target, frozenset()
    reads: set[str] = set()
    for i, tok in enumerate(tokens):
        if tok.kind is not TokenKind.IDENTIFIER:
            continue
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if nxt is not None and nxt.kind is TokenKind.LPAREN:
            continue
        reads.add(tok.lexeme)
    return stmt.target, frozenset(reads)


class DependencyGraph:
    """Tracks which lines read and assign which variable names.

    Lines are keyed by their stable id; ``order`` keeps document order.
    """

    __slots__ = ("assigns", "order", "readers", "reads")

    def __init__(self) -> None:
        # line id -> names the line reads
        self.reads: dict[int, frozenset[str]] = {}
        # line id -> name the line assigns (assignment lines only)
        self.assigns: dict[int, str] = {}
        # name -> ids of lines reading it (reverse edges)
        self.readers: dict[str, set[int]] = {}
        self.order: list[int] = []

    def add_line(self, line_id: int, target: str | None, reads: Iterable[str]) -> None:
        """Register a line (call in document order)."""
        names = frozenset(reads)
        self.order.append(line_id)
        self.reads[line_id] = names
        if target is not None:
            self.assigns[line_id] = target
        for name in names:
            self.readers.setdefault(name, set()).add(line_id)

    def affected_lines(self, changed_names: Iterable[str]) -> list[int]:
        """Lines that transitively read any of *changed_names*, in document order.

        BFS over names: a reader that itself assigns a name propagates the
        change to that name's readers.
        """
        queue: deque[str] = deque(changed_names)
        seen_names: set[str] = set(queue)
        affected: set[int] = set()

        while queue:
            name = queue.popleft()
            for line_id in self.readers.get(name, ()):
                if line_id in affected:
                    continue
                affected.add(line_id)
                target = self.assigns.get(line_id)
                if target is not None and target not in seen_names:
                    seen_names.add(target)
                    queue.append(target)

        return [line_id for line_id in self.order if line_id in affected]

    @classmethod
    def from_document(
        cls,
        document: Document,
        comment_prefixes: tuple[str, ...] = DEFAULT_COMMENT_PREFIXES,
    ) -> DependencyGraph:
        """Build a graph by scanning every line of *document*."""
        graph = cls()
        for line in document.lines:
            target, reads = statement_names(split_statement(line.text, comment_prefixes))
            graph.add_line(line.id, target, reads)
        return graph
