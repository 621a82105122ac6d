"""mathnotes - notes with inline arithmetic, evaluated on command, fully undoable.

Usage::

    from mathnotes import Command, Editor

    editor = Editor("Rent: 1200 * 12\\nx = 10\\nx / 4")
    editor.handle(Command.EVALUATE)
    for view in editor.snapshot():
        print(view.text, "->", view.annotation)

    editor.handle(Command.UNDO)
"""

from mathnotes._document import Document, Line, LineState, LineStatus, LineView, Position
from mathnotes._editor import Command, Editor
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

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Command",
    "DeleteText",
    "Document",
    "EditOp",
    "Editor",
    "EngineOptions",
    "EntryKind",
    "History",
    "HistoryEntry",
    "InsertText",
    "Line",
    "LineState",
    "LineStatus",
    "LineView",
    "MergeLines",
    "Position",
    "SetResult",
    "SplitLine",
]
