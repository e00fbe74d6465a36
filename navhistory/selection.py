"""Selection snapshots and the push-vs-replace rule for navigation.

Editors that have a selection concept (text cursors, notebook cells, ...)
report opaque snapshots. This module only relies on ``compare`` and
``restore``; ``TextSelection`` is the line/column implementation used by
text editors.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .editors import EditorInput

TEXT_SELECTION_SIMILARITY_LINES = 10


class SelectionCompareResult(enum.Enum):
    IDENTICAL = 1
    SIMILAR = 2
    DIFFERENT = 3


class ChangeReason(enum.Enum):
    """Why a selection changed."""

    UNKNOWN = 1
    PROGRAMMATIC = 2
    USER = 3
    EDIT = 4
    NAVIGATION = 5


@dataclass(frozen=True)
class SelectionChangeEvent:
    reason: ChangeReason = ChangeReason.UNKNOWN


@dataclass(frozen=True)
class TextSelection:
    """Cursor position within a text editor."""

    line: int
    column: int = 0

    def compare(self, other: object) -> SelectionCompareResult:
        if not isinstance(other, TextSelection):
            return SelectionCompareResult.DIFFERENT
        if self.line == other.line and self.column == other.column:
            return SelectionCompareResult.IDENTICAL
        if abs(self.line - other.line) <= TEXT_SELECTION_SIMILARITY_LINES:
            return SelectionCompareResult.SIMILAR
        return SelectionCompareResult.DIFFERENT

    def restore(self, options: dict[str, Any]) -> dict[str, Any]:
        """Return ``options`` extended so opening an editor reveals this position."""
        restored = dict(options)
        restored["selection"] = {"line": max(0, self.line), "column": max(0, self.column)}
        return restored


class SelectionState:
    """Last observed (editor, selection, reason) triple of the active editor."""

    def __init__(self, editor: EditorInput, selection: Any | None, reason: ChangeReason | None) -> None:
        self.editor = editor
        self.selection = selection
        self.reason = reason

    def justifies_new_entry(self, other: SelectionState) -> bool:
        """Return whether moving from this state to ``other`` deserves a new stack entry."""
        if other.reason is ChangeReason.NAVIGATION:
            return True
        if not self.editor.matches(other.editor):
            return True
        if self.selection is None or other.selection is None:
            return True
        return other.selection.compare(self.selection) is SelectionCompareResult.DIFFERENT

    def __repr__(self) -> str:
        return f"SelectionState({self.editor!r}, {self.selection!r}, {self.reason})"


__all__ = [
    "ChangeReason",
    "SelectionChangeEvent",
    "SelectionCompareResult",
    "SelectionState",
    "TEXT_SELECTION_SIMILARITY_LINES",
    "TextSelection",
]
