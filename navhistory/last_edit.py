"""Single-slot bookmark of the last location where the user edited."""

from __future__ import annotations

from typing import Any

from .editors import EditorPane
from .navigation import NavigationEntry, open_entry


class LastEditLocation:
    """Where the user last changed text."""

    def __init__(self, *, editors: Any) -> None:
        self._editors = editors
        self.location: NavigationEntry | None = None

    @property
    def is_set(self) -> bool:
        return self.location is not None

    def remember(self, pane: EditorPane) -> None:
        """Record the pane's editor and current selection."""
        editor = pane.input
        if editor is None or editor.is_disposed():
            return
        self.location = NavigationEntry(editor=editor, selection=pane.get_selection())

    async def open(self) -> Any | None:
        """Reveal the remembered editor at the remembered selection.

        Does not touch the navigation stack's cursor.
        """
        if self.location is None:
            return None
        return await open_entry(self._editors, self.location)

    def clear(self) -> None:
        self.location = None
