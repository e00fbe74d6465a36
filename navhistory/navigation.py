"""Back/forward navigation stack with selection awareness.

The stack records where the user has been (editor plus selection) and
replays those locations. Moving within the same editor only adds an entry
when the selection moved "far enough"; otherwise the current entry is
updated in place so scrolling does not flood the stack.

This module has no UI concerns. Opening editors goes through the injected
``editors`` collaborator's ``open_editor(editor, options)`` coroutine.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from .disposal import DisposalListenerRegistry
from .editors import (
    EditorInput,
    EditorPane,
    EditorRef,
    ResourceDescriptor,
    prefer_resource_editor_input,
)
from .files import FileOperationEvent
from .matching import EditorMatcher, MatchSubject
from .selection import SelectionChangeEvent, SelectionCompareResult, SelectionState

logger = logging.getLogger(__name__)

MAX_NAVIGATION_STACK_ENTRIES = 50


@dataclass(frozen=True)
class NavigationEntry:
    """One visited location: an editor reference and optional selection."""

    editor: EditorRef
    selection: Any | None = None


async def open_entry(editors: Any, entry: NavigationEntry) -> Any | None:
    """Open ``entry``'s editor, revealing it if already open, at its selection."""
    options: dict[str, Any] = {"reveal_if_opened": True}
    if entry.selection is not None:
        options = entry.selection.restore(options)

    if isinstance(entry.editor, EditorInput):
        return await editors.open_editor(entry.editor, options)
    return await editors.open_editor(entry.editor.with_options(options), None)


class NavigationStack:
    """Bounded, selection-aware back/forward stack.

    ``index`` points at the current entry (``-1`` when empty); ``last_index``
    remembers the previous cursor position for ``last()``.
    """

    def __init__(
        self,
        *,
        editors: Any,
        matcher: EditorMatcher,
        default_scheme: str,
        max_entries: int = MAX_NAVIGATION_STACK_ENTRIES,
    ) -> None:
        self.max_entries = max(1, max_entries)
        self._editors = editors
        self._matcher = matcher
        self._default_scheme = default_scheme
        self._listeners = DisposalListenerRegistry()

        self.entries: list[NavigationEntry] = []
        self.index = -1
        self.last_index = -1

        self.current_selection_state: SelectionState | None = None

        self._navigating = 0
        self._navigation_serial = 0
        self._navigation_lock = asyncio.Lock()

    @property
    def navigating(self) -> bool:
        """True while a back/forward/last open is pending."""
        return self._navigating > 0

    @property
    def can_navigate_back(self) -> bool:
        """Whether an older entry exists."""
        return len(self.entries) > 0 and self.index > 0

    @property
    def can_navigate_forward(self) -> bool:
        return len(self.entries) > 0 and self.index < len(self.entries) - 1

    @property
    def listeners(self) -> DisposalListenerRegistry:
        return self._listeners

    # Replay

    async def forward(self) -> None:
        """Step toward newer entries."""
        if len(self.entries) > self.index + 1:
            self._set_index(self.index + 1)
            await self._navigate()

    async def back(self) -> None:
        """Step toward older entries."""
        if self.index > 0:
            self._set_index(self.index - 1)
            await self._navigate()

    async def last(self) -> None:
        """Jump to the previous cursor position (or back, when there is none)."""
        if self.last_index == -1:
            await self.back()
            return
        if 0 <= self.last_index < len(self.entries):
            self._set_index(self.last_index)
            await self._navigate()

    def _set_index(self, value: int) -> None:
        self.last_index = self.index
        self.index = value

    async def _navigate(self) -> None:
        # Requests are served in order; one superseded by a newer request
        # before its turn is skipped. An open already in flight runs to the end.
        self._navigation_serial += 1
        serial = self._navigation_serial
        self._navigating += 1
        try:
            async with self._navigation_lock:
                if serial != self._navigation_serial:
                    return
                if not 0 <= self.index < len(self.entries):
                    return
                await open_entry(self._editors, self.entries[self.index])
        finally:
            self._navigating -= 1

    # Recording

    def handle_editor_event(self, pane: EditorPane | None, event: SelectionChangeEvent | None = None) -> None:
        """Record an active-editor change (``event is None``) or selection change."""
        editor = pane.input if pane is not None else None
        live = editor is not None and not editor.is_disposed()
        selection_aware = pane is not None and pane.is_selection_aware

        if self.navigating:
            # Keep tracking the state we navigated to without recording it.
            if selection_aware and live:
                self.current_selection_state = SelectionState(
                    editor, pane.get_selection(), event.reason if event else None
                )
            else:
                self.current_selection_state = None
            return

        if selection_aware and live:
            self._handle_selection_aware_event(pane, editor, event)
            return

        self.current_selection_state = None
        if live:
            self._handle_plain_editor_event(editor)

    def _handle_selection_aware_event(
        self, pane: EditorPane, editor: EditorInput, event: SelectionChangeEvent | None
    ) -> None:
        candidate = SelectionState(editor, pane.get_selection(), event.reason if event else None)
        current = self.current_selection_state
        if current is None or current.justifies_new_entry(candidate):
            self.add(editor, candidate.selection)
        else:
            self.replace(editor, candidate.selection)
        self.current_selection_state = candidate

    def _handle_plain_editor_event(self, editor: EditorInput) -> None:
        current = self.entries[self.index] if 0 <= self.index < len(self.entries) else None
        if current is not None and self._matcher.matches(editor, current.editor):
            return
        self.add(editor)

    def add(self, editor: EditorRef, selection: Any | None = None) -> None:
        """Record a location, merging it into the current entry when they are close."""
        if not self.navigating:
            self._add_or_replace(editor, selection)

    def replace(self, editor: EditorRef, selection: Any | None = None) -> None:
        """Overwrite the current entry with a location."""
        if not self.navigating:
            self._add_or_replace(editor, selection, force_replace=True)

    def _add_or_replace(self, editor: EditorRef, selection: Any | None, force_replace: bool = False) -> None:
        replace = False
        current = self.entries[self.index] if 0 <= self.index < len(self.entries) else None
        if current is not None:
            if force_replace:
                replace = True
            elif self._matcher.matches(current.editor, editor) and self._should_replace_selection(
                current, selection
            ):
                replace = True

        stored = prefer_resource_editor_input(editor, self._default_scheme)
        if stored is None:
            return

        entry = NavigationEntry(editor=stored, selection=selection)
        removed: list[NavigationEntry] = []

        if replace:
            removed.append(self.entries[self.index])
            self.entries[self.index] = entry
        else:
            if len(self.entries) > self.index + 1:
                removed.extend(self.entries[self.index + 1 :])
                del self.entries[self.index + 1 :]

            self.entries.insert(self.index + 1, entry)

            if len(self.entries) > self.max_entries:
                removed.append(self.entries.pop(0))
                logger.debug("navigation stack full, evicted oldest entry")
                if self.last_index >= 0:
                    self.last_index -= 1
            else:
                self._set_index(self.index + 1)

        # Track first so a handle shared with a removed entry keeps its listener.
        if isinstance(stored, EditorInput):
            self._listeners.track(stored, self._on_editor_disposed)
        for removed_entry in removed:
            self._listeners.release(removed_entry.editor)

    def _on_editor_disposed(self, editor: EditorInput) -> None:
        self.remove(editor)

    @staticmethod
    def _should_replace_selection(entry: NavigationEntry, selection: Any | None) -> bool:
        if entry.selection is None:
            return True
        if selection is None:
            return False
        return entry.selection.compare(selection) is SelectionCompareResult.IDENTICAL

    # Removal

    def move(self, event: FileOperationEvent) -> None:
        """Drop entries for a moved file and record the new location; folder moves are ignored."""
        if event.target is None or not event.target_is_file:
            return
        if self.remove(event):
            self.add(ResourceDescriptor(event.target))

    def remove(self, subject: MatchSubject) -> bool:
        """Remove every entry ``subject`` matches; resets the cursor to the tail."""
        kept: list[NavigationEntry] = []
        removed = False
        for entry in self.entries:
            if self._matcher.matches(subject, entry.editor):
                self._listeners.release(entry.editor)
                removed = True
            else:
                kept.append(entry)
        self.entries = kept
        self.index = len(self.entries) - 1
        self.last_index = -1
        if removed:
            logger.debug("removed entries from navigation stack for %r", subject)
        return removed

    def clear(self) -> None:
        """Forget all entries and stop watching their editors."""
        self.index = -1
        self.last_index = -1
        self.entries.clear()
        self.current_selection_state = None
        self._listeners.release_all()


__all__ = [
    "MAX_NAVIGATION_STACK_ENTRIES",
    "NavigationEntry",
    "NavigationStack",
    "open_entry",
]
