"""Bounded LIFO of recently closed editors with "reopen last closed".

Only genuine closes are recorded: an editor replaced in place or moved to
another group is still open. Reopening pops the most recent record and
falls back to older ones when an open does not produce a pane.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .editors import (
    CloseContext,
    EditorCloseEvent,
    EditorInput,
    UntypedEditor,
    associated_resources,
    original_resource,
)
from .matching import EditorMatcher, MatchSubject
from .resources import Resource

logger = logging.getLogger(__name__)

MAX_RECENTLY_CLOSED_EDITORS = 20


@dataclass(frozen=True)
class ClosedEditorRecord:
    editor_id: str | None
    editor: UntypedEditor
    resource: Resource | None
    associated_resources: tuple[Resource, ...]
    index: int
    sticky: bool


class RecentlyClosedEditors:
    """Bounded stack of closed editors that can be reopened in place."""

    def __init__(
        self,
        *,
        editors: Any,
        groups: Any,
        matcher: EditorMatcher,
        max_entries: int = MAX_RECENTLY_CLOSED_EDITORS,
    ) -> None:
        self.max_entries = max(1, max_entries)
        self._editors = editors
        self._groups = groups
        self._matcher = matcher
        self.records: list[ClosedEditorRecord] = []
        self.ignore_close_event = False

    @property
    def can_reopen(self) -> bool:
        """Whether at least one closed editor is remembered."""
        return len(self.records) > 0

    def on_did_close_editor(self, event: EditorCloseEvent) -> None:
        """Remember a closed editor unless it was replaced or moved."""
        if self.ignore_close_event:
            return
        if event.context in (CloseContext.REPLACE, CloseContext.MOVE):
            return

        editor = event.editor
        untyped = editor.to_untyped()
        if untyped is None:
            return

        self.remove(editor)
        self.records.append(
            ClosedEditorRecord(
                editor_id=editor.editor_id,
                editor=untyped,
                resource=original_resource(editor),
                associated_resources=tuple(associated_resources(editor)),
                index=event.index,
                sticky=event.sticky,
            )
        )
        if len(self.records) > self.max_entries:
            self.records.pop(0)

    async def reopen_last_closed_editor(self) -> bool:
        """Reopen the most recently closed editor that can still be opened.

        Returns ``True`` when an editor pane was opened. Records that fail to
        open (or are already open) are discarded and the next one is tried.
        """
        for _attempt in range(len(self.records)):
            if not self.records:
                break
            record = self.records.pop()
            if await self._reopen(record) is not None:
                return True
            logger.debug("could not reopen %s, trying next closed editor", record.resource)
            if record in self.records:
                self.records.remove(record)
        return False

    async def _reopen(self, record: ClosedEditorRecord) -> Any | None:
        group = self._groups.active_group
        options: dict[str, Any] = {
            "pinned": True,
            "sticky": record.sticky,
            "index": record.index,
            "ignore_error": True,
        }

        # Opening at the old index must not flip the sticky state of that slot.
        if record.sticky != bool(group.is_sticky(record.index)):
            options.pop("index")

        if group.contains(record.editor):
            return None

        # A failing open can close editors; those closes are not user closes.
        self.ignore_close_event = True
        try:
            return await self._editors.open_editor(record.editor.with_options(options), None)
        finally:
            self.ignore_close_event = False

    def remove(self, subject: MatchSubject) -> None:
        """Drop records whose resource (or any associated resource) ``subject`` matches."""
        kept: list[ClosedEditorRecord] = []
        for record in self.records:
            if isinstance(subject, EditorInput) and record.editor_id != subject.editor_id:
                kept.append(record)
                continue
            if record.resource is not None and self._matcher.matches_file(record.resource, subject):
                continue
            if any(self._matcher.matches_file(resource, subject) for resource in record.associated_resources):
                continue
            kept.append(record)
        self.records = kept

    def clear(self) -> None:
        self.records = []


__all__ = ["ClosedEditorRecord", "MAX_RECENTLY_CLOSED_EDITORS", "RecentlyClosedEditors"]
