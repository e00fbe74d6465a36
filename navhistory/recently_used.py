"""Cycling through recently used editors (globally or within one group).

The first ``open_next``/``open_previous`` call of a session freezes the
current most-recently-active ordering. Later calls move a cursor over that
frozen snapshot, so cycling is stable even though each open changes the
host's ordering. Any ordering change not caused by our own navigation ends
the session.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .editors import EditorIdentifier, EditorsOrder


class RecentlyUsedEditors:
    """Cycle through editors in most-recently-active order.

    The ordering is snapshotted on the first step so that the activations
    caused by cycling do not reorder it.
    """

    def __init__(self, *, editors: Any, groups: Any) -> None:
        self._editors = editors
        self._groups = groups

        self._stack: tuple[EditorIdentifier, ...] | None = None
        self._index = 0
        self._group_stack: tuple[EditorIdentifier, ...] | None = None
        self._group_index = 0
        self._group_stack_id: int | None = None

        self.navigating_across_groups = False
        self.navigating_in_group = False

    @property
    def snapshot(self) -> tuple[EditorIdentifier, ...] | None:
        """Ordering captured for cycling across all groups, if any."""
        return self._stack

    @property
    def group_snapshot(self) -> tuple[EditorIdentifier, ...] | None:
        return self._group_stack

    async def open_next(self, group_id: int | None = None) -> None:
        """Move toward more recently used editors."""
        stack, index = self._ensure_stack(lambda index: index - 1, group_id)
        await self._navigate(stack[index] if stack else None, group_id)

    async def open_previous(self, group_id: int | None = None) -> None:
        """Move toward less recently used editors."""
        stack, index = self._ensure_stack(lambda index: index + 1, group_id)
        await self._navigate(stack[index] if stack else None, group_id)

    def _lookup_group(self, group_id: int | None) -> Any | None:
        if group_id is None:
            return None
        return self._groups.get_group(group_id)

    def _ensure_stack(
        self, modify_index: Callable[[int], int], group_id: int | None
    ) -> tuple[tuple[EditorIdentifier, ...], int]:
        group = self._lookup_group(group_id)

        if group is None:
            editors = self._stack
            if editors is None:
                editors = tuple(self._editors.get_editors(EditorsOrder.MOST_RECENTLY_ACTIVE))
            index = self._index
        else:
            editors = self._group_stack if self._group_stack_id == group.id else None
            index = self._group_index
            if editors is None:
                editors = tuple(
                    EditorIdentifier(group.id, editor)
                    for editor in group.get_editors(EditorsOrder.MOST_RECENTLY_ACTIVE)
                )
                index = 0

        new_index = max(0, min(modify_index(index), len(editors) - 1))

        if group is None:
            self._stack = editors
            self._index = new_index
        else:
            self._group_stack = editors
            self._group_index = new_index
            self._group_stack_id = group.id
        return editors, new_index

    async def _navigate(self, identifier: EditorIdentifier | None, group_id: int | None) -> None:
        if identifier is None:
            return
        across_groups = self._lookup_group(group_id) is None
        if across_groups:
            self.navigating_across_groups = True
        else:
            self.navigating_in_group = True

        group = self._groups.get_group(identifier.group_id) or self._groups.active_group
        try:
            await group.open_editor(identifier.editor)
        finally:
            if across_groups:
                self.navigating_across_groups = False
            else:
                self.navigating_in_group = False

    def invalidate(self) -> None:
        """Handle a most-recently-active ordering change reported by the host."""
        if not self.navigating_across_groups:
            self._stack = None
            self._index = 0
        if not self.navigating_in_group:
            self._group_stack = None
            self._group_index = 0

    def clear(self) -> None:
        """Drop both snapshots."""
        self._stack = None
        self._index = 0
        self._group_stack = None
        self._group_index = 0
