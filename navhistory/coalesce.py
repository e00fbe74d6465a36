"""Fold bursts of selection-change events into one event per loop turn.

Selection changes tend to arrive in bursts (typing, multi-cursor edits,
scrolling). The coalescer keeps a single pending event and flushes it at the
end of the current event-loop turn. When merging, an ``EDIT`` reason is kept
over any later reason so an edit is never hidden by a trailing cursor move.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from .selection import ChangeReason, SelectionChangeEvent


def merge_selection_events(
    last: SelectionChangeEvent | None, current: SelectionChangeEvent
) -> SelectionChangeEvent:
    if last is not None and last.reason is ChangeReason.EDIT:
        return last
    return current


class SelectionEventCoalescer:
    """Single-slot debounce of ``SelectionChangeEvent`` values.

    Without a running event loop every event is its own turn and is
    delivered immediately.
    """

    def __init__(self, deliver: Callable[[SelectionChangeEvent], None]) -> None:
        self._deliver = deliver
        self._pending: SelectionChangeEvent | None = None
        self._handle: asyncio.Handle | None = None
        self._disposed = False

    @property
    def pending(self) -> SelectionChangeEvent | None:
        return self._pending

    def push(self, event: SelectionChangeEvent) -> None:
        if self._disposed:
            return
        self._pending = merge_selection_events(self._pending, event)
        if self._handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return
        self._handle = loop.call_soon(self.flush)

    def flush(self) -> None:
        """Deliver the pending merged event now, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        event = self._pending
        self._pending = None
        if event is not None and not self._disposed:
            self._deliver(event)

    def dispose(self) -> None:
        """Drop any pending event without delivering it."""
        self._disposed = True
        self._pending = None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


__all__ = ["SelectionEventCoalescer", "merge_selection_events"]
