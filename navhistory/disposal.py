"""Per-stack registry of "editor disposed" listeners.

Stacks that keep live ``EditorInput`` entries must drop them when the host
disposes the input. Each stack owns one registry: a tracked input holds a
single ``on_will_dispose`` subscription, reference counted by the number of
entries pointing at it, and released as soon as the last entry goes away.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .editors import EditorInput
from .events import Subscription


@dataclass
class _TrackedInput:
    editor: EditorInput
    subscription: Subscription
    refs: int = 1


class DisposalListenerRegistry:
    """Reference-counted dispose listeners for live editor inputs."""

    def __init__(self) -> None:
        self._tracked: dict[int, _TrackedInput] = {}

    def track(self, editor: object, on_dispose: Callable[[EditorInput], None]) -> None:
        """Run ``on_dispose(editor)`` once the live input is disposed.

        Descriptors and other non-live values are ignored.
        """
        if not isinstance(editor, EditorInput):
            return
        key = id(editor)
        tracked = self._tracked.get(key)
        if tracked is not None:
            tracked.refs += 1
            return

        def handle_dispose(_payload: object) -> None:
            self._tracked.pop(key, None)
            on_dispose(editor)

        subscription = editor.on_will_dispose.once(handle_dispose)
        self._tracked[key] = _TrackedInput(editor=editor, subscription=subscription)

    def release(self, editor: object) -> None:
        """Drop one reference to ``editor``; unsubscribe when none remain."""
        if not isinstance(editor, EditorInput):
            return
        key = id(editor)
        tracked = self._tracked.get(key)
        if tracked is None:
            return
        tracked.refs -= 1
        if tracked.refs <= 0:
            del self._tracked[key]
            tracked.subscription.dispose()

    def release_all(self) -> None:
        """Unsubscribe from every tracked input."""
        tracked = list(self._tracked.values())
        self._tracked.clear()
        for item in tracked:
            item.subscription.dispose()

    def is_tracked(self, editor: object) -> bool:
        return id(editor) in self._tracked and self._tracked[id(editor)].editor is editor

    def refs(self, editor: object) -> int:
        tracked = self._tracked.get(id(editor))
        return tracked.refs if tracked is not None and tracked.editor is editor else 0

    def __len__(self) -> int:
        return len(self._tracked)


__all__ = ["DisposalListenerRegistry"]
