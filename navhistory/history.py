"""Global, persisted list of recently opened editors.

The list is most-recent-first, deduplicated by the identity matcher,
bounded, and filtered by the exclusion settings. It is hydrated lazily on
first access: editors that are currently open come first (most recent
first), followed by persisted entries that no open editor already covers.
Hydration waits for the host's editor groups to be ready.

Only descriptor entries are persisted; live-only entries are lost on
restart.
"""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from collections.abc import Callable, Iterable
from typing import Any

from .disposal import DisposalListenerRegistry
from .editors import (
    EditorInput,
    EditorRef,
    EditorsOrder,
    ResourceDescriptor,
    SideBySideEditorInput,
    prefer_resource_editor_input,
)
from .errors import on_unexpected_error as default_unexpected_error_sink
from .events import Subscription
from .excludes import ResourceExcludeMatcher
from .files import FileOperationEvent
from .matching import EditorMatcher, MatchSubject
from .storage import StorageScope, StorageTarget

logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 200
HISTORY_STORAGE_KEY = "history.entries"


class HistoryState(enum.Enum):
    UNINITIALIZED = 1
    LOADING = 2
    READY = 3


def serialize_history(entries: Iterable[EditorRef]) -> str:
    """Encode the descriptor entries of ``entries``, in order, as JSON text."""
    return json.dumps(
        [{"editor": entry.to_json()} for entry in entries if isinstance(entry, ResourceDescriptor)]
    )


def load_history_from_text(text: str) -> list[ResourceDescriptor]:
    """Decode ``serialize_history`` output.

    Malformed individual records are skipped. Raises ``ValueError`` when the
    payload is not a JSON list.
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("persisted editor history is not a list")
    out: list[ResourceDescriptor] = []
    for record in data:
        if not isinstance(record, dict):
            continue
        descriptor = ResourceDescriptor.from_json(record.get("editor"))
        if descriptor is not None:
            out.append(descriptor)
    return out


class EditorHistory:
    """Most-recent-first list of opened editors, persisted to workspace storage.

    Stored entries are loaded lazily once the editor groups are restored.
    """

    def __init__(
        self,
        *,
        editors: Any,
        groups: Any,
        storage: Any,
        matcher: EditorMatcher,
        exclude_matcher: ResourceExcludeMatcher,
        default_scheme: str,
        on_unexpected_error: Callable[[BaseException], None] = default_unexpected_error_sink,
        max_entries: int = MAX_HISTORY_ENTRIES,
    ) -> None:
        self.max_entries = max(1, max_entries)
        self._editors = editors
        self._groups = groups
        self._storage = storage
        self._matcher = matcher
        self._exclude_matcher = exclude_matcher
        self._default_scheme = default_scheme
        self._on_unexpected_error = on_unexpected_error
        self._listeners = DisposalListenerRegistry()

        self.state = HistoryState.UNINITIALIZED
        self._entries: list[EditorRef] = []
        self._waiters: list[asyncio.Future[None]] = []
        self._ready_subscription: Subscription | None = None
        self._exclude_subscription = exclude_matcher.on_did_change.subscribe(
            lambda _payload: self.remove_excluded()
        )

    @property
    def listeners(self) -> DisposalListenerRegistry:
        return self._listeners

    @property
    def entries(self) -> tuple[EditorRef, ...]:
        """Snapshot of the history, most recent first."""
        self.ensure_loaded()
        return tuple(self._entries)

    # Hydration

    def ensure_loaded(self) -> None:
        """Start loading stored entries unless that already happened."""
        if self.state is not HistoryState.UNINITIALIZED:
            return
        if self._groups.is_ready:
            self._load()
            return
        self.state = HistoryState.LOADING
        self._entries = []
        self._ready_subscription = self._groups.on_ready.once(lambda _payload: self._load())

    async def wait_until_loaded(self) -> None:
        """Return once hydration has completed (triggering it if needed)."""
        self.ensure_loaded()
        if self.state is HistoryState.READY:
            return
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    def _set_ready(self) -> None:
        self.state = HistoryState.READY
        if self._ready_subscription is not None:
            self._ready_subscription.dispose()
            self._ready_subscription = None
        waiters = self._waiters
        self._waiters = []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    def _load(self) -> None:
        self.state = HistoryState.LOADING
        self._entries = []
        self._listeners.release_all()

        stored = self._load_from_storage()

        # Least to most recently active, so front insertion ends most recent first.
        opened = list(self._editors.get_editors(EditorsOrder.MOST_RECENTLY_ACTIVE))
        opened.reverse()

        handled: set[tuple[str, str | None]] = set()
        for identifier in opened:
            editor = identifier.editor
            if not self._include(editor):
                continue
            self._remove_matching(editor)
            self._insert(editor)
            if editor.resource is not None:
                handled.add((str(editor.resource), editor.editor_id))

        for descriptor in stored:
            if (str(descriptor.resource), descriptor.editor_kind) in handled:
                continue
            if not self._include(descriptor):
                continue
            if any(self._matcher.matches(descriptor, entry) for entry in self._entries):
                continue
            self._insert(descriptor, insert_first=False)

        logger.debug(
            "editor history loaded: %d open editors, %d stored, %d entries",
            len(opened),
            len(stored),
            len(self._entries),
        )
        self._set_ready()

    def _load_from_storage(self) -> list[ResourceDescriptor]:
        raw = self._storage.get(HISTORY_STORAGE_KEY, StorageScope.WORKSPACE)
        if not raw:
            return []
        try:
            return load_history_from_text(raw)
        except ValueError as exc:
            self._on_unexpected_error(exc)
            return []

    def save_state(self) -> None:
        """Persist descriptor entries; a list that was never loaded is left untouched."""
        if self.state is not HistoryState.READY:
            return
        self._storage.store(
            HISTORY_STORAGE_KEY,
            serialize_history(self._entries),
            StorageScope.WORKSPACE,
            StorageTarget.MACHINE,
        )

    # Mutation

    def _include(self, editor: EditorRef) -> bool:
        stored = prefer_resource_editor_input(editor, self._default_scheme)
        if stored is None:
            return False
        if isinstance(stored, EditorInput):
            return True
        return not self._exclude_matcher.matches(stored.resource)

    def handle_editor_event(self, editor: EditorInput | None) -> None:
        """Promote the newly active editor to the front of the history."""
        if editor is None or editor.is_disposed() or not self._include(editor):
            return
        self.add(editor)

    def add(self, editor: EditorRef, insert_first: bool = True) -> None:
        """Insert ``editor``, dropping any entry it matches first."""
        self.ensure_loaded()
        self._remove_matching(editor)
        self._insert(editor, insert_first)

    def _insert(self, editor: EditorRef, insert_first: bool = True) -> None:
        stored = prefer_resource_editor_input(editor, self._default_scheme)
        if stored is None:
            return

        if insert_first:
            self._entries.insert(0, stored)
        else:
            self._entries.append(stored)

        if isinstance(stored, EditorInput):
            self._listeners.track(stored, self._on_editor_disposed)

        if len(self._entries) > self.max_entries:
            self._listeners.release(self._entries.pop())

    def _on_editor_disposed(self, editor: EditorInput) -> None:
        if not isinstance(editor, SideBySideEditorInput):
            self.remove(editor)
            return

        # Keep the sides that can live on as descriptors where the
        # side-by-side entry used to be.
        sides = [editor.primary] if editor.primary.matches(editor.secondary) else [editor.primary, editor.secondary]
        replacements: list[EditorRef] = []
        for side in sides:
            candidate = prefer_resource_editor_input(side, self._default_scheme)
            if isinstance(candidate, ResourceDescriptor):
                replacements.append(candidate)
        self.replace(editor, *replacements)

    def _remove_matching(self, subject: MatchSubject) -> bool:
        kept: list[EditorRef] = []
        removed = False
        for entry in self._entries:
            if self._matcher.matches(subject, entry):
                self._listeners.release(entry)
                removed = True
            else:
                kept.append(entry)
        self._entries = kept
        return removed

    def remove(self, subject: MatchSubject) -> bool:
        """Remove every entry ``subject`` matches; returns whether any was removed."""
        self.ensure_loaded()
        removed = self._remove_matching(subject)
        if removed:
            logger.debug("removed history entries for %r", subject)
        return removed

    def replace(self, editor: EditorRef, *replacements: EditorRef) -> None:
        """Swap the entry for ``editor`` with ``replacements`` at the same position."""
        self.ensure_loaded()
        replaced = False
        updated: list[EditorRef] = []
        for entry in self._entries:
            if self._matcher.matches(editor, entry):
                self._listeners.release(entry)
                if not replaced:
                    updated.extend(replacements)
                    replaced = True
            elif not any(self._matcher.matches(replacement, entry) for replacement in replacements):
                updated.append(entry)
            else:
                self._listeners.release(entry)
        if not replaced:
            updated.extend(replacements)
        self._entries = updated
        for entry in replacements:
            self._listeners.track(entry, self._on_editor_disposed)

    def move(self, event: FileOperationEvent) -> None:
        """Follow a moved file: drop the old entry and add the target at the front.

        Folder moves are ignored.
        """
        if event.target is None or not event.target_is_file:
            return
        if self.remove(event):
            self.add(ResourceDescriptor(event.target))

    def remove_excluded(self) -> None:
        """Drop entries hidden by the (changed) exclusion settings."""
        if self.state is HistoryState.UNINITIALIZED:
            return
        kept: list[EditorRef] = []
        for entry in self._entries:
            if self._include(entry):
                kept.append(entry)
            else:
                self._listeners.release(entry)
        if len(kept) != len(self._entries):
            logger.debug("excluded %d history entries", len(self._entries) - len(kept))
        self._entries = kept

    def clear(self) -> None:
        """Empty the history; it counts as loaded afterwards."""
        self._entries = []
        self._listeners.release_all()
        self._set_ready()

    def dispose(self) -> None:
        self._exclude_subscription.dispose()
        self._listeners.release_all()
        if self._ready_subscription is not None:
            self._ready_subscription.dispose()
            self._ready_subscription = None
        for waiter in self._waiters:
            waiter.cancel()
        self._waiters = []


__all__ = [
    "EditorHistory",
    "HISTORY_STORAGE_KEY",
    "HistoryState",
    "MAX_HISTORY_ENTRIES",
    "load_history_from_text",
    "serialize_history",
]
