"""History service facade: routes host events into the history stacks.

``HistoryService`` owns one instance of every stack (navigation, recently
used, recently closed, last edit location, global history) and wires them
to the host collaborators:

``editors``
    ``on_did_active_editor_change``, ``on_did_open_editor_fail``,
    ``on_did_close_editor``, ``on_did_most_recently_active_editors_change``
    emitters; ``active_editor_pane``; ``get_editors(order)``;
    ``async open_editor(editor, options)``.
``groups``
    ``get_group(group_id)``, ``active_group``, ``is_ready``, ``on_ready``.
    Groups expose ``id``, ``is_sticky(index)``, ``contains(editor)``,
    ``get_editors(order)`` and ``async open_editor(editor)``.
``files``
    ``on_did_files_change``, ``on_did_run_operation`` emitters and
    ``has_provider(resource)``.
``storage``
    ``get``/``store`` plus ``on_will_save_state`` (see ``JsonFileStorage``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .closed import RecentlyClosedEditors
from .coalesce import SelectionEventCoalescer
from .editors import (
    EditorCloseEvent,
    EditorIdentifier,
    EditorInput,
    EditorPane,
    EditorRef,
    original_resource,
)
from .errors import on_unexpected_error as default_unexpected_error_sink
from .events import SubscriptionStore
from .excludes import ResourceExcludeMatcher, SettingsExcludeConfig
from .files import FileChangesEvent, FileOperation, FileOperationEvent
from .history import EditorHistory
from .last_edit import LastEditLocation
from .matching import EditorMatcher, MatchSubject
from .navigation import NavigationStack
from .recently_used import RecentlyUsedEditors
from .resources import Resource, Schemes
from .selection import ChangeReason, SelectionChangeEvent
from .workspace import Workspace

logger = logging.getLogger(__name__)


class HistoryService:
    """Editor navigation history for one workbench window.

    Listens to the host editor, group, file and storage services and routes
    their events to the individual stacks. Construct it with the host
    services; call ``dispose()`` to detach.
    """

    def __init__(
        self,
        *,
        editors: Any,
        groups: Any,
        files: Any,
        storage: Any,
        workspace: Workspace | None = None,
        exclude_config: SettingsExcludeConfig | None = None,
        is_restored: Callable[[], bool] = lambda: True,
        default_scheme: str = Schemes.FILE,
        remove_recently_opened: Callable[[list[Resource]], None] | None = None,
        on_unexpected_error: Callable[[BaseException], None] = default_unexpected_error_sink,
    ) -> None:
        self._editors = editors
        self._groups = groups
        self._files = files
        self._storage = storage
        self.workspace = workspace if workspace is not None else Workspace()
        self._remove_recently_opened = remove_recently_opened

        self.matcher = EditorMatcher(has_provider=files.has_provider, is_restored=is_restored)
        self.exclude_matcher = ResourceExcludeMatcher(
            exclude_config if exclude_config is not None else SettingsExcludeConfig(),
            self.workspace,
        )

        self.navigation = NavigationStack(editors=editors, matcher=self.matcher, default_scheme=default_scheme)
        self.recently_used = RecentlyUsedEditors(editors=editors, groups=groups)
        self.recently_closed = RecentlyClosedEditors(editors=editors, groups=groups, matcher=self.matcher)
        self.last_edit_location = LastEditLocation(editors=editors)
        self.history = EditorHistory(
            editors=editors,
            groups=groups,
            storage=storage,
            matcher=self.matcher,
            exclude_matcher=self.exclude_matcher,
            default_scheme=default_scheme,
            on_unexpected_error=on_unexpected_error,
        )

        self._last_active_editor: EditorIdentifier | None = None
        self._active_editor_listeners = SubscriptionStore()
        self._coalescer: SelectionEventCoalescer | None = None
        self._subscriptions = SubscriptionStore()
        self._register_listeners()

        # The service may be created after an editor is already active.
        if editors.active_editor_pane is not None:
            self._on_did_active_editor_change()

    def _register_listeners(self) -> None:
        add = self._subscriptions.add
        add(self._editors.on_did_active_editor_change.subscribe(lambda _payload: self._on_did_active_editor_change()))
        add(self._editors.on_did_open_editor_fail.subscribe(self._remove))
        add(self._editors.on_did_close_editor.subscribe(self._on_did_close_editor))
        add(
            self._editors.on_did_most_recently_active_editors_change.subscribe(
                lambda _payload: self.recently_used.invalidate()
            )
        )
        add(self._files.on_did_files_change.subscribe(self._on_did_files_change))
        add(self._files.on_did_run_operation.subscribe(self._on_did_run_operation))
        add(self._storage.on_will_save_state.subscribe(lambda _payload: self.history.save_state()))

    # Event routing

    def _on_did_active_editor_change(self) -> None:
        pane: EditorPane | None = self._editors.active_editor_pane
        if self._last_active_editor is not None and self._is_same_active_editor(self._last_active_editor, pane):
            return

        if pane is not None and pane.input is not None:
            self._last_active_editor = EditorIdentifier(pane.group_id, pane.input)
        else:
            self._last_active_editor = None

        self._active_editor_listeners.clear()
        if self._coalescer is not None:
            self._coalescer.dispose()
            self._coalescer = None

        self.history.handle_editor_event(pane.input if pane is not None else None)
        self.navigation.handle_editor_event(pane)

        if pane is not None and pane.is_selection_aware:
            coalescer = SelectionEventCoalescer(lambda event: self._on_selection_change(pane, event))
            self._coalescer = coalescer
            self._active_editor_listeners.add(pane.on_did_change_selection.subscribe(coalescer.push))

    @staticmethod
    def _is_same_active_editor(identifier: EditorIdentifier, pane: EditorPane | None) -> bool:
        if pane is None or pane.input is None:
            return False
        if identifier.group_id != pane.group_id:
            return False
        return identifier.editor.matches(pane.input)

    def _on_selection_change(self, pane: EditorPane, event: SelectionChangeEvent) -> None:
        self.navigation.handle_editor_event(pane, event)
        if event.reason is ChangeReason.EDIT:
            self.last_edit_location.remember(pane)

    def _on_did_close_editor(self, event: EditorCloseEvent) -> None:
        self.recently_closed.on_did_close_editor(event)

    def _on_did_files_change(self, event: FileChangesEvent) -> None:
        if event.got_deleted():
            self._remove(event)

    def _on_did_run_operation(self, event: FileOperationEvent) -> None:
        if event.is_operation(FileOperation.DELETE):
            self._remove(event)
        elif event.is_operation(FileOperation.MOVE) and event.target_is_file:
            # Folder moves leave the stacks untouched.
            self.history.move(event)
            self.navigation.move(event)

    def _remove(self, subject: MatchSubject) -> None:
        self.history.remove(subject)
        self.navigation.remove(subject)
        self.recently_closed.remove(subject)
        self._remove_from_recently_opened(subject)

    def _remove_from_recently_opened(self, subject: MatchSubject) -> None:
        if self._remove_recently_opened is None:
            return
        resource: Resource | None = None
        if isinstance(subject, EditorInput):
            resource = original_resource(subject)
        elif isinstance(subject, FileOperationEvent):
            resource = subject.resource
        # Watcher deletions are ignored: recently opened entries are mostly
        # outside the workspace where no file events are reported.
        if resource is not None:
            self._remove_recently_opened([resource])

    # Navigation

    async def back(self) -> None:
        """Go to the previous navigation location."""
        await self.navigation.back()

    async def forward(self) -> None:
        await self.navigation.forward()

    async def last(self) -> None:
        """Toggle to the location visited before the current one."""
        await self.navigation.last()

    async def open_next_recently_used_editor(self, group_id: int | None = None) -> None:
        await self.recently_used.open_next(group_id)

    async def open_previously_used_editor(self, group_id: int | None = None) -> None:
        await self.recently_used.open_previous(group_id)

    async def reopen_last_closed_editor(self) -> bool:
        """Reopen the most recently closed editor; False when none could be opened."""
        return await self.recently_closed.reopen_last_closed_editor()

    async def open_last_edit_location(self) -> None:
        await self.last_edit_location.open()

    @property
    def can_navigate_back(self) -> bool:
        return self.navigation.can_navigate_back

    @property
    def can_navigate_forward(self) -> bool:
        return self.navigation.can_navigate_forward

    @property
    def can_navigate_to_last_edit_location(self) -> bool:
        return self.last_edit_location.is_set

    @property
    def can_reopen_closed_editor(self) -> bool:
        return self.recently_closed.can_reopen

    # History queries

    def get_history(self) -> tuple[EditorRef, ...]:
        """Recently opened editors, most recent first."""
        return self.history.entries

    def remove_from_history(self, editor: MatchSubject) -> bool:
        return self.history.remove(editor)

    def clear_recently_opened(self) -> None:
        """Empty the editor history only."""
        self.history.clear()

    def clear(self) -> None:
        """Reset every stack."""
        self.clear_recently_opened()
        self.navigation.clear()
        self.recently_closed.clear()
        self.recently_used.clear()
        self.last_edit_location.clear()

    def get_last_active_workspace_root(self, scheme_filter: str | None = None) -> Resource | None:
        """Workspace folder of the most recent history entry inside the workspace.

        Falls back to the first folder (matching ``scheme_filter``, if given).
        """
        folders = self.workspace.folders
        if not folders:
            return None

        if len(folders) == 1:
            resource = folders[0]
            if scheme_filter is None or resource.scheme == scheme_filter:
                return resource
            return None

        for entry in self.get_history():
            if isinstance(entry, EditorInput):
                continue
            if scheme_filter is not None and entry.resource.scheme != scheme_filter:
                continue
            folder = self.workspace.get_folder(entry.resource)
            if folder is not None:
                return folder

        for folder in folders:
            if scheme_filter is None or folder.scheme == scheme_filter:
                return folder
        return None

    def get_last_active_file(self, scheme_filter: str) -> Resource | None:
        """Most recent history resource with the given scheme."""
        for entry in self.get_history():
            resource = original_resource(entry, scheme_filter)
            if resource is not None and resource.scheme == scheme_filter:
                return resource
        return None

    def dispose(self) -> None:
        """Stop listening to the host and release every editor listener."""
        self._subscriptions.dispose()
        self._active_editor_listeners.dispose()
        if self._coalescer is not None:
            self._coalescer.dispose()
            self._coalescer = None
        self.navigation.clear()
        self.history.dispose()
        self.exclude_matcher.dispose()


__all__ = ["HistoryService"]
