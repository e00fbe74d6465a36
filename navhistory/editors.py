"""Editor references: live inputs, serializable descriptors and panes.

An editor is referenced either by a live ``EditorInput`` (disposable,
identity-comparable, only valid while the host keeps it alive) or by a
``ResourceDescriptor`` (resource plus open options, survives disposal and
restarts). Panes are the visible containers the host reports as active.
"""

from __future__ import annotations

import enum
import itertools
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from .events import Emitter
from .resources import Resource, Schemes
from .selection import ChangeReason, SelectionChangeEvent

SIDE_BY_SIDE_EDITOR_ID = "workbench.editor.sidebysideEditor"

_input_ids = itertools.count(1)


class EditorsOrder(enum.Enum):
    MOST_RECENTLY_ACTIVE = 1
    SEQUENTIAL = 2


class CloseContext(enum.Enum):
    """Why an editor was closed; only ``UNKNOWN`` is a genuine close."""

    UNKNOWN = 1
    REPLACE = 2
    MOVE = 3


@dataclass(frozen=True)
class ResourceDescriptor:
    """Serializable editor reference: a resource plus open options."""

    resource: Resource
    options: Mapping[str, Any] | None = field(default=None, hash=False)

    @property
    def editor_kind(self) -> str | None:
        """Editor type override recorded in the options, if any."""
        if not self.options:
            return None
        value = self.options.get("override")
        return value if isinstance(value, str) else None

    def with_options(self, options: Mapping[str, Any]) -> ResourceDescriptor:
        merged = dict(self.options or {})
        merged.update(options)
        return ResourceDescriptor(self.resource, merged)

    def to_json(self) -> dict[str, object]:
        data: dict[str, object] = {"resource": str(self.resource)}
        if self.options:
            data["options"] = dict(self.options)
        return data

    @classmethod
    def from_json(cls, data: object) -> ResourceDescriptor | None:
        """Decode ``to_json`` output; malformed input yields ``None``."""
        if not isinstance(data, dict):
            return None
        raw_resource = data.get("resource")
        if not isinstance(raw_resource, str) or not raw_resource:
            return None
        try:
            resource = Resource.parse(raw_resource)
        except ValueError:
            return None
        options = data.get("options")
        return cls(resource, dict(options) if isinstance(options, dict) else None)


@dataclass(frozen=True)
class SideBySideDescriptor:
    """Untyped form of a side-by-side editor (e.g. a diff)."""

    primary: ResourceDescriptor
    secondary: ResourceDescriptor
    options: Mapping[str, Any] | None = field(default=None, hash=False)

    def with_options(self, options: Mapping[str, Any]) -> SideBySideDescriptor:
        merged = dict(self.options or {})
        merged.update(options)
        return SideBySideDescriptor(self.primary, self.secondary, merged)


UntypedEditor = Union[ResourceDescriptor, SideBySideDescriptor]


class EditorInput:
    """Live editor handle owned by the host.

    Equality is identity; ``matches`` is the looser "same logical editor"
    test the host may refine in subclasses.
    """

    def __init__(self, resource: Resource | None = None, editor_id: str | None = None) -> None:
        self.resource = resource
        self.editor_id = editor_id
        self.input_id = next(_input_ids)
        self.on_will_dispose: Emitter[None] = Emitter()
        self._disposed = False

    def matches(self, other: object) -> bool:
        if other is self:
            return True
        if isinstance(other, ResourceDescriptor):
            if self.resource is None or other.resource != self.resource:
                return False
            return other.editor_kind is None or other.editor_kind == self.editor_id
        if isinstance(other, EditorInput) and type(other) is type(self):
            return (
                self.resource is not None
                and other.resource == self.resource
                and other.editor_id == self.editor_id
            )
        return False

    def to_untyped(self) -> UntypedEditor | None:
        if self.resource is None or self.resource.scheme == Schemes.UNTITLED:
            return None
        options = {"override": self.editor_id} if self.editor_id else None
        return ResourceDescriptor(self.resource, options)

    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.on_will_dispose.fire(None)
        self.on_will_dispose.dispose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}#{self.input_id}({self.resource}, {self.editor_id!r})"


class SideBySideEditorInput(EditorInput):
    """Composite handle showing two editors, e.g. a diff."""

    def __init__(self, primary: EditorInput, secondary: EditorInput) -> None:
        super().__init__(primary.resource, SIDE_BY_SIDE_EDITOR_ID)
        self.primary = primary
        self.secondary = secondary

    def matches(self, other: object) -> bool:
        if other is self:
            return True
        if isinstance(other, SideBySideEditorInput):
            return self.primary.matches(other.primary) and self.secondary.matches(other.secondary)
        return False

    def to_untyped(self) -> UntypedEditor | None:
        primary = self.primary.to_untyped()
        secondary = self.secondary.to_untyped()
        if not isinstance(primary, ResourceDescriptor) or not isinstance(secondary, ResourceDescriptor):
            return None
        return SideBySideDescriptor(primary, secondary)


EditorRef = Union[EditorInput, ResourceDescriptor]


def original_resource(editor: object, filter_by_scheme: str | None = None) -> Resource | None:
    """Return the resource behind ``editor``.

    For side-by-side editors the primary side wins unless ``filter_by_scheme``
    only matches the secondary side.
    """
    if isinstance(editor, SideBySideEditorInput):
        for side in (editor.primary, editor.secondary):
            resource = original_resource(side, filter_by_scheme)
            if resource is not None:
                return resource
        return None
    resource = getattr(editor, "resource", None)
    if not isinstance(resource, Resource):
        return None
    if filter_by_scheme is not None and resource.scheme != filter_by_scheme:
        return None
    return resource


def associated_resources(editor: object) -> list[Resource]:
    """Return every resource ``editor`` shows: both sides for side-by-side."""
    if isinstance(editor, SideBySideEditorInput):
        out: list[Resource] = []
        for side in (editor.primary, editor.secondary):
            out.extend(resource for resource in associated_resources(side) if resource not in out)
        return out
    resource = original_resource(editor)
    return [resource] if resource is not None else []


def prefer_resource_editor_input(editor: EditorRef, default_scheme: str) -> EditorRef | None:
    """Pick the most durable representation of ``editor`` for storing in a stack.

    Resources with well-known schemes are stored as descriptors so they
    survive editor disposal and restarts. Other live inputs are kept as-is
    (and must be dropped when disposed); descriptors with other schemes are
    rejected.
    """
    resource = original_resource(editor)
    trusted = resource is not None and resource.scheme in {
        Schemes.FILE,
        Schemes.VSCODE_REMOTE,
        Schemes.USER_DATA,
        default_scheme,
    }
    if trusted:
        if isinstance(editor, EditorInput):
            untyped = editor.to_untyped()
            if isinstance(untyped, ResourceDescriptor):
                return untyped
        return editor
    return editor if isinstance(editor, EditorInput) else None


@dataclass(frozen=True)
class EditorIdentifier:
    group_id: int
    editor: EditorInput


@dataclass(frozen=True)
class EditorCloseEvent:
    editor: EditorInput
    group_id: int
    context: CloseContext = CloseContext.UNKNOWN
    index: int = 0
    sticky: bool = False


class EditorPane:
    """Visible editor container as reported by the host.

    A pane is selection aware when it can report a selection snapshot;
    such panes announce selection changes through ``on_did_change_selection``.
    """

    def __init__(
        self,
        editor: EditorInput | None,
        group_id: int,
        *,
        selection_aware: bool = True,
        selection: Any | None = None,
    ) -> None:
        self.input = editor
        self.group_id = group_id
        self.is_selection_aware = selection_aware
        self._selection = selection
        self.on_did_change_selection: Emitter[SelectionChangeEvent] = Emitter()

    def get_selection(self) -> Any | None:
        return self._selection if self.is_selection_aware else None

    def set_selection(self, selection: Any | None, reason: ChangeReason = ChangeReason.USER) -> None:
        self._selection = selection
        if self.is_selection_aware:
            self.on_did_change_selection.fire(SelectionChangeEvent(reason))

    def __repr__(self) -> str:
        return f"EditorPane({self.input!r}, group={self.group_id})"


__all__ = [
    "CloseContext",
    "EditorCloseEvent",
    "EditorIdentifier",
    "EditorInput",
    "EditorPane",
    "EditorRef",
    "EditorsOrder",
    "ResourceDescriptor",
    "SideBySideDescriptor",
    "SideBySideEditorInput",
    "UntypedEditor",
    "associated_resources",
    "original_resource",
    "prefer_resource_editor_input",
]
