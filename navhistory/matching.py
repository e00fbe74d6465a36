"""Identity matching across live inputs, descriptors and file events.

One matcher decides whether an editor reference held in a stack denotes
the same logical resource as an incoming reference or file notification.
All rules live here so the stacks stay consistent with each other.
"""

from __future__ import annotations

from collections.abc import Callable

from .editors import EditorInput, ResourceDescriptor
from .files import FileChangeType, FileChangesEvent, FileOperationEvent
from .resources import Resource

# Anything that can be used to look up entries in a stack.
MatchSubject = EditorInput | ResourceDescriptor | FileChangesEvent | FileOperationEvent


class EditorMatcher:
    """Implements the identity rules shared by every history stack.

    ``has_provider`` reports whether a content provider is registered for a
    resource; ``is_restored`` reports whether the host finished restoring
    its editors. Until then providers may still be registering, so live
    inputs are compared to descriptors by resource only.
    """

    def __init__(
        self,
        *,
        has_provider: Callable[[Resource], bool] = lambda _resource: True,
        is_restored: Callable[[], bool] = lambda: True,
    ) -> None:
        self._has_provider = has_provider
        self._is_restored = is_restored

    def matches(self, subject: MatchSubject, candidate: EditorInput | ResourceDescriptor) -> bool:
        """Return whether ``candidate`` (a stack entry) is denoted by ``subject``."""
        if isinstance(subject, (FileChangesEvent, FileOperationEvent)):
            if isinstance(candidate, EditorInput):
                return False  # file events only apply to descriptors
            return self.matches_file(candidate.resource, subject)

        if isinstance(subject, EditorInput):
            if isinstance(candidate, EditorInput):
                return subject.matches(candidate)
            return self.matches_file(candidate.resource, subject)

        if isinstance(candidate, EditorInput):
            return self.matches_file(subject.resource, candidate)

        if subject.resource is None or candidate.resource is None:
            return False
        return subject.resource == candidate.resource

    def matches_file(self, resource: Resource | None, subject: MatchSubject) -> bool:
        """Return whether ``subject`` refers to ``resource``.

        Deletions reported by the watcher must name the resource exactly;
        application operations (delete, move) also cover everything below a
        folder they act on.
        """
        if resource is None:
            return False

        if isinstance(subject, FileChangesEvent):
            return subject.contains(resource, FileChangeType.DELETED)

        if isinstance(subject, FileOperationEvent):
            return resource.is_equal_or_descendant_of(subject.resource)

        if isinstance(subject, EditorInput):
            input_resource = subject.resource
            if input_resource is None:
                return False
            if self._is_restored() and not self._has_provider(input_resource):
                return False
            return input_resource == resource

        return subject is not None and subject.resource == resource


__all__ = ["EditorMatcher", "MatchSubject"]
