"""File-change notifications consumed from the host's file service.

``FileChangesEvent`` batches come from the watcher (external changes);
``FileOperationEvent`` describes an operation the application itself ran
(explorer delete, rename, ...).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .resources import Resource


class FileChangeType(enum.Enum):
    UPDATED = 0
    ADDED = 1
    DELETED = 2


class FileOperation(enum.Enum):
    CREATE = 0
    DELETE = 1
    MOVE = 2
    COPY = 3
    WRITE = 4


@dataclass(frozen=True)
class FileChange:
    resource: Resource
    type: FileChangeType


@dataclass(frozen=True)
class FileChangesEvent:
    """Batch of watcher changes."""

    changes: tuple[FileChange, ...] = ()

    @classmethod
    def deleted(cls, *resources: Resource) -> FileChangesEvent:
        return cls(tuple(FileChange(resource, FileChangeType.DELETED) for resource in resources))

    def contains(self, resource: Resource | None, change_type: FileChangeType) -> bool:
        """Return whether ``resource`` itself (not a parent) changed as ``change_type``."""
        if resource is None:
            return False
        return any(change.type is change_type and change.resource == resource for change in self.changes)

    def got_deleted(self) -> bool:
        return any(change.type is FileChangeType.DELETED for change in self.changes)


@dataclass(frozen=True)
class FileOperationEvent:
    """Application-initiated operation on ``resource`` (the source for moves)."""

    operation: FileOperation
    resource: Resource
    target: Resource | None = None
    target_is_file: bool = True

    def is_operation(self, operation: FileOperation) -> bool:
        return self.operation is operation


__all__ = [
    "FileChange",
    "FileChangeType",
    "FileChangesEvent",
    "FileOperation",
    "FileOperationEvent",
]
