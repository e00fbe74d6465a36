"""Workspace folders and resource-to-folder lookup."""

from __future__ import annotations

from collections.abc import Iterable

from .resources import Resource


class Workspace:
    """Ordered set of workspace root folders."""

    def __init__(self, folders: Iterable[Resource] = ()) -> None:
        self.folders: list[Resource] = []
        for folder in folders:
            if folder not in self.folders:
                self.folders.append(folder)

    def get_folder(self, resource: Resource | None) -> Resource | None:
        """Return the innermost folder containing ``resource``."""
        if resource is None:
            return None
        best: Resource | None = None
        for folder in self.folders:
            if not resource.is_equal_or_descendant_of(folder):
                continue
            if best is None or len(folder.path) > len(best.path):
                best = folder
        return best
