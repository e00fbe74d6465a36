"""Resource locations (URIs) used to identify editor content.

A ``Resource`` is a normalized, comparable ``scheme://authority/path`` value.
It carries no I/O; equality and containment are purely structural.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import PurePath
from urllib.parse import quote, unquote, urlsplit


class Schemes:
    """Well-known resource schemes."""

    FILE = "file"
    VSCODE_REMOTE = "vscode-remote"
    USER_DATA = "vscode-userdata"
    UNTITLED = "untitled"


def _normalize_path(path: str) -> str:
    if not path:
        return ""
    normalized = posixpath.normpath(path)
    # normpath keeps a leading "//" which is not meaningful for URIs.
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


@dataclass(frozen=True)
class Resource:
    """Location of editor content, independent of any open editor."""

    scheme: str
    path: str
    authority: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "scheme", self.scheme.lower())
        object.__setattr__(self, "path", _normalize_path(self.path))

    @classmethod
    def file(cls, path: str | PurePath) -> Resource:
        """Build a ``file`` resource from a filesystem path."""
        raw = path.as_posix() if isinstance(path, PurePath) else str(path).replace("\\", "/")
        if not raw.startswith("/"):
            raw = "/" + raw
        return cls(Schemes.FILE, raw)

    @classmethod
    def parse(cls, value: str) -> Resource:
        """Parse URI text such as ``file:///a/b.py`` or ``untitled:Untitled-1``.

        Raises ``ValueError`` when ``value`` has no scheme.
        """
        parts = urlsplit(value)
        if not parts.scheme:
            raise ValueError(f"not a resource URI: {value!r}")
        return cls(parts.scheme, unquote(parts.path), parts.netloc)

    def __str__(self) -> str:
        path = quote(self.path, safe="/:@!$&'()*+,;=-._~")
        if self.authority or self.path.startswith("/"):
            return f"{self.scheme}://{self.authority}{path}"
        return f"{self.scheme}:{path}"

    @property
    def basename(self) -> str:
        return posixpath.basename(self.path)

    def joinpath(self, *parts: str) -> Resource:
        return Resource(self.scheme, posixpath.join(self.path or "/", *parts), self.authority)

    def is_equal_or_descendant_of(self, parent: Resource) -> bool:
        """Return whether this resource is ``parent`` or located below it."""
        if self.scheme != parent.scheme or self.authority != parent.authority:
            return False
        if self.path == parent.path:
            return True
        prefix = parent.path.rstrip("/") + "/"
        return self.path.startswith(prefix)

    def relative_to(self, parent: Resource) -> str | None:
        """Return the ``/``-joined path below ``parent``, or ``None`` if outside."""
        if not self.is_equal_or_descendant_of(parent):
            return None
        if self.path == parent.path:
            return ""
        return self.path[len(parent.path.rstrip("/")) + 1 :]


__all__ = ["Resource", "Schemes"]
