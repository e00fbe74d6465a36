"""Glob-based exclusion of resources from the editor history.

``SettingsExcludeConfig`` resolves the ``files.exclude`` and
``search.exclude`` glob maps for a workspace folder (folder settings
override user settings). ``ResourceExcludeMatcher`` answers whether a
resource is excluded, caching compiled patterns per folder until the
configuration changes.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache

from .config import FILES_EXCLUDE_KEY, SEARCH_EXCLUDE_KEY, exclude_expression
from .events import Emitter, SubscriptionStore
from .resources import Resource
from .workspace import Workspace

logger = logging.getLogger(__name__)

_BRACES = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives, e.g. ``*.{js,ts}`` -> ``*.js``, ``*.ts``."""
    match = _BRACES.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    out: list[str] = []
    for option in match.group(1).split(","):
        out.extend(expand_braces(head + option + tail))
    return out


def _path_and_ancestors(path: str) -> list[str]:
    """Return ``a/b/c``, ``a/b``, ``a`` (absolute paths keep their leading slash)."""
    out: list[str] = []
    current = path.rstrip("/")
    while current and current != "/":
        out.append(current)
        parent = current.rsplit("/", 1)[0]
        if parent == current:
            break
        current = parent
    return out


def translate_glob(pattern: str) -> str:
    """Translate a brace-free glob into a regular expression.

    ``*``, ``?`` and ``[...]`` stay within one path segment. ``**`` as a whole
    segment spans any number of segments, including none.
    """
    out: list[str] = []
    idx, size = 0, len(pattern)
    while idx < size:
        char = pattern[idx]
        if char == "*":
            end = idx
            while end < size and pattern[end] == "*":
                end += 1
            segment_start = idx == 0 or pattern[idx - 1] == "/"
            if end - idx >= 2 and segment_start and end < size and pattern[end] == "/":
                out.append("(?:.*/)?")
                idx = end + 1
            elif end - idx >= 2 and segment_start and end == size:
                out.append(".*")
                idx = end
            else:
                out.append("[^/]*")
                idx = end
            continue
        if char == "?":
            out.append("[^/]")
        elif char == "[":
            close = pattern.find("]", idx + 2)
            if close == -1:
                out.append(re.escape(char))
            else:
                body = pattern[idx + 1 : close].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"(?!/)[{body}]")
                idx = close + 1
                continue
        else:
            out.append(re.escape(char))
        idx += 1
    return "".join(out)


@lru_cache(maxsize=512)
def _compile_glob(pattern: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(translate_glob(variant)) for variant in expand_braces(pattern))


def glob_matches(pattern: str, path: str) -> bool:
    """Return whether ``path`` or one of its parent folders matches ``pattern``."""
    compiled = _compile_glob(pattern)
    return any(
        regex.fullmatch(candidate) is not None
        for candidate in _path_and_ancestors(path)
        for regex in compiled
    )


class SettingsExcludeConfig:
    """Exclusion settings provider backed by settings dictionaries."""

    def __init__(
        self,
        settings: dict[str, object] | None = None,
        folder_settings: dict[Resource, dict[str, object]] | None = None,
    ) -> None:
        self._settings = dict(settings or {})
        self._folder_settings = dict(folder_settings or {})
        self.on_did_change: Emitter[None] = Emitter()

    def get_excludes(self, root: Resource | None) -> dict[str, bool]:
        """Merged ``files.exclude`` + ``search.exclude`` map for ``root``."""
        merged: dict[str, bool] = {}
        scopes = [self._settings]
        if root is not None and root in self._folder_settings:
            scopes.append(self._folder_settings[root])
        for scope in scopes:
            merged.update(exclude_expression(scope, FILES_EXCLUDE_KEY))
            merged.update(exclude_expression(scope, SEARCH_EXCLUDE_KEY))
        return merged

    def update(
        self,
        settings: dict[str, object] | None = None,
        folder_settings: dict[Resource, dict[str, object]] | None = None,
    ) -> None:
        """Replace settings; notifies listeners when any resolved map changed."""
        roots = set(self._folder_settings) | set(folder_settings or {})
        before = {root: self.get_excludes(root) for root in roots | {None}}
        if settings is not None:
            self._settings = dict(settings)
        if folder_settings is not None:
            self._folder_settings = dict(folder_settings)
        after = {root: self.get_excludes(root) for root in roots | {None}}
        if before != after:
            self.on_did_change.fire(None)


@dataclass(frozen=True)
class _CompiledExpression:
    patterns: tuple[str, ...]


class ResourceExcludeMatcher:
    """Decide whether a resource is hidden by the exclusion settings.

    Patterns are tried against the path relative to the workspace folder
    owning the resource and against the absolute path.
    """

    def __init__(self, config: SettingsExcludeConfig, workspace: Workspace | None = None) -> None:
        self._config = config
        self._workspace = workspace if workspace is not None else Workspace()
        self._cache: dict[Resource | None, _CompiledExpression] = {}
        self.on_did_change: Emitter[None] = Emitter()
        self._subscriptions = SubscriptionStore()
        self._subscriptions.add(config.on_did_change.subscribe(self._on_config_change))

    def _on_config_change(self, _payload: object) -> None:
        self._cache.clear()
        logger.debug("exclude settings changed")
        self.on_did_change.fire(None)

    def _expression(self, root: Resource | None) -> _CompiledExpression:
        compiled = self._cache.get(root)
        if compiled is None:
            expression = self._config.get_excludes(root)
            compiled = _CompiledExpression(
                patterns=tuple(pattern for pattern, enabled in expression.items() if enabled)
            )
            self._cache[root] = compiled
        return compiled

    def matches(self, resource: Resource | None) -> bool:
        """Whether ``resource`` is excluded from the history."""
        if resource is None:
            return False
        root = self._workspace.get_folder(resource)
        expression = self._expression(root)
        if not expression.patterns:
            return False

        candidates = [resource.path]
        if root is not None:
            relative = resource.relative_to(root)
            if relative:
                candidates.insert(0, relative)
        return any(
            glob_matches(pattern, candidate)
            for pattern in expression.patterns
            for candidate in candidates
        )

    def dispose(self) -> None:
        self._subscriptions.dispose()
        self.on_did_change.dispose()


__all__ = [
    "ResourceExcludeMatcher",
    "SettingsExcludeConfig",
    "expand_braces",
    "glob_matches",
    "translate_glob",
]
