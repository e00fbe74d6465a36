"""JSON-file backed key/value storage with an "about to persist" signal.

Values are strings grouped by scope. Before writing, ``flush`` fires
``on_will_save_state`` so owners of in-memory state can ``store`` their
latest values. Reading is defensive: a missing or malformed file is treated
as empty.
"""

from __future__ import annotations

import enum
import json
import logging
from pathlib import Path

from .config import DEFAULT_STATE_PATH
from .errors import StorageError
from .events import Emitter

logger = logging.getLogger(__name__)


class StorageScope(enum.Enum):
    GLOBAL = "global"
    WORKSPACE = "workspace"


class StorageTarget(enum.Enum):
    USER = "user"
    MACHINE = "machine"


class JsonFileStorage:
    """Key-value state kept in one JSON file, split by storage scope."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else DEFAULT_STATE_PATH
        self.on_will_save_state: Emitter[None] = Emitter()
        self._data: dict[str, dict[str, str]] | None = None
        self._targets: dict[tuple[str, str], StorageTarget] = {}

    def _scopes(self) -> dict[str, dict[str, str]]:
        if self._data is None:
            try:
                self._data = self.load()
            except StorageError as exc:
                logger.warning("ignoring unreadable state file %s: %s", self.path, exc)
                self._data = {}
        return self._data

    def load(self) -> dict[str, dict[str, str]]:
        """Strictly read the state file.

        Returns an empty mapping when the file does not exist and raises
        ``StorageError`` when it cannot be read or is not a JSON object.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageError(f"cannot read {self.path}: {exc}") from exc
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"malformed state file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"state file {self.path} is not a JSON object")

        scopes: dict[str, dict[str, str]] = {}
        for scope_name, values in data.items():
            if not isinstance(values, dict):
                continue
            scopes[scope_name] = {
                key: value for key, value in values.items() if isinstance(key, str) and isinstance(value, str)
            }
        return scopes

    def save(self) -> None:
        """Strictly write the state file, raising ``StorageError`` on failure."""
        data = self._scopes()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"cannot write {self.path}: {exc}") from exc

    def get(self, key: str, scope: StorageScope) -> str | None:
        """Stored value for ``key`` in ``scope``, or None."""
        return self._scopes().get(scope.value, {}).get(key)

    def store(
        self,
        key: str,
        value: str,
        scope: StorageScope,
        target: StorageTarget = StorageTarget.MACHINE,
    ) -> None:
        self._scopes().setdefault(scope.value, {})[key] = value
        self._targets[(scope.value, key)] = target

    def remove(self, key: str, scope: StorageScope) -> None:
        self._scopes().get(scope.value, {}).pop(key, None)
        self._targets.pop((scope.value, key), None)

    def target_of(self, key: str, scope: StorageScope) -> StorageTarget | None:
        return self._targets.get((scope.value, key))

    def flush(self) -> None:
        """Collect pending state from listeners and write it to disk.

        Write failures are logged and otherwise ignored.
        """
        self.on_will_save_state.fire(None)
        try:
            self.save()
        except StorageError as exc:
            logger.warning("%s", exc)


__all__ = ["JsonFileStorage", "StorageScope", "StorageTarget"]
