"""Command-line inspection of the persisted editor history.

Reads the state file written by ``JsonFileStorage`` and lists, queries or
clears the stored history entries.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_settings, storage_path
from .editors import ResourceDescriptor
from .errors import StorageError
from .history import HISTORY_STORAGE_KEY, load_history_from_text, serialize_history
from .storage import JsonFileStorage, StorageScope, StorageTarget

logger = logging.getLogger(__name__)


def _stored_entries(storage: JsonFileStorage) -> list[ResourceDescriptor]:
    raw = storage.get(HISTORY_STORAGE_KEY, StorageScope.WORKSPACE)
    if not raw:
        return []
    try:
        return load_history_from_text(raw)
    except ValueError as exc:
        logger.warning("ignoring unreadable editor history: %s", exc)
        return []


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="navhistory", description="Inspect the persisted editor history.")
    parser.add_argument("--storage", metavar="PATH", default=None, help="State file (default: from settings).")
    parser.add_argument("--settings", metavar="PATH", default=None, help="Settings file to read.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    list_parser = commands.add_parser("list", help="Print history entries, most recent first.")
    list_parser.add_argument("--scheme", default=None, help="Only show resources with this scheme.")

    last_parser = commands.add_parser("last-file", help="Print the most recent resource with a scheme.")
    last_parser.add_argument("--scheme", default="file", help="Resource scheme (default: file).")

    commands.add_parser("clear", help="Remove all stored history entries.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI; returns the process exit code."""
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.storage is not None:
        path = Path(args.storage)
    else:
        path = storage_path(load_settings(Path(args.settings) if args.settings else None))
    storage = JsonFileStorage(path)

    if args.command == "clear":
        storage.store(HISTORY_STORAGE_KEY, serialize_history([]), StorageScope.WORKSPACE, StorageTarget.MACHINE)
        try:
            storage.save()
        except StorageError as exc:
            raise SystemExit(str(exc)) from exc
        return 0

    entries = _stored_entries(storage)

    if args.command == "last-file":
        for entry in entries:
            if entry.resource.scheme == args.scheme:
                sys.stdout.write(f"{entry.resource}\n")
                return 0
        return 1

    for entry in entries:
        if args.scheme is not None and entry.resource.scheme != args.scheme:
            continue
        kind = entry.editor_kind
        sys.stdout.write(f"{entry.resource}\t{kind}\n" if kind else f"{entry.resource}\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
