"""CLI behavior tests for listing, querying and clearing stored history."""

from __future__ import annotations

import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from navhistory import cli
from navhistory.editors import ResourceDescriptor
from navhistory.history import HISTORY_STORAGE_KEY, serialize_history
from navhistory.resources import Resource
from navhistory.storage import JsonFileStorage, StorageScope


def _write_history(path: Path, *entries: ResourceDescriptor) -> None:
    storage = JsonFileStorage(path)
    storage.store(HISTORY_STORAGE_KEY, serialize_history(entries), StorageScope.WORKSPACE)
    storage.save()


def _run(*argv: str) -> tuple[int, str]:
    stdout = io.StringIO()
    with redirect_stdout(stdout):
        code = cli.main(list(argv))
    return code, stdout.getvalue()


class NavHistoryCliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.state = Path(self._tmp.name) / "state.json"
        _write_history(
            self.state,
            ResourceDescriptor(Resource("vscode-remote", "/srv/app.py", "ssh-remote+box")),
            ResourceDescriptor(Resource.file("/work/a.py"), {"override": "hexEditor"}),
            ResourceDescriptor(Resource.file("/work/b.py")),
        )

    def test_list_prints_entries_most_recent_first(self) -> None:
        code, output = _run("--storage", str(self.state), "list")

        self.assertEqual(code, 0)
        self.assertEqual(
            output.splitlines(),
            [
                "vscode-remote://ssh-remote+box/srv/app.py",
                "file:///work/a.py\thexEditor",
                "file:///work/b.py",
            ],
        )

    def test_list_filters_by_scheme(self) -> None:
        code, output = _run("--storage", str(self.state), "list", "--scheme", "file")

        self.assertEqual(code, 0)
        self.assertEqual(output.splitlines(), ["file:///work/a.py\thexEditor", "file:///work/b.py"])

    def test_last_file_prints_most_recent_match(self) -> None:
        code, output = _run("--storage", str(self.state), "last-file")

        self.assertEqual(code, 0)
        self.assertEqual(output, "file:///work/a.py\n")

    def test_last_file_without_match_exits_nonzero(self) -> None:
        code, output = _run("--storage", str(self.state), "last-file", "--scheme", "untitled")

        self.assertEqual(code, 1)
        self.assertEqual(output, "")

    def test_clear_empties_stored_history(self) -> None:
        code, _output = _run("--storage", str(self.state), "clear")
        self.assertEqual(code, 0)

        code, output = _run("--storage", str(self.state), "list")
        self.assertEqual(code, 0)
        self.assertEqual(output, "")

    def test_unreadable_history_lists_nothing(self) -> None:
        storage = JsonFileStorage(self.state)
        storage.store(HISTORY_STORAGE_KEY, '{"not": "a list"}', StorageScope.WORKSPACE)
        storage.save()

        with self.assertLogs("navhistory.cli", level="WARNING"):
            code, output = _run("--storage", str(self.state), "list")

        self.assertEqual(code, 0)
        self.assertEqual(output, "")

    def test_storage_path_comes_from_settings(self) -> None:
        settings = Path(self._tmp.name) / "settings.json"
        settings.write_text(f'{{"history.storagePath": "{self.state.as_posix()}"}}', encoding="utf-8")

        code, output = _run("--settings", str(settings), "last-file")

        self.assertEqual(code, 0)
        self.assertEqual(output, "file:///work/a.py\n")

    def test_clear_reports_write_failure(self) -> None:
        with mock.patch.object(Path, "write_text", side_effect=OSError("read-only")):
            with self.assertRaises(SystemExit) as raised:
                cli.main(["--storage", str(self.state), "clear"])

        self.assertIn("read-only", str(raised.exception.code))

    def test_package_main_delegates_to_cli(self) -> None:
        import navhistory

        stdout = io.StringIO()
        with redirect_stdout(stdout):
            code = navhistory.main(["--storage", str(self.state), "last-file"])

        self.assertEqual(code, 0)
        self.assertEqual(stdout.getvalue(), "file:///work/a.py\n")
        self.assertEqual(navhistory.HistoryService.__name__, "HistoryService")

    def test_command_is_required(self) -> None:
        with mock.patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as raised:
                cli.main([])

        self.assertEqual(raised.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
