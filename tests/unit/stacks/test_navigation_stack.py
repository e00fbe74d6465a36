"""Tests for back/forward navigation stack semantics.

Covers push-vs-replace decisions, branch truncation, bounding, removal by
file events, and replay (including overlapping replay requests).
"""

from __future__ import annotations

import asyncio
import unittest

from fakes import FakeEditorService, file_input

from navhistory.editors import EditorInput, EditorPane, ResourceDescriptor
from navhistory.files import FileChangesEvent, FileOperation, FileOperationEvent
from navhistory.matching import EditorMatcher
from navhistory.navigation import MAX_NAVIGATION_STACK_ENTRIES, NavigationStack
from navhistory.resources import Resource
from navhistory.selection import ChangeReason, SelectionChangeEvent, TextSelection


def _select(stack: NavigationStack, pane: EditorPane, line: int, reason: ChangeReason = ChangeReason.USER) -> None:
    pane.set_selection(TextSelection(line), reason)
    stack.handle_editor_event(pane, SelectionChangeEvent(reason))


def _paths(stack: NavigationStack) -> list[str]:
    return [entry.editor.resource.path for entry in stack.entries]


class NavigationStackRecordingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.host = FakeEditorService()
        self.stack = NavigationStack(editors=self.host, matcher=EditorMatcher(), default_scheme="file")

    def _open(self, path: str, line: int | None = None) -> EditorPane:
        pane = EditorPane(file_input(path), 1, selection=TextSelection(line) if line is not None else None)
        self.stack.handle_editor_event(pane)
        return pane

    def test_identical_selection_replaces_current_entry(self) -> None:
        pane = self._open("/work/a.py", 10)

        _select(self.stack, pane, 10)

        self.assertEqual(len(self.stack.entries), 1)
        self.assertEqual(self.stack.index, 0)

    def test_different_selection_pushes_new_entry(self) -> None:
        pane = self._open("/work/a.py", 10)

        _select(self.stack, pane, 500)

        self.assertEqual(len(self.stack.entries), 2)
        self.assertEqual([entry.selection for entry in self.stack.entries], [TextSelection(10), TextSelection(500)])
        self.assertEqual(self.stack.index, 1)

    def test_nearby_selection_updates_entry_in_place(self) -> None:
        pane = self._open("/work/a.py", 10)

        _select(self.stack, pane, 12)
        _select(self.stack, pane, 14)

        self.assertEqual(len(self.stack.entries), 1)
        self.assertEqual(self.stack.entries[0].selection, TextSelection(14))

    def test_navigation_reason_pushes_even_for_nearby_selection(self) -> None:
        pane = self._open("/work/a.py", 10)

        _select(self.stack, pane, 12, ChangeReason.NAVIGATION)

        self.assertEqual(len(self.stack.entries), 2)

    def test_switching_editors_pushes(self) -> None:
        self._open("/work/a.py", 1)
        self._open("/work/b.py", 1)

        self.assertEqual(_paths(self.stack), ["/work/a.py", "/work/b.py"])

    def test_file_editors_are_stored_as_descriptors(self) -> None:
        self._open("/work/a.py", 1)

        self.assertIsInstance(self.stack.entries[0].editor, ResourceDescriptor)
        self.assertEqual(len(self.stack.listeners), 0)

    def test_live_entries_are_removed_when_disposed(self) -> None:
        untitled = EditorInput(Resource("untitled", "Untitled-1"))
        self._open("/work/a.py", 1)
        self.stack.handle_editor_event(EditorPane(untitled, 1, selection=TextSelection(1)))
        self.assertIs(self.stack.entries[-1].editor, untitled)
        self.assertTrue(self.stack.listeners.is_tracked(untitled))

        untitled.dispose()

        self.assertEqual(_paths(self.stack), ["/work/a.py"])
        self.assertFalse(self.stack.listeners.is_tracked(untitled))

    def test_non_selection_editor_is_not_pushed_twice(self) -> None:
        image = file_input("/work/logo.png")
        self.stack.handle_editor_event(EditorPane(image, 1, selection_aware=False))
        self.stack.handle_editor_event(EditorPane(image, 1, selection_aware=False))
        self.stack.handle_editor_event(EditorPane(file_input("/work/icon.png"), 1, selection_aware=False))

        self.assertEqual(_paths(self.stack), ["/work/logo.png", "/work/icon.png"])
        self.assertIsNone(self.stack.current_selection_state)

    def test_disposed_editor_is_ignored(self) -> None:
        editor = file_input("/work/a.py")
        editor.dispose()

        self.stack.handle_editor_event(EditorPane(editor, 1, selection=TextSelection(1)))

        self.assertEqual(self.stack.entries, [])

    def test_stack_is_bounded_and_evicts_oldest(self) -> None:
        for idx in range(MAX_NAVIGATION_STACK_ENTRIES + 1):
            self._open(f"/work/file{idx}.py", 1)

        self.assertEqual(len(self.stack.entries), MAX_NAVIGATION_STACK_ENTRIES)
        self.assertEqual(self.stack.entries[0].editor.resource.path, "/work/file1.py")
        self.assertEqual(self.stack.index, MAX_NAVIGATION_STACK_ENTRIES - 1)

    def test_remove_by_watcher_delete_resets_cursor_to_tail(self) -> None:
        self._open("/work/a.py", 1)
        self._open("/work/b.py", 1)
        self._open("/work/a.py", 1)

        removed = self.stack.remove(FileChangesEvent.deleted(Resource.file("/work/a.py")))

        self.assertTrue(removed)
        self.assertEqual(_paths(self.stack), ["/work/b.py"])
        self.assertEqual(self.stack.index, 0)
        self.assertEqual(self.stack.last_index, -1)

    def test_move_replaces_entries_with_target(self) -> None:
        self._open("/work/a.py", 1)
        self._open("/work/b.py", 1)

        self.stack.move(
            FileOperationEvent(FileOperation.MOVE, Resource.file("/work/a.py"), Resource.file("/work/c.py"))
        )

        self.assertEqual(_paths(self.stack), ["/work/b.py", "/work/c.py"])

    def test_folder_move_leaves_entries_alone(self) -> None:
        self._open("/work/src/a.py", 1)
        self._open("/work/b.py", 1)

        self.stack.move(
            FileOperationEvent(
                FileOperation.MOVE,
                Resource.file("/work/src"),
                Resource.file("/work/lib"),
                target_is_file=False,
            )
        )

        self.assertEqual(_paths(self.stack), ["/work/src/a.py", "/work/b.py"])
        self.assertEqual(self.stack.index, 1)

    def test_clear_resets_everything(self) -> None:
        self._open("/work/a.py", 1)
        self.stack.clear()

        self.assertEqual(self.stack.entries, [])
        self.assertEqual(self.stack.index, -1)
        self.assertIsNone(self.stack.current_selection_state)
        self.assertFalse(self.stack.can_navigate_back)


class NavigationStackReplayTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.host = FakeEditorService()
        self.stack = NavigationStack(editors=self.host, matcher=EditorMatcher(), default_scheme="file")

    def _open(self, path: str, line: int) -> EditorPane:
        pane = EditorPane(file_input(path), 1, selection=TextSelection(line))
        self.stack.handle_editor_event(pane)
        return pane

    async def test_back_then_forward_restores_entry_and_selection(self) -> None:
        pane = self._open("/work/a.py", 10)
        _select(self.stack, pane, 300)
        before = self.stack.entries[self.stack.index]

        await self.stack.back()
        opened, _options = self.host.open_calls[-1]
        self.assertEqual(opened.resource, Resource.file("/work/a.py"))
        self.assertEqual(opened.options["selection"], {"line": 10, "column": 0})
        self.assertTrue(opened.options["reveal_if_opened"])

        await self.stack.forward()
        self.assertEqual(self.stack.entries[self.stack.index], before)
        opened, _options = self.host.open_calls[-1]
        self.assertEqual(opened.options["selection"], {"line": 300, "column": 0})

    async def test_push_after_back_truncates_forward_branch(self) -> None:
        self._open("/work/a.py", 1)
        self._open("/work/b.py", 1)
        self._open("/work/c.py", 1)

        await self.stack.back()
        self.assertEqual(self.stack.index, 1)
        self._open("/work/d.py", 1)

        self.assertEqual(_paths(self.stack), ["/work/a.py", "/work/b.py", "/work/d.py"])
        self.assertFalse(self.stack.can_navigate_forward)

    async def test_back_and_forward_are_noops_at_the_edges(self) -> None:
        self._open("/work/a.py", 1)

        await self.stack.back()
        await self.stack.forward()

        self.assertEqual(self.host.open_calls, [])
        self.assertEqual(self.stack.index, 0)

    async def test_last_returns_to_previous_cursor(self) -> None:
        self._open("/work/a.py", 1)
        self._open("/work/b.py", 1)
        self._open("/work/c.py", 1)

        await self.stack.back()
        await self.stack.back()
        await self.stack.last()

        self.assertEqual(self.stack.index, 1)
        self.assertEqual(self.host.open_calls[-1][0].resource, Resource.file("/work/b.py"))

    async def test_events_during_replay_only_update_current_state(self) -> None:
        stack = self.stack
        seen_navigating: list[bool] = []

        class ReportingEditors:
            async def open_editor(self, editor, options=None):
                await asyncio.sleep(0)
                seen_navigating.append(stack.navigating)
                pane = EditorPane(EditorInput(editor.resource), 1, selection=TextSelection(5))
                stack.handle_editor_event(pane)
                stack.handle_editor_event(pane, SelectionChangeEvent(ChangeReason.NAVIGATION))
                return pane

        stack._editors = ReportingEditors()
        self._open("/work/a.py", 1)
        self._open("/work/b.py", 1)

        await stack.back()

        self.assertEqual(seen_navigating, [True])
        self.assertFalse(stack.navigating)
        self.assertEqual(_paths(stack), ["/work/a.py", "/work/b.py"])
        self.assertEqual(stack.current_selection_state.selection, TextSelection(5))

    async def test_navigating_flag_is_cleared_when_open_fails(self) -> None:
        class FailingEditors:
            async def open_editor(self, editor, options=None):
                raise RuntimeError("boom")

        self.stack._editors = FailingEditors()
        self._open("/work/a.py", 1)
        self._open("/work/b.py", 1)

        with self.assertRaises(RuntimeError):
            await self.stack.back()

        self.assertFalse(self.stack.navigating)

    async def test_superseded_back_requests_are_skipped(self) -> None:
        for name in ("a", "b", "c", "d"):
            self._open(f"/work/{name}.py", 1)

        await asyncio.gather(self.stack.back(), self.stack.back(), self.stack.back())

        self.assertEqual(self.stack.index, 0)
        self.assertEqual(
            [call[0].resource.path for call in self.host.open_calls],
            ["/work/c.py", "/work/a.py"],
        )
        self.assertFalse(self.stack.navigating)


if __name__ == "__main__":
    unittest.main()
