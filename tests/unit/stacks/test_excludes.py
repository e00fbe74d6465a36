"""Tests for glob exclusion of history resources."""

from __future__ import annotations

import unittest

from navhistory.excludes import (
    ResourceExcludeMatcher,
    SettingsExcludeConfig,
    expand_braces,
    glob_matches,
    translate_glob,
)
from navhistory.resources import Resource
from navhistory.workspace import Workspace


class GlobTests(unittest.TestCase):
    def test_expand_braces(self) -> None:
        self.assertEqual(expand_braces("*.{js,ts}"), ["*.js", "*.ts"])
        self.assertEqual(expand_braces("plain"), ["plain"])

    def test_pattern_matches_parent_folders(self) -> None:
        self.assertTrue(glob_matches("node_modules", "node_modules/pkg/index.js"))
        self.assertTrue(glob_matches("**/node_modules", "web/node_modules/pkg/index.js"))
        self.assertTrue(glob_matches("**/*.log", "build.log"))
        self.assertFalse(glob_matches("**/*.log", "src/app.py"))

    def test_single_star_stays_within_one_segment(self) -> None:
        self.assertTrue(glob_matches("src/*.js", "src/app.js"))
        self.assertFalse(glob_matches("src/*.js", "src/lib/deep.js"))
        self.assertTrue(glob_matches("src/**/*.js", "src/app.js"))
        self.assertTrue(glob_matches("src/**/*.js", "src/lib/deep.js"))
        self.assertTrue(glob_matches("src/**", "src/lib/deep.js"))

    def test_question_mark_and_classes_do_not_cross_segments(self) -> None:
        self.assertTrue(glob_matches("a?c", "abc"))
        self.assertFalse(glob_matches("a?c", "a/c"))
        self.assertTrue(glob_matches("[ab].py", "b.py"))
        self.assertFalse(glob_matches("[!ab].py", "a.py"))
        self.assertTrue(glob_matches("[!ab].py", "c.py"))

    def test_translate_glob(self) -> None:
        self.assertEqual(translate_glob("**/*.log"), r"(?:.*/)?[^/]*\.log")
        self.assertEqual(translate_glob("a?"), "a[^/]")

    def test_absolute_patterns(self) -> None:
        self.assertTrue(glob_matches("/tmp/*", "/tmp/a.txt"))
        self.assertFalse(glob_matches("/tmp/*", "/work/tmp.txt"))


class ResourceExcludeMatcherTests(unittest.TestCase):
    def test_folder_settings_override_user_settings(self) -> None:
        root = Resource.file("/work")
        config = SettingsExcludeConfig(
            {"files.exclude": {"**/*.log": True}},
            {root: {"files.exclude": {"**/*.log": False, "dist": True}}},
        )
        matcher = ResourceExcludeMatcher(config, Workspace([root]))

        self.assertFalse(matcher.matches(Resource.file("/work/app.log")))
        self.assertTrue(matcher.matches(Resource.file("/work/dist/bundle.js")))
        self.assertTrue(matcher.matches(Resource.file("/elsewhere/app.log")))

    def test_single_star_pattern_keeps_nested_files(self) -> None:
        root = Resource.file("/w")
        config = SettingsExcludeConfig({"files.exclude": {"src/*.js": True}})
        matcher = ResourceExcludeMatcher(config, Workspace([root]))

        self.assertTrue(matcher.matches(Resource.file("/w/src/top.js")))
        self.assertFalse(matcher.matches(Resource.file("/w/src/lib/deep.js")))

    def test_innermost_folder_wins(self) -> None:
        outer = Resource.file("/work")
        inner = Resource.file("/work/packages/core")
        config = SettingsExcludeConfig(folder_settings={inner: {"search.exclude": {"generated": True}}})
        matcher = ResourceExcludeMatcher(config, Workspace([outer, inner]))

        self.assertTrue(matcher.matches(Resource.file("/work/packages/core/generated/x.py")))
        self.assertFalse(matcher.matches(Resource.file("/work/generated/x.py")))

    def test_disabled_and_invalid_patterns_are_ignored(self) -> None:
        config = SettingsExcludeConfig({"files.exclude": {"**/*.py": False, "": True, "*.tmp": "yes"}})
        matcher = ResourceExcludeMatcher(config)

        self.assertFalse(matcher.matches(Resource.file("/work/a.py")))
        self.assertFalse(matcher.matches(Resource.file("/work/a.tmp")))
        self.assertFalse(matcher.matches(None))

    def test_update_notifies_only_on_change(self) -> None:
        config = SettingsExcludeConfig({"files.exclude": {"**/*.tmp": True}})
        matcher = ResourceExcludeMatcher(config)
        fired: list[object] = []
        matcher.on_did_change.subscribe(fired.append)

        config.update({"files.exclude": {"**/*.tmp": True}})
        self.assertEqual(fired, [])

        config.update({"files.exclude": {"**/*.bak": True}})
        self.assertEqual(len(fired), 1)
        self.assertFalse(matcher.matches(Resource.file("/work/a.tmp")))
        self.assertTrue(matcher.matches(Resource.file("/work/a.bak")))

    def test_dispose_stops_following_config(self) -> None:
        config = SettingsExcludeConfig()
        matcher = ResourceExcludeMatcher(config)
        fired: list[object] = []
        matcher.on_did_change.subscribe(fired.append)

        matcher.dispose()
        config.update({"files.exclude": {"*.bak": True}})

        self.assertEqual(fired, [])


if __name__ == "__main__":
    unittest.main()
