"""Tests for the file and package indexes."""

import json
import re
from pathlib import Path

from quicken.config import LanguageOptions
from quicken.ignore import load_ignore_patterns, should_ignore
from quicken.workspace_index import (
    FileIndex,
    PackageIndex,
    WorkspaceIndex,
    find_manifest,
    list_workspace_files,
)

JS_FAMILY = re.compile(r"^jsx?$")


# =============================================================================
# Ignore rules
# =============================================================================


class TestIgnoreRules:
    def test_default_template(self, tmp_path: Path):
        spec = load_ignore_patterns(tmp_path)

        assert should_ignore("node_modules/", tmp_path, spec)
        assert should_ignore("dist/bundle.js", tmp_path, spec)
        assert not should_ignore("src/app.js", tmp_path, spec)

    def test_gitignore_patterns(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("generated/\n*.min.js\n")

        spec = load_ignore_patterns(tmp_path)

        assert should_ignore("generated/api.js", tmp_path, spec)
        assert should_ignore("vendor/jquery.min.js", tmp_path, spec)
        assert should_ignore("node_modules/", tmp_path, spec)

    def test_custom_ignore_file_replaces_defaults(self, tmp_path: Path):
        (tmp_path / ".quickenignore").write_text("fixtures/\n")

        spec = load_ignore_patterns(tmp_path)

        assert should_ignore("fixtures/a.js", tmp_path, spec)
        assert not should_ignore("dist/bundle.js", tmp_path, spec)

    def test_absolute_path(self, tmp_path: Path):
        assert should_ignore(tmp_path / "node_modules" / "react" / "index.js", tmp_path)


# =============================================================================
# FileIndex
# =============================================================================


class TestListWorkspaceFiles:
    def test_prunes_ignored_directories(self, write_files):
        root = write_files({
            "src/app.js": "",
            "src/lib/util.js": "",
            "node_modules/react/index.js": "",
            ".git/HEAD": "",
        })

        files = list_workspace_files(root)

        assert files == [str(root / "src" / "app.js"), str(root / "src" / "lib" / "util.js")]

    def test_without_ignore_rules(self, write_files):
        root = write_files({"node_modules/react/index.js": ""})

        assert list_workspace_files(root, respect_ignore=False) == [
            str(root / "node_modules" / "react" / "index.js")
        ]


class TestFileIndex:
    def index(self, root: Path) -> FileIndex:
        return FileIndex(str(root), LanguageOptions(), JS_FAMILY)

    def test_lazy_build(self, write_files):
        root = write_files({"a.js": "", "b.js": ""})
        index = self.index(root)

        assert not index.is_built
        assert [item.label for item in index.build()] == ["a", "b"]
        assert index.is_built

    def test_build_is_cached(self, write_files):
        root = write_files({"a.js": ""})
        index = self.index(root)
        index.build()

        (root / "b.js").write_text("")

        assert [item.label for item in index.build()] == ["a"]

    def test_add_and_remove(self, write_files):
        root = write_files({"a.js": ""})
        index = self.index(root)
        index.build()

        (root / "b.js").write_text("")
        index.add(str(root / "b.js"))
        index.add(str(root / "b.js"))
        assert [item.label for item in index.build()] == ["a", "b"]

        index.remove(str(root / "a.js"))
        assert [item.label for item in index.build()] == ["b"]

    def test_add_before_build_is_ignored(self, write_files):
        root = write_files({"a.js": ""})
        index = self.index(root)

        index.add(str(root / "a.js"))

        assert not index.is_built

    def test_add_skips_ignored_and_outside_files(self, write_files, tmp_path_factory):
        root = write_files({"a.js": ""})
        outside = tmp_path_factory.mktemp("outside") / "x.js"
        index = self.index(root)
        index.build()

        index.add(str(root / "node_modules" / "pkg" / "index.js"))
        index.add(str(outside))

        assert [item.label for item in index.build()] == ["a"]

    def test_invalidate(self, write_files):
        root = write_files({"a.js": ""})
        index = self.index(root)
        index.build()

        (root / "b.js").write_text("")
        index.invalidate()

        assert not index.is_built
        assert [item.label for item in index.build()] == ["a", "b"]


# =============================================================================
# PackageIndex
# =============================================================================


class TestPackageIndex:
    def test_find_manifest_walks_up(self, write_files):
        root = write_files({"package.json": "{}", "src/deep/app.js": ""})

        assert find_manifest(str(root / "src" / "deep"), str(root)) == str(root / "package.json")

    def test_find_manifest_nearest_wins(self, write_files):
        root = write_files({"package.json": "{}", "packages/web/package.json": "{}"})

        manifest = find_manifest(str(root / "packages" / "web" / "src"), str(root))

        assert manifest == str(root / "packages" / "web" / "package.json")

    def test_find_manifest_stops_at_root(self, write_files):
        root = write_files({"src/app.js": ""})

        assert find_manifest(str(root / "src"), str(root)) is None

    def test_dependencies_merged_and_deduplicated(self, write_files):
        root = write_files({
            "package.json": json.dumps({
                "dependencies": {"react": "^18.0.0", "axios": "^1.0.0"},
                "devDependencies": {"jest": "^29.0.0", "react": "^18.0.0"},
            }),
            "node_modules/react/package.json": json.dumps({"version": "18.2.0"}),
        })

        packages = PackageIndex(str(root)).build(str(root / "package.json"))

        assert [item.name for item in packages] == ["axios", "jest", "react"]
        assert [item.description for item in packages] == ["", "", "v18.2.0"]

    def test_scoped_package_version(self, write_files):
        root = write_files({
            "package.json": json.dumps({"dependencies": {"@babel/core": "^7.0.0"}}),
            "node_modules/@babel/core/package.json": json.dumps({"version": "7.22.1"}),
        })

        packages = PackageIndex(str(root)).build(str(root / "package.json"))

        assert packages[0].id == "pkg://@babel/core"
        assert packages[0].description == "v7.22.1"

    def test_malformed_manifest(self, write_files):
        root = write_files({"package.json": "{oops"})

        assert PackageIndex(str(root)).build(str(root / "package.json")) == []


class TestWorkspaceIndex:
    def test_package_candidates_without_manifest(self, write_files):
        root = write_files({"a.js": ""})
        index = WorkspaceIndex(str(root), LanguageOptions(), JS_FAMILY)

        assert index.package_candidates(str(root)) == []

    def test_invalidate_clears_both(self, write_files):
        root = write_files({"a.js": "", "package.json": json.dumps({"dependencies": {"react": "1"}})})
        index = WorkspaceIndex(str(root), LanguageOptions(), JS_FAMILY)
        index.file_candidates()
        index.package_candidates(str(root))

        (root / "package.json").write_text(json.dumps({"dependencies": {"vue": "3"}}))
        index.invalidate()

        assert not index.files.is_built
        assert [item.name for item in index.package_candidates(str(root))] == ["vue"]
