"""Tests for PathInfo and import-style relative paths."""

import os
from pathlib import Path

from quicken.path_info import PathInfo, resolve_relative, strip_last_segment, to_posix


class TestPathInfoFields:
    def test_split_fields(self, tmp_path: Path):
        path = tmp_path / "src" / "utils" / "helpers.test.js"
        info = PathInfo(str(path))

        assert info.directory_path == str(tmp_path / "src" / "utils")
        assert info.directory_name == "utils"
        assert info.file_name_with_extension == "helpers.test.js"
        assert info.file_name_without_extension == "helpers.test"
        assert info.file_extension_without_leading_dot == "js"

    def test_no_extension(self, tmp_path: Path):
        info = PathInfo(str(tmp_path / "Makefile"))

        assert info.file_name_without_extension == "Makefile"
        assert info.file_extension_without_leading_dot == ""

    def test_posix_full_path(self):
        assert to_posix(r"C:\work\src\app.js") == "C:/work/src/app.js"

    def test_path_is_normalized(self, tmp_path: Path):
        info = PathInfo(os.path.join(str(tmp_path), "a", "..", "b.js"))

        assert info.full_path == str(tmp_path / "b.js")


class TestRelativePath:
    def test_same_directory_gets_dot_prefix(self, tmp_path: Path):
        info = PathInfo(str(tmp_path / "helpers.js"))

        assert info.get_relative_path(str(tmp_path)) == "./helpers.js"

    def test_subdirectory(self, tmp_path: Path):
        info = PathInfo(str(tmp_path / "utils" / "helpers.js"))

        assert info.get_relative_path(str(tmp_path)) == "./utils/helpers.js"

    def test_parent_directory_keeps_dots(self, tmp_path: Path):
        info = PathInfo(str(tmp_path / "lib" / "index.js"))

        assert info.get_relative_path(str(tmp_path / "src" / "app")) == "../../lib/index.js"

    def test_round_trip(self, tmp_path: Path):
        """Resolving the relative path from its directory gives the file back."""
        targets = [
            tmp_path / "a.js",
            tmp_path / "x" / "y" / "b.ts",
            tmp_path / "x" / "c.jsx",
        ]
        directories = [tmp_path, tmp_path / "x", tmp_path / "x" / "y", tmp_path / "z"]

        for target in targets:
            info = PathInfo(str(target))
            for directory in directories:
                relative_path = info.get_relative_path(str(directory))
                assert relative_path.startswith(".")
                assert resolve_relative(str(directory), relative_path) == str(target)


class TestStripLastSegment:
    def test_nested(self):
        assert strip_last_segment("./utils/index.js") == "./utils"

    def test_same_directory(self):
        assert strip_last_segment("./index.js") == "."

    def test_parent(self):
        assert strip_last_segment("../index.js") == ".."
