"""Tests for candidate construction and ordering."""

import re
from pathlib import Path

from quicken.candidates import (
    FileCandidate,
    PackageCandidate,
    sort_candidates,
)
from quicken.config import LanguageOptions
from quicken.path_info import PathInfo

JS_FAMILY = re.compile(r"^jsx?$")


def make(path: Path, root: Path, **option_values) -> FileCandidate:
    return FileCandidate.create(str(path), str(root), LanguageOptions(**option_values), JS_FAMILY)


class TestFileCandidate:
    def test_label_strips_family_extension(self, tmp_path: Path):
        candidate = make(tmp_path / "src" / "helpers.js", tmp_path)

        assert candidate.id == str(tmp_path / "src" / "helpers.js")
        assert candidate.label == "helpers"
        assert candidate.description == "src"

    def test_label_keeps_foreign_extension(self, tmp_path: Path):
        candidate = make(tmp_path / "styles" / "main.css", tmp_path)

        assert candidate.label == "main.css"

    def test_index_file_label_with_index_option(self, tmp_path: Path):
        candidate = make(tmp_path / "components" / "index.js", tmp_path, index_file=True)

        assert candidate.label == "components"
        assert candidate.description == "components/index.js"

    def test_relative_path_strips_extension(self, tmp_path: Path):
        candidate = make(tmp_path / "utils" / "helpers.js", tmp_path)

        assert candidate.get_name_and_relative_path(str(tmp_path)) == ("helpers", "./utils/helpers")

    def test_relative_path_keeps_extension(self, tmp_path: Path):
        candidate = make(tmp_path / "utils" / "date-utils.js", tmp_path, file_extension=True)

        assert candidate.get_name_and_relative_path(str(tmp_path)) == ("dateUtils", "./utils/date-utils.js")

    def test_index_file_imported_through_directory(self, tmp_path: Path):
        candidate = make(tmp_path / "lib" / "my-widget" / "index.js", tmp_path, index_file=True)

        name, path = candidate.get_name_and_relative_path(str(tmp_path / "src"))

        assert name == "myWidget"
        assert path == "../lib/my-widget"

    def test_identity_by_id(self, tmp_path: Path):
        first = make(tmp_path / "a.js", tmp_path)
        second = make(tmp_path / "a.js", tmp_path, file_extension=True)

        assert first == second
        assert first.with_sort_key(PathInfo(str(tmp_path / "b.js"))).id == first.id


class TestPackageCandidate:
    def test_fields(self):
        candidate = PackageCandidate.create("lodash", "4.17.21")

        assert candidate.id == "pkg://lodash"
        assert candidate.label == "lodash"
        assert candidate.description == "v4.17.21"

    def test_missing_version(self):
        assert PackageCandidate.create("react").description == ""


class TestSorting:
    def test_index_sorts_before_siblings(self, tmp_path: Path):
        document = PathInfo(str(tmp_path / "app.js"))
        files = [
            make(tmp_path / "lib" / "alpha.js", tmp_path),
            make(tmp_path / "lib" / "index.js", tmp_path),
            make(tmp_path / "lib" / "Beta.js", tmp_path),
        ]

        ordered = sort_candidates(files, [], document)

        assert [item.info.file_name_with_extension for item in ordered] == ["index.js", "alpha.js", "Beta.js"]

    def test_proximity_then_name(self, tmp_path: Path):
        document = PathInfo(str(tmp_path / "src" / "app" / "main.js"))
        files = [
            make(tmp_path / "other" / "a.js", tmp_path),
            make(tmp_path / "src" / "b.js", tmp_path),
            make(tmp_path / "src" / "app" / "widgets" / "c.js", tmp_path),
            make(tmp_path / "src" / "app" / "d.js", tmp_path),
        ]

        ordered = sort_candidates(files, [], document)

        assert [item.label for item in ordered] == ["d", "c", "b", "a"]

    def test_packages_after_files(self, tmp_path: Path):
        document = PathInfo(str(tmp_path / "app.js"))
        files = [make(tmp_path / "z.js", tmp_path)]
        packages = [PackageCandidate.create("react"), PackageCandidate.create("axios")]

        ordered = sort_candidates(files, packages, document)

        assert [item.label for item in ordered] == ["z", "axios", "react"]
