"""Importable entities offered to the user.

A candidate is either a workspace file or an installed package. Its ``id``
is stable for the lifetime of the index (absolute path, or ``pkg://`` plus
the package name); display and sort fields may be recomputed per request
with ``dataclasses.replace``, which never touches the id.
"""

import os
import re
from dataclasses import dataclass, field, replace
from typing import Optional, Union

from .config import LanguageOptions
from .naming import get_variable_name
from .path_info import PathInfo, strip_last_segment, to_posix

PACKAGE_ID_PREFIX = "pkg://"

# Sorts before every lower-cased file name in the same directory
INDEX_SORT_NAME = ""


def _directory_parts(directory_path: str) -> list[str]:
    return [part for part in to_posix(directory_path).split("/") if part]


def get_sort_key(file_info: PathInfo, document_info: PathInfo) -> tuple:
    """Directory proximity of a file to the requesting document.

    Files sharing the longest directory prefix with the document come first;
    among those, the ones fewest levels below the shared prefix win, so the
    document's own directory leads, followed by its subdirectories.
    """
    document_parts = _directory_parts(document_info.directory_path)
    file_parts = _directory_parts(file_info.directory_path)

    shared = 0
    for document_part, file_part in zip(document_parts, file_parts):
        if document_part != file_part:
            break
        shared += 1

    return (-shared, len(file_parts) - shared, "/".join(file_parts).lower())


def is_index_file(file_name_with_extension: str, extension: re.Pattern) -> bool:
    parts = file_name_with_extension.split(".")
    return len(parts) == 2 and parts[0] == "index" and extension.match(parts[1]) is not None


@dataclass(frozen=True, eq=False)
class FileCandidate:
    """A workspace file that can be imported."""

    id: str
    label: str
    description: str
    info: PathInfo
    options: LanguageOptions = field(repr=False)
    extension: re.Pattern = field(repr=False)
    sort_name_key: str = ""
    sort_key: tuple = ()

    @classmethod
    def create(
        cls,
        file_path: str,
        workspace_root: str,
        options: LanguageOptions,
        extension: re.Pattern,
    ) -> "FileCandidate":
        info = PathInfo(file_path)
        relative_to_root = to_posix(os.path.relpath(info.full_path, workspace_root))
        is_index = is_index_file(info.file_name_with_extension, extension)
        matches_family = extension.match(info.file_extension_without_leading_dot) is not None

        # Containing directory of the file
        description = strip_last_segment(relative_to_root)
        if description == ".":
            description = ""

        if options.index_file and is_index:
            label = info.directory_name
            description = relative_to_root
        elif not options.file_extension and matches_family:
            label = info.file_name_without_extension
        else:
            label = info.file_name_with_extension

        return cls(
            id=info.full_path,
            label=label,
            description=description,
            info=info,
            options=options,
            extension=extension,
            sort_name_key=INDEX_SORT_NAME if is_index else info.file_name_with_extension.lower(),
        )

    def __eq__(self, other):
        if not isinstance(other, FileCandidate):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    @property
    def is_index(self) -> bool:
        return is_index_file(self.info.file_name_with_extension, self.extension)

    @property
    def matches_extension(self) -> bool:
        """Whether the file belongs to the requesting language's own family."""
        return self.extension.match(self.info.file_extension_without_leading_dot) is not None

    def with_sort_key(self, document_info: PathInfo) -> "FileCandidate":
        return replace(self, sort_key=get_sort_key(self.info, document_info))

    def get_name_and_relative_path(self, from_directory: str) -> tuple[str, str]:
        """Binding name and import path of this file as seen from a directory.

        Index files bind to their directory name and are imported through the
        directory when ``index_file`` is on; the extension is dropped when
        ``file_extension`` is off and the file is in the language's family.
        """
        name = get_variable_name(self.info.file_name_without_extension, self.options)
        path = self.info.get_relative_path(from_directory)

        if self.options.index_file and self.is_index:
            name = get_variable_name(self.info.directory_name, self.options)
            path = strip_last_segment(path)
        elif not self.options.file_extension and self.matches_extension:
            path = strip_extension(path, self.info.file_extension_without_leading_dot)

        return name, path


def strip_extension(path: str, extension: str) -> str:
    suffix = "." + extension
    return path[:-len(suffix)] if extension and path.endswith(suffix) else path


@dataclass(frozen=True, eq=False)
class PackageCandidate:
    """An installed package declared in the nearest manifest."""

    id: str
    label: str
    description: str
    name: str

    @classmethod
    def create(cls, name: str, version: Optional[str] = None) -> "PackageCandidate":
        return cls(
            id=PACKAGE_ID_PREFIX + name,
            label=name,
            description=f"v{version}" if version else "",
            name=name,
        )

    def __eq__(self, other):
        if not isinstance(other, PackageCandidate):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


CandidateItem = Union[FileCandidate, PackageCandidate]


def sort_candidates(
    files: list[FileCandidate],
    packages: list[PackageCandidate],
    document_info: PathInfo,
) -> list[CandidateItem]:
    """Order files by proximity then name, followed by packages by name."""
    keyed = [item.with_sort_key(document_info) for item in files]
    keyed.sort(key=lambda item: (item.sort_key, item.sort_name_key))
    return keyed + sorted(packages, key=lambda item: item.name)
