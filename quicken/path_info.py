"""OS-independent view of a file path.

PathInfo splits an absolute path into the pieces the import engine needs
(directory, name, extension) and computes import-style relative paths
between files. Everything handed to pattern matching or written into source
code uses forward slashes regardless of the host OS.
"""

import os
import posixpath
from dataclasses import dataclass, field


def to_posix(path: str) -> str:
    """Convert backslash separators to forward slashes."""
    return path.replace("\\", "/")


@dataclass(frozen=True)
class PathInfo:
    """Normalized fields of an absolute file path."""

    full_path: str
    directory_path: str = field(init=False)
    directory_name: str = field(init=False)
    file_name_with_extension: str = field(init=False)
    file_name_without_extension: str = field(init=False)
    file_extension_without_leading_dot: str = field(init=False)
    full_path_for_posix: str = field(init=False)

    def __post_init__(self):
        full_path = os.path.normpath(self.full_path)
        object.__setattr__(self, "full_path", full_path)

        directory_path = os.path.dirname(full_path)
        file_name = os.path.basename(full_path)
        stem, extension = os.path.splitext(file_name)

        object.__setattr__(self, "directory_path", directory_path)
        object.__setattr__(self, "directory_name", os.path.basename(directory_path))
        object.__setattr__(self, "file_name_with_extension", file_name)
        object.__setattr__(self, "file_name_without_extension", stem)
        object.__setattr__(self, "file_extension_without_leading_dot", extension.lstrip("."))
        object.__setattr__(self, "full_path_for_posix", to_posix(full_path))

    def get_relative_path(self, from_directory: str) -> str:
        """Relative path from `from_directory` to this file, import style.

        The result always uses forward slashes and starts with ``.`` or ``/``,
        so it can never be mistaken for a bare package name.

        Args:
            from_directory: Directory of the importing document

        Returns:
            Path such as ``./helpers.js`` or ``../lib/index.js``
        """
        relative_path = to_posix(os.path.relpath(self.full_path, from_directory))
        if not relative_path.startswith((".", "/")):
            relative_path = "./" + relative_path
        return relative_path


def resolve_relative(from_directory: str, relative_path: str) -> str:
    """Resolve an import-style relative path against a directory."""
    return os.path.normpath(os.path.join(from_directory, *relative_path.split("/")))


def strip_last_segment(posix_path: str) -> str:
    """Drop the final segment of an import path, keeping it relative-looking.

    ``./utils/index.js`` becomes ``./utils`` and ``./index.js`` becomes ``.``.
    """
    parent = posixpath.dirname(posix_path)
    return parent if parent else "."
