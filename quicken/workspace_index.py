"""Candidate indexes for a workspace folder.

- FileIndex: every non-ignored file under the workspace root, built lazily
  on first request and patched incrementally on create/delete events
- PackageIndex: dependency names from the nearest package.json manifest
- WorkspaceIndex: the context object handed to every operation; owns both
  indexes and their invalidate/rebuild lifecycle

Writers (add/remove/invalidate) are expected to run on a single thread of
control; the indexes carry no locks.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Optional

from .candidates import FileCandidate, PackageCandidate
from .config import LanguageOptions
from .ignore import load_ignore_patterns, should_ignore
from .path_info import PathInfo

logger = logging.getLogger(__name__)

MANIFEST_FILE = "package.json"


def list_workspace_files(workspace_root: str | Path, respect_ignore: bool = True) -> list[str]:
    """List every file under the workspace root once.

    Args:
        workspace_root: Workspace root directory
        respect_ignore: If True, skip files matched by the ignore rules

    Returns:
        Absolute file paths in walk order
    """
    root = Path(workspace_root)
    files = []

    ignore_spec = load_ignore_patterns(root) if respect_ignore else None

    for dirpath, dirnames, filenames in os.walk(root):
        if ignore_spec is not None:
            rel_dir = os.path.relpath(dirpath, root)
            # Prune ignored subdirectories in place so os.walk skips them
            dirnames[:] = sorted(
                d for d in dirnames
                if not should_ignore(os.path.join(rel_dir, d) + "/", root, ignore_spec)
            )
        else:
            dirnames.sort()

        for filename in sorted(filenames):
            file_path = os.path.join(dirpath, filename)
            if ignore_spec is not None:
                rel_path = os.path.relpath(file_path, root)
                if should_ignore(rel_path, root, ignore_spec):
                    continue
            files.append(os.path.abspath(file_path))

    return files


class FileIndex:
    """Ordered set of file candidates for one workspace folder."""

    def __init__(self, workspace_root: str, options: LanguageOptions, extension: re.Pattern):
        self.workspace_root = os.path.abspath(workspace_root)
        self.options = options
        self.extension = extension
        self._items: Optional[list[FileCandidate]] = None

    @property
    def is_built(self) -> bool:
        return self._items is not None

    def _create(self, file_path: str) -> FileCandidate:
        return FileCandidate.create(file_path, self.workspace_root, self.options, self.extension)

    def build(self) -> list[FileCandidate]:
        """Return the cached candidates, listing the workspace on first use."""
        if self._items is None:
            self._items = [self._create(path) for path in list_workspace_files(self.workspace_root)]
            logger.debug(f"Indexed {len(self._items)} files under {self.workspace_root}")
        return self._items

    def _contains_path(self, file_path: str) -> bool:
        try:
            return os.path.commonpath([self.workspace_root, file_path]) == self.workspace_root
        except ValueError:
            return False

    def add(self, file_path: str) -> None:
        """Add a created file; ignored until the index has been built."""
        if self._items is None:
            return
        file_path = os.path.abspath(file_path)
        if not self._contains_path(file_path):
            return
        if should_ignore(file_path, self.workspace_root):
            return

        candidate = self._create(file_path)
        if candidate not in self._items:
            self._items.append(candidate)

    def remove(self, file_path: str) -> None:
        """Drop a deleted file by id; ignored until the index has been built."""
        if self._items is None:
            return
        candidate_id = PathInfo(os.path.abspath(file_path)).full_path
        self._items = [item for item in self._items if item.id != candidate_id]

    def invalidate(self) -> None:
        self._items = None


def find_manifest(document_directory: str, workspace_root: str) -> Optional[str]:
    """Nearest package.json walking up from a directory, bounded by the root.

    Returns:
        Absolute manifest path, or None if no directory up to and including
        the workspace root holds one
    """
    workspace_root = os.path.abspath(workspace_root)
    directory = os.path.abspath(document_directory)

    while True:
        candidate = os.path.join(directory, MANIFEST_FILE)
        if os.path.isfile(candidate):
            return candidate
        if directory == workspace_root:
            return None
        parent = os.path.dirname(directory)
        if parent == directory:
            return None
        directory = parent


def _read_json(path: str) -> Optional[dict]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug(f"Could not read {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


class PackageIndex:
    """Package candidates per manifest file, parsed once each."""

    def __init__(self, workspace_root: str):
        self.workspace_root = os.path.abspath(workspace_root)
        self._items: dict[str, list[PackageCandidate]] = {}

    def build(self, manifest_path: str) -> list[PackageCandidate]:
        """Dependencies and devDependencies of a manifest, deduplicated and sorted.

        Each package's installed version is read from its own manifest under
        node_modules when present; a missing or unreadable one is not an error.
        """
        if manifest_path in self._items:
            return self._items[manifest_path]

        manifest = _read_json(manifest_path)
        if manifest is None:
            logger.warning(f"Failed to parse manifest {manifest_path}")
            self._items[manifest_path] = []
            return []

        names = []
        for section in ("dependencies", "devDependencies"):
            declared = manifest.get(section)
            if isinstance(declared, dict):
                names.extend(declared.keys())

        manifest_directory = os.path.dirname(manifest_path)
        items = [
            PackageCandidate.create(name, self._installed_version(name, manifest_directory))
            for name in sorted(set(names))
        ]
        self._items[manifest_path] = items
        return items

    def _installed_version(self, name: str, manifest_directory: str) -> Optional[str]:
        for base in (manifest_directory, self.workspace_root):
            package_manifest = _read_json(os.path.join(base, "node_modules", *name.split("/"), MANIFEST_FILE))
            if package_manifest and package_manifest.get("version"):
                return str(package_manifest["version"])
        return None

    def invalidate(self) -> None:
        self._items.clear()


class WorkspaceIndex:
    """File and package candidates for one workspace and one language plugin."""

    def __init__(self, workspace_root: str, options: LanguageOptions, extension: re.Pattern):
        self.workspace_root = os.path.abspath(workspace_root)
        self.files = FileIndex(self.workspace_root, options, extension)
        self.packages = PackageIndex(self.workspace_root)

    def file_candidates(self) -> list[FileCandidate]:
        return self.files.build()

    def package_candidates(self, document_directory: str) -> list[PackageCandidate]:
        manifest_path = find_manifest(document_directory, self.workspace_root)
        if manifest_path is None:
            return []
        return self.packages.build(manifest_path)

    def add(self, file_path: str) -> None:
        self.files.add(file_path)

    def remove(self, file_path: str) -> None:
        self.files.remove(file_path)

    def invalidate(self) -> None:
        """Drop every cache; the next request rebuilds lazily."""
        self.files.invalidate()
        self.packages.invalidate()

    def rebuild(self) -> None:
        self.invalidate()
        self.files.build()
