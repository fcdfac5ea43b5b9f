"""Repair of broken relative import paths.

A relative import is broken when neither the literal path nor the path with
the document's own extension exists on disk. For each one the workspace is
searched for files named like the last path segment:

- no match: left alone and counted as unresolved
- one match: rewritten in place
- several matches: the user picks one, in the order the imports appear

The pass stops advancing as soon as its cancellation token trips or a choice
is dismissed; fixes made before that point are kept.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .candidates import FileCandidate
from .collaborators import CancellationToken, Selector
from .document import TextDocument, TextEdit
from .js_parse import find_require_calls, node_text, parse, string_value
from .path_info import resolve_relative, to_posix

logger = logging.getLogger(__name__)

# Loader syntax, query strings and embedded quotes are never rewritten
_UNFIXABLE_CHARACTERS = ("?", "!", '"')


class FixStatus(Enum):
    NOTHING_BROKEN = "nothing_broken"
    ALL_FIXED = "all_fixed"
    PARTIALLY_FIXED = "partially_fixed"
    CANCELLED = "cancelled"


@dataclass
class BrokenImport:
    """A relative path literal that does not resolve."""

    path: str
    literal_start: int
    literal_end: int
    quote: str

    @property
    def last_segment(self) -> str:
        return self.path.rstrip("/").split("/")[-1]


@dataclass
class FixReport:
    status: FixStatus
    edits: list[TextEdit] = field(default_factory=list)
    unresolved: list[BrokenImport] = field(default_factory=list)

    @property
    def message(self) -> Optional[str]:
        if self.status is FixStatus.NOTHING_BROKEN:
            return "No broken import/require statements have been found."
        if self.status is FixStatus.ALL_FIXED:
            return "All broken import/require statements have been fixed."
        if self.status is FixStatus.PARTIALLY_FIXED:
            count = len(self.unresolved)
            if count == 1:
                return "There was 1 broken import/require statement that had not been fixed."
            return f"There were {count} broken import/require statements that had not been fixed."
        return None


def _is_candidate_path(path: Optional[str]) -> bool:
    return bool(path) and path.startswith(".") and not any(c in path for c in _UNFIXABLE_CHARACTERS)


def collect_relative_imports(document: TextDocument) -> list[BrokenImport]:
    """Every relative import/require/re-export literal in the document.

    Returns:
        Entries in document order; empty if the document cannot be parsed
    """
    source = document.source
    tree = parse(source, document.language_id)
    if tree is None:
        return []

    literals = []
    for statement in tree.root_node.named_children:
        if statement.type in ("import_statement", "export_statement"):
            literal = statement.child_by_field_name("source")
            if literal is not None:
                literals.append((literal, string_value(literal, source)))
    literals.extend(find_require_calls(tree, source))

    entries = []
    for literal, path in sorted(literals, key=lambda pair: pair[0].start_byte):
        if not _is_candidate_path(path):
            continue
        text = node_text(literal, source)
        entries.append(BrokenImport(
            path=path,
            literal_start=literal.start_byte,
            literal_end=literal.end_byte,
            quote="'" if text.startswith("'") else '"',
        ))
    return entries


def is_resolvable(path: str, directory: str, extension: str) -> bool:
    target = resolve_relative(directory, path)
    return os.path.exists(target) or os.path.exists(target + "." + extension)


def find_files_roughly(
    segment: str,
    extension_family,
    candidates: list[FileCandidate],
) -> list[str]:
    """Workspace files whose name matches the last segment of a broken path.

    A file matches when its name equals the segment, when its stem equals the
    segment and its extension is in the language family, or when it is the
    index file of a directory named like the segment.
    """
    matches = []
    for candidate in candidates:
        info = candidate.info
        in_family = extension_family.match(info.file_extension_without_leading_dot) is not None
        if info.file_name_with_extension == segment:
            matches.append(info.full_path)
        elif in_family and info.file_name_without_extension == segment:
            matches.append(info.full_path)
        elif in_family and candidate.is_index and info.directory_name == segment:
            matches.append(info.full_path)
    return matches


class BrokenImportFixer:
    """Find and rewrite broken relative imports in one document."""

    def __init__(
        self,
        candidates: Callable[[], list[FileCandidate]],
        extension,
        workspace_root: str,
    ):
        self._candidates = candidates
        self.extension = extension
        self.workspace_root = os.path.abspath(workspace_root)

    def find_broken_imports(self, document: TextDocument) -> list[BrokenImport]:
        info = document.info
        return [
            entry for entry in collect_relative_imports(document)
            if not is_resolvable(entry.path, info.directory_path, info.file_extension_without_leading_dot)
        ]

    def _label(self, full_path: str) -> str:
        return to_posix(full_path[len(self.workspace_root):])

    def _replacement(self, entry: BrokenImport, full_path: str, document: TextDocument) -> TextEdit:
        candidate = next(
            (item for item in self._candidates() if item.id == os.path.normpath(full_path)), None
        )
        if candidate is None:
            raise LookupError(f"{full_path} is not in the file index")
        _, path = candidate.get_name_and_relative_path(document.info.directory_path)
        return TextEdit(entry.literal_start, entry.literal_end, entry.quote + path + entry.quote)

    def fix(self, document: TextDocument, selector: Selector, token: CancellationToken) -> FixReport:
        """Rewrite every broken import that can be matched.

        Args:
            document: Document to repair
            selector: Picks among several matching files
            token: Stops the pass between entries when tripped

        Returns:
            FixReport with the edit batch made so far and the unresolved entries
        """
        broken_imports = self.find_broken_imports(document)
        if not broken_imports:
            return FixReport(status=FixStatus.NOTHING_BROKEN)

        searches: dict[str, list[str]] = {}

        def search(entry: BrokenImport) -> list[str]:
            if entry.last_segment not in searches:
                others = [item for item in self._candidates() if item.id != document.info.full_path]
                searches[entry.last_segment] = find_files_roughly(entry.last_segment, self.extension, others)
            return searches[entry.last_segment]

        edits: list[TextEdit] = []
        unresolved: list[BrokenImport] = []
        ambiguous: list[BrokenImport] = []

        for entry in broken_imports:
            if token.is_cancellation_requested:
                return FixReport(status=FixStatus.CANCELLED, edits=edits, unresolved=unresolved)

            matches = search(entry)
            if len(matches) == 0:
                unresolved.append(entry)
            elif len(matches) == 1:
                edits.append(self._replacement(entry, matches[0], document))
            else:
                ambiguous.append(entry)

        for entry in ambiguous:
            if token.is_cancellation_requested:
                return FixReport(status=FixStatus.CANCELLED, edits=edits, unresolved=unresolved)

            labels = {self._label(path): path for path in search(entry)}
            selected = selector.select(list(labels), placeholder=entry.path)
            if not selected:
                logger.debug(f"Fixing {entry.path} was dismissed")
                return FixReport(status=FixStatus.CANCELLED, edits=edits, unresolved=unresolved)

            if token.is_cancellation_requested:
                return FixReport(status=FixStatus.CANCELLED, edits=edits, unresolved=unresolved)

            edits.append(self._replacement(entry, labels[selected], document))

        if unresolved:
            return FixReport(status=FixStatus.PARTIALLY_FIXED, edits=edits, unresolved=unresolved)
        return FixReport(status=FixStatus.ALL_FIXED, edits=edits)
