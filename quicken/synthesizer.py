"""Import statement synthesis.

Given a chosen candidate and the document being edited, decides which
binding to import, whether the import can be merged into an existing
statement for the same path, and renders the final text edits.

Nothing is ever written to the document here: every operation returns an
ImportOutcome whose ``edits`` are empty on any aborting branch (duplicate,
dismissed choice), so an aborted operation leaves the document untouched.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .candidates import FileCandidate, PackageCandidate, strip_extension
from .collaborators import Selector
from .config import LanguageOptions
from .document import TextDocument, TextEdit
from .exports import ExportResolver, has_default_export
from .js_parse import (
    ExistingImport,
    ImportKind,
    SourcePoint,
    get_existing_imports,
    node_text,
    parse,
)
from .naming import get_variable_name
from .path_info import PathInfo, strip_last_segment

logger = logging.getLogger(__name__)

STYLESHEET_EXTENSION = re.compile(r"^(css|less|sass|scss|styl)$")

IMPORT_EVERYTHING = "*"


class BindingKind(Enum):
    DEFAULT = "default"  # import name from
    NAMED = "named"  # import { name } from
    NAMESPACE = "namespace"  # import * as name from


@dataclass(frozen=True)
class Binding:
    kind: BindingKind
    identifier: str

    def render(self) -> str:
        if self.kind is BindingKind.NAMED:
            return "{ " + self.identifier + " }"
        if self.kind is BindingKind.NAMESPACE:
            return "* as " + self.identifier
        return self.identifier


class OutcomeStatus(Enum):
    INSERTED = "inserted"
    MERGED = "merged"
    ALREADY_IMPORTED = "already_imported"
    CANCELLED = "cancelled"


@dataclass
class ImportOutcome:
    status: OutcomeStatus
    edits: list[TextEdit] = field(default_factory=list)
    message: Optional[str] = None
    # Location of the statement that made this a duplicate
    focus: Optional[SourcePoint] = None

    @property
    def applied(self) -> bool:
        return len(self.edits) > 0


def _already_imported(message: str, focus: Optional[SourcePoint]) -> ImportOutcome:
    return ImportOutcome(status=OutcomeStatus.ALREADY_IMPORTED, message=message, focus=focus)


def _cancelled() -> ImportOutcome:
    return ImportOutcome(status=OutcomeStatus.CANCELLED)


def get_import_snippet(
    binding: Optional[str],
    path: str,
    use_import: bool,
    options: LanguageOptions,
    eol: str = "\n",
    statement: bool = True,
) -> str:
    """Render an import or require statement.

    Args:
        binding: Rendered binding (``name``, ``{ name }``, ``* as name``) or None
        path: Module path, unquoted
        use_import: ``import`` syntax when True, ``require`` otherwise
        options: Quote and semicolon settings
        eol: Line ending of the target document
        statement: False for a bare ``require(...)`` expression placed at the cursor
    """
    quoted = options.quote + path + options.quote
    line_ending = (";" if options.semi_colons else "") + eol

    if use_import:
        if binding:
            return f"import {binding} from {quoted}" + line_ending
        return f"import {quoted}" + line_ending

    if binding:
        return f"const {binding} = require({quoted})" + line_ending
    if statement:
        return f"require({quoted})" + line_ending
    return f"require({quoted})"


def find_duplicate(existing_imports: list[ExistingImport], path: str) -> Optional[ExistingImport]:
    return next((item for item in existing_imports if item.path == path), None)


def get_bound_identifiers(existing_imports: list[ExistingImport], source: bytes) -> dict[str, ExistingImport]:
    """Identifiers already bound by import statements and require declarations."""
    bound: dict[str, ExistingImport] = {}
    for item in existing_imports:
        if item.kind is ImportKind.IMPORT_DECLARATION:
            clause = _ImportClause(item.node, source)
            for name in clause.local_names():
                bound.setdefault(name, item)
        elif item.kind is ImportKind.REQUIRE_DECLARATION:
            name = item.node.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                bound.setdefault(node_text(name, source), item)
    return bound


def get_removal_range(conflict: ExistingImport, document: TextDocument) -> tuple[int, int]:
    """Byte span to delete when a conflicting binding is replaced.

    A require declarator that shares its declaration with others is cut out
    along with one separating comma, leaving the other declarators intact.
    Everything else takes its whole line.
    """
    if conflict.kind is ImportKind.REQUIRE_DECLARATION and conflict.node.parent is not None:
        declarators = [
            child for child in conflict.node.parent.named_children if child.type == "variable_declarator"
        ]
        if len(declarators) > 1:
            position = [d.start_byte for d in declarators].index(conflict.node.start_byte)
            if position + 1 < len(declarators):
                return conflict.node.start_byte, declarators[position + 1].start_byte
            return declarators[position - 1].end_byte, conflict.node.end_byte

    return document.line_range(conflict.range.start_byte, conflict.range.end_byte)


class _ImportClause:
    """Specifier layout of one import_statement."""

    def __init__(self, statement, source: bytes):
        self.statement = statement
        self.source = source
        self.clause = None
        self.default = None
        self.namespace = None
        self.named = None
        self.specifiers = []

        for child in statement.named_children:
            if child.type == "import_clause":
                self.clause = child
        if self.clause is None:
            return

        for child in self.clause.named_children:
            if child.type == "identifier":
                self.default = child
            elif child.type == "namespace_import":
                self.namespace = child
            elif child.type == "named_imports":
                self.named = child
                self.specifiers = [spec for spec in child.named_children if spec.type == "import_specifier"]

    @property
    def source_node(self):
        return self.statement.child_by_field_name("source")

    def namespace_name(self) -> Optional[str]:
        if self.namespace is None:
            return None
        identifiers = [child for child in self.namespace.named_children if child.type == "identifier"]
        return node_text(identifiers[-1], self.source) if identifiers else None

    def imported_name(self, specifier) -> str:
        return node_text(specifier.child_by_field_name("name"), self.source)

    def local_names(self) -> list[str]:
        names = []
        if self.default is not None:
            names.append(node_text(self.default, self.source))
        namespace_name = self.namespace_name()
        if namespace_name:
            names.append(namespace_name)
        for specifier in self.specifiers:
            alias = specifier.child_by_field_name("alias")
            bound = alias if alias is not None else specifier.child_by_field_name("name")
            names.append(node_text(bound, self.source))
        return names


class ImportSynthesizer:
    """Build the edits that import a candidate into a document."""

    def __init__(
        self,
        options: LanguageOptions,
        extension: re.Pattern,
        resolver: Optional[ExportResolver] = None,
        namespace_packages: bool = False,
    ):
        self.options = options
        self.extension = extension
        self.resolver = resolver or ExportResolver()
        # TypeScript binds packages as `import * as name`
        self.namespace_packages = namespace_packages

    @property
    def use_import(self) -> bool:
        return self.options.syntax == "import"

    def add_import(self, document: TextDocument, candidate, selector: Selector) -> ImportOutcome:
        if isinstance(candidate, PackageCandidate):
            return self.add_package_import(document, candidate)
        return self.add_file_import(document, candidate, selector)

    def _scan(self, document: TextDocument) -> tuple[list[ExistingImport], int]:
        """Existing imports and the offset in front of the first one."""
        source = document.source
        existing_imports = get_existing_imports(parse(source, document.language_id), source)
        insert_at = existing_imports[0].range.start_byte if existing_imports else 0
        return existing_imports, insert_at

    def add_package_import(self, document: TextDocument, candidate: PackageCandidate) -> ImportOutcome:
        existing_imports, insert_at = self._scan(document)

        duplicate = find_duplicate(existing_imports, candidate.name)
        if duplicate is not None:
            return _already_imported(
                f'The module "{candidate.name}" has been already imported.', duplicate.range.start
            )

        name = get_variable_name(candidate.name, self.options)
        kind = BindingKind.NAMESPACE if self.namespace_packages and self.use_import else BindingKind.DEFAULT
        snippet = get_import_snippet(
            Binding(kind, name).render(), candidate.name, self.use_import, self.options, document.eol
        )
        return ImportOutcome(status=OutcomeStatus.INSERTED, edits=[TextEdit.insert(insert_at, snippet)])

    def add_file_import(self, document: TextDocument, candidate: FileCandidate, selector: Selector) -> ImportOutcome:
        """Import a workspace file.

        Files of the document's own family get a binding; stylesheets get a
        bare ``import 'path'``; anything else is inserted at the cursor as a
        ``require('path')`` expression.
        """
        directory = document.info.directory_path
        extension = candidate.info.file_extension_without_leading_dot

        if candidate.matches_extension:
            return self._add_module_import(document, candidate, selector)

        existing_imports, insert_at = self._scan(document)
        _, path = candidate.get_name_and_relative_path(directory)

        if STYLESHEET_EXTENSION.match(extension):
            duplicate = find_duplicate(existing_imports, path)
            if duplicate is not None:
                return _already_imported(
                    f'The module "{candidate.label}" has been already imported.', duplicate.range.start
                )
            snippet = get_import_snippet(None, path, self.use_import, self.options, document.eol)
            return ImportOutcome(status=OutcomeStatus.INSERTED, edits=[TextEdit.insert(insert_at, snippet)])

        snippet = get_import_snippet(None, path, False, self.options, document.eol, statement=False)
        return ImportOutcome(status=OutcomeStatus.INSERTED, edits=[TextEdit.insert(document.cursor, snippet)])

    def _index_path(self, candidate: FileCandidate) -> str:
        info = candidate.info
        return os.path.join(info.directory_path, "index." + info.file_extension_without_leading_dot)

    def _index_relative_path(self, index_path: str, directory: str) -> str:
        index_info = PathInfo(index_path)
        path = index_info.get_relative_path(directory)
        if self.options.index_file:
            return strip_last_segment(path)
        if not self.options.file_extension:
            return strip_extension(path, index_info.file_extension_without_leading_dot)
        return path

    def _choose_export(self, identifier: str, exported: list[str], selector: Selector) -> Optional[Binding]:
        """Ask between importing everything and one named export."""
        selected = selector.select([IMPORT_EVERYTHING, *exported])
        if not selected:
            return None
        if selected == IMPORT_EVERYTHING:
            return Binding(BindingKind.NAMESPACE, identifier)
        return Binding(BindingKind.NAMED, selected)

    def _resolve_binding(
        self,
        candidate: FileCandidate,
        name: str,
        path: str,
        directory: str,
        existing_imports: list[ExistingImport],
        document_source: bytes,
        selector: Selector,
    ) -> tuple[Optional[Binding], str, Optional[ImportOutcome]]:
        """Decide the binding form for an ``import`` of a module file.

        Returns:
            (binding, path, early outcome); a non-None outcome aborts the operation
        """
        binding = Binding(BindingKind.DEFAULT, name)

        index_path = self._index_path(candidate)
        if os.path.isfile(index_path):
            exported = self.resolver.get_exported_variables_through_index(candidate.info.full_path, index_path)
            index_relative_path = self._index_relative_path(index_path, directory)

            duplicate = find_duplicate(existing_imports, index_relative_path)
            if exported and duplicate is not None and duplicate.is_import_declaration:
                # `import * as x` of the index already brings every export in
                if _ImportClause(duplicate.node, document_source).namespace is not None:
                    return None, path, _already_imported(
                        f'The module "{name}" has been already imported from "{index_relative_path}".',
                        duplicate.range.start,
                    )

            if len(exported) == 1:
                return Binding(BindingKind.NAMED, exported[0]), index_relative_path, None

            if len(exported) > 1:
                chosen = self._choose_export(name, exported, selector)
                if chosen is None:
                    return None, path, _cancelled()
                return chosen, index_relative_path, None

        tree = None
        source = b""
        try:
            with open(candidate.info.full_path, "rb") as f:
                source = f.read()
            tree = parse(source, candidate.info.file_extension_without_leading_dot)
        except OSError as e:
            logger.debug(f"Could not read {candidate.info.full_path}: {e}")

        # Unanalyzable targets keep the default binding
        if tree is None or has_default_export(tree, source):
            return binding, path, None

        exported = self.resolver.get_exported_variables(candidate.info.full_path)
        if len(exported) == 0:
            return Binding(BindingKind.NAMESPACE, name), path, None
        if len(exported) == 1:
            return Binding(BindingKind.NAMED, exported[0]), path, None

        chosen = self._choose_export(name, exported, selector)
        if chosen is None:
            return None, path, _cancelled()
        return chosen, path, None

    def _add_module_import(self, document: TextDocument, candidate: FileCandidate, selector: Selector) -> ImportOutcome:
        source = document.source
        directory = document.info.directory_path
        existing_imports, insert_at = self._scan(document)

        name, path = candidate.get_name_and_relative_path(directory)
        binding = Binding(BindingKind.DEFAULT, name)

        if self.use_import:
            binding, path, outcome = self._resolve_binding(
                candidate, name, path, directory, existing_imports, source, selector
            )
            if outcome is not None:
                return outcome

        duplicate = find_duplicate(existing_imports, path)
        if duplicate is not None:
            if self.options.grouping and duplicate.is_import_declaration:
                return self._merge(duplicate, binding, path, source)
            return _already_imported(
                f'The module "{binding.identifier}" has been already imported.', duplicate.range.start
            )

        edits = []
        conflict = get_bound_identifiers(existing_imports, source).get(binding.identifier)
        if conflict is not None:
            replace_existing = selector.confirm_replace(binding.identifier)
            if replace_existing is None:
                return _cancelled()
            if replace_existing:
                start, end = get_removal_range(conflict, document)
                edits.append(TextEdit.delete(start, end))

        snippet = get_import_snippet(binding.render(), path, self.use_import, self.options, document.eol)
        edits.append(TextEdit.insert(insert_at, snippet))
        return ImportOutcome(status=OutcomeStatus.INSERTED, edits=edits)

    def _merge(self, duplicate: ExistingImport, binding: Binding, path: str, source: bytes) -> ImportOutcome:
        """Combine a new binding with an existing import of the same path."""
        clause = _ImportClause(duplicate.node, source)
        identifier = binding.identifier

        namespace_name = clause.namespace_name()
        if namespace_name and binding.kind in (BindingKind.NAMED, BindingKind.NAMESPACE):
            return _already_imported(
                f'The module "{path}" has been already imported as "{namespace_name}".',
                SourcePoint.from_point(clause.namespace.start_point),
            )

        def merged(edit: TextEdit) -> ImportOutcome:
            return ImportOutcome(status=OutcomeStatus.MERGED, edits=[edit])

        if binding.kind is BindingKind.NAMESPACE:
            rendered = binding.render()
            if clause.named is not None:
                return merged(TextEdit(clause.named.start_byte, clause.named.end_byte, rendered))
            if clause.default is not None:
                return merged(TextEdit.insert(clause.default.end_byte, ", " + rendered))
            return merged(TextEdit.insert(clause.source_node.start_byte, rendered + " from "))

        if binding.kind is BindingKind.DEFAULT and clause.default is not None:
            return _already_imported(
                f'The module "{identifier}" has been already imported.',
                SourcePoint.from_point(clause.default.start_point),
            )

        if binding.kind is BindingKind.NAMED:
            for specifier in clause.specifiers:
                if clause.imported_name(specifier) == identifier:
                    return _already_imported(
                        f'The module "{identifier}" has been already imported.',
                        SourcePoint.from_point(specifier.start_point),
                    )

            if clause.specifiers:
                return merged(TextEdit.insert(clause.specifiers[-1].end_byte, ", " + identifier))
            if clause.named is not None:
                return merged(TextEdit(clause.named.start_byte, clause.named.end_byte, binding.render()))
            if clause.default is not None:
                return merged(TextEdit.insert(clause.default.end_byte, ", " + binding.render()))
            return merged(TextEdit.insert(clause.source_node.start_byte, binding.render() + " from "))

        # Default binding in front of the existing specifiers
        if clause.clause is not None:
            return merged(TextEdit.insert(clause.clause.start_byte, identifier + ", "))
        return merged(TextEdit.insert(clause.source_node.start_byte, identifier + " from "))
