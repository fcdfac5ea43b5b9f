"""Language plugins.

Each plugin declares which operations it supports through ``capabilities``;
the engine checks them before dispatching instead of probing for methods.
"""

import logging
import re
from enum import Enum
from typing import Optional

from .candidates import CandidateItem, FileCandidate, sort_candidates
from .collaborators import CancellationToken, Selector
from .config import LanguageOptions, RootConfig
from .document import TextDocument
from .exports import ExportResolver
from .fixer import BrokenImportFixer, FixReport
from .synthesizer import ImportOutcome, ImportSynthesizer
from .workspace_index import WorkspaceIndex

logger = logging.getLogger(__name__)

TYPESCRIPT_EXTENSION = re.compile(r"^tsx?$")


class Capability(Enum):
    ADD_ITEM = "add_item"  # incremental index update on file creation
    CUT_ITEM = "cut_item"  # incremental index update on file deletion
    FIX_IMPORT = "fix_import"
    RESET = "reset"


class JavaScriptLanguage:
    """Imports for JavaScript and JSX documents."""

    name = "JavaScript"
    working_language = re.compile(r"^javascript(react)?$", re.IGNORECASE)
    capabilities = frozenset(Capability)
    namespace_packages = False

    def __init__(self, config: RootConfig, workspace_root: str):
        self.options = self.get_language_options(config)
        self.allow_typescript_files = self.allows_typescript_files()
        # Extensions of the plugin's own family, stripped from import paths
        self.extension = re.compile(r"^(j|t)sx?$") if self.allow_typescript_files else re.compile(r"^jsx?$")

        self.index = WorkspaceIndex(workspace_root, self.options, self.extension)
        self.resolver = ExportResolver()
        self.synthesizer = ImportSynthesizer(
            self.options, self.extension, self.resolver, namespace_packages=self.namespace_packages
        )
        self.fixer = BrokenImportFixer(self.index.file_candidates, self.extension, workspace_root)

    def get_language_options(self, config: RootConfig) -> LanguageOptions:
        return config.javascript

    def allows_typescript_files(self) -> bool:
        return self.options.allow_typescript_files

    def accepts(self, document: TextDocument) -> bool:
        return self.working_language.match(document.language_id) is not None

    def filter_files(self, items: list[FileCandidate], document: TextDocument) -> list[FileCandidate]:
        """Drop the document itself, excluded families and files outside the allow-list."""
        document_info = document.info

        file_pattern = None
        for document_pattern, candidate_pattern in self.options.filtered_file_list.items():
            if re.search(document_pattern, document_info.full_path_for_posix):
                file_pattern = re.compile(candidate_pattern)
                break

        return [
            item for item in items
            if item.id != document_info.full_path
            and (self.allow_typescript_files
                 or not TYPESCRIPT_EXTENSION.match(item.info.file_extension_without_leading_dot))
            and (file_pattern is None or file_pattern.search(item.info.full_path_for_posix))
        ]

    def get_items(self, document: TextDocument) -> Optional[list[CandidateItem]]:
        """Candidates for a document, or None if this plugin does not handle it."""
        if not self.accepts(document):
            return None

        files = self.filter_files(self.index.file_candidates(), document)
        packages = self.index.package_candidates(document.info.directory_path)
        return sort_candidates(files, packages, document.info)

    def add_import(self, document: TextDocument, candidate: CandidateItem, selector: Selector) -> ImportOutcome:
        return self.synthesizer.add_import(document, candidate, selector)

    def fix_import(
        self, document: TextDocument, selector: Selector, token: CancellationToken
    ) -> Optional[FixReport]:
        if not self.accepts(document):
            return None
        return self.fixer.fix(document, selector, token)

    def add_item(self, file_path: str) -> None:
        self.index.add(file_path)

    def cut_item(self, file_path: str) -> None:
        self.index.remove(file_path)

    def reset(self) -> None:
        self.index.invalidate()


class TypeScriptLanguage(JavaScriptLanguage):
    """Imports for TypeScript and TSX documents; JavaScript files are importable too."""

    name = "TypeScript"
    working_language = re.compile(r"^typescript(react)?$", re.IGNORECASE)
    namespace_packages = True

    def get_language_options(self, config: RootConfig) -> LanguageOptions:
        return config.typescript

    def allows_typescript_files(self) -> bool:
        return True
