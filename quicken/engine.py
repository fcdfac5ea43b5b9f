"""Entry point tying plugins, indexes and recency together.

An ImportEngine serves one workspace folder. Hosts call it for the three
user-facing operations (list candidates, add an import, fix broken imports)
and forward file-system and configuration events to it.
"""

import logging
import os
from typing import Callable, Optional

from .candidates import CandidateItem
from .collaborators import (
    CancellationToken,
    DelayedProgress,
    LintFixer,
    Notifier,
    Selector,
    run_lint_fixer,
)
from .config import RootConfig, load_config
from .document import TextDocument, TextEdit
from .fixer import FixReport, FixStatus
from .languages import Capability, JavaScriptLanguage, TypeScriptLanguage
from .recency import RecencyTracker
from .synthesizer import ImportOutcome, OutcomeStatus

logger = logging.getLogger(__name__)

EditApplier = Callable[[list[TextEdit]], None]

FILE_CREATED = "create"
FILE_DELETED = "delete"


def _no_progress(*args) -> None:
    pass


class ImportEngine:
    """Import operations for one workspace folder."""

    def __init__(self, workspace_root: str, config: Optional[RootConfig] = None):
        self.workspace_root = os.path.abspath(workspace_root)
        self.config = config if config is not None else load_config(self.workspace_root)
        self.recency = RecencyTracker(self.config.history_limit)
        self.languages = self._create_languages()

    def _create_languages(self) -> list[JavaScriptLanguage]:
        # Add new supported languages here
        return [
            TypeScriptLanguage(self.config, self.workspace_root),
            JavaScriptLanguage(self.config, self.workspace_root),
        ]

    def reload(self, config: RootConfig) -> None:
        """Apply a configuration change; every cache is rebuilt lazily."""
        for language in self.languages:
            if Capability.RESET in language.capabilities:
                language.reset()
        self.config = config
        self.recency.limit = config.history_limit
        self.languages = self._create_languages()

    def language_for(self, document: TextDocument, capability: Optional[Capability] = None):
        for language in self.languages:
            if capability is not None and capability not in language.capabilities:
                continue
            if language.accepts(document):
                return language
        return None

    def get_candidates(
        self,
        document: TextDocument,
        show_progress: Callable[[str], None] = _no_progress,
        hide_progress: Callable[[], None] = _no_progress,
    ):
        """Ranked candidates for a document.

        Returns:
            (language, candidates), or None when no plugin handles the document
        """
        language = self.language_for(document)
        if language is None:
            logger.debug(f"No language plugin for {document.language_id}")
            return None

        with DelayedProgress("Populating Files...", show_progress, hide_progress):
            items = language.get_items(document)

        return language, self.recency.rank(language.name, items)

    def add_import(
        self,
        document: TextDocument,
        candidate: CandidateItem,
        selector: Selector,
        notifier: Notifier,
        apply_edits: Optional[EditApplier] = None,
        lint_fixer: Optional[LintFixer] = None,
    ) -> Optional[ImportOutcome]:
        """Import a selected candidate into the document.

        Returns:
            The outcome, or None when no plugin handles the document
        """
        language = self.language_for(document)
        if language is None:
            return None

        self.recency.mark_used(language.name, candidate.id)

        outcome = language.add_import(document, candidate, selector)
        if outcome.status is OutcomeStatus.ALREADY_IMPORTED:
            notifier.info(outcome.message)
            if outcome.focus is not None:
                notifier.reveal(outcome.focus)

        if outcome.applied and apply_edits is not None:
            apply_edits(outcome.edits)
            run_lint_fixer(lint_fixer, document.path)

        return outcome

    def fix_imports(
        self,
        document: TextDocument,
        selector: Selector,
        notifier: Notifier,
        token: Optional[CancellationToken] = None,
        apply_edits: Optional[EditApplier] = None,
        lint_fixer: Optional[LintFixer] = None,
    ) -> Optional[FixReport]:
        """Repair broken relative imports of the document.

        Returns:
            The fix report, or None when no plugin handles the document
        """
        language = self.language_for(document, Capability.FIX_IMPORT)
        if language is None:
            notifier.error("The current language was not supported.")
            return None

        report = language.fix_import(document, selector, token or CancellationToken())

        if report.edits and apply_edits is not None:
            apply_edits(report.edits)
            run_lint_fixer(lint_fixer, document.path)

        if report.status is FixStatus.PARTIALLY_FIXED:
            notifier.warning(report.message)
        elif report.message:
            notifier.info(report.message)

        return report

    def on_file_event(self, kind: str, file_path: Optional[str]) -> None:
        """Patch indexes for a created/deleted file; anything else invalidates."""
        for language in self.languages:
            if kind == FILE_CREATED and file_path and Capability.ADD_ITEM in language.capabilities:
                language.add_item(file_path)
            elif kind == FILE_DELETED and file_path and Capability.CUT_ITEM in language.capabilities:
                language.cut_item(file_path)
            elif Capability.RESET in language.capabilities:
                language.reset()

    def on_file_created(self, file_path: str) -> None:
        self.on_file_event(FILE_CREATED, file_path)

    def on_file_deleted(self, file_path: str) -> None:
        self.on_file_event(FILE_DELETED, file_path)
