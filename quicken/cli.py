"""Command-line front end.

    quicken candidates src/app.js
    quicken add src/app.js src/utils/helpers.js
    quicken add src/app.js lodash --dry-run
    quicken fix src/app.js --eslint

Choices are prompted on the console as a numbered list; an empty answer
dismisses the prompt. Edits are written back to the file unless
``--dry-run`` is given, in which case a unified diff is printed instead.
"""

import argparse
import difflib
import json
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence

from .candidates import FileCandidate, PackageCandidate
from .config import CONFIG_DIR, load_config
from .document import TextDocument, TextEdit
from .engine import ImportEngine
from .errors import QuickenError, UnsupportedDocumentError
from .js_parse import SourcePoint

logger = logging.getLogger(__name__)

RECENT_FILE = "recent.json"
ESLINT_TIMEOUT = 60

EXTENSION_TO_LANGUAGE = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "typescriptreact",
}


class ConsoleSelector:
    """Selector prompting on stdin/stderr."""

    def __init__(self, stdin=None, stderr=None):
        self.stdin = stdin or sys.stdin
        self.stderr = stderr or sys.stderr

    def _ask(self, prompt: str) -> str:
        self.stderr.write(prompt)
        self.stderr.flush()
        return self.stdin.readline().strip()

    def select(self, items, placeholder: str = ""):
        if placeholder:
            self.stderr.write(f"{placeholder}\n")
        for number, item in enumerate(items, 1):
            self.stderr.write(f"  {number}) {item}\n")

        answer = self._ask("Select: ")
        if not answer.isdigit() or not 1 <= int(answer) <= len(items):
            return None
        return items[int(answer) - 1]

    def confirm_replace(self, identifier: str) -> Optional[bool]:
        self.stderr.write(f'The identifier "{identifier}" has been already declared.\n')
        answer = self._ask("[r]eplace it / [k]eep both: ").lower()
        if answer in ("r", "replace"):
            return True
        if answer in ("k", "keep"):
            return False
        return None


class ConsoleNotifier:
    def __init__(self, stream=None):
        self.stream = stream or sys.stderr

    def info(self, message: str) -> None:
        self.stream.write(f"{message}\n")

    def warning(self, message: str) -> None:
        self.stream.write(f"warning: {message}\n")

    def error(self, message: str) -> None:
        self.stream.write(f"error: {message}\n")

    def reveal(self, point: SourcePoint) -> None:
        self.stream.write(f"  at line {point.line + 1}, column {point.column + 1}\n")


def language_id_for(file_path: str) -> str:
    """Language identifier of a file from its suffix.

    Raises:
        UnsupportedDocumentError: If the suffix is not a JavaScript/TypeScript one
    """
    language_id = EXTENSION_TO_LANGUAGE.get(Path(file_path).suffix.lower())
    if language_id is None:
        raise UnsupportedDocumentError(f"Unsupported file type: {file_path}")
    return language_id


def eslint_fixer(workspace_root: str):
    def fix(file_path: str) -> None:
        subprocess.run(
            ["npx", "eslint", "--fix", file_path],
            cwd=workspace_root,
            capture_output=True,
            timeout=ESLINT_TIMEOUT,
            check=False,
        )

    return fix


def _recent_path(workspace_root: str) -> Path:
    return Path(workspace_root) / CONFIG_DIR / RECENT_FILE


def load_recent(engine: ImportEngine) -> None:
    path = _recent_path(engine.workspace_root)
    if not path.exists():
        return
    try:
        engine.recency.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, AttributeError) as e:
        logger.warning(f"Ignoring unreadable {path}: {e}")


def save_recent(engine: ImportEngine) -> None:
    path = _recent_path(engine.workspace_root)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(engine.recency.to_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        logger.warning(f"Could not save {path}: {e}")


class _DocumentWriter:
    """Applies edit batches to a document and writes or diffs the result."""

    def __init__(self, document: TextDocument, dry_run: bool, stdout):
        self.document = document
        self.dry_run = dry_run
        self.stdout = stdout

    def __call__(self, edits: list[TextEdit]) -> None:
        updated = self.document.apply(edits)
        if self.dry_run:
            diff = difflib.unified_diff(
                self.document.text.splitlines(keepends=True),
                updated.text.splitlines(keepends=True),
                fromfile=self.document.path,
                tofile=self.document.path,
            )
            self.stdout.writelines(diff)
        else:
            with open(self.document.path, "w", encoding="utf-8", newline="") as f:
                f.write(updated.text)
        self.document = updated


def _open_document(file_path: str) -> TextDocument:
    return TextDocument.open(file_path, language_id_for(file_path))


def _find_candidate(candidates, target: str, cwd: str):
    target_path = os.path.normpath(os.path.join(cwd, target))
    for candidate in candidates:
        if isinstance(candidate, FileCandidate) and candidate.id == target_path:
            return candidate
        if isinstance(candidate, PackageCandidate) and candidate.name == target:
            return candidate
    return None


def cmd_candidates(engine: ImportEngine, args, stdout) -> int:
    document = _open_document(args.file)
    result = engine.get_candidates(document)
    if result is None:
        raise UnsupportedDocumentError(f"No language plugin accepts {args.file}")

    _, candidates = result
    for candidate in candidates:
        stdout.write(f"{candidate.label}\t{candidate.description}\n")
    return 0


def cmd_add(engine: ImportEngine, args, stdout, selector, notifier, lint_fixer) -> int:
    document = _open_document(args.file)
    result = engine.get_candidates(document)
    if result is None:
        raise UnsupportedDocumentError(f"No language plugin accepts {args.file}")

    _, candidates = result
    candidate = _find_candidate(candidates, args.target, os.getcwd())
    if candidate is None:
        notifier.error(f'"{args.target}" is not an importable file or package.')
        return 1

    writer = _DocumentWriter(document, args.dry_run, stdout)
    engine.add_import(
        document, candidate, selector, notifier,
        apply_edits=writer,
        lint_fixer=None if args.dry_run else lint_fixer,
    )
    save_recent(engine)
    return 0


def cmd_fix(engine: ImportEngine, args, stdout, selector, notifier, lint_fixer) -> int:
    document = _open_document(args.file)
    writer = _DocumentWriter(document, args.dry_run, stdout)
    report = engine.fix_imports(
        document, selector, notifier,
        apply_edits=writer,
        lint_fixer=None if args.dry_run else lint_fixer,
    )
    return 0 if report is not None else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quicken", description="Insert and repair JavaScript/TypeScript imports")
    parser.add_argument("--root", default=None, help="Workspace root (default: current directory)")
    parser.add_argument("--config", default=None, help="Configuration file (default: .quicken/config.json)")
    parser.add_argument("--eslint", action="store_true", help="Run `eslint --fix` on the file after editing")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    cmd = subparsers.add_parser("candidates", help="List importable files and packages")
    cmd.add_argument("file", help="Document the import would go into")

    cmd = subparsers.add_parser("add", help="Import a file or package")
    cmd.add_argument("file", help="Document to edit")
    cmd.add_argument("target", help="Path of a workspace file or name of a package")
    cmd.add_argument("--dry-run", action="store_true", help="Print a diff instead of writing")

    cmd = subparsers.add_parser("fix", help="Repair broken relative imports")
    cmd.add_argument("file", help="Document to repair")
    cmd.add_argument("--dry-run", action="store_true", help="Print a diff instead of writing")

    return parser


def main(argv: Optional[Sequence[str]] = None, stdout=None, selector=None, notifier=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    stdout = stdout or sys.stdout

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    workspace_root = os.path.abspath(args.root or os.getcwd())
    selector = selector or ConsoleSelector()
    notifier = notifier or ConsoleNotifier()
    lint_fixer = eslint_fixer(workspace_root) if args.eslint else None

    try:
        engine = ImportEngine(workspace_root, load_config(workspace_root, args.config))
        load_recent(engine)

        if args.command == "candidates":
            return cmd_candidates(engine, args, stdout)
        if args.command == "add":
            return cmd_add(engine, args, stdout, selector, notifier, lint_fixer)
        return cmd_fix(engine, args, stdout, selector, notifier, lint_fixer)
    except (QuickenError, OSError) as e:
        notifier.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
