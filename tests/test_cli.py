"""Tests for the command-line front end."""

import io
import json

import pytest

# Skip all tests if the TypeScript grammar is not available
pytest.importorskip("tree_sitter_typescript")

from quicken.cli import ConsoleSelector, language_id_for, main
from quicken.errors import UnsupportedDocumentError

from conftest import RecordingNotifier, RecordingSelector

WORKSPACE = {
    "package.json": json.dumps({"dependencies": {"react": "^18.0.0"}}),
    "src/app.js": "foo()\n",
    "src/utils/helpers.js": "export function formatDate(d) { return d; }\n",
}


def run(root, *args, selector=None):
    stdout = io.StringIO()
    notifier = RecordingNotifier()
    code = main(["--root", str(root), *args], stdout=stdout, selector=selector or RecordingSelector(), notifier=notifier)
    return code, stdout.getvalue(), notifier


class TestLanguageIds:
    def test_known_suffixes(self):
        assert language_id_for("a.jsx") == "javascriptreact"
        assert language_id_for("a.MTS") == "typescript"

    def test_unknown_suffix(self):
        with pytest.raises(UnsupportedDocumentError):
            language_id_for("a.py")


class TestCommands:
    def test_candidates(self, write_files):
        root = write_files(WORKSPACE)

        code, output, _ = run(root, "candidates", str(root / "src" / "app.js"))

        assert code == 0
        assert output.splitlines() == ["helpers\tsrc/utils", "package.json\t", "react\t"]

    def test_add_writes_file_and_history(self, write_files):
        root = write_files(WORKSPACE)
        target = root / "src" / "utils" / "helpers.js"

        code, _, _ = run(root, "add", str(root / "src" / "app.js"), str(target))

        assert code == 0
        assert (root / "src" / "app.js").read_text() == "import { formatDate } from './utils/helpers'\nfoo()\n"
        recent = json.loads((root / ".quicken" / "recent.json").read_text())
        assert recent == {"JavaScript": [str(target)]}

    def test_add_package_dry_run(self, write_files):
        root = write_files(WORKSPACE)

        code, output, _ = run(root, "add", str(root / "src" / "app.js"), "react", "--dry-run")

        assert code == 0
        assert "+import react from 'react'" in output
        assert (root / "src" / "app.js").read_text() == "foo()\n"

    def test_add_unknown_target(self, write_files):
        root = write_files(WORKSPACE)

        code, _, notifier = run(root, "add", str(root / "src" / "app.js"), "left-pad")

        assert code == 1
        assert notifier.messages[0][0] == "error"

    def test_fix(self, write_files):
        root = write_files({**WORKSPACE, "src/app.js": "import h from './lib/helpers'\n"})

        code, _, notifier = run(root, "fix", str(root / "src" / "app.js"))

        assert code == 0
        assert (root / "src" / "app.js").read_text() == "import h from './utils/helpers'\n"
        assert notifier.messages == [("info", "All broken import/require statements have been fixed.")]

    def test_unsupported_file(self, write_files):
        root = write_files({"notes.txt": ""})

        code, _, notifier = run(root, "candidates", str(root / "notes.txt"))

        assert code == 1
        assert notifier.messages == [("error", f"Unsupported file type: {root / 'notes.txt'}")]

    def test_bad_config(self, write_files):
        root = write_files({**WORKSPACE, "bad.json": "[]"})

        code, _, notifier = run(root, "--config", str(root / "bad.json"), "candidates", str(root / "src" / "app.js"))

        assert code == 1
        assert notifier.messages[0][0] == "error"


class TestConsoleSelector:
    def test_numbered_choice(self):
        selector = ConsoleSelector(stdin=io.StringIO("2\n"), stderr=io.StringIO())

        assert selector.select(["*", "a", "b"], placeholder="./m") == "a"

    def test_empty_answer_dismisses(self):
        selector = ConsoleSelector(stdin=io.StringIO("\n"), stderr=io.StringIO())

        assert selector.select(["a"]) is None

    def test_confirm_replace(self):
        stderr = io.StringIO()

        assert ConsoleSelector(stdin=io.StringIO("r\n"), stderr=stderr).confirm_replace("x") is True
        assert ConsoleSelector(stdin=io.StringIO("keep\n"), stderr=stderr).confirm_replace("x") is False
        assert ConsoleSelector(stdin=io.StringIO(""), stderr=stderr).confirm_replace("x") is None
