"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest


class RecordingSelector:
    """Selector returning scripted answers and recording every prompt."""

    def __init__(self, answers=None, replace=None):
        self.answers = list(answers or [])
        self.replace = replace
        self.prompts = []
        self.confirmations = []

    def select(self, items, placeholder=""):
        self.prompts.append((list(items), placeholder))
        if not self.answers:
            return None
        answer = self.answers.pop(0)
        if callable(answer):
            return answer(list(items))
        return answer

    def confirm_replace(self, identifier):
        self.confirmations.append(identifier)
        return self.replace


class RecordingNotifier:
    def __init__(self):
        self.messages = []
        self.revealed = []

    def info(self, message):
        self.messages.append(("info", message))

    def warning(self, message):
        self.messages.append(("warning", message))

    def error(self, message):
        self.messages.append(("error", message))

    def reveal(self, point):
        self.revealed.append(point)


@pytest.fixture
def selector():
    return RecordingSelector()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def write_files(tmp_path: Path):
    """Create files under tmp_path from a {relative path: content} mapping."""

    def write(files: dict[str, str]) -> Path:
        for relative_path, content in files.items():
            path = tmp_path / relative_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return tmp_path

    return write
