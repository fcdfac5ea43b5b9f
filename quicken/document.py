"""Documents and text edits.

Edits address the UTF-8 encoded document by byte offset, which is what
tree-sitter reports for every node. A batch of edits always refers to the
original document; ``apply_edits`` applies them back to front so earlier
offsets stay valid.
"""

import os
from dataclasses import dataclass
from typing import Iterable, Optional

from .path_info import PathInfo


@dataclass(frozen=True)
class TextEdit:
    """Replace ``source[start_byte:end_byte]`` with ``new_text``."""

    start_byte: int
    end_byte: int
    new_text: str

    @classmethod
    def insert(cls, offset: int, text: str) -> "TextEdit":
        return cls(offset, offset, text)

    @classmethod
    def delete(cls, start_byte: int, end_byte: int) -> "TextEdit":
        return cls(start_byte, end_byte, "")


def apply_edits(source: bytes, edits: Iterable[TextEdit]) -> bytes:
    """Apply non-overlapping edits computed against the same source."""
    result = source
    for edit in sorted(edits, key=lambda e: (e.start_byte, e.end_byte), reverse=True):
        result = result[:edit.start_byte] + edit.new_text.encode("utf-8") + result[edit.end_byte:]
    return result


@dataclass
class TextDocument:
    """An open document as seen by the engine."""

    path: str
    text: str
    language_id: str
    # byte offset of the caret, used for non-module asset insertion
    cursor: int = 0

    def __post_init__(self):
        self.path = os.path.abspath(self.path)

    @property
    def source(self) -> bytes:
        return self.text.encode("utf-8")

    @property
    def info(self) -> PathInfo:
        return PathInfo(self.path)

    @property
    def eol(self) -> str:
        return "\r\n" if "\r\n" in self.text else "\n"

    def line_range(self, start_byte: int, end_byte: int) -> tuple[int, int]:
        """Widen a statement span to also remove its trailing line break.

        Only widened when nothing but whitespace follows the span on its line.
        """
        source = self.source
        line_end = source.find(b"\n", end_byte)
        if line_end == -1:
            line_end = len(source)
            if source[end_byte:line_end].strip() == b"":
                return start_byte, line_end
        elif source[end_byte:line_end].strip() == b"":
            return start_byte, line_end + 1
        return start_byte, end_byte

    def apply(self, edits: Iterable[TextEdit]) -> "TextDocument":
        """Return a new document with the edits applied."""
        text = apply_edits(self.source, edits).decode("utf-8")
        return TextDocument(path=self.path, text=text, language_id=self.language_id, cursor=self.cursor)

    @classmethod
    def open(cls, path: str, language_id: str, cursor: Optional[int] = None) -> "TextDocument":
        with open(path, encoding="utf-8", newline="") as f:
            text = f.read()
        return cls(path=path, text=text, language_id=language_id, cursor=cursor or 0)
