"""Boundaries to the host environment.

The engine never talks to a user interface directly. Whenever it needs a
choice it calls a Selector, and every message goes through a Notifier. A
choice that comes back as ``None`` means the user dismissed it, which
aborts the operation in flight.
"""

import logging
import threading
from typing import Callable, Optional, Protocol, Sequence, TypeVar

from .js_parse import SourcePoint

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Debounce before a progress indicator appears, in seconds
PROGRESS_DELAY = 0.15


class Selector(Protocol):
    def select(self, items: Sequence[T], placeholder: str = "") -> Optional[T]:
        """Let the user pick one item; None when dismissed."""

    def confirm_replace(self, identifier: str) -> Optional[bool]:
        """Ask whether an existing binding should be replaced.

        Returns True for "Replace It", False for "Keep Both", None when dismissed.
        """


class Notifier(Protocol):
    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def reveal(self, point: SourcePoint) -> None:
        """Best-effort request to move the caret/viewport to a location."""


LintFixer = Callable[[str], None]


def run_lint_fixer(lint_fixer: Optional[LintFixer], file_path: str) -> None:
    """Invoke the optional linter auto-fix hook, ignoring any failure."""
    if lint_fixer is None:
        return
    try:
        lint_fixer(file_path)
    except Exception as e:
        logger.debug(f"Linter auto-fix failed for {file_path}: {e}")


class CancellationToken:
    def __init__(self):
        self._cancelled = threading.Event()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled.is_set()


class CancellationTokenSource:
    """Owns a token and trips it on the host's cancellation triggers.

    A fix pass over a document stops advancing when that document loses
    focus or is closed.
    """

    def __init__(self, document_path: Optional[str] = None):
        self.token = CancellationToken()
        self._document_path = document_path

    def watch(self, document_path: str) -> None:
        """Tie the token to a document; later focus/close events refer to it."""
        self._document_path = document_path

    def cancel(self) -> None:
        self.token._cancelled.set()

    def on_active_document_changed(self, new_path: Optional[str] = None) -> None:
        if new_path is None or new_path != self._document_path:
            self.cancel()

    def on_document_closed(self, closed_path: str) -> None:
        if self._document_path is None or closed_path == self._document_path:
            self.cancel()


class DelayedProgress:
    """Show a progress indicator only if the wrapped work is slow.

    Usage:
        with DelayedProgress("Populating files...", show, hide):
            build_index()

    ``show(title)`` runs on a timer thread after ``delay`` seconds unless the
    block has already finished; ``hide()`` runs on exit only if shown.
    """

    def __init__(
        self,
        title: str,
        show: Callable[[str], None],
        hide: Callable[[], None],
        delay: float = PROGRESS_DELAY,
    ):
        self.title = title
        self._show = show
        self._hide = hide
        self._delay = delay
        self._lock = threading.Lock()
        self._done = False
        self._shown = False
        self._timer: Optional[threading.Timer] = None

    def _fire(self) -> None:
        with self._lock:
            if self._done:
                return
            self._shown = True
            self._show(self.title)

    def __enter__(self) -> "DelayedProgress":
        self._timer = threading.Timer(self._delay, self._fire)
        self._timer.daemon = True
        self._timer.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        with self._lock:
            self._done = True
            shown = self._shown
        if self._timer is not None:
            self._timer.cancel()
        if shown:
            self._hide()

    @property
    def shown(self) -> bool:
        return self._shown
