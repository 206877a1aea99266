"""
Notification channel for build failures and warnings.

Fatal stage errors and non-fatal minification warnings are printed to
stderr in a recognizable block so they stand out in watch mode output.
Warnings are additionally issued through the ``warnings`` module.
"""
from __future__ import annotations

import sys
import warnings
from typing import Optional, TextIO, Union

from .errors import MinifyWarning, StageError


class Notifier:
    """Console notifier; keeps a history of everything it reported."""

    def __init__(self, enabled: bool = True, stream: Optional[TextIO] = None):
        self.enabled = enabled
        self._stream = stream
        self.history: list[Union[StageError, MinifyWarning, str]] = []

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stderr

    def _emit(self, title: str, body: str) -> None:
        if not self.enabled:
            return
        print("!" * 60, file=self.stream)
        print(title, file=self.stream)
        print(f"  {body}", file=self.stream)
        print("!" * 60, file=self.stream)

    def error(self, err: StageError) -> None:
        """Report a fatal stage error."""
        self.history.append(err)
        self._emit(f"ERROR: {type(err).__name__} in stage '{err.stage}'", str(err))

    def warning(self, warning: MinifyWarning) -> None:
        """Report a non-fatal warning and issue it through ``warnings``."""
        self.history.append(warning)
        self._emit(f"WARNING: stage '{warning.stage}'", str(warning))
        warnings.warn(warning, stacklevel=2)

    def info(self, message: str) -> None:
        self.history.append(message)
        if self.enabled:
            print(f"  {message}", file=self.stream)


# Singleton instance
_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    """Get the notifier singleton."""
    global _notifier
    if _notifier is None:
        _notifier = Notifier()
    return _notifier


def set_notifier(notifier: Notifier) -> Notifier:
    """Replace the notifier singleton (returns the previous one)."""
    global _notifier
    previous = get_notifier()
    _notifier = notifier
    return previous
