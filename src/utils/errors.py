"""
Error taxonomy for pipeline stages.

StageError and its subclasses are fatal: the orchestrator stops the
current run and reports them. MinifyWarning is the one non-fatal
condition; it is reported and the build continues.
"""
from __future__ import annotations

from typing import Optional


class StageError(Exception):
    """A stage failed; the remaining stages of the run are skipped."""

    def __init__(self, stage: str, message: str, path: Optional[str] = None):
        self.stage = stage
        self.message = message
        self.path = path
        super().__init__(self.__str__())

    def __str__(self) -> str:
        where = f" ({self.path})" if self.path else ''
        return f"[{self.stage}] {self.message}{where}"


class StageIOError(StageError):
    """Missing or unreadable source path, or a failed write."""


class TransformError(StageError):
    """Malformed input rejected by a transform (CSS, SVG, image, JS engine)."""


class MinifyWarning(UserWarning):
    """Script minification failed; the unminified source was written instead."""

    def __init__(self, stage: str, message: str, path: Optional[str] = None):
        self.stage = stage
        self.message = message
        self.path = path
        super().__init__(f"[{stage}] {message}" + (f" ({path})" if path else ''))


class UnknownProfileError(KeyError):
    """Requested profile is not defined."""


class UnknownStageError(KeyError):
    """Requested stage is not registered."""
