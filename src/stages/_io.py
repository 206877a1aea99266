"""
Shared file I/O and console reporting for pipeline stages.

All filesystem access in the stages goes through these helpers so that
OS-level failures surface as StageIOError with the stage id attached.
"""
from __future__ import annotations

import shutil
import time
from pathlib import Path
from typing import Optional, Sequence

from utils.errors import StageIOError
from utils.globs import SourceFile, missing_literals, select_sources
from utils.helpers import ensure_dir


def collect_sources(
    stage: str,
    src_dir: Path,
    patterns: Sequence[str],
    allow_empty: bool = False,
) -> list[SourceFile]:
    """
    Select a stage's input files.

    Raises
    ------
    StageIOError
        If the source root is missing, or a literal path in ``patterns``
        does not exist and ``allow_empty`` is False
    """
    if not src_dir.is_dir():
        raise StageIOError(stage, "Source directory not found", str(src_dir))
    if not allow_empty:
        missing = missing_literals(src_dir, patterns)
        if missing:
            raise StageIOError(stage, "Source file not found", str(src_dir / missing[0]))
    return select_sources(src_dir, patterns)


def read_text(stage: str, path: Path) -> str:
    try:
        return path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise StageIOError(stage, f"Cannot read source: {e}", str(path)) from e


def read_bytes(stage: str, path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise StageIOError(stage, f"Cannot read source: {e}", str(path)) from e


def write_text(stage: str, path: Path, text: str) -> Path:
    try:
        ensure_dir(path.parent)
        path.write_text(text, encoding='utf-8')
    except OSError as e:
        raise StageIOError(stage, f"Cannot write output: {e}", str(path)) from e
    return path


def write_bytes(stage: str, path: Path, data: bytes) -> Path:
    try:
        ensure_dir(path.parent)
        path.write_bytes(data)
    except OSError as e:
        raise StageIOError(stage, f"Cannot write output: {e}", str(path)) from e
    return path


def copy_file(stage: str, source: Path, target: Path) -> Path:
    try:
        ensure_dir(target.parent)
        shutil.copyfile(source, target)
    except OSError as e:
        raise StageIOError(stage, f"Cannot copy: {e}", str(source)) from e
    return target


class StageReporter:
    """Prints the banner / progress / summary block around a stage."""

    def __init__(self, number: int, title: str, verbose: bool = True):
        self.number = number
        self.title = title
        self.verbose = verbose
        self._started: Optional[float] = None

    def start(self) -> None:
        self._started = time.perf_counter()
        if self.verbose:
            print("=" * 60)
            print(f"Stage {self.number:02d}: {self.title}")
            print("=" * 60)

    def line(self, message: str) -> None:
        if self.verbose:
            print(f"  {message}")

    def elapsed(self) -> float:
        if self._started is None:
            return 0.0
        return time.perf_counter() - self._started

    def finish(self, **summary) -> None:
        if not self.verbose:
            return
        if summary:
            print("-" * 60)
            print("SUMMARY")
            print("-" * 60)
            for key, value in summary.items():
                print(f"  {key.replace('_', ' ').capitalize()}: {value}")
        print(f"Stage {self.number:02d} complete ({self.elapsed():.2f}s).")
        print()
