#!/usr/bin/env python3
"""
Stage 00: Clean

Purpose: Remove everything inside the output directory before a build.

Runs first in every profile so artifacts from a previous run never leak
into a new one. The output directory itself is kept (or created), only
its contents are deleted.

Input Files
-----------
- none

Output Files
------------
- dist/ (emptied)

Usage
-----
    python src/pipeline.py run_stage clean
"""
from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import Optional

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import BuildPaths
from stages._io import StageReporter
from stages._models import StageResult
from utils.errors import StageIOError
from utils.helpers import ensure_dir

STAGE = 'clean'


def check_safe_target(paths: BuildPaths) -> None:
    """
    Refuse to clean a directory that contains the sources or the project.

    Raises
    ------
    StageIOError
        If dist/ is the project root, or an ancestor of src/
    """
    dist = paths.dist.resolve()
    if dist == paths.root.resolve():
        raise StageIOError(STAGE, "Output directory is the project root", str(dist))
    src = paths.src.resolve()
    if dist == src or dist in src.parents:
        raise StageIOError(STAGE, "Output directory contains the sources", str(dist))


def empty_directory(directory: Path) -> int:
    """
    Delete all entries inside ``directory``.

    Returns
    -------
    int
        Number of top-level entries removed
    """
    removed = 0
    for entry in sorted(directory.iterdir()):
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        except OSError as e:
            raise StageIOError(STAGE, f"Cannot remove: {e}", str(entry)) from e
        removed += 1
    return removed


def main(paths: Optional[BuildPaths] = None, verbose: bool = True, **options) -> StageResult:
    """
    Empty the output directory.

    Parameters
    ----------
    paths : BuildPaths, optional
        Build roots. Defaults to the working directory.
    verbose : bool
        Print progress output
    """
    paths = paths or BuildPaths.from_root()
    reporter = StageReporter(0, 'Clean', verbose)
    reporter.start()

    check_safe_target(paths)

    removed = 0
    if paths.dist.exists():
        removed = empty_directory(paths.dist)
    try:
        ensure_dir(paths.dist)
    except OSError as e:
        raise StageIOError(STAGE, f"Cannot create output directory: {e}", str(paths.dist)) from e

    reporter.line(f"Removed {removed} entr{'y' if removed == 1 else 'ies'} from {paths.dist}")
    reporter.finish()
    return StageResult(stage=STAGE, duration=reporter.elapsed())


if __name__ == '__main__':
    main()
