#!/usr/bin/env python3
"""
Stage 03: Resources

Purpose: Copy static resources (fonts, icons, downloads) unchanged.

Files are copied byte for byte; the directory structure below
src/resources/ is reproduced directly under dist/.

Input Files
-----------
- src/resources/**

Output Files
------------
- dist/** (mirrors src/resources/)

Usage
-----
    python src/pipeline.py run_stage resources
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import BuildPaths, OUTPUT_DIRS, SOURCE_GLOBS, stage_options
from stages._io import StageReporter, collect_sources, copy_file
from stages._models import StageResult

STAGE = 'resources'


def main(paths: Optional[BuildPaths] = None, verbose: bool = True, **options) -> StageResult:
    """
    Copy resources into the output directory.

    Parameters
    ----------
    paths : BuildPaths, optional
        Build roots. Defaults to the working directory.
    verbose : bool
        Print progress output
    """
    paths = paths or BuildPaths.from_root()
    stage_options(STAGE, paths.root, **options)
    reporter = StageReporter(3, 'Resources', verbose)
    reporter.start()

    sources = collect_sources(STAGE, paths.src, SOURCE_GLOBS[STAGE])
    out_dir = paths.dist / OUTPUT_DIRS[STAGE]
    result = StageResult(stage=STAGE, inputs=[s.path for s in sources])

    for source in sources:
        target = out_dir / source.relative
        result.outputs.append(copy_file(STAGE, source.path, target))

    reporter.line(f"Copied {len(result.outputs)} file(s) to {out_dir}")
    result.duration = reporter.elapsed()
    reporter.finish()
    return result


if __name__ == '__main__':
    main()
