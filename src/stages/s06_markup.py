#!/usr/bin/env python3
"""
Stage 06: Markup

Purpose: Minify HTML pages by collapsing insignificant whitespace.

Inline <style> and <script> content is left alone; the scripts and
styles stages own those assets. The directory structure below src/ is
preserved. In watch mode a client refresh is pushed once this stage
finishes.

Input Files
-----------
- src/**/*.html

Output Files
------------
- dist/**/*.html

Usage
-----
    python src/pipeline.py html_minify
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import minify_html

from config import BuildPaths, OUTPUT_DIRS, SOURCE_GLOBS, stage_options
from stages._io import StageReporter, collect_sources, read_text, write_text
from stages._models import StageResult
from utils.helpers import format_savings, relative_posix

STAGE = 'markup'


def minify_markup(html: str, collapse_whitespace: bool = True, keep_comments: bool = False) -> str:
    """Minify one HTML document."""
    if not collapse_whitespace:
        return html
    return minify_html.minify(
        html,
        keep_closing_tags=True,
        keep_html_and_head_opening_tags=True,
        keep_comments=keep_comments,
        minify_css=False,
        minify_js=False,
    )


def main(paths: Optional[BuildPaths] = None, verbose: bool = True, **options) -> StageResult:
    """
    Minify HTML pages into the output directory.

    Parameters
    ----------
    paths : BuildPaths, optional
        Build roots. Defaults to the working directory.
    verbose : bool
        Print progress output
    **options
        Overrides for MARKUP_OPTIONS (collapse_whitespace, keep_comments)
    """
    paths = paths or BuildPaths.from_root()
    opts = stage_options(STAGE, paths.root, **options)
    reporter = StageReporter(6, 'Markup', verbose)
    reporter.start()

    sources = collect_sources(STAGE, paths.src, SOURCE_GLOBS[STAGE])
    out_dir = paths.dist / OUTPUT_DIRS[STAGE]
    result = StageResult(stage=STAGE, inputs=[s.path for s in sources])
    total_in = total_out = 0

    for source in sources:
        name = relative_posix(source.path, paths.src)
        html = read_text(STAGE, source.path)
        out = minify_markup(html, opts['collapse_whitespace'], opts['keep_comments'])
        result.outputs.append(write_text(STAGE, out_dir / source.relative, out))
        total_in += len(html)
        total_out += len(out)
        reporter.line(f"{name}: {format_savings(len(html), len(out))}")

    result.duration = reporter.elapsed()
    reporter.finish(
        pages=len(sources),
        size=format_savings(total_in, total_out),
    )
    return result


if __name__ == '__main__':
    main()
