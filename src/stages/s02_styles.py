#!/usr/bin/env python3
"""
Stage 02: Styles

Purpose: Prefix, compress and concatenate stylesheets into style.css.

This stage handles:
- Adding vendor prefixes (cascade alignment disabled by default)
- Compression at the configured level (rcssmin, plus restructuring at 2)
- Concatenating every stylesheet into one file
- Writing a source map next to it

Input Files
-----------
- src/css/**/*.css

Output Files
------------
- dist/css/style.css
- dist/css/style.css.map

Usage
-----
    python src/pipeline.py styles
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import rcssmin

from config import BuildPaths, OUTPUT_DIRS, SOURCE_GLOBS, stage_options
from stages._io import StageReporter, collect_sources, read_text, write_text
from stages._models import StageResult
from utils.css import CSSParseError, process_stylesheet
from utils.errors import TransformError
from utils.helpers import format_savings, format_size, relative_posix
from utils.sourcemaps import SourceMapBuilder, css_map_comment

STAGE = 'styles'


def transform_stylesheet(name: str, css: str, cascade: bool = False, level: int = 2) -> str:
    """
    Prefix and compress a single stylesheet.

    Parameters
    ----------
    name : str
        Source name used in error messages
    css : str
        Stylesheet source
    cascade : bool
        Visually align prefixed declarations
    level : int
        0 = prefix only, 1 = minify, 2 = minify and drop empty rules and
        repeated declarations

    Returns
    -------
    str
        Transformed stylesheet

    Raises
    ------
    TransformError
        If the stylesheet cannot be parsed
    """
    try:
        processed = process_stylesheet(
            css,
            cascade=cascade,
            drop_empty=level >= 2,
            dedupe=level >= 2,
        )
    except CSSParseError as e:
        raise TransformError(STAGE, f"Invalid CSS at {e}", name) from e

    if level >= 1:
        processed = rcssmin.cssmin(processed)
    return processed


def main(paths: Optional[BuildPaths] = None, verbose: bool = True, **options) -> StageResult:
    """
    Build the stylesheet bundle.

    Parameters
    ----------
    paths : BuildPaths, optional
        Build roots. Defaults to the working directory.
    verbose : bool
        Print progress output
    **options
        Overrides for STYLE_OPTIONS (cascade, level, filename, sourcemap)
    """
    paths = paths or BuildPaths.from_root()
    opts = stage_options(STAGE, paths.root, **options)
    reporter = StageReporter(2, 'Styles', verbose)
    reporter.start()

    sources = collect_sources(STAGE, paths.src, SOURCE_GLOBS[STAGE])
    out_dir = paths.dist / OUTPUT_DIRS[STAGE]
    out_path = out_dir / opts['filename']
    map_name = f"{opts['filename']}.map"

    builder = SourceMapBuilder(opts['filename'], separator='\n')
    result = StageResult(stage=STAGE, inputs=[s.path for s in sources])
    total_in = 0

    if not sources:
        reporter.line("No stylesheets found, bundle not written")
        result.duration = reporter.elapsed()
        reporter.finish()
        return result

    for source in sources:
        name = relative_posix(source.path, paths.src)
        css = read_text(STAGE, source.path)
        total_in += len(css)
        out = transform_stylesheet(name, css, cascade=opts['cascade'], level=opts['level'])
        builder.add_chunk(name, css, out)
        reporter.line(f"{name}: {format_size(len(css))} -> {format_size(len(out))}")

    bundle = builder.joined()
    if opts['sourcemap']:
        bundle = f"{bundle}\n{css_map_comment(map_name)}\n"
    write_text(STAGE, out_path, bundle)
    result.outputs.append(out_path)
    if opts['sourcemap']:
        result.outputs.append(write_text(STAGE, out_dir / map_name, builder.to_json()))

    result.duration = reporter.elapsed()
    reporter.finish(
        files=len(sources),
        output=out_path,
        size=format_savings(total_in, len(bundle)),
    )
    return result


if __name__ == '__main__':
    main()
