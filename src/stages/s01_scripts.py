#!/usr/bin/env python3
"""
Stage 01: Scripts

Purpose: Transpile, minify and concatenate JavaScript into one bundle.

This stage handles:
- Selecting component scripts, then the entry script, in glob order
- Transpiling each file to broadly compatible ES5 (Babel via dukpy)
- Minifying each transpiled file (calmjs.parse)
- Concatenating the results and writing a source map

A file that fails to parse is NOT fatal: it is reported as a
MinifyWarning, its unminified source is written in its place, and the
pipeline continues with the next stage.

Input Files
-----------
- src/js/components/*.js
- src/js/main.js (optional)

Output Files
------------
- dist/js/main.js
- dist/js/main.js.map

Usage
-----
    python src/pipeline.py run_stage scripts
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import BuildPaths, OUTPUT_DIRS, SOURCE_GLOBS, stage_options
from stages._io import StageReporter, collect_sources, read_text, write_text
from stages._models import StageResult
from utils.errors import MinifyWarning, TransformError
from utils.helpers import format_size, relative_posix
from utils.notify import get_notifier
from utils.sourcemaps import SourceMapBuilder, js_map_comment

STAGE = 'scripts'


class ScriptSyntaxError(ValueError):
    """Source could not be parsed by the transpiler or the minifier."""


# ============================================================
# TRANSFORMS
# ============================================================

def transpile(source: str, presets: Optional[list[str]] = None) -> str:
    """
    Transpile modern JavaScript to ES5 with Babel.

    Raises
    ------
    ScriptSyntaxError
        If Babel rejects the source as syntactically invalid
    RuntimeError
        For any other engine failure, including a dukpy release without
        the Babel compiler (removed in 0.6)
    """
    import dukpy

    babel_compile = getattr(dukpy, 'babel_compile', None)
    if babel_compile is None:
        version = getattr(dukpy, '__version__', 'unknown')
        raise RuntimeError(f"dukpy {version} does not provide babel_compile; install dukpy<0.6")

    try:
        result = babel_compile(source, presets=presets or ['es2015'])
    except dukpy.JSRuntimeError as e:
        if 'SyntaxError' in str(e):
            raise ScriptSyntaxError(str(e)) from e
        raise RuntimeError(str(e)) from e
    return result['code']


def minify(source: str, obfuscate: bool = True) -> str:
    """
    Minify ES5 JavaScript.

    Raises
    ------
    ScriptSyntaxError
        If the source cannot be parsed
    """
    from calmjs.parse import es5
    from calmjs.parse.exceptions import ECMASyntaxError, ProductionError
    from calmjs.parse.unparsers.es5 import minify_print

    try:
        program = es5(source)
    except (ECMASyntaxError, ProductionError) as e:
        raise ScriptSyntaxError(str(e)) from e
    return minify_print(program, obfuscate=obfuscate, obfuscate_globals=False)


def compile_script(
    name: str,
    source: str,
    presets: list[str],
    obfuscate: bool = True,
) -> tuple[str, Optional[MinifyWarning]]:
    """
    Transpile then minify one file.

    Returns
    -------
    tuple[str, MinifyWarning or None]
        The compiled code, or the raw source plus a warning if the file
        could not be parsed

    Raises
    ------
    TransformError
        If the transpiler fails for a reason other than a syntax error
    """
    try:
        code = transpile(source, presets)
        code = minify(code, obfuscate=obfuscate)
    except ScriptSyntaxError as e:
        return source, MinifyWarning(STAGE, f"Minification failed: {e}", name)
    except RuntimeError as e:
        raise TransformError(STAGE, f"Transpiler failed: {e}", name) from e
    return code, None


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(paths: Optional[BuildPaths] = None, verbose: bool = True, **options) -> StageResult:
    """
    Build the script bundle.

    Parameters
    ----------
    paths : BuildPaths, optional
        Build roots. Defaults to the working directory.
    verbose : bool
        Print progress output
    **options
        Overrides for SCRIPT_OPTIONS (presets, filename, sourcemap,
        allow_empty, obfuscate)
    """
    paths = paths or BuildPaths.from_root()
    opts = stage_options(STAGE, paths.root, **options)
    reporter = StageReporter(1, 'Scripts', verbose)
    reporter.start()

    sources = collect_sources(STAGE, paths.src, SOURCE_GLOBS[STAGE], allow_empty=opts['allow_empty'])
    out_dir = paths.dist / OUTPUT_DIRS[STAGE]
    out_path = out_dir / opts['filename']
    map_name = f"{opts['filename']}.map"

    notifier = get_notifier()
    builder = SourceMapBuilder(opts['filename'], separator='\n')
    result = StageResult(stage=STAGE, inputs=[s.path for s in sources])

    if not sources:
        reporter.line("No scripts found, bundle not written")
        result.duration = reporter.elapsed()
        reporter.finish()
        return result

    for source in sources:
        name = relative_posix(source.path, paths.src)
        text = read_text(STAGE, source.path)
        code, warning = compile_script(name, text, opts['presets'], obfuscate=opts['obfuscate'])
        if warning is not None:
            result.warnings.append(warning)
            notifier.warning(warning)
            reporter.line(f"{name}: written unminified")
        else:
            reporter.line(f"{name}: {format_size(len(text))} -> {format_size(len(code))}")
        builder.add_chunk(name, text, code)

    bundle = builder.joined()
    if opts['sourcemap']:
        bundle = f"{bundle}\n{js_map_comment(map_name)}\n"
        result.outputs.append(write_text(STAGE, out_dir / map_name, builder.to_json()))
    write_text(STAGE, out_path, bundle)
    result.outputs.insert(0, out_path)

    result.duration = reporter.elapsed()
    reporter.finish(
        files=len(sources),
        output=out_path,
        size=format_size(out_path.stat().st_size),
        warnings=len(result.warnings),
    )
    return result


if __name__ == '__main__':
    main()
