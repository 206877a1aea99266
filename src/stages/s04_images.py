#!/usr/bin/env python3
"""
Stage 04: Images

Purpose: Optimize raster and SVG images, one output per input.

The optimizer libraries (Pillow, scour) are only imported the first time
the stage runs, through ImageOptimizer.initialize(); profiles that skip
this stage never pay for them.

- PNG: lossless re-encode with optimize=True
- JPEG: optimize + progressive at the configured quality
- WebP: lossless (or quality-based) re-encode
- SVG: scour (comment, metadata and whitespace stripping)

If an optimized file would be larger than its source, the source bytes
are written unchanged. Relative paths and extensions never change.

Input Files
-----------
- src/img/*.{jpg,jpeg,png,svg}
- src/img/**/*.{jpg,jpeg,png,webp}

Output Files
------------
- dist/img/** (1:1 with the inputs)

Usage
-----
    python src/pipeline.py run_stage images
"""
from __future__ import annotations

import io
import sys
import threading
from pathlib import Path
from typing import Iterable, Optional

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import BuildPaths, OUTPUT_DIRS, SOURCE_GLOBS, stage_options
from stages._io import StageReporter, collect_sources, read_bytes, write_bytes
from stages._models import StageResult
from utils.errors import TransformError
from utils.helpers import format_savings, relative_posix

STAGE = 'images'

RASTER_FORMATS = {
    '.png': 'PNG',
    '.jpg': 'JPEG',
    '.jpeg': 'JPEG',
    '.webp': 'WEBP',
}


# ============================================================
# OPTIMIZER
# ============================================================

class ImageOptimizer:
    """
    Two-phase image optimizer: initialize() once, then apply() per file.

    initialize() performs the deferred imports and is idempotent.
    """

    def __init__(self):
        self._image = None
        self._scour = None
        self._expat_error = None

    @property
    def initialized(self) -> bool:
        return self._image is not None

    def initialize(self) -> 'ImageOptimizer':
        if self.initialized:
            return self
        from xml.parsers.expat import ExpatError
        from PIL import Image
        from scour import scour

        self._scour = scour
        self._expat_error = ExpatError
        self._image = Image
        return self

    def apply(self, data: bytes, suffix: str, options: dict) -> bytes:
        """
        Optimize one image.

        Returns
        -------
        bytes
            Optimized bytes, or ``data`` itself when optimizing does not
            make the file smaller

        Raises
        ------
        ValueError
            If the image cannot be decoded
        """
        if not self.initialized:
            raise RuntimeError("ImageOptimizer.initialize() must be called before apply()")

        suffix = suffix.lower()
        if suffix == '.svg':
            optimized = self._optimize_svg(data, options)
        elif suffix in RASTER_FORMATS:
            optimized = self._optimize_raster(data, RASTER_FORMATS[suffix], options)
        else:
            return data
        return optimized if len(optimized) < len(data) else data

    def _optimize_raster(self, data: bytes, fmt: str, options: dict) -> bytes:
        try:
            with self._image.open(io.BytesIO(data)) as img:
                if getattr(img, 'is_animated', False):
                    return data
                buf = io.BytesIO()
                if fmt == 'PNG':
                    img.save(buf, format='PNG', optimize=True,
                             compress_level=options['png_compress_level'])
                elif fmt == 'JPEG':
                    img.save(buf, format='JPEG', quality=options['jpeg_quality'],
                             optimize=True, progressive=True)
                else:
                    img.save(buf, format='WEBP', lossless=options['webp_lossless'],
                             quality=options['webp_quality'], method=6)
                return buf.getvalue()
        except OSError as e:
            raise ValueError(str(e)) from e

    def _optimize_svg(self, data: bytes, options: dict) -> bytes:
        scour_options = self._scour.parse_args([
            '--set-precision', str(options['svg_precision']),
            '--enable-comment-stripping',
            '--remove-descriptive-elements',
            '--strip-xml-prolog',
            '--indent=none',
            '--no-line-breaks',
            '--quiet',
        ])
        try:
            text = self._scour.scourString(data.decode('utf-8'), scour_options)
        except (self._expat_error, UnicodeDecodeError) as e:
            raise ValueError(str(e)) from e
        return text.encode('utf-8')


# Singleton instance
_optimizer: Optional[ImageOptimizer] = None
_optimizer_lock = threading.Lock()


def get_optimizer() -> ImageOptimizer:
    """Get the initialized optimizer singleton."""
    global _optimizer
    with _optimizer_lock:
        if _optimizer is None:
            _optimizer = ImageOptimizer()
        return _optimizer.initialize()


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def _filter_only(sources, only: Optional[Iterable[Path]]):
    if only is None:
        return sources
    wanted = {Path(p).resolve() for p in only}
    return [s for s in sources if s.path.resolve() in wanted]


def main(
    paths: Optional[BuildPaths] = None,
    verbose: bool = True,
    only: Optional[Iterable[Path]] = None,
    **options,
) -> StageResult:
    """
    Optimize images into dist/img/.

    Parameters
    ----------
    paths : BuildPaths, optional
        Build roots. Defaults to the working directory.
    verbose : bool
        Print progress output
    only : iterable of Path, optional
        Restrict the run to these source files (watch mode)
    **options
        Overrides for IMAGE_OPTIONS
    """
    paths = paths or BuildPaths.from_root()
    opts = stage_options(STAGE, paths.root, **options)
    reporter = StageReporter(4, 'Images', verbose)
    reporter.start()

    sources = _filter_only(collect_sources(STAGE, paths.src, SOURCE_GLOBS[STAGE]), only)
    out_dir = paths.dist / OUTPUT_DIRS[STAGE]
    result = StageResult(stage=STAGE, inputs=[s.path for s in sources])

    optimizer = get_optimizer()
    total_in = total_out = 0

    for source in sources:
        name = relative_posix(source.path, paths.src)
        data = read_bytes(STAGE, source.path)
        try:
            optimized = optimizer.apply(data, source.path.suffix, opts)
        except ValueError as e:
            raise TransformError(STAGE, f"Cannot optimize image: {e}", name) from e
        result.outputs.append(write_bytes(STAGE, out_dir / source.relative, optimized))
        total_in += len(data)
        total_out += len(optimized)
        reporter.line(f"{name}: {format_savings(len(data), len(optimized))}")

    result.duration = reporter.elapsed()
    reporter.finish(
        files=len(sources),
        size=format_savings(total_in, total_out),
    )
    return result


if __name__ == '__main__':
    main()
