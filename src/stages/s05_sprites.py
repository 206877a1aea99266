#!/usr/bin/env python3
"""
Stage 05: Sprites

Purpose: Combine individual SVG icons into one "stack" sprite sheet.

In stack mode every source icon becomes a nested <svg> element whose id
is the file name without extension. A small stylesheet hides all layers
except the one addressed by the URL fragment, so both
``sprite.svg#icon`` in <img src> and ``<use href="sprite.svg#icon">``
work.

Input Files
-----------
- src/img/svg/*.svg

Output Files
------------
- dist/img/sprite.svg

Usage
-----
    python src/pipeline.py run_stage sprites
"""
from __future__ import annotations

import re
import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import BuildPaths, OUTPUT_DIRS, SOURCE_GLOBS, stage_options
from stages._io import StageReporter, collect_sources, read_bytes, write_bytes
from stages._models import StageResult
from utils.errors import TransformError
from utils.helpers import format_size, relative_posix

STAGE = 'sprites'

SVG_NS = 'http://www.w3.org/2000/svg'
XLINK_NS = 'http://www.w3.org/1999/xlink'

STACK_STYLE = ':root>svg{display:none}:root>svg:target{display:block}'

# Attributes carried from each source root onto its layer
LAYER_ATTRIBUTES = ('viewBox', 'preserveAspectRatio', 'fill', 'stroke')

ET.register_namespace('', SVG_NS)
ET.register_namespace('xlink', XLINK_NS)


def _qname(tag: str) -> str:
    return f'{{{SVG_NS}}}{tag}'


def _number(value: Optional[str]) -> Optional[float]:
    """Parse a length like '24', '24px' or '1.5em' into its numeric part."""
    if not value:
        return None
    match = re.match(r'\s*([0-9.]+)', value)
    return float(match.group(1)) if match else None


def make_id(name: str) -> str:
    """Turn a file stem into a valid XML id."""
    ident = re.sub(r'[^A-Za-z0-9_.-]', '-', name)
    if not re.match(r'[A-Za-z_]', ident):
        ident = f'_{ident}'
    return ident


def build_layer(name: str, data: bytes) -> ET.Element:
    """
    Convert one SVG document into a sprite layer.

    Raises
    ------
    ValueError
        If the document is not well-formed SVG
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ValueError(str(e)) from e
    if root.tag != _qname('svg'):
        raise ValueError(f"root element is <{root.tag}>, expected <svg>")

    layer = ET.Element(_qname('svg'))
    for attr in LAYER_ATTRIBUTES:
        if attr in root.attrib:
            layer.set(attr, root.attrib[attr])

    if 'viewBox' not in layer.attrib:
        width = _number(root.get('width'))
        height = _number(root.get('height'))
        if width is not None and height is not None:
            layer.set('viewBox', f"0 0 {width:g} {height:g}")

    if 'width' in root.attrib:
        layer.set('width', root.attrib['width'])
    if 'height' in root.attrib:
        layer.set('height', root.attrib['height'])
    layer.set('id', make_id(name))

    for child in root:
        layer.append(child)
    return layer


def build_sprite(layers: list[ET.Element]) -> bytes:
    """Assemble layers into a stack-mode sprite document."""
    sprite = ET.Element(_qname('svg'))
    style = ET.SubElement(sprite, _qname('style'))
    style.text = STACK_STYLE
    for layer in layers:
        sprite.append(layer)
    return ET.tostring(sprite, encoding='utf-8', xml_declaration=True)


def main(paths: Optional[BuildPaths] = None, verbose: bool = True, **options) -> StageResult:
    """
    Build the SVG sprite sheet.

    Parameters
    ----------
    paths : BuildPaths, optional
        Build roots. Defaults to the working directory.
    verbose : bool
        Print progress output
    **options
        Overrides for SPRITE_OPTIONS (filename)
    """
    paths = paths or BuildPaths.from_root()
    opts = stage_options(STAGE, paths.root, **options)
    if opts['mode'] != 'stack':
        raise TransformError(STAGE, f"Unsupported sprite mode '{opts['mode']}'")
    reporter = StageReporter(5, 'Sprites', verbose)
    reporter.start()

    sources = collect_sources(STAGE, paths.src, SOURCE_GLOBS[STAGE])
    result = StageResult(stage=STAGE, inputs=[s.path for s in sources])

    if not sources:
        reporter.line("No SVG icons found, sprite not written")
        result.duration = reporter.elapsed()
        reporter.finish()
        return result

    layers = []
    seen: dict[str, str] = {}
    for source in sources:
        name = relative_posix(source.path, paths.src)
        ident = make_id(source.path.stem)
        if ident in seen:
            raise TransformError(STAGE, f"Duplicate sprite id '{ident}' (also {seen[ident]})", name)
        seen[ident] = name
        try:
            layers.append(build_layer(source.path.stem, read_bytes(STAGE, source.path)))
        except ValueError as e:
            raise TransformError(STAGE, f"Invalid SVG: {e}", name) from e
        reporter.line(f"#{ident} <- {name}")

    out_path = paths.dist / OUTPUT_DIRS[STAGE] / opts['filename']
    data = build_sprite(layers)
    result.outputs.append(write_bytes(STAGE, out_path, data))

    result.duration = reporter.elapsed()
    reporter.finish(
        icons=len(layers),
        output=out_path,
        size=format_size(len(data)),
    )
    return result


if __name__ == '__main__':
    main()
