#!/usr/bin/env python3
"""
Tests for src/utils/sourcemaps.py
"""
from __future__ import annotations

import json
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from calmjs.parse.vlq import decode_mappings

from utils.sourcemaps import SourceMapBuilder, css_map_comment, js_map_comment


class TestSourceMapBuilder:
    """Tests for SourceMapBuilder."""

    def test_two_chunks(self):
        builder = SourceMapBuilder('style.css')
        builder.add_chunk('a.css', 'x\ny', 'A')
        builder.add_chunk('b.css', 'z', 'B')

        assert builder.joined() == 'A\nB'
        assert builder.mappings() == 'AAAA;ACAA'

    def test_multiline_chunk(self):
        builder = SourceMapBuilder('main.js', separator=';\n')
        builder.add_chunk('a.js', 'one\ntwo', 'one\ntwo')
        assert builder.mappings() == 'AAAA;AACA'

    def test_empty(self):
        builder = SourceMapBuilder('style.css')
        assert builder.joined() == ''
        assert builder.to_dict()['sources'] == []

    def test_to_json(self):
        builder = SourceMapBuilder('main.js', source_root='/src')
        builder.add_chunk('js/main.js', 'var a;', 'var a;')
        data = json.loads(builder.to_json())
        assert data['version'] == 3
        assert data['file'] == 'main.js'
        assert data['sources'] == ['js/main.js']
        assert data['sourcesContent'] == ['var a;']
        assert data['sourceRoot'] == '/src'

    def test_comments(self):
        assert css_map_comment('style.css.map') == '/*# sourceMappingURL=style.css.map */'
        assert js_map_comment('main.js.map') == '//# sourceMappingURL=main.js.map'


class TestMappingDeltas:
    """Decoded segments point each bundle line back at its source line."""

    def test_many_sources(self):
        builder = SourceMapBuilder('style.css')
        for i in range(20):
            builder.add_chunk(f'css/{i}.css', 'a\nb\nc', 'x\ny')

        lines = decode_mappings(builder.mappings())
        assert len(lines) == 40

        source = source_line = 0
        for n, segments in enumerate(lines):
            assert len(segments) == 1
            column, d_source, d_line, source_column = segments[0]
            source += d_source
            source_line += d_line
            assert column == 0
            assert source_column == 0
            assert source == n // 2
            assert source_line == n % 2
