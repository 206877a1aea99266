#!/usr/bin/env python3
"""
Tests for src/stages/s02_styles.py

Tests cover:
- Vendor prefixing with cascade disabled
- Compression levels
- Concatenation of every stylesheet into style.css
- Source map output
- Malformed CSS raised as TransformError
"""
from __future__ import annotations

import json
import pytest
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from stages.s02_styles import main, transform_stylesheet
from utils.errors import StageIOError, TransformError


class TestTransformStylesheet:
    """Tests for transform_stylesheet."""

    def test_prefixes_and_compresses(self):
        out = transform_stylesheet('a.css', '.x {\n  user-select: none;\n}\n')
        assert out == '.x{-webkit-user-select:none;-moz-user-select:none;user-select:none}'

    def test_existing_prefix_not_duplicated(self):
        css = '.x { -webkit-user-select: none; user-select: none; }'
        out = transform_stylesheet('a.css', css)
        assert out.count('-webkit-user-select') == 1
        assert '-moz-user-select:none' in out

    def test_sticky_value(self):
        out = transform_stylesheet('a.css', '.h { position: sticky; }')
        assert out == '.h{position:-webkit-sticky;position:sticky}'

    def test_level_two_drops_empty_rules(self):
        out = transform_stylesheet('a.css', '.a { color: red; } .empty { }', level=2)
        assert '.empty' not in out
        assert '.a{color:red}' in out

    def test_level_two_dedupes(self):
        out = transform_stylesheet('a.css', '.a { color: red; color: red; }', level=2)
        assert out == '.a{color:red}'

    def test_level_zero_not_compressed(self):
        out = transform_stylesheet('a.css', '/* note */ .a { color: red; }', level=0)
        assert '.a{color:red}' in out

    def test_media_queries(self):
        css = '@media (max-width: 600px) { .a { appearance: none; } }'
        out = transform_stylesheet('a.css', css)
        assert out.startswith('@media')
        assert '-webkit-appearance:none' in out

    def test_important_kept(self):
        out = transform_stylesheet('a.css', '.a { user-select: none !important; }')
        assert '-webkit-user-select:none!important' in out

    def test_nested_rules_accepted(self):
        out = transform_stylesheet('a.css', '.a { color: red; &:hover { color: blue; } }')
        assert '&:hover{color:blue}' in out
        assert out.startswith('.a{color:red')

    def test_invalid_css(self):
        with pytest.raises(TransformError, match='Invalid CSS') as exc:
            transform_stylesheet('css/bad.css', '.a { color: red }\n.b')
        assert exc.value.stage == 'styles'
        assert exc.value.path == 'css/bad.css'

    def test_invalid_declaration(self):
        with pytest.raises(TransformError):
            transform_stylesheet('css/bad.css', '.a { color red; }')


class TestStylesStage:
    """Tests for the styles stage main()."""

    def test_builds_single_bundle(self, site_tree):
        result = main(site_tree, verbose=False)

        out = site_tree.dist / 'css' / 'style.css'
        assert out in result.outputs
        css = out.read_text()
        assert '-webkit-user-select:none' in css
        assert 'position:-webkit-sticky' in css
        assert '-webkit-backdrop-filter:blur(4px)' in css
        assert '.empty' not in css
        assert css.index('.button') < css.index('.header')
        assert len(result.inputs) == 2

    def test_source_map(self, site_tree):
        main(site_tree, verbose=False)

        css = (site_tree.dist / 'css' / 'style.css').read_text()
        assert css.rstrip().endswith('/*# sourceMappingURL=style.css.map */')
        data = json.loads((site_tree.dist / 'css' / 'style.css.map').read_text())
        assert data['file'] == 'style.css'
        assert data['sources'] == ['css/base.css', 'css/blocks/header.css']
        assert data['mappings']

    def test_no_sources_writes_nothing(self, build_paths, write_file):
        write_file(build_paths.src / 'index.html', '<p>')
        result = main(build_paths, verbose=False)
        assert result.inputs == []
        assert result.outputs == []
        assert not (build_paths.dist / 'css').exists()

    def test_missing_src(self, temp_dir):
        from config import BuildPaths
        with pytest.raises(StageIOError, match='Source directory not found'):
            main(BuildPaths.from_root(temp_dir), verbose=False)

    def test_invalid_file_aborts(self, site_tree, write_file):
        write_file(site_tree.src / 'css' / 'zz.css', '.a { color: red }\n.b')
        with pytest.raises(TransformError):
            main(site_tree, verbose=False)
