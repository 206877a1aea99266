#!/usr/bin/env python3
"""
Tests for src/stages/s03_resources.py

Tests cover:
- Byte-for-byte copying
- Directory structure below src/resources/ mirrored into dist/
"""
from __future__ import annotations

from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from stages.s03_resources import main


class TestResourcesStage:
    """Tests for the resources stage."""

    def test_copies_structure(self, site_tree):
        result = main(site_tree, verbose=False)

        assert (site_tree.dist / 'fonts' / 'font.woff2').read_bytes() == b'\x00wOF2fake-font'
        assert (site_tree.dist / 'robots.txt').read_text() == 'User-agent: *\n'
        assert len(result.outputs) == 2

    def test_no_resources(self, build_paths):
        result = main(build_paths, verbose=False)
        assert result.outputs == []

    def test_only_resources_copied(self, site_tree):
        main(site_tree, verbose=False)
        assert not (site_tree.dist / 'index.html').exists()
        assert not (site_tree.dist / 'resources').exists()
