#!/usr/bin/env python3
"""
Tests for src/stages/s00_clean.py

Tests cover:
- Emptying an existing output directory
- Creating a missing output directory
- Refusing unsafe targets
"""
from __future__ import annotations

import pytest
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from config import BuildPaths
from stages.s00_clean import check_safe_target, empty_directory, main
from utils.errors import StageIOError


class TestClean:
    """Tests for the clean stage."""

    def test_empties_dist(self, build_paths):
        dist = build_paths.dist
        (dist / 'css').mkdir(parents=True)
        (dist / 'css' / 'style.css').write_text('a{}')
        (dist / 'index.html').write_text('<p>')

        result = main(build_paths, verbose=False)

        assert result.stage == 'clean'
        assert dist.is_dir()
        assert list(dist.iterdir()) == []

    def test_creates_missing_dist(self, build_paths):
        assert not build_paths.dist.exists()
        main(build_paths, verbose=False)
        assert build_paths.dist.is_dir()

    def test_leaves_sources_alone(self, site_tree):
        before = sorted(p for p in site_tree.src.rglob('*'))
        main(site_tree, verbose=False)
        assert sorted(p for p in site_tree.src.rglob('*')) == before

    def test_empty_directory_count(self, temp_dir):
        (temp_dir / 'a').mkdir()
        (temp_dir / 'b.txt').write_text('x')
        assert empty_directory(temp_dir) == 2
        assert list(temp_dir.iterdir()) == []


class TestSafeTarget:
    """Tests for check_safe_target."""

    def test_rejects_project_root(self, temp_dir):
        paths = BuildPaths(root=temp_dir, src=temp_dir / 'src', dist=temp_dir)
        with pytest.raises(StageIOError, match="project root"):
            check_safe_target(paths)

    def test_rejects_parent_of_src(self, temp_dir):
        paths = BuildPaths(root=temp_dir / 'site', src=temp_dir / 'out' / 'src', dist=temp_dir / 'out')
        with pytest.raises(StageIOError, match="contains the sources"):
            check_safe_target(paths)

    def test_accepts_default_layout(self, build_paths):
        check_safe_target(build_paths)
