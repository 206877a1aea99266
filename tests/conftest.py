#!/usr/bin/env python3
"""
Shared pytest fixtures for the test suite.

This module provides common fixtures used across test modules including:
- Temporary directories
- A sample site tree (src/ with css, js, img, resources, html)
- Small generated images
- A silent notifier
"""
from __future__ import annotations

import sys
from pathlib import Path

# Add src directory to Python path for test imports
_project_root = Path(__file__).parent.parent
_src_path = _project_root / 'src'
if str(_src_path) not in sys.path:
    sys.path.insert(0, str(_src_path))

import io
import shutil
import tempfile

import pytest


# ============================================================
# PATH FIXTURES
# ============================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory that is cleaned up after tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def build_paths(temp_dir):
    """BuildPaths rooted at an empty temporary project."""
    from config import BuildPaths
    (temp_dir / 'src').mkdir()
    return BuildPaths.from_root(temp_dir)


# ============================================================
# SITE FIXTURES
# ============================================================

SAMPLE_CSS_BASE = """
/* base styles */
body {
    margin: 0;
    font-family: sans-serif;
}

.button {
    user-select: none;
    appearance: none;
}
"""

SAMPLE_CSS_HEADER = """
.header {
    position: sticky;
    backdrop-filter: blur(4px);
}

.empty {
}
"""

SAMPLE_JS_COMPONENT = """
var menuOpen = false;
function toggleMenu(state) {
    menuOpen = state;
    return menuOpen;
}
"""

SAMPLE_JS_MAIN = """
var initialized = toggleMenu(true);
"""

SAMPLE_HTML = """<!DOCTYPE html>
<html>
  <head>
    <title>Sample</title>
    <link rel="stylesheet" href="css/style.css">
  </head>
  <body>
    <p>
      Hello     world
    </p>
    <script src="js/main.js"></script>
  </body>
</html>
"""

SAMPLE_ICON = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24">
  <!-- icon -->
  <path d="M0 0h24v24H0z"/>
</svg>
"""


def make_png(size=(8, 8), color=(200, 30, 30)) -> bytes:
    """Render a small solid PNG."""
    from PIL import Image
    buf = io.BytesIO()
    Image.new('RGB', size, color).save(buf, format='PNG')
    return buf.getvalue()


def make_jpeg(size=(8, 8), color=(30, 200, 30)) -> bytes:
    """Render a small solid JPEG."""
    from PIL import Image
    buf = io.BytesIO()
    Image.new('RGB', size, color).save(buf, format='JPEG', quality=100)
    return buf.getvalue()


def write(path: Path, content) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding='utf-8')
    return path


@pytest.fixture
def write_file():
    """Helper that writes text or bytes, creating parent directories."""
    return write


@pytest.fixture
def site_tree(build_paths):
    """Populate src/ with one of everything the pipeline handles (no images)."""
    src = build_paths.src
    write(src / 'css' / 'base.css', SAMPLE_CSS_BASE)
    write(src / 'css' / 'blocks' / 'header.css', SAMPLE_CSS_HEADER)
    write(src / 'js' / 'components' / 'menu.js', SAMPLE_JS_COMPONENT)
    write(src / 'js' / 'main.js', SAMPLE_JS_MAIN)
    write(src / 'index.html', SAMPLE_HTML)
    write(src / 'pages' / 'about.html', SAMPLE_HTML)
    write(src / 'resources' / 'fonts' / 'font.woff2', b'\x00wOF2fake-font')
    write(src / 'resources' / 'robots.txt', 'User-agent: *\n')
    write(src / 'img' / 'svg' / 'menu.svg', SAMPLE_ICON)
    write(src / 'img' / 'svg' / 'close.svg', SAMPLE_ICON)
    return build_paths


@pytest.fixture
def site_tree_with_images(site_tree):
    """site_tree plus raster images and a top-level SVG."""
    pytest.importorskip('PIL')
    src = site_tree.src
    write(src / 'img' / 'hero.png', make_png())
    write(src / 'img' / 'photo.jpg', make_jpeg())
    write(src / 'img' / 'logo.svg', SAMPLE_ICON)
    write(src / 'img' / 'gallery' / 'one.png', make_png(color=(0, 0, 255)))
    return site_tree


# ============================================================
# NOTIFIER FIXTURES
# ============================================================

@pytest.fixture(autouse=True)
def silent_notifier():
    """Install a disabled notifier for every test and restore afterwards."""
    from utils.notify import Notifier, set_notifier
    notifier = Notifier(enabled=False)
    previous = set_notifier(notifier)
    yield notifier
    set_notifier(previous)


@pytest.fixture
def no_transpile(monkeypatch):
    """Replace the Babel transpiler with a passthrough."""
    from stages import s01_scripts
    monkeypatch.setattr(s01_scripts, 'transpile', lambda source, presets=None: source)
