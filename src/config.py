#!/usr/bin/env python3
"""
Configuration constants for the sitebuild asset pipeline.

This module centralizes directory names, source globs, per-stage options,
and preview server settings. Project-specific values can be overridden
without editing code by placing a ``sitebuild.yml`` next to ``src/``.

Usage
-----
    from config import BuildPaths, SOURCE_GLOBS, stage_options

    paths = BuildPaths.from_root()            # current working directory
    opts = stage_options('styles', paths.root)

Override file
-------------
    # sitebuild.yml
    stages:
      styles:
        level: 1
      images:
        jpeg_quality: 80
    server:
      port: 3001
    watch:
      debounce_ms: 500
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


# =============================================================================
# PATHS
# =============================================================================

# Directory names relative to the project root
SRC_DIRNAME = 'src'
DIST_DIRNAME = 'dist'

# Optional per-project override file
OVERRIDES_FILENAME = 'sitebuild.yml'


@dataclass(frozen=True)
class BuildPaths:
    """Source and output roots for a single build."""
    root: Path
    src: Path
    dist: Path

    @classmethod
    def from_root(cls, root: Optional[Union[str, Path]] = None) -> 'BuildPaths':
        """Build paths for a project root (defaults to the working directory)."""
        root = Path(root) if root is not None else Path.cwd()
        root = root.resolve()
        return cls(root=root, src=root / SRC_DIRNAME, dist=root / DIST_DIRNAME)


# =============================================================================
# SOURCE GLOBS
# =============================================================================

# Patterns are relative to src/ and support ** and {a,b} alternatives.
# Order matters: scripts are concatenated in glob-resolution order.
SOURCE_GLOBS = {
    'scripts': ('js/components/*.js', 'js/main.js'),
    'styles': ('css/**/*.css',),
    'resources': ('resources/**',),
    'images': (
        'img/*.{jpg,jpeg,png,svg}',
        'img/**/*.{jpg,jpeg,png,webp}',
    ),
    'sprites': ('img/svg/*.svg',),
    'markup': ('**/*.html',),
}

# Output directory per stage, relative to dist/
OUTPUT_DIRS = {
    'scripts': 'js',
    'styles': 'css',
    'resources': '',
    'images': 'img',
    'sprites': 'img',
    'markup': '',
}


# =============================================================================
# STAGE OPTIONS
# =============================================================================

STYLE_OPTIONS = {
    'cascade': False,         # No visual alignment of prefixed declarations
    'level': 2,               # 0 = none, 1 = minify, 2 = minify + restructure
    'filename': 'style.css',
    'sourcemap': True,
}

SCRIPT_OPTIONS = {
    'presets': ['es2015'],    # Babel presets (broadly compatible ES5 output)
    'filename': 'main.js',
    'sourcemap': True,
    'allow_empty': True,
    'obfuscate': True,
}

IMAGE_OPTIONS = {
    'jpeg_quality': 85,
    'png_compress_level': 9,
    'webp_lossless': True,
    'webp_quality': 80,
    'svg_precision': 5,
}

SPRITE_OPTIONS = {
    'mode': 'stack',
    'filename': 'sprite.svg',
}

MARKUP_OPTIONS = {
    'collapse_whitespace': True,
    'keep_comments': False,
}

RESOURCE_OPTIONS: dict = {}

CLEAN_OPTIONS: dict = {}

DEFAULT_STAGE_OPTIONS = {
    'clean': CLEAN_OPTIONS,
    'scripts': SCRIPT_OPTIONS,
    'styles': STYLE_OPTIONS,
    'resources': RESOURCE_OPTIONS,
    'images': IMAGE_OPTIONS,
    'sprites': SPRITE_OPTIONS,
    'markup': MARKUP_OPTIONS,
}


# =============================================================================
# PREVIEW SERVER / WATCH SETTINGS
# =============================================================================

SERVER_HOST = '127.0.0.1'
SERVER_PORT = 3000

# Websocket path used by the injected live-reload client
RELOAD_PATH = '/__reload'

# Changes arriving within this window are handled as one batch
WATCH_DEBOUNCE_MS = 300

# (glob relative to src/, stage id, push client refresh, re-run per changed file)
WATCH_GLOBS = [
    ('css/**/*.css', 'styles', True, False),
    ('*.html', 'markup', True, False),
    ('js/**/*.js', 'scripts', True, False),
    ('resources/**', 'resources', False, False),
    ('img/*.{jpg,jpeg,png,svg,webp}', 'images', False, True),
    ('img/**/*.{jpg,jpeg,png,webp}', 'images', False, True),
    ('img/svg/*.svg', 'sprites', False, False),
]


# =============================================================================
# OVERRIDES
# =============================================================================

def load_overrides(root: Optional[Path] = None) -> dict:
    """
    Load the optional ``sitebuild.yml`` override file.

    Parameters
    ----------
    root : Path, optional
        Project root. Defaults to the working directory.

    Returns
    -------
    dict
        Parsed overrides, or an empty dict if the file does not exist

    Raises
    ------
    ValueError
        If the file does not contain a mapping
    """
    import yaml

    root = Path(root) if root is not None else Path.cwd()
    path = root / OVERRIDES_FILENAME
    if not path.exists():
        return {}
    with open(path, encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def stage_options(stage: str, root: Optional[Path] = None, **explicit) -> dict:
    """
    Resolve options for a stage: defaults, then file overrides, then explicit.

    Parameters
    ----------
    stage : str
        Stage id (e.g., 'styles')
    root : Path, optional
        Project root holding the override file
    **explicit
        Options passed directly by the caller (highest precedence)

    Returns
    -------
    dict
        Merged options
    """
    if stage not in DEFAULT_STAGE_OPTIONS:
        raise KeyError(f"Unknown stage '{stage}'")
    options = copy.deepcopy(DEFAULT_STAGE_OPTIONS[stage])
    overrides = load_overrides(root).get('stages', {}) or {}
    options.update(overrides.get(stage, {}) or {})
    options.update(explicit)
    return options


def server_settings(root: Optional[Path] = None) -> dict:
    """Resolve host, port and debounce window for watch mode."""
    overrides = load_overrides(root)
    server = overrides.get('server', {}) or {}
    watch = overrides.get('watch', {}) or {}
    return {
        'host': server.get('host', SERVER_HOST),
        'port': int(server.get('port', SERVER_PORT)),
        'debounce_ms': int(watch.get('debounce_ms', WATCH_DEBOUNCE_MS)),
    }


# =============================================================================
# VALIDATION
# =============================================================================

def validate_config() -> bool:
    """
    Validate configuration settings.

    Returns
    -------
    bool
        True if all validations pass

    Raises
    ------
    ValueError
        If any configuration is invalid
    """
    errors = []

    for stage in SOURCE_GLOBS:
        if stage not in OUTPUT_DIRS:
            errors.append(f"No output directory configured for stage '{stage}'")

    for glob, stage, _, _ in WATCH_GLOBS:
        if stage not in SOURCE_GLOBS:
            errors.append(f"Watch glob {glob!r} bound to unknown stage '{stage}'")

    if STYLE_OPTIONS['level'] not in (0, 1, 2):
        errors.append(f"STYLE_OPTIONS['level'] must be 0, 1 or 2: {STYLE_OPTIONS['level']}")

    if not 1 <= IMAGE_OPTIONS['jpeg_quality'] <= 100:
        errors.append(f"IMAGE_OPTIONS['jpeg_quality'] must be in 1..100: {IMAGE_OPTIONS['jpeg_quality']}")

    if WATCH_DEBOUNCE_MS < 0:
        errors.append(f"WATCH_DEBOUNCE_MS must not be negative: {WATCH_DEBOUNCE_MS}")

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors))

    return True


# =============================================================================
# MODULE INITIALIZATION
# =============================================================================

if __name__ == '__main__':
    # Print configuration when run directly
    paths = BuildPaths.from_root()
    print("sitebuild Configuration")
    print("=" * 50)
    print(f"PROJECT_ROOT:  {paths.root}")
    print(f"SRC_DIR:       {paths.src}")
    print(f"DIST_DIR:      {paths.dist}")
    print()
    for stage, globs in SOURCE_GLOBS.items():
        print(f"{stage:<11} {', '.join(globs)}")
    print()
    print("Validating configuration...")
    try:
        validate_config()
        print("Configuration valid.")
    except ValueError as e:
        print(f"Configuration invalid:\n{e}")
