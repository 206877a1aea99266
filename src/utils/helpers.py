#!/usr/bin/env python3
"""
Common utility functions for the asset pipeline.

This module provides shared helper functions used across multiple stages.
"""
from __future__ import annotations

from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def relative_posix(path: Path, base: Path) -> str:
    """Return ``path`` relative to ``base`` with forward slashes."""
    return path.relative_to(base).as_posix()


def format_size(n_bytes: int) -> str:
    """Format a byte count for display."""
    if n_bytes < 1024:
        return f"{n_bytes} B"
    if n_bytes < 1024 * 1024:
        return f"{n_bytes / 1024:.1f} KB"
    return f"{n_bytes / 1024 / 1024:.2f} MB"


def format_savings(before: int, after: int) -> str:
    """Format size reduction as 'before -> after (-pct%)'."""
    if before == 0:
        return f"{format_size(before)} -> {format_size(after)}"
    pct = (before - after) / before * 100
    return f"{format_size(before)} -> {format_size(after)} (-{pct:.1f}%)"
