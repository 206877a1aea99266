"""
Glob selection and matching.

Patterns are relative to a source root, use forward slashes, and support
``**`` (any number of directories, including none) and ``{a,b}`` brace
alternatives. Matching is delegated to wcmatch so source selection and
watch dispatch agree on what a pattern means.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, Sequence

from wcmatch import glob as wcglob

GLOB_FLAGS = wcglob.GLOBSTAR | wcglob.BRACE

_MAGIC = set('*?[{')


@dataclass(frozen=True)
class SourceFile:
    """A selected source file and the glob base it is relative to."""
    path: Path
    base: Path

    @property
    def relative(self) -> PurePosixPath:
        return PurePosixPath(self.path.relative_to(self.base).as_posix())


def is_magic(pattern: str) -> bool:
    """True if the pattern contains any glob metacharacter."""
    return any(ch in _MAGIC for ch in pattern)


def glob_base(pattern: str) -> str:
    """
    Return the literal leading directory of a pattern.

    ``'css/**/*.css'`` -> ``'css'``; ``'js/main.js'`` -> ``'js'``;
    ``'**/*.html'`` -> ``''``.
    """
    parts = pattern.split('/')
    base = []
    for part in parts[:-1]:
        if is_magic(part):
            break
        base.append(part)
    return '/'.join(base)


def matches(relative_path: str, patterns: Iterable[str]) -> bool:
    """True if a forward-slash relative path matches any pattern."""
    return any(
        wcglob.globmatch(relative_path, pattern, flags=GLOB_FLAGS)
        for pattern in patterns
    )


def _walk_files(root: Path) -> list[str]:
    return sorted(
        p.relative_to(root).as_posix()
        for p in root.rglob('*')
        if p.is_file()
    )


def select_sources(root: Path, patterns: Sequence[str]) -> list[SourceFile]:
    """
    Resolve patterns against ``root`` in pattern order.

    Files are sorted within each pattern; a file matched by an earlier
    pattern is not repeated. Each result carries the base of the pattern
    that selected it, so outputs can mirror the structure below it.

    Parameters
    ----------
    root : Path
        Source root (usually ``src/``)
    patterns : sequence of str
        Glob patterns relative to ``root``

    Returns
    -------
    list[SourceFile]
        Selected files
    """
    if not root.is_dir():
        return []

    candidates = _walk_files(root)
    selected: list[SourceFile] = []
    seen: set[str] = set()

    for pattern in patterns:
        base = root / glob_base(pattern) if glob_base(pattern) else root
        for rel in candidates:
            if rel in seen:
                continue
            if wcglob.globmatch(rel, pattern, flags=GLOB_FLAGS):
                seen.add(rel)
                selected.append(SourceFile(path=root / rel, base=base))

    return selected


def missing_literals(root: Path, patterns: Sequence[str]) -> list[str]:
    """Return literal (non-glob) patterns that do not exist under ``root``."""
    return [
        pattern for pattern in patterns
        if not is_magic(pattern) and not (root / pattern).exists()
    ]
