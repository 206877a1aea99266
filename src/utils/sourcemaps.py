"""
Source map (revision 3) generation for concatenated bundles.

Mappings are line-granular: every generated line of a chunk points at the
start of the corresponding line of its source (or line 0 when the chunk was
compressed onto fewer lines than the source). That is enough for browser
devtools to attribute bundle code to the right file.

Usage
-----
    builder = SourceMapBuilder('style.css')
    parts = []
    for name, original, output in chunks:
        builder.add_chunk(name, original, output)
    bundle = builder.joined()
    map_json = builder.to_json()
"""
from __future__ import annotations

import json
from typing import Optional

from calmjs.parse.vlq import encode_mappings


class SourceMapBuilder:
    """Accumulates chunks of a concatenated output and their source map."""

    def __init__(self, file: str, separator: str = '\n', source_root: str = ''):
        self.file = file
        self.separator = separator
        self.source_root = source_root
        self.sources: list[str] = []
        self.sources_content: list[Optional[str]] = []
        self._chunks: list[str] = []
        # (generated line, generated column, source index, source line)
        self._mappings: list[tuple[int, int, int, int]] = []
        self._line = 0
        self._column = 0

    def add_chunk(self, source: str, source_content: Optional[str], generated: str) -> None:
        """Append generated text that was produced from ``source``."""
        if self._chunks:
            self._advance(self.separator)

        index = len(self.sources)
        self.sources.append(source)
        self.sources_content.append(source_content)

        n_source_lines = source_content.count('\n') + 1 if source_content else 1
        for offset, _ in enumerate(generated.split('\n')):
            column = self._column if offset == 0 else 0
            source_line = offset if offset < n_source_lines else 0
            self._mappings.append((self._line + offset, column, index, source_line))

        self._chunks.append(generated)
        self._advance(generated)

    def _advance(self, text: str) -> None:
        newlines = text.count('\n')
        if newlines:
            self._line += newlines
            self._column = len(text) - text.rfind('\n') - 1
        else:
            self._column += len(text)

    def joined(self) -> str:
        """The concatenated generated output."""
        return self.separator.join(self._chunks)

    def mappings(self) -> str:
        """Encode the accumulated mappings as a VLQ ``mappings`` string."""
        lines: list[list[tuple[int, int, int, int]]] = [[] for _ in range(self._line + 1)]
        prev_source = prev_source_line = 0

        by_line: dict[int, list[tuple[int, int, int]]] = {}
        for line, column, source, source_line in self._mappings:
            by_line.setdefault(line, []).append((column, source, source_line))

        # Segment fields are deltas; generated column resets every line,
        # source column is always 0
        for line in sorted(by_line):
            prev_column = 0
            for column, source, source_line in sorted(by_line[line]):
                lines[line].append((
                    column - prev_column,
                    source - prev_source,
                    source_line - prev_source_line,
                    0,
                ))
                prev_column = column
                prev_source = source
                prev_source_line = source_line

        return encode_mappings(lines)

    def to_dict(self) -> dict:
        data = {
            'version': 3,
            'file': self.file,
            'sources': list(self.sources),
            'sourcesContent': list(self.sources_content),
            'names': [],
            'mappings': self.mappings(),
        }
        if self.source_root:
            data['sourceRoot'] = self.source_root
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'))


def css_map_comment(map_name: str) -> str:
    return f"/*# sourceMappingURL={map_name} */"


def js_map_comment(map_name: str) -> str:
    return f"//# sourceMappingURL={map_name}"
