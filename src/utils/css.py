"""
Stylesheet prefixing and restructuring.

Parses CSS with tinycss2, adds vendor-prefixed copies of declarations
that still need them, and optionally drops empty rule sets and repeated
declarations. Compression of the result is left to the caller (rcssmin).
"""
from __future__ import annotations

from typing import Optional

import tinycss2

# property -> prefixes still required by the supported browser range
PREFIXED_PROPERTIES = {
    'appearance': ('-webkit-', '-moz-'),
    'backdrop-filter': ('-webkit-',),
    'box-decoration-break': ('-webkit-',),
    'clip-path': ('-webkit-',),
    'hyphens': ('-webkit-',),
    'mask': ('-webkit-',),
    'mask-image': ('-webkit-',),
    'mask-position': ('-webkit-',),
    'mask-repeat': ('-webkit-',),
    'mask-size': ('-webkit-',),
    'print-color-adjust': ('-webkit-',),
    'text-decoration-skip-ink': ('-webkit-',),
    'text-size-adjust': ('-webkit-', '-moz-'),
    'user-select': ('-webkit-', '-moz-'),
}

# (property, value) -> prefixed values
PREFIXED_VALUES = {
    ('position', 'sticky'): ('-webkit-sticky',),
}

# At-rules whose block holds further rules rather than declarations
NESTING_AT_RULES = {'media', 'supports', 'document', 'layer', 'container'}


class CSSParseError(ValueError):
    """Raised for input that tinycss2 reports as malformed."""

    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"{line}:{column}: {message}")


def _raise_for(node) -> None:
    raise CSSParseError(node.message, node.source_line, node.source_column)


def _serialize_value(tokens) -> str:
    return tinycss2.serialize(tokens).strip()


def _declaration_text(name: str, value: str, important: bool) -> str:
    return f"{name}:{value}" + ('!important' if important else '')


def _prefix_declarations(declarations, cascade: bool, dedupe: bool) -> list[str]:
    """Return declaration strings with prefixed copies inserted before originals."""
    present = {d.lower_name for d in declarations}
    out: list[tuple[str, str, bool]] = []

    for decl in declarations:
        value = _serialize_value(decl.value)
        name = decl.lower_name

        for prefix in PREFIXED_PROPERTIES.get(name, ()):
            prefixed = prefix + name
            if prefixed not in present:
                out.append((prefixed, value, decl.important))

        for prefixed_value in PREFIXED_VALUES.get((name, value.lower()), ()):
            out.append((decl.name, prefixed_value, decl.important))

        out.append((decl.name, value, decl.important))

    if dedupe:
        # Keep the last occurrence of an identical declaration
        seen: set[tuple[str, str, bool]] = set()
        kept = []
        for item in reversed(out):
            key = (item[0].lower(), item[1], item[2])
            if key in seen:
                continue
            seen.add(key)
            kept.append(item)
        out = list(reversed(kept))

    if cascade:
        # Right-align property names so prefixed copies line up visually
        width = max((len(name) for name, _, _ in out), default=0)
        return [
            ' ' * (width - len(name)) + _declaration_text(name, value, important)
            for name, value, important in out
        ]
    return [_declaration_text(name, value, important) for name, value, important in out]


def _process_block(content, cascade: bool, drop_empty: bool, dedupe: bool) -> Optional[str]:
    """
    Process the body of a rule set.

    Bodies may hold nested style rules (``&:hover {...}``) and nested
    conditional at-rules besides declarations. Returns None when the
    block is empty.
    """
    items = tinycss2.parse_blocks_contents(content, skip_comments=True, skip_whitespace=True)
    declarations = []
    nested = []
    for item in items:
        if item.type == 'error':
            _raise_for(item)
        elif item.type == 'declaration':
            declarations.append(item)
        elif item.type == 'qualified-rule':
            nested.extend(_process_rules([item], cascade, drop_empty, dedupe))
        elif item.content is not None and item.lower_at_keyword in NESTING_AT_RULES:
            body = _process_block(item.content, cascade, drop_empty, dedupe)
            if body is None and drop_empty:
                continue
            prelude = _serialize_value(item.prelude)
            nested.append(f"@{item.at_keyword} {prelude}{{{body or ''}}}")
        else:
            nested.append(item.serialize().strip())

    separator = ';\n  ' if cascade else ';'
    body = separator.join(_prefix_declarations(declarations, cascade, dedupe))
    if not body and not nested:
        return None
    if body and nested:
        body += ';'
    return body + ''.join(nested)


def _process_rules(rules, cascade: bool, drop_empty: bool, dedupe: bool) -> list[str]:
    out = []
    for rule in rules:
        if rule.type == 'error':
            _raise_for(rule)

        if rule.type == 'qualified-rule':
            prelude = _serialize_value(rule.prelude)
            body = _process_block(rule.content, cascade, drop_empty, dedupe)
            if body is None:
                if drop_empty:
                    continue
                body = ''
            out.append(f"{prelude}{{{body}}}")

        elif rule.type == 'at-rule':
            if rule.content is not None and rule.lower_at_keyword in NESTING_AT_RULES:
                inner = tinycss2.parse_rule_list(rule.content, skip_comments=True, skip_whitespace=True)
                children = _process_rules(inner, cascade, drop_empty, dedupe)
                if not children and drop_empty:
                    continue
                prelude = _serialize_value(rule.prelude)
                out.append(f"@{rule.at_keyword} {prelude}{{{''.join(children)}}}")
            else:
                out.append(rule.serialize().strip())

    return out


def process_stylesheet(
    css: str,
    cascade: bool = False,
    drop_empty: bool = False,
    dedupe: bool = False,
) -> str:
    """
    Prefix and optionally restructure a stylesheet.

    Parameters
    ----------
    css : str
        Stylesheet source
    cascade : bool
        Align prefixed declarations visually (only meaningful uncompressed)
    drop_empty : bool
        Remove rule sets and nesting at-rules with no content
    dedupe : bool
        Remove repeated identical declarations within a rule set

    Returns
    -------
    str
        Processed stylesheet

    Raises
    ------
    CSSParseError
        If the stylesheet is malformed
    """
    rules = tinycss2.parse_stylesheet(css, skip_comments=True, skip_whitespace=True)
    return '\n'.join(_process_rules(rules, cascade, drop_empty, dedupe))
