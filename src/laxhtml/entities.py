"""HTML character reference decoding for plain-text rendering.

Supports named references (&amp;, &nbsp;), decimal (&#60;) and hex (&#x3C;)
numeric references. Names without a trailing semicolon are decoded only for
the legacy set browsers accept that way (&amp, &copy, ...).
"""

from __future__ import annotations

import html.entities
import re

# Keys include the trailing semicolon (e.g., "amp;"); the legacy forms that
# may omit it also appear without one (e.g., "amp").
_HTML5_ENTITIES: dict[str, str] = html.entities.html5

LEGACY_ENTITIES: frozenset[str] = frozenset(key for key in _HTML5_ENTITIES if not key.endswith(";"))
_LONGEST_LEGACY = max(len(name) for name in LEGACY_ENTITIES)

# HTML5 numeric character reference replacements (windows-1252 C1 range)
NUMERIC_REPLACEMENTS: dict[int, str] = {
    0x00: "\ufffd",
    0x80: "\u20ac",
    0x82: "\u201a",
    0x83: "\u0192",
    0x84: "\u201e",
    0x85: "\u2026",
    0x86: "\u2020",
    0x87: "\u2021",
    0x88: "\u02c6",
    0x89: "\u2030",
    0x8A: "\u0160",
    0x8B: "\u2039",
    0x8C: "\u0152",
    0x8E: "\u017d",
    0x91: "\u2018",
    0x92: "\u2019",
    0x93: "\u201c",
    0x94: "\u201d",
    0x95: "\u2022",
    0x96: "\u2013",
    0x97: "\u2014",
    0x98: "\u02dc",
    0x99: "\u2122",
    0x9A: "\u0161",
    0x9B: "\u203a",
    0x9C: "\u0153",
    0x9E: "\u017e",
    0x9F: "\u0178",
}

_REFERENCE_PATTERN = re.compile(r"&(?:#[xX]([0-9a-fA-F]+);?|#([0-9]+);?|([A-Za-z][A-Za-z0-9]*)(;?))")


def decode_numeric_entity(text: str, is_hex: bool = False) -> str:
    """Decode the digits of a numeric character reference like &#60; or &#x3C;."""
    codepoint = int(text, 16 if is_hex else 10)

    if codepoint in NUMERIC_REPLACEMENTS:
        return NUMERIC_REPLACEMENTS[codepoint]
    if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
        return "\ufffd"
    return chr(codepoint)


def _decode_reference(match: re.Match[str]) -> str:
    hex_digits, decimal_digits, name, semicolon = match.groups()
    if hex_digits:
        return decode_numeric_entity(hex_digits, is_hex=True)
    if decimal_digits:
        return decode_numeric_entity(decimal_digits)

    if semicolon and name + ";" in _HTML5_ENTITIES:
        return _HTML5_ENTITIES[name + ";"]

    # Longest legacy prefix: "&notit;" is "¬it;", "&copy2024" is "©2024"
    for length in range(min(len(name), _LONGEST_LEGACY), 0, -1):
        prefix = name[:length]
        if prefix in LEGACY_ENTITIES:
            return _HTML5_ENTITIES[prefix] + name[length:] + semicolon
    return match.group(0)


def decode_entities_in_text(text: str) -> str:
    """Decode all character references in text, leaving unknown ones as-is."""
    if "&" not in text:
        return text
    return _REFERENCE_PATTERN.sub(_decode_reference, text)
