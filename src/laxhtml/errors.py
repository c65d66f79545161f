"""Human-readable messages for the recoveries the parser performs.

The tokenizer and tree builder never fail on malformed markup. When error
collection is enabled they record a kebab-case code per recovery; this module
turns those codes into messages.
"""

from __future__ import annotations


def generate_error_message(code: str, tag_name: str | None = None) -> str:
    """Return the message for a recovery ``code``.

    Args:
        code: Kebab-case recovery code, e.g. ``"unexpected-end-tag"``
        tag_name: Tag the recovery concerns, for codes that mention one

    Returns:
        The message; unknown codes are returned unchanged
    """
    messages = {
        # Tokenizer
        "eof-in-tag": "Unexpected end of file in tag",
        "eof-in-comment": "Unexpected end of file in comment",
        "eof-in-cdata": "Unexpected end of file in CDATA section",
        "eof-in-doctype": "Unexpected end of file in DOCTYPE declaration",
        "eof-in-raw-text": f"Unexpected end of file in <{tag_name}> content",
        "invalid-first-character-of-tag-name": "Invalid first character of tag name, treated as text",
        "unexpected-character-in-tag": f"Unexpected < inside <{tag_name}> tag",
        "duplicate-attribute": "Duplicate attribute name, last value wins",
        "missing-whitespace-between-attributes": "Missing whitespace between attributes",
        "unterminated-attribute-value": "Quoted attribute value is missing its closing quote",
        "unterminated-ignore-block": "Template block is not closed before the next tag",
        # Tree builder
        "unexpected-end-tag": f"Unexpected </{tag_name}> end tag ignored",
        "end-tag-too-early": f"</{tag_name}> end tag closed unclosed children",
        "expected-closing-tag-but-got-eof": f"Expected </{tag_name}> closing tag but reached end of file",
    }

    return messages.get(code, code)
