"""Serialization of laxhtml nodes to markup and to plain text."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from .constants import (
    BLOCK_ELEMENTS,
    HIDDEN_TEXT_ELEMENTS,
    LIST_ITEM_ELEMENTS,
    PRESERVE_WHITESPACE_ELEMENTS,
    TABLE_CELL_ELEMENTS,
)
from .entities import decode_entities_in_text

if TYPE_CHECKING:
    from .options import ParseOptions

# Only ASCII whitespace collapses; U+00A0 from &nbsp; survives.
_COLLAPSIBLE_WHITESPACE = re.compile(r"[ \t\n\r\f]+")
_EDGE_WHITESPACE = " \t\n\r\f"


def to_outertext(node: Any) -> str:
    """Serialize ``node`` as markup, using the source spelling it was parsed with."""
    parts: list[str] = []
    # Iterative walk: malformed pages can nest thousands of unclosed elements.
    stack: list[Any] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, str):
            parts.append(current)
            continue

        name: str = current.name
        if name == "#text" or name == "#endtag":
            parts.append(current.raw_text)
        elif name == "#comment":
            parts.append(f"{current.opener}{current.raw_text}{current.closer}")
        elif name == "#cdata":
            parts.append(f"<![CDATA[{current.raw_text}{']]>' if current.closed else ''}")
        elif name == "!doctype":
            parts.append(f"<!{current.raw_text}{'>' if current.closed else ''}")
        elif name == "#document":
            stack.extend(reversed(current.children))
        else:
            parts.append(current.start_tag_source())
            end_tag = current.end_tag_source()
            if end_tag:
                stack.append(end_tag)
            if current.raw_text is not None:
                parts.append(current.raw_text)
            else:
                stack.extend(reversed(current.children))
    return "".join(parts)


def to_innertext(node: Any) -> str:
    """Serialize the content of ``node`` without its own tags."""
    raw_text = getattr(node, "raw_text", None)
    if node.name.startswith(("#", "!")) and node.name != "#document":
        # Leaves have no children
        return ""
    if raw_text is not None:
        return str(raw_text)
    return "".join(to_outertext(child) for child in node.children)


# Pending separators, in increasing priority
_NO_BREAK = 0
_SPACE = 1
_ITEM_BREAK = 2
_BLOCK_BREAK = 3


class _TextBuilder:
    """Accumulates plain text, deferring separators until more text arrives.

    Separators requested before the first text or after the last one are
    dropped, so the result never starts or ends with one.
    """

    __slots__ = ("_at_line_start", "_block_break", "_buf", "_has_content", "_item_break", "_pending")

    _buf: list[str]
    _pending: int
    _has_content: bool
    _at_line_start: bool
    _item_break: str
    _block_break: str

    def __init__(self, options: ParseOptions) -> None:
        self._buf = []
        self._pending = _NO_BREAK
        self._has_content = False
        self._at_line_start = True
        self._item_break = options.block_break_text
        self._block_break = "\n\n"

    def request(self, separator: int) -> None:
        if separator > self._pending:
            self._pending = separator

    def _flush_pending(self) -> None:
        pending = self._pending
        self._pending = _NO_BREAK
        if not self._has_content:
            return
        if pending == _BLOCK_BREAK:
            self._buf.append(self._block_break)
            self._at_line_start = True
        elif pending == _ITEM_BREAK:
            self._buf.append(self._item_break)
            self._at_line_start = True
        elif pending == _SPACE and not self._at_line_start:
            self._buf.append(" ")

    def _emit(self, text: str) -> None:
        self._flush_pending()
        self._buf.append(text)
        self._has_content = True
        self._at_line_start = False

    def text(self, data: str) -> None:
        """Append text, collapsing runs of whitespace to single spaces."""
        if not data:
            return
        if data[0] in _EDGE_WHITESPACE:
            self.request(_SPACE)
        words = _COLLAPSIBLE_WHITESPACE.split(data.strip(_EDGE_WHITESPACE))
        for index, word in enumerate(words):
            if not word:
                continue
            if index:
                self.request(_SPACE)
            self._emit(word)
        if data[-1] in _EDGE_WHITESPACE:
            self.request(_SPACE)

    def preformatted(self, data: str) -> None:
        if data:
            self._emit(data)

    def line_break(self, text: str) -> None:
        if self._pending == _SPACE:
            self._pending = _NO_BREAK
        self._emit(text)
        self._at_line_start = True

    def finish(self) -> str:
        return "".join(self._buf).strip(_EDGE_WHITESPACE)


def to_plaintext(node: Any, options: ParseOptions) -> str:
    """Render ``node`` as readable text.

    Markup is dropped and character references are decoded. Whitespace
    collapses except inside ``pre`` and ``textarea``. Block elements are
    separated by a blank line, list items and table rows by
    ``options.block_break_text``, table cells by a space; ``br`` becomes
    ``options.inline_break_text``. Scripts, styles, comments and doctypes
    contribute nothing.
    """
    builder = _TextBuilder(options)
    preserve_depth = 0
    # Entries are nodes to enter, or (element,) tuples marking its exit.
    stack: list[Any] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, tuple):
            element = current[0]
            tag = element.tag
            if tag in PRESERVE_WHITESPACE_ELEMENTS:
                preserve_depth -= 1
            if tag in BLOCK_ELEMENTS:
                builder.request(_BLOCK_BREAK)
            elif tag in LIST_ITEM_ELEMENTS:
                builder.request(_ITEM_BREAK)
            elif tag in TABLE_CELL_ELEMENTS:
                builder.request(_SPACE)
            continue

        name: str = current.name
        if name == "#text":
            text = decode_entities_in_text(current.raw_text)
            if preserve_depth:
                builder.preformatted(text)
            else:
                builder.text(text)
            continue
        if name == "#cdata":
            builder.text(current.raw_text)
            continue
        if name == "#document":
            stack.extend(reversed(current.children))
            continue
        if name.startswith(("#", "!")):
            # Comments and doctypes
            continue

        tag = current.tag
        if tag in HIDDEN_TEXT_ELEMENTS:
            continue
        if tag == "br":
            builder.line_break(options.inline_break_text)
            continue
        if tag in BLOCK_ELEMENTS:
            builder.request(_BLOCK_BREAK)
        elif tag in LIST_ITEM_ELEMENTS:
            builder.request(_ITEM_BREAK)
        elif tag in TABLE_CELL_ELEMENTS:
            builder.request(_SPACE)

        stack.append((current,))
        if tag in PRESERVE_WHITESPACE_ELEMENTS:
            preserve_depth += 1
        if current.raw_text is not None:
            text = decode_entities_in_text(current.raw_text)
            if preserve_depth:
                builder.preformatted(text)
            else:
                builder.text(text)
        else:
            stack.extend(reversed(current.children))

    return builder.finish()
