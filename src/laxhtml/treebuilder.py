from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .constants import IMPLICITLY_CLOSED_BY
from .errors import generate_error_message
from .node import (
    CDataNode,
    CommentNode,
    ContainerNode,
    DoctypeNode,
    ElementNode,
    EndTagNode,
    Node,
    NodeKind,
    RootNode,
    TextNode,
)
from .options import ParseOptions
from .tokens import CDataToken, Characters, CommentToken, DoctypeToken, ParseError, RawText, Tag

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)


class TreeBuilder:
    """Build a node tree from the token stream.

    The builder keeps a stack of open elements. A start tag nests under the
    current element, after popping the elements it implicitly closes
    (``<li>`` closes an open ``<li>``, ``<td>`` an open ``<td>`` and so on).
    An end tag closes the nearest open element with that name; an end tag
    that matches nothing closes nothing and is kept as an ``EndTagNode``.
    Whatever is still open at the end of input is closed there.
    """

    __slots__ = ("collect_errors", "document", "errors", "open_elements", "options", "tokenizer")

    collect_errors: bool
    document: RootNode
    errors: list[ParseError]
    open_elements: list[ElementNode]
    options: ParseOptions
    tokenizer: Tokenizer | None

    def __init__(self, options: ParseOptions | None = None, collect_errors: bool = False) -> None:
        self.options = options or ParseOptions()
        self.collect_errors = collect_errors
        self.errors = []
        self.tokenizer = None  # Set by parser after tokenizer is created
        self.document = RootNode(self.options)
        self.open_elements = []

    def _parse_error(self, code: str, tag_name: str | None = None) -> None:
        if not self.collect_errors:
            return
        line = column = None
        source_html = None
        if self.tokenizer is not None:
            # The tokenizer has just consumed the offending token.
            line, column = self.tokenizer.position()
            source_html = self.tokenizer.buffer
        message = generate_error_message(code, tag_name)
        self.errors.append(ParseError(code, line=line, column=column, message=message, source_html=source_html))

    def build(self, tokens: Iterable[Any]) -> RootNode:
        for token in tokens:
            self.process_token(token)
        return self.finish()

    def process_token(self, token: Any) -> None:
        if isinstance(token, Characters):
            self._append_text(token.data)
        elif isinstance(token, Tag):
            if token.kind == Tag.START:
                self._start_tag(token)
            else:
                self._end_tag(token)
        elif isinstance(token, RawText):
            stack = self.open_elements
            if stack and stack[-1].raw_text is not None:
                stack[-1].raw_text += token.data
            else:
                self._append_text(token.data)
        elif isinstance(token, CommentToken):
            self._insert(CommentNode(token.data, token.opener, token.closer))
        elif isinstance(token, CDataToken):
            self._insert(CDataNode(token.data, token.closed))
        elif isinstance(token, DoctypeToken):
            self._insert(DoctypeNode(token.data, token.closed))

    def finish(self) -> RootNode:
        if self.open_elements:
            for node in reversed(self.open_elements):
                self._parse_error("expected-closing-tag-but-got-eof", tag_name=node.tag)
            logger.debug("Closed %d unclosed element(s) at end of input", len(self.open_elements))
            self.open_elements.clear()
        return self.document

    # ---------------------
    # Insertion
    # ---------------------

    def _current_node(self) -> ContainerNode:
        stack = self.open_elements
        # A raw-text element only ever receives its own content.
        while stack and stack[-1].raw_text is not None:
            stack.pop()
        if stack:
            return stack[-1]
        return self.document

    def _insert(self, node: Node, target: ContainerNode | None = None) -> None:
        # Nodes remember their options so they outlive a discarded document.
        node._parse_options = self.options
        if target is None:
            target = self._current_node()
        target._adopt(node)

    def _append_text(self, text: str) -> None:
        if not text:
            return
        target = self._current_node()
        children = target.children
        if children and children[-1].kind is NodeKind.TEXT:
            children[-1].raw_text += text
            return
        self._insert(TextNode(text), target)

    def _start_tag(self, tag: Tag) -> None:
        closes = IMPLICITLY_CLOSED_BY.get(tag.name)
        if closes:
            stack = self.open_elements
            while stack and stack[-1].tag in closes:
                stack.pop()

        node = ElementNode.from_token(tag, self.options.raw_text_tags)
        self._insert(node)
        if not node.is_void:
            self.open_elements.append(node)

    def _end_tag(self, tag: Tag) -> None:
        stack = self.open_elements
        name = tag.name
        for index in range(len(stack) - 1, -1, -1):
            if stack[index].tag == name:
                break
        else:
            self._parse_error("unexpected-end-tag", tag_name=name)
            # Closes nothing, but stays in the tree for serialization.
            self._insert(EndTagNode(tag.source()))
            return

        if index != len(stack) - 1:
            self._parse_error("end-tag-too-early", tag_name=name)
        stack[index].end_tag = tag.source()
        del stack[index:]
