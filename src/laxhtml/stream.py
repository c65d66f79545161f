from __future__ import annotations

from collections.abc import Generator
from typing import Any

from .options import ParseOptions
from .tokenizer import Tokenizer
from .tokens import CDataToken, Characters, CommentToken, DoctypeToken, RawText, Tag

# Type alias for stream events
StreamEvent = tuple[str, Any]


def stream(html: str, options: ParseOptions | None = None) -> Generator[StreamEvent, None, None]:
    """
    Stream HTML events from the given HTML string, without building a tree.

    Yields tuples of (event_type, data):

    - ``("start", (tag, attrs))`` with ``attrs`` mapping lowercased names to
      values (``None`` for boolean attributes)
    - ``("end", tag)``
    - ``("text", str)``, ``("rawtext", str)``, ``("comment", str)``,
      ``("cdata", str)``, ``("doctype", str)``
    """
    tokenizer = Tokenizer(options)
    for token in tokenizer.tokenize(html):
        if isinstance(token, Tag):
            if token.kind == Tag.START:
                yield ("start", (token.name, {attr.key: attr.value for attr in token.attrs}))
            else:
                yield ("end", token.name)
        elif isinstance(token, Characters):
            yield ("text", token.data)
        elif isinstance(token, RawText):
            yield ("rawtext", token.data)
        elif isinstance(token, CommentToken):
            yield ("comment", token.data)
        elif isinstance(token, CDataToken):
            yield ("cdata", token.data)
        elif isinstance(token, DoctypeToken):
            yield ("doctype", token.data)
