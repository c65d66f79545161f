from __future__ import annotations

from typing import Literal


class Attribute:
    """One attribute of a start tag, with the spelling it had in the source."""

    __slots__ = ("before", "close_quote", "equals", "name", "quote", "value")

    name: str
    value: str | None
    before: str
    equals: str
    quote: str
    close_quote: str

    def __init__(
        self,
        name: str,
        value: str | None = None,
        before: str = " ",
        equals: str | None = None,
        quote: str | None = None,
        close_quote: str | None = None,
    ) -> None:
        self.name = name
        self.value = value
        self.before = before
        if value is None:
            self.equals = ""
            self.quote = ""
            self.close_quote = ""
        else:
            self.equals = "=" if equals is None else equals
            self.quote = '"' if quote is None else quote
            self.close_quote = self.quote if close_quote is None else close_quote

    @property
    def key(self) -> str:
        return self.name.lower()

    def to_source(self) -> str:
        if self.value is None:
            return f"{self.before}{self.name}"
        value = self.value
        # Parsed values never contain their closing quote; values set through
        # the API may contain both quote kinds.
        if self.close_quote and self.close_quote in value:
            value = value.replace(self.close_quote, "&quot;" if self.close_quote == '"' else "&#39;")
        return f"{self.before}{self.name}{self.equals}{self.quote}{value}{self.close_quote}"

    def __repr__(self) -> str:
        return f"Attribute({self.name!r}, {self.value!r})"


class Tag:
    __slots__ = ("attrs", "kind", "name", "raw_name", "self_closing", "tail")

    START: Literal[0] = 0
    END: Literal[1] = 1

    kind: int
    name: str
    raw_name: str
    attrs: list[Attribute]
    self_closing: bool
    tail: str

    def __init__(
        self,
        kind: int,
        raw_name: str,
        attrs: list[Attribute] | None = None,
        self_closing: bool = False,
        tail: str = ">",
    ) -> None:
        self.kind = kind
        self.raw_name = raw_name
        self.name = raw_name.lower()
        self.attrs = attrs if attrs is not None else []
        self.self_closing = bool(self_closing)
        # Everything after the last attribute (or the name) up to and
        # including ">"; empty when the tag was cut off.
        self.tail = tail

    def source(self) -> str:
        if self.kind == Tag.END:
            return f"</{self.raw_name}{self.tail}"
        attrs = "".join(attr.to_source() for attr in self.attrs)
        return f"<{self.raw_name}{attrs}{self.tail}"

    def __repr__(self) -> str:
        kind = "start" if self.kind == Tag.START else "end"
        return f"Tag({kind}, {self.name!r}, {self.attrs!r})"


class Characters:
    __slots__ = ("data",)

    data: str

    def __init__(self, data: str) -> None:
        self.data = data

    def __repr__(self) -> str:
        return f"Characters({self.data!r})"


class RawText:
    """Verbatim content of a raw-text element such as ``script``."""

    __slots__ = ("data",)

    data: str

    def __init__(self, data: str) -> None:
        self.data = data

    def __repr__(self) -> str:
        return f"RawText({self.data!r})"


class CommentToken:
    __slots__ = ("closer", "data", "opener")

    data: str
    opener: str
    closer: str

    def __init__(self, data: str, opener: str = "<!--", closer: str = "-->") -> None:
        self.data = data
        self.opener = opener
        self.closer = closer

    def __repr__(self) -> str:
        return f"CommentToken({self.data!r})"


class CDataToken:
    __slots__ = ("closed", "data")

    data: str
    closed: bool

    def __init__(self, data: str, closed: bool = True) -> None:
        self.data = data
        self.closed = closed


class DoctypeToken:
    __slots__ = ("closed", "data")

    # Text between "<!" and ">", e.g. "DOCTYPE html".
    data: str
    closed: bool

    def __init__(self, data: str, closed: bool = True) -> None:
        self.data = data
        self.closed = closed


Token = Tag | Characters | RawText | CommentToken | CDataToken | DoctypeToken


class ParseError:
    """A recovery performed while parsing, with its location in the source."""

    __slots__ = ("_source_html", "code", "column", "line", "message")

    code: str
    line: int | None
    column: int | None
    message: str
    _source_html: str | None

    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    def __init__(
        self,
        code: str,
        line: int | None = None,
        column: int | None = None,
        message: str | None = None,
        source_html: str | None = None,
    ) -> None:
        self.code = code
        self.line = line
        self.column = column
        self.message = message or code
        self._source_html = source_html

    @property
    def located(self) -> bool:
        return self.line is not None and self.column is not None

    def __repr__(self) -> str:
        where = f", line={self.line}, column={self.column}" if self.located else ""
        return f"ParseError({self.code!r}{where})"

    def __str__(self) -> str:
        where = f"({self.line},{self.column}): " if self.located else ""
        detail = f" - {self.message}" if self.message != self.code else ""
        return f"{where}{self.code}{detail}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return self.code == other.code and self.line == other.line and self.column == other.column

    def as_exception(self) -> SyntaxError:
        """Convert to a SyntaxError pointing at the offending source line."""
        exc = SyntaxError(self.message)
        exc.msg = self.message
        if not self.located or not self._source_html:
            return exc

        lines = self._source_html.splitlines()
        if not 1 <= self.line <= len(lines):
            return exc

        exc.filename = "<html>"
        exc.lineno = self.line
        exc.offset = self.column
        exc.text = lines[self.line - 1]
        return exc
