"""laxhtml parser entry points."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from .options import ParseOptions, default_options
from .tokenizer import Tokenizer
from .treebuilder import TreeBuilder

if TYPE_CHECKING:
    from os import PathLike

    from .node import Node, RootNode
    from .tokens import ParseError


class StrictModeError(SyntaxError):
    """The first recovery of a ``strict=True`` parse, raised as an exception.

    As a SyntaxError it carries the line, column and source line of the
    offending markup, so tracebacks point at it.
    """

    error: ParseError

    def __init__(self, error: ParseError) -> None:
        self.error = error
        exc = error.as_exception()
        super().__init__(exc.msg)
        # Location fields, for traceback display
        self.filename = exc.filename
        self.lineno = exc.lineno
        self.offset = exc.offset
        self.text = exc.text


class LaxHTML:
    """A parsed document.

    Parsing never fails on malformed markup. With ``collect_errors=True`` the
    recoveries the parser performed are listed in :attr:`errors`; with
    ``strict=True`` the first one is raised as :class:`StrictModeError`.
    """

    __slots__ = ("errors", "options", "root", "tokenizer", "tree_builder")

    errors: list[ParseError]
    options: ParseOptions
    root: RootNode
    tokenizer: Tokenizer
    tree_builder: TreeBuilder

    def __init__(
        self,
        html: str | None,
        options: ParseOptions | None = None,
        *,
        collect_errors: bool = False,
        strict: bool = False,
    ) -> None:
        if isinstance(html, (bytes, bytearray, memoryview)):
            raise TypeError("LaxHTML expects decoded text; decode bytes before parsing")
        html_str = str(html) if html is not None else ""

        self.options = options or default_options()

        # Strict mode needs the errors to pick the first one
        should_collect = collect_errors or strict

        self.tree_builder = TreeBuilder(self.options, collect_errors=should_collect)
        self.tokenizer = Tokenizer(self.options, collect_errors=should_collect)
        # Tree builder errors take their position from the tokenizer
        self.tree_builder.tokenizer = self.tokenizer

        self.root = self.tree_builder.build(self.tokenizer.tokenize(html_str))

        # Tokenizer errors first, then tree builder errors
        self.errors = self.tokenizer.errors + self.tree_builder.errors

        if strict and self.errors:
            raise StrictModeError(self.errors[0])

    def find(self, selector: str, index: int | None = None) -> Any:
        """Find elements by CSS selector. Delegates to root.find()."""
        return self.root.find(selector, index)

    def query(self, selector: str) -> list[Any]:
        """All elements matching ``selector``, in document order."""
        return self.root.query(selector)

    def get_element_by_id(self, element_id: str) -> Any:
        return self.root.get_element_by_id(element_id)

    def outertext(self) -> str:
        return self.root.outertext()

    def innertext(self) -> str:
        return self.root.innertext()

    def plaintext(self) -> str:
        return self.root.plaintext()

    def __str__(self) -> str:
        return self.root.outertext()


def parse(
    html: str | None,
    options: ParseOptions | None = None,
    *,
    collect_errors: bool = False,
    strict: bool = False,
) -> LaxHTML:
    """Parse ``html`` into a :class:`LaxHTML` document."""
    return LaxHTML(html, options, collect_errors=collect_errors, strict=strict)


def parse_fragment(html: str, options: ParseOptions | None = None) -> list[Node]:
    """Parse ``html`` and return its top-level nodes, detached from any tree."""
    builder = TreeBuilder(options)
    root = builder.build(Tokenizer(builder.options).tokenize(html))
    nodes = list(root.children)
    for node in nodes:
        root.remove_child(node)
    return nodes


def load_file(
    path: str | PathLike[str],
    options: ParseOptions | None = None,
    *,
    encoding: str = "utf-8",
    collect_errors: bool = False,
    strict: bool = False,
) -> LaxHTML:
    """Read a local file and parse it."""
    html = Path(path).read_text(encoding=encoding)
    return LaxHTML(html, options, collect_errors=collect_errors, strict=strict)
