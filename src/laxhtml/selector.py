# CSS selector implementation for laxhtml
# Supports the selector subset scrapers use, plus a few jQuery-style extras
# ([attr!=v], [!attr], a leading combinator relative to the starting node).

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Callable, Iterator
from typing import Any

from .constants import CASE_INSENSITIVE_ATTRIBUTES

logger = logging.getLogger(__name__)


class SelectorError(ValueError):
    """Raised when a CSS selector is invalid."""


class TokenType:
    TAG: str = "TAG"
    ID: str = "ID"
    CLASS: str = "CLASS"
    UNIVERSAL: str = "UNIVERSAL"
    ATTR: str = "ATTR"  # value: (name, operator, value, flag)
    PSEUDO: str = "PSEUDO"  # value: (name, argument)
    COMBINATOR: str = "COMBINATOR"  # " ", ">", "+" or "~"
    COMMA: str = "COMMA"
    EOF: str = "EOF"


class Token:
    __slots__ = ("type", "value")

    type: str
    value: Any

    def __init__(self, token_type: str, value: Any = None) -> None:
        self.type = token_type
        self.value = value

    def __repr__(self) -> str:
        if self.value is None:
            return self.type
        return f"{self.type}({self.value!r})"


_WHITESPACE = " \t\n\r\f"
# Characters that end an attribute name inside [...]
_ATTR_NAME_STOP = _WHITESPACE + "]=!~|^$*"
_ATTR_OPERATORS = ("!=", "~=", "|=", "^=", "$=", "*=", "=")
_NAME_PATTERN = re.compile(r"[\w\-\u0080-\U0010ffff]+")


class SelectorTokenizer:
    """Splits a selector string into tokens; raises SelectorError on garbage."""

    __slots__ = ("length", "pos", "selector")

    selector: str
    pos: int
    length: int

    def __init__(self, selector: str) -> None:
        self.selector = selector
        self.pos = 0
        self.length = len(selector)

    def _peek(self) -> str:
        return self.selector[self.pos] if self.pos < self.length else ""

    def _skip_whitespace(self) -> None:
        while self.pos < self.length and self.selector[self.pos] in _WHITESPACE:
            self.pos += 1

    def _read_name(self) -> str:
        match = _NAME_PATTERN.match(self.selector, self.pos)
        if match is None:
            return ""
        self.pos = match.end()
        return match.group(0)

    def _read_string(self, quote: str) -> str:
        # A backslash escapes the next character, quotes included.
        chars: list[str] = []
        pos = self.pos + 1
        while pos < self.length:
            ch = self.selector[pos]
            if ch == quote:
                self.pos = pos + 1
                return "".join(chars)
            if ch == "\\" and pos + 1 < self.length:
                pos += 1
                ch = self.selector[pos]
            chars.append(ch)
            pos += 1
        raise SelectorError(f"Unterminated string in selector: {self.selector!r}")

    def _read_attribute(self) -> Token:
        # Called with pos just after "["
        self._skip_whitespace()
        negated = self._peek() == "!"
        if negated:
            self.pos += 1
            self._skip_whitespace()

        start = self.pos
        while self.pos < self.length and self.selector[self.pos] not in _ATTR_NAME_STOP:
            self.pos += 1
        name = self.selector[start : self.pos].lower()
        if not name:
            raise SelectorError(f"Expected attribute name at position {self.pos}")
        self._skip_whitespace()

        operator: str | None = "!" if negated else None
        value: str | None = None
        flag: str | None = None

        if not negated and self._peek() != "]":
            operator = next((op for op in _ATTR_OPERATORS if self.selector.startswith(op, self.pos)), None)
            if operator is None:
                raise SelectorError(f"Unexpected character in attribute selector: {self._peek()!r}")
            self.pos += len(operator)
            self._skip_whitespace()

            quote = self._peek()
            if quote in ("'", '"'):
                value = self._read_string(quote)
            else:
                start = self.pos
                while self.pos < self.length and self.selector[self.pos] not in _WHITESPACE + "]":
                    self.pos += 1
                value = self.selector[start : self.pos]

            self._skip_whitespace()
            if self._peek().lower() in ("i", "s"):
                flag = self._peek().lower()
                self.pos += 1
                self._skip_whitespace()

        if self._peek() != "]":
            raise SelectorError(f"Expected ] at position {self.pos}")
        self.pos += 1
        return Token(TokenType.ATTR, (name, operator, value, flag))

    def _read_pseudo(self) -> Token:
        # Called with pos just after ":"
        name = self._read_name().lower()
        if not name:
            raise SelectorError(f"Expected pseudo-class name after : at position {self.pos}")
        if self._peek() != "(":
            return Token(TokenType.PSEUDO, (name, None))

        self.pos += 1
        arg_start = self.pos
        depth = 1
        while self.pos < self.length:
            ch = self.selector[self.pos]
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if not depth:
                    arg = self.selector[arg_start : self.pos].strip()
                    self.pos += 1
                    return Token(TokenType.PSEUDO, (name, arg))
            self.pos += 1
        raise SelectorError(f"Expected ) at position {self.pos}")

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        saw_space = False

        while self.pos < self.length:
            ch = self.selector[self.pos]

            if ch in _WHITESPACE:
                saw_space = True
                self._skip_whitespace()
                continue

            if ch in ">+~,":
                self.pos += 1
                self._skip_whitespace()
                tokens.append(Token(TokenType.COMMA) if ch == "," else Token(TokenType.COMBINATOR, ch))
                saw_space = False
                continue

            # Whitespace between two compounds is the descendant combinator.
            if saw_space and tokens and tokens[-1].type != TokenType.COMMA:
                tokens.append(Token(TokenType.COMBINATOR, " "))
            saw_space = False

            if ch == "*":
                self.pos += 1
                tokens.append(Token(TokenType.UNIVERSAL))
            elif ch in "#.":
                self.pos += 1
                name = self._read_name()
                if not name:
                    raise SelectorError(f"Expected identifier after {ch} at position {self.pos}")
                tokens.append(Token(TokenType.ID if ch == "#" else TokenType.CLASS, name))
            elif ch == "[":
                self.pos += 1
                tokens.append(self._read_attribute())
            elif ch == ":":
                self.pos += 1
                tokens.append(self._read_pseudo())
            elif ch.isalpha() or ch == "_" or ord(ch) > 127:
                tokens.append(Token(TokenType.TAG, self._read_name().lower()))
            else:
                raise SelectorError(f"Unexpected character {ch!r} at position {self.pos}")

        tokens.append(Token(TokenType.EOF))
        return tokens


class SimpleSelector:
    """One tag, id, class, attribute or pseudo-class test."""

    __slots__ = ("arg", "flag", "name", "operator", "type", "value")

    TYPE_TAG: str = "tag"
    TYPE_ID: str = "id"
    TYPE_CLASS: str = "class"
    TYPE_UNIVERSAL: str = "universal"
    TYPE_ATTR: str = "attr"
    TYPE_PSEUDO: str = "pseudo"

    type: str
    name: str | None
    operator: str | None
    value: str | None
    flag: str | None
    arg: Any

    def __init__(
        self,
        selector_type: str,
        name: str | None = None,
        operator: str | None = None,
        value: str | None = None,
        flag: str | None = None,
        arg: Any = None,
    ) -> None:
        self.type = selector_type
        self.name = name
        self.operator = operator
        self.value = value
        self.flag = flag
        # Pre-parsed argument: a SelectorList for :not(), an (a, b) pair for :nth-*()
        self.arg = arg

    def __repr__(self) -> str:
        fields = {"name": self.name, "op": self.operator, "value": self.value, "flag": self.flag, "arg": self.arg}
        shown = ", ".join(f"{key}={value!r}" for key, value in fields.items() if value is not None)
        return f"SimpleSelector({self.type!r}{', ' + shown if shown else ''})"


class CompoundSelector:
    """Simple selectors that must all hold for one element (``div.foo#bar``)."""

    __slots__ = ("selectors",)

    selectors: list[SimpleSelector]

    def __init__(self, selectors: list[SimpleSelector] | None = None) -> None:
        self.selectors = selectors or []

    def __repr__(self) -> str:
        return f"CompoundSelector({self.selectors!r})"


class ComplexSelector:
    """Compound selectors joined by combinators.

    ``parts`` holds ``(combinator, compound)`` pairs left to right; the first
    pair's combinator is ``None``.
    """

    __slots__ = ("parts",)

    parts: list[tuple[str | None, CompoundSelector]]

    def __init__(self, parts: list[tuple[str | None, CompoundSelector]] | None = None) -> None:
        self.parts = parts or []

    def __repr__(self) -> str:
        return f"ComplexSelector({self.parts!r})"


class SelectorList:
    """Comma-separated complex selectors; an element matches if any does."""

    __slots__ = ("selectors",)

    selectors: list[ComplexSelector]

    def __init__(self, selectors: list[ComplexSelector] | None = None) -> None:
        self.selectors = selectors or []

    def __repr__(self) -> str:
        return f"SelectorList({self.selectors!r})"


_SIMPLE_PSEUDO_CLASSES = frozenset(
    {
        "first-child",
        "last-child",
        "only-child",
        "first-of-type",
        "last-of-type",
        "only-of-type",
        "empty",
        "root",
        "scope",
    }
)
_NTH_PSEUDO_CLASSES = frozenset({"nth-child", "nth-last-child", "nth-of-type", "nth-last-of-type"})

_SIMPLE_TOKEN_TYPES = {
    TokenType.TAG: SimpleSelector.TYPE_TAG,
    TokenType.UNIVERSAL: SimpleSelector.TYPE_UNIVERSAL,
    TokenType.ID: SimpleSelector.TYPE_ID,
    TokenType.CLASS: SimpleSelector.TYPE_CLASS,
}


class SelectorParser:
    """Builds a SelectorList from the token list."""

    __slots__ = ("pos", "tokens")

    tokens: list[Token]
    pos: int

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    def _peek(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return Token(TokenType.EOF)

    def _advance(self) -> Token:
        token = self._peek()
        self.pos += 1
        return token

    def parse(self) -> SelectorList:
        selectors = [self._parse_complex_selector()]
        while self._peek().type == TokenType.COMMA:
            self._advance()
            selectors.append(self._parse_complex_selector())

        if self._peek().type != TokenType.EOF:
            raise SelectorError(f"Unexpected token: {self._peek()!r}")
        return SelectorList(selectors)

    def _parse_complex_selector(self) -> ComplexSelector:
        if self._peek().type == TokenType.COMBINATOR:
            # "> p" is relative to the node the query starts from.
            first = CompoundSelector([SimpleSelector(SimpleSelector.TYPE_PSEUDO, name="scope")])
        else:
            first = self._parse_compound_selector()
            if first is None:
                raise SelectorError(f"Expected selector, got {self._peek()!r}")
        parts: list[tuple[str | None, CompoundSelector]] = [(None, first)]

        while self._peek().type == TokenType.COMBINATOR:
            combinator = self._advance().value
            compound = self._parse_compound_selector()
            if compound is None:
                raise SelectorError(f"Expected selector after {combinator!r} combinator")
            parts.append((combinator, compound))

        return ComplexSelector(parts)

    def _parse_compound_selector(self) -> CompoundSelector | None:
        simple_selectors: list[SimpleSelector] = []

        while True:
            token = self._peek()
            if token.type in _SIMPLE_TOKEN_TYPES:
                simple = SimpleSelector(_SIMPLE_TOKEN_TYPES[token.type], name=token.value)
            elif token.type == TokenType.ATTR:
                name, operator, value, flag = token.value
                simple = SimpleSelector(SimpleSelector.TYPE_ATTR, name=name, operator=operator, value=value, flag=flag)
            elif token.type == TokenType.PSEUDO:
                simple = self._parse_pseudo_selector(*token.value)
            else:
                break
            simple_selectors.append(simple)
            self._advance()

        return CompoundSelector(simple_selectors) if simple_selectors else None

    def _parse_pseudo_selector(self, name: str, arg: str | None) -> SimpleSelector:
        """Validate a pseudo-class and parse its argument up front."""
        if name in _SIMPLE_PSEUDO_CLASSES:
            if arg is not None:
                raise SelectorError(f"Pseudo-class :{name} takes no argument")
            return SimpleSelector(SimpleSelector.TYPE_PSEUDO, name=name)

        if name == "not":
            if not arg:
                raise SelectorError(":not() requires a selector")
            return SimpleSelector(SimpleSelector.TYPE_PSEUDO, name=name, arg=parse_selector(arg))

        if name in _NTH_PSEUDO_CLASSES:
            return SimpleSelector(SimpleSelector.TYPE_PSEUDO, name=name, arg=parse_nth_expression(arg))

        raise SelectorError(f"Unsupported pseudo-class: :{name}")


def parse_nth_expression(expr: str | None) -> tuple[int, int]:
    """Parse an An+B expression (``2n+1``, ``-n+3``, ``odd``, ``even``, ``3``) into ``(a, b)``."""
    if not expr:
        raise SelectorError("Missing An+B expression")

    expr = expr.lower().replace(" ", "")
    if expr == "odd":
        return (2, 1)
    if expr == "even":
        return (2, 0)

    a_part, has_n, b_part = expr.partition("n")
    try:
        if not has_n:
            return (0, int(expr))
        a = {"": 1, "+": 1, "-": -1}.get(a_part)
        if a is None:
            a = int(a_part)
        return (a, int(b_part) if b_part else 0)
    except ValueError:
        raise SelectorError(f"Invalid An+B expression: {expr!r}") from None


def _is_element(node: Any) -> bool:
    return not node.name.startswith(("#", "!"))


def _element_siblings(node: Any) -> list[Any]:
    parent = node.parent
    if parent is None:
        return []
    return [child for child in parent.children if _is_element(child)]


def _preceding_elements(node: Any) -> list[Any]:
    """Element siblings before ``node``, nearest first."""
    preceding: list[Any] = []
    for sibling in _element_siblings(node):
        if sibling is node:
            preceding.reverse()
            return preceding
        preceding.append(sibling)
    return []


def _position(node: Any, of_type: bool, from_end: bool) -> int:
    """1-based position among element siblings; 0 for a detached node."""
    siblings = _element_siblings(node)
    if of_type:
        siblings = [sibling for sibling in siblings if sibling.name == node.name]
    if from_end:
        siblings.reverse()
    for index, sibling in enumerate(siblings, 1):
        if sibling is node:
            return index
    return 0


def _nth_matches(position: int, a: int, b: int) -> bool:
    """Whether ``position == a*n + b`` for some ``n >= 0``."""
    if a == 0:
        return position == b
    n, remainder = divmod(position - b, a)
    return remainder == 0 and n >= 0


def _is_empty(node: Any) -> bool:
    # Comments and whitespace-only text do not count as content.
    if node.raw_text:
        return False
    for child in node.children:
        if _is_element(child) or (child.name == "#text" and child.raw_text.strip()):
            return False
    return True


# pseudo-class -> (count only same-tag siblings, count from the end)
_POSITIONAL_PSEUDO_CLASSES: dict[str, tuple[bool, bool]] = {
    "first-child": (False, False),
    "last-child": (False, True),
    "nth-child": (False, False),
    "nth-last-child": (False, True),
    "first-of-type": (True, False),
    "last-of-type": (True, True),
    "nth-of-type": (True, False),
    "nth-last-of-type": (True, True),
}

_VALUE_TESTS: dict[str, Callable[[str, str], bool]] = {
    "=": lambda actual, wanted: actual == wanted,
    "!=": lambda actual, wanted: actual != wanted,
    "~=": lambda actual, wanted: wanted in actual.split(),
    "|=": lambda actual, wanted: actual == wanted or actual.startswith(wanted + "-"),
    "^=": lambda actual, wanted: bool(wanted) and actual.startswith(wanted),
    "$=": lambda actual, wanted: bool(wanted) and actual.endswith(wanted),
    "*=": lambda actual, wanted: bool(wanted) and wanted in actual,
}


def _matches_attribute(node: Any, selector: SimpleSelector) -> bool:
    name = selector.name or ""
    actual = node.attribute(name)
    operator = selector.operator

    if operator is None:
        return actual is not None
    if operator == "!":
        return actual is None
    if actual is None:
        # jQuery semantics: a missing attribute is "not equal" too
        return operator == "!="

    wanted = selector.value or ""
    if selector.flag == "i" or (selector.flag is None and name in CASE_INSENSITIVE_ATTRIBUTES):
        actual = actual.lower()
        wanted = wanted.lower()
    return _VALUE_TESTS[operator](actual, wanted)


def _combinator_candidates(node: Any, combinator: str | None) -> Iterator[Any]:
    """Nodes that may match the compound to the left of ``combinator``, nearest first."""
    if combinator == " ":
        ancestor = node.parent
        while ancestor is not None:
            yield ancestor
            ancestor = ancestor.parent
    elif combinator == ">":
        if node.parent is not None:
            yield node.parent
    elif combinator == "+":
        yield from _preceding_elements(node)[:1]
    else:
        yield from _preceding_elements(node)


class SelectorMatcher:
    """Matches parsed selectors against nodes, right to left.

    ``scope`` is the node a query started from; it is what ``:scope`` (and a
    leading combinator) refers to.
    """

    __slots__ = ()

    def matches(self, node: Any, selector: SelectorList | ComplexSelector, scope: Any = None) -> bool:
        if isinstance(selector, SelectorList):
            return any(self._matches_complex(node, complex_sel, scope) for complex_sel in selector.selectors)
        return self._matches_complex(node, selector, scope)

    def _matches_complex(self, node: Any, selector: ComplexSelector, scope: Any) -> bool:
        parts = selector.parts
        return self._matches_from(node, parts, len(parts) - 1, scope)

    def _matches_from(
        self, node: Any, parts: list[tuple[str | None, CompoundSelector]], index: int, scope: Any
    ) -> bool:
        """Match ``parts[: index + 1]`` with ``parts[index]`` anchored at ``node``.

        Every candidate for the combinator is tried, so ``.x > .y .z`` still
        matches when the nearest ``.y`` is not the one under ``.x``.
        """
        if not self._matches_compound(node, parts[index][1], scope):
            return False
        if index == 0:
            return True
        combinator = parts[index][0]
        return any(
            self._matches_from(candidate, parts, index - 1, scope)
            for candidate in _combinator_candidates(node, combinator)
        )

    def _matches_compound(self, node: Any, compound: CompoundSelector, scope: Any) -> bool:
        return all(self._matches_simple(node, simple, scope) for simple in compound.selectors)

    def _matches_simple(self, node: Any, selector: SimpleSelector, scope: Any) -> bool:
        kind = selector.type

        # :scope may be the document root, which is not an element.
        if kind == SimpleSelector.TYPE_PSEUDO and selector.name == "scope":
            return node is scope
        if not _is_element(node):
            return False

        if kind == SimpleSelector.TYPE_TAG:
            return bool(node.name == selector.name)
        if kind == SimpleSelector.TYPE_ID:
            return bool(node.attribute("id") == selector.name)
        if kind == SimpleSelector.TYPE_CLASS:
            return selector.name in (node.attribute("class") or "").split()
        if kind == SimpleSelector.TYPE_ATTR:
            return _matches_attribute(node, selector)
        if kind == SimpleSelector.TYPE_PSEUDO:
            return self._matches_pseudo(node, selector, scope)
        return True

    def _matches_pseudo(self, node: Any, selector: SimpleSelector, scope: Any) -> bool:
        name = selector.name or ""

        if name == "not":
            return not self.matches(node, selector.arg, scope)
        if name == "empty":
            return _is_empty(node)
        if name == "root":
            parent = node.parent
            return parent is not None and parent.name == "#document"
        if name in ("only-child", "only-of-type"):
            of_type = name == "only-of-type"
            return _position(node, of_type, False) == 1 and _position(node, of_type, True) == 1

        of_type, from_end = _POSITIONAL_PSEUDO_CLASSES[name]
        position = _position(node, of_type, from_end)
        if not position:
            return False
        if name.startswith("nth-"):
            a, b = selector.arg
            return _nth_matches(position, a, b)
        return position == 1


def parse_selector(selector_string: str) -> SelectorList:
    """Parse a CSS selector string, raising SelectorError when it is invalid."""
    if not selector_string or not selector_string.strip():
        raise SelectorError("Empty selector")

    tokens = SelectorTokenizer(selector_string.strip()).tokenize()
    return SelectorParser(tokens).parse()


@functools.lru_cache(maxsize=256)
def compile_selector(selector_string: str) -> SelectorList:
    """Parse a selector once; an invalid selector becomes an empty list."""
    try:
        return parse_selector(selector_string)
    except SelectorError as exc:
        logger.debug("Invalid selector %r: %s", selector_string, exc)
        return SelectorList()


_matcher: SelectorMatcher = SelectorMatcher()


def query(root: Any, selector_string: str) -> list[Any]:
    """
    Return the descendants of ``root`` matching ``selector_string``.

    ``root`` itself is never part of the result (as with querySelectorAll).
    Each element appears once, in document order, however many selectors of a
    comma list it matches. An invalid selector matches nothing.
    """
    selector = compile_selector(selector_string)
    if not selector.selectors:
        return []

    results: list[Any] = []
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        if not _is_element(node):
            continue
        if _matcher.matches(node, selector, root):
            results.append(node)
        children = node.children
        if children:
            stack.extend(reversed(children))
    return results


def matches(node: Any, selector_string: str) -> bool:
    """
    Check if a node matches a CSS selector.

    Unlike :func:`query`, an invalid selector raises :class:`SelectorError`.
    """
    return _matcher.matches(node, parse_selector(selector_string), node)
