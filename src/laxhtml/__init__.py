from .node import (
    CDataNode,
    CommentNode,
    ContainerNode,
    DoctypeNode,
    ElementNode,
    EndTagNode,
    Node,
    NodeError,
    NodeKind,
    RootNode,
    TextNode,
)
from .options import IgnoreBlockMode, ParseOptions, default_options
from .parser import LaxHTML, StrictModeError, load_file, parse, parse_fragment
from .selector import SelectorError, matches, parse_selector, query
from .stream import stream
from .tokens import ParseError

__all__ = [
    "CDataNode",
    "CommentNode",
    "ContainerNode",
    "DoctypeNode",
    "ElementNode",
    "EndTagNode",
    "IgnoreBlockMode",
    "LaxHTML",
    "Node",
    "NodeError",
    "NodeKind",
    "ParseError",
    "ParseOptions",
    "RootNode",
    "SelectorError",
    "StrictModeError",
    "TextNode",
    "default_options",
    "load_file",
    "matches",
    "parse",
    "parse_fragment",
    "parse_selector",
    "query",
    "stream",
]
