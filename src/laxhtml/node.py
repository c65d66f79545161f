from __future__ import annotations

import enum
import weakref
from typing import TYPE_CHECKING, Any

from .constants import VOID_ELEMENTS
from .selector import query
from .serialize import to_innertext, to_outertext, to_plaintext
from .tokens import Attribute

if TYPE_CHECKING:
    from .options import ParseOptions
    from .tokens import Tag


class NodeKind(enum.Enum):
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"
    CDATA = "cdata"
    DOCTYPE = "doctype"
    END_TAG = "end_tag"
    ROOT = "root"


class NodeError(ValueError):
    """Raised when the tree API is used in a way that would break the tree."""


class Node:
    """Base class for every node in a parsed tree.

    Children are owned by their parent; the reference back to the parent is
    weak, so a subtree that is detached (or whose tree is discarded) does not
    keep its former ancestors alive.

    A node whose document was discarded while it was still attached is
    orphaned: it can be read and serialized, but mutating it raises
    ``NodeError``. Nodes detached with ``remove`` stay mutable.
    """

    __slots__ = ("__weakref__", "_parent", "_parse_options")

    kind: NodeKind
    name: str
    _parent: weakref.ref[ContainerNode] | None
    _parse_options: ParseOptions | None

    def __init__(self) -> None:
        self._parent = None
        self._parse_options = None

    @property
    def parent(self) -> ContainerNode | None:
        if self._parent is None:
            return None
        return self._parent()

    def _set_parent(self, parent: ContainerNode | None) -> None:
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def is_orphaned(self) -> bool:
        """True when an ancestor of this node was garbage-collected."""
        node = self
        while node._parent is not None:
            parent = node._parent()
            if parent is None:
                return True
            node = parent
        return False

    def _check_mutable(self) -> None:
        if self.is_orphaned:
            raise NodeError(f"Node {self.name} belongs to a discarded document and cannot be changed")

    @property
    def children(self) -> list[Any]:
        """Return empty list for leaf nodes."""
        return []

    def has_child_nodes(self) -> bool:
        return False

    def append_child(self, node: Node) -> Node:
        raise NodeError(f"Node {self.name} cannot have children")

    def attribute(self, name: str, default: str | None = None) -> str | None:
        return default

    def has_attribute(self, name: str) -> bool:
        return False

    def set_attribute(self, name: str, value: str | None) -> None:
        raise NodeError(f"Node {self.name} has no attributes")

    def remove_attribute(self, name: str) -> None:
        raise NodeError(f"Node {self.name} has no attributes")

    @property
    def root(self) -> Node:
        node = self
        parent = node.parent
        while parent is not None:
            node = parent
            parent = node.parent
        return node

    @property
    def next_sibling(self) -> Node | None:
        parent = self.parent
        if parent is None:
            return None
        siblings = parent.children
        index = _index_of(siblings, self) + 1
        return siblings[index] if index < len(siblings) else None

    @property
    def previous_sibling(self) -> Node | None:
        parent = self.parent
        if parent is None:
            return None
        siblings = parent.children
        index = _index_of(siblings, self)
        return siblings[index - 1] if index > 0 else None

    def find_ancestor(self, tag: str) -> ElementNode | None:
        """Return the nearest ancestor element with the given tag name."""
        tag = tag.lower()
        parent = self.parent
        while parent is not None:
            if isinstance(parent, ElementNode) and parent.tag == tag:
                return parent
            parent = parent.parent
        return None

    def remove(self) -> Node:
        """Detach this node (and its subtree) from its parent."""
        parent = self.parent
        if parent is None:
            raise NodeError(f"Node {self.name} is not attached to a tree")
        parent.remove_child(self)
        return self

    def options(self) -> ParseOptions:
        """Return the parse options of the tree this node belongs to."""
        root = self.root
        if isinstance(root, RootNode):
            return root.options()
        # Detached or orphaned: use what the subtree was parsed with.
        if root._parse_options is not None:
            return root._parse_options
        from .options import default_options

        return default_options()

    def outertext(self) -> str:
        """Serialize this node, markup included."""
        return to_outertext(self)

    def innertext(self) -> str:
        """Serialize the children of this node."""
        return to_innertext(self)

    def plaintext(self) -> str:
        """Render this node as human-readable text."""
        return to_plaintext(self, self.options())

    def __str__(self) -> str:
        return self.outertext()


class TextNode(Node):
    __slots__ = ("raw_text",)

    kind = NodeKind.TEXT
    name = "#text"
    raw_text: str

    def __init__(self, raw_text: str) -> None:
        super().__init__()
        self.raw_text = raw_text

    def __repr__(self) -> str:
        return f"<TextNode {self.raw_text!r}>"


class CommentNode(Node):
    __slots__ = ("closer", "opener", "raw_text")

    kind = NodeKind.COMMENT
    name = "#comment"
    raw_text: str
    opener: str
    closer: str

    def __init__(self, raw_text: str, opener: str = "<!--", closer: str = "-->") -> None:
        super().__init__()
        self.raw_text = raw_text
        # "<?" / "<!" for processing instructions and bogus declarations.
        self.opener = opener
        self.closer = closer

    def __repr__(self) -> str:
        return f"<CommentNode {self.raw_text!r}>"


class CDataNode(Node):
    __slots__ = ("closed", "raw_text")

    kind = NodeKind.CDATA
    name = "#cdata"
    raw_text: str
    closed: bool

    def __init__(self, raw_text: str, closed: bool = True) -> None:
        super().__init__()
        self.raw_text = raw_text
        self.closed = closed


class DoctypeNode(Node):
    __slots__ = ("closed", "raw_text")

    kind = NodeKind.DOCTYPE
    name = "!doctype"
    raw_text: str
    closed: bool

    def __init__(self, raw_text: str = "DOCTYPE html", closed: bool = True) -> None:
        super().__init__()
        self.raw_text = raw_text
        self.closed = closed


class EndTagNode(Node):
    """An end tag that closed nothing, kept so the document serializes unchanged.

    It carries no content: selectors, ``innertext`` and ``plaintext`` skip it.
    """

    __slots__ = ("raw_text",)

    kind = NodeKind.END_TAG
    name = "#endtag"
    raw_text: str

    def __init__(self, raw_text: str) -> None:
        super().__init__()
        self.raw_text = raw_text

    def __repr__(self) -> str:
        return f"<EndTagNode {self.raw_text!r}>"


class ContainerNode(Node):
    __slots__ = ("_children",)

    _children: list[Node]

    def __init__(self) -> None:
        super().__init__()
        self._children = []

    @property
    def children(self) -> list[Any]:
        return self._children

    def has_child_nodes(self) -> bool:
        return bool(self._children)

    def can_have_children(self) -> bool:
        return True

    @property
    def element_children(self) -> list[ElementNode]:
        return [child for child in self._children if isinstance(child, ElementNode)]

    @property
    def first_child(self) -> Node | None:
        return self._children[0] if self._children else None

    @property
    def last_child(self) -> Node | None:
        return self._children[-1] if self._children else None

    def _adopt(self, node: Node) -> None:
        # Fast path for the tree builder: node is new and self accepts children.
        self._children.append(node)
        node._set_parent(self)

    def _check_insertable(self, node: Node) -> None:
        self._check_mutable()
        if not self.can_have_children():
            raise NodeError(f"Node {self.name} cannot have children")
        if isinstance(node, RootNode):
            raise NodeError("A document root cannot be inserted into a tree")
        if node.parent is not None:
            raise NodeError(f"Node {node.name} already has a parent; remove it first")
        ancestor: Node | None = self
        while ancestor is not None:
            if ancestor is node:
                raise NodeError("A node cannot be inserted into its own subtree")
            ancestor = ancestor.parent

    def append_child(self, node: Node) -> Node:
        self._check_insertable(node)
        self._adopt(node)
        return node

    def insert_before(self, node: Node, reference_node: Node | None) -> Node:
        """
        Insert a node before a reference node.

        Args:
            node: The node to insert
            reference_node: The node to insert before. If None, append to end.

        Raises:
            NodeError: If reference_node is not a child of this node, or the
                insertion would break the tree
        """
        if reference_node is None:
            return self.append_child(node)

        self._check_insertable(node)
        index = _index_of(self._children, reference_node)
        if index == -1:
            raise NodeError("Reference node is not a child of this node")
        self._children.insert(index, node)
        node._set_parent(self)
        return node

    def remove_child(self, node: Node) -> Node:
        self._check_mutable()
        index = _index_of(self._children, node)
        if index == -1:
            raise NodeError("The node to be removed is not a child of this node")
        del self._children[index]
        node._set_parent(None)
        return node

    def replace_child(self, new_node: Node, old_node: Node) -> Node:
        """
        Replace a child node with a new node.

        Returns:
            The replaced node (old_node), now detached.
        """
        index = _index_of(self._children, old_node)
        if index == -1:
            raise NodeError("The node to be replaced is not a child of this node")
        self._check_insertable(new_node)
        self._children[index] = new_node
        new_node._set_parent(self)
        old_node._set_parent(None)
        return old_node

    def set_innertext(self, markup: str) -> None:
        """Replace the children of this node with ``markup`` parsed as HTML."""
        from .parser import parse_fragment

        self._check_mutable()
        if not self.can_have_children():
            raise NodeError(f"Node {self.name} cannot have children")
        for child in self._children:
            child._set_parent(None)
        self._children = []
        for node in parse_fragment(markup, self.options()):
            self._adopt(node)

    def query(self, selector: str) -> list[Any]:
        """
        Query this subtree using a CSS selector.

        Args:
            selector: A CSS selector string

        Returns:
            A list of matching elements in document order. An invalid
            selector matches nothing.
        """
        return query(self, selector)

    def find(self, selector: str, index: int | None = None) -> Any:
        """Return all matches of ``selector``, or only the one at ``index``.

        A negative index counts from the end. An index out of range returns
        None rather than raising.
        """
        matches = query(self, selector)
        if index is None:
            return matches
        if index < 0:
            index += len(matches)
        if 0 <= index < len(matches):
            return matches[index]
        return None

    def get_element_by_id(self, element_id: str) -> ElementNode | None:
        stack = list(reversed(self._children))
        while stack:
            node = stack.pop()
            if isinstance(node, ElementNode):
                if node.attribute("id") == element_id:
                    return node
                stack.extend(reversed(node.children))
        return None

    def get_elements_by_tag_name(self, tag: str) -> list[ElementNode]:
        return self.find(tag.lower())


class RootNode(ContainerNode):
    __slots__ = ("options_value",)

    kind = NodeKind.ROOT
    name = "#document"
    options_value: ParseOptions | None

    def __init__(self, options: ParseOptions | None = None) -> None:
        super().__init__()
        self.options_value = options

    def options(self) -> ParseOptions:
        if self.options_value is None:
            from .options import default_options

            return default_options()
        return self.options_value

    def remove(self) -> Node:
        raise NodeError("The document root cannot be removed")

    def __repr__(self) -> str:
        return f"<RootNode children={len(self._children)}>"


class ElementNode(ContainerNode):
    """An element, with the source spelling needed to serialize it unchanged.

    ``tail`` is the text after the last attribute up to and including ``>``
    and ``end_tag`` the end tag as written, or None when the element was
    closed implicitly. Raw-text elements (script, style, textarea) keep their
    content in ``raw_text`` and never have children.
    """

    __slots__ = ("_attrs", "_source_attrs", "end_tag", "raw_name", "raw_text", "self_closing", "tag", "tail")

    kind = NodeKind.ELEMENT
    tag: str
    raw_name: str
    tail: str
    end_tag: str | None
    raw_text: str | None
    self_closing: bool
    _attrs: dict[str, Attribute]
    _source_attrs: list[Attribute]

    def __init__(
        self,
        tag: str,
        attrs: dict[str, str | None] | None = None,
        *,
        raw_text: str | None = None,
    ) -> None:
        super().__init__()
        self.raw_name = tag
        self.tag = tag.lower()
        self._attrs = {}
        self._source_attrs = []
        for key, value in (attrs or {}).items():
            self.set_attribute(key, value)
        self.tail = ">"
        self.self_closing = False
        self.raw_text = raw_text
        self.end_tag = None if self.tag in VOID_ELEMENTS else f"</{tag}>"

    @classmethod
    def from_token(cls, token: Tag, raw_text_tags: frozenset[str]) -> ElementNode:
        node = cls.__new__(cls)
        Node.__init__(node)
        node._children = []
        node.raw_name = token.raw_name
        node.tag = token.name
        # Repeated names all stay in the markup; lookups see the last value.
        node._source_attrs = list(token.attrs)
        node._attrs = {attr.key: attr for attr in token.attrs}
        node.tail = token.tail
        node.self_closing = token.self_closing
        node.raw_text = "" if node.tag in raw_text_tags and not token.self_closing else None
        # Set by the tree builder when the matching end tag is seen.
        node.end_tag = None
        return node

    @property
    def name(self) -> str:  # type: ignore[override]
        return self.tag

    @property
    def is_void(self) -> bool:
        return self.self_closing or self.tag in VOID_ELEMENTS

    @property
    def is_raw_text(self) -> bool:
        return self.raw_text is not None

    def can_have_children(self) -> bool:
        return not self.is_void and self.raw_text is None

    # ---------------------
    # Attributes
    # ---------------------

    def attribute(self, name: str, default: str | None = None) -> str | None:
        """Return the value of attribute ``name`` (case-insensitive).

        A boolean attribute such as ``checked`` returns an empty string;
        a missing one returns ``default``.
        """
        attr = self._attrs.get(name.lower())
        if attr is None:
            return default
        return attr.value if attr.value is not None else ""

    def has_attribute(self, name: str) -> bool:
        return name.lower() in self._attrs

    def set_attribute(self, name: str, value: str | None) -> None:
        """Set attribute ``name``; ``None`` makes it a boolean attribute."""
        self._check_mutable()
        key = name.lower()
        attr = self._attrs.get(key)
        if attr is None:
            attr = Attribute(name, None)
            self._attrs[key] = attr
            self._source_attrs.append(attr)
        _respell_attribute(attr, value)

    def remove_attribute(self, name: str) -> None:
        self._check_mutable()
        key = name.lower()
        if self._attrs.pop(key, None) is not None:
            self._source_attrs = [attr for attr in self._source_attrs if attr.key != key]

    def all_attributes(self) -> dict[str, str | None]:
        """Return the attributes in source order, keyed by lowercased name."""
        return {key: attr.value for key, attr in self._attrs.items()}

    @property
    def attributes(self) -> list[Attribute]:
        return list(self._attrs.values())

    @property
    def id(self) -> str | None:
        return self.attribute("id")

    @property
    def href(self) -> str | None:
        return self.attribute("href")

    @property
    def src(self) -> str | None:
        return self.attribute("src")

    @property
    def title(self) -> str | None:
        return self.attribute("title")

    @property
    def classes(self) -> list[str]:
        value = self.attribute("class")
        return value.split() if value else []

    def has_class(self, class_name: str) -> bool:
        return class_name in self.classes

    def add_class(self, class_name: str) -> None:
        classes = self.classes
        for name in class_name.split():
            if name not in classes:
                classes.append(name)
        self.set_attribute("class", " ".join(classes))

    def remove_class(self, class_name: str) -> None:
        if not self.has_attribute("class"):
            return
        removed = set(class_name.split())
        remaining = [name for name in self.classes if name not in removed]
        if remaining:
            self.set_attribute("class", " ".join(remaining))
        else:
            self.remove_attribute("class")

    # ---------------------
    # Source spelling
    # ---------------------

    def start_tag_source(self) -> str:
        attrs = "".join(attr.to_source() for attr in self._source_attrs)
        return f"<{self.raw_name}{attrs}{self.tail}"

    def end_tag_source(self) -> str:
        if self.is_void or self.end_tag is None:
            return ""
        return self.end_tag

    def set_innertext(self, markup: str) -> None:
        if self.raw_text is not None:
            self._check_mutable()
            self.raw_text = markup
            return
        super().set_innertext(markup)

    def __repr__(self) -> str:
        return f"<ElementNode {self.tag} attrs={self.all_attributes()!r}>"


def _respell_attribute(attr: Attribute, value: str | None) -> None:
    attr.value = value
    if value is None:
        attr.equals = attr.quote = attr.close_quote = ""
        return
    if not attr.equals:
        attr.equals = "="
    quote = attr.quote
    if not quote or quote in value or attr.close_quote != quote:
        quote = "'" if '"' in value and "'" not in value else '"'
    attr.quote = attr.close_quote = quote


def _index_of(nodes: list[Node], node: Node) -> int:
    for index, candidate in enumerate(nodes):
        if candidate is node:
            return index
    return -1
