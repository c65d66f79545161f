from __future__ import annotations

VOID_ELEMENTS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "basefont",
        "bgsound",
        "br",
        "col",
        "embed",
        "frame",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "spacer",
        "track",
        "wbr",
    }
)

DEFAULT_RAW_TEXT_TAGS: frozenset[str] = frozenset({"script", "style", "textarea"})

# Start tag -> open elements it closes when one of them is the current node.
IMPLICITLY_CLOSED_BY: dict[str, frozenset[str]] = {
    "p": frozenset({"p"}),
    "li": frozenset({"li"}),
    "dt": frozenset({"dt", "dd"}),
    "dd": frozenset({"dt", "dd"}),
    "tr": frozenset({"tr", "td", "th"}),
    "td": frozenset({"td", "th"}),
    "th": frozenset({"td", "th"}),
    "option": frozenset({"option"}),
}

# Paragraph-like elements separated by a blank line in plain text.
BLOCK_ELEMENTS: frozenset[str] = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "div",
        "dl",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "main",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "table",
        "ul",
    }
)

# Elements separated by ParseOptions.block_break_text in plain text.
LIST_ITEM_ELEMENTS: frozenset[str] = frozenset({"li", "dt", "dd", "tr"})

TABLE_CELL_ELEMENTS: frozenset[str] = frozenset({"td", "th"})

# Raw-text content that never contributes to plain text.
HIDDEN_TEXT_ELEMENTS: frozenset[str] = frozenset({"script", "style", "noscript", "template"})

PRESERVE_WHITESPACE_ELEMENTS: frozenset[str] = frozenset({"pre", "textarea", "listing", "plaintext"})

# Attribute values HTML treats as ASCII case-insensitive in selectors.
CASE_INSENSITIVE_ATTRIBUTES: frozenset[str] = frozenset(
    {
        "accept",
        "accept-charset",
        "align",
        "alink",
        "axis",
        "bgcolor",
        "charset",
        "checked",
        "clear",
        "codetype",
        "color",
        "compact",
        "declare",
        "defer",
        "dir",
        "direction",
        "disabled",
        "enctype",
        "face",
        "frame",
        "hreflang",
        "http-equiv",
        "lang",
        "language",
        "link",
        "media",
        "method",
        "multiple",
        "nohref",
        "noresize",
        "noshade",
        "nowrap",
        "readonly",
        "rel",
        "rev",
        "rules",
        "scope",
        "scrolling",
        "selected",
        "shape",
        "target",
        "text",
        "type",
        "valign",
        "valuetype",
        "vlink",
    }
)
