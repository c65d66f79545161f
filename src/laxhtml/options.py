"""Parse options.

Options are an immutable value passed to :func:`laxhtml.parse`. Use
:func:`default_options` for the defaults and :meth:`ParseOptions.replace`
to derive a variant.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Any

from .constants import DEFAULT_RAW_TEXT_TAGS


class IgnoreBlockMode(enum.Enum):
    """How template regions such as ``{$var}`` are tokenized."""

    AS_TEXT = "text"
    STRIP = "strip"
    LEGACY = "legacy"


@dataclasses.dataclass(frozen=True, slots=True)
class ParseOptions:
    normalize_line_endings: bool = True
    ignore_block_mode: IgnoreBlockMode = IgnoreBlockMode.LEGACY
    ignore_block_delimiters: tuple[str, str] = ("{", "}")
    inline_break_text: str = "\r\n"
    block_break_text: str = "\r\n"
    raw_text_tags: frozenset[str] = DEFAULT_RAW_TEXT_TAGS

    def __post_init__(self) -> None:
        mode = self.ignore_block_mode
        if not isinstance(mode, IgnoreBlockMode):
            object.__setattr__(self, "ignore_block_mode", IgnoreBlockMode(mode))

        open_delim, close_delim = self.ignore_block_delimiters
        if not open_delim or not close_delim:
            raise ValueError("Ignore block delimiters must be non-empty strings")

        # Tag matching is case-insensitive; store the set lowercased.
        object.__setattr__(self, "raw_text_tags", frozenset(tag.lower() for tag in self.raw_text_tags))

    def replace(self, **changes: Any) -> ParseOptions:
        """Return a copy of these options with ``changes`` applied."""
        return dataclasses.replace(self, **changes)


def default_options() -> ParseOptions:
    return ParseOptions()
