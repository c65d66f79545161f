import re
from bisect import bisect_right

from .errors import generate_error_message
from .options import IgnoreBlockMode, ParseOptions
from .tokens import Attribute, CDataToken, Characters, CommentToken, DoctypeToken, ParseError, RawText, Tag

_TAG_NAME_PATTERN = re.compile(r"[^\t\n\f\r /><]+")
_ATTR_NAME_PATTERN = re.compile(r"[^\t\n\f\r />=<\"']+")
_UNQUOTED_VALUE_PATTERN = re.compile(r"[^\t\n\f\r >]+")
_WHITESPACE_PATTERN = re.compile(r"[ \t\n\f\r]*")
_NEWLINE_PATTERN = re.compile(r"\r\n|\r|\n")
_WORD_CHAR_PATTERN = re.compile(r"\w")

_CDATA_OPEN = "<![CDATA["


def _is_ascii_letter(c):
    return ("a" <= c <= "z") or ("A" <= c <= "Z")


class Tokenizer:
    """Lenient HTML tokenizer.

    The tokenizer never fails: every malformed construct is turned into some
    token (usually text) and scanning moves on. Tokens are produced lazily by
    :meth:`tokenize`, which restarts from the beginning on every call.
    """

    DATA = 0
    TAG_OPEN = 1
    TAG_NAME = 2
    BEFORE_ATTRIBUTE_NAME = 3
    ATTRIBUTE_NAME = 4
    BEFORE_ATTRIBUTE_VALUE = 5
    ATTRIBUTE_VALUE_QUOTED = 6
    ATTRIBUTE_VALUE_UNQUOTED = 7
    COMMENT = 8
    BOGUS_COMMENT = 9
    CDATA = 10
    DOCTYPE = 11
    RAWTEXT = 12
    IGNORE_BLOCK = 13

    __slots__ = (
        "_newline_positions",
        "_rawtext_end_patterns",
        "after_quoted_value",
        "buffer",
        "collect_errors",
        "current_attr_before",
        "current_attr_equals",
        "current_attr_name",
        "current_tag_attrs",
        "current_tag_kind",
        "current_tag_name",
        "errors",
        "length",
        "opts",
        "pending",
        "pos",
        "rawtext_tag_name",
        "state",
        "text_buffer",
    )

    # _STATE_HANDLERS is defined at the end of the file

    def __init__(self, opts=None, collect_errors=False):
        self.opts = opts or ParseOptions()
        self.collect_errors = collect_errors
        self.errors = []
        self.pending = []
        self._rawtext_end_patterns = {}
        self.initialize("")

    def initialize(self, html):
        self.buffer = html or ""
        self.length = len(self.buffer)
        self.pos = 0
        self.state = self.DATA
        self.errors = []
        self.pending = []
        self.text_buffer = []
        self.current_tag_kind = Tag.START
        self.current_tag_name = ""
        self.current_tag_attrs = []
        self.current_attr_name = ""
        self.current_attr_before = ""
        self.current_attr_equals = ""
        self.after_quoted_value = False
        self.rawtext_tag_name = None

        # Pre-compute newline positions for O(log n) line lookups
        if self.collect_errors:
            self._newline_positions = [m.start() for m in re.finditer("\n", self.buffer)]
        else:
            self._newline_positions = None

    def step(self):
        """Run one step of the tokenizer state machine. Returns True if EOF reached."""
        handler = self._STATE_HANDLERS[self.state]
        return handler(self)

    def tokenize(self, html):
        """Yield the tokens of ``html`` one at a time."""
        self.initialize(html)
        while True:
            done = self.step()
            if self.pending:
                ready = self.pending
                self.pending = []
                yield from ready
            if done:
                return

    def position(self, pos=None):
        """Return the 1-based (line, column) of ``pos`` (default: current position)."""
        if pos is None:
            pos = self.pos
        if self._newline_positions is None:
            return None, None
        line_index = bisect_right(self._newline_positions, pos - 1)
        line_start = self._newline_positions[line_index - 1] + 1 if line_index else 0
        return line_index + 1, pos - line_start + 1

    # ---------------------
    # Helper methods
    # ---------------------

    def _normalize(self, text):
        if self.opts.normalize_line_endings and ("\n" in text or "\r" in text):
            return _NEWLINE_PATTERN.sub(" ", text)
        return text

    def _append_text(self, text):
        if text:
            self.text_buffer.append(text)

    def _flush_text(self):
        if not self.text_buffer:
            return
        if len(self.text_buffer) == 1:
            data = self.text_buffer[0]
        else:
            data = "".join(self.text_buffer)
        self.text_buffer.clear()
        self.pending.append(Characters(data))

    def _emit(self, token):
        self._flush_text()
        self.pending.append(token)

    def _emit_error(self, code, pos=None, tag_name=None):
        if not self.collect_errors:
            return
        line, column = self.position(pos)
        message = generate_error_message(code, tag_name)
        self.errors.append(ParseError(code, line=line, column=column, message=message, source_html=self.buffer))

    def _skip_whitespace(self, pos):
        return _WHITESPACE_PATTERN.match(self.buffer, pos).end()

    def _find_block_open(self, start, end):
        """Position of the next ignore-block opener in [start, end), or -1."""
        open_delim = self.opts.ignore_block_delimiters[0]
        buffer = self.buffer
        pos = buffer.find(open_delim, start, end)
        while pos != -1:
            after = pos + len(open_delim)
            # An opener counts only when directly followed by a word character.
            if after < end and _WORD_CHAR_PATTERN.match(buffer, after):
                return pos
            pos = buffer.find(open_delim, pos + 1, end)
        return -1

    def _start_tag(self, kind, name_start):
        self._flush_text()
        self.current_tag_kind = kind
        self.current_tag_name = ""
        self.current_tag_attrs = []
        self.after_quoted_value = False
        self.pos = name_start
        self.state = self.TAG_NAME

    def _emit_current_tag(self, tail, self_closing=False):
        tag = Tag(
            self.current_tag_kind,
            self.current_tag_name,
            self.current_tag_attrs,
            self_closing=self_closing,
            tail=self._normalize(tail),
        )
        self.current_tag_attrs = []
        self._emit(tag)

        if tag.kind == Tag.START and not self_closing and tag.name in self.opts.raw_text_tags:
            self.rawtext_tag_name = tag.name
            self.state = self.RAWTEXT
        else:
            self.state = self.DATA

    def _finish_attribute(self, value, quote="", close_quote=""):
        attr = Attribute(
            self.current_attr_name,
            None if value is None else self._normalize(value),
            before=self._normalize(self.current_attr_before),
            equals=self._normalize(self.current_attr_equals),
            quote=quote,
            close_quote=close_quote,
        )
        # Every occurrence is kept for serialization; readers let the last win.
        key = attr.key
        if any(existing.key == key for existing in self.current_tag_attrs):
            self._emit_error("duplicate-attribute")
        self.current_tag_attrs.append(attr)
        self.current_attr_name = ""
        self.current_attr_before = ""
        self.current_attr_equals = ""
        self.state = self.BEFORE_ATTRIBUTE_NAME

    # ---------------------
    # State handlers
    # ---------------------

    def _state_data(self):
        buffer = self.buffer
        length = self.length
        pos = self.pos
        if pos >= length:
            self._flush_text()
            return True

        next_lt = buffer.find("<", pos)
        if next_lt == -1:
            next_lt = length

        block_at = self._find_block_open(pos, next_lt)
        if block_at != -1:
            self._append_text(self._normalize(buffer[pos:block_at]))
            self.pos = block_at
            self.state = self.IGNORE_BLOCK
            return False

        self._append_text(self._normalize(buffer[pos:next_lt]))
        self.pos = next_lt
        if next_lt < length:
            self.state = self.TAG_OPEN
        return False

    def _state_tag_open(self):
        buffer = self.buffer
        pos = self.pos
        nc = buffer[pos + 1] if pos + 1 < self.length else ""

        if nc and _is_ascii_letter(nc):
            self._start_tag(Tag.START, pos + 1)
            return False

        if nc == "/":
            nnc = buffer[pos + 2] if pos + 2 < self.length else ""
            if nnc and _is_ascii_letter(nnc):
                self._start_tag(Tag.END, pos + 2)
                return False

        elif nc == "!":
            self._flush_text()
            if buffer.startswith("<!--", pos):
                self.state = self.COMMENT
            elif buffer.startswith(_CDATA_OPEN, pos):
                self.state = self.CDATA
            elif buffer[pos + 2 : pos + 9].lower() == "doctype":
                self.state = self.DOCTYPE
            else:
                self.state = self.BOGUS_COMMENT
            return False

        elif nc == "?":
            self._flush_text()
            self.state = self.BOGUS_COMMENT
            return False

        # Not a tag start ("<-", "< ", "</ ", "<3"...): literal text.
        self._emit_error("invalid-first-character-of-tag-name", pos)
        self._append_text("<")
        self.pos = pos + 1
        self.state = self.DATA
        return False

    def _state_tag_name(self):
        buffer = self.buffer
        match = _TAG_NAME_PATTERN.match(buffer, self.pos)
        # The caller guarantees a letter at pos, so the match is never empty.
        name = match.group(0)
        self.current_tag_name = name
        self.pos += len(name)

        if self.current_tag_kind == Tag.START:
            self.state = self.BEFORE_ATTRIBUTE_NAME
            return False

        # End tags: attributes are meaningless, keep everything up to ">".
        pos = self.pos
        gt = buffer.find(">", pos)
        lt = buffer.find("<", pos)
        if gt != -1 and (lt == -1 or gt < lt):
            self.pos = gt + 1
            self._emit_current_tag(buffer[pos : gt + 1])
            return False

        end = self.length if lt == -1 else lt
        self._emit_error("eof-in-tag" if lt == -1 else "unexpected-character-in-tag", end, self.current_tag_name)
        self.pos = end
        self._emit_current_tag(buffer[pos:end])
        return False

    def _state_before_attribute_name(self):
        buffer = self.buffer
        length = self.length
        pos = self.pos
        start = pos

        while True:
            pos = self._skip_whitespace(pos)
            if pos >= length:
                self._emit_error("eof-in-tag", pos, self.current_tag_name)
                self.pos = pos
                self._emit_current_tag(buffer[start:pos])
                return False

            c = buffer[pos]
            if c == ">":
                self.pos = pos + 1
                self._emit_current_tag(buffer[start : pos + 1])
                return False
            if c == "/":
                if buffer.startswith("/>", pos):
                    self.pos = pos + 2
                    self._emit_current_tag(buffer[start : pos + 2], self_closing=True)
                    return False
                pos += 1
                continue
            if c in "\"'=":
                # Stray quotes and equals signs are skipped.
                pos += 1
                continue
            if c == "<":
                # Unclosed start tag; the "<" begins the next token.
                self._emit_error("unexpected-character-in-tag", pos, self.current_tag_name)
                self.pos = pos
                self._emit_current_tag(buffer[start:pos])
                return False
            break

        if pos == start and self.after_quoted_value:
            self._emit_error("missing-whitespace-between-attributes", pos)
        self.after_quoted_value = False
        self.current_attr_before = buffer[start:pos]
        self.pos = pos
        self.state = self.ATTRIBUTE_NAME
        return False

    def _state_attribute_name(self):
        buffer = self.buffer
        match = _ATTR_NAME_PATTERN.match(buffer, self.pos)
        self.current_attr_name = match.group(0)
        pos = match.end()

        after_ws = self._skip_whitespace(pos)
        if after_ws < self.length and buffer[after_ws] == "=":
            value_start = self._skip_whitespace(after_ws + 1)
            self.current_attr_equals = buffer[pos:value_start]
            self.pos = value_start
            self.state = self.BEFORE_ATTRIBUTE_VALUE
            return False

        # Boolean attribute; the whitespace belongs to the next attribute.
        self.pos = pos
        self._finish_attribute(None)
        return False

    def _state_before_attribute_value(self):
        if self.pos >= self.length:
            self._finish_attribute("")
            return False

        c = self.buffer[self.pos]
        if c == '"' or c == "'":
            self.state = self.ATTRIBUTE_VALUE_QUOTED
        elif c == ">":
            self._finish_attribute("")
        else:
            self.state = self.ATTRIBUTE_VALUE_UNQUOTED
        return False

    def _state_attribute_value_quoted(self):
        buffer = self.buffer
        pos = self.pos
        quote = buffer[pos]
        # The first matching quote ends the value. A backslash before it is
        # an ordinary character, not an escape.
        end = buffer.find(quote, pos + 1)
        if end != -1:
            self.pos = end + 1
            self._finish_attribute(buffer[pos + 1 : end], quote, quote)
            self.after_quoted_value = True
            return False

        self._emit_error("unterminated-attribute-value", pos)
        end = buffer.find(">", pos + 1)
        if end == -1:
            end = self.length
        self.pos = end
        self._finish_attribute(buffer[pos + 1 : end], quote, "")
        return False

    def _state_attribute_value_unquoted(self):
        match = _UNQUOTED_VALUE_PATTERN.match(self.buffer, self.pos)
        self.pos = match.end()
        self._finish_attribute(match.group(0))
        return False

    def _state_comment(self):
        buffer = self.buffer
        start = self.pos + 4
        end = buffer.find("-->", start)
        if end == -1:
            self._emit_error("eof-in-comment", self.length)
            self._emit(CommentToken(self._normalize(buffer[start:]), closer=""))
            self.pos = self.length
        else:
            self._emit(CommentToken(self._normalize(buffer[start:end])))
            self.pos = end + 3
        self.state = self.DATA
        return False

    def _state_bogus_comment(self):
        buffer = self.buffer
        pos = self.pos
        opener = buffer[pos : pos + 2]
        start = pos + 2
        closer = ">"
        end = -1
        if opener == "<?":
            end = buffer.find("?>", start)
            closer = "?>"
        if end == -1:
            end = buffer.find(">", start)
            closer = ">"
        if end == -1:
            self._emit_error("eof-in-comment", self.length)
            end = self.length
            closer = ""
        self._emit(CommentToken(self._normalize(buffer[start:end]), opener=opener, closer=closer))
        self.pos = end + len(closer)
        self.state = self.DATA
        return False

    def _state_cdata(self):
        buffer = self.buffer
        start = self.pos + len(_CDATA_OPEN)
        end = buffer.find("]]>", start)
        if end == -1:
            self._emit_error("eof-in-cdata", self.length)
            self._emit(CDataToken(self._normalize(buffer[start:]), closed=False))
            self.pos = self.length
        else:
            self._emit(CDataToken(self._normalize(buffer[start:end])))
            self.pos = end + 3
        self.state = self.DATA
        return False

    def _state_doctype(self):
        buffer = self.buffer
        start = self.pos + 2
        end = buffer.find(">", start)
        if end == -1:
            self._emit_error("eof-in-doctype", self.length)
            self._emit(DoctypeToken(self._normalize(buffer[start:]), closed=False))
            self.pos = self.length
        else:
            self._emit(DoctypeToken(self._normalize(buffer[start:end])))
            self.pos = end + 1
        self.state = self.DATA
        return False

    def _state_rawtext(self):
        name = self.rawtext_tag_name
        pattern = self._rawtext_end_patterns.get(name)
        if pattern is None:
            pattern = re.compile(r"</" + re.escape(name) + r"(?=[\s/>]|$)", re.IGNORECASE)
            self._rawtext_end_patterns[name] = pattern

        pos = self.pos
        match = pattern.search(self.buffer, pos)
        end = match.start() if match else self.length
        if end > pos:
            # Copied verbatim: no line-ending normalization in raw text.
            self._emit(RawText(self.buffer[pos:end]))
        self.pos = end
        self.rawtext_tag_name = None
        if match:
            self.state = self.TAG_OPEN
        else:
            self._emit_error("eof-in-raw-text", end, name)
            self.state = self.DATA
        return False

    def _state_ignore_block(self):
        buffer = self.buffer
        pos = self.pos
        open_delim, close_delim = self.opts.ignore_block_delimiters
        mode = self.opts.ignore_block_mode
        start = pos + len(open_delim)

        if mode == IgnoreBlockMode.AS_TEXT:
            # Plain text up to the first closing delimiter, across tags.
            end = buffer.find(close_delim, start)
        else:
            boundary = buffer.find("<", start)
            if boundary == -1:
                boundary = self.length
            end = buffer.find(close_delim, start, boundary)

        self.state = self.DATA
        if end == -1:
            self._emit_error("unterminated-ignore-block", pos)
            self._append_text(open_delim)
            self.pos = start
            return False

        end += len(close_delim)
        block = buffer[pos:end]
        if mode == IgnoreBlockMode.AS_TEXT:
            self._append_text(self._normalize(block))
        elif mode == IgnoreBlockMode.LEGACY:
            self._append_text(block)
        self.pos = end
        return False


Tokenizer._STATE_HANDLERS = [  # type: ignore[attr-defined]
    Tokenizer._state_data,
    Tokenizer._state_tag_open,
    Tokenizer._state_tag_name,
    Tokenizer._state_before_attribute_name,
    Tokenizer._state_attribute_name,
    Tokenizer._state_before_attribute_value,
    Tokenizer._state_attribute_value_quoted,
    Tokenizer._state_attribute_value_unquoted,
    Tokenizer._state_comment,
    Tokenizer._state_bogus_comment,
    Tokenizer._state_cdata,
    Tokenizer._state_doctype,
    Tokenizer._state_rawtext,
    Tokenizer._state_ignore_block,
]
