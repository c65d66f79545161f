import unittest

from laxhtml import IgnoreBlockMode, ParseOptions
from laxhtml.tokenizer import Tokenizer
from laxhtml.tokens import CDataToken, Characters, CommentToken, DoctypeToken, RawText, Tag


def _tokens(html, **options):
    return list(Tokenizer(ParseOptions(**options)).tokenize(html))


def _text(tokens):
    return "".join(token.data for token in tokens if isinstance(token, Characters))


class TestTags(unittest.TestCase):
    def test_start_and_end_tags(self):
        tokens = _tokens("<DIV>x</Div >")
        start, text, end = tokens
        assert isinstance(start, Tag)
        assert start.kind == Tag.START
        assert start.name == "div"
        assert start.raw_name == "DIV"
        assert text.data == "x"
        assert end.kind == Tag.END
        assert end.name == "div"
        assert end.source() == "</Div >"

    def test_attribute_forms(self):
        (tag,) = _tokens("<input type=text value='a b' checked data-x = \"1\">")
        attrs = {attr.key: attr.value for attr in tag.attrs}
        assert attrs == {"type": "text", "value": "a b", "checked": None, "data-x": "1"}
        assert tag.source() == "<input type=text value='a b' checked data-x = \"1\">"

    def test_quoted_values_need_no_separating_whitespace(self):
        tag = _tokens('<a href="#"title="X"></a>')[0]
        assert [(attr.name, attr.value) for attr in tag.attrs] == [("href", "#"), ("title", "X")]

    def test_backslash_does_not_escape_quote(self):
        tokens = _tokens('<a alt="X\\">next</a>')
        assert tokens[0].attrs[0].value == "X\\"
        assert _text(tokens) == "next"

    def test_unterminated_value_stops_at_tag_end(self):
        tokens = _tokens('<a href="foo>bar</a>')
        assert tokens[0].attrs[0].value == "foo"
        assert _text(tokens) == "bar"
        assert tokens[-1].kind == Tag.END

    def test_duplicate_attributes_are_all_kept(self):
        (tag,) = _tokens("<a x=1 y=2 X=3>")
        assert [(attr.name, attr.value) for attr in tag.attrs] == [("x", "1"), ("y", "2"), ("X", "3")]
        assert {attr.key: attr.value for attr in tag.attrs} == {"x": "3", "y": "2"}
        assert tag.source() == "<a x=1 y=2 X=3>"

    def test_self_closing(self):
        (tag,) = _tokens("<br/>")
        assert tag.self_closing
        assert tag.tail == "/>"

    def test_stray_quotes_are_skipped(self):
        (tag,) = _tokens('<a "href="x">')
        assert [(attr.key, attr.value) for attr in tag.attrs] == [("href", "x")]

    def test_start_tag_cut_off_by_next_tag(self):
        tokens = _tokens('<a href="x" <b>y')
        tags = [token for token in tokens if isinstance(token, Tag)]
        assert [tag.name for tag in tags] == ["a", "b"]
        assert tags[0].attrs[0].value == "x"
        assert _text(tokens) == "y"

    def test_start_tag_cut_off_by_end_of_input(self):
        (tag,) = _tokens("<a href=x")
        assert tag.name == "a"
        assert tag.tail == ""


class TestText(unittest.TestCase):
    def test_lone_less_than_is_text(self):
        tokens = _tokens("A <--- B /C < 3 </ p>")
        assert len(tokens) == 1
        assert _text(tokens) == "A <--- B /C < 3 </ p>"

    def test_less_than_at_end_of_input(self):
        assert _text(_tokens("a <")) == "a <"

    def test_line_endings_become_spaces(self):
        assert _text(_tokens("a\r\nb\rc\nd")) == "a b c d"

    def test_line_endings_kept_when_disabled(self):
        assert _text(_tokens("a\r\nb\n", normalize_line_endings=False)) == "a\r\nb\n"

    def test_attribute_values_are_normalized(self):
        (tag,) = _tokens('<a title="one\ntwo">')
        assert tag.attrs[0].value == "one two"


class TestRawText(unittest.TestCase):
    def test_script_content_is_verbatim(self):
        tokens = _tokens("<script>\nif (a < b) { x = '</p>'; }\n</script>")
        assert isinstance(tokens[1], RawText)
        assert tokens[1].data == "\nif (a < b) { x = '</p>'; }\n"
        assert tokens[2].kind == Tag.END
        assert tokens[2].name == "script"

    def test_end_tag_match_is_case_insensitive(self):
        tokens = _tokens("<style>p {}</STYLE>")
        assert tokens[1].data == "p {}"
        assert tokens[2].raw_name == "STYLE"

    def test_end_tag_prefix_does_not_close(self):
        tokens = _tokens("<script>a</scripts>b</script>")
        assert tokens[1].data == "a</scripts>b"

    def test_missing_end_tag_runs_to_end_of_input(self):
        tokens = _tokens("<textarea><b>bold</b>")
        assert len(tokens) == 2
        assert tokens[1].data == "<b>bold</b>"

    def test_self_closing_raw_text_tag_has_no_content(self):
        tokens = _tokens("<script/><p>x</p>")
        assert [type(token) for token in tokens] == [Tag, Tag, Characters, Tag]

    def test_custom_raw_text_tags(self):
        tokens = _tokens("<code><b>x</b></code>", raw_text_tags=frozenset({"CODE"}))
        assert tokens[1].data == "<b>x</b>"


class TestIgnoreBlocks(unittest.TestCase):
    def test_legacy_block_is_verbatim(self):
        assert _text(_tokens("a {x\n} b")) == "a {x\n} b"

    def test_strip_removes_block(self):
        assert _text(_tokens("a{x}b", ignore_block_mode=IgnoreBlockMode.STRIP)) == "ab"

    def test_opener_needs_word_character(self):
        assert _text(_tokens("a{$x}b", ignore_block_mode=IgnoreBlockMode.STRIP)) == "a{$x}b"

    def test_as_text_spans_tags(self):
        tokens = _tokens("{x<b>}</b>", ignore_block_mode=IgnoreBlockMode.AS_TEXT)
        assert _text(tokens) == "{x<b>}"
        assert tokens[-1].kind == Tag.END

    def test_block_does_not_cross_tag_boundary(self):
        tokens = _tokens("{x</p>y}", ignore_block_mode=IgnoreBlockMode.STRIP)
        assert [type(token) for token in tokens] == [Characters, Tag, Characters]
        assert tokens[0].data == "{x"
        assert tokens[2].data == "y}"

    def test_brace_not_followed_by_word_character(self):
        assert _text(_tokens("a { b }", ignore_block_mode=IgnoreBlockMode.STRIP)) == "a { b }"

    def test_custom_delimiters(self):
        tokens = _tokens(
            "a{{ x }}b[%y%]c",
            ignore_block_mode=IgnoreBlockMode.STRIP,
            ignore_block_delimiters=("[%", "%]"),
        )
        assert _text(tokens) == "a{{ x }}bc"


class TestOtherMarkup(unittest.TestCase):
    def test_comment(self):
        (token,) = _tokens("<!-- x -->")
        assert isinstance(token, CommentToken)
        assert token.data == " x "

    def test_unterminated_comment(self):
        (token,) = _tokens("<!-- x")
        assert token.data == " x"
        assert token.closer == ""

    def test_processing_instruction(self):
        (token,) = _tokens("<?php echo '>'; ?>")
        assert token.opener == "<?"
        assert token.closer == "?>"
        assert token.data == "php echo '>'; "

    def test_bogus_declaration(self):
        (token,) = _tokens("<!ELEMENT br EMPTY>")
        assert token.opener == "<!"
        assert token.data == "ELEMENT br EMPTY"

    def test_doctype(self):
        (token,) = _tokens("<!doctype html>")
        assert isinstance(token, DoctypeToken)
        assert token.data == "doctype html"

    def test_cdata(self):
        (token,) = _tokens("<![CDATA[a<b]]>")
        assert isinstance(token, CDataToken)
        assert token.data == "a<b"
        assert token.closed


class TestPositions(unittest.TestCase):
    def test_position_is_one_based(self):
        tokenizer = Tokenizer(collect_errors=True)
        list(tokenizer.tokenize("ab\ncd"))
        assert tokenizer.position(0) == (1, 1)
        assert tokenizer.position(4) == (2, 2)

    def test_tokenize_restarts(self):
        tokenizer = Tokenizer()
        first = [type(token) for token in tokenizer.tokenize("<p>x</p>")]
        second = [type(token) for token in tokenizer.tokenize("<p>x</p>")]
        assert first == second


if __name__ == "__main__":
    unittest.main()
