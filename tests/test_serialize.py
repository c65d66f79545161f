import unittest

from laxhtml import ElementNode, ParseOptions, parse


class TestOuterAndInnerText(unittest.TestCase):
    def test_outertext_of_element(self):
        doc = parse('<div id=x><p class="a">one</p> two</div>')
        assert doc.find("p", 0).outertext() == '<p class="a">one</p>'
        assert doc.find("div", 0).innertext() == '<p class="a">one</p> two'

    def test_innertext_of_raw_text_element(self):
        doc = parse("<script>a < b</script>")
        assert doc.find("script", 0).innertext() == "a < b"

    def test_innertext_of_leaf_is_empty(self):
        doc = parse("<p>text<!-- c --></p>")
        text, comment = doc.find("p", 0).children
        assert text.innertext() == ""
        assert text.outertext() == "text"
        assert comment.outertext() == "<!-- c -->"

    def test_implicitly_closed_element_has_no_end_tag(self):
        doc = parse("<ul><li>a<li>b</ul>")
        assert doc.find("li", 0).outertext() == "<li>a"
        assert doc.find("li", 1).outertext() == "<li>b"

    def test_document_str(self):
        html = "<p>a</p><br><!-- x -->"
        doc = parse(html)
        assert str(doc) == html
        assert doc.outertext() == html
        assert doc.innertext() == html

    def test_deep_nesting(self):
        html = "<b>" * 5000 + "x"
        doc = parse(html)
        assert str(doc) == html
        assert doc.plaintext() == "x"


class TestAttributeSerialization(unittest.TestCase):
    def test_changed_value_keeps_spelling(self):
        doc = parse("<a  HREF='x' title=t>")
        a = doc.find("a", 0)
        a.set_attribute("href", "y")
        assert str(doc) == "<a  HREF='y' title=t>"

    def test_unquoted_value_gets_quotes_when_needed(self):
        doc = parse("<a title=t>")
        doc.find("a", 0).set_attribute("title", "two words")
        assert str(doc) == '<a title="two words">'

    def test_new_attribute_is_appended(self):
        doc = parse("<a href=x>")
        doc.find("a", 0).set_attribute("target", "_blank")
        assert str(doc) == '<a href=x target="_blank">'

    def test_value_with_quotes(self):
        a = ElementNode("a")
        a.set_attribute("title", 'say "hi"')
        assert a.outertext() == "<a title='say \"hi\"'></a>"
        a.set_attribute("title", "it's \"x\"")
        assert a.outertext() == '<a title="it\'s &quot;x&quot;"></a>'
        # Escaping happens on output only
        assert a.attribute("title") == "it's \"x\""

    def test_duplicate_attributes_round_trip(self):
        options = ParseOptions(normalize_line_endings=False)
        doc = parse('<a x="1" href="#" X=\'2\'>t</a>', options)
        a = doc.find("a", 0)
        assert str(doc) == '<a x="1" href="#" X=\'2\'>t</a>'
        assert a.attribute("x") == "2"
        assert a.all_attributes() == {"x": "2", "href": "#"}

    def test_duplicate_attributes_after_mutation(self):
        doc = parse("<a x=1 y=2 x=3>t</a>")
        a = doc.find("a", 0)
        a.set_attribute("x", "4")
        assert str(doc) == '<a x=1 y=2 x="4">t</a>'
        a.remove_attribute("X")
        assert str(doc) == "<a y=2>t</a>"
        assert not a.has_attribute("x")

    def test_boolean_attribute(self):
        doc = parse("<input value=1>")
        node = doc.find("input", 0)
        node.set_attribute("disabled", None)
        assert str(doc) == "<input value=1 disabled>"
        node.set_attribute("disabled", "disabled")
        assert str(doc) == '<input value=1 disabled="disabled">'

    def test_removed_attribute(self):
        doc = parse('<a href="x" title="t">y</a>')
        doc.find("a", 0).remove_attribute("TITLE")
        assert str(doc) == '<a href="x">y</a>'

    def test_created_elements_serialize_canonically(self):
        div = ElementNode("div", {"class": "box"})
        div.append_child(ElementNode("br"))
        assert div.outertext() == '<div class="box"><br></div>'


class TestPlainText(unittest.TestCase):
    def _plain(self, html, options=None, selector=None):
        doc = parse(html, options)
        node = doc.find(selector, 0) if selector else doc
        return node.plaintext()

    def test_sibling_blocks_separated_by_blank_line(self):
        assert self._plain("<p>A</p><p>B</p>") == "A\n\nB"

    def test_single_block_has_no_separator(self):
        assert self._plain("<p>A</p>") == "A"
        assert self._plain("<div><p>A</p></div>", selector="div") == "A"

    def test_nested_blocks_collapse_to_one_blank_line(self):
        assert self._plain("<div><div><p>A</p></div></div><div><p>B</p></div>") == "A\n\nB"

    def test_text_between_blocks(self):
        assert self._plain("<div>intro<p>para</p>tail</div>") == "intro\n\npara\n\ntail"

    def test_inline_elements_run_together(self):
        assert self._plain("<div>Hello <b>world</b>!</div>") == "Hello world!"
        assert self._plain("<p>a<span>b</span>c</p>") == "abc"

    def test_whitespace_collapses(self):
        assert self._plain("<p>  a \t b  \n c </p>") == "a b c"

    def test_preformatted_whitespace_kept(self):
        options = ParseOptions(normalize_line_endings=False)
        assert self._plain("<pre>a  b\n c</pre>", options) == "a  b\n c"

    def test_line_break(self):
        assert self._plain("<p>a<br>b</p>") == "a\r\nb"
        assert self._plain("<p>a <br> b</p>", ParseOptions(inline_break_text="\n")) == "a\nb"

    def test_list_items(self):
        assert self._plain("<ul><li>one</li><li>two</li></ul>") == "one\r\ntwo"
        assert self._plain("<ul><li>one<li>two</ul>", ParseOptions(block_break_text="\n")) == "one\ntwo"

    def test_table(self):
        html = "<table><tr><td>a</td><td>b</td></tr><tr><td>c</td></tr></table>"
        assert self._plain(html) == "a b\r\nc"

    def test_entities_decoded(self):
        assert self._plain("<p>Fish &amp; Chips &copy;2024 &#169; &#x41; &bogus;</p>") == "Fish & Chips ©2024 © A &bogus;"

    def test_nbsp_survives_collapsing(self):
        assert self._plain("<p>a&nbsp;&nbsp;b</p>") == "a\xa0\xa0b"

    def test_hidden_content_excluded(self):
        html = "<p>a<script>var x;</script><style>p{}</style><!-- c -->b</p>"
        assert self._plain(html) == "ab"

    def test_textarea_content_included(self):
        assert self._plain("<p>x</p><textarea>a &lt;  b</textarea>") == "x\n\na <  b"

    def test_text_node(self):
        doc = parse("<p> a &amp; b </p>")
        assert doc.find("p", 0).children[0].plaintext() == "a & b"


if __name__ == "__main__":
    unittest.main()
