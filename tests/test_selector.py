import logging
import unittest

from laxhtml import SelectorError, matches, parse, parse_selector

HTML = (
    '<div id="main" class="box big">'
    '<p class="a">one</p>'
    '<p lang="en-US">two</p>'
    "<span>three</span>"
    '<a href="/x.pdf" type="TEXT/html">link</a>'
    "</div>"
    "<p>four</p>"
)


class TestSelectorMatching(unittest.TestCase):
    def setUp(self):
        self.doc = parse(HTML)

    def _texts(self, selector, node=None):
        node = node or self.doc
        return [element.innertext() for element in node.find(selector)]

    def test_tag(self):
        assert self._texts("p") == ["one", "two", "four"]

    def test_universal(self):
        assert len(self.doc.find("*")) == 6

    def test_id_and_class(self):
        assert self.doc.find("#main", 0).tag == "div"
        assert self._texts("p.a") == ["one"]
        assert len(self.doc.find("div.box.big")) == 1
        assert self.doc.find("div.small") == []

    def test_descendant_and_child(self):
        assert self._texts("#main p") == ["one", "two"]
        assert self._texts("div > span") == ["three"]
        assert self.doc.find("div > p", 1).innertext() == "two"

    def test_combinators_try_every_candidate(self):
        doc = parse('<div class="x"><div class="y"><div class="y"><span class="z">hit</span></div></div></div>')
        assert [el.innertext() for el in doc.find(".x > .y .z")] == ["hit"]
        doc = parse('<p class="a"></p><p class="b"></p><p class="b"></p><i>hit</i>')
        assert [el.innertext() for el in doc.find(".a + .b ~ i")] == ["hit"]

    def test_siblings(self):
        assert self._texts("p + span") == ["three"]
        assert self._texts("p ~ a") == ["link"]
        assert self._texts("div + p") == ["four"]

    def test_attribute_operators(self):
        assert self._texts("[lang]") == ["two"]
        assert self._texts("[lang=en-US]") == ["two"]
        assert self._texts("[lang|=en]") == ["two"]
        assert self._texts("a[href^=/x]") == ["link"]
        assert self._texts("a[href$=.pdf]") == ["link"]
        assert self._texts('a[href*="x."]') == ["link"]
        assert [el.tag for el in self.doc.find("[class~=big]")] == ["div"]

    def test_not_equal_matches_missing_attribute(self):
        assert self._texts("p[lang!=en-US]") == ["one", "four"]

    def test_attribute_absent(self):
        assert self._texts("p[!class]") == ["two", "four"]

    def test_case_insensitive_attribute_values(self):
        # "type" and "lang" values compare case-insensitively, "href" ones do not
        assert self._texts("[type=text/html]") == ["link"]
        assert self._texts("[lang=en-us]") == ["two"]
        assert self._texts("[href$=.PDF]") == []
        assert self._texts("[href$=.PDF i]") == ["link"]
        assert self._texts('[type="text/html" s]') == []

    def test_attribute_name_is_case_insensitive(self):
        assert self._texts("[LANG]") == ["two"]

    def test_selector_list_is_in_document_order(self):
        elements = self.doc.find("span, p")
        assert [el.tag for el in elements] == ["p", "p", "span", "p"]

    def test_selector_list_has_no_duplicates(self):
        assert self._texts("p, .a, [class=a]") == ["one", "two", "four"]

    def test_pseudo_classes(self):
        assert self._texts("p:first-child") == ["one"]
        assert self._texts("p:last-child") == ["four"]
        assert self._texts("#main :nth-child(2)") == ["two"]
        assert self._texts("#main > :nth-child(odd)") == ["one", "three"]
        assert self._texts("p:nth-of-type(2)") == ["two"]
        assert self._texts("p:first-of-type") == ["one", "four"]
        assert self._texts("p:last-of-type") == ["two", "four"]
        assert self._texts("p:not(.a)") == ["two", "four"]
        assert self._texts("span:only-of-type") == ["three"]

    def test_empty(self):
        doc = parse("<div><p></p><p> </p><p>x</p><p><!-- c --></p></div>")
        assert len(doc.find("p:empty")) == 3

    def test_leading_combinator_is_relative_to_start(self):
        main = self.doc.find("#main", 0)
        assert self._texts("> p", main) == ["one", "two"]
        assert self._texts(":scope > span", main) == ["three"]
        assert self._texts("> p") == ["four"]

    def test_search_excludes_start_node(self):
        main = self.doc.find("#main", 0)
        assert main.find("div") == []

    def test_find_index(self):
        assert self.doc.find("p", 0).innertext() == "one"
        assert self.doc.find("p", -1).innertext() == "four"
        assert self.doc.find("p", 3) is None
        assert self.doc.find("p", -4) is None

    def test_matches(self):
        span = self.doc.find("span", 0)
        assert matches(span, "#main > span")
        assert not matches(span, "p")


class TestInvalidSelectors(unittest.TestCase):
    def setUp(self):
        self.doc = parse(HTML)

    def test_invalid_selector_matches_nothing(self):
        for selector in ["p[", "p[lang", "p)", "", "  ", ":hover", "p:nth-child(x)", '[a="b]', "div >"]:
            assert self.doc.find(selector) == [], selector
            assert self.doc.find(selector, 0) is None, selector

    def test_invalid_selector_is_logged(self):
        with self.assertLogs("laxhtml.selector", level=logging.DEBUG) as logs:
            self.doc.find("p[[unique-for-log-test")
        assert "Invalid selector" in logs.output[0]

    def test_parse_selector_raises(self):
        with self.assertRaises(SelectorError):
            parse_selector("p[")
        with self.assertRaises(ValueError):
            parse_selector(":unknown-pseudo")

    def test_parse_selector_structure(self):
        selector_list = parse_selector("div > p.a, span")
        assert len(selector_list.selectors) == 2
        combinators = [combinator for combinator, _ in selector_list.selectors[0].parts]
        assert combinators == [None, ">"]


if __name__ == "__main__":
    unittest.main()
