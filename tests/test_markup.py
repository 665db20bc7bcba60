"""Tests for converters.markup -- to_markup() and from_markup().

Covers:
- Exact serialization of the skeleton document
- Void elements, attribute and text escaping
- Raw-content elements (script, style)
- Malformed trees
- Parsing: entity decoding, comments, empty input
"""

import pytest

from webstrate_sync.converters.markup import (
    escape_attribute,
    escape_text,
    from_markup,
    to_markup,
)
from webstrate_sync.converters.tree import normalize, skeleton_tree
from webstrate_sync.errors import MalformedTreeError, ParseError

# =============================================================================
# Escaping helpers
# =============================================================================


class TestEscaping:
    def test_ampersand_escaped_first(self):
        assert escape_text("&lt;") == "&amp;lt;"

    def test_text_escapes_angle_brackets(self):
        assert escape_text("a < b > c") == "a &lt; b &gt; c"

    def test_attribute_escapes_quote_and_ampersand(self):
        assert escape_attribute('say "hi" & go') == "say &quot;hi&quot; &amp; go"

    def test_attribute_keeps_angle_brackets(self):
        assert escape_attribute("<b>") == "<b>"


# =============================================================================
# to_markup
# =============================================================================


class TestToMarkup:
    """Tests for to_markup(tree)."""

    def test_skeleton(self):
        assert to_markup(skeleton_tree()) == "<html><body></body></html>"

    def test_void_element_has_no_closing_tag(self):
        tree = ["html", {}, ["body", {}, "a", ["br", {}], "b"]]
        assert to_markup(tree) == "<html><body>a<br>b</body></html>"

    def test_text_is_escaped(self):
        tree = ["html", {}, ["body", {}, ["p", {}, "Hi & bye <3"]]]
        assert (
            to_markup(tree)
            == "<html><body><p>Hi &amp; bye &lt;3</p></body></html>"
        )

    def test_attributes_in_order(self):
        tree = [
            "html",
            {},
            ["body", {"class": "a b", "data-x": 'say "hi" & go'}],
        ]
        assert to_markup(tree) == (
            '<html><body class="a b" data-x="say &quot;hi&quot; &amp; go">'
            "</body></html>"
        )

    def test_script_content_is_verbatim(self):
        tree = ["html", {}, ["body", {}, ["script", {}, "if (a < b && c) {}"]]]
        assert to_markup(tree) == (
            "<html><body><script>if (a < b && c) {}</script></body></html>"
        )

    def test_style_content_is_verbatim(self):
        tree = ["style", {}, "a > b { color: red }"]
        assert to_markup(tree) == "<style>a > b { color: red }</style>"

    def test_raw_content_applies_to_direct_text_only(self):
        tree = ["div", {}, "x & y", ["script", {}, "x & y"]]
        assert to_markup(tree) == "<div>x &amp; y<script>x & y</script></div>"

    def test_missing_attributes_slot(self):
        assert to_markup(["p", "hi"]) == "<p>hi</p>"

    def test_boolean_attribute(self):
        assert to_markup(["input", {"disabled": True}]) == '<input disabled="">'

    def test_numeric_attribute(self):
        assert to_markup(["td", {"colspan": 2}]) == '<td colspan="2"></td>'

    def test_bare_text_leaf(self):
        assert to_markup("a & b") == "a &amp; b"

    @pytest.mark.parametrize(
        "tree",
        [
            ["html", {}, 42],
            ["html", {}, []],
            [42, {}],
            ["br", {}, "child"],
            ["p", {"data": ["x"]}],
            ["p", {"": "x"}],
            None,
        ],
        ids=[
            "number-child",
            "empty-child",
            "non-string-tag",
            "void-with-children",
            "list-attribute",
            "empty-attribute-name",
            "none-root",
        ],
    )
    def test_malformed_tree_raises(self, tree):
        with pytest.raises(MalformedTreeError):
            to_markup(tree)


# =============================================================================
# from_markup
# =============================================================================


class TestFromMarkup:
    """Tests for from_markup(text)."""

    def test_skeleton(self):
        tree = normalize(from_markup("<html><body></body></html>"))
        assert tree == skeleton_tree()

    def test_surrounding_whitespace_stripped(self):
        tree = normalize(from_markup("\n  <html><body></body></html>\n\n"))
        assert tree == skeleton_tree()

    def test_entities_decoded(self):
        tree = from_markup("<html><body><p>Hi &amp; bye &lt;3</p></body></html>")
        assert tree == ["html", {}, ["body", {}, ["p", {}, "Hi & bye <3"]]]

    def test_attributes_kept(self):
        tree = from_markup(
            '<html><body><p class="lead" id="x">t</p></body></html>'
        )
        assert tree[2][2] == ["p", {"class": "lead", "id": "x"}, "t"]

    def test_comment_dropped_and_text_merged(self):
        tree = from_markup("<html><body>a<!-- note -->b</body></html>")
        assert tree == ["html", {}, ["body", {}, "ab"]]

    def test_script_content_not_decoded(self):
        tree = from_markup(
            "<html><body><script>if (a < b) { x = '&amp;'; }</script></body></html>"
        )
        assert tree[2][2] == ["script", {}, "if (a < b) { x = '&amp;'; }"]

    def test_tags_lowercased(self):
        tree = from_markup("<HTML><BODY><P>x</P></BODY></HTML>")
        assert tree == ["html", {}, ["body", {}, ["p", {}, "x"]]]

    def test_fragment_gets_wrapped(self):
        tree = from_markup("<p>x</p>")
        assert tree[0] == "html"
        assert tree[2][0] == "body"
        assert tree[2][2] == ["p", {}, "x"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t\n"])
    def test_empty_document_raises(self, text):
        with pytest.raises(ParseError, match="empty"):
            from_markup(text)


class TestRoundTrip:
    """Serializing and re-parsing yields the same normalized tree."""

    def test_mixed_document(self):
        tree = [
            "html",
            {},
            [
                "body",
                {"class": "main"},
                ["h1", {}, "Title & more"],
                ["p", {}, "one", ["br", {}], "two"],
                ["script", {}, "var x = 1 < 2;"],
            ],
        ]
        assert normalize(from_markup(to_markup(tree))) == tree

    def test_markup_is_stable(self):
        markup = '<html><body><p id="a">x &amp; y</p></body></html>'
        assert to_markup(normalize(from_markup(markup))) == markup
