"""Tests for the markup parser state machine."""

import codecs

import pytest

from tolerant_markup.parsing import MarkupParser, ParserState
from tolerant_markup.shared import (
    DiagnosticSeverity,
    MarkupParseError,
    ParserConfig,
)
from tolerant_markup.tree import MarkupDocument, NodeKind, TagAttribute


def parse(text: str) -> MarkupDocument:
    return MarkupParser().parse(text)


class TestParserStates:
    """Test the state enumeration."""

    def test_states(self):
        """Test that all parser states exist."""
        assert {state.name for state in ParserState} == {
            "INIT",
            "READING_TAG",
            "READING_ATTRIBUTE_NAME",
            "READING_ATTRIBUTE_VALUE",
            "READING_COMMENT",
            "READING_TEXT",
        }


class TestInitState:
    """Test the start of a document."""

    def test_must_start_with_tag(self):
        """Test that text before the first tag is fatal."""
        with pytest.raises(MarkupParseError) as exc_info:
            parse("hello <b>x</b>")
        error = exc_info.value
        assert error.character == "h"
        assert error.position == 0
        assert (error.line, error.column) == (1, 1)

    def test_leading_whitespace_is_fatal(self):
        """Test that even whitespace before the first tag is rejected."""
        with pytest.raises(MarkupParseError):
            parse("\n<a>x</a>")

    def test_empty_input(self):
        """Test that empty input yields an empty document."""
        document = parse("")
        assert document.children == []

    def test_byte_order_mark_skipped(self):
        """Test that a leading BOM character is not treated as content."""
        document = parse("\ufeff<a>x</a>")
        assert document.children[0].name == "a"
        assert document.byte_order_mark
        assert not parse("<a>x</a>").byte_order_mark

    def test_byte_order_mark_bytes(self):
        """Test that a mark found while decoding bytes is recorded."""
        document = parse(codecs.BOM_UTF16_LE + "<a>x</a>".encode("utf-16-le"))
        assert document.encoding == "utf-16-le"
        assert document.byte_order_mark
        assert document.children[0].text_content == "x"


class TestTagsAndText:
    """Test tag reading and text accumulation."""

    def test_element_with_text(self):
        """Test <div>text</div>."""
        document = parse("<div>text</div>")
        assert len(document.children) == 1
        div = document.children[0]
        assert div.kind is NodeKind.ELEMENT
        assert div.name == "div"
        assert len(div.children) == 1
        assert div.children[0].kind is NodeKind.TEXT
        assert div.children[0].value == "text"

    def test_list_structure(self):
        """Test <ul> with two <li> children."""
        document = parse("<ul><li>A</li><li>B</li></ul>")
        ul = document.children[0]
        assert ul.name == "ul"
        assert [li.name for li in ul.children] == ["li", "li"]
        assert [li.children[0].value for li in ul.children] == ["A", "B"]
        assert all(li.text_only_child for li in ul.children)

    def test_text_is_trimmed(self):
        """Test that text runs are stripped and blank runs dropped."""
        document = parse("<div>\n   hello world  \n<br>\n  </div>")
        div = document.children[0]
        assert [c.name for c in div.children] == ["#text", "br"]
        assert div.children[0].value == "hello world"

    def test_mixed_content(self):
        """Test text interleaved with elements."""
        document = parse("<p>one <b>two</b> three</p>")
        p = document.children[0]
        assert [str(c) for c in p.children] == ["one", "<b>", "three"]

    def test_nested_same_name(self):
        """Test that end tags close the innermost open element."""
        document = parse("<div><div>inner</div>outer</div>")
        outer = document.children[0]
        inner = outer.children[0]
        assert inner.name == "div"
        assert inner.children[0].value == "inner"
        assert outer.children[1].value == "outer"

    def test_trailing_text_flushed(self):
        """Test that text after the last tag is kept."""
        document = parse("<br>tail")
        assert [str(c) for c in document.children] == ["<br>", "tail"]

    def test_trailing_text_flush_disabled(self):
        """Test dropping trailing text by configuration."""
        parser = MarkupParser(ParserConfig(flush_trailing_text=False))
        document = parser.parse("<br>tail")
        assert [c.name for c in document.children] == ["br"]

    def test_tag_names_keep_case(self):
        """Test that tag names are stored as written."""
        document = parse("<Body>x</Body>")
        assert document.children[0].name == "Body"


class TestVoidElements:
    """Test tags without a matching end tag."""

    @pytest.mark.parametrize("markup", ["<br>", "<br/>", "<hr>", "<hr />"])
    def test_leaf_without_end_tag(self, markup):
        """Test that br and hr are childless with or without a slash."""
        document = parse(f"<div>{markup}after</div>")
        div = document.children[0]
        leaf = div.children[0]
        assert leaf.name in ("br", "hr")
        assert leaf.children == []
        assert div.children[1].value == "after"

    def test_paragraph_without_end_tag(self):
        """Test that <p> with no later </p> does not swallow what follows."""
        document = parse("<div><p>first<p>second</div>")
        div = document.children[0]
        assert [str(c) for c in div.children] == ["<p>", "first", "<p>", "second"]
        assert all(c.children == [] for c in div.find_all("p"))

    def test_self_closed_tag_never_nests(self):
        """Test that <x/> is empty even when a </x> follows."""
        document = parse("<x><x/>a</x>")
        outer = document.children[0]
        assert [str(c) for c in outer.children] == ["<x>", "a"]
        assert outer.children[0].children == []

    def test_self_closed_with_attributes(self):
        """Test a self-closed tag with an attribute before the slash."""
        document = parse('<img src="a.png"/>')
        img = document.children[0]
        assert img.attributes == [TagAttribute("src", "a.png")]
        assert img.children == []


class TestAttributes:
    """Test attribute name and value states."""

    def test_boolean_attribute(self):
        """Test <input disabled>."""
        document = parse("<input disabled>")
        element = document.children[0]
        assert element.attributes == [TagAttribute("disabled")]
        assert element.attributes[0].value is None

    def test_quoted_and_unquoted_values(self):
        """Test quoted values with spaces and bare values."""
        document = parse('<a href="x y" id=z>t</a>')
        assert document.children[0].attributes == [
            TagAttribute("href", "x y"),
            TagAttribute("id", "z"),
        ]

    def test_whitespace_around_equals(self):
        """Test spaces on both sides of '='."""
        document = parse('<a x = "1" y>t</a>')
        assert document.children[0].attributes == [
            TagAttribute("x", "1"),
            TagAttribute("y"),
        ]

    def test_empty_quoted_value(self):
        """Test that an empty quoted value is kept as an empty string."""
        document = parse('<img alt="">')
        assert document.children[0].attributes == [TagAttribute("alt", "")]

    def test_markup_characters_inside_quotes(self):
        """Test that '>' and '/' inside quotes are ordinary characters."""
        document = parse('<a title="1 > 0" href="/a/b/">t</a>')
        assert document.children[0].attributes == [
            TagAttribute("title", "1 > 0"),
            TagAttribute("href", "/a/b/"),
        ]

    def test_quoted_boolean_name(self):
        """Test a quoted attribute name containing a space."""
        document = parse('<x "two words">t</x>')
        assert document.children[0].attributes == [TagAttribute("two words")]

    def test_tag_characters_inside_quoted_name(self):
        """Test that '=', '>' and '/' inside a quoted name belong to the name."""
        document = parse('<a "x=y" "p>q" "r/s"="t">x</a>')
        element = document.children[0]
        assert element.attributes == [
            TagAttribute("x=y"),
            TagAttribute("p>q"),
            TagAttribute("r/s", "t"),
        ]
        assert element.text_content == "x"

    def test_several_boolean_attributes(self):
        """Test consecutive bare names."""
        document = parse("<option selected disabled>x</option>")
        assert [a.name for a in document.children[0].attributes] == [
            "selected", "disabled"
        ]

    def test_value_without_name_dropped(self):
        """Test that '=value' with no name is reported and dropped."""
        report = MarkupParser().parse_with_report('<a ="x">t</a>')
        assert report.document.children[0].attributes == []
        warnings = report.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)
        assert any("without a name" in d.message for d in warnings)


class TestDeclarationsAndComments:
    """Test declarations and the comment state."""

    def test_doctype_is_leaf(self):
        """Test that <!DOCTYPE html> is an empty element with a boolean attribute."""
        document = parse("<!DOCTYPE html><html><body>x</body></html>")
        doctype, html = document.children
        assert doctype.name == "!DOCTYPE"
        assert doctype.attributes == [TagAttribute("html")]
        assert doctype.children == []
        assert html.children[0].name == "body"

    def test_xml_declaration(self):
        """Test that <?xml ...?> becomes a leaf element."""
        document = parse('<?xml version="1.0"?><root>x</root>')
        declaration = document.children[0]
        assert declaration.name == "?xml"
        assert declaration.attributes[0] == TagAttribute("version", "1.0")
        assert declaration.children == []
        assert document.root_element.name == "root"

    def test_comment(self):
        """Test <!-- hello -->."""
        document = parse("<!-- hello -->")
        assert len(document.children) == 1
        comment = document.children[0]
        assert comment.kind is NodeKind.COMMENT
        assert comment.value.strip() == "hello"

    def test_comment_keeps_markup(self):
        """Test that tags inside comments are not parsed."""
        document = parse("<div><!-- <b>not bold</b> -->x</div>")
        div = document.children[0]
        assert div.children[0].kind is NodeKind.COMMENT
        assert "<b>not bold</b>" in div.children[0].value
        assert div.children[1].value == "x"

    def test_empty_comment_dropped(self):
        """Test that blank comments produce no node."""
        document = parse("<div><!--   -->x</div>")
        assert [c.name for c in document.children[0].children] == ["#text"]

    def test_unterminated_comment(self):
        """Test that an unterminated comment is dropped with a warning."""
        report = MarkupParser().parse_with_report("<a>x</a><!-- open")
        assert [c.name for c in report.document.children] == ["a"]
        assert report.has_warnings


class TestTolerance:
    """Test recoverable irregularities."""

    def test_mismatched_end_tag(self):
        """Test that a stray end tag becomes an empty element."""
        report = MarkupParser().parse_with_report("<div></span></div>")
        div = report.document.children[0]
        assert [c.name for c in div.children] == ["span"]
        assert any(
            "does not match" in d.message
            for d in report.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)
        )

    def test_unterminated_tag(self):
        """Test that a tag cut off by the end of input is dropped."""
        report = MarkupParser().parse_with_report("<br>x<b")
        assert [str(c) for c in report.document.children] == ["<br>", "x"]
        assert any("not terminated" in d.message for d in report.diagnostics)

    def test_elements_left_open(self):
        """Test reporting elements still open at the end."""
        report = MarkupParser().parse_with_report("<a><a>x</a>")
        assert report.document.children[0].children[0].name == "a"
        assert any("still open" in d.message for d in report.diagnostics)

    def test_void_guess_is_info(self):
        """Test that guessing an empty element is informational only."""
        report = MarkupParser().parse_with_report("<br>")
        assert not report.has_warnings
        infos = report.get_diagnostics_by_severity(DiagnosticSeverity.INFO)
        assert any("<br>" in d.message for d in infos)

    def test_diagnostics_can_be_disabled(self):
        """Test turning diagnostic collection off."""
        parser = MarkupParser(ParserConfig(collect_diagnostics=False))
        report = parser.parse_with_report("<div></span></div>")
        assert report.diagnostics == []

    def test_empty_tag_name_dropped(self):
        """Test that '<>' is ignored with a warning."""
        report = MarkupParser().parse_with_report("<div><>x</div>")
        div = report.document.children[0]
        assert [str(c) for c in div.children] == ["x"]
        assert report.has_warnings


class TestParseReport:
    """Test reports, metrics and reuse."""

    def test_metrics(self):
        """Test collected metrics."""
        report = MarkupParser().parse_with_report("<ul><li>A</li><li>B</li></ul>")
        assert report.metrics.characters_processed == len("<ul><li>A</li><li>B</li></ul>")
        assert report.metrics.nodes_created == 5
        assert report.metrics.max_depth == 2
        assert report.metrics.lookahead_scans == 3
        assert report.element_count == 3

    def test_summary(self):
        """Test the JSON-friendly summary."""
        report = MarkupParser().parse_with_report("<div></span></div>")
        summary = report.summary()
        assert summary["encoding"] == "utf-8"
        assert summary["element_count"] == 2
        assert summary["has_warnings"] is True
        assert summary["diagnostic_counts"]["WARNING"] == 1
        assert summary["diagnostics"][0]["component"] == "markup_parser"

    def test_bytes_input(self):
        """Test parsing bytes with detection."""
        report = MarkupParser().parse_with_report(b"<p>caf\xe9</p>")
        assert report.encoding == "latin-1"
        assert report.document.children[0].children[0].value == "café"
        assert report.diagnostics[0].component == "decoder"

    def test_explicit_encoding(self):
        """Test parsing bytes with an explicit encoding."""
        document = MarkupParser().parse("<p>ü</p>".encode("utf-16-le"), "utf-16-le")
        assert document.encoding == "utf-16-le"
        assert document.children[0].text_content == "ü"

    def test_fill_existing_document(self):
        """Test parsing into a supplied document."""
        target = MarkupDocument(source_path="in.html")
        document = MarkupParser().parse("<a>x</a>", document=target)
        assert document is target
        assert document.children[0].name == "a"

    def test_parser_is_reusable(self):
        """Test that parse calls do not share state."""
        parser = MarkupParser(correlation_id="reuse")
        first = parser.parse("<a>1</a>")
        second = parser.parse("<b>2</b>")
        assert [c.name for c in first.children] == ["a"]
        assert [c.name for c in second.children] == ["b"]
        assert parser.parse_with_report("<c/>").correlation_id == "reuse"
