"""Tests for the markup cursor."""

from tolerant_markup.character import SENTINEL, MarkupCursor


def _cursor_at(text: str, position: int) -> MarkupCursor:
    cursor = MarkupCursor(text)
    for _ in range(position + 1):
        cursor.advance()
    return cursor


class TestCursorMovement:
    """Test advancing and skipping."""

    def test_starts_before_first_character(self):
        """Test the initial position."""
        cursor = MarkupCursor("<a>")
        assert cursor.position == -1
        assert cursor.current == SENTINEL
        assert cursor.peek_next == "<"

    def test_advance_visits_every_character(self):
        """Test that advance walks the text once."""
        cursor = MarkupCursor("abc")
        seen = []
        while cursor.advance():
            seen.append(cursor.current)
        assert seen == ["a", "b", "c"]
        assert cursor.position == 2

    def test_advance_stops_at_end(self):
        """Test that advance does not move past the last character."""
        cursor = _cursor_at("ab", 1)
        assert cursor.at_end
        assert cursor.advance() is False
        assert cursor.position == 1

    def test_empty_text(self):
        """Test a cursor over empty text."""
        cursor = MarkupCursor("")
        assert cursor.at_end
        assert cursor.advance() is False
        assert len(cursor) == 0

    def test_skip(self):
        """Test skipping forward."""
        cursor = _cursor_at("-->x", 0)
        assert cursor.skip(2) is True
        assert cursor.current == ">"

    def test_skip_past_end_does_not_move(self):
        """Test that skipping beyond the text fails without moving."""
        cursor = _cursor_at("--", 0)
        assert cursor.skip(2) is False
        assert cursor.position == 0


class TestCursorPeeking:
    """Test lookahead and lookbehind."""

    def test_neighbours(self):
        """Test peeking around the current character."""
        cursor = _cursor_at("abcd", 1)
        assert cursor.peek_prev == "a"
        assert cursor.current == "b"
        assert cursor.peek_next == "c"
        assert cursor.peek_next_next == "d"

    def test_sentinel_outside_text(self):
        """Test that every peek outside the text yields the sentinel."""
        cursor = _cursor_at("ab", 1)
        assert cursor.peek_next == SENTINEL
        assert cursor.peek_next_next == SENTINEL

        cursor = _cursor_at("ab", 0)
        assert cursor.peek_prev == SENTINEL

    def test_peek_skip_whitespace(self):
        """Test finding the next non-whitespace character."""
        cursor = _cursor_at("a  \n = b", 1)
        assert cursor.peek_skip_whitespace() == "="
        assert cursor.position == 1

    def test_peek_skip_whitespace_includes_current(self):
        """Test that a non-whitespace current character is returned."""
        cursor = _cursor_at("x y", 0)
        assert cursor.peek_skip_whitespace() == "x"

    def test_peek_skip_whitespace_at_end(self):
        """Test trailing whitespace yields the sentinel."""
        cursor = _cursor_at("a   ", 1)
        assert cursor.peek_skip_whitespace() == SENTINEL


class TestCursorClassification:
    """Test character classification predicates."""

    def test_basic_predicates(self):
        """Test tag, quote and whitespace predicates."""
        assert _cursor_at("<", 0).is_tag_open
        assert _cursor_at(">", 0).is_tag_close
        assert _cursor_at('"', 0).is_text_delimiter
        assert _cursor_at(" ", 0).is_whitespace
        assert _cursor_at("\t", 0).is_whitespace
        assert not _cursor_at("'", 0).is_text_delimiter

    def test_comment_end(self):
        """Test recognizing the first dash of a comment terminator."""
        assert _cursor_at("a-->", 1).is_comment_end
        assert not _cursor_at("a->", 1).is_comment_end
        assert not _cursor_at("a--", 1).is_comment_end

    def test_self_close_marker_before_close(self):
        """Test '/' directly before '>'."""
        assert _cursor_at("<br/>", 3).is_self_close_marker

    def test_self_close_marker_after_open(self):
        """Test '/' directly after '<'."""
        assert _cursor_at("</p>", 1).is_self_close_marker

    def test_slash_elsewhere_is_not_marker(self):
        """Test that a slash inside a value is an ordinary character."""
        assert not _cursor_at("<a href=/x>", 8).is_self_close_marker


class TestHasClosingTag:
    """Test the closing tag lookahead."""

    def test_found_after_position(self):
        """Test finding a later closing tag."""
        cursor = _cursor_at("<div>text</div>", 4)
        assert cursor.has_closing_tag("div") is True

    def test_missing_closing_tag(self):
        """Test that a tag without an end tag is reported as such."""
        cursor = _cursor_at("<div><p>x</div>", 7)
        assert cursor.has_closing_tag("p") is False

    def test_earlier_closing_tag_ignored(self):
        """Test that closing tags before the position do not count."""
        text = "<p>a</p><p>b"
        cursor = _cursor_at(text, text.rindex(">"))
        assert cursor.has_closing_tag("p") is False

    def test_case_sensitive(self):
        """Test that the comparison is exact."""
        cursor = _cursor_at("<DIV>x</div>", 4)
        assert cursor.has_closing_tag("DIV") is False
        assert cursor.has_closing_tag("div") is True

    def test_before_first_advance(self):
        """Test scanning from the start of the text."""
        cursor = MarkupCursor("</a>")
        assert cursor.has_closing_tag("a") is True

    def test_counts_scans(self):
        """Test that every scan is counted."""
        cursor = _cursor_at("<a></a>", 2)
        cursor.has_closing_tag("a")
        cursor.has_closing_tag("b")
        assert cursor.lookahead_scans == 2


class TestLineColumn:
    """Test offset to line/column conversion."""

    def test_first_line(self):
        """Test positions on the first line."""
        cursor = MarkupCursor("abc\ndef")
        assert cursor.line_column(0) == (1, 1)
        assert cursor.line_column(2) == (1, 3)

    def test_later_line(self):
        """Test positions after a line break."""
        cursor = MarkupCursor("abc\ndef\ng")
        assert cursor.line_column(4) == (2, 1)
        assert cursor.line_column(8) == (3, 1)
