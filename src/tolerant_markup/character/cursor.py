"""Character cursor with bounded lookahead over decoded markup text.

The cursor starts before the first character; the parser calls ``advance``
once per step and inspects the current character and its neighbours through
peek properties that return a NUL sentinel outside the text.
"""

from typing import Tuple

SENTINEL = "\0"

TAG_OPEN = "<"
TAG_CLOSE = ">"
TEXT_DELIMITER = '"'
SELF_CLOSE_MARKER = "/"
COMMENT_DASH = "-"


class MarkupCursor:
    """Read position over a fully decoded markup string.

    Attributes:
        text: The decoded markup
        encoding: Encoding the text was decoded from
        position: Index of the current character, -1 before the first advance
        lookahead_scans: Number of closing-tag scans performed
    """

    def __init__(self, text: str, encoding: str = "utf-8") -> None:
        """Initialize the cursor before the first character.

        Args:
            text: Decoded markup text
            encoding: Encoding the text was decoded from
        """
        self.text = text
        self.encoding = encoding
        self.position = -1
        self.lookahead_scans = 0

    def __len__(self) -> int:
        return len(self.text)

    def _char_at(self, index: int) -> str:
        if 0 <= index < len(self.text):
            return self.text[index]
        return SENTINEL

    def advance(self) -> bool:
        """Move to the next character.

        Returns:
            False without moving when already on the last character
        """
        if self.position + 1 < len(self.text):
            self.position += 1
            return True
        return False

    def skip(self, count: int) -> bool:
        """Move forward ``count`` characters without examining them.

        Args:
            count: Number of characters to move

        Returns:
            False without moving when the target lies past the end of the text
        """
        if self.position + count < len(self.text):
            self.position += count
            return True
        return False

    @property
    def at_end(self) -> bool:
        """True when no further character can be reached."""
        return self.position + 1 >= len(self.text)

    @property
    def current(self) -> str:
        """Character at the current position."""
        return self._char_at(self.position)

    @property
    def peek_next(self) -> str:
        """Character after the current one."""
        return self._char_at(self.position + 1)

    @property
    def peek_next_next(self) -> str:
        """Character two positions ahead."""
        return self._char_at(self.position + 2)

    @property
    def peek_prev(self) -> str:
        """Character before the current one."""
        return self._char_at(self.position - 1)

    def peek_skip_whitespace(self) -> str:
        """Return the first non-whitespace character from the current position.

        The current character itself is included in the search; the position
        does not change.
        """
        index = max(self.position, 0)
        while index < len(self.text) and self.text[index].isspace():
            index += 1
        return self._char_at(index)

    @property
    def is_whitespace(self) -> bool:
        """Is the current character whitespace?"""
        return self.current.isspace()

    @property
    def is_tag_open(self) -> bool:
        """Is the current character a tag-open character (<)?"""
        return self.current == TAG_OPEN

    @property
    def is_tag_close(self) -> bool:
        """Is the current character a tag-close character (>)?"""
        return self.current == TAG_CLOSE

    @property
    def is_text_delimiter(self) -> bool:
        """Is the current character a quote delimiting attribute text?"""
        return self.current == TEXT_DELIMITER

    @property
    def is_comment_end(self) -> bool:
        """Is the cursor on the first dash of a ``-->`` terminator?"""
        return (
            self.current == COMMENT_DASH
            and self.peek_next == COMMENT_DASH
            and self.peek_next_next == TAG_CLOSE
        )

    @property
    def is_self_close_marker(self) -> bool:
        """Is the cursor on a '/' directly before '>' or directly after '<'?"""
        return self.current == SELF_CLOSE_MARKER and (
            self.peek_next == TAG_CLOSE or self.peek_prev == TAG_OPEN
        )

    def has_closing_tag(self, name: str) -> bool:
        """Check whether ``</name>`` occurs anywhere from the current position.

        The comparison is case-sensitive.

        Args:
            name: Tag name, e.g. ``body``

        Returns:
            True if the closing tag appears at or after the current position
        """
        self.lookahead_scans += 1
        closing = f"{TAG_OPEN}{SELF_CLOSE_MARKER}{name}{TAG_CLOSE}"
        return self.text.find(closing, max(self.position, 0)) != -1

    def line_column(self, position: int) -> Tuple[int, int]:
        """Convert a character offset into a 1-based (line, column) pair."""
        position = max(0, min(position, len(self.text)))
        line = self.text.count("\n", 0, position) + 1
        line_start = self.text.rfind("\n", 0, position) + 1
        return line, position - line_start + 1
