"""Exception hierarchy for tolerant markup processing.

Only genuine failures are raised: a document that does not start with a tag,
text written to a formatter with nothing open, and operations that would
corrupt the tree. Loosely-authored markup is never an error.
"""

from typing import Optional


class MarkupError(Exception):
    """Base class for all errors raised by tolerant_markup."""


class ConfigurationError(MarkupError, ValueError):
    """A configuration value is out of range or unusable."""


class MarkupParseError(MarkupError, ValueError):
    """The input cannot be read as markup at all.

    Raised when the first character of the document is not a tag opener.
    Callers may catch it and fall back to showing the raw text.

    Attributes:
        character: The offending character
        position: Zero-based offset of the character in the decoded text
        line: One-based line number of the character
        column: One-based column number of the character
    """

    def __init__(
        self,
        character: str,
        position: int,
        line: int = 1,
        column: int = 1,
        message: Optional[str] = None,
    ) -> None:
        self.character = character
        self.position = position
        self.line = line
        self.column = column
        if message is None:
            message = (
                f"Unexpected character {character!r} at line {line}, "
                f"column {column}: expected tag start '<'"
            )
        super().__init__(message)


class FormatterError(MarkupError, ValueError):
    """The formatter was asked to do something its state does not allow."""


class TreeStructureError(MarkupError, ValueError):
    """An operation would break the single-parent tree invariant."""
