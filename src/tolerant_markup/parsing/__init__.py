"""Parsing layer for tolerant markup processing.

This module provides the character-level state machine that turns decoded
markup text into a document tree.
"""

from .parser import MarkupParser, ParseReport, ParserState

__all__ = [
    "MarkupParser",
    "ParseReport",
    "ParserState",
]
