"""Document tree layer for tolerant markup processing.

This module provides the mutable node tree built by the parser and walked by
the formatter.
"""

from .nodes import (
    COMMENT_NAME,
    DOCUMENT_NAME,
    TEXT_NAME,
    MarkupComment,
    MarkupContainer,
    MarkupDocument,
    MarkupElement,
    MarkupNode,
    MarkupText,
    NodeKind,
    TagAttribute,
)

__all__ = [
    "COMMENT_NAME",
    "DOCUMENT_NAME",
    "TEXT_NAME",
    "MarkupComment",
    "MarkupContainer",
    "MarkupDocument",
    "MarkupElement",
    "MarkupNode",
    "MarkupText",
    "NodeKind",
    "TagAttribute",
]
