"""Formatting layer for tolerant markup processing.

This module provides the render contexts and the tree walker that turn a
document tree back into consistently indented markup.
"""

from .formatter import (
    MarkupFormatter,
    StreamFormatter,
    StringFormatter,
    format_children,
    format_node,
    render_children,
    render_node,
)

__all__ = [
    "MarkupFormatter",
    "StreamFormatter",
    "StringFormatter",
    "format_children",
    "format_node",
    "render_children",
    "render_node",
]
