"""Pretty-printing formatter for markup trees.

A formatter is a render context: it tracks the stack of open tags (which
drives indentation), whether the output is at the start of a line, and the
configured indent unit and line ending. :func:`render_node` walks a tree and
drives a formatter through its primitive operations; :func:`format_node`
does this with a fresh in-memory formatter per call.
"""

import codecs
from abc import ABC, abstractmethod
from typing import BinaryIO, List, Optional, Sequence

from tolerant_markup.shared import FormatterConfig, FormatterError, get_logger
from tolerant_markup.tree import (
    MarkupComment,
    MarkupElement,
    MarkupNode,
    MarkupText,
    NodeKind,
    TagAttribute,
)

PREFORMATTED_TAG = "pre"
BYTE_ORDER_MARK = "\ufeff"
BOM_WRITING_CODECS = frozenset({"utf-16", "utf-32", "utf-8-sig"})  # Emit their own mark

logger = get_logger(__name__, component="markup_formatter")


def _split_lines(text: str) -> List[str]:
    """Split on any line break, strip each line and drop empty ones."""
    return [line.strip() for line in text.splitlines() if line.strip()]


class MarkupFormatter(ABC):
    """Base render context with the primitive layout operations.

    All operations return the formatter so calls can be chained. A formatter
    is meant for a single top-to-bottom render pass.
    """

    def __init__(self, config: Optional[FormatterConfig] = None) -> None:
        """Initialize the render context.

        Args:
            config: Formatter configuration
        """
        self.config = config or FormatterConfig()
        self._open_elements: List[str] = []
        self._at_line_start = True

    @property
    @abstractmethod
    def markup(self) -> str:
        """Everything written so far."""

    @abstractmethod
    def _write(self, text: str) -> None:
        """Write raw text to the output."""

    @property
    def current_indent(self) -> str:
        """Indent for the current nesting depth."""
        return self.config.indent * len(self._open_elements)

    @property
    def current_open_element(self) -> Optional[str]:
        """Name of the innermost open tag, if any."""
        return self._open_elements[-1] if self._open_elements else None

    @property
    def is_element_open(self) -> bool:
        return bool(self._open_elements)

    @property
    def open_element_count(self) -> int:
        return len(self._open_elements)

    @property
    def at_line_start(self) -> bool:
        return self._at_line_start

    # Indent and line handling

    def append_line(self) -> "MarkupFormatter":
        """End the current line unconditionally."""
        self._write(self.config.newline)
        self._at_line_start = True
        return self

    def new_line(self) -> "MarkupFormatter":
        """End the current line unless already at the start of one."""
        if self._at_line_start:
            return self
        return self.append_line()

    def indent(self) -> "MarkupFormatter":
        """Write the current indent if at the start of a line."""
        if self._at_line_start:
            self._write(self.current_indent)
            self._at_line_start = False
        return self

    def can_loose_close(self, tag: str) -> bool:
        """True for tags written as ``<tag>`` when they have no children."""
        return tag.lower() in self.config.loose_close_tags

    # Text and comments

    def append_text(self, text: str, nocheck: bool = False) -> "MarkupFormatter":
        """Write text, one indented line per non-blank source line.

        Args:
            text: Text to write; surrounding whitespace is removed
            nocheck: Allow text while no element is open

        Raises:
            FormatterError: If no element is open and ``nocheck`` is False
        """
        lines = _split_lines(text)
        if not lines:
            return self

        if not self._open_elements and not nocheck:
            raise FormatterError("No open element: cannot append text")

        for index, line in enumerate(lines):
            if index:
                self.new_line()
            self.indent()
            self._write(line)
        return self

    def append_markup(self, ml: str) -> "MarkupFormatter":
        """Write a multi-line block with leading whitespace removed per line."""
        lines = [line.lstrip() for line in ml.strip().splitlines()]
        lines = [line for line in lines if line]
        for index, line in enumerate(lines):
            if index:
                self.new_line()
            self.indent()
            self._write(line)
        return self

    def comment(self, comment: str) -> "MarkupFormatter":
        """Write ``<!--comment-->`` on its own line."""
        self.new_line()
        self.indent()
        self._write("<!--")
        self.append_markup(comment.strip())
        self._write("-->")
        return self.append_line()

    # Tags

    def _start_tag(self, tag: str, attributes: Sequence[TagAttribute]) -> None:
        self._write(f"<{tag}{TagAttribute.to_markup_string(attributes)}")

    def open(
        self, tag: str, attributes: Sequence[TagAttribute] = ()
    ) -> "MarkupFormatter":
        """Open a block element: start tag on its own line, content indented."""
        if not self._at_line_start:
            self.append_line()
        self.indent()
        self._start_tag(tag, attributes)
        self._write(">")
        self._open_elements.append(tag)
        return self.append_line()

    def open_inline(
        self,
        tag: str,
        attributes: Sequence[TagAttribute] = (),
        close_in_start_tag: bool = False
    ) -> "MarkupFormatter":
        """Write a start tag in place.

        Args:
            tag: Tag name
            attributes: Tag attributes
            close_in_start_tag: Write an empty element (``<br>`` or
                ``<tag/>``) instead of opening one
        """
        self.indent()
        self._start_tag(tag, attributes)
        if close_in_start_tag:
            self._write(">" if self.can_loose_close(tag) else "/>")
            if attributes:
                self.new_line()
        else:
            self._write(">")
            self._open_elements.append(tag)
        return self

    def close(self) -> "MarkupFormatter":
        """Close the innermost element with its end tag on its own line."""
        if not self._open_elements:
            return self
        tag = self._open_elements.pop()
        self.new_line()
        self.indent()
        self._write(f"</{tag}>")
        self._at_line_start = False
        return self.new_line()

    def close_inline(self) -> "MarkupFormatter":
        """Close the innermost element in place."""
        if self._open_elements:
            self._write(f"</{self._open_elements.pop()}>")
        return self

    def close_to_tag(self, tag: str) -> "MarkupFormatter":
        """Close elements until ``tag`` is no longer open."""
        while tag in self._open_elements:
            self.close()
        return self

    def close_all(self) -> "MarkupFormatter":
        """Close every open element."""
        while self._open_elements:
            self.close()
        return self


class StringFormatter(MarkupFormatter):
    """Formatter that builds the markup in memory."""

    def __init__(self, config: Optional[FormatterConfig] = None) -> None:
        super().__init__(config)
        self._parts: List[str] = []

    def _write(self, text: str) -> None:
        self._parts.append(text)

    @property
    def markup(self) -> str:
        return "".join(self._parts)


class StreamFormatter(MarkupFormatter):
    """Formatter that writes encoded markup to a binary stream.

    A text copy of everything written is kept in :attr:`markup`.
    """

    def __init__(
        self,
        target: BinaryIO,
        config: Optional[FormatterConfig] = None,
        encoding: str = "utf-8",
        byte_order_mark: bool = False
    ) -> None:
        """Initialize the stream formatter.

        Args:
            target: Writable binary stream
            config: Formatter configuration
            encoding: Encoding for the bytes written to ``target``
            byte_order_mark: Start the stream with a byte order mark
        """
        super().__init__(config)
        self.target = target
        self.encoding = encoding
        self._encoder = codecs.getincrementalencoder(encoding)(
            errors="xmlcharrefreplace"
        )
        self._copy: List[str] = []
        codec_name = codecs.lookup(encoding).name
        if byte_order_mark and codec_name not in BOM_WRITING_CODECS:
            self.target.write(self._encoder.encode(BYTE_ORDER_MARK))

    def _write(self, text: str) -> None:
        if not text:
            return
        self.target.write(self._encoder.encode(text))
        self._copy.append(text)

    @property
    def markup(self) -> str:
        return "".join(self._copy)


def render_children(
    node: MarkupNode, formatter: MarkupFormatter, strict: bool = False
) -> MarkupFormatter:
    """Render every child of ``node`` in order."""
    for child in node.children:
        render_node(child, formatter, strict)
    return formatter


def _render_element(
    element: MarkupElement, formatter: MarkupFormatter, strict: bool
) -> None:
    if not element.children:
        formatter.open_inline(
            element.name, element.attributes, close_in_start_tag=True
        ).new_line()
    elif element.inline or element.name.lower() == PREFORMATTED_TAG:
        formatter.open_inline(element.name, element.attributes)
        render_children(element, formatter, strict)
        formatter.close_inline()
    elif element.text_only_child:
        formatter.open_inline(element.name, element.attributes)
        render_node(element.children[0], formatter, strict)
        formatter.close_inline().new_line()
    else:
        formatter.open(element.name, element.attributes)
        render_children(element, formatter, strict)
        formatter.close()


def render_node(
    node: MarkupNode, formatter: MarkupFormatter, strict: bool = False
) -> MarkupFormatter:
    """Render a node and its subtree into ``formatter``.

    Args:
        node: Node to render; a document renders only its children
        formatter: Render context to write to
        strict: Raise FormatterError for text outside any element

    Returns:
        The formatter
    """
    if node.kind is NodeKind.ELEMENT:
        _render_element(node, formatter, strict)  # type: ignore[arg-type]
    elif node.kind is NodeKind.TEXT:
        text: MarkupText = node  # type: ignore[assignment]
        formatter.append_text(text.value, nocheck=not strict)
    elif node.kind is NodeKind.COMMENT:
        comment: MarkupComment = node  # type: ignore[assignment]
        if comment.value.strip():
            formatter.comment(comment.value)
    elif node.kind is NodeKind.DOCUMENT:
        render_children(node, formatter, strict)
    return formatter


def format_node(
    node: MarkupNode,
    config: Optional[FormatterConfig] = None,
    strict: bool = False
) -> str:
    """Render a node to a string with a new formatter.

    Args:
        node: Node to render; for a document only the children are written
        config: Formatter configuration
        strict: Raise FormatterError for text outside any element

    Returns:
        The formatted markup
    """
    formatter = StringFormatter(config)
    render_node(node, formatter, strict or formatter.config.strict_text)
    markup = formatter.markup
    logger.debug(
        "Formatted node",
        extra={"node": node.name, "output_length": len(markup)}
    )
    return markup


def format_children(
    node: MarkupNode,
    config: Optional[FormatterConfig] = None,
    strict: bool = False
) -> str:
    """Render only the children of ``node`` to a string."""
    formatter = StringFormatter(config)
    render_children(node, formatter, strict or formatter.config.strict_text)
    return formatter.markup
