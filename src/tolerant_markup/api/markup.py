"""Public entry points for parsing and formatting markup.

Module-level functions cover the common cases; :class:`MarkupProcessor`
keeps a configuration and usage statistics across many calls.
"""

import io
import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, TextIO, Union

from tolerant_markup.character import load_source_bytes, source_compression
from tolerant_markup.formatting import StreamFormatter, format_node, render_node
from tolerant_markup.parsing import MarkupParser, ParseReport
from tolerant_markup.shared import MarkupConfig, MarkupParseError, get_logger
from tolerant_markup.tree import MarkupDocument, MarkupNode

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]
PathType = Union[str, Path]

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion


def _parser_for(
    config: Optional[MarkupConfig], correlation_id: Optional[str]
) -> MarkupParser:
    config = config or MarkupConfig()
    return MarkupParser(config.parser, correlation_id or config.correlation_id)


def _document_for_path(source: Path) -> MarkupDocument:
    return MarkupDocument(
        source_path=source, compression=source_compression(source)
    )


def _raw_text(text: InputType) -> Optional[str]:
    """Text to pass through unchanged when input is not markup."""
    if isinstance(text, str):
        return text
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    return None


def parse_with_report(
    source: InputType,
    config: Optional[MarkupConfig] = None,
    correlation_id: Optional[str] = None,
    encoding: Optional[str] = None,
) -> ParseReport:
    """Parse markup and return the document with metrics and diagnostics.

    Args:
        source: Markup as text, bytes, a readable file object or a Path
        config: Processing configuration
        correlation_id: Optional correlation ID for request tracking
        encoding: Explicit encoding for byte and file input

    Returns:
        ParseReport for the source

    Raises:
        MarkupParseError: If the markup does not start with '<'
        OSError: If a Path cannot be read
    """
    parser = _parser_for(config, correlation_id)
    if isinstance(source, Path):
        document = _document_for_path(source)
        return parser.parse_with_report(
            load_source_bytes(source), encoding, document
        )
    return parser.parse_with_report(source, encoding)


def parse(
    source: InputType,
    config: Optional[MarkupConfig] = None,
    correlation_id: Optional[str] = None
) -> MarkupDocument:
    """Parse markup from text, bytes, a file object or a Path.

    Args:
        source: Markup to parse
        config: Processing configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The parsed document

    Raises:
        MarkupParseError: If the markup does not start with '<'

    Examples:
        >>> document = parse('<ul><li>A</li><li>B</li></ul>')
        >>> [li.text_content for li in document.find_all('li')]
        ['A', 'B']
    """
    logger = get_logger(__name__, correlation_id, "parse")
    logger.info(
        "Starting parse operation",
        extra={"input_type": type(source).__name__}
    )
    return parse_with_report(source, config, correlation_id).document


def parse_string(
    text: str,
    config: Optional[MarkupConfig] = None,
    correlation_id: Optional[str] = None
) -> MarkupDocument:
    """Parse markup held in a string.

    Examples:
        >>> parse_string('<input disabled>').find('input').get_attribute('disabled') is None
        True
    """
    logger = get_logger(__name__, correlation_id, "parse_string")
    logger.info(
        "Starting string parse operation",
        extra={
            "content_length": len(text),
            "preview": (
                text[:PREVIEW_LENGTH] + "..."
                if len(text) > PREVIEW_LENGTH else text
            )
        }
    )
    return parse_with_report(text, config, correlation_id).document


def parse_file(
    file_path: PathType,
    encoding: Optional[str] = None,
    config: Optional[MarkupConfig] = None,
    correlation_id: Optional[str] = None
) -> MarkupDocument:
    """Parse a markup file.

    Gzip-compressed files and zip archives (first entry) are read
    transparently. The document remembers its path and encoding.

    Args:
        file_path: Path to the file
        encoding: Encoding override, detected when omitted
        config: Processing configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The parsed document

    Raises:
        OSError: If the file cannot be read
        MarkupParseError: If the markup does not start with '<'
    """
    path = Path(file_path)
    logger = get_logger(__name__, correlation_id, "parse_file")
    logger.info(
        "Starting file parse operation",
        extra={"file_path": str(path), "encoding_override": encoding}
    )
    return parse_with_report(path, config, correlation_id, encoding).document


def load_document(
    file_path: PathType,
    config: Optional[MarkupConfig] = None
) -> MarkupDocument:
    """Open a markup file as a document."""
    return parse_file(file_path, config=config)


def format_markup(
    node: MarkupNode,
    config: Optional[MarkupConfig] = None,
    strict: bool = False
) -> str:
    """Render a node (a whole document or any subtree) as indented markup.

    Examples:
        >>> format_markup(parse('<div>text</div>'))
        '<div>text</div>\\n'
    """
    config = config or MarkupConfig()
    return format_node(node, config.formatter, strict)


def reformat(
    text: InputType,
    ignore_format_error: bool = False,
    config: Optional[MarkupConfig] = None
) -> str:
    """Parse markup and render it again with consistent indentation.

    Args:
        text: Markup to reformat
        ignore_format_error: Return the input unchanged when it is not markup
        config: Processing configuration

    Returns:
        The reformatted markup

    Raises:
        MarkupParseError: If the input is not markup and
            ``ignore_format_error`` is False
    """
    try:
        document = parse(text, config)
    except MarkupParseError:
        raw = _raw_text(text) if ignore_format_error else None
        if raw is None:
            raise
        return raw
    return format_markup(document, config)


def save_document(
    document: MarkupDocument,
    file_path: Optional[PathType] = None,
    config: Optional[MarkupConfig] = None
) -> Path:
    """Write a document as formatted markup in the document's encoding.

    The markup is rendered in full before the file is opened, so a
    rendering error leaves an existing file untouched. A byte order mark
    is written when the source had one.

    Args:
        document: Document to save
        file_path: Target path, defaults to the path the document was read from
        config: Processing configuration

    Returns:
        The path written

    Raises:
        ValueError: If no path is given and the document has no source path,
            or the target is the gzip or zip file the document was read from
        FormatterError: If strict text checking rejects the tree
    """
    if file_path is None:
        if document.source_path is None:
            raise ValueError("No file path given and document has no source path")
        file_path = document.source_path

    config = config or MarkupConfig()
    path = Path(file_path)
    logger = get_logger(__name__, config.correlation_id, "save_document")

    if (
        document.compression is not None
        and document.source_path is not None
        and path.resolve() == document.source_path.resolve()
    ):
        raise ValueError(
            f"Cannot overwrite {document.compression} source {path} with plain markup"
        )

    buffer = io.BytesIO()
    formatter = StreamFormatter(
        buffer, config.formatter, document.encoding, document.byte_order_mark
    )
    render_node(document, formatter, config.formatter.strict_text)
    path.write_bytes(buffer.getvalue())

    logger.info(
        "Document saved",
        extra={
            "file_path": str(path),
            "encoding": document.encoding,
            "byte_order_mark": document.byte_order_mark,
        }
    )
    return path


class MarkupProcessor:
    """Reusable parser and formatter with usage statistics.

    Attributes:
        config: Processing configuration
        correlation_id: Correlation ID for request tracking

    Examples:
        >>> processor = MarkupProcessor()
        >>> processor.reformat('<p>x</p>')
        '<p>x</p>\\n'
        >>> processor.statistics['total_parses']
        1
    """

    def __init__(
        self,
        config: Optional[MarkupConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the processor.

        Args:
            config: Processing configuration
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or MarkupConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "markup_processor")
        self._parser = MarkupParser(self.config.parser, self.correlation_id)
        self.reset_statistics()

    def parse_with_report(self, source: InputType) -> ParseReport:
        """Parse markup and record the outcome in the statistics."""
        start_time = time.perf_counter()
        try:
            if isinstance(source, Path):
                report = self._parser.parse_with_report(
                    load_source_bytes(source),
                    document=_document_for_path(source),
                )
            else:
                report = self._parser.parse_with_report(source)
        except MarkupParseError:
            self._failed_parses += 1
            raise
        finally:
            self._parse_count += 1
            self._total_processing_time += (
                time.perf_counter() - start_time
            ) * MS_PER_SECOND

        self._diagnostic_count += len(report.diagnostics)
        return report

    def parse(self, source: InputType) -> MarkupDocument:
        """Parse markup into a document."""
        return self.parse_with_report(source).document

    def format(self, node: MarkupNode, strict: bool = False) -> str:
        """Render a node with this processor's formatter configuration."""
        self._format_count += 1
        return format_node(node, self.config.formatter, strict)

    def reformat(self, text: InputType, ignore_format_error: bool = False) -> str:
        """Parse and re-render markup."""
        try:
            document = self.parse(text)
        except MarkupParseError:
            raw = _raw_text(text) if ignore_format_error else None
            if raw is None:
                raise
            return raw
        return self.format(document)

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get processor usage statistics."""
        successful = self._parse_count - self._failed_parses
        return {
            "total_parses": self._parse_count,
            "successful_parses": successful,
            "failed_parses": self._failed_parses,
            "success_rate": (
                successful / self._parse_count if self._parse_count > 0 else 0.0
            ),
            "total_formats": self._format_count,
            "total_diagnostics": self._diagnostic_count,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset processor usage statistics."""
        self._parse_count = 0
        self._failed_parses = 0
        self._format_count = 0
        self._diagnostic_count = 0
        self._total_processing_time = 0.0
