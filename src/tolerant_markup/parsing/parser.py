"""Per-character state machine that builds a markup tree.

The parser walks a :class:`MarkupCursor` one character at a time. Each state
handler may switch the state; whenever the state changes, the transition
handler commits attributes, flushes text and finalizes tags. Whether an
opening tag has children is decided by scanning ahead for its end tag, so
unclosed tags such as ``<br>`` become empty elements.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from tolerant_markup.character import InputType, MarkupCursor, TextDecoder
from tolerant_markup.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    MarkupParseError,
    ParserConfig,
    PerformanceMetrics,
    get_logger,
)
from tolerant_markup.tree import (
    MarkupComment,
    MarkupContainer,
    MarkupDocument,
    MarkupElement,
    MarkupText,
    TagAttribute,
)

BYTE_ORDER_MARK = "\ufeff"
COMMENT_OPENER = "!--"
DECLARATION_PREFIX = "!"
ASSIGNMENT = "="
MS_PER_SECOND = 1000


class ParserState(Enum):
    """State machine states for markup parsing."""

    INIT = auto()                      # Before the first tag
    READING_TAG = auto()               # Reading a tag name
    READING_ATTRIBUTE_NAME = auto()    # Reading an attribute name
    READING_ATTRIBUTE_VALUE = auto()   # Reading an attribute value
    READING_COMMENT = auto()           # Inside <!-- ... -->
    READING_TEXT = auto()              # Between tags


TAG_STATES = frozenset({
    ParserState.READING_TAG,
    ParserState.READING_ATTRIBUTE_NAME,
    ParserState.READING_ATTRIBUTE_VALUE,
})


@dataclass
class ParseReport:
    """Parsed document together with metrics and diagnostics.

    Attributes:
        document: The parsed tree
        metrics: Cost of the parse run
        diagnostics: Tolerated irregularities found in the input
        correlation_id: Correlation ID of the request, if any
    """

    document: MarkupDocument
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    correlation_id: Optional[str] = None

    @property
    def encoding(self) -> str:
        """Encoding the source was decoded from."""
        return self.document.encoding

    @property
    def has_warnings(self) -> bool:
        """True when any diagnostic is a warning or worse."""
        return any(
            entry.severity in (DiagnosticSeverity.WARNING, DiagnosticSeverity.ERROR)
            for entry in self.diagnostics
        )

    @property
    def element_count(self) -> int:
        """Number of elements in the tree, declarations included."""
        return sum(1 for _ in self.document.iter_elements())

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics filtered by severity level."""
        return [entry for entry in self.diagnostics if entry.severity == severity]

    def summary(self) -> Dict[str, Any]:
        """Get a JSON-friendly overview of the parse."""
        counts: Dict[str, int] = {}
        for entry in self.diagnostics:
            counts[entry.severity.name] = counts.get(entry.severity.name, 0) + 1

        return {
            "encoding": self.encoding,
            "element_count": self.element_count,
            "node_count": self.metrics.nodes_created,
            "max_depth": self.metrics.max_depth,
            "has_warnings": self.has_warnings,
            "diagnostic_counts": counts,
            "diagnostics": [entry.to_dict() for entry in self.diagnostics],
            "performance": self.metrics.to_dict(),
        }


class _ParseSession:
    """Working state for a single parse call."""

    def __init__(
        self,
        cursor: MarkupCursor,
        document: MarkupDocument,
        config: ParserConfig,
        correlation_id: Optional[str],
    ) -> None:
        self.cursor = cursor
        self.document = document
        self.config = config
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "markup_parser")

        self.current: MarkupContainer = document
        self.state = ParserState.INIT
        self.depth = 0
        self.max_depth = 0
        self.nodes_created = 0
        self.diagnostics: List[DiagnosticEntry] = []

        self.tag_name: List[str] = []
        self.text: List[str] = []
        self.attribute_name: List[str] = []
        self.attribute_value: List[str] = []
        self.comment_text: List[str] = []
        self.attributes: List[TagAttribute] = []

        self.is_closing = False
        self.is_end_tag = False
        self.in_quotes = False
        self.value_started = False
        self.value_quoted = False

    def run(self) -> None:
        """Consume the whole cursor."""
        cursor = self.cursor
        last = self.state

        while cursor.advance():
            if self.state == ParserState.INIT:
                self._process_init()
            elif self.state == ParserState.READING_TAG:
                self._process_tag()
            elif self.state == ParserState.READING_COMMENT:
                self._process_comment()
            elif self.state == ParserState.READING_ATTRIBUTE_NAME:
                self._process_attribute_name()
            elif self.state == ParserState.READING_ATTRIBUTE_VALUE:
                self._process_attribute_value()
            elif self.state == ParserState.READING_TEXT:
                self._process_text()

            if self.state != last:
                self._handle_transition(last, self.state)
            last = self.state

        self._finish()

    # State handlers

    def _process_init(self) -> None:
        cursor = self.cursor
        if not cursor.is_tag_open:
            line, column = cursor.line_column(cursor.position)
            raise MarkupParseError(cursor.current, cursor.position, line, column)
        self.state = ParserState.READING_TAG

    def _process_tag(self) -> None:
        cursor = self.cursor
        if cursor.is_whitespace:
            self.state = ParserState.READING_ATTRIBUTE_NAME
        elif cursor.is_tag_close:
            self.state = ParserState.READING_TEXT
        elif cursor.is_self_close_marker:
            self._mark_closing()
        else:
            self.tag_name.append(cursor.current)
            if "".join(self.tag_name) == COMMENT_OPENER:
                self.state = ParserState.READING_COMMENT

    def _process_comment(self) -> None:
        cursor = self.cursor
        if not cursor.is_comment_end:
            self.comment_text.append(cursor.current)
            return

        comment = "".join(self.comment_text)
        if comment.strip():
            self.current.add(MarkupComment(comment))
            self.nodes_created += 1
        self.comment_text.clear()
        self.tag_name.clear()
        if cursor.skip(2):
            self.state = ParserState.READING_TEXT

    def _process_attribute_name(self) -> None:
        cursor = self.cursor
        if cursor.is_text_delimiter:
            self.in_quotes = not self.in_quotes
        elif self.in_quotes:
            self.attribute_name.append(cursor.current)
        elif cursor.current == ASSIGNMENT:
            self.state = ParserState.READING_ATTRIBUTE_VALUE
            self.value_started = False
            self.value_quoted = False
        elif cursor.is_whitespace:
            # Whitespace between a name and its '=' belongs to neither
            if cursor.peek_skip_whitespace() != ASSIGNMENT:
                self._commit_boolean_attribute()
        elif cursor.is_tag_close:
            self._commit_boolean_attribute()
            self.state = ParserState.READING_TEXT
        elif cursor.is_self_close_marker:
            self._mark_closing()
        else:
            self.attribute_name.append(cursor.current)

    def _process_attribute_value(self) -> None:
        cursor = self.cursor
        if cursor.is_text_delimiter:
            self.in_quotes = not self.in_quotes
            self.value_started = True
            self.value_quoted = True
        elif self.in_quotes:
            self.attribute_value.append(cursor.current)
        elif cursor.is_tag_close:
            self.state = ParserState.READING_TEXT
        elif cursor.is_whitespace:
            if self.value_started:
                self.state = ParserState.READING_ATTRIBUTE_NAME
        elif cursor.is_self_close_marker and cursor.peek_next == ">":
            self._mark_closing()
        elif not self.value_quoted:
            self.value_started = True
            self.attribute_value.append(cursor.current)

    def _process_text(self) -> None:
        cursor = self.cursor
        if cursor.is_tag_open:
            self.state = ParserState.READING_TAG
        else:
            self.text.append(cursor.current)

    # Transitions

    def _handle_transition(self, last: ParserState, state: ParserState) -> None:
        if last == ParserState.READING_ATTRIBUTE_VALUE:
            self._commit_attribute()

        if state == ParserState.READING_TAG and last == ParserState.READING_TEXT:
            self._flush_text()
            self.in_quotes = False

        if state == ParserState.READING_TEXT and last in TAG_STATES:
            self._finalize_tag()

    def _mark_closing(self) -> None:
        self.is_closing = True
        if self.cursor.peek_prev == "<":
            self.is_end_tag = True

    def _commit_boolean_attribute(self) -> None:
        if self.attribute_name:
            self.attributes.append(TagAttribute("".join(self.attribute_name)))
            self.attribute_name.clear()

    def _commit_attribute(self) -> None:
        name = "".join(self.attribute_name)
        value = "".join(self.attribute_value)
        self.attribute_name.clear()
        self.attribute_value.clear()
        if not name:
            self._diagnose(
                DiagnosticSeverity.WARNING,
                "Attribute value without a name was dropped",
                details={"value": value},
            )
            return
        self.attributes.append(TagAttribute(name, value))

    def _flush_text(self) -> None:
        text = "".join(self.text).strip()
        self.text.clear()
        if text:
            self.current.add(MarkupText(text))
            self.nodes_created += 1

    def _finalize_tag(self) -> None:
        name = "".join(self.tag_name)
        attributes = list(self.attributes)
        if not name:
            self._diagnose(
                DiagnosticSeverity.WARNING,
                "Tag without a name was dropped",
                details={"attributes": [a.to_markup() for a in attributes]},
            )
        elif name.startswith(DECLARATION_PREFIX):
            self._add_leaf(name, attributes)
        elif self.is_closing or not self.cursor.has_closing_tag(name):
            self._close_or_add_leaf(name, attributes)
        else:
            self._open_element(name, attributes)

        self.is_closing = False
        self.is_end_tag = False
        self.in_quotes = False
        self.tag_name.clear()
        self.attributes.clear()

    def _add_leaf(self, name: str, attributes: List[TagAttribute]) -> MarkupElement:
        element = MarkupElement(name, attributes)
        self.current.add(element)
        self.nodes_created += 1
        self.max_depth = max(self.max_depth, self.depth + 1)
        return element

    def _close_or_add_leaf(self, name: str, attributes: List[TagAttribute]) -> None:
        # A self-closed tag such as <x/> is always an empty element
        self_closed = self.is_closing and not self.is_end_tag
        parent = self.current.parent
        if self.current.name == name and parent is not None and not self_closed:
            self.current = parent  # type: ignore[assignment]
            self.depth -= 1
            return

        if self.is_end_tag:
            self._diagnose(
                DiagnosticSeverity.WARNING,
                f"Closing tag </{name}> does not match open element; "
                "kept as an empty element",
                details={"tag": name, "open_element": self.current.name},
            )
        elif not self.is_closing:
            self._diagnose(
                DiagnosticSeverity.INFO,
                f"No closing tag found for <{name}>; treated as an empty element",
                details={"tag": name},
            )
        self._add_leaf(name, attributes)

    def _open_element(self, name: str, attributes: List[TagAttribute]) -> None:
        element = self._add_leaf(name, attributes)
        self.current = element
        self.depth += 1

    def _finish(self) -> None:
        if self.state == ParserState.READING_TEXT and self.config.flush_trailing_text:
            self._flush_text()
        elif self.state == ParserState.READING_COMMENT:
            self._diagnose(
                DiagnosticSeverity.WARNING,
                "Comment not terminated before end of input; dropped",
            )
        elif self.state in TAG_STATES:
            self._diagnose(
                DiagnosticSeverity.WARNING,
                "Tag not terminated before end of input; dropped",
                details={"tag": "".join(self.tag_name)},
            )

        if self.depth > 0:
            self._diagnose(
                DiagnosticSeverity.INFO,
                f"{self.depth} element(s) still open at end of input",
                details={"innermost": self.current.name},
            )

    def _diagnose(
        self,
        severity: DiagnosticSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        position = max(self.cursor.position, 0)
        self.logger.debug(
            message,
            extra={"position": position, "severity": severity.name}
        )
        if self.config.collect_diagnostics:
            self.diagnostics.append(DiagnosticEntry(
                severity=severity,
                message=message,
                component="markup_parser",
                position=position,
                details=details,
                correlation_id=self.correlation_id,
            ))


class MarkupParser:
    """Tolerant markup parser.

    A parser instance holds only configuration; every call to :meth:`parse`
    works on its own state, so one instance may be reused freely.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the parser.

        Args:
            config: Parser configuration
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "markup_parser")
        self._decoder = TextDecoder(self.config.decoding, correlation_id)

    def parse(
        self,
        source: InputType,
        encoding: Optional[str] = None,
        document: Optional[MarkupDocument] = None,
    ) -> MarkupDocument:
        """Parse markup into a document tree.

        Args:
            source: Markup as text, bytes or a readable file object
            encoding: Explicit encoding for byte input
            document: Document to fill, a new one when omitted

        Returns:
            The parsed document

        Raises:
            MarkupParseError: If the input does not start with '<'
        """
        return self.parse_with_report(source, encoding, document).document

    def parse_with_report(
        self,
        source: InputType,
        encoding: Optional[str] = None,
        document: Optional[MarkupDocument] = None,
    ) -> ParseReport:
        """Parse markup and report metrics and diagnostics.

        Args:
            source: Markup as text, bytes or a readable file object
            encoding: Explicit encoding for byte input
            document: Document to fill, a new one when omitted

        Returns:
            ParseReport with the document, metrics and diagnostics

        Raises:
            MarkupParseError: If the input does not start with '<'
        """
        start_time = time.perf_counter()
        decoded = self._decoder.decode(source, encoding)
        text = decoded.text
        byte_order_mark = decoded.detection.bom_length > 0
        if text.startswith(BYTE_ORDER_MARK):
            text = text[len(BYTE_ORDER_MARK):]
            byte_order_mark = True

        if document is None:
            document = MarkupDocument(encoding=decoded.encoding)
        else:
            document.encoding = decoded.encoding
        document.byte_order_mark = byte_order_mark

        self.logger.info(
            "Starting parse",
            extra={"char_count": len(text), "encoding": decoded.encoding}
        )

        cursor = MarkupCursor(text, decoded.encoding)
        session = _ParseSession(cursor, document, self.config, self.correlation_id)
        try:
            session.run()
        except MarkupParseError as e:
            self.logger.warning(
                "Parse failed",
                extra={"error": str(e), "position": e.position}
            )
            raise

        metrics = PerformanceMetrics(
            processing_time_ms=(time.perf_counter() - start_time) * MS_PER_SECOND,
            characters_processed=len(text),
            nodes_created=session.nodes_created,
            lookahead_scans=cursor.lookahead_scans,
            max_depth=session.max_depth,
        )
        diagnostics: List[DiagnosticEntry] = []
        if self.config.collect_diagnostics:
            diagnostics.extend(
                DiagnosticEntry(
                    severity=DiagnosticSeverity.INFO,
                    message=issue,
                    component="decoder",
                    correlation_id=self.correlation_id,
                )
                for issue in decoded.issues
            )
        diagnostics.extend(session.diagnostics)

        self.logger.info(
            "Parse completed",
            extra={
                "node_count": metrics.nodes_created,
                "diagnostic_count": len(diagnostics),
                "processing_time_ms": metrics.processing_time_ms,
            }
        )

        return ParseReport(
            document=document,
            metrics=metrics,
            diagnostics=diagnostics,
            correlation_id=self.correlation_id,
        )
