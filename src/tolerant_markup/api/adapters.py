"""Conversion between markup documents and third-party document libraries.

Adapters translate a :class:`MarkupDocument` into the object model of another
library and back:

- ``xml.etree.ElementTree`` and ``lxml.etree``: text nodes become
  ``text``/``tail`` strings, comments become comment nodes. Declarations such
  as ``<!DOCTYPE html>`` have no element equivalent and are skipped with a
  warning.
- BeautifulSoup: the formatted markup is handed to a BeautifulSoup parser.
- pandas: one DataFrame row per element.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Dict, List, Optional, Type

from tolerant_markup.formatting import format_node
from tolerant_markup.parsing import MarkupParser
from tolerant_markup.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    MarkupParseError,
    get_logger,
)
from tolerant_markup.tree import (
    MarkupContainer,
    MarkupDocument,
    MarkupElement,
    MarkupNode,
    NodeKind,
    TagAttribute,
)

DEFAULT_ROOT_TAG = "root"
DEFAULT_SOUP_FEATURES = "html.parser"
ATTRIBUTE_COLUMN_PREFIX = "attr_"
FRAME_COLUMNS = ["path", "depth", "tag", "text"]
MS_PER_SECOND = 1000


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the integration adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def to_target(self, document: MarkupDocument) -> ConversionResult:
        """Convert a document to the target library format."""

    @abstractmethod
    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert target library data to a document."""

    def _success_result(
        self,
        converted_data: Any,
        original_data: Any,
        start_time: float,
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ConversionResult:
        warnings = warnings or []
        for warning in warnings:
            self._logger.debug(warning, extra={"adapter": self.metadata.name})
        self._logger.info(
            "Conversion completed",
            extra={"adapter": self.metadata.name, "warning_count": len(warnings)}
        )
        return ConversionResult(
            success=True,
            converted_data=converted_data,
            original_data=original_data,
            conversion_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            warnings=warnings,
            metadata=metadata or {},
        )

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(error_message, extra={"adapter": self.metadata.name})
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )

    def _parse_markup(self, markup: str) -> MarkupDocument:
        return MarkupParser(correlation_id=self.correlation_id).parse(markup)


def _skip_declarations(node: MarkupNode, warnings: List[str]) -> List[MarkupNode]:
    children = []
    for child in node.children:
        if child.kind is NodeKind.ELEMENT and child.is_declaration:  # type: ignore[attr-defined]
            warnings.append(f"Skipped declaration <{child.name}>")
            continue
        children.append(child)
    return children


def _join_text(existing: Optional[str], text: str) -> str:
    if not existing:
        return text
    return f"{existing} {text}"


class EtreeAdapter(IntegrationAdapter):
    """Shared conversion for libraries implementing the ElementTree API.

    Subclasses name the module implementing the API; the conversion itself
    is shared.
    """

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        root_tag: str = DEFAULT_ROOT_TAG
    ) -> None:
        """Initialize the adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
            root_tag: Tag of the element wrapping documents that have more
                than one top-level node
        """
        super().__init__(correlation_id)
        self.root_tag = root_tag

    @abstractmethod
    def _etree(self) -> ModuleType:
        """Return the module implementing the ElementTree API."""

    def to_target(self, document: MarkupDocument) -> ConversionResult:
        """Convert a document to a target element.

        Args:
            document: Parsed or built markup document

        Returns:
            ConversionResult whose ``converted_data`` is the root element
        """
        start_time = time.time()
        warnings: List[str] = []

        try:
            etree = self._etree()
            top_level = _skip_declarations(document, warnings)
            elements = [n for n in top_level if n.kind is NodeKind.ELEMENT]

            if len(elements) == 1 and len(top_level) == 1:
                root = self._convert_element(elements[0], etree, warnings)
            else:
                if len(elements) != 1:
                    warnings.append(
                        f"Document has {len(elements)} top-level elements; "
                        f"wrapped in <{self.root_tag}>"
                    )
                root = etree.Element(self.root_tag)
                self._convert_children(document, root, etree, warnings)
        except Exception as e:
            return self._create_error_result(
                f"Failed to convert to {self.metadata.target_library}: {e}",
                document,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        return self._success_result(
            root,
            document,
            start_time,
            warnings,
            {"element_count": sum(1 for _ in root.iter())},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a target element or element tree to a document.

        Args:
            target_data: Element, or tree object with ``getroot()``

        Returns:
            ConversionResult whose ``converted_data`` is a MarkupDocument
        """
        start_time = time.time()
        warnings: List[str] = []

        if hasattr(target_data, "getroot"):
            target_data = target_data.getroot()
        if not hasattr(target_data, "tag"):
            return self._create_error_result(
                f"Target data is not a valid {self.metadata.target_library} element",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        try:
            etree = self._etree()
            document = MarkupDocument()
            self._import_node(target_data, document, etree, warnings)
        except Exception as e:
            return self._create_error_result(
                f"Failed to convert from {self.metadata.target_library}: {e}",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        return self._success_result(
            document,
            target_data,
            start_time,
            warnings,
            {"original_tag": str(target_data.tag)},
        )

    # Document -> target

    def _convert_element(
        self, element: MarkupElement, etree: ModuleType, warnings: List[str]
    ) -> Any:
        target = etree.Element(element.name)
        for attribute in element.attributes:
            try:
                target.set(attribute.name, attribute.value or "")
            except ValueError:
                warnings.append(
                    f"Skipped attribute {attribute.name!r} on <{element.name}>"
                )
        self._convert_children(element, target, etree, warnings)
        return target

    def _convert_children(
        self,
        node: MarkupNode,
        target: Any,
        etree: ModuleType,
        warnings: List[str]
    ) -> None:
        last_child = None
        for child in _skip_declarations(node, warnings):
            if child.kind is NodeKind.TEXT:
                text = child.value.strip()  # type: ignore[attr-defined]
                if last_child is None:
                    target.text = _join_text(target.text, text)
                else:
                    last_child.tail = _join_text(last_child.tail, text)
                continue

            if child.kind is NodeKind.COMMENT:
                converted = etree.Comment(child.value)  # type: ignore[attr-defined]
            else:
                converted = self._convert_element(child, etree, warnings)  # type: ignore[arg-type]
            target.append(converted)
            last_child = converted

    # Target -> document

    def _import_node(
        self,
        source: Any,
        parent: MarkupContainer,
        etree: ModuleType,
        warnings: List[str]
    ) -> None:
        tag = source.tag
        if tag is etree.Comment:
            if source.text and source.text.strip():
                parent.add_comment(source.text)
        elif not isinstance(tag, str):
            warnings.append(f"Skipped unsupported node {source!r}")
        else:
            attributes = [
                TagAttribute(str(name), str(value))
                for name, value in source.attrib.items()
            ]
            element = parent.add_element(tag, *attributes)
            if source.text and source.text.strip():
                element.add_text(source.text.strip())
            for child in source:
                self._import_node(child, element, etree, warnings)

        if source.tail and source.tail.strip():
            parent.add_text(source.tail.strip())


class ElementTreeAdapter(EtreeAdapter):
    """Adapter for bidirectional conversion with xml.etree.ElementTree."""

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="elementtree",
            version="1.0.0",
            target_library="xml.etree.ElementTree",
            description="Conversion between MarkupDocument and ElementTree",
        )

    def is_available(self) -> bool:
        """ElementTree ships with Python."""
        return True

    def _etree(self) -> ModuleType:
        import xml.etree.ElementTree as ET

        return ET


class LxmlAdapter(EtreeAdapter):
    """Adapter for bidirectional conversion with lxml.etree."""

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            target_library="lxml",
            description="Conversion between MarkupDocument and lxml.etree",
        )

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    def _etree(self) -> ModuleType:
        import lxml.etree

        return lxml.etree


class BeautifulSoupAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with BeautifulSoup.

    Documents travel as formatted markup: ``to_target`` feeds the rendered
    document to a BeautifulSoup parser and ``from_target`` parses the soup's
    string form.
    """

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        features: str = DEFAULT_SOUP_FEATURES
    ) -> None:
        """Initialize the adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
            features: BeautifulSoup parser name
        """
        super().__init__(correlation_id)
        self.features = features

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="beautifulsoup",
            version="1.0.0",
            target_library="beautifulsoup4",
            description="Conversion between MarkupDocument and BeautifulSoup",
        )

    def is_available(self) -> bool:
        """Check if BeautifulSoup is available."""
        try:
            from bs4 import BeautifulSoup  # noqa: F401
        except ImportError:
            return False
        return True

    def to_target(self, document: MarkupDocument) -> ConversionResult:
        """Convert a document to a BeautifulSoup object.

        Args:
            document: Parsed or built markup document

        Returns:
            ConversionResult containing the BeautifulSoup object
        """
        start_time = time.time()

        try:
            from bs4 import BeautifulSoup

            markup = format_node(document)
            soup = BeautifulSoup(markup, self.features)
        except Exception as e:
            return self._create_error_result(
                f"Failed to convert to BeautifulSoup: {e}",
                document,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        return self._success_result(
            soup,
            document,
            start_time,
            metadata={"parser_name": self.features, "markup_length": len(markup)},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a BeautifulSoup object or tag to a document.

        Args:
            target_data: BeautifulSoup object or tag

        Returns:
            ConversionResult containing the MarkupDocument
        """
        start_time = time.time()

        if not hasattr(target_data, "prettify"):
            return self._create_error_result(
                "Target data is not a valid BeautifulSoup object",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        markup = str(target_data)
        try:
            document = self._parse_markup(markup)
        except MarkupParseError as e:
            return self._create_error_result(
                f"Failed to convert from BeautifulSoup: {e}",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        return self._success_result(
            document,
            target_data,
            start_time,
            metadata={"markup_length": len(markup)},
        )


class PandasAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with pandas DataFrame.

    Each element becomes one row in document order with the columns
    ``path``, ``depth``, ``tag`` and ``text`` (the element's own text, not
    that of its descendants) plus one ``attr_<name>`` column per attribute
    name. Comments and declarations are not represented. Converting back
    nests rows by ``depth`` and places each element's text before its child
    elements.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="pandas",
            version="1.0.0",
            target_library="pandas",
            description="Conversion between MarkupDocument and pandas DataFrame",
        )

    def is_available(self) -> bool:
        """Check if pandas is available."""
        try:
            import pandas  # noqa: F401
        except ImportError:
            return False
        return True

    def to_target(self, document: MarkupDocument) -> ConversionResult:
        """Convert a document to a DataFrame.

        Args:
            document: Parsed or built markup document

        Returns:
            ConversionResult containing the DataFrame
        """
        start_time = time.time()
        warnings: List[str] = []

        try:
            import pandas as pd

            rows: List[Dict[str, Any]] = []
            self._extract_rows(document, rows, warnings)
            columns = list(FRAME_COLUMNS)
            for row in rows:
                columns.extend(c for c in row if c not in columns)
            df = pd.DataFrame(rows, columns=columns)
        except Exception as e:
            return self._create_error_result(
                f"Failed to convert to pandas DataFrame: {e}",
                document,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        return self._success_result(
            df,
            document,
            start_time,
            warnings,
            {
                "dataframe_shape": df.shape,
                "row_count": len(df),
                "columns": list(df.columns),
            },
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a DataFrame to a document.

        Args:
            target_data: DataFrame with at least ``depth`` and ``tag`` columns

        Returns:
            ConversionResult containing the MarkupDocument
        """
        start_time = time.time()

        try:
            import pandas as pd
        except ImportError as e:
            return self._create_error_result(
                f"Failed to convert from pandas DataFrame: {e}", target_data
            )

        if not isinstance(target_data, pd.DataFrame):
            return self._create_error_result(
                "Target data is not a pandas DataFrame",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        missing = [c for c in ("depth", "tag") if c not in target_data.columns]
        if missing:
            return self._create_error_result(
                f"DataFrame is missing columns: {', '.join(missing)}",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        try:
            document = self._build_document(target_data, pd)
        except (TypeError, ValueError) as e:
            return self._create_error_result(
                f"Failed to convert from pandas DataFrame: {e}",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        return self._success_result(
            document,
            target_data,
            start_time,
            metadata={"dataframe_shape": target_data.shape},
        )

    def _extract_rows(
        self, node: MarkupNode, rows: List[Dict[str, Any]], warnings: List[str]
    ) -> None:
        for child in _skip_declarations(node, warnings):
            if child.kind is not NodeKind.ELEMENT:
                continue
            own_text = " ".join(
                c.value.strip()  # type: ignore[attr-defined]
                for c in child.children
                if c.kind is NodeKind.TEXT
            )
            row: Dict[str, Any] = {
                "path": child.path,
                "depth": child.depth,
                "tag": child.name,
                "text": own_text,
            }
            for attribute in child.attributes:  # type: ignore[attr-defined]
                row[ATTRIBUTE_COLUMN_PREFIX + attribute.name] = attribute.value or ""
            rows.append(row)
            self._extract_rows(child, rows, warnings)

    def _build_document(self, df: Any, pd: ModuleType) -> MarkupDocument:
        document = MarkupDocument()
        stack: List[MarkupContainer] = [document]

        for row in df.to_dict("records"):
            depth = max(1, min(int(row["depth"]), len(stack)))
            del stack[depth:]

            attributes = [
                TagAttribute(str(column)[len(ATTRIBUTE_COLUMN_PREFIX):], str(value))
                for column, value in row.items()
                if str(column).startswith(ATTRIBUTE_COLUMN_PREFIX) and pd.notna(value)
            ]
            element = stack[-1].add_element(str(row["tag"]), *attributes)

            text = row.get("text")
            if isinstance(text, str) and text.strip():
                element.add_text(text.strip())
            stack.append(element)

        return document


ADAPTERS: Dict[str, Type[IntegrationAdapter]] = {
    "elementtree": ElementTreeAdapter,
    "lxml": LxmlAdapter,
    "beautifulsoup": BeautifulSoupAdapter,
    "pandas": PandasAdapter,
}


def get_adapter(
    name: str, correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get an adapter instance by name, or None when unknown or unavailable."""
    adapter_class = ADAPTERS.get(name.lower())
    if adapter_class is None:
        return None
    adapter = adapter_class(correlation_id)
    return adapter if adapter.is_available() else None


def list_available_adapters() -> List[AdapterMetadata]:
    """Metadata of every adapter whose library can be imported."""
    available = []
    for adapter_class in ADAPTERS.values():
        adapter = adapter_class()
        if adapter.is_available():
            available.append(adapter.metadata)
    return available
