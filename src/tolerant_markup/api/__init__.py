"""Public API layer for tolerant markup processing.

This module provides the parse/format entry points, the reusable
MarkupProcessor and the interop adapters for ElementTree, lxml,
BeautifulSoup and pandas.
"""

from .adapters import (
    AdapterMetadata,
    BeautifulSoupAdapter,
    ConversionResult,
    ElementTreeAdapter,
    EtreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    list_available_adapters,
)
from .markup import (
    MarkupProcessor,
    format_markup,
    load_document,
    parse,
    parse_file,
    parse_string,
    parse_with_report,
    reformat,
    save_document,
)

__all__ = [
    "AdapterMetadata",
    "BeautifulSoupAdapter",
    "ConversionResult",
    "ElementTreeAdapter",
    "EtreeAdapter",
    "IntegrationAdapter",
    "LxmlAdapter",
    "MarkupProcessor",
    "PandasAdapter",
    "format_markup",
    "get_adapter",
    "list_available_adapters",
    "load_document",
    "parse",
    "parse_file",
    "parse_string",
    "parse_with_report",
    "reformat",
    "save_document",
]
