"""Shared utilities for tolerant markup processing.

This module provides configuration objects, diagnostic and metrics types, the
exception hierarchy and logging helpers used across all processing layers.
"""

from .config import (
    DEFAULT_LOOSE_CLOSE_TAGS,
    DecodingConfig,
    FormatterConfig,
    MarkupConfig,
    ParserConfig,
)
from .errors import (
    ConfigurationError,
    FormatterError,
    MarkupError,
    MarkupParseError,
    TreeStructureError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "DEFAULT_LOOSE_CLOSE_TAGS",
    "DecodingConfig",
    "FormatterConfig",
    "MarkupConfig",
    "ParserConfig",
    "ConfigurationError",
    "FormatterError",
    "MarkupError",
    "MarkupParseError",
    "TreeStructureError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
]
