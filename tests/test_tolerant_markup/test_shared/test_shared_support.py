"""Tests for errors, logging and diagnostic objects."""

import logging

import pytest

from tolerant_markup.shared import (
    ConfigurationError,
    CorrelationLogger,
    DiagnosticEntry,
    DiagnosticSeverity,
    FormatterError,
    MarkupError,
    MarkupParseError,
    PerformanceMetrics,
    TreeStructureError,
    configure_logging,
    get_logger,
)


class TestErrors:
    """Test the exception hierarchy."""

    def test_hierarchy(self):
        """Test that every error derives from MarkupError and ValueError."""
        for error_class in (
            ConfigurationError, MarkupParseError, FormatterError, TreeStructureError
        ):
            assert issubclass(error_class, MarkupError)
            assert issubclass(error_class, ValueError)

    def test_parse_error_attributes(self):
        """Test that a parse error carries its location."""
        error = MarkupParseError("x", 7, line=2, column=3)
        assert error.character == "x"
        assert error.position == 7
        assert error.line == 2
        assert error.column == 3
        assert "line 2, column 3" in str(error)
        assert "'x'" in str(error)

    def test_parse_error_custom_message(self):
        """Test overriding the parse error message."""
        error = MarkupParseError("x", 0, message="custom")
        assert str(error) == "custom"


class TestLogging:
    """Test correlation-aware logging."""

    def test_get_logger(self):
        """Test logger creation with correlation data."""
        logger = get_logger("tolerant_markup.test", "corr-1", "unit")
        assert isinstance(logger, CorrelationLogger)
        assert logger.correlation_id == "corr-1"
        assert logger.component == "unit"

    def test_default_component(self):
        """Test that the component defaults to the last name segment."""
        logger = get_logger("tolerant_markup.parsing.parser")
        assert logger.component == "parser"

    def test_extra_merged(self, caplog):
        """Test that records carry component, correlation ID and caller extra."""
        logger = get_logger("tolerant_markup.test_extra", "corr-2", "unit")
        with caplog.at_level(logging.INFO, logger="tolerant_markup.test_extra"):
            logger.info("hello", extra={"answer": 42})

        record = caplog.records[-1]
        assert record.component == "unit"
        assert record.correlation_id == "corr-2"
        assert record.answer == 42

    def test_with_correlation(self):
        """Test rebinding a logger to another correlation ID."""
        logger = get_logger("tolerant_markup.test", "a", "unit")
        other = logger.with_correlation("b")
        assert other.correlation_id == "b"
        assert other.component == "unit"
        assert other.logger is logger.logger

    def test_configure_logging_levels(self):
        """Test verbosity flags map to logging levels."""
        package_logger = logging.getLogger("tolerant_markup")
        original_level = package_logger.level
        try:
            assert configure_logging(verbose=True) == logging.DEBUG
            assert package_logger.level == logging.DEBUG
            assert configure_logging(quiet=True) == logging.ERROR
            assert configure_logging() == logging.WARNING
        finally:
            package_logger.setLevel(original_level)


class TestDiagnostics:
    """Test diagnostic entries and performance metrics."""

    def test_entry_to_dict(self):
        """Test JSON-friendly diagnostic conversion."""
        entry = DiagnosticEntry(
            severity=DiagnosticSeverity.WARNING,
            message="Something odd",
            component="markup_parser",
            position=5,
            details={"tag": "p"},
        )
        data = entry.to_dict()
        assert data == {
            "severity": "WARNING",
            "message": "Something odd",
            "component": "markup_parser",
            "position": 5,
            "details": {"tag": "p"},
        }

    def test_entry_without_optional_fields(self):
        """Test that missing position and details are omitted."""
        entry = DiagnosticEntry(DiagnosticSeverity.INFO, "note", "decoder")
        assert set(entry.to_dict()) == {"severity", "message", "component"}

    def test_entry_validation(self):
        """Test that message and component are required."""
        with pytest.raises(ValueError):
            DiagnosticEntry(DiagnosticSeverity.INFO, "", "decoder")
        with pytest.raises(ValueError):
            DiagnosticEntry(DiagnosticSeverity.INFO, "note", "")

    def test_characters_per_second(self):
        """Test throughput calculation."""
        metrics = PerformanceMetrics(processing_time_ms=500.0, characters_processed=1000)
        assert metrics.characters_per_second == 2000.0
        assert PerformanceMetrics().characters_per_second == 0.0

    def test_metrics_to_dict(self):
        """Test metrics conversion."""
        metrics = PerformanceMetrics(nodes_created=3, max_depth=2, lookahead_scans=1)
        data = metrics.to_dict()
        assert data["nodes_created"] == 3
        assert data["max_depth"] == 2
        assert data["lookahead_scans"] == 1
