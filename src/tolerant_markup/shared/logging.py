"""Structured logging utilities for tolerant markup processing.

Every logger carries a component name and an optional correlation ID so that
records from one parse or format request can be grouped together.
"""

import logging
from typing import Any, Dict, MutableMapping, Optional, Tuple

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(component)s] %(message)s"


class CorrelationLogger(logging.LoggerAdapter):
    """Logger adapter that adds correlation ID and component to every record."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for request tracking
            component: Component name for structured logging
        """
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]
        super().__init__(
            logging.getLogger(name),
            {"component": self.component, "correlation_id": correlation_id},
        )

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        """Merge the correlation data into the caller's extra mapping."""
        combined_extra: Dict[str, Any] = dict(self.extra or {})
        extra = kwargs.get("extra")
        if extra:
            combined_extra.update(extra)
        kwargs["extra"] = combined_extra
        return msg, kwargs

    def with_correlation(self, correlation_id: Optional[str]) -> "CorrelationLogger":
        """Return a logger for the same component bound to another correlation ID."""
        return CorrelationLogger(self.logger.name, correlation_id, self.component)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component)


class _ComponentDefaultsFilter(logging.Filter):
    """Supply defaults so DEFAULT_LOG_FORMAT works for foreign records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = record.name.split(".")[-1]
        if not hasattr(record, "correlation_id"):
            record.correlation_id = None
        return True


def configure_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_format: str = DEFAULT_LOG_FORMAT
) -> int:
    """Configure the package logger for command-line use.

    Args:
        verbose: Log DEBUG and above
        quiet: Log ERROR and above
        log_format: Format string for the stderr handler

    Returns:
        The effective logging level
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    package_logger = logging.getLogger("tolerant_markup")
    package_logger.setLevel(level)

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(log_format))
        handler.addFilter(_ComponentDefaultsFilter())
        package_logger.addHandler(handler)

    return level
