"""Diagnostic and metrics objects for tolerant markup processing.

Tolerated irregularities found while parsing are reported as diagnostic
entries rather than exceptions; metrics describe the cost of a single run.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Markup was accepted but probably not as authored
    ERROR = auto()      # Operation failed


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.position is not None:
            result["position"] = self.position
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Performance metrics for one parse run."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    nodes_created: int = 0
    lookahead_scans: int = 0
    max_depth: int = 0

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert the metrics to a JSON-friendly dictionary."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "characters_processed": self.characters_processed,
            "nodes_created": self.nodes_created,
            "lookahead_scans": self.lookahead_scans,
            "max_depth": self.max_depth,
        }
