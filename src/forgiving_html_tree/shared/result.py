"""Diagnostic and metric types attached to build results.

Tree construction never fails on malformed input; instead each recovery it
performs (an implicit close, a dropped attribute, a discarded doctype) can be
recorded as a :class:`DiagnosticEntry` so callers can see what was repaired.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Tracing detail, e.g. an implicitly closed element
    INFO = auto()       # Recoveries that are routine for tag soup
    WARNING = auto()    # Input that was dropped from the tree
    ERROR = auto()      # Recoveries that lost structure
    CRITICAL = auto()   # Internal failures, the tree is partial


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
        if self.position is not None and self.position < 0:
            raise ValueError("Diagnostic position must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary representation."""
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
class BuildMetrics:
    """Counters collected while assembling one document."""

    processing_time_ms: float = 0.0
    tokens_consumed: int = 0
    elements_created: int = 0
    attributes_set: int = 0
    attributes_dropped: int = 0
    namespace_declarations: int = 0
    implicit_closes: int = 0
    orphan_closes: int = 0
    max_open_depth: int = 0

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_consumed * 1000.0) / self.processing_time_ms

    @property
    def recovery_operations(self) -> int:
        """Total number of structural or attribute recoveries."""
        return self.attributes_dropped + self.implicit_closes + self.orphan_closes

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary representation."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "tokens_consumed": self.tokens_consumed,
            "elements_created": self.elements_created,
            "attributes_set": self.attributes_set,
            "attributes_dropped": self.attributes_dropped,
            "namespace_declarations": self.namespace_declarations,
            "implicit_closes": self.implicit_closes,
            "orphan_closes": self.orphan_closes,
            "max_open_depth": self.max_open_depth,
            "recovery_operations": self.recovery_operations,
        }
