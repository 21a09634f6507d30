"""Shared utilities for tag-soup tree construction.

This package provides the configuration object, diagnostic and metric result
types, and the correlation-aware logger used by every layer.
"""

from .config import (
    DEFAULT_RAW_TEXT_ELEMENTS,
    DEFAULT_VOID_ELEMENTS,
    BuilderConfig,
    ConfigError,
    ConfigValidationError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    BuildMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
)

__all__ = [
    "DEFAULT_RAW_TEXT_ELEMENTS",
    "DEFAULT_VOID_ELEMENTS",
    "BuilderConfig",
    "BuildMetrics",
    "ConfigError",
    "ConfigValidationError",
    "CorrelationLogger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "get_logger",
]
