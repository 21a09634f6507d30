"""Public API layer: build entry points and integration adapters."""

from .adapters import (
    AdapterMetadata,
    ConversionResult,
    IntegrationAdapter,
    LxmlAdapter,
)
from .parser import HtmlTreeBuilder, build, build_document

__all__ = [
    "AdapterMetadata",
    "ConversionResult",
    "HtmlTreeBuilder",
    "IntegrationAdapter",
    "LxmlAdapter",
    "build",
    "build_document",
]
