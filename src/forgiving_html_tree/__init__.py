"""Forgiving HTML tree construction.

Turns a pre-lexed stream of HTML-like tokens into a single ``html``-rooted
document tree, recovering from unbalanced tags, out-of-order namespace
declarations, void elements and unparseable doctypes without ever raising
for malformed input.

Progressive API Disclosure:
- Level 1: Simple functions - build(), build_document()
- Level 2: Configured builder - HtmlTreeBuilder class
"""

__version__ = "0.1.0"
__author__ = "Forgiving HTML Tree Team"

from .api import HtmlTreeBuilder, LxmlAdapter, build, build_document
from .shared.config import BuilderConfig
from .tokenization import HtmlToken, TokenKind
from .tree import (
    BuildResult,
    DocumentType,
    HtmlCData,
    HtmlComment,
    HtmlDocument,
    HtmlElement,
    HtmlText,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple build functions
    "build",
    "build_document",

    # Level 2: Configured builder
    "HtmlTreeBuilder",

    # Input tokens
    "HtmlToken",
    "TokenKind",

    # Result objects and data structures
    "BuildResult",
    "DocumentType",
    "HtmlCData",
    "HtmlComment",
    "HtmlDocument",
    "HtmlElement",
    "HtmlText",

    # Configuration and integration
    "BuilderConfig",
    "LxmlAdapter",
]
