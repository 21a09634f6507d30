"""Tree construction for tag-soup token streams.

Key Components:
    DocumentBuilder: Single-use assembler turning tokens into a document
    BuildResult: Document tree plus diagnostics and metrics of one run
    AttributeResolver: Commits or drops the attribute run of an element
    DoctypeResolver: Initializes the document from the first doctype token
    HtmlDocument / HtmlElement: The html-rooted output tree
"""

from .attributes import (
    AttributeDecision,
    AttributeResolver,
    default_entity_decoder,
)
from .builder import BuildResult, DocumentBuilder
from .doctype import DoctypeResolution, DoctypeResolver
from .names import sanitize_element_name
from .nodes import (
    XML_NAMESPACE,
    XMLNS_NAMESPACE,
    DocumentType,
    HtmlCData,
    HtmlComment,
    HtmlDocument,
    HtmlElement,
    HtmlNode,
    HtmlText,
)

__all__ = [
    "XML_NAMESPACE",
    "XMLNS_NAMESPACE",
    "AttributeDecision",
    "AttributeResolver",
    "BuildResult",
    "DoctypeResolution",
    "DoctypeResolver",
    "DocumentBuilder",
    "DocumentType",
    "HtmlCData",
    "HtmlComment",
    "HtmlDocument",
    "HtmlElement",
    "HtmlNode",
    "HtmlText",
    "default_entity_decoder",
    "sanitize_element_name",
]
