"""Document type resolution.

The first doctype token in the stream is parsed by lxml as the prolog of a
minimal XML document. Declarations lxml rejects (HTML 4 public identifiers
without a system literal, malformed subsets, stray markup) fall back to a
document without a doctype. The parser never loads external DTDs, never
touches the network and never expands entities; an internal subset that does
parse is recorded as stripped and dropped.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from lxml import etree

from forgiving_html_tree.shared import get_logger
from forgiving_html_tree.tokenization import HtmlToken, TokenKind
from forgiving_html_tree.tree.nodes import DocumentType, HtmlDocument

_PROLOG_TEMPLATE = '<?xml version="1.0"?>{declaration}<html/>'


@dataclass
class DoctypeResolution:
    """Outcome of resolving the document type of a token stream."""

    document: HtmlDocument
    declaration_found: bool = False
    fallback_used: bool = False
    internal_subset_stripped: bool = False
    error: Optional[str] = None


def new_hardened_parser() -> etree.XMLParser:
    """Create an XML parser with external loading and entity expansion disabled."""
    return etree.XMLParser(
        resolve_entities=False,
        load_dtd=False,
        no_network=True,
        dtd_validation=False,
        attribute_defaults=False,
        huge_tree=False,
    )


class DoctypeResolver:
    """Creates the output document, carrying over a well-formed doctype."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.logger = get_logger(__name__, correlation_id, "doctype_resolver")

    def resolve(self, tokens: Sequence[HtmlToken]) -> DoctypeResolution:
        """Initialize the output document from the first doctype token, if any."""
        token = next(
            (t for t in tokens if t.kind is TokenKind.DOCTYPE_DECLARATION), None
        )
        if token is None:
            return DoctypeResolution(document=HtmlDocument())

        source = _PROLOG_TEMPLATE.format(declaration=token.raw)
        try:
            tree = etree.fromstring(source.encode("utf-8"), new_hardened_parser()).getroottree()
        except (etree.XMLSyntaxError, ValueError) as e:
            self.logger.debug(
                "Doctype declaration rejected, using bare document",
                extra={"declaration": token.raw[:100], "reason": str(e)},
            )
            return DoctypeResolution(
                document=HtmlDocument(),
                declaration_found=True,
                fallback_used=True,
                error=str(e),
            )

        docinfo = tree.docinfo
        if docinfo.internalDTD is None:
            # No DTD node: the declaration held only comments or blanks.
            return DoctypeResolution(document=HtmlDocument(), declaration_found=True)

        stripped = _has_internal_subset(token.raw)
        if stripped:
            self.logger.debug(
                "Internal subset stripped from doctype",
                extra={"root_name": docinfo.root_name},
            )

        doctype = DocumentType(
            name=docinfo.root_name,
            public_id=docinfo.public_id or None,
            system_id=docinfo.system_url or None,
        )
        return DoctypeResolution(
            document=HtmlDocument(doctype=doctype),
            declaration_found=True,
            internal_subset_stripped=stripped,
        )


def _has_internal_subset(declaration: str) -> bool:
    """Check for a bracketed subset outside quoted literals.

    Only called on declarations lxml accepted, so an unquoted ``[`` can only
    open an internal subset.
    """
    quote = None
    for char in declaration:
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "[":
            return True
    return False

