"""Integration adapters for built document trees.

Adapters convert a :class:`BuildResult` into another library's tree model and
back. Conversion problems are reported through :class:`ConversionResult`
rather than raised, in keeping with the never-fail build itself.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from lxml import etree

from forgiving_html_tree.shared import (
    BuilderConfig,
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from forgiving_html_tree.tokenization import HtmlToken
from forgiving_html_tree.tree import (
    XML_NAMESPACE,
    XMLNS_NAMESPACE,
    BuildResult,
    DocumentBuilder,
    HtmlCData,
    HtmlComment,
    HtmlDocument,
    HtmlElement,
    HtmlText,
)
from forgiving_html_tree.tree.doctype import new_hardened_parser
from forgiving_html_tree.tree.nodes import split_qualified_name


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    target_library: str
    supported_versions: List[str]
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the integration adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library is usable."""

    @abstractmethod
    def to_target(self, build_result: BuildResult) -> ConversionResult:
        """Convert a BuildResult to the target format."""

    @abstractmethod
    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert target format data to a BuildResult."""

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(error_message)
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


def _identity_decoder(value: str) -> str:
    return value


class LxmlAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with lxml.etree.

    Going to lxml, namespace bindings become the element's nsmap and
    namespaced attributes keep their Clark names. Coming from lxml, the tree
    is replayed as a token stream through a DocumentBuilder, so the result
    obeys the same void-element and attribute rules as any other build.
    """

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        config: Optional[BuilderConfig] = None,
    ) -> None:
        super().__init__(correlation_id)
        self.config = config or BuilderConfig.default()

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            target_library="lxml",
            supported_versions=["4.0+"],
            description="Bidirectional conversion between BuildResult and lxml.etree",
        )

    def is_available(self) -> bool:
        """Check the installed lxml version."""
        return etree.LXML_VERSION >= (4, 0)

    def to_target(self, build_result: BuildResult) -> ConversionResult:
        """Convert a BuildResult to an lxml ElementTree.

        Args:
            build_result: Result of a build run

        Returns:
            ConversionResult containing an lxml.etree._ElementTree
        """
        start_time = time.time()
        warnings: List[str] = []

        try:
            tree = self._convert_document(build_result.document, warnings)
        except (ValueError, TypeError, etree.XMLSyntaxError) as e:
            return self._create_error_result(
                f"Failed to convert to lxml: {e}",
                build_result,
                (time.time() - start_time) * 1000,
            )

        return ConversionResult(
            success=True,
            converted_data=tree,
            original_data=build_result,
            conversion_time_ms=(time.time() - start_time) * 1000,
            warnings=warnings,
            metadata={
                "lxml_version": etree.LXML_VERSION,
                "element_count": sum(1 for _ in tree.getroot().iter(tag=etree.Element)),
            },
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert an lxml element or ElementTree to a BuildResult.

        Args:
            target_data: lxml.etree._Element or lxml.etree._ElementTree

        Returns:
            ConversionResult containing a BuildResult
        """
        start_time = time.time()
        warnings: List[str] = []

        if isinstance(target_data, etree._ElementTree):
            root = target_data.getroot()
            doctype = target_data.docinfo.doctype
        elif isinstance(target_data, etree._Element):
            root = target_data
            doctype = root.getroottree().docinfo.doctype
        else:
            return self._create_error_result(
                "Target data is not an lxml element or tree",
                target_data,
                (time.time() - start_time) * 1000,
            )

        tokens: List[HtmlToken] = []
        if doctype:
            tokens.append(HtmlToken.doctype(doctype))
        self._emit_tokens(root, tokens, warnings)

        builder = DocumentBuilder(
            tokens,
            decoder=_identity_decoder,
            config=self.config,
            correlation_id=self.correlation_id,
        )
        result = builder.build()

        return ConversionResult(
            success=result.success,
            converted_data=result,
            original_data=target_data,
            conversion_time_ms=(time.time() - start_time) * 1000,
            warnings=warnings,
            metadata={"token_count": len(tokens)},
        )

    def _convert_document(
        self, document: HtmlDocument, warnings: List[str]
    ) -> etree._ElementTree:
        if document.doctype is None:
            root = etree.Element(
                document.root.name, nsmap=self._nsmap(document.root) or None
            )
        else:
            # lxml only creates a DTD node when parsing, so the root comes
            # from parsing the declaration in front of an empty html element.
            if self._nsmap(document.root):
                warnings.append("Root namespace bindings not kept alongside a doctype")
            source = f"{document.doctype.declaration}<{document.root.name}/>"
            root = etree.fromstring(source.encode("utf-8"), new_hardened_parser())
        self._fill_tree(document.root, root, warnings)
        return root.getroottree()

    @staticmethod
    def _nsmap(element: HtmlElement) -> Dict[str, str]:
        return {
            prefix: uri for prefix, uri in element.namespace_bindings.items() if uri
        }

    def _fill_tree(
        self,
        element: HtmlElement,
        node: etree._Element,
        warnings: List[str],
    ) -> None:
        pending = [(element, node)]
        while pending:
            element, node = pending.pop()
            for key, value in element.attributes.items():
                namespace, _ = split_qualified_name(key)
                if namespace == XMLNS_NAMESPACE:
                    continue
                node.set(key, value)

            last: Optional[etree._Element] = None
            run: List[Union[HtmlText, HtmlCData]] = []
            for child in element.children:
                if isinstance(child, (HtmlText, HtmlCData)):
                    run.append(child)
                    continue
                self._place_text(node, last, run, warnings)
                run = []
                if isinstance(child, HtmlElement):
                    last = etree.SubElement(node, child.name, nsmap=self._nsmap(child) or None)
                    pending.append((child, last))
                elif isinstance(child, HtmlComment):
                    last = etree.Comment(self._comment_text(child.value, warnings))
                    node.append(last)
            self._place_text(node, last, run, warnings)

    @staticmethod
    def _place_text(
        node: etree._Element,
        last: Optional[etree._Element],
        run: List[Union[HtmlText, HtmlCData]],
        warnings: List[str],
    ) -> None:
        if not run:
            return
        # lxml keeps a CDATA section only as the whole text of an element.
        if (
            last is None
            and len(run) == 1
            and isinstance(run[0], HtmlCData)
            and "]]>" not in run[0].value
        ):
            node.text = etree.CDATA(run[0].value)
            return
        if any(isinstance(item, HtmlCData) for item in run):
            warnings.append(f"CDATA section in <{node.tag}> exported as plain text")
        text = "".join(item.value for item in run)
        if last is None:
            node.text = text
        else:
            last.tail = text

    @staticmethod
    def _comment_text(value: str, warnings: List[str]) -> str:
        # XML comments cannot contain "--" or end with "-".
        if "--" not in value and not value.endswith("-"):
            return value
        warnings.append("Comment content adjusted to be XML compatible")
        while "--" in value:
            value = value.replace("--", "- -")
        if value.endswith("-"):
            value += " "
        return value

    def _emit_tokens(
        self, root: etree._Element, tokens: List[HtmlToken], warnings: List[str]
    ) -> None:
        # Pending entries are lxml nodes still to visit or tokens ready to emit.
        pending: List[Any] = [root]
        while pending:
            node = pending.pop()
            if isinstance(node, HtmlToken):
                tokens.append(node)
                continue
            if node.tag is etree.Comment:
                tokens.append(HtmlToken.comment(node.text or ""))
                continue
            if not isinstance(node.tag, str):
                # Processing instructions and entity references have no counterpart.
                warnings.append(f"Skipped unsupported node {node!r}")
                continue

            name = etree.QName(node).localname
            tokens.append(HtmlToken.element(name))

            declarations: Dict[str, str] = {}
            attributes: List[HtmlToken] = []
            for key, value in node.attrib.items():
                qname = etree.QName(key)
                if qname.namespace is None:
                    attributes.append(HtmlToken.attribute(qname.localname, value))
                elif qname.namespace == XML_NAMESPACE:
                    attributes.append(HtmlToken.attribute(f"xml:{qname.localname}", value))
                else:
                    prefix = self._prefix_for(node, qname.namespace)
                    if prefix is None:
                        warnings.append(f"No prefix bound for attribute {key}")
                        continue
                    declarations[prefix] = qname.namespace
                    attributes.append(HtmlToken.attribute(f"{prefix}:{qname.localname}", value))

            # Declarations must precede the attributes that use them.
            for prefix, uri in declarations.items():
                tokens.append(HtmlToken.attribute(f"xmlns:{prefix}", uri))
            tokens.extend(attributes)

            if node.text:
                tokens.append(HtmlToken.text(node.text, raw=node.text))
            if not self.config.is_void(name.lower()):
                pending.append(HtmlToken.close(name))
            for child in reversed(node):
                if child.tail:
                    pending.append(HtmlToken.text(child.tail, raw=child.tail))
                pending.append(child)

    @staticmethod
    def _prefix_for(node: etree._Element, namespace: str) -> Optional[str]:
        for prefix, uri in node.nsmap.items():
            if prefix is not None and uri == namespace:
                return prefix
        return None
