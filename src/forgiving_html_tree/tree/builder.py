"""Tree assembly for tag-soup token streams.

This module implements the single-pass state machine that turns a flat token
sequence into an ``html``-rooted tree. Malformed input is never an error:
unmatched close tags are ignored, mismatched ones implicitly close whatever is
open above their match, and invalid attributes are dropped.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from forgiving_html_tree.shared import (
    BuilderConfig,
    BuildMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from forgiving_html_tree.tokenization import HtmlToken, TokenKind
from forgiving_html_tree.tree.attributes import (
    AttributeDecision,
    AttributeOutcome,
    AttributeResolver,
    EntityDecoder,
)
from forgiving_html_tree.tree.doctype import DoctypeResolver
from forgiving_html_tree.tree.names import sanitize_element_name
from forgiving_html_tree.tree.nodes import (
    ROOT_ELEMENT_NAME,
    HtmlCData,
    HtmlComment,
    HtmlDocument,
    HtmlElement,
    HtmlText,
)

_DROP_MESSAGES = {
    AttributeDecision.DROPPED_TOO_MANY_COLONS: "Attribute name has more than one colon",
    AttributeDecision.DROPPED_UNDECLARED_PREFIX: "Attribute prefix not declared earlier on element",
    AttributeDecision.DROPPED_INVALID_NAME: "Attribute name is not valid",
    AttributeDecision.DROPPED_EMPTY_LOCAL_NAME: "Attribute name has empty local part",
}


@dataclass
class BuildResult:
    """Result object for one assembly run.

    Contains the document tree, the diagnostics recorded for every recovery,
    and run metrics. ``success`` is False only when an internal failure cut
    the run short; the document is then partial but still well formed.
    """

    document: HtmlDocument = field(default_factory=HtmlDocument)
    success: bool = True
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: BuildMetrics = field(default_factory=BuildMetrics)
    correlation_id: Optional[str] = None

    @property
    def root(self) -> HtmlElement:
        return self.document.root

    @property
    def tree(self) -> HtmlDocument:
        """Direct access to the document tree.

        Examples:
            >>> result = build([HtmlToken.element("p"), HtmlToken.text("hi")])
            >>> result.tree.find("p").text_content
            'hi'
        """
        return self.document

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id,
        ))

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def get_diagnostics_by_component(self, component: str) -> List[DiagnosticEntry]:
        """Get diagnostics recorded by one component."""
        return [diag for diag in self.diagnostics if diag.component == component]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the build."""
        by_severity: Dict[str, int] = {}
        for diagnostic in self.diagnostics:
            key = diagnostic.severity.name
            by_severity[key] = by_severity.get(key, 0) + 1
        return {
            "success": self.success,
            "element_count": self.document.element_count,
            "has_doctype": self.document.doctype is not None,
            "metrics": self.metrics.to_dict(),
            "diagnostics_by_severity": by_severity,
            "correlation_id": self.correlation_id,
        }


class DocumentBuilder:
    """Single-use assembler over one token sequence.

    Construct it over a token list, call :meth:`build` once, and discard it.
    Open elements are tracked on an explicit stack holding references to
    nodes the tree already owns; closing an element only removes it from the
    stack, never from the tree.
    """

    def __init__(
        self,
        tokens: Sequence[HtmlToken],
        decoder: Optional[EntityDecoder] = None,
        config: Optional[BuilderConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the builder.

        Args:
            tokens: Token sequence in source order
            decoder: Entity decoder applied to attribute values
            config: Builder configuration, defaults to BuilderConfig()
            correlation_id: Optional correlation ID, overrides the config's
        """
        self.config = config or BuilderConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "document_builder")

        self._tokens = list(tokens)
        self._attributes = AttributeResolver(decoder)
        self._doctype = DoctypeResolver(self.correlation_id)
        self._stack: List[HtmlElement] = []
        self._position = 0
        self._used = False
        self._result = BuildResult(correlation_id=self.correlation_id)

    def build(self) -> BuildResult:
        """Assemble the document tree.

        Returns:
            BuildResult containing the document and diagnostics

        Raises:
            RuntimeError: If this builder has already been run
        """
        if self._used:
            raise RuntimeError("DocumentBuilder instances are single-use")
        self._used = True

        result = self._result
        start_time = time.time()
        self.logger.info(
            "Starting tree building",
            extra={"token_count": len(self._tokens)},
        )

        try:
            self._resolve_doctype()
            self._assemble()
        except Exception as e:
            # Never-fail: keep the partial tree built so far
            self.logger.exception(
                "Tree building failed",
                extra={"position": self._position},
            )
            result.success = False
            result.add_diagnostic(
                DiagnosticSeverity.CRITICAL,
                f"Tree building failed: {e}",
                "document_builder",
                position=max(self._position - 1, 0),
                details={"exception_type": type(e).__name__},
            )

        metrics = result.metrics
        metrics.processing_time_ms = (time.time() - start_time) * 1000
        metrics.tokens_consumed = self._position

        self.logger.info(
            "Tree building completed",
            extra={
                "element_count": metrics.elements_created,
                "recovery_operations": metrics.recovery_operations,
                "unclosed_elements": len(self._stack),
                "success": result.success,
            },
        )
        return result

    @property
    def _insertion_point(self) -> HtmlElement:
        return self._stack[-1] if self._stack else self._result.document.root

    def _diagnose(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: int,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.logger.debug(message, extra={"position": position, "details": details})
        if self.config.enable_diagnostics:
            self._result.add_diagnostic(severity, message, component, position, details)

    def _resolve_doctype(self) -> None:
        resolution = self._doctype.resolve(self._tokens)
        self._result.document = resolution.document
        if resolution.fallback_used:
            self._diagnose(
                DiagnosticSeverity.WARNING,
                "Unsupported doctype declaration discarded",
                "doctype_resolver",
                0,
                {"reason": resolution.error},
            )
        elif resolution.internal_subset_stripped:
            self._diagnose(
                DiagnosticSeverity.INFO,
                "Internal subset stripped from doctype",
                "doctype_resolver",
                0,
            )

    def _assemble(self) -> None:
        while self._position < len(self._tokens):
            position = self._position
            token = self._tokens[position]
            self._position += 1

            if token.kind is TokenKind.ELEMENT:
                self._open_element(token, position)
            elif token.kind is TokenKind.CLOSE_ELEMENT:
                self._close_element(token, position)
            elif token.kind is TokenKind.COMMENT:
                self._insertion_point.append(HtmlComment(token.primary))
            elif token.kind is TokenKind.CDATA:
                self._insertion_point.append(HtmlCData(token.primary))
            elif token.kind is TokenKind.TEXT:
                self._append_text(token)
            elif token.kind is TokenKind.ATTRIBUTE:
                self._diagnose(
                    DiagnosticSeverity.WARNING,
                    "Attribute token outside an element ignored",
                    "tree_assembler",
                    position,
                    {"name": token.primary},
                )
            # Doctype tokens were consumed by the resolver.

    def _open_element(self, token: HtmlToken, position: int) -> None:
        name = sanitize_element_name(token.primary)
        target: Optional[HtmlElement]
        if not name:
            target = None
            self._diagnose(
                DiagnosticSeverity.WARNING,
                "Element with empty name ignored",
                "tree_assembler",
                position,
                {"name": token.primary},
            )
        elif name == ROOT_ELEMENT_NAME:
            # Repeated or implicit html tags merge into the current target.
            target = self._insertion_point
        else:
            target = HtmlElement(name)
            self._insertion_point.append(target)
            self._result.metrics.elements_created += 1

        run = self._attributes.consume_run(self._tokens, self._position, target)
        self._position = run.next_position
        self._record_attributes(run.outcomes)

        if target is None or self.config.is_void(name):
            return
        self._stack.append(target)
        metrics = self._result.metrics
        metrics.max_open_depth = max(metrics.max_open_depth, len(self._stack))

    def _record_attributes(self, outcomes: List[AttributeOutcome]) -> None:
        metrics = self._result.metrics
        for outcome in outcomes:
            if outcome.decision is AttributeDecision.SET:
                metrics.attributes_set += 1
            elif outcome.decision is AttributeDecision.NAMESPACE_DECLARED:
                metrics.namespace_declarations += 1
            else:
                metrics.attributes_dropped += 1
                self._diagnose(
                    DiagnosticSeverity.WARNING,
                    _DROP_MESSAGES[outcome.decision],
                    "attribute_resolver",
                    outcome.position,
                    {"name": outcome.name, "decision": outcome.decision.name},
                )

    def _close_element(self, token: HtmlToken, position: int) -> None:
        name = sanitize_element_name(token.primary)
        metrics = self._result.metrics

        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index].name == name:
                break
        else:
            metrics.orphan_closes += 1
            self._diagnose(
                DiagnosticSeverity.INFO,
                f"Orphaned closing tag </{name}> ignored",
                "tree_assembler",
                position,
            )
            return

        implicitly_closed = [element.name for element in self._stack[index + 1:]]
        del self._stack[index:]
        if implicitly_closed:
            metrics.implicit_closes += len(implicitly_closed)
            self._diagnose(
                DiagnosticSeverity.INFO,
                f"Closing tag </{name}> implicitly closed {len(implicitly_closed)} element(s)",
                "tree_assembler",
                position,
                {"closed": implicitly_closed},
            )

    def _append_text(self, token: HtmlToken) -> None:
        parent = self._insertion_point
        if self.config.keeps_raw_text(parent.name):
            parent.append(HtmlText(token.raw))
        else:
            parent.append(HtmlText(token.primary))
