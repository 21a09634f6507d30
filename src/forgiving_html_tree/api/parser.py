"""Builder API with progressive disclosure.

Level 1 is a pair of module-level functions that build a document from a
token list in one call. Level 2 is :class:`HtmlTreeBuilder`, a reusable,
configured facade that starts a fresh single-use
:class:`~forgiving_html_tree.tree.DocumentBuilder` for every token list.
"""

from typing import Iterable, Optional

from forgiving_html_tree.shared import BuilderConfig, get_logger
from forgiving_html_tree.tokenization import HtmlToken
from forgiving_html_tree.tree import BuildResult, DocumentBuilder, HtmlDocument
from forgiving_html_tree.tree.attributes import EntityDecoder


def build(
    tokens: Iterable[HtmlToken],
    decoder: Optional[EntityDecoder] = None,
    correlation_id: Optional[str] = None,
) -> BuildResult:
    """Build a document tree from a token stream.

    Args:
        tokens: Tokens in source order, attribute runs directly after their element
        decoder: Entity decoder for attribute values, defaults to html.unescape
        correlation_id: Optional correlation ID for request tracking

    Returns:
        BuildResult whose document is always rooted at a single html element

    Examples:
        >>> result = build([
        ...     HtmlToken.element("div"),
        ...     HtmlToken.element("span"),
        ...     HtmlToken.text("hi"),
        ...     HtmlToken.close("div"),
        ... ])
        >>> result.tree.find("span").get_path()
        '/html/div/span'
    """
    return DocumentBuilder(list(tokens), decoder, correlation_id=correlation_id).build()


def build_document(
    tokens: Iterable[HtmlToken],
    decoder: Optional[EntityDecoder] = None,
) -> HtmlDocument:
    """Build a document tree and return just the document."""
    return build(tokens, decoder).document


class HtmlTreeBuilder:
    """Configured, reusable entry point for tree construction.

    Holds only immutable configuration, so one instance can serve
    concurrent callers; all per-run state lives in the DocumentBuilder it
    creates for each call.
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        decoder: Optional[EntityDecoder] = None,
    ) -> None:
        self.config = config or BuilderConfig.default()
        self.decoder = decoder
        self.logger = get_logger(__name__, self.config.correlation_id, "html_tree_builder")

    def build(
        self,
        tokens: Iterable[HtmlToken],
        correlation_id: Optional[str] = None,
    ) -> BuildResult:
        """Build a document tree using this builder's configuration."""
        token_list = list(tokens)
        self.logger.debug(
            "Dispatching build run",
            extra={"token_count": len(token_list), "config_name": self.config.name},
        )
        builder = DocumentBuilder(
            token_list,
            decoder=self.decoder,
            config=self.config,
            correlation_id=correlation_id,
        )
        return builder.build()

    def build_document(
        self,
        tokens: Iterable[HtmlToken],
        correlation_id: Optional[str] = None,
    ) -> HtmlDocument:
        """Build a document tree and return just the document."""
        return self.build(tokens, correlation_id).document
