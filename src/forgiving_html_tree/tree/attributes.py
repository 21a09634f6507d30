"""Attribute resolution for freshly opened elements.

After an element token the builder hands the following run of attribute
tokens to :class:`AttributeResolver`. Each token is classified and either
committed to the element or dropped; nothing is ever raised for malformed
names.

Prefixed names are resolved against the element itself: ``xmlns:p`` declares
``p`` on the element, ``xml:`` names use the reserved XML namespace, and any
other prefix must already have been declared by an earlier ``xmlns:``
attribute of the same run. A prefix declared later in the run, or only on an
ancestor, is not found and the attribute is dropped.
"""

import html
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, List, Optional, Sequence

from forgiving_html_tree.tokenization import HtmlToken, TokenKind
from forgiving_html_tree.tree.nodes import XML_NAMESPACE, XMLNS_NAMESPACE, HtmlElement

EntityDecoder = Callable[[str], str]

# Unprefixed attribute names must match this pattern after lowercasing.
VALID_ATTRIBUTE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_\-.]*")

XMLNS_PREFIX = "xmlns"
XML_PREFIX = "xml"


def default_entity_decoder(value: str) -> str:
    """Decode character references using the HTML5 named entity table."""
    return html.unescape(value)


class AttributeDecision(Enum):
    """Outcome of resolving a single attribute token."""

    SET = auto()
    NAMESPACE_DECLARED = auto()
    DROPPED_TOO_MANY_COLONS = auto()
    DROPPED_UNDECLARED_PREFIX = auto()
    DROPPED_INVALID_NAME = auto()
    DROPPED_EMPTY_LOCAL_NAME = auto()

    @property
    def accepted(self) -> bool:
        return self in (AttributeDecision.SET, AttributeDecision.NAMESPACE_DECLARED)


@dataclass
class AttributeOutcome:
    """Decision made for the attribute token at ``position``."""

    position: int
    name: str
    decision: AttributeDecision


@dataclass
class AttributeRunResult:
    """Result of consuming one attribute run."""

    next_position: int
    outcomes: List[AttributeOutcome] = field(default_factory=list)

    @property
    def dropped(self) -> List[AttributeOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.decision.accepted]


class AttributeResolver:
    """Commits attribute tokens to an element or drops them."""

    def __init__(self, decoder: Optional[EntityDecoder] = None) -> None:
        self.decoder = decoder or default_entity_decoder

    def consume_run(
        self,
        tokens: Sequence[HtmlToken],
        start: int,
        target: Optional[HtmlElement],
    ) -> AttributeRunResult:
        """Consume the attribute tokens starting at ``start``.

        Stops at the first token that is not an attribute and reports its
        position. When ``target`` is None the run is skipped without
        resolving anything.
        """
        result = AttributeRunResult(next_position=start)
        position = start
        while position < len(tokens) and tokens[position].kind is TokenKind.ATTRIBUTE:
            token = tokens[position]
            if target is not None:
                decision = self.resolve(token, target)
                result.outcomes.append(AttributeOutcome(position, token.primary, decision))
            position += 1
        result.next_position = position
        return result

    def resolve(self, token: HtmlToken, target: HtmlElement) -> AttributeDecision:
        """Classify one attribute token and apply it to ``target`` if accepted."""
        name = token.primary.lower()
        value = token.value

        if ":" not in name:
            if not VALID_ATTRIBUTE_NAME.fullmatch(name):
                return AttributeDecision.DROPPED_INVALID_NAME
            target.set_attribute(name, self.decoder(value))
            return AttributeDecision.SET

        parts = name.split(":")
        if len(parts) != 2:
            return AttributeDecision.DROPPED_TOO_MANY_COLONS
        prefix, local = parts[0].strip(), parts[1].strip()
        if not local:
            return AttributeDecision.DROPPED_EMPTY_LOCAL_NAME

        if prefix == XMLNS_PREFIX:
            target.set_attribute(local, value, namespace=XMLNS_NAMESPACE)
            return AttributeDecision.NAMESPACE_DECLARED
        if prefix == XML_PREFIX:
            target.set_attribute(local, value, namespace=XML_NAMESPACE)
            return AttributeDecision.SET

        namespace = target.lookup_namespace(prefix) if prefix else None
        if namespace is None:
            return AttributeDecision.DROPPED_UNDECLARED_PREFIX
        target.set_attribute(local, self.decoder(value), namespace=namespace)
        return AttributeDecision.SET
