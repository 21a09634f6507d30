"""Token model consumed by the tree builder.

Tokens come from an external tokenizer that has already split raw markup into
typed lexical units. Each token carries a decoded ``primary`` payload, an
optional ``secondary`` payload (attribute values) and the verbatim ``raw``
source text.
"""

import html
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class TokenKind(Enum):
    """Lexical unit kinds produced by the tokenizer."""

    DOCTYPE_DECLARATION = auto()  # <!DOCTYPE ...>
    ELEMENT = auto()              # Opening tag name
    CLOSE_ELEMENT = auto()        # Closing tag name
    ATTRIBUTE = auto()            # Attribute of the preceding element
    COMMENT = auto()              # <!-- ... -->
    CDATA = auto()                # <![CDATA[ ... ]]>
    TEXT = auto()                 # Character content between tags


@dataclass
class HtmlToken:
    """Represents a single token with its decoded and raw payloads."""

    kind: TokenKind
    primary: str
    raw: str = ""
    secondary: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate token values."""
        if not isinstance(self.kind, TokenKind):
            raise TypeError("Token kind must be a TokenKind member")
        if not isinstance(self.primary, str):
            raise TypeError("Token primary payload must be a string")
        if not isinstance(self.raw, str):
            raise TypeError("Token raw payload must be a string")
        if self.secondary is not None and not isinstance(self.secondary, str):
            raise TypeError("Token secondary payload must be a string or None")

    @property
    def value(self) -> str:
        """Attribute-style value: secondary payload, else primary."""
        if self.secondary is not None:
            return self.secondary
        return self.primary or ""

    @classmethod
    def doctype(cls, raw: str) -> "HtmlToken":
        """Create a document type declaration token from its source text."""
        return cls(TokenKind.DOCTYPE_DECLARATION, raw, raw)

    @classmethod
    def element(cls, name: str) -> "HtmlToken":
        """Create an element open token."""
        return cls(TokenKind.ELEMENT, name, f"<{name}")

    @classmethod
    def close(cls, name: str) -> "HtmlToken":
        """Create an element close token."""
        return cls(TokenKind.CLOSE_ELEMENT, name, f"</{name}>")

    @classmethod
    def attribute(
        cls, name: str, value: Optional[str] = None, raw: Optional[str] = None
    ) -> "HtmlToken":
        """Create an attribute token; value goes into the secondary slot."""
        if raw is None:
            raw = name if value is None else f'{name}="{html.escape(value)}"'
        return cls(TokenKind.ATTRIBUTE, name, raw, value)

    @classmethod
    def comment(cls, text: str) -> "HtmlToken":
        """Create a comment token."""
        return cls(TokenKind.COMMENT, text, f"<!--{text}-->")

    @classmethod
    def cdata(cls, text: str) -> "HtmlToken":
        """Create a CDATA section token."""
        return cls(TokenKind.CDATA, text, f"<![CDATA[{text}]]>")

    @classmethod
    def text(cls, decoded: str, raw: Optional[str] = None) -> "HtmlToken":
        """Create a text token.

        When ``raw`` is omitted the decoded text is escaped to stand in for
        the source.
        """
        if raw is None:
            raw = html.escape(decoded, quote=False)
        return cls(TokenKind.TEXT, decoded, raw)
