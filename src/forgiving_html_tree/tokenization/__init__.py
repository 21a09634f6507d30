"""Token model for tag-soup tree construction.

Tokenizing raw markup is the job of an external collaborator; this package
only defines the token shape the tree builder consumes.

Key Components:
    HtmlToken: One lexical unit with decoded, secondary and raw payloads
    TokenKind: Enumeration of the token kinds the builder dispatches on
"""

from .tokens import HtmlToken, TokenKind

__all__ = [
    "HtmlToken",
    "TokenKind",
]
