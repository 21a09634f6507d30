"""Element name normalization shared by open and close tag handling."""


def sanitize_element_name(name: str) -> str:
    """Normalize an element name for tree construction.

    Any namespace prefix is discarded by keeping only the text after the last
    colon, and the result is lowercased.

    Examples:
        >>> sanitize_element_name("DIV")
        'div'
        >>> sanitize_element_name("o:P")
        'p'
        >>> sanitize_element_name("a:b:Span")
        'span'
    """
    if ":" in name:
        name = name[name.rindex(":") + 1:]
    return name.lower()
