"""Document model produced by the tree builder.

The tree is a single ``html`` element owning its descendants. Attributes are
keyed by qualified name in Clark notation (``{namespace}local``), the same
convention lxml and ElementTree use, so namespaced attributes never collide
with plain ones.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
XMLNS_NAMESPACE = "http://www.w3.org/2000/xmlns/"

ROOT_ELEMENT_NAME = "html"


def qualified_name(local: str, namespace: Optional[str] = None) -> str:
    """Build a Clark-notation name from a local name and optional namespace."""
    if namespace:
        return f"{{{namespace}}}{local}"
    return local


def split_qualified_name(name: str) -> Tuple[Optional[str], str]:
    """Split a Clark-notation name into (namespace, local)."""
    if name.startswith("{"):
        end = name.find("}")
        if end > 0:
            return name[1:end], name[end + 1:]
    return None, name


class HtmlNode:
    """Common behaviour of every node kind in the tree."""

    parent: Optional["HtmlElement"]

    @property
    def text_content(self) -> str:
        return ""

    def get_depth(self) -> int:
        """Get depth of this node in the tree (root = 0)."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(eq=False)
class HtmlText(HtmlNode):
    """Literal character content."""

    value: str
    parent: Optional["HtmlElement"] = field(default=None, repr=False)

    @property
    def text_content(self) -> str:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "text", "value": self.value}


@dataclass(eq=False)
class HtmlComment(HtmlNode):
    """Comment content, excluded from text_content."""

    value: str
    parent: Optional["HtmlElement"] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "comment", "value": self.value}


@dataclass(eq=False)
class HtmlCData(HtmlNode):
    """CDATA section content."""

    value: str
    parent: Optional["HtmlElement"] = field(default=None, repr=False)

    @property
    def text_content(self) -> str:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "cdata", "value": self.value}


@dataclass(eq=False)
class HtmlElement(HtmlNode):
    """Represents a single element in the document tree.

    Namespace bindings are stored as ordinary attributes in the xmlns
    namespace, so the set of prefixes visible on an element is exactly the set
    of ``xmlns:`` attributes committed to it so far.
    """

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List[HtmlNode] = field(default_factory=list, repr=False)
    parent: Optional["HtmlElement"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate element name and adopt any children passed in."""
        if not self.name:
            raise ValueError("Element name cannot be empty")
        for child in self.children:
            child.parent = self

    def append(self, child: HtmlNode) -> HtmlNode:
        """Append a child node as the last child and return it."""
        if not isinstance(child, HtmlNode):
            raise TypeError("Child must be an HtmlNode instance")
        child.parent = self
        self.children.append(child)
        return child

    def set_attribute(
        self, name: str, value: str, namespace: Optional[str] = None
    ) -> None:
        """Set an attribute; a repeated name overwrites the earlier value."""
        if not isinstance(name, str) or not isinstance(value, str):
            raise TypeError("Attribute name and value must be strings")
        self.attributes[qualified_name(name, namespace)] = value

    def get_attribute(
        self,
        name: str,
        default: Optional[str] = None,
        namespace: Optional[str] = None,
    ) -> Optional[str]:
        """Get attribute value with optional default."""
        return self.attributes.get(qualified_name(name, namespace), default)

    def has_attribute(self, name: str, namespace: Optional[str] = None) -> bool:
        """Check if element has specific attribute."""
        return qualified_name(name, namespace) in self.attributes

    def lookup_namespace(self, prefix: str) -> Optional[str]:
        """Resolve a prefix declared on this element only.

        Ancestors are not consulted.
        """
        return self.attributes.get(qualified_name(prefix, XMLNS_NAMESPACE))

    @property
    def namespace_bindings(self) -> Dict[str, str]:
        """Prefix to URI map of the xmlns declarations on this element."""
        bindings = {}
        for key, value in self.attributes.items():
            namespace, local = split_qualified_name(key)
            if namespace == XMLNS_NAMESPACE:
                bindings[local] = value
        return bindings

    @property
    def elements(self) -> List["HtmlElement"]:
        """Direct element children."""
        return [child for child in self.children if isinstance(child, HtmlElement)]

    @property
    def text_content(self) -> str:
        """Concatenated text of all descendant text and CDATA nodes."""
        return "".join(
            node.value for node in self.iter_nodes()
            if isinstance(node, (HtmlText, HtmlCData))
        )

    def iter_nodes(self) -> Iterator[HtmlNode]:
        """Iterate over this element and all descendant nodes in document order."""
        # Explicit stack: tag soup nests far deeper than the recursion limit.
        stack: List[HtmlNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, HtmlElement):
                stack.extend(reversed(node.children))

    def iter(self) -> Iterator["HtmlElement"]:
        """Iterate over this element and its descendant elements in document order."""
        for node in self.iter_nodes():
            if isinstance(node, HtmlElement):
                yield node

    def find(self, name: str) -> Optional["HtmlElement"]:
        """Find first descendant element with matching name."""
        return next(
            (element for element in self.iter() if element is not self and element.name == name),
            None,
        )

    def find_all(self, name: str) -> List["HtmlElement"]:
        """Find all descendant elements with matching name."""
        return [
            element for element in self.iter()
            if element is not self and element.name == name
        ]

    def get_path(self) -> str:
        """Get XPath-like path to this element."""
        segments = []
        element = self
        while element.parent is not None:
            parent = element.parent
            siblings = [child for child in parent.elements if child.name == element.name]
            if len(siblings) > 1:
                position = next(
                    index for index, sibling in enumerate(siblings, 1) if sibling is element
                )
                segments.append(f"{element.name}[{position}]")
            else:
                segments.append(element.name)
            element = parent
        segments.append(element.name)
        return "/" + "/".join(reversed(segments))

    def _shallow_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": "element", "name": self.name}
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result = self._shallow_dict()
        pending = [(self, result)]
        while pending:
            element, entry = pending.pop()
            if not element.children:
                continue
            children = entry["children"] = []
            for child in element.children:
                if isinstance(child, HtmlElement):
                    child_entry = child._shallow_dict()
                    pending.append((child, child_entry))
                else:
                    child_entry = child.to_dict()
                children.append(child_entry)
        return result


@dataclass
class DocumentType:
    """Document type declaration kept on the document.

    Any internal subset of the source declaration is discarded before a
    DocumentType is created.
    """

    name: str
    public_id: Optional[str] = None
    system_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Document type name cannot be empty")

    @property
    def declaration(self) -> str:
        """Render the declaration as markup."""
        if self.public_id:
            return (
                f'<!DOCTYPE {self.name} PUBLIC "{self.public_id}" '
                f"{_quote_literal(self.system_id or '')}>"
            )
        if self.system_id:
            return f"<!DOCTYPE {self.name} SYSTEM {_quote_literal(self.system_id)}>"
        return f"<!DOCTYPE {self.name}>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "public_id": self.public_id,
            "system_id": self.system_id,
        }


def _quote_literal(value: str) -> str:
    if '"' in value:
        return f"'{value}'"
    return f'"{value}"'


@dataclass
class HtmlDocument:
    """Root document container.

    The root is always a single element named ``html``.
    """

    root: HtmlElement = field(default_factory=lambda: HtmlElement(ROOT_ELEMENT_NAME))
    doctype: Optional[DocumentType] = None

    def __post_init__(self) -> None:
        if self.root.name != ROOT_ELEMENT_NAME:
            raise ValueError("Document root must be an html element")

    def iter_elements(self) -> Iterator[HtmlElement]:
        """Iterate over all elements in document order."""
        return self.root.iter()

    @property
    def element_count(self) -> int:
        return sum(1 for _ in self.iter_elements())

    @property
    def max_depth(self) -> int:
        deepest = 0
        pending = [(self.root, 0)]
        while pending:
            element, depth = pending.pop()
            deepest = max(deepest, depth)
            pending.extend((child, depth + 1) for child in element.elements)
        return deepest

    def find(self, name: str) -> Optional[HtmlElement]:
        """Find first element with matching name, the root included."""
        if self.root.name == name:
            return self.root
        return self.root.find(name)

    def find_all(self, name: str) -> List[HtmlElement]:
        """Find all elements with matching name, the root included."""
        return [element for element in self.iter_elements() if element.name == name]

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        result: Dict[str, Any] = {"root": self.root.to_dict()}
        if self.doctype is not None:
            result["doctype"] = self.doctype.to_dict()
        return result
