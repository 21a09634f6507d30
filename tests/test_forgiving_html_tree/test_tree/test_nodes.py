"""Tests for the output document model."""

import pytest

from forgiving_html_tree.tree import (
    XML_NAMESPACE,
    XMLNS_NAMESPACE,
    DocumentType,
    HtmlCData,
    HtmlComment,
    HtmlDocument,
    HtmlElement,
    HtmlText,
)
from forgiving_html_tree.tree.nodes import qualified_name, split_qualified_name


class TestQualifiedNames:
    """Test Clark-notation helpers."""

    def test_qualified_name(self) -> None:
        """Test building qualified names."""
        assert qualified_name("lang") == "lang"
        assert qualified_name("lang", XML_NAMESPACE) == f"{{{XML_NAMESPACE}}}lang"

    def test_split_qualified_name(self) -> None:
        """Test splitting qualified names."""
        assert split_qualified_name("{urn:x}id") == ("urn:x", "id")
        assert split_qualified_name("id") == (None, "id")


class TestHtmlElement:
    """Test element construction, attributes and navigation."""

    def test_empty_name_raises_error(self) -> None:
        """Test that empty element names are rejected."""
        with pytest.raises(ValueError, match="Element name cannot be empty"):
            HtmlElement("")

    def test_append_establishes_parent(self) -> None:
        """Test that appended children point back to their parent."""
        parent = HtmlElement("div")
        text = parent.append(HtmlText("hi"))

        assert text.parent is parent
        assert parent.children == [text]

    def test_append_rejects_non_nodes(self) -> None:
        """Test that only nodes can be appended."""
        with pytest.raises(TypeError, match="Child must be an HtmlNode instance"):
            HtmlElement("div").append("text")  # type: ignore[arg-type]

    def test_constructor_children_adopted(self) -> None:
        """Test that children passed to the constructor get their parent set."""
        child = HtmlElement("span")
        parent = HtmlElement("div", children=[child])

        assert child.parent is parent

    def test_set_attribute_last_write_wins(self) -> None:
        """Test that attribute names are unique per element."""
        element = HtmlElement("div")
        element.set_attribute("id", "first")
        element.set_attribute("id", "second")

        assert element.attributes == {"id": "second"}

    def test_namespaced_attributes(self) -> None:
        """Test attributes in a namespace are kept apart from plain ones."""
        element = HtmlElement("div")
        element.set_attribute("lang", "en", namespace=XML_NAMESPACE)
        element.set_attribute("lang", "de")

        assert element.get_attribute("lang", namespace=XML_NAMESPACE) == "en"
        assert element.get_attribute("lang") == "de"
        assert element.has_attribute("lang", namespace=XML_NAMESPACE)
        assert element.get_attribute("missing", "fallback") == "fallback"

    def test_namespace_lookup_is_local(self) -> None:
        """Test that prefixes resolve on the declaring element only."""
        parent = HtmlElement("div")
        parent.set_attribute("xsi", "urn:example", namespace=XMLNS_NAMESPACE)
        child = HtmlElement("span")
        parent.append(child)

        assert parent.lookup_namespace("xsi") == "urn:example"
        assert parent.namespace_bindings == {"xsi": "urn:example"}
        assert child.lookup_namespace("xsi") is None
        assert child.namespace_bindings == {}

    def test_text_content_skips_comments(self) -> None:
        """Test text aggregation across descendants."""
        div = HtmlElement("div")
        div.append(HtmlText("a"))
        span = HtmlElement("span")
        span.append(HtmlCData("b"))
        div.append(span)
        div.append(HtmlComment("hidden"))
        div.append(HtmlText("c"))

        assert div.text_content == "abc"

    def test_find_and_find_all(self) -> None:
        """Test descendant searches in document order."""
        root = HtmlElement("html")
        first = root.append(HtmlElement("p"))
        div = root.append(HtmlElement("div"))
        second = div.append(HtmlElement("p"))

        assert root.find("p") is first
        assert root.find_all("p") == [first, second]
        assert root.find("table") is None
        assert [element.name for element in root.iter()] == ["html", "p", "div", "p"]

    def test_iter_nodes_in_document_order(self) -> None:
        """Test that every node kind is visited, parents before children."""
        root = HtmlElement("html")
        div = root.append(HtmlElement("div"))
        inner = div.append(HtmlText("a"))
        comment = root.append(HtmlComment("c"))

        assert list(root.iter_nodes()) == [root, div, inner, comment]

    def test_get_path_and_depth(self) -> None:
        """Test XPath-like paths and depth."""
        root = HtmlElement("html")
        root.append(HtmlElement("p"))
        second = root.append(HtmlElement("p"))
        text = second.append(HtmlText("x"))

        assert root.get_path() == "/html"
        assert second.get_path() == "/html/p[2]"
        assert second.get_depth() == 1
        assert text.get_depth() == 2

    def test_to_dict(self) -> None:
        """Test dictionary conversion."""
        div = HtmlElement("div", attributes={"id": "main"})
        div.append(HtmlText("hi"))
        div.append(HtmlComment("c"))

        assert div.to_dict() == {
            "type": "element",
            "name": "div",
            "attributes": {"id": "main"},
            "children": [
                {"type": "text", "value": "hi"},
                {"type": "comment", "value": "c"},
            ],
        }


class TestDocumentType:
    """Test doctype rendering."""

    def test_simple_declaration(self) -> None:
        """Test a doctype without identifiers."""
        assert DocumentType("html").declaration == "<!DOCTYPE html>"

    def test_public_declaration(self) -> None:
        """Test a doctype with public and system identifiers."""
        doctype = DocumentType("html", "-//W3C//DTD XHTML 1.0 Strict//EN", "strict.dtd")

        assert doctype.declaration == (
            '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" "strict.dtd">'
        )

    def test_system_declaration_with_quote(self) -> None:
        """Test quoting of a system identifier containing a double quote."""
        assert DocumentType("html", system_id='a"b').declaration == "<!DOCTYPE html SYSTEM 'a\"b'>"

    def test_empty_name_rejected(self) -> None:
        """Test that a doctype needs a name."""
        with pytest.raises(ValueError, match="Document type name cannot be empty"):
            DocumentType("")


class TestHtmlDocument:
    """Test document container."""

    def test_default_root(self) -> None:
        """Test that documents start with an empty html root."""
        document = HtmlDocument()

        assert document.root.name == "html"
        assert document.root.children == []
        assert document.doctype is None
        assert document.element_count == 1
        assert document.max_depth == 0

    def test_root_must_be_html(self) -> None:
        """Test that other root names are rejected."""
        with pytest.raises(ValueError, match="Document root must be an html element"):
            HtmlDocument(root=HtmlElement("body"))

    def test_find_includes_root(self) -> None:
        """Test that document searches include the root."""
        document = HtmlDocument()
        body = document.root.append(HtmlElement("body"))

        assert document.find("html") is document.root
        assert document.find("body") is body
        assert document.find_all("html") == [document.root]

    def test_to_dict_with_doctype(self) -> None:
        """Test dictionary conversion including the doctype."""
        document = HtmlDocument(doctype=DocumentType("html"))

        assert document.to_dict() == {
            "root": {"type": "element", "name": "html"},
            "doctype": {"name": "html", "public_id": None, "system_id": None},
        }
