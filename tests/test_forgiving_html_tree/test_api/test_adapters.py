"""Tests for the lxml integration adapter."""

import pytest
from lxml import etree

from forgiving_html_tree.api.adapters import (
    AdapterMetadata,
    ConversionResult,
    IntegrationAdapter,
    LxmlAdapter,
)
from forgiving_html_tree.api.parser import build
from forgiving_html_tree.shared import DiagnosticSeverity
from forgiving_html_tree.tokenization import HtmlToken
from forgiving_html_tree.tree import XML_NAMESPACE, XMLNS_NAMESPACE, BuildResult


@pytest.fixture
def adapter():
    return LxmlAdapter(correlation_id="adapter-test")


class TestLxmlAdapterBasics:
    """Test adapter metadata and availability."""

    def test_is_integration_adapter(self, adapter):
        """Test that the adapter implements the abstract interface."""
        assert isinstance(adapter, IntegrationAdapter)
        assert adapter.is_available() is True

    def test_metadata(self, adapter):
        """Test adapter metadata."""
        metadata = adapter.metadata

        assert isinstance(metadata, AdapterMetadata)
        assert metadata.name == "lxml"
        assert metadata.target_library == "lxml"


class TestToTarget:
    """Test conversion from BuildResult to lxml."""

    def test_simple_tree(self, adapter):
        """Test text, children and tails are placed the lxml way."""
        result = build([
            HtmlToken.element("div"),
            HtmlToken.attribute("class", "x"),
            HtmlToken.text("hi"),
            HtmlToken.element("span"),
            HtmlToken.text("t"),
            HtmlToken.close("span"),
            HtmlToken.text("tail"),
            HtmlToken.close("div"),
        ])

        conversion = adapter.to_target(result)

        assert isinstance(conversion, ConversionResult)
        assert conversion.success is True
        assert conversion.original_data is result
        assert etree.tostring(conversion.converted_data) == (
            b'<html><div class="x">hi<span>t</span>tail</div></html>'
        )
        assert conversion.metadata["element_count"] == 3

    def test_namespaces(self, adapter):
        """Test that bindings become nsmap entries and attributes keep namespaces."""
        result = build([
            HtmlToken.element("div"),
            HtmlToken.attribute("xmlns:x", "urn:x"),
            HtmlToken.attribute("x:foo", "bar"),
            HtmlToken.attribute("xml:lang", "en"),
        ])

        conversion = adapter.to_target(result)

        div = conversion.converted_data.getroot()[0]
        assert div.nsmap == {"x": "urn:x"}
        assert div.get("{urn:x}foo") == "bar"
        assert div.get(f"{{{XML_NAMESPACE}}}lang") == "en"
        assert f"{{{XMLNS_NAMESPACE}}}x" not in div.attrib

    def test_comment_and_cdata(self, adapter):
        """Test comments and CDATA sections."""
        result = build([
            HtmlToken.element("script"),
            HtmlToken.cdata("a < b"),
            HtmlToken.close("script"),
            HtmlToken.comment(" note "),
        ])

        conversion = adapter.to_target(result)

        assert etree.tostring(conversion.converted_data) == (
            b"<html><script><![CDATA[a < b]]></script><!-- note --></html>"
        )
        assert conversion.warnings == []

    def test_cdata_mixed_with_text_is_flattened(self, adapter):
        """Test that CDATA lxml cannot hold is kept as text with a warning."""
        result = build([
            HtmlToken.element("script"),
            HtmlToken.cdata("a<b"),
            HtmlToken.text("z"),
            HtmlToken.close("script"),
        ])

        conversion = adapter.to_target(result)

        assert conversion.success is True
        assert etree.tostring(conversion.converted_data) == (
            b"<html><script>a&lt;bz</script></html>"
        )
        assert conversion.warnings == ["CDATA section in <script> exported as plain text"]

    def test_cdata_after_child_element(self, adapter):
        """Test that CDATA in a tail position is flattened with a warning."""
        result = build([
            HtmlToken.element("div"),
            HtmlToken.element("br"),
            HtmlToken.cdata("x"),
        ])

        conversion = adapter.to_target(result)

        br = conversion.converted_data.getroot()[0][0]
        assert br.tail == "x"
        assert len(conversion.warnings) == 1

    def test_deeply_nested_tree(self, adapter):
        """Test that conversion does not depend on tree depth."""
        depth = 5000
        result = build(HtmlToken.element("font") for _ in range(depth))

        conversion = adapter.to_target(result)

        assert conversion.success is True
        assert conversion.metadata["element_count"] == depth + 1

    def test_comment_with_double_hyphen(self, adapter):
        """Test that comment text lxml cannot hold is adjusted with a warning."""
        result = build([HtmlToken.comment("a--b")])

        conversion = adapter.to_target(result)

        assert conversion.success is True
        assert conversion.converted_data.getroot()[0].text == "a- -b"
        assert conversion.warnings == ["Comment content adjusted to be XML compatible"]

    def test_html5_doctype(self, adapter):
        """Test that a name-only doctype is carried to the lxml tree."""
        result = build([HtmlToken.doctype("<!DOCTYPE html>"), HtmlToken.element("body")])

        tree = adapter.to_target(result).converted_data

        assert tree.docinfo.doctype == "<!DOCTYPE html>"
        assert tree.getroot()[0].tag == "body"

    def test_public_doctype(self, adapter):
        """Test that doctype identifiers are carried to the lxml tree."""
        public_id = "-//W3C//DTD XHTML 1.0 Strict//EN"
        system_id = "http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd"
        result = build([HtmlToken.doctype(f'<!DOCTYPE html PUBLIC "{public_id}" "{system_id}">')])

        tree = adapter.to_target(result).converted_data

        assert tree.docinfo.public_id == public_id
        assert tree.docinfo.system_url == system_id

    def test_invalid_element_name(self, adapter):
        """Test that names lxml rejects produce a failed conversion, not an exception."""
        result = build([HtmlToken.element("1abc")])

        conversion = adapter.to_target(result)

        assert conversion.success is False
        assert conversion.converted_data is None
        assert conversion.errors[0].startswith("Failed to convert to lxml")
        assert conversion.diagnostics[0].severity == DiagnosticSeverity.ERROR
        assert conversion.diagnostics[0].correlation_id == "adapter-test"


class TestFromTarget:
    """Test conversion from lxml to BuildResult."""

    def test_element_tree(self, adapter):
        """Test replaying an lxml document through the builder."""
        root = etree.fromstring(
            '<root xmlns:x="urn:x"><br/><p x:a="1" xml:lang="en">hi<!--c-->tail</p></root>'
        )

        conversion = adapter.from_target(root.getroottree())

        assert conversion.success is True
        result = conversion.converted_data
        assert isinstance(result, BuildResult)
        assert result.tree.find("root").get_path() == "/html/root"
        assert [child.name for child in result.tree.find("root").elements] == ["br", "p"]
        paragraph = result.tree.find("p")
        assert paragraph.get_attribute("a", namespace="urn:x") == "1"
        assert paragraph.get_attribute("lang", namespace=XML_NAMESPACE) == "en"
        assert paragraph.text_content == "hitail"
        assert result.metrics.orphan_closes == 0

    def test_doctype_is_replayed(self, adapter):
        """Test that the source doctype is resolved again."""
        root = etree.fromstring("<!DOCTYPE html><html><body/></html>")

        result = adapter.from_target(root).converted_data

        assert result.tree.doctype.name == "html"
        assert [child.name for child in result.root.elements] == ["body"]

    def test_entities_are_not_decoded_again(self, adapter):
        """Test that lxml attribute values are taken literally."""
        root = etree.fromstring('<a href="?x=1&amp;amp;y=2"/>')

        result = adapter.from_target(root).converted_data

        assert result.tree.find("a").get_attribute("href") == "?x=1&amp;y=2"

    def test_processing_instruction_skipped(self, adapter):
        """Test that processing instructions are skipped with a warning."""
        root = etree.fromstring("<div><?target data?></div>")

        conversion = adapter.from_target(root)

        assert conversion.success is True
        assert len(conversion.warnings) == 1
        assert conversion.converted_data.tree.find("div").children == []

    def test_deeply_nested_lxml_tree(self, adapter):
        """Test that replaying a deep lxml tree does not depend on its depth."""
        depth = 5000
        root = etree.Element("div")
        node = root
        for _ in range(depth):
            node = etree.SubElement(node, "div")
        node.text = "deep"

        conversion = adapter.from_target(root)

        result = conversion.converted_data
        assert conversion.success is True
        assert result.tree.element_count == depth + 2
        assert result.root.text_content == "deep"
        assert result.metrics.implicit_closes == 0

    def test_unsupported_input(self, adapter):
        """Test that non-lxml input is rejected gracefully."""
        conversion = adapter.from_target("<div/>")

        assert conversion.success is False
        assert conversion.errors == ["Target data is not an lxml element or tree"]
