"""Tests for the XML document model."""

import pytest

from streaming_xml_parser.shared.errors import FormatError
from streaming_xml_parser.tree import (
    NodeType,
    XmlAttribute,
    XmlDocument,
    XmlElement,
    XmlNode,
    XmlText,
)


def build_tree():
    root = XmlElement("r", source_location="line 1")
    root.append_child(XmlElement("c", children=[XmlText("hi")], source_location="line 1"))
    root.append_child(XmlText(" "))
    root.append_child(XmlElement("d", source_location="line 2"))
    root.append_child(XmlElement("c", children=[XmlText("bye")], source_location="line 3"))
    return root


class TestNodeKinds:
    """Test node type tags."""

    def test_node_types(self):
        """Test that each class reports its kind."""
        assert XmlDocument().node_type is NodeType.DOCUMENT
        assert XmlElement("a").node_type is NodeType.ELEMENT
        assert XmlText("x").node_type is NodeType.TEXT
        assert XmlElement("a").is_element
        assert not XmlText("x").is_element

    def test_node_base_is_abstract(self):
        """Test that the node base class cannot be instantiated."""
        with pytest.raises(TypeError):
            XmlNode()

    def test_get_document_element(self):
        """Test finding the first element of a document."""
        doc = XmlDocument()
        assert doc.get_document_element() is None
        a = doc.append_child(XmlElement("a"))
        doc.append_child(XmlElement("b"))
        assert doc.get_document_element() is a


class TestChildManagement:
    """Test appending, inserting and removing children."""

    def test_document_cannot_be_child(self):
        """Test that a document is never accepted as a child."""
        with pytest.raises(TypeError):
            XmlElement("a").append_child(XmlDocument())
        with pytest.raises(TypeError):
            XmlDocument().append_child(XmlDocument())

    def test_non_node_child_rejected(self):
        """Test that only nodes can be children."""
        with pytest.raises(TypeError):
            XmlElement("a").append_child("text")  # type: ignore[arg-type]

    def test_text_cannot_have_children(self):
        """Test that text nodes are leaves."""
        with pytest.raises(TypeError):
            XmlText("x").append_child(XmlElement("a"))

    def test_node_cannot_be_own_child(self):
        """Test self-append is rejected."""
        element = XmlElement("a")
        with pytest.raises(ValueError):
            element.append_child(element)

    def test_constructor_children_are_checked(self):
        """Test that children passed to the constructor are validated."""
        with pytest.raises(TypeError):
            XmlElement("a", children=[XmlDocument()])

    def test_insert_child(self):
        """Test inserting at a position."""
        root = XmlElement("r", children=[XmlElement("b")])
        root.insert_child(0, XmlElement("a"))
        assert [c.local_name for c in root.elements()] == ["a", "b"]
        with pytest.raises(IndexError):
            root.insert_child(5, XmlElement("z"))

    def test_remove_child_returns_detached_node(self):
        """Test that remove_child hands the node back."""
        root = build_tree()
        d = root.find_child("d")
        removed = root.remove_child(d)
        assert removed is d
        assert root.find_child("d") is None
        assert len(root.children) == 3

    def test_remove_child_matches_identity(self):
        """Test that an equal but distinct node is not removed."""
        root = XmlElement("r", children=[XmlElement("a")])
        with pytest.raises(ValueError):
            root.remove_child(XmlElement("a"))

    def test_has_child_nodes(self):
        """Test child presence."""
        assert build_tree().has_child_nodes()
        assert not XmlElement("a").has_child_nodes()


class TestSearch:
    """Test child and descendant search."""

    def test_elements_returns_only_elements_in_order(self):
        """Test that elements() skips text children."""
        names = [e.local_name for e in build_tree().elements()]
        assert names == ["c", "d", "c"]

    def test_find_child_is_case_sensitive(self):
        """Test direct-child lookup."""
        root = build_tree()
        assert root.find_child("c").get_text_as_string() == "hi"
        assert root.find_child("C") is None

    def test_find_child_ignores_grandchildren(self):
        """Test that find_child does not descend."""
        root = XmlElement("r", children=[XmlElement("a", children=[XmlElement("b")])])
        assert root.find_child("b") is None
        assert root.find("b") is not None

    def test_find_nth_child(self):
        """Test indexed direct-child lookup."""
        root = build_tree()
        assert root.find_nth_child("c", 1).get_text_as_string() == "bye"
        assert root.find_nth_child("c", 2) is None
        assert root.find_nth_child("c", -1) is None

    @pytest.mark.parametrize("name", ["c", "d", "missing"])
    def test_find_nth_child_agrees_with_filtered_elements(self, name):
        """Test that find_nth_child matches filtering elements() by name."""
        root = build_tree()
        matching = [e for e in root.elements() if e.local_name == name]
        for k in range(len(matching) + 1):
            expected = matching[k] if k < len(matching) else None
            assert root.find_nth_child(name, k) is expected

    def test_find_all_descendants(self):
        """Test depth-first descendant search."""
        doc = XmlDocument(children=[build_tree()])
        assert [e.get_text_as_string() for e in doc.find_all("c")] == ["hi", "bye"]
        assert doc.find("r") is doc.get_document_element()


class TestAttributes:
    """Test element attribute helpers."""

    def test_get_attribute_absent_returns_empty_string(self):
        """Test the empty default for missing attributes."""
        element = XmlElement("a")
        assert element.get_attribute("x") == ""
        assert element.get_attribute("x", "fallback") == "fallback"

    def test_add_and_find_attribute(self):
        """Test adding and finding attributes."""
        element = XmlElement("a")
        element.add_attribute("x", "1")
        assert element.is_attr_present("x")
        assert element.find_attribute("x").value == "1"

    def test_set_attribute_replaces_in_place(self):
        """Test that set_attribute keeps attribute order."""
        element = XmlElement("a", attributes=[XmlAttribute("x", "1"), XmlAttribute("y", "2")])
        element.set_attribute("x", "3")
        element.set_attribute("z", "4")
        assert [(a.name, a.value) for a in element.attributes] == [
            ("x", "3"), ("y", "2"), ("z", "4")
        ]

    def test_remove_attribute(self):
        """Test attribute removal."""
        element = XmlElement("a", attributes=[XmlAttribute("x", "1")])
        assert element.remove_attribute("x") is True
        assert element.remove_attribute("x") is False

    def test_attribute_values_must_be_strings(self):
        """Test that non-string attribute values are rejected."""
        with pytest.raises(TypeError):
            XmlElement("a").add_attribute("x", 1)  # type: ignore[arg-type]


class TestTextHelpers:
    """Test text helpers."""

    def test_get_text_as_string_concatenates(self):
        """Test concatenating several text children."""
        element = XmlElement("a")
        element.add_text("one ")
        element.add_text("two")
        assert element.get_text_as_string() == "one two"

    def test_get_text_as_string_rejects_element_children(self):
        """Test that mixed content is reported as a format error."""
        with pytest.raises(FormatError, match="line 1"):
            build_tree().get_text_as_string()

    def test_add_text_element(self):
        """Test appending a child element holding text."""
        root = XmlElement("r")
        child = root.add_text_element("name", "value")
        assert root.find_child("name") is child
        assert child.get_text_as_string() == "value"


class TestDeepCopy:
    """Test subtree cloning."""

    def test_deep_copy_is_detached_and_equal(self):
        """Test that the copy is structurally equal but shares nothing."""
        root = build_tree()
        root.add_attribute("k", "v")
        clone = root.deep_copy()

        assert clone.structurally_equal(root)
        assert clone.to_string() == root.to_string()
        assert clone.children[0] is not root.children[0]
        assert clone.attributes[0] is not root.attributes[0]

        clone.find_child("c").add_text("!")
        assert root.find_child("c").get_text_as_string() == "hi"

    def test_deep_copy_keeps_source_locations(self):
        """Test that source locations are copied verbatim."""
        clone = build_tree().deep_copy()
        assert clone.source_location == "line 1"
        assert clone.find_child("d").source_location == "line 2"

    def test_document_deep_copy(self):
        """Test copying a whole document."""
        doc = XmlDocument(children=[build_tree()], source_location="line 1")
        clone = doc.deep_copy()
        assert isinstance(clone, XmlDocument)
        assert clone.to_string() == doc.to_string()


class TestStructuralEquality:
    """Test structural comparison."""

    def test_source_locations_ignored(self):
        """Test that locations do not affect equality."""
        a = XmlElement("a", source_location="x:1")
        b = XmlElement("a", source_location="y:9")
        assert a.structurally_equal(b)

    def test_differences_detected(self):
        """Test that names, attributes and text are compared."""
        assert not XmlElement("a").structurally_equal(XmlElement("b"))
        assert not XmlText("x").structurally_equal(XmlText("y"))
        assert not XmlElement("a").structurally_equal(XmlText("a"))
        with_attr = XmlElement("a", attributes=[XmlAttribute("x", "1")])
        assert not with_attr.structurally_equal(XmlElement("a"))
