"""In-memory XML document model.

A tree is made of :class:`XmlDocument`, :class:`XmlElement` and
:class:`XmlText` nodes. Every node carries an ordered ``children`` list and a
``source_location`` set by the parser; the node kind is exposed as
:attr:`XmlNode.node_type` and the serializers dispatch on it.

Parents exclusively own their children and there are no parent pointers:
traversal is always root-down. Use :meth:`XmlNode.remove_child` to detach a
subtree or :meth:`XmlNode.deep_copy` to clone one.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, ClassVar, Iterator, List, Optional

from streaming_xml_parser.shared.errors import FormatError

if TYPE_CHECKING:
    from .serialization import JsonWriterOptions, XmlWriterOptions


class NodeType(Enum):
    """Kinds of node in an XML tree."""

    DOCUMENT = auto()
    ELEMENT = auto()
    TEXT = auto()


@dataclass(eq=False)
class XmlAttribute:
    """A single ``name="value"`` pair; the value is stored unescaped."""

    name: str
    value: str = ""

    def copy(self) -> "XmlAttribute":
        return XmlAttribute(self.name, self.value)


class XmlNode(ABC):
    """Behaviour shared by documents, elements and text nodes."""

    node_type: ClassVar[NodeType]
    children: List["XmlNode"]
    source_location: str

    @property
    def is_element(self) -> bool:
        """Check if this node is an element."""
        return self.node_type is NodeType.ELEMENT

    def has_child_nodes(self) -> bool:
        """Check if this node has any children."""
        return len(self.children) > 0

    def elements(self) -> List["XmlElement"]:
        """Return the element children in document order."""
        return [child for child in self.children if isinstance(child, XmlElement)]

    def find_child(self, local_name: str) -> Optional["XmlElement"]:
        """Find the first direct child element with a matching name.

        Grandchildren are not considered. Matching is case-sensitive.
        """
        return self.find_nth_child(local_name, 0)

    def find_nth_child(self, local_name: str, n: int) -> Optional["XmlElement"]:
        """Find the ``n``-th (zero-based) direct child element with a matching name.

        Returns:
            The matching element, or None if fewer than ``n + 1`` children match
        """
        if n < 0:
            return None
        for child in self.children:
            if isinstance(child, XmlElement) and child.local_name == local_name:
                if n == 0:
                    return child
                n -= 1
        return None

    def find(self, local_name: str) -> Optional["XmlElement"]:
        """Find the first descendant element with a matching name, depth-first."""
        for element in self.iter_elements():
            if element is not self and element.local_name == local_name:
                return element
        return None

    def find_all(self, local_name: str) -> List["XmlElement"]:
        """Find all descendant elements with a matching name in document order."""
        return [
            element for element in self.iter_elements()
            if element is not self and element.local_name == local_name
        ]

    def iter_elements(self) -> Iterator["XmlElement"]:
        """Iterate depth-first over this node (if an element) and its descendants."""
        if isinstance(self, XmlElement):
            yield self
        for child in self.children:
            yield from child.iter_elements()

    def append_child(self, child: "XmlNode") -> "XmlNode":
        """Append ``child`` at the end of the children and return it."""
        self._check_child(child)
        self.children.append(child)
        return child

    def insert_child(self, index: int, child: "XmlNode") -> "XmlNode":
        """Insert ``child`` at ``index`` and return it."""
        self._check_child(child)
        if not (0 <= index <= len(self.children)):
            raise IndexError("Child index out of range")
        self.children.insert(index, child)
        return child

    def remove_child(self, child: "XmlNode") -> "XmlNode":
        """Detach ``child`` (matched by identity) and hand it back to the caller.

        Raises:
            ValueError: If ``child`` is not a child of this node
        """
        for index, existing in enumerate(self.children):
            if existing is child:
                del self.children[index]
                return child
        raise ValueError("Node is not a child of this node")

    def _check_child(self, child: "XmlNode") -> None:
        if not isinstance(child, XmlNode):
            raise TypeError("Child must be an XmlNode instance")
        if isinstance(child, XmlDocument):
            raise TypeError("A document cannot be the child of another node")
        if isinstance(self, XmlText):
            raise TypeError("Text nodes cannot have children")
        if child is self:
            raise ValueError("A node cannot be its own child")

    @abstractmethod
    def deep_copy(self) -> "XmlNode":
        """Return a detached copy of this node and its whole subtree."""

    def structurally_equal(self, other: object) -> bool:
        """Compare kind, names, attributes, text and children recursively.

        Source locations are not compared.
        """
        if not isinstance(other, XmlNode) or other.node_type is not self.node_type:
            return False
        if isinstance(self, XmlText):
            return self.text == other.text
        if isinstance(self, XmlElement):
            if self.local_name != other.local_name:
                return False
            mine = [(a.name, a.value) for a in self.attributes]
            theirs = [(a.name, a.value) for a in other.attributes]
            if mine != theirs:
                return False
        if len(self.children) != len(other.children):
            return False
        return all(
            a.structurally_equal(b) for a, b in zip(self.children, other.children)
        )

    def to_string(self, options: Optional["XmlWriterOptions"] = None) -> str:
        """Render this node as XML text."""
        # Import here to avoid circular dependency
        from .serialization import XmlWriter
        return XmlWriter(options).write(self)

    def to_json(self, options: Optional["JsonWriterOptions"] = None) -> str:
        """Render this node as JSON text."""
        from .serialization import JsonWriter
        return JsonWriter(options).write(self)

    def __str__(self) -> str:
        return self.to_string()


@dataclass(eq=False)
class XmlDocument(XmlNode):
    """Top-level container for a document or fragment.

    Unlike strict XML, a document may hold more than one top-level element.
    """

    children: List[XmlNode] = field(default_factory=list)
    source_location: str = ""

    node_type: ClassVar[NodeType] = NodeType.DOCUMENT

    def __post_init__(self) -> None:
        for child in self.children:
            self._check_child(child)

    def get_document_element(self) -> Optional["XmlElement"]:
        """Return the first top-level element, or None if there is none."""
        for child in self.children:
            if isinstance(child, XmlElement):
                return child
        return None

    def deep_copy(self) -> "XmlDocument":
        return XmlDocument(
            children=[child.deep_copy() for child in self.children],
            source_location=self.source_location,
        )


@dataclass(eq=False)
class XmlElement(XmlNode):
    """An element with a name, ordered attributes and child nodes."""

    local_name: str = ""
    attributes: List[XmlAttribute] = field(default_factory=list)
    children: List[XmlNode] = field(default_factory=list)
    source_location: str = ""

    node_type: ClassVar[NodeType] = NodeType.ELEMENT

    def __post_init__(self) -> None:
        for child in self.children:
            self._check_child(child)

    def find_attribute(self, name: str) -> Optional[XmlAttribute]:
        """Return the attribute with the given name, or None."""
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    def get_attribute(self, name: str, default: str = "") -> str:
        """Return the attribute value, or ``default`` when it is absent."""
        attribute = self.find_attribute(name)
        return attribute.value if attribute is not None else default

    def is_attr_present(self, name: str) -> bool:
        """Check if the element has the named attribute."""
        return self.find_attribute(name) is not None

    def add_attribute(self, name: str, value: str) -> XmlAttribute:
        """Append an attribute without checking for an existing one."""
        if not isinstance(name, str) or not isinstance(value, str):
            raise TypeError("Attribute name and value must be strings")
        attribute = XmlAttribute(name, value)
        self.attributes.append(attribute)
        return attribute

    def set_attribute(self, name: str, value: str) -> XmlAttribute:
        """Replace the value of an existing attribute or append a new one."""
        attribute = self.find_attribute(name)
        if attribute is None:
            return self.add_attribute(name, value)
        if not isinstance(value, str):
            raise TypeError("Attribute name and value must be strings")
        attribute.value = value
        return attribute

    def remove_attribute(self, name: str) -> bool:
        """Remove the named attribute; return whether it was present."""
        attribute = self.find_attribute(name)
        if attribute is None:
            return False
        self.attributes.remove(attribute)
        return True

    def get_text_as_string(self) -> str:
        """Return the concatenated text children.

        Raises:
            FormatError: If the element contains child elements
        """
        parts = []
        for child in self.children:
            if isinstance(child, XmlElement):
                raise FormatError(
                    f"Element <{self.local_name}> at {self.source_location or 'unknown location'} "
                    f"contains child elements where only text was expected",
                    self.source_location,
                )
            if isinstance(child, XmlText):
                parts.append(child.text)
        return "".join(parts)

    def add_text(self, value: str) -> "XmlText":
        """Append a text child holding ``value``."""
        text = XmlText(value)
        self.append_child(text)
        return text

    def add_text_element(self, local_name: str, value: str) -> "XmlElement":
        """Append a child element named ``local_name`` that holds ``value`` as text."""
        element = XmlElement(local_name)
        element.add_text(value)
        self.append_child(element)
        return element

    def deep_copy(self) -> "XmlElement":
        return XmlElement(
            local_name=self.local_name,
            attributes=[attribute.copy() for attribute in self.attributes],
            children=[child.deep_copy() for child in self.children],
            source_location=self.source_location,
        )


@dataclass(eq=False)
class XmlText(XmlNode):
    """A run of character data; ``text`` is stored unescaped."""

    text: str = ""
    source_location: str = ""
    children: List[XmlNode] = field(default_factory=list, init=False, repr=False)

    node_type: ClassVar[NodeType] = NodeType.TEXT

    def deep_copy(self) -> "XmlText":
        return XmlText(self.text, self.source_location)
