"""In-memory XML document model.

Key Components:
    XmlDocument: Root container holding zero or more top-level nodes
    XmlElement: Element with a name, ordered attributes and children
    XmlText: Character data stored unescaped
    XmlWriter / JsonWriter: Rendering to XML and JSON text
"""

from .nodes import (
    NodeType,
    XmlAttribute,
    XmlDocument,
    XmlElement,
    XmlNode,
    XmlText,
)
from .serialization import (
    JsonWriter,
    JsonWriterOptions,
    XmlWriter,
    XmlWriterOptions,
    escape_attribute,
    escape_text,
)

__all__ = [
    "NodeType",
    "XmlAttribute",
    "XmlDocument",
    "XmlElement",
    "XmlNode",
    "XmlText",
    "JsonWriter",
    "JsonWriterOptions",
    "XmlWriter",
    "XmlWriterOptions",
    "escape_attribute",
    "escape_text",
]
