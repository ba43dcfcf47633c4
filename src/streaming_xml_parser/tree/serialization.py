"""XML and JSON rendering for the XML document model.

:class:`XmlWriter` renders a tree back to XML text, re-escaping attribute
values and character data. :class:`JsonWriter` maps elements to JSON objects
keyed by element name, with attributes as ``@name`` members and text as
``#text``.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from streaming_xml_parser.shared.errors import FormatError

from .nodes import XmlDocument, XmlElement, XmlNode, XmlText

INDENT = "\t"

_TEXT_ESCAPES = {"&": "&amp;", "<": "&lt;", ">": "&gt;"}
_ATTRIBUTE_ESCAPES = {"&": "&amp;", "<": "&lt;", '"': "&quot;"}
_WHITESPACE_ESCAPES = {" ": "&#32;", "\t": "&#9;", "\n": "&#10;", "\r": "&#13;"}


@dataclass
class XmlWriterOptions:
    """Control options for generating XML text from a tree.

    Attributes:
        include_content: Write children and inner content; when False an
            element is written as its opening tag only
        indentation: Number of tabs prepended to each line the writer starts
        allow_single_tags: Write childless elements as ``<T/>`` rather than
            ``<T></T>``
        escape_attribute_whitespace: Escape whitespace in attribute values as
            numeric character references
        pretty_print: Put each child of an element-only element on its own
            line, one tab deeper
    """

    include_content: bool = True
    indentation: int = 0
    allow_single_tags: bool = True
    escape_attribute_whitespace: bool = False
    pretty_print: bool = False

    def __post_init__(self) -> None:
        if self.indentation < 0:
            raise ValueError("indentation must be >= 0")


@dataclass
class JsonWriterOptions:
    """Control options for generating JSON text from an XML tree.

    Attributes:
        indentation: Tab level the output starts at (pretty printing only)
        merge_arrays: Merge repeated element names into one array even when
            other elements are interleaved, discarding the interleaving
        pretty_print: Tab-indented output instead of compact output
    """

    indentation: int = 0
    merge_arrays: bool = False
    pretty_print: bool = False

    def __post_init__(self) -> None:
        if self.indentation < 0:
            raise ValueError("indentation must be >= 0")


def escape_text(text: str) -> str:
    """Escape character data for use between tags."""
    return "".join(_TEXT_ESCAPES.get(char, char) for char in text)


def escape_attribute(value: str, escape_whitespace: bool = False) -> str:
    """Escape an attribute value for use inside double quotes."""
    parts = []
    for char in value:
        if char in _ATTRIBUTE_ESCAPES:
            parts.append(_ATTRIBUTE_ESCAPES[char])
        elif escape_whitespace and char in _WHITESPACE_ESCAPES:
            parts.append(_WHITESPACE_ESCAPES[char])
        else:
            parts.append(char)
    return "".join(parts)


class XmlWriter:
    """Render documents, elements and text nodes as XML text."""

    def __init__(self, options: Optional[XmlWriterOptions] = None) -> None:
        self.options = options or XmlWriterOptions()

    def write(self, node: XmlNode) -> str:
        parts: List[str] = []
        self._write_node(node, self.options.indentation, True, parts)
        return "".join(parts)

    def _write_node(
        self, node: XmlNode, level: int, line_start: bool, parts: List[str]
    ) -> None:
        if isinstance(node, XmlDocument):
            for index, child in enumerate(node.children):
                if index:
                    parts.append("\n")
                self._write_node(child, level, True, parts)
        elif isinstance(node, XmlElement):
            self._write_element(node, level, line_start, parts)
        elif isinstance(node, XmlText):
            if line_start:
                parts.append(INDENT * level)
            parts.append(escape_text(node.text))
        else:
            raise TypeError(f"Cannot write node of type {type(node).__name__}")

    def _write_element(
        self, element: XmlElement, level: int, line_start: bool, parts: List[str]
    ) -> None:
        options = self.options
        if line_start:
            parts.append(INDENT * level)
        parts.append("<" + element.local_name)
        for attribute in element.attributes:
            value = escape_attribute(attribute.value, options.escape_attribute_whitespace)
            parts.append(f' {attribute.name}="{value}"')

        if not options.include_content or not element.children:
            if options.allow_single_tags:
                parts.append("/>")
            else:
                parts.append(f"></{element.local_name}>")
            return

        parts.append(">")
        block_form = options.pretty_print and all(
            isinstance(child, XmlElement) for child in element.children
        )
        if block_form:
            for child in element.children:
                parts.append("\n")
                self._write_node(child, level + 1, True, parts)
            parts.append("\n" + INDENT * level)
        else:
            # Mixed content is whitespace-significant, so children stay inline.
            for child in element.children:
                self._write_node(child, level + 1, False, parts)
        parts.append(f"</{element.local_name}>")


class JsonWriter:
    """Render an XML tree as JSON.

    Examples:
        >>> doc = parse_string("<r><a>1</a><a>2</a><b/></r>")
        >>> doc.get_document_element().to_json()
        '{"a":["1","2"],"b":""}'
    """

    def __init__(self, options: Optional[JsonWriterOptions] = None) -> None:
        self.options = options or JsonWriterOptions()

    def write(self, node: XmlNode) -> str:
        value = self.to_value(node)
        if not self.options.pretty_print:
            return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        text = json.dumps(value, ensure_ascii=False, indent=INDENT, separators=(",", ": "))
        if self.options.indentation:
            text = text.replace("\n", "\n" + INDENT * self.options.indentation)
        return text

    def to_value(self, node: XmlNode) -> Any:
        """Convert ``node`` to plain Python values ready for :func:`json.dumps`."""
        if isinstance(node, XmlText):
            return node.text
        if isinstance(node, XmlDocument):
            return self._children_value(node, {})
        if isinstance(node, XmlElement):
            return self._element_value(node)
        raise TypeError(f"Cannot convert node of type {type(node).__name__}")

    def _element_value(self, element: XmlElement) -> Any:
        element_children = element.elements()
        texts = [child.text for child in element.children if isinstance(child, XmlText)]
        text = "".join(texts)
        if not element.attributes and not element_children:
            return text

        result: Dict[str, Any] = {}
        for attribute in element.attributes:
            result["@" + attribute.name] = attribute.value
        # Whitespace between child elements is layout, not content.
        if texts and (not element_children or text.strip()):
            result["#text"] = text
        return self._children_value(element, result)

    def _children_value(self, node: XmlNode, result: Dict[str, Any]) -> Dict[str, Any]:
        groups: Dict[str, List[XmlElement]] = {}
        previous = None
        for child in node.elements():
            name = child.local_name
            if name in groups and name != previous and not self.options.merge_arrays:
                first = groups[name][0]
                raise FormatError(
                    f"Element <{name}> at {child.source_location or 'unknown location'} "
                    f"repeats <{name}> from {first.source_location or 'unknown location'} "
                    f"with other elements in between: non-contiguous repeated element "
                    f"cannot be represented as JSON array (enable merge_arrays to combine them)",
                    child.source_location,
                )
            groups.setdefault(name, []).append(child)
            previous = name

        for name, members in groups.items():
            values = [self._element_value(member) for member in members]
            result[name] = values[0] if len(values) == 1 else values
        return result
