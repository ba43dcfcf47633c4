"""Conversion between the XML document model and lxml.

lxml stores character data on ``text`` (before the first child) and ``tail``
(after each child) instead of as separate nodes; the adapter maps between the
two models. Comments and processing instructions have no counterpart in the
document model and are dropped on the way in, keeping their tail text.
Namespaces are not modelled, so ``{uri}name`` tags come in as ``name``.
"""

from typing import TYPE_CHECKING, Any, List, Union

from streaming_xml_parser.shared import get_logger
from streaming_xml_parser.tree import XmlDocument, XmlElement, XmlNode, XmlText

if TYPE_CHECKING:
    import lxml.etree

logger = get_logger(__name__, component="lxml_adapter")


class LxmlAdapter:
    """Adapter for bidirectional conversion with lxml.etree."""

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
            return True
        except ImportError:
            return False

    def to_target(self, node: Union[XmlDocument, XmlElement]) -> "lxml.etree._Element":
        """Convert an element, or the document element of a document, to lxml.

        Raises:
            ValueError: If a document has no element
            TypeError: If ``node`` is a text node
        """
        import lxml.etree as ET

        if isinstance(node, XmlDocument):
            root = node.get_document_element()
            if root is None:
                raise ValueError("Document has no element to convert")
            node = root
        if not isinstance(node, XmlElement):
            raise TypeError(f"Cannot convert {type(node).__name__} to an lxml element")

        lxml_root = self._convert_element_to_lxml(node, ET)
        logger.debug(
            "Converted element to lxml",
            extra={"root": node.local_name, "lxml_version": ET.LXML_VERSION},
        )
        return lxml_root

    def from_target(
        self, target: "Union[lxml.etree._Element, lxml.etree._ElementTree]",
        source_filename: str = ""
    ) -> XmlElement:
        """Convert an lxml element (or the root of an element tree) to an XmlElement."""
        if hasattr(target, "getroot"):
            target = target.getroot()
        if not isinstance(getattr(target, "tag", None), str):
            raise TypeError("Target data is not a valid lxml element")
        return self._convert_element_from_lxml(target, source_filename)

    def _convert_element_to_lxml(self, element: XmlElement, ET: Any) -> "lxml.etree._Element":
        lxml_element = ET.Element(element.local_name)
        for attribute in element.attributes:
            lxml_element.set(attribute.name, attribute.value)

        last_child = None
        for child in element.children:
            if isinstance(child, XmlText):
                if last_child is None:
                    lxml_element.text = (lxml_element.text or "") + child.text
                else:
                    last_child.tail = (last_child.tail or "") + child.text
            elif isinstance(child, XmlElement):
                last_child = self._convert_element_to_lxml(child, ET)
                lxml_element.append(last_child)
        return lxml_element

    def _convert_element_from_lxml(self, lxml_element: Any, source_filename: str) -> XmlElement:
        import lxml.etree as ET

        location = self._source_location(lxml_element, source_filename)
        element = XmlElement(ET.QName(lxml_element).localname, source_location=location)
        for name, value in lxml_element.attrib.items():
            element.add_attribute(ET.QName(name).localname, value)

        children: List[XmlNode] = []
        self._append_text(children, lxml_element.text, location)
        for child in lxml_element:
            # Comments and processing instructions have a callable tag.
            if isinstance(child.tag, str):
                children.append(self._convert_element_from_lxml(child, source_filename))
            self._append_text(
                children, child.tail, self._source_location(child, source_filename)
            )
        for child in children:
            element.append_child(child)
        return element

    @staticmethod
    def _append_text(children: List[XmlNode], text: Any, location: str) -> None:
        if not text:
            return
        if children and isinstance(children[-1], XmlText):
            children[-1].text += text
        else:
            children.append(XmlText(text, location))

    @staticmethod
    def _source_location(lxml_element: Any, source_filename: str) -> str:
        line = lxml_element.sourceline
        if line is None:
            return ""
        if source_filename:
            return f"{source_filename}:{line}"
        return f"line {line}"


def to_lxml(node: Union[XmlDocument, XmlElement]) -> "lxml.etree._Element":
    """Convert an element (or a document's element) to an ``lxml.etree`` element.

    Examples:
        >>> root = to_lxml(parse_string("<r><c>hi</c> <c>bye</c></r>"))
        >>> [c.text for c in root], root[0].tail
        (['hi', 'bye'], ' ')
    """
    return LxmlAdapter().to_target(node)


def from_lxml(element: Any, source_filename: str = "") -> XmlElement:
    """Convert an ``lxml.etree`` element or element tree to an XmlElement.

    Source locations are derived from ``sourceline`` when lxml knows it.
    """
    return LxmlAdapter().from_target(element, source_filename)
