"""Single-pass streaming XML parser.

The parser is an explicit state machine driven by a :class:`StreamReader`.
Each state has a handler that consumes characters until it either changes
state or runs out of input. Running out of input is not an error: the
handler returns without consuming the partial token, the state and scratch
buffers are kept, and the next :meth:`XmlParser.partial_parse` call resumes
exactly where the stream ran dry.
"""

import io
import time
from enum import Enum, auto
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from streaming_xml_parser.character import StreamReader
from streaming_xml_parser.shared.config import DuplicateAttributePolicy, ParserConfig
from streaming_xml_parser.shared.errors import FormatError
from streaming_xml_parser.shared.logging import get_logger
from streaming_xml_parser.shared.result import ParseStatistics
from streaming_xml_parser.tree import XmlAttribute, XmlDocument, XmlElement, XmlNode, XmlText

from .entities import decode_reference

WHITESPACE = " \t\r\n"
BYTE_ORDER_MARK = "\ufeff"
UNICODE_START_OFFSET = 0x80

COMMENT_OPEN = "!--"
CDATA_OPEN = "![CDATA["
DOCTYPE_OPEN = "!DOCTYPE"

Source = Union[bytes, bytearray, str, Any]


class ParserState(Enum):
    """State machine states for XML parsing."""

    IDLE = auto()                               # Between tokens
    PARSING_TAG = auto()                        # After <, deciding the kind of tag
    PARSING_XML_DECLARATION = auto()            # Inside <? ... ?>
    PARSING_COMMENT = auto()                    # Inside <!-- ... -->
    PARSING_DOCTYPE = auto()                    # Inside <!DOCTYPE ... >
    PARSING_CDATA = auto()                      # Inside <![CDATA[ ... ]]>
    PARSING_PCDATA = auto()                     # Character data up to the next <
    PARSING_OPENING_TAG = auto()                # Element name of an opening tag
    PARSING_ATTRIBUTE_KEY = auto()              # Attribute name or end of tag
    PARSING_ATTRIBUTE_VALUE_START = auto()      # After =, before the quote
    PARSING_ATTRIBUTE_VALUE = auto()            # Quoted attribute value
    PARSING_OPEN_CLOSE_TAG_COMPLETION = auto()  # After / of a <T/> tag
    PARSING_CLOSING_TAG = auto()                # Element name of a </T> tag


STATE_DESCRIPTIONS = {
    ParserState.IDLE: "content",
    ParserState.PARSING_TAG: "a tag",
    ParserState.PARSING_XML_DECLARATION: "a processing instruction",
    ParserState.PARSING_COMMENT: "a comment",
    ParserState.PARSING_DOCTYPE: "a DOCTYPE declaration",
    ParserState.PARSING_CDATA: "a CDATA section",
    ParserState.PARSING_PCDATA: "character data",
    ParserState.PARSING_OPENING_TAG: "an opening tag",
    ParserState.PARSING_ATTRIBUTE_KEY: "an attribute name",
    ParserState.PARSING_ATTRIBUTE_VALUE_START: "an attribute value",
    ParserState.PARSING_ATTRIBUTE_VALUE: "a quoted attribute value",
    ParserState.PARSING_OPEN_CLOSE_TAG_COMPLETION: "an empty-element tag",
    ParserState.PARSING_CLOSING_TAG: "a closing tag",
}


def _is_name_start_char(char: str) -> bool:
    """Check if character can start an XML name."""
    return (char.isalpha() or
            char == "_" or
            char == ":" or
            ord(char) >= UNICODE_START_OFFSET)


def as_stream(source: Source) -> Any:
    """Wrap ``bytes`` or ``str`` in an in-memory stream; pass streams through."""
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    if isinstance(source, str):
        return io.StringIO(source)
    if hasattr(source, "read"):
        return source
    raise TypeError(
        f"Cannot parse {type(source).__name__}: expected bytes, str or a file-like object"
    )


class XmlParser:
    """Streaming XML parser with partial parsing support.

    One parser reads one stream. :meth:`partial_parse` returns a completed
    top-level document each time a top-level element closes, so a stream
    holding several concatenated documents is read one document per call.

    Examples:
        >>> parser = XmlParser()
        >>> stream = io.StringIO("<a/><b/>")
        >>> parser.partial_parse(stream).get_document_element().local_name
        'a'
        >>> parser.partial_parse(stream).get_document_element().local_name
        'b'
        >>> parser.partial_parse(stream) is None
        True
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the parser.

        Args:
            config: Parser configuration, defaults to ``ParserConfig()``
            correlation_id: Optional correlation ID for log records, defaults
                to the configured one
        """
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_parser")
        self.statistics = ParseStatistics()

        self._handlers: Dict[ParserState, Callable[[], bool]] = {
            ParserState.IDLE: self._parse_idle,
            ParserState.PARSING_TAG: self._parse_tag,
            ParserState.PARSING_XML_DECLARATION: self._parse_xml_declaration,
            ParserState.PARSING_COMMENT: self._parse_comment,
            ParserState.PARSING_DOCTYPE: self._parse_doctype,
            ParserState.PARSING_CDATA: self._parse_cdata,
            ParserState.PARSING_PCDATA: self._parse_pcdata,
            ParserState.PARSING_OPENING_TAG: self._parse_opening_tag,
            ParserState.PARSING_ATTRIBUTE_KEY: self._parse_attribute_key,
            ParserState.PARSING_ATTRIBUTE_VALUE_START: self._parse_attribute_value_start,
            ParserState.PARSING_ATTRIBUTE_VALUE: self._parse_attribute_value,
            ParserState.PARSING_OPEN_CLOSE_TAG_COMPLETION: self._parse_open_close_tag_completion,
            ParserState.PARSING_CLOSING_TAG: self._parse_closing_tag,
        }
        self.reset()

    def reset(self) -> None:
        """Discard all parser state, including any unread lookahead."""
        self.reader = StreamReader(self.config.max_lookahead)
        self.state = ParserState.IDLE
        self.statistics.reset()
        self._log = self.logger
        self._document = XmlDocument()
        self._stack: List[XmlNode] = []
        self._completed: Optional[XmlDocument] = None

        # Scratch buffers for the token being read
        self.current_key: List[str] = []
        self.current_value: List[str] = []
        self.quote_char: Optional[str] = None
        self._attribute_name = ""
        self._value_closed = False
        self._token_source = ""
        self._doctype_depth = 0

    @property
    def depth(self) -> int:
        """Number of currently open elements."""
        return max(len(self._stack) - 1, 0)

    def start_source(self, source_filename: str = "", line: int = 1) -> None:
        """Begin a new source for location tracking.

        Args:
            source_filename: Name used in ``file:line`` locations; empty for
                ``line N`` locations
            line: Line number of the next character read
        """
        self.reader.start_source(source_filename, line)
        self._log = self.logger.bind(source=source_filename or None)
        self._log.debug("Source started", extra={"line": line})

    def finish_source(self) -> None:
        """Check that the source ended on a document boundary.

        Raises:
            FormatError: If an element is still open or a token is half read
        """
        if self._stack:
            outermost = self._stack[1] if len(self._stack) > 1 else self._stack[0]
            name = getattr(outermost, "local_name", "")
            opened_at = outermost.source_location or "unknown location"
            raise FormatError(
                f"Unexpected end of input while parsing "
                f"{STATE_DESCRIPTIONS[self.state]} at {self.reader.get_source()}: "
                f"element <{name}> opened at {opened_at} is not closed",
                outermost.source_location or self.reader.get_source(),
            )
        if self.state is not ParserState.IDLE:
            started_at = self._token_source or self.reader.get_source()
            raise FormatError(
                f"Unexpected end of input while parsing "
                f"{STATE_DESCRIPTIONS[self.state]} started at {started_at}",
                started_at,
            )
        pending = self.reader.pending_bytes
        if pending:
            location = self.reader.get_source()
            raise FormatError(
                f"Unexpected end of input inside the UTF-8 sequence {pending!r} at {location}",
                location,
            )
        self._log.debug(
            "Source finished",
            extra={"characters_consumed": self.reader.characters_consumed},
        )

    def partial_parse(self, stream: Any = None) -> Optional[XmlDocument]:
        """Parse until one top-level element has been completed.

        Args:
            stream: Byte or text file-like object to read from; None keeps
                reading the stream attached by an earlier call

        Returns:
            The completed document, or None if the stream has no further data
            at this time

        Raises:
            FormatError: If the input is not well-formed
        """
        if stream is not None:
            self.reader.attach(stream)

        start_time = time.perf_counter()
        self._completed = None
        try:
            while self._completed is None:
                if not self._handlers[self.state]():
                    break
        finally:
            self.statistics.characters_consumed = self.reader.characters_consumed
            self.statistics.processing_time_ms += (time.perf_counter() - start_time) * 1000

        document, self._completed = self._completed, None
        return document

    @classmethod
    def parse(
        cls,
        source: Source,
        source_filename: str = "",
        config: Optional[ParserConfig] = None
    ) -> XmlDocument:
        """Parse one complete document from ``source``.

        Args:
            source: Binary or text file-like object, ``bytes`` or ``str``
            source_filename: Name used in source locations
            config: Parser configuration

        Raises:
            FormatError: If the input does not hold a complete document
        """
        parser = cls(config)
        parser.start_source(source_filename)
        document = parser.partial_parse(as_stream(source))
        if document is None:
            parser.finish_source()
            raise FormatError(
                f"No XML content found in {source_filename or 'input'}",
                parser.reader.get_source(),
            )
        if parser.reader.loaded == 0:
            # Nothing follows the document, so no byte sequence may be left open.
            parser.finish_source()
        return document

    @classmethod
    def parse_string(
        cls,
        text: str,
        source_filename: str = "",
        config: Optional[ParserConfig] = None
    ) -> XmlDocument:
        """Parse one complete document from a string."""
        return cls.parse(io.StringIO(text), source_filename, config)

    @classmethod
    def parse_file(
        cls,
        path: Union[str, Path],
        config: Optional[ParserConfig] = None
    ) -> XmlDocument:
        """Parse one complete document from a file opened in binary mode."""
        with open(path, "rb") as handle:
            return cls.parse(handle, str(path), config)

    # State handlers. Each returns False when the reader is starved.

    def _parse_idle(self) -> bool:
        reader = self.reader
        if not reader.need(1):
            return False
        char = reader.current
        if char == "<":
            self._token_source = self._source()
            self.state = ParserState.PARSING_TAG
            return True
        if not self._stack:
            if char in WHITESPACE or char == BYTE_ORDER_MARK:
                reader.advance()
                return True
            raise self._error(f"Unexpected character {char!r}: content outside root element")
        self._token_source = self._source()
        self.current_value = []
        self.state = ParserState.PARSING_PCDATA
        return True

    def _parse_tag(self) -> bool:
        reader = self.reader
        if not reader.need(2):
            return False
        char = reader.peek(1)
        if char == "!":
            if not reader.need(len(COMMENT_OPEN) + 1):
                return False
            if reader.is_next_equal(COMMENT_OPEN):
                reader.advance(len(COMMENT_OPEN) + 1)
                self.state = ParserState.PARSING_COMMENT
                return True
            if not reader.need(len(CDATA_OPEN) + 1):
                return False
            if reader.is_next_equal(CDATA_OPEN):
                if not self._stack:
                    raise self._error("CDATA section is content outside root element")
                reader.advance(len(CDATA_OPEN) + 1)
                self.current_value = []
                self.state = ParserState.PARSING_CDATA
                return True
            if reader.is_next_equal(DOCTYPE_OPEN):
                reader.advance(len(DOCTYPE_OPEN) + 1)
                self._doctype_depth = 0
                self.state = ParserState.PARSING_DOCTYPE
                return True
            raise self._error("Malformed tag: unknown markup declaration after '<!'")
        if char == "?":
            reader.advance(2)
            self.state = ParserState.PARSING_XML_DECLARATION
            return True
        if char == "/":
            if not self._stack:
                raise self._error("Closing tag found outside root element")
            reader.advance(2)
            self.current_key = []
            self.state = ParserState.PARSING_CLOSING_TAG
            return True
        if _is_name_start_char(char):
            reader.advance()
            self.current_key = []
            self.state = ParserState.PARSING_OPENING_TAG
            return True
        raise self._error(f"Malformed tag: unexpected character {char!r} after '<'")

    def _parse_xml_declaration(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(2):
                return False
            if reader.current == "?" and reader.is_next_equal(">"):
                reader.advance(2)
                self.state = ParserState.IDLE
                return True
            reader.advance()

    def _parse_comment(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(3):
                return False
            if reader.current == "-" and reader.is_next_equal("->"):
                reader.advance(3)
                self.state = ParserState.IDLE
                return True
            reader.advance()

    def _parse_doctype(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(1):
                return False
            char = reader.current
            if char == "[":
                self._doctype_depth += 1
            elif char == "]" and self._doctype_depth > 0:
                self._doctype_depth -= 1
            elif char == ">" and self._doctype_depth == 0:
                reader.advance()
                self.state = ParserState.IDLE
                return True
            reader.advance()

    def _parse_cdata(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(3):
                return False
            if reader.current == "]" and reader.is_next_equal("]>"):
                reader.advance(3)
                self._emit_text()
                self.state = ParserState.IDLE
                return True
            self.current_value.append(reader.current)
            reader.advance()

    def _parse_pcdata(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(1):
                return False
            char = reader.current
            if char == "<":
                self._emit_text()
                self.state = ParserState.IDLE
                return True
            if char == "&":
                decoded = self._read_reference()
                if decoded is None:
                    return False
                self.current_value.append(decoded)
                continue
            self.current_value.append(char)
            reader.advance()

    def _parse_opening_tag(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(1):
                return False
            char = reader.current
            if char in WHITESPACE or char in "/>":
                break
            if char in "<=\"'&":
                raise self._error(f"Malformed tag: unexpected character {char!r} in element name")
            self.current_key.append(char)
            reader.advance()

        element = XmlElement("".join(self.current_key), source_location=self._token_source)
        self.current_key = []
        if not self._stack:
            self._document.source_location = self._token_source
            self._stack.append(self._document)
        self._stack[-1].append_child(element)
        self._stack.append(element)
        self.statistics.elements_created += 1
        self.state = ParserState.PARSING_ATTRIBUTE_KEY
        return True

    def _parse_attribute_key(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(1):
                return False
            char = reader.current
            if self._value_closed:
                if char not in WHITESPACE and char not in "/>":
                    raise self._error(
                        f"Malformed tag: expected whitespace after the value of "
                        f"attribute {self._attribute_name!r} but found {char!r}"
                    )
                self._value_closed = False
            if char == "=":
                name = "".join(self.current_key).rstrip()
                if not name:
                    raise self._error("Malformed tag: attribute without a name")
                if any(c in WHITESPACE for c in name):
                    raise self._error(f"Malformed tag: invalid attribute name {name!r}")
                self._attribute_name = name
                self.current_key = []
                reader.advance()
                self.state = ParserState.PARSING_ATTRIBUTE_VALUE_START
                return True
            if not self.current_key:
                if char in WHITESPACE:
                    reader.advance()
                    continue
                if char == ">":
                    reader.advance()
                    self.state = ParserState.IDLE
                    return True
                if char == "/":
                    reader.advance()
                    self.state = ParserState.PARSING_OPEN_CLOSE_TAG_COMPLETION
                    return True
            if char in "<>/\"'":
                name = "".join(self.current_key).strip() or char
                raise self._error(f"Malformed tag: attribute {name!r} has no value")
            self.current_key.append(char)
            reader.advance()

    def _parse_attribute_value_start(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(1):
                return False
            char = reader.current
            if char in WHITESPACE:
                reader.advance()
                continue
            if char not in "\"'":
                raise self._error(
                    f"Malformed tag: value of attribute {self._attribute_name!r} must be quoted"
                )
            self.quote_char = char
            self.current_value = []
            reader.advance()
            self.state = ParserState.PARSING_ATTRIBUTE_VALUE
            return True

    def _parse_attribute_value(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(1):
                return False
            char = reader.current
            if char == self.quote_char:
                reader.advance()
                self._add_attribute("".join(self.current_value))
                self.current_value = []
                self.quote_char = None
                self._value_closed = True
                self.state = ParserState.PARSING_ATTRIBUTE_KEY
                return True
            if char == "<":
                raise self._error(
                    f"Unterminated quoted value for attribute {self._attribute_name!r}"
                )
            if char == "&":
                decoded = self._read_reference()
                if decoded is None:
                    return False
                self.current_value.append(decoded)
                continue
            self.current_value.append(char)
            reader.advance()

    def _parse_open_close_tag_completion(self) -> bool:
        reader = self.reader
        if not reader.need(1):
            return False
        if reader.current != ">":
            raise self._error(f"Malformed tag: expected '>' after '/' but found {reader.current!r}")
        reader.advance()
        self.state = ParserState.IDLE
        self._close_element()
        return True

    def _parse_closing_tag(self) -> bool:
        reader = self.reader
        while True:
            if not reader.need(1):
                return False
            char = reader.current
            if char == ">":
                break
            if char == "<":
                raise self._error("Malformed tag: closing tag is missing '>'")
            self.current_key.append(char)
            reader.advance()

        name = "".join(self.current_key).rstrip()
        self.current_key = []
        expected = self._open_element()
        if name != expected.local_name:
            found_at = self.reader.get_source()
            raise FormatError(
                f"Expected closing tag </{expected.local_name}> "
                f"(opened at {expected.source_location or 'unknown location'}) "
                f"but found </{name}> at {found_at}",
                found_at,
            )
        reader.advance()
        self.state = ParserState.IDLE
        self._close_element()
        return True

    # Helpers

    def _open_element(self) -> XmlElement:
        """Return the innermost open element."""
        node = self._stack[-1] if self._stack else None
        if not isinstance(node, XmlElement):
            raise self._error("Markup found outside root element")
        return node

    def _source(self) -> str:
        if not self.config.track_source_locations:
            return ""
        return self.reader.get_source()

    def _error(self, message: str) -> FormatError:
        location = self.reader.get_source()
        return FormatError(f"{message} at {location}", location)

    def _read_reference(self) -> Optional[str]:
        """Decode the reference starting at ``current``; None when starved."""
        reader = self.reader
        length = 2
        while True:
            if length > reader.max_lookahead:
                raise self._error(
                    f"Entity reference is not terminated by ';' within "
                    f"{reader.max_lookahead} characters"
                )
            if not reader.need(length):
                return None
            char = reader.peek(length - 1)
            if char == ";":
                break
            if not (char.isalnum() or char == "#"):
                raise self._error(f"Malformed entity reference: unexpected character {char!r}")
            length += 1

        name = "".join(reader.peek(offset) for offset in range(1, length - 1))
        decoded = decode_reference(name, reader.get_source())
        reader.advance(length)
        return decoded

    def _emit_text(self) -> None:
        text = "".join(self.current_value)
        self.current_value = []
        if not text:
            return
        self._stack[-1].append_child(XmlText(text, self._token_source))
        self.statistics.text_nodes_created += 1

    def _add_attribute(self, value: str) -> None:
        element = self._open_element()
        name = self._attribute_name
        self.statistics.attributes_parsed += 1
        existing = element.find_attribute(name)
        if existing is None:
            element.attributes.append(XmlAttribute(name, value))
            return

        policy = self.config.duplicate_attribute_policy
        if policy is DuplicateAttributePolicy.ERROR:
            raise self._error(
                f"Duplicate attribute {name!r} on element <{element.local_name}>"
            )
        if policy is DuplicateAttributePolicy.KEEP_LAST:
            existing.value = value

    def _close_element(self) -> None:
        self._stack.pop()
        if len(self._stack) > 1:
            return
        self._stack.pop()
        document = self._document
        self._completed = document
        self._document = XmlDocument()
        self.statistics.documents_completed += 1
        self._log.debug(
            "Top-level document completed",
            extra={
                "document_source": document.source_location,
                "documents_completed": self.statistics.documents_completed,
            },
        )
