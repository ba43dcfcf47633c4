"""Module-level parsing API.

These functions wrap :class:`~streaming_xml_parser.tokenization.XmlParser`
for the common cases: one document from a string, bytes, file or stream, or
every top-level document of a stream in turn.
"""

import time
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Optional, TextIO, Union

from streaming_xml_parser.shared import FormatError, ParserConfig, get_logger
from streaming_xml_parser.tokenization import XmlParser
from streaming_xml_parser.tokenization.parser import as_stream
from streaming_xml_parser.tree import XmlDocument

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

MS_PER_SECOND = 1000  # Milliseconds per second conversion


def parse(
    source: InputType,
    source_filename: str = "",
    config: Optional[ParserConfig] = None
) -> XmlDocument:
    """Parse one XML document from a string, bytes, path or file-like object.

    Args:
        source: XML content as ``str`` or ``bytes``, a :class:`~pathlib.Path`,
            or a binary or text file-like object
        source_filename: Name used in ``file:line`` source locations
        config: Parser configuration

    Returns:
        The first complete top-level document in ``source``

    Raises:
        FormatError: If the input does not hold a complete, well-formed document

    Examples:
        >>> doc = parse('<a x="1 &amp; 2">&lt;hi&gt;</a>')
        >>> doc.get_document_element().get_attribute("x")
        '1 & 2'

        >>> parse(b"<a/>", source_filename="a.xml").get_document_element().source_location
        'a.xml:1'
    """
    if isinstance(source, Path):
        return parse_file(source, config)

    config = config or ParserConfig()
    logger = get_logger(__name__, config.correlation_id, "parse")
    start_time = time.time()

    logger.info(
        "Starting parse operation",
        extra={
            "input_type": type(source).__name__,
            "source_name": source_filename or None,
        }
    )

    try:
        document = XmlParser.parse(source, source_filename, config)
    except FormatError as e:
        logger.warning(
            "Parse operation failed",
            extra={"error": str(e), "error_location": e.source_location}
        )
        raise

    logger.info(
        "Parse operation completed",
        extra={
            "source_name": source_filename or None,
            "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
        }
    )
    return document


def parse_string(
    text: str,
    source_filename: str = "",
    config: Optional[ParserConfig] = None
) -> XmlDocument:
    """Parse one XML document held in a string.

    Examples:
        >>> doc = parse_string("<r><![CDATA[a<b&c]]></r>")
        >>> doc.get_document_element().get_text_as_string()
        'a<b&c'
    """
    if not isinstance(text, str):
        raise TypeError(f"parse_string expects str, got {type(text).__name__}")
    return parse(text, source_filename, config)


def parse_file(
    file_path: Union[str, Path],
    config: Optional[ParserConfig] = None
) -> XmlDocument:
    """Parse one XML document from a file.

    The file is read in binary mode and decoded as UTF-8; source locations
    name the path as given.

    Raises:
        OSError: If the file cannot be opened
        FormatError: If the file does not hold a complete, well-formed document
    """
    config = config or ParserConfig()
    logger = get_logger(__name__, config.correlation_id, "parse_file")
    path_obj = Path(file_path)

    logger.info(
        "Starting file parse operation",
        extra={"file_path": str(file_path), "file_exists": path_obj.exists()}
    )

    try:
        document = XmlParser.parse_file(file_path, config)
    except FormatError as e:
        logger.warning(
            "File parse operation failed",
            extra={"file_path": str(file_path), "error": str(e)}
        )
        raise

    logger.info("File parse operation completed", extra={"file_path": str(file_path)})
    return document


def iter_documents(
    source: Union[str, bytes, BinaryIO, TextIO, Any],
    source_filename: str = "",
    config: Optional[ParserConfig] = None
) -> Iterator[XmlDocument]:
    """Yield every top-level document in ``source`` in order.

    Concatenated documents such as ``<a/><b/>`` are returned one at a time.
    Once the input is exhausted the source must end on a document boundary.

    Raises:
        FormatError: If a document is malformed or the input ends inside one

    Examples:
        >>> [d.get_document_element().local_name for d in iter_documents("<a/><b/>")]
        ['a', 'b']
    """
    config = config or ParserConfig()
    logger = get_logger(__name__, config.correlation_id, "iter_documents")
    parser = XmlParser(config)
    parser.start_source(source_filename)
    stream = as_stream(source)

    count = 0
    try:
        while True:
            document = parser.partial_parse(stream)
            if document is None:
                break
            count += 1
            yield document
        parser.finish_source()
    except FormatError as e:
        logger.warning(
            "Document iteration failed",
            extra={"documents_read": count, "error": str(e)}
        )
        raise

    logger.info(
        "Document iteration completed",
        extra={
            "source_name": source_filename or None,
            "documents_read": count,
            "statistics": parser.statistics.to_dict(),
        }
    )
