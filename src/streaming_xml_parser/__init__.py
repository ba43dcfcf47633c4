"""Streaming XML Parser.

An in-memory XML document model with a single-pass streaming parser that
reads from any byte or text stream, tracks ``file:line`` source locations,
and can return concatenated top-level documents one at a time. A small
YAML-flavoured document model rendering to JSON sits alongside it.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file()
- Level 2: Multiple documents - iter_documents()
- Level 3: Incremental parsing - XmlParser.partial_parse() with FeedStream
"""

__version__ = "0.1.0"
__author__ = "Streaming XML Parser Team"

# Level 1 and 2: Simple functions
from .api import iter_documents, parse, parse_file, parse_string

# Level 3: Incremental parsing
from .character import FeedStream, StreamReader
from .tokenization import ParserState, XmlParser

# Configuration, errors and statistics
from .shared import (
    ConfigError,
    ConfigValidationError,
    DuplicateAttributePolicy,
    FormatError,
    ParserConfig,
    ParseStatistics,
    XmlParserError,
)

# Document model and writers
from .tree import (
    JsonWriter,
    JsonWriterOptions,
    NodeType,
    XmlAttribute,
    XmlDocument,
    XmlElement,
    XmlNode,
    XmlText,
    XmlWriter,
    XmlWriterOptions,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Simple parsing functions
    "parse",
    "parse_string",
    "parse_file",
    "iter_documents",

    # Incremental parsing
    "XmlParser",
    "ParserState",
    "StreamReader",
    "FeedStream",

    # Document model
    "NodeType",
    "XmlAttribute",
    "XmlDocument",
    "XmlElement",
    "XmlNode",
    "XmlText",

    # Writers
    "JsonWriter",
    "JsonWriterOptions",
    "XmlWriter",
    "XmlWriterOptions",

    # Configuration, errors and statistics
    "ConfigError",
    "ConfigValidationError",
    "DuplicateAttributePolicy",
    "FormatError",
    "ParserConfig",
    "ParseStatistics",
    "XmlParserError",
]
