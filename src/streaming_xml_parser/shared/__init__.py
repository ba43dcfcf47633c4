"""Shared utilities for streaming XML parsing.

This module provides configuration objects, exception types, statistics and
logging helpers used across the reader, parser, tree and API layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    DuplicateAttributePolicy,
    ParserConfig,
)
from .errors import (
    FormatError,
    XmlParserError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import ParseStatistics

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "DuplicateAttributePolicy",
    "ParserConfig",
    "FormatError",
    "XmlParserError",
    "CorrelationLogger",
    "get_logger",
    "ParseStatistics",
]
