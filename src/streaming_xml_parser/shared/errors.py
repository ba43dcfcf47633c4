"""Exception types raised while parsing and serializing documents."""

from typing import Optional


class XmlParserError(Exception):
    """Base exception for streaming XML parser errors."""


class FormatError(XmlParserError):
    """Raised when input or a document cannot be read or written as requested.

    The message always names the source location when one is known. The bare
    location is also kept on :attr:`source_location` for callers that want to
    report it separately.
    """

    def __init__(self, message: str, source_location: Optional[str] = None) -> None:
        super().__init__(message)
        self.source_location = source_location or ""
