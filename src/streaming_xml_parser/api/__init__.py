"""Public parsing API and third-party library adapters."""

from .adapters import LxmlAdapter, from_lxml, to_lxml
from .parser import iter_documents, parse, parse_file, parse_string

__all__ = [
    "LxmlAdapter",
    "from_lxml",
    "iter_documents",
    "parse",
    "parse_file",
    "parse_string",
    "to_lxml",
]
