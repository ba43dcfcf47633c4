"""Command-line interface module for the streaming XML parser.

This module provides the ``streaming-xml`` tool for rendering XML documents
as XML or JSON and checking files for well-formedness.
"""

from .main import main

__all__ = ["main"]
