"""Character layer for streaming XML parsing.

Key Components:
    StreamReader: Current character plus bounded lookahead over a stream
    FeedStream: In-memory stream that can be fed incrementally
"""

from .stream import FeedStream, StreamReader

__all__ = [
    "FeedStream",
    "StreamReader",
]
