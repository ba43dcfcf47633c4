"""Character stream reading with a bounded lookahead window.

This module provides :class:`StreamReader`, which exposes a ``current``
character plus a small lookahead buffer over an arbitrary byte or text
stream, tracking the line number and source name for diagnostics. The reader
never rewinds and only touches the stream inside :meth:`StreamReader.need`.

It also provides :class:`FeedStream`, an in-memory stream that a producer can
feed incrementally while a parser drains it.
"""

import codecs
import threading
from typing import Any, List, Optional, Union

from streaming_xml_parser.shared.config import DEFAULT_LOOKAHEAD
from streaming_xml_parser.shared.errors import FormatError

LINE_FEED = "\n"


class StreamReader:
    """Buffered lookahead over a byte or text stream.

    The loaded window holds ``current`` at index 0 followed by up to
    ``max_lookahead - 1`` lookahead characters. Byte streams are decoded as
    UTF-8 one byte at a time, so a multi-byte sequence split across stream
    reads is completed on a later :meth:`need` call.

    Examples:
        >>> reader = StreamReader()
        >>> reader.attach(io.StringIO("<a/>"))
        >>> reader.need(2), reader.current, reader.peek(1)
        (True, '<', 'a')
    """

    def __init__(self, max_lookahead: int = DEFAULT_LOOKAHEAD) -> None:
        """Initialize the reader.

        Args:
            max_lookahead: Largest window :meth:`need` may request, counting
                the current character
        """
        if max_lookahead < 1:
            raise ValueError("max_lookahead must be >= 1")
        self.max_lookahead = max_lookahead
        self.current_source = ""
        self.current_line = 1
        self.characters_consumed = 0

        self._stream: Optional[Any] = None
        self._window: List[str] = []
        self._decoder = codecs.getincrementaldecoder("utf-8")()

    @property
    def loaded(self) -> int:
        """Number of valid characters in the window, counting ``current``."""
        return len(self._window)

    @property
    def current(self) -> Optional[str]:
        """The current character, or None when nothing is loaded."""
        return self._window[0] if self._window else None

    def attach(self, stream: Any) -> None:
        """Read further characters from ``stream``.

        Characters already loaded into the window are kept, so a parser can
        switch to a new stream object that continues the same input.
        """
        self._stream = stream

    def start_source(self, source: str = "", line: int = 1) -> None:
        """Begin tracking a new source name and line number."""
        if line < 1:
            raise ValueError("Line number must be >= 1")
        self.current_source = source
        self.current_line = line

    def get_source(self) -> str:
        """Describe the current position as ``file:line`` or ``line N``."""
        if self.current_source:
            return f"{self.current_source}:{self.current_line}"
        return f"line {self.current_line}"

    def need(self, count: int) -> bool:
        """Ensure at least ``count`` characters are loaded.

        Args:
            count: Characters required, counting ``current``

        Returns:
            True when the window holds ``count`` characters, False when the
            stream cannot supply them at this time

        Raises:
            ValueError: If ``count`` is outside ``1..max_lookahead``
        """
        if count < 1 or count > self.max_lookahead:
            raise ValueError(
                f"need({count}) is outside the lookahead window "
                f"of 1..{self.max_lookahead} characters"
            )
        while len(self._window) < count:
            char = self._read_char()
            if char is None:
                return False
            self._window.append(char)
        return True

    def advance(self, count: int = 1) -> bool:
        """Consume ``count`` characters.

        Returns:
            True if a new ``current`` character is available afterwards
        """
        for _ in range(count):
            if not self._window and not self.need(1):
                return False
            char = self._window.pop(0)
            self.characters_consumed += 1
            if char == LINE_FEED:
                self.current_line += 1
        return self.need(1)

    def peek(self, offset: int) -> str:
        """Return the loaded character ``offset`` places past ``current``."""
        if offset >= len(self._window):
            raise RuntimeError(
                f"peek({offset}) requires need({offset + 1}) to have succeeded"
            )
        return self._window[offset]

    def is_next_equal(self, match: str) -> bool:
        """Compare ``match`` with the lookahead that follows ``current``.

        :meth:`need` must have loaded ``len(match) + 1`` characters first.
        """
        if len(self._window) < len(match) + 1:
            raise RuntimeError(
                f"is_next_equal({match!r}) requires need({len(match) + 1}) "
                f"to have succeeded"
            )
        return "".join(self._window[1:len(match) + 1]) == match

    @property
    def pending_bytes(self) -> bytes:
        """Bytes of an incomplete UTF-8 sequence held by the decoder."""
        return self._decoder.getstate()[0]

    def _read_char(self) -> Optional[str]:
        if self._stream is None:
            return None
        while True:
            data = self._stream.read(1)
            if not data:
                return None
            if isinstance(data, str):
                return data
            try:
                decoded = self._decoder.decode(data)
            except UnicodeDecodeError as e:
                location = self.get_source()
                raise FormatError(
                    f"Invalid UTF-8 byte sequence {e.object[e.start:e.end]!r} at {location}",
                    location,
                ) from e
            if decoded:
                return decoded


class FeedStream:
    """In-memory stream that can be fed while it is being read.

    ``read`` returns whatever has been fed so far and an empty result once
    the buffer is drained, which the reader treats as "no data yet". Feeding
    may happen from another thread; reading is expected from one consumer.

    Examples:
        >>> stream = FeedStream()
        >>> stream.feed(b"<a>")
        >>> stream.read(2)
        b'<a'
    """

    def __init__(self, initial: Union[bytes, str] = b"") -> None:
        self._buffer = bytearray()
        self._lock = threading.Lock()
        self.closed = False
        if initial:
            self.feed(initial)

    def feed(self, data: Union[bytes, str]) -> None:
        """Append data to the stream; text is encoded as UTF-8."""
        if self.closed:
            raise ValueError("Cannot feed a closed stream")
        if isinstance(data, str):
            data = data.encode("utf-8")
        with self._lock:
            self._buffer.extend(data)

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes (all buffered bytes when negative)."""
        with self._lock:
            if size is None or size < 0:
                size = len(self._buffer)
            chunk = bytes(self._buffer[:size])
            del self._buffer[:size]
        return chunk

    @property
    def pending(self) -> int:
        """Number of fed bytes not yet read."""
        return len(self._buffer)

    def close(self) -> None:
        """Refuse further data; buffered bytes remain readable."""
        self.closed = True
