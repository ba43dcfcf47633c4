"""Tests for the lookahead stream reader and feedable stream."""

import io

import pytest

from streaming_xml_parser.character.stream import FeedStream, StreamReader
from streaming_xml_parser.shared.errors import FormatError


def make_reader(data, max_lookahead=64):
    reader = StreamReader(max_lookahead)
    reader.attach(io.BytesIO(data) if isinstance(data, bytes) else io.StringIO(data))
    return reader


class TestStreamReaderNeed:
    """Test loading characters into the lookahead window."""

    def test_need_loads_characters(self):
        """Test that need fills the window without consuming."""
        reader = make_reader("<abc>")
        assert reader.need(3) is True
        assert reader.loaded == 3
        assert reader.current == "<"
        assert reader.peek(2) == "b"

    def test_need_is_idempotent(self):
        """Test that repeated need calls do not read further."""
        reader = make_reader("abcdef")
        reader.need(2)
        reader.need(2)
        assert reader.loaded == 2

    def test_need_returns_false_at_end_of_stream(self):
        """Test that need reports when the stream cannot supply enough."""
        reader = make_reader("ab")
        assert reader.need(3) is False
        assert reader.loaded == 2

    def test_need_outside_window_is_programmer_error(self):
        """Test that need rejects sizes outside the lookahead window."""
        reader = make_reader("abc", max_lookahead=16)
        with pytest.raises(ValueError):
            reader.need(17)
        with pytest.raises(ValueError):
            reader.need(0)

    def test_need_without_stream(self):
        """Test that an unattached reader has nothing to load."""
        reader = StreamReader()
        assert reader.need(1) is False
        assert reader.current is None

    def test_invalid_max_lookahead(self):
        """Test that a zero-sized window is rejected."""
        with pytest.raises(ValueError):
            StreamReader(0)


class TestStreamReaderAdvance:
    """Test consuming characters."""

    def test_advance_moves_to_next_character(self):
        """Test single-character advance."""
        reader = make_reader("ab")
        reader.need(1)
        assert reader.advance() is True
        assert reader.current == "b"
        assert reader.advance() is False
        assert reader.current is None

    def test_advance_counts_lines(self):
        """Test that consuming a line feed increments the line number."""
        reader = make_reader("a\nb\nc", max_lookahead=16)
        reader.need(1)
        reader.advance(2)
        assert reader.current == "b"
        assert reader.current_line == 2
        reader.advance(2)
        assert reader.current_line == 3

    def test_advance_counts_consumed_characters(self):
        """Test the consumed-character counter."""
        reader = make_reader("abcd")
        reader.need(1)
        reader.advance(3)
        assert reader.characters_consumed == 3


class TestStreamReaderLookahead:
    """Test lookahead comparison."""

    def test_is_next_equal(self):
        """Test comparing the characters after current."""
        reader = make_reader("<!--x-->")
        reader.need(4)
        assert reader.is_next_equal("!--")
        assert not reader.is_next_equal("!-x")

    def test_is_next_equal_without_need_is_programmer_error(self):
        """Test that comparing beyond the loaded window raises."""
        reader = make_reader("<!--x-->")
        reader.need(2)
        with pytest.raises(RuntimeError):
            reader.is_next_equal("!--")

    def test_peek_beyond_window_is_programmer_error(self):
        """Test that peeking past the loaded characters raises."""
        reader = make_reader("abc")
        reader.need(1)
        with pytest.raises(RuntimeError):
            reader.peek(1)


class TestStreamReaderDecoding:
    """Test UTF-8 decoding of byte streams."""

    def test_multibyte_characters_from_bytes(self):
        """Test that multi-byte UTF-8 sequences decode to one character each."""
        reader = make_reader("é€😀".encode("utf-8"))
        assert reader.need(3)
        assert [reader.peek(i) for i in range(3)] == ["é", "€", "😀"]

    def test_split_multibyte_sequence_resumes(self):
        """Test that a sequence split across feeds completes on a later need."""
        stream = FeedStream()
        reader = StreamReader()
        reader.attach(stream)
        encoded = "€".encode("utf-8")

        stream.feed(encoded[:1])
        assert reader.need(1) is False
        stream.feed(encoded[1:])
        assert reader.need(1) is True
        assert reader.current == "€"

    def test_pending_bytes_of_split_sequence(self):
        """Test that an incomplete sequence is reported as pending."""
        stream = FeedStream("€".encode("utf-8")[:2])
        reader = StreamReader()
        reader.attach(stream)
        assert reader.need(1) is False
        assert reader.pending_bytes == b"\xe2\x82"

    def test_invalid_utf8_raises_format_error(self):
        """Test that undecodable bytes become a FormatError with a location."""
        reader = make_reader(b"ab\n\xff")
        reader.start_source("bad.xml")
        assert reader.need(3)
        # Advancing past the line feed loads the next character.
        with pytest.raises(FormatError, match=r"Invalid UTF-8 byte sequence b'\\xff' at bad.xml:2") as exc_info:
            reader.advance(3)
        assert exc_info.value.source_location == "bad.xml:2"
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)


class TestStreamReaderSource:
    """Test source location reporting."""

    def test_get_source_without_filename(self):
        """Test the line-only location format."""
        reader = make_reader("a")
        assert reader.get_source() == "line 1"

    def test_get_source_with_filename(self):
        """Test the file:line location format."""
        reader = make_reader("a")
        reader.start_source("doc.xml", 10)
        assert reader.get_source() == "doc.xml:10"

    def test_start_source_rejects_invalid_line(self):
        """Test that line numbers start at one."""
        with pytest.raises(ValueError):
            StreamReader().start_source("doc.xml", 0)


class TestFeedStream:
    """Test the feedable in-memory stream."""

    def test_feed_and_read(self):
        """Test reading back fed data in order."""
        stream = FeedStream(b"<a>")
        stream.feed("<b/>")
        assert stream.pending == 7
        assert stream.read(3) == b"<a>"
        assert stream.read() == b"<b/>"
        assert stream.read(1) == b""

    def test_closed_stream_rejects_feed(self):
        """Test that closing refuses further data but keeps buffered bytes."""
        stream = FeedStream(b"x")
        stream.close()
        with pytest.raises(ValueError):
            stream.feed(b"y")
        assert stream.read() == b"x"
