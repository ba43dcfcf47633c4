"""Streaming XML parsing state machine.

Key Components:
    XmlParser: Character-level parser with partial parsing support
    ParserState: State machine states for parsing
    decode_reference: Entity and character reference decoding
"""

from .entities import PREDEFINED_ENTITIES, decode_reference
from .parser import STATE_DESCRIPTIONS, ParserState, XmlParser

__all__ = [
    "PREDEFINED_ENTITIES",
    "STATE_DESCRIPTIONS",
    "ParserState",
    "XmlParser",
    "decode_reference",
]
