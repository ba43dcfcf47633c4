"""Entity and character reference decoding.

Only the five predefined XML entities and numeric character references are
recognised; there is no DTD-driven entity expansion.
"""

import re

from streaming_xml_parser.shared.errors import FormatError

PREDEFINED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "apos": "'",
    "quot": '"',
}

MAX_CODE_POINT = 0x10FFFF
SURROGATE_RANGE = range(0xD800, 0xE000)

_DECIMAL_REFERENCE = re.compile(r"#([0-9]+)")
_HEX_REFERENCE = re.compile(r"#x([0-9A-Fa-f]+)")


def decode_reference(name: str, source_location: str = "") -> str:
    """Decode the text between ``&`` and ``;`` of one reference.

    Args:
        name: Entity name such as ``amp`` or a numeric form such as ``#65``
            or ``#x41``
        source_location: Location reported in the error message

    Returns:
        The character the reference stands for

    Raises:
        FormatError: If the name is unknown or the code point is invalid
    """
    where = source_location or "unknown location"
    if name in PREDEFINED_ENTITIES:
        return PREDEFINED_ENTITIES[name]

    match = _HEX_REFERENCE.fullmatch(name)
    if match:
        code_point = int(match.group(1), 16)
    else:
        match = _DECIMAL_REFERENCE.fullmatch(name)
        if not match:
            raise FormatError(
                f"Unrecognized entity reference '&{name};' at {where}",
                source_location,
            )
        code_point = int(match.group(1))

    if code_point == 0 or code_point > MAX_CODE_POINT or code_point in SURROGATE_RANGE:
        raise FormatError(
            f"Character reference '&{name};' at {where} is not a valid code point",
            source_location,
        )
    return chr(code_point)
