"""YAML-flavoured document model with JSON output.

There is no YAML reader; trees are built programmatically from
:class:`YamlScalar`, :class:`YamlSequence` and :class:`YamlMapping` nodes.
Sequence entries, mapping keys and mapping values may be None, standing for a
YAML null.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from streaming_xml_parser.shared.errors import FormatError

INDENT = "\t"
DEFAULT_TAG = "?"

# Loose on purpose: "1e5", "-.5" and also "e" or "+-" count as numbers.
NUMERIC_PATTERN = re.compile(r"^[-+0-9.eE]+$")


@dataclass
class JsonWriterOptions:
    """Control options for generating JSON text from a YAML tree.

    Attributes:
        indentation: Tab level the output starts at
        unquote_numbers: Write scalars that look numeric without quotes
    """

    indentation: int = 0
    unquote_numbers: bool = False

    def __post_init__(self) -> None:
        if self.indentation < 0:
            raise ValueError("indentation must be >= 0")

    def nested(self) -> "JsonWriterOptions":
        return JsonWriterOptions(self.indentation + 1, self.unquote_numbers)


def _nodes_equal(a: Optional["YamlNode"], b: Optional["YamlNode"]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return a == b


def _copy(node: Optional["YamlNode"]) -> Optional["YamlNode"]:
    return None if node is None else node.deep_copy()


class YamlNode(ABC):
    """Base class for YAML nodes.

    Nodes compare equal when their kind, tag and content match recursively;
    ``source`` is not compared. Equal nodes are not hashable, so mappings
    look keys up by linear scan.
    """

    def __init__(self, source: str = "", tag: str = DEFAULT_TAG) -> None:
        self.source = source
        self.tag = tag

    @abstractmethod
    def deep_copy(self) -> "YamlNode":
        """Return a copy of this node and everything below it."""

    @abstractmethod
    def to_json(self, options: Optional[JsonWriterOptions] = None) -> str:
        """Render this node as JSON text."""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.tag == getattr(other, "tag", None)

    __hash__ = None  # type: ignore[assignment]


class YamlScalar(YamlNode):
    """A scalar value held as text."""

    def __init__(self, source: str = "", content: str = "", tag: str = DEFAULT_TAG) -> None:
        super().__init__(source, tag)
        self.content = content

    def deep_copy(self) -> "YamlScalar":
        return YamlScalar(self.source, self.content, self.tag)

    def to_json(self, options: Optional[JsonWriterOptions] = None) -> str:
        options = options or JsonWriterOptions()
        if options.unquote_numbers and NUMERIC_PATTERN.match(self.content):
            return self.content
        return json.dumps(self.content, ensure_ascii=False)

    def __eq__(self, other: object) -> bool:
        return super().__eq__(other) and self.content == other.content  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        return f"YamlScalar({self.content!r}, source={self.source!r})"


class YamlSequence(YamlNode):
    """An ordered list of entries."""

    def __init__(
        self,
        source: str = "",
        entries: Optional[List[Optional[YamlNode]]] = None,
        tag: str = DEFAULT_TAG
    ) -> None:
        super().__init__(source, tag)
        self.entries: List[Optional[YamlNode]] = list(entries or [])

    def append(self, entry: Optional[YamlNode]) -> None:
        self.entries.append(entry)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Optional[YamlNode]]:
        return iter(self.entries)

    def deep_copy(self) -> "YamlSequence":
        return YamlSequence(self.source, [_copy(entry) for entry in self.entries], self.tag)

    def to_json(self, options: Optional[JsonWriterOptions] = None) -> str:
        """Render as a JSON array with one entry per line.

        Examples:
            >>> YamlSequence(entries=[YamlScalar(content="a"), None]).to_json()
            '[\\n\\t"a",\\n\\tnull\\n]'
        """
        options = options or JsonWriterOptions()
        if not self.entries:
            return "[]"
        inner = options.nested()
        items = [
            INDENT * inner.indentation + ("null" if entry is None else entry.to_json(inner))
            for entry in self.entries
        ]
        return "[\n" + ",\n".join(items) + "\n" + INDENT * options.indentation + "]"

    def __eq__(self, other: object) -> bool:
        if not super().__eq__(other):
            return False
        theirs = other.entries  # type: ignore[attr-defined]
        return len(self.entries) == len(theirs) and all(
            _nodes_equal(a, b) for a, b in zip(self.entries, theirs)
        )


class YamlMapping(YamlNode):
    """An insertion-ordered mapping with structurally compared keys."""

    def __init__(self, source: str = "", tag: str = DEFAULT_TAG) -> None:
        super().__init__(source, tag)
        self.pairs: List[Tuple[Optional[YamlNode], Optional[YamlNode]]] = []

    def add(self, key: Optional[YamlNode], value: Optional[YamlNode]) -> None:
        """Append a key/value pair.

        Raises:
            FormatError: If an equal key is already present
        """
        for existing, _ in self.pairs:
            if _nodes_equal(existing, key):
                first = existing.source if existing is not None else "unknown location"
                second = key.source if key is not None else "unknown location"
                raise FormatError(
                    f"Duplicate keys found at {second} and {first} are not permitted "
                    f"in mapping at {self.source or 'unknown location'}",
                    second,
                )
        self.pairs.append((key, value))

    def get(self, key: Optional[YamlNode]) -> Optional[YamlNode]:
        """Return the value stored under an equal key, or None."""
        for existing, value in self.pairs:
            if _nodes_equal(existing, key):
                return value
        return None

    def __contains__(self, key: object) -> bool:
        return any(_nodes_equal(existing, key) for existing, _ in self.pairs)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self.pairs)

    def items(self) -> Iterator[Tuple[Optional[YamlNode], Optional[YamlNode]]]:
        return iter(self.pairs)

    def deep_copy(self) -> "YamlMapping":
        copy = YamlMapping(self.source, self.tag)
        copy.pairs = [(_copy(key), _copy(value)) for key, value in self.pairs]
        return copy

    def to_json(self, options: Optional[JsonWriterOptions] = None) -> str:
        options = options or JsonWriterOptions()
        if not self.pairs:
            return "{}"
        inner = options.nested()
        items = []
        for key, value in self.pairs:
            items.append(
                INDENT * inner.indentation
                + self._key_json(key)
                + ": "
                + ("null" if value is None else value.to_json(inner))
            )
        return "{\n" + ",\n".join(items) + "\n" + INDENT * options.indentation + "}"

    @staticmethod
    def _key_json(key: Optional[YamlNode]) -> str:
        # JSON has no null or structured keys; both are written as strings.
        if key is None:
            return '""'
        if isinstance(key, YamlScalar):
            return json.dumps(key.content, ensure_ascii=False)
        return json.dumps(key.to_json(), ensure_ascii=False)

    def __eq__(self, other: object) -> bool:
        if not super().__eq__(other):
            return False
        theirs = other.pairs  # type: ignore[attr-defined]
        return len(self.pairs) == len(theirs) and all(
            _nodes_equal(k1, k2) and _nodes_equal(v1, v2)
            for (k1, v1), (k2, v2) in zip(self.pairs, theirs)
        )
