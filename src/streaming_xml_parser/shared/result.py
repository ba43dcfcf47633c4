"""Statistics collected while parsing.

The parser updates a single :class:`ParseStatistics` instance as documents are
completed so that callers can inspect throughput without extra bookkeeping.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class ParseStatistics:
    """Running counters for one parser instance."""

    documents_completed: int = 0
    elements_created: int = 0
    text_nodes_created: int = 0
    attributes_parsed: int = 0
    characters_consumed: int = 0
    processing_time_ms: float = 0.0

    @property
    def characters_per_second(self) -> float:
        """Calculate characters consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_consumed * 1000.0) / self.processing_time_ms

    @property
    def nodes_created(self) -> int:
        """Total number of element and text nodes created."""
        return self.elements_created + self.text_nodes_created

    def reset(self) -> None:
        """Zero every counter."""
        self.documents_completed = 0
        self.elements_created = 0
        self.text_nodes_created = 0
        self.attributes_parsed = 0
        self.characters_consumed = 0
        self.processing_time_ms = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to a dictionary including derived rates."""
        result = asdict(self)
        result["characters_per_second"] = self.characters_per_second
        result["nodes_created"] = self.nodes_created
        return result
