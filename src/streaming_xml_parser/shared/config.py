"""Configuration classes for streaming XML parsing.

This module provides immutable configuration objects that control the reader
lookahead window, source tracking, duplicate-attribute handling and logging
of the parser.
"""

import json
from dataclasses import dataclass, fields, replace
from enum import Enum, auto
from typing import Any, Dict, List, Optional

# Longest fixed token the parser matches is "<![CDATA[" (9 characters); the
# longest numeric reference is "&#x10FFFF;" (10), plus the current character.
MIN_LOOKAHEAD = 12
DEFAULT_LOOKAHEAD = 64

VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class DuplicateAttributePolicy(Enum):
    """How the parser treats an attribute name repeated within one tag."""

    KEEP_LAST = auto()    # Later value replaces the earlier one in place
    KEEP_FIRST = auto()   # Later occurrences are ignored
    ERROR = auto()        # Raise FormatError


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Configuration for :class:`~streaming_xml_parser.XmlParser`.

    Thread-safe due to frozen dataclass implementation; use :meth:`override`
    to derive a modified copy.

    Attributes:
        max_lookahead: Size of the reader window, counting the current character
        track_source_locations: Stamp parsed nodes with ``file:line`` locations
        duplicate_attribute_policy: Handling of repeated attribute names
        logging_level: Level the CLI configures logging with
        correlation_id: Optional correlation ID attached to log records
    """

    max_lookahead: int = DEFAULT_LOOKAHEAD
    track_source_locations: bool = True
    duplicate_attribute_policy: DuplicateAttributePolicy = (
        DuplicateAttributePolicy.KEEP_LAST
    )
    logging_level: str = "WARNING"
    correlation_id: Optional[str] = None

    # Metadata
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the parser configuration."""
        if not isinstance(self.max_lookahead, int) or self.max_lookahead < MIN_LOOKAHEAD:
            raise ConfigValidationError(
                f"max_lookahead must be an integer >= {MIN_LOOKAHEAD}",
                field_name="max_lookahead",
                suggestions=[f"Use the default of {DEFAULT_LOOKAHEAD}"],
            )
        if not isinstance(self.duplicate_attribute_policy, DuplicateAttributePolicy):
            raise ConfigValidationError(
                "duplicate_attribute_policy must be a DuplicateAttributePolicy",
                field_name="duplicate_attribute_policy",
                suggestions=[policy.name for policy in DuplicateAttributePolicy],
            )
        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {VALID_LOGGING_LEVELS}",
                field_name="logging_level",
                suggestions=VALID_LOGGING_LEVELS,
            )

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = ParserConfig().override(max_lookahead=128)
            >>> config.max_lookahead
            128
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {', '.join(unknown)}",
                field_name=unknown[0],
                suggestions=sorted(known),
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.name if isinstance(value, Enum) else value
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files are
        reported instead of silently ignored.
        """
        values = dict(data)
        policy = values.get("duplicate_attribute_policy")
        if isinstance(policy, str):
            try:
                values["duplicate_attribute_policy"] = DuplicateAttributePolicy[policy]
            except KeyError as e:
                raise ConfigValidationError(
                    f"Unknown duplicate_attribute_policy: {policy}",
                    field_name="duplicate_attribute_policy",
                    suggestions=[p.name for p in DuplicateAttributePolicy],
                ) from e
        return cls().override(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    # Preset factory methods
    @classmethod
    def default(cls) -> "ParserConfig":
        """Create the default configuration (last duplicate attribute wins)."""
        return cls(name="default")

    @classmethod
    def strict(cls) -> "ParserConfig":
        """Create configuration preset that rejects duplicate attributes."""
        return cls(
            duplicate_attribute_policy=DuplicateAttributePolicy.ERROR,
            name="strict",
            description="Rejects repeated attribute names within a tag",
        )
