"""YAML-flavoured document model that renders to JSON.

Key Components:
    YamlScalar / YamlSequence / YamlMapping: Node kinds
    JsonWriterOptions: Indentation and numeric unquoting for JSON output
"""

from .nodes import (
    DEFAULT_TAG,
    JsonWriterOptions,
    YamlMapping,
    YamlNode,
    YamlScalar,
    YamlSequence,
)

__all__ = [
    "DEFAULT_TAG",
    "JsonWriterOptions",
    "YamlMapping",
    "YamlNode",
    "YamlScalar",
    "YamlSequence",
]
