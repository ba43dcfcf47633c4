"""Tests for parser configuration."""

import json

import pytest

from streaming_xml_parser.shared.config import (
    DEFAULT_LOOKAHEAD,
    MIN_LOOKAHEAD,
    ConfigError,
    ConfigValidationError,
    DuplicateAttributePolicy,
    ParserConfig,
)


class TestParserConfig:
    """Test ParserConfig defaults and validation."""

    def test_defaults(self):
        """Test default configuration values."""
        config = ParserConfig()
        assert config.max_lookahead == DEFAULT_LOOKAHEAD == 64
        assert config.track_source_locations is True
        assert config.duplicate_attribute_policy is DuplicateAttributePolicy.KEEP_LAST
        assert config.logging_level == "WARNING"
        assert config.correlation_id is None

    def test_config_is_frozen(self):
        """Test that configuration objects are immutable."""
        config = ParserConfig()
        with pytest.raises(AttributeError):
            config.max_lookahead = 128  # type: ignore[misc]

    def test_lookahead_below_minimum_rejected(self):
        """Test that a lookahead window too small for fixed tokens is rejected."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig(max_lookahead=MIN_LOOKAHEAD - 1)
        assert exc_info.value.field_name == "max_lookahead"
        assert exc_info.value.suggestions

    def test_minimum_lookahead_accepted(self):
        """Test that the minimum lookahead window is accepted."""
        assert ParserConfig(max_lookahead=MIN_LOOKAHEAD).max_lookahead == MIN_LOOKAHEAD

    def test_invalid_logging_level_rejected(self):
        """Test that unknown logging levels are rejected."""
        with pytest.raises(ConfigValidationError, match="logging_level"):
            ParserConfig(logging_level="LOUD")

    def test_invalid_policy_type_rejected(self):
        """Test that a policy given as a plain string is rejected by the constructor."""
        with pytest.raises(ConfigValidationError):
            ParserConfig(duplicate_attribute_policy="KEEP_LAST")  # type: ignore[arg-type]

    def test_validation_error_is_config_error(self):
        """Test the configuration exception hierarchy."""
        assert issubclass(ConfigValidationError, ConfigError)


class TestParserConfigOverride:
    """Test deriving modified configurations."""

    def test_override_returns_new_instance(self):
        """Test that override leaves the original untouched."""
        config = ParserConfig()
        changed = config.override(max_lookahead=128)
        assert changed.max_lookahead == 128
        assert config.max_lookahead == 64

    def test_override_unknown_field_rejected(self):
        """Test that override reports unknown field names."""
        with pytest.raises(ConfigValidationError, match="lookahead_size"):
            ParserConfig().override(lookahead_size=10)

    def test_override_validates(self):
        """Test that overridden values are validated."""
        with pytest.raises(ConfigValidationError):
            ParserConfig().override(max_lookahead=1)


class TestParserConfigSerialization:
    """Test dictionary and JSON conversion."""

    def test_to_dict_writes_policy_name(self):
        """Test that enum values are written by name."""
        data = ParserConfig.strict().to_dict()
        assert data["duplicate_attribute_policy"] == "ERROR"
        assert data["name"] == "strict"

    def test_json_round_trip(self):
        """Test that to_json and from_json round-trip."""
        config = ParserConfig(
            max_lookahead=32,
            track_source_locations=False,
            duplicate_attribute_policy=DuplicateAttributePolicy.KEEP_FIRST,
            correlation_id="abc",
        )
        restored = ParserConfig.from_json(config.to_json())
        assert restored == config

    def test_from_dict_partial(self):
        """Test that missing keys keep their defaults."""
        config = ParserConfig.from_dict({"max_lookahead": 20})
        assert config.max_lookahead == 20
        assert config.track_source_locations is True

    def test_from_dict_unknown_policy(self):
        """Test that an unknown policy name is reported with suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig.from_dict({"duplicate_attribute_policy": "MERGE"})
        assert "KEEP_LAST" in exc_info.value.suggestions

    def test_to_json_is_valid_json(self):
        """Test that to_json produces parseable JSON."""
        assert json.loads(ParserConfig().to_json())["max_lookahead"] == 64


class TestPresets:
    """Test configuration presets."""

    def test_default_preset(self):
        """Test the default preset."""
        config = ParserConfig.default()
        assert config.name == "default"
        assert config.duplicate_attribute_policy is DuplicateAttributePolicy.KEEP_LAST

    def test_strict_preset(self):
        """Test the strict preset rejects duplicate attributes."""
        config = ParserConfig.strict()
        assert config.duplicate_attribute_policy is DuplicateAttributePolicy.ERROR
