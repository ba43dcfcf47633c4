"""Tests for the YAML-flavoured document model."""

import json

import pytest

from streaming_xml_parser.shared.errors import FormatError
from streaming_xml_parser.yaml_dom import (
    JsonWriterOptions,
    YamlMapping,
    YamlNode,
    YamlScalar,
    YamlSequence,
)


def scalar(content, source="s:1"):
    return YamlScalar(source, content)


class TestYamlNodes:
    """Test node construction and equality."""

    def test_default_tag(self):
        """Test that nodes default to the '?' tag."""
        assert YamlScalar().tag == "?"
        assert YamlSequence().tag == "?"
        assert YamlMapping().tag == "?"

    def test_structural_equality_ignores_source(self):
        """Test that equality compares content, not source."""
        assert scalar("a", "x:1") == scalar("a", "y:2")
        assert scalar("a") != scalar("b")
        assert YamlSequence(entries=[scalar("a"), None]) == YamlSequence(entries=[scalar("a"), None])
        assert YamlSequence(entries=[scalar("a")]) != YamlSequence(entries=[None])

    def test_tag_and_kind_affect_equality(self):
        """Test that tags and node kinds are compared."""
        assert YamlScalar("s", "1", tag="!!int") != YamlScalar("s", "1")
        assert YamlSequence() != YamlMapping()

    def test_nodes_are_unhashable(self):
        """Test that structurally compared nodes cannot be hashed."""
        with pytest.raises(TypeError):
            hash(scalar("a"))

    def test_node_base_is_abstract(self):
        """Test that the node base class cannot be instantiated."""
        with pytest.raises(TypeError):
            YamlNode()


class TestYamlMapping:
    """Test ordered mappings with structural keys."""

    def test_add_and_get(self):
        """Test insertion order and lookup by equal key."""
        mapping = YamlMapping("m:1")
        mapping.add(scalar("b"), scalar("2"))
        mapping.add(scalar("a"), scalar("1"))
        assert [k.content for k, _ in mapping.items()] == ["b", "a"]
        assert mapping.get(scalar("a", "elsewhere")).content == "1"
        assert mapping.get(scalar("zzz")) is None
        assert scalar("b") in mapping
        assert len(mapping) == 2

    def test_duplicate_key_rejected(self):
        """Test that structurally equal keys are rejected with both locations."""
        mapping = YamlMapping("m:1")
        mapping.add(scalar("k", "f.yaml:2"), scalar("1"))
        with pytest.raises(FormatError) as exc_info:
            mapping.add(scalar("k", "f.yaml:5"), scalar("2"))
        message = str(exc_info.value)
        assert "Duplicate keys found at f.yaml:5 and f.yaml:2" in message
        assert "m:1" in message

    def test_duplicate_structured_key_rejected(self):
        """Test deep comparison of sequence keys."""
        mapping = YamlMapping()
        mapping.add(YamlSequence(entries=[scalar("a")]), None)
        with pytest.raises(FormatError):
            mapping.add(YamlSequence(entries=[scalar("a")]), None)

    def test_duplicate_null_key_rejected(self):
        """Test that two null keys collide."""
        mapping = YamlMapping()
        mapping.add(None, scalar("1"))
        with pytest.raises(FormatError):
            mapping.add(None, scalar("2"))

    def test_deep_copy(self):
        """Test that a copied mapping is equal but independent."""
        mapping = YamlMapping("m:1")
        mapping.add(scalar("k"), YamlSequence(entries=[scalar("v"), None]))
        mapping.add(None, None)
        clone = mapping.deep_copy()
        assert clone == mapping
        assert clone.source == "m:1"
        clone.get(scalar("k")).append(scalar("w"))
        assert len(mapping.get(scalar("k"))) == 2


class TestYamlJson:
    """Test JSON rendering of YAML nodes."""

    def test_scalar_quoted_by_default(self):
        """Test that scalars are JSON strings."""
        assert scalar("12").to_json() == '"12"'
        assert scalar('say "hi"').to_json() == '"say \\"hi\\""'

    @pytest.mark.parametrize("content,expected", [
        ("12", "12"),
        ("-1.5e3", "-1.5e3"),
        ("1E+5", "1E+5"),
        ("abc", '"abc"'),
        ("", '""'),
        ("12px", '"12px"'),
    ])
    def test_unquote_numbers(self, content, expected):
        """Test the loose numeric check."""
        options = JsonWriterOptions(unquote_numbers=True)
        assert scalar(content).to_json(options) == expected

    def test_sequence_layout(self):
        """Test tab-indented arrays with null entries."""
        sequence = YamlSequence(entries=[scalar("a"), None])
        assert sequence.to_json() == '[\n\t"a",\n\tnull\n]'

    def test_mapping_layout(self):
        """Test tab-indented objects with null keys and values."""
        mapping = YamlMapping()
        mapping.add(scalar("k"), YamlSequence(entries=[scalar("1")]))
        mapping.add(None, None)
        assert mapping.to_json() == '{\n\t"k": [\n\t\t"1"\n\t],\n\t"": null\n}'

    def test_nested_output_is_valid_json(self):
        """Test that nested output parses as JSON."""
        inner = YamlMapping()
        inner.add(scalar("n"), scalar("3"))
        outer = YamlSequence(entries=[inner, scalar("x"), YamlSequence()])
        value = json.loads(outer.to_json(JsonWriterOptions(unquote_numbers=True)))
        assert value == [{"n": 3}, "x", []]

    def test_scalar_keys_always_quoted(self):
        """Test that numeric-looking keys stay strings."""
        mapping = YamlMapping()
        mapping.add(scalar("1"), scalar("2"))
        options = JsonWriterOptions(unquote_numbers=True)
        assert json.loads(mapping.to_json(options)) == {"1": 2}

    def test_starting_indentation(self):
        """Test that starting indentation applies inside containers."""
        sequence = YamlSequence(entries=[scalar("a")])
        assert sequence.to_json(JsonWriterOptions(indentation=1)) == '[\n\t\t"a"\n\t]'

    def test_empty_containers(self):
        """Test compact empty containers."""
        assert YamlSequence().to_json() == "[]"
        assert YamlMapping().to_json() == "{}"
