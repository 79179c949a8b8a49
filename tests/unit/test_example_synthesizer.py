"""
Unit tests for ExampleValueSynthesizer.

Tests the decision order (example, default, enum, reference, type),
string format and property-name hints, arrays, objects, and the guards
against reference cycles, unresolved references and deep nesting.
"""

import re
from datetime import datetime
from typing import Any

import pytest

from toonfetch_mcp.config import ExampleValuesConfig
from toonfetch_mcp.error_handling import EngineStats
from toonfetch_mcp.schema.nodes import UNSET, InlineSchema, Reference, parse_schema
from toonfetch_mcp.schema.resolver import SchemaResolver
from toonfetch_mcp.schema.synthesizer import ExampleValueSynthesizer, iso_timestamp

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)


@pytest.fixture
def stats() -> EngineStats:
    return EngineStats()


@pytest.fixture
def synthesizer(
    resolver: SchemaResolver, fixed_now: datetime, stats: EngineStats
) -> ExampleValueSynthesizer:
    return ExampleValueSynthesizer(resolver, clock=lambda: fixed_now, stats=stats)


def synth(synthesizer: ExampleValueSynthesizer, raw: dict[str, Any], name: str = ""):
    return synthesizer.synthesize(parse_schema(raw), name)


class TestDecisionOrder:
    """Explicit values win over derived ones."""

    @pytest.mark.parametrize(
        "example", ["hello", 42, 0, False, None, [1, 2], {"nested": True}]
    )
    def test_explicit_example_is_returned_unchanged(
        self, synthesizer: ExampleValueSynthesizer, example: Any
    ):
        schema = InlineSchema(type="string", format="email", example=example)

        assert synthesizer.synthesize(schema, "email") == example

    def test_example_beats_default_and_enum(self, synthesizer):
        raw = {"type": "string", "example": "ex", "default": "def", "enum": ["a"]}

        assert synth(synthesizer, raw) == "ex"

    def test_default_beats_enum(self, synthesizer):
        assert synth(synthesizer, {"type": "string", "default": "d", "enum": ["a"]}) == "d"

    def test_first_enum_member(self, synthesizer):
        assert synth(synthesizer, {"type": "string", "enum": ["admin", "member"]}) == "admin"

    def test_empty_schema_is_unset(self, synthesizer):
        assert synth(synthesizer, {}) is UNSET
        assert synthesizer.synthesize(None) is UNSET


class TestStrings:
    """String formats and property-name hints."""

    def test_email_format(self, synthesizer):
        assert synth(synthesizer, {"type": "string", "format": "email"}) == "user@example.com"

    def test_uuid_format(self, synthesizer):
        value = synth(synthesizer, {"type": "string", "format": "uuid"})

        assert UUID_PATTERN.match(value)

    def test_date_time_uses_clock(self, synthesizer):
        value = synth(synthesizer, {"type": "string", "format": "date-time"})

        assert value == "2024-01-02T03:04:05.678Z"

    def test_date_format(self, synthesizer):
        assert synth(synthesizer, {"type": "string", "format": "date"}) == "2024-01-02"

    @pytest.mark.parametrize("fmt", ["uri", "url"])
    def test_uri_formats(self, synthesizer, fmt: str):
        assert synth(synthesizer, {"type": "string", "format": fmt}) == "https://example.com"

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("user_id", "example-id"),
            ("display_name", "Example Name"),
            ("contact_email", "user@example.com"),
            ("avatar_url", "https://example.com"),
            ("access_token", "example_token_123"),
            ("region", "example_value"),
        ],
    )
    def test_name_hints(self, synthesizer, name: str, expected: str):
        assert synth(synthesizer, {"type": "string"}, name) == expected

    def test_format_beats_name_hint(self, synthesizer):
        assert (
            synth(synthesizer, {"type": "string", "format": "email"}, "user_id")
            == "user@example.com"
        )

    def test_custom_literals(self, resolver: SchemaResolver):
        values = ExampleValuesConfig(string="placeholder")
        synthesizer = ExampleValueSynthesizer(resolver, values=values)

        assert synthesizer.synthesize(parse_schema({"type": "string"})) == "placeholder"


class TestScalars:
    """Numbers and booleans."""

    def test_integer(self, synthesizer):
        assert synth(synthesizer, {"type": "integer"}) == 10

    def test_number(self, synthesizer):
        assert synth(synthesizer, {"type": "number", "format": "float"}) == 10

    def test_int64(self, synthesizer):
        assert synth(synthesizer, {"type": "integer", "format": "int64"}) == 1

    def test_boolean(self, synthesizer):
        assert synth(synthesizer, {"type": "boolean"}) is True


class TestArraysAndObjects:
    """Containers."""

    def test_array_without_items(self, synthesizer):
        assert synth(synthesizer, {"type": "array"}) == ["example"]

    @pytest.mark.parametrize(
        "items",
        [{}, {"anyOf": [{"type": "string"}, {"type": "integer"}]}],
    )
    def test_array_with_valueless_items_has_one_element(self, synthesizer, items):
        assert synth(synthesizer, {"type": "array", "items": items}) == ["example"]

    def test_array_of_integers(self, synthesizer):
        assert synth(synthesizer, {"type": "array", "items": {"type": "integer"}}) == [10]

    def test_array_item_uses_property_name(self, synthesizer):
        raw = {"type": "array", "items": {"type": "string"}}

        assert synth(synthesizer, raw, "tag_names") == ["Example Name"]

    def test_object_from_reference(self, synthesizer):
        value = synthesizer.synthesize(Reference("#/components/schemas/User"))

        assert value == {
            "id": "123e4567-e89b-12d3-a456-426614174000",
            "email": "user@example.com",
            "name": "Example Name",
            "created_at": "2024-01-02T03:04:05.678Z",
            "role": "admin",
            "age": 10,
        }

    def test_typeless_object_with_properties(self, synthesizer):
        raw = {"properties": {"enabled": {"type": "boolean"}}}

        assert synth(synthesizer, raw) == {"enabled": True}

    def test_properties_without_value_are_omitted(self, synthesizer):
        raw = {"type": "object", "properties": {"anything": {}, "count": {"type": "integer"}}}

        assert synth(synthesizer, raw) == {"count": 10}

    def test_all_of_is_flattened(self, synthesizer):
        value = synthesizer.synthesize(
            Reference("#/components/schemas/SingleDropletRequest")
        )

        assert value == {"region": "nyc3", "size": "s-1vcpu-1gb", "name": "web-1"}

    def test_typeless_one_of_uses_first_branch(self, synthesizer):
        raw = {"oneOf": [{"type": "integer"}, {"type": "string"}]}

        assert synth(synthesizer, raw) == 10


class TestGuards:
    """Synthesis never raises."""

    def test_unresolved_reference_placeholder(self, synthesizer, stats):
        value = synthesizer.synthesize(Reference("#/components/schemas/Missing"))

        assert value == "<unresolved reference #/components/schemas/Missing>"
        assert stats.unresolved_references == 1

    def test_self_referencing_schema_terminates(self):
        resolver = SchemaResolver(
            {
                "components": {
                    "schemas": {
                        "Node": {
                            "type": "object",
                            "properties": {
                                "label": {"type": "string"},
                                "parent": {"$ref": "#/components/schemas/Node"},
                                "children": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Node"},
                                },
                            },
                        }
                    }
                }
            }
        )
        synthesizer = ExampleValueSynthesizer(resolver)

        value = synthesizer.synthesize(Reference("#/components/schemas/Node"))

        assert value == {"label": "example_value", "children": []}

    def test_depth_bound(self, resolver: SchemaResolver):
        synthesizer = ExampleValueSynthesizer(resolver, max_depth=1)
        raw = {
            "type": "object",
            "properties": {
                "outer": {"type": "object", "properties": {"inner": {"type": "string"}}}
            },
        }

        assert synthesizer.synthesize(parse_schema(raw)) == {"outer": {}}


def test_iso_timestamp_truncates_to_milliseconds(fixed_now: datetime):
    assert iso_timestamp(fixed_now.replace(microsecond=123999)) == "2024-01-02T03:04:05.123Z"
