"""
Unit tests for CompositionFlattener.
"""

from toonfetch_mcp.error_handling import EngineStats
from toonfetch_mcp.schema.composition import CompositionFlattener, FlattenedBody
from toonfetch_mcp.schema.nodes import Reference, parse_schema
from toonfetch_mcp.schema.resolver import SchemaResolver


def make_resolver(schemas: dict) -> SchemaResolver:
    return SchemaResolver({"components": {"schemas": schemas}})


class TestFlatten:
    """allOf merging."""

    def test_later_branch_wins(self):
        resolver = make_resolver(
            {
                "Base": {"type": "object", "properties": {"kind": {"type": "string"}}},
                "Override": {
                    "type": "object",
                    "properties": {"kind": {"type": "integer"}},
                },
            }
        )
        node = parse_schema(
            {
                "allOf": [
                    {"$ref": "#/components/schemas/Base"},
                    {"$ref": "#/components/schemas/Override"},
                ]
            }
        )

        flattened = CompositionFlattener(resolver).flatten(node)

        assert resolver.deref(flattened.properties["kind"]).type == "integer"

    def test_direct_properties_override_branches(self):
        resolver = make_resolver({})
        node = parse_schema(
            {
                "allOf": [{"properties": {"a": {"type": "string"}}}],
                "properties": {"a": {"type": "boolean"}},
            }
        )

        flattened = CompositionFlattener(resolver).flatten(node)

        assert flattened.properties["a"].type == "boolean"

    def test_required_is_union_of_branches(self, resolver: SchemaResolver):
        node = resolver.resolve("#/components/schemas/SingleDropletRequest")

        flattened = CompositionFlattener(resolver).flatten(node)

        assert list(flattened.properties) == ["region", "size", "name"]
        assert flattened.required == frozenset({"region", "name"})

    def test_nested_all_of(self):
        resolver = make_resolver(
            {
                "A": {"properties": {"a": {"type": "string"}}},
                "B": {"allOf": [{"$ref": "#/components/schemas/A"}], "properties": {"b": {}}},
            }
        )
        node = parse_schema({"allOf": [{"$ref": "#/components/schemas/B"}]})

        flattened = CompositionFlattener(resolver).flatten(node)

        assert set(flattened.properties) == {"a", "b"}

    def test_cyclic_all_of_terminates(self):
        resolver = make_resolver(
            {
                "A": {
                    "allOf": [{"$ref": "#/components/schemas/B"}],
                    "properties": {"a": {}},
                },
                "B": {
                    "allOf": [{"$ref": "#/components/schemas/A"}],
                    "properties": {"b": {}},
                },
            }
        )

        flattened = CompositionFlattener(resolver).flatten(
            resolver.resolve("#/components/schemas/A")
        )

        assert set(flattened.properties) == {"a", "b"}

    def test_unresolved_branch_is_skipped(self):
        resolver = make_resolver({})
        node = parse_schema(
            {
                "allOf": [{"$ref": "#/components/schemas/Gone"}],
                "properties": {"x": {"type": "string"}},
            }
        )

        assert list(CompositionFlattener(resolver).flatten(node).properties) == ["x"]


class TestRequestBody:
    """oneOf handling for request bodies."""

    def test_one_of_uses_first_variant(self, resolver: SchemaResolver):
        stats = EngineStats()
        body_schema = parse_schema(
            {
                "oneOf": [
                    {"$ref": "#/components/schemas/SingleDropletRequest"},
                    {"$ref": "#/components/schemas/MultipleDropletRequest"},
                ]
            }
        )

        body = CompositionFlattener(resolver, stats=stats).flatten_request_body(
            body_schema
        )

        assert "names" not in body.properties
        assert body.required == frozenset({"region", "name"})
        assert body.variant_count == 2
        assert body.used_first_variant
        assert stats.one_of_selections == 1

    def test_single_variant_is_not_flagged(self, resolver: SchemaResolver):
        body_schema = parse_schema(
            {"oneOf": [{"$ref": "#/components/schemas/MultipleDropletRequest"}]}
        )

        body = CompositionFlattener(resolver).flatten_request_body(body_schema)

        assert list(body.properties) == ["names"]
        assert not body.used_first_variant

    def test_plain_reference(self, resolver: SchemaResolver):
        body = CompositionFlattener(resolver).flatten_request_body(
            Reference("#/components/schemas/CreateUserRequest")
        )

        assert [(name, req) for name, _, req in body.fields()] == [
            ("email", True),
            ("name", True),
            ("role", False),
            ("avatar_url", False),
        ]

    def test_missing_schema(self, resolver: SchemaResolver):
        body = CompositionFlattener(resolver).flatten_request_body(None)

        assert body == FlattenedBody()
