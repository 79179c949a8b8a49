"""
Unit tests for ExampleEngine: registry, lookups, caching and lifecycle.
"""

import json
from pathlib import Path

import pytest

from toonfetch_mcp.config import ToonFetchConfig
from toonfetch_mcp.engine import ExampleEngine
from toonfetch_mcp.error_handling import ApiNotFoundError, SchemaNotFoundError
from toonfetch_mcp.schema.example_cache import cache_key

SAMPLE_API = "sample/api"


class TestRegistry:
    def test_unknown_api(self, engine: ExampleEngine):
        with pytest.raises(ApiNotFoundError) as exc_info:
            engine.get_api("nope/api")

        assert exc_info.value.context["available"] == [SAMPLE_API]

    def test_get_schema(self, engine: ExampleEngine):
        assert engine.get_schema(SAMPLE_API, "Droplet")["type"] == "object"

    def test_missing_schema_lists_at_most_ten(self, engine: ExampleEngine, sample_document):
        schemas = sample_document["components"]["schemas"]
        for i in range(10):
            schemas[f"Extra{i}"] = {"type": "string"}
        engine.add_document(SAMPLE_API, sample_document)

        with pytest.raises(SchemaNotFoundError) as exc_info:
            engine.get_schema(SAMPLE_API, "Nope")

        assert len(exc_info.value.context["available"]) == 10
        assert exc_info.value.message.startswith('Schema "Nope" not found. Available: User')

    def test_resolver_is_reused_per_document(self, engine: ExampleEngine):
        assert engine.resolver_for(SAMPLE_API) is engine.resolver_for(SAMPLE_API)


class TestCaching:
    def test_second_request_is_a_hit(self, engine: ExampleEngine):
        _, first = engine.example_for(SAMPLE_API, "/users", "get")
        _, second = engine.example_for(SAMPLE_API, "/users", "GET")

        assert first is second
        assert engine.stats.cache_hits == 1
        assert engine.stats.cache_misses == 1
        assert cache_key(SAMPLE_API, "/users", "get") in engine.cache

    def test_ttl_expiry_regenerates(self, engine: ExampleEngine, clock):
        key = cache_key(SAMPLE_API, "/users", "get")
        ttl = engine.config.cache.example_ttl_ms
        _, first = engine.example_for(SAMPLE_API, "/users", "get")
        created = engine.cache.entry(key).created_at
        clock.advance(ttl)
        _, second = engine.example_for(SAMPLE_API, "/users", "get")

        assert first is not second
        assert first == second
        assert engine.cache.entry(key).created_at == created + ttl
        assert engine.stats.cache_expirations == 1

    def test_readding_document_invalidates_its_examples(
        self, engine: ExampleEngine, sample_document
    ):
        engine.example_for(SAMPLE_API, "/users", "get")
        engine.add_document("other/api", sample_document)
        engine.example_for("other/api", "/users", "get")

        sample_document["servers"] = [{"url": "https://changed.test"}]
        engine.add_document(SAMPLE_API, sample_document)

        assert list(engine.cache.keys()) == ["other/api:/users:GET"]
        _, example = engine.example_for(SAMPLE_API, "/users", "get")
        assert "https://changed.test" in example.setup

    def test_policy_counters(self, engine: ExampleEngine):
        engine.example_for(SAMPLE_API, "/droplets", "post")

        assert engine.stats.one_of_selections == 1
        assert engine.stats.union_responses == 1

    def test_small_cache_evicts(self, sample_document, clock):
        config = ToonFetchConfig()
        config.cache.example_size = 2
        engine = ExampleEngine(config, cache_clock=clock)
        engine.add_document(SAMPLE_API, sample_document)

        engine.example_for(SAMPLE_API, "/users", "get")
        engine.example_for(SAMPLE_API, "/users", "post")
        engine.example_for(SAMPLE_API, "/droplets", "post")

        assert len(engine.cache) == 2
        assert engine.stats.cache_evictions == 1


class TestLifecycle:
    def test_invalidate_all(self, engine: ExampleEngine):
        engine.example_for(SAMPLE_API, "/users", "get")

        engine.invalidate_all()

        assert len(engine.cache) == 0
        assert engine.apis

    def test_shutdown(self, engine: ExampleEngine):
        engine.example_for(SAMPLE_API, "/users", "get")

        engine.shutdown()

        assert engine.apis == []
        assert len(engine.cache) == 0

    def test_health(self, engine: ExampleEngine):
        engine.example_for(SAMPLE_API, "/users", "get")

        health = engine.health()

        assert health["apis_loaded"] == 1
        assert health["cached_examples"] == 1
        assert health["stats"]["cache_misses"] == 1

    def test_stats_reset(self, engine: ExampleEngine):
        engine.example_for(SAMPLE_API, "/droplets", "post")

        engine.stats.reset()

        stats = engine.stats.to_dict()
        assert stats["cache_misses"] == 0
        assert stats["one_of_selections"] == 0
        assert stats["union_responses"] == 0

    async def test_create_loads_specs_dir(self, tmp_path: Path, sample_document):
        (tmp_path / "sample").mkdir()
        (tmp_path / "sample" / "api.json").write_text(json.dumps(sample_document))
        config = ToonFetchConfig()
        config.paths.specs_dir = str(tmp_path)

        engine = await ExampleEngine.create(config)

        assert [spec.name for spec in engine.apis] == [SAMPLE_API]
        assert engine.get_operation(SAMPLE_API, "/droplets", "post").operation_id == (
            "createDroplet"
        )
