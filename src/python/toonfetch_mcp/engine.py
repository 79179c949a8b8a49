"""
Example engine: owns loaded documents, their resolvers and the example cache.

All shared mutable state (resolver memos, example cache) lives on one
ExampleEngine instance with an explicit lifecycle: ``create`` loads specs,
``invalidate_all`` drops every memo and cached example (document reload),
``shutdown`` clears everything.
"""

import threading
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import structlog

from .codegen import CodeExampleGenerator, GeneratedExample, generate_quickstart
from .config import ToonFetchConfig
from .error_handling import ApiNotFoundError, EngineStats, SchemaNotFoundError
from .operations import OperationDescriptor, get_operation
from .schema.composition import CompositionFlattener
from .schema.example_cache import ExampleCache, cache_key
from .schema.resolver import SchemaResolver
from .schema.response_shape import ResponseShapeAnalyzer
from .schema.synthesizer import ExampleValueSynthesizer
from .spec_loader import ApiSpec, load_specs

logger = structlog.get_logger(__name__)


class ExampleEngine:
    """Entry point for operation lookup and example generation."""

    def __init__(
        self,
        config: ToonFetchConfig | None = None,
        cache_clock: Callable[[], float] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or ToonFetchConfig()
        self.stats = EngineStats()
        self._specs: dict[str, ApiSpec] = {}
        self._resolvers: dict[str, SchemaResolver] = {}
        self._lock = threading.RLock()
        self._now = now

        cache_kwargs: dict[str, Any] = {}
        if cache_clock is not None:
            cache_kwargs["clock"] = cache_clock
        self.cache: ExampleCache[GeneratedExample] = ExampleCache(
            capacity=self.config.cache.example_size,
            ttl_ms=self.config.cache.example_ttl_ms,
            stats=self.stats,
            **cache_kwargs,
        )

    @classmethod
    async def create(cls, config: ToonFetchConfig | None = None) -> "ExampleEngine":
        """Build an engine and load every spec under the configured directory."""
        engine = cls(config)
        logger.info("Looking for specs", specs_dir=engine.config.paths.specs_dir)
        engine.load(await load_specs(engine.config.paths.specs_dir))
        return engine

    # Registry

    def load(self, specs: Mapping[str, ApiSpec]) -> None:
        """Replace the loaded specs; invalidates every memo and cached example."""
        with self._lock:
            self._specs = dict(specs)
        self.invalidate_all()

    def add_document(
        self, api_name: str, document: Mapping[str, Any], path: str = "<memory>"
    ) -> ApiSpec:
        """Register one in-memory document under ``api_name``."""
        spec = ApiSpec(name=api_name, path=path, document=document)
        with self._lock:
            self._specs[api_name] = spec
            self._resolvers.pop(api_name, None)
        # Cache lock is taken outside the engine lock; generation nests them
        # the other way round.
        for key in list(self.cache.keys()):
            if key.startswith(f"{api_name}:"):
                self.cache.invalidate(key)
        return spec

    @property
    def apis(self) -> list[ApiSpec]:
        return list(self._specs.values())

    def get_api(self, api_name: str) -> ApiSpec:
        spec = self._specs.get(api_name)
        if spec is None:
            raise ApiNotFoundError(api_name, sorted(self._specs))
        return spec

    def resolver_for(self, api_name: str) -> SchemaResolver:
        return self._resolver(api_name, self.get_api(api_name).document)

    def _resolver(self, api_name: str, document: Mapping[str, Any]) -> SchemaResolver:
        with self._lock:
            resolver = self._resolvers.get(api_name)
            if resolver is None or resolver.document is not document:
                resolver = SchemaResolver(document)
                self._resolvers[api_name] = resolver
            return resolver

    # Lookups

    def get_operation(self, api_name: str, path: str, method: str) -> OperationDescriptor:
        spec = self.get_api(api_name)
        return get_operation(
            spec.document,
            path,
            method,
            resolver=self._resolver(api_name, spec.document),
            methods=self.config.http.methods,
        )

    def get_schema(self, api_name: str, schema_name: str) -> Mapping[str, Any]:
        document = self.get_api(api_name).document
        schemas = (document.get("components") or {}).get("schemas") or {}
        schema = schemas.get(schema_name)
        if schema is None:
            raise SchemaNotFoundError(schema_name, list(schemas))
        return schema

    # Generation

    def build_example(
        self,
        api_name: str,
        document: Mapping[str, Any],
        path: str,
        method: str,
        operation: OperationDescriptor,
    ) -> GeneratedExample:
        """Return the cached example for the operation, generating it on a miss."""
        key = cache_key(api_name, path, method)
        return self.cache.get_or_build(
            key, lambda: self._generate(api_name, document, operation)
        )

    def example_for(
        self, api_name: str, path: str, method: str
    ) -> tuple[OperationDescriptor, GeneratedExample]:
        """Look up an operation and build its example."""
        operation = self.get_operation(api_name, path, method)
        document = self.get_api(api_name).document
        return operation, self.build_example(api_name, document, path, method, operation)

    def quickstart(self, api_name: str) -> str:
        return generate_quickstart(api_name, self.get_api(api_name).document)

    def _generate(
        self,
        api_name: str,
        document: Mapping[str, Any],
        operation: OperationDescriptor,
    ) -> GeneratedExample:
        resolver = self._resolver(api_name, document)
        schemas = self.config.schemas

        synth_kwargs: dict[str, Any] = {}
        if self._now is not None:
            synth_kwargs["clock"] = self._now
        synthesizer = ExampleValueSynthesizer(
            resolver,
            values=self.config.example_values,
            max_depth=schemas.max_depth,
            stats=self.stats,
            **synth_kwargs,
        )
        flattener = CompositionFlattener(resolver, stats=self.stats)
        analyzer = ResponseShapeAnalyzer(
            resolver,
            success_codes=self.config.http.success_codes,
            identifier_fields=schemas.identifier_fields,
            envelope_fields=schemas.envelope_fields,
            stats=self.stats,
        )

        try:
            body = (
                flattener.flatten_request_body(operation.request_body)
                if operation.request_body is not None
                else None
            )
            shape = analyzer.analyze(operation)
            example = CodeExampleGenerator(api_name, document).generate(
                operation, synthesizer, body, shape
            )
        except Exception as e:
            self.stats.incr("generation_failures")
            logger.error(
                "Example generation failed",
                api=api_name,
                path=operation.path,
                method=operation.method,
                error=str(e),
            )
            raise

        logger.debug(
            "Example generated",
            api=api_name,
            path=operation.path,
            method=operation.method,
        )
        return example

    # Lifecycle

    def invalidate_all(self) -> None:
        """Drop resolver memos and cached examples."""
        with self._lock:
            refs = sum(len(r) for r in self._resolvers.values())
            self._resolvers.clear()
        examples = self.cache.clear()
        logger.info("Caches invalidated", refs_cleared=refs, examples_cleared=examples)

    def shutdown(self) -> None:
        """Clear every cache and forget the loaded specs."""
        logger.info("Shutting down example engine")
        with self._lock:
            self._specs.clear()
        self.invalidate_all()
        logger.info("Example engine shutdown complete")

    def health(self) -> dict[str, Any]:
        return {
            "apis_loaded": len(self._specs),
            "cached_examples": len(self.cache),
            "stats": self.stats.to_dict(),
        }
