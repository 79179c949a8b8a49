"""
Schema resolution and example synthesis engine.

Exports the node model and the five engine components used by code
generation.
"""

from .composition import CompositionFlattener, FlattenedBody
from .example_cache import CacheEntry, ExampleCache, cache_key
from .nodes import UNSET, InlineSchema, Reference, SchemaNode, parse_schema
from .resolver import SchemaResolver
from .response_shape import (
    ResponseKind,
    ResponseShape,
    ResponseShapeAnalyzer,
    ResponseVariant,
    select_success_response,
)
from .synthesizer import ExampleValueSynthesizer

__all__ = [
    "UNSET",
    "CacheEntry",
    "CompositionFlattener",
    "ExampleCache",
    "ExampleValueSynthesizer",
    "FlattenedBody",
    "InlineSchema",
    "Reference",
    "ResponseKind",
    "ResponseShape",
    "ResponseShapeAnalyzer",
    "ResponseVariant",
    "SchemaNode",
    "SchemaResolver",
    "cache_key",
    "parse_schema",
    "select_success_response",
]
