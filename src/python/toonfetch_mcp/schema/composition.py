"""
Flattening of ``allOf`` / ``oneOf`` composition for request bodies.

Request-body unions are represented by their first declared ``oneOf``
variant. This is a simplification, not schema-accurate; the flattened
result records how many variants there were so generated code can say so.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field

import structlog

from ..error_handling import EngineStats
from .nodes import InlineSchema, Reference, SchemaNode
from .resolver import SchemaResolver

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FlattenedBody:
    """Effective property set of a composed schema."""

    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: frozenset[str] = frozenset()
    variant_count: int = 0
    source: InlineSchema | None = None

    @property
    def used_first_variant(self) -> bool:
        """True when a multi-branch oneOf was reduced to its first branch."""
        return self.variant_count > 1

    def fields(self) -> Iterator[tuple[str, SchemaNode, bool]]:
        """Yield ``(name, schema, is_required)`` in declaration order."""
        for name, schema in self.properties.items():
            yield name, schema, name in self.required


class CompositionFlattener:
    """Merges composition keywords into a single property/required set."""

    def __init__(
        self, resolver: SchemaResolver, stats: EngineStats | None = None
    ) -> None:
        self.resolver = resolver
        self.stats = stats

    def flatten_request_body(self, schema: SchemaNode | None) -> FlattenedBody:
        node = self.resolver.deref(schema)
        if node is None:
            return FlattenedBody()

        variant_count = 0
        if node.one_of:
            variant_count = len(node.one_of)
            if variant_count > 1:
                if self.stats is not None:
                    self.stats.incr("one_of_selections")
                logger.info(
                    "Request body oneOf reduced to first variant",
                    variants=variant_count,
                )
            first = self.resolver.deref(node.one_of[0])
            if first is None:
                return FlattenedBody(variant_count=variant_count)
            node = first

        flattened = self.flatten(node)
        return FlattenedBody(
            properties=flattened.properties,
            required=flattened.required,
            variant_count=variant_count,
            source=node,
        )

    def flatten(
        self, node: InlineSchema, visiting: tuple[str, ...] = ()
    ) -> FlattenedBody:
        """Merge ``allOf`` branches, then the node's own properties.

        Later branches override earlier ones on name collisions; the node's
        direct properties override every branch.
        """
        properties: dict[str, SchemaNode] = {}
        required: set[str] = set()

        for branch in node.all_of:
            branch_visiting = visiting
            if isinstance(branch, Reference):
                if branch.ref in visiting:
                    continue
                branch_visiting = (*visiting, branch.ref)

            resolved = self.resolver.deref(branch)
            if resolved is None:
                continue

            merged = self.flatten(resolved, branch_visiting)
            properties.update(merged.properties)
            required.update(merged.required)

        properties.update(node.properties)
        required.update(node.required)

        return FlattenedBody(
            properties=properties, required=frozenset(required), source=node
        )
