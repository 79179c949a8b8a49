"""
Example value synthesis from OpenAPI schemas.

Decision order for a node (first match wins):

1. explicit ``example``
2. ``default``
3. first ``enum`` member
4. ``$ref``: resolve and recurse, or a placeholder naming the reference
5. dispatch on ``type`` (string formats and property-name hints, numbers,
   booleans, arrays, objects)

Anything else synthesizes to UNSET and the caller omits the field.
Synthesis never raises and stops at reference cycles and at a depth bound.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import structlog

from ..config import ExampleValuesConfig
from ..error_handling import EngineStats
from .composition import CompositionFlattener
from .nodes import UNSET, InlineSchema, Reference, SchemaNode
from .resolver import SchemaResolver

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def iso_timestamp(moment: datetime) -> str:
    """Format like JavaScript's ``Date.toISOString()``."""
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class ExampleValueSynthesizer:
    """Produces representative values for schema nodes of one document."""

    def __init__(
        self,
        resolver: SchemaResolver,
        values: ExampleValuesConfig | None = None,
        max_depth: int = 32,
        clock: Callable[[], datetime] = _utc_now,
        stats: EngineStats | None = None,
    ) -> None:
        self.resolver = resolver
        self.values = values or ExampleValuesConfig()
        self.max_depth = max_depth
        self.clock = clock
        self.stats = stats
        self._flattener = CompositionFlattener(resolver, stats=stats)

    def synthesize(
        self,
        node: SchemaNode | None,
        property_name: str = "",
        enclosing: InlineSchema | None = None,
    ) -> Any:
        """Synthesize an example for ``node``.

        Args:
            node: Schema node, possibly an unresolved Reference
            property_name: Name of the field the value is for, used for hints
            enclosing: Schema that declares the field, if any

        Returns:
            The example value, or UNSET when no value can be produced
        """
        if node is None:
            return UNSET
        return self._synthesize(node, property_name, enclosing, (), 0)

    def _synthesize(
        self,
        node: SchemaNode,
        property_name: str,
        enclosing: InlineSchema | None,
        visiting: tuple[str, ...],
        depth: int,
    ) -> Any:
        if depth > self.max_depth:
            logger.debug("Synthesis depth limit reached", property=property_name)
            return UNSET

        if isinstance(node, Reference):
            return self._synthesize_reference(
                node, property_name, enclosing, visiting, depth
            )

        if node.example is not UNSET:
            return node.example
        if node.default is not UNSET:
            return node.default
        if node.enum:
            return node.enum[0]

        if node.type == "string":
            return self._string_value(node, property_name)

        if node.type in ("number", "integer"):
            return self.values.int64 if node.format == "int64" else self.values.number

        if node.type == "boolean":
            return self.values.boolean

        if node.type == "array":
            if node.items is None:
                return [self.values.array_item]
            item = self._synthesize(
                node.items, property_name, node, visiting, depth + 1
            )
            if item is not UNSET:
                return [item]
            # Items that refer back to an enclosing schema end the recursion
            if isinstance(node.items, Reference) and node.items.ref in visiting:
                return []
            return [self.values.array_item]

        if node.all_of and node.type in (None, "object"):
            flattened = self._flattener.flatten(node)
            return self._object_value(flattened.properties, node, visiting, depth)

        if node.is_object:
            return self._object_value(node.properties, node, visiting, depth)

        if node.type is None and node.one_of:
            return self._synthesize(
                node.one_of[0], property_name, enclosing, visiting, depth + 1
            )

        return UNSET

    def _synthesize_reference(
        self,
        node: Reference,
        property_name: str,
        enclosing: InlineSchema | None,
        visiting: tuple[str, ...],
        depth: int,
    ) -> Any:
        if node.ref in visiting:
            logger.debug("Reference cycle skipped", ref=node.ref, property=property_name)
            return UNSET

        resolved = self.resolver.resolve(node.ref)
        if resolved is None:
            if self.stats is not None:
                self.stats.incr("unresolved_references")
            logger.info("Unresolved reference in example", ref=node.ref)
            return f"<unresolved reference {node.ref}>"

        return self._synthesize(
            resolved, property_name, enclosing, (*visiting, node.ref), depth + 1
        )

    def _object_value(
        self,
        properties: dict[str, SchemaNode],
        enclosing: InlineSchema,
        visiting: tuple[str, ...],
        depth: int,
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for name, prop in properties.items():
            value = self._synthesize(prop, name, enclosing, visiting, depth + 1)
            if value is not UNSET:
                result[name] = value
        return result

    def _string_value(self, node: InlineSchema, property_name: str) -> str:
        values = self.values
        fmt = node.format

        if fmt == "email":
            return values.email
        if fmt == "date-time":
            return iso_timestamp(self.clock())
        if fmt == "date":
            return self.clock().astimezone(UTC).date().isoformat()
        if fmt == "uuid":
            return values.uuid
        if fmt in ("uri", "url"):
            return values.url

        lower_name = property_name.lower()
        if "id" in lower_name:
            return values.identifier
        if "name" in lower_name:
            return values.name
        if "email" in lower_name:
            return values.email
        if "url" in lower_name:
            return values.url
        if "token" in lower_name:
            return values.token

        return values.string
