"""
Internal ``$ref`` resolution with memoization.

One SchemaResolver is bound to one loaded document. Resolutions are
memoized by the exact ref string for as long as the resolver lives; the
owning engine drops the resolver when documents are reloaded.
"""

import threading
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any

import structlog

from .nodes import InlineSchema, Reference, SchemaNode, parse_schema

logger = structlog.get_logger(__name__)

# Chained refs longer than this are treated as unresolvable.
MAX_REF_CHAIN = 16


def _unescape(segment: str) -> str:
    # JSON pointer escapes: ~1 is "/", ~0 is "~"
    return segment.replace("~1", "/").replace("~0", "~")


class SchemaResolver:
    """Resolves ``#/...`` references against a single document."""

    def __init__(self, document: Mapping[str, Any]) -> None:
        self._document = document
        self._targets: OrderedDict[str, Mapping[str, Any]] = OrderedDict()
        self._schemas: OrderedDict[str, InlineSchema] = OrderedDict()
        self._lock = threading.RLock()

    @property
    def document(self) -> Mapping[str, Any]:
        return self._document

    def __len__(self) -> int:
        return len(self._schemas)

    def lookup(self, ref: str) -> Mapping[str, Any] | None:
        """Walk a reference to the raw object it points at.

        Returns None for external references, missing segments, or
        non-object intermediates and targets.
        """
        with self._lock:
            cached = self._targets.get(ref)
            if cached is not None:
                return cached

            target = self._walk(ref)
            if target is not None:
                self._targets[ref] = target
            return target

    def resolve(self, ref: str) -> InlineSchema | None:
        """Resolve a reference to an InlineSchema, following chained refs."""
        with self._lock:
            cached = self._schemas.get(ref)
            if cached is not None:
                return cached

            seen = [ref]
            current = ref
            while True:
                target = self.lookup(current)
                if target is None:
                    logger.debug("Reference not resolved", ref=ref, failed_at=current)
                    return None

                node = parse_schema(target)
                if isinstance(node, InlineSchema):
                    break

                if node.ref in seen or len(seen) >= MAX_REF_CHAIN:
                    logger.warning("Circular reference chain", ref=ref, chain=seen)
                    return None
                seen.append(node.ref)
                current = node.ref

            self._schemas[ref] = node
            return node

    def deref(self, node: SchemaNode | None) -> InlineSchema | None:
        """Return the inline form of a node, resolving it if it is a Reference."""
        if node is None:
            return None
        if isinstance(node, Reference):
            return self.resolve(node.ref)
        return node

    def deref_object(self, raw: Any) -> Mapping[str, Any] | None:
        """Dereference a raw OpenAPI object (parameter, request body, response)."""
        seen: set[str] = set()
        while isinstance(raw, Mapping) and isinstance(raw.get("$ref"), str):
            ref = raw["$ref"]
            if ref in seen:
                return None
            seen.add(ref)
            raw = self.lookup(ref)
        return raw if isinstance(raw, Mapping) else None

    def clear(self) -> int:
        """Drop every memoized resolution, returning how many were held."""
        with self._lock:
            count = len(self._schemas)
            self._targets.clear()
            self._schemas.clear()
            return count

    def _walk(self, ref: str) -> Mapping[str, Any] | None:
        if not ref.startswith("#/"):
            logger.debug("External reference not supported", ref=ref)
            return None

        current: Any = self._document
        for segment in ref[2:].split("/"):
            if not isinstance(current, Mapping):
                return None
            current = current.get(_unescape(segment))
            if current is None:
                return None

        return current if isinstance(current, Mapping) else None
