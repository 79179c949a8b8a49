"""
Response shape analysis.

Classifies the success response of an operation so code generation can
emit matching response-handling code:

- ARRAY: the response body is a JSON array
- UNION: several resource-shaped wrapper properties exist across the
  declared variants (e.g. ``droplet`` alongside ``droplets``)
- SINGLE: exactly one resource-shaped wrapper property
- PLAIN: an object without any resource-shaped property
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from ..error_handling import EngineStats
from .composition import CompositionFlattener
from .nodes import InlineSchema, Reference, SchemaNode, parse_schema
from .resolver import SchemaResolver

if TYPE_CHECKING:
    from ..operations import OperationDescriptor

logger = structlog.get_logger(__name__)

DEFAULT_SUCCESS_CODES = (200, 201, 202, 204)
DEFAULT_IDENTIFIER_FIELDS = ("id", "uuid", "name", "slug")
ACTION_KEYS = frozenset({"action", "actions"})


class ResponseKind(Enum):
    ARRAY = "array"
    UNION = "union"
    SINGLE = "single"
    PLAIN = "plain"


@dataclass(frozen=True)
class ResponseVariant:
    """One resource-shaped wrapper property of a response."""

    property: str
    is_array: bool
    important_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResponseShape:
    """Classification of an operation's success response."""

    kind: ResponseKind
    status_code: int
    schema: InlineSchema
    wrapper_keys: tuple[str, ...] = ()
    primary_resource: str | None = None
    variants: tuple[ResponseVariant, ...] = ()
    important_fields: tuple[str, ...] = ()
    has_actions: bool = False

    @property
    def is_union(self) -> bool:
        return self.kind is ResponseKind.UNION

    @property
    def is_array(self) -> bool:
        return self.kind is ResponseKind.ARRAY


@dataclass
class _Candidate:
    name: str
    is_array: bool
    resource: InlineSchema | None = None


@dataclass
class _Scan:
    wrapper_keys: list[str] = field(default_factory=list)
    candidates: list[_Candidate] = field(default_factory=list)


def _is_resource(schema: InlineSchema | None) -> bool:
    if schema is None:
        return False
    return schema.is_object or (schema.type is None and bool(schema.all_of))


def select_success_response(
    responses: Mapping[str, Any], success_codes: Sequence[int] = DEFAULT_SUCCESS_CODES
) -> tuple[int, Any] | None:
    """Pick the success response an example should handle.

    Preference follows ``success_codes`` order by exact key; failing that,
    numeric keys are scanned in ascending order.
    """
    for code in success_codes:
        if str(code) in responses:
            return code, responses[str(code)]

    numeric: list[tuple[int, Any]] = []
    for key, value in responses.items():
        text = str(key).strip()
        if text.isdigit():
            numeric.append((int(text), value))

    for code, value in sorted(numeric, key=lambda pair: pair[0]):
        if code in success_codes:
            return code, value

    return None


def json_schema_of(content: Any) -> Any:
    """Return the raw schema of the JSON media type in a content map."""
    if not isinstance(content, Mapping):
        return None
    media = content.get("application/json")
    if media is None:
        media = next(
            (value for key, value in content.items() if "json" in str(key)), None
        )
    if not isinstance(media, Mapping):
        return None
    return media.get("schema")


class ResponseShapeAnalyzer:
    """Classifies success responses against one document."""

    def __init__(
        self,
        resolver: SchemaResolver,
        success_codes: Sequence[int] = DEFAULT_SUCCESS_CODES,
        identifier_fields: Sequence[str] = DEFAULT_IDENTIFIER_FIELDS,
        envelope_fields: Sequence[str] = (),
        stats: EngineStats | None = None,
    ) -> None:
        self.resolver = resolver
        self.success_codes = tuple(success_codes)
        self.identifier_fields = tuple(identifier_fields)
        self.envelope_fields = frozenset(envelope_fields)
        self.stats = stats
        self._flattener = CompositionFlattener(resolver)

    def analyze(self, operation: "OperationDescriptor") -> ResponseShape | None:
        selected = select_success_response(operation.responses, self.success_codes)
        if selected is None:
            return None
        status_code, raw_response = selected

        response = self.resolver.deref_object(raw_response)
        if response is None:
            return None

        raw_schema = json_schema_of(response.get("content"))
        if raw_schema is None:
            return None

        schema = self.resolver.deref(parse_schema(raw_schema))
        if schema is None:
            return None

        if schema.is_array:
            items = self.resolver.deref(schema.items)
            return ResponseShape(
                kind=ResponseKind.ARRAY,
                status_code=status_code,
                schema=schema,
                important_fields=self._important_fields(items),
            )

        scan = _Scan()
        variants = [self.resolver.deref(branch) for branch in schema.one_of]
        sources = [v for v in variants if v is not None] or [schema]
        for source in sources:
            self._scan_properties(self._flattener.flatten(source).properties, scan)

        candidates = scan.candidates
        if candidates:
            primary = candidates[0].name
        elif scan.wrapper_keys:
            primary = scan.wrapper_keys[0]
        else:
            primary = None

        shape_variants = tuple(
            ResponseVariant(
                property=c.name,
                is_array=c.is_array,
                important_fields=self._important_fields(c.resource),
            )
            for c in candidates
        )

        if len(candidates) > 1:
            kind = ResponseKind.UNION
            if self.stats is not None:
                self.stats.incr("union_responses")
            logger.info(
                "Union response detected",
                path=operation.path,
                method=operation.method,
                variants=[c.name for c in candidates],
            )
        elif candidates:
            kind = ResponseKind.SINGLE
        else:
            kind = ResponseKind.PLAIN

        return ResponseShape(
            kind=kind,
            status_code=status_code,
            schema=schema,
            wrapper_keys=tuple(scan.wrapper_keys),
            primary_resource=primary,
            variants=shape_variants,
            important_fields=shape_variants[0].important_fields
            if shape_variants
            else (),
            has_actions=any(key in ACTION_KEYS for key in scan.wrapper_keys),
        )

    def _scan_properties(self, properties: dict[str, SchemaNode], scan: _Scan) -> None:
        known = {c.name for c in scan.candidates}
        for name, prop in properties.items():
            resolved = self.resolver.deref(prop)

            if isinstance(prop, Reference) or _is_resource(resolved):
                if name not in scan.wrapper_keys:
                    scan.wrapper_keys.append(name)

            if name in known or name in self.envelope_fields or resolved is None:
                continue

            if resolved.is_array:
                items = self.resolver.deref(resolved.items)
                if _is_resource(items):
                    scan.candidates.append(_Candidate(name, True, items))
                    known.add(name)
                    if name not in scan.wrapper_keys:
                        scan.wrapper_keys.append(name)
            elif _is_resource(resolved):
                scan.candidates.append(_Candidate(name, False, resolved))
                known.add(name)

    def _important_fields(self, resource: InlineSchema | None) -> tuple[str, ...]:
        if resource is None:
            return ()
        properties = self._flattener.flatten(resource).properties
        return tuple(f for f in self.identifier_fields if f in properties)
