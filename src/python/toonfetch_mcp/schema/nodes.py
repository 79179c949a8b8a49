"""
Schema node model.

A schema node is either a Reference (a bare ``$ref`` pointer) or an
InlineSchema carrying the keywords the example engine inspects. Raw
OpenAPI dictionaries are converted with ``parse_schema``; inline sub-schemas
are parsed eagerly, references are left for the resolver.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias


class _Unset:
    """Marker for an absent keyword or an omitted example value."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class Reference:
    """Pointer to another location in the same document."""

    ref: str


@dataclass(frozen=True, eq=False)
class InlineSchema:
    """A schema object with its ``$ref`` (if any) already dereferenced."""

    type: str | None = None
    format: str | None = None
    properties: dict[str, "SchemaNode"] = field(default_factory=dict)
    has_properties: bool = False
    items: "SchemaNode | None" = None
    required: frozenset[str] = frozenset()
    enum: tuple[Any, ...] = ()
    default: Any = UNSET
    example: Any = UNSET
    all_of: tuple["SchemaNode", ...] = ()
    one_of: tuple["SchemaNode", ...] = ()
    description: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_object(self) -> bool:
        """True for ``type: object`` or a typeless schema with properties."""
        return self.type == "object" or (self.type is None and self.has_properties)

    @property
    def is_array(self) -> bool:
        return self.type == "array"


SchemaNode: TypeAlias = Reference | InlineSchema


def parse_schema(raw: Any) -> SchemaNode:
    """Convert a raw schema mapping into a SchemaNode.

    Anything that is not a mapping parses to an empty InlineSchema, which
    synthesizes to UNSET.
    """
    if not isinstance(raw, Mapping):
        return InlineSchema()

    ref = raw.get("$ref")
    if isinstance(ref, str):
        return Reference(ref)

    raw_type = raw.get("type")
    # OpenAPI 3.1 allows ["string", "null"]
    if isinstance(raw_type, list):
        raw_type = next((t for t in raw_type if t != "null"), None)

    raw_properties = raw.get("properties")
    properties: dict[str, SchemaNode] = {}
    if isinstance(raw_properties, Mapping):
        for name, value in raw_properties.items():
            properties[str(name)] = parse_schema(value)

    raw_required = raw.get("required")
    required = (
        frozenset(str(r) for r in raw_required)
        if isinstance(raw_required, list)
        else frozenset()
    )

    raw_enum = raw.get("enum")
    enum = tuple(raw_enum) if isinstance(raw_enum, list) else ()

    items = raw.get("items")

    return InlineSchema(
        type=raw_type if isinstance(raw_type, str) else None,
        format=raw.get("format") if isinstance(raw.get("format"), str) else None,
        properties=properties,
        has_properties=isinstance(raw_properties, Mapping),
        items=parse_schema(items) if items is not None else None,
        required=required,
        enum=enum,
        default=raw["default"] if "default" in raw else UNSET,
        example=raw["example"] if "example" in raw else UNSET,
        all_of=_parse_branches(raw.get("allOf")),
        one_of=_parse_branches(raw.get("oneOf")),
        description=raw.get("description")
        if isinstance(raw.get("description"), str)
        else None,
        raw=raw,
    )


def _parse_branches(raw: Any) -> tuple[SchemaNode, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(parse_schema(branch) for branch in raw)
