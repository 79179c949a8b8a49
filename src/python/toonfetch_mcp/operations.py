"""
Operation lookup and endpoint search over a loaded OpenAPI document.

OperationDescriptors are built fresh on every lookup; the document stays
the source of truth.
"""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .error_handling import OperationNotFoundError, PathNotFoundError
from .schema.nodes import SchemaNode, parse_schema
from .schema.resolver import SchemaResolver
from .schema.response_shape import json_schema_of

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head")
PARAMETER_LOCATIONS = ("path", "query", "header", "cookie")


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    location: str
    required: bool
    schema: SchemaNode
    description: str | None = None


@dataclass(frozen=True)
class OperationDescriptor:
    """A single (path, method) operation with its references dereferenced."""

    path: str
    method: str
    parameters: tuple[ParameterDescriptor, ...] = ()
    request_body: SchemaNode | None = None
    request_body_required: bool = False
    responses: Mapping[str, Any] = field(default_factory=dict)
    operation_id: str | None = None
    summary: str | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    def parameters_in(self, location: str) -> list[ParameterDescriptor]:
        return [p for p in self.parameters if p.location == location]

    @property
    def path_params(self) -> list[ParameterDescriptor]:
        return self.parameters_in("path")

    @property
    def query_params(self) -> list[ParameterDescriptor]:
        return self.parameters_in("query")


def available_methods(
    path_item: Mapping[str, Any], methods: Sequence[str] = HTTP_METHODS
) -> list[str]:
    return [m.upper() for m in path_item if m in methods]


def get_operation(
    document: Mapping[str, Any],
    path: str,
    method: str,
    resolver: SchemaResolver | None = None,
    methods: Sequence[str] = HTTP_METHODS,
) -> OperationDescriptor:
    """Build the descriptor for ``method`` on ``path``.

    Raises:
        PathNotFoundError: The document has no such path
        OperationNotFoundError: The path has no operation for the method
    """
    resolver = resolver or SchemaResolver(document)
    paths = document.get("paths") or {}

    path_item = resolver.deref_object(paths.get(path))
    if path_item is None:
        raise PathNotFoundError(path)

    lower_method = method.lower()
    operation = path_item.get(lower_method) if lower_method in methods else None
    if not isinstance(operation, Mapping):
        raise OperationNotFoundError(
            path, method, available_methods(path_item, methods)
        )

    return build_descriptor(path, lower_method, path_item, operation, resolver)


def build_descriptor(
    path: str,
    method: str,
    path_item: Mapping[str, Any],
    operation: Mapping[str, Any],
    resolver: SchemaResolver,
) -> OperationDescriptor:
    request_body: SchemaNode | None = None
    request_body_required = False
    raw_body = resolver.deref_object(operation.get("requestBody"))
    if raw_body is not None:
        raw_schema = json_schema_of(raw_body.get("content"))
        if raw_schema is not None:
            request_body = parse_schema(raw_schema)
        request_body_required = bool(raw_body.get("required", False))

    responses = operation.get("responses") or {}

    return OperationDescriptor(
        path=path,
        method=method,
        parameters=tuple(
            _merge_parameters(
                path_item.get("parameters"), operation.get("parameters"), resolver
            )
        ),
        request_body=request_body,
        request_body_required=request_body_required,
        responses={str(code): value for code, value in responses.items()},
        operation_id=operation.get("operationId"),
        summary=operation.get("summary"),
        description=operation.get("description"),
        tags=tuple(operation.get("tags") or ()),
        raw=operation,
    )


def _merge_parameters(
    path_level: Any, operation_level: Any, resolver: SchemaResolver
) -> list[ParameterDescriptor]:
    # Operation parameters override path-item parameters with the same (name, in).
    merged: dict[tuple[str, str], ParameterDescriptor] = {}
    for group in (path_level, operation_level):
        if not isinstance(group, list):
            continue
        for raw in group:
            param = resolver.deref_object(raw)
            if param is None:
                continue
            name = param.get("name")
            location = param.get("in")
            if not isinstance(name, str) or location not in PARAMETER_LOCATIONS:
                continue
            merged[(name, location)] = ParameterDescriptor(
                name=name,
                location=location,
                required=bool(param.get("required", location == "path")),
                schema=parse_schema(param.get("schema") or {}),
                description=param.get("description"),
            )
    return list(merged.values())


def iter_operations(
    document: Mapping[str, Any], methods: Sequence[str] = HTTP_METHODS
) -> Iterator[tuple[str, str, Mapping[str, Any]]]:
    """Yield ``(path, method, operation)`` in document order."""
    for path, path_item in (document.get("paths") or {}).items():
        if not isinstance(path_item, Mapping):
            continue
        for method, operation in path_item.items():
            if method in methods and isinstance(operation, Mapping):
                yield path, method, operation


def search_endpoints(
    document: Mapping[str, Any],
    query: str | None = None,
    method: str | None = None,
    limit: int = 20,
    methods: Sequence[str] = HTTP_METHODS,
) -> list[dict[str, Any]]:
    """Find operations whose path, summary or operationId contains ``query``."""
    needle = query.lower() if query else None
    wanted = method.upper() if method else None
    results: list[dict[str, Any]] = []

    for path, m, operation in iter_operations(document, methods):
        if len(results) >= limit:
            break

        if needle is not None:
            haystacks = (
                path,
                operation.get("summary") or "",
                operation.get("operationId") or "",
            )
            if not any(needle in str(h).lower() for h in haystacks):
                continue

        if wanted is not None and m.upper() != wanted:
            continue

        results.append(
            {
                "path": path,
                "method": m.upper(),
                "operationId": operation.get("operationId"),
                "summary": operation.get("summary"),
                "description": operation.get("description"),
                "tags": list(operation.get("tags") or []),
            }
        )

    return results
