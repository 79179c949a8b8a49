"""
TypeScript code example generation.

Examples target the ``toonfetch`` client, whose call signature is
``client(path, { method, path?, query?, body? })``. Values come from the
schema engine; this module only turns them into text.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .operations import OperationDescriptor, ParameterDescriptor, iter_operations
from .schema.composition import FlattenedBody
from .schema.nodes import UNSET
from .schema.response_shape import ResponseKind, ResponseShape
from .schema.synthesizer import ExampleValueSynthesizer

DEFAULT_BASE_URL = "https://api.example.com"
CLIENT_PACKAGE = "toonfetch"
QUICKSTART_METHODS = ("get", "post", "put", "delete")


@dataclass(frozen=True)
class GeneratedExample:
    """Text fragments of one generated example."""

    imports: str
    setup: str
    usage: str
    full_example: str


def service_name(api_name: str) -> str:
    return api_name.split("/")[-1] or api_name


def package_name(api_name: str) -> str:
    return api_name.split("/")[0]


def type_helper_name(api_name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in api_name.split("/") if part)


def render_literal(value: Any) -> str:
    """Render a value as a TypeScript literal."""
    if isinstance(value, str):
        escaped = (
            value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
        )
        return f"'{escaped}'"
    return json.dumps(value, default=str)


def auth_header_lines(security_schemes: Mapping[str, Any]) -> list[str]:
    """Header lines for the client setup, based on declared security schemes."""
    bearer = "bearerAuth" in security_schemes or "Bearer" in security_schemes
    api_key_header: str | None = None
    if "apiKey" in security_schemes or "ApiKey" in security_schemes:
        api_key_header = "X-API-Key"

    for scheme in security_schemes.values():
        if not isinstance(scheme, Mapping):
            continue
        kind = scheme.get("type")
        if kind == "http" and str(scheme.get("scheme", "")).lower() == "bearer":
            bearer = True
        elif kind == "oauth2":
            bearer = True
        elif kind == "apiKey" and scheme.get("in") == "header":
            api_key_header = api_key_header or scheme.get("name") or "X-API-Key"

    if bearer:
        return [
            "  headers: {",
            "    'Authorization': `Bearer ${YOUR_TOKEN}`,",
            "  },",
        ]
    if api_key_header:
        return [
            "  headers: {",
            f"    '{api_key_header}': YOUR_API_KEY,",
            "  },",
        ]
    return []


def client_setup(api_name: str, document: Mapping[str, Any]) -> str:
    servers = document.get("servers") or []
    base_url = DEFAULT_BASE_URL
    if servers and isinstance(servers[0], Mapping) and servers[0].get("url"):
        base_url = servers[0]["url"]

    parts = ["const client = createClient({", f"  baseURL: '{base_url}',"]
    schemes = (document.get("components") or {}).get("securitySchemes")
    if isinstance(schemes, Mapping):
        parts.extend(auth_header_lines(schemes))
    parts.append(f"}}).with({service_name(api_name)})")
    return "\n".join(parts)


class CodeExampleGenerator:
    """Assembles GeneratedExample text for one document."""

    def __init__(self, api_name: str, document: Mapping[str, Any]) -> None:
        self.api_name = api_name
        self.document = document

    def generate(
        self,
        operation: OperationDescriptor,
        synthesizer: ExampleValueSynthesizer,
        body: FlattenedBody | None,
        response_shape: ResponseShape | None,
    ) -> GeneratedExample:
        helper = type_helper_name(self.api_name)
        has_body = body is not None

        type_defs = self.type_definitions(operation, helper, has_body)
        imports = (
            f"import {{ createClient, {service_name(self.api_name)} }} "
            f"from '{CLIENT_PACKAGE}/{package_name(self.api_name)}'"
        )
        if type_defs:
            imports += (
                f"\nimport type {{ {helper} }} "
                f"from '{CLIENT_PACKAGE}/{package_name(self.api_name)}'"
            )
            imports += "\n\n" + "\n".join(type_defs)

        setup = client_setup(self.api_name, self.document)

        usage_parts: list[str] = []
        if operation.path_params:
            usage_parts.append(
                self.params_block(
                    "// Path parameters",
                    "const pathParams: PathParams = {",
                    operation.path_params,
                    synthesizer,
                )
            )
        if operation.query_params:
            usage_parts.append(
                self.params_block(
                    "// Query parameters",
                    "const queryParams: QueryParams = {",
                    operation.query_params,
                    synthesizer,
                )
            )
        if body is not None:
            usage_parts.append(self.body_block(body, synthesizer))

        request_lines = self.request_lines(operation, has_body)
        request_lines.extend(self.response_lines(response_shape))

        usage = "\n".join([*usage_parts, *request_lines])
        full_example = f"{imports}\n\n{setup}\n\n{usage}"
        return GeneratedExample(
            imports=imports, setup=setup, usage=usage, full_example=full_example
        )

    def type_definitions(
        self, operation: OperationDescriptor, helper: str, has_body: bool
    ) -> list[str]:
        signature = f"{helper}<'{operation.path}', '{operation.method.lower()}'>"
        defs: list[str] = []
        if operation.path_params:
            defs.append(f"type PathParams = {signature}['path']")
        if operation.query_params:
            defs.append(f"type QueryParams = {signature}['query']")
        if has_body:
            defs.append(f"type RequestBody = {signature}['request']")
        return defs

    def params_block(
        self,
        comment: str,
        opening: str,
        params: list[ParameterDescriptor],
        synthesizer: ExampleValueSynthesizer,
    ) -> str:
        lines = [comment, opening]
        for param in params:
            value = synthesizer.synthesize(param.schema, param.name)
            if value is UNSET:
                continue
            lines.append(f"  {param.name}: {render_literal(value)},")
        lines.extend(["}", ""])
        return "\n".join(lines)

    def body_block(
        self, body: FlattenedBody, synthesizer: ExampleValueSynthesizer
    ) -> str:
        lines = ["// Request body"]
        if body.used_first_variant:
            lines.append(
                f"// Note: this body accepts one of {body.variant_count} variants;"
                " only the first is shown"
            )
        lines.append("const body: RequestBody = {")

        for name, schema, is_required in body.fields():
            value = synthesizer.synthesize(schema, name, body.source)
            if value is UNSET:
                continue
            literal = render_literal(value)
            if is_required:
                lines.append(f"  {name}: {literal}, // required")
            else:
                lines.append(f"  // {name}: {literal}, // optional")

        lines.extend(["}", ""])
        return "\n".join(lines)

    def request_lines(self, operation: OperationDescriptor, has_body: bool) -> list[str]:
        lines = [
            f"const response = await client('{operation.path}', {{",
            f"  method: '{operation.method.upper()}',",
        ]
        if operation.path_params:
            lines.append("  path: pathParams,")
        if operation.query_params:
            lines.append("  query: queryParams,")
        if has_body:
            lines.append("  body,")
        lines.append("})")
        return lines

    def response_lines(self, shape: ResponseShape | None) -> list[str]:
        if shape is None:
            return []

        if shape.kind is ResponseKind.ARRAY:
            lines = ["", "// Handle response items", "response.forEach((item) => {"]
            lines.extend(
                _field_logs("item", shape.important_fields, "  ")
                or ["  console.log(item)"]
            )
            lines.append("})")
            return lines

        if shape.kind is ResponseKind.UNION:
            lines = ["", "// Handle response based on structure"]
            for index, variant in enumerate(shape.variants):
                key = variant.property
                condition = f"if ('{key}' in response) {{"
                if index == 0:
                    lines.append(condition)
                else:
                    lines.append(f"}} else {condition}")
                if variant.is_array:
                    lines.append(f"  console.log('{key}:', response.{key}.length)")
                    lines.append(f"  response.{key}.forEach((item) => {{")
                    lines.extend(
                        _field_logs("item", variant.important_fields, "    ")
                        or ["    console.log(item)"]
                    )
                    lines.append("  })")
                else:
                    lines.append(f"  console.log('{key}:', response.{key})")
                    lines.extend(
                        _field_logs(f"response.{key}", variant.important_fields, "  ")
                    )
            lines.append("}")
            return lines

        lines = ["", "// Access response data"]
        if shape.kind is ResponseKind.SINGLE:
            variant = shape.variants[0]
            key = variant.property
            if variant.is_array:
                lines.append(f"response.{key}.forEach((item) => {{")
                lines.extend(
                    _field_logs("item", variant.important_fields, "  ")
                    or ["  console.log(item)"]
                )
                lines.append("})")
            else:
                lines.append(f"console.log('{key}:', response.{key})")
                lines.extend(_field_logs(f"response.{key}", variant.important_fields, ""))
            return lines

        lines.append("console.log(response)")
        return lines


def _field_logs(target: str, fields: tuple[str, ...], indent: str) -> list[str]:
    return [f"{indent}console.log('{f}:', {target}.{f})" for f in fields]


def generate_quickstart(api_name: str, document: Mapping[str, Any], limit: int = 3) -> str:
    """Client setup followed by a few representative calls."""
    lines = [
        f"import {{ createClient, {service_name(api_name)} }} "
        f"from '{CLIENT_PACKAGE}/{package_name(api_name)}'",
        "",
        client_setup(api_name, document),
        "",
        "// Common operations",
    ]

    count = 0
    for path, method, operation in iter_operations(document, QUICKSTART_METHODS):
        if count >= limit:
            break
        count += 1
        lines.append(f"// {operation.get('summary') or path}")
        lines.append(f"const result{count} = await client('{path}', {{")
        lines.append(f"  method: '{method.upper()}',")
        lines.append("})")
        lines.append("")

    return "\n".join(lines)


def render_quickstart_markdown(title: str, description: str, code: str) -> str:
    """Markdown document for the get_quickstart tool."""
    return f"""# Quickstart Guide: {title}

{description}

## Installation

```bash
npm install {CLIENT_PACKAGE}
# or
pnpm add {CLIENT_PACKAGE}
```

## Complete Example

```typescript
{code}
```

## Next Steps

- Use `search_endpoints` to find specific operations
- Use `generate_code_example` to get detailed code for any endpoint
- Check the API documentation for authentication requirements
"""


def render_markdown(operation: OperationDescriptor, example: GeneratedExample) -> str:
    """Markdown document for the generate_code_example tool."""
    return f"""# {operation.method.upper()} {operation.path}

{operation.summary or ''}

{operation.description or ''}

```typescript
{example.full_example}
```

## Breakdown

### 1. Import and Setup
```typescript
{example.imports}

{example.setup}
```

### 2. Make the Request
```typescript
{example.usage}
```
"""
