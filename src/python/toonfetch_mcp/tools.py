"""
MCP Tools implementation - the API introspection and code example endpoints.

Each tool takes a pydantic request body and returns a pydantic response.
Lookup failures surface as structured 404 errors.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status

from .codegen import render_markdown, render_quickstart_markdown
from .engine import ExampleEngine
from .error_handling import ToonFetchError
from .models import (
    ApiInfo,
    ApiRequest,
    ApiSummary,
    CodeExampleResponse,
    EndpointDetailsResponse,
    EndpointRequest,
    EndpointSummary,
    ErrorResponse,
    ListApisResponse,
    QuickstartResponse,
    SchemaDetailsResponse,
    SchemaRequest,
    SearchEndpointsRequest,
    SearchEndpointsResponse,
    UsageExample,
)
from .operations import search_endpoints as find_endpoints

logger = structlog.get_logger(__name__)
router = APIRouter()

# SDK-specific code samples carried as OpenAPI extensions
CODE_SAMPLE_EXTENSIONS = ("x-codeSamples", "x-code-samples")


def get_engine(request: Request) -> ExampleEngine:
    """FastAPI dependency for the example engine."""
    engine: ExampleEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=ErrorResponse(
                error="engine_unavailable", message="Specs are not loaded yet"
            ).model_dump(),
        )
    return engine


def _internal_error(error: str, message: str, e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=ErrorResponse(error=error, message=f"{message}: {e!s}").model_dump(),
    )


def strip_code_samples(operation: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in operation.items() if k not in CODE_SAMPLE_EXTENSIONS}


@router.post("/list_apis", response_model=ListApisResponse)
async def list_apis(engine: ExampleEngine = Depends(get_engine)) -> ListApisResponse:
    """
    List all available API specifications with their metadata.
    """
    logger.info("list_apis")

    return ListApisResponse(
        apis=[
            ApiSummary(
                name=spec.name,
                title=spec.title,
                version=spec.version,
                description=spec.description,
            )
            for spec in engine.apis
        ]
    )


@router.post("/get_api_info", response_model=ApiInfo)
async def get_api_info(
    request: ApiRequest, engine: ExampleEngine = Depends(get_engine)
) -> ApiInfo:
    """
    Get detailed information about a specific API.

    Returns title, version, description, servers and tags.
    """
    logger.info("get_api_info", api=request.api_name)

    try:
        spec = engine.get_api(request.api_name)
        return ApiInfo(
            title=spec.info.get("title"),
            version=spec.info.get("version"),
            description=spec.info.get("description"),
            servers=list(spec.document.get("servers") or []),
            tags=list(spec.document.get("tags") or []),
        )

    except ToonFetchError as e:
        raise e.to_http_exception() from e
    except Exception as e:
        logger.error("get_api_info_error", error=str(e), api=request.api_name)
        raise _internal_error("api_info_failed", "API info lookup failed", e) from e


@router.post("/search_endpoints", response_model=SearchEndpointsResponse)
async def search_endpoints(
    request: SearchEndpointsRequest, engine: ExampleEngine = Depends(get_engine)
) -> SearchEndpointsResponse:
    """
    Search for API endpoints by query and method.

    The query matches path, summary or operationId, case-insensitively.
    """
    logger.info(
        "search_endpoints",
        api=request.api_name,
        query=request.query,
        method=request.method,
        limit=request.limit,
    )

    try:
        spec = engine.get_api(request.api_name)
        hits = find_endpoints(
            spec.document,
            query=request.query,
            method=request.method,
            limit=request.limit,
            methods=engine.config.http.methods,
        )
        return SearchEndpointsResponse(
            results=[EndpointSummary.model_validate(hit) for hit in hits]
        )

    except ToonFetchError as e:
        raise e.to_http_exception() from e
    except Exception as e:
        logger.error("search_endpoints_error", error=str(e), api=request.api_name)
        raise _internal_error("search_failed", "Endpoint search failed", e) from e


@router.post("/get_endpoint_details", response_model=EndpointDetailsResponse)
async def get_endpoint_details(
    request: EndpointRequest, engine: ExampleEngine = Depends(get_engine)
) -> EndpointDetailsResponse:
    """
    Get complete details and a usage example for a specific endpoint.

    SDK code sample extensions are removed from the returned operation.
    """
    logger.info(
        "get_endpoint_details",
        api=request.api_name,
        path=request.path,
        method=request.method,
    )

    try:
        operation, example = engine.example_for(
            request.api_name, request.path, request.method
        )
        return EndpointDetailsResponse(
            endpoint=strip_code_samples(dict(operation.raw)),
            usage_example=UsageExample(code=example.full_example),
        )

    except ToonFetchError as e:
        raise e.to_http_exception() from e
    except Exception as e:
        logger.error(
            "get_endpoint_details_error",
            error=str(e),
            api=request.api_name,
            path=request.path,
        )
        raise _internal_error(
            "endpoint_details_failed", "Endpoint lookup failed", e
        ) from e


@router.post("/get_schema_details", response_model=SchemaDetailsResponse)
async def get_schema_details(
    request: SchemaRequest, engine: ExampleEngine = Depends(get_engine)
) -> SchemaDetailsResponse:
    """
    Get the definition of a schema from components/schemas.
    """
    logger.info("get_schema_details", api=request.api_name, schema=request.schema_name)

    try:
        schema = engine.get_schema(request.api_name, request.schema_name)
        return SchemaDetailsResponse(
            schema_name=request.schema_name, definition=dict(schema)
        )

    except ToonFetchError as e:
        raise e.to_http_exception() from e
    except Exception as e:
        logger.error("get_schema_details_error", error=str(e), api=request.api_name)
        raise _internal_error("schema_lookup_failed", "Schema lookup failed", e) from e


@router.post("/generate_code_example", response_model=CodeExampleResponse)
async def generate_code_example(
    request: EndpointRequest, engine: ExampleEngine = Depends(get_engine)
) -> CodeExampleResponse:
    """
    Generate a complete TypeScript code example for an endpoint.

    Returns a markdown document with the full example and a breakdown,
    plus the individual fragments.
    """
    logger.info(
        "generate_code_example",
        api=request.api_name,
        path=request.path,
        method=request.method,
    )

    try:
        operation, example = engine.example_for(
            request.api_name, request.path, request.method
        )
        return CodeExampleResponse(
            markdown=render_markdown(operation, example),
            imports=example.imports,
            setup=example.setup,
            usage=example.usage,
            full_example=example.full_example,
        )

    except ToonFetchError as e:
        raise e.to_http_exception() from e
    except Exception as e:
        logger.error(
            "generate_code_example_error",
            error=str(e),
            api=request.api_name,
            path=request.path,
        )
        raise _internal_error(
            "code_generation_failed", "Code generation failed", e
        ) from e


@router.post("/get_quickstart", response_model=QuickstartResponse)
async def get_quickstart(
    request: ApiRequest, engine: ExampleEngine = Depends(get_engine)
) -> QuickstartResponse:
    """
    Generate a quickstart guide with common operations for an API.
    """
    logger.info("get_quickstart", api=request.api_name)

    try:
        spec = engine.get_api(request.api_name)
        code = engine.quickstart(request.api_name)
        return QuickstartResponse(
            markdown=render_quickstart_markdown(
                spec.info.get("title") or spec.name, spec.description, code
            ),
            code=code,
        )

    except ToonFetchError as e:
        raise e.to_http_exception() from e
    except Exception as e:
        logger.error("get_quickstart_error", error=str(e), api=request.api_name)
        raise _internal_error("quickstart_failed", "Quickstart generation failed", e) from e
