"""
MCP Prompts implementation - canned workflows for exploring an API.

Each prompt renders a single user message from the loaded document's
metadata; the client model then drives the tools.
"""

import structlog
from fastapi import APIRouter, Depends

from .codegen import CLIENT_PACKAGE
from .engine import ExampleEngine
from .error_handling import ToonFetchError
from .models import (
    ApiRequest,
    EndpointRequest,
    ExplorePromptRequest,
    PromptContent,
    PromptInfo,
    PromptList,
    PromptMessage,
    PromptResponse,
)
from .tools import get_engine

logger = structlog.get_logger(__name__)
router = APIRouter()

PROMPTS = [
    PromptInfo(
        name="quickstart",
        description="Get started with an API - installation, setup, and common examples",
        arguments=["api_name"],
    ),
    PromptInfo(
        name="implement-endpoint",
        description="Generate implementation guide for a specific endpoint with full code",
        arguments=["api_name", "path", "method"],
    ),
    PromptInfo(
        name="explore-api",
        description="Interactive guide to explore an API with focus on specific area",
        arguments=["api_name", "focus"],
    ),
]


def _user_prompt(description: str, text: str) -> PromptResponse:
    return PromptResponse(
        description=description,
        messages=[PromptMessage(role="user", content=PromptContent(text=text))],
    )


@router.get("/", response_model=PromptList)
async def list_prompts() -> PromptList:
    """
    List available MCP prompts.
    """
    logger.info("list_prompts")
    return PromptList(prompts=PROMPTS)


@router.post("/quickstart", response_model=PromptResponse)
async def quickstart_prompt(
    request: ApiRequest, engine: ExampleEngine = Depends(get_engine)
) -> PromptResponse:
    """
    Prompt for a quickstart guide covering setup and common use cases.
    """
    logger.info("quickstart_prompt", api=request.api_name)

    try:
        spec = engine.get_api(request.api_name)
    except ToonFetchError as e:
        raise e.to_http_exception() from e

    text = f"""Generate a quickstart guide for the {spec.info.get("title") or spec.name} API using {CLIENT_PACKAGE}. Include:
1. Installation instructions
2. Basic client setup with authentication
3. 3-5 common use cases with complete code examples
4. Error handling best practices
5. Links to relevant documentation

API: {spec.name}
Base URL: {spec.base_url or "Not specified"}
Description: {spec.description or "No description available"}"""

    return _user_prompt(PROMPTS[0].description, text)


@router.post("/implement-endpoint", response_model=PromptResponse)
async def implement_endpoint_prompt(
    request: EndpointRequest, engine: ExampleEngine = Depends(get_engine)
) -> PromptResponse:
    """
    Prompt for a full implementation guide of one endpoint.
    """
    logger.info(
        "implement_endpoint_prompt",
        api=request.api_name,
        path=request.path,
        method=request.method,
    )

    try:
        operation = engine.get_operation(request.api_name, request.path, request.method)
    except ToonFetchError as e:
        raise e.to_http_exception() from e

    text = f"""Generate a complete implementation guide for this endpoint:

**API**: {request.api_name}
**Endpoint**: {request.method} {request.path}
**Summary**: {operation.summary or "No summary"}
**Description**: {operation.description or "No description"}

Please provide:
1. Complete TypeScript code example using {CLIENT_PACKAGE}
2. Explanation of all required and optional parameters
3. Expected response structure
4. Common error cases and how to handle them
5. Best practices for using this endpoint

Use the `generate_code_example` tool to get the initial code, then enhance it with explanations."""

    return _user_prompt(PROMPTS[1].description, text)


@router.post("/explore-api", response_model=PromptResponse)
async def explore_api_prompt(
    request: ExplorePromptRequest, engine: ExampleEngine = Depends(get_engine)
) -> PromptResponse:
    """
    Prompt for an exploration of an API, optionally around a focus area.
    """
    logger.info("explore_api_prompt", api=request.api_name, focus=request.focus)

    try:
        spec = engine.get_api(request.api_name)
    except ToonFetchError as e:
        raise e.to_http_exception() from e

    focus = request.focus or "general overview"
    tags = ", ".join(
        str(t.get("name")) for t in spec.document.get("tags") or [] if isinstance(t, dict)
    )

    text = f"""Explore the {spec.info.get("title") or spec.name} API with focus on: "{focus}"

Please provide an interactive exploration that includes:
1. API overview and key features
2. Most commonly used endpoints related to "{focus}"
3. Authentication and setup requirements
4. Code examples for key operations
5. Recommended workflows and patterns

**API Information:**
- Name: {spec.name}
- Version: {spec.version}
- Description: {spec.description or "No description"}
- Base URL: {spec.base_url or "Not specified"}
- Available tags: {tags or "None"}

Use `search_endpoints` to find relevant endpoints, then `get_endpoint_details` for specific examples."""

    return _user_prompt(PROMPTS[2].description, text)
