"""
Pydantic models for the ToonFetch MCP API.

Defines request/response schemas for the tool and prompt endpoints.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]


def _upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


# Tool request models
class ApiRequest(BaseModel):
    """Request naming a single loaded API."""

    api_name: str = Field(
        ...,
        description='API name (e.g., "hetzner/cloud", "ory/kratos")',
        min_length=1,
    )


class SearchEndpointsRequest(ApiRequest):
    """Request for endpoint search."""

    query: str | None = Field(
        None, description="Search query for path/summary/operationId"
    )
    method: HttpMethod | None = Field(None, description="Filter by HTTP method")
    limit: int = Field(20, description="Maximum results to return", ge=1, le=100)

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, value: Any) -> Any:
        return _upper(value)


class EndpointRequest(ApiRequest):
    """Request identifying one operation."""

    path: str = Field(..., description='Endpoint path (e.g., "/users")', min_length=1)
    method: HttpMethod = Field(..., description="HTTP method")

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, value: Any) -> Any:
        return _upper(value)


class SchemaRequest(ApiRequest):
    """Request for a component schema."""

    schema_name: str = Field(
        ..., description="Schema name from components/schemas", min_length=1
    )


class ExplorePromptRequest(ApiRequest):
    """Request for the explore-api prompt."""

    focus: str | None = Field(
        None, description='Focus area (e.g., "authentication", "users")'
    )


# Tool response models
class ApiSummary(BaseModel):
    """Catalog entry for a loaded API."""

    name: str
    title: str
    version: str
    description: str = ""


class ListApisResponse(BaseModel):
    apis: list[ApiSummary]


class ApiInfo(BaseModel):
    """Detailed API metadata."""

    title: str | None = None
    version: str | None = None
    description: str | None = None
    servers: list[dict[str, Any]] = Field(default_factory=list)
    tags: list[dict[str, Any]] = Field(default_factory=list)


class EndpointSummary(BaseModel):
    """Search hit for one operation."""

    path: str
    method: str
    operation_id: str | None = Field(None, alias="operationId")
    summary: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class SearchEndpointsResponse(BaseModel):
    results: list[EndpointSummary]


class UsageExample(BaseModel):
    description: str = "Copy-paste ready TypeScript code"
    code: str


class EndpointDetailsResponse(BaseModel):
    """Operation object plus a generated usage example."""

    endpoint: dict[str, Any]
    usage_example: UsageExample


class SchemaDetailsResponse(BaseModel):
    schema_name: str
    definition: dict[str, Any]


class CodeExampleResponse(BaseModel):
    """Generated code example, whole and in fragments."""

    markdown: str
    imports: str
    setup: str
    usage: str
    full_example: str


class QuickstartResponse(BaseModel):
    markdown: str
    code: str


# Prompt models
class PromptContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class PromptMessage(BaseModel):
    role: Literal["user", "assistant"] = "user"
    content: PromptContent


class PromptResponse(BaseModel):
    description: str
    messages: list[PromptMessage]


class PromptInfo(BaseModel):
    name: str
    description: str
    arguments: list[str]


class PromptList(BaseModel):
    prompts: list[PromptInfo]


# Server models
class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")


class RootEndpointResponse(BaseModel):
    """Response model for root endpoint API discovery."""

    service: str = Field(..., description="Service identifier")
    title: str = Field(..., description="Human-readable service title")
    version: str = Field(..., description="API version")
    description: str = Field(..., description="Service description")
    mcp: dict[str, Any] = Field(..., description="MCP protocol information")
    endpoints: dict[str, str] = Field(..., description="Available endpoints")
