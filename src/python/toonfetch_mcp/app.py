"""
FastAPI application for the ToonFetch MCP server.

Provides Model Context Protocol endpoints for OpenAPI introspection and
TypeScript code example generation.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import ToonFetchConfig, load_config
from .engine import ExampleEngine
from .logging_config import setup_from_config
from .models import ErrorResponse, RootEndpointResponse
from .prompts import router as prompts_router
from .tools import router as tools_router

logger = structlog.get_logger(__name__)

MCP_PROTOCOL_VERSION = "2024-11-05"


def create_app(
    config: ToonFetchConfig | None = None, engine: ExampleEngine | None = None
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Server configuration; loaded from the environment when omitted
        engine: Pre-built engine; when given, specs are not loaded at startup

    Returns:
        Configured FastAPI application
    """
    config = config or (engine.config if engine is not None else load_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        if engine is None:
            setup_from_config(config.logging, debug=config.debug)

        logger.info("Starting ToonFetch MCP server", version=config.server.version)

        app.state.engine = engine or await ExampleEngine.create(config)
        logger.info(
            "ToonFetch MCP server started successfully",
            apis=len(app.state.engine.apis),
        )

        yield

        logger.info("Shutting down ToonFetch MCP server")
        app.state.engine.shutdown()
        logger.info("ToonFetch MCP server shutdown complete")

    app = FastAPI(
        title="ToonFetch MCP API",
        description="Model Context Protocol API for OpenAPI exploration and code examples",
        version=config.server.version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.config = config
    # Available before startup so in-process clients work without lifespan
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler."""
        logger.error("Unhandled exception", exc_info=exc, path=request.url.path)

        error_response = ErrorResponse(
            error="internal_server_error", message="An internal server error occurred"
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response.model_dump(),
        )

    @app.get("/", response_model=RootEndpointResponse)
    async def root() -> RootEndpointResponse:
        """Root endpoint for API discovery and metadata."""
        return RootEndpointResponse(
            service=config.server.name,
            title="ToonFetch MCP API",
            version=config.server.version,
            description="Model Context Protocol API for OpenAPI exploration and code examples",
            mcp={
                "protocol_version": MCP_PROTOCOL_VERSION,
                "capabilities": ["tools", "prompts"],
            },
            endpoints={
                "health": "/health",
                "mcp_tools": "/mcp/tools",
                "mcp_prompts": "/mcp/prompts",
                "docs": "/docs",
            },
        )

    @app.get("/health")
    async def health_check(request: Request) -> dict[str, Any]:
        """Health check endpoint."""
        current: ExampleEngine | None = request.app.state.engine
        return {
            "status": "healthy" if current is not None else "starting",
            "version": config.server.version,
            **(current.health() if current is not None else {}),
        }

    app.include_router(tools_router, prefix="/mcp/tools", tags=["Tools"])
    app.include_router(prompts_router, prefix="/mcp/prompts", tags=["Prompts"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # For development
    uvicorn.run(
        "toonfetch_mcp.app:app",
        host="127.0.0.1",
        port=8080,
        reload=True,
        log_level="info",
    )
