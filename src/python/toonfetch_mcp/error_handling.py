"""
Error taxonomy and observability counters for the ToonFetch MCP server.

Lookup failures (unknown API, path, method or schema) are caller errors and
propagate as ToonFetchError subclasses, which the HTTP layer turns into
structured error responses. Schema-content ambiguity (unresolvable
references, oneOf unions, multi-variant responses) is resolved by policy and
only recorded in EngineStats.
"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog
from fastapi import HTTPException, status

logger = structlog.get_logger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for classification and handling."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    SPEC_LOAD = "spec_load"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


_STATUS_BY_CATEGORY = {
    ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCategory.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.SPEC_LOAD: status.HTTP_502_BAD_GATEWAY,
    ErrorCategory.CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCategory.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ToonFetchError(Exception):
    """Base exception for ToonFetch operations."""

    code = "toonfetch_error"
    category = ErrorCategory.INTERNAL

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging and responses."""
        return {
            "error": self.code,
            "message": self.message,
            "category": self.category.value,
            "context": self.context,
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to FastAPI HTTPException with appropriate status code."""
        return HTTPException(
            status_code=_STATUS_BY_CATEGORY.get(
                self.category, status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
            detail=self.to_dict(),
        )


class ApiNotFoundError(ToonFetchError):
    """No loaded document has the requested API name."""

    code = "api_not_found"
    category = ErrorCategory.NOT_FOUND

    def __init__(self, api_name: str, available: list[str] | None = None) -> None:
        available = available or []
        message = f"API not found: {api_name}"
        if available:
            message += f". Available: {', '.join(available)}"
        super().__init__(message, api_name=api_name, available=available)


class PathNotFoundError(ToonFetchError):
    """The document has no path item for the requested path."""

    code = "path_not_found"
    category = ErrorCategory.NOT_FOUND

    def __init__(self, path: str) -> None:
        super().__init__(f"Path not found: {path}", path=path)


class OperationNotFoundError(ToonFetchError):
    """The path item exists but has no operation for the requested method."""

    code = "operation_not_found"
    category = ErrorCategory.NOT_FOUND

    def __init__(self, path: str, method: str, available: list[str]) -> None:
        message = f"Method {method.upper()} not found for {path}"
        if available:
            message += f". Available: {', '.join(available)}"
        super().__init__(message, path=path, method=method, available=available)


class SchemaNotFoundError(ToonFetchError):
    """No entry in components/schemas has the requested name."""

    code = "schema_not_found"
    category = ErrorCategory.NOT_FOUND

    def __init__(self, schema_name: str, available: list[str]) -> None:
        shown = available[:10]
        super().__init__(
            f'Schema "{schema_name}" not found. Available: {", ".join(shown)}',
            schema_name=schema_name,
            available=shown,
        )


class SpecLoadError(ToonFetchError):
    """An OpenAPI document could not be read or parsed."""

    code = "spec_load_failed"
    category = ErrorCategory.SPEC_LOAD

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to load {path}: {reason}", path=path)


class ConfigurationError(ToonFetchError):
    """Invalid or unreadable configuration."""

    code = "configuration_error"
    category = ErrorCategory.CONFIGURATION


@dataclass
class EngineStats:
    """Counters for cache behaviour and schema policy applications."""

    cache_hits: int = 0
    cache_misses: int = 0
    cache_evictions: int = 0
    cache_expirations: int = 0
    unresolved_references: int = 0
    one_of_selections: int = 0
    union_responses: int = 0
    generation_failures: int = 0
    started_at: float = field(default_factory=time.time)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def incr(self, counter: str, amount: int = 1) -> None:
        """Increment a named counter."""
        with self._lock:
            setattr(self, counter, getattr(self, counter) + amount)

    def reset(self) -> None:
        """Reset all counters."""
        with self._lock:
            self.cache_hits = 0
            self.cache_misses = 0
            self.cache_evictions = 0
            self.cache_expirations = 0
            self.unresolved_references = 0
            self.one_of_selections = 0
            self.union_responses = 0
            self.generation_failures = 0
            self.started_at = time.time()

    def to_dict(self) -> dict[str, Any]:
        """Convert stats to dictionary for reporting."""
        return {
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_evictions": self.cache_evictions,
            "cache_expirations": self.cache_expirations,
            "unresolved_references": self.unresolved_references,
            "one_of_selections": self.one_of_selections,
            "union_responses": self.union_responses,
            "generation_failures": self.generation_failures,
            "uptime_seconds": time.time() - self.started_at,
        }
