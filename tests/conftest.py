"""
Global pytest configuration and fixtures.

Shared fixtures: the sample OpenAPI document, deterministic clocks, an
engine with the sample document registered, and an in-process HTTP client.
"""

import copy
import json
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx
import pytest
import structlog

from toonfetch_mcp.app import create_app
from toonfetch_mcp.config import ToonFetchConfig
from toonfetch_mcp.engine import ExampleEngine
from toonfetch_mcp.schema.resolver import SchemaResolver

FIXTURES_DIR = Path(__file__).parent / "fixtures"
SAMPLE_API = "sample/api"
FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=UTC)

with open(FIXTURES_DIR / "sample-api.json", encoding="utf-8") as _f:
    _SAMPLE_DOCUMENT: dict[str, Any] = json.load(_f)


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture(autouse=True, scope="session")
def stdlib_logging():
    """Send structlog events through stdlib logging so pytest captures them."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["level", "event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """A fresh copy of the sample OpenAPI document."""
    return copy.deepcopy(_SAMPLE_DOCUMENT)


@pytest.fixture
def resolver(sample_document: dict[str, Any]) -> SchemaResolver:
    return SchemaResolver(sample_document)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def engine(sample_document: dict[str, Any], clock: FakeClock) -> ExampleEngine:
    """Engine with the sample document registered as ``sample/api``."""
    engine = ExampleEngine(ToonFetchConfig(), cache_clock=clock, now=lambda: FIXED_NOW)
    engine.add_document(SAMPLE_API, sample_document, path="tests/fixtures/sample-api.json")
    return engine


@pytest.fixture
async def client(engine: ExampleEngine) -> AsyncIterator[httpx.AsyncClient]:
    """In-process client for the FastAPI app."""
    app = create_app(engine=engine)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
