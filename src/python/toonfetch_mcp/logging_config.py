"""
Logging configuration for the ToonFetch MCP server.

Uses structlog on top of stdlib logging so library and server log records
share one pipeline and one output format.
"""

import logging
import sys
from typing import Any, cast

import structlog
from structlog.stdlib import LoggerFactory

from .config import LoggingConfig

_LEVELS = {
    "trace": logging.DEBUG,  # structlog doesn't have TRACE
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(
    level: str = "info",
    format_type: str = "json",
    file_path: str | None = None,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (trace, debug, info, warn, error)
        format_type: Output format (json, pretty, compact)
        file_path: Optional log file path; stderr otherwise
    """
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "pretty":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=file_path is None and sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    elif format_type == "compact":
        processors.append(
            structlog.processors.KeyValueRenderer(
                key_order=["timestamp", "level", "logger", "event"],
                drop_missing=True,
            )
        )
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=cast(Any, processors),
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdout is reserved for tool output; logs go to stderr or a file
    destination: dict[str, Any] = (
        {"filename": file_path} if file_path else {"stream": sys.stderr}
    )
    logging.basicConfig(
        format="%(message)s",
        level=_LEVELS.get(level.lower(), logging.INFO),
        force=True,
        **destination,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    structlog.get_logger("toonfetch_mcp.logging").debug(
        "Logging configured", level=level, format=format_type, file_path=file_path
    )


def setup_from_config(config: LoggingConfig, debug: bool = False) -> None:
    """Configure logging from a LoggingConfig section."""
    configure_logging(
        level="debug" if debug else config.level,
        format_type=config.format,
        file_path=config.file_path,
    )
