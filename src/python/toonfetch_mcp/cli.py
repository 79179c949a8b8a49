"""
Command-line interface for the ToonFetch MCP server.

Provides the main entry point for the toonfetch-mcp command.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import NoReturn

import structlog
import uvicorn

from .config import (
    ConfigManager,
    Presets,
    ToonFetchConfig,
    create_default_config,
)
from .engine import ExampleEngine
from .error_handling import ConfigurationError, ToonFetchError
from .logging_config import setup_from_config

logger = structlog.get_logger(__name__)

PRESETS = {
    "default": create_default_config,
    "development": Presets.development,
    "production": Presets.production,
    "testing": Presets.testing,
}


def _load(args: argparse.Namespace) -> ToonFetchConfig:
    """Defaults, then the optional --config file, then the environment."""
    manager = ConfigManager()
    config_path = getattr(args, "config", None)
    if config_path:
        manager.load_from_file(config_path)
    manager.load_from_env()
    if getattr(args, "specs_dir", None):
        manager.config.paths.specs_dir = args.specs_dir
    manager.validate()
    return manager.config


def config_init_command(args: argparse.Namespace) -> None:
    """Initialize configuration file."""
    config_path = Path(args.output)

    if config_path.exists() and not args.force:
        print(f"Error: Configuration file already exists: {config_path}")
        print("Use --force to overwrite")
        sys.exit(1)

    manager = ConfigManager(PRESETS[args.preset]())
    try:
        manager.save_to_file(config_path)
        print(f"✓ Configuration file created: {config_path}")
        print(f"  Preset: {args.preset}")
        print(f"  Format: {config_path.suffix}")
    except ConfigurationError as e:
        print(f"Error: Failed to create configuration file: {e.message}")
        sys.exit(1)


def config_validate_command(args: argparse.Namespace) -> None:
    """Validate configuration file."""
    config_path = Path(args.config)

    if not config_path.exists():
        print(f"Error: Configuration file not found: {config_path}")
        sys.exit(1)

    try:
        manager = ConfigManager()
        manager.load_from_file(config_path)
        manager.validate()
    except ConfigurationError as e:
        print(f"✗ Configuration validation failed: {e.message}")
        sys.exit(1)

    print(f"✓ Configuration is valid: {config_path}")
    if args.verbose:
        config = manager.config
        print("\nConfiguration summary:")
        print(f"  Specs: {config.paths.specs_dir}")
        print(
            f"  Cache: {config.cache.example_size} examples, "
            f"{config.cache.example_ttl_ms} ms TTL"
        )
        print(f"  Log level: {config.logging.level}")


def config_show_command(args: argparse.Namespace) -> None:
    """Show configuration."""
    try:
        config = _load(args)
    except (ConfigurationError, FileNotFoundError) as e:
        print(f"Error: Failed to load configuration: {e}")
        sys.exit(1)

    if args.config:
        print(f"Configuration from: {args.config} (+ environment)")
    else:
        print("Configuration (defaults + environment):")

    if args.format == "json":
        print(json.dumps(asdict(config), indent=2))
        return

    print("\nServer:")
    print(f"  Name: {config.server.name}")
    print(f"  Bind: {config.server.host}:{config.server.port}")
    print(f"  Debug: {config.debug}")

    print("\nSpecs:")
    print(f"  Directory: {config.paths.specs_dir}")
    print(f"  Methods: {', '.join(config.http.methods)}")
    print(f"  Success codes: {', '.join(str(c) for c in config.http.success_codes)}")

    print("\nExample cache:")
    print(f"  Capacity: {config.cache.example_size}")
    print(f"  TTL: {config.cache.example_ttl_ms} ms")

    print("\nLogging:")
    print(f"  Level: {config.logging.level}")
    print(f"  Format: {config.logging.format}")
    print(f"  File: {config.logging.file_path or 'stderr'}")


def list_apis_command(args: argparse.Namespace) -> None:
    """Print the APIs found under the specs directory."""
    config = _load(args)
    setup_from_config(config.logging, debug=config.debug)

    engine = asyncio.run(ExampleEngine.create(config))
    if not engine.apis:
        print(f"No specs found in {config.paths.specs_dir}")
        return

    for spec in engine.apis:
        print(f"{spec.name}\t{spec.title} ({spec.version})")


def example_command(args: argparse.Namespace) -> None:
    """Print the generated code example for one operation."""
    config = _load(args)
    setup_from_config(config.logging, debug=config.debug)

    engine = asyncio.run(ExampleEngine.create(config))
    try:
        _, example = engine.example_for(args.api, args.path, args.method)
    except ToonFetchError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    print(example.full_example)


def serve_command(args: argparse.Namespace) -> NoReturn:
    """Run the ToonFetch MCP server."""
    from .app import create_app

    try:
        config = _load(args)
    except ConfigurationError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    host = args.host or config.server.host
    port = args.port or config.server.port

    setup_from_config(config.logging, debug=config.debug)
    logger.info(
        "Starting ToonFetch MCP server",
        host=host,
        port=port,
        specs_dir=config.paths.specs_dir,
    )

    try:
        uvicorn.run(
            create_app(config),
            host=host,
            port=port,
            log_level="debug" if config.debug else "info",
            access_log=True,
            server_header=False,
            date_header=False,
        )
        sys.exit(0)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
        sys.exit(0)
    except Exception as e:
        logger.error("Server failed to start", error=str(e), exc_info=True)
        sys.exit(1)


def add_config_subcommands(subparsers: argparse._SubParsersAction) -> None:
    """Add configuration management subcommands."""
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management commands",
        description="Manage ToonFetch configuration files and settings",
    )

    config_subparsers = config_parser.add_subparsers(
        dest="config_command",
        help="Configuration commands",
        required=True,
    )

    # config init
    init_parser = config_subparsers.add_parser(
        "init",
        help="Initialize configuration file",
        description="Create a new configuration file with specified preset",
    )
    init_parser.add_argument("output", help="Output configuration file path")
    init_parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default="default",
        help="Configuration preset to use",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing configuration file",
    )
    init_parser.set_defaults(func=config_init_command)

    # config validate
    validate_parser = config_subparsers.add_parser(
        "validate",
        help="Validate configuration file",
        description="Check configuration file for errors and consistency",
    )
    validate_parser.add_argument("config", help="Configuration file to validate")
    validate_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show configuration summary",
    )
    validate_parser.set_defaults(func=config_validate_command)

    # config show
    show_parser = config_subparsers.add_parser(
        "show",
        help="Show current configuration",
        description="Display current configuration from file or environment",
    )
    show_parser.add_argument(
        "--config",
        "-c",
        help="Configuration file to show (default: environment + defaults)",
    )
    show_parser.add_argument(
        "--format",
        choices=["pretty", "json"],
        default="pretty",
        help="Output format",
    )
    show_parser.set_defaults(func=config_show_command)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", "-c", help="Configuration file to use")
    parser.add_argument(
        "--specs-dir", help="Directory containing OpenAPI specifications"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toonfetch-mcp",
        description="ToonFetch MCP server for OpenAPI exploration",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=False,  # Default to serve command if no subcommand given
    )

    add_config_subcommands(subparsers)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the ToonFetch MCP server",
        description="Run the ToonFetch MCP server with specified configuration",
    )
    _add_common_arguments(serve_parser)
    serve_parser.add_argument("--host", help="Host to bind to (default: config)")
    serve_parser.add_argument(
        "--port", type=int, help="Port to bind to (default: config)"
    )
    serve_parser.set_defaults(func=serve_command)

    list_parser = subparsers.add_parser(
        "list-apis",
        help="List loaded API specifications",
        description="Load the specs directory and print every API found",
    )
    _add_common_arguments(list_parser)
    list_parser.set_defaults(func=list_apis_command)

    example_parser = subparsers.add_parser(
        "example",
        help="Print a code example for one endpoint",
        description="Generate the TypeScript example for an API operation",
    )
    _add_common_arguments(example_parser)
    example_parser.add_argument("api", help='API name (e.g., "hetzner/cloud")')
    example_parser.add_argument("path", help='Endpoint path (e.g., "/servers")')
    example_parser.add_argument("method", help="HTTP method")
    example_parser.set_defaults(func=example_command)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the ToonFetch MCP server CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # If no command is given, default to serve
    if not hasattr(args, "func"):
        args = parser.parse_args(["serve", *(argv if argv is not None else sys.argv[1:])])

    try:
        args.func(args)
    except ToonFetchError as e:
        print(f"Error: {e.message}")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
