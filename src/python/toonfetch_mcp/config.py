"""Configuration management for the ToonFetch MCP server.

Provides centralized configuration with support for multiple sources
(files, environment variables, programmatic settings) and formats
(JSON, YAML, TOML).
"""

import json
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml
from structlog import get_logger

from .error_handling import ConfigurationError

logger = get_logger(__name__)


@dataclass
class CacheConfig:
    """Configuration for the generated example cache."""

    example_size: int = 100
    example_ttl_ms: int = 5 * 60 * 1000


@dataclass
class PathsConfig:
    """File system locations."""

    specs_dir: str = "openapi-specs"


@dataclass
class ServerInfoConfig:
    """Server metadata and bind address."""

    name: str = "toonfetch-mcp"
    version: str = "0.3.0"
    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class HttpConfig:
    """HTTP vocabulary used when walking OpenAPI path items."""

    methods: list[str] = field(
        default_factory=lambda: [
            "get",
            "post",
            "put",
            "delete",
            "patch",
            "options",
            "head",
        ]
    )
    success_codes: list[int] = field(default_factory=lambda: [200, 201, 202, 204])


@dataclass
class SchemaConfig:
    """Schema analysis settings."""

    # Fixed list; the generated console output only surfaces these.
    identifier_fields: list[str] = field(
        default_factory=lambda: ["id", "uuid", "name", "slug"]
    )
    envelope_fields: list[str] = field(
        default_factory=lambda: ["links", "meta", "_links", "_meta", "pagination"]
    )
    max_depth: int = 32


@dataclass
class ExampleValuesConfig:
    """Literals used by the example value synthesizer."""

    email: str = "user@example.com"
    url: str = "https://example.com"
    uuid: str = "123e4567-e89b-12d3-a456-426614174000"
    identifier: str = "example-id"
    name: str = "Example Name"
    token: str = "example_token_123"
    string: str = "example_value"
    array_item: str = "example"
    number: int = 10
    int64: int = 1
    boolean: bool = True


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "info"
    format: str = "json"  # json, compact, pretty
    file_path: str | None = None


@dataclass
class ToonFetchConfig:
    """Main configuration container for the ToonFetch MCP server."""

    debug: bool = False
    cache: CacheConfig = field(default_factory=CacheConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    server: ServerInfoConfig = field(default_factory=ServerInfoConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    schemas: SchemaConfig = field(default_factory=SchemaConfig)
    example_values: ExampleValuesConfig = field(default_factory=ExampleValuesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigManager:
    """Manages loading, merging, and validation of configuration."""

    def __init__(self, config: ToonFetchConfig | None = None):
        """Initialize configuration manager.

        Args:
            config: Initial configuration. Uses default if None.
        """
        self._config = config or ToonFetchConfig()
        self._sources: list[str] = []

    @property
    def config(self) -> ToonFetchConfig:
        """Get current configuration."""
        return self._config

    @property
    def sources(self) -> list[str]:
        """Names of the sources merged so far, in order."""
        return list(self._sources)

    def load_from_file(self, path: str | Path) -> None:
        """Load configuration from file.

        Args:
            path: Path to configuration file (JSON, YAML, or TOML)

        Raises:
            FileNotFoundError: If file doesn't exist
            ConfigurationError: If file format is unsupported or invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        logger.info("Loading configuration from file", path=str(path))

        try:
            with open(path, encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                elif path.suffix.lower() in (".yaml", ".yml"):
                    data = yaml.safe_load(f) or {}
                elif path.suffix.lower() == ".toml":
                    data = tomllib.loads(f.read())
                else:
                    raise ConfigurationError(
                        f"Unsupported configuration file format: {path.suffix}"
                    )

            self._merge_config_data(data)
            self._sources.append(f"file:{path}")

        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(
                "Failed to load configuration file", path=str(path), error=str(e)
            )
            raise ConfigurationError(
                f"Failed to load configuration from {path}: {e}"
            ) from e

    def load_from_env(self, prefix: str = "TOONFETCH_") -> None:
        """Load configuration from environment variables.

        Args:
            prefix: Environment variable prefix
        """
        env_config: dict[str, Any] = {}

        if value := os.getenv(f"{prefix}DEBUG"):
            env_config["debug"] = self._parse_bool(value)

        if value := os.getenv(f"{prefix}CACHE_SIZE"):
            env_config.setdefault("cache", {})["example_size"] = int(value)
        if value := os.getenv(f"{prefix}CACHE_TTL"):
            env_config.setdefault("cache", {})["example_ttl_ms"] = int(value)

        if value := os.getenv(f"{prefix}SPECS_DIR"):
            env_config.setdefault("paths", {})["specs_dir"] = value

        if value := os.getenv(f"{prefix}HOST"):
            env_config.setdefault("server", {})["host"] = value
        if value := os.getenv(f"{prefix}PORT"):
            env_config.setdefault("server", {})["port"] = int(value)

        if value := os.getenv(f"{prefix}LOG_LEVEL"):
            env_config.setdefault("logging", {})["level"] = value.lower()
        if value := os.getenv(f"{prefix}LOG_FORMAT"):
            env_config.setdefault("logging", {})["format"] = value.lower()
        if value := os.getenv(f"{prefix}LOG_FILE"):
            env_config.setdefault("logging", {})["file_path"] = value

        if env_config:
            logger.info("Loading configuration from environment", prefix=prefix)
            self._merge_config_data(env_config)
            self._sources.append("environment")

    def load_from_dict(self, data: dict[str, Any], source_name: str = "dict") -> None:
        """Load configuration from dictionary.

        Args:
            data: Configuration data
            source_name: Name for tracking source
        """
        logger.info("Loading configuration from dictionary", source=source_name)
        self._merge_config_data(data)
        self._sources.append(source_name)

    def save_to_file(self, path: str | Path) -> None:
        """Save current configuration to file.

        Args:
            path: Output file path
        """
        path = Path(path)
        logger.info("Saving configuration to file", path=str(path))

        data = asdict(self._config)
        # TOML has no null
        if data["logging"]["file_path"] is None:
            del data["logging"]["file_path"]

        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            if path.suffix.lower() == ".toml":
                import tomli_w

                with open(path, "wb") as f:
                    tomli_w.dump(data, f)
            else:
                with open(path, "w", encoding="utf-8") as f:
                    if path.suffix.lower() == ".json":
                        json.dump(data, f, indent=2)
                    elif path.suffix.lower() in (".yaml", ".yml"):
                        yaml.dump(data, f, default_flow_style=False, indent=2)
                    else:
                        raise ConfigurationError(
                            f"Unsupported output format: {path.suffix}"
                        )

        except ConfigurationError:
            raise
        except Exception as e:
            logger.error("Failed to save configuration", path=str(path), error=str(e))
            raise ConfigurationError(
                f"Failed to save configuration to {path}: {e}"
            ) from e

    def validate(self) -> None:
        """Validate current configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config = self._config

        if config.cache.example_size <= 0:
            raise ConfigurationError("cache.example_size must be greater than 0")
        if config.cache.example_ttl_ms < 0:
            raise ConfigurationError("cache.example_ttl_ms cannot be negative")

        if not config.paths.specs_dir:
            raise ConfigurationError("paths.specs_dir cannot be empty")

        if not 0 < config.server.port < 65536:
            raise ConfigurationError("server.port must be between 1 and 65535")

        if not config.http.methods:
            raise ConfigurationError("http.methods cannot be empty")
        if not config.http.success_codes:
            raise ConfigurationError("http.success_codes cannot be empty")

        if config.schemas.max_depth <= 0:
            raise ConfigurationError("schemas.max_depth must be greater than 0")

        valid_log_levels = {"trace", "debug", "info", "warn", "error"}
        if config.logging.level not in valid_log_levels:
            raise ConfigurationError(f"log level must be one of: {valid_log_levels}")

        valid_log_formats = {"json", "compact", "pretty"}
        if config.logging.format not in valid_log_formats:
            raise ConfigurationError(
                f"log format must be one of: {valid_log_formats}"
            )

    def _merge_config_data(self, data: dict[str, Any]) -> None:
        """Merge configuration data into current config."""
        for section_name, section_data in data.items():
            if not hasattr(self._config, section_name):
                logger.warning("Unknown configuration section", section=section_name)
                continue

            section = getattr(self._config, section_name)
            if not isinstance(section_data, dict):
                setattr(self._config, section_name, section_data)
                continue

            for key, value in section_data.items():
                if hasattr(section, key):
                    setattr(section, key, value)
                else:
                    logger.warning(
                        "Unknown configuration key", section=section_name, key=key
                    )

    @staticmethod
    def _parse_bool(value: str) -> bool:
        """Parse boolean value from string."""
        return value.lower() in ("true", "1", "yes", "on")


class Presets:
    """Pre-defined configuration presets."""

    @staticmethod
    def development() -> ToonFetchConfig:
        """Configuration preset for development."""
        config = ToonFetchConfig(debug=True)
        config.logging.level = "debug"
        config.logging.format = "pretty"
        return config

    @staticmethod
    def production() -> ToonFetchConfig:
        """Configuration preset for production."""
        config = ToonFetchConfig()
        config.logging.level = "info"
        config.logging.format = "json"
        config.server.host = "0.0.0.0"
        return config

    @staticmethod
    def testing() -> ToonFetchConfig:
        """Configuration preset for testing."""
        config = ToonFetchConfig(debug=True)
        config.logging.level = "debug"
        config.cache.example_size = 10
        config.cache.example_ttl_ms = 1000
        return config


def load_config(
    path: str | Path | None = None, prefix: str = "TOONFETCH_"
) -> ToonFetchConfig:
    """Load configuration from defaults, an optional file, then the environment.

    Args:
        path: Optional configuration file
        prefix: Environment variable prefix

    Returns:
        Validated configuration
    """
    manager = ConfigManager()
    if path is not None:
        manager.load_from_file(path)
    manager.load_from_env(prefix)
    manager.validate()
    return manager.config


def create_default_config() -> ToonFetchConfig:
    """Create default configuration (convenience function)."""
    return ToonFetchConfig()
