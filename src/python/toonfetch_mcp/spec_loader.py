"""
Discovery and loading of OpenAPI specification files.

Specs live under a directory tree; each file becomes one API keyed by its
directory prefix and file stem (``hetzner/cloud.json`` -> ``hetzner/cloud``).
"""

import asyncio
import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
import yaml

from .error_handling import SpecLoadError

logger = structlog.get_logger(__name__)

SPEC_SUFFIXES = (".json", ".yaml", ".yml")


@dataclass(frozen=True)
class ApiSpec:
    """A loaded API specification."""

    name: str
    path: str
    document: Mapping[str, Any]

    @property
    def info(self) -> Mapping[str, Any]:
        return self.document.get("info") or {}

    @property
    def title(self) -> str:
        return self.info.get("title") or "Unknown"

    @property
    def version(self) -> str:
        return str(self.info.get("version") or "Unknown")

    @property
    def description(self) -> str:
        return self.info.get("description") or ""

    @property
    def base_url(self) -> str | None:
        servers = self.document.get("servers") or []
        if servers and isinstance(servers[0], Mapping):
            return servers[0].get("url")
        return None


def discover_spec_files(specs_dir: str | Path) -> list[tuple[str, Path]]:
    """Find spec files under ``specs_dir``, returning ``(api_name, path)`` pairs."""
    root = Path(specs_dir)
    if not root.is_dir():
        logger.warning("Specs directory not found", specs_dir=str(root))
        return []

    found: list[tuple[str, Path]] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in SPEC_SUFFIXES:
            continue
        if "package" in path.name:
            continue
        prefix = path.parent.relative_to(root).as_posix()
        name = path.stem if prefix == "." else f"{prefix}/{path.stem}"
        found.append((name, path))
    return found


def load_document(path: str | Path) -> dict[str, Any]:
    """Read and parse one specification file.

    Raises:
        SpecLoadError: If the file cannot be read or is not a mapping
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                document = json.load(f)
            else:
                document = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise SpecLoadError(str(path), str(e)) from e

    if not isinstance(document, dict):
        raise SpecLoadError(str(path), "top-level value is not an object")
    return document


async def load_specs(specs_dir: str | Path) -> dict[str, ApiSpec]:
    """Load every spec under ``specs_dir`` concurrently.

    Files that fail to load are logged and skipped.
    """
    files = discover_spec_files(specs_dir)

    async def _load(name: str, path: Path) -> ApiSpec | None:
        try:
            document = await asyncio.to_thread(load_document, path)
        except SpecLoadError as e:
            logger.warning("Skipping spec", api=name, error=e.message)
            return None
        return ApiSpec(name=name, path=str(path), document=document)

    results = await asyncio.gather(*(_load(name, path) for name, path in files))

    specs = {spec.name: spec for spec in results if spec is not None}
    logger.info("Loaded API specs", count=len(specs), specs_dir=str(specs_dir))
    return specs
