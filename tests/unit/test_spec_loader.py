"""
Unit tests for spec discovery and loading.
"""

import json
from pathlib import Path

import pytest
import yaml

from toonfetch_mcp.error_handling import SpecLoadError
from toonfetch_mcp.spec_loader import (
    ApiSpec,
    discover_spec_files,
    load_document,
    load_specs,
)

MINIMAL = {
    "openapi": "3.0.0",
    "info": {"title": "Cloud", "version": "1.0.0"},
    "servers": [{"url": "https://api.cloud.test"}],
    "paths": {},
}


@pytest.fixture
def specs_dir(tmp_path: Path) -> Path:
    (tmp_path / "hetzner").mkdir()
    (tmp_path / "hetzner" / "cloud.json").write_text(json.dumps(MINIMAL))
    (tmp_path / "hetzner" / "package.json").write_text(json.dumps({"name": "x"}))
    (tmp_path / "ory").mkdir()
    (tmp_path / "ory" / "kratos.yaml").write_text(
        yaml.safe_dump({**MINIMAL, "info": {"title": "Kratos", "version": "v1"}})
    )
    (tmp_path / "ory" / "README.md").write_text("# not a spec")
    (tmp_path / "broken").mkdir()
    (tmp_path / "broken" / "bad.json").write_text("{")
    return tmp_path


def test_discover_skips_package_files(specs_dir: Path):
    names = [name for name, _ in discover_spec_files(specs_dir)]

    assert names == ["broken/bad", "hetzner/cloud", "ory/kratos"]


def test_discover_missing_directory(tmp_path: Path):
    assert discover_spec_files(tmp_path / "nowhere") == []


async def test_load_specs_skips_unparseable(specs_dir: Path):
    specs = await load_specs(specs_dir)

    assert sorted(specs) == ["hetzner/cloud", "ory/kratos"]
    assert specs["ory/kratos"].title == "Kratos"
    assert specs["hetzner/cloud"].base_url == "https://api.cloud.test"


async def test_load_specs_skips_undecodable(tmp_path: Path):
    (tmp_path / "good.json").write_text(json.dumps(MINIMAL))
    (tmp_path / "bad.yaml").write_bytes(b"openapi: 3.0.0\ninfo:\n  title: Caf\xe9\n")

    specs = await load_specs(tmp_path)

    assert list(specs) == ["good"]
    with pytest.raises(SpecLoadError):
        load_document(tmp_path / "bad.yaml")


def test_load_document_rejects_non_object(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")

    with pytest.raises(SpecLoadError) as exc_info:
        load_document(path)

    assert exc_info.value.code == "spec_load_failed"


def test_api_spec_defaults():
    spec = ApiSpec(name="x/y", path="<memory>", document={})

    assert spec.title == "Unknown"
    assert spec.version == "Unknown"
    assert spec.description == ""
    assert spec.base_url is None
