"""
Integration tests for server startup.

Runs the real lifespan: specs are discovered and loaded from a directory
on disk, served over HTTP, and released on shutdown.
"""

import json
from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from toonfetch_mcp import app as app_module
from toonfetch_mcp.config import ToonFetchConfig

pytestmark = pytest.mark.integration


@pytest.fixture
def specs_dir(tmp_path: Path, sample_document) -> Path:
    (tmp_path / "sample").mkdir()
    (tmp_path / "sample" / "api.json").write_text(json.dumps(sample_document))

    (tmp_path / "other").mkdir()
    (tmp_path / "other" / "api.yaml").write_text(yaml.safe_dump(sample_document))

    # Not a spec, and not loadable
    (tmp_path / "sample" / "package.json").write_text("{}")
    (tmp_path / "other" / "broken.yaml").write_text("openapi: [unterminated\n")
    return tmp_path


@pytest.fixture
def server_app(specs_dir: Path, monkeypatch):
    monkeypatch.setattr(app_module, "setup_from_config", lambda *args, **kwargs: None)
    config = ToonFetchConfig()
    config.paths.specs_dir = str(specs_dir)
    return app_module.create_app(config)


def test_startup_loads_specs_from_disk(server_app):
    with TestClient(server_app) as client:
        response = client.post("/mcp/tools/list_apis")

        assert response.status_code == 200
        assert [api["name"] for api in response.json()["apis"]] == [
            "other/api",
            "sample/api",
        ]

        health = client.get("/health").json()
        assert health["apis_loaded"] == 2


def test_yaml_spec_generates_examples(server_app):
    with TestClient(server_app) as client:
        response = client.post(
            "/mcp/tools/generate_code_example",
            json={"api_name": "other/api", "path": "/users/{user_id}", "method": "GET"},
        )

    assert response.status_code == 200
    usage = response.json()["usage"]
    assert "const pathParams: PathParams = {" in usage
    assert "  path: pathParams," in usage


def test_shutdown_releases_engine(server_app):
    with TestClient(server_app) as client:
        client.post(
            "/mcp/tools/generate_code_example",
            json={"api_name": "sample/api", "path": "/users", "method": "GET"},
        )
        engine = server_app.state.engine
        assert len(engine.cache) == 1

    assert engine.apis == []
    assert len(engine.cache) == 0
