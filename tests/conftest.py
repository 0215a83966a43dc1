"""Shared fixtures for API Atlas tests."""

import pytest

from apiatlas.config import AtlasConfig
from apiatlas.log import configure_logging


BASE_URL = "https://catalog.test"


@pytest.fixture(scope="session", autouse=True)
def stdlib_logging():
    """Route structlog through stdlib logging so stdout stays clean."""
    configure_logging("WARNING")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.apiatlas directory."""
    config_path = tmp_path / ".apiatlas" / "config.json"
    monkeypatch.setattr(AtlasConfig, "get_config_path", classmethod(lambda cls: config_path))
    monkeypatch.delenv("SWAGGERHUB_API_KEY", raising=False)
    return config_path


@pytest.fixture
def org_payload() -> dict:
    """Organization list response with a single organization."""
    return {
        "items": [
            {
                "id": "1",
                "name": "acme",
                "description": "Acme Corp",
                "email": "api@acme.test",
                "memberCount": 12,
            }
        ]
    }
