"""Shared fixtures for AgriAccess tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from agriaccess.api.app import app
from agriaccess.api.rate_limit import limiter


@pytest.fixture(autouse=True)
def _clean_auth_env(monkeypatch):
    """Start every test in dev mode with default route semantics."""
    for name in ("AA_API_KEYS", "AA_API_KEY_ROLES", "AA_STRICT_ROUTES"):
        monkeypatch.delenv(name, raising=False)


@pytest_asyncio.fixture
async def client():
    """HTTP test client for the decision service."""
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def as_roles(monkeypatch):
    """Configure a single API key carrying *roles* and return its headers."""

    def _configure(*roles: str) -> dict[str, str]:
        import json

        monkeypatch.setenv("AA_API_KEYS", "test-key")
        monkeypatch.setenv("AA_API_KEY_ROLES", json.dumps({"test-key": list(roles)}))
        return {"X-API-Key": "test-key"}

    return _configure
