"""Tests for the API key authentication provider."""

from __future__ import annotations

import pytest

from agriaccess.auth_providers.api_key import ApiKeyProvider
from agriaccess.auth_providers.base import AuthProvider, AuthResult
from agriaccess.auth_providers.factory import create_provider


class TestAuthResult:
    def test_defaults(self):
        r = AuthResult(authenticated=False)
        assert r.authenticated is False
        assert r.identity == ""
        assert r.provider == ""
        assert r.roles == []
        assert r.error is None


class TestApiKeyProvider:
    @pytest.fixture
    def provider(self):
        return ApiKeyProvider(
            {"secret-key-1", "secret-key-2"},
            {"secret-key-1": ["super_admin"]},
        )

    async def test_valid_key_with_roles(self, provider):
        result = await provider.authenticate("secret-key-1")
        assert result.authenticated is True
        assert result.provider == "api_key"
        assert result.roles == ["super_admin"]
        assert result.identity.startswith("api_key:secret-k")

    async def test_valid_key_defaults_to_general_user(self, provider):
        result = await provider.authenticate("secret-key-2")
        assert result.authenticated is True
        assert result.roles == ["general_user"]

    async def test_default_roles_not_shared(self, provider):
        first = await provider.authenticate("secret-key-2")
        first.roles.append("admin")
        second = await provider.authenticate("secret-key-2")
        assert second.roles == ["general_user"]

    async def test_invalid_key(self, provider):
        result = await provider.authenticate("wrong")
        assert result.authenticated is False
        assert result.error == "Invalid API key"

    def test_satisfies_protocol(self, provider):
        assert isinstance(provider, AuthProvider)


class TestFactory:
    def test_api_key(self):
        provider = create_provider("api_key", api_keys={"k"})
        assert isinstance(provider, ApiKeyProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown auth provider"):
            create_provider("ldap")
