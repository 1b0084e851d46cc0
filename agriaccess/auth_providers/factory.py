"""Factory for creating auth providers based on configuration."""

from __future__ import annotations

from agriaccess.auth_providers.api_key import ApiKeyProvider
from agriaccess.auth_providers.base import AuthProvider


def create_provider(
    provider_name: str,
    *,
    api_keys: set[str] | None = None,
    key_roles: dict[str, list[str]] | None = None,
) -> AuthProvider:
    """Create an auth provider by name."""
    if provider_name == "api_key":
        return ApiKeyProvider(api_keys or set(), key_roles)

    msg = f"Unknown auth provider: {provider_name}"
    raise ValueError(msg)
