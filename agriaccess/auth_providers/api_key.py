"""API key authentication provider."""

from __future__ import annotations

from agriaccess.auth_providers.base import AuthResult
from agriaccess.rbac import Role

DEFAULT_KEY_ROLES: list[str] = [Role.GENERAL_USER.value]


class ApiKeyProvider:
    """Authenticate via static API keys from AA_API_KEYS."""

    name = "api_key"

    def __init__(self, valid_keys: set[str], key_roles: dict[str, list[str]] | None = None) -> None:
        self._valid_keys = valid_keys
        self._key_roles = key_roles or {}

    async def authenticate(self, token: str) -> AuthResult:
        if token in self._valid_keys:
            roles = self._key_roles.get(token, DEFAULT_KEY_ROLES)
            return AuthResult(
                authenticated=True,
                identity=f"api_key:{token[:8]}...",
                provider=self.name,
                roles=list(roles),
            )
        return AuthResult(
            authenticated=False,
            provider=self.name,
            error="Invalid API key",
        )
