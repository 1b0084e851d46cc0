"""Centralized configuration for AgriAccess.

Uses Pydantic BaseSettings with environment variable loading and validation.
All AA_* environment variables are validated at import time.
"""

from __future__ import annotations

import json
import os

from pydantic import Field, TypeAdapter, field_validator
from pydantic_settings import BaseSettings


def parse_key_roles(raw: str) -> dict[str, list[str]]:
    """Parse an AA_API_KEY_ROLES JSON string into a key -> roles map.

    Raises ValueError unless the value is empty or a JSON object whose
    values are all lists.
    """
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        msg = "AA_API_KEY_ROLES must be a JSON object"
        raise ValueError(msg)  # noqa: B904
    if not isinstance(parsed, dict) or not all(
        isinstance(roles, list) for roles in parsed.values()
    ):
        msg = "AA_API_KEY_ROLES must map each key to a list of roles"
        raise ValueError(msg)
    return parsed


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = {"env_prefix": "AA_", "case_sensitive": False, "extra": "ignore"}

    # Auth
    api_keys: str = Field(default="", description="Comma-separated API keys (empty = dev mode)")
    api_key_roles: str = Field(
        default="",
        description='JSON map of api_key -> roles (e.g., \'{"key1": ["super_admin"]}\')',
    )

    # Access control
    strict_routes: bool = Field(
        default=False,
        description="Deny routes that have no permission rule instead of treating them as public",
    )

    # Logging
    log_format: str = Field(default="text", description="Log format: text or json")
    log_level: str = Field(default="INFO", description="Python log level")

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")  # noqa: S104
    port: int = Field(default=8000, ge=1, le=65535, description="Server bind port")

    # CORS
    cors_origins: str = Field(default="*", description="Comma-separated CORS origins")

    # Rate limiting
    rate_limit: str = Field(
        default="100/minute",
        description="Default rate limit (e.g., 100/minute). Set to 'none' to disable.",
    )

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            msg = f"AA_LOG_FORMAT must be 'text' or 'json', got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        import logging

        v = v.upper()
        if not isinstance(getattr(logging, v, None), int):
            msg = f"AA_LOG_LEVEL must be a valid Python log level, got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("api_key_roles")
    @classmethod
    def validate_api_key_roles(cls, v: str) -> str:
        parse_key_roles(v)
        return v

    @property
    def api_key_set(self) -> set[str]:
        """Return parsed set of API keys."""
        if not self.api_keys.strip():
            return set()
        return {k.strip() for k in self.api_keys.split(",") if k.strip()}

    @property
    def cors_origin_list(self) -> list[str]:
        """Return parsed list of CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Singleton, validated at import time.
settings = Settings()

_BOOL = TypeAdapter(bool)


def strict_routes_enabled() -> bool:
    """Return the live AA_STRICT_ROUTES value, parsed as Settings parses it.

    Falls back to the import-time setting when the variable is unset.
    Raises ``pydantic.ValidationError`` for a value that is not a boolean.
    """
    raw = os.environ.get("AA_STRICT_ROUTES")
    if raw is None:
        return settings.strict_routes
    return _BOOL.validate_python(raw.strip())
