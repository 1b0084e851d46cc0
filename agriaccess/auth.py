"""API key authentication and access guards for AgriAccess.

Authentication is controlled by two environment variables:
- ``AA_API_KEYS`` — comma-separated list of valid API keys. When empty,
  auth is **disabled** (dev mode, caller acts as ``super_admin``).
- ``AA_API_KEY_ROLES`` — JSON map of key → role list. Keys without an
  entry act as ``general_user``.

Clients supply credentials via:
- ``Authorization: Bearer <token>`` header (preferred)
- ``X-API-Key`` header
- ``api_key`` query parameter

The guard factories (:func:`require_role`, :func:`require_feature`,
:func:`require_route_access`) run after :func:`require_api_key` and read
the caller's roles from ``request.state.auth``.  Any lookup error in a
guard is a denial.
"""

from __future__ import annotations

import logging
import os

from fastapi import HTTPException, Request, status

from agriaccess.access import can_access_route, has_any_role, has_feature_permission
from agriaccess.auth_providers.base import AuthResult
from agriaccess.auth_providers.factory import create_provider
from agriaccess.config import parse_key_roles, settings, strict_routes_enabled
from agriaccess.exceptions import UnknownRoleError
from agriaccess.permissions import roles_for_feature
from agriaccess.rbac import Role, parse_roles

# Paths that are always public, even when auth is enabled.
PUBLIC_PATHS: frozenset[str] = frozenset({"/health", "/metrics"})

_audit_logger = logging.getLogger("agriaccess.audit")


def _extract_token(request: Request) -> str | None:
    """Extract auth token from request headers or query params.

    Priority: Authorization Bearer > X-API-Key header > api_key query param.
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()

    api_key = request.headers.get("X-API-Key")
    if api_key is not None:
        return api_key

    return request.query_params.get("api_key")


def _key_roles_from_env() -> dict[str, list[str]]:
    """Read AA_API_KEY_ROLES; a malformed value grants every key the default role."""
    raw = os.environ.get("AA_API_KEY_ROLES", settings.api_key_roles)
    try:
        return parse_key_roles(raw)
    except ValueError as exc:
        _audit_logger.error(
            "Ignoring AA_API_KEY_ROLES: %s",
            exc,
            extra={"event_category": "audit", "action": "config_error"},
        )
        return {}


def _deny(request: Request, reason: str, detail: str) -> HTTPException:
    auth: AuthResult | None = getattr(request.state, "auth", None)
    _audit_logger.warning(
        "Access denied (%s): %s %s for %s",
        reason,
        request.method,
        request.url.path,
        auth.identity if auth else "anonymous",
        extra={
            "event_category": "audit",
            "action": "access_denied",
            "reason": reason,
            "path": request.url.path,
        },
    )
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _caller_roles(request: Request) -> frozenset[Role]:
    auth: AuthResult | None = getattr(request.state, "auth", None)
    if auth is None:
        raise _deny(request, "not_authenticated", "Not authenticated.")
    try:
        return parse_roles(auth.roles)
    except UnknownRoleError as exc:
        raise _deny(request, "unknown_role", exc.message) from exc


async def require_api_key(request: Request) -> None:
    """FastAPI dependency that enforces authentication.

    Behaviour:
    * Requests to paths listed in ``PUBLIC_PATHS`` are always allowed.
    * If ``AA_API_KEYS`` is not set or empty, authentication is
      **disabled** (dev mode) and the caller acts as ``super_admin``.
    * Otherwise the caller must present a valid token.

    The :class:`AuthResult` is attached to ``request.state.auth`` so
    downstream guards and handlers can inspect identity and roles.

    Raises:
        HTTPException 403: auth is enabled but no token was provided.
        HTTPException 401: a token was provided but it is not valid.
    """
    if request.url.path in PUBLIC_PATHS:
        return

    # Read config from os.environ so monkeypatch works in tests.
    api_keys_raw = os.environ.get("AA_API_KEYS", settings.api_keys)
    valid_keys = frozenset(k.strip() for k in api_keys_raw.split(",") if k.strip())

    if not valid_keys:
        request.state.auth = AuthResult(
            authenticated=True, identity="dev", provider="dev", roles=[Role.SUPER_ADMIN.value]
        )
        return

    key_roles = _key_roles_from_env()
    provider = create_provider("api_key", api_keys=set(valid_keys), key_roles=key_roles or None)

    token = _extract_token(request)

    if token is None:
        _audit_logger.warning(
            "Auth failure (no token): %s %s from %s",
            request.method,
            request.url.path,
            request.client.host if request.client else "unknown",
            extra={
                "event_category": "audit",
                "action": "auth_failure",
                "reason": "no_token",
                "path": request.url.path,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide via X-API-Key header or api_key query parameter.",
        )

    result = await provider.authenticate(token)
    if not result.authenticated:
        _audit_logger.warning(
            "Auth failure (invalid token): %s %s from %s",
            request.method,
            request.url.path,
            request.client.host if request.client else "unknown",
            extra={
                "event_category": "audit",
                "action": "auth_failure",
                "reason": "invalid_token",
                "path": request.url.path,
                "provider": result.provider,
                "error": result.error,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key.",
        )

    request.state.auth = result


def require_role(*roles: str):
    """Dependency factory: require the caller to hold at least one of *roles*.

    Usage::

        @app.post("/admin/thing", dependencies=[Depends(require_role("admin"))])
        async def admin_thing(): ...
    """
    required = parse_roles(roles)

    async def _check(request: Request) -> None:
        if not has_any_role(_caller_roles(request), required):
            raise _deny(
                request,
                "missing_role",
                f"Requires one of roles: {', '.join(sorted(required))}",
            )

    return _check


def require_feature(feature: str):
    """Dependency factory: require permission for a named feature.

    The feature name is checked when the guard is built, so a typo fails
    at import time rather than on the first request.
    """
    roles_for_feature(feature)

    async def _check(request: Request) -> None:
        if not has_feature_permission(_caller_roles(request), feature):
            raise _deny(request, "missing_feature", f"Requires permission: {feature}")

    return _check


def require_route_access(*, strict: bool | None = None):
    """Dependency factory: gate the request path through the route rules.

    Intended for host applications serving the platform's pages.  When
    *strict* is ``None`` the ``AA_STRICT_ROUTES`` setting decides whether
    unregistered paths are denied.
    """

    async def _check(request: Request) -> None:
        use_strict = strict_routes_enabled() if strict is None else strict
        roles = _caller_roles(request)
        if not can_access_route(roles, request.url.path, strict=use_strict):
            raise _deny(request, "route_forbidden", f"Access to {request.url.path} denied.")

    return _check
