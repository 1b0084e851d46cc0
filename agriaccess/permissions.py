"""Permission matrix for AgriAccess.

Static tables mapping route paths and named features to the roles
permitted to reach them.  A caller needs AT LEAST ONE of the listed
roles.

Route lookup is exact-match first, then longest registered prefix on a
``/`` boundary, so ``/admin/users/123`` is governed by ``/admin/users``
rather than ``/admin``.  A path with no matching rule is public: a new
page added without an entry here is open to everyone.  Use
:func:`find_unregistered_routes` (or ``scripts/check_routes.py``) to
catch such gaps, or enable strict route checks via ``AA_STRICT_ROUTES``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Final, Literal

from agriaccess.exceptions import UnknownFeatureError
from agriaccess.rbac import Role

#: Sentinel returned by :func:`roles_for_route` for unrestricted paths.
PUBLIC: Final = "public"

_ALL = frozenset(Role)
_ADMINS = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
_SUPER = frozenset({Role.SUPER_ADMIN})


def _with_admins(*roles: Role) -> frozenset[Role]:
    return frozenset(roles) | _ADMINS


ROUTE_PERMISSIONS: Mapping[str, frozenset[Role]] = MappingProxyType(
    {
        # Dashboard: all authenticated users
        "/dashboard": _ALL,
        # Marketplace
        "/marketplace": _with_admins(Role.BUYER, Role.SELLER),
        "/marketplace/sell": _with_admins(Role.SELLER),
        "/marketplace/buy": _with_admins(Role.BUYER),
        # Export windows
        "/export": _with_admins(Role.EXPORT_PARTICIPANT),
        # Cooperatives
        "/cooperatives": _with_admins(Role.COOPERATIVE_MEMBER),
        "/cooperatives/contribute": _with_admins(Role.COOPERATIVE_MEMBER),
        "/cooperatives/withdraw": _with_admins(Role.COOPERATIVE_MEMBER),
        "/cooperatives/loans": _with_admins(Role.COOPERATIVE_MEMBER),
        "/cooperatives/fixed-savings": _with_admins(Role.COOPERATIVE_MEMBER),
        # WAVE programme (female only, enforced at enrolment)
        "/wave": _with_admins(Role.WAVE_PARTICIPANT),
        # Farm Nation
        "/farm-nation": _with_admins(Role.FARMER, Role.LAND_OWNER, Role.INVESTOR),
        # Academy: all users
        "/academy": _ALL,
        # Land listings
        "/land": _with_admins(Role.LAND_OWNER, Role.BUYER, Role.INVESTOR),
        # Admin panel
        "/admin": _ADMINS,
        "/admin/users": _SUPER,
        "/admin/withdrawals": _ADMINS,
        "/admin/export-approvals": _ADMINS,
        "/admin/wave-applications": _ADMINS,
        "/admin/audit-logs": _SUPER,
        "/admin/analytics": _ADMINS,
        "/admin/announcements": _ADMINS,
        "/admin/banners": _ADMINS,
        "/admin/settings": _SUPER,
    }
)


class Feature(StrEnum):
    """Named features that server-side actions check before mutating."""

    # Marketplace
    CAN_SELL_PRODUCTS = "canSellProducts"
    CAN_BUY_PRODUCTS = "canBuyProducts"
    CAN_MANAGE_PRODUCTS = "canManageProducts"
    # Export
    CAN_CREATE_EXPORT_WINDOW = "canCreateExportWindow"
    CAN_VIEW_EXPORT_WINDOWS = "canViewExportWindows"
    # Cooperatives
    CAN_MAKE_CONTRIBUTION = "canMakeContribution"
    CAN_REQUEST_WITHDRAWAL = "canRequestWithdrawal"
    CAN_APPLY_FOR_LOAN = "canApplyForLoan"
    # WAVE
    CAN_ACCESS_WAVE = "canAccessWave"
    CAN_APPLY_TO_WAVE = "canApplyToWave"
    # Farm Nation
    CAN_LIST_LAND = "canListLand"
    CAN_MANAGE_FARM = "canManageFarm"
    CAN_INVEST = "canInvest"
    # Verification
    CAN_VERIFY_APPLICATIONS = "canVerifyApplications"
    CAN_VERIFY_LAND = "canVerifyLand"
    # Admin
    CAN_ACCESS_ADMIN_PANEL = "canAccessAdminPanel"
    CAN_MANAGE_USERS = "canManageUsers"
    CAN_ASSIGN_ROLES = "canAssignRoles"
    CAN_VIEW_AUDIT_LOGS = "canViewAuditLogs"
    CAN_MANAGE_SETTINGS = "canManageSettings"
    CAN_APPROVE_WITHDRAWALS = "canApproveWithdrawals"
    CAN_MANAGE_ANNOUNCEMENTS = "canManageAnnouncements"


FEATURE_PERMISSIONS: Mapping[Feature, frozenset[Role]] = MappingProxyType(
    {
        Feature.CAN_SELL_PRODUCTS: _with_admins(Role.SELLER),
        Feature.CAN_BUY_PRODUCTS: _with_admins(Role.BUYER),
        Feature.CAN_MANAGE_PRODUCTS: _with_admins(Role.SELLER),
        Feature.CAN_CREATE_EXPORT_WINDOW: _with_admins(Role.EXPORT_PARTICIPANT),
        Feature.CAN_VIEW_EXPORT_WINDOWS: _with_admins(Role.EXPORT_PARTICIPANT),
        Feature.CAN_MAKE_CONTRIBUTION: _with_admins(Role.COOPERATIVE_MEMBER),
        Feature.CAN_REQUEST_WITHDRAWAL: _with_admins(Role.COOPERATIVE_MEMBER),
        Feature.CAN_APPLY_FOR_LOAN: _with_admins(Role.COOPERATIVE_MEMBER),
        Feature.CAN_ACCESS_WAVE: _with_admins(Role.WAVE_PARTICIPANT),
        Feature.CAN_APPLY_TO_WAVE: _with_admins(Role.WAVE_PARTICIPANT),
        Feature.CAN_LIST_LAND: _with_admins(Role.LAND_OWNER),
        Feature.CAN_MANAGE_FARM: _with_admins(Role.FARMER),
        Feature.CAN_INVEST: _with_admins(Role.INVESTOR),
        Feature.CAN_VERIFY_APPLICATIONS: _with_admins(Role.FIELD_OFFICER),
        Feature.CAN_VERIFY_LAND: _with_admins(Role.FIELD_OFFICER),
        Feature.CAN_ACCESS_ADMIN_PANEL: _ADMINS,
        Feature.CAN_MANAGE_USERS: _SUPER,
        Feature.CAN_ASSIGN_ROLES: _SUPER,
        Feature.CAN_VIEW_AUDIT_LOGS: _SUPER,
        Feature.CAN_MANAGE_SETTINGS: _SUPER,
        Feature.CAN_APPROVE_WITHDRAWALS: _ADMINS,
        Feature.CAN_MANAGE_ANNOUNCEMENTS: _ADMINS,
    }
)


def match_route(path: str) -> str | None:
    """Return the registered route key governing *path*, if any.

    Exact match wins; otherwise the longest key ``r`` with
    ``path.startswith(r + "/")``.
    """
    if path in ROUTE_PERMISSIONS:
        return path
    candidates = [r for r in ROUTE_PERMISSIONS if path.startswith(r + "/")]
    if not candidates:
        return None
    return max(candidates, key=len)


def roles_for_route(path: str) -> frozenset[Role] | Literal["public"]:
    """Return the roles admitted to *path*, or :data:`PUBLIC`."""
    key = match_route(path)
    if key is None:
        return PUBLIC
    roles = ROUTE_PERMISSIONS[key]
    if not roles:
        return PUBLIC
    return roles


def roles_for_feature(feature: str) -> frozenset[Role]:
    """Return the roles permitted to use *feature*.

    Raises:
        UnknownFeatureError: *feature* is not in the catalog, or its rule
            is empty (a configuration error, never an implicit allow).
    """
    try:
        key = Feature(feature)
    except ValueError:
        raise UnknownFeatureError(f"Unknown feature: {feature!r}") from None
    roles = FEATURE_PERMISSIONS.get(key)
    if not roles:
        raise UnknownFeatureError(f"Feature {feature!r} has no permitted roles configured")
    return roles


def all_routes() -> tuple[str, ...]:
    return tuple(ROUTE_PERMISSIONS)


def find_unregistered_routes(paths: Iterable[str]) -> list[str]:
    """Return the paths in *paths* that no route rule governs.

    Such paths are served as public pages; run this over the
    application's page list at build time to spot missing rules.
    """
    return [p for p in paths if match_route(p) is None]
