"""Read-only catalog routes: roles, legacy aliases, route rules, caller access."""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

from agriaccess.access import (
    accessible_routes,
    assignable_roles,
    highest_level,
    is_admin,
    is_super_admin,
    sort_roles,
)
from agriaccess.permissions import ROUTE_PERMISSIONS
from agriaccess.rbac import (
    Gender,
    ALL_ROLES,
    ROLE_HIERARCHY,
    ROLE_LABELS,
    gender_requirement_of,
    parse_roles,
    resolve_legacy,
)

router = APIRouter(tags=["Catalog"])


def _gender_value(gender: Gender | None) -> str | None:
    return gender.value if gender is not None else None


class RoleInfo(BaseModel):
    role: str
    label: str
    level: int
    required_gender: str | None


class LegacyResolution(BaseModel):
    legacy_role: str
    role: str
    label: str


class RouteRuleInfo(BaseModel):
    path: str
    roles: list[str]


class CallerAccess(BaseModel):
    identity: str
    roles: list[str]
    highest_level: int
    is_admin: bool
    is_super_admin: bool
    accessible_routes: list[str]
    assignable_roles: list[str]


@router.get("/roles", response_model=list[RoleInfo], summary="List the role catalog")
async def list_roles():
    return [
        RoleInfo(
            role=role.value,
            label=ROLE_LABELS[role],
            level=ROLE_HIERARCHY[role],
            required_gender=_gender_value(gender_requirement_of(role)),
        )
        for role in ALL_ROLES
    ]


@router.get(
    "/roles/legacy/{legacy_role}",
    response_model=LegacyResolution,
    summary="Resolve a legacy role identifier",
)
async def resolve_legacy_role(legacy_role: str):
    role = resolve_legacy(legacy_role)
    return LegacyResolution(legacy_role=legacy_role, role=role.value, label=ROLE_LABELS[role])


@router.get("/routes", response_model=list[RouteRuleInfo], summary="List route permission rules")
async def list_routes():
    return [
        RouteRuleInfo(path=path, roles=[r.value for r in sort_roles(roles)])
        for path, roles in ROUTE_PERMISSIONS.items()
    ]


@router.get("/me/access", response_model=CallerAccess, summary="Access summary for the caller")
async def my_access(request: Request):
    """Summarise what the authenticated caller can reach and assign."""
    auth = request.state.auth
    roles = parse_roles(auth.roles)
    return CallerAccess(
        identity=auth.identity,
        roles=[r.value for r in sort_roles(roles)],
        highest_level=highest_level(roles),
        is_admin=is_admin(roles),
        is_super_admin=is_super_admin(roles),
        accessible_routes=accessible_routes(roles),
        assignable_roles=[r.value for r in sort_roles(assignable_roles(roles))],
    )
