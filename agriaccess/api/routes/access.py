"""Decision routes: ask AgriAccess whether a role set may do something.

Unknown roles or features in a request body are rejected with a 400
``unknown_role`` / ``unknown_feature`` error, never answered with a
decision.
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, Field

from agriaccess.access import (
    can_access_route,
    can_perform_action,
    has_feature_permission,
    highest_level,
    is_gender_compatible,
    sort_roles,
)
from agriaccess.auth import strict_routes_enabled
from agriaccess.permissions import match_route, roles_for_route
from agriaccess.rbac import Gender, gender_requirement_of

router = APIRouter(prefix="/access", tags=["Access"])


def _gender_value(gender: Gender | None) -> str | None:
    return gender.value if gender is not None else None


class RouteCheckRequest(BaseModel):
    roles: list[str] = Field(default_factory=list)
    path: str = Field(min_length=1, max_length=2048)


class RouteCheckResponse(BaseModel):
    allowed: bool
    matched_route: str | None
    public: bool
    required_roles: list[str]


class FeatureCheckRequest(BaseModel):
    roles: list[str] = Field(default_factory=list)
    feature: str = Field(min_length=1, max_length=128)


class FeatureCheckResponse(BaseModel):
    allowed: bool


class ActionCheckRequest(BaseModel):
    actor_roles: list[str] = Field(default_factory=list)
    target_roles: list[str] = Field(default_factory=list)


class ActionCheckResponse(BaseModel):
    allowed: bool
    actor_level: int
    target_level: int


class GenderCheckRequest(BaseModel):
    role: str
    gender: str | None = None


class GenderCheckResponse(BaseModel):
    compatible: bool
    required_gender: str | None


@router.post("/route", response_model=RouteCheckResponse, summary="Check route access")
async def check_route(req: RouteCheckRequest):
    allowed = can_access_route(req.roles, req.path, strict=strict_routes_enabled())
    required = roles_for_route(req.path)
    public = isinstance(required, str)
    return RouteCheckResponse(
        allowed=allowed,
        matched_route=match_route(req.path),
        public=public,
        required_roles=[] if public else [r.value for r in sort_roles(required)],
    )


@router.post("/feature", response_model=FeatureCheckResponse, summary="Check feature permission")
async def check_feature(req: FeatureCheckRequest):
    return FeatureCheckResponse(allowed=has_feature_permission(req.roles, req.feature))


@router.post(
    "/action", response_model=ActionCheckResponse, summary="Check actor-over-target authority"
)
async def check_action(req: ActionCheckRequest):
    return ActionCheckResponse(
        allowed=can_perform_action(req.actor_roles, req.target_roles),
        actor_level=highest_level(req.actor_roles),
        target_level=highest_level(req.target_roles),
    )


@router.post("/gender", response_model=GenderCheckResponse, summary="Check gender eligibility")
async def check_gender(req: GenderCheckRequest):
    return GenderCheckResponse(
        compatible=is_gender_compatible(req.role, req.gender),
        required_gender=_gender_value(gender_requirement_of(req.role)),
    )
