"""Administrative routes: role-assignment checks and legacy role migration.

Both routes require the ``canAssignRoles`` feature.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from agriaccess.access import sort_roles
from agriaccess.api.rate_limit import limiter
from agriaccess.auth import require_feature
from agriaccess.exceptions import MigrationError
from agriaccess.migration import check_assignment, migrate_users, set_roles
from agriaccess.permissions import Feature

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_feature(Feature.CAN_ASSIGN_ROLES))],
)

_audit_logger = logging.getLogger("agriaccess.audit")


class AssignmentCheckRequest(BaseModel):
    target_roles: list[str] = Field(default_factory=list)
    new_roles: list[str] = Field(min_length=1)


class AssignmentCheckResponse(BaseModel):
    allowed: bool
    roles: list[str]


class MigrateRolesRequest(BaseModel):
    users: list[dict[str, Any]] = Field(max_length=10_000)


class MigrationFailureInfo(BaseModel):
    index: int
    id: str | None
    error: str


class MigrateRolesResponse(BaseModel):
    success: int
    failed: int
    skipped: int
    users: list[dict[str, Any]]
    errors: list[MigrationFailureInfo]


@router.post(
    "/roles/check",
    response_model=AssignmentCheckResponse,
    summary="Validate an intended role assignment",
)
async def check_role_assignment(req: AssignmentCheckRequest, request: Request):
    """Confirm the caller may replace a user's roles with *new_roles*.

    Only ``canAssignRoles`` holders (super admins) get this far, so the
    admin and level checks of :func:`check_assignment` always pass here;
    the request is rejected with 400 ``unknown_role`` when a requested or
    target role is not in the catalog.
    """
    actor_roles = request.state.auth.roles
    roles = set_roles(req.new_roles)
    check_assignment(actor_roles, roles, req.target_roles)
    return AssignmentCheckResponse(allowed=True, roles=[r.value for r in sort_roles(roles)])


@router.post(
    "/migrations/roles",
    response_model=MigrateRolesResponse,
    summary="Migrate legacy single-role user records",
)
@limiter.limit("10/minute")
async def migrate_roles(req: MigrateRolesRequest, request: Request):
    report = migrate_users(req.users)
    _audit_logger.info(
        "Legacy role migration by %s: %d migrated, %d failed, %d skipped",
        request.state.auth.identity,
        report.success,
        report.failed,
        report.skipped,
        extra={"event_category": "audit", "action": "role_migration"},
    )
    if report.total and report.failed == report.total:
        raise MigrationError(f"None of the {report.total} user records could be migrated")
    return MigrateRolesResponse(
        success=report.success,
        failed=report.failed,
        skipped=report.skipped,
        users=report.migrated,
        errors=[
            MigrationFailureInfo(index=f.index, id=f.user_id, error=f.error) for f in report.errors
        ],
    )
