"""Legacy role migration and role-set editing.

Older user documents carry a single ``role`` string from the legacy
catalog (``member``, ``exporter``, ``admin``, ``vendor``,
``super_admin``).  The current model stores a ``roles`` list.  These
helpers convert documents between the two shapes and edit role lists
with validation.  They operate on plain dicts and never touch storage;
writing the results back is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from agriaccess.access import (
    assignable_roles,
    can_perform_action,
    is_admin,
    is_gender_compatible,
)
from agriaccess.exceptions import (
    GenderRestrictionError,
    RoleAssignmentError,
    UnknownRoleError,
)
from agriaccess.rbac import Role, parse_role, parse_roles, resolve_legacy

logger = logging.getLogger("agriaccess.migration")


@dataclass(frozen=True)
class MigrationFailure:
    """A record that could not be migrated, identified by its batch position."""

    index: int
    user_id: str | None
    error: str


@dataclass
class MigrationReport:
    """Outcome of a :func:`migrate_users` run."""

    success: int = 0
    failed: int = 0
    skipped: int = 0
    migrated: list[dict[str, Any]] = field(default_factory=list)
    errors: list[MigrationFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success + self.failed + self.skipped


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def is_migrated(record: dict[str, Any]) -> bool:
    return isinstance(record.get("roles"), list)


def migrate_user_record(record: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *record* with its legacy ``role`` turned into ``roles``.

    The legacy value is kept under ``legacy_role`` during the transition.

    Raises:
        UnknownRoleError: the record has no legacy role or an unknown one.
    """
    legacy = record.get("role")
    if not isinstance(legacy, str) or not legacy:
        raise UnknownRoleError(f"User {record.get('id')!r} has no legacy role")
    new_role = resolve_legacy(legacy)
    migrated = dict(record)
    migrated["roles"] = [new_role.value]
    migrated["legacy_role"] = legacy
    migrated["updated_at"] = _now()
    logger.info("Migrated user %s: %s -> [%s]", record.get("id"), legacy, new_role)
    return migrated


def migrate_users(records: Iterable[dict[str, Any]]) -> MigrationReport:
    """Migrate a batch of user documents.

    Records that already have a ``roles`` list are skipped.  Records with
    a missing or unknown legacy role are counted as failed and logged;
    each failure is reported with its position in the batch, since ids
    may be absent or repeated.
    """
    report = MigrationReport()
    for index, record in enumerate(records):
        raw_id = record.get("id")
        user_id = None if raw_id is None else str(raw_id)
        label = user_id if user_id is not None else f"#{index}"
        if is_migrated(record):
            logger.debug("User %s already migrated, skipping", label)
            report.skipped += 1
            continue
        try:
            report.migrated.append(migrate_user_record(record))
        except UnknownRoleError as exc:
            logger.warning("User %s has invalid role: %r", label, record.get("role"))
            report.failed += 1
            report.errors.append(MigrationFailure(index, user_id, exc.message))
            continue
        report.success += 1
    return report


def needs_migration(records: Iterable[dict[str, Any]]) -> bool:
    """True if any record still lacks a ``roles`` list."""
    return any(not is_migrated(r) for r in records)


def set_roles(roles: Iterable[str]) -> list[Role]:
    """Validate *roles* and drop duplicates, keeping first-seen order."""
    if isinstance(roles, str):
        msg = f"Expected a collection of roles, got the string {roles!r}"
        raise TypeError(msg)
    result: list[Role] = []
    for value in roles:
        role = parse_role(value)
        if role not in result:
            result.append(role)
    return result


def add_role(roles: Iterable[str], role: str, *, gender: str | None = None) -> list[Role]:
    """Return *roles* with *role* appended (unchanged if already held).

    Raises:
        GenderRestrictionError: *role* is gender-restricted and *gender*
            does not satisfy the restriction.
    """
    current = set_roles(roles)
    new_role = parse_role(role)
    if new_role in current:
        logger.debug("Role %s already held, nothing to add", new_role)
        return current
    if not is_gender_compatible(new_role, gender):
        raise GenderRestrictionError(f"Role {new_role!s} is not available for gender {gender!r}")
    return [*current, new_role]


def remove_role(roles: Iterable[str], role: str) -> list[Role]:
    target = parse_role(role)
    return [r for r in set_roles(roles) if r != target]


def check_assignment(
    actor_roles: Iterable[str],
    new_roles: Iterable[str],
    target_roles: Iterable[str] = (),
) -> None:
    """Ensure the actor may give *new_roles* to a user holding *target_roles*.

    Requires the actor to be an administrator who outranks the target
    (see :func:`~agriaccess.access.can_perform_action`), and every
    requested role to sit at or below the actor's own level.

    Raises:
        RoleAssignmentError: any of the conditions fails.
    """
    requested = parse_roles(new_roles)
    if not is_admin(actor_roles):
        raise RoleAssignmentError("Only administrators may assign roles")
    if not can_perform_action(actor_roles, target_roles):
        raise RoleAssignmentError("Cannot change roles of a user at or above your own level")
    beyond = requested - assignable_roles(actor_roles)
    if beyond:
        names = ", ".join(sorted(beyond))
        raise RoleAssignmentError(f"Cannot assign roles above your own level: {names}")
