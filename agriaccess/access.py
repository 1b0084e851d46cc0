"""Access decisions for AgriAccess.

Pure functions composing the role catalog (:mod:`agriaccess.rbac`) and
the permission matrix (:mod:`agriaccess.permissions`).  Every function
takes the caller's role collection as a plain iterable of role strings
(or :class:`~agriaccess.rbac.Role` members); unknown roles raise
:class:`~agriaccess.exceptions.UnknownRoleError` instead of quietly
counting as "no permission".
"""

from __future__ import annotations

from collections.abc import Iterable

from agriaccess.permissions import (
    PUBLIC,
    ROUTE_PERMISSIONS,
    match_route,
    roles_for_feature,
    roles_for_route,
)
from agriaccess.rbac import (
    ALL_ROLES,
    GENDER_RESTRICTED_ROLES,
    ROLE_HIERARCHY,
    Gender,
    Role,
    parse_role,
    parse_roles,
)

_ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


def has_role(user_roles: Iterable[str], role: str) -> bool:
    return parse_role(role) in parse_roles(user_roles)


def has_any_role(user_roles: Iterable[str], roles: Iterable[str]) -> bool:
    """True when the user holds at least one of *roles*."""
    return not parse_roles(user_roles).isdisjoint(parse_roles(roles))


def has_all_roles(user_roles: Iterable[str], roles: Iterable[str]) -> bool:
    """True when the user holds every one of *roles* (vacuously true for none)."""
    return parse_roles(roles) <= parse_roles(user_roles)


def is_admin(user_roles: Iterable[str]) -> bool:
    return has_any_role(user_roles, _ADMIN_ROLES)


def is_super_admin(user_roles: Iterable[str]) -> bool:
    return has_role(user_roles, Role.SUPER_ADMIN)


def highest_level(user_roles: Iterable[str]) -> int:
    """Return the highest hierarchy level among *user_roles*, or 0 for none."""
    return max((ROLE_HIERARCHY[r] for r in parse_roles(user_roles)), default=0)


def has_role_level(user_roles: Iterable[str], required_level: int) -> bool:
    return highest_level(user_roles) >= required_level


def can_access_route(user_roles: Iterable[str], path: str, *, strict: bool = False) -> bool:
    """Decide whether *user_roles* may reach *path*.

    Paths without a rule are public.  With ``strict=True`` an
    unregistered path is denied instead; a registered rule with an empty
    role set is still public.
    """
    roles = parse_roles(user_roles)
    if strict and match_route(path) is None:
        return False
    required = roles_for_route(path)
    if required == PUBLIC:
        return True
    return not roles.isdisjoint(required)


def has_feature_permission(user_roles: Iterable[str], feature: str) -> bool:
    """Decide whether *user_roles* may use *feature*.

    Raises:
        UnknownFeatureError: *feature* is not in the feature catalog.
    """
    required = roles_for_feature(feature)
    return not parse_roles(user_roles).isdisjoint(required)


def can_perform_action(actor_roles: Iterable[str], target_roles: Iterable[str]) -> bool:
    """Decide whether the actor may act on a user holding *target_roles*.

    Super admins always may.  Anyone else needs a strictly higher level
    than the target; equal levels never act on each other.
    """
    if is_super_admin(actor_roles):
        # Still reject unknown target roles.
        parse_roles(target_roles)
        return True
    return highest_level(actor_roles) > highest_level(target_roles)


def assignable_roles(actor_roles: Iterable[str]) -> frozenset[Role]:
    """Return every role at or below the actor's highest level.

    This only stops escalation above the actor's own level.  It does not
    require the actor to be an administrator; callers mutating another
    user's roles must also check :func:`is_admin` (see
    :func:`agriaccess.migration.check_assignment`).
    """
    level = highest_level(actor_roles)
    return frozenset(r for r in ALL_ROLES if ROLE_HIERARCHY[r] <= level)


def is_gender_compatible(role: str, user_gender: str | None) -> bool:
    """Decide whether a user of *user_gender* may hold *role*.

    Unrestricted roles accept any gender, including none.  Restricted
    roles fail closed when the gender is missing or unrecognised.
    """
    required = GENDER_RESTRICTED_ROLES.get(parse_role(role))
    if required is None:
        return True
    if user_gender is None:
        return False
    try:
        return Gender(user_gender) == required
    except ValueError:
        return False


def accessible_routes(user_roles: Iterable[str]) -> list[str]:
    """List the registered routes whose rule admits *user_roles*."""
    roles = parse_roles(user_roles)
    return [path for path, required in ROUTE_PERMISSIONS.items() if not roles.isdisjoint(required)]


def sort_roles(roles: Iterable[Role]) -> list[Role]:
    """Order roles by hierarchy level, then catalog order."""
    wanted = frozenset(roles)
    return [r for r in ALL_ROLES if r in wanted]
