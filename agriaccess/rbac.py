"""Role catalog for AgriAccess.

Defines the closed set of platform roles and their static attributes:
hierarchy level, display label, legacy-role aliases and gender
restrictions.  Everything here is read-only after import.

Roles (highest → lowest level):
    super_admin (6)  — Full system control
    admin (5)        — System administration
    field_officer (4) — Verifies applications and land data
    export_participant, cooperative_member, wave_participant (3)
    buyer, seller, land_owner, farmer, investor (2)
    general_user (1) — Basic platform access
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum
from types import MappingProxyType

from agriaccess.exceptions import UnknownRoleError


class Role(StrEnum):
    """Enumerated platform roles."""

    GENERAL_USER = "general_user"
    BUYER = "buyer"
    SELLER = "seller"
    LAND_OWNER = "land_owner"
    FARMER = "farmer"
    INVESTOR = "investor"
    EXPORT_PARTICIPANT = "export_participant"
    COOPERATIVE_MEMBER = "cooperative_member"
    WAVE_PARTICIPANT = "wave_participant"
    FIELD_OFFICER = "field_officer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Gender(StrEnum):
    """Recorded user gender values used by gender-restricted roles."""

    MALE = "male"
    FEMALE = "female"


#: Numeric level per role.  Higher level means more authority.
ROLE_HIERARCHY: Mapping[Role, int] = MappingProxyType(
    {
        Role.GENERAL_USER: 1,
        Role.BUYER: 2,
        Role.SELLER: 2,
        Role.LAND_OWNER: 2,
        Role.FARMER: 2,
        Role.INVESTOR: 2,
        Role.EXPORT_PARTICIPANT: 3,
        Role.COOPERATIVE_MEMBER: 3,
        Role.WAVE_PARTICIPANT: 3,
        Role.FIELD_OFFICER: 4,
        Role.ADMIN: 5,
        Role.SUPER_ADMIN: 6,
    }
)

ROLE_LABELS: Mapping[Role, str] = MappingProxyType(
    {
        Role.GENERAL_USER: "General User",
        Role.BUYER: "Buyer",
        Role.SELLER: "Seller",
        Role.LAND_OWNER: "Land Owner",
        Role.FARMER: "Farmer / Farm Operator",
        Role.INVESTOR: "Investor",
        Role.EXPORT_PARTICIPANT: "Export Participant",
        Role.COOPERATIVE_MEMBER: "Cooperative Member",
        Role.WAVE_PARTICIPANT: "WAVE Participant",
        Role.FIELD_OFFICER: "Field Officer / Verifier",
        Role.ADMIN: "Administrator",
        Role.SUPER_ADMIN: "Super Administrator",
    }
)

#: Deprecated single-role identifiers and the role each one became.
LEGACY_ROLE_MAP: Mapping[str, Role] = MappingProxyType(
    {
        "member": Role.GENERAL_USER,
        "exporter": Role.EXPORT_PARTICIPANT,
        "admin": Role.ADMIN,
        "vendor": Role.SELLER,
        "super_admin": Role.SUPER_ADMIN,
    }
)

#: Roles that may only be held by users of the mapped gender.
GENDER_RESTRICTED_ROLES: Mapping[Role, Gender] = MappingProxyType(
    {
        Role.WAVE_PARTICIPANT: Gender.FEMALE,  # WAVE is female-only
    }
)

#: All roles ordered by level, then by declaration order.
ALL_ROLES: tuple[Role, ...] = tuple(sorted(Role, key=lambda r: ROLE_HIERARCHY[r]))


def parse_role(value: str) -> Role:
    """Return the :class:`Role` for *value* or raise :class:`UnknownRoleError`."""
    try:
        return Role(value)
    except ValueError:
        raise UnknownRoleError(f"Unknown role: {value!r}") from None


def parse_roles(values: Iterable[str]) -> frozenset[Role]:
    """Normalise a caller-supplied role collection into a frozen set.

    A bare string is rejected rather than iterated character by character.
    """
    if isinstance(values, str):
        msg = f"Expected a collection of roles, got the string {values!r}"
        raise TypeError(msg)
    return frozenset(parse_role(v) for v in values)


def level_of(role: str) -> int:
    return ROLE_HIERARCHY[parse_role(role)]


def label_of(role: str) -> str:
    return ROLE_LABELS[parse_role(role)]


def resolve_legacy(legacy_role: str) -> Role:
    """Map a deprecated single-role identifier onto the current catalog."""
    try:
        return LEGACY_ROLE_MAP[legacy_role]
    except KeyError:
        raise UnknownRoleError(f"Unknown legacy role: {legacy_role!r}") from None


def gender_requirement_of(role: str) -> Gender | None:
    """Return the gender *role* is restricted to, or ``None`` if unrestricted."""
    return GENDER_RESTRICTED_ROLES.get(parse_role(role))


def requires_gender_validation(role: str) -> bool:
    return parse_role(role) in GENDER_RESTRICTED_ROLES
