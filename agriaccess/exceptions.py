"""Custom exception hierarchy for AgriAccess.

Provides structured error types that the centralized error handler
translates into consistent JSON responses.
"""

from __future__ import annotations


class AgriAccessError(Exception):
    """Base exception for all AgriAccess errors."""

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str = "An internal error occurred") -> None:
        self.message = message
        super().__init__(message)


class UnknownRoleError(AgriAccessError, ValueError):
    """A role identifier outside the closed role catalog."""

    status_code = 400
    error_type = "unknown_role"


class UnknownFeatureError(AgriAccessError, ValueError):
    """A feature name outside the closed feature catalog."""

    status_code = 400
    error_type = "unknown_feature"


class GenderRestrictionError(AgriAccessError):
    """A gender-restricted role was requested for an incompatible user."""

    status_code = 403
    error_type = "gender_restriction"


class RoleAssignmentError(AgriAccessError):
    """The actor may not assign the requested roles."""

    status_code = 403
    error_type = "role_assignment_denied"


class AccessDeniedError(AgriAccessError):
    """The caller's roles do not admit the requested route or feature."""

    status_code = 403
    error_type = "access_denied"


class MigrationError(AgriAccessError):
    """A legacy-role migration batch could not be applied."""

    status_code = 422
    error_type = "migration_error"
