"""Domain errors raised by services, the permission cache, and the sync job.

Kept apart from the exception handler so service modules never import
``rest_framework.views`` while DRF is still loading its default classes.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class PermissionCacheUnavailable(Exception):
    """Raised when the permission cache cannot be read or written."""


class UnknownRoleError(Exception):
    """Raised in strict mode when a role name is missing from the hierarchy."""


class MissingBaselineRoles(Exception):
    """Raised by the permission sync when ADMIN or CLIENT is not in the database."""


class RoleNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Role not found."
    default_code = "role_not_found"


class RoleAlreadyExists(APIException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Role already exists."
    default_code = "role_already_exists"


class CannotAssignAdminRole(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "The ADMIN role cannot be assigned through this endpoint."
    default_code = "cannot_update_admin"


class CannotChangeOwnRole(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Admins cannot change their own role."
    default_code = "cannot_change_own_role"


class PermissionNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Permission not found."
    default_code = "permission_not_found"


class PermissionAlreadyExists(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "A permission for this path and method already exists."
    default_code = "permission_already_exists"


class UserNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "User not found."
    default_code = "user_not_found"


class UserBlocked(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "This account is inactive or blocked."
    default_code = "user_blocked"


class LockDurationRequired(APIException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "lock_duration_days is required when action_taken is LOCK."
    default_code = "lock_duration_required"


__all__ = [
    "PermissionCacheUnavailable",
    "UnknownRoleError",
    "MissingBaselineRoles",
    "RoleNotFound",
    "RoleAlreadyExists",
    "CannotAssignAdminRole",
    "CannotChangeOwnRole",
    "PermissionNotFound",
    "PermissionAlreadyExists",
    "UserNotFound",
    "UserBlocked",
    "LockDurationRequired",
]
