"""Routing for role and permission administration endpoints."""

from core.routes import ROUTES, AuthType, Condition, auth
from .hierarchy import RoleName
from .views import (
    PermissionCreateView,
    PermissionDetailView,
    PermissionListView,
    PermissionPaginationView,
    PermissionRolesView,
    RoleCreateView,
    RoleDetailView,
    RoleListView,
    RolePermissionsView,
    RoleRestoreView,
    UserRoleView,
)

BEARER = auth(AuthType.BEARER)
BEARER_OR_API_KEY = auth(AuthType.BEARER, AuthType.API_KEY, condition=Condition.OR)

urlpatterns = [
    ROUTES.path("role/create", RoleCreateView, name="role-create", POST=BEARER),
    ROUTES.path("role", RoleListView, name="role-list", GET=BEARER_OR_API_KEY),
    ROUTES.path(
        "role/users/<uuid:user_id>/roles",
        UserRoleView,
        name="role-user-assign",
        PUT=BEARER,
        labels={"PUT": "Assign User Role"},
    ),
    ROUTES.path(
        "role/<uuid:role_id>",
        RoleDetailView,
        name="role-detail",
        GET=BEARER_OR_API_KEY,
        PATCH=BEARER_OR_API_KEY,
        DELETE=BEARER_OR_API_KEY,
    ),
    ROUTES.path(
        "role/<uuid:role_id>/restore",
        RoleRestoreView,
        name="role-restore",
        PATCH=BEARER_OR_API_KEY,
        labels={"PATCH": "Restore Role"},
    ),
    ROUTES.path(
        "role/<uuid:role_id>/permissions",
        RolePermissionsView,
        name="role-permissions",
        POST=BEARER,
        labels={"POST": "Assign Role Permissions"},
    ),
    ROUTES.path("permission/create", PermissionCreateView, name="permission-create", POST=BEARER),
    ROUTES.path(
        "permission/pagination",
        PermissionPaginationView,
        name="permission-pagination",
        GET=BEARER,
        labels={"GET": "View Permission Page"},
    ),
    ROUTES.path(
        "permission",
        PermissionListView,
        name="permission-list",
        GET=auth(AuthType.BEARER, roles=[RoleName.ADMIN, RoleName.CLIENT]),
    ),
    ROUTES.path(
        "permission/<uuid:permission_id>",
        PermissionDetailView,
        name="permission-detail",
        GET=BEARER,
        PATCH=BEARER,
        DELETE=BEARER,
    ),
    ROUTES.path(
        "permission/<uuid:permission_id>/roles",
        PermissionRolesView,
        name="permission-roles",
        POST=BEARER,
        labels={"POST": "Assign Permission Roles"},
    ),
]
