"""URL patterns for authentication endpoints."""

from access_control.hierarchy import RoleName
from core.routes import ROUTES, PUBLIC, AuthType, auth
from .views import (
    LockUserView,
    LoginView,
    LogoutView,
    ProfileView,
    RefreshTokenView,
    RegisterView,
    UnlockUserView,
    UserListView,
    UserViolationView,
)

BEARER = auth(AuthType.BEARER)
ADMIN_ONLY = auth(AuthType.BEARER, roles=[RoleName.ADMIN])

urlpatterns = [
    ROUTES.path("auth/register", RegisterView, name="auth-register", POST=PUBLIC),
    ROUTES.path("auth/login", LoginView, name="auth-login", POST=PUBLIC),
    ROUTES.path("auth/refresh-token", RefreshTokenView, name="auth-refresh-token", POST=PUBLIC),
    ROUTES.path("auth/logout", LogoutView, name="auth-logout", POST=BEARER),
    ROUTES.path(
        "auth/profile",
        ProfileView,
        name="auth-profile",
        GET=BEARER,
        PATCH=BEARER,
        labels={"GET": "View Profile", "PATCH": "Update Profile"},
    ),
    ROUTES.path("auth", UserListView, name="auth-users", GET=ADMIN_ONLY, labels={"GET": "View User List"}),
    ROUTES.path(
        "auth/<uuid:user_id>/lock",
        LockUserView,
        name="auth-lock",
        PUT=ADMIN_ONLY,
        labels={"PUT": "Lock User"},
    ),
    ROUTES.path(
        "auth/<uuid:user_id>/unlock",
        UnlockUserView,
        name="auth-unlock",
        PUT=ADMIN_ONLY,
        labels={"PUT": "Unlock User"},
    ),
    ROUTES.path(
        "auth/<uuid:user_id>/violations",
        UserViolationView,
        name="auth-violations",
        POST=ADMIN_ONLY,
        labels={"POST": "Create User Violation"},
    ),
]
