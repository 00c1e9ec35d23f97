"""Authentication endpoints: register, login, refresh, logout, profile, account locks, and violations."""

from rest_framework import status

from core.authentication import actor_id
from core.pagination import parse_skip_take
from core.response import BaseAPIView, api_response
from .models import User
from .serializers import (
    CreateUserViolationSerializer,
    LockUserSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    RefreshTokenSerializer,
    RegisterSerializer,
    UserDetailSerializer,
    UserLockSerializer,
    UserViolationSerializer,
)
from .services import AuthService


def _client_info(request) -> dict[str, str]:
    return {
        "user_agent": request.META.get("HTTP_USER_AGENT", ""),
        "ip": request.META.get("REMOTE_ADDR", "") or "",
    }


class RegisterView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Register a new CLIENT account and return its profile."""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = AuthService.register(**serializer.validated_data)
        return api_response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Authenticate and issue access + refresh tokens for a new device."""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tokens = AuthService.login(**serializer.validated_data, **_client_info(request))
        return api_response(tokens)


class RefreshTokenView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Exchange a refresh token for a new pair; the old one stops working."""
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tokens = AuthService.refresh(
            refresh_token=serializer.validated_data["refresh_token"], **_client_info(request)
        )
        return api_response(tokens)


class LogoutView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Revoke the refresh token and deactivate its device."""
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        AuthService.logout(refresh_token=serializer.validated_data["refresh_token"])
        return api_response({"message": "Logged out successfully."})


class ProfileView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Return the current user's profile."""
        user = AuthService.get_active_user(actor_id(request))
        return api_response(UserDetailSerializer(user).data)

    # noinspection PyMethodMayBeStatic
    def patch(self, request):
        """Update profile fields for the current user."""
        user = AuthService.get_active_user(actor_id(request))
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save(updated_by_id=user.id)
        return api_response(UserDetailSerializer(user).data)


class UserListView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        skip, take = parse_skip_take(request.query_params.get("skip"), request.query_params.get("take"))
        users = User.objects.alive().select_related("role")
        return api_response(
            {
                "items": UserDetailSerializer(users[skip: skip + take], many=True).data,
                "total_items": users.count(),
            }
        )


class LockUserView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def put(self, request, user_id):
        serializer = LockUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = AuthService.lock_user(
            user_id=user_id,
            updated_by_id=actor_id(request),
            duration_minutes=serializer.validated_data.get("duration_minutes"),
            until=serializer.validated_data.get("until"),
        )
        return api_response(UserLockSerializer(user).data)


class UnlockUserView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def put(self, request, user_id):
        user = AuthService.unlock_user(user_id=user_id, updated_by_id=actor_id(request))
        return api_response(UserLockSerializer(user).data)


class UserViolationView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request, user_id):
        """Record a violation; ``LOCK`` also locks the account for ``lock_duration_days``."""
        serializer = CreateUserViolationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        violation = AuthService.mark_violation(
            user_id=user_id, created_by_id=actor_id(request), **serializer.validated_data
        )
        return api_response(UserViolationSerializer(violation).data, status=status.HTTP_201_CREATED)
