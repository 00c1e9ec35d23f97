"""Role and permission administration endpoints."""

from rest_framework import status

from core.authentication import actor_id
from core.pagination import parse_skip_take
from core.response import BaseAPIView, api_response
from .serializers import (
    AssignPermissionsSerializer,
    AssignRolesSerializer,
    AssignRoleToUserSerializer,
    PermissionDetailSerializer,
    PermissionQuerySerializer,
    PermissionSerializer,
    RoleDetailSerializer,
    RoleSerializer,
    UserRoleSerializer,
)
from .services import PermissionService, RoleService


class RoleCreateView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Create a role; the caller is recorded as its creator."""
        serializer = RoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = RoleService.create_role(data=serializer.validated_data, created_by_id=actor_id(request))
        return api_response(RoleSerializer(role).data, status=status.HTTP_201_CREATED)


class RoleListView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        skip, take = parse_skip_take(request.query_params.get("skip"), request.query_params.get("take"))
        roles = RoleService.list_roles(skip, take)
        return api_response(RoleSerializer(roles, many=True).data)


class RoleDetailView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, role_id):
        return api_response(RoleDetailSerializer(RoleService.get_role(role_id)).data)

    # noinspection PyMethodMayBeStatic
    def patch(self, request, role_id):
        serializer = RoleSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        role = RoleService.update_role(
            role_id, data=serializer.validated_data, updated_by_id=actor_id(request)
        )
        return api_response(RoleSerializer(role).data)

    # noinspection PyMethodMayBeStatic
    def delete(self, request, role_id):
        """Soft delete: the row is kept with ``deleted_at`` set."""
        return api_response(RoleService.soft_delete_role(role_id, updated_by_id=actor_id(request)))


class RoleRestoreView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def patch(self, request, role_id):
        return api_response(RoleService.restore_role(role_id, updated_by_id=actor_id(request)))


class RolePermissionsView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request, role_id):
        """Replace the role's permissions with ``permission_ids``."""
        serializer = AssignPermissionsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = RoleService.assign_permissions(role_id, serializer.validated_data["permission_ids"])
        return api_response(RoleDetailSerializer(role).data, status=status.HTTP_201_CREATED)


class UserRoleView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def put(self, request, user_id):
        """Set a user's single role (never ADMIN, never the caller's own)."""
        serializer = AssignRoleToUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = RoleService.assign_role_to_user(
            user_id=user_id,
            role_id=serializer.validated_data["role_id"],
            updated_by_id=actor_id(request),
        )
        return api_response(UserRoleSerializer(user).data)


class PermissionCreateView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        serializer = PermissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        permission = PermissionService.create_permission(
            data=serializer.validated_data, created_by_id=actor_id(request)
        )
        return api_response(PermissionSerializer(permission).data, status=status.HTTP_201_CREATED)


class PermissionPaginationView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        query = PermissionQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        page = PermissionService.paginate(**query.validated_data)
        return api_response(
            {
                "items": PermissionSerializer(page["items"], many=True).data,
                "pagination": page["pagination"],
            }
        )


class PermissionListView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        permissions = PermissionService.list_all()
        return api_response(
            {
                "items": PermissionSerializer(permissions, many=True).data,
                "total_items": len(permissions),
            }
        )


class PermissionDetailView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, permission_id):
        permission = PermissionService.get_permission(permission_id)
        return api_response(PermissionDetailSerializer(permission).data)

    # noinspection PyMethodMayBeStatic
    def patch(self, request, permission_id):
        serializer = PermissionSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        permission = PermissionService.update_permission(
            permission_id, data=serializer.validated_data, updated_by_id=actor_id(request)
        )
        return api_response(PermissionSerializer(permission).data)

    # noinspection PyMethodMayBeStatic
    def delete(self, request, permission_id):
        return api_response(
            PermissionService.delete_permission(permission_id, updated_by_id=actor_id(request))
        )


class PermissionRolesView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request, permission_id):
        """Replace the roles holding this permission with ``role_ids``."""
        serializer = AssignRolesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        permission = PermissionService.assign_roles(permission_id, serializer.validated_data["role_ids"])
        return api_response(PermissionDetailSerializer(permission).data, status=status.HTTP_201_CREATED)


__all__ = [
    "RoleCreateView",
    "RoleListView",
    "RoleDetailView",
    "RoleRestoreView",
    "RolePermissionsView",
    "UserRoleView",
    "PermissionCreateView",
    "PermissionPaginationView",
    "PermissionListView",
    "PermissionDetailView",
    "PermissionRolesView",
]
