"""Serializers for role and permission administration."""

from rest_framework import serializers

from authentication.models import User
from core.pagination import DEFAULT_TAKE, MAX_TAKE
from .hierarchy import canonical_role_name
from .models import HTTPMethod, Permission, Role
from .normalizer import normalize_path


class PermissionSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Permission
        fields = ["id", "name", "path", "method", "description"]
        read_only_fields = fields


class RoleSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ["id", "name", "description"]
        read_only_fields = fields


class RoleSerializer(serializers.ModelSerializer):
    """Role payload; ``name`` is stored in its canonical upper-case form."""

    class Meta:
        """Audit fields and timestamps are read-only."""

        model = Role
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "is_active",
            "created_by_id",
            "updated_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_by_id", "updated_by_id", "created_at", "updated_at"]
        # Name uniqueness among live roles is enforced by RoleService.
        validators = []

    @staticmethod
    def validate_name(value):
        name = canonical_role_name(value)
        if not name:
            raise serializers.ValidationError("Role name cannot be blank")
        return name


class RoleDetailSerializer(RoleSerializer):
    """Role with the permissions it currently holds."""

    permissions = serializers.SerializerMethodField()

    class Meta(RoleSerializer.Meta):
        fields = RoleSerializer.Meta.fields + ["permissions"]

    def get_permissions(self, role):
        permissions = getattr(role, "alive_permissions", None)
        if permissions is None:
            permissions = role.permissions.filter(deleted_at__isnull=True)
        return PermissionSummarySerializer(permissions, many=True).data


class AssignPermissionsSerializer(serializers.Serializer):
    permission_ids = serializers.ListField(
        child=serializers.UUIDField(), min_length=1, max_length=50
    )


class AssignRoleToUserSerializer(serializers.Serializer):
    role_id = serializers.UUIDField()


class UserRoleSerializer(serializers.ModelSerializer):
    """User with the role that was just assigned."""

    role = RoleSummarySerializer(read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "role"]
        read_only_fields = fields


class PermissionSerializer(serializers.ModelSerializer):
    """Permission payload for create and partial update."""

    class Meta:
        """(path, method) uniqueness among live rows is enforced by PermissionService."""

        model = Permission
        fields = [
            "id",
            "name",
            "description",
            "path",
            "method",
            "created_by_id",
            "updated_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_by_id", "updated_by_id", "created_at", "updated_at"]
        extra_kwargs = {"description": {"required": False, "allow_blank": True}}
        validators = []

    @staticmethod
    def validate_path(value):
        path = normalize_path(value)
        if not path.startswith("/"):
            raise serializers.ValidationError("Path must start with '/'")
        return path

    def validate(self, attrs):
        if self.partial and not attrs:
            raise serializers.ValidationError("At least one field must be provided")
        return super().validate(attrs)


class PermissionDetailSerializer(PermissionSerializer):
    roles = serializers.SerializerMethodField()

    class Meta(PermissionSerializer.Meta):
        fields = PermissionSerializer.Meta.fields + ["roles"]

    def get_roles(self, permission):
        roles = getattr(permission, "alive_roles", None)
        if roles is None:
            roles = permission.roles.filter(deleted_at__isnull=True)
        return RoleSummarySerializer(roles, many=True).data


class AssignRolesSerializer(serializers.Serializer):
    role_ids = serializers.ListField(child=serializers.UUIDField(), min_length=1, max_length=20)


class PermissionQuerySerializer(serializers.Serializer):
    """Query string of ``GET permission/pagination``."""

    page = serializers.IntegerField(required=False, default=1, min_value=1)
    limit = serializers.IntegerField(required=False, default=DEFAULT_TAKE, min_value=1, max_value=MAX_TAKE)
    search = serializers.CharField(required=False, default="", allow_blank=True)
    method = serializers.ChoiceField(choices=HTTPMethod.choices, required=False, default="")
    include_deleted = serializers.BooleanField(required=False, default=False)


__all__ = [
    "RoleSerializer",
    "RoleDetailSerializer",
    "AssignPermissionsSerializer",
    "AssignRoleToUserSerializer",
    "UserRoleSerializer",
    "PermissionSerializer",
    "PermissionDetailSerializer",
    "AssignRolesSerializer",
    "PermissionQuerySerializer",
]
