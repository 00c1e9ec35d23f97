"""Role and permission administration used by the admin API views."""

import logging
from typing import Iterable

from django.db import IntegrityError, transaction
from django.db.models import Prefetch, Q
from django.utils import timezone

from authentication.models import User
from core.errors import (
    CannotAssignAdminRole,
    CannotChangeOwnRole,
    PermissionAlreadyExists,
    PermissionCacheUnavailable,
    PermissionNotFound,
    RoleAlreadyExists,
    RoleNotFound,
    UserNotFound,
)
from core.pagination import page_meta
from .hierarchy import RoleName, canonical_role_name
from .models import Permission, Role, RolePermission
from .normalizer import normalize_path
from .resolver import get_permission_resolver
from .sync import replace_role_permissions

logger = logging.getLogger(__name__)


def invalidate_roles(role_names: Iterable[str]) -> None:
    """Drop cached permission sets of the given roles.

    An unreachable cache only delays the change until the cached entries
    expire, so the failure is logged rather than raised.
    """
    names = {canonical_role_name(n) for n in role_names} - {""}
    if not names:
        return
    resolver = get_permission_resolver()
    try:
        for name in names:
            resolver.invalidate(name)
    except PermissionCacheUnavailable:
        logger.warning("Could not invalidate cached permissions for %s", sorted(names))


def _alive_permissions_prefetch() -> Prefetch:
    return Prefetch("permissions", queryset=Permission.objects.alive(), to_attr="alive_permissions")


class RoleService:
    @staticmethod
    def _get_alive(role_id) -> Role:
        role = Role.objects.alive().filter(id=role_id).first()
        if role is None:
            raise RoleNotFound()
        return role

    @staticmethod
    def _ensure_name_free(name: str, exclude_id=None) -> None:
        qs = Role.objects.alive().filter(name=name)
        if exclude_id is not None:
            qs = qs.exclude(id=exclude_id)
        if qs.exists():
            raise RoleAlreadyExists()

    @classmethod
    def create_role(cls, *, data: dict, created_by_id=None) -> Role:
        cls._ensure_name_free(data["name"])
        try:
            return Role.objects.create(created_by_id=created_by_id, **data)
        except IntegrityError as exc:
            raise RoleAlreadyExists() from exc

    @staticmethod
    def list_roles(skip: int, take: int) -> list[Role]:
        return list(Role.objects.alive()[skip: skip + take])

    @classmethod
    def get_role(cls, role_id) -> Role:
        role = (
            Role.objects.alive()
            .prefetch_related(_alive_permissions_prefetch())
            .filter(id=role_id)
            .first()
        )
        if role is None:
            raise RoleNotFound()
        return role

    @classmethod
    def update_role(cls, role_id, *, data: dict, updated_by_id=None) -> Role:
        role = cls._get_alive(role_id)
        previous_name = role.name
        if "name" in data:
            cls._ensure_name_free(data["name"], exclude_id=role.id)
        for field, value in data.items():
            setattr(role, field, value)
        role.updated_by_id = updated_by_id
        try:
            role.save()
        except IntegrityError as exc:
            raise RoleAlreadyExists() from exc
        invalidate_roles([previous_name, role.name])
        return role

    @classmethod
    def soft_delete_role(cls, role_id, *, updated_by_id=None) -> dict[str, str]:
        role = cls._get_alive(role_id)
        role.deleted_at = timezone.now()
        role.updated_by_id = updated_by_id
        role.save(update_fields=["deleted_at", "updated_by_id", "updated_at"])
        invalidate_roles([role.name])
        return {"message": f"Role {role.name} has been deleted."}

    @classmethod
    def restore_role(cls, role_id, *, updated_by_id=None) -> dict[str, str]:
        role = Role.objects.deleted().filter(id=role_id).first()
        if role is None:
            raise RoleNotFound()
        cls._ensure_name_free(role.name, exclude_id=role.id)
        role.deleted_at = None
        role.updated_by_id = updated_by_id
        role.save(update_fields=["deleted_at", "updated_by_id", "updated_at"])
        invalidate_roles([role.name])
        return {"message": f"Role {role.name} has been restored."}

    @classmethod
    def assign_permissions(cls, role_id, permission_ids: list) -> Role:
        """Replace the role's permission set with ``permission_ids``."""
        role = cls._get_alive(role_id)
        permissions = list(Permission.objects.alive().filter(id__in=permission_ids))
        if len(permissions) != len(set(permission_ids)):
            raise PermissionNotFound("One or more permissions do not exist.")

        replace_role_permissions(role, permissions)
        invalidate_roles([role.name])
        return cls.get_role(role.id)

    @staticmethod
    def assign_role_to_user(*, user_id, role_id, updated_by_id=None) -> User:
        """Give a user a new (single) role. ADMIN and self-assignment are refused."""
        user = User.objects.alive().select_related("role").filter(id=user_id).first()
        if user is None:
            raise UserNotFound()
        role = Role.objects.alive().filter(id=role_id).first()
        if role is None:
            raise RoleNotFound()
        if canonical_role_name(role.name) == RoleName.ADMIN:
            raise CannotAssignAdminRole()
        if updated_by_id is not None and str(user.id) == str(updated_by_id):
            raise CannotChangeOwnRole()

        user.role = role
        user.updated_by_id = updated_by_id
        user.save(update_fields=["role", "updated_by_id", "updated_at"])
        return user


class PermissionService:
    @staticmethod
    def _get_alive(permission_id) -> Permission:
        permission = Permission.objects.alive().filter(id=permission_id).first()
        if permission is None:
            raise PermissionNotFound()
        return permission

    @staticmethod
    def _ensure_route_free(path: str, method: str, exclude_id=None) -> None:
        qs = Permission.objects.alive().filter(path=path, method=method)
        if exclude_id is not None:
            qs = qs.exclude(id=exclude_id)
        if qs.exists():
            raise PermissionAlreadyExists()

    @staticmethod
    def _role_names(permission: Permission) -> list[str]:
        return list(
            RolePermission.objects.filter(permission=permission).values_list("role__name", flat=True)
        )

    @classmethod
    def create_permission(cls, *, data: dict, created_by_id=None) -> Permission:
        data = {**data, "path": normalize_path(data["path"])}
        cls._ensure_route_free(data["path"], data["method"])
        try:
            return Permission.objects.create(created_by_id=created_by_id, **data)
        except IntegrityError as exc:
            raise PermissionAlreadyExists() from exc

    @staticmethod
    def paginate(
        *, page: int, limit: int, search: str = "", method: str = "", include_deleted: bool = False
    ) -> dict:
        qs = Permission.objects.all() if include_deleted else Permission.objects.alive()
        if method:
            qs = qs.filter(method=method)
        if search:
            qs = qs.filter(
                Q(name__icontains=search) | Q(path__icontains=search) | Q(description__icontains=search)
            )
        total = qs.count()
        offset = (page - 1) * limit
        return {"items": list(qs[offset: offset + limit]), "pagination": page_meta(page, limit, total)}

    @staticmethod
    def list_all() -> list[Permission]:
        return list(Permission.objects.alive())

    @classmethod
    def get_permission(cls, permission_id) -> Permission:
        permission = (
            Permission.objects.alive()
            .prefetch_related(
                Prefetch("roles", queryset=Role.objects.alive(), to_attr="alive_roles")
            )
            .filter(id=permission_id)
            .first()
        )
        if permission is None:
            raise PermissionNotFound()
        return permission

    @classmethod
    def update_permission(cls, permission_id, *, data: dict, updated_by_id=None) -> Permission:
        permission = cls._get_alive(permission_id)
        if "path" in data:
            data = {**data, "path": normalize_path(data["path"])}
        path = data.get("path", permission.path)
        method = data.get("method", permission.method)
        if (path, method) != (permission.path, permission.method):
            cls._ensure_route_free(path, method, exclude_id=permission.id)

        for field, value in data.items():
            setattr(permission, field, value)
        permission.updated_by_id = updated_by_id
        try:
            permission.save()
        except IntegrityError as exc:
            raise PermissionAlreadyExists() from exc
        invalidate_roles(cls._role_names(permission))
        return permission

    @classmethod
    def delete_permission(cls, permission_id, *, updated_by_id=None) -> dict[str, str]:
        permission = cls._get_alive(permission_id)
        permission.deleted_at = timezone.now()
        permission.updated_by_id = updated_by_id
        permission.save(update_fields=["deleted_at", "updated_by_id", "updated_at"])
        invalidate_roles(cls._role_names(permission))
        return {"message": f"Permission {permission.name} has been successfully deleted."}

    @classmethod
    def assign_roles(cls, permission_id, role_ids: list) -> Permission:
        """Replace the set of roles holding this permission."""
        permission = cls._get_alive(permission_id)
        roles = list(Role.objects.alive().filter(id__in=role_ids))
        if len(roles) != len(set(role_ids)):
            raise RoleNotFound("One or more roles do not exist.")

        previous = cls._role_names(permission)
        with transaction.atomic():
            RolePermission.objects.filter(permission=permission).delete()
            RolePermission.objects.bulk_create(
                [RolePermission(role=role, permission=permission) for role in roles]
            )
        invalidate_roles(previous + [role.name for role in roles])
        return cls.get_permission(permission.id)


__all__ = ["RoleService", "PermissionService", "invalidate_roles"]
