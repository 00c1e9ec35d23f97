"""RBAC models: Role, Permission, and the RolePermission association."""

import uuid

from django.db import models
from django.db.models import Q


class HTTPMethod(models.TextChoices):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"


class SoftDeleteQuerySet(models.QuerySet):
    """Queryset helpers for rows carrying a ``deleted_at`` marker."""

    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def deleted(self):
        return self.filter(deleted_at__isnull=False)


class Role(models.Model):
    """Named collection of permissions; ``name`` is the canonical key (``ADMIN``)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=50)
    slug = models.SlugField(max_length=50, blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    permissions = models.ManyToManyField(
        "Permission", through="RolePermission", related_name="roles", blank=True
    )
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_by_id = models.UUIDField(null=True, blank=True)
    updated_by_id = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["name"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_role_name_alive",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class Permission(models.Model):
    """A (method, path-template) pair; ``name`` is its unique route label."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    path = models.CharField(max_length=255)
    method = models.CharField(max_length=10, choices=HTTPMethod.choices)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_by_id = models.UUIDField(null=True, blank=True)
    updated_by_id = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        ordering = ["path", "method"]
        constraints = [
            models.UniqueConstraint(
                fields=["path", "method"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_permission_route_alive",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.method} {self.path}"


class RolePermission(models.Model):
    """Link row between a role and one of its permissions."""

    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="role_permissions")
    permission = models.ForeignKey(
        Permission, on_delete=models.CASCADE, related_name="role_permissions"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("role", "permission")

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.role.name} -> {self.permission}"


__all__ = ["HTTPMethod", "Role", "Permission", "RolePermission"]
