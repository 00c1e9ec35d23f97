"""Resolve a role name to its effective permission set.

The effective set of a role is the union of its own permissions and those of
every role it inherits from (see :mod:`access_control.hierarchy`). Each
permission contributes two entries: its normalized ``name`` and its normalized
``"method path"`` route key, so callers may check either form.

Per-role permission lists are cached under ``permissions_full_<ROLE>`` and
``permissions_names_<ROLE>`` for ``RBAC["PERMISSION_CACHE_TTL"]`` seconds.
There is no push invalidation from elsewhere; staleness is bounded by the TTL
unless :meth:`PermissionResolver.invalidate` is called after a mutation.
"""

import logging
from typing import Iterable

from django.conf import settings
from django.db.models import Q

from core.errors import UnknownRoleError
from .cache import PermissionCache, get_permission_cache
from .hierarchy import RoleHierarchy, canonical_role_name, get_role_hierarchy
from .models import Role, RolePermission
from .normalizer import normalize, normalize_route_key

logger = logging.getLogger(__name__)

FULL_KEY = "permissions_full_{role}"
NAMES_KEY = "permissions_names_{role}"


class PermissionResolver:
    """Cache-backed lookup of role permissions with hierarchy expansion."""

    def __init__(
        self,
        cache: PermissionCache,
        hierarchy: RoleHierarchy | None = None,
        ttl: int | None = None,
        strict: bool | None = None,
    ):
        rbac = settings.RBAC
        self.cache = cache
        self.hierarchy = hierarchy or get_role_hierarchy()
        self.ttl = ttl if ttl is not None else rbac.get("PERMISSION_CACHE_TTL", 300)
        self.strict = strict if strict is not None else rbac.get("STRICT_ROLE_NAMES", False)

    def resolve_permissions(self, role_name: str) -> set[str]:
        """Return the effective permission set for one role."""
        return self.resolve_for_roles([role_name])

    def resolve_for_roles(self, role_names: Iterable[str]) -> set[str]:
        """Union of the effective sets of several roles."""
        closure: list[str] = []
        for role_name in role_names:
            for role in self.hierarchy.expand(role_name):
                if role not in closure:
                    closure.append(role)

        effective: set[str] = set()
        for role in closure:
            effective |= self.get_permissions_by_role(role)
        return effective

    def get_permissions_by_role(self, role_name: str) -> set[str]:
        """Own permissions of a single role, as names and route keys."""
        triples = self.get_full_permissions_for_role(role_name)
        names = {normalize(t["name"]) for t in triples}
        route_keys = {normalize_route_key(t["method"], t["path"]) for t in triples}
        return {key for key in names | route_keys if key}

    def get_full_permissions_for_role(self, role_name: str) -> list[dict]:
        """``[{"name", "path", "method"}, ...]`` for the role, cached."""
        role = self._known_role(role_name)
        if role is None:
            return []

        key = FULL_KEY.format(role=role)
        permissions = self.cache.get(key)
        if permissions is None:
            permissions = self._fetch_permissions_for_role(role)
            if permissions:
                self.cache.set(key, permissions, self.ttl)
        return permissions

    def get_permission_names_for_role(self, role_name: str) -> list[str]:
        """Permission names only, cached separately from the full triples."""
        role = self._known_role(role_name)
        if role is None:
            return []

        key = NAMES_KEY.format(role=role)
        names = self.cache.get(key)
        if names is None:
            names = [p["name"] for p in self._fetch_permissions_for_role(role)]
            if names:
                self.cache.set(key, names, self.ttl)
        return names

    def invalidate(self, role_name: str) -> None:
        """Drop both cache entries of a role."""
        role = canonical_role_name(role_name)
        self.cache.delete(FULL_KEY.format(role=role))
        self.cache.delete(NAMES_KEY.format(role=role))

    def _known_role(self, role_name: str) -> str | None:
        role = canonical_role_name(role_name)
        if self.hierarchy.is_known(role):
            return role
        if self.strict:
            raise UnknownRoleError(f"Role '{role_name}' is not declared in RBAC['ROLE_HIERARCHY']")
        logger.warning("Unknown role name: %s", role_name)
        return None

    def _fetch_permissions_for_role(self, role_name: str) -> list[dict]:
        role = (
            Role.objects.alive()
            .filter(is_active=True)
            .filter(Q(name__iexact=role_name) | Q(slug__iexact=role_name))
            .first()
        )
        if role is None:
            logger.warning("Role not found: %s", role_name)
            self.invalidate(role_name)
            return []

        rows = (
            RolePermission.objects.filter(role=role, permission__deleted_at__isnull=True)
            .order_by("permission__path", "permission__method")
            .values("permission__name", "permission__path", "permission__method")
        )
        permissions = [
            {
                "name": row["permission__name"],
                "path": row["permission__path"],
                "method": row["permission__method"],
            }
            for row in rows
        ]
        if not permissions:
            logger.warning("Role has no permissions: %s (id=%s)", role_name, role.id)
            self.invalidate(role_name)
        return permissions


def get_permission_resolver() -> PermissionResolver:
    """Build a resolver wired to the shared Redis cache."""
    return PermissionResolver(get_permission_cache())


__all__ = ["PermissionResolver", "get_permission_resolver", "FULL_KEY", "NAMES_KEY"]
