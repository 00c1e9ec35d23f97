"""Static role inheritance loaded from ``settings.RBAC["ROLE_HIERARCHY"]``.

The table maps a role name to the role names whose permissions it inherits.
It lives in configuration, not in the database, and is validated once when it
is loaded: parents must be known roles and inheritance must be acyclic.
"""

from functools import lru_cache
from typing import Mapping

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import models


class RoleName(models.TextChoices):
    """Baseline roles the permission sync job relies on."""

    ADMIN = "ADMIN", "Admin"
    CLIENT = "CLIENT", "Client"


def canonical_role_name(name: str | None) -> str:
    """Trim and upper-case a role name (``" client "`` -> ``"CLIENT"``)."""
    return (name or "").strip().upper()


class RoleHierarchy:
    """Resolve the transitive closure of inherited roles."""

    def __init__(self, table: Mapping[str, list[str]]):
        self._parents: dict[str, tuple[str, ...]] = {
            canonical_role_name(role): tuple(canonical_role_name(p) for p in parents)
            for role, parents in table.items()
        }
        self._validate()

    def _validate(self) -> None:
        for role, parents in self._parents.items():
            for parent in parents:
                if parent not in self._parents:
                    raise ImproperlyConfigured(
                        f"Role '{role}' inherits from undefined role '{parent}'"
                    )
        for role in self._parents:
            self._check_cycle(role, [])

    def _check_cycle(self, role: str, path: list[str]) -> None:
        if role in path:
            cycle = " -> ".join(path + [role])
            raise ImproperlyConfigured(f"Circular role inheritance detected: {cycle}")
        for parent in self._parents.get(role, ()):
            self._check_cycle(parent, path + [role])

    def is_known(self, role_name: str) -> bool:
        return canonical_role_name(role_name) in self._parents

    @property
    def roles(self) -> list[str]:
        return list(self._parents)

    def expand(self, role_name: str) -> list[str]:
        """Return the role itself followed by every transitively inherited role.

        Order is breadth-first and free of duplicates. Unknown roles expand to
        themselves only.
        """
        start = canonical_role_name(role_name)
        if not start:
            return []
        closure = [start]
        queue = [start]
        while queue:
            current = queue.pop(0)
            for parent in self._parents.get(current, ()):
                if parent not in closure:
                    closure.append(parent)
                    queue.append(parent)
        return closure


@lru_cache(maxsize=1)
def get_role_hierarchy() -> RoleHierarchy:
    """Return the hierarchy built from settings, validated on first use."""
    table = dict(settings.RBAC.get("ROLE_HIERARCHY", {}))
    for role in RoleName.values:
        table.setdefault(role, [])
    return RoleHierarchy(table)


__all__ = ["RoleName", "RoleHierarchy", "canonical_role_name", "get_role_hierarchy"]
