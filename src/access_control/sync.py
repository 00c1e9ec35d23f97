"""Reconcile the Permission catalog with the declared route table.

Each declared route becomes a permission named ``"<METHOD> <path>"``. Against
the stored, non-deleted permissions the sync computes:

* inserts: declared routes with no stored permission for that method and path,
* updates: stored permissions whose name or description changed,
* deletes: stored permissions whose route is no longer declared (hard delete).

All three run in one transaction. Afterwards the links of the two baseline
roles are rebuilt from scratch: ADMIN gets every permission, CLIENT gets the
permissions matched by :data:`CLIENT_RULES`.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from django.db import transaction
from django.utils import timezone

from core.errors import MissingBaselineRoles
from .hierarchy import RoleName
from .models import Permission, Role, RolePermission
from .normalizer import normalize_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeclaredRoute:
    method: str
    path: str
    description: str = ""

    @property
    def name(self) -> str:
        return f"{self.method} {self.path}"


@dataclass(frozen=True)
class ClientRule:
    methods: tuple[str, ...]
    pattern: re.Pattern


def _rule(methods: Iterable[str], pattern: str) -> ClientRule:
    return ClientRule(tuple(methods), re.compile(pattern, re.IGNORECASE))


# Self-service and read-only routes granted to CLIENT.
CLIENT_RULES: tuple[ClientRule, ...] = (
    # Catalog
    _rule(["GET"], r"/product(/|$)"),
    _rule(["GET"], r"/category(/|$)"),
    # Cart
    _rule(["GET"], r"/cart/pagination$"),
    _rule(["POST"], r"/cart$"),
    _rule(["PATCH"], r"/cart/:cartItemId$"),
    _rule(["DELETE"], r"/cart(/:cartItemId)?$"),
    # Wishlist
    _rule(["GET"], r"/wishlist(/|$)"),
    _rule(["POST"], r"/wishlist/:productId/toggle$"),
    # Order
    _rule(["GET"], r"/order/pagination$"),
    _rule(["GET"], r"/order/:orderId$"),
    _rule(["POST"], r"/order/checkout-from-cart$"),
    _rule(["DELETE"], r"/order/:orderId$"),
    # Auth self-service
    _rule(["GET"], r"/auth/profile$"),
    _rule(["PATCH"], r"/auth/profile$"),
    _rule(["POST"], r"/auth/avatar$"),
    _rule(["POST"], r"/auth/logout$"),
)


def matches_client_rules(method: str, path: str, rules: Iterable[ClientRule] = CLIENT_RULES) -> bool:
    method = method.upper()
    return any(method in rule.methods and rule.pattern.search(path) for rule in rules)


_LABELS = {
    "GET": lambda resource, detail: f"View {resource} {'Detail' if detail else 'List'}",
    "POST": lambda resource, detail: f"Create {resource}",
    "PUT": lambda resource, detail: f"Update {resource}",
    "PATCH": lambda resource, detail: f"Update {resource}",
    "DELETE": lambda resource, detail: f"Delete {resource}",
}


def display_name(method: str, path: str) -> str:
    """Human label for a route: ``GET /api/v1/order/:orderId`` -> ``View Order Detail``."""
    parts = [p for p in path.split("/") if p]
    is_detail = any(p.startswith(":") for p in parts)
    statics = [p for p in parts if not p.startswith(":")]
    resource = statics[-1].capitalize() if statics else ""
    template = _LABELS.get(method.upper())
    if template is None:
        return f"{method.upper()} {resource}".strip()
    return template(resource, is_detail)


def declared_routes_from_table(entries) -> list[DeclaredRoute]:
    """Turn route table entries into the sync input."""
    return [
        DeclaredRoute(
            method=entry.method,
            path=entry.path,
            description=entry.label or display_name(entry.method, entry.path),
        )
        for entry in entries
    ]


@dataclass
class SyncReport:
    added: int = 0
    updated: int = 0
    removed: int = 0
    admin_links: int = 0
    client_links: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)


class PermissionSynchronizer:
    """Run the reconciliation and the baseline role link rebuild."""

    def __init__(self, client_rules: Iterable[ClientRule] = CLIENT_RULES):
        self.client_rules = tuple(client_rules)

    def sync(self, routes: Iterable[DeclaredRoute], dry_run: bool = False) -> SyncReport:
        unique = self._deduplicate(routes)

        with transaction.atomic():
            roles = self._baseline_roles()
            existing = {f"{p.method} {p.path}": p for p in Permission.objects.alive()}

            to_add = [r for key, r in unique.items() if key not in existing]
            to_update = [
                (existing[key].id, r)
                for key, r in unique.items()
                if key in existing and self._differs(existing[key], r)
            ]
            to_delete = [p.id for key, p in existing.items() if key not in unique]

            report = SyncReport(added=len(to_add), updated=len(to_update), removed=len(to_delete))
            if dry_run:
                transaction.set_rollback(True)
                return report

            if to_delete:
                Permission.objects.filter(id__in=to_delete).delete()
            now = timezone.now()
            for permission_id, route in to_update:
                Permission.objects.filter(id=permission_id).update(
                    name=route.name, description=route.description, updated_at=now
                )
            if to_add:
                Permission.objects.bulk_create(
                    [
                        Permission(
                            name=r.name, path=r.path, method=r.method, description=r.description
                        )
                        for r in to_add
                    ]
                )

            report.admin_links, report.client_links = self._rebuild_role_links(roles)

        logger.info(
            "Synced permissions. Added %s, updated %s, removed %s.",
            report.added,
            report.updated,
            report.removed,
        )
        return report

    @staticmethod
    def _deduplicate(routes: Iterable[DeclaredRoute]) -> dict[str, DeclaredRoute]:
        unique: dict[str, DeclaredRoute] = {}
        for route in routes:
            route = DeclaredRoute(
                method=route.method.upper(),
                path=normalize_path(route.path),
                description=route.description,
            )
            # Last declaration of a key wins.
            unique[route.name] = route
        return unique

    @staticmethod
    def _differs(row: Permission, route: DeclaredRoute) -> bool:
        return row.name != route.name or row.description != route.description

    @staticmethod
    def _baseline_roles() -> dict[str, Role]:
        roles = {
            role.name: role
            for role in Role.objects.alive().filter(name__in=[RoleName.ADMIN, RoleName.CLIENT])
        }
        missing = [name for name in (RoleName.ADMIN, RoleName.CLIENT) if name not in roles]
        if missing:
            raise MissingBaselineRoles(
                f"Missing role(s) {', '.join(missing)}: ADMIN and CLIENT must exist before syncing."
            )
        return roles

    def _rebuild_role_links(self, roles: dict[str, Role]) -> tuple[int, int]:
        admin, client = roles[RoleName.ADMIN], roles[RoleName.CLIENT]
        permissions = list(Permission.objects.alive())
        client_permissions = [
            p for p in permissions if matches_client_rules(p.method, p.path, self.client_rules)
        ]
        replace_role_permissions(admin, permissions)
        replace_role_permissions(client, client_permissions)
        return len(permissions), len(client_permissions)


def replace_role_permissions(role: Role, permissions: Iterable[Permission]) -> list[Permission]:
    """Replace the whole permission set of a role (delete all, then insert).

    Always runs inside a transaction so concurrent assignments to the same role
    cannot interleave into a partial set.
    """
    permissions = list({p.id: p for p in permissions}.values())
    with transaction.atomic():
        RolePermission.objects.filter(role=role).delete()
        RolePermission.objects.bulk_create(
            [RolePermission(role=role, permission=p) for p in permissions]
        )
    return permissions


__all__ = [
    "CLIENT_RULES",
    "DeclaredRoute",
    "PermissionSynchronizer",
    "SyncReport",
    "declared_routes_from_table",
    "display_name",
    "matches_client_rules",
    "replace_role_permissions",
]
