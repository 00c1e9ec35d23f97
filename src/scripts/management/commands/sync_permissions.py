"""Reconcile the Permission table with the declared route table."""

from django.core.management.base import BaseCommand, CommandError

from access_control.hierarchy import RoleName
from access_control.resolver import get_permission_resolver
from access_control.sync import PermissionSynchronizer, declared_routes_from_table
from core.errors import MissingBaselineRoles, PermissionCacheUnavailable
from core.routes import collect_routes


class Command(BaseCommand):
    """Insert, update, and delete permissions, then rebuild ADMIN/CLIENT links."""

    help = (
        "Sync the Permission table with the routes declared in the URL "
        "configuration. ADMIN and CLIENT must exist (see seed_roles)."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without writing to the database.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        dry_run = options.get("dry_run", False)
        routes = declared_routes_from_table(collect_routes())

        try:
            report = PermissionSynchronizer().sync(routes, dry_run=dry_run)
        except MissingBaselineRoles as exc:
            raise CommandError(str(exc)) from exc

        prefix = "[dry run] " if dry_run else ""
        self.stdout.write(
            f"{prefix}Synced permissions. Added {report.added}, "
            f"updated {report.updated}, removed {report.removed}."
        )
        if dry_run:
            return

        self.stdout.write(
            f"Linked {report.admin_links} permission(s) to ADMIN and "
            f"{report.client_links} to CLIENT."
        )
        self._invalidate_cached_roles()

    def _invalidate_cached_roles(self) -> None:
        resolver = get_permission_resolver()
        try:
            for role in RoleName.values:
                resolver.invalidate(role)
        except PermissionCacheUnavailable:
            self.stdout.write(
                self.style.WARNING("Permission cache unreachable; cached sets expire with their TTL.")
            )
