"""Permission catalog reconciliation and baseline role links."""

from datetime import timedelta
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from access_control.models import Permission, Role, RolePermission
from access_control.sync import (
    DeclaredRoute,
    PermissionSynchronizer,
    display_name,
    matches_client_rules,
)
from core.errors import MissingBaselineRoles
from tests.utils import FakeRedis, seed_roles, sync_routes

ROUTES = [
    DeclaredRoute("GET", "/api/v1/product", "View Product List"),
    DeclaredRoute("POST", "/api/v1/cart", "Create Cart"),
    DeclaredRoute("DELETE", "/api/v1/order/:orderId", "Delete Order"),
    DeclaredRoute("POST", "/api/v1/role/create", "Create Role"),
]


class PermissionSyncTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.roles = seed_roles()

    def setUp(self):
        self.sync = PermissionSynchronizer()

    def test_first_run_inserts_every_route(self):
        report = self.sync.sync(ROUTES)
        self.assertEqual((report.added, report.updated, report.removed), (4, 0, 0))
        self.assertEqual(
            set(Permission.objects.values_list("name", flat=True)),
            {
                "GET /api/v1/product",
                "POST /api/v1/cart",
                "DELETE /api/v1/order/:orderId",
                "POST /api/v1/role/create",
            },
        )

    def test_second_run_is_a_no_op(self):
        self.sync.sync(ROUTES)
        report = self.sync.sync(ROUTES)
        self.assertEqual((report.added, report.updated, report.removed), (0, 0, 0))
        self.assertFalse(report.changed)

    def test_changed_description_counts_as_one_update(self):
        self.sync.sync(ROUTES)
        changed = [
            DeclaredRoute("POST", "/api/v1/cart", "Add Item To Cart") if r.path == "/api/v1/cart" else r
            for r in ROUTES
        ]
        report = self.sync.sync(changed)
        self.assertEqual((report.added, report.updated, report.removed), (0, 1, 0))
        self.assertEqual(
            Permission.objects.get(path="/api/v1/cart", method="POST").description, "Add Item To Cart"
        )

    def test_update_refreshes_updated_at(self):
        self.sync.sync(ROUTES)
        stale = timezone.now() - timedelta(days=1)
        Permission.objects.update(updated_at=stale)

        self.sync.sync([DeclaredRoute("POST", "/api/v1/cart", "Add Item To Cart")] + ROUTES[2:] + ROUTES[:1])

        self.assertGreater(Permission.objects.get(path="/api/v1/cart").updated_at, stale)
        self.assertEqual(Permission.objects.get(path="/api/v1/product").updated_at, stale)

    def test_vanished_route_is_hard_deleted(self):
        self.sync.sync(ROUTES)
        report = self.sync.sync(ROUTES[:-1])
        self.assertEqual(report.removed, 1)
        self.assertFalse(Permission.objects.filter(path="/api/v1/role/create").exists())

    def test_duplicate_declarations_last_one_wins(self):
        routes = [
            DeclaredRoute("POST", "/api/v1/cart/", "First"),
            DeclaredRoute("post", "/api/v1//cart", "Second"),
        ]
        report = self.sync.sync(routes)
        self.assertEqual(report.added, 1)
        self.assertEqual(Permission.objects.get().description, "Second")

    def test_admin_gets_everything_and_client_the_allow_list(self):
        self.sync.sync(ROUTES)
        admin_paths = set(
            RolePermission.objects.filter(role=self.roles["ADMIN"]).values_list("permission__path", flat=True)
        )
        client_keys = set(
            RolePermission.objects.filter(role=self.roles["CLIENT"]).values_list(
                "permission__method", "permission__path"
            )
        )
        self.assertEqual(len(admin_paths), 4)
        self.assertEqual(
            client_keys,
            {
                ("GET", "/api/v1/product"),
                ("POST", "/api/v1/cart"),
                ("DELETE", "/api/v1/order/:orderId"),
            },
        )

    def test_role_links_are_rebuilt_from_scratch(self):
        extra = Permission.objects.create(name="Legacy", path="/api/v1/legacy", method="GET")
        RolePermission.objects.create(role=self.roles["CLIENT"], permission=extra)
        self.sync.sync(ROUTES)
        self.assertFalse(Permission.objects.filter(id=extra.id).exists())
        self.assertFalse(
            RolePermission.objects.filter(role=self.roles["CLIENT"], permission__path="/api/v1/legacy").exists()
        )

    def test_missing_baseline_role_fails_without_writing(self):
        Role.objects.filter(name="CLIENT").delete()
        with self.assertRaises(MissingBaselineRoles):
            self.sync.sync(ROUTES)
        self.assertFalse(Permission.objects.exists())

    def test_dry_run_reports_without_writing(self):
        report = self.sync.sync(ROUTES, dry_run=True)
        self.assertEqual(report.added, 4)
        self.assertFalse(Permission.objects.exists())

    def test_declared_url_routes_sync_idempotently(self):
        first = sync_routes()
        self.assertGreater(first.added, 0)
        second = sync_routes()
        self.assertEqual((second.added, second.updated, second.removed), (0, 0, 0))
        self.assertTrue(Permission.objects.filter(path="/api/v1/role/:role_id", method="DELETE").exists())


class ClientRuleTests(SimpleTestCase):
    def test_allow_list(self):
        self.assertTrue(matches_client_rules("GET", "/api/v1/product/:productId"))
        self.assertTrue(matches_client_rules("delete", "/api/v1/cart"))
        self.assertTrue(matches_client_rules("POST", "/api/v1/wishlist/:productId/toggle"))
        self.assertTrue(matches_client_rules("GET", "/api/v1/auth/profile"))
        self.assertFalse(matches_client_rules("POST", "/api/v1/product"))
        self.assertFalse(matches_client_rules("GET", "/api/v1/role"))
        self.assertFalse(matches_client_rules("PATCH", "/api/v1/order/:orderId"))

    def test_display_names(self):
        self.assertEqual(display_name("GET", "/api/v1/order"), "View Order List")
        self.assertEqual(display_name("GET", "/api/v1/order/:orderId"), "View Order Detail")
        self.assertEqual(display_name("POST", "/api/v1/cart"), "Create Cart")
        self.assertEqual(display_name("PATCH", "/api/v1/role/:role_id"), "Update Role")
        self.assertEqual(display_name("DELETE", "/api/v1/permission/:permission_id"), "Delete Permission")


class SyncPermissionsCommandTests(TestCase):
    def setUp(self):
        patcher = mock.patch("access_control.cache.get_redis_client", return_value=FakeRedis())
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_reports_counts(self):
        seed_roles()
        out = StringIO()
        call_command("sync_permissions", stdout=out)
        self.assertRegex(out.getvalue(), r"Synced permissions\. Added \d+, updated 0, removed 0\.")

        out = StringIO()
        call_command("sync_permissions", stdout=out)
        self.assertIn("Synced permissions. Added 0, updated 0, removed 0.", out.getvalue())

    def test_missing_roles_exit_with_error(self):
        with self.assertRaises(CommandError):
            call_command("sync_permissions", stdout=StringIO())

    def test_dry_run_leaves_catalog_untouched(self):
        seed_roles()
        call_command("sync_permissions", "--dry-run", stdout=StringIO())
        self.assertFalse(Permission.objects.exists())
