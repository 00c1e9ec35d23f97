"""End-to-end route authorization: authentication chain, guard, resolver, and cache."""

from __future__ import annotations

from unittest import mock

from django.test import TestCase, override_settings
from rest_framework.exceptions import PermissionDenied
from rest_framework.test import APIClient

from access_control.guard import AuthorizationGuard
from access_control.models import Permission, RolePermission
from access_control.resolver import FULL_KEY, get_permission_resolver
from access_control.sync import DeclaredRoute, PermissionSynchronizer, declared_routes_from_table
from authentication.strategies import Identity
from core.routes import AuthType, auth, collect_routes
from tests.utils import API, BrokenRedis, FakeRedis, bearer_client, create_user, seed_roles, sync_routes

API_KEY = "test-api-key"
GENERIC_403 = "You do not have permission to perform this action on this resource."


@override_settings(BCRYPT_ROUNDS=4, SECRET_API_KEY=API_KEY)
class RouteAuthorizationTests(TestCase):
    """Validate allow/deny outcomes for ADMIN, CLIENT, API-key, and anonymous callers."""

    @classmethod
    def setUpClass(cls):
        """Patch the permission cache's Redis client with the in-memory fake."""
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("access_control.cache.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        """Stop Redis patches after the suite finishes."""
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()

    @classmethod
    def setUpTestData(cls):
        """Seed roles, the permission catalog, and one account per role."""
        cls.roles = seed_roles()
        sync_routes()
        cls.password = "StrongPass123"
        cls.admin = create_user("admin@test.com", cls.password, cls.roles["ADMIN"], full_name="Admin")
        cls.customer = create_user("client@test.com", cls.password, cls.roles["CLIENT"], full_name="Client")

    def setUp(self):
        """Start every test with an empty permission cache."""
        self.fake_redis.flushall()
        self.admin_client = bearer_client(self.admin.email, self.password)
        self.customer_client = bearer_client(self.customer.email, self.password)

    def test_client_reaches_self_service_route(self):
        response = self.customer_client.get(f"{API}/auth/profile")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["email"], self.customer.email)

    def test_client_is_denied_admin_route(self):
        response = self.customer_client.get(f"{API}/role")
        body = response.json()
        self.assertEqual(response.status_code, 403)
        self.assertIsNone(body["data"])
        self.assertEqual(body["errors"], [GENERIC_403])

    def test_admin_reaches_admin_route(self):
        response = self.admin_client.get(f"{API}/role")
        self.assertEqual(response.status_code, 200)
        names = {role["name"] for role in response.json()["data"]}
        self.assertEqual(names, {"ADMIN", "CLIENT"})

    def test_head_is_authorized_like_get(self):
        self.assertEqual(self.admin_client.head(f"{API}/role").status_code, 200)
        self.assertEqual(self.customer_client.head(f"{API}/role").status_code, 403)

    def test_api_key_satisfies_bearer_or_api_key_route(self):
        client = APIClient()
        client.credentials(HTTP_X_API_KEY=API_KEY)
        response = client.get(f"{API}/role/{self.roles['CLIENT'].id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["name"], "CLIENT")

    def test_api_key_alone_fails_bearer_only_route(self):
        client = APIClient()
        client.credentials(HTTP_X_API_KEY=API_KEY)
        response = client.post(f"{API}/role/create", {"name": "support"}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_missing_credentials_are_401(self):
        response = APIClient().get(f"{API}/role")
        body = response.json()
        self.assertEqual(response.status_code, 401)
        self.assertEqual(body["errors"], ["Authentication credentials were not provided or are invalid."])

    def test_garbage_token_is_401(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")
        self.assertEqual(client.get(f"{API}/auth/profile").status_code, 401)

    def test_role_requirement_applies_before_route_permissions(self):
        # CLIENT is an accepted role for the permission list but holds no grant for it.
        self.assertEqual(self.customer_client.get(f"{API}/permission").status_code, 403)
        self.assertEqual(self.admin_client.get(f"{API}/permission").status_code, 200)
        # User administration is restricted to ADMIN outright.
        self.assertEqual(self.customer_client.get(f"{API}/auth").status_code, 403)

    def test_public_schema_needs_no_credentials(self):
        response = APIClient().get(f"{API}/schema")
        self.assertEqual(response.status_code, 200)

    def test_effective_permissions_are_cached_per_role(self):
        self.customer_client.get(f"{API}/auth/profile")
        self.assertIn(FULL_KEY.format(role="CLIENT"), self.fake_redis.keys())

    def test_revoked_grant_applies_after_invalidation(self):
        self.assertEqual(self.customer_client.get(f"{API}/auth/profile").status_code, 200)
        RolePermission.objects.filter(
            role=self.roles["CLIENT"], permission__path=f"{API}/auth/profile", permission__method="GET"
        ).delete()
        get_permission_resolver().invalidate("CLIENT")
        self.assertEqual(self.customer_client.get(f"{API}/auth/profile").status_code, 403)

    def test_cache_outage_is_503_not_403(self):
        with mock.patch("access_control.cache.get_redis_client", return_value=BrokenRedis()):
            response = self.admin_client.get(f"{API}/role")
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(response.json()["data"])


class OrderRouteDecisionTests(TestCase):
    """``DELETE /order/:orderId`` against the real catalog, resolver, and guard."""

    ORDER = "/api/v1/order/:orderId"

    @classmethod
    def setUpTestData(cls):
        cls.roles = seed_roles()
        routes = declared_routes_from_table(collect_routes())
        routes.append(DeclaredRoute("DELETE", cls.ORDER, "Delete Order"))
        PermissionSynchronizer().sync(routes)

    def setUp(self):
        patcher = mock.patch("access_control.cache.get_redis_client", return_value=FakeRedis())
        patcher.start()
        self.addCleanup(patcher.stop)
        self.guard = AuthorizationGuard(get_permission_resolver())
        self.policy = auth(AuthType.BEARER)

    def test_client_holding_the_route_key_is_allowed(self):
        identity = Identity(user_id="c1", role_name="CLIENT")
        self.assertTrue(self.guard.check(identity, self.policy, "DELETE", self.ORDER))

    def test_client_without_the_route_key_is_denied(self):
        RolePermission.objects.filter(role=self.roles["CLIENT"], permission__path=self.ORDER).delete()
        identity = Identity(user_id="c1", role_name="CLIENT")
        with self.assertRaises(PermissionDenied):
            self.guard.check(identity, self.policy, "DELETE", self.ORDER)

    def test_admin_inherits_client_grants(self):
        # Even without a direct link, ADMIN inherits the route from CLIENT.
        RolePermission.objects.filter(role=self.roles["ADMIN"], permission__path=self.ORDER).delete()
        identity = Identity(user_id="a1", role_name="ADMIN")
        self.assertTrue(self.guard.check(identity, self.policy, "DELETE", self.ORDER))

    def test_unknown_role_is_denied(self):
        identity = Identity(user_id="x1", role_name="SUPPLIER")
        with self.assertLogs("access_control.resolver", level="WARNING"):
            with self.assertRaises(PermissionDenied):
                self.guard.check(identity, self.policy, "DELETE", self.ORDER)

    def test_other_method_on_the_route_is_denied(self):
        self.assertTrue(Permission.objects.filter(path=self.ORDER, method="DELETE").exists())
        identity = Identity(user_id="c1", role_name="CLIENT")
        with self.assertRaises(PermissionDenied):
            self.guard.check(identity, self.policy, "PATCH", self.ORDER)
