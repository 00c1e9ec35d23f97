"""Authentication strategy chain: bearer, API key, and their AND/OR combination."""

import uuid
from datetime import timedelta
from unittest import mock

from django.test import SimpleTestCase, override_settings
from django.test.client import RequestFactory
from rest_framework.exceptions import AuthenticationFailed

from authentication.services import TokenService
from authentication.strategies import AuthenticationChain, Identity
from core.authentication import RouteAuthentication
from core.routes import ROUTES, AuthType, Condition, auth

API_KEY = "test-api-key"


def _access_token(role_name="CLIENT"):
    return TokenService.sign_access_token(
        user_id=uuid.uuid4(),
        email="client@example.com",
        device_id=1,
        role_id=uuid.uuid4(),
        role_name=role_name,
    )


@override_settings(SECRET_API_KEY=API_KEY)
class AuthenticationChainTests(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.chain = AuthenticationChain()

    def _request(self, token=None, api_key=None):
        headers = {}
        if token:
            headers["HTTP_AUTHORIZATION"] = f"Bearer {token}"
        if api_key:
            headers["HTTP_X_API_KEY"] = api_key
        return self.factory.get("/", **headers)

    def test_bearer_token_yields_identity_from_claims(self):
        identity = self.chain.authenticate(self._request(token=_access_token()), auth(AuthType.BEARER))
        self.assertIsInstance(identity, Identity)
        self.assertEqual(identity.role_name, "CLIENT")
        self.assertEqual(identity.email, "client@example.com")
        self.assertTrue(identity.is_authenticated)

    def test_missing_bearer_token_fails(self):
        with self.assertRaises(AuthenticationFailed):
            self.chain.authenticate(self._request(), auth(AuthType.BEARER))

    def test_refresh_token_is_not_accepted_as_bearer(self):
        refresh, _ = TokenService.sign_refresh_token(user_id=uuid.uuid4(), email="a@example.com")
        with self.assertRaises(AuthenticationFailed):
            self.chain.authenticate(self._request(token=refresh), auth(AuthType.BEARER))

    @override_settings(ACCESS_TOKEN_LIFETIME=timedelta(seconds=-1))
    def test_expired_token_fails(self):
        with self.assertRaises(AuthenticationFailed):
            self.chain.authenticate(self._request(token=_access_token()), auth(AuthType.BEARER))

    def test_or_accepts_api_key_when_bearer_is_missing(self):
        policy = auth(AuthType.BEARER, AuthType.API_KEY, condition=Condition.OR)
        identity = self.chain.authenticate(self._request(api_key=API_KEY), policy)
        self.assertEqual(identity.auth_type, AuthType.API_KEY)
        self.assertEqual(identity.role_name, "ADMIN")
        self.assertIsNone(identity.user_id)

    def test_or_first_success_wins(self):
        policy = auth(AuthType.BEARER, AuthType.API_KEY, condition=Condition.OR)
        identity = self.chain.authenticate(self._request(token=_access_token(), api_key=API_KEY), policy)
        self.assertEqual(identity.auth_type, AuthType.BEARER)

    def test_or_raises_last_failure_when_all_fail(self):
        policy = auth(AuthType.BEARER, AuthType.API_KEY, condition=Condition.OR)
        with self.assertRaises(AuthenticationFailed) as ctx:
            self.chain.authenticate(self._request(api_key="wrong"), policy)
        self.assertEqual(str(ctx.exception.detail), "Invalid API key")

    def test_and_requires_every_strategy(self):
        policy = auth(AuthType.BEARER, AuthType.API_KEY, condition=Condition.AND)
        with self.assertRaises(AuthenticationFailed):
            self.chain.authenticate(self._request(token=_access_token()), policy)
        with self.assertRaises(AuthenticationFailed):
            self.chain.authenticate(self._request(api_key=API_KEY), policy)

    def test_and_keeps_the_bearer_identity(self):
        policy = auth(AuthType.BEARER, AuthType.API_KEY, condition=Condition.AND)
        identity = self.chain.authenticate(self._request(token=_access_token(), api_key=API_KEY), policy)
        self.assertEqual(identity.auth_type, AuthType.BEARER)
        self.assertEqual(identity.role_name, "CLIENT")

    def test_none_only_route_has_no_identity(self):
        self.assertIsNone(self.chain.authenticate(self._request(), auth()))

    @override_settings(SECRET_API_KEY="")
    def test_unset_api_key_never_matches(self):
        with self.assertRaises(AuthenticationFailed):
            self.chain.authenticate(self._request(api_key=""), auth(AuthType.API_KEY))


@override_settings(SECRET_API_KEY=API_KEY)
class RouteAuthenticationTests(SimpleTestCase):
    """Policies mixing NONE with other types still run the other strategies."""

    def setUp(self):
        self.factory = RequestFactory()
        self.authentication = RouteAuthentication()

    def _authenticate(self, policy, **headers):
        request = self.factory.get("/", **headers)
        with mock.patch.object(ROUTES, "policy_for", return_value=policy):
            return self.authentication.authenticate(request)

    def test_and_with_none_still_requires_bearer(self):
        policy = auth(AuthType.BEARER, AuthType.NONE, condition=Condition.AND)
        with self.assertRaises(AuthenticationFailed):
            self._authenticate(policy)

    def test_and_with_none_attaches_bearer_identity(self):
        policy = auth(AuthType.BEARER, AuthType.NONE, condition=Condition.AND)
        identity, _ = self._authenticate(policy, HTTP_AUTHORIZATION=f"Bearer {_access_token()}")
        self.assertEqual(identity.role_name, "CLIENT")

    def test_or_with_none_attaches_bearer_identity(self):
        policy = auth(AuthType.BEARER, AuthType.NONE, condition=Condition.OR)
        identity, _ = self._authenticate(policy, HTTP_AUTHORIZATION=f"Bearer {_access_token()}")
        self.assertEqual(identity.auth_type, AuthType.BEARER)

    def test_or_with_none_lets_anonymous_callers_through(self):
        policy = auth(AuthType.BEARER, AuthType.NONE, condition=Condition.OR)
        self.assertIsNone(self._authenticate(policy))

    def test_none_only_route_ignores_credentials(self):
        self.assertIsNone(self._authenticate(auth(), HTTP_AUTHORIZATION="Bearer garbage"))
