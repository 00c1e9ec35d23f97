"""Pluggable authentication strategies and their AND/OR combination.

A route declares the credential types it accepts (``BEARER``, ``API_KEY``,
``NONE``) and how to combine them:

* ``OR``: strategies are tried in order and the first success wins. If all of
  them fail, the last failure is raised.
* ``AND``: every strategy must succeed; the first failure is raised.

A successful strategy returns the :class:`Identity` to attach to the request.
The authorization guard only reads that identity and never re-checks
credentials.
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Protocol

from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed

from core.routes import AuthType, Condition, RoutePolicy
from .services import TokenService

logger = logging.getLogger(__name__)

AUTH_HEADER = "HTTP_AUTHORIZATION"
API_KEY_HEADER = "HTTP_X_API_KEY"
BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as seen by handlers and the authorization guard."""

    user_id: str | None
    role_name: str
    email: str | None = None
    device_id: str | None = None
    role_id: str | None = None
    auth_type: AuthType = AuthType.BEARER

    # DRF and Django treat anything with these attributes as a user object.
    is_authenticated = True
    is_anonymous = False

    @property
    def pk(self) -> str | None:
        return self.user_id


class AuthStrategy(Protocol):
    def authenticate(self, request, identity: Identity | None) -> Identity | None: ...


class BearerStrategy:
    """Verify ``Authorization: Bearer <access token>`` and extract its claims."""

    def authenticate(self, request, identity: Identity | None) -> Identity | None:
        header = request.META.get(AUTH_HEADER, "")
        if not header.startswith(BEARER_PREFIX):
            raise AuthenticationFailed("Missing bearer token")

        payload = TokenService.decode_access_token(header[len(BEARER_PREFIX):].strip())
        return Identity(
            user_id=payload["sub"],
            email=payload.get("email"),
            device_id=payload.get("device_id"),
            role_id=payload.get("role_id"),
            role_name=payload.get("role_name") or "",
            auth_type=AuthType.BEARER,
        )


class ApiKeyStrategy:
    """Compare the ``X-API-Key`` header with ``settings.SECRET_API_KEY``.

    The caller gets a service identity with ``RBAC["API_KEY_ROLE"]`` unless a
    user identity was already established by an earlier strategy.
    """

    def authenticate(self, request, identity: Identity | None) -> Identity | None:
        presented = request.META.get(API_KEY_HEADER, "")
        expected = settings.SECRET_API_KEY or ""
        if not presented or not expected or not hmac.compare_digest(presented.encode(), expected.encode()):
            raise AuthenticationFailed("Invalid API key")
        if identity is not None:
            return identity
        return Identity(
            user_id=None,
            role_name=settings.RBAC.get("API_KEY_ROLE", ""),
            auth_type=AuthType.API_KEY,
        )


class NoneStrategy:
    def authenticate(self, request, identity: Identity | None) -> Identity | None:
        return identity


class AuthenticationChain:
    """Run a route's strategies with its combination condition."""

    def __init__(self, strategies: dict[AuthType, AuthStrategy] | None = None):
        self.strategies = strategies or {
            AuthType.BEARER: BearerStrategy(),
            AuthType.API_KEY: ApiKeyStrategy(),
            AuthType.NONE: NoneStrategy(),
        }

    def authenticate(self, request, policy: RoutePolicy) -> Identity | None:
        strategies = [self.strategies[auth_type] for auth_type in policy.auth_types]
        if policy.condition == Condition.OR:
            return self._any(request, strategies)
        return self._all(request, strategies)

    @staticmethod
    def _any(request, strategies: list[AuthStrategy]) -> Identity | None:
        error = AuthenticationFailed()
        for strategy in strategies:
            try:
                return strategy.authenticate(request, None)
            except AuthenticationFailed as exc:
                logger.debug("%s rejected request: %s", type(strategy).__name__, exc.detail)
                error = exc
        raise error

    @staticmethod
    def _all(request, strategies: list[AuthStrategy]) -> Identity | None:
        identity = None
        for strategy in strategies:
            identity = strategy.authenticate(request, identity)
        return identity


__all__ = [
    "Identity",
    "BearerStrategy",
    "ApiKeyStrategy",
    "NoneStrategy",
    "AuthenticationChain",
]
