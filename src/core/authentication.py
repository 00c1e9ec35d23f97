"""DRF authentication class running the route's authentication strategy chain.

The accepted credential types and their AND/OR combination come from the
route table (``core.routes.ROUTES``). A route that only accepts ``NONE``
leaves ``request.user`` as ``None``; when ``NONE`` is mixed with other types
the chain still runs them under the route's condition.
"""

from typing import Any, Optional, Tuple

from rest_framework.authentication import BaseAuthentication

from authentication.strategies import AuthenticationChain
from core.routes import ROUTES


class RouteAuthentication(BaseAuthentication):
    """Attach the identity produced by the route's strategy chain."""

    chain = AuthenticationChain()

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        identity = self.chain.authenticate(request, ROUTES.policy_for(request))
        if identity is None:
            return None
        return identity, None

    def authenticate_header(self, request) -> str:
        # A challenge makes DRF answer 401 rather than 403 on failed credentials.
        return 'Bearer realm="api"'


def actor_id(request):
    """User id of the caller for audit fields; None for API-key service calls."""
    return getattr(request.user, "user_id", None)


__all__ = ["RouteAuthentication", "actor_id"]
