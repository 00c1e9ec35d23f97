"""Per-request allow/deny decision.

Order of checks:

1. A route accepting ``NONE`` is public and always allowed.
2. No authenticated identity is a hard denial.
3. A route restricted to roles requires the identity's role to be listed.
4. An effective set containing the wildcard permission allows everything.
5. Declared permission codes are matched with ALL/ANY semantics.
6. Otherwise the normalized ``"method route-template"`` key must be present.
"""

import logging

from django.conf import settings
from rest_framework.exceptions import PermissionDenied

from core.routes import PermissionMode, RoutePolicy
from .hierarchy import canonical_role_name
from .normalizer import normalize, normalize_route_key
from .resolver import PermissionResolver

logger = logging.getLogger(__name__)

DENIED_MESSAGE = "You do not have permission to perform this action on this resource."


class AuthorizationGuard:
    def __init__(self, resolver: PermissionResolver, wildcard: str | None = None):
        self.resolver = resolver
        self.wildcard = normalize(wildcard or settings.RBAC.get("WILDCARD_PERMISSION", "*"))

    def check(self, identity, policy: RoutePolicy, method: str, route_template: str) -> bool:
        """Return True or raise :class:`PermissionDenied`."""
        if policy.is_public:
            return True

        if identity is None:
            raise PermissionDenied(DENIED_MESSAGE)
        role_names = {canonical_role_name(getattr(identity, "role_name", ""))} - {""}
        if not role_names:
            raise PermissionDenied(DENIED_MESSAGE)

        if policy.roles and not role_names & {canonical_role_name(r) for r in policy.roles}:
            raise PermissionDenied(DENIED_MESSAGE)

        effective = self.resolver.resolve_for_roles(role_names)
        if self.wildcard in effective:
            return True

        if policy.permissions:
            required = [normalize(code) for code in policy.permissions]
            if policy.permission_mode == PermissionMode.ANY:
                passed = any(code in effective for code in required)
            else:
                passed = all(code in effective for code in required)
            if not passed:
                logger.info("Denied %s: missing permission codes %s", sorted(role_names), required)
                raise PermissionDenied(DENIED_MESSAGE)
            return True

        route_key = normalize_route_key(method, route_template)
        if route_key in effective:
            return True
        logger.info("Denied %s: %s not granted", sorted(role_names), route_key)
        raise PermissionDenied(DENIED_MESSAGE)


__all__ = ["AuthorizationGuard", "DENIED_MESSAGE"]
