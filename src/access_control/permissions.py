"""DRF permission class running the authorization guard for the matched route."""

from rest_framework import permissions

from access_control.guard import AuthorizationGuard, DENIED_MESSAGE
from access_control.normalizer import route_template
from access_control.resolver import get_permission_resolver
from core.routes import ROUTES


class RoutePermission(permissions.BasePermission):
    """Allow or deny based on the route policy and the caller's effective permissions.

    Identity comes from ``request.user`` as attached by
    ``core.authentication.RouteAuthentication``. The route key is built from
    the matched route template, never the concrete URL, so IDs in the path do
    not take part in the comparison.
    """

    message = DENIED_MESSAGE

    def has_permission(self, request, view) -> bool:
        policy = ROUTES.policy_for(request)
        if policy.is_public:
            return True

        # A non-public policy implies the request was resolved to a declared route.
        template = route_template(request.resolver_match.route)
        method = "GET" if request.method == "HEAD" else request.method
        guard = AuthorizationGuard(get_permission_resolver())
        return guard.check(request.user, policy, method, template)


__all__ = ["RoutePermission"]
